"""
Signed Registry Entries

Ed25519 signing and verification of trust registry entries, and the
registry DID document that publishes the verification key.

An entry is never mutated after signing; any change requires re-signing.
"""

from __future__ import annotations

import base64
import json
import logging
from datetime import datetime
from typing import Any, Literal, Optional, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519
from pydantic import BaseModel, ConfigDict, Field

from trustregistry.config import RegistrySettings, get_settings
from trustregistry.constants import (
    DID_CONTEXT_V1,
    ED25519_2020_CONTEXT,
    ENTRY_TYPE,
    PROOF_PURPOSE,
    REGISTRY_KEY_FRAGMENT,
    SIGNATURE_TYPE,
    TRP_CONTEXT,
    VERIFICATION_KEY_TYPE,
)
from trustregistry.exceptions import (
    ConfigurationError,
    RecordNotFoundError,
    SignedEntryFormatError,
)
from trustregistry.identity.did import DIDDocument
from trustregistry.models import (
    CredentialSchema,
    Registry,
    RegistryEntity,
    TrustFramework,
    utcnow,
)
from trustregistry.storage import AbstractRecordStore
from trustregistry.trust.query import format_rfc3339

logger = logging.getLogger(__name__)

EntryKind = Literal["issuer", "verifier", "registry"]


def canonicalize(entry: dict[str, Any]) -> bytes:
    """Stable serialization of an entry: sorted keys, no insignificant whitespace."""
    return json.dumps(entry, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def _base64url_encode(data: bytes) -> str:
    """Encode bytes as base64url without padding per RFC 7515."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


class RegistryKeyPair:
    """The registry's Ed25519 signing keypair.

    Args:
        private_key: Ed25519 private key for signing operations.
    """

    def __init__(self, private_key: ed25519.Ed25519PrivateKey) -> None:
        self._private_key = private_key
        self._public_key = private_key.public_key()

    @classmethod
    def generate(cls) -> "RegistryKeyPair":
        return cls(ed25519.Ed25519PrivateKey.generate())

    @classmethod
    def from_hex(cls, private_key_hex: str, public_key_hex: Optional[str] = None) -> "RegistryKeyPair":
        """Load a keypair from hex-encoded raw keys.

        Accepts a 32-byte seed or a 64-byte seed||public secret key.

        Raises:
            ConfigurationError: If the key material is malformed or the
                public key does not match the private key.
        """
        try:
            raw = bytes.fromhex(private_key_hex)
        except ValueError as exc:
            raise ConfigurationError("registry private key is not valid hex") from exc
        if len(raw) not in (32, 64):
            raise ConfigurationError(
                f"registry private key must be 32 or 64 bytes, got {len(raw)}"
            )
        keypair = cls(ed25519.Ed25519PrivateKey.from_private_bytes(raw[:32]))
        if public_key_hex and public_key_hex.lower() != keypair.public_key_hex:
            raise ConfigurationError("registry public key does not match private key")
        return keypair

    @property
    def public_key(self) -> ed25519.Ed25519PublicKey:
        return self._public_key

    @property
    def public_key_bytes(self) -> bytes:
        return self._public_key.public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )

    @property
    def public_key_hex(self) -> str:
        return self.public_key_bytes.hex()

    @property
    def public_key_multibase(self) -> str:
        return "z" + _base64url_encode(self.public_key_bytes)

    def sign(self, data: bytes) -> bytes:
        return self._private_key.sign(data)

    def verify(self, signature: bytes, data: bytes) -> bool:
        try:
            self._public_key.verify(signature, data)
        except InvalidSignature:
            return False
        return True


class EntryProof(BaseModel):
    """Detached proof over the canonical form of an entry."""

    model_config = ConfigDict(populate_by_name=True)

    type: str = SIGNATURE_TYPE
    created: str
    verification_method: str = Field(..., alias="verificationMethod")
    proof_purpose: str = Field(default=PROOF_PURPOSE, alias="proofPurpose")
    proof_value: str = Field(..., alias="proofValue", description="Hex-encoded signature")


class SignedEntry(BaseModel):
    """An entry payload together with its proof."""

    model_config = ConfigDict(frozen=True)

    entry: dict[str, Any]
    proof: EntryProof

    def to_dict(self) -> dict[str, Any]:
        return {"entry": self.entry, "proof": self.proof.model_dump(by_alias=True)}


class VerificationResult(BaseModel):
    valid: bool
    error: Optional[str] = None
    verified_at: datetime = Field(default_factory=utcnow)


class SignedEntryService:
    """
    Build, sign and verify trust registry entries.

    The keypair is process-lifetime state owned by the service: it is
    loaded from settings if configured, otherwise generated on first use.

    Args:
        settings: Registry settings; defaults to the process settings.
        keypair: Explicit keypair, mainly for tests.

    Example:
        >>> service = SignedEntryService(keypair=RegistryKeyPair.generate())
        >>> signed = service.sign(entry, "did:web:registry.example.com")
        >>> service.verify(signed).valid
        True
    """

    def __init__(
        self,
        settings: Optional[RegistrySettings] = None,
        keypair: Optional[RegistryKeyPair] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._keypair = keypair

    @property
    def keypair(self) -> RegistryKeyPair:
        if self._keypair is None:
            self._keypair = self._load_keypair()
        return self._keypair

    @property
    def public_key_hex(self) -> str:
        return self.keypair.public_key_hex

    def _load_keypair(self) -> RegistryKeyPair:
        private_hex = self._settings.registry_private_key
        if private_hex:
            keypair = RegistryKeyPair.from_hex(private_hex, self._settings.registry_public_key)
            logger.info("Loaded registry signing key %s", keypair.public_key_hex)
            return keypair
        keypair = RegistryKeyPair.generate()
        logger.warning(
            "No registry keys configured; generated an ephemeral signing key %s. "
            "Set TRUST_REGISTRY_REGISTRY_PRIVATE_KEY and TRUST_REGISTRY_REGISTRY_PUBLIC_KEY "
            "for production.",
            keypair.public_key_hex,
        )
        return keypair

    def build_entry(
        self,
        entity_type: EntryKind,
        record: Union[RegistryEntity, Registry],
        registry: Optional[Registry] = None,
        trust_framework: Optional[TrustFramework] = None,
        credential_types: Optional[list[CredentialSchema]] = None,
    ) -> dict[str, Any]:
        """Assemble the canonical payload for an issuer, verifier or registry.

        For ``registry`` entries the record itself is the registry and
        ``registry`` is ignored.
        """
        if entity_type == "registry":
            if not isinstance(record, Registry):
                raise TypeError("registry entries require a Registry record")
            entry: dict[str, Any] = {
                "@context": [TRP_CONTEXT],
                "type": ENTRY_TYPE,
                "entityType": "registry",
                "did": record.ecosystem_did,
                "name": record.name,
                "status": record.status,
            }
        else:
            if not isinstance(record, RegistryEntity):
                raise TypeError(f"{entity_type} entries require an issuer or verifier record")
            entry = {
                "@context": [TRP_CONTEXT],
                "type": ENTRY_TYPE,
                "entityType": entity_type,
                "did": record.did,
                "name": record.name,
                "status": record.status,
                "jurisdictions": list(record.jurisdictions),
                "contexts": dict(record.contexts),
                "accreditationLevel": record.accreditation_level,
                "validFrom": format_rfc3339(record.valid_from) if record.valid_from else None,
                "validUntil": format_rfc3339(record.valid_until) if record.valid_until else None,
                "credentialTypes": [schema.type for schema in credential_types or []],
                "registry": registry.summary() if registry else None,
            }

        entry["trustFramework"] = (
            {
                "id": trust_framework.id,
                "name": trust_framework.name,
                "version": trust_framework.version,
            }
            if trust_framework
            else None
        )
        entry["timestamp"] = format_rfc3339(utcnow())
        return entry

    async def signed_entry_for(
        self,
        store: AbstractRecordStore,
        entity_type: Literal["issuer", "verifier"],
        did: str,
    ) -> SignedEntry:
        """Look up an issuer or verifier with its relations, then build and sign its entry.

        Raises:
            RecordNotFoundError: If the entity or its registry does not exist.
        """
        if entity_type == "issuer":
            record: Optional[RegistryEntity] = await store.get_issuer(did)
        else:
            record = await store.get_verifier(did)
        if record is None:
            raise RecordNotFoundError(f"{entity_type.capitalize()} {did} not found")

        registry = await store.get_registry(record.registry_id)
        if registry is None:
            raise RecordNotFoundError(f"Registry {record.registry_id} not found")
        framework = (
            await store.get_framework(record.trust_framework_id)
            if record.trust_framework_id
            else None
        )
        schemas = await store.get_schemas(record.credential_type_ids)

        entry = self.build_entry(
            entity_type,
            record,
            registry=registry,
            trust_framework=framework,
            credential_types=schemas,
        )
        return self.sign(entry, registry.ecosystem_did)

    def sign(self, entry: dict[str, Any], registry_did: str) -> SignedEntry:
        """Sign an entry with the registry key."""
        signature = self.keypair.sign(canonicalize(entry))
        proof = EntryProof(
            type=SIGNATURE_TYPE,
            created=format_rfc3339(utcnow()),
            verification_method=f"{registry_did}#{REGISTRY_KEY_FRAGMENT}",
            proof_purpose=PROOF_PURPOSE,
            proof_value=signature.hex(),
        )
        logger.info("Signed %s entry for %s", entry.get("entityType", "unknown"), entry.get("did"))
        return SignedEntry(entry=entry, proof=proof)

    def verify(self, signed_entry: Union[SignedEntry, dict[str, Any]]) -> VerificationResult:
        """Verify a signed entry against the registry key.

        Raises:
            SignedEntryFormatError: If ``entry`` or ``proof`` is missing or
                the proof lacks its required members.
        """
        if not isinstance(signed_entry, SignedEntry):
            signed_entry = self._coerce(signed_entry)

        try:
            signature = bytes.fromhex(signed_entry.proof.proof_value)
        except ValueError:
            return VerificationResult(valid=False, error="Proof value is not valid hex")

        if signed_entry.proof.type != SIGNATURE_TYPE:
            return VerificationResult(
                valid=False, error=f"Unsupported proof type: {signed_entry.proof.type}"
            )
        if not self.keypair.verify(signature, canonicalize(signed_entry.entry)):
            return VerificationResult(valid=False, error="Invalid signature")
        return VerificationResult(valid=True)

    @staticmethod
    def _coerce(data: Any) -> SignedEntry:
        if not isinstance(data, dict) or "entry" not in data or "proof" not in data:
            raise SignedEntryFormatError("Invalid signed entry format. Must include entry and proof.")
        if not isinstance(data["entry"], dict) or not isinstance(data["proof"], dict):
            raise SignedEntryFormatError("Signed entry 'entry' and 'proof' must be objects")
        try:
            return SignedEntry(entry=data["entry"], proof=EntryProof.model_validate(data["proof"]))
        except ValueError as exc:
            raise SignedEntryFormatError(f"Invalid proof: {exc}") from exc

    def registry_did_document(self, registry_did: Optional[str] = None) -> DIDDocument:
        """DID document publishing the registry's verification key."""
        did = registry_did or self._settings.default_registry_did
        key_id = f"{did}#{REGISTRY_KEY_FRAGMENT}"
        return DIDDocument(
            context=[DID_CONTEXT_V1, ED25519_2020_CONTEXT],
            id=did,
            verification_method=[
                {
                    "id": key_id,
                    "type": VERIFICATION_KEY_TYPE,
                    "controller": did,
                    "publicKeyMultibase": self.keypair.public_key_multibase,
                }
            ],
            assertion_method=[key_id],
            authentication=[key_id],
        )
