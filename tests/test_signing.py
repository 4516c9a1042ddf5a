"""Tests for signed registry entries and the registry DID document."""

import base64

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

from trustregistry.config import RegistrySettings
from trustregistry.exceptions import (
    ConfigurationError,
    RecordNotFoundError,
    SignedEntryFormatError,
)
from trustregistry.models import Registry, TrustFramework
from trustregistry.trust.signing import (
    EntryProof,
    RegistryKeyPair,
    SignedEntry,
    SignedEntryService,
    canonicalize,
)

from conftest import AUTHORITY_DID, EMPLOYER_DID, UNIVERSITY_DID

REGISTRY_DID = "did:web:registry.example.com"


def _raw_keys(private_key: ed25519.Ed25519PrivateKey) -> tuple[str, str]:
    seed = private_key.private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )
    return seed.hex(), public.hex()


@pytest.fixture
def service(settings):
    return SignedEntryService(settings=settings, keypair=RegistryKeyPair.generate())


@pytest.fixture
def entry():
    return {"entityType": "issuer", "did": UNIVERSITY_DID, "status": "active", "jurisdictions": ["US"]}


class TestCanonicalize:
    def test_key_order_independent(self):
        assert canonicalize({"b": 1, "a": {"d": 2, "c": 3}}) == canonicalize({"a": {"c": 3, "d": 2}, "b": 1})

    def test_compact(self):
        assert canonicalize({"a": [1, 2], "b": "x"}) == b'{"a":[1,2],"b":"x"}'


class TestRegistryKeyPair:
    def test_from_hex_seed(self):
        private_hex, public_hex = _raw_keys(ed25519.Ed25519PrivateKey.generate())
        keypair = RegistryKeyPair.from_hex(private_hex, public_hex)
        assert keypair.public_key_hex == public_hex

    def test_from_hex_64_byte_secret(self):
        private_hex, public_hex = _raw_keys(ed25519.Ed25519PrivateKey.generate())
        keypair = RegistryKeyPair.from_hex(private_hex + public_hex)
        assert keypair.public_key_hex == public_hex

    def test_mismatched_public_key(self):
        private_hex, _ = _raw_keys(ed25519.Ed25519PrivateKey.generate())
        _, other_public = _raw_keys(ed25519.Ed25519PrivateKey.generate())
        with pytest.raises(ConfigurationError, match="does not match"):
            RegistryKeyPair.from_hex(private_hex, other_public)

    @pytest.mark.parametrize("bad", ["zz", "00" * 31, "00" * 48])
    def test_malformed(self, bad):
        with pytest.raises(ConfigurationError):
            RegistryKeyPair.from_hex(bad)

    def test_multibase_is_base64url(self):
        keypair = RegistryKeyPair.generate()
        encoded = keypair.public_key_multibase
        assert encoded.startswith("z")
        padded = encoded[1:] + "=" * (-len(encoded[1:]) % 4)
        assert base64.urlsafe_b64decode(padded) == keypair.public_key_bytes


class TestSignAndVerify:
    def test_proof_shape(self, service, entry):
        signed = service.sign(entry, REGISTRY_DID)
        proof = signed.to_dict()["proof"]
        assert proof["type"] == "Ed25519Signature2020"
        assert proof["verificationMethod"] == f"{REGISTRY_DID}#key-1"
        assert proof["proofPurpose"] == "assertionMethod"
        assert len(bytes.fromhex(proof["proofValue"])) == 64
        assert proof["created"].endswith("Z")

    def test_round_trip(self, service, entry):
        signed = service.sign(entry, REGISTRY_DID)
        result = service.verify(signed)
        assert result.valid
        assert result.error is None

    def test_verify_dict_form(self, service, entry):
        signed = service.sign(entry, REGISTRY_DID)
        assert service.verify(signed.to_dict()).valid

    def test_key_order_does_not_matter(self, service, entry):
        signed = service.sign(entry, REGISTRY_DID).to_dict()
        signed["entry"] = dict(reversed(list(signed["entry"].items())))
        assert service.verify(signed).valid

    def test_tampered_entry(self, service, entry):
        signed = service.sign(entry, REGISTRY_DID).to_dict()
        signed["entry"]["status"] = "revoked"
        result = service.verify(signed)
        assert not result.valid
        assert result.error == "Invalid signature"

    def test_other_registry_key(self, settings, service, entry):
        signed = service.sign(entry, REGISTRY_DID)
        other = SignedEntryService(settings=settings, keypair=RegistryKeyPair.generate())
        assert not other.verify(signed).valid

    def test_non_hex_proof_value(self, service, entry):
        signed = service.sign(entry, REGISTRY_DID).to_dict()
        signed["proof"]["proofValue"] = "not-hex"
        result = service.verify(signed)
        assert not result.valid
        assert "hex" in result.error

    def test_unsupported_proof_type(self, service, entry):
        signed = service.sign(entry, REGISTRY_DID).to_dict()
        signed["proof"]["type"] = "RsaSignature2018"
        result = service.verify(signed)
        assert not result.valid
        assert result.error == "Unsupported proof type: RsaSignature2018"

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"entry": {"did": UNIVERSITY_DID}},
            {"proof": {"proofValue": "00"}},
            {"entry": "text", "proof": {"proofValue": "00"}},
            {"entry": {"did": UNIVERSITY_DID}, "proof": {"type": "Ed25519Signature2020"}},
            "not a mapping",
        ],
    )
    def test_malformed_input(self, service, payload):
        with pytest.raises(SignedEntryFormatError):
            service.verify(payload)

    def test_empty_entry_is_well_formed(self, service):
        signed = service.sign({}, REGISTRY_DID).to_dict()
        assert signed["entry"] == {}
        assert service.verify(signed).valid

    def test_signed_entry_is_immutable(self, service, entry):
        signed = service.sign(entry, REGISTRY_DID)
        with pytest.raises(ValueError):
            signed.proof = EntryProof(
                created="2025-01-01T00:00:00.000Z", verification_method="x", proof_value="00"
            )
        assert isinstance(signed, SignedEntry)


class TestBuildEntry:
    def test_registry_entry(self, service):
        registry = Registry(id="reg-1", name="Education", ecosystem_did=AUTHORITY_DID)
        framework = TrustFramework(id="tf-1", name="Edu Framework", version="2.0")
        entry = service.build_entry("registry", registry, trust_framework=framework)
        assert entry["entityType"] == "registry"
        assert entry["did"] == AUTHORITY_DID
        assert entry["@context"] == ["https://w3id.org/trp/v1"]
        assert entry["type"] == "TrustRegistryEntry"
        assert entry["trustFramework"] == {"id": "tf-1", "name": "Edu Framework", "version": "2.0"}
        assert entry["timestamp"].endswith("Z")

    def test_wrong_record_type(self, service):
        registry = Registry(name="Education", ecosystem_did=AUTHORITY_DID)
        with pytest.raises(TypeError):
            service.build_entry("issuer", registry)

    @pytest.mark.asyncio
    async def test_signed_issuer_entry(self, service, store):
        signed = await service.signed_entry_for(store, "issuer", UNIVERSITY_DID)
        entry = signed.entry
        assert entry["entityType"] == "issuer"
        assert entry["did"] == UNIVERSITY_DID
        assert entry["credentialTypes"] == ["UniversityDegreeCredential"]
        assert entry["registry"] == {"id": "reg-edu", "name": "Education Trust Registry", "ecosystemDid": AUTHORITY_DID}
        assert entry["trustFramework"]["id"] == "tf-edu"
        assert entry["validFrom"] == "2024-01-01T00:00:00.000Z"
        assert entry["accreditationLevel"] == "full"
        assert signed.proof.verification_method == f"{AUTHORITY_DID}#key-1"
        assert service.verify(signed).valid

    @pytest.mark.asyncio
    async def test_signed_verifier_entry(self, service, store):
        signed = await service.signed_entry_for(store, "verifier", EMPLOYER_DID)
        assert signed.entry["entityType"] == "verifier"
        assert signed.entry["trustFramework"] is None

    @pytest.mark.asyncio
    async def test_unknown_entity(self, service, store):
        with pytest.raises(RecordNotFoundError):
            await service.signed_entry_for(store, "issuer", "did:web:nobody.edu")


class TestRegistryDIDDocument:
    def test_document_shape(self, service):
        doc = service.registry_did_document(REGISTRY_DID).to_dict()
        key_id = f"{REGISTRY_DID}#key-1"
        assert doc["id"] == REGISTRY_DID
        assert doc["@context"] == [
            "https://www.w3.org/ns/did/v1",
            "https://w3id.org/security/suites/ed25519-2020/v1",
        ]
        assert doc["verificationMethod"] == [
            {
                "id": key_id,
                "type": "Ed25519VerificationKey2020",
                "controller": REGISTRY_DID,
                "publicKeyMultibase": service.keypair.public_key_multibase,
            }
        ]
        assert doc["assertionMethod"] == [key_id]
        assert doc["authentication"] == [key_id]

    def test_default_registry_did(self, service):
        assert service.registry_did_document().id == "did:web:registry.example.com"


class TestKeyLoading:
    def test_configured_key_is_used(self):
        private_hex, public_hex = _raw_keys(ed25519.Ed25519PrivateKey.generate())
        settings = RegistrySettings(
            _env_file=None, registry_private_key=private_hex, registry_public_key=public_hex
        )
        assert SignedEntryService(settings=settings).public_key_hex == public_hex

    def test_configured_key_verifies_across_instances(self, entry):
        private_hex, public_hex = _raw_keys(ed25519.Ed25519PrivateKey.generate())
        settings = RegistrySettings(
            _env_file=None, registry_private_key=private_hex, registry_public_key=public_hex
        )
        signed = SignedEntryService(settings=settings).sign(entry, REGISTRY_DID)
        assert SignedEntryService(settings=settings).verify(signed.to_dict()).valid

    def test_ephemeral_key_is_stable_per_service(self, settings, caplog):
        service = SignedEntryService(settings=settings)
        with caplog.at_level("WARNING", logger="trustregistry.trust.signing"):
            first = service.public_key_hex
        assert service.public_key_hex == first
        assert "ephemeral signing key" in caplog.text
