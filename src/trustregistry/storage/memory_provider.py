"""
In-Memory Record Store.

Simple in-memory implementation for development and testing.
"""

from typing import Optional

from trustregistry.exceptions import RecordNotFoundError, StorageError
from trustregistry.models import (
    CredentialSchema,
    Delegation,
    DelegationStatus,
    EntityStatus,
    Issuer,
    Recognition,
    Registry,
    TrustFramework,
    Verifier,
)

from .provider import AbstractRecordStore, StoreConfig


class MemoryRecordStore(AbstractRecordStore):
    """
    In-memory record store.

    Uses Python dictionaries for storage. Data is lost on restart.
    Suitable for development, tests and CLI snapshots.
    """

    def __init__(self, config: Optional[StoreConfig] = None):
        """Initialize in-memory storage."""
        super().__init__(config)
        self._frameworks: dict[str, TrustFramework] = {}
        self._schemas: dict[str, CredentialSchema] = {}
        self._registries: dict[str, Registry] = {}
        self._issuers: dict[str, Issuer] = {}
        self._verifiers: dict[str, Verifier] = {}
        self._delegations: dict[str, Delegation] = {}
        self._recognitions: dict[str, Recognition] = {}
        self._connected = False

    async def connect(self) -> None:
        """Establish connection (no-op for memory)."""
        self._connected = True

    async def disconnect(self) -> None:
        """Close connection (no-op for memory)."""
        self._connected = False

    async def health_check(self) -> bool:
        return self._connected

    # Frameworks and schemas

    async def add_framework(self, framework: TrustFramework) -> TrustFramework:
        self._frameworks[framework.id] = framework
        return framework

    async def get_framework(self, framework_id: str) -> Optional[TrustFramework]:
        return self._frameworks.get(framework_id)

    async def add_schema(self, schema: CredentialSchema) -> CredentialSchema:
        self._schemas[schema.id] = schema
        return schema

    async def get_schemas(self, schema_ids: list[str]) -> list[CredentialSchema]:
        return [self._schemas[sid] for sid in schema_ids if sid in self._schemas]

    # Registries

    async def add_registry(self, registry: Registry) -> Registry:
        if await self.find_registry_by_did(registry.ecosystem_did) is not None:
            raise StorageError(f"Registry {registry.ecosystem_did} already exists")
        self._registries[registry.id] = registry
        return registry

    async def get_registry(self, registry_id: str) -> Optional[Registry]:
        return self._registries.get(registry_id)

    async def find_registry_by_did(self, ecosystem_did: str) -> Optional[Registry]:
        for registry in self._registries.values():
            if registry.ecosystem_did == ecosystem_did:
                return registry
        return None

    # Issuers

    async def add_issuer(self, issuer: Issuer) -> Issuer:
        if issuer.did in self._issuers:
            raise StorageError(f"Issuer {issuer.did} already exists")
        self._issuers[issuer.did] = issuer
        return issuer

    async def get_issuer(self, did: str) -> Optional[Issuer]:
        return self._issuers.get(did)

    async def update_issuer(self, issuer: Issuer) -> Issuer:
        if issuer.did not in self._issuers:
            raise RecordNotFoundError(f"Issuer {issuer.did} not found")
        self._issuers[issuer.did] = issuer
        return issuer

    async def find_issuers(
        self,
        registry_id: Optional[str] = None,
        status: Optional[EntityStatus] = None,
    ) -> list[Issuer]:
        issuers = list(self._issuers.values())
        if registry_id is not None:
            issuers = [i for i in issuers if i.registry_id == registry_id]
        if status is not None:
            issuers = [i for i in issuers if i.status == status]
        return issuers

    # Verifiers

    async def add_verifier(self, verifier: Verifier) -> Verifier:
        if verifier.did in self._verifiers:
            raise StorageError(f"Verifier {verifier.did} already exists")
        self._verifiers[verifier.did] = verifier
        return verifier

    async def get_verifier(self, did: str) -> Optional[Verifier]:
        return self._verifiers.get(did)

    async def update_verifier(self, verifier: Verifier) -> Verifier:
        if verifier.did not in self._verifiers:
            raise RecordNotFoundError(f"Verifier {verifier.did} not found")
        self._verifiers[verifier.did] = verifier
        return verifier

    async def find_verifiers(
        self,
        registry_id: Optional[str] = None,
        status: Optional[EntityStatus] = None,
    ) -> list[Verifier]:
        verifiers = list(self._verifiers.values())
        if registry_id is not None:
            verifiers = [v for v in verifiers if v.registry_id == registry_id]
        if status is not None:
            verifiers = [v for v in verifiers if v.status == status]
        return verifiers

    # Delegations

    async def add_delegation(self, delegation: Delegation) -> Delegation:
        self._delegations[delegation.id] = delegation
        return delegation

    async def update_delegation(self, delegation: Delegation) -> Delegation:
        if delegation.id not in self._delegations:
            raise RecordNotFoundError(f"Delegation {delegation.id} not found")
        self._delegations[delegation.id] = delegation
        return delegation

    async def find_delegations(
        self,
        root_did: Optional[str] = None,
        delegate_did: Optional[str] = None,
        status: Optional[DelegationStatus] = None,
    ) -> list[Delegation]:
        delegations = [
            d
            for d in self._delegations.values()
            if (root_did is None or d.root_issuer_did == root_did)
            and (delegate_did is None or d.delegate_issuer_did == delegate_did)
            and (status is None or d.status == status)
        ]
        return sorted(delegations, key=lambda d: d.delegated_at, reverse=True)

    # Recognitions

    async def add_recognition(self, recognition: Recognition) -> Recognition:
        self._recognitions[recognition.id] = recognition
        return recognition

    async def find_recognitions(
        self,
        authority_id: str,
        entity_id: Optional[str] = None,
    ) -> list[Recognition]:
        return [
            r
            for r in self._recognitions.values()
            if r.authority_id == authority_id
            and (entity_id is None or r.entity_id == entity_id)
        ]
