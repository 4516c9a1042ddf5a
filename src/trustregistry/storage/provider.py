"""
Abstract Record Store Interface.

Defines the contract the trust engine expects from its persistence layer:
create/read/update/list operations keyed by identifiers, with registry,
schema, issuer and verifier relations.
"""

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel, Field

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


class StoreConfig(BaseModel):
    """Configuration for a record store."""

    backend: str = Field(default="memory", description="Store backend type")


class AbstractRecordStore(ABC):
    """
    Abstract record store.

    Every backend must implement this interface. Lookups that miss return
    ``None`` (or an empty list); the engine decides what a miss means.
    """

    def __init__(self, config: Optional[StoreConfig] = None):
        """Initialize record store with configuration."""
        self.config = config or StoreConfig()

    @abstractmethod
    async def connect(self) -> None:
        """Establish connection to the backend."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close connection to the backend."""

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the backend is healthy."""

    # Frameworks and schemas

    @abstractmethod
    async def add_framework(self, framework: TrustFramework) -> TrustFramework:
        """Store a trust framework."""

    @abstractmethod
    async def get_framework(self, framework_id: str) -> Optional[TrustFramework]:
        """Get a trust framework by id."""

    @abstractmethod
    async def add_schema(self, schema: CredentialSchema) -> CredentialSchema:
        """Store a credential schema."""

    @abstractmethod
    async def get_schemas(self, schema_ids: list[str]) -> list[CredentialSchema]:
        """Get the schemas for the given ids, skipping unknown ids."""

    # Registries

    @abstractmethod
    async def add_registry(self, registry: Registry) -> Registry:
        """Store a registry. Ecosystem DIDs are unique."""

    @abstractmethod
    async def get_registry(self, registry_id: str) -> Optional[Registry]:
        """Get a registry by id."""

    @abstractmethod
    async def find_registry_by_did(self, ecosystem_did: str) -> Optional[Registry]:
        """Get a registry by exact ecosystem DID."""

    # Issuers

    @abstractmethod
    async def add_issuer(self, issuer: Issuer) -> Issuer:
        """Store an issuer. Issuer DIDs are unique."""

    @abstractmethod
    async def get_issuer(self, did: str) -> Optional[Issuer]:
        """Get an issuer by DID."""

    @abstractmethod
    async def update_issuer(self, issuer: Issuer) -> Issuer:
        """Replace a stored issuer."""

    @abstractmethod
    async def find_issuers(
        self,
        registry_id: Optional[str] = None,
        status: Optional[EntityStatus] = None,
    ) -> list[Issuer]:
        """List issuers with optional filters."""

    # Verifiers

    @abstractmethod
    async def add_verifier(self, verifier: Verifier) -> Verifier:
        """Store a verifier. Verifier DIDs are unique."""

    @abstractmethod
    async def get_verifier(self, did: str) -> Optional[Verifier]:
        """Get a verifier by DID."""

    @abstractmethod
    async def update_verifier(self, verifier: Verifier) -> Verifier:
        """Replace a stored verifier."""

    @abstractmethod
    async def find_verifiers(
        self,
        registry_id: Optional[str] = None,
        status: Optional[EntityStatus] = None,
    ) -> list[Verifier]:
        """List verifiers with optional filters."""

    # Delegations

    @abstractmethod
    async def add_delegation(self, delegation: Delegation) -> Delegation:
        """Store a delegation."""

    @abstractmethod
    async def update_delegation(self, delegation: Delegation) -> Delegation:
        """Replace a stored delegation."""

    @abstractmethod
    async def find_delegations(
        self,
        root_did: Optional[str] = None,
        delegate_did: Optional[str] = None,
        status: Optional[DelegationStatus] = None,
    ) -> list[Delegation]:
        """List delegations matching the filters, newest first."""

    # Recognitions

    @abstractmethod
    async def add_recognition(self, recognition: Recognition) -> Recognition:
        """Store a recognition edge."""

    @abstractmethod
    async def find_recognitions(
        self,
        authority_id: str,
        entity_id: Optional[str] = None,
    ) -> list[Recognition]:
        """List recognition edges from an authority registry."""
