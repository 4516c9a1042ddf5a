"""
Registry Records

Record types held by the record store: trust frameworks, credential
schemas, registries, issuers, verifiers, delegations and recognitions.
Trust evaluation reasons over these; persistence belongs to the store.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from trustregistry.exceptions import StatusTransitionError

RegistryStatus = Literal["active", "inactive", "deprecated"]
EntityStatus = Literal["pending", "active", "suspended", "revoked"]
DelegationStatus = Literal["active", "revoked"]
EntityKind = Literal["issuer", "verifier"]


def utcnow() -> datetime:
    """Current instant as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC so every comparison is aware-to-aware."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def within_window(
    valid_from: Optional[datetime],
    valid_until: Optional[datetime],
    at: datetime,
) -> bool:
    """Check that ``at`` lies in the closed window [valid_from, valid_until].

    A missing bound is unbounded on that side.
    """
    at = as_utc(at)
    if valid_from is not None and as_utc(valid_from) > at:
        return False
    if valid_until is not None and as_utc(valid_until) < at:
        return False
    return True


def _new_id() -> str:
    return str(uuid.uuid4())


class TrustFramework(BaseModel):
    """Governance framework a registry or entity operates under."""

    id: str = Field(default_factory=_new_id)
    name: str = Field(..., description="Framework name")
    version: str = Field(default="1.0")
    description: Optional[str] = None


class CredentialSchema(BaseModel):
    """A credential type an issuer may issue or a verifier may verify."""

    id: str = Field(default_factory=_new_id)
    name: str = Field(..., description="Human-readable schema name")
    type: str = Field(..., description="Credential type, e.g. 'UniversityDegree'")
    version: str = Field(default="1.0")


class Registry(BaseModel):
    """An ecosystem authority. The 'authority' side of every trust query."""

    id: str = Field(default_factory=_new_id)
    name: str = Field(..., description="Registry name")
    ecosystem_did: str = Field(..., description="DID identifying the authority")
    status: RegistryStatus = "active"
    trust_framework_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    def summary(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "ecosystemDid": self.ecosystem_did}


class RegistryEntity(BaseModel):
    """
    Common shape of issuers and verifiers.

    An entity belongs to exactly one registry and carries a lifecycle
    status, an optional validity window and its linked credential types.
    """

    id: str = Field(default_factory=_new_id)
    did: str = Field(..., description="Entity DID")
    name: Optional[str] = None
    registry_id: str = Field(..., description="Owning registry")
    trust_framework_id: Optional[str] = None

    status: EntityStatus = "pending"
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None

    jurisdictions: list[str] = Field(default_factory=list)
    contexts: dict[str, Any] = Field(default_factory=dict)
    accreditation_level: Optional[str] = None
    credential_type_ids: list[str] = Field(default_factory=list)

    lifecycle: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("valid_from", "valid_until", "created_at")
    @classmethod
    def _normalize_tz(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)

    def is_valid_at(self, at: datetime) -> bool:
        """Check whether ``at`` falls inside this entity's validity window."""
        return within_window(self.valid_from, self.valid_until, at)

    def set_status(self, status: EntityStatus) -> None:
        """Move to a new lifecycle status.

        Raises:
            StatusTransitionError: If the entity is already revoked.
        """
        if self.status == "revoked" and status != "revoked":
            raise StatusTransitionError(f"{self.did} is revoked; cannot move to '{status}'")
        self.status = status

    def summary(self) -> dict[str, Any]:
        return {"id": self.id, "did": self.did, "name": self.name, "status": self.status}


class Issuer(RegistryEntity):
    """An entity authorized to issue credentials."""


class Verifier(RegistryEntity):
    """An entity authorized to verify credentials."""


class Delegation(BaseModel):
    """
    Grant of issuing authority from a root issuer to a delegate.

    At most one active delegation exists per (root, delegate) pair.
    Revocation is terminal; revoked records stay for history.
    """

    id: str = Field(default_factory=_new_id)
    root_issuer_did: str = Field(..., description="Delegating issuer")
    delegate_issuer_did: str = Field(..., description="Issuer receiving authority")
    scope: dict[str, Any] = Field(..., description="Jurisdictions, credential types, contexts")
    delegation_proof: dict[str, Any] = Field(..., description="Proof supplied by the root")
    delegated_at: datetime = Field(default_factory=utcnow)
    valid_until: Optional[datetime] = None
    status: DelegationStatus = "active"
    revoked_at: Optional[datetime] = None

    @field_validator("delegated_at", "valid_until", "revoked_at")
    @classmethod
    def _normalize_tz(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)

    def summary(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "scope": self.scope,
            "delegatedAt": self.delegated_at,
            "validUntil": self.valid_until,
        }


class Recognition(BaseModel):
    """
    Trust assertion from an authority registry about another entity.

    Scoped by (action, resource); independent of delegation.
    """

    id: str = Field(default_factory=_new_id)
    authority_id: str = Field(..., description="Recognizing registry id")
    entity_id: str = Field(..., description="DID of the recognized entity")
    action: str
    resource: str
    recognized: bool = True
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("valid_from", "valid_until", "created_at")
    @classmethod
    def _normalize_tz(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)

    def is_valid_at(self, at: datetime) -> bool:
        return within_window(self.valid_from, self.valid_until, at)
