"""
Delegation Chains

Root issuers delegate credential-issuing authority to other issuers.
Delegations form a forest; chain reconstruction walks from a leaf issuer
back to its root with a hard iteration cap, so it always terminates.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from trustregistry.config import RegistrySettings, get_settings
from trustregistry.constants import DEFAULT_PAGE_SIZE
from trustregistry.exceptions import (
    DelegationConflictError,
    DelegationCycleError,
    DelegationError,
    DelegationNotFoundError,
    DIDFormatError,
    InactiveIssuerError,
    RecordNotFoundError,
)
from trustregistry.identity.did import validate_did_format
from trustregistry.identity.resolver import DIDResolver
from trustregistry.models import Delegation, DelegationStatus, Issuer, utcnow
from trustregistry.storage import AbstractRecordStore

logger = logging.getLogger(__name__)


class ChainNode(BaseModel):
    """One position in a delegation chain (level 0 = root)."""

    level: int = Field(..., ge=0)
    issuer: dict[str, Any]
    delegation: Optional[dict[str, Any]] = Field(
        None, description="Delegation that granted this issuer authority; None at the root"
    )


class DelegationChain(BaseModel):
    """Ordered chain from the root issuer down to the queried issuer."""

    issuer_did: str
    chain: list[ChainNode] = Field(default_factory=list)

    @property
    def chain_length(self) -> int:
        return len(self.chain)

    @property
    def root_did(self) -> Optional[str]:
        if not self.chain:
            return None
        return self.chain[0].issuer.get("did")

    def to_dict(self) -> dict[str, Any]:
        return {
            "issuerDid": self.issuer_did,
            "chainLength": self.chain_length,
            "chain": [node.model_dump(mode="json") for node in self.chain],
        }


class DelegationPage(BaseModel):
    """A page of delegations, newest first."""

    items: list[Delegation]
    total: int
    page: int
    limit: int
    total_pages: int


class DelegationEngine:
    """
    Create, list, walk and revoke issuer delegations.

    Args:
        store: Record store holding issuers and delegations.
        resolver: DID resolver used to check delegate DIDs; optional.
        settings: Registry settings; defaults to the process settings.
    """

    def __init__(
        self,
        store: AbstractRecordStore,
        resolver: Optional[DIDResolver] = None,
        settings: Optional[RegistrySettings] = None,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._settings = settings or get_settings()

    @property
    def max_depth(self) -> int:
        return self._settings.max_delegation_depth

    async def create_delegation(
        self,
        root_did: str,
        delegate_did: str,
        scope: dict[str, Any],
        delegation_proof: dict[str, Any],
        valid_until: Optional[datetime] = None,
        created_by: str = "system",
    ) -> Delegation:
        """Delegate issuing authority from ``root_did`` to ``delegate_did``.

        The delegate is registered as an active issuer in the root's
        registry if it is not known yet. Scope is stored as supplied; it is
        not narrowed against the root's own authorization.

        Raises:
            DelegationError: If delegate DID, scope or proof is missing.
            DIDFormatError: If the delegate DID is malformed or unsupported.
            RecordNotFoundError: If the root issuer does not exist.
            InactiveIssuerError: If the root issuer is not active.
            DelegationCycleError: If the delegate is the root or one of its ancestors.
            DelegationConflictError: If the pair already has an active delegation.
        """
        if not delegate_did or not scope or not delegation_proof:
            raise DelegationError("delegate_did, scope, and delegation_proof are required")

        validation = validate_did_format(delegate_did)
        if not validation.valid:
            raise DIDFormatError(
                validation.error or "Invalid delegate DID",
                did=delegate_did,
                supported_methods=validation.supported_methods,
            )

        if self._resolver is not None:
            resolution = await self._resolver.resolve(delegate_did)
            if not resolution.valid:
                logger.warning(
                    "DID resolution warning for %s: %s", delegate_did, resolution.error
                )

        root = await self._store.get_issuer(root_did)
        if root is None:
            raise RecordNotFoundError(f"Root issuer {root_did} not found")
        if root.status != "active":
            raise InactiveIssuerError(
                f"Root issuer {root_did} must be active to create delegations (is '{root.status}')"
            )

        if delegate_did == root_did:
            raise DelegationCycleError(f"{root_did} cannot delegate to itself")
        ancestors = await self._ancestors(root_did)
        if delegate_did in ancestors:
            raise DelegationCycleError(
                f"{delegate_did} already delegates to {root_did}; delegation would form a cycle"
            )

        existing = await self._store.find_delegations(
            root_did=root_did, delegate_did=delegate_did, status="active"
        )
        if existing:
            raise DelegationConflictError(
                f"An active delegation already exists from {root_did} to {delegate_did}"
            )

        if await self._store.get_issuer(delegate_did) is None:
            await self._store.add_issuer(
                Issuer(
                    did=delegate_did,
                    registry_id=root.registry_id,
                    trust_framework_id=root.trust_framework_id,
                    status="active",
                    lifecycle={
                        "created_at": utcnow().isoformat(),
                        "created_by": created_by,
                        "created_via": "delegation",
                    },
                )
            )
            logger.info("Registered delegate issuer %s in registry %s", delegate_did, root.registry_id)

        delegation = await self._store.add_delegation(
            Delegation(
                root_issuer_did=root_did,
                delegate_issuer_did=delegate_did,
                scope=scope,
                delegation_proof=delegation_proof,
                valid_until=valid_until,
            )
        )
        logger.info("Delegation %s created: %s -> %s", delegation.id, root_did, delegate_did)
        return delegation

    async def list_delegates(
        self,
        root_did: str,
        status: Optional[DelegationStatus] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> DelegationPage:
        """List delegations made by ``root_did``, newest first.

        Raises:
            RecordNotFoundError: If the root issuer does not exist.
            ValueError: If ``page`` or ``limit`` is below 1.
        """
        if page < 1 or limit < 1:
            raise ValueError("page and limit must be >= 1")
        if await self._store.get_issuer(root_did) is None:
            raise RecordNotFoundError(f"Root issuer {root_did} not found")

        delegations = await self._store.find_delegations(root_did=root_did, status=status)
        total = len(delegations)
        start = (page - 1) * limit
        return DelegationPage(
            items=delegations[start:start + limit],
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit),
        )

    async def get_delegation_chain(self, issuer_did: str) -> DelegationChain:
        """Reconstruct the chain from the root issuer down to ``issuer_did``.

        Each step looks up the active delegation naming the current DID as
        delegate. The walk stops at the first DID with no such delegation
        (the root) or after ``max_depth`` steps, whichever comes first.

        Raises:
            RecordNotFoundError: If the issuer does not exist.
        """
        issuer = await self._store.get_issuer(issuer_did)
        if issuer is None:
            raise RecordNotFoundError(f"Issuer {issuer_did} not found")

        nodes: list[ChainNode] = []
        current_did = issuer_did
        for step in range(self.max_depth):
            delegation = await self._active_parent(current_did)
            if delegation is None:
                root = await self._store.get_issuer(current_did)
                if root is not None:
                    nodes.insert(0, ChainNode(level=0, issuer=root.summary(), delegation=None))
                break

            delegate = await self._store.get_issuer(current_did)
            logger.debug("Chain step %d: %s delegated by %s", step, current_did, delegation.root_issuer_did)
            nodes.insert(
                0,
                ChainNode(
                    level=step + 1,
                    issuer={"did": current_did, "name": delegate.name if delegate else None},
                    delegation=delegation.summary(),
                ),
            )
            current_did = delegation.root_issuer_did

        for index, node in enumerate(nodes):
            node.level = index
        return DelegationChain(issuer_did=issuer_did, chain=nodes)

    async def revoke_delegation(self, root_did: str, delegate_did: str) -> Delegation:
        """Revoke the active delegation from ``root_did`` to ``delegate_did``.

        Revocation is terminal and does not cascade to delegations the
        delegate itself has made.

        Raises:
            RecordNotFoundError: If the root issuer does not exist.
            DelegationNotFoundError: If there is no active delegation for the pair.
        """
        if await self._store.get_issuer(root_did) is None:
            raise RecordNotFoundError(f"Root issuer {root_did} not found")

        active = await self._store.find_delegations(
            root_did=root_did, delegate_did=delegate_did, status="active"
        )
        if not active:
            raise DelegationNotFoundError(
                f"Active delegation from {root_did} to {delegate_did} not found"
            )

        delegation = active[0].model_copy(update={"status": "revoked", "revoked_at": utcnow()})
        await self._store.update_delegation(delegation)
        logger.info("Delegation %s revoked: %s -> %s", delegation.id, root_did, delegate_did)
        return delegation

    async def _active_parent(self, did: str) -> Optional[Delegation]:
        """Return the newest active delegation naming ``did`` as delegate."""
        delegations = await self._store.find_delegations(delegate_did=did, status="active")
        return delegations[0] if delegations else None

    async def _ancestors(self, did: str) -> set[str]:
        """DIDs above ``did`` in its chain, bounded by ``max_depth``."""
        ancestors: set[str] = set()
        current = did
        for _ in range(self.max_depth):
            delegation = await self._active_parent(current)
            if delegation is None:
                break
            current = delegation.root_issuer_did
            ancestors.add(current)
        return ancestors
