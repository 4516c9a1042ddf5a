"""Centralized exception hierarchy for the trust registry core.

All exceptions inherit from TrustRegistryError. Query evaluation never
raises these for "not authorized" outcomes; those are ordinary answers.
"""

from typing import Optional


class TrustRegistryError(Exception):
    """Base exception for all trust registry errors."""


class ConfigurationError(TrustRegistryError):
    """Invalid or inconsistent registry configuration."""


class DIDError(TrustRegistryError):
    """Errors related to decentralized identifiers."""


class DIDFormatError(DIDError):
    """Raised when a DID is malformed or uses an unsupported method."""

    def __init__(self, message: str, did: str = "", supported_methods: Optional[list[str]] = None):
        super().__init__(message)
        self.did = did
        self.supported_methods = list(supported_methods or [])


class RecordNotFoundError(TrustRegistryError):
    """A referenced registry, issuer, verifier or schema does not exist."""


class StorageError(TrustRegistryError):
    """Errors related to record store operations."""


class StatusTransitionError(TrustRegistryError):
    """Lifecycle transition out of a terminal status was attempted."""


class DelegationError(TrustRegistryError):
    """Errors related to issuer delegation."""


class DelegationConflictError(DelegationError):
    """An active delegation already exists for the (root, delegate) pair."""


class DelegationNotFoundError(DelegationError):
    """No active delegation exists for the (root, delegate) pair."""


class InactiveIssuerError(DelegationError):
    """Root issuer must be active to delegate."""


class DelegationCycleError(DelegationError):
    """The new delegation would make the delegate an ancestor of its root."""


class SignedEntryError(TrustRegistryError):
    """Errors related to signed trust registry entries."""


class SignedEntryFormatError(SignedEntryError):
    """Signed entry is missing its ``entry`` or ``proof`` member."""


__all__ = [
    "TrustRegistryError",
    "ConfigurationError",
    "DIDError",
    "DIDFormatError",
    "RecordNotFoundError",
    "StorageError",
    "StatusTransitionError",
    "DelegationError",
    "DelegationConflictError",
    "DelegationNotFoundError",
    "InactiveIssuerError",
    "DelegationCycleError",
    "SignedEntryError",
    "SignedEntryFormatError",
]
