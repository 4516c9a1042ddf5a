"""
Trust Registry Core - trust resolution and delegation engine

Identity · Delegation · Trust Queries · Signed Entries

Records which issuers and verifiers are trusted to do what, and answers
TRQP authorization and recognition queries about them.

Version: 0.1.0
"""

__version__ = "0.1.0"

# Records and storage
from .models import (
    CredentialSchema,
    Delegation,
    Issuer,
    Recognition,
    Registry,
    TrustFramework,
    Verifier,
)
from .storage import AbstractRecordStore, MemoryRecordStore

# Identity: DIDs and delegation
from .identity import (
    DIDDocument,
    DIDResolver,
    DIDResolutionCache,
    DelegationChain,
    DelegationEngine,
    ResolutionResult,
    parse_did,
    validate_did_format,
)

# Trust: queries and signed entries
from .trust import (
    AuthorizationRequest,
    AuthorizationResponse,
    RecognitionRequest,
    RecognitionResponse,
    RegistryKeyPair,
    SignedEntry,
    SignedEntryService,
    TrustQueryEvaluator,
    VerificationResult,
)

from .config import RegistrySettings, get_settings

# Exceptions
from .exceptions import (
    ConfigurationError,
    DelegationConflictError,
    DelegationCycleError,
    DelegationError,
    DelegationNotFoundError,
    DIDError,
    DIDFormatError,
    InactiveIssuerError,
    RecordNotFoundError,
    SignedEntryError,
    SignedEntryFormatError,
    StatusTransitionError,
    StorageError,
    TrustRegistryError,
)

__all__ = [
    "__version__",

    # Records
    "CredentialSchema",
    "Delegation",
    "Issuer",
    "Recognition",
    "Registry",
    "TrustFramework",
    "Verifier",
    "AbstractRecordStore",
    "MemoryRecordStore",

    # Identity
    "DIDDocument",
    "DIDResolver",
    "DIDResolutionCache",
    "DelegationChain",
    "DelegationEngine",
    "ResolutionResult",
    "parse_did",
    "validate_did_format",

    # Trust
    "AuthorizationRequest",
    "AuthorizationResponse",
    "RecognitionRequest",
    "RecognitionResponse",
    "RegistryKeyPair",
    "SignedEntry",
    "SignedEntryService",
    "TrustQueryEvaluator",
    "VerificationResult",

    # Config
    "RegistrySettings",
    "get_settings",

    # Exceptions
    "ConfigurationError",
    "DelegationConflictError",
    "DelegationCycleError",
    "DelegationError",
    "DelegationNotFoundError",
    "DIDError",
    "DIDFormatError",
    "InactiveIssuerError",
    "RecordNotFoundError",
    "SignedEntryError",
    "SignedEntryFormatError",
    "StatusTransitionError",
    "StorageError",
    "TrustRegistryError",
]
