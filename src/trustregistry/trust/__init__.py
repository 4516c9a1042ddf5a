"""
Trust Layer

TRQP authorization and recognition queries, and signed registry entries.
"""

from .vocabulary import (
    ACTION_DESCRIPTIONS,
    TRQP_ACTIONS,
    action_to_entity_kind,
    entity_kind_to_action,
    is_valid_action,
)
from .query import (
    AuthorizationRequest,
    AuthorizationResponse,
    QueryContext,
    RecognitionRequest,
    RecognitionResponse,
    TrustQueryEvaluator,
)
from .signing import (
    EntryProof,
    RegistryKeyPair,
    SignedEntry,
    SignedEntryService,
    VerificationResult,
    canonicalize,
)

__all__ = [
    "ACTION_DESCRIPTIONS",
    "TRQP_ACTIONS",
    "action_to_entity_kind",
    "entity_kind_to_action",
    "is_valid_action",
    "AuthorizationRequest",
    "AuthorizationResponse",
    "QueryContext",
    "RecognitionRequest",
    "RecognitionResponse",
    "TrustQueryEvaluator",
    "EntryProof",
    "RegistryKeyPair",
    "SignedEntry",
    "SignedEntryService",
    "VerificationResult",
    "canonicalize",
]
