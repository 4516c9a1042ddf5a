"""
Identity Layer

DID parsing, resolution with TTL caching, and issuer delegation chains.
"""

from .did import (
    DIDDocument,
    DIDValidation,
    ParsedDID,
    ResolutionResult,
    get_supported_did_methods,
    parse_did,
    validate_did_format,
)
from .cache import CacheStats, DIDResolutionCache
from .resolver import DIDResolver, did_web_url
from .delegation import ChainNode, DelegationChain, DelegationEngine, DelegationPage

__all__ = [
    "DIDDocument",
    "DIDValidation",
    "ParsedDID",
    "ResolutionResult",
    "get_supported_did_methods",
    "parse_did",
    "validate_did_format",
    "CacheStats",
    "DIDResolutionCache",
    "DIDResolver",
    "did_web_url",
    "ChainNode",
    "DelegationChain",
    "DelegationEngine",
    "DelegationPage",
]
