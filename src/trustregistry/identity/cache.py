"""
DID Resolution Cache

Time-based cache of resolution results keyed by the raw DID string.
Expired entries are evicted lazily on lookup; there is no background sweep.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from pydantic import BaseModel

from trustregistry.constants import DID_CACHE_TTL_SECONDS
from trustregistry.identity.did import ResolutionResult

logger = logging.getLogger(__name__)


class CacheStats(BaseModel):
    """Snapshot of live cache entries."""

    size: int
    keys: list[str]


class DIDResolutionCache:
    """In-memory TTL cache for DID resolution results.

    Args:
        ttl_seconds: Lifetime of each entry.
        clock: Monotonic time source, injectable for tests.

    Example:
        >>> cache = DIDResolutionCache(ttl_seconds=60)
        >>> cache.set("did:key:z6Mk...", result)
        >>> cache.get("did:key:z6Mk...") is result
        True
    """

    def __init__(
        self,
        ttl_seconds: float = DID_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[ResolutionResult, float]] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, did: str) -> Optional[ResolutionResult]:
        """Return the cached result, or None if absent or expired."""
        entry = self._entries.get(did)
        if entry is None:
            return None
        result, expires_at = entry
        if self._clock() > expires_at:
            del self._entries[did]
            logger.debug("DID cache entry expired: %s", did)
            return None
        return result

    def set(self, did: str, result: ResolutionResult) -> None:
        """Store a result; a concurrent writer for the same DID simply wins last."""
        self._entries[did] = (result, self._clock() + self._ttl)

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()

    def purge_expired(self) -> int:
        """Remove expired entries.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        expired = [did for did, (_, expires_at) in self._entries.items() if now > expires_at]
        for did in expired:
            del self._entries[did]
        return len(expired)

    def stats(self) -> CacheStats:
        """Return size and keys of live entries."""
        self.purge_expired()
        return CacheStats(size=len(self._entries), keys=list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)
