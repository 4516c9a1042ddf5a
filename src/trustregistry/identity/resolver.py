"""
DID Resolver

Resolves DIDs for the supported methods:

- ``did:web``  fetches ``did.json`` over HTTPS with a bounded timeout
- ``did:key``  synthesizes a document locally from the multibase key
- ``did:indy`` consults a known-namespace resolver, else synthesizes
- others      format-valid placeholder document

Network failure never turns a well-formed DID invalid: the resolver
falls back to a locally synthesized placeholder instead. Results are
cached for a fixed TTL.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from trustregistry.config import RegistrySettings, get_settings
from trustregistry.constants import (
    DID_CONTEXT_V1,
    ED25519_2020_CONTEXT,
    INDY_NAMESPACE_RESOLVERS,
    VERIFICATION_KEY_TYPE,
)
from trustregistry.identity.cache import CacheStats, DIDResolutionCache
from trustregistry.identity.did import (
    DIDDocument,
    ParsedDID,
    ResolutionResult,
    get_supported_did_methods,
    parse_did,
    placeholder_document,
    validate_did_format,
)

logger = logging.getLogger(__name__)


def did_web_url(identifier: str) -> str:
    """Map a did:web identifier to the HTTPS location of its document.

    ``example.com``          -> ``https://example.com/.well-known/did.json``
    ``example.com:a:b``      -> ``https://example.com/a/b/did.json``
    ``example.com%3A8443``   -> ``https://example.com:8443/.well-known/did.json``
    """
    parts = identifier.split(":")
    domain = parts[0].replace("%3A", ":").replace("%3a", ":")
    path = "/".join(parts[1:])
    if path:
        return f"https://{domain}/{path}/did.json"
    return f"https://{domain}/.well-known/did.json"


class DIDResolver:
    """Resolve DIDs with caching and bounded-latency fallback.

    Args:
        settings: Registry settings; defaults to the process settings.
        cache: Resolution cache; a fresh one is built from settings if omitted.
        transport: Optional httpx transport, used by tests to stub the network.
        indy_resolvers: Namespace to resolver-endpoint table for did:indy.

    Example:
        >>> resolver = DIDResolver()
        >>> result = await resolver.resolve("did:key:z6MkhaXgBZDvotDkL5257faiztiGiC2QtKLGpbnnEGta2doK")
        >>> result.valid
        True
    """

    def __init__(
        self,
        settings: Optional[RegistrySettings] = None,
        cache: Optional[DIDResolutionCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        indy_resolvers: Optional[dict[str, str]] = None,
    ) -> None:
        self._settings = settings or get_settings()
        if cache is None:
            cache = DIDResolutionCache(ttl_seconds=self._settings.did_cache_ttl_seconds)
        self._cache = cache
        self._transport = transport
        self._timeout = self._settings.did_fetch_timeout_seconds
        self._indy_resolvers = dict(
            INDY_NAMESPACE_RESOLVERS if indy_resolvers is None else indy_resolvers
        )

    @property
    def cache(self) -> DIDResolutionCache:
        return self._cache

    @staticmethod
    def supported_methods() -> list[str]:
        return get_supported_did_methods()

    def cache_stats(self) -> CacheStats:
        return self._cache.stats()

    def clear_cache(self) -> None:
        self._cache.clear()

    async def resolve(self, did: str) -> ResolutionResult:
        """Resolve a DID to its document.

        The cache is consulted before any other work. Only valid results
        are cached.
        """
        cached = self._cache.get(did)
        if cached is not None:
            logger.debug("DID cache hit: %s", did)
            return cached
        logger.debug("DID cache miss: %s", did)

        validation = validate_did_format(did)
        if not validation.valid:
            return ResolutionResult(
                valid=False,
                did=did,
                method=validation.method or "unknown",
                error=validation.error,
            )

        parsed = parse_did(did)
        if parsed.method == "web":
            result = await self._resolve_web(parsed)
        elif parsed.method == "key":
            result = self._resolve_key(parsed)
        elif parsed.method == "indy":
            result = await self._resolve_indy(parsed)
        else:
            result = ResolutionResult(
                valid=True,
                did=did,
                method=parsed.method,
                document=placeholder_document(did),
                placeholder=True,
            )

        if result.valid:
            self._cache.set(did, result)
        return result

    async def is_resolvable(self, did: str) -> bool:
        """Return True if the DID resolves to a valid result."""
        result = await self.resolve(did)
        return result.valid

    async def _fetch_json(self, url: str) -> Optional[Any]:
        """GET ``url`` once within the configured timeout.

        Returns:
            The decoded JSON body, or None on timeout, transport error,
            an unusable URL, non-success status or an undecodable body.
        """
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.get(url, headers={"Accept": "application/json"})
        except httpx.TimeoutException:
            logger.warning("DID document fetch timed out after %.1fs: %s", self._timeout, url)
            return None
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("DID document fetch failed for %s: %s", url, exc)
            return None

        if not response.is_success:
            logger.warning("DID document fetch returned HTTP %d: %s", response.status_code, url)
            return None
        try:
            return response.json()
        except ValueError:
            logger.warning("DID document at %s is not valid JSON", url)
            return None

    async def _resolve_web(self, parsed: ParsedDID) -> ResolutionResult:
        url = did_web_url(parsed.identifier)
        data = await self._fetch_json(url)
        if data is None:
            return ResolutionResult(
                valid=True,
                did=parsed.did,
                method="web",
                document=placeholder_document(parsed.did),
                placeholder=True,
            )

        document_id = data.get("id") if isinstance(data, dict) else None
        if document_id != parsed.did:
            return ResolutionResult(
                valid=False,
                did=parsed.did,
                method="web",
                error=f"DID document ID mismatch. Expected: {parsed.did}, Got: {document_id}",
            )
        try:
            document = DIDDocument.model_validate(data)
        except ValidationError as exc:
            return ResolutionResult(
                valid=False,
                did=parsed.did,
                method="web",
                error=f"Malformed DID document: {exc.error_count()} validation error(s)",
            )
        return ResolutionResult(valid=True, did=parsed.did, method="web", document=document)

    def _resolve_key(self, parsed: ParsedDID) -> ResolutionResult:
        # did:key identifiers are multibase base58btc, so they start with 'z'
        if not parsed.identifier.startswith("z"):
            return ResolutionResult(
                valid=False,
                did=parsed.did,
                method="key",
                error='Invalid did:key identifier. Must start with "z"',
            )

        key_id = f"{parsed.did}#{parsed.identifier}"
        document = DIDDocument(
            context=[DID_CONTEXT_V1, ED25519_2020_CONTEXT],
            id=parsed.did,
            verification_method=[
                {
                    "id": key_id,
                    "type": VERIFICATION_KEY_TYPE,
                    "controller": parsed.did,
                    "publicKeyMultibase": parsed.identifier,
                }
            ],
            authentication=[key_id],
        )
        return ResolutionResult(valid=True, did=parsed.did, method="key", document=document)

    async def _resolve_indy(self, parsed: ParsedDID) -> ResolutionResult:
        namespace, sep, nym = parsed.identifier.rpartition(":")
        if not sep or not namespace or not nym:
            return ResolutionResult(
                valid=False,
                did=parsed.did,
                method="indy",
                error="Invalid did:indy format. Expected: did:indy:<namespace>:<nym>",
            )

        endpoint = self._indy_resolvers.get(namespace.lower())
        if endpoint is not None:
            document = await self._fetch_indy_document(endpoint, parsed.did)
            if document is not None:
                return ResolutionResult(
                    valid=True, did=parsed.did, method="indy", document=document
                )
        else:
            logger.debug("No resolver configured for indy namespace '%s'", namespace)

        key_id = f"{parsed.did}#verkey"
        document = DIDDocument(
            context=[DID_CONTEXT_V1, ED25519_2020_CONTEXT],
            id=parsed.did,
            verification_method=[
                {
                    "id": key_id,
                    "type": VERIFICATION_KEY_TYPE,
                    "controller": parsed.did,
                }
            ],
            authentication=[key_id],
        )
        return ResolutionResult(
            valid=True,
            did=parsed.did,
            method="indy",
            document=document,
            placeholder=True,
        )

    async def _fetch_indy_document(self, endpoint: str, did: str) -> Optional[DIDDocument]:
        """Fetch a did:indy document, accepting raw or resolver-wrapped bodies."""
        data = await self._fetch_json(f"{endpoint}{did}")
        if not isinstance(data, dict):
            return None
        candidate = data.get("didDocument", data)
        if not isinstance(candidate, dict) or candidate.get("id") != did:
            logger.warning("Ignoring ill-formed did:indy document for %s", did)
            return None
        try:
            return DIDDocument.model_validate(candidate)
        except ValidationError:
            logger.warning("Ignoring ill-formed did:indy document for %s", did)
            return None
