"""
Decentralized Identifiers

Parsing and format validation for ``did:<method>:<identifier>`` strings,
plus the document and result shapes produced by resolution.
"""

from __future__ import annotations

import re
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from trustregistry.constants import DID_CONTEXT_V1, SUPPORTED_DID_METHODS
from trustregistry.exceptions import DIDFormatError

_DID_PATTERN = re.compile(r"^did:([a-z0-9]+):(.+)$", re.IGNORECASE)


class ParsedDID(BaseModel):
    """A DID split into its method and method-specific identifier."""

    did: str
    method: str = Field(..., description="Lower-cased method name")
    identifier: str = Field(..., description="Method-specific identifier, opaque here")


class DIDValidation(BaseModel):
    """Outcome of a format check."""

    valid: bool
    method: Optional[str] = None
    error: Optional[str] = None
    supported_methods: list[str] = Field(default_factory=list)


class DIDDocument(BaseModel):
    """W3C-style DID document.

    Unknown members of fetched documents are preserved.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    context: Union[str, list[Any]] = Field(default=DID_CONTEXT_V1, alias="@context")
    id: str
    verification_method: Optional[list[dict[str, Any]]] = Field(
        default=None, alias="verificationMethod"
    )
    authentication: Optional[list[Any]] = None
    assertion_method: Optional[list[Any]] = Field(default=None, alias="assertionMethod")
    service: Optional[list[dict[str, Any]]] = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the wire member names, omitting absent members."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ResolutionResult(BaseModel):
    """Result of resolving a DID.

    ``placeholder`` marks a document synthesized locally because the
    authoritative one could not be fetched.
    """

    valid: bool
    did: str
    method: str
    document: Optional[DIDDocument] = None
    error: Optional[str] = None
    placeholder: bool = False


def get_supported_did_methods() -> list[str]:
    """Return the DID methods accepted by format validation."""
    return list(SUPPORTED_DID_METHODS)


def parse_did(did: str) -> ParsedDID:
    """Parse a DID string into its components.

    Raises:
        DIDFormatError: If ``did`` does not match ``did:<method>:<identifier>``.
    """
    match = _DID_PATTERN.match(did or "")
    if match is None:
        raise DIDFormatError(
            "Invalid DID format. Expected: did:<method>:<identifier>",
            did=did,
            supported_methods=get_supported_did_methods(),
        )
    method, identifier = match.groups()
    return ParsedDID(did=did, method=method.lower(), identifier=identifier)


def validate_did_format(did: str) -> DIDValidation:
    """Validate DID syntax and method support without resolving.

    Returns:
        DIDValidation with ``valid=False`` and an error naming the
        supported methods when the method is unknown.
    """
    try:
        parsed = parse_did(did)
    except DIDFormatError as exc:
        return DIDValidation(valid=False, error=str(exc))

    if parsed.method not in SUPPORTED_DID_METHODS:
        supported = get_supported_did_methods()
        return DIDValidation(
            valid=False,
            method=parsed.method,
            error=(
                f"Unsupported DID method: {parsed.method}. "
                f"Supported methods: {', '.join(supported)}"
            ),
            supported_methods=supported,
        )
    return DIDValidation(valid=True, method=parsed.method)


def placeholder_document(did: str) -> DIDDocument:
    """Minimal document for a format-valid DID with no fetched content."""
    return DIDDocument(context=DID_CONTEXT_V1, id=did)
