"""
Trust Query Evaluation

Answers TRQP authorization and recognition queries against current
registry state at an optional point in time.

"Not authorized" and "not recognized" are ordinary answers, so the
evaluator reports them in the response instead of raising.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from trustregistry.models import RegistryEntity, as_utc, utcnow
from trustregistry.storage import AbstractRecordStore
from trustregistry.trust.vocabulary import TRQP_ACTIONS, action_to_entity_kind

logger = logging.getLogger(__name__)


_RFC3339_PATTERN = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[Tt ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})?$"
)


def parse_rfc3339(value: str) -> datetime:
    """Parse an RFC 3339 timestamp into UTC; naive values are taken as UTC.

    Fractions of any length are accepted and truncated to microseconds.

    Raises:
        ValueError: If ``value`` is not an RFC 3339 timestamp.
    """
    match = _RFC3339_PATTERN.match(value.strip())
    if match is None:
        raise ValueError(f"Invalid RFC 3339 timestamp: {value!r}")
    date, clock, fraction, offset = match.groups()
    text = f"{date}T{clock}"
    if fraction:
        text += "." + fraction[:6].ljust(6, "0")
    if offset:
        text += "+00:00" if offset in ("Z", "z") else offset
    return as_utc(datetime.fromisoformat(text)).astimezone(timezone.utc)


def format_rfc3339(value: datetime) -> str:
    """Format an instant as RFC 3339 UTC with millisecond precision."""
    utc = as_utc(value).astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class QueryContext(BaseModel):
    """Optional query context; ``time`` selects the evaluation instant."""

    model_config = ConfigDict(extra="allow")

    time: Optional[str] = Field(None, description="RFC 3339 evaluation instant")

    @field_validator("time")
    @classmethod
    def _check_time(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            parse_rfc3339(v)
        return v


class TrustQuery(BaseModel):
    """Common request shape of authorization and recognition queries."""

    entity_id: str = Field(..., description="DID of the entity being asked about")
    authority_id: str = Field(..., description="Ecosystem DID of the authority")
    action: str
    resource: str
    context: Optional[QueryContext] = None

    def requested_time(self) -> Optional[datetime]:
        if self.context is None or self.context.time is None:
            return None
        return parse_rfc3339(self.context.time)


class AuthorizationRequest(TrustQuery):
    """Can ``entity_id`` perform ``action`` on ``resource`` under ``authority_id``?"""


class RecognitionRequest(TrustQuery):
    """Does ``authority_id`` recognize ``entity_id`` for ``action`` on ``resource``?"""


class TrustQueryResponse(BaseModel):
    """Echo of the request plus evaluation timestamps and a message."""

    entity_id: str
    authority_id: str
    action: str
    resource: str
    time_requested: Optional[str] = None
    time_evaluated: str
    message: str
    context: Optional[QueryContext] = None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class AuthorizationResponse(TrustQueryResponse):
    authorized: bool


class RecognitionResponse(TrustQueryResponse):
    recognized: bool


class TrustQueryEvaluator:
    """
    Evaluate TRQP queries against a record store.

    Both queries are pure functions of store state and the evaluation
    instant (``context.time`` when given, else now).

    Args:
        store: Record store holding registries, entities and recognitions.
        clock: Source of the current instant, injectable for tests.
    """

    def __init__(
        self,
        store: AbstractRecordStore,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._clock = clock

    @staticmethod
    def supported_actions() -> list[str]:
        return list(TRQP_ACTIONS)

    async def validate_authority(self, authority_id: str) -> bool:
        """Return True if a registry exists with this ecosystem DID."""
        return await self._store.find_registry_by_did(authority_id) is not None

    async def authorize(self, request: AuthorizationRequest) -> AuthorizationResponse:
        """Evaluate an authorization query.

        The entity is authorized when, within the authority's registry, it
        exists with the kind implied by the action, is active, is valid at
        the evaluation instant and is linked to a credential type whose name
        contains the resource (case-insensitive).
        """
        now = self._clock()
        at = request.requested_time() or now

        registry = await self._store.find_registry_by_did(request.authority_id)
        if registry is None:
            return self._authorization(request, False, now, f"Authority '{request.authority_id}' not found")

        kind = action_to_entity_kind(request.action)
        if kind is None:
            return self._authorization(request, False, now, f"Unknown action '{request.action}'")

        if kind == "issuer":
            entity: Optional[RegistryEntity] = await self._store.get_issuer(request.entity_id)
        else:
            entity = await self._store.get_verifier(request.entity_id)

        if entity is None or entity.registry_id != registry.id:
            return self._authorization(
                request, False, now, f"Entity '{request.entity_id}' not found in registry"
            )

        if (
            entity.status == "active"
            and entity.is_valid_at(at)
            and await self._has_credential_type(entity, request.resource)
        ):
            return self._authorization(
                request,
                True,
                now,
                f"{request.entity_id} is authorized for {request.action}+{request.resource} "
                f"by {request.authority_id}",
            )

        logger.debug(
            "%s %s denied: status=%s valid_at=%s", kind, entity.did, entity.status, entity.is_valid_at(at)
        )
        return self._authorization(
            request,
            False,
            now,
            f"{request.entity_id} is NOT authorized for {request.action}+{request.resource}",
        )

    async def recognize(self, request: RecognitionRequest) -> RecognitionResponse:
        """Evaluate a recognition query.

        Distinguishes an unknown authority, an existing recognition edge
        that does not match the scope or instant, and no edge at all.
        """
        now = self._clock()
        at = request.requested_time() or now

        authority = await self._store.find_registry_by_did(request.authority_id)
        if authority is None:
            return self._recognition(request, False, now, f"Authority '{request.authority_id}' not found")

        edges = await self._store.find_recognitions(authority.id, request.entity_id)
        for edge in edges:
            if (
                edge.action == request.action
                and edge.resource == request.resource
                and edge.recognized
                and edge.is_valid_at(at)
            ):
                return self._recognition(
                    request,
                    True,
                    now,
                    f"{request.entity_id} is recognized by {request.authority_id} "
                    f"for {request.action}+{request.resource}",
                )

        if edges:
            return self._recognition(
                request,
                False,
                now,
                f"{request.entity_id} is NOT recognized for {request.action}+{request.resource} "
                "(scope mismatch or expired)",
            )
        return self._recognition(
            request, False, now, f"{request.entity_id} is NOT recognized by {request.authority_id}"
        )

    async def _has_credential_type(self, entity: RegistryEntity, resource: str) -> bool:
        needle = resource.lower()
        schemas = await self._store.get_schemas(entity.credential_type_ids)
        return any(needle in schema.type.lower() for schema in schemas)

    @staticmethod
    def _echo(request: TrustQuery, now: datetime) -> dict[str, Any]:
        return {
            "entity_id": request.entity_id,
            "authority_id": request.authority_id,
            "action": request.action,
            "resource": request.resource,
            "time_requested": request.context.time if request.context else None,
            "time_evaluated": format_rfc3339(now),
            "context": request.context,
        }

    def _authorization(
        self, request: AuthorizationRequest, authorized: bool, now: datetime, message: str
    ) -> AuthorizationResponse:
        return AuthorizationResponse(authorized=authorized, message=message, **self._echo(request, now))

    def _recognition(
        self, request: RecognitionRequest, recognized: bool, now: datetime, message: str
    ) -> RecognitionResponse:
        return RecognitionResponse(recognized=recognized, message=message, **self._echo(request, now))
