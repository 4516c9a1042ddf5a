"""
Registry Snapshots

Load registry state from a YAML (or already-parsed) document into a
MemoryRecordStore. Used by the CLI and by fixtures.

Layout::

    frameworks:    [TrustFramework, ...]
    schemas:       [CredentialSchema, ...]
    registries:    [Registry, ...]
    issuers:       [Issuer, ...]
    verifiers:     [Verifier, ...]
    delegations:   [Delegation, ...]
    recognitions:  [Recognition, ...]
"""

from pathlib import Path
from typing import Any, Union

import yaml
from pydantic import ValidationError

from trustregistry.exceptions import StorageError
from trustregistry.models import (
    CredentialSchema,
    Delegation,
    Issuer,
    Recognition,
    Registry,
    TrustFramework,
    Verifier,
)

from .memory_provider import MemoryRecordStore

SNAPSHOT_SECTIONS = (
    "frameworks",
    "schemas",
    "registries",
    "issuers",
    "verifiers",
    "delegations",
    "recognitions",
)


async def load_snapshot(data: dict[str, Any]) -> MemoryRecordStore:
    """Build a connected MemoryRecordStore from snapshot data.

    Raises:
        StorageError: If a section is not a list or a record is invalid.
    """
    unknown = set(data) - set(SNAPSHOT_SECTIONS)
    if unknown:
        raise StorageError(f"Unknown snapshot sections: {', '.join(sorted(unknown))}")

    store = MemoryRecordStore()
    await store.connect()
    try:
        for item in _section(data, "frameworks"):
            await store.add_framework(TrustFramework.model_validate(item))
        for item in _section(data, "schemas"):
            await store.add_schema(CredentialSchema.model_validate(item))
        for item in _section(data, "registries"):
            await store.add_registry(Registry.model_validate(item))
        for item in _section(data, "issuers"):
            await store.add_issuer(Issuer.model_validate(item))
        for item in _section(data, "verifiers"):
            await store.add_verifier(Verifier.model_validate(item))
        for item in _section(data, "delegations"):
            await store.add_delegation(Delegation.model_validate(item))
        for item in _section(data, "recognitions"):
            await store.add_recognition(Recognition.model_validate(item))
    except ValidationError as exc:
        raise StorageError(f"Invalid snapshot record: {exc}") from exc
    return store


async def load_snapshot_file(path: Union[str, Path]) -> MemoryRecordStore:
    """Read a YAML snapshot file and load it."""
    raw = yaml.safe_load(Path(path).read_text()) or {}
    if not isinstance(raw, dict):
        raise StorageError(f"Snapshot {path} must be a mapping")
    return await load_snapshot(raw)


def _section(data: dict[str, Any], name: str) -> list[Any]:
    items = data.get(name) or []
    if not isinstance(items, list):
        raise StorageError(f"Snapshot section '{name}' must be a list")
    return items
