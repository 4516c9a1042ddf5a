"""
Record stores for the trust registry.

Provides the abstract record-store contract, an in-memory implementation
and a YAML snapshot loader.
"""

from .provider import AbstractRecordStore, StoreConfig
from .memory_provider import MemoryRecordStore
from .snapshot import load_snapshot, load_snapshot_file

__all__ = [
    "AbstractRecordStore",
    "StoreConfig",
    "MemoryRecordStore",
    "load_snapshot",
    "load_snapshot_file",
]
