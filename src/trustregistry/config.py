"""
Registry configuration.

All environment-based configuration flows through ``RegistrySettings``.
Components take an explicit settings object so tests can build isolated
instances; ``get_settings()`` returns the process-wide default.

Usage:
    from trustregistry.config import get_settings
    settings = get_settings()
    ttl = settings.did_cache_ttl_seconds
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from trustregistry.constants import (
    DEFAULT_DELEGATION_MAX_DEPTH,
    DEFAULT_REGISTRY_DID,
    DID_CACHE_TTL_SECONDS,
    DID_FETCH_TIMEOUT_SECONDS,
)
from trustregistry.exceptions import ConfigurationError


class RegistrySettings(BaseSettings):
    """Trust registry settings, read from ``TRUST_REGISTRY_*`` variables."""

    model_config = SettingsConfigDict(
        env_prefix="TRUST_REGISTRY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # DID resolution
    did_cache_ttl_seconds: int = Field(default=DID_CACHE_TTL_SECONDS, ge=0)
    did_fetch_timeout_seconds: float = Field(default=DID_FETCH_TIMEOUT_SECONDS, gt=0, le=30)

    # Delegation
    max_delegation_depth: int = Field(default=DEFAULT_DELEGATION_MAX_DEPTH, ge=1, le=10)

    # Signing keypair (hex encoded raw Ed25519 keys)
    registry_private_key: Optional[str] = Field(default=None, repr=False)
    registry_public_key: Optional[str] = Field(default=None)
    default_registry_did: str = Field(default=DEFAULT_REGISTRY_DID)

    log_level: str = Field(default="INFO")

    @model_validator(mode="after")
    def _check_keypair(self) -> "RegistrySettings":
        if bool(self.registry_private_key) != bool(self.registry_public_key):
            raise ConfigurationError(
                "registry_private_key and registry_public_key must be set together"
            )
        return self


_settings: Optional[RegistrySettings] = None


def get_settings() -> RegistrySettings:
    """Get or create the settings singleton."""
    global _settings
    if _settings is None:
        _settings = RegistrySettings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
