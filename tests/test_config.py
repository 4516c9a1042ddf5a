"""Tests for environment-based registry settings."""

import pytest

from trustregistry.config import RegistrySettings, get_settings, reset_settings
from trustregistry.exceptions import ConfigurationError


class TestRegistrySettings:
    def test_defaults(self, settings):
        assert settings.did_cache_ttl_seconds == 3600
        assert settings.did_fetch_timeout_seconds == 2.0
        assert settings.max_delegation_depth == 3
        assert settings.registry_private_key is None
        assert settings.default_registry_did == "did:web:registry.example.com"
        assert settings.log_level == "INFO"

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("TRUST_REGISTRY_DID_CACHE_TTL_SECONDS", "120")
        monkeypatch.setenv("TRUST_REGISTRY_MAX_DELEGATION_DEPTH", "5")
        monkeypatch.setenv("TRUST_REGISTRY_DEFAULT_REGISTRY_DID", "did:web:trust.example.org")
        settings = RegistrySettings(_env_file=None)
        assert settings.did_cache_ttl_seconds == 120
        assert settings.max_delegation_depth == 5
        assert settings.default_registry_did == "did:web:trust.example.org"

    def test_private_key_without_public_key(self):
        with pytest.raises(ConfigurationError):
            RegistrySettings(_env_file=None, registry_private_key="00" * 32)

    def test_public_key_without_private_key(self):
        with pytest.raises(ConfigurationError):
            RegistrySettings(_env_file=None, registry_public_key="00" * 32)

    def test_private_key_hidden_from_repr(self):
        settings = RegistrySettings(
            _env_file=None, registry_private_key="ab" * 32, registry_public_key="cd" * 32
        )
        assert "ab" * 32 not in repr(settings)


class TestSettingsSingleton:
    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_reset_rereads_environment(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("TRUST_REGISTRY_LOG_LEVEL", "DEBUG")
        reset_settings()
        second = get_settings()
        assert second is not first
        assert second.log_level == "DEBUG"
