"""Shared fixtures: an isolated settings object and a populated record store."""

from datetime import datetime, timezone

import pytest

from trustregistry.config import RegistrySettings, reset_settings
from trustregistry.models import CredentialSchema, Issuer, Registry, TrustFramework, Verifier
from trustregistry.storage import MemoryRecordStore

AUTHORITY_DID = "did:web:education-trust.org"
UNIVERSITY_DID = "did:web:university.edu"
EMPLOYER_DID = "did:web:employer.com"

_ENV_VARS = (
    "TRUST_REGISTRY_DID_CACHE_TTL_SECONDS",
    "TRUST_REGISTRY_DID_FETCH_TIMEOUT_SECONDS",
    "TRUST_REGISTRY_MAX_DELEGATION_DEPTH",
    "TRUST_REGISTRY_REGISTRY_PRIVATE_KEY",
    "TRUST_REGISTRY_REGISTRY_PUBLIC_KEY",
    "TRUST_REGISTRY_DEFAULT_REGISTRY_DID",
    "TRUST_REGISTRY_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep the host environment and the settings singleton out of tests."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings():
    return RegistrySettings(_env_file=None)


@pytest.fixture
async def store():
    """Education ecosystem: one registry, one active issuer, one active verifier."""
    store = MemoryRecordStore()
    await store.connect()

    framework = await store.add_framework(
        TrustFramework(id="tf-edu", name="Education Trust Framework", version="2.0")
    )
    degree = await store.add_schema(
        CredentialSchema(id="schema-degree", name="University Degree", type="UniversityDegreeCredential")
    )
    registry = await store.add_registry(
        Registry(
            id="reg-edu",
            name="Education Trust Registry",
            ecosystem_did=AUTHORITY_DID,
            trust_framework_id=framework.id,
        )
    )
    await store.add_issuer(
        Issuer(
            did=UNIVERSITY_DID,
            name="Example University",
            registry_id=registry.id,
            trust_framework_id=framework.id,
            status="active",
            valid_from=datetime(2024, 1, 1, tzinfo=timezone.utc),
            valid_until=datetime(2030, 12, 31, tzinfo=timezone.utc),
            jurisdictions=["US"],
            accreditation_level="full",
            credential_type_ids=[degree.id],
        )
    )
    await store.add_verifier(
        Verifier(
            did=EMPLOYER_DID,
            name="Example Employer",
            registry_id=registry.id,
            status="active",
            credential_type_ids=[degree.id],
        )
    )
    yield store
    await store.disconnect()
