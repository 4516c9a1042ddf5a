"""Tests for the trustreg CLI."""

import json

import pytest
from click.testing import CliRunner
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

from trustregistry.cli.trust_cli import trustreg

KEY_DID = "did:key:z6MkhaXgBZDvotDkL5257faiztiGiC2QtKLGpbnnEGta2doK"

SNAPSHOT_YAML = """\
frameworks:
  - id: tf-edu
    name: Education Trust Framework
schemas:
  - id: schema-degree
    name: University Degree
    type: UniversityDegreeCredential
registries:
  - id: reg-edu
    name: Education Trust Registry
    ecosystem_did: did:web:education-trust.org
    trust_framework_id: tf-edu
issuers:
  - did: did:web:university.edu
    name: Example University
    registry_id: reg-edu
    trust_framework_id: tf-edu
    status: active
    credential_type_ids: [schema-degree]
  - did: did:web:cs.university.edu
    registry_id: reg-edu
    status: active
delegations:
  - root_issuer_did: did:web:university.edu
    delegate_issuer_did: did:web:cs.university.edu
    scope:
      credentialTypes: [UniversityDegreeCredential]
    delegation_proof:
      proofValue: "00"
recognitions:
  - authority_id: reg-edu
    entity_id: did:web:partner-registry.org
    action: recognize
    resource: UniversityDegreeCredential
"""


@pytest.fixture
def runner():
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def snapshot(tmp_path):
    path = tmp_path / "registry.yaml"
    path.write_text(SNAPSHOT_YAML)
    return str(path)


@pytest.fixture
def registry_keys(monkeypatch):
    private_key = ed25519.Ed25519PrivateKey.generate()
    seed = private_key.private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )
    monkeypatch.setenv("TRUST_REGISTRY_REGISTRY_PRIVATE_KEY", seed.hex())
    monkeypatch.setenv("TRUST_REGISTRY_REGISTRY_PUBLIC_KEY", public.hex())
    return public.hex()


class TestHelp:
    def test_lists_commands(self, runner):
        result = runner.invoke(trustreg, ["--help"])
        assert result.exit_code == 0
        for command in ("resolve", "validate", "authorize", "recognize", "chain", "entry", "verify-entry", "did-document"):
            assert command in result.output


class TestDIDCommands:
    def test_validate_ok(self, runner):
        result = runner.invoke(trustreg, ["validate", "did:web:example.com", "--format", "json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["valid"] is True
        assert data["method"] == "web"

    def test_validate_unsupported(self, runner):
        result = runner.invoke(trustreg, ["validate", "did:foo:bar", "--format", "json"])
        assert result.exit_code == 1
        assert json.loads(result.output)["error"].startswith("Unsupported DID method: foo")

    def test_resolve_key(self, runner):
        result = runner.invoke(trustreg, ["resolve", KEY_DID, "--format", "json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["valid"] is True
        assert data["document"]["id"] == KEY_DID

    def test_resolve_yaml(self, runner):
        result = runner.invoke(trustreg, ["resolve", KEY_DID, "--format", "yaml"])
        assert result.exit_code == 0
        assert "placeholder: false" in result.output
        assert KEY_DID in result.output

    def test_resolve_invalid(self, runner):
        result = runner.invoke(trustreg, ["resolve", "did:key:abc", "--format", "json"])
        assert result.exit_code == 1
        assert json.loads(result.output)["valid"] is False


class TestQueryCommands:
    def test_authorize(self, runner, snapshot):
        result = runner.invoke(
            trustreg,
            ["authorize", snapshot, "did:web:university.edu", "did:web:education-trust.org",
             "issue", "UniversityDegree", "--format", "json"],
        )
        assert result.exit_code == 0
        assert json.loads(result.output)["authorized"] is True

    def test_authorize_denied(self, runner, snapshot):
        result = runner.invoke(
            trustreg,
            ["authorize", snapshot, "did:web:university.edu", "did:web:education-trust.org",
             "issue", "MedicalLicense", "--format", "json"],
        )
        assert result.exit_code == 1
        assert "NOT authorized" in json.loads(result.output)["message"]

    def test_authorize_table(self, runner, snapshot):
        result = runner.invoke(
            trustreg,
            ["authorize", snapshot, "did:web:university.edu", "did:web:education-trust.org",
             "issue", "UniversityDegree"],
        )
        assert result.exit_code == 0
        assert "TRQP Authorization" in result.output

    def test_authorize_bad_time(self, runner, snapshot):
        result = runner.invoke(
            trustreg,
            ["authorize", snapshot, "did:web:university.edu", "did:web:education-trust.org",
             "issue", "UniversityDegree", "--time", "yesterday"],
        )
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_recognize(self, runner, snapshot):
        result = runner.invoke(
            trustreg,
            ["recognize", snapshot, "did:web:partner-registry.org", "did:web:education-trust.org",
             "recognize", "UniversityDegreeCredential", "--format", "json"],
        )
        assert result.exit_code == 0
        assert json.loads(result.output)["recognized"] is True

    def test_missing_snapshot(self, runner):
        result = runner.invoke(
            trustreg,
            ["authorize", "/nonexistent.yaml", "did:web:a", "did:web:b", "issue", "X"],
        )
        assert result.exit_code == 2


class TestChainCommand:
    def test_chain_json(self, runner, snapshot):
        result = runner.invoke(trustreg, ["chain", snapshot, "did:web:cs.university.edu", "--format", "json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["chainLength"] == 2
        assert data["chain"][0]["issuer"]["did"] == "did:web:university.edu"

    def test_chain_table(self, runner, snapshot):
        result = runner.invoke(trustreg, ["chain", snapshot, "did:web:cs.university.edu"])
        assert result.exit_code == 0
        assert "Chain length: 2" in result.output

    def test_chain_unknown_issuer(self, runner, snapshot):
        result = runner.invoke(trustreg, ["chain", snapshot, "did:web:nobody.edu"])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestEntryCommands:
    def test_sign_then_verify(self, runner, snapshot, registry_keys, tmp_path):
        signed = runner.invoke(trustreg, ["entry", snapshot, "issuer", "did:web:university.edu"])
        assert signed.exit_code == 0
        data = json.loads(signed.output)
        assert data["proof"]["verificationMethod"] == "did:web:education-trust.org#key-1"

        path = tmp_path / "signed.json"
        path.write_text(signed.output)
        verified = runner.invoke(trustreg, ["verify-entry", str(path), "--format", "json"])
        assert verified.exit_code == 0
        assert json.loads(verified.output)["valid"] is True

    def test_verify_tampered(self, runner, snapshot, registry_keys, tmp_path):
        signed = json.loads(runner.invoke(trustreg, ["entry", snapshot, "issuer", "did:web:university.edu"]).output)
        signed["entry"]["status"] = "revoked"
        path = tmp_path / "signed.json"
        path.write_text(json.dumps(signed))

        result = runner.invoke(trustreg, ["verify-entry", str(path), "--format", "json"])
        assert result.exit_code == 1
        assert json.loads(result.output)["error"] == "Invalid signature"

    def test_verify_malformed(self, runner, registry_keys, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"entry": {"did": "did:web:u.edu"}}))
        result = runner.invoke(trustreg, ["verify-entry", str(path)])
        assert result.exit_code == 1
        assert "Must include entry and proof" in result.output

    def test_did_document(self, runner, registry_keys):
        result = runner.invoke(trustreg, ["did-document", "--registry-did", "did:web:trust.example.org"])
        assert result.exit_code == 0
        doc = json.loads(result.output)
        assert doc["id"] == "did:web:trust.example.org"
        assert doc["assertionMethod"] == ["did:web:trust.example.org#key-1"]
