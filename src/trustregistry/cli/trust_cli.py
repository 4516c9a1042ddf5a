"""
Trust Registry CLI

Commands for resolving DIDs and querying a registry snapshot:
- resolve: Resolve a DID and show its document
- validate: Check DID syntax and method support
- authorize: TRQP authorization query
- recognize: TRQP recognition query
- chain: Show an issuer's delegation chain
- entry: Sign an issuer or verifier entry
- verify-entry: Verify a signed entry JSON file
- did-document: Show the registry DID document
"""

import asyncio
import json
import logging
import sys
from typing import Any, Optional

import click
import yaml
from rich import box
from rich.console import Console
from rich.table import Table

from trustregistry.config import get_settings
from trustregistry.exceptions import TrustRegistryError
from trustregistry.identity.delegation import DelegationEngine
from trustregistry.identity.did import validate_did_format
from trustregistry.identity.resolver import DIDResolver
from trustregistry.storage import load_snapshot_file
from trustregistry.trust.query import (
    AuthorizationRequest,
    QueryContext,
    RecognitionRequest,
    TrustQueryEvaluator,
)
from trustregistry.trust.signing import SignedEntryService

console = Console()

FORMAT_OPTION = click.option(
    "--format", "fmt",
    type=click.Choice(["table", "json", "yaml"]),
    default="table",
    help="Output format (table, json, or yaml).",
)


def _output_json(data: object) -> None:
    """Print data as JSON to stdout."""
    click.echo(json.dumps(data, indent=2, default=str))


def _output_yaml(data: object) -> None:
    """Print data as YAML to stdout."""
    click.echo(yaml.safe_dump(json.loads(json.dumps(data, default=str)), default_flow_style=False, sort_keys=False))


def _emit(data: dict[str, Any], fmt: str, title: str) -> None:
    """Print a flat mapping in the requested format."""
    if fmt == "json":
        _output_json(data)
        return
    if fmt == "yaml":
        _output_yaml(data)
        return

    console.print(f"\n[bold blue]{title}[/bold blue]\n")
    table = Table(box=box.SIMPLE, show_header=False)
    table.add_column("Field", style="bold cyan", no_wrap=True)
    table.add_column("Value")
    for key, value in data.items():
        if isinstance(value, bool):
            shown = "[green]yes[/green]" if value else "[red]no[/red]"
        elif isinstance(value, (dict, list)):
            shown = json.dumps(value, default=str)
        else:
            shown = "N/A" if value is None else str(value)
        table.add_row(key, shown)
    console.print(table)


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    raise SystemExit(1)


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Logging level (defaults to TRUST_REGISTRY_LOG_LEVEL).",
)
def trustreg(log_level: Optional[str]):
    """Resolve DIDs and query trust registry snapshots.

    SNAPSHOT arguments are YAML files listing frameworks, schemas,
    registries, issuers, verifiers, delegations and recognitions.
    """
    level = (log_level or get_settings().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@trustreg.command()
@click.argument("did")
@FORMAT_OPTION
def resolve(did: str, fmt: str):
    """Resolve DID and print the resolution result."""
    result = asyncio.run(DIDResolver().resolve(did))
    data = {
        "did": result.did,
        "method": result.method,
        "valid": result.valid,
        "placeholder": result.placeholder,
        "error": result.error,
        "document": result.document.to_dict() if result.document else None,
    }
    _emit(data, fmt, f"DID Resolution: {did}")
    if not result.valid:
        raise SystemExit(1)


@trustreg.command()
@click.argument("did")
@FORMAT_OPTION
def validate(did: str, fmt: str):
    """Check that DID is well-formed and uses a supported method."""
    validation = validate_did_format(did)
    _emit(validation.model_dump(exclude_defaults=True) | {"valid": validation.valid}, fmt, f"DID Format: {did}")
    if not validation.valid:
        raise SystemExit(1)


async def _query(snapshot: str, request: Any) -> Any:
    store = await load_snapshot_file(snapshot)
    evaluator = TrustQueryEvaluator(store)
    if isinstance(request, AuthorizationRequest):
        return await evaluator.authorize(request)
    return await evaluator.recognize(request)


def _context(time: Optional[str]) -> Optional[QueryContext]:
    return QueryContext(time=time) if time else None


@trustreg.command()
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False))
@click.argument("entity_id")
@click.argument("authority_id")
@click.argument("action")
@click.argument("resource")
@click.option("--time", "at", default=None, help="RFC 3339 evaluation instant.")
@FORMAT_OPTION
def authorize(snapshot: str, entity_id: str, authority_id: str, action: str, resource: str,
              at: Optional[str], fmt: str):
    """Ask whether ENTITY_ID may ACTION RESOURCE under AUTHORITY_ID.

    Exits with status 1 when the entity is not authorized.
    """
    try:
        request = AuthorizationRequest(
            entity_id=entity_id, authority_id=authority_id,
            action=action, resource=resource, context=_context(at),
        )
        response = asyncio.run(_query(snapshot, request))
    except (TrustRegistryError, ValueError) as exc:
        _fail(str(exc))
    _emit(response.to_dict(), fmt, "TRQP Authorization")
    if not response.authorized:
        raise SystemExit(1)


@trustreg.command()
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False))
@click.argument("entity_id")
@click.argument("authority_id")
@click.argument("action")
@click.argument("resource")
@click.option("--time", "at", default=None, help="RFC 3339 evaluation instant.")
@FORMAT_OPTION
def recognize(snapshot: str, entity_id: str, authority_id: str, action: str, resource: str,
              at: Optional[str], fmt: str):
    """Ask whether AUTHORITY_ID recognizes ENTITY_ID for ACTION on RESOURCE.

    Exits with status 1 when the entity is not recognized.
    """
    try:
        request = RecognitionRequest(
            entity_id=entity_id, authority_id=authority_id,
            action=action, resource=resource, context=_context(at),
        )
        response = asyncio.run(_query(snapshot, request))
    except (TrustRegistryError, ValueError) as exc:
        _fail(str(exc))
    _emit(response.to_dict(), fmt, "TRQP Recognition")
    if not response.recognized:
        raise SystemExit(1)


@trustreg.command()
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False))
@click.argument("issuer_did")
@FORMAT_OPTION
def chain(snapshot: str, issuer_did: str, fmt: str):
    """Show the delegation chain from the root issuer down to ISSUER_DID."""

    async def _walk():
        store = await load_snapshot_file(snapshot)
        return await DelegationEngine(store).get_delegation_chain(issuer_did)

    try:
        result = asyncio.run(_walk())
    except TrustRegistryError as exc:
        _fail(str(exc))

    if fmt == "json":
        _output_json(result.to_dict())
        return
    if fmt == "yaml":
        _output_yaml(result.to_dict())
        return

    console.print(f"\n[bold blue]Delegation Chain: {issuer_did}[/bold blue]\n")
    table = Table(box=box.ROUNDED)
    table.add_column("Level", justify="right")
    table.add_column("Issuer", style="cyan", no_wrap=True)
    table.add_column("Delegated At", style="dim")
    table.add_column("Valid Until", style="dim")
    for node in result.chain:
        delegation = node.delegation or {}
        table.add_row(
            str(node.level),
            node.issuer.get("did") or "N/A",
            str(delegation.get("delegatedAt") or "root"),
            str(delegation.get("validUntil") or "N/A"),
        )
    console.print(table)
    console.print(f"\n  Chain length: {result.chain_length}\n")


@trustreg.command()
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False))
@click.argument("entity_type", type=click.Choice(["issuer", "verifier"]))
@click.argument("did")
def entry(snapshot: str, entity_type: str, did: str):
    """Build and sign the registry entry for an issuer or verifier (JSON output).

    The signing key comes from TRUST_REGISTRY_REGISTRY_PRIVATE_KEY; without
    it an ephemeral key is generated and the signature cannot be verified later.
    """

    async def _sign():
        store = await load_snapshot_file(snapshot)
        return await SignedEntryService().signed_entry_for(store, entity_type, did)

    try:
        signed = asyncio.run(_sign())
    except TrustRegistryError as exc:
        _fail(str(exc))
    _output_json(signed.to_dict())


@trustreg.command("verify-entry")
@click.argument("signed_entry", type=click.File("r"))
@FORMAT_OPTION
def verify_entry(signed_entry, fmt: str):
    """Verify a signed entry JSON file against the configured registry key."""
    try:
        data = json.load(signed_entry)
        result = SignedEntryService().verify(data)
    except (TrustRegistryError, ValueError) as exc:
        _fail(str(exc))
    _emit(result.model_dump(mode="json"), fmt, "Signed Entry Verification")
    if not result.valid:
        raise SystemExit(1)


@trustreg.command("did-document")
@click.option("--registry-did", default=None, help="Registry DID (defaults to settings).")
def did_document(registry_did: Optional[str]):
    """Print the registry DID document (JSON)."""
    document = SignedEntryService().registry_did_document(registry_did)
    _output_json(document.to_dict())


def main():
    """Console script entry point."""
    trustreg()


if __name__ == "__main__":
    main()
