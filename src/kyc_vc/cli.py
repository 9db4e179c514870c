"""
Command-line interface for KYC credential issuance and verification.

Usage:
    kyc-vc issue --customer KYC-001 --issuer did:did3:bank:jpmorgan --level enhanced --accredited -j US
    kyc-vc verify credential.json
    kyc-vc verify --json-output https://example.com/credentials/123
    cat credential.json | kyc-vc revoke -
    kyc-vc batch requests.json
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, NoReturn

import click
import httpx
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from kyc_vc.batch import BatchIssuer, BatchResult
from kyc_vc.config import Settings
from kyc_vc.errors import CredentialError, MalformedCredential
from kyc_vc.issuer import CredentialIssuer
from kyc_vc.models import Credential, IssuanceRequest, KYCLevel, SignatureAlgorithm
from kyc_vc.samples import sample_customer_store, sample_issuer_store
from kyc_vc.signing import generate_key_pair
from kyc_vc.stores import InMemoryCustomerStore, InMemoryIssuerStore, load_registry
from kyc_vc.verifier import CredentialVerifier, VerificationResult, revoke_credential


console = Console()
err_console = Console(stderr=True)


class InputError(click.ClickException):
    """Input that cannot be read. Exits with status 2 like other errors."""

    exit_code = 2


@dataclass
class Context:
    issuer_store: InMemoryIssuerStore
    customer_store: InMemoryCustomerStore
    settings: Settings
    timeout: float


def format_result(result: VerificationResult) -> None:
    """Format and print verification result."""
    if result.valid:
        status_icon = "[bold green]VALID[/]"
        panel_style = "green"
    else:
        status_icon = "[bold red]INVALID[/]"
        panel_style = "red"

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Field", style="dim")
    table.add_column("Value")

    table.add_row("Status", status_icon)

    if result.credential_id:
        table.add_row("Credential ID", result.credential_id)

    if result.issuer:
        table.add_row("Issuer", result.issuer)

    if result.proof:
        proof_status = "[green]Valid[/]" if result.proof.valid else "[red]Invalid[/]"
        table.add_row("Proof", proof_status)
        table.add_row("Proof Type", result.proof.proof_type)
        table.add_row("Verification Method", result.proof.verification_method)
        if result.proof.error:
            table.add_row("Proof Error", f"[red]{escape(result.proof.error)}[/]")

    console.print(Panel(table, title="Verification Result", border_style=panel_style))

    if result.errors:
        console.print("\n[bold red]Errors:[/]")
        for error in result.errors:
            console.print(f"  [red]x[/] {error.code.value}: {escape(error.message)}")


def format_batch(result: BatchResult) -> None:
    """Print a summary table of a batch run."""
    table = Table(title="Batch Issuance")
    table.add_column("Outcome")
    table.add_column("Customer / Credential")
    table.add_column("Detail")

    for credential in result.successful:
        table.add_row("[green]issued[/]", credential.id, credential.credential_subject.id)
    for failure in result.failed:
        table.add_row(
            "[red]failed[/]",
            escape(failure.customer_kyc_id or "-"),
            escape(failure.error_description),
        )

    console.print(table)


def load_json(source: str, timeout: float = 30.0) -> Any:
    """Load JSON from file, URL, or stdin.

    Args:
        source: File path, URL, or "-" for stdin.
        timeout: HTTP timeout in seconds for URL sources.

    Returns:
        Parsed JSON.
    """
    if source == "-":
        content = sys.stdin.read()
        return json.loads(content)

    if source.startswith("http://") or source.startswith("https://"):
        with httpx.Client(timeout=timeout) as client:
            response = client.get(
                source,
                headers={"Accept": "application/vc+ld+json, application/json"},
            )
            response.raise_for_status()
            return response.json()

    path = Path(source)
    if not path.exists():
        raise InputError(f"File not found: {source}")

    with path.open(encoding="utf-8") as f:
        return json.load(f)


def print_json(data: Any) -> None:
    console.print_json(data=data)


def fail(message: str, json_output: bool) -> NoReturn:
    """Report an error and exit with status 2."""
    if json_output:
        console.print_json(data={"error": message})
    else:
        err_console.print(f"[red]Error:[/] {escape(message)}")
    sys.exit(2)


@click.group()
@click.option(
    "--registry",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    envvar="KYC_VC_REGISTRY",
    help="JSON file with 'issuers' and 'customers' (defaults to the demo registry)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    envvar="KYC_VC_LOG_LEVEL",
    show_default=True,
    help="Logging verbosity (logs go to stderr)",
)
@click.option(
    "--timeout",
    type=float,
    default=30.0,
    help="HTTP request timeout in seconds when loading from a URL",
)
@click.version_option(package_name="kyc-vc")
@click.pass_context
def main(ctx: click.Context, registry: Path | None, log_level: str, timeout: float) -> None:
    """Issue and verify KYC verifiable credentials."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )

    if registry is not None:
        try:
            issuer_store, customer_store = load_registry(registry)
        except ValueError as e:
            raise click.ClickException(str(e)) from e
    else:
        issuer_store, customer_store = sample_issuer_store(), sample_customer_store()

    try:
        settings = Settings.from_env()
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    ctx.obj = Context(
        issuer_store=issuer_store,
        customer_store=customer_store,
        settings=settings,
        timeout=timeout,
    )


@main.command()
@click.option("--customer", "customer_kyc_id", required=True, help="Customer KYC id")
@click.option("--issuer", "issuer_did", required=True, help="Issuer DID")
@click.option(
    "--level",
    type=click.Choice([level.value for level in KYCLevel]),
    required=True,
    help="Requested KYC level",
)
@click.option(
    "--accredited/--not-accredited",
    default=False,
    help="Requested accredited investor status",
)
@click.option(
    "-j",
    "--jurisdiction",
    multiple=True,
    required=True,
    help="Jurisdiction code (repeatable)",
)
@click.option("--expiry-days", type=int, default=None, help="Validity period in days")
@click.option(
    "--algorithm",
    type=click.Choice([a.value for a in SignatureAlgorithm]),
    default=None,
    help="Signature algorithm (defaults to the issuer's)",
)
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path), help="Write credential to file")
@click.pass_obj
def issue(
    obj: Context,
    customer_kyc_id: str,
    issuer_did: str,
    level: str,
    accredited: bool,
    jurisdiction: tuple[str, ...],
    expiry_days: int | None,
    algorithm: str | None,
    output: Path | None,
) -> None:
    """Issue a credential for a customer."""
    issuer = CredentialIssuer(obj.issuer_store, obj.customer_store, settings=obj.settings)
    try:
        request = IssuanceRequest(
            customer_kyc_id=customer_kyc_id,
            issuer_did=issuer_did,
            kyc_level=KYCLevel(level),
            accredited_investor=accredited,
            jurisdiction=jurisdiction,
            expiry_days=expiry_days,
            signature_algorithm=SignatureAlgorithm(algorithm) if algorithm else None,
        )
        credential = issuer.issue(request)
    except CredentialError as e:
        fail(str(e), json_output=False)

    data = credential.to_dict()
    if output:
        output.write_text(json.dumps(data, indent=2), encoding="utf-8")
        err_console.print(f"[green]Issued[/] {credential.id} -> {escape(str(output))}")
    else:
        print_json(data)


@main.command()
@click.argument("source", required=True)
@click.option(
    "--json-output",
    is_flag=True,
    help="Output result as JSON",
)
@click.pass_obj
def verify(obj: Context, source: str, json_output: bool) -> None:
    """Verify a KYC credential.

    SOURCE can be:
    - A file path (e.g., credential.json)
    - A URL (e.g., https://example.com/credentials/123)
    - "-" to read from stdin

    Exit status is 0 if valid, 1 if invalid and 2 on errors.
    """
    try:
        credential = load_json(source, timeout=obj.timeout)
    except json.JSONDecodeError as e:
        fail(f"Invalid JSON: {e}", json_output)
    except httpx.HTTPError as e:
        fail(f"HTTP error: {e}", json_output)

    result = CredentialVerifier(obj.issuer_store).verify(credential)

    if json_output:
        print_json(result.to_dict())
    else:
        format_result(result)

    sys.exit(0 if result.valid else 1)


@main.command()
@click.argument("source", required=True)
@click.pass_obj
def revoke(obj: Context, source: str) -> None:
    """Print a revoked copy of a credential."""
    try:
        credential = Credential.from_dict(load_json(source, timeout=obj.timeout))
    except json.JSONDecodeError as e:
        fail(f"Invalid JSON: {e}", json_output=False)
    except httpx.HTTPError as e:
        fail(f"HTTP error: {e}", json_output=False)
    except MalformedCredential as e:
        fail(str(e), json_output=False)

    print_json(revoke_credential(credential).to_dict())


@main.command()
@click.argument("source", required=True)
@click.option("--workers", type=click.IntRange(min=1), default=4, show_default=True)
@click.option(
    "--json-output",
    is_flag=True,
    help="Output the full result as JSON",
)
@click.pass_obj
def batch(obj: Context, source: str, workers: int, json_output: bool) -> None:
    """Issue credentials for a JSON array of requests.

    Exit status is 0 if every request succeeded and 1 otherwise.
    """
    try:
        data = load_json(source, timeout=obj.timeout)
    except json.JSONDecodeError as e:
        fail(f"Invalid JSON: {e}", json_output)
    except httpx.HTTPError as e:
        fail(f"HTTP error: {e}", json_output)

    if not isinstance(data, list):
        fail("Batch input must be a JSON array of requests", json_output)

    issuer = CredentialIssuer(obj.issuer_store, obj.customer_store, settings=obj.settings)
    result = BatchIssuer(issuer, max_workers=workers).issue_all(data)

    if json_output:
        print_json(result.to_dict())
    else:
        format_batch(result)

    sys.exit(0 if not result.failed else 1)


@main.command()
@click.pass_obj
def issuers(obj: Context) -> None:
    """List registered issuers (without private keys)."""
    print_json([issuer.public_view() for issuer in obj.issuer_store.list()])


@main.command()
@click.pass_obj
def customers(obj: Context) -> None:
    """List customer KYC records."""
    print_json([customer.to_dict() for customer in obj.customer_store.list()])


@main.command()
@click.option(
    "--algorithm",
    type=click.Choice([a.value for a in SignatureAlgorithm]),
    default=SignatureAlgorithm.ED25519.value,
    show_default=True,
)
def keygen(algorithm: str) -> None:
    """Generate an issuer key pair."""
    pair = generate_key_pair(algorithm)
    print_json(
        {
            "signatureAlgorithm": pair.algorithm.value,
            "privateKey": pair.private_key,
            "publicKey": pair.public_key,
        }
    )


if __name__ == "__main__":
    main()
