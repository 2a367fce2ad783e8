"""Typer CLI for operators: scan records, review the audit trail, check configuration."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from config.settings import get_settings
from shift_guard.api.auth import TokenVerifier
from shift_guard.common.exceptions import AuthenticationError
from shift_guard.phi.adapters import DatabaseAuditTrail
from shift_guard.phi.allowlist import load_allow_list
from shift_guard.phi.ports import AuditEntry, Finding
from shift_guard.phi.profile import build_scan_profile
from shift_guard.store.dependencies import create_all, engine_for_url, sessionmaker_for_engine

app = typer.Typer(help="NICU Shift Guard operator tools.")
console = Console()


@app.command()
def scan(
    record_path: Path = typer.Argument(..., exists=True, readable=True, help="JSON file holding one record"),
    json_output: bool = typer.Option(False, "--json", help="Emit JSON output."),
) -> None:
    """Scan a record the way the enforcement handlers would. Exits 1 when PHI is found."""

    try:
        record = json.loads(record_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        typer.secho(f"Could not read record: {exc}", err=True)
        raise typer.Exit(code=2)

    findings = build_scan_profile(get_settings().phi).scan(record)
    if json_output:
        typer.echo(json.dumps([finding.to_dict() for finding in findings], indent=2))
    else:
        _print_findings(findings)
    if findings:
        raise typer.Exit(code=1)


@app.command()
def audit(
    scope_id: Optional[str] = typer.Option(None, "--scope", help="Only entries for this scope (appId)."),
    owner_id: Optional[str] = typer.Option(None, "--owner", help="Only entries for this owner (userId)."),
    limit: int = typer.Option(50, "--limit", min=1, help="Maximum number of entries."),
    json_output: bool = typer.Option(False, "--json", help="Emit JSON output."),
) -> None:
    """List recent PHI violation audit entries, newest first."""

    store_settings = get_settings().store
    engine = engine_for_url(store_settings.database_url, echo=store_settings.echo_sql)
    create_all(engine)
    trail = DatabaseAuditTrail(sessionmaker_for_engine(engine))
    entries = trail.list_entries(scope_id=scope_id, owner_id=owner_id, limit=limit)

    if json_output:
        typer.echo(json.dumps([entry.to_record() for entry in entries], indent=2))
        return
    _print_audit(entries)


@app.command()
def verify() -> None:
    """Load the allow-list and detector table; exits 1 if the allow-list is unusable."""

    phi_settings = get_settings().phi
    try:
        allow_list = load_allow_list(phi_settings.allow_list_path)
    except (OSError, ValueError) as exc:
        typer.secho(f"Allow-list invalid: {exc}", err=True)
        raise typer.Exit(code=1)

    profile = build_scan_profile(phi_settings)
    console.print(f"[green]Allow-list[/green] {allow_list.version} from {phi_settings.allow_list_path}")
    table = Table(title="Detectors", show_lines=False)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Label")
    for detector in profile.library:
        table.add_row(detector.name, detector.label)
    console.print(table)
    console.print(f"Excluded fields: {', '.join(sorted(profile.excluded_fields))}")


@app.command("issue-token")
def issue_token(
    uid: str = typer.Argument(..., help="Caller uid to embed in the token"),
    ttl: Optional[int] = typer.Option(None, "--ttl", min=1, help="Lifetime in seconds."),
) -> None:
    """Issue a bearer token for the callable endpoints (needs SHIFTGUARD_AUTH_TOKEN_SECRET)."""

    auth_settings = get_settings().auth
    verifier = TokenVerifier(auth_settings.token_secret, ttl_s=auth_settings.token_ttl_s)
    try:
        typer.echo(verifier.issue(uid, ttl_s=ttl))
    except AuthenticationError as exc:
        typer.secho(f"Cannot issue token: {exc}", err=True)
        raise typer.Exit(code=1)


@app.command("init-db")
def init_db() -> None:
    """Create the documents and phi_violations tables if missing."""

    store_settings = get_settings().store
    create_all(engine_for_url(store_settings.database_url, echo=store_settings.echo_sql))
    console.print(f"[green]Tables ready[/green] at {store_settings.database_url}")


def _print_findings(findings: list[Finding]) -> None:
    if not findings:
        console.print("[green]No PHI detected.[/green]")
        return
    table = Table(title="PHI findings", show_lines=False)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Detector")
    table.add_column("Count", justify="right")
    table.add_column("Sample")
    for finding in findings:
        table.add_row(finding.field, finding.detector, str(finding.count), finding.sample)
    console.print(table)


def _print_audit(entries: list[AuditEntry]) -> None:
    if not entries:
        console.print("No audit entries.")
        return
    table = Table(title="PHI violations", show_lines=False)
    table.add_column("When", no_wrap=True)
    table.add_column("Scope")
    table.add_column("Owner")
    table.add_column("Shift")
    table.add_column("Entity")
    table.add_column("Action", style="red")
    table.add_column("Fields")
    for entry in entries:
        table.add_row(
            entry.timestamp.isoformat(timespec="seconds"),
            entry.scope_id,
            entry.owner_id,
            entry.shift_id,
            entry.entity_id,
            entry.action.value,
            ", ".join(dict.fromkeys(finding.field for finding in entry.findings)),
        )
    console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
