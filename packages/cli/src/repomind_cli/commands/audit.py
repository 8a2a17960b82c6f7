"""audit commands — whole-repository code audits."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from repomind_cli.guards import request_error, select_repo_error
from repomind_core.audits import AuditClient, AuditTimeout
from repomind_core.errors import NotFoundError, RequestFailed
from repomind_core.models import AuditStatus
from repomind_store.identity import MissingContextError

console = Console()

_STATUS_STYLE = {"COMPLETED": "green", "FAILED": "red", "RUNNING": "yellow", "PENDING": "dim"}
_SEVERITY_STYLE = {"CRITICAL": "red", "HIGH": "red", "MEDIUM": "yellow", "LOW": "blue", "INFO": "dim"}


def _client(ctx) -> AuditClient:
    try:
        repository = ctx.obj["identity"].require_repository()
    except MissingContextError:
        raise select_repo_error() from None
    return AuditClient(ctx.obj["gateway"], repository)


def _print_status(status: AuditStatus) -> None:
    style = _STATUS_STYLE.get(status.status, "white")
    console.print(
        f"Audit [bold]{status.id}[/bold]: [{style}]{status.status}[/{style}] "
        f"· {status.progress}% · {status.findings_count} finding(s)"
    )
    if status.error_message:
        console.print(f"[red]{status.error_message}[/red]")


@click.group("audit")
def audit_cmd():
    """Run and inspect code audits of the current repository."""


@audit_cmd.command("start")
@click.option("--wait", "wait_for", is_flag=True, help="Poll until the audit finishes.")
@click.option("--timeout", type=float, default=None, help="Give up waiting after this many seconds.")
@click.pass_context
def start_cmd(ctx, wait_for: bool, timeout: float | None):
    """Start a code audit."""
    client = _client(ctx)
    try:
        audit_id = client.start()
        console.print(f"Started audit [bold]{audit_id}[/bold].")
        if wait_for:
            interval = ctx.obj["config"].get("audit_poll_interval", 5)
            status = client.wait(audit_id, interval=interval, timeout=timeout, on_poll=_print_status)
            if status.status == "FAILED":
                ctx.exit(1)
    except AuditTimeout as e:
        raise click.ClickException(str(e))
    except RequestFailed as e:
        raise request_error(e)


@audit_cmd.command("status")
@click.argument("audit_id", type=int)
@click.pass_context
def status_cmd(ctx, audit_id: int):
    """Show the status of an audit."""
    client = _client(ctx)
    try:
        _print_status(client.status(audit_id))
    except RequestFailed as e:
        raise request_error(e)


@audit_cmd.command("latest")
@click.pass_context
def latest_cmd(ctx):
    """Show the most recent audit of the current repository."""
    client = _client(ctx)
    try:
        _print_status(client.latest())
    except NotFoundError:
        console.print("[yellow]This repository has not been audited yet.[/yellow]")
    except RequestFailed as e:
        raise request_error(e)


@audit_cmd.command("findings")
@click.argument("audit_id", type=int)
@click.option("--severity", default=None, help="Only show findings of this severity.")
@click.option("--category", default=None, help="Only show findings of this category.")
@click.option("--page", default=1, show_default=True, type=click.IntRange(min=1), help="Page number.")
@click.pass_context
def findings_cmd(ctx, audit_id: int, severity: str | None, category: str | None, page: int):
    """List the findings of an audit."""
    client = _client(ctx)
    size = ctx.obj["config"].get("audit_page_size", 20)
    try:
        result = client.findings(audit_id, severity=severity, category=category, page=page - 1, size=size)
    except RequestFailed as e:
        raise request_error(e)

    if not result.items:
        console.print("[yellow]No findings.[/yellow]")
        return

    table = Table(
        title=f"Audit {audit_id} findings — page {result.page + 1}/{max(result.total_pages, 1)}",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Severity", width=10)
    table.add_column("Location")
    table.add_column("Category")
    table.add_column("Finding", max_width=60)

    for f in result.items:
        style = _SEVERITY_STYLE.get(f.severity, "white")
        table.add_row(
            f"[{style}]{f.severity}[/{style}]",
            f"{f.file_path}:{f.line_number}",
            f.category,
            f"[bold]{f.title}[/bold]\n{f.description}",
        )

    console.print(table)
    console.print(f"[dim]{result.total_elements} finding(s) total.[/dim]")
