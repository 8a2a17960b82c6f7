"""review commands — trigger an AI review and show the latest result."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from repomind_cli.guards import request_error, select_repo_error
from repomind_core.errors import NotFoundError, RequestFailed
from repomind_core.models import ReviewJobStatus, ReviewResult, Severity, parse_timestamp
from repomind_core.reviews import open_reviews
from repomind_store.identity import MissingContextError

console = Console()

_SEVERITY_STYLE = {
    Severity.CRITICAL: "red",
    Severity.WARNING: "yellow",
    Severity.INFO: "blue",
    Severity.OTHER: "green",
}


def _open(ctx):
    try:
        controller = open_reviews(ctx.obj["identity"], ctx.obj["gateway"])
    except MissingContextError:
        raise select_repo_error() from None
    ctx.call_on_close(controller.leave)
    return controller


def render_review(result: ReviewResult, pull_request_id: int) -> None:
    console.print(f"\n[bold]AI Review Results[/bold] — pull request {pull_request_id}")
    console.print(f"\n{result.summary}\n")
    created = parse_timestamp(result.created_at)
    when = created.strftime("%Y-%m-%d %H:%M") if created else result.created_at
    console.print(f"[dim]{result.comment_count} comments · {when}[/dim]")

    if not result.comments:
        console.print("\n[green]All clear! No issues found in this pull request.[/green]")
        return

    table = Table(title=f"Comments ({len(result.comments)})", show_header=True, header_style="bold cyan")
    table.add_column("Severity", width=10)
    table.add_column("Location")
    table.add_column("Category")
    table.add_column("Comment", max_width=60)

    for c in result.comments:
        style = _SEVERITY_STYLE[c.severity]
        body = c.body
        if c.suggestion:
            body += f"\n[green]Suggestion:[/green] {c.suggestion}"
        table.add_row(
            f"[{style}]{c.severity.value}[/{style}]",
            f"{c.file_path}:{c.line_number}",
            c.category,
            body,
        )

    console.print(table)


@click.group("review")
def review_cmd():
    """Run AI reviews and read their results."""


@review_cmd.command("run")
@click.argument("pull_request_id", type=int)
@click.option("--show", is_flag=True, help="Show the review result once the run completes.")
@click.pass_context
def run_cmd(ctx, pull_request_id: int, show: bool):
    """Run an AI review for a pull request (use the ID column from `repomind prs`)."""
    controller = _open(ctx)

    with console.status(f"Running AI review for pull request {pull_request_id}..."):
        state = controller.trigger_review(pull_request_id)

    if state.status is ReviewJobStatus.FAILED:
        raise click.ClickException(f"Review failed: {state.failure.message}")

    console.print(f"[green]AI review for pull request {pull_request_id} completed.[/green]")
    if show:
        try:
            render_review(controller.fetch_latest_result(pull_request_id), pull_request_id)
        except RequestFailed as e:
            raise request_error(e)


@review_cmd.command("show")
@click.argument("pull_request_id", type=int)
@click.pass_context
def show_cmd(ctx, pull_request_id: int):
    """Show the most recent AI review of a pull request."""
    controller = _open(ctx)
    try:
        result = controller.fetch_latest_result(pull_request_id)
    except NotFoundError:
        raise click.ClickException("No AI review has been run for this pull request yet.")
    except RequestFailed as e:
        raise request_error(e)
    render_review(result, pull_request_id)
