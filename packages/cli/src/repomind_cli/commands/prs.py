"""prs command — list the selected repository's pull requests."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from repomind_cli.guards import request_error, select_repo_error
from repomind_core.errors import RequestFailed
from repomind_core.pull_requests import list_pull_requests
from repomind_store.identity import MissingContextError

console = Console()


@click.command("prs")
@click.pass_context
def prs_cmd(ctx):
    """List pull requests synced for the current repository."""
    identity = ctx.obj["identity"]
    try:
        repository = identity.require_repository()
    except MissingContextError:
        raise select_repo_error() from None

    try:
        prs = list_pull_requests(ctx.obj["gateway"], repository)
    except RequestFailed as e:
        raise request_error(e)

    if not prs:
        console.print("[yellow]No pull requests found. Sync the repository from the RepoMind dashboard.[/yellow]")
        return

    table = Table(title=f"Pull Requests — {repository.repository_name}", show_header=True, header_style="bold cyan")
    table.add_column("ID", justify="right", width=6)
    table.add_column("PR", style="bold", width=6)
    table.add_column("Title", max_width=50)
    table.add_column("Author", width=16)
    table.add_column("Branches")
    table.add_column("URL")

    for pr in prs:
        table.add_row(
            str(pr.id),
            f"#{pr.number}",
            pr.title,
            pr.author,
            f"{pr.target_branch} ← {pr.source_branch}",
            pr.external_url,
        )

    console.print(table)
