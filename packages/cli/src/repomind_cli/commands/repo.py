"""repo commands — choose which repository every other command works on."""

from __future__ import annotations

import click
from rich.console import Console

from repomind_store.models import RepositoryContext

console = Console()


@click.group("repo")
def repo_cmd():
    """Select, show or clear the current repository."""


@repo_cmd.command("select")
@click.option("--id", "repository_id", type=int, required=True, help="RepoMind repository id.")
@click.option("--name", "repository_name", default=None, help="Display name, e.g. owner/name.")
@click.pass_context
def select_cmd(ctx, repository_id: int, repository_name: str | None):
    """Make a repository the current one. Persists until replaced."""
    identity = ctx.obj["identity"]
    identity.set_repository_context(RepositoryContext(repository_id, repository_name or f"Repository {repository_id}"))
    console.print(f"Selected [bold cyan]{repository_name or repository_id}[/bold cyan].")


@repo_cmd.command("show")
@click.pass_context
def show_cmd(ctx):
    """Show the current repository and conversation."""
    identity = ctx.obj["identity"]
    repository = identity.get_repository_context()
    if repository is None:
        console.print("[yellow]No repository selected.[/yellow]")
        return
    console.print(f"Repository:   [bold cyan]{repository.repository_name}[/bold cyan] (id {repository.repository_id})")
    console.print(f"Conversation: {identity.get_or_create_conversation_id()}")


@repo_cmd.command("clear")
@click.pass_context
def clear_cmd(ctx):
    """Forget the current repository."""
    ctx.obj["identity"].clear_repository_context()
    console.print("Repository selection cleared.")
