"""login / logout commands — manage the backend session cookie."""

from __future__ import annotations

import click
from rich.console import Console

from repomind_cli.auth import clear_session_cookie, save_session_cookie

console = Console()


@click.command("login")
@click.argument("cookie")
@click.pass_context
def login_cmd(ctx, cookie: str):
    """Save the session cookie issued by the RepoMind web login.

    Sign in with GitHub in the browser, copy the value of the session cookie
    (JSESSIONID by default) and pass it here. REPOMIND_SESSION, when set,
    takes precedence.
    """
    if not cookie.strip():
        raise click.UsageError("Cookie must not be empty.")
    save_session_cookie(ctx.obj["durable"], cookie)
    console.print("[green]Session saved.[/green]")


@click.command("logout")
@click.pass_context
def logout_cmd(ctx):
    """Forget the saved session cookie."""
    clear_session_cookie(ctx.obj["durable"])
    console.print("Session cleared.")
