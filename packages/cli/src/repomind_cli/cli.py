"""CLI entry point for repomind.

Commands:
  login / logout — store or forget the backend session cookie
  repo           — select, show or clear the current repository
  prs            — list the selected repository's pull requests
  review         — trigger an AI review, show the latest result
  chat           — ask the repository assistant questions
  audit          — run and inspect whole-repository code audits
"""

from __future__ import annotations

import importlib.metadata
import logging
import os

import click
from rich.console import Console
from rich.logging import RichHandler

from repomind_cli.commands.audit import audit_cmd
from repomind_cli.commands.chat import chat_cmd
from repomind_cli.commands.login import login_cmd, logout_cmd
from repomind_cli.commands.prs import prs_cmd
from repomind_cli.commands.repo import repo_cmd
from repomind_cli.commands.review import review_cmd

console = Console()


def _session_key() -> str:
    """One session scope per terminal: the parent shell's pid, unless overridden."""
    return os.environ.get("REPOMIND_SESSION_SCOPE") or str(os.getppid())


def _build_stores(config: dict):
    """Open the durable and session-scoped SQLite stores under state_dir.

    This factory lives in cli.py so neither repomind_core nor repomind_store
    know where the CLI keeps its files.
    """
    from repomind_core.config import state_paths
    from repomind_store.sqlite import SQLiteStore

    durable_path, session_path = state_paths(config, _session_key())
    return SQLiteStore(str(durable_path)), SQLiteStore(str(session_path))


def _build_gateway(config: dict, session_cookie: str | None):
    from repomind_core.gateway import RequestGateway

    return RequestGateway(
        base_url=config["base_url"],
        session_cookie=session_cookie,
        cookie_name=config["cookie_name"],
        timeout=config["timeout"],
    )


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("repomind"),
    prog_name="repomind",
)
@click.option(
    "--config",
    "config_path",
    default=".repomind.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="REPOMIND_CONFIG",
)
@click.option("--base-url", default=None, help="Backend origin. Overrides config file and REPOMIND_API_URL.")
@click.option("--verbose", "-v", is_flag=True, help="Log requests and failures to stderr.")
@click.pass_context
def main(ctx: click.Context, config_path: str, base_url: str | None, verbose: bool):
    """Review pull requests and chat with your codebase through RepoMind."""
    from repomind_core.config import load_config
    from repomind_cli.auth import resolve_session_cookie
    from repomind_store.identity import IdentityStore

    _configure_logging(verbose)
    ctx.ensure_object(dict)

    config = load_config(config_path, cli_overrides={"base_url": base_url})
    durable, session = _build_stores(config)
    gateway = _build_gateway(config, resolve_session_cookie(config, durable))

    ctx.obj["config"] = config
    ctx.obj["durable"] = durable
    ctx.obj["identity"] = IdentityStore(durable=durable, session=session)
    ctx.obj["gateway"] = gateway
    ctx.call_on_close(gateway.close)
    ctx.call_on_close(durable.close)
    ctx.call_on_close(session.close)


main.add_command(login_cmd)
main.add_command(logout_cmd)
main.add_command(repo_cmd)
main.add_command(prs_cmd)
main.add_command(review_cmd)
main.add_command(chat_cmd)
main.add_command(audit_cmd)
