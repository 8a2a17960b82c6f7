"""Shared translation of core errors into click errors."""

from __future__ import annotations

import click

from repomind_core.errors import RequestFailed


def select_repo_error() -> click.UsageError:
    """Where the web client redirects to repository selection, the CLI points there."""
    return click.UsageError("No repository selected. Run `repomind repo select --id <ID>` first.")


def request_error(error: RequestFailed) -> click.ClickException:
    return click.ClickException(error.failure.message)
