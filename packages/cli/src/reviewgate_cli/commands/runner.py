"""Shared plumbing for the subcommands: config validation and failure reporting."""

from __future__ import annotations

import logging
from contextlib import contextmanager

import click
from rich.console import Console
from rich.markup import escape

from reviewgate_core.config import BotConfig
from reviewgate_core.errors import ApprovalError, ConfigurationError, ReviewGateError

err_console = Console(stderr=True)
logger = logging.getLogger(__name__)


def bot_config(ctx: click.Context) -> BotConfig:
    """Build the BotConfig for this run from the dict the group callback stored."""
    config = ctx.obj.get("config") if ctx.obj else None
    if config is None:
        raise click.UsageError("Configuration was not loaded.")
    try:
        return BotConfig.from_dict(config)
    except ConfigurationError as e:
        raise click.UsageError(str(e)) from e


@contextmanager
def reported_failures(operation: str):
    """Turn reviewgate errors into a red message and exit status 1.

    Approval errors are the expected "not ready yet" result of a check and are
    reported as such rather than as crashes.
    """
    try:
        yield
    except ConfigurationError as e:
        raise click.UsageError(str(e)) from e
    except ApprovalError as e:
        err_console.print(f"[yellow]{operation} blocked ({e.outcome.value}):[/yellow] {escape(str(e))}", soft_wrap=True)
        raise SystemExit(1)
    except ReviewGateError as e:
        logger.debug("%s failed", operation, exc_info=True)
        err_console.print(f"[red]{operation} failed:[/red] {escape(str(e))}", soft_wrap=True)
        raise SystemExit(1)
