"""assign-reviewers command: request required reviewers on a new pull request."""

from __future__ import annotations

import click
from rich.console import Console

from reviewgate_cli.commands.runner import bot_config, reported_failures
from reviewgate_core.assigner import Assigner
from reviewgate_core.events import load_event
from reviewgate_core.models import Operation

console = Console()


@click.command(Operation.ASSIGN.value)
@click.pass_context
def assign_cmd(ctx):
    """Request the PR author's required reviewers.

    Run from a workflow triggered by `pull_request: [opened]`. Fails when
    GitHub does not end up listing every required reviewer as requested.
    """
    bot = bot_config(ctx)
    with reported_failures("assign-reviewers"):
        console.print("Assigning reviewers...")
        context = load_event(Operation.ASSIGN, bot.event_path)
        Assigner(bot.policy, bot.client).assign(context)
