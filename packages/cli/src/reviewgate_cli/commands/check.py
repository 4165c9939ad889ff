"""check-reviewers command: gate a pull request on required approvals."""

from __future__ import annotations

import click
from rich.console import Console

from reviewgate_cli.commands.runner import bot_config, reported_failures
from reviewgate_core.checker import Checker
from reviewgate_core.events import load_event
from reviewgate_core.models import Operation

console = Console()


@click.command(Operation.CHECK.value)
@click.pass_context
def check_cmd(ctx):
    """Fail unless every required reviewer has approved.

    \b
    Run from workflows triggered by:
      pull_request_review: [submitted]
      pull_request: [synchronize]

    For authors who are not internal (team member with their own reviewer
    entry), approvals given before the latest push are dismissed.
    """
    bot = bot_config(ctx)
    with reported_failures("check-reviewers"):
        console.print("Checking reviewers...")
        context = load_event(Operation.CHECK, bot.event_path)
        checker = Checker(
            bot.policy,
            bot.client,
            team_directory=bot.team_directory,
            org=bot.org,
            team_slug=bot.team_slug,
            dismiss_message=bot.dismiss_message,
        )
        checker.check(context)
