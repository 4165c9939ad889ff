"""CLI entry point for reviewgate.

Commands:
  assign-reviewers  request the author's required reviewers on a newly opened PR
  check-reviewers   fail unless every required reviewer has approved the PR head

Both read the webhook payload GitHub Actions writes to GITHUB_EVENT_PATH.
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from reviewgate_cli.commands.assign import assign_cmd
from reviewgate_cli.commands.check import check_cmd

err_console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        handler = RichHandler(console=err_console, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        root.addHandler(handler)
    # PyGithub and urllib3 are chatty at DEBUG; keep them at WARNING unless asked.
    for noisy in ("github", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.DEBUG if verbose else logging.WARNING)


@click.group()
@click.version_option(
    version=importlib.metadata.version("reviewgate"),
    prog_name="reviewgate",
)
@click.option(
    "--config",
    "config_path",
    default=".reviewgate.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="REVIEWGATE_CONFIG",
)
@click.option("--token", default=None, help="GitHub token. Defaults to GITHUB_TOKEN, then `gh auth token`.")
@click.option(
    "--reviewers",
    default=None,
    help='JSON object mapping authors to required reviewers, e.g. \'{"alice": ["bob", "carol"]}\'.',
)
@click.option("--event-path", default=None, help="Path to the webhook event payload. Defaults to GITHUB_EVENT_PATH.")
@click.option("--team-slug", default=None, help="Slug of the team whose members count as internal contributors.")
@click.option("--org", default=None, help="Organization that owns --team-slug.")
@click.option(
    "--default-reviewer",
    "default_reviewers",
    multiple=True,
    help="Required reviewer for authors missing from the mapping. Repeatable.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(
    ctx: click.Context,
    config_path: str,
    token: str | None,
    reviewers: str | None,
    event_path: str | None,
    team_slug: str | None,
    org: str | None,
    default_reviewers: tuple[str, ...],
    verbose: bool,
):
    """Assign pull request reviewers and gate merges on their approval."""
    from reviewgate_cli.auth import resolve_github_token
    from reviewgate_core.config import load_config
    from reviewgate_core.errors import ConfigurationError

    _configure_logging(verbose)
    ctx.ensure_object(dict)

    try:
        config = load_config(
            config_path,
            cli_overrides={
                "reviewers": reviewers,
                "event_path": event_path,
                "team_slug": team_slug,
                "org": org,
                "default_reviewers": list(default_reviewers) or None,
            },
        )
    except ConfigurationError as e:
        raise click.UsageError(str(e)) from e

    # Resolve token early so both subcommands share the same resolution.
    resolved = resolve_github_token(token)
    if resolved:
        config["github_token"] = resolved

    ctx.obj["config"] = config


main.add_command(assign_cmd)
main.add_command(check_cmd)
