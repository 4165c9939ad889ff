"""Reviewer assignment for newly opened pull requests."""

from __future__ import annotations

import logging

from rich.console import Console

from reviewgate_core.errors import AssignmentIncomplete
from reviewgate_core.gh.base import BasePullRequestClient
from reviewgate_core.models import AssignSummary, PullRequestContext
from reviewgate_core.policy import ReviewerPolicy

console = Console()
logger = logging.getLogger(__name__)


class Assigner:
    def __init__(self, policy: ReviewerPolicy, client: BasePullRequestClient):
        self.policy = policy
        self.client = client

    def assign(self, context: PullRequestContext) -> AssignSummary:
        """Request the author's required reviewers and verify GitHub now lists all of them.

        GitHub silently drops logins it cannot request (typos, users without
        access, the author themselves), so the response is checked rather
        than trusted.
        """
        required = self.policy.required_reviewers_for(context.author)
        logger.info("Required reviewers for %s on %s: %s", context.author, context, sorted(required))

        if not required:
            console.print(f"[yellow]No reviewers configured for {context.author}; nothing to request.[/yellow]")
            return AssignSummary(context=context, required=required)

        requested = self.client.request_reviewers(context, required)
        logger.debug("GitHub reports requested reviewers on %s: %s", context, sorted(requested))

        missing = required - requested
        if missing:
            raise AssignmentIncomplete(str(context), frozenset(missing))

        reviewers = ", ".join(sorted(required))
        console.print(f"[green]Requested {len(required)} reviewer(s) on {context}: {reviewers}[/green]")
        return AssignSummary(context=context, required=required, requested=requested)
