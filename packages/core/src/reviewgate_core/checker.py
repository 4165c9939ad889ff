"""Approval gating for pull requests.

A check walks the pull request through these states:

    INCOMPLETE ──► INTERNAL_COMPLETE                            (author is internal)
        │
        └────────► EXTERNAL_PENDING_VALIDATION ──► COMPLETE     (all reviews on head)
                                              └──► INVALIDATED  (a review predates the head commit)

Only INTERNAL_COMPLETE and COMPLETE are successes. INCOMPLETE and INVALIDATED
surface as ApprovalError subclasses so the CI job fails and blocks merge.

External contributors could otherwise push arbitrary commits after getting
approved; for them every approval must sit on the current head, and stale
ones are dismissed so a full re-review is forced.
"""

from __future__ import annotations

import logging
from typing import Mapping

from rich.console import Console

from reviewgate_core.errors import ApprovalPending, ApprovalsInvalidated, MissingReviewer, NoReviews
from reviewgate_core.gh.base import BasePullRequestClient, BaseTeamDirectory
from reviewgate_core.models import CheckOutcome, CheckSummary, Review, ReviewContext
from reviewgate_core.policy import ReviewerPolicy

console = Console()
logger = logging.getLogger(__name__)

DEFAULT_DISMISS_MESSAGE = "New commits were pushed after approval. Dismissed by reviewgate; please review again."


class Checker:
    def __init__(
        self,
        policy: ReviewerPolicy,
        client: BasePullRequestClient,
        team_directory: BaseTeamDirectory | None = None,
        org: str | None = None,
        team_slug: str | None = None,
        dismiss_message: str = DEFAULT_DISMISS_MESSAGE,
    ):
        self.policy = policy
        self.client = client
        self.team_directory = team_directory
        self.org = org
        self.team_slug = team_slug
        self.dismiss_message = dismiss_message

    def check(self, context: ReviewContext) -> CheckSummary:
        """Fetch the current reviews for the pull request and evaluate them."""
        reviews = self.client.list_reviews(context)
        logger.info(
            "Current reviews on %s: %s",
            context,
            {login: (r.state.value, r.commit_sha[:7]) for login, r in reviews.items()},
        )
        return self.evaluate(context, reviews)

    def evaluate(self, context: ReviewContext, reviews: Mapping[str, Review]) -> CheckSummary:
        """Decide whether ``reviews`` satisfy the policy for ``context.author``.

        Raises an ApprovalError subclass when they don't. The only side effect
        is dismissing stale reviews of an external author.
        """
        target = str(context)
        if not reviews:
            raise NoReviews(target)

        required = self.policy.required_reviewers_for(context.author)
        logger.info("Checking whether %s has approvals from %s", context.author, sorted(required))

        for login in sorted(required):
            review = reviews.get(login)
            if review is None:
                raise MissingReviewer(target, login)
            if not review.approved:
                raise ApprovalPending(target, login, review.state.value)

        if self.is_internal(context.author):
            console.print(f"[green]{context}: all required reviewers approved.[/green]")
            return CheckSummary(
                context=context, outcome=CheckOutcome.INTERNAL_COMPLETE, internal=True, approvers=required
            )

        logger.debug("%s is external; %s is %s", context.author, target, CheckOutcome.EXTERNAL_PENDING_VALIDATION.value)
        stale = sorted(login for login, r in reviews.items() if r.commit_sha != context.head_sha)
        if stale:
            logger.warning(
                "Reviews by %s on %s predate head %s; invalidating approvals for external contributor %s",
                ", ".join(stale),
                target,
                context.head_sha[:7],
                context.author,
            )
            self.client.dismiss_reviews(context, reviews, self.dismiss_message)
            raise ApprovalsInvalidated(target, context.author, context.head_sha)

        console.print(f"[green]{context}: all required reviewers approved {context.head_sha[:7]}.[/green]")
        return CheckSummary(context=context, outcome=CheckOutcome.COMPLETE, internal=False, approvers=required)

    def is_internal(self, author: str) -> bool:
        """An author is internal when they are on the team AND have their own policy entry.

        A failed membership lookup counts as external: the stricter path still
        runs, it just may dismiss approvals an internal author would have kept.
        """
        if not self.policy.has_explicit_entry(author):
            return False
        if self.team_directory is None or not self.org or not self.team_slug:
            logger.debug("No team configured; treating %s as external", author)
            return False
        try:
            members = self.team_directory.members_of(self.org, self.team_slug)
        except Exception as e:
            logger.warning("Failed to evaluate if %s is part of %s/%s: %s", author, self.org, self.team_slug, e)
            return False
        return author in members
