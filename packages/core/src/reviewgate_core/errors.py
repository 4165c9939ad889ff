"""Error taxonomy for reviewgate.

Every failure a run can end with derives from ReviewGateError so the CLI can
turn it into a non-zero exit with a single except clause. The "not ready yet"
outcomes of a check share ApprovalError: CI treats them as "block merge",
not as a crash.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reviewgate_core.models import CheckOutcome


class ReviewGateError(Exception):
    """Base class for every error raised by reviewgate."""


class ConfigurationError(ReviewGateError):
    """Missing or malformed configuration. Raised before any API call."""


class InsufficientData(ReviewGateError):
    """The webhook payload is missing fields required to build a context."""


class GitHubAPIError(ReviewGateError):
    """A GitHub API call failed. Wraps the underlying GithubException or transport error."""

    def __init__(self, operation: str, target: str, cause: Exception):
        self.operation = operation
        self.target = target
        self.cause = cause
        super().__init__(f"GitHub API call failed while trying to {operation} on {target}: {cause}")


class AssignmentIncomplete(ReviewGateError):
    """GitHub accepted the reviewer request but did not request everyone we asked for."""

    def __init__(self, target: str, missing: frozenset[str]):
        self.target = target
        self.missing = missing
        super().__init__(f"failed to request all required reviewers on {target}; missing: {', '.join(sorted(missing))}")


class ApprovalError(ReviewGateError):
    """The pull request does not (yet) carry every required approval."""

    def __init__(self, target: str, message: str):
        self.target = target
        super().__init__(f"{target}: {message}")

    @property
    def outcome(self) -> CheckOutcome:
        from reviewgate_core.models import CheckOutcome

        return CheckOutcome.INCOMPLETE


class NoReviews(ApprovalError):
    def __init__(self, target: str):
        super().__init__(target, "pull request has no reviews")


class MissingReviewer(ApprovalError):
    def __init__(self, target: str, reviewer: str):
        self.reviewer = reviewer
        super().__init__(target, f"required reviewer {reviewer} has not reviewed")


class ApprovalPending(ApprovalError):
    def __init__(self, target: str, reviewer: str, state: str):
        self.reviewer = reviewer
        self.state = state
        super().__init__(target, f"required reviewer {reviewer} has not approved (state: {state})")


class ApprovalsInvalidated(ApprovalError):
    """Approvals were dismissed because commits landed after they were given."""

    def __init__(self, target: str, author: str, head_sha: str):
        self.author = author
        self.head_sha = head_sha
        super().__init__(
            target,
            f"approvals for external contributor {author} were given before {head_sha[:7]} and have been dismissed",
        )

    @property
    def outcome(self) -> CheckOutcome:
        from reviewgate_core.models import CheckOutcome

        return CheckOutcome.INVALIDATED
