"""Value types shared by the event parser, the engines and the GitHub client.

All contexts are frozen: they are built once per invocation from the webhook
payload and only read afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from reviewgate_core.errors import InsufficientData


class Operation(str, Enum):
    """The two things reviewgate can be asked to do."""

    ASSIGN = "assign-reviewers"
    CHECK = "check-reviewers"


class EventKind(str, Enum):
    """Webhook payload shapes reviewgate understands."""

    PULL_REQUEST_OPENED = "pull_request"
    REVIEW_SUBMITTED = "pull_request_review"
    SYNCHRONIZE = "synchronize"


class ReviewState(str, Enum):
    APPROVED = "APPROVED"
    COMMENTED = "COMMENTED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    DISMISSED = "DISMISSED"
    PENDING = "PENDING"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: str | None) -> ReviewState:
        """Map a GitHub review state string onto the enum; anything unrecognised becomes UNKNOWN."""
        try:
            return cls((value or "").upper())
        except ValueError:
            return cls.UNKNOWN


class CheckOutcome(str, Enum):
    """States the approval reconciliation passes through."""

    INCOMPLETE = "incomplete"
    INTERNAL_COMPLETE = "internal_complete"
    EXTERNAL_PENDING_VALIDATION = "external_pending_validation"
    COMPLETE = "complete"
    INVALIDATED = "invalidated"


def _require(value, name: str) -> None:
    if not value:
        raise InsufficientData(f"insufficient data obtained: missing {name}")


@dataclass(frozen=True)
class PullRequestContext:
    """A freshly opened pull request, as needed to assign reviewers."""

    author: str
    repo_owner: str
    repo_name: str
    number: int

    def __post_init__(self):
        _require(self.author, "pull request author")
        _require(self.repo_owner, "repository owner")
        _require(self.repo_name, "repository name")
        if not isinstance(self.number, int) or self.number <= 0:
            raise InsufficientData(f"insufficient data obtained: invalid pull request number {self.number!r}")

    @property
    def full_name(self) -> str:
        return f"{self.repo_owner}/{self.repo_name}"

    def __str__(self) -> str:
        return f"{self.full_name}#{self.number}"


@dataclass(frozen=True)
class ReviewContext(PullRequestContext):
    """A pull request whose approvals must be checked.

    ``reviewer`` is only set for review-submitted events; push events carry no
    reviewer. ``head_sha`` is the pull request head the approvals are checked
    against.
    """

    head_sha: str = ""
    reviewer: Optional[str] = None
    kind: EventKind = EventKind.REVIEW_SUBMITTED

    def __post_init__(self):
        super().__post_init__()
        _require(self.head_sha, "head commit SHA")
        if self.kind is EventKind.REVIEW_SUBMITTED:
            _require(self.reviewer, "reviewer login")


@dataclass(frozen=True)
class Review:
    """The latest review a single reviewer left on a pull request."""

    reviewer: str
    state: ReviewState
    commit_sha: str
    review_id: int

    @property
    def approved(self) -> bool:
        return self.state is ReviewState.APPROVED


@dataclass
class AssignSummary:
    """Result of a successful reviewer assignment."""

    context: PullRequestContext
    required: frozenset[str]
    requested: frozenset[str] = field(default_factory=frozenset)


@dataclass
class CheckSummary:
    """Result of a successful approval check."""

    context: ReviewContext
    outcome: CheckOutcome
    internal: bool
    approvers: frozenset[str] = field(default_factory=frozenset)
