"""Abstract GitHub collaborators.

The engines depend on these interfaces, not on PyGithub, so tests can hand
them stubs and the team-membership lookup can fail independently of the
pull-request calls.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Iterable, Mapping

if TYPE_CHECKING:
    from reviewgate_core.models import PullRequestContext, Review


class BasePullRequestClient(ABC):
    """The slice of the pull-request API reviewgate consumes.

    Implementations raise GitHubAPIError on transport or API failures.
    """

    @abstractmethod
    def list_reviews(self, context: PullRequestContext) -> dict[str, Review]:
        """Return the latest review per reviewer login."""

    @abstractmethod
    def request_reviewers(self, context: PullRequestContext, reviewers: Iterable[str]) -> frozenset[str]:
        """Request ``reviewers`` and return the logins GitHub now lists as requested."""

    @abstractmethod
    def dismiss_reviews(self, context: PullRequestContext, reviews: Mapping[str, Review], message: str) -> None:
        """Dismiss every review in ``reviews``."""


class BaseTeamDirectory(ABC):
    """Resolves an organization team to its member logins."""

    @abstractmethod
    def members_of(self, org: str, team_slug: str) -> frozenset[str]:
        """Return member logins. May raise; callers decide how to treat failures."""
