from __future__ import annotations

import logging
from typing import Iterable, Mapping

import requests
from github import Github, GithubException

from reviewgate_core.errors import GitHubAPIError
from reviewgate_core.gh.base import BasePullRequestClient, BaseTeamDirectory
from reviewgate_core.models import PullRequestContext, Review, ReviewState

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"

# GitHub only lets you dismiss reviews that carry a verdict.
_DISMISSABLE = frozenset({ReviewState.APPROVED, ReviewState.CHANGES_REQUESTED})

# PyGithub raises GithubException for API errors and lets requests errors (timeouts,
# refused connections) through untouched.
_API_ERRORS = (GithubException, requests.exceptions.RequestException)


def get_client(token: str, base_url: str = DEFAULT_API_URL, timeout: int = 15) -> Github:
    return Github(token, base_url=base_url, timeout=timeout)


def get_pull(gh: Github, context: PullRequestContext):
    try:
        return gh.get_repo(context.full_name).get_pull(context.number)
    except _API_ERRORS as e:
        raise GitHubAPIError("fetch the pull request", str(context), e) from e


def latest_reviews(raw_reviews) -> dict[str, Review]:
    """Fold PyGithub review objects into one Review per reviewer; later reviews win."""
    reviews: dict[str, Review] = {}
    for r in raw_reviews:
        if r.user is None:
            # Reviews by deleted accounts come back without a user.
            continue
        reviews[r.user.login] = Review(
            reviewer=r.user.login,
            state=ReviewState.parse(r.state),
            commit_sha=r.commit_id or "",
            review_id=r.id,
        )
    return reviews


class GithubPullRequestClient(BasePullRequestClient):
    """PyGithub-backed pull request operations."""

    def __init__(self, gh: Github):
        self._gh = gh

    def list_reviews(self, context: PullRequestContext) -> dict[str, Review]:
        pr = get_pull(self._gh, context)
        try:
            return latest_reviews(pr.get_reviews())
        except _API_ERRORS as e:
            raise GitHubAPIError("list reviews", str(context), e) from e

    def request_reviewers(self, context: PullRequestContext, reviewers: Iterable[str]) -> frozenset[str]:
        pr = get_pull(self._gh, context)
        try:
            pr.create_review_request(reviewers=sorted(reviewers))
            users, _teams = pr.get_review_requests()
            return frozenset(u.login for u in users)
        except _API_ERRORS as e:
            raise GitHubAPIError("request reviewers", str(context), e) from e

    def dismiss_reviews(self, context: PullRequestContext, reviews: Mapping[str, Review], message: str) -> None:
        pr = get_pull(self._gh, context)
        for login, review in reviews.items():
            if review.state not in _DISMISSABLE:
                logger.info("Not dismissing %s review by %s on %s", review.state.value, login, context)
                continue
            try:
                pr.get_review(review.review_id).dismiss(message)
            except _API_ERRORS as e:
                raise GitHubAPIError(f"dismiss review {review.review_id} by {login}", str(context), e) from e
            logger.info("Dismissed review %d by %s on %s", review.review_id, login, context)


class GithubTeamDirectory(BaseTeamDirectory):
    """Team membership via the organization teams API."""

    def __init__(self, gh: Github):
        self._gh = gh

    def members_of(self, org: str, team_slug: str) -> frozenset[str]:
        try:
            team = self._gh.get_organization(org).get_team_by_slug(team_slug)
            return frozenset(m.login for m in team.get_members())
        except _API_ERRORS as e:
            raise GitHubAPIError(f"list members of team {team_slug}", org, e) from e
