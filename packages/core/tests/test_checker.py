"""Tests for approval reconciliation."""

import pytest

from reviewgate_core.checker import DEFAULT_DISMISS_MESSAGE, Checker
from reviewgate_core.errors import (
    ApprovalError,
    ApprovalPending,
    ApprovalsInvalidated,
    GitHubAPIError,
    MissingReviewer,
    NoReviews,
)
from reviewgate_core.gh.base import BasePullRequestClient, BaseTeamDirectory
from reviewgate_core.models import CheckOutcome, EventKind, Review, ReviewContext, ReviewState
from reviewgate_core.policy import ReviewerPolicy

HEAD = "xyz"


class StubClient(BasePullRequestClient):
    def __init__(self, reviews=None):
        self.reviews = reviews or {}
        self.dismiss_calls = []

    def list_reviews(self, context):
        return dict(self.reviews)

    def request_reviewers(self, context, reviewers):
        raise AssertionError("check must not request reviewers")

    def dismiss_reviews(self, context, reviews, message):
        self.dismiss_calls.append((context, dict(reviews), message))


class StubTeam(BaseTeamDirectory):
    def __init__(self, members=(), error=None):
        self.members = frozenset(members)
        self.error = error
        self.calls = []

    def members_of(self, org, team_slug):
        self.calls.append((org, team_slug))
        if self.error is not None:
            raise self.error
        return self.members


def review(login, state=ReviewState.APPROVED, sha=HEAD, review_id=None):
    return Review(reviewer=login, state=state, commit_sha=sha, review_id=review_id or abs(hash(login)) % 10_000)


def make_context(author="alice", head_sha=HEAD):
    return ReviewContext(
        author=author,
        repo_owner="octo",
        repo_name="demo",
        number=2,
        head_sha=head_sha,
        reviewer="bob",
        kind=EventKind.REVIEW_SUBMITTED,
    )


def make_checker(mapping=None, defaults=(), members=(), team_error=None, client=None):
    policy = ReviewerPolicy.from_mapping(mapping or {"alice": ["bob", "carol"]}, defaults)
    return Checker(
        policy,
        client or StubClient(),
        team_directory=StubTeam(members, team_error),
        org="octo-org",
        team_slug="core",
    )


# ---------------------------------------------------------------------------
# required approvals
# ---------------------------------------------------------------------------


class TestRequiredApprovals:
    def test_no_reviews(self):
        with pytest.raises(NoReviews):
            make_checker().evaluate(make_context(), {})

    def test_no_reviews_regardless_of_policy(self):
        checker = make_checker(mapping={"alice": []}, defaults=["admin"], members=["alice"])
        with pytest.raises(NoReviews):
            checker.evaluate(make_context(), {})

    def test_missing_reviewer(self):
        checker = make_checker(members=["alice"])
        with pytest.raises(MissingReviewer) as exc_info:
            checker.evaluate(make_context(), {"bob": review("bob")})
        assert exc_info.value.reviewer == "carol"
        assert "octo/demo#2" in str(exc_info.value)
        assert exc_info.value.outcome is CheckOutcome.INCOMPLETE

    def test_commented_is_not_approval(self):
        checker = make_checker(members=["alice"])
        reviews = {"bob": review("bob"), "carol": review("carol", ReviewState.COMMENTED)}
        with pytest.raises(ApprovalPending) as exc_info:
            checker.evaluate(make_context(), reviews)
        assert exc_info.value.reviewer == "carol"
        assert exc_info.value.state == "COMMENTED"

    def test_changes_requested_is_not_approval(self):
        checker = make_checker(members=["alice"])
        reviews = {"bob": review("bob", ReviewState.CHANGES_REQUESTED), "carol": review("carol")}
        with pytest.raises(ApprovalPending):
            checker.evaluate(make_context(), reviews)

    def test_all_commented_fails(self):
        checker = make_checker(mapping={"bar": ["admin", "foo"]}, members=["bar"])
        reviews = {
            "admin": review("admin", ReviewState.COMMENTED),
            "foo": review("foo", ReviewState.COMMENTED),
        }
        with pytest.raises(ApprovalError):
            checker.evaluate(make_context(author="bar"), reviews)

    def test_extra_non_required_review_ignored_for_internal(self):
        checker = make_checker(members=["alice"])
        reviews = {
            "bob": review("bob"),
            "carol": review("carol"),
            "mallory": review("mallory", ReviewState.CHANGES_REQUESTED, sha="old"),
        }
        summary = checker.evaluate(make_context(), reviews)
        assert summary.outcome is CheckOutcome.INTERNAL_COMPLETE


# ---------------------------------------------------------------------------
# internal authors
# ---------------------------------------------------------------------------


class TestInternalAuthor:
    def test_internal_author_succeeds(self):
        checker = make_checker(members=["alice"])
        summary = checker.evaluate(make_context(), {"bob": review("bob"), "carol": review("carol")})
        assert summary.outcome is CheckOutcome.INTERNAL_COMPLETE
        assert summary.internal is True
        assert summary.approvers == frozenset({"bob", "carol"})

    def test_internal_author_keeps_stale_approvals(self):
        client = StubClient()
        checker = make_checker(members=["alice"], client=client)
        reviews = {"bob": review("bob", sha="abc"), "carol": review("carol", sha="abc")}
        summary = checker.evaluate(make_context(), reviews)
        assert summary.outcome is CheckOutcome.INTERNAL_COMPLETE
        assert client.dismiss_calls == []

    def test_team_member_without_policy_entry_is_external(self):
        client = StubClient()
        checker = make_checker(defaults=["admin"], members=["dave"], client=client)
        with pytest.raises(ApprovalsInvalidated):
            checker.evaluate(make_context(author="dave"), {"admin": review("admin", sha="abc")})
        assert len(client.dismiss_calls) == 1

    def test_listed_author_not_on_team_is_external(self):
        client = StubClient()
        checker = make_checker(members=["someone-else"], client=client)
        reviews = {"bob": review("bob", sha="abc"), "carol": review("carol")}
        with pytest.raises(ApprovalsInvalidated):
            checker.evaluate(make_context(), reviews)

    def test_membership_lookup_failure_treated_as_external(self):
        client = StubClient()
        error = GitHubAPIError("list members of team core", "octo-org", RuntimeError("404"))
        checker = make_checker(members=["alice"], team_error=error, client=client)
        reviews = {"bob": review("bob", sha="abc"), "carol": review("carol", sha="abc")}
        with pytest.raises(ApprovalsInvalidated):
            checker.evaluate(make_context(), reviews)
        assert len(client.dismiss_calls) == 1

    def test_membership_lookup_failure_with_fresh_approvals_succeeds(self):
        checker = make_checker(members=["alice"], team_error=RuntimeError("boom"))
        summary = checker.evaluate(make_context(), {"bob": review("bob"), "carol": review("carol")})
        assert summary.outcome is CheckOutcome.COMPLETE
        assert summary.internal is False

    def test_no_team_configured_treated_as_external(self):
        policy = ReviewerPolicy.from_mapping({"alice": ["bob"]})
        checker = Checker(policy, StubClient())
        summary = checker.evaluate(make_context(), {"bob": review("bob")})
        assert summary.internal is False

    def test_team_lookup_uses_configured_org_and_slug(self):
        team = StubTeam(["alice"])
        policy = ReviewerPolicy.from_mapping({"alice": ["bob"]})
        checker = Checker(policy, StubClient(), team_directory=team, org="octo-org", team_slug="core")
        checker.evaluate(make_context(), {"bob": review("bob")})
        assert team.calls == [("octo-org", "core")]


# ---------------------------------------------------------------------------
# external authors
# ---------------------------------------------------------------------------


class TestExternalAuthor:
    def test_stale_approval_is_invalidated(self):
        client = StubClient()
        checker = make_checker(defaults=["admin"], client=client)
        reviews = {"admin": review("admin", sha="abc")}
        with pytest.raises(ApprovalsInvalidated) as exc_info:
            checker.evaluate(make_context(author="dave", head_sha="xyz"), reviews)
        assert exc_info.value.author == "dave"
        assert exc_info.value.outcome is CheckOutcome.INVALIDATED
        assert len(client.dismiss_calls) == 1
        _, dismissed, message = client.dismiss_calls[0]
        assert dismissed == reviews
        assert message == DEFAULT_DISMISS_MESSAGE

    def test_invalidation_dismisses_every_review(self):
        client = StubClient()
        checker = make_checker(mapping={"alice": ["bob"]}, defaults=["admin", "root"], client=client)
        reviews = {
            "admin": review("admin", sha="xyz"),
            "root": review("root", sha="abc"),
            "bystander": review("bystander", ReviewState.COMMENTED, sha="xyz"),
        }
        with pytest.raises(ApprovalsInvalidated):
            checker.evaluate(make_context(author="dave"), reviews)
        assert len(client.dismiss_calls) == 1
        assert set(client.dismiss_calls[0][1]) == {"admin", "root", "bystander"}

    def test_fresh_approvals_succeed(self):
        client = StubClient()
        checker = make_checker(defaults=["admin"], client=client)
        summary = checker.evaluate(make_context(author="dave"), {"admin": review("admin")})
        assert summary.outcome is CheckOutcome.COMPLETE
        assert client.dismiss_calls == []

    def test_invalidated_is_an_approval_error(self):
        checker = make_checker(defaults=["admin"])
        with pytest.raises(ApprovalError):
            checker.evaluate(make_context(author="dave"), {"admin": review("admin", sha="abc")})

    def test_custom_dismiss_message(self):
        client = StubClient()
        policy = ReviewerPolicy.from_mapping({"alice": ["bob"]}, ["admin"])
        checker = Checker(policy, client, dismiss_message="bot.")
        with pytest.raises(ApprovalsInvalidated):
            checker.evaluate(make_context(author="dave"), {"admin": review("admin", sha="abc")})
        assert client.dismiss_calls[0][2] == "bot."

    def test_missing_default_reviewer_fails_before_staleness(self):
        client = StubClient()
        checker = make_checker(defaults=["admin"], client=client)
        with pytest.raises(MissingReviewer):
            checker.evaluate(make_context(author="dave"), {"someone": review("someone", sha="abc")})
        assert client.dismiss_calls == []


# ---------------------------------------------------------------------------
# check() end to end with a stub client
# ---------------------------------------------------------------------------


class TestCheck:
    def test_fetches_reviews_from_client(self):
        client = StubClient({"bob": review("bob"), "carol": review("carol")})
        checker = make_checker(members=["alice"], client=client)
        assert checker.check(make_context()).outcome is CheckOutcome.INTERNAL_COMPLETE

    def test_no_reviews_from_client(self):
        with pytest.raises(NoReviews):
            make_checker(client=StubClient()).check(make_context())

    def test_idempotent(self):
        client = StubClient({"bob": review("bob"), "carol": review("carol")})
        checker = make_checker(members=["alice"], client=client)
        first = checker.check(make_context())
        second = checker.check(make_context())
        assert first == second

    def test_idempotent_failure(self):
        client = StubClient({"bob": review("bob")})
        checker = make_checker(members=["alice"], client=client)
        for _ in range(2):
            with pytest.raises(MissingReviewer):
                checker.check(make_context())

    def test_api_error_propagates(self):
        class FailingClient(StubClient):
            def list_reviews(self, context):
                raise GitHubAPIError("list reviews", str(context), RuntimeError("502"))

        with pytest.raises(GitHubAPIError, match="list reviews"):
            make_checker(client=FailingClient()).check(make_context())


# ---------------------------------------------------------------------------
# scenarios
# ---------------------------------------------------------------------------


class TestScenarios:
    @pytest.mark.parametrize(
        "author,reviews,succeeds",
        [
            ("foo", {"bar": review("bar")}, False),
            ("foo", {"bar": review("bar"), "baz": review("baz")}, True),
            ("baz", {"foo": review("foo"), "car": review("car", ReviewState.COMMENTED)}, False),
            (
                "bar",
                {"admin": review("admin", ReviewState.COMMENTED), "foo": review("foo", ReviewState.COMMENTED)},
                False,
            ),
        ],
    )
    def test_mapping_scenarios(self, author, reviews, succeeds):
        mapping = {"foo": ["bar", "baz"], "baz": ["foo", "car"], "bar": ["admin", "foo"]}
        checker = make_checker(mapping=mapping, members=["foo", "bar", "baz"])
        if succeeds:
            assert checker.evaluate(make_context(author=author), reviews).internal is True
        else:
            with pytest.raises(ApprovalError):
                checker.evaluate(make_context(author=author), reviews)
