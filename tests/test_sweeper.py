"""Tests for the repository/branch sweep workflow."""

from __future__ import annotations

import io
from datetime import UTC, datetime, timedelta

import pytest

from branchsweep.errors import ApiError, ParseError, TransportError
from branchsweep.guard import ProtectedBranchGuard
from branchsweep.models import Branch, Commit, Repository
from branchsweep.staleness import StalenessEvaluator
from branchsweep.sweeper import BranchSweeper

NOW = datetime(2026, 1, 14, 12, 0, tzinfo=UTC)


def branch(name: str, days_ago: float) -> Branch:
    date = (NOW - timedelta(days=days_ago)).isoformat()
    return Branch(name=name, target=Commit(hash=None, date=date))


class FakeClient:
    """In-memory stand-in for BitbucketClient."""

    def __init__(self, repos, branches, *, repo_error=None, branch_errors=None, delete_errors=None):
        self.repos = repos
        self.branches = branches
        self.repo_error = repo_error
        self.branch_errors = branch_errors or {}
        self.delete_errors = delete_errors or {}
        self.calls: list[tuple] = []
        self.deleted: list[tuple[str, str]] = []

    def list_repositories(self, workspace):
        self.calls.append(("list_repositories", workspace))
        if self.repo_error:
            raise self.repo_error
        return [Repository(slug=s) for s in self.repos]

    def list_branches(self, workspace, repo_slug):
        self.calls.append(("list_branches", workspace, repo_slug))
        if repo_slug in self.branch_errors:
            raise self.branch_errors[repo_slug]
        return self.branches.get(repo_slug, [])

    def delete_branch(self, workspace, repo_slug, branch_name):
        self.calls.append(("delete_branch", workspace, repo_slug, branch_name))
        if (repo_slug, branch_name) in self.delete_errors:
            raise self.delete_errors[(repo_slug, branch_name)]
        self.deleted.append((repo_slug, branch_name))


@pytest.fixture
def two_repos():
    return FakeClient(
        ["repo-a", "repo-b"],
        {
            "repo-a": [branch("master", 1), branch("feature-x", 200)],
            "repo-b": [branch("old-stuff", 91)],
        },
    )


def make_sweeper(client, *, delete=False, threshold_days=90, protected=None):
    out, err = io.StringIO(), io.StringIO()
    sweeper = BranchSweeper(
        client,
        StalenessEvaluator(timedelta(days=threshold_days)),
        ProtectedBranchGuard() if protected is None else ProtectedBranchGuard(protected),
        delete=delete,
        out=out,
        err=err,
    )
    return sweeper, out, err


class TestReporting:
    def test_two_repo_scenario(self, two_repos):
        sweeper, out, _ = make_sweeper(two_repos)

        report = sweeper.run("acme", NOW)

        assert report.ok
        assert report.repos_checked == ["repo-a", "repo-b"]
        assert [(s.repo_slug, s.branch_name) for s in report.stale] == [
            ("repo-a", "feature-x"),
            ("repo-b", "old-stuff"),
        ]
        assert all(s.action == "reported" for s in report.stale)
        assert two_repos.deleted == []
        assert not any(c[0] == "delete_branch" for c in two_repos.calls)

        text = out.getvalue()
        assert "Checking branches for repository: repo-a" in text
        assert "Stale branch found: feature-x in repo repo-a, non-interacted for approximate 200 days" in text
        assert "Stale branch found: old-stuff in repo repo-b, non-interacted for approximate 91 days" in text
        assert "master" not in text

    def test_threshold_equality_not_reported(self):
        client = FakeClient(["r"], {"r": [branch("edge", 90)]})
        sweeper, _, _ = make_sweeper(client)

        assert sweeper.run("acme", NOW).stale == []

    def test_malformed_timestamp_not_reported(self):
        client = FakeClient(
            ["r"], {"r": [Branch(name="weird", target=Commit(hash=None, date="yesterday"))]}
        )
        sweeper, _, err = make_sweeper(client)

        report = sweeper.run("acme", NOW)

        assert report.ok
        assert report.stale == []
        assert err.getvalue() == ""


class TestDeletion:
    def test_deletes_stale_unprotected(self, two_repos):
        sweeper, out, _ = make_sweeper(two_repos, delete=True)

        report = sweeper.run("acme", NOW)

        assert two_repos.deleted == [("repo-a", "feature-x"), ("repo-b", "old-stuff")]
        assert [s.action for s in report.stale] == ["deleted", "deleted"]
        assert "Branch feature-x deleted in repository repo-a" in out.getvalue()

    def test_never_deletes_protected(self):
        client = FakeClient(
            ["r"],
            {"r": [branch("main", 400), branch("master", 400), branch("develop", 400), branch("Main", 400)]},
        )
        sweeper, out, _ = make_sweeper(client, delete=True)

        report = sweeper.run("acme", NOW)

        assert client.deleted == [("r", "Main")]
        assert [s.branch_name for s in report.protected] == ["main", "master", "develop"]
        assert "Branch main is protected and cannot be deleted." in out.getvalue()

    def test_custom_protected_set(self):
        client = FakeClient(["r"], {"r": [branch("trunk", 400), branch("master", 400)]})
        sweeper, _, _ = make_sweeper(client, delete=True, protected={"trunk"})

        sweeper.run("acme", NOW)

        assert client.deleted == [("r", "master")]

    def test_delete_failure_is_reported_and_run_continues(self, two_repos):
        two_repos.delete_errors[("repo-a", "feature-x")] = ApiError(
            status_code=403, url="https://api.bitbucket.org/2.0/x", response_text="forbidden"
        )
        sweeper, _, err = make_sweeper(two_repos, delete=True)

        report = sweeper.run("acme", NOW)

        assert report.ok
        assert [s.branch_name for s in report.failed] == ["feature-x"]
        assert "403" in report.failed[0].error
        assert two_repos.deleted == [("repo-b", "old-stuff")]
        assert "Error deleting branch feature-x" in err.getvalue()

    def test_delete_transport_failure(self):
        client = FakeClient(
            ["r"],
            {"r": [branch("gone", 100)]},
            delete_errors={("r", "gone"): TransportError("connection reset")},
        )
        sweeper, _, _ = make_sweeper(client, delete=True)

        report = sweeper.run("acme", NOW)

        assert report.stale[0].action == "failed"
        assert report.stale[0].error == "connection reset"


class TestFailures:
    def test_repo_listing_401_is_fatal(self, two_repos):
        two_repos.repo_error = ApiError(
            status_code=401, url="https://api.bitbucket.org/2.0/repositories/acme"
        )
        sweeper, out, err = make_sweeper(two_repos, delete=True)

        report = sweeper.run("acme", NOW)

        assert not report.ok
        assert "401" in report.fatal_error
        assert report.repos_checked == []
        assert two_repos.calls == [("list_repositories", "acme")]
        assert "Error fetching repositories" in err.getvalue()
        assert out.getvalue() == ""

    @pytest.mark.parametrize(
        "error", [TransportError("dns failure"), ParseError("bad record")]
    )
    def test_repo_listing_other_failures_are_fatal(self, two_repos, error):
        two_repos.repo_error = error
        sweeper, _, _ = make_sweeper(two_repos)

        report = sweeper.run("acme", NOW)

        assert report.fatal_error == str(error)
        assert report.stale == []

    @pytest.mark.parametrize(
        "error",
        [
            ApiError(status_code=404, url="https://api.bitbucket.org/2.0/x"),
            TransportError("timeout"),
            ParseError("branch record has no name"),
        ],
    )
    def test_branch_listing_failure_skips_only_that_repo(self, two_repos, error):
        two_repos.branch_errors["repo-a"] = error
        sweeper, _, err = make_sweeper(two_repos)

        report = sweeper.run("acme", NOW)

        assert report.ok
        assert report.skipped_repos == ["repo-a"]
        assert report.repos_checked == ["repo-b"]
        assert [s.branch_name for s in report.stale] == ["old-stuff"]
        assert "Error fetching branches for repo repo-a" in err.getvalue()

    def test_empty_workspace(self):
        sweeper, _, _ = make_sweeper(FakeClient([], {}))

        report = sweeper.run("acme", NOW)

        assert report.ok
        assert report.repos_checked == []
        assert report.stale == []
