"""Walk a workspace's repositories and branches, reporting and deleting stale branches."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from datetime import datetime
from typing import IO, Literal

from branchsweep.bitbucket_api import BitbucketClient
from branchsweep.dates import now_utc
from branchsweep.errors import ApiError, ParseError, TransportError
from branchsweep.guard import ProtectedBranchGuard
from branchsweep.staleness import StalenessEvaluator, StalenessResult

Action = Literal["reported", "deleted", "failed", "protected"]

FETCH_ERRORS = (ApiError, TransportError, ParseError)


@dataclass
class StaleBranch:
    """A stale branch and what was done about it."""

    repo_slug: str
    branch_name: str
    result: StalenessResult
    action: Action = "reported"
    error: str | None = None


@dataclass
class SweepReport:
    """Outcome of a sweep over one workspace."""

    workspace: str
    repos_checked: list[str] = field(default_factory=list)
    skipped_repos: list[str] = field(default_factory=list)
    stale: list[StaleBranch] = field(default_factory=list)
    fatal_error: str | None = None

    @property
    def ok(self) -> bool:
        return self.fatal_error is None

    @property
    def deleted(self) -> list[StaleBranch]:
        return [s for s in self.stale if s.action == "deleted"]

    @property
    def failed(self) -> list[StaleBranch]:
        return [s for s in self.stale if s.action == "failed"]

    @property
    def protected(self) -> list[StaleBranch]:
        return [s for s in self.stale if s.action == "protected"]


class BranchSweeper:
    """Sequentially scan repositories, then branches, then act on stale ones.

    A failed repository listing ends the run. A failed branch listing or
    delete only affects that repository or branch.
    """

    def __init__(
        self,
        client: BitbucketClient,
        evaluator: StalenessEvaluator,
        guard: ProtectedBranchGuard,
        *,
        delete: bool = False,
        out: IO[str] | None = None,
        err: IO[str] | None = None,
    ) -> None:
        self.client = client
        self.evaluator = evaluator
        self.guard = guard
        self.delete = delete
        self.out = out
        self.err = err

    def _print(self, message: str) -> None:
        print(message, file=self.out or sys.stdout)

    def _error(self, message: str) -> None:
        print(message, file=self.err or sys.stderr)

    def run(self, workspace: str, now: datetime | None = None) -> SweepReport:
        """Sweep every repository in the workspace."""
        if now is None:
            now = now_utc()

        report = SweepReport(workspace=workspace)

        try:
            repos = self.client.list_repositories(workspace)
        except FETCH_ERRORS as e:
            report.fatal_error = str(e)
            self._error(f"Error fetching repositories: {e}")
            return report

        for repo in repos:
            self._print(f"Checking branches for repository: {repo.slug}")

            try:
                branches = self.client.list_branches(workspace, repo.slug)
            except FETCH_ERRORS as e:
                report.skipped_repos.append(repo.slug)
                self._error(f"Error fetching branches for repo {repo.slug}: {e}")
                continue

            report.repos_checked.append(repo.slug)

            for branch in branches:
                result = self.evaluator.evaluate(branch, now)
                if not result.is_stale:
                    continue

                self._print(
                    f"Stale branch found: {branch.name} in repo {repo.slug}, "
                    f"non-interacted for approximate {result.format_days()} days"
                )
                finding = StaleBranch(
                    repo_slug=repo.slug, branch_name=branch.name, result=result
                )
                report.stale.append(finding)

                if self.delete:
                    self._delete(workspace, finding)

        return report

    def _delete(self, workspace: str, finding: StaleBranch) -> None:
        if self.guard.is_protected(finding.branch_name):
            finding.action = "protected"
            self._print(
                f"Branch {finding.branch_name} is protected and cannot be deleted."
            )
            return

        try:
            self.client.delete_branch(workspace, finding.repo_slug, finding.branch_name)
        except (ApiError, TransportError) as e:
            finding.action = "failed"
            finding.error = str(e)
            self._error(f"Error deleting branch {finding.branch_name}: {e}")
            return

        finding.action = "deleted"
        self._print(
            f"Branch {finding.branch_name} deleted in repository {finding.repo_slug}"
        )
