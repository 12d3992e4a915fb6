"""Branchsweep - Stale branch finder and cleaner for Bitbucket workspaces."""

from branchsweep.bitbucket_api import BitbucketClient
from branchsweep.errors import (
    ApiError,
    ConfigError,
    ParseError,
    SweepError,
    TransportError,
)
from branchsweep.guard import ProtectedBranchGuard
from branchsweep.models import Branch, Commit, Repository
from branchsweep.staleness import StalenessEvaluator, StalenessResult
from branchsweep.sweeper import BranchSweeper, StaleBranch, SweepReport

__all__ = [
    "BitbucketClient",
    "SweepError",
    "ConfigError",
    "TransportError",
    "ApiError",
    "ParseError",
    "Repository",
    "Branch",
    "Commit",
    "StalenessEvaluator",
    "StalenessResult",
    "ProtectedBranchGuard",
    "BranchSweeper",
    "StaleBranch",
    "SweepReport",
]
