"""Command-line entry point for listing and deleting stale branches."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from branchsweep.bitbucket_api import BitbucketClient
from branchsweep.config import load_config
from branchsweep.errors import ConfigError
from branchsweep.guard import ProtectedBranchGuard
from branchsweep.staleness import StalenessEvaluator
from branchsweep.sweeper import BranchSweeper, StaleBranch


def format_table(stale: list[StaleBranch]) -> str:
    """Format stale branches as a human-readable table."""
    if not stale:
        return "No stale branches found."

    lines = [
        "| Repository | Branch | Days Stale | Action |",
        "|------------|--------|------------|--------|",
    ]

    for s in stale:
        lines.append(
            f"| {s.repo_slug} | {s.branch_name} | {s.result.format_days()} | {s.action} |"
        )

    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="List stale branches across a Bitbucket workspace, optionally deleting them.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML settings file",
    )
    parser.add_argument(
        "--workspace",
        type=str,
        default=None,
        help="Workspace to sweep (overrides BITBUCKET_WORKSPACE)",
    )
    parser.add_argument(
        "--threshold-days",
        type=float,
        default=None,
        help="Branches whose last commit is older than this many days are stale (90 if unset)",
    )
    parser.add_argument(
        "--delete",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Delete stale branches that are not protected (--no-delete overrides the config file)",
    )
    parser.add_argument(
        "--protect",
        action="append",
        dest="protected_branches",
        metavar="NAME",
        default=None,
        help="Protected branch name; repeat to protect several (replaces main/master/develop)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(
            args.config,
            workspace=args.workspace,
            threshold_days=args.threshold_days,
            protected_branches=args.protected_branches,
            delete=args.delete,
        )
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    with BitbucketClient(config.token, base_url=config.base_url) as client:
        sweeper = BranchSweeper(
            client,
            StalenessEvaluator(config.threshold),
            ProtectedBranchGuard(config.protected_branches),
            delete=config.delete,
        )
        report = sweeper.run(config.workspace)

    if not report.ok:
        return 1

    print("")
    print(format_table(report.stale))
    print(
        f"\n{len(report.stale)} stale branch(es) in {len(report.repos_checked)} "
        f"repositories; {len(report.deleted)} deleted, {len(report.failed)} failed, "
        f"{len(report.protected)} protected, {len(report.skipped_repos)} repositories skipped."
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
