"""Staleness calculation for branches."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from branchsweep.dates import now_utc, parse_timestamp, to_days
from branchsweep.errors import ParseError
from branchsweep.models import Branch

DEFAULT_THRESHOLD_DAYS = 90
DEFAULT_THRESHOLD = timedelta(days=DEFAULT_THRESHOLD_DAYS)


@dataclass(frozen=True)
class StalenessResult:
    """Result of staleness evaluation for a branch."""

    is_stale: bool
    age: timedelta

    @property
    def age_days(self) -> float:
        return to_days(self.age)

    def format_days(self) -> str:
        return f"{self.age_days:.0f}"


NOT_STALE = StalenessResult(is_stale=False, age=timedelta(0))


class StalenessEvaluator:
    """Decide whether a branch's last commit is older than a threshold."""

    def __init__(self, threshold: timedelta = DEFAULT_THRESHOLD) -> None:
        self.threshold = threshold

    def evaluate(self, branch: Branch, now: datetime | None = None) -> StalenessResult:
        """Evaluate a branch against the threshold.

        A branch whose age equals the threshold is not stale. A missing or
        unparseable commit timestamp yields a not-stale result with zero age.

        Raises:
            ValueError: If ``now`` has no timezone.
        """
        if now is not None and now.tzinfo is None:
            raise ValueError(f"now must be timezone-aware, got {now!r}")

        if branch.target is None:
            return NOT_STALE

        try:
            committed_at = parse_timestamp(branch.target.date)
        except ParseError:
            return NOT_STALE

        if now is None:
            now = now_utc()

        age = now - committed_at
        return StalenessResult(is_stale=age > self.threshold, age=age)
