"""Date utilities."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from branchsweep.errors import ParseError

DAY = timedelta(days=1)


def parse_timestamp(s: object) -> datetime:
    """Parse an RFC 3339 timestamp with an explicit UTC offset.

    Raises:
        ParseError: If the value is not a string, is malformed, or has no offset.
    """
    if not isinstance(s, str) or not s:
        raise ParseError(f"Expected a timestamp string, got {s!r}")

    try:
        parsed = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError as e:
        raise ParseError(f"Cannot parse timestamp: {s!r}") from e

    if parsed.tzinfo is None:
        raise ParseError(f"Timestamp has no UTC offset: {s!r}")

    return parsed


def now_utc() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(UTC)


def to_days(delta: timedelta) -> float:
    """Return a duration as a fractional number of days."""
    return delta / DAY
