"""Typed records decoded from Bitbucket API responses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from branchsweep.errors import ParseError


def _require_str(data: dict[str, Any], key: str, kind: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise ParseError(f"{kind} record has no valid {key!r}: {value!r}")
    return value


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    return value if isinstance(value, str) else None


@dataclass(frozen=True)
class Repository:
    """A repository within a workspace."""

    slug: str
    name: str | None = None
    full_name: str | None = None

    @classmethod
    def from_api(cls, data: Any) -> Repository:
        if not isinstance(data, dict):
            raise ParseError(f"Repository record is not an object: {data!r}")
        return cls(
            slug=_require_str(data, "slug", "Repository"),
            name=_optional_str(data, "name"),
            full_name=_optional_str(data, "full_name"),
        )


@dataclass(frozen=True)
class Commit:
    """The commit a branch points at.

    The date is kept as the raw API string; it is parsed at evaluation time so
    one bad timestamp cannot fail a whole listing.
    """

    hash: str | None
    date: Any

    @classmethod
    def from_api(cls, data: Any) -> Commit:
        if not isinstance(data, dict):
            raise ParseError(f"Commit record is not an object: {data!r}")
        return cls(hash=_optional_str(data, "hash"), date=data.get("date"))


@dataclass(frozen=True)
class Branch:
    """A branch within a repository."""

    name: str
    target: Commit | None = None

    @classmethod
    def from_api(cls, data: Any) -> Branch:
        if not isinstance(data, dict):
            raise ParseError(f"Branch record is not an object: {data!r}")
        name = _require_str(data, "name", "Branch")
        target = data.get("target")
        return cls(
            name=name,
            target=Commit.from_api(target) if isinstance(target, dict) else None,
        )
