"""Protected branch names exempt from deletion."""

from __future__ import annotations

from collections.abc import Iterable

DEFAULT_PROTECTED_BRANCHES = frozenset({"main", "master", "develop"})


class ProtectedBranchGuard:
    """Exact, case-sensitive match against a set of protected branch names."""

    def __init__(self, names: Iterable[str] = DEFAULT_PROTECTED_BRANCHES) -> None:
        self.names = frozenset(names)

    def is_protected(self, branch_name: str) -> bool:
        return branch_name in self.names
