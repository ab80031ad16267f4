"""Version-control status capability shared by every backend."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


class StatusError(RuntimeError):
    """Raised inside a backend when a status query cannot be answered.

    Providers catch it at their public boundary and degrade to a clean status.
    """


@dataclass(frozen=True, slots=True)
class RepoStatus:
    """Working-tree health of one checkout."""

    has_uncommitted: bool = False
    has_unpushed: bool = False

    def __iter__(self) -> Iterator[bool]:
        yield self.has_uncommitted
        yield self.has_unpushed


CLEAN_STATUS = RepoStatus()


@runtime_checkable
class StatusProvider(Protocol):
    """Answers "is this a repository" and "is there unshipped work here"."""

    def is_repository(self, path: str | Path) -> bool: ...

    def get_status(self, path: str | Path, *, check_unpushed: bool) -> RepoStatus: ...


__all__ = ["CLEAN_STATUS", "RepoStatus", "StatusError", "StatusProvider"]
