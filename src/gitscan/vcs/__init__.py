"""Version-control status backends."""

from __future__ import annotations

from gitscan.constants import BACKEND_CLI, BACKEND_LIBRARY, STATUS_BACKENDS
from gitscan.vcs.base import CLEAN_STATUS, RepoStatus, StatusError, StatusProvider
from gitscan.vcs.git_cli import CLIStatusProvider


def create_status_provider(backend: str = BACKEND_CLI) -> StatusProvider:
    """Build the status provider registered under ``backend``."""
    normalized = backend.strip().lower()
    if normalized == BACKEND_CLI:
        return CLIStatusProvider()
    if normalized == BACKEND_LIBRARY:
        # GitPython is loaded on demand.
        from gitscan.vcs.git_library import LibraryStatusProvider

        return LibraryStatusProvider()
    raise ValueError(f"unknown status backend {backend!r}; expected one of {STATUS_BACKENDS}")


__all__ = [
    "CLEAN_STATUS",
    "CLIStatusProvider",
    "RepoStatus",
    "StatusError",
    "StatusProvider",
    "create_status_provider",
]
