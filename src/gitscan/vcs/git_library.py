"""Status provider backed by GitPython with the pure-Python object database."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from git import Repo
from git.db import GitDB
from git.exc import GitError, InvalidGitRepositoryError, NoSuchPathError

from gitscan.vcs.base import CLEAN_STATUS, RepoStatus

if TYPE_CHECKING:
    from git.objects import Commit

logger = structlog.get_logger(__name__)


def open_repository(path: str | Path) -> Repo:
    """Open ``path`` with ``GitDB`` so commit objects are read without spawning git."""
    return Repo(Path(path), odbt=GitDB)


def _is_reachable(target_sha: str, tip: Commit) -> bool:
    """Return ``True`` if ``target_sha`` is ``tip`` or one of its ancestors.

    Walks parents breadth-first from the object store and stops at the first hit.
    """
    if tip.hexsha == target_sha:
        return True
    return any(commit.hexsha == target_sha for commit in tip.traverse())


def unpushed_for(repo: Repo) -> bool:
    """Apply the shared unpushed policy to an open repository.

    Detached HEAD is never unpushed. A branch with no usable upstream (unborn,
    untracked, or tracking a ref that no longer exists) always is. Otherwise the
    branch is unpushed unless HEAD is reachable from its upstream.
    """
    head = repo.head
    if head.is_detached:
        return False
    if not head.is_valid():
        return True

    tracking = repo.active_branch.tracking_branch()
    if tracking is None or not tracking.is_valid():
        return True

    head_commit = head.commit
    upstream_commit = tracking.commit
    if head_commit.hexsha == upstream_commit.hexsha:
        return False
    return not _is_reachable(head_commit.hexsha, upstream_commit)


class LibraryStatusProvider:
    """Query checkouts in process through ``git.Repo``.

    Uncommitted detection goes through ``Repo.is_dirty`` which still delegates
    to the git executable for the index comparison.
    """

    def is_repository(self, path: str | Path) -> bool:
        try:
            with open_repository(path):
                return True
        except (InvalidGitRepositoryError, NoSuchPathError):
            return False
        except (GitError, OSError, ValueError) as exc:
            logger.debug("git_open_failed", path=str(path), error=str(exc))
            return False

    def get_status(self, path: str | Path, *, check_unpushed: bool) -> RepoStatus:
        repo_path = Path(path)
        try:
            with open_repository(repo_path) as repo:
                has_uncommitted = repo.is_dirty(untracked_files=True)
                has_unpushed = unpushed_for(repo) if check_unpushed else False
        except (InvalidGitRepositoryError, NoSuchPathError):
            return CLEAN_STATUS
        except (GitError, OSError, ValueError, TypeError) as exc:
            logger.debug("git_status_failed", path=str(repo_path), error=str(exc))
            return CLEAN_STATUS
        return RepoStatus(has_uncommitted=has_uncommitted, has_unpushed=has_unpushed)


__all__ = ["LibraryStatusProvider", "open_repository", "unpushed_for"]
