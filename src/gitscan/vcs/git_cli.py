"""Status provider backed by the ``git`` executable."""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from gitscan.constants import GIT_DIR_NAME
from gitscan.vcs.base import CLEAN_STATUS, RepoStatus, StatusError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

logger = structlog.get_logger(__name__)

_HEADER_PREFIX = "## "
_DETACHED_MARKER = "HEAD (no branch)"
_UNBORN_PREFIXES = ("No commits yet on ", "Initial commit on ")


class GitCommandError(StatusError):
    """Raised when a git subprocess command exits non-zero."""

    def __init__(
        self,
        *,
        command: Sequence[str],
        returncode: int,
        stdout: str,
        stderr: str,
    ) -> None:
        self.command = tuple(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        message = f"git command failed ({returncode}): {' '.join(command)}"
        if stderr.strip():
            message = f"{message}: {stderr.strip()}"
        super().__init__(message)


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Normalized subprocess result."""

    command: tuple[str, ...]
    cwd: str
    returncode: int
    stdout: str
    stderr: str


@dataclass(frozen=True, slots=True)
class BranchHeader:
    """Parsed ``## ...`` line of ``git status --porcelain -b``."""

    branch: str
    upstream: str | None
    ahead: int = 0
    behind: int = 0
    detached: bool = False
    unborn: bool = False
    upstream_gone: bool = False


def parse_branch_header(line: str) -> BranchHeader:
    """Parse the branch header emitted by ``git status --porcelain -b``.

    Recognized shapes::

        ## main
        ## main...origin/main
        ## main...origin/main [ahead 2, behind 1]
        ## main...origin/main [gone]
        ## HEAD (no branch)
        ## No commits yet on main
    """
    body = line[len(_HEADER_PREFIX) :] if line.startswith(_HEADER_PREFIX) else line
    body = body.strip()

    if body == _DETACHED_MARKER:
        return BranchHeader(branch="HEAD", upstream=None, detached=True)
    for prefix in _UNBORN_PREFIXES:
        if body.startswith(prefix):
            branch, _, upstream = body[len(prefix) :].partition("...")
            return BranchHeader(branch=branch, upstream=upstream or None, unborn=True)

    tracking = ""
    if body.endswith("]") and " [" in body:
        body, _, tracking = body.rpartition(" [")
        tracking = tracking[:-1]

    branch, sep, upstream = body.partition("...")
    if not sep:
        return BranchHeader(branch=branch, upstream=None)

    ahead = behind = 0
    gone = False
    for part in tracking.split(","):
        token = part.strip()
        if token == "gone":
            gone = True
        elif token.startswith("ahead "):
            ahead = int(token[len("ahead ") :])
        elif token.startswith("behind "):
            behind = int(token[len("behind ") :])
    return BranchHeader(
        branch=branch,
        upstream=upstream,
        ahead=ahead,
        behind=behind,
        upstream_gone=gone,
    )


def status_args(*, check_unpushed: bool) -> tuple[str, ...]:
    """Arguments for ``git status``; the branch header costs an upstream lookup."""
    if check_unpushed:
        return ("status", "--porcelain", "-b")
    return ("status", "--porcelain")


def header_has_unpushed(header: BranchHeader) -> bool:
    if header.detached:
        return False
    if header.unborn or header.upstream is None or header.upstream_gone:
        return True
    return header.ahead > 0


class CLIStatusProvider:
    """Query checkouts by running ``git status --porcelain``.

    ``-b`` is added only when unpushed state is requested.
    """

    def __init__(
        self,
        *,
        git_executable: str = "git",
        env_overrides: Mapping[str, str] | None = None,
    ) -> None:
        self._git = git_executable
        self._env_overrides = dict(env_overrides or {})

    def is_repository(self, path: str | Path) -> bool:
        return (Path(path) / GIT_DIR_NAME).exists()

    def get_status(self, path: str | Path, *, check_unpushed: bool) -> RepoStatus:
        repo_path = Path(path)
        if not self.is_repository(repo_path):
            return CLEAN_STATUS
        try:
            result = self._run_git(status_args(check_unpushed=check_unpushed), cwd=repo_path)
        except (OSError, StatusError) as exc:
            logger.debug("git_status_failed", path=str(repo_path), error=str(exc))
            return CLEAN_STATUS
        return self._status_from_porcelain(result.stdout, check_unpushed=check_unpushed)

    @staticmethod
    def _status_from_porcelain(output: str, *, check_unpushed: bool) -> RepoStatus:
        header: BranchHeader | None = None
        has_uncommitted = False
        for line in output.splitlines():
            if not line:
                continue
            if line.startswith(_HEADER_PREFIX) and header is None:
                header = parse_branch_header(line)
                continue
            has_uncommitted = True

        has_unpushed = False
        if check_unpushed and header is not None:
            has_unpushed = header_has_unpushed(header)
        return RepoStatus(has_uncommitted=has_uncommitted, has_unpushed=has_unpushed)

    def _run_git(
        self,
        args: Sequence[str],
        *,
        cwd: Path,
        check: bool = True,
    ) -> CommandResult:
        command = (self._git, "-C", str(cwd), *args)
        env = os.environ.copy()
        env["GIT_TERMINAL_PROMPT"] = "0"
        env.setdefault("GIT_CONFIG_NOSYSTEM", "1")
        env.setdefault("GIT_OPTIONAL_LOCKS", "0")
        env.update(self._env_overrides)

        completed = subprocess.run(
            command,
            env=env,
            text=True,
            capture_output=True,
            check=False,
        )

        result = CommandResult(
            command=command,
            cwd=cwd.as_posix(),
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )

        if check and result.returncode != 0:
            raise GitCommandError(
                command=result.command,
                returncode=result.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
            )

        return result


__all__ = [
    "BranchHeader",
    "CLIStatusProvider",
    "CommandResult",
    "GitCommandError",
    "header_has_unpushed",
    "parse_branch_header",
    "status_args",
]
