"""
gitscan - tests for the git executable status backend

File: tests/unit/vcs/test_git_cli.py

Purpose
- Validate porcelain branch-header parsing and the unpushed policy.
- Exercise CLIStatusProvider against real temporary repositories.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from gitscan.vcs import create_status_provider
from gitscan.vcs.base import CLEAN_STATUS, RepoStatus
from gitscan.vcs.git_cli import (
    BranchHeader,
    CLIStatusProvider,
    header_has_unpushed,
    parse_branch_header,
    status_args,
)

if TYPE_CHECKING:
    from conftest import GitSandbox


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("## main", BranchHeader(branch="main", upstream=None)),
        ("## main...origin/main", BranchHeader(branch="main", upstream="origin/main")),
        (
            "## main...origin/main [ahead 2, behind 1]",
            BranchHeader(branch="main", upstream="origin/main", ahead=2, behind=1),
        ),
        (
            "## feature/x...origin/feature/x [behind 3]",
            BranchHeader(branch="feature/x", upstream="origin/feature/x", behind=3),
        ),
        (
            "## main...origin/main [gone]",
            BranchHeader(branch="main", upstream="origin/main", upstream_gone=True),
        ),
        ("## HEAD (no branch)", BranchHeader(branch="HEAD", upstream=None, detached=True)),
        ("## No commits yet on main", BranchHeader(branch="main", upstream=None, unborn=True)),
        ("## Initial commit on main", BranchHeader(branch="main", upstream=None, unborn=True)),
    ],
)
def test_parse_branch_header(line: str, expected: BranchHeader) -> None:
    assert parse_branch_header(line) == expected


@pytest.mark.parametrize(
    ("line", "unpushed"),
    [
        ("## main", True),
        ("## main...origin/main", False),
        ("## main...origin/main [ahead 1]", True),
        ("## main...origin/main [behind 4]", False),
        ("## main...origin/main [gone]", True),
        ("## HEAD (no branch)", False),
        ("## No commits yet on main", True),
    ],
)
def test_header_has_unpushed_policy(line: str, unpushed: bool) -> None:
    assert header_has_unpushed(parse_branch_header(line)) is unpushed


def test_porcelain_entries_mark_uncommitted_changes() -> None:
    output = "## main...origin/main\n?? new.txt\n M tracked.txt\n"
    status = CLIStatusProvider._status_from_porcelain(output, check_unpushed=True)
    assert status == RepoStatus(has_uncommitted=True, has_unpushed=False)


def test_unpushed_is_not_computed_unless_requested() -> None:
    output = "## main...origin/main [ahead 3]\n"
    status = CLIStatusProvider._status_from_porcelain(output, check_unpushed=False)
    assert status == CLEAN_STATUS


def test_non_repository_is_clean(tmp_path: Path) -> None:
    provider = CLIStatusProvider()
    assert not provider.is_repository(tmp_path)
    assert provider.get_status(tmp_path, check_unpushed=True) == CLEAN_STATUS


def test_missing_git_executable_degrades_to_clean(tmp_path: Path) -> None:
    (tmp_path / ".git").mkdir()
    provider = CLIStatusProvider(git_executable="gitscan-no-such-git")
    assert provider.get_status(tmp_path, check_unpushed=True) == CLEAN_STATUS


def test_create_status_provider_rejects_unknown_backend() -> None:
    assert isinstance(create_status_provider("cli"), CLIStatusProvider)
    with pytest.raises(ValueError, match="unknown status backend"):
        create_status_provider("svn")


def test_clean_published_repository(git_sandbox: GitSandbox) -> None:
    repo = git_sandbox.init(git_sandbox.root / "clean")
    git_sandbox.publish(repo)

    status = CLIStatusProvider().get_status(repo, check_unpushed=True)

    assert status == RepoStatus(has_uncommitted=False, has_unpushed=False)


def test_untracked_file_counts_as_uncommitted(git_sandbox: GitSandbox) -> None:
    repo = git_sandbox.init(git_sandbox.root / "dirty")
    git_sandbox.publish(repo)
    (repo / "scratch.txt").write_text("x", encoding="utf-8")

    status = CLIStatusProvider().get_status(repo, check_unpushed=True)

    assert status.has_uncommitted
    assert not status.has_unpushed


def test_local_commit_ahead_of_upstream_is_unpushed(git_sandbox: GitSandbox) -> None:
    repo = git_sandbox.init(git_sandbox.root / "ahead")
    git_sandbox.publish(repo)
    git_sandbox.commit(repo, "change.txt", "local\n")

    status = CLIStatusProvider().get_status(repo, check_unpushed=True)

    assert status == RepoStatus(has_uncommitted=False, has_unpushed=True)


def test_branch_without_upstream_is_unpushed(git_sandbox: GitSandbox) -> None:
    repo = git_sandbox.init(git_sandbox.root / "local-only")

    assert CLIStatusProvider().get_status(repo, check_unpushed=True).has_unpushed


def test_detached_head_is_never_unpushed(git_sandbox: GitSandbox) -> None:
    repo = git_sandbox.init(git_sandbox.root / "detached")
    git_sandbox.run(repo, "checkout", "--quiet", "--detach", "HEAD")

    assert not CLIStatusProvider().get_status(repo, check_unpushed=True).has_unpushed


def _recording_git(tmp_path: Path) -> tuple[Path, Path]:
    log = tmp_path / "argv.log"
    script = tmp_path / "fake-git"
    script.write_text(
        "#!/bin/sh\n"
        f"printf '%s\\n' \"$@\" > '{log}'\n"
        "printf '?? new.txt\\n'\n",
        encoding="utf-8",
    )
    script.chmod(0o755)
    return script, log


@pytest.mark.skipif(os.name == "nt", reason="requires a POSIX shell")
@pytest.mark.parametrize(
    ("check_unpushed", "expected"),
    [
        (False, ["status", "--porcelain"]),
        (True, ["status", "--porcelain", "-b"]),
    ],
)
def test_branch_header_is_requested_only_for_unpushed_checks(
    tmp_path: Path, check_unpushed: bool, expected: list[str]
) -> None:
    repo = tmp_path / "repo"
    (repo / ".git").mkdir(parents=True)
    script, log = _recording_git(tmp_path)

    status = CLIStatusProvider(git_executable=str(script)).get_status(
        repo, check_unpushed=check_unpushed
    )

    argv = log.read_text(encoding="utf-8").splitlines()
    assert argv == ["-C", str(repo), *expected]
    assert status == RepoStatus(has_uncommitted=True, has_unpushed=False)
    assert status_args(check_unpushed=check_unpushed) == tuple(expected)
