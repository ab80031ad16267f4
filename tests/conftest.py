"""Shared fixtures: isolated git environment and checkout builders."""

from __future__ import annotations

import os
import shutil
import subprocess
from dataclasses import dataclass
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path


def write_file(path: Path, contents: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(contents, encoding="utf-8")
    return path


def go_mod(module: str, *, requires: tuple[str, ...] = (), replaces: int = 0) -> str:
    lines = [f"module {module}", "", "go 1.22", ""]
    if requires:
        lines.append("require (")
        lines.extend(f"\t{dependency} v0.0.0" for dependency in requires)
        lines.append(")")
    for index in range(replaces):
        lines.append(f"replace example.com/r{index} => ../r{index}")
    return "\n".join(lines) + "\n"


@dataclass(frozen=True, slots=True)
class GitSandbox:
    """Builds real git repositories under an isolated HOME."""

    root: Path

    def run(self, cwd: Path, *args: str) -> str:
        completed = subprocess.run(
            ["git", *args],
            cwd=cwd,
            env=os.environ.copy(),
            text=True,
            capture_output=True,
            check=False,
        )
        if completed.returncode != 0:
            msg = (
                f"git command failed: git {' '.join(args)}\n"
                f"stdout:\n{completed.stdout}\nstderr:\n{completed.stderr}"
            )
            raise AssertionError(msg)
        return completed.stdout

    def init(self, path: Path, *, files: Mapping[str, str] | None = None) -> Path:
        """Create a repository on ``main`` with one commit holding ``files``."""
        path.mkdir(parents=True, exist_ok=True)
        self.run(path, "-c", "init.defaultBranch=main", "init", "--quiet")
        for relative, contents in (files or {"README.md": "seed\n"}).items():
            write_file(path / relative, contents)
        self.run(path, "add", "--all")
        self.run(path, "commit", "--quiet", "-m", "initial")
        return path

    def commit(self, path: Path, relative: str, contents: str, message: str = "update") -> str:
        write_file(path / relative, contents)
        self.run(path, "add", "--all")
        self.run(path, "commit", "--quiet", "-m", message)
        return self.run(path, "rev-parse", "HEAD").strip()

    def publish(self, path: Path) -> Path:
        """Push ``main`` to a fresh bare remote and set it as upstream."""
        remote = self.root / "remotes" / f"{path.name}.git"
        remote.parent.mkdir(parents=True, exist_ok=True)
        self.run(self.root, "-c", "init.defaultBranch=main", "init", "--quiet", "--bare", str(remote))
        self.run(path, "remote", "add", "origin", str(remote))
        self.run(path, "push", "--quiet", "-u", "origin", "main")
        return remote


@pytest.fixture
def isolated_git_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    home = tmp_path / "home"
    xdg = tmp_path / "xdg"
    home.mkdir()
    xdg.mkdir()

    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(xdg))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_TERMINAL_PROMPT", "0")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "gitscan tests")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "tests@example.invalid")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "gitscan tests")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "tests@example.invalid")


@pytest.fixture
def git_sandbox(tmp_path: Path, isolated_git_env: None) -> GitSandbox:
    if shutil.which("git") is None:
        pytest.skip("git executable not available")
    root = tmp_path / "sandbox"
    root.mkdir()
    return GitSandbox(root=root)
