"""
gitscan - CLI subprocess smoke contracts

File: tests/integration/test_cli_smoke.py

Purpose
- Run `python -m gitscan` against real git checkouts and a bare remote.
- Verify exit codes, report lines, and the JSON payload shape end to end.
"""

from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from conftest import go_mod, write_file

from gitscan import __version__

if TYPE_CHECKING:
    from conftest import GitSandbox

PROJECT_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = PROJECT_ROOT / "src"

pytestmark = pytest.mark.git


def _run_cli(cwd: Path, *args: str) -> subprocess.CompletedProcess[str]:
    env = {key: value for key, value in os.environ.items() if not key.startswith("GITSCAN_")}
    existing_pythonpath = env.get("PYTHONPATH")
    src_pythonpath = str(SRC_PATH)
    env["PYTHONPATH"] = (
        src_pythonpath if not existing_pythonpath else f"{src_pythonpath}:{existing_pythonpath}"
    )
    env["NO_COLOR"] = "1"
    return subprocess.run(
        [sys.executable, "-m", "gitscan", *args],
        cwd=cwd,
        text=True,
        capture_output=True,
        check=False,
        env=env,
    )


@pytest.fixture
def workspace(git_sandbox: GitSandbox) -> Path:
    """Three checkouts: a pushed library, a dirty unpushed app, and a plain directory."""
    src = git_sandbox.root / "src"

    lib = git_sandbox.init(src / "lib", files={"go.mod": go_mod("example.com/lib")})
    git_sandbox.publish(lib)

    app = git_sandbox.init(
        src / "app",
        files={"go.mod": go_mod("example.com/app", requires=("example.com/lib",))},
    )
    git_sandbox.publish(app)
    git_sandbox.commit(app, "main.go", "package main\n")
    write_file(app / "notes.txt", "scratch\n")

    write_file(src / "tool" / "go.mod", go_mod("example.com/tool"))
    return src


def test_version_flag(tmp_path: Path) -> None:
    completed = _run_cli(tmp_path, "--version")

    assert completed.returncode == 0
    assert completed.stdout.strip() == f"gitscan {__version__}"


def test_scan_json_reports_git_state(workspace: Path) -> None:
    completed = _run_cli(workspace.parent, "scan", str(workspace), "--format", "json", "--show-clean")

    assert completed.returncode == 0, completed.stderr
    payload = json.loads(completed.stdout)
    repos = {repo["name"]: repo for repo in payload["repos"]}
    assert sorted(repos) == ["app", "lib", "tool"]
    assert repos["app"]["issues"] == ["uncommitted"]
    assert repos["app"]["internal_dependencies"] == ["lib"]
    assert repos["lib"]["issues"] == []
    assert repos["tool"]["issues"] == ["no-git"]
    assert payload["summary"]["uncommitted"] == 1


def test_scan_list_shows_unpushed_tag_when_enabled(workspace: Path) -> None:
    config = workspace.parent / "gitscan.toml"
    config.write_text("[scan]\ncheck_unpushed = true\n", encoding="utf-8")

    completed = _run_cli(workspace.parent, "scan", str(workspace))

    assert completed.returncode == 0, completed.stderr
    lines = [line.rstrip() for line in completed.stdout.splitlines()]
    assert "  1. app   [uncommitted, unpushed] (depends on: lib)" in lines
    assert "  - Uncommitted changes: 1" in lines


def test_since_unpushed_filters_to_checkouts_needing_a_push(workspace: Path) -> None:
    completed = _run_cli(workspace.parent, "since", "1d", str(workspace), "--unpushed")

    assert completed.returncode == 0, completed.stderr
    assert "  1. app" in completed.stdout
    assert "  2." not in completed.stdout
    assert "Summary: 3 repos scanned, 3 modified within 1d, 1 with unpushed changes" in completed.stdout


@pytest.mark.parametrize("backend", ["cli", "library"])
def test_order_unpushed_agrees_across_backends(workspace: Path, backend: str) -> None:
    completed = _run_cli(
        workspace.parent, "order", "--dir", str(workspace), "--unpushed", "--backend", backend
    )

    assert completed.returncode == 0, completed.stderr
    assert "Filtered to 1 repos with unpushed changes" in completed.stdout
    assert "Total: 1 repos in dependency order" in completed.stdout


def test_exit_codes_for_bad_input(tmp_path: Path) -> None:
    bad_duration = _run_cli(tmp_path, "since", "5x", str(tmp_path))
    missing_dir = _run_cli(tmp_path, "scan", str(tmp_path / "absent"))
    bad_flag = _run_cli(tmp_path, "order", "--bogus")

    assert bad_duration.returncode == 1
    assert "invalid duration" in bad_duration.stderr
    assert missing_dir.returncode == 2
    assert bad_flag.returncode == 1
