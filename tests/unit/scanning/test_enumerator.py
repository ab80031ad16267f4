"""Unit tests for checkout enumeration."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from gitscan.scanning.enumerator import ScanError, count_checkouts, list_checkouts

if TYPE_CHECKING:
    from pathlib import Path


def test_list_checkouts_returns_sorted_visible_directories(tmp_path: Path) -> None:
    for name in ("zeta", "alpha", ".hidden", "mid"):
        (tmp_path / name).mkdir()
    (tmp_path / "notes.txt").write_text("x", encoding="utf-8")

    assert list_checkouts(tmp_path) == ("alpha", "mid", "zeta")
    assert count_checkouts(tmp_path) == 3


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
def test_list_checkouts_does_not_follow_directory_symlinks(tmp_path: Path) -> None:
    target = tmp_path / "real"
    target.mkdir()
    try:
        (tmp_path / "link").symlink_to(target, target_is_directory=True)
    except OSError:
        pytest.skip("cannot create symlinks here")

    assert list_checkouts(tmp_path) == ("real",)


def test_list_checkouts_of_missing_root_raises_scan_error(tmp_path: Path) -> None:
    with pytest.raises(ScanError, match="cannot list"):
        list_checkouts(tmp_path / "missing")


def test_list_checkouts_of_empty_root_is_empty(tmp_path: Path) -> None:
    assert list_checkouts(tmp_path) == ()
