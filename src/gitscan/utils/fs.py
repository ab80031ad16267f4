"""
gitscan - filesystem utilities

File: src/gitscan/utils/fs.py

Purpose
- Provide the read-only directory walks the scanner runs inside each checkout.

Functional requirements
- Walks never follow symlinked directories and never raise on unreadable subtrees.
- Pruned directory names are matched by exact name at any depth.
- Results are deterministic: directories are visited in sorted order.

Non-functional requirements
- Standard library only and cross-platform behavior where feasible.
"""

from __future__ import annotations

import os
from datetime import UTC, datetime
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Iterator

PathLike = str | os.PathLike[str]

__all__ = [
    "find_files",
    "is_hidden",
    "latest_modification_time",
    "resolve_directory",
    "walk_sorted",
]


def is_hidden(name: str) -> bool:
    return name.startswith(".")


def resolve_directory(path: PathLike) -> Path:
    """Expand ``~``, make ``path`` absolute, and require an existing directory."""
    candidate = Path(os.fspath(path)).expanduser()
    resolved = candidate.resolve()
    if not resolved.exists():
        raise FileNotFoundError(f"directory does not exist: {candidate}")
    if not resolved.is_dir():
        raise NotADirectoryError(f"not a directory: {candidate}")
    return resolved


def walk_sorted(
    root: PathLike,
    *,
    prune: Callable[[str], bool],
) -> Iterator[tuple[Path, list[str]]]:
    """Yield ``(directory, file_names)`` top-down with sorted traversal.

    ``prune`` receives a sub-directory name and returns ``True`` to skip it.
    Unreadable directories are skipped silently.
    """
    for dirpath, dirnames, filenames in os.walk(os.fspath(root), onerror=None, followlinks=False):
        dirnames[:] = sorted(name for name in dirnames if not prune(name))
        yield Path(dirpath), sorted(filenames)


def latest_modification_time(
    root: PathLike,
    *,
    skip_dir_names: Collection[str],
) -> datetime | None:
    """Return the newest file mtime under ``root`` as a UTC datetime.

    Directories named in ``skip_dir_names`` are not descended into. Returns
    ``None`` when no file could be stat'ed.
    """
    latest: float | None = None
    for directory, filenames in walk_sorted(root, prune=lambda name: name in skip_dir_names):
        for filename in filenames:
            try:
                mtime = (directory / filename).lstat().st_mtime
            except OSError:
                continue
            if latest is None or mtime > latest:
                latest = mtime
    if latest is None:
        return None
    return datetime.fromtimestamp(latest, tz=UTC)


def find_files(
    root: PathLike,
    filename: str,
    *,
    skip_dir_names: Collection[str],
    skip_hidden: bool = True,
    include_root: bool = False,
) -> tuple[PurePosixPath, ...]:
    """Return ``root``-relative POSIX paths of every file named ``filename``.

    The file directly inside ``root`` is only reported when ``include_root``
    is set. Paths come back in sorted walk order.
    """

    def prune(name: str) -> bool:
        return name in skip_dir_names or (skip_hidden and is_hidden(name))

    root_path = Path(os.fspath(root))
    matches: list[PurePosixPath] = []
    for directory, filenames in walk_sorted(root_path, prune=prune):
        if filename not in filenames:
            continue
        relative = (directory / filename).relative_to(root_path)
        if not include_root and len(relative.parts) == 1:
            continue
        matches.append(PurePosixPath(*relative.parts))
    return tuple(matches)
