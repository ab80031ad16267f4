"""Enumerate candidate checkouts directly below a scan root."""

from __future__ import annotations

import os

from gitscan.utils.fs import PathLike, is_hidden


class ScanError(RuntimeError):
    """Raised when a scan cannot proceed at all."""


def list_checkouts(root: PathLike) -> tuple[str, ...]:
    """Return sorted names of the non-hidden immediate subdirectories of ``root``.

    Symlinks to directories are not followed.
    """
    try:
        with os.scandir(os.fspath(root)) as entries:
            names = [
                entry.name
                for entry in entries
                if not is_hidden(entry.name) and entry.is_dir(follow_symlinks=False)
            ]
    except OSError as exc:
        raise ScanError(f"cannot list {os.fspath(root)}: {exc.strerror or exc}") from exc
    return tuple(sorted(names))


def count_checkouts(root: PathLike) -> int:
    return len(list_checkouts(root))


__all__ = ["ScanError", "count_checkouts", "list_checkouts"]
