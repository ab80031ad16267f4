"""Utility exports for filesystem walks, durations, and concurrency helpers."""

from gitscan.utils.concurrency import (
    BoundedSemaphore,
    WorkerPool,
    clamp_workers,
    default_worker_count,
)
from gitscan.utils.durations import parse_duration
from gitscan.utils.fs import (
    find_files,
    is_hidden,
    latest_modification_time,
    resolve_directory,
    walk_sorted,
)

__all__ = [
    "BoundedSemaphore",
    "WorkerPool",
    "clamp_workers",
    "default_worker_count",
    "find_files",
    "is_hidden",
    "latest_modification_time",
    "parse_duration",
    "resolve_directory",
    "walk_sorted",
]
