"""Thread-based concurrency primitives used by the scanner."""

from __future__ import annotations

import os
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

import psutil

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

T = TypeVar("T")
R = TypeVar("R")


def default_worker_count() -> int:
    """Number of CPUs this process may run on, never less than one."""
    try:
        affinity = psutil.Process().cpu_affinity()
    except (AttributeError, NotImplementedError, psutil.Error, OSError):
        # cpu_affinity is unavailable on macOS.
        affinity = None
    if affinity:
        return len(affinity)
    logical = psutil.cpu_count(logical=True)
    if logical:
        return int(logical)
    return os.cpu_count() or 1


def clamp_workers(requested: int, item_count: int) -> int:
    """Resolve ``requested`` (``<= 0`` means platform default) into ``[1, item_count]``."""
    workers = requested if requested > 0 else default_worker_count()
    return max(1, min(workers, max(item_count, 1)))


class BoundedSemaphore:
    """Small wrapper over ``threading.BoundedSemaphore`` with usage diagnostics."""

    def __init__(self, limit: int) -> None:
        if limit <= 0:
            raise ValueError("limit must be > 0")
        self._limit = limit
        self._semaphore = threading.BoundedSemaphore(limit)
        self._lock = threading.Lock()
        self._in_use = 0
        self._peak = 0

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def in_use(self) -> int:
        return self._in_use

    @property
    def peak(self) -> int:
        return self._peak

    def __enter__(self) -> BoundedSemaphore:
        self._semaphore.acquire()
        with self._lock:
            self._in_use += 1
            self._peak = max(self._peak, self._in_use)
        return self

    def __exit__(self, *exc_info: object) -> None:
        with self._lock:
            self._in_use -= 1
        self._semaphore.release()

    def snapshot(self) -> dict[str, int]:
        return {
            "limit": self._limit,
            "in_use": self._in_use,
            "peak": self._peak,
        }


@dataclass(slots=True)
class WorkerPool(Generic[T, R]):
    """Run a function over items with bounded parallelism.

    ``run`` yields ``(index, result)`` pairs in completion order. At most
    ``max_workers`` items are in flight at once, and each item is processed
    start to finish by a single worker. The first exception raised by a
    worker propagates to the caller after in-flight work drains.
    """

    max_workers: int
    thread_name_prefix: str = "gitscan-worker"
    _semaphore: BoundedSemaphore = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.max_workers <= 0:
            raise ValueError("max_workers must be > 0")
        self._semaphore = BoundedSemaphore(self.max_workers)

    @property
    def peak_concurrency(self) -> int:
        return self._semaphore.peak

    def run(self, func: Callable[[T], R], items: Iterable[T]) -> Iterator[tuple[int, R]]:
        pending: dict[Future[R], int] = {}
        source = iter(enumerate(items))

        with ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix=self.thread_name_prefix,
        ) as executor:

            def submit_next() -> bool:
                try:
                    index, item = next(source)
                except StopIteration:
                    return False
                pending[executor.submit(self._run_one, func, item)] = index
                return True

            while len(pending) < self.max_workers and submit_next():
                pass

            while pending:
                done, _ = wait(pending, return_when=FIRST_COMPLETED)
                for future in sorted(done, key=pending.__getitem__):
                    index = pending.pop(future)
                    yield index, future.result()
                    submit_next()

    def _run_one(self, func: Callable[[T], R], item: T) -> R:
        with self._semaphore:
            return func(item)


__all__ = [
    "BoundedSemaphore",
    "WorkerPool",
    "clamp_workers",
    "default_worker_count",
]
