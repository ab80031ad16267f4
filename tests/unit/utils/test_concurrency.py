"""Unit tests for the bounded worker pool."""

from __future__ import annotations

import threading
import time

import pytest

from gitscan.utils.concurrency import BoundedSemaphore, WorkerPool, clamp_workers, default_worker_count


def test_default_worker_count_is_positive() -> None:
    assert default_worker_count() >= 1


@pytest.mark.parametrize(
    ("requested", "items", "expected"),
    [
        (4, 10, 4),
        (16, 3, 3),
        (1, 0, 1),
        (3, 1, 1),
    ],
)
def test_clamp_workers(requested: int, items: int, expected: int) -> None:
    assert clamp_workers(requested, items) == expected


def test_clamp_workers_zero_uses_platform_default() -> None:
    assert clamp_workers(0, 10_000) == min(default_worker_count(), 10_000)


def test_worker_pool_yields_every_index_once() -> None:
    pool: WorkerPool[int, int] = WorkerPool(max_workers=3)

    results = dict(pool.run(lambda value: value * value, range(20)))

    assert results == {index: index * index for index in range(20)}


def test_worker_pool_never_exceeds_max_workers() -> None:
    pool: WorkerPool[int, int] = WorkerPool(max_workers=2)
    active = 0
    peak = 0
    lock = threading.Lock()

    def work(value: int) -> int:
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
        time.sleep(0.005)
        with lock:
            active -= 1
        return value

    list(pool.run(work, range(12)))

    assert peak <= 2
    assert pool.peak_concurrency <= 2


def test_worker_pool_propagates_worker_exceptions() -> None:
    pool: WorkerPool[int, int] = WorkerPool(max_workers=2)

    def work(value: int) -> int:
        if value == 3:
            raise RuntimeError("boom")
        return value

    with pytest.raises(RuntimeError, match="boom"):
        list(pool.run(work, range(6)))


def test_worker_pool_rejects_non_positive_size() -> None:
    with pytest.raises(ValueError):
        WorkerPool(max_workers=0)


def test_bounded_semaphore_tracks_peak() -> None:
    semaphore = BoundedSemaphore(2)
    with semaphore, semaphore:
        assert semaphore.in_use == 2
    assert semaphore.snapshot() == {"limit": 2, "in_use": 0, "peak": 2}
