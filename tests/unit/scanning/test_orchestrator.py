"""Unit tests for the scan orchestrator with an in-memory status provider."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest
from conftest import go_mod, write_file
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from gitscan.domain.models import ManifestFact
from gitscan.scanning.orchestrator import ScanOptions, analyze_checkout, scan_directory
from gitscan.vcs.base import RepoStatus, StatusProvider


class FakeStatusProvider:
    """Treats any checkout holding a ``.git`` entry as a repository."""

    def __init__(self, statuses: dict[str, RepoStatus] | None = None) -> None:
        self._statuses = statuses or {}
        self._lock = threading.Lock()
        self.unpushed_requests: list[bool] = []

    def is_repository(self, path: str | Path) -> bool:
        return (Path(path) / ".git").exists()

    def get_status(self, path: str | Path, *, check_unpushed: bool) -> RepoStatus:
        with self._lock:
            self.unpushed_requests.append(check_unpushed)
        return self._statuses.get(Path(path).name, RepoStatus())


class ExplodingManifestParser:
    def __call__(self, manifest_path: object, *, relative_to: object = None) -> ManifestFact:
        raise RuntimeError("parser exploded")


def _seed(root: Path) -> None:
    write_file(root / "alpha" / ".git" / "HEAD", "ref: refs/heads/main\n")
    write_file(root / "alpha" / "go.mod", go_mod("example.com/alpha", requires=("example.com/beta",)))
    write_file(root / "beta" / ".git" / "HEAD", "ref: refs/heads/main\n")
    write_file(root / "beta" / "go.mod", go_mod("example.com/wrong", replaces=2))
    write_file(root / "plain" / "notes.txt", "not a repo\n")
    write_file(root / "nested" / "go.mod", go_mod("example.com/nested"))
    write_file(root / "nested" / "tools" / "go.mod", go_mod("example.com/nested/tools", requires=("example.com/gen",)))
    write_file(root / "nested" / "vendor" / "x" / "go.mod", go_mod("example.com/vendored"))
    (root / ".hidden").mkdir()


def test_scan_directory_collects_one_fact_per_checkout(tmp_path: Path) -> None:
    _seed(tmp_path)
    provider = FakeStatusProvider({"alpha": RepoStatus(has_uncommitted=True, has_unpushed=True)})

    facts = scan_directory(tmp_path, ScanOptions(status_provider=provider, workers=2))

    assert [fact.name for fact in facts] == ["alpha", "beta", "nested", "plain"]
    alpha, beta, nested, plain = facts

    assert alpha.is_version_controlled and alpha.has_manifest
    assert alpha.has_uncommitted_changes
    assert not alpha.has_unpushed_commits
    assert alpha.dependencies == ("example.com/beta",)

    assert beta.override_count == 2
    assert beta.has_identity_mismatch

    assert nested.nested_manifests == ()
    assert not nested.is_version_controlled

    assert not plain.is_version_controlled
    assert not plain.has_manifest
    assert plain.module_identity == ""
    assert plain.latest_modification_time is None


def test_unpushed_is_only_reported_when_requested(tmp_path: Path) -> None:
    _seed(tmp_path)
    provider = FakeStatusProvider({"alpha": RepoStatus(has_uncommitted=False, has_unpushed=True)})

    facts = scan_directory(tmp_path, ScanOptions(status_provider=provider, check_unpushed=True))

    assert facts[0].has_unpushed_commits
    assert set(provider.unpushed_requests) == {True}


def test_recurse_collects_nested_manifests_outside_vendor(tmp_path: Path) -> None:
    _seed(tmp_path)

    fact = analyze_checkout(
        tmp_path / "nested",
        "nested",
        ScanOptions(status_provider=FakeStatusProvider(), recurse=True),
    )

    assert [manifest.path for manifest in fact.nested_manifests] == ["tools/go.mod"]
    assert fact.nested_manifests[0].module_identity == "example.com/nested/tools"
    assert fact.has_dependency("example.com/gen")
    assert fact.dependencies == ()


def test_check_mod_time_populates_latest_modification_time(tmp_path: Path) -> None:
    _seed(tmp_path)

    fact = analyze_checkout(
        tmp_path / "alpha",
        "alpha",
        ScanOptions(status_provider=FakeStatusProvider(), check_mod_time=True),
    )

    assert fact.latest_modification_time is not None


def test_progress_is_reported_once_per_checkout(tmp_path: Path) -> None:
    _seed(tmp_path)
    calls: list[tuple[int, int, str]] = []

    scan_directory(
        tmp_path,
        ScanOptions(status_provider=FakeStatusProvider(), workers=3),
        progress=lambda done, total, name: calls.append((done, total, name)),
    )

    assert [done for done, _, _ in calls] == [1, 2, 3, 4]
    assert {total for _, total, _ in calls} == {4}
    assert sorted(name for _, _, name in calls) == ["alpha", "beta", "nested", "plain"]


class StallingStatusProvider(FakeStatusProvider):
    """Holds ``alpha`` until every other checkout has been reported."""

    def __init__(self) -> None:
        super().__init__()
        self.release = threading.Event()
        self.worker_threads: set[int] = set()

    def get_status(self, path: str | Path, *, check_unpushed: bool) -> RepoStatus:
        with self._lock:
            self.worker_threads.add(threading.get_ident())
        if Path(path).name == "alpha":
            self.release.wait(timeout=5)
        return super().get_status(path, check_unpushed=check_unpushed)


def test_out_of_order_completion_keeps_enumeration_order(tmp_path: Path) -> None:
    for name in ("alpha", "beta", "gamma", "delta"):
        write_file(tmp_path / name / ".git" / "HEAD", "ref: refs/heads/main\n")
        write_file(tmp_path / name / "go.mod", go_mod(f"example.com/{name}"))
    provider = StallingStatusProvider()
    reported: list[str] = []
    callback_threads: set[int] = set()

    def progress(done: int, total: int, name: str) -> None:
        reported.append(name)
        callback_threads.add(threading.get_ident())
        if done == total - 1:
            provider.release.set()

    facts = scan_directory(
        tmp_path, ScanOptions(status_provider=provider, workers=4), progress=progress
    )

    assert [fact.name for fact in facts] == ["alpha", "beta", "delta", "gamma"]
    assert reported[-1] == "alpha"
    assert reported[0] != "alpha"
    assert callback_threads == {threading.get_ident()}
    assert threading.get_ident() not in provider.worker_threads


def test_failing_checkout_degrades_to_bare_fact(tmp_path: Path) -> None:
    _seed(tmp_path)

    facts = scan_directory(
        tmp_path,
        ScanOptions(status_provider=FakeStatusProvider(), manifest_parser=ExplodingManifestParser()),
    )

    alpha = facts[0]
    assert alpha.name == "alpha"
    assert not alpha.is_version_controlled
    assert alpha.module_identity == ""
    assert len(facts) == 4


def test_empty_root_scans_to_empty_list(tmp_path: Path) -> None:
    assert scan_directory(tmp_path, ScanOptions(status_provider=FakeStatusProvider())) == []


def test_scan_options_reject_negative_workers() -> None:
    with pytest.raises(ValueError):
        ScanOptions(workers=-1)


def test_fake_provider_satisfies_protocol() -> None:
    assert isinstance(FakeStatusProvider(), StatusProvider)


@settings(max_examples=20, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
@given(
    names=st.sets(st.text(alphabet="abcdefghij", min_size=1, max_size=6), min_size=0, max_size=12),
    workers=st.integers(min_value=0, max_value=8),
)
def test_scan_result_is_independent_of_worker_count(
    tmp_path_factory: pytest.TempPathFactory,
    names: set[str],
    workers: int,
) -> None:
    root = tmp_path_factory.mktemp("population")
    for name in names:
        write_file(root / name / "go.mod", go_mod(f"example.com/{name}"))

    provider = FakeStatusProvider()
    serial = scan_directory(root, ScanOptions(status_provider=provider, workers=1))
    parallel = scan_directory(root, ScanOptions(status_provider=provider, workers=workers))

    assert len(parallel) == len(names)
    assert parallel == serial
    assert [fact.name for fact in parallel] == sorted(names)
