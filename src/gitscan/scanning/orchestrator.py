"""
gitscan - scan orchestrator

File: src/gitscan/scanning/orchestrator.py

Purpose
- Visit every checkout below a root with bounded parallelism and collect one
  ``RepoFact`` per checkout.

Functional requirements
- Output order equals enumeration order for every worker count.
- The progress callback runs on the calling thread, once per finished checkout.
- A checkout that fails to analyze degrades to a bare fact; the scan continues.
- Only a root that cannot be listed fails the scan (``ScanError``).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import structlog

from gitscan.constants import MANIFEST_FILENAME, MOD_TIME_SKIP_DIR_NAMES, VENDOR_DIR_NAMES
from gitscan.domain.models import ManifestFact, RepoFact
from gitscan.scanning.enumerator import ScanError, list_checkouts
from gitscan.scanning.manifest import ManifestParser
from gitscan.utils.concurrency import WorkerPool, clamp_workers
from gitscan.utils.fs import PathLike, find_files, latest_modification_time
from gitscan.vcs.git_cli import CLIStatusProvider

if TYPE_CHECKING:
    from collections.abc import Callable

    from gitscan.vcs.base import StatusProvider

logger = structlog.get_logger(__name__)


class ManifestParserFn(Protocol):
    def __call__(
        self, manifest_path: PathLike, *, relative_to: PathLike | None = None
    ) -> ManifestFact: ...


@dataclass(frozen=True, slots=True)
class ScanOptions:
    """Knobs for a single scan, passed explicitly into the core."""

    recurse: bool = False
    check_mod_time: bool = False
    check_unpushed: bool = False
    workers: int = 0
    status_provider: StatusProvider = field(default_factory=CLIStatusProvider)
    manifest_parser: ManifestParserFn = field(default_factory=ManifestParser)

    def __post_init__(self) -> None:
        if self.workers < 0:
            raise ValueError("ScanOptions.workers must be >= 0")


def analyze_checkout(path: PathLike, name: str, options: ScanOptions) -> RepoFact:
    """Gather every fact about one checkout.

    Individual probes never raise; an unreadable checkout simply reports
    fewer facts.
    """
    repo_path = Path(os.fspath(path))

    latest = None
    if options.check_mod_time:
        latest = latest_modification_time(repo_path, skip_dir_names=MOD_TIME_SKIP_DIR_NAMES)

    provider = options.status_provider
    is_repo = provider.is_repository(repo_path)
    has_uncommitted = has_unpushed = False
    if is_repo:
        status = provider.get_status(repo_path, check_unpushed=options.check_unpushed)
        has_uncommitted, has_unpushed = status
        if not options.check_unpushed:
            has_unpushed = False

    manifest_path = repo_path / MANIFEST_FILENAME
    has_manifest = manifest_path.is_file()
    root_manifest = ManifestFact(path=MANIFEST_FILENAME)
    if has_manifest:
        root_manifest = options.manifest_parser(manifest_path, relative_to=repo_path)

    nested: tuple[ManifestFact, ...] = ()
    if options.recurse:
        nested = tuple(
            options.manifest_parser(repo_path / relative, relative_to=repo_path)
            for relative in find_files(
                repo_path,
                MANIFEST_FILENAME,
                skip_dir_names=VENDOR_DIR_NAMES,
                skip_hidden=True,
            )
        )

    return RepoFact(
        name=name,
        path=str(repo_path),
        is_version_controlled=is_repo,
        has_manifest=has_manifest,
        has_uncommitted_changes=has_uncommitted,
        has_unpushed_commits=has_unpushed,
        module_identity=root_manifest.module_identity,
        override_count=root_manifest.override_count,
        dependencies=root_manifest.dependencies,
        nested_manifests=nested,
        latest_modification_time=latest,
    )


def _analyze_safely(path: Path, name: str, options: ScanOptions) -> RepoFact:
    try:
        return analyze_checkout(path, name, options)
    except Exception as exc:  # noqa: BLE001
        logger.warning("checkout_analysis_failed", checkout=name, path=str(path), error=str(exc))
        return RepoFact(name=name, path=str(path))


def scan_directory(
    root: PathLike,
    options: ScanOptions | None = None,
    progress: Callable[[int, int, str], None] | None = None,
) -> list[RepoFact]:
    """Scan every immediate, non-hidden subdirectory of ``root``.

    Raises :class:`ScanError` if ``root`` cannot be listed.
    """
    effective = options if options is not None else ScanOptions()
    root_path = Path(os.fspath(root))
    names = list_checkouts(root_path)
    total = len(names)
    if total == 0:
        logger.debug("scan_empty", root=str(root_path))
        return []

    workers = clamp_workers(effective.workers, total)
    logger.debug("scan_started", root=str(root_path), checkouts=total, workers=workers)

    results: list[RepoFact | None] = [None] * total
    pool: WorkerPool[str, RepoFact] = WorkerPool(max_workers=workers)
    completed = 0
    for index, fact in pool.run(
        lambda name: _analyze_safely(root_path / name, name, effective),
        names,
    ):
        results[index] = fact
        completed += 1
        if progress is not None:
            progress(completed, total, fact.name)

    logger.debug("scan_finished", root=str(root_path), checkouts=total)
    facts = [fact for fact in results if fact is not None]
    if len(facts) != total:
        raise ScanError("scan finished with missing results")
    return facts


__all__ = [
    "ManifestParserFn",
    "ScanError",
    "ScanOptions",
    "analyze_checkout",
    "scan_directory",
]
