"""
gitscan - go.mod manifest parser

File: src/gitscan/scanning/manifest.py

Purpose
- Extract module identity, required modules, and replace-directive counts from a
  checkout's ``go.mod``.

Functional requirements
- Line-oriented, streaming; two mutually exclusive block states (require, replace).
- The first ``module`` directive wins; quotes and trailing ``//`` comments are removed.
- Single-line and block directives count identically.
- Blank and comment-only lines inside a block are ignored; only ``)`` (optionally commented) closes a block.
- Missing or unreadable manifests yield an empty fact and never raise.
"""

from __future__ import annotations

import enum
import os
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

import structlog

from gitscan.domain.models import ManifestFact

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = structlog.get_logger(__name__)

PathLike = str | os.PathLike[str]


class _Block(enum.Enum):
    NONE = "none"
    REQUIRE = "require"
    REPLACE = "replace"


def _strip_comment(line: str) -> str:
    head, _, _ = line.partition("//")
    return head.strip()


def _unquote(token: str) -> str:
    if len(token) >= 2 and token[0] == token[-1] and token[0] in {'"', "`"}:
        return token[1:-1]
    return token


def _directive(line: str, keyword: str) -> tuple[bool, str]:
    """Match ``keyword`` at the start of ``line``.

    Returns ``(matched, remainder)`` with the remainder stripped.
    """
    if not line.startswith(keyword):
        return False, ""
    rest = line[len(keyword) :]
    if rest.startswith("("):
        return True, rest.strip()
    if not rest or not rest[0].isspace():
        return False, ""
    return True, rest.strip()


def _opens_block(rest: str) -> bool:
    return _strip_comment(rest) == "("


def _first_token(text: str) -> str:
    content = _strip_comment(text)
    if not content:
        return ""
    return _unquote(content.split()[0])


def parse_manifest_lines(lines: Iterable[str], *, path: str = "") -> ManifestFact:
    """Parse ``go.mod`` content already split into lines."""
    module_identity = ""
    dependencies: list[str] = []
    seen: set[str] = set()
    override_count = 0
    block = _Block.NONE

    def add_dependency(token: str) -> None:
        if token and token not in seen:
            seen.add(token)
            dependencies.append(token)

    for raw in lines:
        line = raw.strip()

        if block is not _Block.NONE:
            content = _strip_comment(line)
            if content == ")":
                block = _Block.NONE
                continue
            if not content:
                continue
            if block is _Block.REQUIRE:
                add_dependency(_first_token(line))
            else:
                override_count += 1
            continue

        matched, rest = _directive(line, "module")
        if matched:
            if not module_identity and not _opens_block(rest):
                module_identity = _first_token(rest)
            continue

        matched, rest = _directive(line, "require")
        if matched:
            if _opens_block(rest):
                block = _Block.REQUIRE
            else:
                add_dependency(_first_token(rest))
            continue

        matched, rest = _directive(line, "replace")
        if matched:
            if _opens_block(rest):
                block = _Block.REPLACE
            elif _strip_comment(rest):
                override_count += 1

    return ManifestFact(
        path=path,
        module_identity=module_identity,
        dependencies=tuple(dependencies),
        override_count=override_count,
    )


def parse_manifest(manifest_path: PathLike, *, relative_to: PathLike | None = None) -> ManifestFact:
    """Parse the manifest at ``manifest_path``.

    ``path`` on the returned fact is relative to ``relative_to`` (POSIX
    separators) when given, otherwise the path as passed in.
    """
    target = Path(os.fspath(manifest_path))
    display = target.as_posix()
    if relative_to is not None:
        try:
            display = PurePosixPath(*target.relative_to(Path(os.fspath(relative_to))).parts).as_posix()
        except ValueError:
            display = target.as_posix()

    try:
        with target.open("r", encoding="utf-8", errors="replace") as handle:
            return parse_manifest_lines(handle, path=display)
    except FileNotFoundError:
        return ManifestFact(path=display)
    except OSError as exc:
        logger.debug("manifest_unreadable", path=str(target), error=str(exc))
        return ManifestFact(path=display)


class ManifestParser:
    """Callable wrapper around :func:`parse_manifest` for injection into scans."""

    def __call__(
        self,
        manifest_path: PathLike,
        *,
        relative_to: PathLike | None = None,
    ) -> ManifestFact:
        return parse_manifest(manifest_path, relative_to=relative_to)


__all__ = [
    "ManifestParser",
    "parse_manifest",
    "parse_manifest_lines",
]
