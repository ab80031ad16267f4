"""Immutable scan facts produced by the orchestrator and consumed by graph queries."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import NoReturn

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]


def _fail(path: str, message: str) -> NoReturn:
    raise ValueError(f"{path}: {message}")


def _as_str_tuple(value: object, path: str) -> tuple[str, ...]:
    if isinstance(value, (str, bytes)):
        _fail(path, "expected a sequence of strings, got a single string")
    try:
        items = tuple(value)  # type: ignore[call-overload]
    except TypeError:
        _fail(path, f"expected a sequence of strings, got {type(value).__name__}")
    for index, item in enumerate(items):
        if not isinstance(item, str):
            _fail(f"{path}[{index}]", f"expected string, got {type(item).__name__}")
    return items


def _as_utc(value: datetime | None, path: str) -> datetime | None:
    if value is None:
        return None
    if not isinstance(value, datetime):
        _fail(path, f"expected datetime, got {type(value).__name__}")
    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _isoformat(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat(timespec="seconds").replace("+00:00", "Z")


def last_path_segment(module_identity: str) -> str:
    """Return the final ``/``-separated segment of a module identity."""
    return module_identity.rsplit("/", 1)[-1]


@dataclass(frozen=True, slots=True)
class ManifestFact:
    """Facts parsed from one manifest file."""

    path: str = ""
    module_identity: str = ""
    dependencies: tuple[str, ...] = ()
    override_count: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "dependencies", _as_str_tuple(self.dependencies, "ManifestFact.dependencies")
        )
        if self.override_count < 0:
            _fail("ManifestFact.override_count", "must be >= 0")

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "path": self.path,
            "module": self.module_identity,
            "dependencies": list(self.dependencies),
            "override_count": self.override_count,
        }


@dataclass(frozen=True, slots=True)
class RepoFact:
    """Everything the scanner learned about one checkout.

    ``latest_modification_time`` is ``None`` when the walk was not requested
    (or the checkout holds no files). ``dependencies`` always reflects the root
    manifest; nested manifests carry their own dependency sets.
    """

    name: str
    path: str
    is_version_controlled: bool = False
    has_manifest: bool = False
    has_uncommitted_changes: bool = False
    has_unpushed_commits: bool = False
    module_identity: str = ""
    override_count: int = 0
    dependencies: tuple[str, ...] = ()
    nested_manifests: tuple[ManifestFact, ...] = field(default=())
    latest_modification_time: datetime | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            _fail("RepoFact.name", "must be a non-empty string")
        object.__setattr__(
            self, "dependencies", _as_str_tuple(self.dependencies, "RepoFact.dependencies")
        )
        nested = tuple(self.nested_manifests)
        for index, item in enumerate(nested):
            if not isinstance(item, ManifestFact):
                _fail(f"RepoFact.nested_manifests[{index}]", "must be ManifestFact")
        object.__setattr__(self, "nested_manifests", nested)
        object.__setattr__(
            self,
            "latest_modification_time",
            _as_utc(self.latest_modification_time, "RepoFact.latest_modification_time"),
        )
        if self.override_count < 0:
            _fail("RepoFact.override_count", "must be >= 0")

    @property
    def has_override_directives(self) -> bool:
        return self.override_count > 0

    @property
    def has_identity_mismatch(self) -> bool:
        if not self.module_identity:
            return False
        return last_path_segment(self.module_identity) != self.name

    @property
    def needs_push(self) -> bool:
        return self.has_uncommitted_changes or self.has_unpushed_commits

    @property
    def has_issues(self) -> bool:
        return (
            self.has_uncommitted_changes
            or self.has_override_directives
            or self.has_identity_mismatch
        )

    def has_dependency(self, module_identity: str) -> bool:
        """Return ``True`` if the root or any nested manifest declares ``module_identity``."""
        if module_identity in self.dependencies:
            return True
        return any(module_identity in nested.dependencies for nested in self.nested_manifests)

    def modified_since(self, window: timedelta, *, now: datetime | None = None) -> bool:
        """Return ``True`` if a file changed within ``window`` of ``now``."""
        if self.latest_modification_time is None:
            return False
        reference = _as_utc(now, "now") if now is not None else datetime.now(tz=UTC)
        assert reference is not None
        return self.latest_modification_time > reference - window

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "name": self.name,
            "path": self.path,
            "git": self.is_version_controlled,
            "manifest": self.has_manifest,
            "module": self.module_identity,
            "uncommitted": self.has_uncommitted_changes,
            "unpushed": self.has_unpushed_commits,
            "override_count": self.override_count,
            "identity_mismatch": self.has_identity_mismatch,
            "dependencies": list(self.dependencies),
            "nested_manifests": [nested.to_dict() for nested in self.nested_manifests],
            "latest_modification_time": _isoformat(self.latest_modification_time),
        }


__all__ = [
    "JSONScalar",
    "JSONValue",
    "ManifestFact",
    "RepoFact",
    "last_path_segment",
]
