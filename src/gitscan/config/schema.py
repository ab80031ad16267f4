"""
gitscan - configuration schema and validation.

File: src/gitscan/config/schema.py

Purpose
- Declare every ``gitscan.toml`` setting once: section, key, kind, default.
- Validate payloads against that table and report issues by dotted path.

Functional requirements
- Unknown sections and keys are errors; so are missing ones.
- ``meta.schema_version`` must match the supported version; a mismatch carries migration guidance.
- Log levels are accepted in any case and stored upper-case.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, Literal, TypedDict, cast

from gitscan.constants import BACKEND_CLI, CONFIG_SCHEMA_VERSION, OUTPUT_FORMATS, STATUS_BACKENDS

LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

FieldKind = Literal["int", "bool", "choice", "path"]


@dataclass(frozen=True, slots=True)
class ConfigField:
    """One ``[section] key`` setting and the values it accepts."""

    section: str
    key: str
    kind: FieldKind
    default: object
    choices: tuple[str, ...] = ()
    minimum: int | None = None
    case_insensitive: bool = False
    from_env: bool = True

    @property
    def path(self) -> tuple[str, str]:
        return (self.section, self.key)

    @property
    def dotted(self) -> str:
        return f"{self.section}.{self.key}"


CONFIG_FIELDS: Final[tuple[ConfigField, ...]] = (
    ConfigField("meta", "schema_version", "int", CONFIG_SCHEMA_VERSION, minimum=1, from_env=False),
    ConfigField("scan", "workers", "int", 0, minimum=0),
    ConfigField("scan", "backend", "choice", BACKEND_CLI, choices=STATUS_BACKENDS),
    ConfigField("scan", "recurse", "bool", False),
    ConfigField("scan", "check_unpushed", "bool", False),
    ConfigField("output", "format", "choice", "list", choices=OUTPUT_FORMATS),
    ConfigField("output", "show_clean", "bool", False),
    ConfigField("output", "summary", "bool", True),
    ConfigField("output", "color", "bool", True),
    ConfigField(
        "observability", "log_level", "choice", "WARNING", choices=LOG_LEVELS, case_insensitive=True
    ),
    ConfigField("observability", "log_file", "path", ""),
)

_SCHEMA_VERSION_PATH: Final[tuple[str, str]] = ("meta", "schema_version")


def _fields_by_section() -> dict[str, dict[str, ConfigField]]:
    sections: dict[str, dict[str, ConfigField]] = {}
    for item in CONFIG_FIELDS:
        sections.setdefault(item.section, {})[item.key] = item
    return sections


_SECTIONS: Final[dict[str, dict[str, ConfigField]]] = _fields_by_section()

# Settings holding filesystem paths, anchored at the config file's directory.
PATH_FIELDS: Final[tuple[tuple[str, str], ...]] = tuple(
    item.path for item in CONFIG_FIELDS if item.kind == "path"
)


class ScanConfig(TypedDict):
    workers: int
    backend: Literal["cli", "library"]
    recurse: bool
    check_unpushed: bool


class OutputConfig(TypedDict):
    format: Literal["list", "table", "json"]
    show_clean: bool
    summary: bool
    color: bool


class ObservabilityConfig(TypedDict):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    log_file: str


class GitscanConfig(TypedDict):
    meta: dict[str, int]
    scan: ScanConfig
    output: OutputConfig
    observability: ObservabilityConfig


DEFAULT_CONFIG: Final[GitscanConfig] = cast(
    "GitscanConfig",
    {
        section: {key: item.default for key, item in fields.items()}
        for section, fields in _SECTIONS.items()
    },
)


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


@dataclass(frozen=True, slots=True)
class ConfigValidationResult:
    """Validation result with normalized config when no issues were found."""

    config: dict[str, Any] | None
    issues: tuple[ConfigValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.issues


class ConfigValidationError(ValueError):
    """Raised when strict config validation fails."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        lines = [f"- {item.path}: {item.message}" for item in self.issues]
        super().__init__("invalid config:\n" + ("\n".join(lines) or "- <unknown>"))


def default_config() -> GitscanConfig:
    """Return a fresh copy of the built-in defaults."""

    return copy.deepcopy(DEFAULT_CONFIG)


def migration_guidance(found_version: int) -> str:
    """Explain how to resolve a ``meta.schema_version`` mismatch."""

    if found_version < CONFIG_SCHEMA_VERSION:
        return (
            f"schema version {found_version} is older than supported {CONFIG_SCHEMA_VERSION}; "
            "rewrite gitscan.toml for the current schema"
        )
    if found_version > CONFIG_SCHEMA_VERSION:
        return (
            f"schema version {found_version} is newer than supported {CONFIG_SCHEMA_VERSION}; "
            "upgrade gitscan"
        )
    return "schema version is current"


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deep-merge ``overlay`` onto a copy of ``base``; tables merge key by key."""

    merged: dict[str, Any] = {str(key): _copy_value(value) for key, value in base.items()}
    for key, value in overlay.items():
        current = merged.get(str(key))
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            merged[str(key)] = merge_config(current, value)
        else:
            merged[str(key)] = _copy_value(value)
    return merged


def check_value(item: ConfigField, value: object) -> object:
    """Return the normalized ``value`` for ``item`` or raise ``ValueError``."""

    if item.kind == "bool":
        if not isinstance(value, bool):
            raise ValueError(f"expected boolean, got {type(value).__name__}")
        return value

    if item.kind == "int":
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"expected integer, got {type(value).__name__}")
        if item.minimum is not None and value < item.minimum:
            raise ValueError(f"must be >= {item.minimum}")
        if item.path == _SCHEMA_VERSION_PATH and value != CONFIG_SCHEMA_VERSION:
            raise ValueError(migration_guidance(value))
        return value

    if not isinstance(value, str):
        raise ValueError(f"expected string, got {type(value).__name__}")
    text = value.strip()
    if item.kind == "choice":
        candidate = text.upper() if item.case_insensitive else text
        if candidate not in item.choices:
            raise ValueError(
                f"invalid value {text!r}; expected one of: {', '.join(sorted(item.choices))}"
            )
        return candidate
    if "\x00" in text:
        raise ValueError("must not contain NUL bytes")
    return text


def validate_config(config: Mapping[str, object] | object) -> ConfigValidationResult:
    """Check ``config`` against the settings table, collecting every issue."""

    if not isinstance(config, Mapping):
        issue = ConfigValidationIssue("<root>", f"expected a table, got {type(config).__name__}")
        return ConfigValidationResult(config=None, issues=(issue,))

    issues: list[ConfigValidationIssue] = [
        ConfigValidationIssue(key, "unknown section")
        for key in sorted(str(name) for name in config)
        if key not in _SECTIONS
    ]
    normalized: dict[str, Any] = {}
    for section in sorted(_SECTIONS):
        table = config.get(section)
        if table is None:
            issues.append(ConfigValidationIssue(section, "missing section"))
        elif not isinstance(table, Mapping):
            issues.append(
                ConfigValidationIssue(section, f"expected a table, got {type(table).__name__}")
            )
        else:
            normalized[section] = _validate_section(section, table, issues)

    if issues:
        return ConfigValidationResult(config=None, issues=tuple(issues))
    return ConfigValidationResult(config=normalized, issues=())


def assert_valid_config(config: Mapping[str, object] | object) -> dict[str, Any]:
    """Validate config and raise ``ConfigValidationError`` on failure."""

    result = validate_config(config)
    if result.config is None:
        raise ConfigValidationError(result.issues)
    return result.config


def _validate_section(
    section: str,
    table: Mapping[object, object],
    issues: list[ConfigValidationIssue],
) -> dict[str, Any]:
    fields = _SECTIONS[section]
    for key in sorted(str(name) for name in table):
        if key not in fields:
            issues.append(ConfigValidationIssue(f"{section}.{key}", "unknown key"))

    out: dict[str, Any] = {}
    for key, item in fields.items():
        if key not in table:
            issues.append(ConfigValidationIssue(item.dotted, "missing key"))
            continue
        try:
            out[key] = check_value(item, table[key])
        except ValueError as exc:
            issues.append(ConfigValidationIssue(item.dotted, str(exc)))
    return out


def _copy_value(value: object) -> Any:
    if isinstance(value, Mapping):
        return {str(key): _copy_value(item) for key, item in value.items()}
    return copy.deepcopy(value)


__all__ = [
    "CONFIG_FIELDS",
    "ConfigField",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_CONFIG",
    "GitscanConfig",
    "LOG_LEVELS",
    "PATH_FIELDS",
    "assert_valid_config",
    "check_value",
    "default_config",
    "merge_config",
    "migration_guidance",
    "validate_config",
]
