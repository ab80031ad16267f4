"""
gitscan - runtime config loader.

File: src/gitscan/config/loader.py

Purpose
- Build the effective config from four layers: defaults, ``gitscan.toml``,
  ``GITSCAN_<SECTION>_<KEY>`` environment variables, and CLI options.

Functional requirements
- Later layers win: CLI > env > file > defaults.
- A missing ``./gitscan.toml`` is fine; a missing ``--config`` file is an error.
- Environment values are parsed according to the setting's declared kind.
- ``observability.log_file`` is anchored at the config file's directory.
"""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from gitscan.config.schema import (
    CONFIG_FIELDS,
    PATH_FIELDS,
    ConfigField,
    assert_valid_config,
    default_config,
    merge_config,
)

DEFAULT_CONFIG_FILE: Final[str] = "gitscan.toml"
ENV_PREFIX: Final[str] = "GITSCAN_"

_TRUE_WORDS: Final[frozenset[str]] = frozenset({"1", "true", "t", "yes", "y", "on"})
_FALSE_WORDS: Final[frozenset[str]] = frozenset({"0", "false", "f", "no", "n", "off"})


class ConfigLoadError(ValueError):
    """Raised when config cannot be loaded or overrides cannot be coerced."""


def load_config(
    config_path: str | Path | None = None,
    *,
    cli_overrides: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
    cwd: str | Path | None = None,
) -> dict[str, Any]:
    """Return the validated effective config.

    ``cli_overrides`` maps dotted keys such as ``"scan.workers"`` to values;
    ``None`` values are skipped so unset argparse options fall through.
    """

    path = _config_file_path(config_path, cwd=cwd)
    from_file = _read_toml(path, required=config_path is not None)
    config = assert_valid_config(merge_config(default_config(), from_file))

    from_env = env_overrides(os.environ if environ is None else environ)
    from_cli = _nest_dotted(cli_overrides or {})
    config = assert_valid_config(merge_config(merge_config(config, from_env), from_cli))

    return normalize_paths(config, base_dir=path.parent)


def env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    """Collect ``GITSCAN_*`` variables into a nested override table."""

    overrides: dict[str, Any] = {}
    for item in CONFIG_FIELDS:
        if not item.from_env:
            continue
        name = env_name_for_path(item.path)
        raw = environ.get(name)
        if raw is not None:
            overrides.setdefault(item.section, {})[item.key] = _parse_env_value(item, name, raw)
    return overrides


def env_name_for_path(path: tuple[str, ...]) -> str:
    return ENV_PREFIX + "_".join(part.upper() for part in path)


def normalize_paths(config: Mapping[str, object], *, base_dir: Path) -> dict[str, Any]:
    """Anchor relative path settings at ``base_dir``; empty values stay empty."""

    normalized = merge_config({}, config)
    for section, key in PATH_FIELDS:
        table = normalized.get(section)
        if not isinstance(table, dict):
            continue
        raw = table.get(key)
        if isinstance(raw, str) and raw:
            table[key] = _anchor_path(raw, base_dir)
    return normalized


def dump_effective_config(config: Mapping[str, object]) -> str:
    """Render ``config`` as stable, sorted JSON for ``gitscan config``."""

    return json.dumps(config, sort_keys=True, indent=2, ensure_ascii=False)


def _config_file_path(config_path: str | Path | None, *, cwd: str | Path | None) -> Path:
    if config_path is not None:
        return Path(config_path).expanduser().resolve()
    base = Path(cwd) if cwd is not None else Path.cwd()
    return (base / DEFAULT_CONFIG_FILE).resolve()


def _read_toml(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.is_file():
        if required:
            raise ConfigLoadError(f"config file not found: {path}")
        return {}
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigLoadError(f"invalid TOML in {path}: {exc}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigLoadError(f"unable to read config file {path}: {exc}") from exc


def _parse_env_value(item: ConfigField, name: str, raw: str) -> object:
    text = raw.strip()
    if item.kind == "int":
        try:
            return int(text)
        except ValueError as exc:
            raise ConfigLoadError(f"{name} ({item.dotted}) must be an integer, got {raw!r}") from exc
    if item.kind == "bool":
        lowered = text.lower()
        if lowered in _TRUE_WORDS:
            return True
        if lowered in _FALSE_WORDS:
            return False
        raise ConfigLoadError(
            f"{name} ({item.dotted}) must be a boolean (1/0, true/false, yes/no, on/off), "
            f"got {raw!r}"
        )
    return text


def _nest_dotted(flat: Mapping[str, object]) -> dict[str, Any]:
    nested: dict[str, Any] = {}
    for dotted, value in flat.items():
        if value is None:
            continue
        section, _, key = dotted.partition(".")
        if not section or not key or "." in key:
            raise ConfigLoadError(f"invalid CLI override key {dotted!r}; expected 'section.key'")
        nested.setdefault(section, {})[key] = value
    return nested


def _anchor_path(raw: str, base_dir: Path) -> str:
    candidate = Path(os.path.expandvars(raw)).expanduser()
    if not candidate.is_absolute():
        candidate = base_dir / candidate
    return Path(os.path.normpath(candidate)).as_posix()


__all__ = [
    "ConfigLoadError",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "dump_effective_config",
    "env_name_for_path",
    "env_overrides",
    "load_config",
    "normalize_paths",
]
