"""Stable constants shared across scanning, planning, and the CLI."""

from __future__ import annotations

from typing import Final

# Manifest handled by the parser.
MANIFEST_FILENAME: Final[str] = "go.mod"

# Directory names never descended into while collecting nested manifests.
VENDOR_DIR_NAMES: Final[frozenset[str]] = frozenset({"vendor", "node_modules"})

# Directory names skipped by the latest-modification walk.
MOD_TIME_SKIP_DIR_NAMES: Final[frozenset[str]] = frozenset({".git", "vendor", "node_modules"})

# Version-control marker inside a checkout.
GIT_DIR_NAME: Final[str] = ".git"

# Status backends selectable from config or the CLI.
BACKEND_CLI: Final[str] = "cli"
BACKEND_LIBRARY: Final[str] = "library"
STATUS_BACKENDS: Final[tuple[str, ...]] = (BACKEND_CLI, BACKEND_LIBRARY)

# Output formats understood by the renderer.
OUTPUT_FORMATS: Final[tuple[str, ...]] = ("list", "table", "json")

CONFIG_SCHEMA_VERSION: Final[int] = 1

__all__ = [
    "BACKEND_CLI",
    "BACKEND_LIBRARY",
    "CONFIG_SCHEMA_VERSION",
    "GIT_DIR_NAME",
    "MANIFEST_FILENAME",
    "MOD_TIME_SKIP_DIR_NAMES",
    "OUTPUT_FORMATS",
    "STATUS_BACKENDS",
    "VENDOR_DIR_NAMES",
]
