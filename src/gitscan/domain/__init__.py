"""
gitscan - domain types

File: src/gitscan/domain/__init__.py

Purpose
- Immutable per-checkout facts shared by scanning, planning, and the CLI.

Functional requirements
- Domain objects validate on construction and serialize to JSON-safe dicts.
- No IO in this layer.
"""

from gitscan.domain.models import JSONScalar, JSONValue, ManifestFact, RepoFact, last_path_segment

__all__ = [
    "JSONScalar",
    "JSONValue",
    "ManifestFact",
    "RepoFact",
    "last_path_segment",
]
