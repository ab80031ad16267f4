"""
gitscan - package root

File: src/gitscan/__init__.py

Purpose
- Package root for a tool that audits a directory of Go module checkouts:
  working-tree state, go.mod issues, dependency queries, and release order.

Functional requirements
- Must not have side effects at import time (no config loading, no logging init).
- Keep the public surface small; heavy backends are imported where used.
"""

from __future__ import annotations

__version__ = "0.3.0"

__all__ = ["__version__"]
