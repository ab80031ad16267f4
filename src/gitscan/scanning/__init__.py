"""Checkout enumeration, manifest parsing, and the parallel scan orchestrator."""

from gitscan.scanning.enumerator import ScanError, count_checkouts, list_checkouts
from gitscan.scanning.manifest import ManifestParser, parse_manifest, parse_manifest_lines
from gitscan.scanning.orchestrator import ScanOptions, analyze_checkout, scan_directory

__all__ = [
    "ManifestParser",
    "ScanError",
    "ScanOptions",
    "analyze_checkout",
    "count_checkouts",
    "list_checkouts",
    "parse_manifest",
    "parse_manifest_lines",
    "scan_directory",
]
