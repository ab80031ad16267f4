"""Command-line interface router for gitscan."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Final, NoReturn

import structlog

from gitscan import __version__
from gitscan.config import ConfigLoadError, ConfigValidationError, dump_effective_config, load_config
from gitscan.config.schema import LOG_LEVELS
from gitscan.constants import OUTPUT_FORMATS, STATUS_BACKENDS
from gitscan.domain.models import RepoFact
from gitscan.main import ExitCode
from gitscan.observability import (
    logging_config_from_mapping,
    setup_structured_logging,
    shutdown_logging,
)
from gitscan.planning import ModuleGraph, internal_dependencies, topological_sort, transitive_dependents
from gitscan.scanning import ScanError, ScanOptions, count_checkouts, scan_directory
from gitscan.ui.render import CLIRenderer, create_renderer
from gitscan.utils.durations import parse_duration
from gitscan.utils.fs import resolve_directory
from gitscan.vcs import create_status_provider

logger = structlog.get_logger(__name__)

TIME_FORMAT: Final[str] = "%Y-%m-%d %H:%M"


@dataclass(frozen=True, slots=True)
class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    message: str
    exit_code: int = int(ExitCode.USAGE_ERROR)

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True, slots=True)
class ScanSummary:
    total: int
    with_issues: int
    uncommitted: int
    overrides: int
    mismatches: int

    @classmethod
    def from_facts(cls, facts: Sequence[RepoFact]) -> ScanSummary:
        return cls(
            total=len(facts),
            with_issues=sum(1 for fact in facts if fact.has_issues),
            uncommitted=sum(1 for fact in facts if fact.has_uncommitted_changes),
            overrides=sum(1 for fact in facts if fact.has_override_directives),
            mismatches=sum(1 for fact in facts if fact.has_identity_mismatch),
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "with_issues": self.with_issues,
            "uncommitted": self.uncommitted,
            "override_directives": self.overrides,
            "identity_mismatches": self.mismatches,
        }


class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser that reports usage errors with the CLI usage exit code."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(int(ExitCode.USAGE_ERROR), f"{self.prog}: error: {message}\n")


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router for all supported CLI workflows."""

    parser = _ArgumentParser(
        prog="gitscan",
        description=(
            "gitscan - audit a directory of Go module checkouts.\n\n"
            "Common workflows:\n"
            "  gitscan scan ~/src              Report uncommitted work and go.mod issues\n"
            "  gitscan dep example.com/lib     List checkouts that depend on a module\n"
            "  gitscan since 7d ~/src          List checkouts modified in the last week\n"
            "  gitscan order -s 2w -t ~/src    Print a dependency-first release order\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    common = _ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to gitscan TOML config (default: ./gitscan.toml if present).",
    )
    common.add_argument(
        "--backend",
        choices=STATUS_BACKENDS,
        default=None,
        help="Version-control status backend (default from config: cli).",
    )
    common.add_argument(
        "--workers",
        type=_non_negative_int_arg,
        default=None,
        help="Concurrent checkout workers; 0 picks a platform default.",
    )
    common.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=None,
        help="Diagnostic log level (logs are JSON lines on stderr).",
    )
    common.add_argument(
        "--no-color",
        action="store_true",
        default=False,
        help="Disable colored output (also respects NO_COLOR env var).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser(
        "scan",
        parents=[common],
        help="Report checkouts with uncommitted work or go.mod issues.",
    )
    _add_directory_arguments(scan_parser)
    scan_parser.add_argument(
        "--show-clean",
        action="store_true",
        default=False,
        help="Also list checkouts without issues.",
    )
    scan_parser.add_argument(
        "--no-summary",
        action="store_true",
        default=False,
        help="Omit the summary block.",
    )
    scan_parser.add_argument(
        "--format",
        "-f",
        dest="output_format",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Output format (default from config: list).",
    )
    scan_parser.add_argument(
        "--dep",
        dest="dep_filter",
        default=None,
        metavar="MODULE",
        help="Only list checkouts that depend on MODULE.",
    )
    scan_parser.add_argument(
        "--recurse",
        "-r",
        action="store_true",
        default=False,
        help="Also parse nested go.mod files.",
    )
    scan_parser.add_argument(
        "--since",
        "-s",
        dest="since",
        default=None,
        metavar="DURATION",
        help="Only list checkouts modified within DURATION (e.g. 24h, 7d, 2w, 1m).",
    )
    scan_parser.set_defaults(handler=_cmd_scan)

    dep_parser = subparsers.add_parser(
        "dep",
        parents=[common],
        help="List checkouts that depend on a module.",
    )
    dep_parser.add_argument("module", help="Module path to look for.")
    _add_directory_arguments(dep_parser)
    dep_parser.add_argument(
        "--recurse",
        "-r",
        action="store_true",
        default=False,
        help="Also search nested go.mod files.",
    )
    dep_parser.set_defaults(handler=_cmd_dep)

    since_parser = subparsers.add_parser(
        "since",
        parents=[common],
        help="List checkouts modified within a duration.",
    )
    since_parser.add_argument("duration", help="Window such as 24h, 7d, 2w, or 1m (30 days).")
    _add_directory_arguments(since_parser)
    since_parser.add_argument(
        "--dep",
        dest="dep_filter",
        default=None,
        metavar="MODULE",
        help="Only list checkouts that also depend on MODULE.",
    )
    since_parser.add_argument(
        "--unpushed",
        "-u",
        action="store_true",
        default=False,
        help="Only list checkouts that also need a push.",
    )
    since_parser.add_argument(
        "--recurse",
        "-r",
        action="store_true",
        default=False,
        help="Also parse nested go.mod files.",
    )
    since_parser.set_defaults(handler=_cmd_since)

    order_parser = subparsers.add_parser(
        "order",
        parents=[common],
        help="Print checkouts in dependency-first release order.",
    )
    _add_directory_arguments(order_parser)
    order_parser.add_argument(
        "--since",
        "-s",
        dest="since",
        default=None,
        metavar="DURATION",
        help="Only order checkouts modified within DURATION.",
    )
    order_parser.add_argument(
        "--transitive",
        "-t",
        action="store_true",
        default=False,
        help="With --since, add every checkout that depends on a modified one.",
    )
    order_parser.add_argument(
        "--unpushed",
        "-u",
        action="store_true",
        default=False,
        help="Only list checkouts that need a push.",
    )
    order_parser.set_defaults(handler=_cmd_order)

    config_parser = subparsers.add_parser(
        "config",
        parents=[common],
        help="Print the effective configuration as JSON.",
    )
    config_parser.set_defaults(handler=_cmd_config)

    return parser


def _add_directory_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "directory",
        nargs="?",
        default=None,
        help="Directory holding the checkouts (default: current directory).",
    )
    parser.add_argument(
        "--dir",
        "-d",
        dest="directory_option",
        default=None,
        metavar="DIR",
        help="Directory holding the checkouts; overrides the positional argument.",
    )


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, route to a command handler, and return process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return int(ExitCode.USAGE_ERROR)

    try:
        result = handler(namespace)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    finally:
        shutdown_logging()
    return int(result)


def main(argv: Sequence[str] | None = None) -> int:
    """Compatibility wrapper for main-module wiring."""

    return run_cli(argv)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_scan(args: argparse.Namespace) -> int:
    since_text = _optional_str(getattr(args, "since", None))
    window = _parse_window(since_text)
    dep_filter = _optional_str(getattr(args, "dep_filter", None))

    config = _load_effective_config(
        args,
        {
            "scan.recurse": True if _flag(args, "recurse") else None,
            "output.format": getattr(args, "output_format", None),
            "output.show_clean": True if _flag(args, "show_clean") else None,
            "output.summary": False if _flag(args, "no_summary") else None,
        },
    )
    output = _section(config, "output")
    output_format = str(output["format"])
    show_clean = bool(output["show_clean"])
    show_summary = bool(output["summary"])
    recurse = bool(_section(config, "scan")["recurse"])

    renderer = _get_renderer(args, config, notes_to_stderr=output_format == "json")
    root = _resolve_root(args)
    options = _scan_options(config, check_mod_time=window is not None, recurse=recurse)
    facts = _run_scan(renderer, root, options)
    now = datetime.now().astimezone()

    if window is not None:
        shown = [fact for fact in facts if fact.modified_since(window, now=now)]
    elif dep_filter is not None:
        shown = [fact for fact in facts if fact.has_dependency(dep_filter)]
    else:
        shown = [fact for fact in facts if fact.has_issues or show_clean]
    summary = ScanSummary.from_facts(facts)

    if output_format == "json":
        renderer.json(
            {
                "command": "scan",
                "root": str(root),
                "filters": {
                    "since": since_text,
                    "dep": dep_filter,
                    "show_clean": show_clean,
                    "recurse": recurse,
                },
                "repos": [_fact_payload(fact, facts) for fact in shown],
                "summary": {**summary.to_dict(), "shown": len(shown)},
            }
        )
        return int(ExitCode.SUCCESS)

    if output_format == "table":
        _render_scan_table(
            renderer,
            shown,
            show_since=window is not None,
            show_dep=dep_filter is not None,
            show_nested=recurse,
        )
    else:
        width = _name_width(facts)
        for number, fact in enumerate(shown, start=1):
            if window is not None:
                renderer.entry(
                    number,
                    fact.name,
                    name_width=width,
                    detail=_format_time(fact),
                    suffix=_depends_on(fact, facts),
                )
            elif dep_filter is not None:
                renderer.entry(
                    number, fact.name, name_width=width, detail=_identity_label(fact, recurse)
                )
            else:
                renderer.entry(
                    number,
                    fact.name,
                    name_width=width,
                    tags=_issue_tags(fact),
                    suffix=_depends_on(fact, facts),
                )

    renderer.blank()
    if show_summary:
        renderer.rule()
        if window is not None:
            renderer.text(
                f"Summary: {summary.total} repos scanned, {len(shown)} modified within {since_text}"
            )
        elif dep_filter is not None:
            renderer.text(
                f"Summary: {summary.total} repos scanned, {len(shown)} depend on {dep_filter}"
            )
        else:
            renderer.text(
                f"Summary: {summary.total} repos scanned, {summary.with_issues} with issues"
            )
            renderer.text(f"  - Uncommitted changes: {summary.uncommitted}")
            renderer.text(f"  - Replace directives:  {summary.overrides}")
            renderer.text(f"  - Module mismatches:   {summary.mismatches}")
    return int(ExitCode.SUCCESS)


def _cmd_dep(args: argparse.Namespace) -> int:
    module = _require_str(getattr(args, "module", None), "module")
    config = _load_effective_config(
        args, {"scan.recurse": True if _flag(args, "recurse") else None}
    )
    recurse = bool(_section(config, "scan")["recurse"])

    renderer = _get_renderer(args, config)
    root = _resolve_root(args)
    options = _scan_options(config, check_mod_time=False, recurse=recurse)
    facts = _run_scan(renderer, root, options)

    width = _name_width(facts)
    matches = [fact for fact in facts if fact.has_dependency(module)]
    for number, fact in enumerate(matches, start=1):
        renderer.entry(number, fact.name, name_width=width, detail=_identity_label(fact, recurse))

    renderer.blank()
    renderer.rule()
    renderer.text(f"Summary: {len(facts)} repos scanned, {len(matches)} depend on {module}")
    return int(ExitCode.SUCCESS)


def _cmd_since(args: argparse.Namespace) -> int:
    since_text = _require_str(getattr(args, "duration", None), "duration")
    window = _parse_duration_arg(since_text)
    dep_filter = _optional_str(getattr(args, "dep_filter", None))
    unpushed_only = _flag(args, "unpushed")

    config = _load_effective_config(
        args, {"scan.recurse": True if _flag(args, "recurse") else None}
    )
    recurse = bool(_section(config, "scan")["recurse"])

    renderer = _get_renderer(args, config)
    root = _resolve_root(args)
    options = _scan_options(
        config,
        check_mod_time=True,
        recurse=recurse,
        check_unpushed=True if unpushed_only else None,
    )
    facts = _run_scan(renderer, root, options)
    now = datetime.now().astimezone()

    width = _name_width(facts)
    modified_count = dep_count = unpushed_count = 0
    number = 0
    for fact in facts:
        if not fact.modified_since(window, now=now):
            continue
        modified_count += 1
        if dep_filter is not None:
            if not fact.has_dependency(dep_filter):
                continue
            dep_count += 1
        if unpushed_only:
            if not fact.needs_push:
                continue
            unpushed_count += 1

        number += 1
        if dep_filter is not None:
            renderer.entry(
                number,
                fact.name,
                name_width=width,
                detail=f"[{fact.module_identity}]  {_format_time(fact)}",
            )
        else:
            renderer.entry(
                number,
                fact.name,
                name_width=width,
                detail=_format_time(fact),
                suffix=_depends_on(fact, facts),
            )

    renderer.blank()
    renderer.rule()
    summary = f"Summary: {len(facts)} repos scanned, {modified_count} modified within {since_text}"
    if dep_filter is not None and unpushed_only:
        summary += (
            f", {dep_count} depend on {dep_filter}, {unpushed_count} with unpushed changes"
        )
    elif dep_filter is not None:
        summary += f", {dep_count} also depend on {dep_filter}"
    elif unpushed_only:
        summary += f", {unpushed_count} with unpushed changes"
    renderer.text(summary)
    return int(ExitCode.SUCCESS)


def _cmd_order(args: argparse.Namespace) -> int:
    since_text = _optional_str(getattr(args, "since", None))
    window = _parse_window(since_text)
    unpushed_only = _flag(args, "unpushed")

    config = _load_effective_config(args, {})
    renderer = _get_renderer(args, config)
    root = _resolve_root(args)
    options = _scan_options(
        config,
        check_mod_time=True,
        recurse=False,
        check_unpushed=True if unpushed_only else None,
    )
    all_facts = _run_scan(renderer, root, options)
    now = datetime.now().astimezone()

    population = all_facts
    if window is not None:
        modified = [fact for fact in all_facts if fact.modified_since(window, now=now)]
        if _flag(args, "transitive") and modified:
            population = transitive_dependents(modified, all_facts)
            renderer.text(
                f"Found {len(modified)} repos modified within {since_text}, "
                f"expanded to {len(population)} with transitive dependents"
            )
        else:
            population = modified
            renderer.text(f"Filtered to {len(population)} repos modified within {since_text}")

    ordered, cyclic = topological_sort(population)
    if cyclic:
        renderer.blank()
        renderer.warning("Circular dependencies detected:")
        renderer.items(cyclic)
        for cycle in ModuleGraph.from_facts(population).detect_cycles():
            renderer.items([" -> ".join(cycle)], prefix="cycle: ")
        renderer.blank()
        logger.info("dependency_cycle_detected", modules=list(cyclic))

    if unpushed_only:
        ordered = [fact for fact in ordered if fact.needs_push]
        renderer.text(f"Filtered to {len(ordered)} repos with unpushed changes")

    width = _name_width(ordered)
    renderer.section("Update order (dependencies first):")
    renderer.text("-" * 34)
    for number, fact in enumerate(ordered, start=1):
        renderer.entry(
            number,
            fact.name,
            name_width=width,
            detail=_format_time(fact),
            suffix=_depends_on(fact, population),
        )

    renderer.blank()
    renderer.text(f"Total: {len(ordered)} repos in dependency order")
    return int(ExitCode.SUCCESS)


def _cmd_config(args: argparse.Namespace) -> int:
    config = _load_effective_config(args, {})
    print(dump_effective_config(config))
    return int(ExitCode.SUCCESS)


# ---------------------------------------------------------------------------
# Scan helpers
# ---------------------------------------------------------------------------


def _run_scan(renderer: CLIRenderer, root: Path, options: ScanOptions) -> list[RepoFact]:
    renderer.note(f"Scanning: {root}")
    try:
        total = count_checkouts(root)
        renderer.note(f"Found {total} directories to scan")
        renderer.note("")
        with renderer.progress(total) as progress:
            facts = scan_directory(root, options, progress)
    except ScanError as exc:
        raise CLIError(f"scan failed: {exc}", exit_code=int(ExitCode.SCAN_ERROR)) from exc
    return sorted(facts, key=lambda fact: fact.name)


def _scan_options(
    config: Mapping[str, object],
    *,
    check_mod_time: bool,
    recurse: bool,
    check_unpushed: bool | None = None,
) -> ScanOptions:
    scan = _section(config, "scan")
    try:
        provider = create_status_provider(str(scan["backend"]))
    except ValueError as exc:
        raise CLIError(str(exc), exit_code=int(ExitCode.CONFIG_ERROR)) from exc
    unpushed = bool(scan["check_unpushed"]) if check_unpushed is None else check_unpushed
    return ScanOptions(
        recurse=recurse,
        check_mod_time=check_mod_time,
        check_unpushed=unpushed,
        workers=_non_negative_int(scan["workers"]),
        status_provider=provider,
    )


def _parse_window(text: str | None) -> timedelta | None:
    if text is None:
        return None
    return _parse_duration_arg(text)


def _parse_duration_arg(text: str) -> timedelta:
    try:
        return parse_duration(text)
    except ValueError as exc:
        raise CLIError(f"invalid duration {text!r}: {exc}") from exc


# ---------------------------------------------------------------------------
# Rendering helpers
# ---------------------------------------------------------------------------


def _render_scan_table(
    renderer: CLIRenderer,
    shown: Sequence[RepoFact],
    *,
    show_since: bool,
    show_dep: bool,
    show_nested: bool,
) -> None:
    if show_since:
        rows = [
            [str(number), fact.name, _format_time(fact)]
            for number, fact in enumerate(shown, start=1)
        ]
        renderer.table(["#", "Repository", "Last Modified"], rows)
        return

    if show_dep:
        if show_nested:
            nested_rows: list[list[str]] = []
            for number, fact in enumerate(shown, start=1):
                label = str(number)
                if fact.has_manifest or not fact.nested_manifests:
                    nested_rows.append([label, fact.name, fact.module_identity, "(root)"])
                    label = ""
                for manifest in fact.nested_manifests:
                    name = fact.name if label else ""
                    nested_rows.append([label, name, manifest.module_identity, manifest.path])
                    label = ""
            renderer.table(["#", "Repository", "Module", "Location"], nested_rows)
        else:
            rows = [
                [str(number), fact.name, fact.module_identity]
                for number, fact in enumerate(shown, start=1)
            ]
            renderer.table(["#", "Repository", "Module"], rows)
        return

    rows = [
        [
            str(number),
            fact.name,
            "X" if fact.has_uncommitted_changes else "",
            str(fact.override_count) if fact.has_override_directives else "",
            "X" if fact.has_identity_mismatch else "",
            "Y" if fact.is_version_controlled else "-",
            "Y" if fact.has_manifest else "-",
        ]
        for number, fact in enumerate(shown, start=1)
    ]
    renderer.table(
        ["#", "Repository", "Uncommitted", "Replace", "Mismatch", "Git", "go.mod"], rows
    )


def _issue_tags(fact: RepoFact) -> list[str]:
    tags: list[str] = []
    if fact.has_uncommitted_changes:
        tags.append("uncommitted")
    if fact.has_unpushed_commits:
        tags.append("unpushed")
    if fact.has_override_directives:
        tags.append(f"replace:{fact.override_count}")
    if fact.has_identity_mismatch:
        tags.append("mismatch")
    if not fact.is_version_controlled:
        tags.append("no-git")
    if not fact.has_manifest:
        tags.append("no-gomod")
    return tags


def _identity_label(fact: RepoFact, recurse: bool) -> str:
    if recurse and fact.nested_manifests:
        return f"[{fact.module_identity} + {len(fact.nested_manifests)} nested]"
    return f"[{fact.module_identity}]"


def _depends_on(fact: RepoFact, population: Sequence[RepoFact]) -> str:
    names = internal_dependencies(fact, population)
    if not names:
        return ""
    return f" (depends on: {', '.join(names)})"


def _format_time(fact: RepoFact) -> str:
    if fact.latest_modification_time is None:
        return ""
    return fact.latest_modification_time.astimezone().strftime(TIME_FORMAT)


def _name_width(facts: Sequence[RepoFact]) -> int:
    return max((len(fact.name) for fact in facts), default=0)


def _fact_payload(fact: RepoFact, population: Sequence[RepoFact]) -> dict[str, object]:
    payload: dict[str, object] = dict(fact.to_dict())
    payload["internal_dependencies"] = internal_dependencies(fact, population)
    payload["issues"] = _issue_tags(fact)
    return payload


def _get_renderer(
    args: argparse.Namespace,
    config: Mapping[str, object],
    *,
    notes_to_stderr: bool = False,
) -> CLIRenderer:
    """Create a CLI renderer from the parsed namespace and effective config."""

    color = bool(_section(config, "output")["color"])
    no_color = _flag(args, "no_color") or not color
    return create_renderer(no_color=no_color, notes_to_stderr=notes_to_stderr)


# ---------------------------------------------------------------------------
# Helpers - config, paths, resolution
# ---------------------------------------------------------------------------


def _resolve_root(args: argparse.Namespace) -> Path:
    raw = (
        _optional_str(getattr(args, "directory_option", None))
        or _optional_str(getattr(args, "directory", None))
        or "."
    )
    try:
        return resolve_directory(raw)
    except FileNotFoundError as exc:
        raise CLIError(
            f"directory does not exist: {raw}", exit_code=int(ExitCode.CONFIG_ERROR)
        ) from exc
    except NotADirectoryError as exc:
        raise CLIError(
            f"not a directory: {raw}", exit_code=int(ExitCode.CONFIG_ERROR)
        ) from exc


def _load_effective_config(
    args: argparse.Namespace,
    overrides: Mapping[str, object],
) -> dict[str, object]:
    """Load config with CLI overrides applied, then start logging from it."""

    config_path = _optional_str(getattr(args, "config_path", None))
    cli_overrides: dict[str, object] = {
        "scan.backend": getattr(args, "backend", None),
        "scan.workers": getattr(args, "workers", None),
        "observability.log_level": getattr(args, "log_level", None),
        "output.color": False if _flag(args, "no_color") else None,
    }
    cli_overrides.update(overrides)

    try:
        loaded = load_config(config_path, cli_overrides=cli_overrides)
    except (ConfigLoadError, ConfigValidationError) as exc:
        raise CLIError(str(exc), exit_code=int(ExitCode.CONFIG_ERROR)) from exc

    setup_structured_logging(logging_config_from_mapping(_section(loaded, "observability")))
    logger.debug("config_loaded", config_path=config_path, command=getattr(args, "command", None))
    return dict(loaded)


def _section(config: Mapping[str, object], name: str) -> Mapping[str, object]:
    section = config.get(name)
    if not isinstance(section, Mapping):
        raise CLIError(f"config section [{name}] is missing", exit_code=int(ExitCode.CONFIG_ERROR))
    return section


def _require_str(value: object, name: str) -> str:
    if not isinstance(value, str):
        raise CLIError(f"invalid {name}: expected a string")
    cleaned = value.strip()
    if not cleaned:
        raise CLIError(f"invalid {name}: value cannot be empty")
    return cleaned


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise CLIError("invalid optional string argument")
    cleaned = value.strip()
    return cleaned or None


def _flag(args: argparse.Namespace, name: str) -> bool:
    value = getattr(args, name, False)
    return bool(value)


def _non_negative_int(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return max(0, value)


def _non_negative_int_arg(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got {raw!r}") from exc
    if value < 0:
        raise argparse.ArgumentTypeError("must be >= 0")
    return value


__all__ = [
    "CLIError",
    "ScanSummary",
    "build_parser",
    "main",
    "run_cli",
]


if __name__ == "__main__":
    raise SystemExit(run_cli())
