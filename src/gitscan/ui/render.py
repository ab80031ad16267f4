"""Output rendering abstraction for the gitscan CLI.

File: src/gitscan/ui/render.py

Purpose
- Provide a thin rendering layer over ``rich`` for reports, tables, and progress.
- Respect NO_COLOR environment variable and --no-color CLI flag.

Functional requirements
- Reports go to stdout; progress and notes go to stderr when stdout carries JSON.
- Checkout names and module paths are printed verbatim (no markup interpretation).
- Progress bars only render on an interactive stderr.
"""

from __future__ import annotations

import json
import os
from contextlib import contextmanager
from typing import TYPE_CHECKING, TextIO

from rich import box
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn
from rich.table import Table
from rich.text import Text

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping, Sequence

RULE_WIDTH = 40

_TAG_STYLES: dict[str, str] = {
    "uncommitted": "bold yellow",
    "unpushed": "bold magenta",
    "mismatch": "bold red",
    "no-git": "dim",
    "no-gomod": "dim",
}


def _color_allowed(no_color_flag: bool) -> bool:
    """Check whether color output should be attempted."""

    if no_color_flag:
        return False
    return not os.environ.get("NO_COLOR", "")


def _tag_style(tag: str) -> str:
    if tag.startswith("replace:"):
        return "bold cyan"
    return _TAG_STYLES.get(tag, "")


class CLIRenderer:
    """Thin CLI output renderer.

    ``stdout``/``stderr`` default to the live ``sys`` streams at print time.
    With ``notes_to_stderr`` set, informational lines move off stdout so a
    machine-readable payload can own it.
    """

    def __init__(
        self,
        *,
        no_color: bool = False,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
        notes_to_stderr: bool = False,
    ) -> None:
        color = _color_allowed(no_color)
        self._out = Console(
            file=stdout,
            no_color=not color,
            highlight=False,
            soft_wrap=True,
        )
        self._err = Console(
            file=stderr,
            stderr=stderr is None,
            no_color=not color,
            highlight=False,
            soft_wrap=True,
        )
        self._notes = self._err if notes_to_stderr else self._out

    def text(self, line: str) -> None:
        """Print a plain text line."""

        self._out.print(Text(line))

    def note(self, line: str) -> None:
        """Print an informational line that is not part of the report."""

        self._notes.print(Text(line))

    def blank(self) -> None:
        """Print a blank line."""

        self._out.print()

    def section(self, title: str) -> None:
        """Print a section header with a preceding blank line."""

        self._out.print()
        self._out.print(Text(title, style="bold"))

    def rule(self) -> None:
        self._out.print("-" * RULE_WIDTH)

    def warning(self, text: str) -> None:
        """Print a warning message."""

        self._out.print(Text(f"Warning: {text}", style="bold yellow"))

    def items(self, entries: Sequence[str], *, prefix: str = "- ") -> None:
        """Print a bulleted list."""

        for entry in entries:
            self._out.print(Text(f"  {prefix}{entry}"))

    def entry(
        self,
        number: int,
        name: str,
        *,
        name_width: int,
        tags: Sequence[str] = (),
        detail: str = "",
        suffix: str = "",
    ) -> None:
        """Print one numbered report row: ``  1. name  [tags]  detail suffix``."""

        line = Text(f"{number:3d}. ")
        line.append(name.ljust(name_width) if (tags or detail or suffix) else name, style="bold")
        if tags:
            line.append("  [")
            for index, tag in enumerate(tags):
                if index:
                    line.append(", ")
                line.append(tag, style=_tag_style(tag))
            line.append("]")
        if detail:
            line.append(f"  {detail}")
        if suffix:
            line.append(suffix, style="dim")
        self._out.print(line)

    def table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
        *,
        title: str | None = None,
    ) -> None:
        """Print a markdown-style table."""

        if title:
            self.section(title)
        table = Table(box=box.MARKDOWN, show_edge=True, highlight=False, pad_edge=True)
        for header in headers:
            table.add_column(header, overflow="fold")
        for row in rows:
            table.add_row(*(Text(str(cell)) for cell in row))
        self._out.print(table)

    def json(self, payload: Mapping[str, object]) -> None:
        """Emit a JSON payload to stdout with deterministic formatting."""

        self._out.file.write(json.dumps(payload, sort_keys=True, indent=2, ensure_ascii=False))
        self._out.file.write("\n")

    @contextmanager
    def progress(self, total: int, *, description: str = "Scanning") -> Iterator[
        Callable[[int, int, str], None]
    ]:
        """Yield a ``(completed, total, name)`` callback that drives a progress bar."""

        with Progress(
            TextColumn("{task.description}"),
            BarColumn(bar_width=RULE_WIDTH),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            TextColumn("{task.fields[current]}"),
            console=self._err,
            transient=True,
            disable=not self._err.is_terminal,
        ) as bar:
            task = bar.add_task(description, total=total, current="")

            def update(completed: int, total_items: int, name: str) -> None:
                bar.update(task, completed=completed, total=total_items, current=name)

            yield update


def create_renderer(
    *,
    no_color: bool = False,
    notes_to_stderr: bool = False,
) -> CLIRenderer:
    """Create a CLI renderer with the given settings."""

    return CLIRenderer(no_color=no_color, notes_to_stderr=notes_to_stderr)


__all__ = ["CLIRenderer", "RULE_WIDTH", "create_renderer"]
