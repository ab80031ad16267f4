"""Process entrypoint for ``gitscan``: runs the CLI and turns failures into exit codes."""

from __future__ import annotations

import sys
import traceback
from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence


class ExitCode(IntEnum):
    """Process exit codes; scripts may depend on these values."""

    SUCCESS = 0
    USAGE_ERROR = 1
    CONFIG_ERROR = 2
    SCAN_ERROR = 3
    INTERNAL_ERROR = 4


def cli_entrypoint(argv: Sequence[str] | None = None) -> int:
    """Run the CLI and return an exit code; never raises."""

    try:
        from gitscan.ui.cli import run_cli

        return _exit_code_from(run_cli(argv))
    except SystemExit as exc:
        return _exit_code_from(exc.code)
    except BaseException as exc:  # noqa: BLE001
        code = exit_code_for(exc)
        _report(exc, code)
        return int(code)


def main() -> None:
    """Console-script entrypoint."""

    raise SystemExit(cli_entrypoint())


def exit_code_for(exc: BaseException) -> ExitCode:
    """Pick the exit code for an exception that escaped the command handlers.

    The first exception in the ``__cause__``/``__context__`` chain with a known
    type decides; interrupts are usage errors and everything else is internal.
    """

    from gitscan.config.loader import ConfigLoadError
    from gitscan.config.schema import ConfigValidationError
    from gitscan.scanning.enumerator import ScanError

    routes: tuple[tuple[tuple[type[BaseException], ...], ExitCode], ...] = (
        ((ConfigLoadError, ConfigValidationError), ExitCode.CONFIG_ERROR),
        ((FileNotFoundError, NotADirectoryError), ExitCode.CONFIG_ERROR),
        ((ScanError,), ExitCode.SCAN_ERROR),
    )
    for link in _exception_chain(exc):
        for types, code in routes:
            if isinstance(link, types):
                return code
    if isinstance(exc, KeyboardInterrupt):
        return ExitCode.USAGE_ERROR
    return ExitCode.INTERNAL_ERROR


def _exit_code_from(raw: object) -> int:
    if raw is None:
        return int(ExitCode.SUCCESS)
    if isinstance(raw, int) and raw in set(ExitCode):
        return int(raw)
    if isinstance(raw, str) and raw.strip():
        print(raw.strip(), file=sys.stderr)
    return int(ExitCode.INTERNAL_ERROR)


def _exception_chain(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        if current.__cause__ is not None:
            current = current.__cause__
        elif not current.__suppress_context__:
            current = current.__context__
        else:
            current = None


def _report(exc: BaseException, code: ExitCode) -> None:
    if code is ExitCode.INTERNAL_ERROR:
        sys.stderr.write("".join(traceback.format_exception(exc)))
        return
    message = str(exc).strip() or type(exc).__name__
    print(f"error: {message}", file=sys.stderr)


__all__ = ["ExitCode", "cli_entrypoint", "exit_code_for", "main"]
