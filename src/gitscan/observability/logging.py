"""Structured logging for gitscan: structlog events written as JSON lines.

Modules log through ``structlog.get_logger(__name__)``. After
:func:`setup_structured_logging`, structlog turns each call into stdlib
``logging`` keyword arguments for the ``gitscan`` logger tree. That tree has a
single non-blocking queue handler; a ``QueueListener`` thread drains it into
the sinks (stderr and, optionally, a log file), so scan workers never write to
a stream themselves.
"""

from __future__ import annotations

import atexit
import copy
import json
import logging
import logging.handlers
import math
import queue
import sys
import threading
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path, PurePath
from typing import Final, TextIO

import structlog

from gitscan.domain.models import JSONValue

_ROOT_LOGGER_NAME: Final[str] = "gitscan"
_DEFAULT_QUEUE_SIZE: Final[int] = 4096
_TRACEBACK_FORMATTER: Final = logging.Formatter()

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RECORD_ATTRIBUTES: Final[frozenset[str]] = frozenset(vars(logging.makeLogRecord({}))) | {
    "asctime",
    "message",
    "taskName",
}

_STATE_LOCK = threading.Lock()
_ACTIVE: StructuredLoggingHandle | None = None
_ATEXIT_REGISTERED = False


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Where and how verbosely the pipeline writes."""

    level: int | str = "WARNING"
    log_file: Path | str | None = None
    logger_name: str = _ROOT_LOGGER_NAME
    queue_size: int = _DEFAULT_QUEUE_SIZE
    log_to_stderr: bool = True
    stream: TextIO | None = None


def logging_config_from_mapping(observability: Mapping[str, object]) -> LoggingConfig:
    """Translate the ``[observability]`` config table into a :class:`LoggingConfig`."""

    level = observability.get("log_level") or "WARNING"
    log_file = observability.get("log_file")
    return LoggingConfig(
        level=level if isinstance(level, (int, str)) else "WARNING",
        log_file=log_file if isinstance(log_file, str) and log_file.strip() else None,
    )


def to_json_value(value: object) -> JSONValue:
    """Coerce a log field into JSON.

    Paths become POSIX strings, datetimes become UTC ISO-8601 with ``Z``, and
    durations become seconds. Objects exposing ``to_dict`` (such as
    ``RepoFact``) are expanded; anything else falls back to ``repr``.
    """

    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else repr(value)
    if isinstance(value, datetime):
        aware = value if value.tzinfo is not None else value.replace(tzinfo=UTC)
        return aware.astimezone(UTC).isoformat().replace("+00:00", "Z")
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, PurePath):
        return value.as_posix()
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, Mapping):
        return {str(key): to_json_value(item) for key, item in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted((to_json_value(item) for item in value), key=repr)
    if isinstance(value, (list, tuple)):
        return [to_json_value(item) for item in value]
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_json_value(to_dict())
    return repr(value)


class JsonLineFormatter(logging.Formatter):
    """Render a record as one JSON object: timestamp, level, logger, event, fields."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=UTC)
        line: dict[str, JSONValue] = {
            "timestamp": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        fields = {
            key: to_json_value(value)
            for key, value in sorted(vars(record).items())
            if key not in _RECORD_ATTRIBUTES and not key.startswith("_")
        }
        if fields:
            line["fields"] = fields
        if record.exc_info:
            line["exception"] = self.formatException(record.exc_info)
        elif record.exc_text:
            line["exception"] = record.exc_text
        if record.stack_info:
            line["stack"] = record.stack_info
        return json.dumps(line, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class _DroppingQueueHandler(logging.handlers.QueueHandler):
    """Queue handler that counts and discards records instead of blocking a worker."""

    def __init__(self, log_queue: queue.Queue[logging.LogRecord]) -> None:
        super().__init__(log_queue)
        self._drop_lock = threading.Lock()
        self.dropped = 0

    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        # The listener thread only ever sees text: message and traceback are rendered here.
        prepared = copy.copy(record)
        prepared.message = record.getMessage()
        prepared.msg = prepared.message
        prepared.args = None
        if record.exc_info:
            prepared.exc_text = _TRACEBACK_FORMATTER.formatException(record.exc_info)
        prepared.exc_info = None
        return prepared

    def enqueue(self, record: logging.LogRecord) -> None:
        try:
            self.queue.put_nowait(record)
        except queue.Full:
            with self._drop_lock:
                self.dropped += 1


@dataclass(slots=True, eq=False)
class StructuredLoggingHandle:
    """An installed pipeline. Shutting it down drains the queue and closes the sinks."""

    logger: logging.Logger
    log_path: Path | None
    queue_handler: _DroppingQueueHandler
    listener: logging.handlers.QueueListener
    sinks: tuple[logging.Handler, ...]
    _closed: bool = field(default=False, init=False)
    _close_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @property
    def dropped_records(self) -> int:
        return self.queue_handler.dropped

    @property
    def is_shutdown(self) -> bool:
        return self._closed

    def flush(self, *, timeout_seconds: float = 2.0) -> None:
        """Wait up to ``timeout_seconds`` for queued records to reach the sinks."""

        pending = self.queue_handler.queue
        deadline = time.monotonic() + max(timeout_seconds, 0.0)
        while getattr(pending, "unfinished_tasks", 0) and time.monotonic() < deadline:
            time.sleep(0.01)
        for sink in self.sinks:
            sink.flush()

    def shutdown(self, *, timeout_seconds: float = 2.0) -> None:
        with self._close_lock:
            if self._closed:
                return
            self.flush(timeout_seconds=timeout_seconds)
            self.listener.stop()
            self.logger.removeHandler(self.queue_handler)
            self.queue_handler.close()
            for sink in self.sinks:
                sink.flush()
                sink.close()
            self._closed = True


def configure_structlog() -> None:
    """Route structlog events into the stdlib logging tree as keyword ``extra`` fields."""

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.render_to_log_kwargs,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def setup_structured_logging(config: LoggingConfig | None = None) -> StructuredLoggingHandle:
    """Install the JSON-lines pipeline, replacing any pipeline installed earlier."""

    global _ACTIVE

    settings = config if config is not None else LoggingConfig()
    queue_size = settings.queue_size
    if isinstance(queue_size, bool) or not isinstance(queue_size, int) or queue_size <= 0:
        raise ValueError(f"queue_size must be a positive integer, got {queue_size!r}")
    logger_name = settings.logger_name.strip()
    if not logger_name:
        raise ValueError("logger_name must not be empty")
    level = _level_number(settings.level)

    shutdown_logging()

    formatter = JsonLineFormatter()
    sinks: list[logging.Handler] = []
    log_path: Path | None = None
    if settings.log_file is not None:
        log_path = Path(settings.log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        sinks.append(logging.FileHandler(log_path, encoding="utf-8"))
    if settings.log_to_stderr:
        sinks.append(
            logging.StreamHandler(settings.stream if settings.stream is not None else sys.stderr)
        )
    for sink in sinks:
        sink.setLevel(level)
        sink.setFormatter(formatter)

    logger = logging.getLogger(logger_name)
    for stale in list(logger.handlers):
        logger.removeHandler(stale)
        stale.close()
    logger.setLevel(level)
    logger.propagate = False

    queue_handler = _DroppingQueueHandler(queue.Queue(maxsize=queue_size))
    queue_handler.setLevel(level)
    listener = logging.handlers.QueueListener(
        queue_handler.queue, *sinks, respect_handler_level=True
    )
    listener.start()
    logger.addHandler(queue_handler)
    configure_structlog()

    handle = StructuredLoggingHandle(
        logger=logger,
        log_path=log_path,
        queue_handler=queue_handler,
        listener=listener,
        sinks=tuple(sinks),
    )
    with _STATE_LOCK:
        _ACTIVE = handle
    _register_atexit()
    return handle


def flush_logging(
    handle: StructuredLoggingHandle | None = None,
    *,
    timeout_seconds: float = 2.0,
) -> None:
    target = handle if handle is not None else get_active_logging_handle()
    if target is not None:
        target.flush(timeout_seconds=timeout_seconds)


def shutdown_logging(
    handle: StructuredLoggingHandle | None = None,
    *,
    timeout_seconds: float = 2.0,
) -> None:
    """Stop ``handle`` (default: the active pipeline) and close its sinks. Safe to repeat."""

    global _ACTIVE

    with _STATE_LOCK:
        target = handle if handle is not None else _ACTIVE
        if target is _ACTIVE:
            _ACTIVE = None
    if target is not None:
        target.shutdown(timeout_seconds=timeout_seconds)


def get_active_logging_handle() -> StructuredLoggingHandle | None:
    with _STATE_LOCK:
        return _ACTIVE


def _level_number(level: int | str) -> int:
    if isinstance(level, int):
        return level
    number = logging.getLevelNamesMapping().get(str(level).strip().upper())
    if number is None:
        raise ValueError(f"unsupported logging level {level!r}")
    return number


def _register_atexit() -> None:
    global _ATEXIT_REGISTERED
    if not _ATEXIT_REGISTERED:
        atexit.register(shutdown_logging)
        _ATEXIT_REGISTERED = True


__all__ = [
    "JsonLineFormatter",
    "LoggingConfig",
    "StructuredLoggingHandle",
    "configure_structlog",
    "flush_logging",
    "get_active_logging_handle",
    "logging_config_from_mapping",
    "setup_structured_logging",
    "shutdown_logging",
    "to_json_value",
]
