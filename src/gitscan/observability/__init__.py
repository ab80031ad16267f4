"""Public observability primitives: structured logging."""

from gitscan.observability.logging import (
    JsonLineFormatter,
    LoggingConfig,
    StructuredLoggingHandle,
    configure_structlog,
    flush_logging,
    get_active_logging_handle,
    logging_config_from_mapping,
    setup_structured_logging,
    shutdown_logging,
    to_json_value,
)

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
