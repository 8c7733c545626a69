"""Public observability primitives: structured logging."""

from sipmeta.observability.logging import (
    LoggingConfig,
    StructuredLoggingHandle,
    bind_object_context,
    get_active_logging_handle,
    setup_logging,
    setup_structured_logging,
    shutdown_logging,
)

__all__ = [
    "LoggingConfig",
    "StructuredLoggingHandle",
    "bind_object_context",
    "get_active_logging_handle",
    "setup_logging",
    "setup_structured_logging",
    "shutdown_logging",
]
