"""Structured logging setup: structlog over stdlib handlers, JSON lines or console output."""

from __future__ import annotations

import logging
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Final, TextIO

import structlog

_DEFAULT_LOGGER_NAME: Final[str] = "sipmeta"
_DEFAULT_LOG_FILENAME: Final[str] = "sipmeta.jsonl"
_LOG_FORMATS: Final[frozenset[str]] = frozenset({"json", "console"})

_ACTIVE_HANDLE_LOCK = threading.Lock()
_ACTIVE_HANDLE: StructuredLoggingHandle | None = None

__all__ = [
    "LoggingConfig",
    "StructuredLoggingHandle",
    "bind_object_context",
    "get_active_logging_handle",
    "setup_logging",
    "setup_structured_logging",
    "shutdown_logging",
]


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Configuration for structlog-backed logging."""

    level: int | str = "INFO"
    log_format: str = "console"
    log_dir: Path | str | None = None
    logger_name: str = _DEFAULT_LOGGER_NAME
    log_filename: str = _DEFAULT_LOG_FILENAME
    stream: TextIO | None = None


class StructuredLoggingHandle:
    """Runtime handle for an active logging setup."""

    def __init__(
        self,
        *,
        logger: logging.Logger,
        handlers: tuple[logging.Handler, ...],
        log_path: Path | None,
    ) -> None:
        self.logger = logger
        self.log_path = log_path
        self._handlers = handlers
        self._shutdown_lock = threading.Lock()
        self._is_shutdown = False

    @property
    def is_shutdown(self) -> bool:
        return self._is_shutdown

    def shutdown(self) -> None:
        with self._shutdown_lock:
            if self._is_shutdown:
                return
            for handler in self._handlers:
                handler.flush()
                self.logger.removeHandler(handler)
                handler.close()
            self._is_shutdown = True


def setup_logging(
    logging_config: Mapping[str, object] | None = None,
    *,
    stream: TextIO | None = None,
) -> StructuredLoggingHandle:
    """Configure logging from a ``[logging]`` mapping as found in ``sipmeta.toml``."""

    cfg = dict(logging_config or {})
    raw_level = cfg.get("level", "INFO")
    level: int | str = raw_level if isinstance(raw_level, (int, str)) else "INFO"
    raw_format = cfg.get("format", "console")
    log_format = raw_format if isinstance(raw_format, str) else "console"
    raw_log_dir = cfg.get("log_dir")
    log_dir = raw_log_dir if isinstance(raw_log_dir, (str, Path)) and raw_log_dir else None
    return setup_structured_logging(
        LoggingConfig(level=level, log_format=log_format, log_dir=log_dir, stream=stream)
    )


def setup_structured_logging(config: LoggingConfig) -> StructuredLoggingHandle:
    """Route structlog events through stdlib handlers on the package logger."""

    shutdown_logging()

    level = _parse_log_level(config.level)
    log_format = _validate_log_format(config.log_format)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    stream_handler = logging.StreamHandler(config.stream if config.stream is not None else sys.stderr)
    stream_handler.setFormatter(_formatter(log_format, shared_processors))
    handlers: list[logging.Handler] = [stream_handler]

    log_path: Path | None = None
    if config.log_dir is not None:
        log_dir = Path(config.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path = log_dir / config.log_filename
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        # Files are always machine-readable.
        file_handler.setFormatter(_formatter("json", shared_processors))
        handlers.append(file_handler)

    logger = logging.getLogger(config.logger_name)
    logger.setLevel(level)
    logger.propagate = False
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()
    for handler in handlers:
        handler.setLevel(level)
        logger.addHandler(handler)

    handle = StructuredLoggingHandle(logger=logger, handlers=tuple(handlers), log_path=log_path)
    with _ACTIVE_HANDLE_LOCK:
        global _ACTIVE_HANDLE
        _ACTIVE_HANDLE = handle
    return handle


def shutdown_logging(handle: StructuredLoggingHandle | None = None) -> None:
    """Detach and close the handlers of ``handle`` (default: the active one)."""

    resolved = handle if handle is not None else get_active_logging_handle()
    if resolved is None:
        return
    resolved.shutdown()
    with _ACTIVE_HANDLE_LOCK:
        global _ACTIVE_HANDLE
        if _ACTIVE_HANDLE is resolved:
            _ACTIVE_HANDLE = None


def get_active_logging_handle() -> StructuredLoggingHandle | None:
    with _ACTIVE_HANDLE_LOCK:
        return _ACTIVE_HANDLE


@contextmanager
def bind_object_context(index: int, key: str) -> Iterator[None]:
    """Tag every log event in scope with the object being written."""

    with structlog.contextvars.bound_contextvars(object_index=index, object_key=key):
        yield


def _formatter(
    log_format: str,
    shared_processors: list[structlog.types.Processor],
) -> structlog.stdlib.ProcessorFormatter:
    processors: list[structlog.types.Processor] = [
        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
    ]
    if log_format == "json":
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer(sort_keys=True, ensure_ascii=False))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=processors,
    )


def _parse_log_level(value: int | str) -> int:
    if isinstance(value, int):
        return value

    if not isinstance(value, str):
        raise ValueError(f"level must be int or str, got {type(value).__name__}")

    normalized = value.strip().upper()
    parsed = logging.getLevelName(normalized)
    if isinstance(parsed, int):
        return parsed

    raise ValueError(f"unsupported logging level {value!r}")


def _validate_log_format(value: str) -> str:
    normalized = value.strip().lower()
    if normalized not in _LOG_FORMATS:
        raise ValueError(f"log format must be one of {sorted(_LOG_FORMATS)}, got {value!r}")
    return normalized
