"""Logging configuration setup.

Provides production-ready logging configuration using:
- dictConfig for flexible configuration
- QueueHandler + QueueListener for non-blocking I/O
- ContextInjectingFilter for automatic context propagation
- All handlers behind the root logger (child loggers propagate)
- JSONL format for machine parsing, plain text for humans
"""

from __future__ import annotations

import atexit
import copy
import logging
import logging.config
import time
from collections.abc import Mapping
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path
from queue import Queue
from typing import TYPE_CHECKING, Any

from logline.infra.logging.context import ContextInjectingFilter
from logline.infra.logging.formatters import JSONFormatter, VendorJSONFormatter

if TYPE_CHECKING:
    from logline.core.settings.logs import LoggingSettings

# Global queue and listener for async logging
_log_queue: Queue[logging.LogRecord] | None = None
_listener: QueueListener | None = None
_queue_handler: QueueHandler | None = None
logger = logging.getLogger(__name__)
_LOGGING_INITIALIZED = False

TEXT_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"


class StructuredQueueHandler(QueueHandler):
    """QueueHandler that keeps mapping messages intact.

    The stock ``prepare`` renders every message to a string before
    enqueueing. Request lines in the ``map`` format are dicts and must
    reach JSONFormatter as dicts, so those records are only copied, with
    any exception rendered to ``exc_text``.
    """

    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        if not isinstance(record.msg, Mapping) or record.args:
            return super().prepare(record)

        record = copy.copy(record)
        if record.exc_info:
            record.exc_text = logging.Formatter().formatException(record.exc_info)
            record.exc_info = None
        return record


def complete() -> None:
    """Wait for all queued log records to be processed.

    Blocks until the queue is drained (at most 5 seconds). Useful in tests
    and before a graceful shutdown to avoid losing lines.
    """
    if _log_queue is None or _listener is None:
        return

    max_wait = 5.0
    start = time.time()
    while not _log_queue.empty() and (time.time() - start) < max_wait:
        time.sleep(0.01)

    # Let the listener finish writing the last record it dequeued
    time.sleep(0.05)


def shutdown() -> None:
    """Stop the QueueListener and detach the queue handler from the root logger.

    Registered with atexit on first configuration; safe to call repeatedly.
    """
    global _log_queue, _listener, _queue_handler, _LOGGING_INITIALIZED

    if _listener is not None:
        complete()
        _listener.stop()
        for handler in _listener.handlers:
            handler.close()
        _listener = None

    if _queue_handler is not None:
        logging.getLogger().removeHandler(_queue_handler)
        _queue_handler = None

    _log_queue = None
    _LOGGING_INITIALIZED = False


def setup_logging(
    log_settings: LoggingSettings | None = None,
    *,
    force: bool = False,
    **configure_kwargs: Any,
) -> None:
    """Ensure logging is configured once across entrypoints.

    Args:
        log_settings: Optional logging settings instance. If omitted, settings
            are loaded via get_logging_settings().
        force: Reconfigure logging even if it was already initialized.
        **configure_kwargs: Explicit overrides for configure_logging().
    """
    global _LOGGING_INITIALIZED

    if _LOGGING_INITIALIZED and not force:
        return

    settings_obj = log_settings
    if settings_obj is None:
        from logline.core.settings import get_logging_settings

        settings_obj = get_logging_settings()

    log_config = settings_obj.to_logging_kwargs()
    if configure_kwargs:
        log_config = {**log_config, **configure_kwargs}

    configure_logging(**log_config)
    _LOGGING_INITIALIZED = True


def configure_logging(
    log_level: str = "INFO",
    service_name: str = "logline",
    console_level: str | None = None,
    file_level: str | None = None,
    file_path: str | Path | None = None,
    json_logs: bool = True,
    vendor_trace_ids: bool = False,
    console_enabled: bool = True,
    include_context: bool = True,
    capture_warnings: bool = True,
    include_process_info: bool = False,
    include_thread_info: bool = False,
    file_max_bytes: int = 10 * 1024 * 1024,
    file_backup_count: int = 5,
    **kwargs: Any,
) -> None:
    """Configure logging with dictConfig and QueueHandler pattern.

    All handlers are attached to a QueueListener; the root logger gets a
    single queue handler and application loggers propagate up to it.
    Calling this again replaces the previous configuration.

    Args:
        log_level: Root logger level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        service_name: Static ``service`` field of JSON records.
        console_level: Console handler level. If None, uses log_level.
        file_level: File handler level. If None, uses log_level.
        file_path: Path to log file. None disables file logging.
        json_logs: Enable JSONL (JSON Lines) structured logging.
        vendor_trace_ids: Add Datadog dd.trace_id/dd.span_id to JSON records.
        console_enabled: Enable console/stderr logging.
        include_context: Enable ContextInjectingFilter for auto context.
        capture_warnings: Forward Python warnings to logging system.
        include_process_info: Include process ID and name in records.
        include_thread_info: Include thread ID and name in records.
        file_max_bytes: Maximum log file size before rotation.
        file_backup_count: Number of rotated log files to keep.
        **kwargs: Unknown options are logged at debug and ignored.

    Example:
        from logline.core.settings import get_logging_settings
        configure_logging(**get_logging_settings().to_logging_kwargs())

        # Or: direct parameters with per-handler levels
        configure_logging(
            log_level="DEBUG",
            console_level="ERROR",
            file_path="logs/requests.jsonl",
        )
    """
    if kwargs:
        logger.debug("Unused logging kwargs supplied: %s", ", ".join(sorted(kwargs.keys())))

    # Replace a previous listener instead of stacking queue handlers
    shutdown()

    if capture_warnings:
        logging.captureWarnings(True)

    path = Path(file_path) if file_path else None
    if path:
        path.parent.mkdir(parents=True, exist_ok=True)

    logging_config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        # Handlers are created manually and attached to the QueueListener
        "root": {
            "level": log_level.upper(),
            "handlers": [],
        },
    }
    logging.config.dictConfig(logging_config)

    formatter = _build_formatter(
        json_logs=json_logs,
        vendor_trace_ids=vendor_trace_ids,
        service_name=service_name,
        include_process_info=include_process_info,
        include_thread_info=include_thread_info,
    )

    _setup_queue_logging(
        formatter=formatter,
        console_enabled=console_enabled,
        console_level=console_level or log_level,
        file_path=path,
        file_level=file_level or log_level,
        file_max_bytes=file_max_bytes,
        file_backup_count=file_backup_count,
        include_context=include_context,
    )


def _build_formatter(
    json_logs: bool,
    vendor_trace_ids: bool,
    service_name: str,
    include_process_info: bool,
    include_thread_info: bool,
) -> logging.Formatter:
    """Build the formatter shared by every handler.

    Args:
        json_logs: Use JSONL format.
        vendor_trace_ids: Use VendorJSONFormatter.
        service_name: Static service field.
        include_process_info: Include process info.
        include_thread_info: Include thread info.

    Returns:
        Formatter instance.
    """
    if not json_logs:
        parts = ["%(asctime)s", "%(levelname)s", "%(name)s"]
        if include_process_info:
            parts.append("[%(processName)s:%(process)d]")
        if include_thread_info:
            parts.append("[%(threadName)s:%(thread)d]")
        parts.append("%(message)s")
        return logging.Formatter(fmt=" - ".join(parts), datefmt=TEXT_DATEFMT)

    formatter_cls = VendorJSONFormatter if vendor_trace_ids else JSONFormatter
    return formatter_cls(
        fmt_keys={"level": "levelname", "logger": "name", "message": "message"},
        static={"service": service_name},
        include_process_info=include_process_info,
        include_thread_info=include_thread_info,
    )


def _setup_queue_logging(
    formatter: logging.Formatter,
    console_enabled: bool,
    console_level: str,
    file_path: Path | None,
    file_level: str,
    file_max_bytes: int,
    file_backup_count: int,
    include_context: bool,
) -> None:
    """Set up QueueHandler + QueueListener for non-blocking logging.

    Args:
        formatter: Formatter for every handler.
        console_enabled: Enable console handler.
        console_level: Console handler level.
        file_path: File path or None.
        file_level: File handler level.
        file_max_bytes: Max file size.
        file_backup_count: Backup count.
        include_context: Attach ContextInjectingFilter to the queue handler.
    """
    global _log_queue, _listener, _queue_handler

    _log_queue = Queue()
    handlers: list[logging.Handler] = []

    if console_enabled:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(getattr(logging, console_level.upper()))
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    if file_path:
        file_handler = RotatingFileHandler(
            file_path,
            maxBytes=file_max_bytes,
            backupCount=file_backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(getattr(logging, file_level.upper()))
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        # Nothing would drain the queue
        _log_queue = None
        return

    _listener = QueueListener(_log_queue, *handlers, respect_handler_level=True)
    _listener.start()
    atexit.register(shutdown)

    _queue_handler = StructuredQueueHandler(_log_queue)
    # Filters run in the emitting thread, where the request's context is live
    if include_context:
        _queue_handler.addFilter(ContextInjectingFilter())
    logging.getLogger().addHandler(_queue_handler)
