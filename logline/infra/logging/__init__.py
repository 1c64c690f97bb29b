"""Logging infrastructure.

Provides production-ready structured logging for the request logger:
- JSONL format for Loki/Elasticsearch/Datadog ingestion
- Automatic context injection (request_id, OpenTelemetry trace ids)
- QueueHandler + QueueListener for non-blocking I/O
- Per-request sampling of successful request lines

Basic usage:
    from logline.infra.logging import set_log_context, setup_logging
    import logging

    setup_logging()
    logger = logging.getLogger(__name__)

    set_log_context(request_id="abc-123")
    logger.info("Processing request")  # Automatically includes request_id
"""

from logline.infra.logging.config import (
    complete,
    configure_logging,
    setup_logging,
    shutdown,
)
from logline.infra.logging.context import (
    ContextInjectingFilter,
    clear_log_context,
    get_log_context,
    remove_from_log_context,
    set_log_context,
    update_log_context,
)
from logline.infra.logging.formatters import JSONFormatter, VendorJSONFormatter, to_vendor_id
from logline.infra.logging.sampling import RequestSampler, uniform_draw

__all__ = [
    "ContextInjectingFilter",
    # Formatters
    "JSONFormatter",
    # Sampling
    "RequestSampler",
    "VendorJSONFormatter",
    "clear_log_context",
    "complete",
    # Configuration
    "configure_logging",
    "get_log_context",
    "remove_from_log_context",
    # Context management
    "set_log_context",
    "setup_logging",
    "shutdown",
    "to_vendor_id",
    "uniform_draw",
    "update_log_context",
]
