"""
Structured Logging Configuration with structlog
"""

import logging
import sys
from typing import Any, Dict

import structlog
from opentelemetry import trace

# Third-party loggers that are noisy at DEBUG
QUIET_LOGGERS = ("cassandra", "urllib3")


def add_trace_context(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """Attach trace_id/span_id of the active span so logs correlate with traces"""
    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        event_dict["trace_id"] = format(span_context.trace_id, "032x")
        event_dict["span_id"] = format(span_context.span_id, "016x")
    return event_dict


def configure_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """
    Configure structlog for the CDC publisher

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format ("json" for production, "console" for development)
    """
    level = getattr(logging, log_level.upper())
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_trace_context,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_context(**kwargs: Any) -> None:
    """
    Bind context variables to all log messages in current context

    Args:
        **kwargs: Key-value pairs to add to log context
    """
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**kwargs)


def log_publish_failure(
    logger: structlog.stdlib.BoundLogger,
    topic: str,
    key: str,
    error_type: str,
    error: str,
) -> None:
    """
    Log an event that did not reach the broker

    Args:
        logger: Structlog logger
        topic: Destination topic
        key: Message key (partition key)
        error_type: Failure classification (buffer_full, delivery_failed, ...)
        error: Error message
    """
    logger.error(
        "publish_failed",
        topic=topic,
        key=key,
        error_type=error_type,
        error=error,
    )
