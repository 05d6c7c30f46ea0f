"""
OpenTelemetry Tracing Setup for CDC Publisher
"""

from contextlib import contextmanager
from typing import Iterator, Optional

from opentelemetry import trace
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

# Global tracer instance
tracer: Optional[trace.Tracer] = None


def init_tracing(
    service_name: str = "cassandra-cdc",
    enable_console_export: bool = False,
) -> trace.Tracer:
    """
    Initialize OpenTelemetry tracing

    Args:
        service_name: Name of the service for trace identification
        enable_console_export: Whether to export traces to console (dev mode)

    Returns:
        Configured Tracer instance
    """
    global tracer

    provider = TracerProvider(resource=Resource(attributes={SERVICE_NAME: service_name}))
    if enable_console_export:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    tracer = trace.get_tracer(__name__)

    return tracer


@contextmanager
def segment_span(segment: str) -> Iterator[trace.Span]:
    """
    Span covering the decode and publish of one commit log segment

    The span is made current so log lines emitted inside carry its ids.
    Exceptions are recorded on the span and re-raised. Without init_tracing()
    the span is a non-recording no-op.

    Args:
        segment: Segment file name
    """
    if tracer is None:
        span = trace.INVALID_SPAN
    else:
        span = tracer.start_span("process_segment", attributes={"segment.name": segment})

    with trace.use_span(span, end_on_exit=True):
        yield span
