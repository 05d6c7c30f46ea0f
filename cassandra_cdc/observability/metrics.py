"""
Prometheus Metrics Setup for CDC Publisher
"""

import structlog
from prometheus_client import Counter, Gauge, Histogram, start_http_server

logger = structlog.get_logger(__name__)

# Counters
events_published_total = Counter(
    "cdc_events_published_total",
    "Total events acknowledged by the broker",
    ["topic"],
)

publish_failures_total = Counter(
    "cdc_publish_failures_total",
    "Total events that could not be delivered to the broker",
    ["topic", "error_type"],
)

partitions_filtered_total = Counter(
    "cdc_partitions_filtered_total",
    "Partition updates skipped by the keyspace/table filter",
    ["keyspace", "table"],
)

segments_processed_total = Counter(
    "cdc_segments_processed_total", "Commit log segments fully processed and deleted"
)

segment_errors_total = Counter(
    "cdc_segment_errors_total", "Commit log segment decode errors", ["error_type"]
)

trigger_tasks_rejected_total = Counter(
    "cdc_trigger_tasks_rejected_total", "Trigger tasks refused because the work queue was full"
)

# Gauges
trigger_queue_depth = Gauge(
    "cdc_trigger_queue_depth", "Trigger tasks submitted but not yet finished"
)

# Histograms
segment_processing_seconds = Histogram(
    "cdc_segment_processing_seconds",
    "Time taken to decode and publish one commit log segment",
    buckets=(0.01, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)


def start_metrics_server(port: int = 9090) -> None:
    """
    Start Prometheus metrics HTTP server

    Args:
        port: HTTP port to expose /metrics endpoint (default 9090)
    """
    start_http_server(port)
    logger.info("Prometheus metrics server started", port=port)


def increment_events_published(topic: str, count: int = 1) -> None:
    """Increment events published counter"""
    events_published_total.labels(topic=topic).inc(count)


def increment_publish_failures(topic: str, error_type: str, count: int = 1) -> None:
    """Increment publish failures counter"""
    publish_failures_total.labels(topic=topic, error_type=error_type).inc(count)


def increment_partitions_filtered(keyspace: str, table: str, count: int = 1) -> None:
    """Increment filtered partitions counter"""
    partitions_filtered_total.labels(keyspace=keyspace, table=table).inc(count)


def increment_segments_processed(count: int = 1) -> None:
    """Increment processed segments counter"""
    segments_processed_total.inc(count)


def increment_segment_errors(error_type: str, count: int = 1) -> None:
    """Increment segment error counter"""
    segment_errors_total.labels(error_type=error_type).inc(count)


def increment_trigger_rejections(count: int = 1) -> None:
    """Increment rejected trigger tasks counter"""
    trigger_tasks_rejected_total.inc(count)


def set_trigger_queue_depth(depth: int) -> None:
    """Set trigger queue depth gauge"""
    trigger_queue_depth.set(depth)


def observe_segment_duration(duration_seconds: float) -> None:
    """Observe segment processing duration histogram"""
    segment_processing_seconds.observe(duration_seconds)
