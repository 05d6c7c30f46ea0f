"""
Unit tests for Prometheus metrics collection
Tests counter/gauge/histogram updates through the helper functions
"""

from prometheus_client import REGISTRY

from cassandra_cdc.observability.metrics import (
    increment_events_published,
    increment_partitions_filtered,
    increment_publish_failures,
    increment_segment_errors,
    increment_segments_processed,
    increment_trigger_rejections,
    observe_segment_duration,
    set_trigger_queue_depth,
)


def sample(name, labels=None) -> float:
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


class TestMetrics:
    """Test Prometheus metrics collection"""

    def test_increment_events_published_counter(self):
        """Test incrementing events published counter"""
        before = sample("cdc_events_published_total", {"topic": "metrics-test"})

        increment_events_published(topic="metrics-test", count=10)

        assert sample("cdc_events_published_total", {"topic": "metrics-test"}) - before == 10

    def test_increment_publish_failures_counter(self):
        """Test incrementing publish failures counter per error type"""
        labels = {"topic": "metrics-test", "error_type": "buffer_full"}
        before = sample("cdc_publish_failures_total", labels)

        increment_publish_failures(topic="metrics-test", error_type="buffer_full")

        assert sample("cdc_publish_failures_total", labels) - before == 1

    def test_increment_partitions_filtered_counter(self):
        """Test incrementing filtered partitions counter"""
        labels = {"keyspace": "shop", "table": "metrics_test"}
        before = sample("cdc_partitions_filtered_total", labels)

        increment_partitions_filtered(keyspace="shop", table="metrics_test", count=3)

        assert sample("cdc_partitions_filtered_total", labels) - before == 3

    def test_segment_counters(self):
        """Test segment processed and error counters"""
        processed = sample("cdc_segments_processed_total")
        skipped = sample("cdc_segment_errors_total", {"error_type": "skipped"})

        increment_segments_processed()
        increment_segment_errors(error_type="skipped")

        assert sample("cdc_segments_processed_total") - processed == 1
        assert sample("cdc_segment_errors_total", {"error_type": "skipped"}) - skipped == 1

    def test_trigger_metrics(self):
        """Test trigger rejection counter and queue depth gauge"""
        before = sample("cdc_trigger_tasks_rejected_total")

        increment_trigger_rejections()
        set_trigger_queue_depth(7)

        assert sample("cdc_trigger_tasks_rejected_total") - before == 1
        assert sample("cdc_trigger_queue_depth") == 7
        set_trigger_queue_depth(0)

    def test_observe_segment_duration(self):
        """Test observing segment processing duration"""
        before = sample("cdc_segment_processing_seconds_count")

        observe_segment_duration(0.25)

        assert sample("cdc_segment_processing_seconds_count") - before == 1
