"""
Pytest Fixtures and Test Configuration
Provides an in-memory producer and builders for decoded partition views
"""

import threading
from typing import Any, Callable, List, Optional, Tuple

import pytest

from cassandra_cdc.cdc.codec import ColumnCodec
from cassandra_cdc.models.views import (
    LIVE,
    BoundKind,
    BoundView,
    CellView,
    ColumnDefinition,
    PartitionView,
    RowView,
    TableMetadata,
)

# ============================================================================
# Kafka Producer Double
# ============================================================================


class FakeProducer:
    """
    Stands in for confluent_kafka.Producer

    Records every produced message and serves delivery callbacks on poll()
    and flush(), the way librdkafka does. Set produce_error to make produce()
    raise, or delivery_error to report every delivery as failed.
    """

    def __init__(self, configuration: Optional[dict] = None):
        self.configuration = configuration or {}
        self.messages: List[Tuple[str, Any, Any]] = []
        self.produce_error: Optional[BaseException] = None
        self.delivery_error: Optional[Any] = None
        self.flush_calls = 0
        self._pending: List[Callable] = []
        self._lock = threading.Lock()

    def produce(self, topic, key=None, value=None, on_delivery=None):
        if self.produce_error is not None:
            raise self.produce_error
        with self._lock:
            self.messages.append((topic, key, value))
            if on_delivery is not None:
                self._pending.append(on_delivery)

    def poll(self, timeout=None):
        with self._lock:
            pending, self._pending = self._pending, []
        for callback in pending:
            callback(self.delivery_error, None)
        return len(pending)

    def flush(self, timeout=None):
        self.flush_calls += 1
        self.poll(0)
        return 0


@pytest.fixture
def fake_producer() -> FakeProducer:
    """In-memory producer"""
    return FakeProducer()


# ============================================================================
# Partition View Builders
# ============================================================================


@pytest.fixture
def codec() -> ColumnCodec:
    """Protocol v4 column codec"""
    return ColumnCodec()


@pytest.fixture
def orders_metadata() -> TableMetadata:
    """shop.orders: text partition key, one text clustering column"""
    return TableMetadata(
        keyspace="shop",
        table="orders",
        partition_key_type="text",
        clustering_types=["text"],
    )


@pytest.fixture
def make_partition(orders_metadata):
    """Factory for PartitionView with sensible defaults"""

    def _make(
        key: str = "user1",
        entries: Optional[list] = None,
        deletion_time: int = LIVE,
        metadata: Optional[TableMetadata] = None,
    ) -> PartitionView:
        return PartitionView(
            metadata=metadata or orders_metadata,
            partition_key=key.encode("utf-8"),
            deletion_time=deletion_time,
            entries=entries or [],
        )

    return _make


@pytest.fixture
def order_row(codec):
    """Live row 2021-01-01 with amount=42 and status=ok"""
    return RowView(
        clustering=[b"2021-01-01"],
        columns=[
            ColumnDefinition(name="amount", cql_type="int"),
            ColumnDefinition(name="status", cql_type="text"),
        ],
        cells=[
            CellView(value=codec.encode("int", 42)),
            CellView(value=b"ok"),
        ],
    )


@pytest.fixture
def range_start_bound():
    """Inclusive start bound over two clustering components"""
    return BoundView(kind=BoundKind.INCL_START_BOUND, values=[b"a", b"b"])
