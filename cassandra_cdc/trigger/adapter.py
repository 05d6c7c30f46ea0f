"""
Trigger Adapter
In-process ingestion path invoked by the host database once per applied mutation
"""

from typing import List, Optional

import structlog

from cassandra_cdc.cdc.builder import EventBuilder
from cassandra_cdc.config.loader import TRIGGER_CONFIG_PATH, load_trigger_config
from cassandra_cdc.dlq.writer import DLQWriter
from cassandra_cdc.models.views import PartitionView
from cassandra_cdc.observability.metrics import increment_trigger_rejections
from cassandra_cdc.publisher.kafka import EventPublisher
from cassandra_cdc.trigger.pool import BoundedWorkerPool, WorkQueueFullError

logger = structlog.get_logger(__name__)


class TriggerAdapter:
    """
    Hands every partition update to a worker pool and returns at once

    augment() never blocks on event construction or publishing and never
    adds mutations of its own. Tasks run concurrently, so events may reach
    the topic in a different order than the writes were applied.
    """

    def __init__(
        self,
        builder: EventBuilder,
        publisher: EventPublisher,
        pool: BoundedWorkerPool,
    ):
        self.builder = builder
        self.publisher = publisher
        self.pool = pool

    @classmethod
    def from_config(cls, config_path: str = TRIGGER_CONFIG_PATH) -> "TriggerAdapter":
        """
        Build an adapter from the trigger property file

        Args:
            config_path: Trigger YAML file (topic.name + broker properties)
        """
        settings = load_trigger_config(config_path)

        dlq_writer: Optional[DLQWriter] = None
        if settings.dlq_directory:
            dlq_writer = DLQWriter(dlq_directory=settings.dlq_directory)

        publisher = EventPublisher(
            topic=settings.topic,
            configuration=settings.producer_configuration,
            dlq_writer=dlq_writer,
        )
        pool = BoundedWorkerPool(
            max_workers=settings.pipeline.max_workers,
            queue_capacity=settings.pipeline.queue_capacity,
            overflow_policy=settings.pipeline.overflow_policy,
            block_timeout_seconds=settings.pipeline.block_timeout_seconds,
        )

        # The host only fires the trigger for the table it is attached to
        return cls(builder=EventBuilder(), publisher=publisher, pool=pool)

    def augment(self, partition: PartitionView) -> List:
        """
        Schedule event construction and publishing for one partition update

        Args:
            partition: Applied partition update

        Returns:
            Empty list (no additional mutations for the host)
        """
        try:
            self.pool.submit(self._read_partition, partition)
        except WorkQueueFullError as e:
            increment_trigger_rejections()
            logger.error(
                "Trigger queue full, partition update dropped",
                keyspace=partition.metadata.keyspace,
                table=partition.metadata.table,
                error=str(e),
            )
        return []

    def _read_partition(self, partition: PartitionView) -> None:
        try:
            message = self.builder.build(partition)
            if message is None:
                return
            key, body = message
            self.publisher.publish(key, body)
        except Exception as e:
            logger.error(
                "trigger_task_failed",
                keyspace=partition.metadata.keyspace,
                table=partition.metadata.table,
                error=str(e),
                exc_info=True,
            )

    def close(self, timeout: float = 10.0) -> None:
        """Drain queued tasks and flush the producer"""
        self.pool.shutdown(wait=True)
        self.publisher.close(timeout)
