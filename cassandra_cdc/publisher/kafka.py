"""
Kafka Event Publisher
Fire-and-forget publishing of CDC events with reported delivery failures
"""

import threading
from typing import Any, Callable, Dict, Optional

import structlog
from confluent_kafka import KafkaException, Producer

from cassandra_cdc.dlq.writer import DLQWriter
from cassandra_cdc.observability.logging import log_publish_failure
from cassandra_cdc.observability.metrics import (
    increment_events_published,
    increment_publish_failures,
)

logger = structlog.get_logger(__name__)


class PublishError(Exception):
    """Describes a message that did not reach the broker"""

    def __init__(self, topic: str, key: str, error_type: str, message: str):
        super().__init__(message)
        self.topic = topic
        self.key = key
        self.error_type = error_type


class EventPublisher:
    """
    Publishes (key, body) pairs to one Kafka topic

    publish() only enqueues the message on the client's send buffer and
    never waits for acknowledgement. Failures (full buffer, rejected
    produce, negative delivery report) are logged, counted and, when a
    DLQ writer is configured, written to the DLQ. The underlying producer
    is shared and may be called from many threads.
    """

    def __init__(
        self,
        topic: str,
        configuration: Optional[Dict[str, Any]] = None,
        producer: Optional[Producer] = None,
        dlq_writer: Optional[DLQWriter] = None,
        on_failure: Optional[Callable[[PublishError], None]] = None,
    ):
        """
        Initialize publisher

        Args:
            topic: Destination topic for all events
            configuration: Broker client properties, passed through verbatim
            producer: Pre-built producer (takes precedence over configuration)
            dlq_writer: Optional DLQ for failed messages
            on_failure: Optional callback invoked for every failed message
        """
        if not topic:
            raise ValueError("topic must be non-empty")

        self.topic = topic
        self.producer = producer if producer is not None else Producer(dict(configuration or {}))
        self.dlq_writer = dlq_writer
        self.on_failure = on_failure
        self._lock = threading.Lock()
        self._events_enqueued = 0
        self._events_delivered = 0
        self._errors_count = 0

        logger.info("EventPublisher initialized", topic=topic)

    def publish(self, key: str, body: str) -> None:
        """
        Enqueue one message for asynchronous delivery

        Args:
            key: Message key (partition key)
            body: JSON body
        """
        try:
            self.producer.produce(
                self.topic,
                key=key,
                value=body,
                on_delivery=self._delivery_callback(key, body),
            )
        except BufferError as e:
            self._record_failure(key, body, "buffer_full", str(e))
            return
        except KafkaException as e:
            self._record_failure(key, body, "produce_error", str(e))
            return

        with self._lock:
            self._events_enqueued += 1

        # Serve delivery callbacks of earlier messages without blocking
        self.producer.poll(0)
        logger.debug("Sent record to kafka", topic=self.topic, key=key)

    def _delivery_callback(self, key: str, body: str) -> Callable[[Any, Any], None]:
        def callback(err: Any, msg: Any) -> None:
            if err is not None:
                self._record_failure(key, body, "delivery_failed", str(err))
                return

            with self._lock:
                self._events_delivered += 1
            increment_events_published(topic=self.topic)

        return callback

    def _record_failure(self, key: str, body: str, error_type: str, message: str) -> None:
        with self._lock:
            self._errors_count += 1

        increment_publish_failures(topic=self.topic, error_type=error_type)
        log_publish_failure(logger, self.topic, key, error_type, message)

        if self.dlq_writer is not None:
            self.dlq_writer.write_failure(
                topic=self.topic,
                key=key,
                body=body,
                error_type=error_type,
                error_message=message,
            )

        if self.on_failure is not None:
            self.on_failure(PublishError(self.topic, key, error_type, message))

    def poll(self, timeout: float = 0) -> int:
        """
        Serve pending delivery reports

        Args:
            timeout: Maximum seconds to wait for a report (0 returns immediately)

        Returns:
            Number of delivery reports served
        """
        return self.producer.poll(timeout)

    def flush(self, timeout: float = 10.0) -> int:
        """
        Wait for outstanding messages to be delivered

        Args:
            timeout: Maximum seconds to wait

        Returns:
            Number of messages still undelivered
        """
        remaining = self.producer.flush(timeout)
        if remaining:
            logger.warning("Messages still undelivered after flush", remaining=remaining)
        return remaining

    def close(self, timeout: float = 10.0) -> None:
        """Flush outstanding messages before shutdown"""
        logger.info("Closing publisher", topic=self.topic)
        self.flush(timeout)

    def get_stats(self) -> dict:
        """
        Get publisher statistics

        Returns:
            Dict with events_enqueued, events_delivered, errors_count
        """
        with self._lock:
            return {
                "topic": self.topic,
                "events_enqueued": self._events_enqueued,
                "events_delivered": self._events_delivered,
                "errors_count": self._errors_count,
            }
