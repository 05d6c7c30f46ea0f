"""
Commit Log Segment Watcher
Discovers new segments, decodes and publishes them, then deletes them
"""

import time
from enum import Enum
from pathlib import Path
from typing import List, Optional

import structlog

from cassandra_cdc.cdc.builder import EventBuilder
from cassandra_cdc.cdc.decoder import (
    MutationDecoder,
    SegmentDecodeError,
    SegmentReadError,
    SegmentReadHandler,
)
from cassandra_cdc.cdc.watch_source import PollingWatchSource, WatchSource
from cassandra_cdc.models.views import PartitionView
from cassandra_cdc.observability.metrics import (
    increment_segment_errors,
    increment_segments_processed,
    observe_segment_duration,
)
from cassandra_cdc.observability.tracing import segment_span
from cassandra_cdc.publisher.kafka import EventPublisher

logger = structlog.get_logger(__name__)


class WatcherState(str, Enum):
    """Lifecycle of the watch loop"""

    IDLE = "IDLE"
    WAITING = "WAITING_FOR_EVENT"
    PROCESSING = "PROCESSING"
    STOPPED = "STOPPED"
    FAILED = "FAILED"


class PublishingSegmentHandler(SegmentReadHandler):
    """Routes decoded mutations through the event builder to the publisher"""

    def __init__(self, builder: EventBuilder, publisher: EventPublisher):
        self.builder = builder
        self.publisher = publisher

    def handle_mutation(self, partitions: List[PartitionView], segment: Path, position: int) -> None:
        logger.debug("Handle mutation started", segment=segment.name, position=position)

        for partition in partitions:
            message = self.builder.build(partition)
            if message is None:
                continue
            key, body = message
            self.publisher.publish(key, body)

    def handle_unrecoverable_error(self, error: SegmentReadError) -> None:
        increment_segment_errors(error_type="unrecoverable")
        logger.error(
            "Unrecoverable segment error",
            segment=error.segment,
            position=error.position,
            error=str(error),
        )
        raise SegmentDecodeError(str(error)) from error

    def should_skip_segment_on_error(self, error: SegmentReadError) -> bool:
        increment_segment_errors(error_type="skipped")
        logger.warning(
            "Skipping rest of segment after decode error",
            segment=error.segment,
            position=error.position,
            error=str(error),
        )
        return True


class SegmentWatcher:
    """
    Single-threaded commit log consumer

    Segments are processed one at a time in notification order. A segment
    is deleted only after the decoder has returned without a fatal error;
    a crash before deletion means the segment is published again after
    restart (at-least-once).
    """

    def __init__(
        self,
        directory: str,
        decoder: MutationDecoder,
        handler: SegmentReadHandler,
        source: Optional[WatchSource] = None,
        take_timeout_seconds: float = 1.0,
        publisher: Optional[EventPublisher] = None,
    ):
        """
        Initialize watcher and register the directory

        Args:
            directory: Commit log (cdc_raw) directory
            decoder: Segment decoder
            handler: Receives decoded mutations
            source: Notification source (polling source by default)
            take_timeout_seconds: How often run_forever checks for a stop request
            publisher: Publisher whose delivery reports are served between segments
        """
        self.directory = Path(directory).resolve()
        self.decoder = decoder
        self.handler = handler
        self.source = source or PollingWatchSource()
        self.take_timeout_seconds = take_timeout_seconds
        self.publisher = publisher
        self.key = self.source.register(self.directory)
        self.state = WatcherState.IDLE
        self._shutdown_flag = False

        logger.info("SegmentWatcher initialized", directory=str(self.directory))

    def run_once(self, timeout: Optional[float] = None) -> int:
        """
        Wait for one notification and process the segments it names

        Returns:
            Number of segments processed
        """
        self.state = WatcherState.WAITING
        notification = self.source.take(timeout)
        if self.publisher is not None:
            self.publisher.poll(0)

        if notification is None:
            self.state = WatcherState.IDLE
            return 0

        key, paths = notification
        if key != self.key:
            logger.error("Watch key not recognized", key=str(key))
            self.state = WatcherState.IDLE
            return 0

        self.state = WatcherState.PROCESSING
        for path in paths:
            self.process_segment(self.directory / path)

        self.state = WatcherState.IDLE
        return len(paths)

    def process_segment(self, path: Path) -> None:
        """
        Decode and publish one segment, then delete it

        Raises:
            SegmentDecodeError: On unrecoverable decode errors (segment kept)
            OSError: If the segment cannot be read or deleted
        """
        logger.info("Processing commitlog segment", segment=path.name)
        start_time = time.time()

        with segment_span(path.name):
            self.decoder.read_segment(path, self.handler)

        path.unlink()

        duration = time.time() - start_time
        increment_segments_processed()
        observe_segment_duration(duration)
        logger.info(
            "Commitlog segment processed",
            segment=path.name,
            duration_ms=round(duration * 1000, 2),
        )

    def run_forever(self) -> None:
        """
        Process segments until stop() is called or a fatal error occurs
        """
        logger.info("Starting watch loop", directory=str(self.directory))

        try:
            while not self._shutdown_flag:
                self.run_once(timeout=self.take_timeout_seconds)
        except Exception:
            self.state = WatcherState.FAILED
            raise

        self.state = WatcherState.STOPPED
        logger.info("Watch loop stopped")

    def stop(self) -> None:
        """Request the loop to stop after the current segment"""
        logger.info("Shutdown signal received")
        self._shutdown_flag = True
