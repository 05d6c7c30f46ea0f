"""
CDC Publisher Main Entrypoint
Watches the Cassandra cdc_raw directory and publishes change events to Kafka
"""

import signal
import sys
from typing import Optional

import click
import structlog

from cassandra_cdc.cdc.builder import EventBuilder
from cassandra_cdc.cdc.decoder import load_decoder
from cassandra_cdc.cdc.watch_source import PollingWatchSource
from cassandra_cdc.cdc.watcher import PublishingSegmentHandler, SegmentWatcher
from cassandra_cdc.config.loader import load_config
from cassandra_cdc.config.settings import CDCSettings
from cassandra_cdc.dlq.writer import DLQWriter
from cassandra_cdc.observability.logging import bind_context, configure_logging
from cassandra_cdc.observability.metrics import start_metrics_server
from cassandra_cdc.observability.tracing import init_tracing
from cassandra_cdc.publisher.kafka import EventPublisher

logger = structlog.get_logger(__name__)


class CDCPipeline:
    """
    Main CDC pipeline orchestrator

    Wires the segment watcher, event builder and Kafka publisher from one
    settings object.
    """

    def __init__(self, config: CDCSettings, publisher: Optional[EventPublisher] = None):
        """
        Initialize CDC pipeline

        Args:
            config: Validated settings
            publisher: Pre-built publisher (built from config.kafka if None)
        """
        self.config = config

        dlq_writer = None
        if config.dlq.enabled:
            dlq_writer = DLQWriter(dlq_directory=config.dlq.directory)

        self.publisher = publisher or EventPublisher(
            topic=config.kafka.topic,
            configuration=config.kafka.configuration,
            dlq_writer=dlq_writer,
        )
        self.builder = EventBuilder(
            keyspace=config.cassandra.keyspace,
            table=config.cassandra.table,
        )
        self.watcher = SegmentWatcher(
            directory=config.cassandra.cdc_raw_directory,
            decoder=load_decoder(config.cassandra.decoder),
            handler=PublishingSegmentHandler(self.builder, self.publisher),
            source=PollingWatchSource(
                pattern=config.cassandra.segment_pattern,
                poll_interval_seconds=config.cassandra.poll_interval_seconds,
            ),
            publisher=self.publisher,
        )

        logger.info(
            "CDCPipeline initialized",
            keyspace=config.cassandra.keyspace,
            table=config.cassandra.table,
            topic=config.kafka.topic,
        )

    def run(self) -> None:
        """Run until shutdown is requested; always flushes the publisher"""
        try:
            self.watcher.run_forever()
        finally:
            self.publisher.close(self.config.kafka.flush_timeout_seconds)

    def shutdown(self) -> None:
        """
        Request graceful shutdown
        """
        self.watcher.stop()


@click.command()
@click.argument("config_path", type=click.Path(exists=True, dir_okay=False))
def main(config_path: str) -> None:
    """Publish Cassandra commit log changes described by CONFIG_PATH to Kafka."""
    config = load_config(config_path)

    configure_logging(
        log_level=config.observability.log_level,
        log_format=config.observability.log_format,
    )
    bind_context(keyspace=config.cassandra.keyspace, table=config.cassandra.table)
    logger.info("Starting CDC publisher", config=config_path)

    if config.observability.metrics_enabled:
        start_metrics_server(port=config.observability.metrics_port)

    if config.observability.enable_tracing:
        init_tracing()

    try:
        pipeline = CDCPipeline(config)
    except Exception as e:
        logger.error("Failed to start pipeline", error=str(e), exc_info=True)
        sys.exit(1)

    def signal_handler(signum, frame):
        logger.info("Signal received", signal=signum)
        pipeline.shutdown()

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    try:
        pipeline.run()
    except Exception as e:
        logger.error("Pipeline failed", error=str(e), exc_info=True)
        sys.exit(1)

    logger.info("CDC publisher stopped")


if __name__ == "__main__":
    main()
