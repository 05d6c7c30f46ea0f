"""
DLQ Writer
Writes events the broker did not accept to JSONL files for later analysis and replay
"""

import json
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import structlog

from cassandra_cdc.models.dead_letter_event import DeadLetterEvent

logger = structlog.get_logger(__name__)


class DLQWriter:
    """
    Writes failed publishes to a Dead Letter Queue

    Failed events are written as JSONL (one JSON object per line) files,
    organized by topic and date. Safe to call from delivery callbacks on
    any thread.
    """

    def __init__(self, dlq_directory: str = "data/dlq"):
        """
        Initialize DLQ writer

        Args:
            dlq_directory: Directory to write DLQ files
        """
        self.dlq_directory = Path(dlq_directory)
        self.dlq_directory.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

        logger.info("DLQ writer initialized", directory=str(self.dlq_directory))

    def write_failure(
        self,
        topic: str,
        key: str,
        body: str,
        error_type: str,
        error_message: str,
    ) -> None:
        """
        Write a failed publish to the DLQ

        Args:
            topic: Destination topic
            key: Message key
            body: JSON body
            error_type: Type of error
            error_message: Error message
        """
        dlq_event = DeadLetterEvent(
            topic=topic,
            key=key,
            body=body,
            error_type=error_type,
            error_message=error_message,
            failed_at=datetime.now(timezone.utc).isoformat(),
        )

        # Generate filename: dlq_TOPIC_DATE.jsonl
        date_str = datetime.now(timezone.utc).strftime("%Y-%m-%d")
        filename = f"dlq_{topic}_{date_str}.jsonl"
        filepath = self.dlq_directory / filename

        try:
            json_line = json.dumps(dlq_event.to_dict())
            with self._lock:
                with open(filepath, "a", encoding="utf-8") as f:
                    f.write(json_line + "\n")

            logger.warning(
                "Event written to DLQ",
                topic=topic,
                key=key,
                error_type=error_type,
                dlq_file=filename,
            )

        except OSError as e:
            # DLQ write failure must not crash the publisher
            logger.error("Failed to write to DLQ", error=str(e), topic=topic, key=key)

    def get_dlq_files(self, topic: Optional[str] = None) -> list[Path]:
        """
        Get list of DLQ files

        Args:
            topic: Filter by topic (None for all)

        Returns:
            List of DLQ file paths
        """
        pattern = f"dlq_{topic}_*.jsonl" if topic else "dlq_*.jsonl"
        return sorted(self.dlq_directory.glob(pattern))

    def count_dlq_events(self, topic: Optional[str] = None) -> int:
        """
        Count total events in DLQ

        Args:
            topic: Filter by topic (None for all)

        Returns:
            Total number of events
        """
        total = 0

        for filepath in self.get_dlq_files(topic):
            with open(filepath, encoding="utf-8") as f:
                total += sum(1 for _ in f)

        return total
