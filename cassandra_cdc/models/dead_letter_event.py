"""
Dead Letter Event Model
Represents a CDC event the broker did not accept
"""

import json
from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class DeadLetterEvent:
    """
    Event that failed to publish and was routed to the DLQ

    Contains the original message plus error information for debugging
    and manual replay.

    Attributes:
        topic: Destination topic
        key: Message key (partition key)
        body: Original JSON body
        error_type: Failure classification (buffer_full, produce_error, delivery_failed)
        error_message: Error details
        failed_at: When the failure was observed (ISO-8601)
    """

    topic: str
    key: str
    body: str
    error_type: str
    error_message: str
    failed_at: str

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to dictionary for JSON serialization

        The body is embedded as parsed JSON when possible so the DLQ file
        stays readable.
        """
        try:
            event: Any = json.loads(self.body)
        except ValueError:
            event = self.body

        return {
            "topic": self.topic,
            "key": self.key,
            "event": event,
            "error_type": self.error_type,
            "error_message": self.error_message,
            "failed_at": self.failed_at,
        }
