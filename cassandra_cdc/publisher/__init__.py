"""
Publishers for writing CDC events to the message broker
"""

from cassandra_cdc.publisher.kafka import EventPublisher, PublishError

__all__ = ["EventPublisher", "PublishError"]
