"""
Dead Letter Queue (DLQ) module
Records events the broker did not accept
"""

from cassandra_cdc.dlq.writer import DLQWriter

__all__ = ["DLQWriter"]
