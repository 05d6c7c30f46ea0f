"""
In-process trigger path: per-write event publishing on a bounded worker pool
"""

from cassandra_cdc.trigger.adapter import TriggerAdapter
from cassandra_cdc.trigger.pool import BoundedWorkerPool, WorkQueueFullError

__all__ = ["TriggerAdapter", "BoundedWorkerPool", "WorkQueueFullError"]
