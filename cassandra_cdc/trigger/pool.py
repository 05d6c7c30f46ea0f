"""
Bounded Worker Pool
Thread pool with a capped backlog and an explicit overflow policy
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

import structlog

from cassandra_cdc.config.settings import OverflowPolicy
from cassandra_cdc.observability.metrics import set_trigger_queue_depth

logger = structlog.get_logger(__name__)


class WorkQueueFullError(Exception):
    """Raised when a task cannot be queued under the configured overflow policy"""

    pass


class BoundedWorkerPool:
    """
    Runs tasks on up to max_workers threads with at most queue_capacity
    tasks waiting

    Threads are started on demand and reused. When the backlog is full a
    task is refused straight away (REJECT) or after waiting up to
    block_timeout_seconds for room (BLOCK).
    """

    def __init__(
        self,
        max_workers: int = 20,
        queue_capacity: int = 10000,
        overflow_policy: OverflowPolicy = OverflowPolicy.REJECT,
        block_timeout_seconds: float = 1.0,
        thread_name_prefix: str = "cdc-trigger",
    ):
        """
        Initialize pool

        Args:
            max_workers: Maximum concurrent worker threads
            queue_capacity: Maximum tasks waiting for a worker
            overflow_policy: REJECT or BLOCK
            block_timeout_seconds: Wait limit for BLOCK
            thread_name_prefix: Worker thread name prefix
        """
        self.max_workers = max_workers
        self.queue_capacity = queue_capacity
        self.overflow_policy = OverflowPolicy(overflow_policy)
        self.block_timeout_seconds = block_timeout_seconds

        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=thread_name_prefix
        )
        # One slot per running or waiting task
        self._slots = threading.BoundedSemaphore(max_workers + queue_capacity)
        self._lock = threading.Lock()
        self._pending = 0

        logger.info(
            "Worker pool initialized",
            max_workers=max_workers,
            queue_capacity=queue_capacity,
            overflow_policy=self.overflow_policy.value,
        )

    @property
    def pending(self) -> int:
        """Tasks submitted and not yet finished"""
        with self._lock:
            return self._pending

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        """
        Queue a task

        Raises:
            WorkQueueFullError: If the backlog is full
        """
        if self.overflow_policy == OverflowPolicy.BLOCK:
            acquired = self._slots.acquire(timeout=self.block_timeout_seconds)
        else:
            acquired = self._slots.acquire(blocking=False)

        if not acquired:
            raise WorkQueueFullError(
                f"Work queue full ({self.max_workers} running, {self.queue_capacity} waiting)"
            )

        self._adjust_pending(1)
        try:
            return self._executor.submit(self._run, fn, args)
        except BaseException:
            self._release()
            raise

    def _run(self, fn: Callable[..., Any], args: tuple) -> Any:
        try:
            return fn(*args)
        finally:
            self._release()

    def _release(self) -> None:
        self._adjust_pending(-1)
        self._slots.release()

    def _adjust_pending(self, delta: int) -> None:
        with self._lock:
            self._pending += delta
            set_trigger_queue_depth(self._pending)

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting tasks; optionally wait for queued ones to finish"""
        logger.info("Shutting down worker pool", pending=self.pending, wait=wait)
        self._executor.shutdown(wait=wait)
