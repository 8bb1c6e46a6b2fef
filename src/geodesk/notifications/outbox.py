"""Notification outbox: decouples email delivery from request handling.

Business operations hand jobs to the outbox with ``enqueue``, which never
blocks and never raises. A single worker task started by the application
lifespan drains the queue and passes each job to a delivery callable.
Jobs that fail every attempt, or that arrive while the queue is full, are
kept in a bounded dead-letter buffer and logged.

Example usage:
    >>> outbox = NotificationOutbox(delivery, OutboxConfig())
    >>> outbox.start()
    >>> outbox.enqueue(TeamNotice(subject="New RFQ", html="<p>...</p>"))
    >>> await outbox.stop()
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

import structlog

from geodesk.config import OutboxConfig
from geodesk.notifications.messages import NotificationJob

logger = structlog.get_logger(__name__)

Delivery = Callable[[NotificationJob], Awaitable[bool]]


@dataclass(frozen=True)
class DeadLetter:
    """A job that was not delivered.

    Attributes:
        job: The undelivered job.
        reason: Why delivery was abandoned.
        attempts: Attempts made before giving up.
        failed_at: When the job was dead-lettered.
    """

    job: NotificationJob
    reason: str
    attempts: int = 0
    failed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class NotificationOutbox:
    """Bounded in-process queue with a single delivery worker.

    Attributes:
        config: Outbox configuration.
        is_running: Whether the worker task is active.
    """

    def __init__(self, delivery: Delivery, config: OutboxConfig | None = None) -> None:
        self.config = config or OutboxConfig()
        self._delivery = delivery
        self._queue: asyncio.Queue[NotificationJob] = asyncio.Queue(
            maxsize=self.config.max_queue_size
        )
        self._dead_letters: deque[DeadLetter] = deque(maxlen=self.config.dead_letter_size)
        self._worker_task: asyncio.Task[None] | None = None
        self._delivered = 0

    @property
    def is_running(self) -> bool:
        return self._worker_task is not None and not self._worker_task.done()

    @property
    def pending(self) -> int:
        """Number of jobs waiting in the queue."""
        return self._queue.qsize()

    @property
    def delivered(self) -> int:
        """Number of jobs delivered since start."""
        return self._delivered

    @property
    def dead_letters(self) -> list[DeadLetter]:
        """Snapshot of the dead-letter buffer, oldest first."""
        return list(self._dead_letters)

    def enqueue(self, job: NotificationJob) -> bool:
        """Queue a job for delivery.

        Returns:
            True if queued, False if the queue was full and the job was
            dead-lettered instead.
        """
        try:
            self._queue.put_nowait(job)
        except asyncio.QueueFull:
            self._dead_letter(job, "queue_full", attempts=0)
            return False

        logger.debug("notification_enqueued", job_type=type(job).__name__, pending=self.pending)
        return True

    def start(self) -> None:
        """Start the worker task if it is not already running."""
        if self.is_running:
            return
        self._worker_task = asyncio.create_task(self._worker(), name="notification-outbox")
        logger.info("notification_outbox_started", max_queue_size=self.config.max_queue_size)

    async def stop(self, drain_timeout: float = 5.0) -> None:
        """Stop the worker, giving queued jobs up to drain_timeout to finish."""
        if self._worker_task is None:
            return

        try:
            await asyncio.wait_for(self._queue.join(), timeout=drain_timeout)
        except asyncio.TimeoutError:
            logger.warning("notification_outbox_drain_timeout", pending=self.pending)

        self._worker_task.cancel()
        try:
            await self._worker_task
        except asyncio.CancelledError:
            pass
        self._worker_task = None
        logger.info(
            "notification_outbox_stopped",
            delivered=self._delivered,
            dead_letters=len(self._dead_letters),
        )

    async def drain(self) -> None:
        """Wait until every queued job has been processed."""
        await self._queue.join()

    async def _worker(self) -> None:
        while True:
            job = await self._queue.get()
            try:
                await self._process(job)
            finally:
                self._queue.task_done()

    async def _process(self, job: NotificationJob) -> None:
        last_reason = "delivery_failed"
        for attempt in range(1, self.config.max_attempts + 1):
            try:
                if await self._delivery(job):
                    self._delivered += 1
                    return
            except Exception as e:
                last_reason = f"{type(e).__name__}: {e}"
                logger.error(
                    "notification_delivery_error",
                    job_type=type(job).__name__,
                    attempt=attempt,
                    error=last_reason,
                    exc_info=True,
                )
        self._dead_letter(job, last_reason, attempts=self.config.max_attempts)

    def _dead_letter(self, job: NotificationJob, reason: str, attempts: int) -> None:
        self._dead_letters.append(DeadLetter(job=job, reason=reason, attempts=attempts))
        logger.error(
            "notification_dead_lettered",
            job_type=type(job).__name__,
            subject=getattr(job, "subject", None),
            event_id=getattr(job, "event_id", None),
            reason=reason,
            attempts=attempts,
        )
