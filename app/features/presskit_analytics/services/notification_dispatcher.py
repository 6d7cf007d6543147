"""
Background handoff between view ingest and the notification gate.

record_view publishes a ViewRecorded fact with a non-blocking put; a single
worker task started by the application lifespan consumes the queue, loads
the press kit's current settings, and runs the gate. Errors stay on the
worker: they are logged and the loop moves on.
"""

import asyncio

from app.config import settings
from app.features.presskit_analytics.domain.models import NotificationOutcome, ViewRecorded
from app.features.presskit_analytics.repository.presskit_repository import PressKitRepository
from app.features.presskit_analytics.services.notification_gate import NotificationGate
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class NotificationDispatcher:
    """In-process queue plus worker task for view notifications."""

    def __init__(
        self,
        gate: NotificationGate | None = None,
        presskits=PressKitRepository,
        maxsize: int | None = None,
    ):
        self.gate = gate or NotificationGate(presskits=presskits)
        self.presskits = presskits
        self.maxsize = maxsize if maxsize is not None else settings.NOTIFICATION_QUEUE_SIZE
        self._queue: asyncio.Queue[ViewRecorded] | None = None
        self._worker: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def start(self) -> None:
        """Create the queue and spawn the worker on the running loop."""
        if self.is_running:
            logger.warning("Notification dispatcher already running")
            return

        self._queue = asyncio.Queue(maxsize=self.maxsize)
        self._worker = asyncio.create_task(self._run(), name="view-notification-dispatcher")
        logger.info("Notification dispatcher started", queue_size=self.maxsize)

    async def stop(self, drain_timeout: float = 5.0) -> None:
        """Give queued notifications a chance to finish, then cancel the worker."""
        if not self.is_running:
            return

        try:
            await asyncio.wait_for(self._queue.join(), timeout=drain_timeout)
        except TimeoutError:
            logger.warning(
                "Notification queue not drained before shutdown", pending=self._queue.qsize()
            )

        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass

        self._worker = None
        self._queue = None
        logger.info("Notification dispatcher stopped")

    def publish(self, fact: ViewRecorded) -> bool:
        """
        Queue a recorded view without waiting.

        Returns:
            bool: False when the dispatcher is not running or the queue is full
        """
        if not self.is_running:
            logger.warning("Notification dispatcher not running, dropping view", view_event_id=fact.view_event_id)
            return False

        try:
            self._queue.put_nowait(fact)
        except asyncio.QueueFull:
            logger.warning("Notification queue full, dropping view", view_event_id=fact.view_event_id)
            return False
        return True

    async def process(self, fact: ViewRecorded) -> NotificationOutcome:
        """Load the press kit and run the gate for one fact."""
        presskit = await self.presskits.get_presskit(fact.presskit_id)
        if presskit is None:
            logger.warning("Press kit missing for view notification", presskit_id=fact.presskit_id)
            return NotificationOutcome.KIT_NOT_FOUND

        outcome = await self.gate.evaluate(presskit, fact)
        logger.debug(
            "View notification evaluated",
            presskit_id=fact.presskit_id,
            view_event_id=fact.view_event_id,
            outcome=outcome.value,
        )
        return outcome

    async def _run(self) -> None:
        while True:
            fact = await self._queue.get()
            try:
                await self.process(fact)
            except Exception as e:
                logger.error(
                    "View notification failed",
                    presskit_id=fact.presskit_id,
                    view_event_id=fact.view_event_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
            finally:
                self._queue.task_done()


notification_dispatcher = NotificationDispatcher()
