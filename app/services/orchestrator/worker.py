"""Background queue for transcript events acknowledged ahead of processing."""
import asyncio
import logging
from typing import List, Optional

from app.services.orchestrator.turns import CallTurnOrchestrator, TurnOutcome
from app.services.transcription.classifier import TranscriptEvent

logger = logging.getLogger(__name__)


class TurnWorker:
    """
    Runs transcript events through the orchestrator off the request path.

    The webhook only waits for ``submit`` to enqueue the event. Worker tasks
    log every failure so none is lost with a detached task.
    """

    def __init__(self, orchestrator: CallTurnOrchestrator, workers: int = 2, queue_size: int = 1000):
        self.orchestrator = orchestrator
        self.workers = max(1, workers)
        self.queue: "asyncio.Queue[TranscriptEvent]" = asyncio.Queue(maxsize=queue_size)
        self._tasks: List[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    def start(self) -> None:
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(self._run(i), name=f"turn-worker-{i}")
            for i in range(self.workers)
        ]
        logger.info(f"[TURN WORKER] Started {self.workers} worker(s)")

    async def stop(self) -> None:
        """Cancel the workers. Queued events that were not started are dropped."""
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        if not self.queue.empty():
            logger.warning(f"[TURN WORKER] Stopped with {self.queue.qsize()} event(s) pending")

    def submit(self, event: TranscriptEvent) -> bool:
        """
        Enqueue an event without waiting.

        Returns:
            False if the queue is full and the event was dropped
        """
        try:
            self.queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.error(f"[TURN WORKER] Queue full, event dropped - CallSid: {event.call_sid}")
            return False
        return True

    async def process(self, event: TranscriptEvent) -> Optional[TurnOutcome]:
        """Handle one event, logging instead of raising."""
        try:
            return await self.orchestrator.handle_transcript(event)
        except Exception as e:
            logger.error(
                f"[TURN WORKER] Unhandled error - CallSid: {event.call_sid}, "
                f"Error: {type(e).__name__}: {e}",
                exc_info=True,
            )
            return None

    async def _run(self, index: int) -> None:
        while True:
            event = await self.queue.get()
            try:
                await self.process(event)
            finally:
                self.queue.task_done()

    async def join(self) -> None:
        """Wait until every queued event has been processed."""
        await self.queue.join()
