"""Delta queue between the transport and the event application layer."""

import asyncio
import logging

from cordmirror.domain.entities.event import Delta

logger = logging.getLogger(__name__)


class DeltaQueue:
    """FIFO queue of deltas.

    Unlike a generic event queue, deltas are never merged or replaced:
    every delta is delivered exactly once, in the order it was enqueued.
    """

    def __init__(self, maxsize: int = 0) -> None:
        """Initialize the queue.

        Args:
            maxsize: Maximum number of pending deltas (0 = unbounded).
        """
        self._queue: asyncio.Queue[Delta] = asyncio.Queue(maxsize=maxsize)

    async def enqueue(self, delta: Delta) -> None:
        """Add a delta, waiting for room if the queue is full."""
        await self._queue.put(delta)

    def enqueue_nowait(self, delta: Delta) -> None:
        """Add a delta without waiting.

        Raises:
            asyncio.QueueFull: If the queue is full.
        """
        self._queue.put_nowait(delta)

    async def dequeue(self) -> Delta:
        """Get the next delta, waiting until one is available."""
        return await self._queue.get()

    def mark_done(self) -> None:
        """Mark the last dequeued delta as processed."""
        self._queue.task_done()

    async def join(self) -> None:
        """Wait until every enqueued delta has been processed."""
        await self._queue.join()

    def clear(self) -> int:
        """Drop all pending deltas.

        Returns:
            Number of deltas dropped.
        """
        dropped = 0
        while True:
            try:
                self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            self._queue.task_done()
            dropped += 1
        if dropped:
            logger.info("DeltaQueue cleared, dropped %d pending delta(s)", dropped)
        return dropped

    def __len__(self) -> int:
        return self._queue.qsize()
