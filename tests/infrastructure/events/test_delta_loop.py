"""Tests for DeltaLoop."""

import asyncio
from typing import Any

import pytest

from cordmirror.application.services import EventApplicationService
from cordmirror.domain.entities import Delta, MessageCreate, MessageDelete
from cordmirror.infrastructure.cache import MessageCacheRegistry
from cordmirror.infrastructure.events import DeltaLoop, DeltaQueue
from cordmirror.infrastructure.gateway import GatewayPayloadAdapter


class RecordingService(EventApplicationService):
    """Service that records applied deltas and can be told to fail."""

    def __init__(self, fail_on: int | None = None) -> None:
        super().__init__(MessageCacheRegistry())
        self.applied: list[Any] = []
        self._fail_on = fail_on

    def apply(self, delta: Delta) -> bool:
        self.applied.append(delta.message_id)
        if delta.message_id == self._fail_on:
            raise RuntimeError("Test error")
        return super().apply(delta)


class TestDeltaLoop:
    """Tests for DeltaLoop."""

    @pytest.fixture
    def queue(self) -> DeltaQueue:
        """Create a DeltaQueue instance."""
        return DeltaQueue()

    @pytest.fixture
    def service(self) -> RecordingService:
        """Create a recording service."""
        return RecordingService()

    @pytest.fixture
    def loop(self, queue: DeltaQueue, service: RecordingService) -> DeltaLoop:
        """Create a DeltaLoop instance."""
        return DeltaLoop(queue, service, GatewayPayloadAdapter(self_user_id=900))

    async def test_is_running_initially_false(self, loop: DeltaLoop) -> None:
        """Test that is_running is False initially."""
        assert not loop.is_running

    async def test_start_and_stop(self, loop: DeltaLoop) -> None:
        """Test that start and stop toggle is_running."""
        task = asyncio.create_task(loop.start())
        await asyncio.sleep(0.05)
        assert loop.is_running

        await loop.stop()
        await task

        assert not loop.is_running

    async def test_applies_deltas_in_order(
        self, loop: DeltaLoop, queue: DeltaQueue, service: RecordingService
    ) -> None:
        """Test that deltas are applied sequentially in delivery order."""
        task = asyncio.create_task(loop.start())
        await asyncio.sleep(0.05)

        for message_id in (3, 1, 2):
            await queue.enqueue(MessageCreate(message_id=message_id, channel_id=10))
        await queue.join()

        await loop.stop()
        await task

        assert service.applied == [3, 1, 2]
        assert [m.id for m in service.caches.get_cache(10).messages()] == [3, 1, 2]

    async def test_exception_doesnt_stop_loop(
        self, queue: DeltaQueue, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that a failing delta doesn't stop the loop."""
        service = RecordingService(fail_on=1)
        loop = DeltaLoop(queue, service)
        task = asyncio.create_task(loop.start())
        await asyncio.sleep(0.05)

        for message_id in range(3):
            await queue.enqueue(MessageCreate(message_id=message_id, channel_id=10))
        await queue.join()

        await loop.stop()
        await task

        assert service.applied == [0, 1, 2]
        assert "Error in delta loop" in caplog.text

    async def test_submit_converts_payload(
        self, loop: DeltaLoop, queue: DeltaQueue
    ) -> None:
        """Test that submit enqueues one delta per deleted message."""
        count = await loop.submit(
            {"t": "MESSAGE_DELETE_BULK", "d": {"ids": ["1", "2"], "channel_id": "10"}}
        )

        assert count == 2
        assert len(queue) == 2
        first = await queue.dequeue()
        assert isinstance(first, MessageDelete)
        assert first.message_id == 1

    async def test_submit_drops_malformed_payload(
        self, loop: DeltaLoop, queue: DeltaQueue, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that a malformed payload is logged and nothing is enqueued."""
        count = await loop.submit({"t": "MESSAGE_DELETE", "d": {"id": "1"}})

        assert count == 0
        assert len(queue) == 0
        assert "Dropping malformed MESSAGE_DELETE payload" in caplog.text

    async def test_stop_with_drain(
        self, loop: DeltaLoop, queue: DeltaQueue, service: RecordingService
    ) -> None:
        """Test that draining applies pending deltas before stopping."""
        task = asyncio.create_task(loop.start())
        await asyncio.sleep(0.05)

        for message_id in range(5):
            queue.enqueue_nowait(MessageCreate(message_id=message_id, channel_id=10))
        await loop.stop(drain=True)
        await task

        assert service.applied == [0, 1, 2, 3, 4]

    async def test_stop_without_drain_drops_pending(
        self, loop: DeltaLoop, queue: DeltaQueue, service: RecordingService
    ) -> None:
        """Test that stopping a loop that is not running clears the queue."""
        queue.enqueue_nowait(MessageCreate(message_id=1, channel_id=10))

        await loop.stop()

        assert len(queue) == 0
        assert service.applied == []

    async def test_cannot_start_twice(
        self, loop: DeltaLoop, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that starting twice logs a warning."""
        task1 = asyncio.create_task(loop.start())
        await asyncio.sleep(0.05)

        task2 = asyncio.create_task(loop.start())
        await asyncio.sleep(0.05)

        await loop.stop()
        await task1
        await task2

        assert "already running" in caplog.text


class TestDeltaQueue:
    """Tests for DeltaQueue."""

    async def test_fifo(self) -> None:
        """Test that deltas come out in the order they went in."""
        queue = DeltaQueue()
        deltas = [MessageDelete(message_id=i, channel_id=10) for i in range(3)]

        for delta in deltas:
            await queue.enqueue(delta)

        assert [await queue.dequeue() for _ in deltas] == deltas

    async def test_duplicates_are_kept(self) -> None:
        """Test that identical deltas are not merged."""
        queue = DeltaQueue()
        delta = MessageDelete(message_id=1, channel_id=10)

        queue.enqueue_nowait(delta)
        queue.enqueue_nowait(delta)

        assert len(queue) == 2

    async def test_bounded_queue(self) -> None:
        """Test that a full queue refuses non-waiting enqueues."""
        queue = DeltaQueue(maxsize=1)
        queue.enqueue_nowait(MessageDelete(message_id=1, channel_id=10))

        with pytest.raises(asyncio.QueueFull):
            queue.enqueue_nowait(MessageDelete(message_id=2, channel_id=10))

    async def test_clear(self) -> None:
        """Test that clear drops pending deltas and unblocks join."""
        queue = DeltaQueue()
        for i in range(3):
            queue.enqueue_nowait(MessageDelete(message_id=i, channel_id=10))

        assert queue.clear() == 3
        assert len(queue) == 0
        await asyncio.wait_for(queue.join(), timeout=1.0)
