"""Ingestion loop applying queued deltas in delivery order."""

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from cordmirror.application.services.event_application import EventApplicationService
from cordmirror.domain.exceptions import MalformedDeltaError
from cordmirror.infrastructure.events.queue import DeltaQueue
from cordmirror.infrastructure.gateway.payload_adapter import GatewayPayloadAdapter

logger = logging.getLogger(__name__)


class DeltaLoop:
    """Delta processing loop.

    Continuously dequeues deltas and applies them. Deltas are processed
    sequentially (one at a time), so per-message delivery order is kept.
    A failing delta is logged and the loop moves on to the next one.
    """

    def __init__(
        self,
        queue: DeltaQueue,
        service: EventApplicationService,
        adapter: GatewayPayloadAdapter | None = None,
    ) -> None:
        """Initialize the loop.

        Args:
            queue: The delta queue to read from.
            service: The service deltas are applied to.
            adapter: Adapter used by :meth:`submit` for raw payloads.
        """
        self._queue = queue
        self._service = service
        self._adapter = adapter if adapter is not None else GatewayPayloadAdapter()
        self._stop_event = asyncio.Event()
        self._stop_event.set()  # Initially stopped

    async def submit(self, payload: Mapping[str, Any]) -> int:
        """Convert a gateway payload and enqueue the resulting deltas.

        Args:
            payload: Pre-parsed dispatch payload.

        Returns:
            Number of deltas enqueued; 0 if the payload was malformed or
            not message related.
        """
        try:
            deltas = self._adapter.to_deltas(payload)
        except MalformedDeltaError as e:
            logger.warning(
                "Dropping malformed %s payload: %s", payload.get("t", "?"), e
            )
            return 0

        for delta in deltas:
            await self._queue.enqueue(delta)
        return len(deltas)

    async def start(self) -> None:
        """Start the loop.

        This method runs until stop() is called.
        """
        if not self._stop_event.is_set():
            logger.warning("DeltaLoop already running")
            return

        self._stop_event.clear()
        logger.info("DeltaLoop started")

        while not self._stop_event.is_set():
            try:
                # Use a timeout to periodically check stop_event
                try:
                    delta = await asyncio.wait_for(
                        self._queue.dequeue(),
                        timeout=1.0,
                    )
                except asyncio.TimeoutError:
                    continue

                try:
                    logger.debug(
                        "Applying %s for message %s",
                        delta.type.value,
                        delta.message_id,
                    )
                    self._service.apply(delta)
                finally:
                    self._queue.mark_done()

            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Error in delta loop")

        logger.info("DeltaLoop stopped")

    async def stop(self, drain: bool = False) -> None:
        """Stop the loop.

        Args:
            drain: Wait for pending deltas to be applied before stopping.
                Otherwise pending deltas are dropped.
        """
        logger.info("Stopping DeltaLoop")
        if drain and self.is_running:
            await self._queue.join()
        self._stop_event.set()
        self._queue.clear()

    @property
    def is_running(self) -> bool:
        """Check if the loop is running."""
        return not self._stop_event.is_set()
