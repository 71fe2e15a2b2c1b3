"""Listener kinds and the per-entity listener registry."""

import logging
import threading
from collections.abc import Callable
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

# Listener type: called with (entity snapshot at time of event, delta)
Listener = Callable[[Any, Any], None]


class ListenerKind(Enum):
    """Closed set of listener kinds a message can be observed with."""

    DELETE = "delete"
    EDIT = "edit"
    REACTION_ADD = "reaction_add"
    REACTION_REMOVE = "reaction_remove"


class ListenerRegistry:
    """Ordered, thread-safe mapping from listener kind to listeners.

    Each kind holds an ordered set of listeners: registration order is call
    order, and registering the same listener twice keeps a single entry.
    The per-kind sequences are copy-on-write tuples, so a dispatch pass
    works on the sequence that was current when it started. A listener
    registered during dispatch is not called in that pass.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._lock = threading.Lock()
        self._listeners: dict[ListenerKind, tuple[Listener, ...]] = {
            kind: () for kind in ListenerKind
        }

    def add(self, kind: ListenerKind, listener: Listener) -> bool:
        """Register a listener.

        Args:
            kind: The listener kind.
            listener: The callable to register.

        Returns:
            True if the listener was added, False if it was already registered.
        """
        with self._lock:
            current = self._listeners[kind]
            if listener in current:
                return False
            self._listeners[kind] = current + (listener,)
        logger.debug(
            "Registered %s listener: %s",
            kind.value,
            getattr(listener, "__name__", str(listener)),
        )
        return True

    def remove(self, kind: ListenerKind, listener: Listener) -> bool:
        """Unregister a listener.

        Removing a listener that was never registered is a no-op.

        Args:
            kind: The listener kind.
            listener: The callable to remove.

        Returns:
            True if the listener was removed.
        """
        with self._lock:
            current = self._listeners[kind]
            if listener not in current:
                return False
            self._listeners[kind] = tuple(item for item in current if item != listener)
        return True

    def snapshot(self, kind: ListenerKind) -> tuple[Listener, ...]:
        """Get the listeners of one kind in registration order."""
        with self._lock:
            return self._listeners[kind]

    def count(self, kind: ListenerKind | None = None) -> int:
        """Count listeners of one kind, or of all kinds if ``kind`` is None."""
        with self._lock:
            if kind is not None:
                return len(self._listeners[kind])
            return sum(len(items) for items in self._listeners.values())

    def clear(self) -> None:
        """Remove every listener."""
        with self._lock:
            for kind in ListenerKind:
                self._listeners[kind] = ()

    def dispatch(self, kind: ListenerKind, entity: Any, delta: Any) -> int:
        """Call every listener of ``kind`` with ``(entity, delta)``.

        A listener raising an exception is logged and does not prevent the
        remaining listeners from being called.

        Args:
            kind: The listener kind to dispatch to.
            entity: Entity snapshot at the time of the event.
            delta: The delta that triggered the dispatch.

        Returns:
            Number of listeners that were called.
        """
        listeners = self.snapshot(kind)
        for listener in listeners:
            try:
                listener(entity, delta)
            except Exception:
                logger.exception(
                    "Error in %s listener %s",
                    kind.value,
                    getattr(listener, "__name__", str(listener)),
                )
        return len(listeners)
