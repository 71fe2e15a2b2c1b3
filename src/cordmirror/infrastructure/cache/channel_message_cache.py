"""In-memory message cache for a single channel.

Entries are kept in arrival order (oldest first), not in id order, since
backfilled messages may arrive out of id order. Eviction is lazy: it runs on
every insert and whenever :meth:`ChannelMessageCache.evict` is called.

Eviction rules:
    - age: an unpinned entry older than ``max_age_seconds`` is removed.
    - capacity: while more than ``capacity`` unpinned entries are cached, the
      oldest unpinned entry is removed. Pinned entries are never removed and
      do not take a slot, so the total size may exceed ``capacity``.
    - a cache with ``capacity == 0`` or ``max_age_seconds == 0`` does not
      cache anything; only pinned messages are kept.
"""

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass

from cordmirror.config.models import CacheSettings
from cordmirror.domain.entities.message import Message

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass
class _CacheEntry:
    message: Message
    inserted_at: float


class ChannelMessageCache:
    """Bounded, age-limited message store for one channel."""

    def __init__(
        self,
        channel_id: int,
        settings: CacheSettings | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        """Initialize the cache.

        Args:
            channel_id: ID of the channel.
            settings: Capacity and age settings. Defaults to CacheSettings().
            clock: Monotonic clock returning seconds.
        """
        self._channel_id = channel_id
        self._settings = settings if settings is not None else CacheSettings()
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: OrderedDict[int, _CacheEntry] = OrderedDict()

    @property
    def channel_id(self) -> int:
        return self._channel_id

    @property
    def settings(self) -> CacheSettings:
        return self._settings

    @property
    def capacity(self) -> int:
        return self._settings.capacity

    @property
    def max_age_seconds(self) -> int:
        return self._settings.max_age_seconds

    @property
    def enabled(self) -> bool:
        """Check if the cache stores unpinned messages at all."""
        return self._settings.enabled

    def configure(self, settings: CacheSettings) -> list[Message]:
        """Change capacity and age settings and run an eviction pass.

        Args:
            settings: The new settings.

        Returns:
            Messages evicted because of the new settings.
        """
        with self._lock:
            self._settings = settings
            logger.debug(
                "Reconfigured cache of channel %s: capacity=%s, max_age=%ss",
                self._channel_id,
                settings.capacity,
                settings.max_age_seconds,
            )
            return self._evict_locked()

    # ------------------------------------------------------------------ #
    # WRITE helpers
    # ------------------------------------------------------------------ #

    def insert(self, message: Message) -> bool:
        """Insert a message and run an eviction pass.

        Nothing is inserted while the cache is disabled, but the eviction
        pass still runs and drops unpinned leftovers. Inserting a message that
        is already cached keeps its original position.

        Args:
            message: The message to insert.

        Returns:
            True if the message is cached after the call.
        """
        with self._lock:
            if not self.enabled:
                self._evict_locked()
                return message.id in self._entries

            if message.id not in self._entries:
                self._entries[message.id] = _CacheEntry(message, self._clock())
                logger.debug(
                    "Cached message %s in channel %s (%d entries)",
                    message.id,
                    self._channel_id,
                    len(self._entries),
                )
            self._evict_locked()
            return message.id in self._entries

    def pin(self, message: Message) -> None:
        """Pin a message and make sure it is cached.

        Pinning bypasses both the enabled check and the capacity limit.

        Args:
            message: The message to pin.
        """
        with self._lock:
            message.cached_forever = True
            if message.id not in self._entries:
                self._entries[message.id] = _CacheEntry(message, self._clock())
            logger.debug("Pinned message %s in channel %s", message.id, self._channel_id)

    def unpin(self, message: Message) -> None:
        """Unpin a message.

        The message stays cached until the next eviction pass decides
        otherwise.

        Args:
            message: The message to unpin.
        """
        with self._lock:
            message.cached_forever = False
            logger.debug(
                "Unpinned message %s in channel %s", message.id, self._channel_id
            )

    def remove(self, message: Message) -> bool:
        """Remove a message regardless of its pin.

        Args:
            message: The message to remove.

        Returns:
            True if the message was cached.
        """
        with self._lock:
            return self._entries.pop(message.id, None) is not None

    def clear(self) -> None:
        """Remove every entry, pinned or not."""
        with self._lock:
            self._entries.clear()

    def evict(self) -> list[Message]:
        """Run an eviction pass.

        Returns:
            Evicted messages, oldest first.
        """
        with self._lock:
            return self._evict_locked()

    def _evict_locked(self) -> list[Message]:
        evicted: list[Message] = []

        if not self.enabled:
            for message_id, entry in list(self._entries.items()):
                if not entry.message.cached_forever:
                    del self._entries[message_id]
                    evicted.append(entry.message)
        else:
            # Age sweep
            now = self._clock()
            max_age = self._settings.max_age_seconds
            for message_id, entry in list(self._entries.items()):
                if entry.message.cached_forever:
                    continue
                if now - entry.inserted_at > max_age:
                    del self._entries[message_id]
                    evicted.append(entry.message)

            # Capacity: keep at most `capacity` unpinned entries
            unpinned = [
                message_id
                for message_id, entry in self._entries.items()
                if not entry.message.cached_forever
            ]
            excess = len(unpinned) - self._settings.capacity
            for message_id in unpinned[: max(excess, 0)]:
                evicted.append(self._entries.pop(message_id).message)

        if evicted:
            logger.debug(
                "Evicted %d message(s) from channel %s: %s",
                len(evicted),
                self._channel_id,
                [m.id for m in evicted],
            )
        return evicted

    # ------------------------------------------------------------------ #
    # READ helpers
    # ------------------------------------------------------------------ #

    def lookup(self, message_id: int) -> Message | None:
        """Find a cached message by ID."""
        with self._lock:
            entry = self._entries.get(message_id)
            return entry.message if entry is not None else None

    def contains(self, message_id: int) -> bool:
        with self._lock:
            return message_id in self._entries

    def messages(self, limit: int | None = None) -> list[Message]:
        """Return up to ``limit`` most recent messages ordered oldest -> newest.

        Args:
            limit: Optional limit. None returns all cached messages.

        Returns:
            Messages in arrival order.

        Raises:
            ValueError: If ``limit`` is negative.
        """
        if limit is not None and limit < 0:
            raise ValueError("limit must be >= 0 or None")
        with self._lock:
            messages = [entry.message for entry in self._entries.values()]
        if limit is None or limit >= len(messages):
            return messages
        return messages[len(messages) - limit :]

    def message_ids(self) -> list[int]:
        """Return cached message ids ordered oldest -> newest."""
        with self._lock:
            return list(self._entries)

    def __contains__(self, message_id: object) -> bool:
        with self._lock:
            return message_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
