"""Process-wide registry of channel message caches."""

import logging
import threading
import time
from collections import OrderedDict

from cordmirror.config.models import CacheConfig, CacheSettings
from cordmirror.domain.entities.message import Message
from cordmirror.infrastructure.cache.channel_message_cache import (
    ChannelMessageCache,
    Clock,
)

logger = logging.getLogger(__name__)


class MessageCacheRegistry:
    """Creates and tracks one :class:`ChannelMessageCache` per channel.

    Caches are created lazily with the settings configured for the channel.
    The registry also remembers the ids of deleted messages (bounded, oldest
    forgotten first) so that a deleted message is never recreated after its
    entity has been evicted.
    """

    def __init__(
        self, config: CacheConfig | None = None, clock: Clock = time.monotonic
    ) -> None:
        """Initialize the registry.

        Args:
            config: Cache configuration. Defaults to CacheConfig().
            clock: Monotonic clock shared by all channel caches.
        """
        self._config = config if config is not None else CacheConfig()
        self._clock = clock
        self._lock = threading.Lock()
        self._caches: dict[int, ChannelMessageCache] = {}
        self._tombstones: OrderedDict[int, None] = OrderedDict()

    @property
    def config(self) -> CacheConfig:
        return self._config

    def get_cache(self, channel_id: int) -> ChannelMessageCache:
        """Get the cache of a channel, creating it on first use.

        Args:
            channel_id: Channel ID.

        Returns:
            The channel's cache.
        """
        with self._lock:
            cache = self._caches.get(channel_id)
            if cache is None:
                settings = self._config.settings_for(channel_id)
                cache = ChannelMessageCache(channel_id, settings, clock=self._clock)
                self._caches[channel_id] = cache
                logger.debug(
                    "Created cache for channel %s (capacity=%s, max_age=%ss)",
                    channel_id,
                    settings.capacity,
                    settings.max_age_seconds,
                )
            return cache

    def configure_channel(
        self, channel_id: int, settings: CacheSettings
    ) -> list[Message]:
        """Change the settings of one channel's cache.

        Args:
            channel_id: Channel ID.
            settings: New settings.

        Returns:
            Messages evicted because of the change.
        """
        with self._lock:
            self._config.channels[channel_id] = settings
        return self.get_cache(channel_id).configure(settings)

    def caches(self) -> list[ChannelMessageCache]:
        """Get all caches created so far."""
        with self._lock:
            return list(self._caches.values())

    def find(self, message_id: int) -> Message | None:
        """Find a cached message in any channel.

        Args:
            message_id: Message ID.

        Returns:
            The message, or None if no channel caches it.
        """
        for cache in self.caches():
            message = cache.lookup(message_id)
            if message is not None:
                return message
        return None

    # ------------------------------------------------------------------ #
    # Tombstones
    # ------------------------------------------------------------------ #

    def mark_deleted(self, message_id: int) -> None:
        """Remember that a message was deleted."""
        limit = self._config.tombstone_limit
        if limit <= 0:
            return
        with self._lock:
            self._tombstones[message_id] = None
            self._tombstones.move_to_end(message_id)
            while len(self._tombstones) > limit:
                self._tombstones.popitem(last=False)

    def is_deleted(self, message_id: int) -> bool:
        """Check if a message is known to be deleted."""
        with self._lock:
            return message_id in self._tombstones
