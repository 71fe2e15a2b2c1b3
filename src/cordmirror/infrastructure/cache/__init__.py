"""Message cache implementations."""

from cordmirror.infrastructure.cache.channel_message_cache import ChannelMessageCache
from cordmirror.infrastructure.cache.registry import MessageCacheRegistry

__all__ = ["ChannelMessageCache", "MessageCacheRegistry"]
