"""Repository protocols."""

from cordmirror.domain.repositories.message_cache import MessageCache

__all__ = ["MessageCache"]
