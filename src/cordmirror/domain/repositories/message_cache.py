"""Message cache protocol."""

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from cordmirror.domain.entities.message import Message


class MessageCache(Protocol):
    """Bounded message store of one channel.

    The full mutating contract is part of the interface, so entities and
    services never need to know the concrete implementation.
    """

    @property
    def channel_id(self) -> int:
        """ID of the channel this cache belongs to."""
        ...

    def insert(self, message: "Message") -> bool:
        """Insert a message subject to the capacity and age policy.

        Args:
            message: The message to insert.

        Returns:
            True if the message is cached after the call.
        """
        ...

    def lookup(self, message_id: int) -> "Message | None":
        """Find a cached message by ID.

        Args:
            message_id: Message ID.

        Returns:
            The message, or None if it is not cached.
        """
        ...

    def pin(self, message: "Message") -> None:
        """Exempt a message from eviction and make sure it is cached.

        Args:
            message: The message to pin.
        """
        ...

    def unpin(self, message: "Message") -> None:
        """Make a message evictable again.

        Args:
            message: The message to unpin.
        """
        ...

    def remove(self, message: "Message") -> bool:
        """Remove a message regardless of its pin.

        Args:
            message: The message to remove.

        Returns:
            True if the message was cached.
        """
        ...

    def evict(self) -> list["Message"]:
        """Run an eviction pass.

        Returns:
            The evicted messages, oldest first.
        """
        ...
