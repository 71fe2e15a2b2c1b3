"""Message entity."""

import threading
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from cordmirror.domain.entities.embed import Embed
from cordmirror.domain.entities.emoji import Emoji
from cordmirror.domain.entities.listener import Listener, ListenerKind, ListenerRegistry
from cordmirror.domain.entities.reaction import Reaction, ReactionAggregator
from cordmirror.domain.entities.user import User

if TYPE_CHECKING:
    from cordmirror.domain.repositories.message_cache import MessageCache

# Ids carry their creation time (ms since this epoch) above bit 22.
SNOWFLAKE_EPOCH = datetime(2015, 1, 1, tzinfo=timezone.utc)


def snowflake_time(snowflake: int) -> datetime:
    """Get the creation time encoded in a service-assigned id.

    Args:
        snowflake: The id.

    Returns:
        Creation time (UTC).
    """
    return SNOWFLAKE_EPOCH + timedelta(milliseconds=snowflake >> 22)


@dataclass(frozen=True)
class MessageSnapshot:
    """Immutable view of a message at one point in time.

    Attributes:
        id: Message ID.
        channel_id: ID of the owning channel.
        content: Message text.
        author: Author, None for webhook or integration messages.
        embeds: Embeds in display order.
        reactions: Reactions in first-seen order.
        deleted: Whether the message has been deleted.
        cached_forever: Whether the message is exempt from eviction.
        partial: Whether the message was synthesized from a delta and has
            not been hydrated by a full snapshot yet.
    """

    id: int
    channel_id: int
    content: str
    author: User | None
    embeds: tuple[Embed, ...]
    reactions: tuple[Reaction, ...]
    deleted: bool
    cached_forever: bool
    partial: bool = False

    @property
    def created_at(self) -> datetime:
        """Get the creation time derived from the message id."""
        return snowflake_time(self.id)


class Message:
    """Live, mutable mirror of a remote message.

    Mutations are serialized by a per-message lock; readers get immutable
    snapshots. Once deleted, content and embeds are frozen.

    ``cached_forever`` is owned by the channel cache; change it through
    :meth:`set_cached_forever` so that the cache can honor it.
    """

    def __init__(
        self,
        id: int,
        channel_id: int,
        content: str = "",
        author: User | None = None,
        embeds: Iterable[Embed] = (),
        reactions: Iterable[Reaction] = (),
        cache: "MessageCache | None" = None,
        partial: bool = False,
    ) -> None:
        """Initialize the message.

        Args:
            id: Message ID.
            channel_id: ID of the owning channel.
            content: Message text.
            author: Author, None for webhook or integration messages.
            embeds: Embeds in display order.
            reactions: Reactions from the message snapshot.
            cache: Cache of the owning channel.
            partial: Whether the message is a placeholder.
        """
        self._id = id
        self._channel_id = channel_id
        self._content = content
        self._author = author
        self._embeds: tuple[Embed, ...] = tuple(embeds)
        self._reactions = ReactionAggregator(reactions)
        self._cache = cache
        self._partial = partial
        self._deleted = False
        self._listeners = ListenerRegistry()
        self._lock = threading.RLock()
        self.cached_forever = False

    @property
    def id(self) -> int:
        return self._id

    @property
    def channel_id(self) -> int:
        return self._channel_id

    @property
    def content(self) -> str:
        with self._lock:
            return self._content

    @property
    def author(self) -> User | None:
        """Get the author, None if the message was sent by a webhook."""
        with self._lock:
            return self._author

    @property
    def embeds(self) -> tuple[Embed, ...]:
        with self._lock:
            return self._embeds

    @property
    def reactions(self) -> tuple[Reaction, ...]:
        return self._reactions.snapshot()

    @property
    def reaction_aggregator(self) -> ReactionAggregator:
        return self._reactions

    @property
    def deleted(self) -> bool:
        with self._lock:
            return self._deleted

    @property
    def partial(self) -> bool:
        with self._lock:
            return self._partial

    @property
    def cache(self) -> "MessageCache | None":
        return self._cache

    @property
    def lock(self) -> threading.RLock:
        """Per-message lock, held while a delta is applied to this message."""
        return self._lock

    @property
    def listeners(self) -> ListenerRegistry:
        return self._listeners

    @property
    def created_at(self) -> datetime:
        return snowflake_time(self._id)

    def snapshot(self) -> MessageSnapshot:
        """Get an immutable snapshot of the current state."""
        with self._lock:
            return MessageSnapshot(
                id=self._id,
                channel_id=self._channel_id,
                content=self._content,
                author=self._author,
                embeds=self._embeds,
                reactions=self._reactions.snapshot(),
                deleted=self._deleted,
                cached_forever=self.cached_forever,
                partial=self._partial,
            )

    # ------------------------------------------------------------------ #
    # Mutation (used by the event application layer)
    # ------------------------------------------------------------------ #

    def apply_edit(
        self, content: str | None, embeds: Iterable[Embed] | None
    ) -> bool:
        """Replace content and/or embeds.

        Embeds are replaced wholesale. A deleted message is left unchanged.

        Args:
            content: New content, None to keep the current content.
            embeds: New embeds, None to keep the current embeds.

        Returns:
            True if the edit was applied.
        """
        with self._lock:
            if self._deleted:
                return False
            if content is not None:
                self._content = content
            if embeds is not None:
                self._embeds = tuple(embeds)
            return True

    def hydrate(
        self,
        content: str,
        author: User | None,
        embeds: Iterable[Embed],
        reactions: Iterable[Reaction],
    ) -> bool:
        """Fill a placeholder with data from a full snapshot.

        Args:
            content: Message text.
            author: Author.
            embeds: Embeds.
            reactions: Reactions reported by the snapshot.

        Returns:
            True if the message was updated.
        """
        with self._lock:
            if self._deleted:
                return False
            self._content = content
            self._author = author
            self._embeds = tuple(embeds)
            self._reactions.reset(reactions)
            self._partial = False
            return True

    def mark_deleted(self) -> bool:
        """Mark the message as deleted.

        Returns:
            True if this call performed the transition, False if the message
            was already deleted.
        """
        with self._lock:
            if self._deleted:
                return False
            self._deleted = True
            return True

    def add_reaction(self, emoji: Emoji, is_self: bool = False) -> Reaction:
        """Record one user adding a reaction."""
        return self._reactions.add(emoji, is_self)

    def remove_reaction(self, emoji: Emoji, is_self: bool = False) -> Reaction | None:
        """Record one user removing a reaction."""
        return self._reactions.remove(emoji, is_self)

    # ------------------------------------------------------------------ #
    # Caching
    # ------------------------------------------------------------------ #

    def set_cached_forever(self, cached_forever: bool) -> None:
        """Pin or unpin the message in its channel cache.

        Pinning also makes sure the message is present in the cache, even if
        the cache is disabled or full.

        Args:
            cached_forever: True to pin, False to unpin.
        """
        if self._cache is None:
            self.cached_forever = cached_forever
        elif cached_forever:
            self._cache.pin(self)
        else:
            self._cache.unpin(self)

    # ------------------------------------------------------------------ #
    # Listeners
    # ------------------------------------------------------------------ #

    def add_listener(self, kind: ListenerKind, listener: Listener) -> bool:
        """Register a listener on this message.

        Registering a delete listener pins the message so that it can still
        be resolved when the deletion arrives. A message that is already
        deleted is not pinned, since no later deletion would release it.

        Args:
            kind: The listener kind.
            listener: Callable receiving ``(snapshot, delta)``.

        Returns:
            True if the listener was added.
        """
        added = self._listeners.add(kind, listener)
        if kind is ListenerKind.DELETE and not self.deleted:
            self.set_cached_forever(True)
        return added

    def remove_listener(self, kind: ListenerKind, listener: Listener) -> bool:
        """Unregister a listener. Unknown listeners are ignored."""
        return self._listeners.remove(kind, listener)

    def get_listeners(self, kind: ListenerKind) -> tuple[Listener, ...]:
        return self._listeners.snapshot(kind)

    def add_delete_listener(self, listener: Listener) -> bool:
        return self.add_listener(ListenerKind.DELETE, listener)

    def add_edit_listener(self, listener: Listener) -> bool:
        return self.add_listener(ListenerKind.EDIT, listener)

    def add_reaction_add_listener(self, listener: Listener) -> bool:
        return self.add_listener(ListenerKind.REACTION_ADD, listener)

    def add_reaction_remove_listener(self, listener: Listener) -> bool:
        return self.add_listener(ListenerKind.REACTION_REMOVE, listener)

    # ------------------------------------------------------------------ #

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Message):
            return NotImplemented
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __lt__(self, other: "Message") -> bool:
        return self._id < other._id

    def __repr__(self) -> str:
        return (
            f"Message(id={self._id}, channel_id={self._channel_id}, "
            f"deleted={self._deleted}, cached_forever={self.cached_forever})"
        )
