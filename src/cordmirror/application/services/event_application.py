"""Event application layer.

Receives decoded deltas, locates or creates the affected message through
the channel caches, mutates it, then dispatches to the message's listeners
followed by the application-wide listeners.

Per message the states are ``absent -> live -> deleted``. A deleted message
is terminal: edits are ignored, reaction deltas are dropped (or recorded
without dispatch, depending on the late reaction policy), and repeated
delete deltas dispatch to delete listeners again.
"""

import logging
from collections.abc import Callable, Iterable
from typing import Any

from cordmirror.config.models import LateDeltaPolicy
from cordmirror.domain.entities.embed import Embed
from cordmirror.domain.entities.emoji import Emoji
from cordmirror.domain.entities.event import (
    Delta,
    DeltaType,
    MessageCreate,
    MessageDelete,
    MessageEdit,
    ReactionAdd,
    ReactionRemove,
)
from cordmirror.domain.entities.listener import Listener, ListenerKind, ListenerRegistry
from cordmirror.domain.entities.message import Message, MessageSnapshot
from cordmirror.domain.entities.reaction import Reaction
from cordmirror.domain.entities.user import User
from cordmirror.domain.exceptions import EntityNotFoundError, MalformedDeltaError
from cordmirror.infrastructure.cache.registry import MessageCacheRegistry

logger = logging.getLogger(__name__)


def _check(delta: Any, name: str, kind: type, optional: bool = False) -> None:
    value = getattr(delta, name)
    if value is None and optional:
        return
    if not isinstance(value, kind):
        raise MalformedDeltaError(
            f"{name} must be {kind.__name__}, got {type(value).__name__}", name
        )


def _check_items(delta: Any, name: str, kind: type, optional: bool = False) -> None:
    items = getattr(delta, name)
    if items is None and optional:
        return
    if not isinstance(items, tuple) or not all(isinstance(i, kind) for i in items):
        raise MalformedDeltaError(f"{name} must be a tuple of {kind.__name__}", name)


class EventApplicationService:
    """Applies deltas to cached messages and notifies listeners."""

    def __init__(
        self,
        caches: MessageCacheRegistry,
        late_reaction_policy: LateDeltaPolicy = LateDeltaPolicy.DROP,
    ) -> None:
        """Initialize the service.

        Args:
            caches: Registry of channel caches.
            late_reaction_policy: What to do with reaction deltas that
                arrive after the message was deleted.
        """
        self._caches = caches
        self._late_reaction_policy = late_reaction_policy
        self._global_listeners = ListenerRegistry()
        self._handlers: dict[DeltaType, Callable[[Any], bool]] = {
            DeltaType.MESSAGE_CREATE: self._apply_create,
            DeltaType.MESSAGE_EDIT: self._apply_edit,
            DeltaType.MESSAGE_DELETE: self._apply_delete,
            DeltaType.REACTION_ADD: self._apply_reaction_add,
            DeltaType.REACTION_REMOVE: self._apply_reaction_remove,
        }

    @property
    def caches(self) -> MessageCacheRegistry:
        return self._caches

    @property
    def late_reaction_policy(self) -> LateDeltaPolicy:
        return self._late_reaction_policy

    @property
    def global_listeners(self) -> ListenerRegistry:
        return self._global_listeners

    # ------------------------------------------------------------------ #
    # Delta application
    # ------------------------------------------------------------------ #

    def apply(self, delta: Delta) -> bool:
        """Apply one delta.

        A malformed delta is logged and dropped; it never affects other
        deltas or other messages.

        Args:
            delta: The delta to apply.

        Returns:
            True if the delta changed state or was dispatched.
        """
        delta_type = getattr(delta, "type", None)
        handler = self._handlers.get(delta_type)  # type: ignore[arg-type]
        if handler is None:
            logger.warning("No handler registered for delta: %r", delta)
            return False

        try:
            self._validate(delta)
            return handler(delta)
        except MalformedDeltaError as e:
            logger.warning(
                "Dropping malformed %s delta for message %s: %s",
                delta_type.value,
                getattr(delta, "message_id", "?"),
                e,
            )
            return False

    @staticmethod
    def _validate(delta: Delta) -> None:
        """Check field types so that a bad delta fails before any mutation.

        Raises:
            MalformedDeltaError: If a field cannot be interpreted.
        """
        for name in ("message_id", "channel_id"):
            value = getattr(delta, name, None)
            if not isinstance(value, int) or isinstance(value, bool):
                raise MalformedDeltaError(f"{name} must be an integer", name)

        if isinstance(delta, MessageCreate):
            _check(delta, "content", str)
            _check(delta, "author", User, optional=True)
            _check_items(delta, "embeds", Embed)
            _check_items(delta, "reactions", Reaction)
            for reaction in delta.reactions:
                _check(reaction, "emoji", Emoji)
        elif isinstance(delta, MessageEdit):
            _check(delta, "content", str, optional=True)
            _check_items(delta, "embeds", Embed, optional=True)
        elif isinstance(delta, (ReactionAdd, ReactionRemove)):
            _check(delta, "emoji", Emoji)
            _check(delta, "is_self", bool)

    def apply_all(self, deltas: Iterable[Delta]) -> int:
        """Apply deltas in order.

        Args:
            deltas: Deltas in delivery order.

        Returns:
            Number of deltas that were applied.
        """
        return sum(1 for delta in deltas if self.apply(delta))

    def _apply_create(self, delta: MessageCreate) -> bool:
        if self._caches.is_deleted(delta.message_id):
            logger.debug("Ignoring create for deleted message %s", delta.message_id)
            return False

        cache = self._caches.get_cache(delta.channel_id)
        message = cache.lookup(delta.message_id)
        if message is None:
            message = Message(
                id=delta.message_id,
                channel_id=delta.channel_id,
                content=delta.content,
                author=delta.author,
                embeds=delta.embeds,
                reactions=delta.reactions,
                cache=cache,
            )
            cache.insert(message)
            return True

        if message.partial:
            logger.debug("Hydrating placeholder for message %s", delta.message_id)
            return message.hydrate(
                delta.content, delta.author, delta.embeds, delta.reactions
            )
        return False

    def _get_or_create(self, message_id: int, channel_id: int) -> Message | None:
        """Find a message or synthesize a placeholder for it.

        Returns None for messages known to be deleted.
        """
        cache = self._caches.get_cache(channel_id)
        message = cache.lookup(message_id)
        if message is not None:
            return message
        if self._caches.is_deleted(message_id):
            logger.debug("Dropping delta for deleted message %s", message_id)
            return None

        message = Message(
            id=message_id, channel_id=channel_id, cache=cache, partial=True
        )
        cache.insert(message)
        logger.debug(
            "Synthesized placeholder for message %s in channel %s",
            message_id,
            channel_id,
        )
        return message

    def _apply_edit(self, delta: MessageEdit) -> bool:
        message = self._get_or_create(delta.message_id, delta.channel_id)
        if message is None:
            return False

        with message.lock:
            if not message.apply_edit(delta.content, delta.embeds):
                logger.debug("Ignoring edit for deleted message %s", message.id)
                return False
            snapshot = message.snapshot()

        self._dispatch(ListenerKind.EDIT, message, snapshot, delta)
        return True

    def _apply_delete(self, delta: MessageDelete) -> bool:
        self._caches.mark_deleted(delta.message_id)
        message = self._caches.get_cache(delta.channel_id).lookup(delta.message_id)
        if message is None:
            logger.debug("Delete for uncached message %s recorded", delta.message_id)
            return False

        with message.lock:
            first = message.mark_deleted()
            snapshot = message.snapshot()

        self._dispatch(ListenerKind.DELETE, message, snapshot, delta)

        # Delete listeners have been told; let regular eviction reclaim it.
        if first and message.cached_forever:
            message.set_cached_forever(False)
        return True

    def _apply_reaction_add(self, delta: ReactionAdd) -> bool:
        return self._apply_reaction(delta, ListenerKind.REACTION_ADD)

    def _apply_reaction_remove(self, delta: ReactionRemove) -> bool:
        return self._apply_reaction(delta, ListenerKind.REACTION_REMOVE)

    def _apply_reaction(
        self, delta: ReactionAdd | ReactionRemove, kind: ListenerKind
    ) -> bool:
        message = self._get_or_create(delta.message_id, delta.channel_id)
        if message is None:
            return False

        with message.lock:
            if message.deleted:
                if self._late_reaction_policy is LateDeltaPolicy.RECORD:
                    self._fold_reaction(message, delta, kind)
                    return True
                logger.debug(
                    "Dropping %s for deleted message %s", kind.value, message.id
                )
                return False
            self._fold_reaction(message, delta, kind)
            snapshot = message.snapshot()

        self._dispatch(kind, message, snapshot, delta)
        return True

    @staticmethod
    def _fold_reaction(
        message: Message, delta: ReactionAdd | ReactionRemove, kind: ListenerKind
    ) -> None:
        if kind is ListenerKind.REACTION_ADD:
            message.add_reaction(delta.emoji, delta.is_self)
        else:
            message.remove_reaction(delta.emoji, delta.is_self)

    def _dispatch(
        self,
        kind: ListenerKind,
        message: Message,
        snapshot: MessageSnapshot,
        delta: Delta,
    ) -> None:
        called = message.listeners.dispatch(kind, snapshot, delta)
        called += self._global_listeners.dispatch(kind, snapshot, delta)
        if called:
            logger.debug(
                "Dispatched %s for message %s to %d listener(s)",
                kind.value,
                message.id,
                called,
            )

    # ------------------------------------------------------------------ #
    # Caller-facing operations
    # ------------------------------------------------------------------ #

    def get_message(self, message_id: int) -> Message:
        """Get a cached message.

        Raises:
            EntityNotFoundError: If no channel caches the message.
        """
        message = self._caches.find(message_id)
        if message is None:
            raise EntityNotFoundError(message_id)
        return message

    def register_listener(
        self, message_id: int, kind: ListenerKind, listener: Listener
    ) -> bool:
        """Register a listener on a cached message.

        Registering a delete listener pins the message.

        Args:
            message_id: Message ID.
            kind: The listener kind.
            listener: Callable receiving ``(snapshot, delta)``.

        Returns:
            True if the listener was added.

        Raises:
            EntityNotFoundError: If the message is not cached.
        """
        return self.get_message(message_id).add_listener(kind, listener)

    def unregister_listener(
        self, message_id: int, kind: ListenerKind, listener: Listener
    ) -> bool:
        """Unregister a listener. Unknown messages or listeners are ignored."""
        message = self._caches.find(message_id)
        if message is None:
            return False
        return message.remove_listener(kind, listener)

    def add_global_listener(self, kind: ListenerKind, listener: Listener) -> bool:
        """Register a listener called for every message."""
        return self._global_listeners.add(kind, listener)

    def remove_global_listener(self, kind: ListenerKind, listener: Listener) -> bool:
        return self._global_listeners.remove(kind, listener)

    def get_reactions(self, message_id: int) -> tuple[Reaction, ...]:
        """Get a snapshot of a message's reactions.

        Raises:
            EntityNotFoundError: If the message is not cached.
        """
        return self.get_message(message_id).reactions

    def get_embeds(self, message_id: int) -> tuple[Embed, ...]:
        """Get a snapshot of a message's embeds.

        Raises:
            EntityNotFoundError: If the message is not cached.
        """
        return self.get_message(message_id).embeds

    def set_cached_forever(self, message_id: int, cached_forever: bool) -> None:
        """Pin or unpin a cached message.

        Raises:
            EntityNotFoundError: If the message is not cached.
        """
        self.get_message(message_id).set_cached_forever(cached_forever)
