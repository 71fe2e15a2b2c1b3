"""Delta entities delivered by the transport."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from cordmirror.domain.entities.embed import Embed
from cordmirror.domain.entities.emoji import Emoji
from cordmirror.domain.entities.reaction import Reaction
from cordmirror.domain.entities.user import User


class DeltaType(Enum):
    """Delta types understood by the event application layer."""

    MESSAGE_CREATE = "message_create"
    MESSAGE_EDIT = "message_edit"
    MESSAGE_DELETE = "message_delete"
    REACTION_ADD = "reaction_add"
    REACTION_REMOVE = "reaction_remove"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class MessageCreate:
    """Full snapshot of a newly observed message.

    Attributes:
        message_id: Message ID.
        channel_id: ID of the channel the message belongs to.
        content: Message text.
        author: Author, None for webhook or integration messages.
        embeds: Embeds in display order.
        reactions: Reactions already present on the message.
        received_at: When the delta was received.
    """

    message_id: int
    channel_id: int
    content: str = ""
    author: User | None = None
    embeds: tuple[Embed, ...] = ()
    reactions: tuple[Reaction, ...] = ()
    received_at: datetime = field(default_factory=_now)

    type = DeltaType.MESSAGE_CREATE


@dataclass(frozen=True)
class MessageEdit:
    """Edit of a message's content and/or embeds.

    Attributes:
        message_id: Message ID.
        channel_id: ID of the channel the message belongs to.
        content: New content, None if the edit did not carry content.
        embeds: New embeds replacing the old list wholesale, None if the
            edit did not carry (usable) embeds.
        received_at: When the delta was received.
    """

    message_id: int
    channel_id: int
    content: str | None = None
    embeds: tuple[Embed, ...] | None = None
    received_at: datetime = field(default_factory=_now)

    type = DeltaType.MESSAGE_EDIT


@dataclass(frozen=True)
class MessageDelete:
    """Deletion of a message."""

    message_id: int
    channel_id: int
    received_at: datetime = field(default_factory=_now)

    type = DeltaType.MESSAGE_DELETE


@dataclass(frozen=True)
class ReactionAdd:
    """One user adding a reaction.

    Attributes:
        message_id: Message ID.
        channel_id: ID of the channel the message belongs to.
        emoji: The emoji.
        user_id: ID of the reacting user.
        is_self: Whether the reacting user is the connected account.
        received_at: When the delta was received.
    """

    message_id: int
    channel_id: int
    emoji: Emoji
    user_id: int
    is_self: bool = False
    received_at: datetime = field(default_factory=_now)

    type = DeltaType.REACTION_ADD


@dataclass(frozen=True)
class ReactionRemove:
    """One user removing a reaction."""

    message_id: int
    channel_id: int
    emoji: Emoji
    user_id: int
    is_self: bool = False
    received_at: datetime = field(default_factory=_now)

    type = DeltaType.REACTION_REMOVE


Delta = MessageCreate | MessageEdit | MessageDelete | ReactionAdd | ReactionRemove
