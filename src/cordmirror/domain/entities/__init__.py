"""Domain entities."""

from cordmirror.domain.entities.embed import (
    Embed,
    EmbedAuthor,
    EmbedField,
    EmbedFooter,
    EmbedMedia,
    parse_embeds,
)
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
from cordmirror.domain.entities.reaction import Reaction, ReactionAggregator
from cordmirror.domain.entities.user import User

__all__ = [
    "Delta",
    "DeltaType",
    "Embed",
    "EmbedAuthor",
    "EmbedField",
    "EmbedFooter",
    "EmbedMedia",
    "Emoji",
    "Listener",
    "ListenerKind",
    "ListenerRegistry",
    "Message",
    "MessageCreate",
    "MessageDelete",
    "MessageEdit",
    "MessageSnapshot",
    "Reaction",
    "ReactionAdd",
    "ReactionAggregator",
    "ReactionRemove",
    "User",
    "parse_embeds",
]
