"""Gateway payload adapter."""

import logging
from collections.abc import Callable, Mapping
from typing import Any

from cordmirror.domain.entities import (
    Delta,
    Emoji,
    MessageCreate,
    MessageDelete,
    MessageEdit,
    Reaction,
    ReactionAdd,
    ReactionRemove,
    User,
    parse_embeds,
)
from cordmirror.domain.exceptions import MalformedDeltaError

logger = logging.getLogger(__name__)


def _snowflake(data: Mapping[str, Any], key: str) -> int:
    """Read a required id field (ids are sent as strings)."""
    raw = data.get(key)
    if raw is None:
        raise MalformedDeltaError(f"missing field '{key}'", field=key)
    if isinstance(raw, bool):
        raise MalformedDeltaError(f"invalid id in '{key}': {raw!r}", field=key)
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise MalformedDeltaError(f"invalid id in '{key}': {raw!r}", field=key) from e


def _require_mapping(data: Any, name: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise MalformedDeltaError(f"{name} must be an object", field=name)
    return data


class GatewayPayloadAdapter:
    """Convert pre-parsed gateway dispatch payloads to typed deltas.

    The transport hands over dispatch payloads of the form
    ``{"t": "MESSAGE_CREATE", "d": {...}}`` with JSON already decoded. This
    adapter only interprets fields; it never talks to the network.
    """

    def __init__(self, self_user_id: int | None = None) -> None:
        """Initialize the adapter.

        Args:
            self_user_id: ID of the connected account, used to decide
                whether a reaction was added by ourselves.
        """
        self._self_user_id = self_user_id
        self._converters: dict[str, Callable[[Mapping[str, Any]], list[Delta]]] = {
            "MESSAGE_CREATE": lambda d: [self.to_message_create(d)],
            "MESSAGE_UPDATE": lambda d: [self.to_message_edit(d)],
            "MESSAGE_DELETE": lambda d: [self.to_message_delete(d)],
            "MESSAGE_DELETE_BULK": self.to_message_delete_bulk,
            "MESSAGE_REACTION_ADD": lambda d: [self.to_reaction_add(d)],
            "MESSAGE_REACTION_REMOVE": lambda d: [self.to_reaction_remove(d)],
        }

    @property
    def self_user_id(self) -> int | None:
        return self._self_user_id

    def to_deltas(self, payload: Mapping[str, Any]) -> list[Delta]:
        """Convert a dispatch payload to deltas.

        Args:
            payload: Dispatch payload with ``t`` (type) and ``d`` (data).

        Returns:
            Deltas in delivery order; empty for dispatch types that do not
            concern messages.

        Raises:
            MalformedDeltaError: If the payload cannot be interpreted.
        """
        payload = _require_mapping(payload, "payload")
        converter = self._converters.get(str(payload.get("t")))
        if converter is None:
            logger.debug("Ignoring dispatch type %s", payload.get("t"))
            return []
        return converter(_require_mapping(payload.get("d"), "d"))

    def to_user(self, data: Any) -> User:
        """Convert an author object to a User entity."""
        data = _require_mapping(data, "author")
        return User(
            id=_snowflake(data, "id"),
            name=str(data.get("global_name") or data.get("username") or ""),
            is_bot=bool(data.get("bot", False)),
        )

    def to_reaction(self, data: Any) -> Reaction:
        """Convert a reaction object of a message snapshot."""
        data = _require_mapping(data, "reaction")
        try:
            count = int(data.get("count", 0))
        except (TypeError, ValueError) as e:
            raise MalformedDeltaError("invalid reaction count", field="count") from e
        return Reaction(
            emoji=Emoji.from_payload(data.get("emoji")),
            count=max(count, 0),
            self_reacted=bool(data.get("me", False)),
        )

    def to_message_create(self, data: Mapping[str, Any]) -> MessageCreate:
        """Convert a full message object.

        Messages sent by a webhook have no author.
        """
        author: User | None = None
        if data.get("webhook_id") is None and data.get("author") is not None:
            author = self.to_user(data["author"])

        raw_reactions = data.get("reactions") or []
        if not isinstance(raw_reactions, list):
            raise MalformedDeltaError("reactions must be a list", field="reactions")

        content = data.get("content") or ""
        if not isinstance(content, str):
            raise MalformedDeltaError("content must be a string", field="content")

        return MessageCreate(
            message_id=_snowflake(data, "id"),
            channel_id=_snowflake(data, "channel_id"),
            content=content,
            author=author,
            embeds=parse_embeds(data.get("embeds")),
            reactions=tuple(
                r for r in map(self.to_reaction, raw_reactions) if r.count > 0
            ),
        )

    def to_message_edit(self, data: Mapping[str, Any]) -> MessageEdit:
        """Convert a message update.

        Fields missing from the update are left as None. An embed list that
        cannot be parsed is dropped with a warning; the rest of the edit
        still applies.
        """
        message_id = _snowflake(data, "id")
        channel_id = _snowflake(data, "channel_id")

        content = data.get("content")
        if content is not None and not isinstance(content, str):
            raise MalformedDeltaError("content must be a string", field="content")

        embeds = None
        if "embeds" in data:
            try:
                embeds = parse_embeds(data.get("embeds"))
            except MalformedDeltaError as e:
                logger.warning(
                    "Dropping malformed embeds of edit for message %s: %s",
                    message_id,
                    e,
                )

        return MessageEdit(
            message_id=message_id,
            channel_id=channel_id,
            content=content,
            embeds=embeds,
        )

    def to_message_delete(self, data: Mapping[str, Any]) -> MessageDelete:
        return MessageDelete(
            message_id=_snowflake(data, "id"),
            channel_id=_snowflake(data, "channel_id"),
        )

    def to_message_delete_bulk(self, data: Mapping[str, Any]) -> list[Delta]:
        """Convert a bulk delete into one delete delta per message."""
        channel_id = _snowflake(data, "channel_id")
        ids = data.get("ids")
        if not isinstance(ids, list):
            raise MalformedDeltaError("ids must be a list", field="ids")
        return [
            MessageDelete(
                message_id=_snowflake({"id": raw_id}, "id"), channel_id=channel_id
            )
            for raw_id in ids
        ]

    def _reaction_fields(self, data: Mapping[str, Any]) -> dict[str, Any]:
        user_id = _snowflake(data, "user_id")
        return {
            "message_id": _snowflake(data, "message_id"),
            "channel_id": _snowflake(data, "channel_id"),
            "emoji": Emoji.from_payload(data.get("emoji")),
            "user_id": user_id,
            "is_self": self._self_user_id is not None and user_id == self._self_user_id,
        }

    def to_reaction_add(self, data: Mapping[str, Any]) -> ReactionAdd:
        return ReactionAdd(**self._reaction_fields(data))

    def to_reaction_remove(self, data: Mapping[str, Any]) -> ReactionRemove:
        return ReactionRemove(**self._reaction_fields(data))
