"""Emoji entity."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from cordmirror.domain.exceptions import MalformedDeltaError


@dataclass(frozen=True)
class Emoji:
    """Emoji used in a reaction.

    Unicode emoji are identified by their text. Custom emoji are identified
    by their id, so a renamed custom emoji still maps to the same counter.

    Attributes:
        name: Unicode text, or the name of a custom emoji.
        id: Custom emoji ID, None for unicode emoji.
        animated: Whether a custom emoji is animated.
    """

    name: str
    id: int | None = None
    animated: bool = False

    @property
    def is_custom(self) -> bool:
        """Check if this is a custom (server) emoji."""
        return self.id is not None

    @property
    def key(self) -> str:
        """Identity used to aggregate reactions."""
        if self.id is not None:
            return f"custom:{self.id}"
        return f"unicode:{self.name}"

    @property
    def mention_tag(self) -> str:
        """Get the tag used to display this emoji in message content."""
        if self.id is None:
            return self.name
        prefix = "a" if self.animated else ""
        return f"<{prefix}:{self.name}:{self.id}>"

    def __str__(self) -> str:
        return self.mention_tag

    @classmethod
    def from_payload(cls, data: Any) -> "Emoji":
        """Build an emoji from a decoded emoji object.

        Args:
            data: Mapping with ``name`` and optional ``id``/``animated``.

        Returns:
            Emoji entity.

        Raises:
            MalformedDeltaError: If the payload does not describe an emoji.
        """
        if not isinstance(data, Mapping):
            raise MalformedDeltaError("emoji must be an object", field="emoji")

        raw_id = data.get("id")
        emoji_id: int | None = None
        if raw_id is not None:
            try:
                emoji_id = int(raw_id)
            except (TypeError, ValueError) as e:
                raise MalformedDeltaError(
                    f"invalid emoji id: {raw_id!r}", field="emoji"
                ) from e

        name = data.get("name")
        if name is None and emoji_id is None:
            raise MalformedDeltaError("emoji has neither name nor id", field="emoji")

        return cls(
            name=str(name) if name is not None else "",
            id=emoji_id,
            animated=bool(data.get("animated", False)),
        )
