"""Embed entities.

Embeds are immutable snapshots. An edit replaces the whole embed list of a
message; individual embed fields are never merged.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlparse

from cordmirror.domain.exceptions import MalformedDeltaError

logger = logging.getLogger(__name__)


def _checked_url(value: Any, label: str) -> str | None:
    """Return ``value`` if it is an absolute URL, otherwise None.

    A malformed URL is not fatal for the embed; it is logged and dropped.
    """
    if value is None:
        return None
    if isinstance(value, str):
        parsed = urlparse(value)
        if parsed.scheme and parsed.netloc:
            return value
    logger.warning("Seems like the %s is malformed: %r", label, value)
    return None


def _optional_str(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise MalformedDeltaError(f"embed {key} must be a string", field=key)
    return value


def _int_or_default(data: Mapping[str, Any], key: str, default: int) -> int:
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        raise MalformedDeltaError(f"embed {key} must be an integer", field=key)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise MalformedDeltaError(f"embed {key} must be an integer", field=key) from e


def _require_mapping(data: Any, name: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise MalformedDeltaError(f"{name} must be an object", field=name)
    return data


@dataclass(frozen=True)
class EmbedMedia:
    """Image, thumbnail or video attached to an embed.

    Attributes:
        url: Source URL, None if absent or malformed.
        proxy_url: Proxied URL, None if absent or malformed.
        height: Height in pixels, -1 if unknown.
        width: Width in pixels, -1 if unknown.
    """

    url: str | None = None
    proxy_url: str | None = None
    height: int = -1
    width: int = -1

    @classmethod
    def from_payload(cls, data: Any, kind: str = "thumbnail") -> "EmbedMedia":
        data = _require_mapping(data, kind)
        return cls(
            url=_checked_url(data.get("url"), f"url of the embed {kind}"),
            proxy_url=_checked_url(
                data.get("proxy_url"), f"proxy url of the embed {kind}"
            ),
            height=_int_or_default(data, "height", -1),
            width=_int_or_default(data, "width", -1),
        )


@dataclass(frozen=True)
class EmbedFooter:
    """Embed footer."""

    text: str
    icon_url: str | None = None

    @classmethod
    def from_payload(cls, data: Any) -> "EmbedFooter":
        data = _require_mapping(data, "footer")
        return cls(
            text=_optional_str(data, "text") or "",
            icon_url=_checked_url(data.get("icon_url"), "icon url of the embed footer"),
        )


@dataclass(frozen=True)
class EmbedAuthor:
    """Embed author block."""

    name: str
    url: str | None = None
    icon_url: str | None = None

    @classmethod
    def from_payload(cls, data: Any) -> "EmbedAuthor":
        data = _require_mapping(data, "author")
        return cls(
            name=_optional_str(data, "name") or "",
            url=_checked_url(data.get("url"), "url of the embed author"),
            icon_url=_checked_url(data.get("icon_url"), "icon url of the embed author"),
        )


@dataclass(frozen=True)
class EmbedField:
    """A name/value field of an embed."""

    name: str
    value: str
    inline: bool = False

    @classmethod
    def from_payload(cls, data: Any) -> "EmbedField":
        data = _require_mapping(data, "field")
        return cls(
            name=_optional_str(data, "name") or "",
            value=_optional_str(data, "value") or "",
            inline=bool(data.get("inline", False)),
        )


@dataclass(frozen=True)
class Embed:
    """Rich embed snapshot attached to a message.

    Attributes:
        type: Embed type reported by the service (``rich``, ``image`` ...).
        title: Title.
        description: Description text.
        url: URL of the title, None if absent or malformed.
        color: Integer color, None if unset.
        timestamp: ISO8601 timestamp string, None if unset.
        footer: Footer block.
        image: Image block.
        thumbnail: Thumbnail block.
        video: Video block.
        author: Author block.
        fields: Name/value fields in display order.
    """

    type: str = "rich"
    title: str | None = None
    description: str | None = None
    url: str | None = None
    color: int | None = None
    timestamp: str | None = None
    footer: EmbedFooter | None = None
    image: EmbedMedia | None = None
    thumbnail: EmbedMedia | None = None
    video: EmbedMedia | None = None
    author: EmbedAuthor | None = None
    fields: tuple[EmbedField, ...] = field(default_factory=tuple)

    @classmethod
    def from_payload(cls, data: Any) -> "Embed":
        """Build an embed from a decoded embed object.

        Args:
            data: Decoded embed object.

        Returns:
            Embed entity.

        Raises:
            MalformedDeltaError: If the embed cannot be interpreted.
        """
        data = _require_mapping(data, "embed")

        raw_fields = data.get("fields") or []
        if not isinstance(raw_fields, list):
            raise MalformedDeltaError("embed fields must be a list", field="fields")

        color = data.get("color")
        if color is not None:
            color = _int_or_default(data, "color", 0)

        def optional(key: str, factory: Any) -> Any:
            value = data.get(key)
            return factory(value) if value is not None else None

        return cls(
            type=_optional_str(data, "type") or "rich",
            title=_optional_str(data, "title"),
            description=_optional_str(data, "description"),
            url=_checked_url(data.get("url"), "url of the embed"),
            color=color,
            timestamp=_optional_str(data, "timestamp"),
            footer=optional("footer", EmbedFooter.from_payload),
            image=optional("image", lambda v: EmbedMedia.from_payload(v, "image")),
            thumbnail=optional(
                "thumbnail", lambda v: EmbedMedia.from_payload(v, "thumbnail")
            ),
            video=optional("video", lambda v: EmbedMedia.from_payload(v, "video")),
            author=optional("author", EmbedAuthor.from_payload),
            fields=tuple(EmbedField.from_payload(f) for f in raw_fields),
        )


def parse_embeds(data: Iterable[Any] | None) -> tuple[Embed, ...]:
    """Parse a list of decoded embed objects.

    Args:
        data: Decoded embed list, None is treated as empty.

    Returns:
        Tuple of embeds in the original order.

    Raises:
        MalformedDeltaError: If the list or any embed in it is malformed.
    """
    if data is None:
        return ()
    if isinstance(data, (str, bytes, Mapping)) or not isinstance(data, Iterable):
        raise MalformedDeltaError("embeds must be a list", field="embeds")
    return tuple(Embed.from_payload(item) for item in data)
