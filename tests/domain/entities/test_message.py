"""Tests for the Message entity."""

from datetime import datetime, timezone
from typing import Any

import pytest

from cordmirror.domain.entities import (
    Embed,
    Emoji,
    ListenerKind,
    Message,
    MessageSnapshot,
    Reaction,
    User,
)


class _RecordingCache:
    """Minimal MessageCache recording pin/unpin calls."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, int]] = []

    @property
    def channel_id(self) -> int:
        return 10

    def pin(self, message: Message) -> None:
        message.cached_forever = True
        self.calls.append(("pin", message.id))

    def unpin(self, message: Message) -> None:
        message.cached_forever = False
        self.calls.append(("unpin", message.id))


class TestUser:
    """User entity tests."""

    def test_mention_tags(self) -> None:
        """Test the mention tag formats."""
        user = User(id=123, name="Test User")

        assert user.mention_tag == "<@123>"
        assert user.nickname_mention_tag == "<@!123>"

    def test_is_yourself(self) -> None:
        """Test comparing with the connected account."""
        user = User(id=123, name="Test User")

        assert user.is_yourself(123) is True
        assert user.is_yourself(456) is False
        assert user.is_yourself(None) is False

    def test_user_is_frozen(self) -> None:
        """Test that user is immutable."""
        user = User(id=123, name="Test User")

        with pytest.raises(AttributeError):
            user.name = "New Name"  # type: ignore[misc]


class TestMessage:
    """Message entity tests."""

    @pytest.fixture
    def author(self) -> User:
        """Create a test author."""
        return User(id=1, name="author")

    @pytest.fixture
    def message(self, author: User) -> Message:
        """Create a test message without a cache."""
        return Message(
            id=175928847299117063,
            channel_id=10,
            content="hello",
            author=author,
            embeds=[Embed(title="first")],
            reactions=[Reaction(Emoji(name="👍"), 2, True)],
        )

    def test_create_message(self, message: Message, author: User) -> None:
        """Test basic message creation."""
        assert message.id == 175928847299117063
        assert message.channel_id == 10
        assert message.content == "hello"
        assert message.author == author
        assert message.embeds == (Embed(title="first"),)
        assert message.reactions == (Reaction(Emoji(name="👍"), 2, True),)
        assert message.deleted is False
        assert message.cached_forever is False
        assert message.partial is False

    def test_webhook_message_has_no_author(self) -> None:
        """Test a message without an author."""
        message = Message(id=1, channel_id=10, content="from a webhook")

        assert message.author is None

    def test_created_at_from_id(self, message: Message) -> None:
        """Test that the creation time is derived from the id."""
        assert message.created_at == datetime(
            2016, 4, 30, 11, 18, 25, 796000, tzinfo=timezone.utc
        )

    def test_equality_and_ordering_by_id(self) -> None:
        """Test that messages compare by id."""
        a = Message(id=1, channel_id=10, content="a")
        a_again = Message(id=1, channel_id=10, content="other")
        b = Message(id=2, channel_id=10)

        assert a == a_again
        assert hash(a) == hash(a_again)
        assert a != b
        assert sorted([b, a]) == [a, b]

    def test_apply_edit_replaces_content_and_embeds(self, message: Message) -> None:
        """Test that an edit replaces content and the whole embed list."""
        applied = message.apply_edit("edited", [Embed(title="second")])

        assert applied is True
        assert message.content == "edited"
        assert message.embeds == (Embed(title="second"),)

    def test_apply_edit_with_missing_fields_keeps_them(
        self, message: Message
    ) -> None:
        """Test that None fields are left unchanged."""
        message.apply_edit(None, None)

        assert message.content == "hello"
        assert message.embeds == (Embed(title="first"),)

    def test_apply_edit_on_deleted_message(self, message: Message) -> None:
        """Test that a deleted message is frozen."""
        message.mark_deleted()

        applied = message.apply_edit("edited", [])

        assert applied is False
        assert message.content == "hello"
        assert message.embeds == (Embed(title="first"),)

    def test_mark_deleted_is_monotonic(self, message: Message) -> None:
        """Test that only the first deletion transitions."""
        assert message.mark_deleted() is True
        assert message.mark_deleted() is False
        assert message.deleted is True

    def test_hydrate_placeholder(self, author: User) -> None:
        """Test filling a placeholder from a snapshot."""
        placeholder = Message(id=5, channel_id=10, partial=True)

        placeholder.hydrate(
            "full content", author, [Embed(title="e")], [Reaction(Emoji("🎉"), 1)]
        )

        assert placeholder.partial is False
        assert placeholder.content == "full content"
        assert placeholder.author == author
        assert placeholder.reactions == (Reaction(Emoji("🎉"), 1),)

    def test_hydrate_keeps_aggregator(self, author: User) -> None:
        """Test that hydration updates the aggregator callers already hold."""
        placeholder = Message(id=5, channel_id=10, partial=True)
        aggregator = placeholder.reaction_aggregator
        placeholder.add_reaction(Emoji("👍"))

        placeholder.hydrate("full", author, [], [Reaction(Emoji("🎉"), 2)])

        assert placeholder.reaction_aggregator is aggregator
        assert aggregator.snapshot() == (Reaction(Emoji("🎉"), 2),)

    def test_snapshot_is_immutable(self, message: Message) -> None:
        """Test that a snapshot keeps the state at the time it was taken."""
        snapshot = message.snapshot()

        message.apply_edit("edited", [])
        message.add_reaction(Emoji(name="👍"))

        assert isinstance(snapshot, MessageSnapshot)
        assert snapshot.content == "hello"
        assert snapshot.embeds == (Embed(title="first"),)
        assert snapshot.reactions == (Reaction(Emoji(name="👍"), 2, True),)
        with pytest.raises(AttributeError):
            snapshot.content = "x"  # type: ignore[misc]

    def test_reaction_helpers(self, message: Message) -> None:
        """Test adding and removing reactions through the message."""
        party = Emoji(name="🎉")

        message.add_reaction(party, is_self=True)
        message.remove_reaction(Emoji(name="👍"))

        assert message.reactions == (
            Reaction(Emoji(name="👍"), 1, True),
            Reaction(party, 1, True),
        )

    def test_set_cached_forever_without_cache(self, message: Message) -> None:
        """Test that the flag is kept locally when there is no cache."""
        message.set_cached_forever(True)
        assert message.cached_forever is True

        message.set_cached_forever(False)
        assert message.cached_forever is False

    def test_set_cached_forever_routes_through_cache(self) -> None:
        """Test that pinning is delegated to the cache."""
        cache = _RecordingCache()
        message = Message(id=7, channel_id=10, cache=cache)  # type: ignore[arg-type]

        message.set_cached_forever(True)
        message.set_cached_forever(False)

        assert cache.calls == [("pin", 7), ("unpin", 7)]

    def test_delete_listener_pins_message(self) -> None:
        """Test that registering a delete listener pins the message."""
        cache = _RecordingCache()
        message = Message(id=7, channel_id=10, cache=cache)  # type: ignore[arg-type]

        message.add_delete_listener(lambda s, d: None)

        assert message.cached_forever is True
        assert cache.calls == [("pin", 7)]

    def test_delete_listener_on_deleted_message_does_not_pin(self) -> None:
        """Test that a deleted message is not pinned by a late delete listener."""
        cache = _RecordingCache()
        message = Message(id=7, channel_id=10, cache=cache)  # type: ignore[arg-type]
        message.mark_deleted()

        assert message.add_delete_listener(lambda s, d: None) is True

        assert message.cached_forever is False
        assert cache.calls == []

    @pytest.mark.parametrize(
        "register",
        [
            Message.add_edit_listener,
            Message.add_reaction_add_listener,
            Message.add_reaction_remove_listener,
        ],
    )
    def test_other_listeners_do_not_pin(self, register: Any) -> None:
        """Test that only delete listeners imply pinning."""
        cache = _RecordingCache()
        message = Message(id=7, channel_id=10, cache=cache)  # type: ignore[arg-type]

        register(message, lambda s, d: None)

        assert message.cached_forever is False
        assert cache.calls == []

    def test_listener_helpers_register_by_kind(self, message: Message) -> None:
        """Test that helper methods register under the right kind."""

        def listener(snapshot: Any, delta: Any) -> None:
            pass

        message.add_edit_listener(listener)

        assert message.get_listeners(ListenerKind.EDIT) == (listener,)
        assert message.get_listeners(ListenerKind.DELETE) == ()

        message.remove_listener(ListenerKind.EDIT, listener)
        assert message.get_listeners(ListenerKind.EDIT) == ()
