"""Tests for ListenerRegistry."""

from typing import Any

import pytest

from cordmirror.domain.entities import ListenerKind, ListenerRegistry


class TestListenerKind:
    """Tests for ListenerKind enum."""

    def test_values(self) -> None:
        """Test the closed set of listener kinds."""
        assert {kind.value for kind in ListenerKind} == {
            "delete",
            "edit",
            "reaction_add",
            "reaction_remove",
        }


class TestListenerRegistry:
    """Tests for ListenerRegistry."""

    @pytest.fixture
    def registry(self) -> ListenerRegistry:
        """Create an empty registry."""
        return ListenerRegistry()

    def test_dispatch_in_registration_order(self, registry: ListenerRegistry) -> None:
        """Test that listeners are called in registration order."""
        calls: list[str] = []

        def first(entity: Any, delta: Any) -> None:
            calls.append("first")

        def second(entity: Any, delta: Any) -> None:
            calls.append("second")

        registry.add(ListenerKind.EDIT, first)
        registry.add(ListenerKind.EDIT, second)

        called = registry.dispatch(ListenerKind.EDIT, "entity", "delta")

        assert called == 2
        assert calls == ["first", "second"]

    def test_dispatch_passes_entity_and_delta(
        self, registry: ListenerRegistry
    ) -> None:
        """Test that listeners receive the entity and the delta."""
        received: list[tuple[Any, Any]] = []
        registry.add(ListenerKind.DELETE, lambda e, d: received.append((e, d)))

        registry.dispatch(ListenerKind.DELETE, "entity", "delta")

        assert received == [("entity", "delta")]

    def test_kinds_are_independent(self, registry: ListenerRegistry) -> None:
        """Test that dispatch only reaches listeners of the same kind."""
        calls: list[str] = []
        registry.add(ListenerKind.REACTION_ADD, lambda e, d: calls.append("add"))

        registry.dispatch(ListenerKind.REACTION_REMOVE, None, None)

        assert calls == []

    def test_duplicate_add_keeps_single_entry(
        self, registry: ListenerRegistry
    ) -> None:
        """Test that the same listener is registered once."""

        def listener(entity: Any, delta: Any) -> None:
            pass

        assert registry.add(ListenerKind.EDIT, listener) is True
        assert registry.add(ListenerKind.EDIT, listener) is False
        assert registry.count(ListenerKind.EDIT) == 1

    def test_remove(self, registry: ListenerRegistry) -> None:
        """Test removing a listener."""

        def listener(entity: Any, delta: Any) -> None:
            pass

        registry.add(ListenerKind.EDIT, listener)

        assert registry.remove(ListenerKind.EDIT, listener) is True
        assert registry.snapshot(ListenerKind.EDIT) == ()

    def test_remove_unknown_is_noop(self, registry: ListenerRegistry) -> None:
        """Test that removing a never-added listener is not an error."""
        assert registry.remove(ListenerKind.EDIT, lambda e, d: None) is False

    def test_snapshot_is_immutable(self, registry: ListenerRegistry) -> None:
        """Test that a snapshot does not see later registrations."""

        def listener(entity: Any, delta: Any) -> None:
            pass

        snapshot = registry.snapshot(ListenerKind.EDIT)
        registry.add(ListenerKind.EDIT, listener)

        assert snapshot == ()
        assert registry.snapshot(ListenerKind.EDIT) == (listener,)

    def test_listener_added_during_dispatch_runs_next_pass(
        self, registry: ListenerRegistry
    ) -> None:
        """Test that a listener registered mid-dispatch is not called in that pass."""
        calls: list[str] = []

        def late(entity: Any, delta: Any) -> None:
            calls.append("late")

        def registering(entity: Any, delta: Any) -> None:
            calls.append("registering")
            registry.add(ListenerKind.EDIT, late)

        registry.add(ListenerKind.EDIT, registering)

        registry.dispatch(ListenerKind.EDIT, None, None)
        assert calls == ["registering"]

        registry.dispatch(ListenerKind.EDIT, None, None)
        assert calls == ["registering", "registering", "late"]

    def test_failing_listener_does_not_stop_others(
        self, registry: ListenerRegistry, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that a raising listener is logged and others still run."""
        calls: list[str] = []

        def failing(entity: Any, delta: Any) -> None:
            calls.append("failing")
            raise RuntimeError("Test error")

        def successful(entity: Any, delta: Any) -> None:
            calls.append("successful")

        registry.add(ListenerKind.DELETE, failing)
        registry.add(ListenerKind.DELETE, successful)

        registry.dispatch(ListenerKind.DELETE, None, None)

        assert calls == ["failing", "successful"]
        assert "Error in delete listener" in caplog.text
        assert "Test error" in caplog.text

    def test_count_and_clear(self, registry: ListenerRegistry) -> None:
        """Test counting across kinds and clearing."""
        registry.add(ListenerKind.EDIT, lambda e, d: None)
        registry.add(ListenerKind.DELETE, lambda e, d: None)

        assert registry.count() == 2

        registry.clear()

        assert registry.count() == 0
