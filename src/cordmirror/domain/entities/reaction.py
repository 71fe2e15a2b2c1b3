"""Reaction snapshot and per-message reaction aggregation."""

import threading
from collections.abc import Iterable
from dataclasses import dataclass, replace

from cordmirror.domain.entities.emoji import Emoji


@dataclass(frozen=True)
class Reaction:
    """Aggregated reaction state for one emoji on one message.

    Attributes:
        emoji: The emoji.
        count: Number of users who reacted, always > 0 while stored.
        self_reacted: Whether the connected account is among the reactors.
    """

    emoji: Emoji
    count: int
    self_reacted: bool = False


def _seed(reactions: Iterable[Reaction]) -> dict[str, Reaction]:
    return {r.emoji.key: r for r in reactions if r.count > 0}


class ReactionAggregator:
    """Folds per-user reaction add/remove deltas into per-emoji counters.

    Deltas arrive one user at a time and may be duplicated or reordered by
    the transport. The aggregator never lets a count go below zero and never
    keeps an emoji whose count reached zero. All mutations are serialized by
    an internal lock; readers get immutable snapshots.
    """

    def __init__(self, reactions: Iterable[Reaction] = ()) -> None:
        """Initialize the aggregator.

        Args:
            reactions: Initial reactions from a message snapshot. Entries with
                a non-positive count are ignored.
        """
        self._lock = threading.Lock()
        # emoji key -> Reaction, in first-seen order
        self._reactions: dict[str, Reaction] = _seed(reactions)

    def add(self, emoji: Emoji, is_self: bool = False) -> Reaction:
        """Record one user adding ``emoji``.

        A duplicate self-add still increments the count; ``self_reacted``
        only ever moves to True here.

        Args:
            emoji: The emoji that was added.
            is_self: Whether the connected account added it.

        Returns:
            The reaction state after the change.
        """
        with self._lock:
            current = self._reactions.get(emoji.key)
            if current is None:
                updated = Reaction(emoji=emoji, count=1, self_reacted=is_self)
            else:
                updated = replace(
                    current,
                    count=current.count + 1,
                    self_reacted=current.self_reacted or is_self,
                )
            self._reactions[emoji.key] = updated
            return updated

    def remove(self, emoji: Emoji, is_self: bool = False) -> Reaction | None:
        """Record one user removing ``emoji``.

        Removing an emoji that is not present is a no-op.

        Args:
            emoji: The emoji that was removed.
            is_self: Whether the connected account removed it.

        Returns:
            The reaction state after the change, or None if the emoji is no
            longer present.
        """
        with self._lock:
            current = self._reactions.get(emoji.key)
            if current is None:
                return None
            count = max(current.count - 1, 0)
            if count <= 0:
                del self._reactions[emoji.key]
                return None
            updated = replace(
                current,
                count=count,
                self_reacted=False if is_self else current.self_reacted,
            )
            self._reactions[emoji.key] = updated
            return updated

    def get(self, emoji: Emoji) -> Reaction | None:
        """Get the reaction state for ``emoji``, if present."""
        with self._lock:
            return self._reactions.get(emoji.key)

    def snapshot(self) -> tuple[Reaction, ...]:
        """Get all reactions in first-seen order."""
        with self._lock:
            return tuple(self._reactions.values())

    def reset(self, reactions: Iterable[Reaction]) -> None:
        """Replace every counter with the reactions of a full snapshot.

        Args:
            reactions: Reactions reported by the snapshot. Entries with a
                non-positive count are ignored.
        """
        seeded = _seed(reactions)
        with self._lock:
            self._reactions = seeded

    def clear(self) -> None:
        """Remove all reactions."""
        with self._lock:
            self._reactions.clear()

    def __contains__(self, emoji: object) -> bool:
        if not isinstance(emoji, Emoji):
            return False
        with self._lock:
            return emoji.key in self._reactions

    def __len__(self) -> int:
        with self._lock:
            return len(self._reactions)
