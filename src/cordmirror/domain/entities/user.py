"""User entity."""

from dataclasses import dataclass


@dataclass(frozen=True)
class User:
    """User entity.

    Attributes:
        id: Service-assigned user ID.
        name: Display name.
        is_bot: Whether the user is a bot.
    """

    id: int
    name: str
    is_bot: bool = False

    @property
    def mention_tag(self) -> str:
        """Get the tag used to mention this user."""
        return f"<@{self.id}>"

    @property
    def nickname_mention_tag(self) -> str:
        """Get the tag used to mention this user by nickname."""
        return f"<@!{self.id}>"

    def is_yourself(self, self_user_id: int | None) -> bool:
        """Check if this user is the connected account.

        Args:
            self_user_id: ID of the connected account, if known.

        Returns:
            True if this user is the connected account.
        """
        return self_user_id is not None and self.id == self_user_id
