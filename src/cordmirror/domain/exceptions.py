"""Domain exceptions."""


class EntityNotFoundError(LookupError):
    """Raised when an operation requires a message that is not known.

    Removing a listener from an unknown message is not an error; this is
    only raised where the caller needs the entity to exist.
    """

    def __init__(self, message_id: int, message: str = "") -> None:
        """Initialize the error.

        Args:
            message_id: ID of the message that could not be resolved.
            message: Optional error message.
        """
        self.message_id = message_id
        super().__init__(message or f"Message {message_id} is not cached")


class MalformedDeltaError(ValueError):
    """Raised when a delta or one of its fields cannot be interpreted.

    Malformed deltas are isolated failures: the delta is logged and dropped,
    and processing continues with the next one.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize the error.

        Args:
            message: Error message.
            field: Name of the offending field, if known.
        """
        self.field = field
        super().__init__(message)
