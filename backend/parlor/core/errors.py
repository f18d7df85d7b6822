"""Domain errors raised by the services and mapped to transport responses.

Authorization failures are deliberately absent: a non-author edit or delete
is a silent no-op so that the caller learns nothing about the message.
"""


class ChatError(Exception):
    """Base class for every error the chat core raises on purpose."""


class Unauthenticated(ChatError):
    """No session, or a session that is not marked authenticated."""


class InvalidInput(ChatError, ValueError):
    """A required field is missing or malformed."""

    def __init__(self, detail: str, code: str = "invalid_input") -> None:
        super().__init__(detail)
        self.detail = detail
        self.code = code


class DuplicateChannelName(InvalidInput):
    def __init__(self, name: str) -> None:
        super().__init__(f"A channel named {name!r} already exists", code="duplicate_channel")


class StoreFailure(ChatError):
    """The durable store rejected or failed an operation."""
