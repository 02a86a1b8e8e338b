"""Errors raised while turning a webhook request into a publishable event."""

from __future__ import annotations


class EventError(ValueError):
    """Base class for failures in the synchronous transform chain.

    The message is returned verbatim to the webhook caller, so it should
    describe the problem with the request rather than the code path.
    """


class InvalidTimestampError(EventError):
    """Raised when a repository date cannot be parsed."""

    def __init__(self, field: str, value: object) -> None:
        """Record the dotted field path and the rejected value."""
        self.field = field
        self.value = value
        super().__init__(f"{field}: cannot parse {value!r} as a date")


class InvalidEventBodyError(EventError):
    """Raised when the request body cannot be flattened into an event."""

    @classmethod
    def not_an_object(cls, body: object) -> InvalidEventBodyError:
        """Return an error for JSON bodies that are not objects."""
        return cls(f"event body must be a JSON object, got {type(body).__name__}")

    @classmethod
    def malformed(cls, detail: str) -> InvalidEventBodyError:
        """Return an error for bodies that are not valid JSON."""
        return cls(f"malformed JSON body: {detail}")


class MissingEventTypeError(EventError):
    """Raised when no event type header is available for routing."""

    def __init__(self, header: str) -> None:
        """Name the missing header in the message."""
        self.header = header
        super().__init__(f"missing {header} header")
