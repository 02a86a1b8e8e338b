"""Classify webhook deliveries by their GitHub event type header."""

from __future__ import annotations

import typing as typ

from hookbridge.events.errors import MissingEventTypeError
from hookbridge.events.models import (
    DELIVERY_ID_HEADER,
    EVENT_TYPE_HEADER,
    PUSH_EVENT,
    Headers,
)

if typ.TYPE_CHECKING:
    from hookbridge.events.models import InboundRequest

GITHUB_HEADERS = (EVENT_TYPE_HEADER, DELIVERY_ID_HEADER)


def github_headers(headers: typ.Mapping[str, str]) -> Headers:
    """Return only the GitHub event type and delivery id headers."""
    return {name: headers[name] for name in GITHUB_HEADERS if name in headers}


def is_push_event(request: InboundRequest) -> bool:
    """Return True when the delivery is a ``push`` event."""
    return request.headers.get(EVENT_TYPE_HEADER) == PUSH_EVENT


def event_type_of(headers: typ.Mapping[str, str]) -> str:
    """Return the event type header used as the routing key.

    Raises
    ------
    MissingEventTypeError
        If the header is absent or blank.

    """
    event_type = headers.get(EVENT_TYPE_HEADER, "")
    if not event_type.strip():
        raise MissingEventTypeError(EVENT_TYPE_HEADER)
    return event_type
