"""Webhook request to broker event transformation.

This package holds the only decision logic of the bridge:

* **Classification** - push versus every other GitHub event type.
* **Normalisation** - header whitelisting and ISO-8601 repository dates for
  push events.
* **Merging** - one flat record per delivery, keyed by event type.
"""

from __future__ import annotations

from .classify import event_type_of, github_headers, is_push_event
from .errors import (
    EventError,
    InvalidEventBodyError,
    InvalidTimestampError,
    MissingEventTypeError,
)
from .merge import merge_event
from .models import (
    DELIVERY_ID_HEADER,
    EVENT_TYPE_HEADER,
    PUSH_EVENT,
    InboundRequest,
    PublishableEvent,
)
from .normalize import iso_date, normalize_push_request, normalize_repository_dates
from .pipeline import build_event, prepare_request

__all__ = [
    "DELIVERY_ID_HEADER",
    "EVENT_TYPE_HEADER",
    "PUSH_EVENT",
    "EventError",
    "InboundRequest",
    "InvalidEventBodyError",
    "InvalidTimestampError",
    "MissingEventTypeError",
    "PublishableEvent",
    "build_event",
    "event_type_of",
    "github_headers",
    "is_push_event",
    "iso_date",
    "merge_event",
    "normalize_push_request",
    "normalize_repository_dates",
    "prepare_request",
]
