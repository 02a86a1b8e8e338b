"""Flatten headers and body into the record that gets published."""

from __future__ import annotations

import typing as typ

from hookbridge.events.errors import InvalidEventBodyError
from hookbridge.events.models import EVENT_TYPE_HEADER, EventRecord

if typ.TYPE_CHECKING:
    from hookbridge.events.models import InboundRequest


def merge_event(request: InboundRequest) -> EventRecord:
    """Merge headers and body into one flat record.

    Body fields win over headers of the same name, except the event type
    header, which is re-applied so the record always carries the routing key
    it was published under.

    Raises
    ------
    InvalidEventBodyError
        If the body is not a JSON object.

    """
    body = request.body
    if not isinstance(body, dict):
        raise InvalidEventBodyError.not_an_object(body)

    record: EventRecord = {**request.headers, **body}
    if EVENT_TYPE_HEADER in request.headers:
        record[EVENT_TYPE_HEADER] = request.headers[EVENT_TYPE_HEADER]
    return record
