"""Turn an inbound webhook request into a publishable event.

The chain is classify, then normalise push events (other events pass
through untouched), then merge. Every failure raised here is an
``EventError`` whose message can be returned to the webhook caller.

Usage
-----
>>> from hookbridge.events import InboundRequest, build_event
>>> event = build_event(
...     InboundRequest(headers={"x-github-event": "issues"}, body={"action": "opened"})
... )
>>> event.routing_key
'issues'

"""

from __future__ import annotations

from hookbridge.events.classify import event_type_of, is_push_event
from hookbridge.events.merge import merge_event
from hookbridge.events.models import InboundRequest, PublishableEvent
from hookbridge.events.normalize import normalize_push_request


def prepare_request(request: InboundRequest) -> InboundRequest:
    """Normalise push events and return every other request unchanged."""
    if is_push_event(request):
        return normalize_push_request(request)
    return request


def build_event(request: InboundRequest) -> PublishableEvent:
    """Run the transform chain for one delivery.

    Raises
    ------
    MissingEventTypeError
        If the request has no event type header.
    InvalidTimestampError
        If a push event carries an unparseable repository date.
    InvalidEventBodyError
        If the body is not a JSON object.

    """
    routing_key = event_type_of(request.headers)
    record = merge_event(prepare_request(request))
    return PublishableEvent(routing_key=routing_key, record=record)
