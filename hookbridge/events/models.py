"""Typed containers passed between the pipeline stages."""

from __future__ import annotations

import dataclasses as dc
import typing as typ

EVENT_TYPE_HEADER = "x-github-event"
DELIVERY_ID_HEADER = "x-github-delivery"
PUSH_EVENT = "push"

type Headers = dict[str, str]
type EventRecord = dict[str, typ.Any]


@dc.dataclass(frozen=True, slots=True)
class InboundRequest:
    """Headers and decoded JSON body of one webhook delivery.

    Header names are expected in lower case; use :meth:`from_raw` when the
    source does not guarantee it.
    """

    headers: Headers
    body: typ.Any

    @classmethod
    def from_raw(
        cls, headers: typ.Mapping[str, str], body: typ.Any
    ) -> InboundRequest:
        """Build a request, lower-casing header names."""
        return cls(
            headers={name.lower(): value for name, value in headers.items()},
            body=body,
        )


@dc.dataclass(frozen=True, slots=True)
class PublishableEvent:
    """Flattened event record and the routing key it is published under."""

    routing_key: str
    record: EventRecord
