"""Resource receiving GitHub webhook deliveries.

``POST /github/events`` decodes the JSON body, runs the transform chain and
hands the result to the publisher without waiting for the broker. The caller
gets ``200 OK!`` as soon as the event has been transformed.

Usage
-----
Register the resource on the Falcon app::

    app.add_route("/github/events", GithubEventsResource(publisher))

"""

from __future__ import annotations

import typing as typ

import falcon
import msgspec

from hookbridge.events import InboundRequest, InvalidEventBodyError, build_event
from hookbridge.logging import get_logger, log_debug

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from hookbridge.broker.protocol import EventPublisher

__all__ = ["MAX_BODY_BYTES", "GithubEventsResource"]

logger = get_logger(__name__)

MAX_BODY_BYTES = 50 * 1024 * 1024


def _too_large() -> falcon.HTTPContentTooLarge:
    return falcon.HTTPContentTooLarge(
        title="Request body too large",
        description=f"Webhook bodies are limited to {MAX_BODY_BYTES} bytes",
    )


async def read_json_body(req: Request) -> typ.Any:  # noqa: ANN401 - JSON value
    """Read and decode the request body.

    An empty body decodes to an empty object.

    Raises
    ------
    falcon.HTTPContentTooLarge
        If the body exceeds :data:`MAX_BODY_BYTES`.
    InvalidEventBodyError
        If the body is not valid JSON.

    """
    if req.content_length is not None and req.content_length > MAX_BODY_BYTES:
        raise _too_large()

    raw = await req.stream.read(MAX_BODY_BYTES + 1)
    if len(raw) > MAX_BODY_BYTES:
        raise _too_large()
    if not raw.strip():
        return {}

    try:
        return msgspec.json.decode(raw)
    except msgspec.DecodeError as exc:
        raise InvalidEventBodyError.malformed(str(exc)) from exc


class GithubEventsResource:
    """Transform webhook deliveries and queue them for publishing."""

    def __init__(self, publisher: EventPublisher) -> None:
        """Store the publisher events are handed to."""
        self._publisher = publisher

    async def on_post(self, req: Request, resp: Response) -> None:
        """Handle POST /github/events.

        Transform failures propagate as ``EventError`` and are mapped to
        HTTP 400 by :func:`hookbridge.api.errors.handle_event_error`.
        """
        body = await read_json_body(req)
        event = build_event(InboundRequest.from_raw(req.headers, body))
        log_debug(
            logger,
            "Accepted webhook event_type=%s fields=%d",
            event.routing_key,
            len(event.record),
        )

        self._publisher.submit(event)

        resp.status = falcon.HTTP_200
        resp.content_type = falcon.MEDIA_TEXT
        resp.text = "OK!"
