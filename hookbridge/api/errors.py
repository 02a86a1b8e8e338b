"""Falcon error handlers for the webhook endpoint.

Only failures of the synchronous transform chain are mapped here. Broker
errors never reach the HTTP layer because publishing is not awaited.

Usage
-----
Register the handler on the Falcon app::

    from hookbridge.api.errors import handle_event_error
    from hookbridge.events import EventError

    app.add_error_handler(EventError, handle_event_error)

"""

from __future__ import annotations

import typing as typ

import falcon

from hookbridge.logging import get_logger, log_warning

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from hookbridge.events import EventError

__all__ = ["handle_event_error"]

logger = get_logger(__name__)


async def handle_event_error(
    req: Request,
    resp: Response,
    ex: EventError,
    _params: dict[str, typ.Any],
) -> None:
    """Map an ``EventError`` to HTTP 400 with the message as plain text.

    Parameters
    ----------
    req
        Falcon request, used for the event type in the log line.
    resp
        Falcon response whose status and body are set.
    ex
        The transform failure.
    _params
        URI template parameters (unused).

    """
    log_warning(
        logger,
        "[event.rejected] event_type=%s error_type=%s error_message=%s",
        req.get_header("X-GitHub-Event"),
        type(ex).__name__,
        str(ex),
    )
    resp.status = falcon.HTTP_400
    resp.content_type = falcon.MEDIA_TEXT
    resp.text = str(ex)
