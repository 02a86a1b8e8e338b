"""Health probe resources for Kubernetes liveness and readiness checks.

Usage
-----
Register health endpoints on the Falcon app::

    from hookbridge.api.health.resources import HealthResource, ReadyResource

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(publisher))

"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from hookbridge.broker.protocol import EventPublisher

__all__ = ["HealthResource", "ReadyResource"]

_READY_STATE = "ready"


class HealthResource:
    """Liveness probe resource returning ``{"status": "ok"}``."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /health requests."""
        resp.media = {"status": "ok"}
        resp.status = HTTPStatus.OK


class ReadyResource:
    """Readiness probe reflecting the broker publisher state.

    Without a publisher the app can only answer probes and always reports
    ready. With one, the probe answers 503 until the broker channel is open,
    and keeps answering 503 if setup failed, so the orchestrator can restart
    the pod.

    """

    def __init__(self, publisher: EventPublisher | None = None) -> None:
        """Store the publisher whose state is reported."""
        self._publisher = publisher

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /ready requests.

        Parameters
        ----------
        _req
            Falcon request (unused).
        resp
            Falcon response populated with readiness status.

        """
        if self._publisher is None:
            resp.media = {"status": "ready"}
            resp.status = HTTPStatus.OK
            return

        state = str(self._publisher.state)
        if state == _READY_STATE:
            resp.media = {"status": "ready", "broker": state}
            resp.status = HTTPStatus.OK
        else:
            resp.media = {"status": "not_ready", "broker": state}
            resp.status = HTTPStatus.SERVICE_UNAVAILABLE
