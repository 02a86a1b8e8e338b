"""Application factory for the hookbridge Falcon ASGI application.

``create_app()`` builds the Falcon ASGI application with health endpoints
and, when a publisher is supplied, the webhook endpoint together with the
lifespan middleware that owns the broker connection.

Usage
-----
Create a probe-only app (no broker)::

    app = create_app()

Create the full app::

    from hookbridge.api.app import AppDependencies, create_app
    from hookbridge.broker import BrokerPublisher

    deps = AppDependencies(publisher=BrokerPublisher(config.broker))
    app = create_app(deps)

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from hookbridge.api.errors import handle_event_error
from hookbridge.api.health.resources import HealthResource, ReadyResource
from hookbridge.events import EventError

if typ.TYPE_CHECKING:
    from hookbridge.broker.protocol import EventPublisher

__all__ = ["WEBHOOK_ROUTE", "AppDependencies", "create_app"]

WEBHOOK_ROUTE = "/github/events"


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Dependencies for the Falcon ASGI application.

    Attributes
    ----------
    publisher
        Publisher receiving transformed events. When ``None`` only the
        health endpoints are registered.
    manage_lifespan
        Start and close the publisher with the ASGI lifespan. Tests that
        drive the publisher themselves turn this off.

    """

    publisher: EventPublisher | None = None
    manage_lifespan: bool = True


def create_app(
    dependencies: AppDependencies | None = None,
) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Parameters
    ----------
    dependencies
        Optional application dependencies. When ``None``, or when no
        publisher is given, only ``/health`` and ``/ready`` are available.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    deps = dependencies or AppDependencies()
    publisher = deps.publisher

    middleware: list[object] = []
    if publisher is not None and deps.manage_lifespan:
        from hookbridge.api.middleware import PublisherLifespan

        middleware.append(PublisherLifespan(publisher))

    app = falcon.asgi.App(middleware=middleware)  # type: ignore[no-matching-overload]  # Falcon stubs

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(publisher))

    if publisher is not None:
        from hookbridge.api.events.resources import GithubEventsResource

        app.add_route(WEBHOOK_ROUTE, GithubEventsResource(publisher))

    app.add_error_handler(EventError, handle_event_error)

    return app
