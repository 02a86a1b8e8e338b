"""ASGI lifespan middleware tying the publisher to the server process.

Broker setup starts when the server starts rather than on the first
webhook, and the connection is closed when the server stops.
"""

from __future__ import annotations

import asyncio
import typing as typ

from hookbridge.logging import get_logger, log_info

if typ.TYPE_CHECKING:
    from hookbridge.broker.protocol import EventPublisher

__all__ = ["PublisherLifespan"]

logger = get_logger(__name__)


class PublisherLifespan:
    """Start the publisher at startup and close it at shutdown.

    Startup does not wait for the broker: the server accepts webhooks while
    the connection is still being set up, and those publishes queue behind
    the setup.
    """

    def __init__(self, publisher: EventPublisher) -> None:
        """Store the publisher whose lifecycle is managed."""
        self._publisher = publisher

    async def process_startup(
        self, _scope: dict[str, typ.Any], _event: dict[str, typ.Any]
    ) -> None:
        """Kick off the one-time broker setup."""
        log_info(logger, "Starting broker setup")
        self._publisher.start()

    async def process_shutdown(
        self, _scope: dict[str, typ.Any], _event: dict[str, typ.Any]
    ) -> None:
        """Close the broker connection off the event loop."""
        await asyncio.to_thread(self._publisher.close)
        log_info(logger, "Broker publisher closed")
