"""Unit tests for hookbridge.api.middleware.PublisherLifespan.

Usage
-----
Run with pytest::

    pytest tests/unit/test_api_middleware.py

"""

from __future__ import annotations

import pytest

from hookbridge.api.middleware import PublisherLifespan
from tests.helpers.broker_fakes import RecordingPublisher


class TestPublisherLifespan:
    """Tests for the lifespan hooks."""

    @pytest.mark.asyncio
    async def test_startup_starts_publisher(self) -> None:
        """Startup begins the broker setup without closing anything."""
        publisher = RecordingPublisher(state="disconnected")
        middleware = PublisherLifespan(publisher)

        await middleware.process_startup({}, {})

        assert publisher.started == 1, "expected one start call"
        assert publisher.closed == 0, "publisher closed too early"

    @pytest.mark.asyncio
    async def test_shutdown_closes_publisher(self) -> None:
        """Shutdown closes the publisher."""
        publisher = RecordingPublisher()
        middleware = PublisherLifespan(publisher)

        await middleware.process_startup({}, {})
        await middleware.process_shutdown({}, {})

        assert publisher.closed == 1, "expected one close call"
