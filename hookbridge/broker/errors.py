"""Broker publishing errors.

None of these reach the webhook caller: publishing happens after the HTTP
response has been decided, so they surface only in logs and in the futures
returned by :class:`hookbridge.broker.BrokerPublisher`.
"""

from __future__ import annotations


class BrokerError(RuntimeError):
    """Base class for RabbitMQ publishing failures."""


class BrokerSetupError(BrokerError):
    """Raised when the connection, channel or exchange cannot be set up."""

    def __init__(self, url: str) -> None:
        """Include the (password-masked) broker URL in the message."""
        self.url = url
        super().__init__(f"broker setup failed for {url}")


class BrokerNotReadyError(BrokerError):
    """Raised when publishing without a usable channel."""

    def __init__(self, state: str) -> None:
        """Include the publisher state in the message."""
        self.state = state
        super().__init__(f"broker channel unavailable (state={state})")


class PublishError(BrokerError):
    """Raised when the channel rejects a publish."""

    def __init__(self, exchange: str, routing_key: str) -> None:
        """Name the exchange and routing key of the failed publish."""
        self.exchange = exchange
        self.routing_key = routing_key
        super().__init__(f"publish to {exchange!r} with key {routing_key!r} failed")
