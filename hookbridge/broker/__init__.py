"""RabbitMQ publishing for normalised webhook events."""

from __future__ import annotations

from .errors import BrokerError, BrokerNotReadyError, BrokerSetupError, PublishError
from .observability import BrokerEventLogger, BrokerEventType
from .protocol import EventPublisher
from .publisher import BrokerPublisher, ConnectionFactory, PublisherState

__all__ = [
    "BrokerError",
    "BrokerEventLogger",
    "BrokerEventType",
    "BrokerNotReadyError",
    "BrokerPublisher",
    "BrokerSetupError",
    "ConnectionFactory",
    "EventPublisher",
    "PublishError",
    "PublisherState",
]
