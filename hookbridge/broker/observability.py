"""Structured log events for the broker publisher lifecycle.

Each event is a single femtologging line of the form
``[broker.setup.completed] key=value ...`` so log aggregators can parse the
fields without a JSON formatter.
"""

from __future__ import annotations

import enum

from hookbridge.logging import get_logger, log_error, log_info

logger = get_logger(__name__)


class BrokerEventType(enum.StrEnum):
    """Event identifiers emitted by :class:`BrokerEventLogger`."""

    CHANNEL_OPENED = "broker.channel.opened"
    EXCHANGE_DECLARED = "broker.exchange.declared"
    SETUP_FAILED = "broker.setup.failed"
    CONNECTION_CLOSED = "broker.connection.closed"
    CLOSE_FAILED = "broker.connection.close_failed"
    EVENT_PUBLISHED = "event.published"
    PUBLISH_FAILED = "event.publish_failed"


class BrokerEventLogger:
    """Emit broker lifecycle and publish outcome events."""

    def log_channel_opened(self, *, url: str) -> None:
        """Log that a channel was opened on a new connection."""
        log_info(logger, "[%s] url=%s", BrokerEventType.CHANNEL_OPENED, url)

    def log_exchange_declared(self, *, exchange: str, exchange_type: str) -> None:
        """Log the exchange assertion that completes setup."""
        log_info(
            logger,
            "[%s] exchange=%s exchange_type=%s durable=false",
            BrokerEventType.EXCHANGE_DECLARED,
            exchange,
            exchange_type,
        )

    def log_setup_failed(self, *, url: str, error: BaseException) -> None:
        """Log a failed connection, channel or exchange setup.

        Parameters
        ----------
        url
            Broker URL with the password masked.
        error
            Exception raised by the failing setup step.

        """
        log_error(
            logger,
            "[%s] url=%s error_type=%s error_message=%s",
            BrokerEventType.SETUP_FAILED,
            url,
            type(error).__name__,
            str(error),
            exc_info=error,
        )

    def log_connection_closed(self, *, url: str) -> None:
        """Log that the broker connection was closed at shutdown."""
        log_info(logger, "[%s] url=%s", BrokerEventType.CONNECTION_CLOSED, url)

    def log_close_failed(self, *, url: str, error: BaseException) -> None:
        """Log a connection that could not be closed cleanly."""
        log_error(
            logger,
            "[%s] url=%s error_type=%s error_message=%s",
            BrokerEventType.CLOSE_FAILED,
            url,
            type(error).__name__,
            str(error),
        )

    def log_event_published(
        self,
        *,
        routing_key: str,
        delivery_id: str | None,
        size_bytes: int,
    ) -> None:
        """Log a publish handed to the channel."""
        log_info(
            logger,
            "[%s] routing_key=%s delivery_id=%s size_bytes=%d",
            BrokerEventType.EVENT_PUBLISHED,
            routing_key,
            delivery_id,
            size_bytes,
        )

    def log_publish_failed(
        self,
        *,
        routing_key: str,
        delivery_id: str | None,
        error: BaseException,
    ) -> None:
        """Log a publish that never reached the broker.

        Parameters
        ----------
        routing_key
            Event type the record would have been routed under.
        delivery_id
            GitHub delivery id, when the request carried one.
        error
            Failure raised by the publisher.

        """
        log_error(
            logger,
            "[%s] routing_key=%s delivery_id=%s error_type=%s error_message=%s",
            BrokerEventType.PUBLISH_FAILED,
            routing_key,
            delivery_id,
            type(error).__name__,
            str(error),
        )
