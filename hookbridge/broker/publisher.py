"""RabbitMQ publisher with a one-time connection setup.

The publisher owns a single connection, channel and exchange for the life of
the process. Setup runs once, on the first call to :meth:`start`, and every
publish after that reuses the same channel.

pika's ``BlockingConnection`` is not thread safe, so all broker work runs on
one dedicated worker thread. Setup is always the first job queued on that
thread, which means publishes submitted while setup is still running simply
wait behind it and observe its single outcome.

Usage
-----
>>> publisher = BrokerPublisher(BrokerConfig())
>>> publisher.start()                      # begin connecting in the background
>>> publisher.submit(event)                # fire and forget
>>> await publisher.publish(event)         # or wait for the outcome
>>> publisher.close()

"""

from __future__ import annotations

import asyncio
import concurrent.futures as cf
import enum
import functools
import threading
import typing as typ

import msgspec
import pika
import pika.exceptions

from hookbridge.broker.errors import (
    BrokerNotReadyError,
    BrokerSetupError,
    PublishError,
)
from hookbridge.broker.observability import BrokerEventLogger
from hookbridge.events.models import DELIVERY_ID_HEADER

if typ.TYPE_CHECKING:
    from hookbridge.config import BrokerConfig
    from hookbridge.events.models import PublishableEvent

__all__ = ["BrokerPublisher", "ConnectionFactory", "PublisherState"]

_JSON_CONTENT_TYPE = "application/json"


class PublisherState(enum.StrEnum):
    """Lifecycle of the shared connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    READY = "ready"
    FAILED = "failed"
    CLOSED = "closed"


class _Channel(typ.Protocol):
    def exchange_declare(
        self, exchange: str, exchange_type: str = ..., *, durable: bool = ...
    ) -> object: ...

    def basic_publish(
        self,
        exchange: str,
        routing_key: str,
        body: bytes,
        properties: pika.BasicProperties | None = None,
    ) -> None: ...


class _Connection(typ.Protocol):
    @property
    def is_open(self) -> bool: ...

    def channel(self) -> _Channel: ...

    def close(self) -> None: ...


type ConnectionFactory = typ.Callable[[pika.connection.Parameters], _Connection]


def _failed_future(exc: BaseException) -> cf.Future[int]:
    future: cf.Future[int] = cf.Future()
    future.set_exception(exc)
    return future


class BrokerPublisher:
    """Publish flattened events to one exchange, routed by event type.

    Parameters
    ----------
    config
        Connection target and exchange settings.
    connection_factory
        Callable that opens a connection from pika parameters. Defaults to
        ``pika.BlockingConnection``; tests pass fakes.
    event_logger
        Receiver for lifecycle and publish outcome events.

    """

    def __init__(
        self,
        config: BrokerConfig,
        *,
        connection_factory: ConnectionFactory | None = None,
        event_logger: BrokerEventLogger | None = None,
    ) -> None:
        """Prepare the worker thread; no connection is opened yet."""
        self._config = config
        self._connection_factory: ConnectionFactory = (
            connection_factory or pika.BlockingConnection
        )
        self._event_logger = event_logger or BrokerEventLogger()
        self._executor = cf.ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="hookbridge-broker"
        )
        self._lock = threading.Lock()
        self._setup: cf.Future[None] | None = None
        self._state = PublisherState.DISCONNECTED
        self._closed = False
        self._connection: _Connection | None = None
        self._channel: _Channel | None = None

    @property
    def state(self) -> PublisherState:
        """Return the current lifecycle state."""
        return self._state

    def start(self) -> cf.Future[None]:
        """Begin the one-time setup and return its shared future.

        Calling ``start`` again, from any thread, returns the same future.

        Raises
        ------
        BrokerNotReadyError
            If the publisher has been closed.

        """
        with self._lock:
            if self._closed:
                raise BrokerNotReadyError(PublisherState.CLOSED)
            if self._setup is None:
                self._state = PublisherState.CONNECTING
                self._setup = self._executor.submit(self._connect)
            return self._setup

    async def ready(self) -> None:
        """Wait for the one-time setup.

        Raises
        ------
        BrokerSetupError
            If connecting, opening the channel or declaring the exchange
            failed.

        """
        await asyncio.wrap_future(self.start())

    def submit(self, event: PublishableEvent) -> cf.Future[int]:
        """Queue ``event`` for publishing without waiting for the outcome.

        The returned future resolves to the payload size in bytes. Failures
        are logged and set on the future; this method itself never raises.
        """
        try:
            self.start()
            future = self._executor.submit(self._publish_now, event)
        except RuntimeError as exc:
            future = _failed_future(exc)
        future.add_done_callback(functools.partial(self._log_outcome, event))
        return future

    async def publish(self, event: PublishableEvent) -> int:
        """Publish ``event`` and wait until it is handed to the channel.

        Returns
        -------
        int
            Size of the published payload in bytes.

        Raises
        ------
        BrokerNotReadyError
            If setup failed or the publisher is closed.
        PublishError
            If the channel rejected the publish.

        """
        return await asyncio.wrap_future(self.submit(event))

    def close(self) -> None:
        """Close the connection and stop the worker thread.

        Publishes already queued are sent before the connection closes.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._executor.submit(self._disconnect)
        self._executor.shutdown(wait=True)

    def _connect(self) -> None:
        try:
            parameters = pika.URLParameters(self._config.url)
            # Blocking connections only service heartbeats while a call is active.
            parameters.heartbeat = 0
            connection = self._connection_factory(parameters)
            self._connection = connection
            channel = connection.channel()
            self._event_logger.log_channel_opened(url=self._config.safe_url)
            channel.exchange_declare(
                exchange=self._config.exchange,
                exchange_type=self._config.exchange_type,
                durable=False,
            )
        except Exception as exc:  # noqa: BLE001 - any setup failure is terminal
            self._state = PublisherState.FAILED
            self._event_logger.log_setup_failed(url=self._config.safe_url, error=exc)
            raise BrokerSetupError(self._config.safe_url) from exc

        self._event_logger.log_exchange_declared(
            exchange=self._config.exchange,
            exchange_type=self._config.exchange_type,
        )
        self._channel = channel
        self._state = PublisherState.READY

    def _publish_now(self, event: PublishableEvent) -> int:
        channel = self._channel
        if channel is None:
            raise BrokerNotReadyError(self._state)

        payload = msgspec.json.encode(event.record)
        try:
            channel.basic_publish(
                exchange=self._config.exchange,
                routing_key=event.routing_key,
                body=payload,
                properties=pika.BasicProperties(content_type=_JSON_CONTENT_TYPE),
            )
        except pika.exceptions.AMQPError as exc:
            raise PublishError(self._config.exchange, event.routing_key) from exc
        return len(payload)

    def _disconnect(self) -> None:
        connection = self._connection
        self._channel = None
        self._connection = None
        self._state = PublisherState.CLOSED
        if connection is None or not connection.is_open:
            return
        try:
            connection.close()
        except pika.exceptions.AMQPError as exc:
            self._event_logger.log_close_failed(url=self._config.safe_url, error=exc)
            return
        self._event_logger.log_connection_closed(url=self._config.safe_url)

    def _log_outcome(self, event: PublishableEvent, future: cf.Future[int]) -> None:
        delivery_id = event.record.get(DELIVERY_ID_HEADER)
        exc = future.exception()
        if exc is not None:
            self._event_logger.log_publish_failed(
                routing_key=event.routing_key,
                delivery_id=delivery_id,
                error=exc,
            )
            return
        self._event_logger.log_event_published(
            routing_key=event.routing_key,
            delivery_id=delivery_id,
            size_bytes=future.result(),
        )
