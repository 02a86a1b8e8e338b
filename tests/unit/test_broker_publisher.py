"""Unit tests for the RabbitMQ broker publisher."""

from __future__ import annotations

import asyncio
import concurrent.futures as cf
import threading
import typing as typ
from unittest import mock

import pika.exceptions
import pytest

from hookbridge.broker import (
    BrokerEventLogger,
    BrokerNotReadyError,
    BrokerPublisher,
    BrokerSetupError,
    PublishError,
    PublisherState,
)
from hookbridge.config import BrokerConfig
from hookbridge.events import PublishableEvent
from tests.helpers.broker_fakes import FakeChannel, FakeConnectionFactory

_TIMEOUT = 5


def _event(routing_key: str = "issues", **fields: typ.Any) -> PublishableEvent:
    record = {"x-github-event": routing_key, "x-github-delivery": "d-1", **fields}
    return PublishableEvent(routing_key=routing_key, record=record)


@pytest.fixture
def config() -> BrokerConfig:
    """Return a broker configuration pointing at a fake host."""
    return BrokerConfig(host="rabbit", exchange="github-events")


@pytest.fixture
def event_logger() -> mock.MagicMock:
    """Return a mock standing in for the structured event logger."""
    return mock.MagicMock(spec=BrokerEventLogger)


@pytest.fixture
def make_publisher(
    config: BrokerConfig, event_logger: mock.MagicMock
) -> typ.Iterator[typ.Callable[[FakeConnectionFactory], BrokerPublisher]]:
    """Build publishers on fake connections and close them afterwards."""
    created: list[BrokerPublisher] = []

    def _make(factory: FakeConnectionFactory) -> BrokerPublisher:
        publisher = BrokerPublisher(
            config, connection_factory=factory, event_logger=event_logger
        )
        created.append(publisher)
        return publisher

    yield _make
    for publisher in created:
        publisher.close()


class TestSetup:
    """Connection, channel and exchange setup."""

    def test_starts_disconnected(self, make_publisher: typ.Callable) -> None:
        """No connection is opened until ``start`` is called."""
        factory = FakeConnectionFactory()
        publisher = make_publisher(factory)
        assert publisher.state is PublisherState.DISCONNECTED
        assert factory.calls == []

    @pytest.mark.asyncio
    async def test_ready_declares_non_durable_exchange(
        self, make_publisher: typ.Callable, event_logger: mock.MagicMock
    ) -> None:
        """Setup declares the configured exchange as non-durable."""
        factory = FakeConnectionFactory()
        publisher = make_publisher(factory)

        await publisher.ready()

        assert publisher.state is PublisherState.READY
        assert factory.channel.declared == [("github-events", "direct", False)]
        assert factory.connection.channels_opened == 1
        event_logger.log_channel_opened.assert_called_once()
        event_logger.log_exchange_declared.assert_called_once_with(
            exchange="github-events", exchange_type="direct"
        )

    def test_connects_with_configured_parameters(
        self, make_publisher: typ.Callable
    ) -> None:
        """pika parameters come from the broker configuration."""
        factory = FakeConnectionFactory()
        make_publisher(factory).start().result(timeout=_TIMEOUT)

        (parameters,) = factory.calls
        assert parameters.host == "rabbit"
        assert parameters.port == 5672
        assert parameters.virtual_host == "/"
        assert parameters.credentials.username == "guest"
        assert parameters.heartbeat == 0

    def test_start_returns_the_same_future(self, make_publisher: typ.Callable) -> None:
        """Repeated starts share one setup attempt."""
        factory = FakeConnectionFactory()
        publisher = make_publisher(factory)

        first = publisher.start()
        second = publisher.start()
        first.result(timeout=_TIMEOUT)

        assert first is second
        assert len(factory.calls) == 1

    @pytest.mark.asyncio
    async def test_connection_failure_marks_publisher_failed(
        self, make_publisher: typ.Callable, event_logger: mock.MagicMock
    ) -> None:
        """A refused connection is logged once and leaves the state failed."""
        error = pika.exceptions.AMQPConnectionError("connection refused")
        publisher = make_publisher(FakeConnectionFactory(error=error))

        with pytest.raises(BrokerSetupError, match="broker setup failed"):
            await publisher.ready()

        assert publisher.state is PublisherState.FAILED
        event_logger.log_setup_failed.assert_called_once()
        assert event_logger.log_setup_failed.call_args.kwargs["error"] is error

    def test_exchange_declare_failure_marks_publisher_failed(
        self, make_publisher: typ.Callable
    ) -> None:
        """An exchange that cannot be declared stops setup."""
        refused = pika.exceptions.ChannelClosedByBroker(406, "PRECONDITION_FAILED")
        channel = FakeChannel(declare_error=refused)
        publisher = make_publisher(FakeConnectionFactory(channel))

        with pytest.raises(BrokerSetupError):
            publisher.start().result(timeout=_TIMEOUT)

        assert publisher.state is PublisherState.FAILED

    def test_unparseable_url_marks_publisher_failed(
        self, event_logger: mock.MagicMock
    ) -> None:
        """A broker URL pika cannot read fails setup like a refused connection."""
        factory = FakeConnectionFactory()
        publisher = BrokerPublisher(
            BrokerConfig(host="[::1"),
            connection_factory=factory,
            event_logger=event_logger,
        )
        try:
            with pytest.raises(BrokerSetupError):
                publisher.start().result(timeout=_TIMEOUT)

            assert publisher.state is PublisherState.FAILED
            assert factory.calls == []
            event_logger.log_setup_failed.assert_called_once()
            logged = event_logger.log_setup_failed.call_args.kwargs["error"]
            assert isinstance(logged, ValueError)
        finally:
            publisher.close()

    def test_connects_to_ipv6_host(self, event_logger: mock.MagicMock) -> None:
        """IPv6 literal hosts reach pika unbracketed."""
        factory = FakeConnectionFactory()
        publisher = BrokerPublisher(
            BrokerConfig(host="::1"),
            connection_factory=factory,
            event_logger=event_logger,
        )
        try:
            publisher.start().result(timeout=_TIMEOUT)
        finally:
            publisher.close()

        (parameters,) = factory.calls
        assert parameters.host == "::1"
        assert parameters.port == 5672

    def test_setup_url_in_errors_is_masked(
        self, make_publisher: typ.Callable
    ) -> None:
        """Setup errors never carry the broker password."""
        error = pika.exceptions.AMQPConnectionError("refused")
        publisher = make_publisher(FakeConnectionFactory(error=error))

        with pytest.raises(BrokerSetupError) as excinfo:
            publisher.start().result(timeout=_TIMEOUT)

        assert ":guest@" not in str(excinfo.value)
        assert ":***@" in excinfo.value.url


class TestPublish:
    """Publishing events once setup is done."""

    @pytest.mark.asyncio
    async def test_publishes_json_under_event_type(
        self, make_publisher: typ.Callable
    ) -> None:
        """The record is sent as JSON with the event type as routing key."""
        factory = FakeConnectionFactory()
        publisher = make_publisher(factory)
        event = _event("pull_request", action="opened", number=42)

        size = await publisher.publish(event)

        (message,) = factory.channel.published
        assert message.exchange == "github-events"
        assert message.routing_key == "pull_request"
        assert message.record == event.record
        assert message.properties is not None
        assert message.properties.content_type == "application/json"
        assert size == len(message.body)

    @pytest.mark.asyncio
    async def test_success_is_logged(
        self, make_publisher: typ.Callable, event_logger: mock.MagicMock
    ) -> None:
        """Published events are logged with their delivery id."""
        publisher = make_publisher(FakeConnectionFactory())

        size = await publisher.publish(_event("push"))

        event_logger.log_event_published.assert_called_once_with(
            routing_key="push", delivery_id="d-1", size_bytes=size
        )

    @pytest.mark.asyncio
    async def test_publish_after_failed_setup_raises_not_ready(
        self, make_publisher: typ.Callable, event_logger: mock.MagicMock
    ) -> None:
        """Publishing without a channel fails and is logged."""
        error = pika.exceptions.AMQPConnectionError("refused")
        publisher = make_publisher(FakeConnectionFactory(error=error))

        with pytest.raises(BrokerNotReadyError, match="state=failed"):
            await publisher.publish(_event())

        event_logger.log_publish_failed.assert_called_once()
        logged = event_logger.log_publish_failed.call_args.kwargs
        assert logged["routing_key"] == "issues"
        assert isinstance(logged["error"], BrokerNotReadyError)

    def test_submit_never_raises(self, make_publisher: typ.Callable) -> None:
        """Fire-and-forget publishes report failures through the future."""
        error = pika.exceptions.AMQPConnectionError("refused")
        publisher = make_publisher(FakeConnectionFactory(error=error))

        future = publisher.submit(_event())

        with pytest.raises(BrokerNotReadyError):
            future.result(timeout=_TIMEOUT)

    @pytest.mark.asyncio
    async def test_channel_errors_become_publish_errors(
        self, make_publisher: typ.Callable
    ) -> None:
        """pika errors during publish are wrapped."""
        channel = FakeChannel(
            publish_error=pika.exceptions.ChannelWrongStateError("Channel is closed.")
        )
        publisher = make_publisher(FakeConnectionFactory(channel))

        with pytest.raises(PublishError) as excinfo:
            await publisher.publish(_event("release"))

        assert excinfo.value.routing_key == "release"
        assert excinfo.value.exchange == "github-events"

    @pytest.mark.asyncio
    async def test_setup_runs_once_across_publishes(
        self, make_publisher: typ.Callable
    ) -> None:
        """Later publishes reuse the channel opened by the first."""
        factory = FakeConnectionFactory()
        publisher = make_publisher(factory)

        for number in range(3):
            await publisher.publish(_event(number=number))

        assert len(factory.calls) == 1
        assert len(factory.channel.declared) == 1
        assert [m.record["number"] for m in factory.channel.published] == [0, 1, 2]


class TestConcurrentSetup:
    """Requests arriving before setup completes share its outcome."""

    def test_publishes_queue_behind_single_setup(
        self, make_publisher: typ.Callable
    ) -> None:
        """N concurrent submits trigger exactly one setup sequence."""
        gate = threading.Event()
        factory = FakeConnectionFactory(gate=gate)
        publisher = make_publisher(factory)
        events = [_event(number=n) for n in range(20)]

        with cf.ThreadPoolExecutor(max_workers=8) as pool:
            futures = list(pool.map(publisher.submit, events))

        assert publisher.state is PublisherState.CONNECTING
        assert factory.channel.published == []

        gate.set()
        for future in futures:
            future.result(timeout=_TIMEOUT)

        assert len(factory.calls) == 1
        assert factory.connection.channels_opened == 1
        assert len(factory.channel.declared) == 1
        assert len(factory.channel.published) == len(events)

    @pytest.mark.asyncio
    async def test_concurrent_waiters_observe_one_failure(
        self, make_publisher: typ.Callable, event_logger: mock.MagicMock
    ) -> None:
        """Every waiter sees the same failed setup."""
        gate = threading.Event()
        error = pika.exceptions.AMQPConnectionError("refused")
        factory = FakeConnectionFactory(error=error, gate=gate)
        publisher = make_publisher(factory)

        waiters = [asyncio.ensure_future(publisher.ready()) for _ in range(5)]
        await asyncio.sleep(0)
        gate.set()
        results = await asyncio.gather(*waiters, return_exceptions=True)

        assert all(isinstance(result, BrokerSetupError) for result in results)
        assert len(factory.calls) == 1
        event_logger.log_setup_failed.assert_called_once()


class TestClose:
    """Shutdown behaviour."""

    def test_close_closes_connection(
        self, make_publisher: typ.Callable, event_logger: mock.MagicMock
    ) -> None:
        """Closing releases the connection and is idempotent."""
        factory = FakeConnectionFactory()
        publisher = make_publisher(factory)
        publisher.start().result(timeout=_TIMEOUT)

        publisher.close()
        publisher.close()

        assert factory.connection.is_open is False
        assert publisher.state is PublisherState.CLOSED
        event_logger.log_connection_closed.assert_called_once()

    def test_close_flushes_queued_publishes(self, make_publisher: typ.Callable) -> None:
        """Publishes queued before close are still sent."""
        factory = FakeConnectionFactory()
        publisher = make_publisher(factory)

        future = publisher.submit(_event())
        publisher.close()

        assert future.result(timeout=_TIMEOUT) > 0
        assert len(factory.channel.published) == 1

    def test_submit_after_close_fails_without_raising(
        self, make_publisher: typ.Callable
    ) -> None:
        """A closed publisher rejects new events through the future."""
        publisher = make_publisher(FakeConnectionFactory())
        publisher.close()

        future = publisher.submit(_event())

        assert isinstance(future.exception(timeout=_TIMEOUT), BrokerNotReadyError)

    def test_close_without_start_opens_nothing(
        self, make_publisher: typ.Callable
    ) -> None:
        """Closing an unused publisher never connects."""
        factory = FakeConnectionFactory()
        make_publisher(factory).close()
        assert factory.calls == []
