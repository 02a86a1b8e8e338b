"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import pytest

_CONFIG_VARIABLES = (
    "SERVICE_NAME",
    "HOST",
    "PORT",
    "LOG_LEVEL",
    "RABBITMQ_EXCHANGE",
    "RABBITMQ_EXCHANGE_TYPE",
    "RABBITMQ_QUEUE",
    "RABBITMQ_PROTOCOL",
    "RABBITMQ_HOST",
    "RABBITMQ_PORT",
    "RABBITMQ_VHOST",
    "RABBITMQ_USERNAME",
    "RABBITMQ_PASSWORD",
)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Hide service configuration inherited from the shell running pytest."""
    for name in _CONFIG_VARIABLES:
        monkeypatch.delenv(name, raising=False)
