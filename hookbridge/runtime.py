"""hookbridge runtime entrypoint.

This module provides the ASGI application factory used by Granian. It
reads the environment once, builds the broker publisher and delegates app
construction to :func:`hookbridge.api.app.create_app`, keeping the
``hookbridge.runtime:create_app`` entrypoint stable.

Configuration is driven by environment variables (see
:class:`hookbridge.config.BridgeConfig`):

- ``SERVICE_NAME``: Name used in startup logs
- ``HOST`` / ``PORT``: Bind address and listen port (default ``0.0.0.0:8080``)
- ``LOG_LEVEL``: Log level (default ``INFO``)
- ``RABBITMQ_*``: Broker connection and exchange settings

Run the service directly with ``python -m hookbridge.runtime``.
"""

from __future__ import annotations

import typing as typ

from hookbridge.config import BridgeConfig, ConfigError
from hookbridge.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi

__all__ = ["create_app", "load_config", "main"]

logger = get_logger(__name__)


def load_config() -> BridgeConfig:
    """Read the configuration from the environment.

    Raises
    ------
    SystemExit
        If any variable holds an invalid value.

    """
    try:
        return BridgeConfig.from_env()
    except ConfigError as exc:
        # Validation failures need no traceback
        log_error(logger, "Invalid configuration: %s", exc)
        raise SystemExit(1) from exc


def create_app(config: BridgeConfig | None = None) -> falcon.asgi.App:
    """Create the Falcon ASGI application wired to RabbitMQ.

    Parameters
    ----------
    config
        Configuration to use; read from the environment when omitted.

    Returns
    -------
    falcon.asgi.App
        Application serving ``POST /github/events``, ``/health`` and
        ``/ready``.

    """
    from hookbridge.api.app import AppDependencies
    from hookbridge.api.app import create_app as _create_api_app
    from hookbridge.broker import BrokerPublisher

    settings = config or load_config()
    log_info(
        logger,
        "Publishing to exchange %s (%s) at %s",
        settings.broker.exchange,
        settings.broker.exchange_type,
        settings.broker.safe_url,
    )
    publisher = BrokerPublisher(settings.broker)
    return _create_api_app(AppDependencies(publisher=publisher))


def main() -> None:
    """Start the hookbridge server using Granian."""
    from granian import Granian
    from granian.constants import Interfaces

    config = load_config()

    normalized_level, invalid_level = configure_logging(config.log_level)
    if invalid_level:
        log_warning(
            logger,
            "Invalid LOG_LEVEL %r, falling back to %s",
            config.log_level,
            normalized_level,
        )

    log_info(
        logger,
        "Starting %s on %s:%d (log_level=%s)",
        config.service_name,
        config.host,
        config.port,
        normalized_level,
    )

    server = Granian(
        "hookbridge.runtime:create_app",
        address=config.host,
        port=config.port,
        interface=Interfaces.ASGI,
        factory=True,
    )
    server.serve()


if __name__ == "__main__":
    main()
