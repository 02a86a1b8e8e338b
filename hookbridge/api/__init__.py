"""hookbridge HTTP API layer.

This package provides the Falcon Asynchronous Server Gateway Interface
(ASGI) application that receives GitHub webhooks.

Public API
----------
create_app
    Application factory that registers the probes and, when a publisher is
    supplied, ``POST /github/events``.
"""

from hookbridge.api.app import AppDependencies, create_app

__all__ = ["AppDependencies", "create_app"]
