"""Structural interface the HTTP layer needs from a publisher."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from hookbridge.events.models import PublishableEvent


@typ.runtime_checkable
class EventPublisher(typ.Protocol):
    """Publisher used by the API: started once, fed without waiting.

    :class:`hookbridge.broker.BrokerPublisher` is the production
    implementation; tests substitute recording fakes.
    """

    @property
    def state(self) -> str:
        """Return the lifecycle state name, ``"ready"`` once publishing works."""
        ...

    def start(self) -> object:
        """Begin the one-time broker setup."""
        ...

    def submit(self, event: PublishableEvent) -> object:
        """Queue ``event`` for publishing; must not raise."""
        ...

    def close(self) -> None:
        """Release broker resources."""
        ...
