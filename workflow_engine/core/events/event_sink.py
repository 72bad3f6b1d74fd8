"""
Event sink interfaces.

Sinks consume the domain events emitted by state machines and the registry.
A sink may also hold a resource (a file, a metrics push target) that must be
released when the bus is closed.
"""
from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


class EventSink(Protocol):
    def on_event(self, event: Any) -> None:
        """Consume a domain event. Called on the emitting thread."""


@runtime_checkable
class ClosableEventSink(EventSink, Protocol):
    def close(self) -> None:
        """Flush and release resources. Must be idempotent."""
