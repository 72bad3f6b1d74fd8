"""
Simple synchronous event bus.
"""
from __future__ import annotations

import threading
from typing import Any, Iterable

from workflow_engine.core.events.event_sink import ClosableEventSink, EventSink


class EventBus:
    """Dispatches events to registered sinks.

    Emission happens on the caller's thread. The sink list is copied under a
    lock so that registration may happen while other threads emit.
    """

    def __init__(self, sinks: Iterable[EventSink] | None = None) -> None:
        self._sinks: list[EventSink] = list(sinks) if sinks is not None else []
        self._lock = threading.Lock()
        self._closed = False

    def register(self, sink: EventSink) -> None:
        """Register a new sink."""
        with self._lock:
            self._sinks.append(sink)

    def emit(self, event: Any) -> None:
        """Emit an event to all sinks."""
        with self._lock:
            sinks = list(self._sinks)
        for sink in sinks:
            sink.on_event(event)

    def close(self) -> None:
        """
        Finalize all sinks that expose a close() method.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            sinks = list(self._sinks)

        for sink in sinks:
            if isinstance(sink, ClosableEventSink):
                sink.close()
