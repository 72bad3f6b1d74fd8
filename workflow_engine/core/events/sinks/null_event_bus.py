from __future__ import annotations

from typing import Any

from workflow_engine.core.events.event_bus import EventBus


class NullEventBus(EventBus):
    """EventBus without sinks; engine events are dropped.

    Used by tests and by embedders that only need transition decisions.
    """

    def __init__(self) -> None:
        super().__init__(sinks=())

    def emit(self, event: Any) -> None:
        return
