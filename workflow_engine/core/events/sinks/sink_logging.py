"""
Logging event sink.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, is_dataclass
from typing import Any


class LoggingEventSink:
    """Logs domain events using the standard logging module.

    Condition failures are logged at WARNING, everything else at INFO.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def on_event(self, event: Any) -> None:
        event_type = type(event).__name__
        payload = asdict(event) if is_dataclass(event) else {"event": str(event)}
        level = logging.WARNING if event_type == "ConditionEvaluationFailedEvent" else logging.INFO
        self._logger.log(
            level,
            "domain_event",
            extra={"event_type": event_type, "event": payload},
        )
