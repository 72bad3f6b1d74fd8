"""
Domain event models.

These events represent immutable facts observed by the state machine engine.
They are consumed by loggers, recorders, and monitoring pipelines.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class ConditionEvaluationFailedEvent:
    ts: datetime
    machine_id: str
    from_state: str
    to_state: str
    rule_description: str

    error_type: str
    error_message: str


@dataclass(slots=True)
class NextStateResolvedEvent:
    ts: datetime
    machine_id: str
    prev_state: str
    next_state: str | None


@dataclass(slots=True)
class StateMachineDefinedEvent:
    ts: datetime
    machine_id: str
    name: str
    initial_state: str

    state_count: int
    rule_count: int


@dataclass(slots=True)
class StateMachineDeletedEvent:
    ts: datetime
    machine_id: str
