"""Core shared data models.

This module defines the canonical Pydantic models consumed and produced by
the state machine engine: the entity snapshot used to evaluate conditions,
the declarative state machine definition, and the introspection models.
On the wire every field uses camelCase (``initialState``, ``fromState``);
in Python the snake_case attribute names are used.
"""

# pylint: disable=missing-class-docstring
from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

_WIRE_CONFIG = ConfigDict(
    extra="forbid",
    alias_generator=to_camel,
    populate_by_name=True,
)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value


StateName = Annotated[str, Field(min_length=1), AfterValidator(_not_blank)]


# ---------------------------------------------------------------------------
# Entity snapshot
# ---------------------------------------------------------------------------


class EntitySnapshot(BaseModel):
    """The subset of a persisted record needed to evaluate conditions.

    Naive timestamps are interpreted as UTC.
    """

    name: str | None = None
    created_at: datetime
    updated_at: datetime | None = None
    state: str = Field(..., min_length=1)

    model_config = _WIRE_CONFIG

    @field_validator("created_at", "updated_at")
    @classmethod
    def _normalize_timestamps(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)


# ---------------------------------------------------------------------------
# Declarative definitions
# ---------------------------------------------------------------------------


class StateDefinition(BaseModel):
    name: StateName
    description: str = ""
    # Accepted for compatibility, never interpreted by the engine.
    is_final: bool = False
    is_terminal: bool = False

    model_config = _WIRE_CONFIG


class TransitionDefinition(BaseModel):
    from_state: StateName
    to_state: StateName
    condition_expression: str = Field(..., min_length=1)
    priority: int = 0
    description: str = ""

    model_config = _WIRE_CONFIG


class StateMachineDefinition(BaseModel):
    """Full-replace definition of one state machine."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    initial_state: StateName
    states: list[StateDefinition] = Field(..., min_length=1)
    transitions: list[TransitionDefinition] = Field(default_factory=list)

    model_config = _WIRE_CONFIG

    @classmethod
    def from_json_obj(cls, obj: dict[str, Any]) -> StateMachineDefinition:
        """Create a definition from a JSON-compatible object."""
        return cls.model_validate(obj)


# ---------------------------------------------------------------------------
# Introspection models
# ---------------------------------------------------------------------------


class RuleInfo(BaseModel):
    from_state: str
    to_state: str
    description: str
    priority: int
    is_active: bool

    model_config = _WIRE_CONFIG


class StateMachineInfo(BaseModel):
    id: str
    name: str
    initial_state: str
    states: list[str]
    transitions: list[RuleInfo]
    created_at: datetime
    modified_at: datetime

    model_config = _WIRE_CONFIG


class StateMachineSummary(BaseModel):
    id: str
    name: str
    initial_state: str
    state_count: int = Field(..., ge=0)
    transition_count: int = Field(..., ge=0)
    created_at: datetime
    modified_at: datetime

    model_config = _WIRE_CONFIG
