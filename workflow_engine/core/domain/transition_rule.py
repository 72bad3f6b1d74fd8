"""Transition rule value type and its fluent builder."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from workflow_engine.core.domain.conditions import never
from workflow_engine.core.domain.errors import InvalidDefinitionError
from workflow_engine.core.domain.types import RuleInfo

if TYPE_CHECKING:
    from workflow_engine.core.domain.conditions import Condition


def state_key(state: str) -> str:
    """Case-insensitive identity of a state name."""
    return state.casefold()


@dataclass(slots=True)
class TransitionRule:
    """Directed, prioritized edge between two states.

    Higher ``priority`` is evaluated first. Inactive rules are invisible to
    both automatic resolution and transition legality checks.
    """

    from_state: str
    to_state: str
    condition: Condition = never
    priority: int = 0
    description: str = ""
    is_active: bool = True

    @property
    def key(self) -> tuple[str, str]:
        return state_key(self.from_state), state_key(self.to_state)

    def matches(self, from_state: str, to_state: str) -> bool:
        return self.key == (state_key(from_state), state_key(to_state))

    def involves(self, state: str) -> bool:
        needle = state_key(state)
        return needle in self.key

    def to_info(self) -> RuleInfo:
        return RuleInfo(
            from_state=self.from_state,
            to_state=self.to_state,
            description=self.description,
            priority=self.priority,
            is_active=self.is_active,
        )


class RuleBuilder:
    """Fluent builder for rules with arbitrary Python predicates.

    Example::

        rule = (
            RuleBuilder()
            .from_state("New")
            .to_state("InProgress")
            .when(lambda s: bool(s.name))
            .with_priority(10)
            .build()
        )
    """

    def __init__(self) -> None:
        self._from_state = ""
        self._to_state = ""
        self._condition: Condition = never
        self._priority = 0
        self._description = ""
        self._is_active = True

    def from_state(self, state: str) -> RuleBuilder:
        self._from_state = state
        return self

    def to_state(self, state: str) -> RuleBuilder:
        self._to_state = state
        return self

    def when(self, condition: Condition) -> RuleBuilder:
        self._condition = condition
        return self

    def with_priority(self, priority: int) -> RuleBuilder:
        self._priority = priority
        return self

    def with_description(self, description: str) -> RuleBuilder:
        self._description = description
        return self

    def inactive(self) -> RuleBuilder:
        self._is_active = False
        return self

    def build(self) -> TransitionRule:
        if not self._from_state.strip() or not self._to_state.strip():
            raise InvalidDefinitionError("Rule from_state and to_state must not be blank.")
        return TransitionRule(
            from_state=self._from_state,
            to_state=self._to_state,
            condition=self._condition,
            priority=self._priority,
            description=self._description,
            is_active=self._is_active,
        )
