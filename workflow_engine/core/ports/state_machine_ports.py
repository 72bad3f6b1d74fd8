"""Capability protocols of a state machine.

One concrete ``StateMachineInstance`` satisfies both protocols. Callers that
only evaluate transitions depend on ``TransitionQueries`` and therefore
cannot reach the mutating operations of ``StateMachineManagement``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from workflow_engine.core.domain.transition_rule import TransitionRule
    from workflow_engine.core.domain.types import (
        EntitySnapshot,
        RuleInfo,
        StateDefinition,
        StateMachineDefinition,
        StateMachineInfo,
        TransitionDefinition,
    )


class TransitionQueries(Protocol):
    """Read-only transition queries used by request handling."""

    @property
    def initial_state(self) -> str:
        """State assigned to newly created entities."""

    def can_transition(self, current_state: str, next_state: str) -> bool:
        """Structural check: an active rule exists for the pair.

        The rule condition is not evaluated.
        """

    def next_state(self, snapshot: EntitySnapshot) -> str | None:
        """Target of the first matching rule, or None."""

    def available_transitions(self, current_state: str) -> list[str]:
        """Targets of the active rules leaving ``current_state``."""

    def all_states(self) -> list[str]:
        """Every state name, in definition order."""

    def state_exists(self, state_name: str) -> bool:
        """Case-insensitive membership test."""


class StateMachineManagement(Protocol):
    """Mutating and introspection operations used by administration."""

    def define(self, definition: StateMachineDefinition) -> None:
        """Replace states, initial state and rules atomically."""

    def info(self) -> StateMachineInfo:
        """Full description of the machine."""

    def add_state(self, state: StateDefinition) -> None:
        """Add a state; fails if it already exists."""

    def remove_state(self, state_name: str) -> None:
        """Remove a non-initial state and every rule touching it."""

    def state_exists(self, state_name: str) -> bool:
        """Case-insensitive membership test."""

    def all_states(self) -> list[str]:
        """Every state name, in definition order."""

    def initial_state_name(self) -> str:
        """Current initial state."""

    def rules_for_state(self, state_name: str) -> list[RuleInfo]:
        """Every rule leaving ``state_name``, active or not."""

    def add_rule(self, transition: TransitionDefinition) -> None:
        """Add a rule between two existing states."""

    def register_rule(self, rule: TransitionRule) -> None:
        """Add a prebuilt rule between two existing states."""

    def update_rule(self, transition: TransitionDefinition) -> None:
        """Replace the rule for the same pair."""

    def remove_rule(self, from_state: str, to_state: str) -> None:
        """Delete the rule for the pair."""

    def set_rule_active(self, from_state: str, to_state: str, active: bool) -> None:
        """Toggle whether the rule takes part in evaluation."""
