"""
Semantic test: transition legality is structural.

Invariants:
- can_transition is False for blank or unknown states, whatever the rules.
- can_transition is True when an active rule exists for the pair, even if its
  condition currently evaluates to False.
- Inactive rules do not make a transition legal.
"""

from __future__ import annotations

import pytest

from workflow_engine.core.domain.default_workflow import default_workflow_definition
from workflow_engine.core.domain.state_machine import StateMachineInstance
from workflow_engine.core.domain.types import StateDefinition
from workflow_engine.core.events.sinks.null_event_bus import NullEventBus


@pytest.fixture
def machine() -> StateMachineInstance:
    return StateMachineInstance(default_workflow_definition(), NullEventBus())


@pytest.mark.parametrize(
    ("current", "nxt"),
    [
        ("", "InProgress"),
        ("New", ""),
        ("   ", "InProgress"),
        ("New", "   "),
        ("Unknown", "InProgress"),
        ("New", "Unknown"),
    ],
)
def test_blank_or_unknown_states_are_never_legal(
    machine: StateMachineInstance, current: str, nxt: str
) -> None:
    assert machine.can_transition(current, nxt) is False


def test_rule_existence_decides_legality(machine: StateMachineInstance) -> None:
    assert machine.can_transition("New", "InProgress") is True
    assert machine.can_transition("New", "Cancelled") is True
    assert machine.can_transition("InProgress", "Completed") is True
    assert machine.can_transition("Completed", "Archived") is True

    assert machine.can_transition("New", "Completed") is False
    assert machine.can_transition("Archived", "New") is False


def test_legality_ignores_conditions_and_case(machine: StateMachineInstance) -> None:
    # older_than_1_day is false for everything created now; the edge is still legal.
    assert machine.can_transition("completed", "ARCHIVED") is True


def test_inactive_rule_is_not_legal(machine: StateMachineInstance) -> None:
    machine.set_rule_active("New", "Cancelled", False)

    assert machine.can_transition("New", "Cancelled") is False
    assert machine.available_transitions("New") == ["InProgress"]


def test_new_state_without_rules_is_not_reachable(machine: StateMachineInstance) -> None:
    machine.add_state(StateDefinition(name="OnHold"))

    assert machine.can_transition("InProgress", "OnHold") is False
    assert machine.available_transitions("OnHold") == []


def test_available_transitions_follow_priority(machine: StateMachineInstance) -> None:
    assert machine.available_transitions("new") == ["InProgress", "Cancelled"]
