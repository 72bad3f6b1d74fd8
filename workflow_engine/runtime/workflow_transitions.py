"""Snapshot-level workflow operations.

These helpers apply engine decisions to entity snapshots. They never persist
anything: the caller writes the returned snapshot back to its record store.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from workflow_engine.core.domain.conditions import utc_now
from workflow_engine.core.domain.errors import InvalidTransitionError, NoEligibleTransitionError
from workflow_engine.core.domain.types import EntitySnapshot

if TYPE_CHECKING:
    from workflow_engine.core.domain.conditions import Clock
    from workflow_engine.core.ports.state_machine_ports import TransitionQueries


def initial_snapshot(
    machine: TransitionQueries,
    name: str | None,
    clock: Clock = utc_now,
) -> EntitySnapshot:
    """Snapshot of a new entity placed in the machine's initial state."""
    now = clock()
    return EntitySnapshot(
        name=name,
        created_at=now,
        updated_at=now,
        state=machine.initial_state,
    )


def transition_snapshot(
    machine: TransitionQueries,
    snapshot: EntitySnapshot,
    next_state: str,
    clock: Clock = utc_now,
) -> EntitySnapshot:
    """Apply a manually requested transition.

    Raises ``InvalidTransitionError`` when no active rule connects the states.
    """
    if not machine.can_transition(snapshot.state, next_state):
        raise InvalidTransitionError(
            f"Invalid transition from '{snapshot.state}' to '{next_state}'."
        )
    return snapshot.model_copy(update={"state": next_state, "updated_at": clock()})


def advance_snapshot(
    machine: TransitionQueries,
    snapshot: EntitySnapshot,
    clock: Clock = utc_now,
) -> EntitySnapshot:
    """Apply the automatic transition chosen by the rule conditions.

    Raises ``NoEligibleTransitionError`` when no condition matches.
    """
    next_state = machine.next_state(snapshot)
    if next_state is None:
        raise NoEligibleTransitionError(
            f"No eligible transition from '{snapshot.state}' based on defined conditions."
        )
    return snapshot.model_copy(update={"state": next_state, "updated_at": clock()})
