"""Default workflow definition.

The default machine is plain data: the registry receives it at start-up and
registers it through its ordinary ``create`` path.

States: New, InProgress, Completed, Cancelled, Archived.

Rules:
- New -> InProgress when the entity has a name (priority 10)
- New -> Cancelled when the entity has no name (priority 5)
- InProgress -> Completed once the entity has not been updated for 10 minutes
- Completed -> Archived once the entity is at least one day old
"""

from __future__ import annotations

from workflow_engine.core.domain.types import (
    StateDefinition,
    StateMachineDefinition,
    TransitionDefinition,
)

DEFAULT_MACHINE_ID: str = "default-workflow"
DEFAULT_MACHINE_NAME: str = "Default Workflow"
DEFAULT_INITIAL_STATE: str = "New"


def default_workflow_definition(machine_id: str = DEFAULT_MACHINE_ID) -> StateMachineDefinition:
    """Return a fresh copy of the default workflow definition."""
    return StateMachineDefinition(
        id=machine_id,
        name=DEFAULT_MACHINE_NAME,
        initial_state=DEFAULT_INITIAL_STATE,
        states=[
            StateDefinition(name="New", description="Initial state"),
            StateDefinition(name="InProgress", description="Work in progress"),
            StateDefinition(name="Completed", description="Work completed"),
            StateDefinition(name="Cancelled", description="Work cancelled", is_final=True),
            StateDefinition(name="Archived", description="Work archived", is_terminal=True),
        ],
        transitions=[
            TransitionDefinition(
                from_state="New",
                to_state="InProgress",
                condition_expression="has_name",
                priority=10,
                description="Move to InProgress when name is provided",
            ),
            TransitionDefinition(
                from_state="New",
                to_state="Cancelled",
                condition_expression="no_name",
                priority=5,
                description="Cancel when name is not provided",
            ),
            TransitionDefinition(
                from_state="InProgress",
                to_state="Completed",
                condition_expression="older_than_10_minutes",
                priority=10,
                description="Complete after 10 minutes of work",
            ),
            TransitionDefinition(
                from_state="Completed",
                to_state="Archived",
                condition_expression="older_than_1_day",
                priority=10,
                description="Archive after 1 day",
            ),
        ],
    )
