"""Registry of independently configured state machines.

Machines are addressed by case-insensitive string ids. The id map is guarded
by the registry lock; an instance lock is never acquired while that lock is
held, so instance definition and introspection always run outside the
registry critical section.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from workflow_engine.core.domain.conditions import utc_now
from workflow_engine.core.domain.default_workflow import default_workflow_definition
from workflow_engine.core.domain.errors import (
    AlreadyExistsError,
    InvalidDefinitionError,
    NotFoundError,
    ProtectedOperationError,
)
from workflow_engine.core.domain.state_machine import StateMachineInstance
from workflow_engine.core.events.events import StateMachineDeletedEvent

if TYPE_CHECKING:
    from workflow_engine.core.domain.conditions import Clock
    from workflow_engine.core.domain.types import StateMachineDefinition, StateMachineSummary
    from workflow_engine.core.events.event_bus import EventBus

LOGGER = logging.getLogger(__name__)


def _id_key(machine_id: str) -> str:
    return machine_id.casefold()


class StateMachineRegistry:
    """Maps machine ids to ``StateMachineInstance`` objects.

    The default machine is created at construction time and can be
    redefined through ``update`` but never deleted.
    """

    def __init__(
        self,
        event_bus: EventBus,
        default_definition: StateMachineDefinition | None = None,
        *,
        clock: Clock = utc_now,
    ) -> None:
        self._event_bus = event_bus
        self._clock = clock
        self._lock = threading.Lock()
        self._machines: dict[str, StateMachineInstance] = {}

        if default_definition is None:
            default_definition = default_workflow_definition()
        self._default_machine_id = default_definition.id
        self.create(default_definition.id, default_definition)

    @property
    def default_machine_id(self) -> str:
        return self._default_machine_id

    def __len__(self) -> int:
        with self._lock:
            return len(self._machines)

    def __contains__(self, machine_id: object) -> bool:
        return isinstance(machine_id, str) and self.exists(machine_id)

    def exists(self, machine_id: str) -> bool:
        with self._lock:
            return _id_key(machine_id) in self._machines

    def ids(self) -> list[str]:
        with self._lock:
            instances = list(self._machines.values())
        return [instance.id for instance in instances]

    def get(self, machine_id: str) -> StateMachineInstance | None:
        with self._lock:
            return self._machines.get(_id_key(machine_id))

    def create(self, machine_id: str, definition: StateMachineDefinition) -> StateMachineInstance:
        """Create and register a new machine.

        Raises ``AlreadyExistsError`` if the id is taken and
        ``InvalidDefinitionError`` if the definition is rejected.
        """
        if not machine_id or not machine_id.strip():
            raise InvalidDefinitionError("State machine ID must not be blank.")
        key = _id_key(machine_id)
        with self._lock:
            if key in self._machines:
                raise AlreadyExistsError(f"State machine with ID '{machine_id}' already exists.")

        # Built outside the registry lock; define() takes the instance lock.
        instance = StateMachineInstance(
            self._with_id(machine_id, definition),
            self._event_bus,
            clock=self._clock,
        )

        with self._lock:
            if key in self._machines:
                raise AlreadyExistsError(f"State machine with ID '{machine_id}' already exists.")
            self._machines[key] = instance

        LOGGER.info("State machine created", extra={"machine_id": machine_id})
        return instance

    def update(self, machine_id: str, definition: StateMachineDefinition) -> StateMachineInstance:
        """Redefine an existing machine with full-replace semantics."""
        instance = self.get(machine_id)
        if instance is None:
            raise NotFoundError(f"State machine with ID '{machine_id}' does not exist.")

        instance.define(self._with_id(instance.id, definition))
        LOGGER.info("State machine updated", extra={"machine_id": machine_id})
        return instance

    def delete(self, machine_id: str) -> None:
        key = _id_key(machine_id)
        with self._lock:
            if key not in self._machines:
                raise NotFoundError(f"State machine with ID '{machine_id}' does not exist.")
            if key == _id_key(self._default_machine_id):
                raise ProtectedOperationError("Cannot delete the default state machine.")
            del self._machines[key]

        LOGGER.info("State machine deleted", extra={"machine_id": machine_id})
        try:
            self._event_bus.emit(StateMachineDeletedEvent(ts=self._clock(), machine_id=machine_id))
        except Exception:  # pylint: disable=broad-exception-caught
            LOGGER.exception("Event sink failed", extra={"machine_id": machine_id})

    def list_summaries(self) -> list[StateMachineSummary]:
        """Summaries in registration order."""
        with self._lock:
            instances = list(self._machines.values())
        return [instance.summary() for instance in instances]

    @staticmethod
    def _with_id(machine_id: str, definition: StateMachineDefinition) -> StateMachineDefinition:
        # The registry id is authoritative over the id carried by the definition.
        if definition.id == machine_id:
            return definition
        return definition.model_copy(update={"id": machine_id})
