"""Rule-based state machine instance.

A ``StateMachineInstance`` owns a case-insensitive set of state names, an
initial state and a ``RuleStore``. It answers two kinds of questions:

- legality: may an entity move from state A to state B? This is a purely
  structural check on active rules, conditions are not evaluated.
- automatic resolution: given an entity snapshot, which state should it move
  to next? Rules leaving the current state are evaluated in priority order
  and the first matching condition wins.

Definitions are validated completely before anything is mutated and are then
applied in a single critical section, so a failed ``define`` leaves the
instance exactly as it was.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from typing import TYPE_CHECKING, Any

from workflow_engine.core.domain.conditions import compile_condition, utc_now
from workflow_engine.core.domain.errors import (
    AlreadyExistsError,
    InvalidDefinitionError,
    NotFoundError,
    ProtectedOperationError,
    UnknownConditionError,
)
from workflow_engine.core.domain.rule_store import RuleStore
from workflow_engine.core.domain.transition_rule import TransitionRule, state_key
from workflow_engine.core.domain.types import (
    StateMachineInfo,
    StateMachineSummary,
)
from workflow_engine.core.events.events import (
    ConditionEvaluationFailedEvent,
    NextStateResolvedEvent,
    StateMachineDefinedEvent,
)

if TYPE_CHECKING:
    from datetime import datetime

    from workflow_engine.core.domain.conditions import Clock
    from workflow_engine.core.domain.types import (
        EntitySnapshot,
        RuleInfo,
        StateDefinition,
        StateMachineDefinition,
        TransitionDefinition,
    )
    from workflow_engine.core.events.event_bus import EventBus

LOGGER = logging.getLogger(__name__)


class StateMachineInstance:
    """One independently configured state machine.

    Implements both ``TransitionQueries`` and ``StateMachineManagement``.
    The instance lock is always acquired before the rule store lock.
    """

    def __init__(
        self,
        definition: StateMachineDefinition,
        event_bus: EventBus,
        *,
        rule_store: RuleStore | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._event_bus = event_bus
        self._clock = clock
        self._lock = threading.RLock()
        self._rules = rule_store if rule_store is not None else RuleStore()

        # state key -> display name, in definition order
        self._states: dict[str, str] = {}
        self._initial_state = ""
        self._id = ""
        self._name = ""
        self._created_at: datetime = clock()
        self._modified_at: datetime = self._created_at

        self.define(definition)

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def initial_state(self) -> str:
        return self._initial_state

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def modified_at(self) -> datetime:
        return self._modified_at

    def initial_state_name(self) -> str:
        return self._initial_state

    def state_exists(self, state_name: str) -> bool:
        if not state_name:
            return False
        with self._lock:
            return state_key(state_name) in self._states

    def all_states(self) -> list[str]:
        with self._lock:
            return list(self._states.values())

    def info(self) -> StateMachineInfo:
        with self._lock:
            return StateMachineInfo(
                id=self._id,
                name=self._name,
                initial_state=self._initial_state,
                states=list(self._states.values()),
                transitions=[rule.to_info() for rule in self._rules.all_rules()],
                created_at=self._created_at,
                modified_at=self._modified_at,
            )

    def summary(self) -> StateMachineSummary:
        with self._lock:
            return StateMachineSummary(
                id=self._id,
                name=self._name,
                initial_state=self._initial_state,
                state_count=len(self._states),
                transition_count=len(self._rules),
                created_at=self._created_at,
                modified_at=self._modified_at,
            )

    # ------------------------------------------------------------------
    # Transition queries
    # ------------------------------------------------------------------

    def can_transition(self, current_state: str, next_state: str) -> bool:
        if not current_state or not current_state.strip():
            return False
        if not next_state or not next_state.strip():
            return False

        with self._lock:
            if state_key(current_state) not in self._states:
                return False
            if state_key(next_state) not in self._states:
                return False
            return any(
                rule.matches(current_state, next_state)
                for rule in self._rules.rules_for(current_state)
            )

    def available_transitions(self, current_state: str) -> list[str]:
        return [rule.to_state for rule in self._rules.rules_for(current_state)]

    def next_state(self, snapshot: EntitySnapshot) -> str | None:
        """Resolve the automatic next state for ``snapshot``.

        A condition that raises is treated as not matching: the failure is
        reported and evaluation continues with the next rule. This method
        never raises because of a condition.
        """
        for rule in self._rules.rules_for(snapshot.state):
            try:
                matched = bool(rule.condition(snapshot))
            except Exception as exc:  # pylint: disable=broad-exception-caught
                self._report_condition_failure(rule, exc)
                continue

            if matched:
                self._emit(
                    NextStateResolvedEvent(
                        ts=self._clock(),
                        machine_id=self._id,
                        prev_state=snapshot.state,
                        next_state=rule.to_state,
                    )
                )
                return rule.to_state

        self._emit(
            NextStateResolvedEvent(
                ts=self._clock(),
                machine_id=self._id,
                prev_state=snapshot.state,
                next_state=None,
            )
        )
        return None

    # ------------------------------------------------------------------
    # Definition
    # ------------------------------------------------------------------

    def define(self, definition: StateMachineDefinition) -> None:
        """Replace the whole machine with ``definition``.

        Raises ``InvalidDefinitionError`` listing every problem found; in that
        case nothing is changed.
        """
        states, rules = self._validate_definition(definition)
        now = self._clock()

        with self._lock:
            self._rules.replace_all(rules)
            self._states = states
            self._initial_state = states[state_key(definition.initial_state)]
            self._id = definition.id
            self._name = definition.name
            self._created_at = now
            self._modified_at = now

        LOGGER.info(
            "State machine defined",
            extra={"machine_id": definition.id, "states": len(states), "rules": len(rules)},
        )
        self._emit(
            StateMachineDefinedEvent(
                ts=now,
                machine_id=definition.id,
                name=definition.name,
                initial_state=self._initial_state,
                state_count=len(states),
                rule_count=len(rules),
            )
        )

    def _validate_definition(
        self, definition: StateMachineDefinition
    ) -> tuple[dict[str, str], list[TransitionRule]]:
        errors: list[str] = []

        states: dict[str, str] = {}
        for state in definition.states:
            states.setdefault(state_key(state.name), state.name)

        if state_key(definition.initial_state) not in states:
            errors.append(
                f"Initial state '{definition.initial_state}' is not defined in the states list."
            )

        rules: list[TransitionRule] = []
        seen: set[tuple[str, str]] = set()
        unknown_expression: str | None = None
        for transition in definition.transitions:
            from_key = state_key(transition.from_state)
            to_key = state_key(transition.to_state)
            endpoints_ok = True
            if from_key not in states:
                errors.append(f"From state '{transition.from_state}' is not defined.")
                endpoints_ok = False
            if to_key not in states:
                errors.append(f"To state '{transition.to_state}' is not defined.")
                endpoints_ok = False

            try:
                condition = compile_condition(transition.condition_expression, self._clock)
            except UnknownConditionError as exc:
                errors.append(exc.message)
                if unknown_expression is None:
                    unknown_expression = exc.expression
                continue

            if not endpoints_ok:
                continue

            if (from_key, to_key) in seen:
                errors.append(
                    f"Duplicate transition '{transition.from_state}' -> '{transition.to_state}'."
                )
                continue
            seen.add((from_key, to_key))

            rules.append(
                TransitionRule(
                    from_state=states[from_key],
                    to_state=states[to_key],
                    condition=condition,
                    priority=transition.priority,
                    description=transition.description,
                    is_active=True,
                )
            )

        if unknown_expression is not None:
            raise UnknownConditionError(unknown_expression, tuple(errors))
        if errors:
            raise InvalidDefinitionError(tuple(errors))

        return states, rules

    # ------------------------------------------------------------------
    # State management
    # ------------------------------------------------------------------

    def add_state(self, state: StateDefinition) -> None:
        with self._lock:
            key = state_key(state.name)
            if key in self._states:
                raise AlreadyExistsError(f"State '{state.name}' already exists.")
            self._states[key] = state.name
            self._touch()

    def remove_state(self, state_name: str) -> None:
        with self._lock:
            key = self._require_state(state_name)
            if key == state_key(self._initial_state):
                raise ProtectedOperationError("Cannot remove the initial state.")

            removed = self._rules.remove_involving(state_name)
            del self._states[key]
            self._touch()

        LOGGER.info(
            "State removed",
            extra={"machine_id": self._id, "state": state_name, "rules_removed": removed},
        )

    # ------------------------------------------------------------------
    # Rule management
    # ------------------------------------------------------------------

    def rules_for_state(self, state_name: str) -> list[RuleInfo]:
        with self._lock:
            self._require_state(state_name)
            needle = state_key(state_name)
            return [
                rule.to_info()
                for rule in self._rules.all_rules()
                if state_key(rule.from_state) == needle
            ]

    def add_rule(self, transition: TransitionDefinition) -> None:
        with self._lock:
            rule = self._rule_from(transition, is_active=True)
            self._rules.add(rule)
            self._touch()

    def register_rule(self, rule: TransitionRule) -> None:
        """Add a prebuilt rule, typically one with a Python predicate."""
        with self._lock:
            from_key = self._require_state(rule.from_state)
            to_key = self._require_state(rule.to_state)
            self._rules.add(
                dataclasses.replace(
                    rule,
                    from_state=self._states[from_key],
                    to_state=self._states[to_key],
                )
            )
            self._touch()

    def update_rule(self, transition: TransitionDefinition) -> None:
        with self._lock:
            existing = self._require_rule(transition.from_state, transition.to_state)
            rule = self._rule_from(transition, is_active=existing.is_active)
            self._rules.update(rule)
            self._touch()

    def remove_rule(self, from_state: str, to_state: str) -> None:
        with self._lock:
            if not self._rules.remove(from_state, to_state):
                raise NotFoundError(f"Rule '{from_state}' -> '{to_state}' does not exist.")
            self._touch()

    def set_rule_active(self, from_state: str, to_state: str, active: bool) -> None:
        with self._lock:
            existing = self._require_rule(from_state, to_state)
            self._rules.update(dataclasses.replace(existing, is_active=active))
            self._touch()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_state(self, state_name: str) -> str:
        # Caller must hold self._lock.
        key = state_key(state_name)
        if key not in self._states:
            raise NotFoundError(f"State '{state_name}' does not exist.")
        return key

    def _require_rule(self, from_state: str, to_state: str) -> TransitionRule:
        rule = self._rules.get(from_state, to_state)
        if rule is None:
            raise NotFoundError(f"Rule '{from_state}' -> '{to_state}' does not exist.")
        return rule

    def _rule_from(self, transition: TransitionDefinition, *, is_active: bool) -> TransitionRule:
        # Caller must hold self._lock.
        from_key = self._require_state(transition.from_state)
        to_key = self._require_state(transition.to_state)
        return TransitionRule(
            from_state=self._states[from_key],
            to_state=self._states[to_key],
            condition=compile_condition(transition.condition_expression, self._clock),
            priority=transition.priority,
            description=transition.description,
            is_active=is_active,
        )

    def _touch(self) -> None:
        self._modified_at = self._clock()

    def _report_condition_failure(self, rule: TransitionRule, exc: Exception) -> None:
        LOGGER.warning(
            "Error evaluating rule condition",
            exc_info=exc,
            extra={
                "machine_id": self._id,
                "from_state": rule.from_state,
                "to_state": rule.to_state,
                "rule_description": rule.description,
            },
        )
        self._emit(
            ConditionEvaluationFailedEvent(
                ts=self._clock(),
                machine_id=self._id,
                from_state=rule.from_state,
                to_state=rule.to_state,
                rule_description=rule.description,
                error_type=type(exc).__name__,
                error_message=str(exc),
            )
        )

    def _emit(self, event: Any) -> None:
        # Observability is best-effort: a failing sink must not break evaluation.
        try:
            self._event_bus.emit(event)
        except Exception:  # pylint: disable=broad-exception-caught
            LOGGER.exception("Event sink failed", extra={"machine_id": self._id})

    def __repr__(self) -> str:
        return f"StateMachineInstance(id={self._id!r}, initial_state={self._initial_state!r})"
