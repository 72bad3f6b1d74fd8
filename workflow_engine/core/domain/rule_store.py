"""Lock-guarded rule collection of a single state machine."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Iterable

from workflow_engine.core.domain.errors import DuplicateRuleError
from workflow_engine.core.domain.transition_rule import state_key

if TYPE_CHECKING:
    from workflow_engine.core.domain.transition_rule import TransitionRule


class RuleStore:
    """Ordered list of transition rules.

    Every operation runs under one mutex and read operations return copies,
    so a reader never observes a half-replaced list. Storage order is the
    insertion order and is the tie-breaker for equal priorities.
    """

    def __init__(self, rules: Iterable[TransitionRule] | None = None) -> None:
        self._lock = threading.Lock()
        self._rules: list[TransitionRule] = []
        for rule in rules or ():
            self.add(rule)

    def __len__(self) -> int:
        with self._lock:
            return len(self._rules)

    def rules_for(self, state: str) -> list[TransitionRule]:
        """Active rules leaving ``state``, highest priority first.

        ``sorted`` is stable, so rules of equal priority keep insertion order.
        """
        needle = state_key(state)
        with self._lock:
            candidates = [
                r for r in self._rules if r.is_active and state_key(r.from_state) == needle
            ]
        return sorted(candidates, key=lambda r: r.priority, reverse=True)

    def add(self, rule: TransitionRule) -> None:
        with self._lock:
            if self._find(rule.from_state, rule.to_state) is not None:
                raise DuplicateRuleError(rule.from_state, rule.to_state)
            self._rules.append(rule)

    def remove(self, from_state: str, to_state: str) -> bool:
        """Delete the rule for the pair. Returns False if there was none."""
        with self._lock:
            index = self._find(from_state, to_state)
            if index is None:
                return False
            del self._rules[index]
            return True

    def update(self, rule: TransitionRule) -> bool:
        """Replace the rule with the same pair in place, keeping its position."""
        with self._lock:
            index = self._find(rule.from_state, rule.to_state)
            if index is None:
                return False
            self._rules[index] = rule
            return True

    def get(self, from_state: str, to_state: str) -> TransitionRule | None:
        with self._lock:
            index = self._find(from_state, to_state)
            return None if index is None else self._rules[index]

    def all_rules(self) -> list[TransitionRule]:
        with self._lock:
            return list(self._rules)

    def remove_involving(self, state: str) -> int:
        """Cascade delete of every rule that starts or ends at ``state``."""
        with self._lock:
            kept = [r for r in self._rules if not r.involves(state)]
            removed = len(self._rules) - len(kept)
            self._rules = kept
            return removed

    def replace_all(self, rules: Iterable[TransitionRule]) -> None:
        """Swap the whole list in one critical section.

        Raises ``DuplicateRuleError`` without touching the stored rules if
        the incoming rules repeat a pair.
        """
        incoming = list(rules)
        seen: set[tuple[str, str]] = set()
        for rule in incoming:
            if rule.key in seen:
                raise DuplicateRuleError(rule.from_state, rule.to_state)
            seen.add(rule.key)
        with self._lock:
            self._rules = incoming

    def _find(self, from_state: str, to_state: str) -> int | None:
        # Caller must hold self._lock.
        for index, rule in enumerate(self._rules):
            if rule.matches(from_state, to_state):
                return index
        return None
