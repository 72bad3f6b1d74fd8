"""Condition expression compiler.

Declarative definitions describe rule conditions with a small, closed
vocabulary of case-insensitive tokens. Each token compiles to a predicate
over an ``EntitySnapshot``. The vocabulary is not extensible; rules that need
arbitrary predicates are built in Python with ``RuleBuilder``.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Callable

from workflow_engine.core.domain.errors import UnknownConditionError

if TYPE_CHECKING:
    from workflow_engine.core.domain.types import EntitySnapshot

Condition = Callable[["EntitySnapshot"], bool]
Clock = Callable[[], datetime]

_TEN_MINUTES = timedelta(minutes=10)
_ONE_DAY = timedelta(days=1)


def utc_now() -> datetime:
    """Default engine clock."""
    return datetime.now(timezone.utc)


def never(_: EntitySnapshot) -> bool:
    return False


def always(_: EntitySnapshot) -> bool:
    return True


def has_name(snapshot: EntitySnapshot) -> bool:
    return snapshot.name is not None and bool(snapshot.name.strip())


def no_name(snapshot: EntitySnapshot) -> bool:
    return not has_name(snapshot)


def _older_than_10_minutes(clock: Clock) -> Condition:
    def condition(snapshot: EntitySnapshot) -> bool:
        if snapshot.updated_at is None:
            return False
        return clock() - snapshot.updated_at > _TEN_MINUTES

    return condition


def _older_than_1_day(clock: Clock) -> Condition:
    def condition(snapshot: EntitySnapshot) -> bool:
        return clock() - snapshot.created_at >= _ONE_DAY

    return condition


_STATIC_CONDITIONS: dict[str, Condition] = {
    "has_name": has_name,
    "no_name": no_name,
    "always": always,
    "never": never,
}

_CLOCK_CONDITIONS: dict[str, Callable[[Clock], Condition]] = {
    "older_than_10_minutes": _older_than_10_minutes,
    "older_than_1_day": _older_than_1_day,
}

CONDITION_EXPRESSIONS: frozenset[str] = frozenset(_STATIC_CONDITIONS) | frozenset(
    _CLOCK_CONDITIONS
)


def compile_condition(expression: str, clock: Clock = utc_now) -> Condition:
    """Compile a condition token into a predicate.

    Raises ``UnknownConditionError`` for tokens outside the vocabulary so that
    a typo surfaces at definition time instead of producing a rule that can
    never fire.
    """
    token = expression.strip().lower()

    static = _STATIC_CONDITIONS.get(token)
    if static is not None:
        return static

    factory = _CLOCK_CONDITIONS.get(token)
    if factory is not None:
        return factory(clock)

    raise UnknownConditionError(expression)
