"""Error taxonomy of the state machine engine.

Every error is raised synchronously to the caller and carries an
``ErrorKind`` so that an outer layer (HTTP, CLI) can map it without
inspecting the concrete class.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    INVALID_DEFINITION = "invalid_definition"
    PROTECTED_OPERATION = "protected_operation"
    INVALID_TRANSITION = "invalid_transition"


class WorkflowEngineError(Exception):
    """Base class for all engine errors."""

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(WorkflowEngineError, LookupError):
    kind = ErrorKind.NOT_FOUND


class AlreadyExistsError(WorkflowEngineError, ValueError):
    kind = ErrorKind.ALREADY_EXISTS


class DuplicateRuleError(AlreadyExistsError):
    """A rule with the same (from_state, to_state) pair is already stored."""

    def __init__(self, from_state: str, to_state: str) -> None:
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"Rule '{from_state}' -> '{to_state}' already exists.")


class InvalidDefinitionError(WorkflowEngineError, ValueError):
    """A state machine definition failed validation.

    ``errors`` holds every problem found, not only the first one.
    """

    kind = ErrorKind.INVALID_DEFINITION

    def __init__(self, errors: str | tuple[str, ...]) -> None:
        self.errors: tuple[str, ...] = (errors,) if isinstance(errors, str) else errors
        super().__init__("\n".join(self.errors))


class UnknownConditionError(InvalidDefinitionError):
    """A condition token is outside the vocabulary.

    When raised by a definition check, ``errors`` also lists the other
    problems found in the same definition.
    """

    def __init__(self, expression: str, errors: tuple[str, ...] | None = None) -> None:
        self.expression = expression
        super().__init__(errors or f"Unknown condition expression '{expression}'.")


class ProtectedOperationError(WorkflowEngineError):
    kind = ErrorKind.PROTECTED_OPERATION


class InvalidTransitionError(WorkflowEngineError):
    kind = ErrorKind.INVALID_TRANSITION


class NoEligibleTransitionError(InvalidTransitionError):
    """No active rule condition matched the snapshot."""
