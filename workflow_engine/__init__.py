"""Public API for the workflow_engine package.

Only symbols imported here are considered part of the stable,
supported external interface.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

# ----------------------------------------------------------------------
# Config API
# ----------------------------------------------------------------------
from workflow_engine.core.config.engine_config import EngineConfig

# ----------------------------------------------------------------------
# Engine
# ----------------------------------------------------------------------
from workflow_engine.core.domain.conditions import (
    CONDITION_EXPRESSIONS,
    compile_condition,
)
from workflow_engine.core.domain.default_workflow import (
    DEFAULT_MACHINE_ID,
    default_workflow_definition,
)

# ----------------------------------------------------------------------
# Errors
# ----------------------------------------------------------------------
from workflow_engine.core.domain.errors import (
    AlreadyExistsError,
    DuplicateRuleError,
    ErrorKind,
    InvalidDefinitionError,
    InvalidTransitionError,
    NoEligibleTransitionError,
    NotFoundError,
    ProtectedOperationError,
    UnknownConditionError,
    WorkflowEngineError,
)
from workflow_engine.core.domain.rule_store import RuleStore
from workflow_engine.core.domain.state_machine import StateMachineInstance
from workflow_engine.core.domain.transition_rule import RuleBuilder, TransitionRule

# ----------------------------------------------------------------------
# Data models
# ----------------------------------------------------------------------
from workflow_engine.core.domain.types import (
    EntitySnapshot,
    RuleInfo,
    StateDefinition,
    StateMachineDefinition,
    StateMachineInfo,
    StateMachineSummary,
    TransitionDefinition,
)

# ----------------------------------------------------------------------
# Events
# ----------------------------------------------------------------------
from workflow_engine.core.events.event_bus import EventBus
from workflow_engine.core.ports.state_machine_ports import (
    StateMachineManagement,
    TransitionQueries,
)
from workflow_engine.core.registry.state_machine_registry import StateMachineRegistry

# ----------------------------------------------------------------------
# Snapshot operations
# ----------------------------------------------------------------------
from workflow_engine.runtime.workflow_transitions import (
    advance_snapshot,
    initial_snapshot,
    transition_snapshot,
)

# ----------------------------------------------------------------------
# Public API definition
# ----------------------------------------------------------------------

__all__ = [
    # Engine
    "StateMachineRegistry",
    "StateMachineInstance",
    "RuleStore",
    "TransitionRule",
    "RuleBuilder",
    "compile_condition",
    "CONDITION_EXPRESSIONS",
    "DEFAULT_MACHINE_ID",
    "default_workflow_definition",

    # Snapshot operations
    "initial_snapshot",
    "transition_snapshot",
    "advance_snapshot",

    # Capabilities
    "TransitionQueries",
    "StateMachineManagement",

    # Data models
    "EntitySnapshot",
    "StateDefinition",
    "TransitionDefinition",
    "StateMachineDefinition",
    "RuleInfo",
    "StateMachineInfo",
    "StateMachineSummary",

    # Config
    "EngineConfig",

    # Events
    "EventBus",

    # Errors
    "ErrorKind",
    "WorkflowEngineError",
    "NotFoundError",
    "AlreadyExistsError",
    "DuplicateRuleError",
    "InvalidDefinitionError",
    "UnknownConditionError",
    "ProtectedOperationError",
    "InvalidTransitionError",
    "NoEligibleTransitionError",

    # Version
    "__version__",
]

# ----------------------------------------------------------------------
# Package version
# ----------------------------------------------------------------------

try:
    __version__ = version("workflow-engine")
except PackageNotFoundError:
    __version__ = "0.0.0"
