"""Composition helpers: event bus and registry built from an ``EngineConfig``."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from workflow_engine.core.domain.conditions import utc_now
from workflow_engine.core.domain.default_workflow import default_workflow_definition
from workflow_engine.core.events.event_bus import EventBus
from workflow_engine.core.events.sinks.file_recorder import FileRecorderSink
from workflow_engine.core.events.sinks.prometheus_sink import PrometheusEventSink
from workflow_engine.core.events.sinks.sink_logging import LoggingEventSink
from workflow_engine.core.registry.state_machine_registry import StateMachineRegistry

if TYPE_CHECKING:
    from workflow_engine.core.config.engine_config import EngineConfig
    from workflow_engine.core.domain.conditions import Clock

LOGGER = logging.getLogger(__name__)


def build_event_bus(config: EngineConfig) -> EventBus:
    bus = EventBus([LoggingEventSink(logging.getLogger("workflow_engine.events"))])
    if config.event_log_path is not None:
        bus.register(FileRecorderSink(config.event_log_path))
    if config.prometheus_enabled:
        bus.register(PrometheusEventSink())
    return bus


def build_registry(
    config: EngineConfig,
    event_bus: EventBus,
    *,
    clock: Clock = utc_now,
) -> StateMachineRegistry:
    """Create the registry with the default machine plus configured machines."""
    registry = StateMachineRegistry(
        event_bus,
        default_workflow_definition(config.default_machine_id),
        clock=clock,
    )
    for definition in config.machines:
        registry.create(definition.id, definition)

    LOGGER.info(
        "Registry ready",
        extra={"machines": registry.ids(), "default_machine_id": registry.default_machine_id},
    )
    return registry
