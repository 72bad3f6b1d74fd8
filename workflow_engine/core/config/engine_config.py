"""Engine configuration model."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from workflow_engine.core.domain.default_workflow import DEFAULT_MACHINE_ID
from workflow_engine.core.domain.types import StateMachineDefinition

CONFIG_PATH_ENV = "WORKFLOW_ENGINE_CONFIG"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class EngineConfig(BaseModel):
    """Structured engine configuration.

    JSON example:
        {
          "default_machine_id": "default-workflow",
          "log_level": "INFO",
          "event_log_path": "/var/log/workflow/events.jsonl",
          "prometheus_enabled": true,
          "machines": [ {"id": "tickets", "name": "Tickets", ...} ]
        }

    ``machines`` are registered after the default machine, in order.
    """

    default_machine_id: str = Field(default=DEFAULT_MACHINE_ID, min_length=1)
    log_level: LogLevel = "INFO"
    event_log_path: Path | None = None
    prometheus_enabled: bool = False
    machines: list[StateMachineDefinition] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_json_obj(cls, obj: dict[str, Any]) -> EngineConfig:
        """Create an EngineConfig instance from a JSON-compatible object."""
        return cls.model_validate(obj)

    @classmethod
    def from_path(cls, path: str | Path) -> EngineConfig:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(path)
        return cls.from_json_obj(json.loads(path.read_text(encoding="utf-8")))

    @classmethod
    def load(cls, path: str | Path | None = None) -> EngineConfig:
        """Load from ``path``, else from ``$WORKFLOW_ENGINE_CONFIG``, else defaults."""
        if path is None:
            path = os.environ.get(CONFIG_PATH_ENV) or None
        if path is None:
            return cls()
        return cls.from_path(path)

    @model_validator(mode="after")
    def validate_machine_ids(self) -> EngineConfig:
        """Machine ids must be unique and must not shadow the default machine."""
        seen = {self.default_machine_id.casefold()}
        for machine in self.machines:
            key = machine.id.casefold()
            if key in seen:
                raise ValueError(f"duplicate machine id {machine.id!r}")
            seen.add(key)
        return self
