"""Prometheus event sink.

Counts domain events per type in a private ``CollectorRegistry``. The
registry can be scraped by an outer HTTP layer or pushed to a Pushgateway
for batch-style jobs.
"""
from __future__ import annotations

import json
import logging
import os
from typing import Any

from prometheus_client import CollectorRegistry, Counter, push_to_gateway

LOGGER = logging.getLogger(__name__)

EVENTS_METRIC = "workflow_engine_events"
CONDITION_FAILURES_METRIC = "workflow_engine_condition_failures"


class PrometheusEventSink:
    """Best-effort metrics sink.

    Expected environment (push only):
    - PROMETHEUS_PUSHGATEWAY_URL: URL to the Pushgateway.

    Optional:
    - PROMETHEUS_PUSHGATEWAY_GROUPING_KEY_JSON: JSON object used as grouping key.
      Example: {"instance": "workflow-engine-0"}
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._pushgateway_url = os.environ.get("PROMETHEUS_PUSHGATEWAY_URL")
        self._grouping_key = self._load_grouping_key()
        self.registry = registry if registry is not None else CollectorRegistry()

        self._events = Counter(
            EVENTS_METRIC,
            "Domain events emitted by the state machine engine.",
            labelnames=["event_type"],
            registry=self.registry,
        )
        self._condition_failures = Counter(
            CONDITION_FAILURES_METRIC,
            "Rule conditions that raised during automatic next-state resolution.",
            labelnames=["machine_id"],
            registry=self.registry,
        )

    def is_push_enabled(self) -> bool:
        return self._pushgateway_url is not None

    @staticmethod
    def _load_grouping_key() -> dict[str, str]:
        raw = os.environ.get("PROMETHEUS_PUSHGATEWAY_GROUPING_KEY_JSON")
        if not raw:
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            LOGGER.warning(
                "Invalid PROMETHEUS_PUSHGATEWAY_GROUPING_KEY_JSON; ignoring"
            )
            return {}

        if not isinstance(data, dict):
            return {}

        grouping: dict[str, str] = {}
        for key, value in data.items():
            if isinstance(key, str) and isinstance(value, str):
                grouping[key] = value
        return grouping

    def on_event(self, event: Any) -> None:
        event_type = type(event).__name__
        self._events.labels(event_type=event_type).inc()
        if event_type == "ConditionEvaluationFailedEvent":
            self._condition_failures.labels(machine_id=event.machine_id).inc()

    def push_all(self, *, job: str) -> None:
        if not self._pushgateway_url:
            return

        push_to_gateway(
            gateway=self._pushgateway_url,
            job=job,
            registry=self.registry,
            grouping_key=self._grouping_key,
        )

        LOGGER.info(
            "Prometheus metrics pushed",
            extra={"job": job, "grouping_key": self._grouping_key},
        )

    def close(self) -> None:
        if not self._pushgateway_url:
            return
        try:
            self.push_all(job="workflow_engine")
        except Exception:  # pylint: disable=broad-exception-caught
            LOGGER.exception("Prometheus push failed")
