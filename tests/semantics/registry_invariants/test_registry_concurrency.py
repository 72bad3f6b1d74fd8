"""
Semantic test: registry under concurrent callers.

Invariant:
Concurrent create/delete/get/list calls never lose or duplicate machines, and
exactly one of several racing creates for the same id succeeds.
"""

from __future__ import annotations

import threading

from workflow_engine.core.domain.default_workflow import default_workflow_definition
from workflow_engine.core.domain.errors import AlreadyExistsError
from workflow_engine.core.events.sinks.null_event_bus import NullEventBus
from workflow_engine.core.registry.state_machine_registry import StateMachineRegistry


def test_racing_creates_for_same_id() -> None:
    registry = StateMachineRegistry(NullEventBus())
    barrier = threading.Barrier(8)
    outcomes: list[str] = []
    lock = threading.Lock()

    def worker() -> None:
        barrier.wait()
        try:
            registry.create("shared", default_workflow_definition("shared"))
            result = "created"
        except AlreadyExistsError:
            result = "exists"
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("created") == 1
    assert outcomes.count("exists") == 7


def test_concurrent_create_delete_and_list() -> None:
    registry = StateMachineRegistry(NullEventBus())

    def churn(idx: int) -> None:
        for n in range(20):
            machine_id = f"m-{idx}-{n}"
            registry.create(machine_id, default_workflow_definition(machine_id))
            registry.list_summaries()
            assert registry.get(machine_id) is not None
            if n % 2 == 0:
                registry.delete(machine_id)

    threads = [threading.Thread(target=churn, args=(i,)) for i in range(6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(registry) == 1 + 6 * 10
    assert registry.exists("default-workflow")
