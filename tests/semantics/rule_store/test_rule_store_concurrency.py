"""
Semantic test: rule store under concurrent callers.

Invariant:
Concurrent add/remove/replace_all never corrupt the list and readers always
see a complete list (either before or after a replacement).
"""

from __future__ import annotations

import threading

from workflow_engine.core.domain.rule_store import RuleStore
from workflow_engine.core.domain.transition_rule import TransitionRule


def test_concurrent_adds_are_all_recorded() -> None:
    store = RuleStore()

    def worker(idx: int) -> None:
        for n in range(50):
            store.add(TransitionRule(from_state=f"S{idx}", to_state=f"T{n}", priority=n))

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(store) == 8 * 50
    assert [r.priority for r in store.rules_for("S3")] == list(range(49, -1, -1))


def test_readers_never_observe_partial_replacement() -> None:
    batch_a = [TransitionRule(from_state="New", to_state=f"A{n}") for n in range(20)]
    batch_b = [TransitionRule(from_state="New", to_state=f"B{n}") for n in range(20)]
    store = RuleStore(batch_a)
    observed: list[set[str]] = []
    stop = threading.Event()

    def writer() -> None:
        for n in range(200):
            store.replace_all(batch_b if n % 2 == 0 else batch_a)
        stop.set()

    def reader() -> None:
        while not stop.is_set():
            observed.append({r.to_state[0] for r in store.rules_for("New")})

    threads = [threading.Thread(target=writer), threading.Thread(target=reader)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert all(prefixes in ({"A"}, {"B"}) for prefixes in observed)
