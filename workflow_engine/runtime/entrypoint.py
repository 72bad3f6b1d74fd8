from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from workflow_engine.core.config.engine_config import EngineConfig
from workflow_engine.core.domain.errors import NotFoundError, WorkflowEngineError
from workflow_engine.core.domain.types import EntitySnapshot
from workflow_engine.runtime.bootstrap import build_event_bus, build_registry
from workflow_engine.runtime.workflow_transitions import (
    advance_snapshot,
    initial_snapshot,
    transition_snapshot,
)

if TYPE_CHECKING:
    from workflow_engine.core.domain.state_machine import StateMachineInstance
    from workflow_engine.core.registry.state_machine_registry import StateMachineRegistry

LOGGER = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _load_json(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    return json.loads(path.read_text(encoding="utf-8"))


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)


def _print_error(kind: str, message: str) -> None:
    print(json.dumps({"error": kind, "message": message}), file=sys.stderr)


def _load_snapshot(path: Path) -> EntitySnapshot:
    return EntitySnapshot.model_validate(_load_json(path))


def _require_machine(registry: StateMachineRegistry, machine_id: str) -> StateMachineInstance:
    machine = registry.get(machine_id)
    if machine is None:
        raise NotFoundError(f"State machine with ID '{machine_id}' not found.")
    return machine


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="workflow-engine",
        description="Inspect state machines and evaluate transitions.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to engine JSON config (defaults to $WORKFLOW_ENGINE_CONFIG).",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List machine summaries.")

    info = sub.add_parser("info", help="Show one machine with its rules.")
    info.add_argument("machine_id")

    check = sub.add_parser("check", help="Check whether a transition is allowed.")
    check.add_argument("machine_id")
    check.add_argument("from_state")
    check.add_argument("to_state")

    nxt = sub.add_parser("next", help="Resolve the automatic next state of a snapshot.")
    nxt.add_argument("machine_id")
    nxt.add_argument(
        "--snapshot",
        type=Path,
        required=True,
        help="Path to an entity snapshot JSON file.",
    )
    nxt.add_argument(
        "--apply",
        action="store_true",
        help="Print the advanced snapshot instead of the resolved state.",
    )

    new = sub.add_parser("new", help="Print the snapshot of a new entity.")
    new.add_argument("machine_id")
    new.add_argument("--name", default=None)

    move = sub.add_parser("transition", help="Apply a manual transition to a snapshot.")
    move.add_argument("machine_id")
    move.add_argument("to_state")
    move.add_argument("--snapshot", type=Path, required=True)

    return parser


def _run(args: argparse.Namespace, registry: StateMachineRegistry) -> None:
    if args.command == "list":
        _print_json([_dump(s) for s in registry.list_summaries()])
        return

    machine = _require_machine(registry, args.machine_id)

    if args.command == "info":
        _print_json(_dump(machine.info()))
    elif args.command == "check":
        _print_json(
            {
                "machineId": machine.id,
                "fromState": args.from_state,
                "toState": args.to_state,
                "allowed": machine.can_transition(args.from_state, args.to_state),
            }
        )
    elif args.command == "new":
        _print_json(_dump(initial_snapshot(machine, args.name)))
    elif args.command == "transition":
        snapshot = _load_snapshot(args.snapshot)
        _print_json(_dump(transition_snapshot(machine, snapshot, args.to_state)))
    elif args.command == "next" and args.apply:
        _print_json(_dump(advance_snapshot(machine, _load_snapshot(args.snapshot))))
    elif args.command == "next":
        snapshot = _load_snapshot(args.snapshot)
        _print_json(
            {
                "machineId": machine.id,
                "currentState": snapshot.state,
                "nextState": machine.next_state(snapshot),
            }
        )


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    # ValidationError and JSONDecodeError are both ValueErrors.
    try:
        config = EngineConfig.load(args.config)
    except (OSError, ValueError) as exc:
        _print_error("invalid_config", str(exc))
        return 1

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    event_bus = build_event_bus(config)
    try:
        registry = build_registry(config, event_bus)
        _run(args, registry)
    except WorkflowEngineError as exc:
        LOGGER.error("Command failed", extra={"kind": exc.kind.value})
        _print_error(exc.kind.value, exc.message)
        return 1
    except (OSError, ValueError) as exc:
        LOGGER.error("Invalid input", extra={"error_type": type(exc).__name__})
        _print_error("invalid_input", str(exc))
        return 1
    finally:
        event_bus.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
