"""Schema conformance tests for the definition and snapshot models.

This test suite validates that the Pydantic models both accept valid inputs
and reject invalid ones in alignment with their corresponding JSON Schemas.
"""

# pylint: disable=missing-function-docstring
# pylint: disable=redefined-outer-name,global-statement
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from jsonschema import ValidationError as JsonSchemaValidationError
from jsonschema import validate as jsonschema_validate
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from referencing import Registry, Resource
from referencing.jsonschema import DRAFT202012

from workflow_engine.core.domain.default_workflow import default_workflow_definition
from workflow_engine.core.domain.types import EntitySnapshot, StateMachineDefinition

SCHEMA_REGISTRY = Registry()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def load_schema(name: str) -> dict:
    """
    Load JSON schema from the package schema directory.
    """
    global SCHEMA_REGISTRY

    root = Path(__file__).parent.parent.parent.parent
    schema_path = root / "workflow_engine" / "core" / "schemas" / name

    with schema_path.open("r", encoding="utf-8") as f:
        schema = json.load(f)

    schema_id = schema.get("$id")
    if isinstance(schema_id, str) and schema_id:
        resource = Resource.from_contents(schema, default_specification=DRAFT202012)
        SCHEMA_REGISTRY = SCHEMA_REGISTRY.with_resource(schema_id, resource)

    return schema


def dump_for_jsonschema(model: BaseModel) -> dict:
    """
    Dump a Pydantic model to its wire form (camelCase, None omitted).
    """
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


def assert_pydantic_then_schema_ok(
    model_type: type[BaseModel], data: dict[str, Any], schema: dict[str, Any]
) -> dict:
    """
    Validate with Pydantic first, then validate the dumped instance with JSON Schema.
    Returns the dumped instance.
    """
    obj = model_type.model_validate(data)
    instance = dump_for_jsonschema(obj)
    jsonschema_validate(instance=instance, schema=schema, registry=SCHEMA_REGISTRY)
    return instance


def assert_schema_invalid_but_pydantic_rejects(
    model_type: type[BaseModel], data: dict[str, Any], schema: dict[str, Any]
) -> None:
    """
    Ensures Pydantic is at least as strict as the JSON Schema for the given input.
    """
    with pytest.raises(JsonSchemaValidationError):
        jsonschema_validate(instance=data, schema=schema, registry=SCHEMA_REGISTRY)

    with pytest.raises(PydanticValidationError):
        model_type.model_validate(data)


def mk_definition(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": "orders",
        "name": "Orders",
        "initialState": "New",
        "states": [
            {"name": "New", "description": "created"},
            {"name": "Done", "isFinal": True},
        ],
        "transitions": [
            {
                "fromState": "New",
                "toState": "Done",
                "conditionExpression": "has_name",
                "priority": 3,
                "description": "finish named orders",
            }
        ],
    }
    data.update(overrides)
    return data


def mk_snapshot(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "name": "order-1",
        "createdAt": "2026-01-01T00:00:00Z",
        "updatedAt": "2026-01-01T00:05:00Z",
        "state": "New",
    }
    data.update(overrides)
    return data


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="module", autouse=True)
def _load_common_schema() -> None:
    load_schema("common.schema.json")


@pytest.fixture(scope="module")
def definition_schema() -> dict:
    return load_schema("state_machine_definition.schema.json")


@pytest.fixture(scope="module")
def snapshot_schema() -> dict:
    return load_schema("entity_snapshot.schema.json")


# ---------------------------------------------------------------------------
# StateMachineDefinition
# ---------------------------------------------------------------------------

def test_definition_valid(definition_schema: dict) -> None:
    dumped = assert_pydantic_then_schema_ok(StateMachineDefinition, mk_definition(), definition_schema)
    assert dumped["initialState"] == "New"
    assert dumped["transitions"][0]["conditionExpression"] == "has_name"


def test_definition_without_transitions_valid(definition_schema: dict) -> None:
    data = mk_definition()
    del data["transitions"]
    dumped = assert_pydantic_then_schema_ok(StateMachineDefinition, data, definition_schema)
    assert dumped["transitions"] == []


def test_default_workflow_matches_schema(definition_schema: dict) -> None:
    instance = dump_for_jsonschema(default_workflow_definition())
    jsonschema_validate(instance=instance, schema=definition_schema, registry=SCHEMA_REGISTRY)


def test_definition_accepts_snake_case_names() -> None:
    obj = StateMachineDefinition.model_validate(
        {
            "id": "orders",
            "name": "Orders",
            "initial_state": "New",
            "states": [{"name": "New", "is_terminal": True}],
        }
    )
    assert obj.initial_state == "New"
    assert obj.states[0].is_terminal is True


@pytest.mark.parametrize(
    "data",
    [
        {k: v for k, v in mk_definition().items() if k != "initialState"},
        mk_definition(states=[]),
        mk_definition(states=[{"name": "   "}]),
        mk_definition(initialState=""),
        mk_definition(version=2),
        mk_definition(
            transitions=[{"fromState": "New", "toState": "Done", "conditionExpression": "always", "priority": "high"}]
        ),
        mk_definition(transitions=[{"fromState": "New", "toState": "Done"}]),
        mk_definition(
            transitions=[{"fromState": "New", "toState": "Done", "conditionExpression": ""}]
        ),
        mk_definition(states=[{"name": "New", "color": "red"}]),
    ],
)
def test_definition_invalid(definition_schema: dict, data: dict[str, Any]) -> None:
    assert_schema_invalid_but_pydantic_rejects(StateMachineDefinition, data, definition_schema)


# ---------------------------------------------------------------------------
# EntitySnapshot
# ---------------------------------------------------------------------------

def test_snapshot_valid(snapshot_schema: dict) -> None:
    dumped = assert_pydantic_then_schema_ok(EntitySnapshot, mk_snapshot(), snapshot_schema)
    assert dumped["state"] == "New"


def test_snapshot_minimal_valid(snapshot_schema: dict) -> None:
    dumped = assert_pydantic_then_schema_ok(
        EntitySnapshot,
        {"createdAt": "2026-01-01T00:00:00Z", "state": "New"},
        snapshot_schema,
    )
    assert "updatedAt" not in dumped
    assert "name" not in dumped


@pytest.mark.parametrize(
    "data",
    [
        {k: v for k, v in mk_snapshot().items() if k != "createdAt"},
        {k: v for k, v in mk_snapshot().items() if k != "state"},
        mk_snapshot(state=""),
        mk_snapshot(name=42),
        mk_snapshot(stateMachineId="default-workflow"),
    ],
)
def test_snapshot_invalid(snapshot_schema: dict, data: dict[str, Any]) -> None:
    assert_schema_invalid_but_pydantic_rejects(EntitySnapshot, data, snapshot_schema)
