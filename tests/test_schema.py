"""Unit tests for the parsed schema model."""

from __future__ import annotations

import pytest

from openapi_ts_client_generator.resolver import dereference
from openapi_ts_client_generator.schema import (
    Schema,
    SchemaKind,
    SchemaPathError,
    SchemaReference,
    TranslationStep,
    follow_schema_path,
    parse_schema,
)


def _parse(node: object) -> Schema:
    parsed = parse_schema(node)
    assert isinstance(parsed, Schema)
    return parsed


@pytest.mark.parametrize(
    ("node", "kind"),
    [
        ({"type": "object", "properties": {"a": {"type": "string"}}}, SchemaKind.OBJECT),
        ({"type": "array", "items": {"type": "string"}}, SchemaKind.ARRAY),
        ({"type": "string", "enum": ["a", "b"]}, SchemaKind.ENUM),
        ({"type": "integer", "enum": [1, 2]}, SchemaKind.ENUM),
        ({"allOf": [{"type": "object"}], "type": "object"}, SchemaKind.MERGE),
        ({"type": "boolean", "enum": [True]}, SchemaKind.PRIMITIVE),
        ({"type": "integer"}, SchemaKind.PRIMITIVE),
        ({"description": "anything"}, SchemaKind.UNTYPED),
        ({"type": ["object", "null"]}, SchemaKind.OBJECT),
    ],
)
def test_schema_kind_priority(node: dict[str, object], kind: SchemaKind) -> None:
    """Each node maps to exactly one closed schema kind."""
    assert _parse(node).kind is kind


def test_non_mapping_is_not_a_schema() -> None:
    """Missing or malformed schemas parse to ``None``."""
    assert parse_schema(None) is None
    assert parse_schema(["type", "string"]) is None


def test_parsed_schema_keeps_canonical_path_and_fields() -> None:
    """Paths, descriptions and required names survive parsing."""
    document = dereference(
        {
            "Widget": {
                "type": "object",
                "description": "A widget.",
                "required": ["id"],
                "properties": {"id": {"type": "integer"}, "name": {"type": "string"}},
            }
        }
    )
    schema = _parse(document["Widget"])

    assert schema.path == "#/Widget"
    assert schema.description == "A widget."
    assert schema.required == frozenset({"id"})
    assert list(schema.properties) == ["id", "name"]
    id_schema = schema.properties["id"]
    assert isinstance(id_schema, Schema)
    assert id_schema.path == "#/Widget/properties/id"
    assert id_schema.primitive_types == ("integer",)


def test_cycle_stub_parses_to_reference() -> None:
    """A dereferencer stub is a reference variant, not an inline schema."""
    document = dereference(
        {"Node": {"type": "object", "properties": {"next": {"$ref": "#/Node"}}}}
    )
    schema = _parse(document["Node"])

    assert schema.properties["next"] == SchemaReference(pointer="#/Node")
    assert schema.properties["next"].path == "#/Node"


def test_follow_schema_path_through_objects_and_arrays() -> None:
    """Object hops use properties; array hops use items."""
    schema = _parse(
        {
            "type": "object",
            "properties": {
                "data": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {"name": {"type": "string"}},
                    },
                }
            },
        }
    )

    target, steps = follow_schema_path(schema, "data.each.name")

    assert isinstance(target, Schema)
    assert target.primitive_types == ("string",)
    assert steps == (
        TranslationStep(kind="property", name="data"),
        TranslationStep(kind="items", name="each"),
        TranslationStep(kind="property", name="name"),
    )


def test_follow_schema_path_missing_property() -> None:
    """A missing property ends the walk without a schema."""
    schema = _parse({"type": "object", "properties": {}})
    target, steps = follow_schema_path(schema, "absent")

    assert target is None
    assert steps == (TranslationStep(kind="property", name="absent"),)


def test_follow_schema_path_rejects_scalars() -> None:
    """Descending into a scalar schema is a fatal schema-path error."""
    schema = _parse({"type": "object", "properties": {"count": {"type": "integer"}}})

    with pytest.raises(SchemaPathError):
        follow_schema_path(schema, "count.value")
