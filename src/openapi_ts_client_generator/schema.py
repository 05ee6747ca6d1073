"""Closed schema model parsed from dereferenced document nodes."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from .json_types import JSONPrimitive
from .resolver import canonical_path


class SchemaPathError(RuntimeError):
    """Raised when a dotted schema path cannot be followed."""


class SchemaKind(str, Enum):
    """Shapes a schema can take."""

    OBJECT = "object"
    ARRAY = "array"
    ENUM = "enum"
    MERGE = "merge"
    PRIMITIVE = "primitive"
    UNTYPED = "untyped"


_ENUM_TYPES = frozenset({"string", "integer", "number"})


@dataclass(frozen=True)
class SchemaReference:
    """A reference left in place by the dereferencer to break a cycle."""

    pointer: str

    @property
    def path(self) -> str:
        """Canonical path of the referenced schema."""
        return self.pointer


@dataclass(frozen=True)
class Schema:
    """An inline schema body."""

    kind: SchemaKind
    path: Optional[str] = None
    description: Optional[str] = None
    primitive_types: tuple[str, ...] = ()
    properties: dict[str, SchemaNode] = field(default_factory=dict)
    required: frozenset[str] = frozenset()
    items: Optional[SchemaNode] = None
    enum_values: tuple[JSONPrimitive, ...] = ()
    members: tuple[SchemaNode, ...] = ()

    @property
    def is_string_enum(self) -> bool:
        """Whether the schema enumerates string literals."""
        return self.kind is SchemaKind.ENUM and self.primitive_types == ("string",)


type SchemaNode = Union[SchemaReference, Schema]


@dataclass(frozen=True)
class TranslationStep:
    """One hop of a response unwrap: into a property or into array items."""

    kind: str
    name: str


def parse_schema(node: Any) -> Optional[SchemaNode]:
    """Parse a dereferenced schema node into the closed schema model.

    Args:
        node (Any): Schema mapping, usually a ``DocumentObject``.

    Returns:
        Optional[SchemaNode]: Parsed schema, or ``None`` when ``node`` is not a mapping.
    """
    return _SchemaParser().parse(node)


class _SchemaParser:
    def __init__(self) -> None:
        # Dereferenced documents share expanded subtrees.
        self._memo: dict[int, tuple[Any, SchemaNode]] = {}

    def parse(self, node: Any) -> Optional[SchemaNode]:
        if not isinstance(node, Mapping):
            return None
        memo = self._memo.get(id(node))
        if memo is not None:
            return memo[1]
        parsed = self._parse(node)
        self._memo[id(node)] = (node, parsed)
        return parsed

    def _parse(self, node: Mapping[str, Any]) -> SchemaNode:
        ref = node.get("$ref")
        if isinstance(ref, str) and len(node) == 1:
            return SchemaReference(pointer=ref)

        path = canonical_path(node)
        description = node.get("description")
        description = description if isinstance(description, str) else None
        types = _declared_types(node.get("type"))

        all_of = node.get("allOf")
        if isinstance(all_of, list):
            members = tuple(
                member for member in (self.parse(item) for item in all_of) if member is not None
            )
            return Schema(kind=SchemaKind.MERGE, path=path, description=description, members=members)

        if types == ("array",):
            return Schema(
                kind=SchemaKind.ARRAY,
                path=path,
                description=description,
                items=self.parse(node.get("items")),
            )

        if types == ("object",):
            return self._parse_object(node, path=path, description=description)

        enum = node.get("enum")
        if isinstance(enum, list) and len(types) == 1 and types[0] in _ENUM_TYPES:
            return Schema(
                kind=SchemaKind.ENUM,
                path=path,
                description=description,
                primitive_types=types,
                enum_values=tuple(value for value in enum if not isinstance(value, (dict, list))),
            )

        if not types:
            return Schema(kind=SchemaKind.UNTYPED, path=path, description=description)
        return Schema(
            kind=SchemaKind.PRIMITIVE,
            path=path,
            description=description,
            primitive_types=types,
        )

    def _parse_object(
        self,
        node: Mapping[str, Any],
        *,
        path: Optional[str],
        description: Optional[str],
    ) -> Schema:
        properties: dict[str, SchemaNode] = {}
        raw_properties = node.get("properties")
        if isinstance(raw_properties, Mapping):
            for name, raw_property in raw_properties.items():
                parsed = self.parse(raw_property)
                if parsed is not None:
                    properties[name] = parsed

        raw_required = node.get("required")
        required = (
            frozenset(item for item in raw_required if isinstance(item, str))
            if isinstance(raw_required, list)
            else frozenset()
        )
        return Schema(
            kind=SchemaKind.OBJECT,
            path=path,
            description=description,
            properties=properties,
            required=required,
        )


def _declared_types(raw: Any) -> tuple[str, ...]:
    if isinstance(raw, str):
        return (raw,)
    if not isinstance(raw, list):
        return ()
    names = tuple(item for item in raw if isinstance(item, str))
    non_null = tuple(item for item in names if item != "null")
    # A nullable container is still modelled as the container.
    if len(non_null) == 1 and non_null[0] in ("object", "array"):
        return non_null
    return names


def follow_schema_path(
    schema: Optional[SchemaNode],
    dotted_path: str,
) -> tuple[Optional[SchemaNode], tuple[TranslationStep, ...]]:
    """Descend into a schema along a dotted path.

    Object schemas are entered through ``properties[segment]``; array schemas
    through ``items`` (the segment is consumed but not looked up).

    Args:
        schema (Optional[SchemaNode]): Schema to start from.
        dotted_path (str): Path such as ``data.items``.

    Returns:
        tuple[Optional[SchemaNode], tuple[TranslationStep, ...]]: The schema at
        the end of the path (``None`` when a property or items schema is
        missing) and the steps taken.

    Raises:
        SchemaPathError: An intermediate schema is neither an object nor an array.
    """
    steps: list[TranslationStep] = []
    current = schema
    for segment in dotted_path.split("."):
        if isinstance(current, Schema) and current.kind is SchemaKind.OBJECT:
            steps.append(TranslationStep(kind="property", name=segment))
            current = current.properties.get(segment)
            if current is None:
                return None, tuple(steps)
        elif isinstance(current, Schema) and current.kind is SchemaKind.ARRAY:
            steps.append(TranslationStep(kind="items", name=segment))
            current = current.items
            if current is None:
                return None, tuple(steps)
        else:
            raise SchemaPathError(f"invalid schema path: {dotted_path}")
    return current, tuple(steps)
