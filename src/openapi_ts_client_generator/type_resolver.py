"""Map schemas to TypeScript type expressions and named typedefs."""

from __future__ import annotations

import logging
from typing import Optional

from .model_types import (
    AliasTypedef,
    ArrayTypedef,
    EnumTypedef,
    FieldDef,
    ObjectTypedef,
    OperationDescriptor,
    Typedef,
    UnionTypedef,
)
from .schema import Schema, SchemaKind, SchemaNode, SchemaReference
from .scope import Scope, SymbolDefinition
from .typescript import join_union, literal_expression, quote_literal

logger = logging.getLogger(__name__)

UNDEFINED_TYPE = "undefined"
ANY_TYPE = "any"
OBJECT_TYPE = "object"

_PRIMITIVE_TYPES: dict[str, str] = {
    "integer": "number",
}


class ModuleCodegen:
    """Collects typedefs and operations for one generated module.

    Type resolution registers new typedefs in ``scope`` as a side effect and
    imports typedefs that other modules already generated for the same
    schema location.
    """

    def __init__(
        self,
        *,
        filename: str,
        scope: Scope,
        api_name: Optional[str] = None,
        alias_scalar_typedefs: bool = False,
        warnings: Optional[list[str]] = None,
        empty_definitions: Optional[set[str]] = None,
    ) -> None:
        self.filename = filename
        self.scope = scope
        self.api_name = api_name
        self.alias_scalar_typedefs = alias_scalar_typedefs
        self.typedefs: list[Typedef] = []
        self.operations: list[OperationDescriptor] = []
        self.warnings = warnings if warnings is not None else []
        # Schema paths registered under a name that has no typedef body.
        self.empty_definitions = empty_definitions if empty_definitions is not None else set()
        self._reported_empty: set[str] = set()

    def resolve_type(self, schema: Optional[SchemaNode], new_name: Optional[str] = None) -> str:
        """Resolve a schema into a type expression.

        Args:
            schema (Optional[SchemaNode]): Schema to resolve.
            new_name (Optional[str]): Name for a typedef generated from the
                schema, if the schema needs one.

        Returns:
            str: A TypeScript type expression.
        """
        if schema is None:
            return UNDEFINED_TYPE

        existing = self.find_definition(schema.path)
        if existing is not None:
            local_name = self.scope.import_symbol(existing.local_name)
            self._report_empty_reference(local_name, existing)
            return local_name

        if isinstance(schema, SchemaReference):
            self.warn(f"Unresolved cyclic reference {schema.pointer} resolved as '{ANY_TYPE}'")
            return ANY_TYPE

        return self._resolve_body(schema, new_name)

    def find_definition(self, spec_path: Optional[str]) -> Optional[SymbolDefinition]:
        """Return the nearest definition generated from ``spec_path``."""
        if spec_path is None:
            return None
        entry = self.scope.find(
            lambda candidate: isinstance(candidate, SymbolDefinition)
            and candidate.spec_path == spec_path
        )
        return entry if isinstance(entry, SymbolDefinition) else None

    def _resolve_body(self, schema: Schema, new_name: Optional[str]) -> str:
        if schema.kind is SchemaKind.MERGE:
            if not schema.members:
                return ANY_TYPE
            return " & ".join(self.resolve_type(member) for member in schema.members)

        if schema.kind is SchemaKind.ARRAY:
            item_name = f"{new_name}Item" if new_name else None
            return f"Array<{self.resolve_type(schema.items, item_name)}>"

        if schema.kind is SchemaKind.OBJECT:
            if new_name:
                return self.generate_typedef(new_name, schema)
            return OBJECT_TYPE

        if schema.kind is SchemaKind.ENUM:
            if not schema.enum_values:
                return "never"
            return join_union(literal_expression(value) for value in schema.enum_values)

        if schema.kind is SchemaKind.UNTYPED:
            return ANY_TYPE

        return join_union(
            _PRIMITIVE_TYPES.get(primitive, primitive) for primitive in schema.primitive_types
        )

    def generate_typedef(self, name: str, schema: SchemaNode) -> str:
        """Register ``name`` for ``schema`` and collect its typedef body.

        Args:
            name (str): Name of the typedef in this module.
            schema (SchemaNode): Schema the typedef describes.

        Returns:
            str: ``name``.

        Raises:
            SymbolConflictError: ``name`` is already defined in this module.
        """
        existing = self.find_definition(schema.path)
        if existing is not None:
            # Another name already owns this schema; alias it instead of copying the body.
            self.scope.define(name)
            target = self.scope.import_symbol(existing.local_name)
            self._report_empty_reference(target, existing)
            description = schema.description if isinstance(schema, Schema) else None
            self.typedefs.append(AliasTypedef(name=name, expression=target, description=description))
            logger.debug("Aliased %s to %s in %s", name, target, self.filename)
            return name

        self.scope.define(name, spec_path=schema.path)
        typedef = self._build_typedef(name, schema)
        if typedef is None:
            if schema.path is not None:
                self.empty_definitions.add(schema.path)
            self.warn(f"No typedef body generated for '{name}' ({schema.path})")
        else:
            self.typedefs.append(typedef)
            logger.debug("Generated %s typedef %s in %s", typedef.kind, name, self.filename)
        return name

    def _build_typedef(self, name: str, schema: SchemaNode) -> Optional[Typedef]:
        if isinstance(schema, SchemaReference):
            return None

        if schema.kind is SchemaKind.OBJECT:
            fields = tuple(
                FieldDef(
                    name=property_name,
                    type_expression=self.resolve_type(property_schema),
                    required=property_name in schema.required,
                    doc=property_schema.description
                    if isinstance(property_schema, Schema)
                    else None,
                )
                for property_name, property_schema in schema.properties.items()
            )
            return ObjectTypedef(name=name, fields=fields, description=schema.description)

        if schema.kind is SchemaKind.ARRAY:
            return ArrayTypedef(
                name=name,
                item=self.resolve_type(schema.items),
                description=schema.description,
            )

        if schema.is_string_enum:
            return EnumTypedef(
                name=name,
                variants=tuple(quote_literal(str(value)) for value in schema.enum_values),
                description=schema.description,
            )

        if schema.kind is SchemaKind.MERGE:
            return UnionTypedef(
                name=name,
                members=tuple(
                    self.resolve_type(member, f"{name}UnionMember{index}")
                    for index, member in enumerate(schema.members)
                ),
                description=schema.description,
            )

        if self.alias_scalar_typedefs:
            return AliasTypedef(
                name=name,
                expression=self._resolve_body(schema, None),
                description=schema.description,
            )
        return None

    def _report_empty_reference(self, local_name: str, definition: SymbolDefinition) -> None:
        spec_path = definition.spec_path
        if spec_path is None or spec_path not in self.empty_definitions:
            return
        if spec_path in self._reported_empty:
            return
        self._reported_empty.add(spec_path)
        self.warn(
            f"'{local_name}' in {self.filename} refers to a name without a typedef body; "
            "enable alias_scalar_typedefs to emit it"
        )

    def warn(self, message: str) -> None:
        """Log a non-fatal warning and record it for the run result."""
        logger.warning(message)
        self.warnings.append(message)
