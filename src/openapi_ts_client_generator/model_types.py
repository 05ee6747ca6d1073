"""Internal datatypes for generation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional, Union

from .json_types import JSONObject
from .schema import TranslationStep


@dataclass(frozen=True)
class FieldDef:
    """A single property of an object typedef."""

    name: str
    type_expression: str
    required: bool
    doc: Optional[str] = None


@dataclass(frozen=True)
class ObjectTypedef:
    """Named object type with fields."""

    kind: ClassVar[str] = "object"

    name: str
    fields: tuple[FieldDef, ...]
    description: Optional[str] = None


@dataclass(frozen=True)
class ArrayTypedef:
    """Named array type."""

    kind: ClassVar[str] = "array"

    name: str
    item: str
    description: Optional[str] = None


@dataclass(frozen=True)
class EnumTypedef:
    """Named union of quoted string literals."""

    kind: ClassVar[str] = "enum"

    name: str
    variants: tuple[str, ...]
    description: Optional[str] = None


@dataclass(frozen=True)
class UnionTypedef:
    """Named merge of ``allOf`` members."""

    kind: ClassVar[str] = "union"

    name: str
    members: tuple[str, ...]
    description: Optional[str] = None


@dataclass(frozen=True)
class AliasTypedef:
    """Named alias for a scalar type expression."""

    kind: ClassVar[str] = "alias"

    name: str
    expression: str
    description: Optional[str] = None


type Typedef = Union[ObjectTypedef, ArrayTypedef, EnumTypedef, UnionTypedef, AliasTypedef]


@dataclass(frozen=True)
class ParameterDef:
    """One argument of a generated operation method."""

    argument_name: str
    type_expression: str
    location: str
    path_name: Optional[str] = None
    description: Optional[str] = None
    required: bool = True
    optional: bool = False


@dataclass(frozen=True)
class ResponseTranslation:
    """Unwrap rule applied to the body of one status code and content type."""

    status_code: str
    content_type: str
    property_path: str
    steps: tuple[TranslationStep, ...]
    shadowed_status_codes: tuple[str, ...] = ()


@dataclass(frozen=True)
class OperationDescriptor:
    """Resolved description of one API operation."""

    name: str
    method: str
    path: str
    path_expression: str
    parameters: tuple[ParameterDef, ...]
    return_type: str
    response_translations: tuple[ResponseTranslation, ...] = ()
    body_parameter: Optional[str] = None
    documentation: str = ""

    @property
    def query_parameters(self) -> tuple[ParameterDef, ...]:
        """Parameters sent in the query string."""
        return tuple(parameter for parameter in self.parameters if parameter.location == "query")

    @property
    def header_parameters(self) -> tuple[ParameterDef, ...]:
        """Parameters sent as request headers."""
        return tuple(parameter for parameter in self.parameters if parameter.location == "header")


@dataclass(frozen=True)
class OperationSpec:
    """Operation metadata extracted from OpenAPI paths."""

    path: str
    method: str
    operation: JSONObject
    path_item: JSONObject


@dataclass(frozen=True)
class GeneratedFile:
    """One rendered output module."""

    path: str
    contents: str


@dataclass(frozen=True)
class GenerationResult:
    """Generation output metadata."""

    output_dir: str
    files: tuple[str, ...]
    api_names: tuple[str, ...]
    warnings: tuple[str, ...] = ()
