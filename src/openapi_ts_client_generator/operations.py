"""Resolve API operations into operation descriptors."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
import logging
from typing import Any, Optional

from .model_types import OperationDescriptor, OperationSpec, ParameterDef, ResponseTranslation
from .naming import (
    capitalize,
    content_type_label,
    operation_method_name,
    remove_duplicates,
    sanitize_identifier,
    status_code_label,
    type_name,
)
from .schema import (
    Schema,
    SchemaKind,
    TranslationStep,
    follow_schema_path,
    parse_schema,
)
from .resolver import canonical_path
from .type_resolver import ModuleCodegen
from .typescript import (
    RESPONSE_VARIABLE,
    join_union,
    path_placeholders,
    path_template_expression,
    status_code_range,
)

logger = logging.getLogger(__name__)

HTTP_METHODS: tuple[str, ...] = (
    "get",
    "put",
    "post",
    "delete",
    "patch",
    "head",
    "options",
    "trace",
)

CLASS_EXTENSION = "x-codegen-class"
METHOD_NAME_EXTENSION = "x-codegen-method-name"
TRANSLATE_RESPONSE_EXTENSION = "x-codegen-translate-response"

JSON_MEDIA_TYPE = "application/json"
VOID_TYPE = "void"
BODY_ARGUMENT = "payload"


class UnresolvedPathParameterError(RuntimeError):
    """Raised when a path template names a parameter the operation does not declare."""


def collect_operations(document: Mapping[str, Any]) -> list[OperationSpec]:
    """Return every path and method pair of the document, in document order."""
    paths = document.get("paths")
    if not isinstance(paths, Mapping):
        return []

    operations: list[OperationSpec] = []
    for path, path_item in paths.items():
        if not isinstance(path_item, Mapping):
            continue
        for method, operation in path_item.items():
            if method not in HTTP_METHODS or not isinstance(operation, Mapping):
                continue
            operations.append(
                OperationSpec(path=path, method=method, operation=operation, path_item=path_item)
            )
    return operations


def resolve_api_name(
    operation: Mapping[str, Any],
    tag_definitions: list[Any],
    default_api_name: str,
) -> str:
    """Return the API group an operation belongs to.

    The group is the ``x-codegen-class`` of the first operation tag whose
    definition carries one.
    """
    tags = operation.get("tags")
    if not isinstance(tags, list):
        return default_api_name
    for tag in tags:
        for definition in tag_definitions:
            if not isinstance(definition, Mapping) or definition.get("name") != tag:
                continue
            class_name = definition.get(CLASS_EXTENSION)
            if isinstance(class_name, str) and class_name:
                return sanitize_identifier(class_name)
            break
    return default_api_name


def group_operations(
    document: Mapping[str, Any],
    default_api_name: str,
) -> dict[str, list[OperationSpec]]:
    """Group operations by API name, preserving first-seen order."""
    raw_tags = document.get("tags")
    tag_definitions = list(raw_tags) if isinstance(raw_tags, list) else []
    grouped: dict[str, list[OperationSpec]] = {}
    for spec in collect_operations(document):
        api_name = resolve_api_name(spec.operation, tag_definitions, default_api_name)
        grouped.setdefault(api_name, []).append(spec)
    return grouped


class _ArgumentNames:
    """Hands out argument identifiers unique within one generated method."""

    def __init__(self) -> None:
        self._used = [RESPONSE_VARIABLE]

    def unique(self, base: str) -> str:
        name = base
        nonce = 1
        while name in self._used:
            nonce += 1
            name = f"{base}{nonce}"
        self._used.append(name)
        return name


def generate_operation(codegen: ModuleCodegen, spec: OperationSpec) -> OperationDescriptor:
    """Resolve one operation and append it to ``codegen.operations``.

    Args:
        codegen (ModuleCodegen): Module the operation is generated into.
        spec (OperationSpec): The operation and its path item.

    Returns:
        OperationDescriptor: The resolved operation.

    Raises:
        UnresolvedPathParameterError: The path names an undeclared parameter.
        SchemaPathError: A response translation path cannot be followed.
    """
    operation = spec.operation
    name = operation_name(spec)
    arguments = _ArgumentNames()

    parameters: list[ParameterDef] = []
    for parameter in _merged_parameters(spec):
        parameter_name = str(parameter.get("name"))
        location = str(parameter.get("in", "query"))
        schema = parse_schema(parameter.get("schema"))
        if schema is None:
            codegen.warn(f"Parameter '{parameter_name}' of {name} has no schema")
        parameters.append(
            ParameterDef(
                argument_name=arguments.unique(sanitize_identifier(parameter_name)),
                type_expression=codegen.resolve_type(
                    schema, f"{capitalize(name)}{type_name(parameter_name)}Parameter"
                ),
                location=location,
                path_name=parameter_name,
                description=_string_or_none(parameter.get("description")),
                required=location == "path" or bool(parameter.get("required")),
            )
        )

    body_parameter: Optional[str] = None
    request_body = operation.get("requestBody")
    request_schema = _media_schema(request_body, JSON_MEDIA_TYPE)
    if request_schema is not None:
        request_type = codegen.resolve_type(
            parse_schema(request_schema), f"{capitalize(name)}Request"
        )
        body_parameter = arguments.unique(BODY_ARGUMENT)
        parameters.append(
            ParameterDef(
                argument_name=body_parameter,
                type_expression=request_type,
                location="body",
                description="Request body",
                required=isinstance(request_body, Mapping) and bool(request_body.get("required")),
            )
        )

    return_types, translations = _resolve_responses(codegen, operation, name)
    if not return_types:
        return_types.append(VOID_TYPE)

    descriptor = OperationDescriptor(
        name=name,
        method=spec.method,
        path=spec.path,
        path_expression=_path_expression(spec.path, parameters, name),
        parameters=_mark_optional(parameters),
        return_type=join_union(remove_duplicates(return_types)),
        response_translations=tuple(translations),
        body_parameter=body_parameter,
        documentation=operation_documentation(operation, parameters),
    )
    codegen.operations.append(descriptor)
    logger.debug("Generated operation %s %s as %s", spec.method.upper(), spec.path, name)
    return descriptor


def operation_name(spec: OperationSpec) -> str:
    """Return the method name for an operation."""
    for key in ("operationId", METHOD_NAME_EXTENSION):
        explicit = spec.operation.get(key)
        if isinstance(explicit, str) and explicit.strip():
            return sanitize_identifier(explicit.strip())
    return operation_method_name(spec.path, spec.method)


def _merged_parameters(spec: OperationSpec) -> list[Mapping[str, Any]]:
    merged: dict[tuple[str, str], Mapping[str, Any]] = {}
    for source in (spec.path_item, spec.operation):
        raw = source.get("parameters")
        if not isinstance(raw, list):
            continue
        for parameter in raw:
            if isinstance(parameter, Mapping) and isinstance(parameter.get("name"), str):
                merged[(parameter["name"], str(parameter.get("in", "query")))] = parameter
    return list(merged.values())


def _media_schema(container: Any, media_type: str) -> Optional[Mapping[str, Any]]:
    if not isinstance(container, Mapping):
        return None
    content = container.get("content")
    if not isinstance(content, Mapping):
        return None
    media = content.get(media_type)
    if not isinstance(media, Mapping):
        return None
    schema = media.get("schema")
    return schema if isinstance(schema, Mapping) else None


def _resolve_responses(
    codegen: ModuleCodegen,
    operation: Mapping[str, Any],
    name: str,
) -> tuple[list[str], list[ResponseTranslation]]:
    return_types: list[str] = []
    translations: list[ResponseTranslation] = []

    responses = operation.get("responses")
    if not isinstance(responses, Mapping):
        codegen.warn(f"Operation {name} declares no responses")
        return return_types, translations

    declared_status_codes = [str(status_code) for status_code in responses]
    for status_code, response in responses.items():
        if not isinstance(response, Mapping):
            continue
        content = response.get("content")
        if not isinstance(content, Mapping):
            continue
        for content_type, media in content.items():
            if not isinstance(media, Mapping):
                continue
            schema = parse_schema(media.get("schema"))
            if schema is None:
                codegen.warn(f"Response {status_code} {content_type} of {name} has no schema")
            translation = media.get(TRANSLATE_RESPONSE_EXTENSION)

            steps: tuple[TranslationStep, ...] = ()
            property_path: Optional[str] = None
            if isinstance(translation, str) and translation:
                schema, steps = follow_schema_path(schema, translation)
                property_path = translation
            elif isinstance(schema, Schema) and _is_inline_wrapper(schema, media):
                property_path, schema = next(iter(schema.properties.items()))
                steps = (TranslationStep(kind="property", name=property_path),)

            if property_path is not None:
                translations.append(
                    ResponseTranslation(
                        status_code=str(status_code),
                        content_type=content_type,
                        property_path=property_path,
                        steps=steps,
                        shadowed_status_codes=_shadowed_status_codes(
                            str(status_code), declared_status_codes
                        ),
                    )
                )

            label = status_code_label(str(status_code))
            if len(content) > 1:
                label += content_type_label(content_type)
            return_types.append(codegen.resolve_type(schema, f"{capitalize(name)}{label}Response"))

    # Exact codes are tested before ranges, ranges before default.
    translations.sort(key=lambda translation: _status_rank(translation.status_code))
    return return_types, translations


def _is_inline_wrapper(schema: Schema, media: Mapping[str, Any]) -> bool:
    # Only anonymous response objects are unwrapped; named schemas are returned whole.
    if schema.kind is not SchemaKind.OBJECT or len(schema.properties) != 1:
        return False
    media_path = canonical_path(media)
    return schema.path is None or media_path is None or schema.path == f"{media_path}/schema"


def _status_rank(status_code: str) -> int:
    if status_code.isdigit():
        return 0
    if status_code_range(status_code) is not None:
        return 1
    return 2


def _shadowed_status_codes(status_code: str, declared: list[str]) -> tuple[str, ...]:
    """Return the declared codes a range or default response must not match."""
    rank = _status_rank(status_code)
    if rank == 0:
        return ()
    if rank == 1:
        leading_digit = status_code_range(status_code) or ""
        return tuple(
            code for code in declared if _status_rank(code) == 0 and code.startswith(leading_digit)
        )
    return tuple(code for code in declared if code != status_code and _status_rank(code) < 2)


def _path_expression(path: str, parameters: list[ParameterDef], name: str) -> str:
    arguments: dict[str, str] = {}
    for placeholder in path_placeholders(path):
        parameter = next(
            (candidate for candidate in parameters if candidate.path_name == placeholder),
            None,
        )
        if parameter is None:
            raise UnresolvedPathParameterError(
                f"parameter '{placeholder}' used in path but not defined ({name})"
            )
        arguments[placeholder] = parameter.argument_name
    return path_template_expression(path, arguments)


def _mark_optional(parameters: list[ParameterDef]) -> tuple[ParameterDef, ...]:
    # Only a trailing run of non-required arguments can be optional.
    marked = list(parameters)
    for index in range(len(marked) - 1, -1, -1):
        if marked[index].required:
            break
        marked[index] = replace(marked[index], optional=True)
    return tuple(marked)


def operation_documentation(operation: Mapping[str, Any], parameters: list[ParameterDef]) -> str:
    """Build the documentation text of a generated method.

    Summary, then description, then one ``@param`` line per described parameter.
    """
    sections: list[str] = []
    summary = _string_or_none(operation.get("summary"))
    if summary:
        sections.append(summary)
    description = _string_or_none(operation.get("description"))
    if description:
        sections.append(description)
    param_lines = [
        f"@param {parameter.argument_name} - {parameter.description}"
        for parameter in parameters
        if parameter.description
    ]
    if param_lines:
        sections.append("\n".join(param_lines))
    return "\n\n".join(sections)


def _string_or_none(value: Any) -> Optional[str]:
    if isinstance(value, str):
        stripped = value.strip()
        if stripped:
            return stripped
    return None
