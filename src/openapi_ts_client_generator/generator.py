"""High-level generator orchestration."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
import logging
from typing import Any, Optional

from .config import GeneratorConfig
from .emitter import render_index, render_module, render_runtime_client
from .loader import ensure_supported_version, get_openapi_version, load_openapi_document
from .model_types import GeneratedFile, GenerationResult
from .naming import sanitize_identifier
from .operations import generate_operation, group_operations
from .resolver import dereference
from .schema import parse_schema
from .scope import Scope
from .type_resolver import ModuleCodegen
from .writer import write_generated_files

logger = logging.getLogger(__name__)

ROOT_SCOPE_NAME = "root"
CLIENT_SCOPE_NAME = "client"
CLIENT_SYMBOL = "Client"
DEFINITIONS_SCOPE_NAME = "definitions"


def generate_files(
    document: Mapping[str, Any],
    config: GeneratorConfig,
    *,
    warnings: Optional[list[str]] = None,
    api_names: Optional[list[str]] = None,
) -> Iterator[GeneratedFile]:
    """Lazily generate the client library modules for a dereferenced document.

    Yields the runtime client (when enabled), the definitions module, one
    module per API group and finally the index module. Every element is fully
    rendered before the next one is computed.

    Args:
        document (Mapping[str, Any]): Document produced by ``dereference``.
        config (GeneratorConfig): Generation settings.
        warnings (Optional[list[str]]): Collects non-fatal warnings when given.
        api_names (Optional[list[str]]): Collects generated API group names when given.

    Yields:
        GeneratedFile: Rendered modules.
    """
    collected_warnings = warnings if warnings is not None else []
    root = Scope(ROOT_SCOPE_NAME)
    empty_definitions: set[str] = set()

    client_scope = root.scope(CLIENT_SCOPE_NAME, config.client_module)
    client_scope.define(CLIENT_SYMBOL, public=True)
    if config.emit_runtime_client:
        yield render_runtime_client(config.client_module)

    definitions = ModuleCodegen(
        filename=config.definitions_module,
        scope=root.scope(DEFINITIONS_SCOPE_NAME, config.definitions_module),
        alias_scalar_typedefs=config.alias_scalar_typedefs,
        warnings=collected_warnings,
        empty_definitions=empty_definitions,
    )
    for name, raw_schema in _component_schemas(document).items():
        schema = parse_schema(raw_schema)
        if schema is None:
            message = f"Skipping component schema '{name}': not a schema object"
            logger.warning(message)
            collected_warnings.append(message)
            continue
        definitions.generate_typedef(sanitize_identifier(name), schema)
    yield render_module(definitions)

    for api_name, specs in group_operations(document, config.default_api_name).items():
        module_path = config.api_module(api_name)
        api_scope = root.scope(api_name, module_path)
        api_scope.import_symbol(f"{CLIENT_SCOPE_NAME}.{CLIENT_SYMBOL}", CLIENT_SYMBOL)
        api_scope.define(api_name, public=True)

        codegen = ModuleCodegen(
            filename=module_path,
            scope=api_scope,
            api_name=api_name,
            alias_scalar_typedefs=config.alias_scalar_typedefs,
            warnings=collected_warnings,
            empty_definitions=empty_definitions,
        )
        for spec in specs:
            generate_operation(codegen, spec)
        if api_names is not None:
            api_names.append(api_name)
        logger.info("Generated API %s with %d operations", api_name, len(codegen.operations))
        yield render_module(codegen)

    yield render_index(root, config.index_module)


def _component_schemas(document: Mapping[str, Any]) -> Mapping[str, Any]:
    components = document.get("components")
    if not isinstance(components, Mapping):
        return {}
    schemas = components.get("schemas")
    if not isinstance(schemas, Mapping):
        return {}
    return schemas


def run_generation(config: GeneratorConfig) -> GenerationResult:
    """Generate a TypeScript client library from an OpenAPI document.

    The whole file sequence is rendered before anything is written, so a
    failing run leaves no partial output behind.

    Args:
        config (GeneratorConfig): Input, output and generation settings.

    Returns:
        GenerationResult: Written files, API names and warnings.
    """
    document = load_openapi_document(config.input_path)
    ensure_supported_version(get_openapi_version(document))
    dereferenced = dereference(document)

    warnings: list[str] = []
    api_names: list[str] = []
    files = list(generate_files(dereferenced, config, warnings=warnings, api_names=api_names))
    written = write_generated_files(files, config.output_dir, overwrite=config.overwrite)

    return GenerationResult(
        output_dir=str(config.output_dir),
        files=tuple(path.relative_to(config.output_dir).as_posix() for path in written),
        api_names=tuple(api_names),
        warnings=tuple(warnings),
    )


__all__ = [
    "generate_files",
    "run_generation",
]
