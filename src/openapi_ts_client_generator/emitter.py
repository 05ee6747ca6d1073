"""Render collected module data into TypeScript source with Jinja2."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import posixpath

import jinja2

from .model_types import GeneratedFile
from .scope import SEPARATOR, Scope, SymbolDefinition
from .type_resolver import ModuleCodegen
from .typescript import doc_comment, property_key, status_condition, unwrap_accessor

_MODULE_SUFFIX = ".ts"


@dataclass(frozen=True)
class ImportGroup:
    """Names imported from one module."""

    source: str
    names: tuple[str, ...]


@dataclass(frozen=True)
class ExportEntry:
    """A symbol re-exported by the index module."""

    source: str
    short_name: str


@lru_cache(maxsize=1)
def _environment() -> jinja2.Environment:
    env = jinja2.Environment(
        loader=jinja2.PackageLoader("openapi_ts_client_generator", "templates"),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=jinja2.StrictUndefined,
    )
    env.filters["ts_doc"] = doc_comment
    env.filters["ts_key"] = property_key
    env.filters["status_condition"] = status_condition
    env.filters["unwrap_accessor"] = unwrap_accessor
    return env


def module_specifier(from_file: str, to_file: str) -> str:
    """Return the relative import specifier of ``to_file`` as seen from ``from_file``.

    ``apis/DefaultApi.ts`` importing ``definitions.ts`` gets ``../definitions``.
    """
    relative = posixpath.relpath(to_file, posixpath.dirname(from_file) or ".")
    if relative.endswith(_MODULE_SUFFIX):
        relative = relative[: -len(_MODULE_SUFFIX)]
    if not relative.startswith("."):
        relative = f"./{relative}"
    return relative


def module_imports(filename: str, scope: Scope) -> list[ImportGroup]:
    """Group the import entries of ``scope`` by source module.

    Args:
        filename (str): Path of the module being rendered.
        scope (Scope): The module's scope.

    Returns:
        list[ImportGroup]: One group per source module, in first-import order.
    """
    grouped: dict[str, list[str]] = {}
    for entry in scope.imports():
        source_symbol = scope.get_entry(entry.source)
        if not isinstance(source_symbol, SymbolDefinition) or source_symbol.defined_in is None:
            raise LookupError(f"Imported symbol '{entry.source}' has no defining module")
        short_name = source_symbol.local_name.rsplit(SEPARATOR, maxsplit=1)[-1]
        rendered = short_name
        if short_name != entry.local_name:
            rendered = f"{short_name} as {entry.local_name}"
        specifier = module_specifier(filename, source_symbol.defined_in)
        grouped.setdefault(specifier, []).append(rendered)
    return [ImportGroup(source=source, names=tuple(names)) for source, names in grouped.items()]


def render_module(codegen: ModuleCodegen) -> GeneratedFile:
    """Render the typedefs and API class collected in ``codegen``."""
    template = _environment().get_template("module.ts.j2")
    contents = template.render(
        imports=module_imports(codegen.filename, codegen.scope),
        typedefs=codegen.typedefs,
        api_name=codegen.api_name,
        operations=codegen.operations,
    )
    return GeneratedFile(path=codegen.filename, contents=contents)


def index_exports(root: Scope, filename: str) -> list[ExportEntry]:
    """Return the public symbols of the run, relative to ``filename``."""
    exports: list[ExportEntry] = []
    for entry in root.public_definitions():
        if entry.defined_in is None:
            continue
        exports.append(
            ExportEntry(
                source=module_specifier(filename, entry.defined_in),
                short_name=entry.local_name.rsplit(SEPARATOR, maxsplit=1)[-1],
            )
        )
    return exports


def render_index(root: Scope, filename: str) -> GeneratedFile:
    """Render the index module re-exporting every public symbol."""
    template = _environment().get_template("index.ts.j2")
    contents = template.render(exports=index_exports(root, filename))
    return GeneratedFile(path=filename, contents=contents)


def render_runtime_client(filename: str) -> GeneratedFile:
    """Render the HTTP client base class generated API classes extend."""
    template = _environment().get_template("client.ts.j2")
    return GeneratedFile(path=filename, contents=template.render())
