"""Command line interface for OpenAPI to TypeScript client generation."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from .config import ConfigError, load_config
from .generator import run_generation
from .loader import OpenAPILoadError
from .operations import UnresolvedPathParameterError
from .resolver import ResolveError
from .schema import SchemaPathError
from .scope import SymbolConflictError
from .writer import WriteError

_GENERATION_ERRORS = (
    ConfigError,
    OpenAPILoadError,
    ResolveError,
    SchemaPathError,
    SymbolConflictError,
    UnresolvedPathParameterError,
    WriteError,
)


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser."""
    parser = argparse.ArgumentParser(
        prog="openapi-to-ts-client",
        description="Generate a typed TypeScript client library from an OpenAPI document",
    )
    parser.add_argument("--input", help="Path to an OpenAPI YAML or JSON file")
    parser.add_argument("--output", help="Output directory for the generated modules")
    parser.add_argument("--config", help="YAML file with generator settings")
    parser.add_argument("--default-api", help="API class for operations without a tagged class")
    parser.add_argument(
        "--alias-scalar-typedefs",
        action="store_true",
        default=None,
        help=(
            "Emit type aliases for named scalar schemas; without it, references to "
            "such schemas import names that are never exported"
        ),
    )
    parser.add_argument(
        "--no-runtime-client",
        action="store_false",
        dest="emit_runtime_client",
        default=None,
        help="Do not emit the runtime HTTP client module",
    )
    parser.add_argument(
        "--overwrite",
        action="store_true",
        default=None,
        help="Replace the output directory if it exists",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run CLI and return process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(
            Path(args.config) if args.config else None,
            input_path=args.input,
            output_dir=args.output,
            default_api_name=args.default_api,
            alias_scalar_typedefs=args.alias_scalar_typedefs,
            emit_runtime_client=args.emit_runtime_client,
            overwrite=args.overwrite,
        )
        result = run_generation(config)
    except _GENERATION_ERRORS as exc:
        parser.error(str(exc))
        return 2

    for warning in result.warnings:
        print(f"Warning: {warning}")
    print(f"Generated {len(result.files)} files in {result.output_dir}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
