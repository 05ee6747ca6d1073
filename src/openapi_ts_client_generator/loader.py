"""OpenAPI document loading and version checks."""

from __future__ import annotations

from pathlib import Path
from typing import cast

import yaml

from .json_types import JSONObject, JSONValue, MutableJSONObject


class OpenAPILoadError(RuntimeError):
    """Raised when a source OpenAPI document cannot be loaded."""


def load_openapi_document(path: Path) -> MutableJSONObject:
    """Load an OpenAPI document from YAML or JSON.

    Mapping keys are normalized to strings, so unquoted status codes such as
    ``200`` are addressable by JSON pointers.

    Args:
        path (Path): Location of the document.

    Returns:
        MutableJSONObject: The parsed document.
    """
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle)
    except OSError as exc:
        raise OpenAPILoadError(f"Failed to read OpenAPI file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise OpenAPILoadError(f"Failed to parse YAML in {path}: {exc}") from exc

    if not isinstance(payload, dict):
        raise OpenAPILoadError(
            f"OpenAPI document must deserialize to a mapping, got {type(payload)!r}"
        )

    return cast(MutableJSONObject, _normalize_keys(payload))


def get_openapi_version(document: JSONObject) -> str:
    """Return the declared OpenAPI version string."""
    version = document.get("openapi")
    if not isinstance(version, str) or not version.strip():
        raise OpenAPILoadError("Missing or invalid 'openapi' version field")
    return version.strip()


def ensure_supported_version(version: str) -> None:
    """Validate that the input version is OpenAPI v3+."""
    major_text = version.split(".", maxsplit=1)[0]
    try:
        major = int(major_text)
    except ValueError as exc:
        raise OpenAPILoadError(f"Unable to parse OpenAPI version: {version}") from exc
    if major < 3:
        raise OpenAPILoadError(f"Unsupported OpenAPI version {version}; only v3+ is supported")


def _normalize_keys(value: JSONValue) -> JSONValue:
    if isinstance(value, dict):
        return {str(key): _normalize_keys(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_normalize_keys(item) for item in value]
    return value
