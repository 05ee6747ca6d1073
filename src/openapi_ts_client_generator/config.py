"""Generator configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
import yaml


class ConfigError(RuntimeError):
    """Raised when generator configuration is invalid."""


class GeneratorConfig(BaseModel):
    """Settings for one generation run."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    input_path: Path
    output_dir: Path
    default_api_name: str = "DefaultApi"
    client_module: str = "client.ts"
    definitions_module: str = "definitions.ts"
    apis_dir: str = "apis"
    index_module: str = "index.ts"
    emit_runtime_client: bool = True
    alias_scalar_typedefs: bool = Field(
        default=False,
        description=(
            "Emit 'export type Name = <expr>' for named schemas that are neither "
            "objects, arrays, string enums nor allOf merges. When disabled such "
            "schemas are registered for deduplication but produce no typedef body."
        ),
    )
    overwrite: bool = False

    @field_validator("client_module", "definitions_module", "index_module")
    @classmethod
    def _require_typescript_module(cls, value: str) -> str:
        if not value.endswith(".ts"):
            raise ValueError(f"module path must end with '.ts': {value}")
        return value

    @field_validator("default_api_name")
    @classmethod
    def _require_identifier(cls, value: str) -> str:
        if not value.isidentifier():
            raise ValueError(f"API name must be an identifier: {value}")
        return value

    def api_module(self, api_name: str) -> str:
        """Return the output path of the module for ``api_name``."""
        return f"{self.apis_dir.strip('/')}/{api_name}.ts" if self.apis_dir else f"{api_name}.ts"


def build_config(**values: Any) -> GeneratorConfig:
    """Validate keyword settings into a ``GeneratorConfig``."""
    try:
        return GeneratorConfig.model_validate(values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid generator configuration: {exc}") from exc


def load_config(path: Optional[Path], **overrides: Any) -> GeneratorConfig:
    """Load settings from a YAML file and apply non-``None`` overrides.

    Args:
        path (Optional[Path]): Config file, or ``None`` to use overrides only.
        **overrides (Any): Settings taking precedence over the file.

    Returns:
        GeneratorConfig: Validated configuration.
    """
    values: dict[str, Any] = {}
    if path is not None:
        try:
            with path.open("r", encoding="utf-8") as handle:
                loaded = yaml.safe_load(handle)
        except OSError as exc:
            raise ConfigError(f"Failed to read config file {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse YAML in {path}: {exc}") from exc
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        values.update(loaded)
        # Relative paths in a config file are relative to the file.
        for key in ("input_path", "output_dir"):
            if isinstance(values.get(key), str) and not Path(values[key]).is_absolute():
                values[key] = path.parent / values[key]

    values.update({key: value for key, value in overrides.items() if value is not None})
    return build_config(**values)
