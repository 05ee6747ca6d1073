"""OpenAPI to TypeScript client generator package."""

from __future__ import annotations

from .cli import main
from .config import GeneratorConfig, load_config
from .generator import generate_files, run_generation
from .model_types import GeneratedFile, GenerationResult

__all__ = [
    "GeneratedFile",
    "GenerationResult",
    "GeneratorConfig",
    "generate_files",
    "load_config",
    "main",
    "run_generation",
]
