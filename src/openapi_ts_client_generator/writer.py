"""Filesystem writer for generated modules."""

from __future__ import annotations

from collections.abc import Iterable
import logging
from pathlib import Path
import shutil

from .model_types import GeneratedFile

logger = logging.getLogger(__name__)


class WriteError(RuntimeError):
    """Raised when output files cannot be written."""


def prepare_output_dir(output_dir: Path, *, overwrite: bool) -> None:
    """Create the output directory.

    Args:
        output_dir (Path): Root output directory to create.
        overwrite (bool): Replace an existing directory instead of failing.
    """
    if output_dir.exists():
        if not overwrite:
            raise WriteError(f"Output directory already exists: {output_dir}")
        if not output_dir.is_dir():
            raise WriteError(f"Output path is not a directory: {output_dir}")
        try:
            shutil.rmtree(output_dir)
        except OSError as exc:
            raise WriteError(f"Failed to clear output directory {output_dir}: {exc}") from exc
    try:
        output_dir.mkdir(parents=True, exist_ok=False)
    except OSError as exc:
        raise WriteError(f"Failed to create output directory {output_dir}: {exc}") from exc


def write_generated_files(
    files: Iterable[GeneratedFile],
    output_dir: Path,
    *,
    overwrite: bool = False,
) -> list[Path]:
    """Write generated modules below ``output_dir``.

    Args:
        files (Iterable[GeneratedFile]): Rendered modules, paths relative to ``output_dir``.
        output_dir (Path): Root output directory; must not exist unless ``overwrite``.
        overwrite (bool): Replace an existing output directory.

    Returns:
        list[Path]: Written file paths in write order.
    """
    prepare_output_dir(output_dir, overwrite=overwrite)
    written: list[Path] = []
    for generated in files:
        target = output_dir / generated.path
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(generated.contents, encoding="utf-8")
        except OSError as exc:
            raise WriteError(f"Failed to write file {target}: {exc}") from exc
        logger.info("Wrote %s", target)
        written.append(target)
    return written
