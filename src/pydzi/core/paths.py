"""Output path layout and file helpers."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OutputPaths:
    """Locations written by one pyramid.

    Attributes:
        levels_root_dir: ``<dir>/<name>_files``, one subdirectory per level
        descriptor_path: ``<dir>/<name>.<output_ext>``
    """

    levels_root_dir: Path
    descriptor_path: Path

    def level_dir(self, level: int) -> Path:
        return self.levels_root_dir / str(level)

    def exists(self) -> bool:
        return self.descriptor_path.is_file() or self.levels_root_dir.is_dir()


def resolve_output_paths(output_dir: str | Path, name: str, output_ext: str) -> OutputPaths:
    """Build the output paths for ``name`` under ``output_dir``."""
    output_dir = Path(output_dir)
    return OutputPaths(
        levels_root_dir=output_dir / f"{name}_files",
        descriptor_path=output_dir / f"{name}.{output_ext}",
    )


def remove_output(paths: OutputPaths) -> bool:
    """Delete the descriptor and tile directory if present.

    Returns:
        True if any of them existed before the call
    """
    existed = paths.exists()
    if paths.descriptor_path.is_file():
        paths.descriptor_path.unlink()
    if paths.levels_root_dir.is_dir():
        shutil.rmtree(paths.levels_root_dir)
    if existed:
        logger.info("Removed existing output for %s", paths.descriptor_path.stem)
    return existed


def split_filename(path: str | Path) -> tuple[str, str]:
    """Split a path into its base name and extension (without the dot).

    >>> split_filename("/images/map.tiff")
    ('map', 'tiff')
    """
    path = Path(path)
    return path.stem, path.suffix.lstrip(".")


def atomic_text_save(path: Path, text: str) -> None:
    """Atomically write text to a file.

    Writes to a temp file in the same directory, then replaces the target.
    ``os.replace()`` is atomic on both POSIX and Windows (same filesystem).
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(
        dir=path.parent, suffix=".tmp", prefix=path.stem
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
