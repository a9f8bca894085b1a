"""Level-by-level pyramid generation."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from pydzi.backends.base import ImageBackend

from .strategies import TileWriter

logger = logging.getLogger(__name__)


class LevelGenerator:
    """Walks the pyramid from the top level down to level 0.

    Each level is tiled from the current working copy, which is then halved
    in place for the next level. Halving always starts from the previous
    level's raster, so reductions compound instead of being recomputed from
    the source.
    """

    def __init__(
        self,
        backend: ImageBackend,
        tile_writer: TileWriter,
        resize_filter: str | None = None,
    ) -> None:
        self.backend = backend
        self.tile_writer = tile_writer
        self.resize_filter = resize_filter

    def run(
        self,
        work_path: Path,
        levels_root_dir: Path,
        top_level: int,
        progress_callback: Callable[[str, int, int], None] | None = None,
    ) -> dict[int, int]:
        """Generate levels ``top_level`` .. 0.

        Args:
            work_path: Working copy at full resolution; rewritten in place
            levels_root_dir: ``<name>_files`` directory
            top_level: Index of the full-resolution level
            progress_callback: Optional callback(stage, current, total)

        Returns:
            Mapping of level -> number of tiles written
        """
        total = top_level + 1
        tiles: dict[int, int] = {}
        for done, level in enumerate(range(top_level, -1, -1)):
            if progress_callback:
                progress_callback("level", done, total)
            level_dir = levels_root_dir / str(level)
            level_dir.mkdir(parents=True, exist_ok=True)

            tiles[level] = self.tile_writer.write_level(work_path, level_dir)
            logger.debug("Level %d: %d tiles", level, tiles[level])

            if level > 0:
                work_path = self.backend.halve(work_path, self.resize_filter)

        if progress_callback:
            progress_callback("level", total, total)
        return tiles
