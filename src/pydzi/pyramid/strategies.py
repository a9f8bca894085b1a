"""Tile writers: how one level's working copy becomes tile files.

Both writers name tiles ``<col>_<row>.<format>``. With zero overlap they
produce the same set of files; they differ in how many backend calls that
takes.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from pydzi.backends.base import ImageBackend
from pydzi.core.errors import ConfigurationError
from pydzi.core.geometry import overlap_tiles

logger = logging.getLogger(__name__)


class TileWriter(ABC):
    """Writes the tiles of one pyramid level."""

    #: Strategy name used in options and on the CLI
    name: str = ""

    def __init__(
        self,
        backend: ImageBackend,
        tile_size: int,
        tile_format: str,
        quality: float | None = None,
        overlap: int = 0,
    ) -> None:
        self.backend = backend
        self.tile_size = tile_size
        self.tile_format = tile_format
        self.quality = quality
        self.overlap = overlap

    @abstractmethod
    def write_level(self, work_path: Path, level_dir: Path) -> int:
        """Write every tile of ``work_path`` into ``level_dir``.

        Returns:
            Number of tiles written
        """


class GridTileWriter(TileWriter):
    """Uniform non-overlapping grid, cut by the backend in a single call."""

    name = "grid"

    def __init__(
        self,
        backend: ImageBackend,
        tile_size: int,
        tile_format: str,
        quality: float | None = None,
        overlap: int = 0,
    ) -> None:
        if overlap:
            logger.debug("Grid tiling ignores overlap=%d", overlap)
        super().__init__(backend, tile_size, tile_format, quality, overlap=0)

    def write_level(self, work_path: Path, level_dir: Path) -> int:
        return self.backend.crop_to_grid(
            work_path, level_dir, self.tile_size, self.tile_format, self.quality
        )


class OverlapTileWriter(TileWriter):
    """Border/interior tiles sharing an overlap strip, one crop per tile."""

    name = "overlap"

    def write_level(self, work_path: Path, level_dir: Path) -> int:
        width, height = self.backend.query_dimensions(work_path)
        count = 0
        for rect in overlap_tiles(width, height, self.tile_size, self.overlap):
            self.backend.crop(
                work_path, level_dir / rect.filename(self.tile_format), rect, self.quality
            )
            count += 1
        return count


TILE_STRATEGIES: dict[str, type[TileWriter]] = {
    GridTileWriter.name: GridTileWriter,
    OverlapTileWriter.name: OverlapTileWriter,
}


def create_tile_writer(
    strategy: str,
    backend: ImageBackend,
    tile_size: int,
    tile_format: str,
    quality: float | None = None,
    overlap: int = 0,
) -> TileWriter:
    """Instantiate the tile writer registered under ``strategy``.

    Raises:
        ConfigurationError: If the strategy is unknown
    """
    try:
        writer_cls = TILE_STRATEGIES[strategy]
    except KeyError:
        raise ConfigurationError(
            f"Unknown tiling strategy {strategy!r}, expected one of {sorted(TILE_STRATEGIES)}"
        ) from None
    return writer_cls(backend, tile_size, tile_format, quality, overlap)
