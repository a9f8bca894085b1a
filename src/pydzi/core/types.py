"""Shared type definitions for pydzi core module."""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple


class TileRect(NamedTuple):
    """Crop rectangle of one tile in a level's working copy.

    Attributes:
        col: Column index (0-based)
        row: Row index (0-based)
        x: Left edge in pixels
        y: Top edge in pixels
        width: Width in pixels, clipped to the image
        height: Height in pixels, clipped to the image
    """

    col: int
    row: int
    x: int
    y: int
    width: int
    height: int

    def filename(self, tile_format: str) -> str:
        return f"{self.col}_{self.row}.{tile_format}"


@dataclass
class LevelInfo:
    """Information about a pyramid level.

    Attributes:
        level: Level index (max level = full resolution, 0 = ~1 pixel)
        width: Width of the level's raster in pixels
        height: Height of the level's raster in pixels
        cols: Number of tile columns at this level
        rows: Number of tile rows at this level
    """

    level: int
    width: int
    height: int
    cols: int
    rows: int

    @property
    def tile_count(self) -> int:
        return self.cols * self.rows


@dataclass(frozen=True)
class DescriptorInfo:
    """Values stored in a Deep Zoom descriptor.

    Width and height are always the source image's dimensions.
    """

    tile_size: int
    overlap: int
    format: str
    width: int
    height: int
