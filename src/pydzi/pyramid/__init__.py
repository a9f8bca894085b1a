"""Pyramid generation: levels, tile writers and the run controller."""

from .builder import DziBuilder, GenerationResult, build_pyramid
from .levels import LevelGenerator
from .options import DziOptions
from .strategies import (
    TILE_STRATEGIES,
    GridTileWriter,
    OverlapTileWriter,
    TileWriter,
    create_tile_writer,
)

__all__ = [
    "DziBuilder",
    "DziOptions",
    "GenerationResult",
    "GridTileWriter",
    "LevelGenerator",
    "OverlapTileWriter",
    "TILE_STRATEGIES",
    "TileWriter",
    "build_pyramid",
    "create_tile_writer",
]
