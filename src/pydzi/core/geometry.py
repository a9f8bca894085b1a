"""Pyramid and tile grid geometry.

Everything here is pure arithmetic on image dimensions; no file or backend
access. Two tiling policies are supported:

- overlap: border tiles (first column/row) are ``tile_size + overlap`` wide,
  interior tiles ``tile_size + 2 * overlap``. Origins advance by the tile
  extent minus ``2 * overlap`` so neighbours share an ``overlap`` strip.
- grid: uniform ``tile_size`` tiles without overlap, addressed by
  ``(x // tile_size, y // tile_size)``.
"""

from __future__ import annotations

from .errors import ConfigurationError
from .types import LevelInfo, TileRect


def validate_tiling(tile_size: int, overlap: int = 0) -> None:
    """Reject tile sizes that would produce empty or non-advancing grids.

    Raises:
        ConfigurationError: If tile_size <= 0, overlap < 0 or
            tile_size <= 2 * overlap
    """
    if tile_size <= 0:
        raise ConfigurationError(f"Tile size must be positive, got {tile_size}")
    if overlap < 0:
        raise ConfigurationError(f"Overlap must not be negative, got {overlap}")
    if tile_size <= 2 * overlap:
        raise ConfigurationError(
            f"Tile size {tile_size} must be larger than twice the overlap ({overlap})"
        )


def max_level(width: int, height: int) -> int:
    """Index of the full-resolution level.

    Smallest ``L`` with ``2 ** L >= max(width, height)``, i.e.
    ``ceil(log2(max(width, height)))`` without floating point error.
    """
    longest = max(width, height)
    if longest < 1:
        raise ConfigurationError(f"Image dimensions must be positive, got {width}x{height}")
    return (longest - 1).bit_length()


def halved(size: int) -> int:
    """Size after one 50% resize; odd sizes round up, never below 1."""
    return max(1, (size + 1) // 2)


def level_dimensions(width: int, height: int) -> list[tuple[int, int, int]]:
    """Return ``(level, width, height)`` from the top level down to 0.

    Dimensions compound: each level is the previous one halved.
    """
    dims = []
    w, h = width, height
    for level in range(max_level(width, height), -1, -1):
        dims.append((level, w, h))
        w, h = halved(w), halved(h)
    return dims


def tile_dimensions(x: int, y: int, tile_size: int, overlap: int) -> tuple[int, int]:
    """Unclipped extent of the overlap-policy tile whose origin is (x, y)."""
    interior = tile_size + 2 * overlap
    border = tile_size + overlap
    return (interior if x > 0 else border, interior if y > 0 else border)


def tile_origins(size: int, tile_size: int, overlap: int = 0) -> list[int]:
    """Tile origins along one axis for the overlap policy.

    With ``overlap == 0`` this is the plain grid ``0, tile_size, 2 * tile_size, ...``.
    """
    validate_tiling(tile_size, overlap)
    origins = []
    pos = 0
    while pos < size:
        origins.append(pos)
        extent = tile_size + (2 * overlap if pos > 0 else overlap)
        pos += extent - 2 * overlap
    return origins


def overlap_tiles(width: int, height: int, tile_size: int, overlap: int) -> list[TileRect]:
    """Tile rectangles of the overlap policy, column by column.

    Rectangles are clipped to the image so the last column/row may be narrower.
    """
    xs = tile_origins(width, tile_size, overlap)
    ys = tile_origins(height, tile_size, overlap)
    tiles = []
    for col, x in enumerate(xs):
        for row, y in enumerate(ys):
            tile_w, tile_h = tile_dimensions(x, y, tile_size, overlap)
            tiles.append(TileRect(
                col=col,
                row=row,
                x=x,
                y=y,
                width=min(tile_w, width - x),
                height=min(tile_h, height - y),
            ))
    return tiles


def grid_tiles(width: int, height: int, tile_size: int) -> list[TileRect]:
    """Uniform non-overlapping tile rectangles, clipped to the image."""
    validate_tiling(tile_size)
    tiles = []
    for x in range(0, width, tile_size):
        for y in range(0, height, tile_size):
            tiles.append(TileRect(
                col=x // tile_size,
                row=y // tile_size,
                x=x,
                y=y,
                width=min(tile_size, width - x),
                height=min(tile_size, height - y),
            ))
    return tiles


def grid_shape(width: int, height: int, tile_size: int, overlap: int = 0) -> tuple[int, int]:
    """Number of (cols, rows) covering an image of the given size."""
    return (
        len(tile_origins(width, tile_size, overlap)),
        len(tile_origins(height, tile_size, overlap)),
    )


def calculate_levels(
    width: int, height: int, tile_size: int, overlap: int = 0
) -> list[LevelInfo]:
    """Describe every pyramid level, top (full resolution) level first.

    Args:
        width: Source width in pixels
        height: Source height in pixels
        tile_size: Tile size in pixels
        overlap: Overlap in pixels (0 for the grid policy)

    Returns:
        List of LevelInfo ordered from max_level down to 0
    """
    validate_tiling(tile_size, overlap)
    levels = []
    for level, w, h in level_dimensions(width, height):
        cols, rows = grid_shape(w, h, tile_size, overlap)
        levels.append(LevelInfo(level=level, width=w, height=h, cols=cols, rows=rows))
    return levels
