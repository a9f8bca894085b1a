"""Centralized configuration for pydzi.

All tunable parameters are defined here with sensible defaults.
Values can be overridden via environment variables.

Environment Variables:
    PYDZI_BACKEND: Image backend used by the CLI, "magick" or "vips" (default: magick)
    PYDZI_MAGICK_CONVERT: ImageMagick convert command (default: convert)
    PYDZI_MAGICK_IDENTIFY: ImageMagick identify command (default: identify)
    PYDZI_MAGICK_MOGRIFY: ImageMagick mogrify command (default: mogrify)
    PYDZI_TILE_SIZE: Default tile size for the grid strategy (default: 256)
    PYDZI_QUALITY: Default encode quality for the grid strategy (default: 98)
"""

from __future__ import annotations

import logging
import os
import shlex

logger = logging.getLogger(__name__)


def _get_env_int(name: str, default: int) -> int:
    """Get an integer from environment variable with fallback."""
    value = os.environ.get(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            logger.warning(
                "Invalid integer for %s: %r, using default %d", name, value, default
            )
    return default


def _get_env_str(name: str, default: str) -> str:
    """Get a string from environment variable with fallback."""
    return os.environ.get(name, default)


def _get_env_command(name: str, default: str) -> tuple[str, ...]:
    """Get a command prefix from environment variable, split like a shell would.

    ``PYDZI_MAGICK_CONVERT="magick convert"`` selects the ImageMagick 7 wrapper.
    """
    value = os.environ.get(name, default)
    parts = tuple(shlex.split(value))
    if not parts:
        logger.warning("Empty command for %s, using default %r", name, default)
        return tuple(shlex.split(default))
    return parts


# =============================================================================
# Backend Configuration
# =============================================================================

#: Image backend used when none is given explicitly
DEFAULT_BACKEND: str = _get_env_str("PYDZI_BACKEND", "magick")

#: ImageMagick command prefixes
MAGICK_CONVERT: tuple[str, ...] = _get_env_command("PYDZI_MAGICK_CONVERT", "convert")
MAGICK_IDENTIFY: tuple[str, ...] = _get_env_command("PYDZI_MAGICK_IDENTIFY", "identify")
MAGICK_MOGRIFY: tuple[str, ...] = _get_env_command("PYDZI_MAGICK_MOGRIFY", "mogrify")


# =============================================================================
# Tile Generation Defaults
# =============================================================================

#: Default tiling strategy
DEFAULT_STRATEGY: str = "grid"

#: Grid strategy: uniform, non-overlapping tiles
GRID_TILE_SIZE: int = _get_env_int("PYDZI_TILE_SIZE", 256)
GRID_QUALITY: int = _get_env_int("PYDZI_QUALITY", 98)

#: Overlap strategy: border/interior tiles sharing an overlap strip
OVERLAP_TILE_SIZE: int = 254
OVERLAP_PIXELS: int = 1
OVERLAP_QUALITY: int = 75

#: Tile image format (file extension)
DEFAULT_TILE_FORMAT: str = "jpg"

#: Descriptor file extension
DEFAULT_OUTPUT_EXT: str = "dzi"

#: Strip metadata from the working copy by default
DEFAULT_STRIP: bool = True


# =============================================================================
# Descriptor
# =============================================================================

#: XML namespace of Deep Zoom descriptors
DEEPZOOM_NAMESPACE: str = "http://schemas.microsoft.com/deepzoom/2008"


# =============================================================================
# CLI
# =============================================================================

#: Source image extensions picked up when the CLI is given a directory
IMAGE_EXTENSIONS: frozenset[str] = frozenset({
    ".jpg", ".jpeg", ".png", ".tif", ".tiff", ".gif", ".bmp", ".webp"
})


# =============================================================================
# Validation
# =============================================================================


def _validate_config() -> None:
    """Validate configuration values and log warnings for out-of-range settings."""
    global GRID_TILE_SIZE, GRID_QUALITY

    if GRID_TILE_SIZE < 1:
        logger.warning(
            "GRID_TILE_SIZE=%d is too low, using 256", GRID_TILE_SIZE
        )
        GRID_TILE_SIZE = 256

    if GRID_QUALITY < 1 or GRID_QUALITY > 100:
        logger.warning(
            "GRID_QUALITY=%d is out of range 1-100, using 98", GRID_QUALITY
        )
        GRID_QUALITY = 98


_validate_config()
