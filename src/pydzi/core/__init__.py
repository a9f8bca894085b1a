"""Geometry, descriptor and path handling for Deep Zoom pyramids."""

from .descriptor import parse_descriptor, read_descriptor, render_descriptor, write_descriptor
from .errors import CommandError, ConfigurationError, DescriptorError, DziError
from .geometry import calculate_levels, max_level, validate_tiling
from .paths import OutputPaths, remove_output, resolve_output_paths
from .status import PyramidStatus, check_pyramid_status
from .types import DescriptorInfo, LevelInfo, TileRect

__all__ = [
    "CommandError",
    "ConfigurationError",
    "DescriptorError",
    "DescriptorInfo",
    "DziError",
    "LevelInfo",
    "OutputPaths",
    "PyramidStatus",
    "TileRect",
    "calculate_levels",
    "check_pyramid_status",
    "max_level",
    "parse_descriptor",
    "read_descriptor",
    "remove_output",
    "render_descriptor",
    "resolve_output_paths",
    "validate_tiling",
    "write_descriptor",
]
