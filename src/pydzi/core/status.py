"""Status checks for existing pyramid output."""

from __future__ import annotations

import logging
from enum import Enum

from .descriptor import read_descriptor
from .errors import ConfigurationError, DescriptorError
from .geometry import max_level
from .paths import OutputPaths

logger = logging.getLogger(__name__)


class PyramidStatus(Enum):
    """Status of existing output for a pyramid name."""

    NOT_EXISTS = "not_exists"  # Neither descriptor nor tile directory
    COMPLETE = "complete"  # Descriptor valid and every level has tiles
    INCOMPLETE = "incomplete"  # Descriptor or level directories missing
    CORRUPTED = "corrupted"  # Descriptor unreadable


def check_pyramid_status(paths: OutputPaths) -> PyramidStatus:
    """Check the status of existing output.

    A run that failed midway leaves tiles but no descriptor, which shows up
    as INCOMPLETE.

    Args:
        paths: Output locations of the pyramid

    Returns:
        PyramidStatus indicating the state
    """
    if not paths.exists():
        return PyramidStatus.NOT_EXISTS

    if not paths.descriptor_path.is_file():
        return PyramidStatus.INCOMPLETE

    try:
        info = read_descriptor(paths.descriptor_path)
        top = max_level(info.width, info.height)
    except (DescriptorError, ConfigurationError, OSError) as e:
        logger.warning("Unreadable descriptor %s: %s", paths.descriptor_path, e)
        return PyramidStatus.CORRUPTED

    pattern = f"*.{info.format}"
    for level in range(top + 1):
        level_dir = paths.level_dir(level)
        if not level_dir.is_dir():
            return PyramidStatus.INCOMPLETE
        if next(level_dir.glob(pattern), None) is None:
            return PyramidStatus.INCOMPLETE

    return PyramidStatus.COMPLETE
