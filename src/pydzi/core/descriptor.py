"""Deep Zoom descriptor (.dzi) rendering and parsing."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path

from pydzi.config import DEEPZOOM_NAMESPACE

from .errors import DescriptorError
from .paths import atomic_text_save
from .types import DescriptorInfo

logger = logging.getLogger(__name__)

_TEMPLATE = (
    "<?xml version='1.0' encoding='UTF-8'?>"
    "<Image TileSize='{tile_size}' Overlap='{overlap}' "
    "Format='{format}' xmlns='{xmlns}'>"
    "<Size Width='{width}' Height='{height}'/>"
    "</Image>"
)


def render_descriptor(info: DescriptorInfo) -> str:
    """Render the descriptor XML as a single line."""
    return _TEMPLATE.format(
        tile_size=info.tile_size,
        overlap=info.overlap,
        format=info.format,
        xmlns=DEEPZOOM_NAMESPACE,
        width=info.width,
        height=info.height,
    )


def write_descriptor(path: Path, info: DescriptorInfo) -> None:
    """Write the descriptor, replacing any existing file."""
    atomic_text_save(Path(path), render_descriptor(info) + "\n")
    logger.debug("Wrote descriptor %s", path)


def parse_descriptor(text: str) -> DescriptorInfo:
    """Parse descriptor XML text.

    Raises:
        DescriptorError: If the XML is malformed or attributes are missing
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise DescriptorError(f"Invalid descriptor XML: {e}") from e

    ns = {"dz": DEEPZOOM_NAMESPACE}
    if root.tag != f"{{{DEEPZOOM_NAMESPACE}}}Image":
        raise DescriptorError(f"Unexpected root element {root.tag!r}")
    size = root.find("dz:Size", ns)
    if size is None:
        raise DescriptorError("Descriptor has no Size element")

    try:
        return DescriptorInfo(
            tile_size=int(root.attrib["TileSize"]),
            overlap=int(root.attrib["Overlap"]),
            format=root.attrib["Format"],
            width=int(size.attrib["Width"]),
            height=int(size.attrib["Height"]),
        )
    except (KeyError, ValueError) as e:
        raise DescriptorError(f"Invalid descriptor attribute: {e}") from e


def read_descriptor(path: Path) -> DescriptorInfo:
    """Read and parse a descriptor file."""
    return parse_descriptor(Path(path).read_text(encoding="utf-8"))
