"""Abstract base class for image backends.

A backend is the only part of pydzi that touches pixels. The pyramid code
talks to it through five operations and never looks at image data itself,
so any toolchain that can identify, copy, crop and halve images can be
plugged in.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from pydzi.core.types import TileRect


@dataclass(frozen=True)
class NormalizeOptions:
    """Options applied when copying the source into the working directory.

    Attributes:
        strip: Remove metadata (EXIF, comments, embedded profiles)
        profile_path: ICC profile to apply, if any
        resize_filter: Resampling filter name used for resizes, if any
        quality: Encoder quality on the 1-100 scale, if any
    """

    strip: bool = True
    profile_path: Path | None = None
    resize_filter: str | None = None
    quality: float | None = None


class ImageBackend(ABC):
    """Capability set the pyramid builder needs from an image toolchain.

    Every failure must surface as :class:`pydzi.core.errors.CommandError`.
    """

    #: Short identifier used in the backend registry and CLI
    name: str = ""

    @abstractmethod
    def query_dimensions(self, path: Path) -> tuple[int, int]:
        """Return (width, height) of the first frame of an image."""

    @abstractmethod
    def normalize(self, src: Path, dest: Path, options: NormalizeOptions) -> Path:
        """Copy the first frame of ``src`` to ``dest`` applying ``options``.

        Returns:
            The written path (``dest``)
        """

    @abstractmethod
    def crop(self, src: Path, dest: Path, rect: TileRect, quality: float | None = None) -> Path:
        """Crop ``rect`` out of ``src`` and encode it to ``dest``.

        The output format follows the suffix of ``dest``.
        """

    @abstractmethod
    def halve(self, path: Path, resize_filter: str | None = None) -> Path:
        """Replace the image at ``path`` with a copy at 50% size."""

    @abstractmethod
    def crop_to_grid(
        self,
        src: Path,
        dest_dir: Path,
        tile_size: int,
        tile_format: str,
        quality: float | None = None,
    ) -> int:
        """Cut ``src`` into a uniform ``tile_size`` grid in one pass.

        Files are named ``<col>_<row>.<tile_format>`` where col/row are the
        tile's pixel offset divided by ``tile_size``.

        Returns:
            Number of tiles written, or -1 if the backend cannot tell
        """
