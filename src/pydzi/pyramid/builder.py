"""Deep Zoom pyramid generation for a single source image."""

from __future__ import annotations

import logging
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from pydzi.backends import get_backend
from pydzi.backends.base import ImageBackend, NormalizeOptions
from pydzi.core.descriptor import write_descriptor
from pydzi.core.geometry import calculate_levels
from pydzi.core.paths import OutputPaths, remove_output, resolve_output_paths, split_filename
from pydzi.core.quality import encoder_quality
from pydzi.core.types import DescriptorInfo, LevelInfo

from .levels import LevelGenerator
from .options import DziOptions
from .strategies import create_tile_writer

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Outcome of a successful :meth:`DziBuilder.generate` run.

    Attributes:
        paths: Where the pyramid was written
        descriptor: Values written to the descriptor
        tiles: Mapping of level -> number of tiles written
        replaced: True if output for the same name existed before the run
        levels: Planned geometry of every level, top level first
    """

    paths: OutputPaths
    descriptor: DescriptorInfo
    tiles: dict[int, int]
    replaced: bool
    levels: list[LevelInfo] = field(default_factory=list)

    @property
    def level_count(self) -> int:
        return len(self.tiles)


class DziBuilder:
    """Slices one image into a Deep Zoom pyramid.

    The builder only does geometry and file layout; all pixel work goes
    through ``backend``. A run is strictly sequential and aborts on the
    first backend failure.

    Output format:
        - ``<output_dir>/<name>.<output_ext>`` descriptor
        - ``<output_dir>/<name>_files/<level>/<col>_<row>.<format>`` tiles
        - Level max = full resolution, level 0 = 1x1 pixel
    """

    def __init__(
        self,
        image_path: str | Path,
        backend: ImageBackend | None = None,
        options: DziOptions | None = None,
    ) -> None:
        self.image_path = Path(image_path)
        self.backend = backend if backend is not None else get_backend()
        self.options = options if options is not None else DziOptions()

    def default_name(self) -> str:
        """Output name used when none is given: the source file's stem."""
        return split_filename(self.image_path)[0]

    def output_paths(self, name: str | None = None) -> OutputPaths:
        return resolve_output_paths(
            self.options.output_dir, name or self.default_name(), self.options.output_ext
        )

    def remove_files(self, name: str | None = None) -> bool:
        """Delete existing output for ``name``.

        Returns:
            True if a descriptor or tile directory existed
        """
        return remove_output(self.output_paths(name))

    def generate(
        self,
        name: str | None = None,
        tile_format: str | None = None,
        progress_callback: Callable[[str, int, int], None] | None = None,
    ) -> GenerationResult:
        """Build the pyramid, replacing any previous output for ``name``.

        Args:
            name: Output base name; defaults to the source file's stem
            tile_format: Tile format overriding ``options.tile_format``
            progress_callback: Optional callback(stage, current, total)

        Returns:
            GenerationResult describing what was written

        Raises:
            ConfigurationError: If the options are unusable (nothing is touched)
            CommandError: If any backend operation fails
        """
        options = self.options.with_format(tile_format)
        options.validate()
        name = name or self.default_name()
        paths = resolve_output_paths(options.output_dir, name, options.output_ext)
        quality = encoder_quality(options.quality)

        tile_writer = create_tile_writer(
            options.strategy,
            self.backend,
            options.tile_size,
            options.tile_format,
            quality,
            options.effective_overlap,
        )
        generator = LevelGenerator(self.backend, tile_writer, options.resize_filter)

        if progress_callback:
            progress_callback("dimensions", 0, 1)
        orig_width, orig_height = self.backend.query_dimensions(self.image_path)
        levels = calculate_levels(
            orig_width, orig_height, options.tile_size, options.effective_overlap
        )
        top_level = levels[0].level
        logger.info(
            "Source %s: %d x %d px, %d levels, %d tiles",
            self.image_path.name, orig_width, orig_height,
            len(levels), sum(level.tile_count for level in levels),
        )

        replaced = remove_output(paths)

        with tempfile.TemporaryDirectory(prefix="pydzi-") as tmp_dir:
            if progress_callback:
                progress_callback("normalize", 0, 1)
            work_path = self.backend.normalize(
                self.image_path,
                Path(tmp_dir) / self.image_path.name,
                NormalizeOptions(
                    strip=options.strip,
                    profile_path=options.profile_path,
                    resize_filter=options.resize_filter,
                    quality=quality,
                ),
            )
            tiles = generator.run(work_path, paths.levels_root_dir, top_level, progress_callback)

        descriptor = DescriptorInfo(
            tile_size=options.tile_size,
            overlap=options.effective_overlap,
            format=options.tile_format,
            width=orig_width,
            height=orig_height,
        )
        write_descriptor(paths.descriptor_path, descriptor)

        logger.info(
            "Generated %d levels (%d tiles) for %s",
            len(tiles), sum(tiles.values()), name,
        )
        return GenerationResult(
            paths=paths, descriptor=descriptor, tiles=tiles, replaced=replaced, levels=levels
        )


def build_pyramid(
    image_path: str | Path,
    name: str | None = None,
    backend: ImageBackend | str | None = None,
    progress_callback: Callable[[str, int, int], None] | None = None,
    strategy: str = "grid",
    **options,
) -> GenerationResult:
    """Build a Deep Zoom pyramid with a one-off DziBuilder.

    Args:
        image_path: Source image
        name: Output base name; defaults to the source file's stem
        backend: Backend instance or name; defaults to the configured backend
        progress_callback: Progress callback function
        strategy: Tiling strategy, "grid" or "overlap"
        **options: DziOptions fields overriding the strategy defaults

    Returns:
        GenerationResult describing what was written
    """
    if backend is None or isinstance(backend, str):
        backend = get_backend(backend)
    builder = DziBuilder(image_path, backend, DziOptions.for_strategy(strategy, **options))
    return builder.generate(name, progress_callback=progress_callback)
