"""Image backend driving the ImageMagick command line tools.

Each operation is one subprocess (``identify``, ``convert`` or ``mogrify``).
Commands are built as argument lists and run without a shell, so paths
with spaces or quotes need no escaping.

Usage:
    from pydzi.backends.magick import MagickBackend

    backend = MagickBackend()
    width, height = backend.query_dimensions(Path("input.tif"))
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Sequence

from pydzi import config
from pydzi.core.errors import CommandError
from pydzi.core.types import TileRect

from .base import ImageBackend, NormalizeOptions

logger = logging.getLogger(__name__)


def is_magick_available() -> bool:
    """Check if the ImageMagick convert command is on PATH."""
    return shutil.which(config.MAGICK_CONVERT[0]) is not None


def run_command(args: Sequence[str]) -> str:
    """Run a command and return its standard output.

    Raises:
        CommandError: If the command exits non-zero or cannot be started
    """
    args = [str(a) for a in args]
    logger.debug("Running %s", args)
    try:
        result = subprocess.run(args, capture_output=True, text=True, check=False)
    except OSError as e:
        raise CommandError(args, -1, str(e)) from e
    if result.returncode != 0:
        raise CommandError(args, result.returncode, result.stderr or "")
    return result.stdout


def _first_frame(path: Path) -> str:
    return f"{path}[0]"


def _quality_args(quality: float | None) -> list[str]:
    return ["-quality", str(quality)] if quality is not None else []


class MagickBackend(ImageBackend):
    """ImageMagick backend.

    Command prefixes default to the ImageMagick 6 program names and can be
    changed per instance or through ``PYDZI_MAGICK_*`` environment variables
    (e.g. ``("magick", "convert")`` for ImageMagick 7).
    """

    name = "magick"

    def __init__(
        self,
        convert: Sequence[str] | None = None,
        identify: Sequence[str] | None = None,
        mogrify: Sequence[str] | None = None,
    ) -> None:
        self.convert = list(convert or config.MAGICK_CONVERT)
        self.identify = list(identify or config.MAGICK_IDENTIFY)
        self.mogrify = list(mogrify or config.MAGICK_MOGRIFY)

    def query_dimensions(self, path: Path) -> tuple[int, int]:
        args = [*self.identify, "-format", "%w %h", _first_frame(path)]
        answer = run_command(args)
        parts = answer.split()
        if len(parts) < 2:
            raise CommandError(args, 0, f"Unexpected identify output: {answer!r}")
        try:
            return int(parts[0]), int(parts[1])
        except ValueError as e:
            raise CommandError(args, 0, f"Unexpected identify output: {answer!r}") from e

    def normalize(self, src: Path, dest: Path, options: NormalizeOptions) -> Path:
        args = [*self.convert]
        if options.resize_filter:
            args += ["-filter", options.resize_filter]
        args.append(_first_frame(src))
        if options.strip:
            args.append("-strip")
        if options.profile_path:
            args += ["-profile", str(options.profile_path)]
        args += _quality_args(options.quality)
        args.append(str(dest))
        run_command(args)
        return dest

    def crop(self, src: Path, dest: Path, rect: TileRect, quality: float | None = None) -> Path:
        geometry = f"{rect.width}x{rect.height}+{rect.x}+{rect.y}"
        args = [
            *self.convert, str(src),
            "-crop", geometry, "+repage",
            *_quality_args(quality),
            str(dest),
        ]
        run_command(args)
        return dest

    def halve(self, path: Path, resize_filter: str | None = None) -> Path:
        args = [*self.mogrify]
        if resize_filter:
            args += ["-filter", resize_filter]
        args += ["-resize", "50%", str(path)]
        run_command(args)
        return path

    def crop_to_grid(
        self,
        src: Path,
        dest_dir: Path,
        tile_size: int,
        tile_format: str,
        quality: float | None = None,
    ) -> int:
        # Tile names come from ImageMagick's fx expressions on each tile's
        # page offset, see https://imagemagick.org/Usage/crop/#crop_tile
        name_expr = f"%[fx:page.x/{tile_size}]_%[fx:page.y/{tile_size}]"
        args = [
            *self.convert, str(src),
            "+repage", "+gravity",
            "-crop", f"{tile_size}x{tile_size}",
            "-set", "filename:tile", name_expr,
            *_quality_args(quality),
            str(dest_dir / f"%[filename:tile].{tile_format}"),
        ]
        run_command(args)
        return sum(1 for _ in dest_dir.glob(f"*.{tile_format}"))
