"""CLI entry point for pydzi."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from tqdm import tqdm

from pydzi import config
from pydzi.backends import BACKENDS, available_backends, get_backend
from pydzi.backends.vips import get_vips_import_error
from pydzi.core.errors import DziError
from pydzi.core.status import PyramidStatus, check_pyramid_status
from pydzi.pyramid import TILE_STRATEGIES, DziBuilder, DziOptions

logger = logging.getLogger(__name__)


def is_image_file(path: Path) -> bool:
    """Check if a file has a supported image extension."""
    return path.suffix.lower() in config.IMAGE_EXTENSIONS


def find_image_files(path: Path) -> list[Path]:
    """Find all source images in a path (file or directory)."""
    path = Path(path)
    if path.is_file():
        return [path]
    elif path.is_dir():
        # Use set to avoid duplicates on case-insensitive filesystems (Windows)
        files = set()
        for ext in config.IMAGE_EXTENSIONS:
            files.update(path.glob(f"*{ext}"))
            files.update(path.glob(f"*{ext.upper()}"))
        return sorted(files)
    return []


def _check_prerequisites(backend_name: str) -> None:
    """Check that the selected backend's toolchain is installed.

    Exits the process with an error message if not.
    """
    if backend_name not in available_backends():
        hint = {
            "magick": "Install ImageMagick or point PYDZI_MAGICK_CONVERT at it.",
            "vips": "Install libvips and pyvips: pip install pyvips",
        }.get(backend_name, "")
        import_error = get_vips_import_error() if backend_name == "vips" else None
        if import_error:
            hint = f"{hint} ({import_error})"
        click.echo(click.style(
            f"Error: backend '{backend_name}' is not available. {hint}",
            fg="red"
        ), err=True)
        sys.exit(1)


def _print_header(images: list[Path], options: DziOptions, backend_name: str) -> None:
    """Print the CLI banner with processing parameters."""
    click.echo(click.style("pydzi", fg="cyan", bold=True))
    click.echo(click.style("=" * 40, fg="cyan"))
    click.echo(f"Found {len(images)} image(s)")
    click.echo(f"Output directory: {options.output_dir}")
    click.echo(
        f"Strategy: {options.strategy} | Tile size: {options.tile_size}px | "
        f"Overlap: {options.effective_overlap} | Format: {options.tile_format} | "
        f"Quality: {options.quality} | Backend: {backend_name}"
    )
    click.echo()


def _process_image(
    builder: DziBuilder, name: str | None, skip_existing: bool
) -> bool:
    """Generate one pyramid with a level progress bar.

    Returns:
        False if the image was skipped because complete output exists
    """
    label = name or builder.default_name()
    if skip_existing and check_pyramid_status(builder.output_paths(name)) == PyramidStatus.COMPLETE:
        click.echo(click.style(f"Skipping {label}: already generated", fg="cyan"))
        return False

    with tqdm(desc=label, unit="level") as pbar:

        def _on_progress(stage: str, current: int, total: int) -> None:
            if stage != "level":
                return
            pbar.total = total
            pbar.n = current
            pbar.refresh()

        result = builder.generate(name, progress_callback=_on_progress)

    if result.replaced:
        click.echo(f"  Replaced existing output for {label}")
    click.echo(
        f"  {result.paths.descriptor_path} "
        f"({result.level_count} levels, {sum(result.tiles.values())} tiles)"
    )
    return True


def _print_summary(
    success_count: int,
    skipped_count: int,
    errors: list[tuple[Path, str]],
) -> None:
    """Print the colored processing summary and exit with error if any failures."""
    click.echo()
    click.echo(click.style("=" * 40, fg="cyan"))

    parts = []
    if success_count > 0:
        parts.append(click.style(f"{success_count} generated", fg="green"))
    if skipped_count > 0:
        parts.append(click.style(f"{skipped_count} skipped", fg="cyan"))
    if errors:
        parts.append(click.style(f"{len(errors)} failed", fg="red"))

    summary = ", ".join(parts) if parts else "Nothing to process"
    click.echo(click.style("Completed: ", bold=True) + summary)

    if errors:
        click.echo()
        click.echo(click.style("Failed images:", fg="red"))
        for path, error in errors:
            click.echo(f"  {path.name}: {error}")
        sys.exit(1)


@click.command()
@click.argument("input_path", type=click.Path(exists=True))
@click.option("--name", "-n", default=None, help="Output base name (default: source file name)")
@click.option(
    "-o",
    "--output",
    type=click.Path(file_okay=False),
    default=".",
    help="Output directory for the descriptor and tile folders",
)
@click.option(
    "--format",
    "-f",
    "tile_format",
    default=config.DEFAULT_TILE_FORMAT,
    help=f"Tile image format (default: {config.DEFAULT_TILE_FORMAT})",
)
@click.option(
    "--strategy",
    "-s",
    type=click.Choice(sorted(TILE_STRATEGIES)),
    default=config.DEFAULT_STRATEGY,
    help="grid: one backend call per level, no overlap; "
         "overlap: one call per tile with shared border pixels",
)
@click.option(
    "--tile-size",
    "-t",
    type=click.IntRange(1, 8192),
    default=None,
    help=f"Tile size in pixels (default: {config.GRID_TILE_SIZE} grid, "
         f"{config.OVERLAP_TILE_SIZE} overlap)",
)
@click.option(
    "--overlap",
    type=click.IntRange(min=0),
    default=None,
    help=f"Overlap in pixels, overlap strategy only (default: {config.OVERLAP_PIXELS})",
)
@click.option(
    "--quality",
    "-q",
    type=float,
    default=None,
    help="Encode quality, 0-1 fraction or 1-100 "
         f"(default: {config.GRID_QUALITY} grid, {config.OVERLAP_QUALITY} overlap)",
)
@click.option("--strip/--no-strip", default=None, help="Strip image metadata (default: strip)")
@click.option("--profile", type=click.Path(exists=True, dir_okay=False), default=None,
              help="ICC profile applied to the working copy")
@click.option("--filter", "resize_filter", default=None, help="Resize filter, e.g. Lanczos")
@click.option("--ext", "output_ext", default=config.DEFAULT_OUTPUT_EXT,
              help=f"Descriptor file extension (default: {config.DEFAULT_OUTPUT_EXT})")
@click.option(
    "--backend",
    "-b",
    type=click.Choice(sorted(BACKENDS)),
    default=config.DEFAULT_BACKEND,
    help=f"Image backend (default: {config.DEFAULT_BACKEND})",
)
@click.option("--skip-existing", is_flag=True, help="Skip images whose pyramid is already complete")
@click.option("--verbose", "-v", count=True, help="Log progress (-vv for every command)")
def main(
    input_path: str,
    name: str | None,
    output: str,
    tile_format: str,
    strategy: str,
    tile_size: int | None,
    overlap: int | None,
    quality: float | None,
    strip: bool | None,
    profile: str | None,
    resize_filter: str | None,
    output_ext: str,
    backend: str,
    skip_existing: bool,
    verbose: int,
) -> None:
    """Slice images into Deep Zoom pyramids.

    INPUT_PATH can be a single image or a directory of images.
    Writes NAME.dzi and NAME_files/ into the output directory.

    Examples:

        # Default grid tiling, 256px JPEG tiles
        pydzi map.tif -o ./tiles/

        # Seadragon-style 254px tiles with 1px overlap
        pydzi map.tif --strategy overlap -q 0.8

        # Every image in a directory, using libvips
        pydzi ./scans/ -o ./tiles/ --backend vips
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose > 1 else logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    images = find_image_files(Path(input_path))
    if not images:
        click.echo(f"No images found in {input_path}", err=True)
        sys.exit(1)
    if name and len(images) > 1:
        click.echo("--name can only be used with a single input image", err=True)
        sys.exit(1)

    try:
        options = DziOptions.for_strategy(
            strategy,
            tile_format=tile_format,
            output_dir=output,
            tile_size=tile_size,
            overlap=overlap,
            quality=quality,
            strip=strip,
            profile_path=profile,
            resize_filter=resize_filter,
            output_ext=output_ext,
        )
        options.validate()
    except DziError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    _check_prerequisites(backend)
    _print_header(images, options, backend)

    Path(output).mkdir(parents=True, exist_ok=True)
    image_backend = get_backend(backend)

    success_count = 0
    skipped_count = 0
    errors: list[tuple[Path, str]] = []
    for image_path in images:
        builder = DziBuilder(image_path, image_backend, options)
        try:
            if _process_image(builder, name, skip_existing):
                success_count += 1
            else:
                skipped_count += 1
        except (DziError, OSError) as e:
            logger.error("Failed to process %s: %s", image_path.name, e)
            errors.append((image_path, str(e)))
            click.echo(f"\nError processing {image_path.name}: {e}", err=True)

    _print_summary(success_count, skipped_count, errors)


if __name__ == "__main__":
    main()
