"""Test fixtures for pydzi tests."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from pydzi.backends.base import ImageBackend, NormalizeOptions
from pydzi.core.errors import CommandError
from pydzi.core.geometry import grid_tiles, halved
from pydzi.core.types import TileRect


class FakeBackend(ImageBackend):
    """Backend that records calls and writes empty files instead of pixels.

    Image dimensions are tracked per path: sources are registered up front,
    normalize copies them, halve shrinks them like a 50% resize would.

    Args:
        dimensions: Mapping of source path -> (width, height)
        fail_after: Mapping of operation -> number of successful calls
            before that operation raises CommandError
    """

    name = "fake"

    def __init__(
        self,
        dimensions: dict[Path, tuple[int, int]] | None = None,
        fail_after: dict[str, int] | None = None,
    ) -> None:
        self.dimensions = {str(k): v for k, v in (dimensions or {}).items()}
        self.fail_after = dict(fail_after or {})
        self.calls: list[tuple] = []
        self.work_dirs: list[Path] = []

    def _record(self, op: str, *args) -> None:
        self.calls.append((op, *args))
        done = sum(1 for call in self.calls if call[0] == op) - 1
        if op in self.fail_after and done >= self.fail_after[op]:
            raise CommandError([op, *map(str, args)], 1, f"{op} failed")

    def ops(self) -> list[str]:
        return [call[0] for call in self.calls]

    def query_dimensions(self, path: Path) -> tuple[int, int]:
        self._record("query_dimensions", path)
        try:
            return self.dimensions[str(path)]
        except KeyError:
            raise CommandError(["identify", str(path)], 1, "no such image") from None

    def normalize(self, src: Path, dest: Path, options: NormalizeOptions) -> Path:
        self._record("normalize", src, dest, options)
        self.work_dirs.append(dest.parent)
        self.dimensions[str(dest)] = self.dimensions[str(src)]
        dest.write_bytes(b"")
        return dest

    def crop(self, src: Path, dest: Path, rect: TileRect, quality: float | None = None) -> Path:
        self._record("crop", src, dest, rect, quality)
        dest.write_bytes(b"")
        return dest

    def halve(self, path: Path, resize_filter: str | None = None) -> Path:
        self._record("halve", path, resize_filter)
        width, height = self.dimensions[str(path)]
        self.dimensions[str(path)] = (halved(width), halved(height))
        return path

    def crop_to_grid(
        self,
        src: Path,
        dest_dir: Path,
        tile_size: int,
        tile_format: str,
        quality: float | None = None,
    ) -> int:
        self._record("crop_to_grid", src, dest_dir, tile_size, tile_format, quality)
        width, height = self.dimensions[str(src)]
        tiles = grid_tiles(width, height, tile_size)
        for rect in tiles:
            (dest_dir / rect.filename(tile_format)).write_bytes(b"")
        return len(tiles)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that's cleaned up after tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def source_image(temp_dir: Path) -> Path:
    """Placeholder source file; its dimensions live in the fake backend."""
    path = temp_dir / "source.png"
    path.write_bytes(b"")
    return path


@pytest.fixture
def fake_backend(source_image: Path) -> FakeBackend:
    """Fake backend knowing a 512x512 source image."""
    return FakeBackend({source_image: (512, 512)})
