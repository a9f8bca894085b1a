"""Tests for output paths, cleanup and status checks."""

from __future__ import annotations

from pathlib import Path

import pytest

from pydzi.core.descriptor import write_descriptor
from pydzi.core.paths import remove_output, resolve_output_paths, split_filename
from pydzi.core.quality import encoder_quality
from pydzi.core.status import PyramidStatus, check_pyramid_status
from pydzi.core.types import DescriptorInfo


class TestResolveOutputPaths:
    def test_layout(self, temp_dir: Path):
        paths = resolve_output_paths(temp_dir, "map", "dzi")
        assert paths.levels_root_dir == temp_dir / "map_files"
        assert paths.descriptor_path == temp_dir / "map.dzi"
        assert paths.level_dir(3) == temp_dir / "map_files" / "3"

    def test_custom_extension(self, temp_dir: Path):
        paths = resolve_output_paths(temp_dir, "map", "xml")
        assert paths.descriptor_path.name == "map.xml"

    def test_split_filename(self):
        assert split_filename("/images/map.tiff") == ("map", "tiff")
        assert split_filename("archive.tar.gz") == ("archive.tar", "gz")
        assert split_filename("noext") == ("noext", "")


class TestRemoveOutput:
    """Tests for the clean-slate removal."""

    def test_missing_output_is_noop(self, temp_dir: Path):
        paths = resolve_output_paths(temp_dir, "map", "dzi")
        assert remove_output(paths) is False
        assert remove_output(paths) is False
        assert list(temp_dir.iterdir()) == []

    def test_removes_descriptor_and_tiles(self, temp_dir: Path):
        paths = resolve_output_paths(temp_dir, "map", "dzi")
        paths.descriptor_path.write_text("<Image/>")
        paths.level_dir(0).mkdir(parents=True)
        (paths.level_dir(0) / "0_0.jpg").write_bytes(b"")

        assert remove_output(paths) is True
        assert not paths.descriptor_path.exists()
        assert not paths.levels_root_dir.exists()
        assert remove_output(paths) is False

    def test_tile_directory_alone_counts_as_existing(self, temp_dir: Path):
        paths = resolve_output_paths(temp_dir, "map", "dzi")
        paths.levels_root_dir.mkdir()
        assert remove_output(paths) is True

    def test_other_names_untouched(self, temp_dir: Path):
        keep = resolve_output_paths(temp_dir, "other", "dzi")
        keep.descriptor_path.write_text("<Image/>")
        remove_output(resolve_output_paths(temp_dir, "map", "dzi"))
        assert keep.descriptor_path.exists()


class TestEncoderQuality:
    """Tests for the dual fraction/percent quality convention."""

    @pytest.mark.parametrize(
        "quality, expected",
        [(0.8, 80), (1, 100), (1.0, 100), (0.755, 76), (80, 80), (80.0, 80), (98, 98), (None, None)],
    )
    def test_conversion(self, quality, expected):
        assert encoder_quality(quality) == expected

    def test_fractional_percent_passes_through(self):
        assert encoder_quality(80.5) == 80.5


class TestPyramidStatus:
    """Tests for checking existing output."""

    def _make_pyramid(self, temp_dir: Path, width: int, height: int, skip_level: int | None = None):
        paths = resolve_output_paths(temp_dir, "map", "dzi")
        write_descriptor(
            paths.descriptor_path,
            DescriptorInfo(tile_size=256, overlap=0, format="jpg", width=width, height=height),
        )
        for level in range(3):
            if level == skip_level:
                continue
            paths.level_dir(level).mkdir(parents=True)
            (paths.level_dir(level) / "0_0.jpg").write_bytes(b"")
        return paths

    def test_not_exists(self, temp_dir: Path):
        paths = resolve_output_paths(temp_dir, "map", "dzi")
        assert check_pyramid_status(paths) == PyramidStatus.NOT_EXISTS

    def test_complete(self, temp_dir: Path):
        paths = self._make_pyramid(temp_dir, 4, 3)
        assert check_pyramid_status(paths) == PyramidStatus.COMPLETE

    def test_missing_level(self, temp_dir: Path):
        paths = self._make_pyramid(temp_dir, 4, 3, skip_level=1)
        assert check_pyramid_status(paths) == PyramidStatus.INCOMPLETE

    def test_missing_descriptor(self, temp_dir: Path):
        paths = self._make_pyramid(temp_dir, 4, 3)
        paths.descriptor_path.unlink()
        assert check_pyramid_status(paths) == PyramidStatus.INCOMPLETE

    def test_level_without_tiles(self, temp_dir: Path):
        paths = self._make_pyramid(temp_dir, 4, 3)
        (paths.level_dir(2) / "0_0.jpg").unlink()
        assert check_pyramid_status(paths) == PyramidStatus.INCOMPLETE

    def test_corrupted_descriptor(self, temp_dir: Path):
        paths = self._make_pyramid(temp_dir, 4, 3)
        paths.descriptor_path.write_text("{not xml")
        assert check_pyramid_status(paths) == PyramidStatus.CORRUPTED
