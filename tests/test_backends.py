"""Tests for image backends."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from pydzi.backends import (
    BACKENDS,
    MagickBackend,
    VipsBackend,
    get_backend,
    is_magick_available,
    is_vips_available,
    run_command,
)
from pydzi.backends.base import NormalizeOptions
from pydzi.backends.vips import resize_kernel
from pydzi.core.errors import CommandError, ConfigurationError
from pydzi.core.types import TileRect
from pydzi.pyramid import DziBuilder, DziOptions


def _completed(args, returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args, returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def magick() -> MagickBackend:
    return MagickBackend(convert=["convert"], identify=["identify"], mogrify=["mogrify"])


class TestRunCommand:
    """Tests for subprocess invocation."""

    def test_returns_stdout(self):
        with patch("pydzi.backends.magick.subprocess.run", return_value=_completed([], stdout="ok")) as run:
            assert run_command(["identify", Path("a b.png")]) == "ok"
        run.assert_called_once_with(
            ["identify", "a b.png"], capture_output=True, text=True, check=False
        )

    def test_non_zero_exit_raises(self):
        with patch(
            "pydzi.backends.magick.subprocess.run",
            return_value=_completed([], returncode=1, stderr="convert: unable to open image\n"),
        ):
            with pytest.raises(CommandError) as excinfo:
                run_command(["convert", "missing.png", "out.png"])

        error = excinfo.value
        assert error.command == ["convert", "missing.png", "out.png"]
        assert error.returncode == 1
        assert error.stderr == "convert: unable to open image"
        assert "convert missing.png out.png" in str(error)
        assert "Return code was: 1" in str(error)

    def test_missing_program_raises(self):
        with patch("pydzi.backends.magick.subprocess.run", side_effect=FileNotFoundError("convert")):
            with pytest.raises(CommandError) as excinfo:
                run_command(["convert"])
        assert excinfo.value.returncode == -1


class TestMagickBackend:
    """Tests for the ImageMagick argument lists."""

    def test_query_dimensions(self, magick: MagickBackend):
        with patch("pydzi.backends.magick.subprocess.run", return_value=_completed([], stdout="1000 600")) as run:
            assert magick.query_dimensions(Path("/img/map.tif")) == (1000, 600)
        assert run.call_args.args[0] == ["identify", "-format", "%w %h", "/img/map.tif[0]"]

    def test_query_dimensions_bad_output(self, magick: MagickBackend):
        with patch("pydzi.backends.magick.subprocess.run", return_value=_completed([], stdout="garbage")):
            with pytest.raises(CommandError):
                magick.query_dimensions(Path("map.tif"))

    def test_normalize_all_options(self, magick: MagickBackend):
        options = NormalizeOptions(
            strip=True, profile_path=Path("/p/srgb.icc"), resize_filter="Lanczos", quality=98
        )
        with patch("pydzi.backends.magick.subprocess.run", return_value=_completed([])) as run:
            dest = magick.normalize(Path("/src/it's.tif"), Path("/tmp/w/it's.tif"), options)
        assert dest == Path("/tmp/w/it's.tif")
        assert run.call_args.args[0] == [
            "convert", "-filter", "Lanczos", "/src/it's.tif[0]",
            "-strip", "-profile", "/p/srgb.icc", "-quality", "98", "/tmp/w/it's.tif",
        ]

    def test_normalize_minimal(self, magick: MagickBackend):
        options = NormalizeOptions(strip=False)
        with patch("pydzi.backends.magick.subprocess.run", return_value=_completed([])) as run:
            magick.normalize(Path("a.png"), Path("b.png"), options)
        assert run.call_args.args[0] == ["convert", "a.png[0]", "b.png"]

    def test_crop(self, magick: MagickBackend):
        rect = TileRect(col=1, row=2, x=253, y=507, width=256, height=93)
        with patch("pydzi.backends.magick.subprocess.run", return_value=_completed([])) as run:
            magick.crop(Path("w.png"), Path("out/1_2.jpg"), rect, quality=75)
        assert run.call_args.args[0] == [
            "convert", "w.png", "-crop", "256x93+253+507", "+repage",
            "-quality", "75", "out/1_2.jpg",
        ]

    def test_halve(self, magick: MagickBackend):
        with patch("pydzi.backends.magick.subprocess.run", return_value=_completed([])) as run:
            assert magick.halve(Path("w.png")) == Path("w.png")
            magick.halve(Path("w.png"), "Mitchell")
        first, second = (call.args[0] for call in run.call_args_list)
        assert first == ["mogrify", "-resize", "50%", "w.png"]
        assert second == ["mogrify", "-filter", "Mitchell", "-resize", "50%", "w.png"]

    def test_crop_to_grid(self, magick: MagickBackend, temp_dir: Path):
        (temp_dir / "0_0.jpg").write_bytes(b"")
        (temp_dir / "1_0.jpg").write_bytes(b"")
        with patch("pydzi.backends.magick.subprocess.run", return_value=_completed([])) as run:
            count = magick.crop_to_grid(Path("w.png"), temp_dir, 256, "jpg", quality=98)
        assert count == 2
        assert run.call_args.args[0] == [
            "convert", "w.png", "+repage", "+gravity", "-crop", "256x256",
            "-set", "filename:tile", "%[fx:page.x/256]_%[fx:page.y/256]",
            "-quality", "98", str(temp_dir / "%[filename:tile].jpg"),
        ]

    def test_command_prefix(self):
        backend = MagickBackend(convert=["magick", "convert"])
        with patch("pydzi.backends.magick.subprocess.run", return_value=_completed([])) as run:
            backend.normalize(Path("a.png"), Path("b.png"), NormalizeOptions(strip=False))
        assert run.call_args.args[0][:3] == ["magick", "convert", "a.png[0]"]

    def test_failure_propagates_through_builder(self, magick: MagickBackend, temp_dir: Path):
        source = temp_dir / "map.png"
        responses = iter([
            _completed([], stdout="4 4"),
            _completed([]),
            _completed([], returncode=1, stderr="crop failed"),
        ])
        with patch("pydzi.backends.magick.subprocess.run", side_effect=lambda *a, **k: next(responses)):
            with pytest.raises(CommandError) as excinfo:
                DziBuilder(source, magick, DziOptions(output_dir=temp_dir / "out")).generate("map")
        assert excinfo.value.command[0] == "convert"
        assert not (temp_dir / "out" / "map.dzi").exists()


class TestBackendRegistry:
    def test_names(self):
        assert sorted(BACKENDS) == ["magick", "vips"]

    def test_get_magick(self):
        assert isinstance(get_backend("magick"), MagickBackend)

    def test_unknown(self):
        with pytest.raises(ConfigurationError):
            get_backend("gimp")

    def test_availability_returns_bool(self):
        assert isinstance(is_magick_available(), bool)
        assert isinstance(is_vips_available(), bool)

    def test_resize_kernel(self):
        assert resize_kernel(None) == "lanczos3"
        assert resize_kernel("Lanczos") == "lanczos3"
        assert resize_kernel("Point") == "nearest"
        assert resize_kernel("mitchell") == "mitchell"


@pytest.mark.skipif(not is_vips_available(), reason="pyvips not available")
class TestVipsBackend:
    """Tests for the PyVIPS backend on real images."""

    @pytest.fixture
    def sample_image(self, temp_dir: Path) -> Path:
        import pyvips

        path = temp_dir / "sample.png"
        image = pyvips.Image.black(600, 300, bands=3).add([200, 50, 50]).cast("uchar")
        image.write_to_file(str(path))
        return path

    def test_query_dimensions(self, sample_image: Path):
        assert VipsBackend().query_dimensions(sample_image) == (600, 300)

    def test_missing_file(self, temp_dir: Path):
        with pytest.raises(CommandError):
            VipsBackend().query_dimensions(temp_dir / "missing.png")

    def test_normalize_and_halve(self, sample_image: Path, temp_dir: Path):
        backend = VipsBackend()
        work = backend.normalize(sample_image, temp_dir / "work.jpg", NormalizeOptions(quality=90))
        backend.halve(work)
        assert backend.query_dimensions(work) == (300, 150)
        assert not (temp_dir / "halved-work.jpg").exists()

    def test_repeated_halving_reads_new_file(self, sample_image: Path, temp_dir: Path):
        backend = VipsBackend()
        work = backend.normalize(sample_image, temp_dir / "work.png", NormalizeOptions())
        sizes = []
        for _ in range(2):
            backend.halve(work)
            sizes.append(backend.query_dimensions(work))
        assert sizes == [(300, 150), (150, 75)]

    def test_grid_after_halving(self, sample_image: Path, temp_dir: Path):
        backend = VipsBackend()
        work = backend.normalize(sample_image, temp_dir / "work.png", NormalizeOptions())
        backend.halve(work)
        out = temp_dir / "level"
        out.mkdir()
        assert backend.crop_to_grid(work, out, 256, "png") == 2
        assert sorted(p.name for p in out.iterdir()) == ["0_0.png", "1_0.png"]

    def test_crop(self, sample_image: Path, temp_dir: Path):
        backend = VipsBackend()
        rect = TileRect(col=2, row=1, x=507, y=253, width=93, height=47)
        dest = backend.crop(sample_image, temp_dir / "2_1.jpg", rect, quality=75)
        assert backend.query_dimensions(dest) == (93, 47)

    def test_crop_to_grid(self, sample_image: Path, temp_dir: Path):
        out = temp_dir / "level"
        out.mkdir()
        count = VipsBackend().crop_to_grid(sample_image, out, 256, "png")
        assert count == 6
        assert sorted(p.name for p in out.iterdir()) == [
            "0_0.png", "0_1.png", "1_0.png", "1_1.png", "2_0.png", "2_1.png"
        ]

    def test_end_to_end(self, sample_image: Path, temp_dir: Path):
        out = temp_dir / "out"
        result = DziBuilder(sample_image, VipsBackend(), DziOptions(output_dir=out)).generate("map")
        assert result.level_count == 11
        assert sorted(p.name for p in (out / "map_files" / "10").iterdir()) == [
            "0_0.jpg", "0_1.jpg", "1_0.jpg", "1_1.jpg", "2_0.jpg", "2_1.jpg"
        ]
        assert sorted(p.name for p in (out / "map_files" / "0").iterdir()) == ["0_0.jpg"]
        assert VipsBackend().query_dimensions(out / "map_files" / "0" / "0_0.jpg") == (1, 1)
        assert result.tiles[9] == 2

    def test_end_to_end_overlap(self, sample_image: Path, temp_dir: Path):
        out = temp_dir / "out"
        options = DziOptions.for_strategy("overlap", output_dir=out)
        result = DziBuilder(sample_image, VipsBackend(), options).generate("map")
        assert result.tiles[10] == 6
        assert result.tiles[9] == 2
        assert result.tiles[0] == 1
        assert VipsBackend().query_dimensions(out / "map_files" / "0" / "0_0.jpg") == (1, 1)


@pytest.mark.skipif(
    not (is_magick_available() and shutil.which("identify") and shutil.which("mogrify")),
    reason="ImageMagick not installed",
)
class TestMagickIntegration:
    """End-to-end run against the real ImageMagick tools."""

    def test_512_square(self, temp_dir: Path):
        source = temp_dir / "square.png"
        subprocess.run(
            ["convert", "-size", "512x512", "xc:steelblue", str(source)], check=True
        )
        out = temp_dir / "out"
        result = DziBuilder(source, MagickBackend(), DziOptions(output_dir=out)).generate("map")

        assert result.level_count == 10
        assert sorted(p.name for p in (out / "map_files" / "9").iterdir()) == [
            "0_0.jpg", "0_1.jpg", "1_0.jpg", "1_1.jpg"
        ]
        assert sorted(p.name for p in (out / "map_files" / "0").iterdir()) == ["0_0.jpg"]
        assert MagickBackend().query_dimensions(out / "map_files" / "8" / "0_0.jpg") == (256, 256)
