"""Options for one pyramid generation run."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path

from pydzi import config
from pydzi.core.errors import ConfigurationError
from pydzi.core.geometry import validate_tiling

#: Strategy name -> defaults that differ between the two tiling policies
STRATEGY_DEFAULTS: dict[str, dict] = {
    "grid": {
        "tile_size": config.GRID_TILE_SIZE,
        "overlap": 0,
        "quality": config.GRID_QUALITY,
    },
    "overlap": {
        "tile_size": config.OVERLAP_TILE_SIZE,
        "overlap": config.OVERLAP_PIXELS,
        "quality": config.OVERLAP_QUALITY,
    },
}


@dataclass(frozen=True)
class DziOptions:
    """Settings for :class:`pydzi.pyramid.builder.DziBuilder`.

    Attributes:
        tile_format: Tile file extension, also the encoder format
        output_dir: Directory receiving ``<name>.<output_ext>`` and ``<name>_files``
        tile_size: Tile size in pixels (before overlap)
        overlap: Shared pixels between neighbours, overlap strategy only
        quality: Encode quality, a fraction in (0, 1] or a 1-100 value
        strip: Strip metadata from the working copy
        profile_path: ICC profile applied to the working copy
        resize_filter: Resampling filter for the halving steps
        output_ext: Descriptor file extension
        strategy: "grid" (one backend call per level) or "overlap" (one per tile)
    """

    tile_format: str = config.DEFAULT_TILE_FORMAT
    output_dir: Path = Path(".")
    tile_size: int = config.GRID_TILE_SIZE
    overlap: int = 0
    quality: float | None = config.GRID_QUALITY
    strip: bool = config.DEFAULT_STRIP
    profile_path: Path | None = None
    resize_filter: str | None = None
    output_ext: str = config.DEFAULT_OUTPUT_EXT
    strategy: str = config.DEFAULT_STRATEGY

    @classmethod
    def for_strategy(cls, strategy: str, **overrides) -> DziOptions:
        """Options with the defaults of ``strategy``; ``None`` overrides are ignored."""
        if strategy not in STRATEGY_DEFAULTS:
            raise ConfigurationError(
                f"Unknown tiling strategy {strategy!r}, expected one of {sorted(STRATEGY_DEFAULTS)}"
            )
        values = dict(STRATEGY_DEFAULTS[strategy])
        values.update({k: v for k, v in overrides.items() if v is not None})
        values["strategy"] = strategy
        if values.get("output_dir") is not None:
            values["output_dir"] = Path(values["output_dir"])
        if values.get("profile_path") is not None:
            values["profile_path"] = Path(values["profile_path"])
        return cls(**values)

    @property
    def effective_overlap(self) -> int:
        """Overlap actually produced; the grid strategy never overlaps."""
        return self.overlap if self.strategy == "overlap" else 0

    def with_format(self, tile_format: str | None) -> DziOptions:
        return replace(self, tile_format=tile_format) if tile_format else self

    def validate(self) -> None:
        """Raise ConfigurationError for unusable settings."""
        if self.strategy not in STRATEGY_DEFAULTS:
            raise ConfigurationError(
                f"Unknown tiling strategy {self.strategy!r}, expected one of {sorted(STRATEGY_DEFAULTS)}"
            )
        validate_tiling(self.tile_size, self.effective_overlap)
        if not self.tile_format:
            raise ConfigurationError("Tile format must not be empty")
        if not self.output_ext:
            raise ConfigurationError("Output extension must not be empty")
