"""Image backends that perform the pixel work for pyramid generation."""

from __future__ import annotations

from pydzi import config
from pydzi.core.errors import ConfigurationError

from .base import ImageBackend, NormalizeOptions
from .magick import MagickBackend, is_magick_available, run_command
from .vips import VipsBackend, is_vips_available

BACKENDS: dict[str, type[ImageBackend]] = {
    MagickBackend.name: MagickBackend,
    VipsBackend.name: VipsBackend,
}


def available_backends() -> list[str]:
    """Names of backends whose toolchain is installed."""
    names = []
    if is_magick_available():
        names.append(MagickBackend.name)
    if is_vips_available():
        names.append(VipsBackend.name)
    return names


def get_backend(name: str | None = None) -> ImageBackend:
    """Instantiate a backend by name.

    Args:
        name: "magick" or "vips"; defaults to ``config.DEFAULT_BACKEND``

    Raises:
        ConfigurationError: If the name is unknown
        RuntimeError: If the backend's library is not installed
    """
    name = name or config.DEFAULT_BACKEND
    try:
        backend_cls = BACKENDS[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown backend {name!r}, expected one of {sorted(BACKENDS)}"
        ) from None
    return backend_cls()


__all__ = [
    "BACKENDS",
    "ImageBackend",
    "MagickBackend",
    "NormalizeOptions",
    "VipsBackend",
    "available_backends",
    "get_backend",
    "is_magick_available",
    "is_vips_available",
    "run_command",
]
