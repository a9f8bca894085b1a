"""Encode quality normalization."""

from __future__ import annotations


def encoder_quality(quality: float | None) -> float | None:
    """Convert a user quality setting to the encoder's 1-100 scale.

    Values in (0, 1] are fractions and are scaled by 100; larger values are
    already on the encoder scale and pass through. Nothing is range-checked,
    the encoder has the final word.

    >>> encoder_quality(0.8)
    80
    >>> encoder_quality(80)
    80
    """
    if quality is None:
        return None
    if 0 < quality <= 1:
        return int(round(quality * 100))
    # whole floats (e.g. from the CLI) print as "80", not "80.0"
    if isinstance(quality, float) and quality.is_integer():
        return int(quality)
    return quality
