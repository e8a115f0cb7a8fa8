"""Map pH values to universal-indicator paper colors."""

from __future__ import annotations

from enum import Enum

import numpy as np


class ColorBand(str, Enum):
    RED = "red"
    ORANGE = "orange"
    YELLOW = "yellow"
    GREEN = "green"
    BLUE = "blue"


# Upper (exclusive) pH bound of each band; anything above the last is BLUE.
_BAND_EDGES = (
    (2.0, ColorBand.RED),
    (4.0, ColorBand.ORANGE),
    (7.0, ColorBand.YELLOW),
    (8.0, ColorBand.GREEN),
)

BAND_HEX = {
    ColorBand.RED: "#e53935",
    ColorBand.ORANGE: "#fb8c00",
    ColorBand.YELLOW: "#fdd835",
    ColorBand.GREEN: "#8bc34a",
    ColorBand.BLUE: "#64b5f6",
}


def color_band_for_ph(ph: float) -> ColorBand:
    """Return the indicator color band for ``ph``.

    Args:
        ph (float): pH value, expected in ``[0, 14]``.

    Returns:
        ColorBand: ``RED`` below 2, ``ORANGE`` below 4, ``YELLOW`` below 7,
        ``GREEN`` below 8, otherwise ``BLUE``.

    Raises:
        ValueError: If ``ph`` is non-finite.
    """
    if not np.isfinite(ph):
        raise ValueError(f"pH must be finite to select a color band, got {ph!r}")
    for upper, band in _BAND_EDGES:
        if ph < upper:
            return band
    return ColorBand.BLUE
