"""
Chemistry models for the experiment simulation engine.

This subpackage maps vessel composition to pH and derived classifications.

Modules:
    equilibrium:
        Regime selection and closed-form pH expressions (strong acid, strong
        base, neutralization, Henderson-Hasselbalch buffer, weak-acid and
        conjugate-base approximations).

    buffer_capacity:
        Buffer-capacity classes from conjugate-pair moles and the
        ``0.1 <= [A-]/[HA] <= 10`` validity window.

    indicator:
        Universal-indicator color bands for measured pH values.

    titration:
        Titre averaging and titrant normality from ``N1V1 = N2V2``.

Design Principle:
    The calculators read a :class:`~benchlab.vessel.VesselSnapshot` and never
    touch the history directly, although importing ``benchlab.vessel`` also
    loads ``benchlab.history``. Nothing here depends on sessions, guided
    progress or plotting, so every function can be tested on hand-built
    snapshots.
"""

from .buffer_capacity import BufferCapacity, classify_buffer_capacity, within_buffer_region
from .equilibrium import Regime, buffer_ratio, compute_ph, select_regime
from .indicator import ColorBand, color_band_for_ph
from .titration import Titre, TitrationResult, TitrationSetup, summarize_titres, titrant_normality

__all__ = [
    "BufferCapacity",
    "classify_buffer_capacity",
    "within_buffer_region",
    "Regime",
    "buffer_ratio",
    "compute_ph",
    "select_regime",
    "ColorBand",
    "color_band_for_ph",
    "Titre",
    "TitrationResult",
    "TitrationSetup",
    "summarize_titres",
    "titrant_normality",
]
