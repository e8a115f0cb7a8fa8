"""Format results reports for display and tabular export.

This module sits after the results generator: it turns a
:class:`~benchlab.results.ResultsReport` into text lines and pandas tables
without recomputing any chemistry.
"""

from __future__ import annotations

from typing import List

import numpy as np
import pandas as pd

from .chemistry.equilibrium import Regime
from .results import NO_RESULT, ResultsReport
from .schema import MeasurementColumns, TimelineColumns

_REGIME_EXPLANATIONS = {
    Regime.EMPTY: "no solution present",
    Regime.STRONG_ACID: "strong acid, pH = -log10[H+]",
    Regime.STRONG_BASE: "strong base, pH = 14 + log10[OH-]",
    Regime.NEUTRALIZATION: "strong acid neutralized by strong base; excess species sets the pH",
    Regime.BUFFER: "buffer, pH = pKa + log10([A-]/[HA]) (Henderson-Hasselbalch)",
    Regime.WEAK_ACID_ONLY: "weak acid alone, pH = 0.5 * (pKa - log10 C) (small-dissociation approximation)",
    Regime.CONJUGATE_BASE_ONLY: "conjugate base alone, basic approximation (qualitative)",
    Regime.INDETERMINATE: "mixture has no single defensible pH",
}


def format_ph(value: object) -> str:
    """Return ``value`` to two decimals, or the sentinel text for ``NO_RESULT``.

    Args:
        value (object): A pH value or :data:`~benchlab.results.NO_RESULT`.

    Returns:
        str: e.g. ``"4.46"`` or ``"no result yet"``.

    Raises:
        ValueError: If ``value`` is numeric but non-finite.
    """
    if value is NO_RESULT or value is None:
        return str(NO_RESULT)
    v = float(value)
    if not np.isfinite(v):
        raise ValueError(f"Cannot report a non-finite pH, got {value!r}")
    return f"{v:.2f}"


def explain_regime(regime: Regime) -> str:
    return _REGIME_EXPLANATIONS[regime]


def timeline_frame(report: ResultsReport) -> pd.DataFrame:
    """Return the audit trail as a DataFrame, one row per action."""
    cols = TimelineColumns()
    return pd.DataFrame(
        [
            {
                cols.index: entry.index,
                cols.action: entry.action_description,
                cols.observation: entry.observation_text,
            }
            for entry in report.timeline
        ],
        columns=[cols.index, cols.action, cols.observation],
    )


def measurement_frame(report: ResultsReport) -> pd.DataFrame:
    """Return the measurement record as a DataFrame in recording order."""
    cols = MeasurementColumns()
    df = pd.DataFrame(
        {
            cols.label: list(report.measurements.keys()),
            cols.ph: [float(v) for v in report.measurements.values()],
        },
        columns=[cols.label, cols.ph],
    )
    df[cols.ph_reported] = [format_ph(v) for v in df[cols.ph]]
    return df


def _titration_lines(report: ResultsReport) -> List[str]:
    result = report.titration
    if result is NO_RESULT:
        return [f"Titration: {NO_RESULT}"]
    lines = [f"Titre ({t.label}): {t.titrant_volume_ml:.2f} mL" for t in result.titres]
    lines.append(f"Mean titre V2: {result.mean_titre_ml:.2f} mL")
    lines.append(f"Titrant normality N2 = N1V1/V2: {result.titrant_normality:.4f} N")
    lines.append(f"Titrant strength: {result.titrant_strength_g_per_l:.2f} g/L")
    return lines


def summary_lines(report: ResultsReport) -> List[str]:
    """Build the human-readable explanation shown in the results view."""
    lines: List[str] = []
    if not report.has_result:
        lines.append(f"Measured pH: {NO_RESULT}")
    else:
        for label, ph in report.measurements.items():
            lines.append(f"Measured pH ({label}): {format_ph(ph)}")

    lines.append(
        f"Theoretical pH: {format_ph(report.theoretical_ph)} "
        f"({explain_regime(report.regime)})"
    )
    if report.deviation is NO_RESULT:
        lines.append(f"Deviation: {NO_RESULT}")
    else:
        lines.append(f"Deviation: {float(report.deviation):+.2f}")
        if report.composition_changed_since_measurement:
            lines.append("Composition changed after the last measurement.")

    if report.buffer_ratio is not None:
        window = "within" if report.within_buffer_region else "outside"
        lines.append(
            f"[A-]/[HA] = {report.buffer_ratio:.3f} ({window} the 0.1-10 buffer region)"
        )
    lines.append(
        f"Buffer capacity: {report.buffer_capacity.value} "
        f"({report.conjugate_pair_moles:.4g} mol conjugate pair)"
    )
    if report.titration is not None:
        lines.extend(_titration_lines(report))
    return lines
