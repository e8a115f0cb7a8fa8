"""Compute vessel pH from composition by regime selection.

The calculator is a pure function of a :class:`~benchlab.vessel.VesselSnapshot`.
It selects one chemical regime, applies that regime's closed-form expression
and clamps the result to the pH scale. It never raises for an ambiguous
mixture: it returns ``None`` so callers can report "inconclusive".

Regimes, in priority order:
    1. Empty vessel: ``None``.
    2. Strong acid alone: ``pH = -log10([H+])``.
    3. Strong base alone: ``pH = 14 + log10([OH-])``.
    4. Strong acid and strong base only: the stoichiometric excess of either
       is treated as in (2) or (3); equal amounts give 7.00.
    5. Buffer (weak acid and conjugate base both present):
       ``pH = pKa + log10([A-]/[HA])`` (Henderson-Hasselbalch).
    6. Weak acid alone: ``pH = 0.5 * (pKa - log10(C))``.
    7. Conjugate base alone: fixed basic approximation.
    8. Anything else (indicator only, mixed strong/weak species): ``None``.

Approximations:
    Regimes 6 and 7 are deliberate simplifications. The weak-acid expression
    holds only when dissociation is small, and the conjugate-base value is a
    qualitative constant rather than a hydrolysis calculation. Both are kept
    as-is for continuity with the bench worksheets they reproduce.

Concentrations always use the total current volume, so every addition dilutes
every species uniformly.
"""

from __future__ import annotations

import warnings
from enum import Enum
from typing import Optional

import numpy as np

from ..catalog import ReagentRole
from ..vessel import VesselSnapshot
from .buffer_capacity import within_buffer_region

PH_MIN = 0.0
PH_MAX = 14.0
PKW = 14.0
NEUTRAL_PH = 7.0
BASIC_APPROXIMATION_PH = 8.5
EPSILON = 1e-12


class Regime(str, Enum):
    EMPTY = "empty"
    STRONG_ACID = "strong_acid"
    STRONG_BASE = "strong_base"
    NEUTRALIZATION = "neutralization"
    BUFFER = "buffer"
    WEAK_ACID_ONLY = "weak_acid_only"
    CONJUGATE_BASE_ONLY = "conjugate_base_only"
    INDETERMINATE = "indeterminate"


def _present(moles: float) -> bool:
    return moles > EPSILON


def clamp_ph(ph: float) -> float:
    return float(np.clip(ph, PH_MIN, PH_MAX))


def select_regime(snapshot: VesselSnapshot) -> Regime:
    """Return the chemical regime that governs ``snapshot``."""
    if snapshot.total_volume_ml <= 0:
        return Regime.EMPTY

    acid = _present(snapshot.moles(ReagentRole.STRONG_ACID))
    base = _present(snapshot.moles(ReagentRole.STRONG_BASE))
    weak = _present(snapshot.moles(ReagentRole.WEAK_ACID))
    conj = _present(snapshot.moles(ReagentRole.CONJUGATE_BASE))

    if acid and not base and not conj:
        return Regime.STRONG_ACID
    if base and not acid and not weak:
        return Regime.STRONG_BASE
    if acid and base and not weak and not conj:
        return Regime.NEUTRALIZATION
    if weak and conj:
        return Regime.BUFFER
    if weak and not (acid or base):
        return Regime.WEAK_ACID_ONLY
    if conj and not (acid or base):
        return Regime.CONJUGATE_BASE_ONLY
    return Regime.INDETERMINATE


def henderson_hasselbalch_ph(pka: float, base_conc: float, acid_conc: float) -> float:
    """Return ``pKa + log10(base_conc / acid_conc)``, unclamped.

    Raises:
        ValueError: If either concentration is not strictly positive.
    """
    if base_conc <= 0 or acid_conc <= 0:
        raise ValueError("Henderson-Hasselbalch requires positive acid and base concentrations.")
    return float(pka + np.log10(base_conc / acid_conc))


def buffer_ratio(snapshot: VesselSnapshot) -> Optional[float]:
    """Return ``[A-]/[HA]`` for the conjugate pair, or ``None`` without a buffer.

    Both species share the vessel volume, so the concentration ratio equals
    the mole ratio.
    """
    weak = snapshot.moles(ReagentRole.WEAK_ACID)
    conj = snapshot.moles(ReagentRole.CONJUGATE_BASE)
    if not (_present(weak) and _present(conj)):
        return None
    return conj / weak


def compute_ph(
    snapshot: VesselSnapshot,
    basic_approximation_ph: float = BASIC_APPROXIMATION_PH,
) -> Optional[float]:
    """Compute the pH of the vessel contents.

    Args:
        snapshot (VesselSnapshot): Composition to evaluate.
        basic_approximation_ph (float, optional): Value returned when only the
            conjugate base is present. Defaults to ``8.5``.

    Returns:
        float | None: pH clamped to ``[0, 14]``, or ``None`` when no solution
        is present or the composition does not map to a supported regime.

    Note:
        A ``UserWarning`` is emitted when Henderson-Hasselbalch is applied
        outside ``0.1 <= [A-]/[HA] <= 10``, where the approximation loses
        chemical validity. The value is still returned.
    """
    regime = select_regime(snapshot)
    if regime in (Regime.EMPTY, Regime.INDETERMINATE):
        return None

    volume_l = snapshot.volume_l
    acid = snapshot.moles(ReagentRole.STRONG_ACID)
    base = snapshot.moles(ReagentRole.STRONG_BASE)

    if regime is Regime.NEUTRALIZATION:
        excess = acid - base
        if abs(excess) <= EPSILON:
            return NEUTRAL_PH
        if excess > 0:
            acid, regime = excess, Regime.STRONG_ACID
        else:
            base, regime = -excess, Regime.STRONG_BASE

    if regime is Regime.STRONG_ACID:
        ph = -np.log10(acid / volume_l)
    elif regime is Regime.STRONG_BASE:
        ph = PKW + np.log10(base / volume_l)
    elif regime is Regime.CONJUGATE_BASE_ONLY:
        ph = basic_approximation_ph
    else:
        pka = snapshot.pka
        if pka is None:
            return None
        weak = snapshot.moles(ReagentRole.WEAK_ACID)
        if regime is Regime.BUFFER:
            conj = snapshot.moles(ReagentRole.CONJUGATE_BASE)
            if not within_buffer_region(conj / weak):
                warnings.warn(
                    f"Buffer ratio [A-]/[HA] = {conj / weak:.3g} lies outside 0.1-10; "
                    f"Henderson-Hasselbalch is a poor approximation here.",
                    UserWarning,
                    stacklevel=2,
                )
            ph = henderson_hasselbalch_ph(pka, conj / volume_l, weak / volume_l)
        else:
            ph = 0.5 * (pka - np.log10(weak / volume_l))

    if not np.isfinite(ph):
        return None
    return clamp_ph(ph)
