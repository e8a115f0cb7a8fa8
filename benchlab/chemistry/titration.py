"""Titre bookkeeping and normality from the N1V1 = N2V2 relation.

A titre is the titrant volume in the flask when the endpoint is observed.
With an aliquot of ``V1`` mL of a standard of normality ``N1`` and a mean
titre ``V2``, the titrant normality follows from equal equivalents at the
endpoint:

    N2 = N1 * V1 / V2

Strength in g/L is ``N2`` times the titrant's equivalent mass (40 g/eq for
NaOH).

Assumptions:
    Normalities are in equivalents per litre, so a diprotic acid such as
    oxalic acid is described by its H+ equivalents (0.1 N = 0.05 M). Trials
    are expected to use the same aliquot volume; when they do not, the mean
    aliquot is used and a ``UserWarning`` is emitted.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import NamedTuple, Sequence, Tuple

import numpy as np

PHENOLPHTHALEIN_ENDPOINT_PH = 8.2
NAOH_EQUIVALENT_MASS = 40.0


class Titre(NamedTuple):
    label: str
    analyte_volume_ml: float
    titrant_volume_ml: float


@dataclass(frozen=True)
class TitrationSetup:
    """Which catalog reagents form a titration and how to read its endpoint.

    Attributes:
        analyte_id: Reagent pipetted into the flask (the standard).
        titrant_id: Reagent delivered from the burette.
        analyte_normality: ``N1`` of the standard, in eq L^-1.
        endpoint_ph: A measurement at or above this pH marks the endpoint.
        titrant_equivalent_mass: g per equivalent, for strength in g/L.
    """

    analyte_id: str
    titrant_id: str
    analyte_normality: float
    endpoint_ph: float = PHENOLPHTHALEIN_ENDPOINT_PH
    titrant_equivalent_mass: float = NAOH_EQUIVALENT_MASS

    def __post_init__(self) -> None:
        if not np.isfinite(self.analyte_normality) or self.analyte_normality <= 0:
            raise ValueError(
                f"Analyte normality must be finite and > 0, got {self.analyte_normality}"
            )
        if self.analyte_id == self.titrant_id:
            raise ValueError("Analyte and titrant must be different reagents.")


@dataclass(frozen=True)
class TitrationResult:
    titres: Tuple[Titre, ...]
    mean_titre_ml: float
    mean_aliquot_ml: float
    titrant_normality: float
    titrant_strength_g_per_l: float


def titrant_normality(analyte_normality: float, analyte_volume_ml: float, titre_ml: float) -> float:
    """Return ``N2 = N1 * V1 / V2``.

    Raises:
        ValueError: If the titre or aliquot volume is not strictly positive.
    """
    if titre_ml <= 0 or analyte_volume_ml <= 0:
        raise ValueError("Titre and aliquot volumes must be positive to compute normality.")
    return float(analyte_normality * analyte_volume_ml / titre_ml)


def summarize_titres(setup: TitrationSetup, titres: Sequence[Titre]) -> TitrationResult:
    """Average recorded titres and derive the titrant normality and strength.

    Args:
        setup (TitrationSetup): Analyte normality and titrant equivalent mass.
        titres (Sequence[Titre]): Endpoint readings, one per trial.

    Returns:
        TitrationResult: Mean titre ``V2``, mean aliquot ``V1``, ``N2`` and
        strength in g/L.

    Raises:
        ValueError: If ``titres`` is empty.
    """
    if not titres:
        raise ValueError("At least one titre is required.")
    aliquots = np.array([t.analyte_volume_ml for t in titres], dtype=float)
    volumes = np.array([t.titrant_volume_ml for t in titres], dtype=float)
    if np.ptp(aliquots) > 0:
        warnings.warn(
            f"Trials used different aliquot volumes ({sorted(set(aliquots.tolist()))} mL); "
            f"normality uses the mean aliquot.",
            UserWarning,
            stacklevel=2,
        )
    mean_v1 = float(np.mean(aliquots))
    mean_v2 = float(np.mean(volumes))
    n2 = titrant_normality(setup.analyte_normality, mean_v1, mean_v2)
    return TitrationResult(
        titres=tuple(titres),
        mean_titre_ml=mean_v2,
        mean_aliquot_ml=mean_v1,
        titrant_normality=n2,
        titrant_strength_g_per_l=n2 * setup.titrant_equivalent_mass,
    )
