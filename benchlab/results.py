"""Derive the end-of-experiment results report.

The report combines what the learner measured (the measurement record), what
the chemistry predicts for the current composition, and the ordered audit
trail. It never fabricates a pH: until a measurement has succeeded, every
pH-derived field holds :data:`NO_RESULT`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .chemistry.buffer_capacity import (
    BufferCapacity,
    classify_buffer_capacity,
    within_buffer_region,
)
from .chemistry.equilibrium import (
    BASIC_APPROXIMATION_PH,
    Regime,
    buffer_ratio,
    compute_ph,
    select_regime,
)
from .chemistry.titration import Titre, TitrationResult, TitrationSetup, summarize_titres
from .history import Action, ActionKind, History, TimelineEntry, effective_actions
from .vessel import VesselSnapshot


class _NoResult:
    """Sentinel for display fields that have no defensible value yet."""

    _instance: Optional["_NoResult"] = None

    def __new__(cls) -> "_NoResult":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_RESULT"

    def __str__(self) -> str:
        return "no result yet"


NO_RESULT = _NoResult()

PhField = Union[float, _NoResult]


@dataclass(frozen=True)
class ResultsReport:
    """Snapshot of the derived results.

    Attributes:
        measurements: Label to last recorded pH, in recording order. Kept
            for display; entries survive undo.
        last_measured_ph: pH of the latest measurement still in history,
            falling back to the newest entry of ``measurements`` when every
            measurement has been undone, or ``NO_RESULT``.
        last_measurement_label: Label of that measurement.
        theoretical_ph: pH recomputed from the current composition, or
            ``NO_RESULT`` before any measurement or when the composition is
            inconclusive.
        deviation: ``last_measured_ph - theoretical_ph``, or ``NO_RESULT``.
        regime: Regime the calculator selects for the current composition.
        buffer_ratio: ``[A-]/[HA]`` when a buffer is present.
        within_buffer_region: Whether ``buffer_ratio`` is inside 0.1-10.
        conjugate_pair_moles: Total weak-acid plus conjugate-base moles.
        buffer_capacity: Capacity class from ``conjugate_pair_moles``.
        composition_changed_since_measurement: ``True`` when reagents were
            added or cleared after the last measurement still in history.
        timeline: Audit trail, verbatim from the history.
        titration: ``None`` outside titration experiments; ``NO_RESULT``
            until an endpoint has been measured; otherwise the mean titre
            and titrant normality.
    """

    measurements: Dict[str, float]
    last_measured_ph: PhField
    last_measurement_label: Optional[str]
    theoretical_ph: PhField
    deviation: PhField
    regime: Regime
    buffer_ratio: Optional[float]
    within_buffer_region: Optional[bool]
    conjugate_pair_moles: float
    buffer_capacity: BufferCapacity
    composition_changed_since_measurement: bool
    timeline: Tuple[TimelineEntry, ...]
    titration: Optional[Union[TitrationResult, _NoResult]] = None

    @property
    def has_result(self) -> bool:
        return self.last_measured_ph is not NO_RESULT


def _composition_changed_since_measurement(history: History) -> bool:
    for action in reversed(history.actions):
        if action.kind is ActionKind.MEASURE:
            return False
        if action.changes_composition:
            return True
    return True


def _volume_of(actions: Sequence[Action], reagent_id: str) -> float:
    return sum(
        float(a.volume_ml)
        for a in actions
        if a.kind is ActionKind.ADD_REAGENT and a.reagent_id == reagent_id
    )


def collect_titres(actions: Sequence[Action], setup: TitrationSetup) -> List[Titre]:
    """Return one :class:`Titre` per endpoint measurement in ``actions``.

    A measurement counts as an endpoint when its pH is at or above
    ``setup.endpoint_ph`` and both analyte and titrant are in the flask.
    Volumes are the requested volumes of the additions in effect at that
    measurement.
    """
    titres: List[Titre] = []
    for index, action in enumerate(actions):
        if action.kind is not ActionKind.MEASURE or action.resulting_ph is None:
            continue
        if action.resulting_ph < setup.endpoint_ph:
            continue
        in_flask = effective_actions(actions[:index])
        v1 = _volume_of(in_flask, setup.analyte_id)
        v2 = _volume_of(in_flask, setup.titrant_id)
        if v1 > 0 and v2 > 0:
            titres.append(Titre(action.label or f"Trial {len(titres) + 1}", v1, v2))
    return titres


def generate_results_report(
    snapshot: VesselSnapshot,
    measurements: Mapping[str, float],
    history: History,
    basic_approximation_ph: float = BASIC_APPROXIMATION_PH,
    titration: Optional[TitrationSetup] = None,
) -> ResultsReport:
    """Build a :class:`ResultsReport` from session state.

    Args:
        snapshot (VesselSnapshot): Current vessel composition.
        measurements (Mapping[str, float]): Measurement record, shown as-is.
        history (History): Session history supplying the timeline and the
            latest measurement action.
        basic_approximation_ph (float, optional): Passed through to the
            calculator for the conjugate-base-only regime.
        titration (TitrationSetup, optional): Set for titration experiments
            to derive titres and the titrant normality.

    Returns:
        ResultsReport: Derived report. The history and vessel are not
        modified.

    Note:
        The comparison value is the latest measure action still in history,
        not the newest record entry, because the record is not retracted by
        undo. When the composition is unchanged since that action, the
        recomputed theoretical pH equals the measured one and ``deviation``
        is zero.
    """
    regime = select_regime(snapshot)
    ratio = buffer_ratio(snapshot)
    pair_moles = snapshot.conjugate_pair_moles
    timeline = tuple(history.timeline())

    last_measure = history.last_of(ActionKind.MEASURE)
    if last_measure is not None:
        label, measured = last_measure.label, last_measure.resulting_ph
    elif measurements:
        label, measured = next(reversed(list(measurements.items())))
    else:
        label, measured = None, None

    if measured is None:
        last_measured: PhField = NO_RESULT
        theoretical_ph: PhField = NO_RESULT
        deviation: PhField = NO_RESULT
    else:
        theoretical = compute_ph(snapshot, basic_approximation_ph)
        last_measured = float(measured)
        theoretical_ph = NO_RESULT if theoretical is None else theoretical
        deviation = NO_RESULT if theoretical is None else float(measured) - theoretical

    titration_result: Optional[Union[TitrationResult, _NoResult]] = None
    if titration is not None:
        titres = collect_titres(history.actions, titration)
        titration_result = summarize_titres(titration, titres) if titres else NO_RESULT

    return ResultsReport(
        measurements=dict(measurements),
        last_measured_ph=last_measured,
        last_measurement_label=label,
        theoretical_ph=theoretical_ph,
        deviation=deviation,
        regime=regime,
        buffer_ratio=ratio,
        within_buffer_region=None if ratio is None else within_buffer_region(ratio),
        conjugate_pair_moles=pair_moles,
        buffer_capacity=classify_buffer_capacity(pair_moles),
        composition_changed_since_measurement=_composition_changed_since_measurement(history),
        timeline=timeline,
        titration=titration_result,
    )
