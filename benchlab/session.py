"""Command and query surface of one active experiment.

A session owns exactly one vessel, history, guided progress and measurement
record. Commands run to completion synchronously; a rejected command raises
before anything is mutated, so every error leaves the session unchanged.

Command flow:
    1. The guided step machine validates the candidate action.
    2. The vessel applies the composition change (or the calculator
       evaluates pH for a measurement).
    3. The history records the action.
    4. The step machine marks the current step complete.
    5. Listeners receive engine events.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .catalog import ReagentRole
from .chemistry.equilibrium import compute_ph
from .chemistry.indicator import ColorBand, color_band_for_ph
from .errors import InconclusiveError, UnknownEquipmentError
from .experiments import ExperimentConfig
from .guided import GuidedProgress, GuidedProgressView, GuidedStep
from .history import Action, ActionKind, History
from .results import ResultsReport, generate_results_report
from .reveal import EngineEvent, EventKind, RevealToken
from .units import moles_from_volume
from .vessel import Vessel, VesselSnapshot

logger = logging.getLogger(__name__)

DEFAULT_MEASUREMENT_LABEL = "Sample"

Listener = Callable[[EngineEvent], None]


@dataclass(frozen=True)
class Measurement:
    ph: float
    color_band: ColorBand
    label: str


class ExperimentSession:
    """Stateful simulation of one experiment.

    Args:
        config (ExperimentConfig): Catalog, equipment and guided steps.

    Example:
        >>> from benchlab.experiments import load_experiment
        >>> session = ExperimentSession(load_experiment("hcl-ph"))
        >>> _ = session.place_equipment("test-tube")
        >>> session.add_reagent("hcl-0-1m", 10.0).total_volume_ml
        10.0
    """

    def __init__(self, config: ExperimentConfig):
        self.config = config
        self.vessel = Vessel(config.capacity_ml)
        self.history = History()
        self.progress = GuidedProgress(config.steps)
        self._measurements: Dict[str, float] = {}
        self._next_sequence = 1
        self._listeners: List[Listener] = []
        self._reveals: List[RevealToken] = []
        self._results_ready = False

    # ------------------------------------------------------------------
    # events

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    def _emit(self, kind: EventKind, **payload) -> None:
        event = EngineEvent(kind, payload)
        for listener in list(self._listeners):
            listener(event)

    def request_reveal(self, callback: Callable[[], None]) -> RevealToken:
        """Return a token the presentation layer fires after its own delay.

        A later :meth:`reset` cancels the token, so the callback cannot run
        against a cleared session.
        """
        self._reveals = [t for t in self._reveals if t.pending]
        token = RevealToken(callback)
        self._reveals.append(token)
        return token

    # ------------------------------------------------------------------
    # command plumbing

    def _candidate(self, kind: ActionKind, **fields) -> Action:
        return Action(kind=kind, sequence=self._next_sequence, **fields)

    def _commit(self, action: Action, step: Optional[GuidedStep]) -> None:
        self.history.record(action)
        self._next_sequence += 1
        self._emit(
            EventKind.ACTION_RECORDED,
            sequence=action.sequence,
            description=action.describe(),
            observation=action.observation,
        )
        if step is not None:
            self.progress.complete(step, action)
            self._emit(EventKind.STEP_COMPLETED, step_id=step.id, title=step.title)
        self._update_results_ready()

    def _update_results_ready(self) -> None:
        ready = self.results_ready
        if ready and not self._results_ready:
            logger.info("Results ready for '%s'", self.config.name)
            self._emit(EventKind.RESULTS_READY, measurements=dict(self._measurements))
        self._results_ready = ready

    @staticmethod
    def _describe_contents(snapshot: VesselSnapshot) -> str:
        return f"Volume {snapshot.total_volume_ml:.1f} mL, {snapshot.appearance.value}"

    # ------------------------------------------------------------------
    # commands

    def add_reagent(self, reagent_id: str, volume_ml: float) -> VesselSnapshot:
        """Add ``volume_ml`` of a catalog reagent to the vessel.

        Raises:
            UnknownReagentError: If ``reagent_id`` is not in the catalog.
            StepMismatchError: If the current guided step does not accept
                this reagent.
            OutOfRangeError: If ``volume_ml`` is outside the reagent's range.
        """
        reagent = self.config.catalog.get(reagent_id)
        candidate = self._candidate(
            ActionKind.ADD_REAGENT,
            reagent_id=reagent.id,
            display_name=reagent.display_name,
            volume_ml=float(volume_ml),
            role=reagent.role,
            moles=moles_from_volume(reagent.molarity, volume_ml),
            pka=reagent.pka,
        )
        step = self.progress.validate(candidate, self.vessel.snapshot())
        snapshot = self.vessel.apply_addition(reagent, volume_ml)
        action = dataclasses.replace(candidate, observation=self._describe_contents(snapshot))
        self._commit(action, step)
        logger.info(
            "Added %.1f mL of %s (total %.1f mL)",
            action.volume_ml,
            reagent.display_name,
            snapshot.total_volume_ml,
        )
        return snapshot

    def place_indicator(self) -> VesselSnapshot:
        candidate = self._candidate(ActionKind.PLACE_INDICATOR)
        step = self.progress.validate(candidate, self.vessel.snapshot())
        snapshot = self.vessel.apply_indicator_placement()
        action = dataclasses.replace(candidate, observation=self._describe_contents(snapshot))
        self._commit(action, step)
        logger.info("Placed indicator paper")
        return snapshot

    def place_equipment(self, equipment_id: str) -> VesselSnapshot:
        """Place a piece of equipment on the bench; no effect on the vessel.

        Raises:
            UnknownEquipmentError: If the experiment does not provide it.
            StepMismatchError: If the current step does not need it.
        """
        if equipment_id not in self.config.equipment:
            raise UnknownEquipmentError(
                f"Unknown equipment '{equipment_id}'. Known: {sorted(self.config.equipment)}"
            )
        name = self.config.equipment[equipment_id]
        candidate = self._candidate(
            ActionKind.PLACE_EQUIPMENT, equipment_id=equipment_id, display_name=name
        )
        step = self.progress.validate(candidate, self.vessel.snapshot())
        action = dataclasses.replace(candidate, observation=f"{name} on the bench")
        self._commit(action, step)
        logger.info("Placed %s", name)
        return self.vessel.snapshot()

    def _default_label(self) -> str:
        for action in reversed(self.history.active_additions()):
            if action.role is not ReagentRole.INDICATOR:
                return action.display_name
        return DEFAULT_MEASUREMENT_LABEL

    def measure_ph(self, label: Optional[str] = None) -> Measurement:
        """Measure the vessel pH and store it under ``label``.

        Args:
            label (str, optional): Measurement-record key. Defaults to the
                display name of the most recently added non-indicator reagent.

        Returns:
            Measurement: pH, indicator color band and the label used.

        Raises:
            ValueError: If ``label`` is given but empty.
            InconclusiveError: If the vessel is empty, no indicator is present
                (when the experiment requires one), or the composition has no
                defensible pH. Checked before step gating, so an empty vessel
                is always reported as inconclusive.
            StepMismatchError: If the current guided step is not a measurement.

        Nothing is recorded when any of these errors is raised.
        """
        if label is not None and not label.strip():
            raise ValueError("Measurement label must be a non-empty string.")
        snapshot = self.vessel.snapshot()
        if snapshot.total_volume_ml <= 0:
            raise InconclusiveError("No solution in the vessel; pH measurement inconclusive.")
        if self.config.requires_indicator and not snapshot.has_indicator:
            raise InconclusiveError("No indicator in contact with the solution.")
        ph = compute_ph(snapshot, self.config.basic_approximation_ph)
        if ph is None:
            raise InconclusiveError("pH measurement inconclusive for this mixture.")

        candidate = self._candidate(ActionKind.MEASURE)
        step = self.progress.validate(candidate, snapshot)

        if label is None:
            label = self._default_label()
        band = color_band_for_ph(ph)
        action = dataclasses.replace(
            candidate,
            resulting_ph=ph,
            color_band=band,
            label=label,
            observation=f"pH {ph:.2f} ({band.value})",
        )
        # Re-recording a label moves it to the end so the record stays in
        # measurement order.
        self._measurements.pop(label, None)
        self._measurements[label] = ph
        self._commit(action, step)
        self._emit(EventKind.MEASURED, ph=ph, color_band=band, label=label)
        logger.info("Measured pH %.2f (%s) under '%s'", ph, band.value, label)
        return Measurement(ph=ph, color_band=band, label=label)

    def undo(self) -> VesselSnapshot:
        """Reverse the most recent action.

        Raises:
            EmptyHistoryError: If there is nothing to undo.
        """
        action = self.history.undo_last(self.vessel)
        reopened = self.progress.undo(action)
        if reopened is not None:
            self._emit(EventKind.STEP_REOPENED, step_id=reopened)
        self._update_results_ready()
        return self.vessel.snapshot()

    def clear_reagent(self, reagent_id: str) -> VesselSnapshot:
        """Remove one reagent's contribution from the vessel.

        The clear is recorded as its own action, so the additions it cancels
        stay in the timeline and :meth:`undo` restores them. Measurements and
        completed steps are kept. Clearing a reagent that is not in the
        vessel records nothing.

        Raises:
            UnknownReagentError: If ``reagent_id`` is not in the catalog.
        """
        reagent = self.config.catalog.get(reagent_id)
        cleared = self.history.active_additions(reagent.id)
        if not cleared:
            logger.info("Nothing to clear for %s", reagent.display_name)
            return self.vessel.snapshot()
        candidate = self._candidate(
            ActionKind.CLEAR_REAGENT,
            reagent_id=reagent.id,
            display_name=reagent.display_name,
            role=reagent.role,
        )
        snapshot = self.vessel.rebuild(self.history.actions + (candidate,))
        action = dataclasses.replace(candidate, observation=self._describe_contents(snapshot))
        self._commit(action, None)
        logger.info("Cleared %d addition(s) of %s", len(cleared), reagent.display_name)
        return snapshot

    def reset(self) -> VesselSnapshot:
        """Return the session to its initial state and cancel pending reveals."""
        for token in self._reveals:
            token.cancel()
        self._reveals.clear()
        self.history.clear()
        self.progress.reset()
        self._measurements.clear()
        self._results_ready = False
        snapshot = self.vessel.reset()
        self._emit(EventKind.RESET)
        logger.info("Reset experiment '%s'", self.config.name)
        return snapshot

    # ------------------------------------------------------------------
    # queries

    @property
    def snapshot(self) -> VesselSnapshot:
        return self.vessel.snapshot()

    @property
    def measurements(self) -> Dict[str, float]:
        return dict(self._measurements)

    def guided_progress(self) -> GuidedProgressView:
        return self.progress.view()

    def results_report(self) -> ResultsReport:
        return generate_results_report(
            self.vessel.snapshot(),
            self._measurements,
            self.history,
            self.config.basic_approximation_ph,
            titration=self.config.titration,
        )

    @property
    def should_prompt_measure(self) -> bool:
        """A reagent was added and has not been measured since."""
        return (
            self.history.last_of(ActionKind.ADD_REAGENT) is not None
            and not self.history.has_measured_since_last_addition
        )

    @property
    def results_ready(self) -> bool:
        return bool(self._measurements) and self.progress.is_complete
