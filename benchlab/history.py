"""Ordered action history with exact single-step undo.

The history is the authoritative record of what a learner did in a session.
Vessel contents are always reproducible by replaying it, which is what makes
undo exact: reverting an addition rebuilds the vessel from the remaining
actions instead of subtracting floating-point amounts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterator, List, NamedTuple, Optional, Sequence

from .catalog import ReagentRole
from .errors import EmptyHistoryError

if TYPE_CHECKING:
    from .chemistry.indicator import ColorBand
    from .vessel import Vessel, VesselSnapshot

logger = logging.getLogger(__name__)


class ActionKind(str, Enum):
    ADD_REAGENT = "add_reagent"
    MEASURE = "measure"
    PLACE_INDICATOR = "place_indicator"
    PLACE_EQUIPMENT = "place_equipment"
    CLEAR_REAGENT = "clear_reagent"


@dataclass(frozen=True)
class Action:
    """One accepted command, immutable once recorded.

    Attributes:
        kind: What the learner did.
        sequence: Monotonic counter assigned by the session; never reused
            within a session, even after undo.
        reagent_id: Catalog id for :attr:`ActionKind.ADD_REAGENT` and
            :attr:`ActionKind.CLEAR_REAGENT`.
        display_name: Reagent or equipment name used in descriptions.
        volume_ml: Requested addition volume in mL.
        role: Reagent role, kept so the vessel can be replayed without the
            catalog.
        moles: Moles delivered by the addition (mol).
        pka: pKa carried by conjugate-pair reagents.
        equipment_id: Equipment id for :attr:`ActionKind.PLACE_EQUIPMENT`.
        resulting_ph: pH produced by :attr:`ActionKind.MEASURE`.
        color_band: Indicator color produced by a measurement.
        label: Measurement-record label a measurement was stored under.
        observation: Text describing what was observed right after the
            action; reproduced verbatim in the timeline.
    """

    kind: ActionKind
    sequence: int
    reagent_id: Optional[str] = None
    display_name: Optional[str] = None
    volume_ml: Optional[float] = None
    role: Optional[ReagentRole] = None
    moles: float = 0.0
    pka: Optional[float] = None
    equipment_id: Optional[str] = None
    resulting_ph: Optional[float] = None
    color_band: Optional["ColorBand"] = None
    label: Optional[str] = None
    observation: str = ""

    @property
    def changes_composition(self) -> bool:
        return self.kind in (
            ActionKind.ADD_REAGENT,
            ActionKind.PLACE_INDICATOR,
            ActionKind.CLEAR_REAGENT,
        )

    def describe(self) -> str:
        if self.kind is ActionKind.ADD_REAGENT:
            return f"Added {self.volume_ml:.1f} mL of {self.display_name or self.reagent_id}"
        if self.kind is ActionKind.MEASURE:
            return f"Measured pH ({self.label})" if self.label else "Measured pH"
        if self.kind is ActionKind.PLACE_INDICATOR:
            return "Placed pH indicator paper"
        if self.kind is ActionKind.CLEAR_REAGENT:
            return f"Cleared {self.display_name or self.reagent_id}"
        return f"Placed {self.display_name or self.equipment_id}"


def effective_actions(actions: Sequence[Action]) -> List[Action]:
    """Return the composition-changing actions still in effect, in order.

    A :attr:`ActionKind.CLEAR_REAGENT` action cancels every earlier addition
    of its reagent; additions made after the clear are unaffected.
    """
    effective: List[Action] = []
    for action in actions:
        if action.kind is ActionKind.CLEAR_REAGENT:
            effective = [
                a
                for a in effective
                if not (a.kind is ActionKind.ADD_REAGENT and a.reagent_id == action.reagent_id)
            ]
        elif action.changes_composition:
            effective.append(action)
    return effective


class TimelineEntry(NamedTuple):
    index: int
    action_description: str
    observation_text: str


class Timeline:
    """Lazy, restartable view over a frozen copy of the history.

    Iterating twice yields the same entries; the view never mutates the
    history it was taken from.
    """

    def __init__(self, actions: Sequence[Action]):
        self._actions = tuple(actions)

    def __iter__(self) -> Iterator[TimelineEntry]:
        for index, action in enumerate(self._actions, start=1):
            yield TimelineEntry(index, action.describe(), action.observation)

    def __len__(self) -> int:
        return len(self._actions)


class History:
    """Append-only log with tail truncation for undo."""

    def __init__(self) -> None:
        self._actions: List[Action] = []

    def record(self, action: Action) -> None:
        self._actions.append(action)

    def undo_last(self, vessel: "Vessel") -> Action:
        """Pop the most recent action and reverse its vessel effect.

        Args:
            vessel (Vessel): Vessel whose contents must be restored to the
                state before the popped action.

        Returns:
            Action: The action that was removed.

        Raises:
            EmptyHistoryError: If there is nothing to undo.

        Note:
            Measurements are not retracted from the measurement record; a
            previously observed result stays visible even if reagents are
            removed later.
        """
        if not self._actions:
            raise EmptyHistoryError("Nothing to undo: the history is empty.")
        action = self._actions.pop()
        if action.changes_composition:
            vessel.revert_last_addition(action, self._actions)
        logger.info("Undid action #%d (%s)", action.sequence, action.kind.value)
        return action

    def active_additions(self, reagent_id: Optional[str] = None) -> List[Action]:
        """Additions currently in the vessel, optionally for one reagent."""
        return [
            a
            for a in effective_actions(self._actions)
            if a.kind is ActionKind.ADD_REAGENT
            and (reagent_id is None or a.reagent_id == reagent_id)
        ]

    def clear(self) -> None:
        self._actions.clear()

    def timeline(self) -> Timeline:
        return Timeline(self._actions)

    @property
    def actions(self) -> tuple[Action, ...]:
        return tuple(self._actions)

    @property
    def last(self) -> Optional[Action]:
        return self._actions[-1] if self._actions else None

    def last_of(self, kind: ActionKind) -> Optional[Action]:
        for action in reversed(self._actions):
            if action.kind is kind:
                return action
        return None

    @property
    def has_measured_since_last_addition(self) -> bool:
        """True when no reagent has been added or cleared since the latest measurement."""
        for action in reversed(self._actions):
            if action.kind is ActionKind.MEASURE:
                return True
            if action.kind in (ActionKind.ADD_REAGENT, ActionKind.CLEAR_REAGENT):
                return False
        return False

    def __len__(self) -> int:
        return len(self._actions)

    def __bool__(self) -> bool:
        return bool(self._actions)
