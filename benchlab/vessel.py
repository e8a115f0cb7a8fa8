"""Model the contents of the simulated reaction vessel.

The vessel tracks total volume, cumulative moles per reagent role and whether
an indicator is present. It performs no I/O and never computes pH; callers
take an immutable :class:`VesselSnapshot` and hand it to the calculator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Optional

from .catalog import Reagent, ReagentRole
from .errors import OutOfRangeError
from .history import Action, ActionKind, effective_actions
from .units import ml_to_l, moles_from_volume

DEFAULT_CAPACITY_ML = 20.0


class Appearance(str, Enum):
    """Visual state descriptor; derived, never authoritative."""

    CLEAR = "clear"
    TINTED = "tinted"
    COLORED = "colored"


def _empty_moles() -> Dict[ReagentRole, float]:
    return {role: 0.0 for role in ReagentRole}


@dataclass(frozen=True)
class VesselSnapshot:
    """Immutable view of the vessel at one instant.

    Attributes:
        total_volume_ml: Current liquid volume in mL, within
            ``[0, capacity_ml]``.
        moles_by_role: Cumulative moles (mol) per :class:`ReagentRole`; every
            role is always present.
        has_indicator: Whether indicator paper or solution is in contact.
        capacity_ml: Vessel capacity in mL.
        pka: pKa of the conjugate pair present, if any.
    """

    total_volume_ml: float
    moles_by_role: Dict[ReagentRole, float] = field(default_factory=_empty_moles)
    has_indicator: bool = False
    capacity_ml: float = DEFAULT_CAPACITY_ML
    pka: Optional[float] = None

    def moles(self, role: ReagentRole) -> float:
        return self.moles_by_role.get(role, 0.0)

    @property
    def volume_l(self) -> float:
        return ml_to_l(self.total_volume_ml)

    @property
    def conjugate_pair_moles(self) -> float:
        return self.moles(ReagentRole.WEAK_ACID) + self.moles(ReagentRole.CONJUGATE_BASE)

    @property
    def appearance(self) -> Appearance:
        if self.total_volume_ml <= 0:
            return Appearance.CLEAR
        return Appearance.COLORED if self.has_indicator else Appearance.TINTED


class Vessel:
    """Mutable vessel aggregate owned by a single experiment session."""

    def __init__(self, capacity_ml: float = DEFAULT_CAPACITY_ML):
        if capacity_ml <= 0:
            raise ValueError(f"Vessel capacity must be positive, got {capacity_ml}")
        self.capacity_ml = float(capacity_ml)
        self.reset()

    def reset(self) -> VesselSnapshot:
        self._volume_ml = 0.0
        self._moles = _empty_moles()
        self._has_indicator = False
        self._pka: Optional[float] = None
        return self.snapshot()

    def snapshot(self) -> VesselSnapshot:
        return VesselSnapshot(
            total_volume_ml=self._volume_ml,
            moles_by_role=dict(self._moles),
            has_indicator=self._has_indicator,
            capacity_ml=self.capacity_ml,
            pka=self._pka,
        )

    def _add(self, volume_ml: float, role: ReagentRole, moles: float, pka: Optional[float]):
        # Overflow is tolerated: liquid past the brim is lost, moles are not.
        self._volume_ml = min(self.capacity_ml, self._volume_ml + volume_ml)
        self._moles[role] += moles
        if role is ReagentRole.INDICATOR:
            self._has_indicator = True
        if role.is_conjugate_pair:
            self._pka = pka

    def apply_addition(self, reagent: Reagent, volume_ml: float) -> VesselSnapshot:
        """Add ``volume_ml`` of ``reagent`` to the vessel.

        Args:
            reagent (Reagent): Catalog entry being added.
            volume_ml (float): Volume in mL; must lie within the reagent's
                ``[min_volume_ml, max_volume_ml]`` range.

        Returns:
            VesselSnapshot: State after the addition.

        Raises:
            OutOfRangeError: If ``volume_ml`` is outside the allowed range.
                The vessel is unchanged.

        Note:
            Volume is capped at vessel capacity without error. Moles follow the
            requested volume, ``molarity * volume_ml / 1000``.
        """
        if not reagent.accepts_volume(volume_ml):
            raise OutOfRangeError(
                reagent.id, volume_ml, reagent.min_volume_ml, reagent.max_volume_ml
            )
        self._add(
            float(volume_ml),
            reagent.role,
            moles_from_volume(reagent.molarity, volume_ml),
            reagent.pka,
        )
        return self.snapshot()

    def apply_indicator_placement(self) -> VesselSnapshot:
        self._has_indicator = True
        return self.snapshot()

    def rebuild(self, actions: Iterable[Action]) -> VesselSnapshot:
        """Recompute the vessel from scratch by replaying ``actions`` in order.

        Replaying performs the same floating-point operations in the same
        order as the original additions, so the result is bit-identical to
        the state those actions first produced. Additions cancelled by a later
        :attr:`~benchlab.history.ActionKind.CLEAR_REAGENT` are skipped.
        """
        self.reset()
        for action in effective_actions(list(actions)):
            if action.kind is ActionKind.ADD_REAGENT:
                self._add(float(action.volume_ml), action.role, action.moles, action.pka)
            elif action.kind is ActionKind.PLACE_INDICATOR:
                self._has_indicator = True
        return self.snapshot()

    def revert_last_addition(self, action: Action, remaining: Iterable[Action]) -> VesselSnapshot:
        """Reverse the effect of ``action``, the most recent composition change.

        Args:
            action (Action): The action being undone.
            remaining (Iterable[Action]): History left after removing
                ``action``.

        Returns:
            VesselSnapshot: State identical to the one before ``action`` was
            applied. Role buckets with no remaining contributors are exactly
            zero, and the indicator flag survives only while an
            indicator-adding action remains.

        Raises:
            ValueError: If ``action`` does not change composition.
        """
        if not action.changes_composition:
            raise ValueError(f"Action kind '{action.kind.value}' has no vessel effect to revert.")
        return self.rebuild(remaining)
