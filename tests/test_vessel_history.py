"""Tests for vessel bookkeeping, history replay and exact undo."""

import pytest

from benchlab.catalog import Reagent, ReagentRole
from benchlab.errors import EmptyHistoryError, OutOfRangeError
from benchlab.history import Action, ActionKind, History
from benchlab.units import moles_from_volume
from benchlab.vessel import Appearance, Vessel

ACID = Reagent("hcl", "0.1 M HCl", 0.1, ReagentRole.STRONG_ACID, 1.0, 20.0)
WEAK = Reagent("ha", "0.1 M Ethanoic acid", 0.1, ReagentRole.WEAK_ACID, 1.0, 20.0, pka=4.76)
CONJ = Reagent("a", "0.1 M Sodium ethanoate", 0.1, ReagentRole.CONJUGATE_BASE, 1.0, 20.0, pka=4.76)
INDICATOR = Reagent("ui", "Universal indicator", 0.0, ReagentRole.INDICATOR, 0.2, 1.0)


def _addition(sequence, reagent, volume_ml):
    return Action(
        kind=ActionKind.ADD_REAGENT,
        sequence=sequence,
        reagent_id=reagent.id,
        display_name=reagent.display_name,
        volume_ml=volume_ml,
        role=reagent.role,
        moles=moles_from_volume(reagent.molarity, volume_ml),
        pka=reagent.pka,
    )


def _add(vessel, history, reagent, volume_ml):
    action = _addition(len(history) + 1, reagent, volume_ml)
    vessel.apply_addition(reagent, volume_ml)
    history.record(action)
    return action


class TestVessel:
    def test_starts_empty(self):
        snapshot = Vessel().snapshot()
        assert snapshot.total_volume_ml == 0.0
        assert all(v == 0.0 for v in snapshot.moles_by_role.values())
        assert set(snapshot.moles_by_role) == set(ReagentRole)
        assert snapshot.appearance is Appearance.CLEAR

    def test_addition_tracks_volume_and_moles(self):
        vessel = Vessel(20.0)
        snapshot = vessel.apply_addition(WEAK, 10.0)
        assert snapshot.total_volume_ml == 10.0
        assert snapshot.moles(ReagentRole.WEAK_ACID) == pytest.approx(0.001)
        assert snapshot.pka == 4.76
        assert snapshot.appearance is Appearance.TINTED

    def test_out_of_range_leaves_vessel_unchanged(self):
        vessel = Vessel(20.0)
        vessel.apply_addition(WEAK, 10.0)
        before = vessel.snapshot()
        with pytest.raises(OutOfRangeError, match="outside the allowed range"):
            vessel.apply_addition(CONJ, 25.0)
        assert vessel.snapshot() == before

    def test_overflow_caps_volume_but_keeps_moles(self):
        vessel = Vessel(20.0)
        vessel.apply_addition(WEAK, 15.0)
        snapshot = vessel.apply_addition(CONJ, 10.0)
        assert snapshot.total_volume_ml == 20.0
        assert snapshot.moles(ReagentRole.CONJUGATE_BASE) == pytest.approx(0.001)

    def test_indicator_sets_flag_without_moles(self):
        vessel = Vessel(20.0)
        snapshot = vessel.apply_addition(INDICATOR, 0.5)
        assert snapshot.has_indicator
        assert snapshot.total_volume_ml == 0.5
        assert snapshot.moles(ReagentRole.INDICATOR) == 0.0

    def test_indicator_paper_colors_contents(self):
        vessel = Vessel(20.0)
        vessel.apply_addition(ACID, 10.0)
        assert vessel.apply_indicator_placement().appearance is Appearance.COLORED

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError, match="must be positive"):
            Vessel(0.0)


class TestHistoryUndo:
    def test_undo_restores_exact_prior_state(self):
        vessel, history = Vessel(20.0), History()
        _add(vessel, history, WEAK, 10.0)
        before = vessel.snapshot()
        _add(vessel, history, CONJ, 5.0)

        history.undo_last(vessel)

        assert vessel.snapshot() == before
        assert len(history) == 1

    def test_undo_after_overflow_restores_volume(self):
        vessel, history = Vessel(20.0), History()
        _add(vessel, history, WEAK, 15.0)
        before = vessel.snapshot()
        _add(vessel, history, CONJ, 10.0)
        history.undo_last(vessel)
        assert vessel.snapshot().total_volume_ml == 15.0
        assert vessel.snapshot() == before

    def test_undo_last_contributor_zeroes_role(self):
        vessel, history = Vessel(20.0), History()
        _add(vessel, history, ACID, 3.3)
        _add(vessel, history, WEAK, 7.7)
        history.undo_last(vessel)
        assert vessel.snapshot().moles(ReagentRole.WEAK_ACID) == 0.0

    def test_undo_indicator_clears_flag(self):
        vessel, history = Vessel(20.0), History()
        _add(vessel, history, ACID, 10.0)
        _add(vessel, history, INDICATOR, 0.5)
        history.undo_last(vessel)
        assert not vessel.snapshot().has_indicator

    def test_undo_measurement_leaves_vessel(self):
        vessel, history = Vessel(20.0), History()
        _add(vessel, history, ACID, 10.0)
        before = vessel.snapshot()
        history.record(Action(ActionKind.MEASURE, 2, resulting_ph=1.0, label="HCl"))
        undone = history.undo_last(vessel)
        assert undone.kind is ActionKind.MEASURE
        assert vessel.snapshot() == before

    def test_undo_on_empty_history(self):
        with pytest.raises(EmptyHistoryError, match="Nothing to undo"):
            History().undo_last(Vessel())

    def test_revert_rejects_non_composition_actions(self):
        action = Action(ActionKind.PLACE_EQUIPMENT, 1, equipment_id="test-tube")
        with pytest.raises(ValueError, match="no vessel effect"):
            Vessel().revert_last_addition(action, [])

    def test_clear_cancels_earlier_additions_only(self):
        vessel, history = Vessel(20.0), History()
        _add(vessel, history, ACID, 5.0)
        _add(vessel, history, WEAK, 5.0)
        _add(vessel, history, ACID, 5.0)
        history.record(Action(ActionKind.CLEAR_REAGENT, 4, reagent_id="hcl", display_name="0.1 M HCl"))
        assert history.active_additions("hcl") == []
        snapshot = vessel.rebuild(history.actions)
        assert snapshot.total_volume_ml == 5.0
        assert snapshot.moles(ReagentRole.STRONG_ACID) == 0.0

        later = _add(vessel, history, ACID, 2.0)
        assert history.active_additions("hcl") == [later]
        assert vessel.rebuild(history.actions).total_volume_ml == 7.0

    def test_undo_clear_restores_additions(self):
        vessel, history = Vessel(20.0), History()
        _add(vessel, history, ACID, 5.0)
        _add(vessel, history, WEAK, 5.0)
        before = vessel.snapshot()
        history.record(Action(ActionKind.CLEAR_REAGENT, 3, reagent_id="hcl", display_name="0.1 M HCl"))
        vessel.rebuild(history.actions)

        history.undo_last(vessel)

        assert vessel.snapshot() == before
        assert len(history) == 2


class TestTimeline:
    def test_timeline_is_restartable(self):
        vessel, history = Vessel(20.0), History()
        _add(vessel, history, WEAK, 10.0)
        history.record(Action(ActionKind.PLACE_INDICATOR, 2))
        timeline = history.timeline()
        first = list(timeline)
        assert list(timeline) == first
        assert [entry.index for entry in first] == [1, 2]
        assert first[0].action_description == "Added 10.0 mL of 0.1 M Ethanoic acid"
        assert first[1].action_description == "Placed pH indicator paper"

    def test_timeline_is_a_copy(self):
        history = History()
        timeline = history.timeline()
        history.record(Action(ActionKind.PLACE_INDICATOR, 1))
        assert len(timeline) == 0
        assert len(history.timeline()) == 1

    def test_measured_since_last_addition(self):
        vessel, history = Vessel(20.0), History()
        assert not history.has_measured_since_last_addition
        _add(vessel, history, ACID, 10.0)
        assert not history.has_measured_since_last_addition
        history.record(Action(ActionKind.MEASURE, 2, resulting_ph=1.0))
        assert history.has_measured_since_last_addition
        assert history.last_of(ActionKind.ADD_REAGENT).sequence == 1
