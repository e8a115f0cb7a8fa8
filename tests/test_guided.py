"""Tests for the guided step state machine."""

import logging

import pytest

from benchlab.errors import StepMismatchError
from benchlab.guided import GuidedProgress, GuidedStep
from benchlab.history import Action, ActionKind
from benchlab.vessel import Vessel, VesselSnapshot

STEPS = (
    GuidedStep(1, "Place Test Tube", action=ActionKind.PLACE_EQUIPMENT, required_ids=frozenset({"test-tube"})),
    GuidedStep(2, "Add Acid", action=ActionKind.ADD_REAGENT, required_ids=frozenset({"hcl"})),
    GuidedStep(3, "Measure", action=ActionKind.MEASURE),
)


def _equip(sequence=1, equipment_id="test-tube"):
    return Action(ActionKind.PLACE_EQUIPMENT, sequence, equipment_id=equipment_id)


def _add(sequence, reagent_id="hcl"):
    return Action(
        ActionKind.ADD_REAGENT, sequence, reagent_id=reagent_id, display_name=reagent_id, volume_ml=10.0
    )


class TestGuidedProgress:
    def test_starts_at_first_step(self):
        progress = GuidedProgress(STEPS)
        view = progress.view()
        assert view.current_step_id == 1
        assert view.completed_step_ids == frozenset()
        assert view.total_steps == 3
        assert not view.is_complete

    def test_matching_action_completes_step(self):
        progress = GuidedProgress(STEPS)
        action = _equip()
        step = progress.validate(action, Vessel().snapshot())
        progress.complete(step, action)
        assert progress.current_step_id == 2
        assert progress.completed_step_ids == frozenset({1})

    def test_mismatch_is_rejected_and_logged(self, caplog):
        caplog.set_level(logging.WARNING)
        progress = GuidedProgress(STEPS)
        with pytest.raises(StepMismatchError, match="does not satisfy step 1") as excinfo:
            progress.validate(_add(1), Vessel().snapshot())
        assert excinfo.value.step_id == 1
        assert progress.current_step_id == 1
        assert any("Rejected" in rec.message for rec in caplog.records)

    def test_wrong_reagent_is_rejected(self):
        progress = GuidedProgress(STEPS)
        action = _equip()
        progress.complete(progress.validate(action, Vessel().snapshot()), action)
        with pytest.raises(StepMismatchError):
            progress.validate(_add(2, "naoh"), Vessel().snapshot())

    def test_undo_reopens_completed_step(self):
        progress = GuidedProgress(STEPS)
        action = _equip()
        progress.complete(progress.validate(action, Vessel().snapshot()), action)
        assert progress.undo(action) == 1
        assert progress.current_step_id == 1

    def test_undo_of_ungated_action_reopens_nothing(self):
        progress = GuidedProgress(STEPS)
        assert progress.undo(_add(7)) is None

    def test_complete_sequence_stops_gating(self):
        progress = GuidedProgress(STEPS)
        snapshot = Vessel().snapshot()
        for action in (_equip(1), _add(2), Action(ActionKind.MEASURE, 3)):
            progress.complete(progress.validate(action, snapshot), action)
        assert progress.is_complete
        assert progress.current_step_id is None
        assert progress.validate(_add(4, "anything"), snapshot) is None

    def test_no_steps_means_free_exploration(self):
        progress = GuidedProgress(())
        assert progress.is_complete
        assert progress.validate(_add(1), Vessel().snapshot()) is None

    def test_step_ids_must_be_sequential(self):
        with pytest.raises(ValueError, match="must run 1..N"):
            GuidedProgress((STEPS[1], STEPS[0]))


class TestStepConditions:
    def test_condition_sees_prior_snapshot(self):
        step = GuidedStep(
            1,
            "Add to empty tube",
            condition=lambda action, snapshot: snapshot.total_volume_ml == 0,
        )
        assert step.is_satisfied_by(_add(1), Vessel().snapshot())

        assert not step.is_satisfied_by(_add(2), VesselSnapshot(total_volume_ml=5.0))

    def test_kind_must_match(self):
        step = GuidedStep(1, "Measure", action=ActionKind.MEASURE)
        assert not step.is_satisfied_by(_equip(), Vessel().snapshot())
