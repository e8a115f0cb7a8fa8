"""Tests for the results report, text summary and exported files."""

import os

import matplotlib
import pandas as pd
import pytest

from benchlab.chemistry.buffer_capacity import BufferCapacity
from benchlab.chemistry.equilibrium import Regime
from benchlab.experiments import load_experiment
from benchlab.output import save_report
from benchlab.plotting import plot_measurements
from benchlab.reporting import format_ph, measurement_frame, summary_lines, timeline_frame
from benchlab.results import NO_RESULT
from benchlab.session import ExperimentSession


def _buffer_session(measure_buffer=True):
    session = ExperimentSession(load_experiment("ethanoic-buffer"))
    session.place_equipment("test-tube")
    session.add_reagent("ethanoic-acid", 10.0)
    session.place_indicator()
    session.measure_ph("Ethanoic acid")
    session.add_reagent("sodium-ethanoate", 5.0)
    if measure_buffer:
        session.measure_ph("Buffer")
    return session


class TestResultsReport:
    def test_no_result_before_measurement(self):
        session = ExperimentSession(load_experiment("ethanoic-buffer"))
        report = session.results_report()
        assert report.last_measured_ph is NO_RESULT
        assert report.theoretical_ph is NO_RESULT
        assert report.deviation is NO_RESULT
        assert report.last_measurement_label is None
        assert not report.has_result
        assert report.regime is Regime.EMPTY
        assert report.buffer_capacity is BufferCapacity.NONE

    def test_no_result_sentinel(self):
        assert not NO_RESULT
        assert repr(NO_RESULT) == "NO_RESULT"
        assert str(NO_RESULT) == "no result yet"
        assert type(NO_RESULT)() is NO_RESULT

    def test_completed_buffer_report(self):
        report = _buffer_session().results_report()
        assert report.has_result
        assert report.last_measurement_label == "Buffer"
        assert report.theoretical_ph == pytest.approx(report.last_measured_ph)
        assert report.deviation == pytest.approx(0.0)
        assert report.regime is Regime.BUFFER
        assert report.buffer_ratio == pytest.approx(0.5)
        assert report.within_buffer_region
        assert report.conjugate_pair_moles == pytest.approx(0.0015)
        assert report.buffer_capacity is BufferCapacity.MODERATE
        assert not report.composition_changed_since_measurement

    def test_composition_changed_after_measurement(self):
        report = _buffer_session(measure_buffer=False).results_report()
        assert report.last_measurement_label == "Ethanoic acid"
        assert report.last_measured_ph == pytest.approx(2.88)
        assert report.composition_changed_since_measurement
        assert report.deviation == pytest.approx(2.88 - report.theoretical_ph)

    def test_report_does_not_mutate_session(self):
        session = _buffer_session()
        before = (session.snapshot, len(session.history), session.measurements)
        session.results_report()
        session.results_report()
        assert (session.snapshot, len(session.history), session.measurements) == before


class TestReporting:
    def test_format_ph(self):
        assert format_ph(4.45897) == "4.46"
        assert format_ph(NO_RESULT) == "no result yet"
        with pytest.raises(ValueError, match="non-finite pH"):
            format_ph(float("nan"))

    def test_summary_before_measurement(self):
        session = ExperimentSession(load_experiment("hcl-ph"))
        lines = summary_lines(session.results_report())
        assert lines[0] == "Measured pH: no result yet"
        assert "Deviation: no result yet" in lines
        assert lines[-1].startswith("Buffer capacity: no buffer formed")

    def test_summary_after_buffer(self):
        lines = summary_lines(_buffer_session().results_report())
        assert "Measured pH (Ethanoic acid): 2.88" in lines
        assert "Measured pH (Buffer): 4.46" in lines
        assert any(line.startswith("Theoretical pH: 4.46 (buffer") for line in lines)
        assert "Deviation: +0.00" in lines
        assert any("within the 0.1-10 buffer region" in line for line in lines)
        assert "Composition changed after the last measurement." not in lines

    def test_summary_flags_changed_composition(self):
        lines = summary_lines(_buffer_session(measure_buffer=False).results_report())
        assert "Composition changed after the last measurement." in lines

    def test_frames(self):
        report = _buffer_session().results_report()
        timeline = timeline_frame(report)
        assert list(timeline.columns) == ["Step", "Action", "Observation"]
        assert timeline["Step"].tolist() == [1, 2, 3, 4, 5, 6]

        measurements = measurement_frame(report)
        assert measurements["Label"].tolist() == ["Ethanoic acid", "Buffer"]
        assert measurements["Measured pH (reported)"].tolist() == ["2.88", "4.46"]

    def test_empty_frames_keep_columns(self):
        report = ExperimentSession(load_experiment("hcl-ph")).results_report()
        assert timeline_frame(report).empty
        assert list(measurement_frame(report).columns) == [
            "Label",
            "Measured pH",
            "Measured pH (reported)",
        ]


class TestOutput:
    def test_save_report_writes_files(self, tmp_path):
        report = _buffer_session().results_report()
        timeline_csv, measurements_csv, summary_txt = save_report(report, str(tmp_path))

        assert pd.read_csv(timeline_csv).shape == (6, 3)
        saved = pd.read_csv(measurements_csv)
        assert saved["Measured pH"].tolist() == pytest.approx([2.88, 4.76 - 0.30103], abs=1e-4)
        with open(summary_txt, encoding="utf-8") as handle:
            assert "Measured pH (Buffer): 4.46" in handle.read()

    def test_plot_measurements(self, tmp_path):
        path = plot_measurements(_buffer_session().results_report(), str(tmp_path))
        assert os.path.exists(path)
        assert path.endswith("measured_ph.png")

    def test_plot_requires_measurements(self, tmp_path):
        report = ExperimentSession(load_experiment("hcl-ph")).results_report()
        with pytest.raises(ValueError, match="nothing to plot"):
            plot_measurements(report, str(tmp_path))


class TestTitrationSummary:
    def _session(self):
        session = ExperimentSession(load_experiment("titration"))
        session.place_equipment("conical-flask")
        session.add_reagent("oxalic-0-1n", 10.0)
        session.add_reagent("phenolphthalein", 0.2)
        session.add_reagent("naoh", 12.0)
        session.measure_ph("Rough")
        return session

    def test_titration_pending(self):
        lines = summary_lines(self._session().results_report())
        assert lines[-1] == "Titration: no result yet"

    def test_titration_lines(self):
        session = self._session()
        session.add_reagent("naoh", 0.6)
        session.measure_ph("Trial 1")
        lines = summary_lines(session.results_report())
        assert "Titre (Trial 1): 12.60 mL" in lines
        assert "Mean titre V2: 12.60 mL" in lines
        assert "Titrant normality N2 = N1V1/V2: 0.0794 N" in lines
        assert lines[-1] == "Titrant strength: 3.17 g/L"


def test_suite_uses_headless_backend():
    assert matplotlib.get_backend().lower() == "agg"
