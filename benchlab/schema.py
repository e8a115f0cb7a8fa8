"""Define standardized column names for report DataFrames."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TimelineColumns:
    """Container for audit-trail column labels.

    These labels are shared by the timeline DataFrame, the CSV export and the
    plotting layer so the three never disagree.

    Attributes:
        index: One-based position of the action in the session history.
        action: Human-readable description of what the learner did.
        observation: What the learner would see after the action
            (volume, measured pH, indicator color).
    """

    index: str = "Step"
    action: str = "Action"
    observation: str = "Observation"


@dataclass(frozen=True)
class MeasurementColumns:
    """Container for measurement-table column labels.

    Attributes:
        label: Case or concentration identifier the pH was recorded under.
        ph: Last pH recorded under that label (pH units, 0-14).
        ph_reported: ``ph`` formatted to two decimal places for display.
    """

    label: str = "Label"
    ph: str = "Measured pH"
    ph_reported: str = "Measured pH (reported)"
