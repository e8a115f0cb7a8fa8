"""
A Python package for simulating bench acid-base experiments.

Models a reaction vessel, computes pH from its composition, and walks a
learner through a guided sequence of additions and measurements with exact
undo and a derived results report.

Modules:
    - catalog: Reagent definitions and per-experiment catalogs.
    - vessel: Volume and per-role mole bookkeeping for the reaction vessel.
    - chemistry: Regime selection, pH expressions, buffer capacity, indicator colors,
      titration normality.
    - history: Ordered action log with undo and a restartable timeline.
    - guided: Guided step state machine.
    - results: Results report with explicit "no result yet" sentinel.
    - session: Command/query surface tying the above together.
    - experiments: Built-in experiments and the builder used to define new ones.
    - reporting / output / plotting: Text, CSV and figure outputs.
"""

__version__ = "1.0.0"

from .catalog import Reagent, ReagentCatalog, ReagentRole
from .chemistry import (
    BufferCapacity,
    ColorBand,
    Regime,
    TitrationResult,
    TitrationSetup,
    classify_buffer_capacity,
    color_band_for_ph,
    compute_ph,
    select_regime,
)
from .errors import (
    CatalogError,
    EmptyHistoryError,
    InconclusiveError,
    OutOfRangeError,
    SimulationError,
    StepMismatchError,
    UnknownEquipmentError,
    UnknownReagentError,
)
from .experiments import PRESETS, ExperimentBuilder, ExperimentConfig, load_experiment
from .guided import GuidedProgressView, GuidedStep
from .history import Action, ActionKind, TimelineEntry
from .results import NO_RESULT, ResultsReport, generate_results_report
from .reveal import EngineEvent, EventKind, RevealToken
from .session import ExperimentSession, Measurement
from .vessel import Appearance, Vessel, VesselSnapshot

__all__ = [
    # Catalog and vessel
    "Reagent",
    "ReagentCatalog",
    "ReagentRole",
    "Vessel",
    "VesselSnapshot",
    "Appearance",
    # Chemistry
    "BufferCapacity",
    "ColorBand",
    "Regime",
    "TitrationResult",
    "TitrationSetup",
    "classify_buffer_capacity",
    "color_band_for_ph",
    "compute_ph",
    "select_regime",
    # Errors
    "SimulationError",
    "CatalogError",
    "UnknownReagentError",
    "UnknownEquipmentError",
    "OutOfRangeError",
    "StepMismatchError",
    "EmptyHistoryError",
    "InconclusiveError",
    # Session
    "Action",
    "ActionKind",
    "TimelineEntry",
    "GuidedStep",
    "GuidedProgressView",
    "ExperimentSession",
    "Measurement",
    "EngineEvent",
    "EventKind",
    "RevealToken",
    "NO_RESULT",
    "ResultsReport",
    "generate_results_report",
    # Experiments
    "ExperimentBuilder",
    "ExperimentConfig",
    "PRESETS",
    "load_experiment",
]
