"""Error taxonomy for the experiment simulation engine.

Every error here is local and recoverable: the command that raised it has left
the vessel, history, guided progress and measurement record untouched.
"""

from __future__ import annotations


class SimulationError(ValueError):
    """Base class for recoverable engine errors."""


class CatalogError(SimulationError):
    """Raised when a reagent definition or catalog is internally inconsistent."""


class UnknownReagentError(SimulationError, KeyError):
    """Raised when a command names a reagent missing from the catalog."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class UnknownEquipmentError(SimulationError, KeyError):
    """Raised when a placement names equipment the experiment does not provide."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class OutOfRangeError(SimulationError):
    """Raised when an addition volume lies outside the reagent's allowed range."""

    def __init__(self, reagent_id: str, volume_ml: float, low: float, high: float):
        self.reagent_id = reagent_id
        self.volume_ml = volume_ml
        self.low = low
        self.high = high
        super().__init__(
            f"Volume {volume_ml!r} mL for '{reagent_id}' is outside the allowed "
            f"range {low:.1f}-{high:.1f} mL."
        )


class StepMismatchError(SimulationError):
    """Raised when an action is valid but does not satisfy the current guided step."""

    def __init__(self, step_id: int, step_title: str, attempted: str):
        self.step_id = step_id
        self.step_title = step_title
        self.attempted = attempted
        super().__init__(
            f"'{attempted}' does not satisfy step {step_id} ({step_title})."
        )


class EmptyHistoryError(SimulationError):
    """Raised when undo is requested with nothing to undo."""


class InconclusiveError(SimulationError):
    """Raised when a pH measurement cannot produce a defensible value."""
