"""Guided step state machine for scripted experiments.

States are the step ids ``1..N`` plus a terminal "complete" state. The current
step is always the lowest id not yet completed. Only an action that satisfies
the current step is accepted while the sequence is running; once every step is
complete the session is in free exploration and no further gating applies.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Iterable, Optional, Set, Tuple

from .errors import StepMismatchError
from .history import Action, ActionKind
from .vessel import VesselSnapshot

logger = logging.getLogger(__name__)

StepCondition = Callable[[Action, VesselSnapshot], bool]


@dataclass(frozen=True)
class GuidedStep:
    """One ordered stage of a scripted experiment.

    Attributes:
        id: Position in the sequence, starting at 1.
        title: Short name shown in the progress bar.
        description: Instruction text for the learner.
        action: Kind of action that completes the step.
        required_ids: Reagent ids (for additions) or equipment ids (for
            placements) that may satisfy the step. Empty means any.
        condition: Extra predicate over the candidate action and the vessel
            state before it is applied.
    """

    id: int
    title: str
    description: str = ""
    action: ActionKind = ActionKind.ADD_REAGENT
    required_ids: FrozenSet[str] = field(default_factory=frozenset)
    condition: Optional[StepCondition] = field(default=None, compare=False)

    def is_satisfied_by(self, action: Action, snapshot: VesselSnapshot) -> bool:
        if action.kind is not self.action:
            return False
        if self.required_ids:
            if action.kind is ActionKind.ADD_REAGENT:
                target = action.reagent_id
            elif action.kind is ActionKind.PLACE_EQUIPMENT:
                target = action.equipment_id
            else:
                target = None
            if target is not None and target not in self.required_ids:
                return False
        if self.condition is not None:
            return bool(self.condition(action, snapshot))
        return True


@dataclass(frozen=True)
class GuidedProgressView:
    """Read-only progress summary handed to the presentation layer."""

    current_step_id: Optional[int]
    completed_step_ids: FrozenSet[int]
    total_steps: int

    @property
    def is_complete(self) -> bool:
        return self.current_step_id is None


class GuidedProgress:
    """Track completion of an ordered list of :class:`GuidedStep`.

    Raises:
        ValueError: If step ids are not exactly ``1..N`` in order.
    """

    def __init__(self, steps: Iterable[GuidedStep]):
        self.steps: Tuple[GuidedStep, ...] = tuple(steps)
        expected = list(range(1, len(self.steps) + 1))
        if [s.id for s in self.steps] != expected:
            raise ValueError(
                f"Guided step ids must run 1..N in order, got {[s.id for s in self.steps]}"
            )
        self._completed: Set[int] = set()
        # action sequence -> step id it completed
        self._completed_by: Dict[int, int] = {}

    @property
    def current_step_id(self) -> Optional[int]:
        for step in self.steps:
            if step.id not in self._completed:
                return step.id
        return None

    @property
    def current_step(self) -> Optional[GuidedStep]:
        step_id = self.current_step_id
        return None if step_id is None else self.steps[step_id - 1]

    @property
    def completed_step_ids(self) -> FrozenSet[int]:
        return frozenset(self._completed)

    @property
    def is_complete(self) -> bool:
        return self.current_step_id is None

    def validate(self, action: Action, snapshot: VesselSnapshot) -> Optional[GuidedStep]:
        """Check ``action`` against the current step before anything is applied.

        Returns:
            GuidedStep | None: The step the action will complete, or ``None``
            when the sequence is already complete (or empty).

        Raises:
            StepMismatchError: If the action does not satisfy the current step.
        """
        step = self.current_step
        if step is None:
            return None
        if not step.is_satisfied_by(action, snapshot):
            logger.warning(
                "Rejected '%s' at step %d (%s)", action.describe(), step.id, step.title
            )
            raise StepMismatchError(step.id, step.title, action.describe())
        return step

    def complete(self, step: GuidedStep, action: Action) -> None:
        self._completed.add(step.id)
        self._completed_by[action.sequence] = step.id
        logger.info("Completed step %d (%s)", step.id, step.title)

    def undo(self, action: Action) -> Optional[int]:
        """Reopen the step ``action`` completed, if any, and return its id."""
        step_id = self._completed_by.pop(action.sequence, None)
        if step_id is not None:
            self._completed.discard(step_id)
            logger.info("Reopened step %d", step_id)
        return step_id

    def reset(self) -> None:
        self._completed.clear()
        self._completed_by.clear()

    def view(self) -> GuidedProgressView:
        return GuidedProgressView(
            current_step_id=self.current_step_id,
            completed_step_ids=self.completed_step_ids,
            total_steps=len(self.steps),
        )
