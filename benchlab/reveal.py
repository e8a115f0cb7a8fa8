"""Engine events and cancellable deferred-reveal tokens.

The engine never sleeps or schedules anything itself. When results become
ready it emits an event; the presentation layer may then ask for a
:class:`RevealToken`, run its own timer, and call :meth:`RevealToken.fire`
when the timer expires. A session reset cancels every outstanding token, so a
reveal scheduled before the reset can never fire after it.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict

_token_ids = itertools.count(1)


class EventKind(str, Enum):
    ACTION_RECORDED = "action_recorded"
    STEP_COMPLETED = "step_completed"
    STEP_REOPENED = "step_reopened"
    MEASURED = "measured"
    RESULTS_READY = "results_ready"
    RESET = "reset"


@dataclass(frozen=True)
class EngineEvent:
    kind: EventKind
    payload: Dict[str, Any] = field(default_factory=dict)


class RevealToken:
    """Handle for one pending deferred reveal.

    The callback runs at most once, and never after :meth:`cancel`.
    """

    def __init__(self, callback: Callable[[], None]):
        self.id = next(_token_ids)
        self._callback = callback
        self._cancelled = False
        self._fired = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def pending(self) -> bool:
        return not (self._cancelled or self._fired)

    def cancel(self) -> None:
        self._cancelled = True

    def fire(self) -> bool:
        """Run the callback if still pending; return whether it ran."""
        if not self.pending:
            return False
        self._fired = True
        self._callback()
        return True

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "fired" if self._fired else "pending"
        return f"RevealToken(id={self.id}, {state})"
