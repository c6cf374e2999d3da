"""
Orchestrator - Run State Machine.

============================================================
PURPOSE
============================================================
Tracks one pipeline run through its states.

INVARIANTS:
- Terminal states are final
- Only transitions listed in the table are allowed
- All transitions are logged
- Time spent in each state is recorded

============================================================
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Set

from orchestrator.models import PipelineState


logger = logging.getLogger(__name__)


class InvalidTransitionError(Exception):
    """Raised on a transition missing from the table."""

    def __init__(self, from_state: PipelineState, to_state: PipelineState):
        super().__init__(f"Invalid transition: {from_state.value} -> {to_state.value}")
        self.from_state = from_state
        self.to_state = to_state


@dataclass
class StateTransitionEvent:
    """Event representing a state transition."""

    from_state: PipelineState
    to_state: PipelineState
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    reason: str = ""


class PipelineStateMachine:
    """
    State machine for a single run.

    A new instance is created per run; nothing survives between runs.
    """

    def __init__(self, transitions: Dict[PipelineState, Set[PipelineState]], run_name: str):
        self._transitions = transitions
        self._run_name = run_name
        self._state = PipelineState.IDLE
        self._history: List[StateTransitionEvent] = []
        self._timings: Dict[str, float] = {}
        self._entered_at = time.monotonic()
        self._last_active = PipelineState.IDLE

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def last_active_state(self) -> PipelineState:
        """Last non-FAILED state, i.e. the state a failure happened in."""
        return self._last_active

    @property
    def history(self) -> List[StateTransitionEvent]:
        return list(self._history)

    @property
    def timings(self) -> Dict[str, float]:
        """Seconds spent per state, rounded to milliseconds."""
        return dict(self._timings)

    def can_transition(self, to_state: PipelineState) -> bool:
        return to_state in self._transitions.get(self._state, set())

    def transition(self, to_state: PipelineState, reason: str = "") -> None:
        """
        Move to a new state.

        Raises:
            InvalidTransitionError: if not allowed from the current state
        """
        if not self.can_transition(to_state):
            raise InvalidTransitionError(self._state, to_state)

        now = time.monotonic()
        self._timings[self._state.value] = round(
            self._timings.get(self._state.value, 0.0) + (now - self._entered_at), 3
        )
        self._entered_at = now

        event = StateTransitionEvent(from_state=self._state, to_state=to_state, reason=reason)
        self._history.append(event)

        if to_state != PipelineState.FAILED:
            self._last_active = to_state

        log = logger.warning if to_state == PipelineState.FAILED else logger.debug
        log(
            f"[{self._run_name}] {self._state.value} -> {to_state.value}"
            + (f" ({reason})" if reason else "")
        )
        self._state = to_state

    def fail(self, reason: str) -> None:
        """Move to FAILED unless already terminal."""
        if not self._state.is_terminal():
            self.transition(PipelineState.FAILED, reason)
