"""
Search budget and cooperative cancellation.

One iteration is one session search. The wall-clock limit and the cancel
event are also polled inside the candidate loop, so a long search stops
between candidates rather than only between sessions.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from .result import REASON_BUDGET_EXHAUSTED, REASON_CANCELLED, ScheduleStatus

if TYPE_CHECKING:
    from timetabler.data.models import SchedulingConfig


STOP_REASONS = {
    ScheduleStatus.BUDGET_EXHAUSTED: REASON_BUDGET_EXHAUSTED,
    ScheduleStatus.CANCELLED: REASON_CANCELLED,
}


@dataclass
class SearchBudget:
    """Limits for a scheduling run. ``None`` means unlimited."""
    max_iterations: Optional[int] = None
    time_limit_seconds: Optional[float] = None
    cancel_event: Optional[threading.Event] = None

    @classmethod
    def from_config(
        cls,
        config: SchedulingConfig,
        cancel_event: Optional[threading.Event] = None,
    ) -> SearchBudget:
        return cls(
            max_iterations=config.max_iterations,
            time_limit_seconds=config.time_limit_seconds,
            cancel_event=cancel_event,
        )

    def start(self) -> BudgetTracker:
        """Begin tracking a run against this budget."""
        return BudgetTracker(self)


class BudgetTracker:
    """Counts iterations and elapsed time for one run."""

    def __init__(self, budget: SearchBudget):
        self.budget = budget
        self.iterations = 0
        self._started = time.monotonic()

    @property
    def elapsed_seconds(self) -> float:
        return time.monotonic() - self._started

    @property
    def elapsed_ms(self) -> int:
        return int(self.elapsed_seconds * 1000)

    @property
    def remaining_seconds(self) -> Optional[float]:
        if self.budget.time_limit_seconds is None:
            return None
        return max(0.0, self.budget.time_limit_seconds - self.elapsed_seconds)

    def interrupted(self) -> Optional[ScheduleStatus]:
        """Cancellation or timeout, if either has happened."""
        if self.budget.cancel_event is not None and self.budget.cancel_event.is_set():
            return ScheduleStatus.CANCELLED
        limit = self.budget.time_limit_seconds
        if limit is not None and self.elapsed_seconds >= limit:
            return ScheduleStatus.BUDGET_EXHAUSTED
        return None

    def begin_iteration(self) -> Optional[ScheduleStatus]:
        """Start the next session search, or return why the run must stop."""
        stop = self.interrupted()
        if stop is not None:
            return stop
        limit = self.budget.max_iterations
        if limit is not None and self.iterations >= limit:
            return ScheduleStatus.BUDGET_EXHAUSTED
        self.iterations += 1
        return None
