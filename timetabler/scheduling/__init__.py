"""Assignment engine: legality, scoring and the schedulers."""

from __future__ import annotations

from typing import Optional, Union

from timetabler.data.models import Algorithm
from timetabler.errors import ConfigurationError

from .budget import BudgetTracker, SearchBudget
from .cp_sat import ConstraintScheduler
from .greedy import GreedyScheduler, prioritize_courses
from .result import (
    REASON_BUDGET_EXHAUSTED,
    REASON_CANCELLED,
    REASON_NO_VALID_SLOT,
    SchedulerResult,
    ScheduleStatus,
    build_schedule_entry,
)
from .scorer import DEFAULT_WEIGHTS, ScoreWeights, score_assignment
from .validator import (
    ScheduleBook,
    is_room_suitable,
    is_teacher_qualified,
    is_valid_assignment,
)


Scheduler = Union[GreedyScheduler, ConstraintScheduler]


def get_scheduler(
    algorithm: Union[Algorithm, str],
    budget: Optional[SearchBudget] = None,
    weights: ScoreWeights = DEFAULT_WEIGHTS,
) -> Scheduler:
    """
    Create the scheduler for an algorithm selector.

    Args:
        algorithm: Algorithm enum or its string value
        budget: Search limits and cancellation
        weights: Score contributions

    Returns:
        A scheduler exposing ``schedule(courses, teachers, rooms, slots)``

    Raises:
        ConfigurationError: Unknown or unavailable algorithm
    """
    try:
        algorithm = Algorithm(algorithm)
    except ValueError:
        raise ConfigurationError(f"Unknown algorithm: {algorithm}") from None

    if algorithm == Algorithm.GREEDY:
        return GreedyScheduler(weights=weights, budget=budget)
    if algorithm == Algorithm.CONSTRAINT_SATISFACTION:
        return ConstraintScheduler(weights=weights, budget=budget)
    raise ConfigurationError(f"Algorithm '{algorithm.value}' is not available")


__all__ = [
    # Schedulers
    "GreedyScheduler",
    "ConstraintScheduler",
    "Scheduler",
    "get_scheduler",
    "prioritize_courses",
    # Budget
    "SearchBudget",
    "BudgetTracker",
    # Results
    "SchedulerResult",
    "ScheduleStatus",
    "build_schedule_entry",
    "REASON_NO_VALID_SLOT",
    "REASON_BUDGET_EXHAUSTED",
    "REASON_CANCELLED",
    # Validation and scoring
    "ScheduleBook",
    "is_valid_assignment",
    "is_room_suitable",
    "is_teacher_qualified",
    "ScoreWeights",
    "DEFAULT_WEIGHTS",
    "score_assignment",
]
