"""
Timetable generation pipeline.

Validates input, materialises the slot universe, runs the selected
scheduler, audits the result for clashes and summarises its quality.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Optional, Union

from timetabler.clashes import ClashDetector
from timetabler.data.loader import parse_timetable_input, validate_input
from timetabler.data.models import Algorithm, TimetableInput
from timetabler.errors import ConfigurationError, InputValidationError, TimetablerError
from timetabler.output import (
    GenerationMetadata,
    GenerationResult,
    QualityCalculator,
    create_views,
)
from timetabler.scheduling import SearchBudget, get_scheduler

logger = logging.getLogger(__name__)


def _failure(algorithm: Union[Algorithm, str], errors: list[str]) -> GenerationResult:
    for message in errors:
        logger.error("Generation aborted: %s", message)
    return GenerationResult(
        success=False,
        algorithm=algorithm.value if isinstance(algorithm, Algorithm) else str(algorithm),
        errors=errors,
    )


def generate_timetable(
    data: Union[TimetableInput, dict[str, Any]],
    algorithm: Optional[Union[Algorithm, str]] = None,
    budget: Optional[SearchBudget] = None,
    cancel_event: Optional[threading.Event] = None,
    time_limit_seconds: Optional[float] = None,
) -> GenerationResult:
    """
    Generate and audit a timetable.

    Invalid input or an unavailable algorithm produce ``success=False`` with
    the reasons in ``errors``; sessions that cannot be placed are reported in
    ``unscheduled`` of a successful result.

    Args:
        data: Parsed input, or a JSON-style dictionary
        algorithm: Overrides ``config.algorithm``
        budget: Search limits; built from the config when omitted
        cancel_event: Cooperative cancellation flag (ignored when ``budget`` is given)
        time_limit_seconds: Overrides ``config.time_limit_seconds``

    Returns:
        GenerationResult
    """
    requested = algorithm
    if isinstance(data, dict):
        try:
            data = parse_timetable_input(data)
        except InputValidationError as e:
            return _failure(requested or Algorithm.GREEDY, e.errors)

    config = data.config
    algorithm = requested or config.algorithm

    errors = validate_input(data)
    if errors:
        return _failure(algorithm, errors)

    if budget is None:
        budget = SearchBudget.from_config(config, cancel_event)
        if time_limit_seconds is not None:
            budget.time_limit_seconds = time_limit_seconds

    try:
        scheduler = get_scheduler(algorithm, budget=budget)
    except ConfigurationError as e:
        return _failure(algorithm, [str(e)])

    algorithm = Algorithm(algorithm)
    slots = config.time_slots()
    logger.info(
        "Generating timetable with %s: %d courses, %d teachers, %d rooms, %d slots",
        algorithm.value, len(data.courses), len(data.teachers), len(data.rooms), len(slots),
    )

    try:
        result = scheduler.schedule(data.courses, data.teachers, data.rooms, slots)
    except TimetablerError as e:
        return _failure(algorithm, [str(e)])

    report = ClashDetector(data.audit).detect_clashes(result.schedule)

    calculator = QualityCalculator()
    statistics = calculator.calculate_statistics(
        result.schedule, data.teachers, data.rooms, len(slots), config.working_days
    )
    quality = calculator.calculate_quality(
        result.schedule, result.unscheduled, data.courses, report, statistics
    )

    logger.info(
        "Generation %s: %d sessions placed, %d unscheduled, quality %.1f (%s)",
        result.status.value, len(result.schedule), len(result.unscheduled),
        quality.quality_score, quality.grade,
    )

    return GenerationResult(
        success=True,
        algorithm=algorithm.value,
        status=result.status.value,
        execution_time_ms=result.execution_time_ms,
        iterations=result.iterations,
        schedule=result.schedule,
        unscheduled=result.unscheduled,
        conflicts=report,
        statistics=statistics,
        quality=quality,
        metadata=GenerationMetadata(
            total_courses=len(data.courses),
            total_teachers=len(data.teachers),
            total_rooms=len(data.rooms),
            total_time_slots=len(slots),
            sessions_required=data.total_sessions_needed,
            working_days=config.working_days,
            generated_at=datetime.now(timezone.utc).isoformat(),
        ),
        views=create_views(
            result.schedule,
            teacher_names={t.teacher_id: t.name for t in data.teachers},
            room_names={r.key: r.room_number for r in data.rooms},
        ),
    )
