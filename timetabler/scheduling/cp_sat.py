"""
CP-SAT scheduler.

Same contract as the greedy scheduler, solved as one optimisation problem:

- One boolean per (session, statically legal slot/room/teacher tuple)
- At most one tuple per session
- No teacher or room in two chosen tuples whose slots overlap, expressed
  as optional fixed-size intervals on a week timeline
- Maximise placed sessions first, then the static assignment score

Time representation:
- Week is continuous minutes: day_index * 1440 + minutes from midnight
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Optional, Sequence

from ortools.sat.python import cp_model

from timetabler.data.models import Course, Room, Teacher, UnscheduledSession, day_index
from timetabler.errors import TimetablerError
from timetabler.slots import TimeSlot

from .budget import STOP_REASONS, SearchBudget
from .greedy import prioritize_courses
from .result import (
    REASON_NO_VALID_SLOT,
    SchedulerResult,
    ScheduleStatus,
    build_schedule_entry,
    final_status,
)
from .scorer import DEFAULT_WEIGHTS, ScoreWeights, score_assignment
from .validator import ScheduleBook, is_valid_assignment

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

MINUTES_PER_DAY = 1440

# Reward per placed session; dominates any achievable assignment score
PLACEMENT_WEIGHT = 10_000

DEFAULT_TIME_LIMIT_SECONDS = 60.0


@dataclass
class CandidateVar:
    """A statically legal tuple for one session."""
    session: int
    teacher: Teacher
    room: Room
    slot: TimeSlot
    score: int
    var: cp_model.IntVar


def _week_start(slot: TimeSlot) -> int:
    return day_index(slot.day) * MINUTES_PER_DAY + slot.start_minutes


class ConstraintScheduler:
    """
    Constraint-satisfaction scheduler backed by OR-Tools CP-SAT.

    Usage:
        scheduler = ConstraintScheduler(budget=SearchBudget(time_limit_seconds=10))
        result = scheduler.schedule(courses, teachers, rooms, slots)
    """

    def __init__(
        self,
        weights: ScoreWeights = DEFAULT_WEIGHTS,
        budget: Optional[SearchBudget] = None,
        num_workers: int = 8,
    ):
        self.weights = weights
        self.budget = budget or SearchBudget()
        self.num_workers = num_workers

    def schedule(
        self,
        courses: Sequence[Course],
        teachers: Sequence[Teacher],
        rooms: Sequence[Room],
        slots: Sequence[TimeSlot],
    ) -> SchedulerResult:
        """
        Place as many sessions as possible in a single solve.

        Args:
            courses: Courses to schedule
            teachers: Candidate teachers
            rooms: Candidate rooms
            slots: Slot universe

        Returns:
            SchedulerResult with the schedule and the unscheduled sessions
        """
        tracker = self.budget.start()
        sessions = [
            (course, n)
            for course in prioritize_courses(courses)
            for n in range(1, course.sessions_needed + 1)
        ]

        stop = tracker.interrupted()
        if stop is not None:
            return self._abandon(sessions, stop, tracker)

        model = cp_model.CpModel()
        candidates = self._build_candidates(model, sessions, teachers, rooms, slots)
        logger.info(
            "CP-SAT model: %d sessions, %d candidate assignments",
            len(sessions), len(candidates),
        )

        self._add_constraints(model, candidates)
        if candidates:
            model.Maximize(sum((PLACEMENT_WEIGHT + c.score) * c.var for c in candidates))

        remaining = tracker.remaining_seconds
        solver = cp_model.CpSolver()
        solver.parameters.max_time_in_seconds = (
            remaining if remaining is not None else DEFAULT_TIME_LIMIT_SECONDS
        )
        solver.parameters.num_workers = self.num_workers
        solver.parameters.log_search_progress = False

        status_code = solver.Solve(model)

        if status_code == cp_model.MODEL_INVALID:
            raise TimetablerError(f"CP-SAT model invalid: {model.Validate()}")

        if status_code not in (cp_model.OPTIMAL, cp_model.FEASIBLE):
            logger.warning("CP-SAT found no solution within the time limit")
            return self._abandon(sessions, ScheduleStatus.BUDGET_EXHAUSTED, tracker)

        chosen = {c.session: c for c in candidates if solver.Value(c.var)}
        schedule = []
        unscheduled = []
        for idx, (course, session_number) in enumerate(sessions):
            pick = chosen.get(idx)
            if pick is None:
                logger.warning(
                    "Could not schedule session %d of %s: %s",
                    session_number, course.course_code, REASON_NO_VALID_SLOT,
                )
                unscheduled.append(UnscheduledSession(
                    course_code=course.course_code,
                    session_number=session_number,
                    reason=REASON_NO_VALID_SLOT,
                ))
                continue
            schedule.append(
                build_schedule_entry(course, pick.teacher, pick.room, pick.slot, session_number)
            )

        logger.info(
            "CP-SAT finished (%s): %d placed, %d unscheduled in %d ms",
            solver.StatusName(status_code), len(schedule), len(unscheduled),
            int(solver.WallTime() * 1000),
        )

        return SchedulerResult(
            schedule=schedule,
            unscheduled=unscheduled,
            status=final_status(unscheduled, None),
            iterations=len(sessions),
            execution_time_ms=tracker.elapsed_ms,
            details={
                "candidates": len(candidates),
                "objective": int(solver.ObjectiveValue()),
            },
        )

    # -------------------------------------------------------------------------
    # Model construction
    # -------------------------------------------------------------------------

    def _build_candidates(self, model, sessions, teachers, rooms, slots) -> list[CandidateVar]:
        empty = ScheduleBook()
        candidates = []
        for idx, (course, session_number) in enumerate(sessions):
            for slot in slots:
                for room in rooms:
                    for teacher in teachers:
                        if not is_valid_assignment(course, teacher, room, slot, empty):
                            continue
                        var = model.NewBoolVar(
                            f"x_{course.course_code}_{session_number}_{slot.day}_"
                            f"{slot.start_time}_{room.key}_{teacher.teacher_id}"
                        )
                        candidates.append(CandidateVar(
                            session=idx,
                            teacher=teacher,
                            room=room,
                            slot=slot,
                            score=score_assignment(course, teacher, room, slot, empty, self.weights),
                            var=var,
                        ))
        return candidates

    def _add_constraints(self, model, candidates) -> None:
        by_session = defaultdict(list)
        teacher_intervals = defaultdict(list)
        room_intervals = defaultdict(list)

        for i, c in enumerate(candidates):
            by_session[c.session].append(c.var)
            name = f"{c.session}_{i}"
            teacher_intervals[c.teacher.teacher_id].append(
                model.NewOptionalFixedSizeIntervalVar(
                    _week_start(c.slot), c.slot.duration, c.var, f"t_{name}"
                )
            )
            room_intervals[c.room.key].append(
                model.NewOptionalFixedSizeIntervalVar(
                    _week_start(c.slot), c.slot.duration, c.var, f"r_{name}"
                )
            )

        for session_vars in by_session.values():
            model.AddAtMostOne(session_vars)

        for intervals in teacher_intervals.values():
            if len(intervals) > 1:
                model.AddNoOverlap(intervals)

        for intervals in room_intervals.values():
            if len(intervals) > 1:
                model.AddNoOverlap(intervals)

    def _abandon(self, sessions, stop: ScheduleStatus, tracker) -> SchedulerResult:
        """Report every session unscheduled because the run was stopped."""
        logger.warning("CP-SAT scheduling stopped: %s", stop.value)
        unscheduled = [
            UnscheduledSession(
                course_code=course.course_code,
                session_number=n,
                reason=STOP_REASONS[stop],
            )
            for course, n in sessions
        ]
        return SchedulerResult(
            schedule=[],
            unscheduled=unscheduled,
            status=stop,
            iterations=0,
            execution_time_ms=tracker.elapsed_ms,
        )
