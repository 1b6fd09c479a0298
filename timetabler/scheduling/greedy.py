"""
Greedy course scheduler.

Courses are placed in descending priority (credits x max students). For
each required session the full slot x room x teacher product is searched in
input order and the highest-scoring legal tuple is kept; the first tuple
seen wins ties. Placed sessions are visible to every later check, so the
search is sequential by nature.

Rooms and teachers that can never be legal for a course (capacity, lab,
equipment, qualification) are filtered out once per course before the slot
loop. This keeps the candidate order and the result unchanged.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from timetabler.data.models import Course, Room, Teacher, UnscheduledSession
from timetabler.slots import TimeSlot

from .budget import STOP_REASONS, SearchBudget
from .result import (
    REASON_NO_VALID_SLOT,
    SchedulerResult,
    ScheduleStatus,
    build_schedule_entry,
    final_status,
)
from .scorer import DEFAULT_WEIGHTS, ScoreWeights, score_assignment
from .validator import (
    ScheduleBook,
    is_room_suitable,
    is_teacher_qualified,
    is_valid_assignment,
)

logger = logging.getLogger(__name__)


def prioritize_courses(courses: Sequence[Course]) -> list[Course]:
    """Sort by descending priority; equal priorities keep input order."""
    return sorted(courses, key=lambda c: c.priority, reverse=True)


class GreedyScheduler:
    """
    Best-first greedy scheduler.

    Usage:
        scheduler = GreedyScheduler(budget=SearchBudget(max_iterations=500))
        result = scheduler.schedule(courses, teachers, rooms, slots)
    """

    def __init__(
        self,
        weights: ScoreWeights = DEFAULT_WEIGHTS,
        budget: Optional[SearchBudget] = None,
    ):
        self.weights = weights
        self.budget = budget or SearchBudget()

    def schedule(
        self,
        courses: Sequence[Course],
        teachers: Sequence[Teacher],
        rooms: Sequence[Room],
        slots: Sequence[TimeSlot],
    ) -> SchedulerResult:
        """
        Place every required session of every course.

        Args:
            courses: Courses to schedule
            teachers: Candidate teachers, in preference order
            rooms: Candidate rooms, in preference order
            slots: Slot universe, in preference order

        Returns:
            SchedulerResult with the schedule and the unscheduled sessions
        """
        tracker = self.budget.start()
        book = ScheduleBook()
        unscheduled: list[UnscheduledSession] = []
        stop: Optional[ScheduleStatus] = None

        ordered = prioritize_courses(courses)
        logger.info(
            "Greedy scheduling %d courses over %d slots, %d rooms, %d teachers",
            len(ordered), len(slots), len(rooms), len(teachers),
        )

        for course in ordered:
            suitable_rooms = [r for r in rooms if is_room_suitable(course, r)]
            qualified_teachers = [t for t in teachers if is_teacher_qualified(t, course)]

            for session_number in range(1, course.sessions_needed + 1):
                if stop is None:
                    stop = tracker.begin_iteration()

                if stop is not None:
                    unscheduled.append(UnscheduledSession(
                        course_code=course.course_code,
                        session_number=session_number,
                        reason=STOP_REASONS[stop],
                    ))
                    continue

                best, stop = self._find_best(
                    course, qualified_teachers, suitable_rooms, slots, book, tracker
                )

                if best is None:
                    reason = STOP_REASONS[stop] if stop is not None else REASON_NO_VALID_SLOT
                    logger.warning(
                        "Could not schedule session %d of %s: %s",
                        session_number, course.course_code, reason,
                    )
                    unscheduled.append(UnscheduledSession(
                        course_code=course.course_code,
                        session_number=session_number,
                        reason=reason,
                    ))
                    continue

                teacher, room, slot, score = best
                entry = build_schedule_entry(course, teacher, room, slot, session_number)
                book.add(entry)
                logger.debug(
                    "Placed %s #%d: %s, room %s, teacher %s (score %d)",
                    course.course_code, session_number, slot, room.room_number,
                    teacher.teacher_id, score,
                )

        if stop is not None:
            logger.warning("Greedy search stopped early: %s", stop.value)

        logger.info(
            "Greedy scheduling finished: %d placed, %d unscheduled in %d ms",
            len(book), len(unscheduled), tracker.elapsed_ms,
        )

        return SchedulerResult(
            schedule=list(book.entries),
            unscheduled=unscheduled,
            status=final_status(unscheduled, stop),
            iterations=tracker.iterations,
            execution_time_ms=tracker.elapsed_ms,
        )

    def _find_best(self, course, teachers, rooms, slots, book, tracker):
        """Highest-scoring legal tuple for one session, plus any stop status."""
        best = None
        best_score = None

        for slot in slots:
            stop = tracker.interrupted()
            if stop is not None:
                return None, stop

            for room in rooms:
                for teacher in teachers:
                    if not is_valid_assignment(course, teacher, room, slot, book):
                        continue

                    score = score_assignment(course, teacher, room, slot, book, self.weights)
                    if best_score is None or score > best_score:
                        best_score = score
                        best = (teacher, room, slot, score)

        return best, None
