"""
Desirability score for a legal assignment.

Terms are additive and independent of each other. Conflicting tuples are
rejected by the validator before scoring, so no conflict penalty is applied
here.
"""

from __future__ import annotations

from dataclasses import dataclass

from timetabler.data.models import Course, Room, Teacher
from timetabler.slots import TimeSlot

from .validator import ScheduleBook


@dataclass(frozen=True)
class ScoreWeights:
    """Score contributions."""
    base: int = 50
    preferred_department: int = 20
    preferred_slot: int = 15
    good_capacity_fit: int = 10
    equipment_match: int = 5  # Per matched item
    same_day_class: int = 5
    lunch_time: int = -10

    # Capacity utilisation band counted as a good fit
    fit_low: float = 0.70
    fit_high: float = 0.90


DEFAULT_WEIGHTS = ScoreWeights()


def score_assignment(
    course: Course,
    teacher: Teacher,
    room: Room,
    slot: TimeSlot,
    book: ScheduleBook,
    weights: ScoreWeights = DEFAULT_WEIGHTS,
) -> int:
    """
    Score a (course, teacher, room, slot) tuple.

    Args:
        course: Course being placed
        teacher: Candidate teacher
        room: Candidate room
        slot: Candidate slot
        book: Schedule built so far
        weights: Score contributions

    Returns:
        Integer score; higher is better
    """
    score = weights.base

    if teacher.preferences.prefers_department(course.department):
        score += weights.preferred_department

    if teacher.preferences.prefers_slot(slot.day, slot.start_time):
        score += weights.preferred_slot

    utilization = course.max_students / room.capacity
    if weights.fit_low <= utilization <= weights.fit_high:
        score += weights.good_capacity_fit

    if course.required_equipment:
        matched = sum(1 for item in course.required_equipment if item in room.equipment)
        score += matched * weights.equipment_match

    # Flat bonus, not proportional to adjacency
    if book.teacher_sessions_on(teacher.teacher_id, slot.day) > 0:
        score += weights.same_day_class

    if slot.is_lunch_time:
        score += weights.lunch_time

    return score
