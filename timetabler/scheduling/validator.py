"""
Assignment legality checks.

A (course, teacher, room, slot) tuple is legal when:
- the teacher has no overlapping session that day
- the room has no overlapping session that day
- the room seats the whole class
- the teacher is qualified for the course
- lab sessions are held in labs
- the room has every piece of required equipment
- the teacher is available in the slot (days without declared
  availability count as fully available)
"""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from timetabler.data.models import Course, Room, ScheduleEntry, Teacher, time_to_minutes
from timetabler.slots import TimeSlot


class ScheduleBook:
    """
    The in-progress schedule, indexed by (teacher, day) and (room, day).

    The greedy scheduler adds each placed entry here so that later legality
    checks see it.
    """

    def __init__(self, entries: Iterable[ScheduleEntry] = ()):
        self.entries: list[ScheduleEntry] = []
        self._by_teacher: dict[tuple[str, str], list[tuple[int, int]]] = defaultdict(list)
        self._by_room: dict[tuple[str, str], list[tuple[int, int]]] = defaultdict(list)
        for entry in entries:
            self.add(entry)

    def add(self, entry: ScheduleEntry) -> None:
        window = (time_to_minutes(entry.start_time), time_to_minutes(entry.end_time))
        self.entries.append(entry)
        if entry.teacher_id:
            self._by_teacher[(entry.teacher_id, entry.day)].append(window)
        if entry.room_id:
            self._by_room[(entry.room_id, entry.day)].append(window)

    def __len__(self) -> int:
        return len(self.entries)

    def teacher_busy(self, teacher_id: str, slot: TimeSlot) -> bool:
        return _any_overlap(self._by_teacher.get((teacher_id, slot.day), ()), slot)

    def room_busy(self, room_id: str, slot: TimeSlot) -> bool:
        return _any_overlap(self._by_room.get((room_id, slot.day), ()), slot)

    def teacher_sessions_on(self, teacher_id: str, day: str) -> int:
        return len(self._by_teacher.get((teacher_id, day), ()))


def _any_overlap(windows: Iterable[tuple[int, int]], slot: TimeSlot) -> bool:
    start, end = slot.start_minutes, slot.end_minutes
    return any(s < end and start < e for s, e in windows)


# =============================================================================
# Static checks (independent of the schedule)
# =============================================================================

def is_teacher_qualified(teacher: Teacher, course: Course) -> bool:
    """
    Department match, or a specialization token that matches the course.

    A token matches when it is a substring of the course name, code or
    department, or when one of those is a substring of it. Comparison is
    case-insensitive.
    """
    if teacher.department == course.department:
        return True

    targets = [
        t.lower() for t in (course.course_name, course.course_code, course.department) if t
    ]
    for token in teacher.specialization:
        token = token.lower()
        if not token:
            continue
        for target in targets:
            if token in target or target in token:
                return True
    return False


def is_room_suitable(course: Course, room: Room) -> bool:
    """Capacity, lab and equipment requirements."""
    if room.capacity < course.max_students:
        return False
    if course.is_lab_course and not room.is_lab:
        return False
    if course.required_equipment and not room.has_equipment(course.required_equipment):
        return False
    return True


# =============================================================================
# Full legality check
# =============================================================================

def is_valid_assignment(
    course: Course,
    teacher: Teacher,
    room: Room,
    slot: TimeSlot,
    book: ScheduleBook,
) -> bool:
    """Whether the tuple can be added to the schedule in ``book``."""
    if book.teacher_busy(teacher.teacher_id, slot):
        return False
    if book.room_busy(room.key, slot):
        return False
    if not is_room_suitable(course, room):
        return False
    if not is_teacher_qualified(teacher, course):
        return False
    if not teacher.is_available(slot.day, slot.start_time, slot.end_time):
        return False
    return True
