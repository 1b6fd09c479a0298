"""
Time-slot universe construction.

Slots are generated day by day: each day starts at the working-hours start
and advances by ``slot_duration + break_duration`` until the next slot would
run past the working-hours end.

Example (08:00-12:00, 60 min slots, 15 min breaks):
    08:00-09:00, 09:15-10:15, 10:30-11:30
"""

from __future__ import annotations

from dataclasses import dataclass

from timetabler.data.models import (
    LUNCH_END,
    LUNCH_START,
    minutes_to_time,
    time_to_minutes,
)


@dataclass(frozen=True)
class TimeSlot:
    """A candidate (day, start, end) window shared by one generation run."""
    day: str
    start_time: str  # 'HH:MM'
    end_time: str  # 'HH:MM'
    duration: int  # minutes

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time)

    @property
    def is_lunch_time(self) -> bool:
        """Whether the slot starts inside the lunch window."""
        return time_to_minutes(LUNCH_START) <= self.start_minutes < time_to_minutes(LUNCH_END)

    def overlaps(self, other: TimeSlot) -> bool:
        if self.day != other.day:
            return False
        return self.start_minutes < other.end_minutes and other.start_minutes < self.end_minutes

    def __str__(self) -> str:
        return f"{self.day} {self.start_time}-{self.end_time}"


def generate_time_slots(
    working_days: list[str],
    start: str,
    end: str,
    slot_duration: int,
    break_duration: int = 0,
) -> list[TimeSlot]:
    """
    Build the ordered slot universe.

    Args:
        working_days: Days in week order
        start: Working-hours start ('HH:MM')
        end: Working-hours end ('HH:MM')
        slot_duration: Slot length in minutes
        break_duration: Gap between consecutive slots in minutes

    Returns:
        Slots ordered by day (as given) then start time. Empty when the
        configuration is degenerate (start >= end or non-positive duration).
    """
    start_minutes = time_to_minutes(start)
    end_minutes = time_to_minutes(end)

    if slot_duration <= 0 or start_minutes >= end_minutes:
        return []

    step = slot_duration + max(0, break_duration)
    slots: list[TimeSlot] = []

    for day in working_days:
        current = start_minutes
        while current + slot_duration <= end_minutes:
            slots.append(TimeSlot(
                day=day,
                start_time=minutes_to_time(current),
                end_time=minutes_to_time(current + slot_duration),
                duration=slot_duration,
            ))
            current += step

    return slots
