"""
Time normalisation and overlap tests for audited schedules.

Audited entries may come from other systems, so times arrive in several
shapes: '9:00', '0900', '930', '2:30 PM', '11am'. Everything is brought to
zero-padded 'HH:MM' before comparison. Input that cannot be parsed is passed
through unchanged and later reported by the time detector.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional


MINUTES_PER_DAY = 1440

_HH_MM = re.compile(r"^\d{1,2}:\d{2}$")
_HHMM = re.compile(r"^\d{3,4}$")
_TWELVE_HOUR = re.compile(r"(\d{1,2}):?(\d{2})?\s*(AM|PM)", re.IGNORECASE)
_CANONICAL = re.compile(r"^(\d{2}):(\d{2})$")


def normalize_time(value: Any) -> Optional[str]:
    """
    Normalise a clock time to zero-padded 'HH:MM'.

    Args:
        value: Time in 'H:MM', 'HH:MM', 'HMM', 'HHMM' or 'H[:MM] AM/PM' form

    Returns:
        'HH:MM', the stripped input if it cannot be parsed, or None for
        empty input

    Example:
        >>> normalize_time("9:30")
        '09:30'
        >>> normalize_time("1430")
        '14:30'
        >>> normalize_time("2:15 pm")
        '14:15'
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None

    if _HH_MM.match(text):
        return text.zfill(5)

    if _HHMM.match(text):
        return f"{text[:-2].zfill(2)}:{text[-2:]}"

    match = _TWELVE_HOUR.search(text)
    if match:
        hours = int(match.group(1))
        minutes = match.group(2) or "00"
        period = match.group(3).upper()
        if period == "PM" and hours != 12:
            hours += 12
        if period == "AM" and hours == 12:
            hours = 0
        return f"{hours:02d}:{minutes}"

    return text


def parse_minutes(value: Optional[str]) -> Optional[int]:
    """Minutes from midnight for a normalised time, or None if it is not one."""
    if value is None:
        return None
    match = _CANONICAL.match(value)
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if minutes >= 60:
        return None
    return hours * 60 + minutes


@dataclass(frozen=True)
class NormalizedSlot:
    """Day and times of an audited entry after normalisation."""
    day: str
    start_time: Optional[str]
    end_time: Optional[str]

    @property
    def start_minutes(self) -> Optional[int]:
        return parse_minutes(self.start_time)

    @property
    def end_minutes(self) -> Optional[int]:
        return parse_minutes(self.end_time)

    @property
    def is_parseable(self) -> bool:
        return self.start_minutes is not None and self.end_minutes is not None

    @property
    def is_valid_range(self) -> bool:
        """Both times parse, start precedes end, and both lie within the day."""
        start, end = self.start_minutes, self.end_minutes
        if start is None or end is None:
            return False
        return 0 <= start < end <= MINUTES_PER_DAY

    @property
    def duration(self) -> Optional[int]:
        if not self.is_parseable:
            return None
        return self.end_minutes - self.start_minutes

    def __str__(self) -> str:
        return f"{self.day} {self.start_time}-{self.end_time}"

    def to_dict(self) -> dict[str, Optional[str]]:
        return {"day": self.day, "startTime": self.start_time, "endTime": self.end_time}


def normalize_time_slot(day: Any, start_time: Any, end_time: Any) -> NormalizedSlot:
    """Build a NormalizedSlot from raw entry fields."""
    day_text = str(day).strip().lower() if day is not None else ""
    return NormalizedSlot(
        day=day_text,
        start_time=normalize_time(start_time),
        end_time=normalize_time(end_time),
    )


def time_slots_overlap(a: NormalizedSlot, b: NormalizedSlot) -> bool:
    """
    Whether two slots share any minute.

    Slots on different days never overlap. Slots whose times cannot be
    parsed never overlap anything; the time detector reports them instead.
    """
    if a.day != b.day:
        return False
    start1, end1 = a.start_minutes, a.end_minutes
    start2, end2 = b.start_minutes, b.end_minutes
    if None in (start1, end1, start2, end2):
        return False
    return start1 < end2 and start2 < end1
