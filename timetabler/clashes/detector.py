"""
Clash detection for schedules.

Audits any set of schedule entries, whether produced by the schedulers or
assembled elsewhere. Entries are addressed by their index in
``existing + new``. Six independent detectors each return their conflicts;
the results are concatenated in detector order and aggregated into a
ConflictReport.

Pairwise detectors (teacher, room, student, resource) compare every pair
sharing a key, so partial overlaps are found and the conflict count does
not depend on entry order.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable, Iterable, Iterator, Optional, Sequence, Union

from timetabler.data.models import WEEKEND_DAYS, AuditPolicy, ScheduleEntry

from .report import (
    Conflict,
    ConflictReport,
    ConflictType,
    Resolution,
    Severity,
    build_report,
)
from .timeutil import NormalizedSlot, normalize_time_slot, time_slots_overlap

logger = logging.getLogger(__name__)


EntryLike = Union[ScheduleEntry, dict[str, Any]]


# =============================================================================
# Helpers
# =============================================================================

def coerce_entries(entries: Iterable[EntryLike]) -> list[ScheduleEntry]:
    """Accept ScheduleEntry objects or raw dicts in any supported shape."""
    return [
        e if isinstance(e, ScheduleEntry) else ScheduleEntry.model_validate(e)
        for e in entries
    ]


def _overlapping_pairs(
    groups: dict[Any, list[int]],
    slots: Sequence[NormalizedSlot],
) -> Iterator[tuple[Any, int, int]]:
    """Yield (key, i, j) for every overlapping pair i < j within a group."""
    for key, indices in groups.items():
        for pos, j in enumerate(indices):
            for i in indices[:pos]:
                if time_slots_overlap(slots[i], slots[j]):
                    yield key, i, j


def _slot_detail(entry: ScheduleEntry, slot: NormalizedSlot, other: str) -> dict[str, Any]:
    detail: dict[str, Any] = {"course": entry.course_code, "time": str(slot)}
    if other == "room":
        detail["room"] = entry.room_number or entry.room_id
    else:
        detail["teacher"] = entry.teacher_name or entry.teacher_id
    return detail


def _enrolled_count(entry: ScheduleEntry) -> Optional[int]:
    """Head count from current enrollment, else the student list; None if unknown."""
    if entry.current_enrollment is not None:
        return entry.current_enrollment
    if entry.enrolled_students is not None:
        return len(entry.enrolled_students)
    return None


# =============================================================================
# Clash Detector
# =============================================================================

Detector = Callable[[Sequence[ScheduleEntry], Sequence[NormalizedSlot]], list[Conflict]]


class ClashDetector:
    """
    Audits schedule entries for conflicts.

    The detector holds only its policy; every call builds its own conflict
    list, so one instance can be shared freely.

    Usage:
        detector = ClashDetector(AuditPolicy(allow_weekends=True))
        report = detector.detect_clashes(new_entries, existing_entries)
        if not report.can_proceed:
            ...
    """

    def __init__(self, policy: Optional[AuditPolicy] = None):
        self.policy = policy or AuditPolicy()
        self._detectors: dict[ConflictType, Detector] = {
            ConflictType.TEACHER_CONFLICT: self.detect_teacher_conflicts,
            ConflictType.ROOM_CONFLICT: self.detect_room_conflicts,
            ConflictType.STUDENT_CONFLICT: self.detect_student_conflicts,
            ConflictType.TIME_CONFLICT: self.detect_time_conflicts,
            ConflictType.CAPACITY_CONFLICT: self.detect_capacity_conflicts,
            ConflictType.RESOURCE_CONFLICT: self.detect_resource_conflicts,
        }

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def detect_clashes(
        self,
        new_entries: Iterable[EntryLike],
        existing_entries: Iterable[EntryLike] = (),
    ) -> ConflictReport:
        """
        Audit new entries together with an existing schedule.

        Args:
            new_entries: Entries being checked
            existing_entries: Already accepted entries; indexed first

        Returns:
            ConflictReport over all entries
        """
        entries = coerce_entries(existing_entries) + coerce_entries(new_entries)
        slots = [normalize_time_slot(e.day, e.start_time, e.end_time) for e in entries]

        conflicts: list[Conflict] = []
        for conflict_type in ConflictType:
            found = self._detectors[conflict_type](entries, slots)
            if found:
                logger.debug("%d %s(s) found", len(found), conflict_type.value)
            conflicts.extend(found)

        report = build_report(conflicts, len(entries))
        logger.info(
            "Audited %d entries: %d conflicts (%d critical, %d high)",
            len(entries), report.summary.total, report.summary.critical, report.summary.high,
        )
        return report

    def validate_single_entry(
        self,
        entry: EntryLike,
        existing_entries: Iterable[EntryLike] = (),
    ) -> ConflictReport:
        """Audit one entry against an existing schedule."""
        return self.detect_clashes([entry], existing_entries)

    def get_conflicting_entries(
        self,
        target: EntryLike,
        entries: Iterable[EntryLike],
    ) -> list[ScheduleEntry]:
        """
        Entries that conflict with ``target``.

        Only conflicts involving the target count; clashes among ``entries``
        themselves are ignored.

        Args:
            target: Entry to check
            entries: Schedule to check it against

        Returns:
            Conflicting entries in schedule order
        """
        existing = coerce_entries(entries)
        report = self.detect_clashes([target], existing)
        target_index = len(existing)

        indices: set[int] = set()
        for conflict in report.conflicts:
            if target_index in conflict.affected_entries:
                indices.update(i for i in conflict.affected_entries if i != target_index)

        return [existing[i] for i in sorted(indices)]

    # -------------------------------------------------------------------------
    # Detectors
    # -------------------------------------------------------------------------

    def detect_teacher_conflicts(self, entries, slots) -> list[Conflict]:
        """Same teacher in two overlapping sessions on one day."""
        groups: dict[tuple[str, str], list[int]] = defaultdict(list)
        for idx, entry in enumerate(entries):
            if entry.teacher_id:
                groups[(entry.teacher_id, slots[idx].day)].append(idx)

        conflicts = []
        for (teacher_id, _), i, j in _overlapping_pairs(groups, slots):
            entry = entries[j]
            conflicts.append(Conflict(
                type=ConflictType.TEACHER_CONFLICT,
                severity=Severity.CRITICAL,
                description=f"Teacher {entry.teacher_name or teacher_id} is scheduled in multiple locations",
                affected_entries=[i, j],
                details={
                    "teacher": {"id": teacher_id, "name": entry.teacher_name},
                    "conflictingSlots": [
                        _slot_detail(entries[i], slots[i], "room"),
                        _slot_detail(entries[j], slots[j], "room"),
                    ],
                },
                resolution=Resolution(suggestions=[
                    "Reschedule one of the classes",
                    "Assign a different teacher to one course",
                    "Split the time slots",
                ]),
            ))
        return conflicts

    def detect_room_conflicts(self, entries, slots) -> list[Conflict]:
        """Same room booked for two overlapping sessions on one day."""
        groups: dict[tuple[str, str], list[int]] = defaultdict(list)
        for idx, entry in enumerate(entries):
            room = entry.room_id or entry.room_number
            if room:
                groups[(room, slots[idx].day)].append(idx)

        conflicts = []
        for (room, _), i, j in _overlapping_pairs(groups, slots):
            entry = entries[j]
            conflicts.append(Conflict(
                type=ConflictType.ROOM_CONFLICT,
                severity=Severity.HIGH,
                description=f"Room {entry.room_number or room} is double-booked",
                affected_entries=[i, j],
                details={
                    "room": {"id": room, "number": entry.room_number, "building": entry.building},
                    "conflictingSlots": [
                        _slot_detail(entries[i], slots[i], "teacher"),
                        _slot_detail(entries[j], slots[j], "teacher"),
                    ],
                },
                resolution=Resolution(suggestions=[
                    "Find an alternative room with similar capacity",
                    "Reschedule one of the classes",
                    "Use online/hybrid mode for one class",
                ]),
            ))
        return conflicts

    def detect_student_conflicts(self, entries, slots) -> list[Conflict]:
        """A student enrolled in two overlapping sessions."""
        groups: dict[str, list[int]] = defaultdict(list)
        for idx, entry in enumerate(entries):
            if entry.enrolled_students is None:
                continue
            for student_id in dict.fromkeys(entry.enrolled_students):
                groups[student_id].append(idx)

        conflicts = []
        for student_id, i, j in _overlapping_pairs(groups, slots):
            conflicts.append(Conflict(
                type=ConflictType.STUDENT_CONFLICT,
                severity=Severity.HIGH,
                description="Student has overlapping class schedules",
                affected_entries=[i, j],
                details={
                    "student": {"id": student_id},
                    "conflictingSlots": [
                        _slot_detail(entries[i], slots[i], "room"),
                        _slot_detail(entries[j], slots[j], "room"),
                    ],
                },
                resolution=Resolution(suggestions=[
                    "Reschedule one of the classes",
                    "Remove the student from one course",
                    "Offer an alternative section",
                ]),
            ))
        return conflicts

    def detect_time_conflicts(self, entries, slots) -> list[Conflict]:
        """Invalid ranges, unusual durations and weekend sessions."""
        policy = self.policy
        conflicts = []

        for idx, slot in enumerate(slots):
            if not slot.is_valid_range:
                conflicts.append(Conflict(
                    type=ConflictType.TIME_CONFLICT,
                    severity=Severity.HIGH,
                    description="Invalid time range detected",
                    affected_entries=[idx],
                    details={
                        "timeSlot": slot.to_dict(),
                        "issue": "Start time is after end time or invalid format",
                    },
                    resolution=Resolution(suggestions=[
                        "Correct the time range",
                        "Verify the time format",
                    ]),
                ))
            else:
                duration = slot.duration
                if duration < policy.min_duration or duration > policy.max_duration:
                    conflicts.append(Conflict(
                        type=ConflictType.TIME_CONFLICT,
                        severity=Severity.MEDIUM,
                        description="Unusual class duration detected",
                        affected_entries=[idx],
                        details={
                            "duration": duration,
                            "timeSlot": slot.to_dict(),
                            "issue": (
                                "Duration too short" if duration < policy.min_duration
                                else "Duration too long"
                            ),
                        },
                        resolution=Resolution(suggestions=[
                            "Adjust the duration to a standard class length",
                            "Split long sessions with breaks",
                        ]),
                    ))

            if slot.day in WEEKEND_DAYS and not policy.allow_weekends:
                conflicts.append(Conflict(
                    type=ConflictType.TIME_CONFLICT,
                    severity=Severity.LOW,
                    description="Weekend scheduling detected",
                    affected_entries=[idx],
                    details={
                        "day": slot.day,
                        "policy": "Weekend classes may require special approval",
                    },
                    resolution=Resolution(suggestions=[
                        "Move to a weekday",
                        "Get weekend approval",
                    ]),
                ))

        return conflicts

    def detect_capacity_conflicts(self, entries, slots) -> list[Conflict]:
        """Over-full rooms and under-enrolled sessions."""
        conflicts = []

        for idx, entry in enumerate(entries):
            enrolled = _enrolled_count(entry)
            if enrolled is None:
                continue

            capacity = entry.room_capacity
            if capacity and enrolled > capacity:
                conflicts.append(Conflict(
                    type=ConflictType.CAPACITY_CONFLICT,
                    severity=Severity.HIGH,
                    description="Room capacity exceeded",
                    affected_entries=[idx],
                    details={
                        "room": {"number": entry.room_number, "capacity": capacity},
                        "enrollment": {"current": enrolled, "overflow": enrolled - capacity},
                    },
                    resolution=Resolution(suggestions=[
                        "Find a larger room",
                        "Limit enrollment",
                        "Split into multiple sections",
                        "Use hybrid learning",
                    ]),
                ))

            minimum = (
                entry.min_enrollment if entry.min_enrollment is not None
                else self.policy.min_enrollment
            )
            if enrolled < minimum:
                conflicts.append(Conflict(
                    type=ConflictType.CAPACITY_CONFLICT,
                    severity=Severity.MEDIUM,
                    description="Low enrollment detected",
                    affected_entries=[idx],
                    details={
                        "enrollment": {
                            "current": enrolled,
                            "minimum": minimum,
                            "shortage": minimum - enrolled,
                        },
                    },
                    resolution=Resolution(suggestions=[
                        "Promote course enrollment",
                        "Combine with a similar section",
                        "Cancel if enrollment does not improve",
                    ]),
                ))

        return conflicts

    def detect_resource_conflicts(self, entries, slots) -> list[Conflict]:
        """Two overlapping sessions needing the same piece of equipment."""
        groups: dict[tuple[str, str], list[int]] = defaultdict(list)
        for idx, entry in enumerate(entries):
            for resource in dict.fromkeys(entry.required_resources):
                groups[(resource, slots[idx].day)].append(idx)

        conflicts = []
        for (resource, _), i, j in _overlapping_pairs(groups, slots):
            conflicts.append(Conflict(
                type=ConflictType.RESOURCE_CONFLICT,
                severity=Severity.MEDIUM,
                description=f"Resource conflict: {resource}",
                affected_entries=[i, j],
                details={
                    "resource": resource,
                    "conflictingSlots": [
                        _slot_detail(entries[i], slots[i], "room"),
                        _slot_detail(entries[j], slots[j], "room"),
                    ],
                },
                resolution=Resolution(suggestions=[
                    "Find an alternative resource",
                    "Reschedule one session",
                    "Share the resource with a time buffer",
                ]),
            ))
        return conflicts


# =============================================================================
# Convenience Functions
# =============================================================================

def detect_clashes(
    new_entries: Iterable[EntryLike],
    existing_entries: Iterable[EntryLike] = (),
    policy: Optional[AuditPolicy] = None,
) -> ConflictReport:
    """Audit entries with a one-off detector."""
    return ClashDetector(policy).detect_clashes(new_entries, existing_entries)
