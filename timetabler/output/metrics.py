"""
Quality metrics and statistics for generated schedules.

The quality score rewards covering every course and penalises each
unscheduled session and each serious (critical or high) audit conflict:

    quality = max(0, scheduling_rate - 5 * conflict_count)
"""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING, Optional, Sequence

from .schema import QualityMetrics, Statistics, TeacherLoad, Utilization

if TYPE_CHECKING:
    from timetabler.clashes.report import ConflictReport
    from timetabler.data.models import (
        Course,
        Room,
        ScheduleEntry,
        Teacher,
        UnscheduledSession,
    )


# =============================================================================
# Constants
# =============================================================================

CONFLICT_PENALTY = 5

# Target thresholds for quality assessment
DEFAULT_TARGETS = {
    "scheduling_rate": 100.0,      # Min % of courses with at least one session
    "teacher_utilization": 50.0,   # Min % of teachers used
    "room_utilization": 50.0,      # Min % of rooms used
}


# =============================================================================
# Quality Calculator
# =============================================================================

class QualityCalculator:
    """
    Calculates quality metrics and statistics for a schedule.

    Usage:
        calculator = QualityCalculator()
        quality = calculator.calculate_quality(schedule, unscheduled, courses, report)
        print(calculator.generate_report(quality, stats))
    """

    def __init__(self, targets: dict[str, float] | None = None):
        self.targets = {**DEFAULT_TARGETS, **(targets or {})}

    def calculate_quality(
        self,
        schedule: Sequence[ScheduleEntry],
        unscheduled: Sequence[UnscheduledSession],
        courses: Sequence[Course],
        report: Optional[ConflictReport] = None,
        statistics: Optional[Statistics] = None,
    ) -> QualityMetrics:
        """
        Calculate the quality score of a schedule.

        Args:
            schedule: Placed sessions
            unscheduled: Sessions that could not be placed
            courses: Courses that were requested
            report: Audit of the schedule; its critical and high conflicts count
            statistics: Used for utilisation improvement hints when given

        Returns:
            QualityMetrics with score, grade and improvement areas
        """
        scheduled_courses = len({e.course_code for e in schedule if e.course_code})
        total_courses = len(courses)
        scheduling_rate = scheduled_courses / total_courses * 100 if total_courses else 0.0

        serious = report.summary.critical + report.summary.high if report else 0
        conflict_count = len(unscheduled) + serious

        score = max(0.0, scheduling_rate - CONFLICT_PENALTY * conflict_count)

        return QualityMetrics(
            quality_score=round(score, 1),
            scheduling_rate=round(scheduling_rate, 1),
            conflict_count=conflict_count,
            scheduled_courses=scheduled_courses,
            total_courses=total_courses,
            total_sessions=len(schedule),
            grade=self._score_to_grade(score),
            improvement_areas=self._identify_improvements(
                scheduling_rate, unscheduled, report, statistics
            ),
        )

    def calculate_statistics(
        self,
        schedule: Sequence[ScheduleEntry],
        teachers: Sequence[Teacher],
        rooms: Sequence[Room],
        total_time_slots: int,
        working_days: Sequence[str] = (),
    ) -> Statistics:
        """
        Describe how a schedule uses the available resources.

        Args:
            schedule: Placed sessions
            teachers: All teachers
            rooms: All rooms
            total_time_slots: Size of the slot universe
            working_days: Days listed (with zero counts) in the day distribution

        Returns:
            Statistics with utilisation, distributions and teacher loads
        """
        used_teachers = {e.teacher_id for e in schedule if e.teacher_id}
        used_rooms = {e.room_id or e.room_number for e in schedule if e.room_id or e.room_number}
        used_slots = {(e.day, e.start_time) for e in schedule}

        by_day = {day: 0 for day in working_days}
        for day, count in Counter(e.day for e in schedule).items():
            by_day[day] = count

        by_time_slot = dict(sorted(Counter(
            f"{e.start_time}-{e.end_time}" for e in schedule
        ).items()))

        return Statistics(
            total_sessions=len(schedule),
            total_courses=len({e.course_code for e in schedule if e.course_code}),
            total_teachers=len(used_teachers),
            total_rooms=len(used_rooms),
            utilization=Utilization(
                teachers=_percent(len(used_teachers), len(teachers)),
                rooms=_percent(len(used_rooms), len(rooms)),
                time_slots=_percent(len(used_slots), total_time_slots),
            ),
            by_day=by_day,
            by_time_slot=by_time_slot,
            by_department=dict(Counter(e.department for e in schedule if e.department)),
            by_session_type=dict(Counter(e.session_type for e in schedule if e.session_type)),
            teacher_load=self._teacher_loads(schedule, teachers),
        )

    def generate_report(
        self,
        quality: QualityMetrics,
        statistics: Optional[Statistics] = None,
    ) -> str:
        """
        Generate a human-readable quality report.

        Args:
            quality: Calculated quality metrics
            statistics: Optional schedule statistics

        Returns:
            Formatted multi-line report
        """
        lines = []
        lines.append("=" * 70)
        lines.append("TIMETABLE QUALITY REPORT")
        lines.append("=" * 70)
        lines.append("")
        lines.append(f"Quality Score: {quality.quality_score}/100 (Grade: {quality.grade})")
        lines.append(
            f"Courses Scheduled: {quality.scheduled_courses}/{quality.total_courses} "
            f"({quality.scheduling_rate:.1f}%)"
        )
        lines.append(f"Sessions Placed: {quality.total_sessions}")
        lines.append(f"Penalised Conflicts: {quality.conflict_count}")
        lines.append("")

        if statistics is not None:
            lines.append("-" * 40)
            lines.append("UTILIZATION")
            lines.append("-" * 40)
            util = statistics.utilization
            lines.append(f"Teacher Utilization: {util.teachers:.1f}%")
            lines.append(f"Room Utilization: {util.rooms:.1f}%")
            lines.append(f"Time Slot Utilization: {util.time_slots:.1f}%")
            lines.append("")

            lines.append("-" * 40)
            lines.append("DISTRIBUTION BY DAY")
            lines.append("-" * 40)
            for day, count in statistics.by_day.items():
                lines.append(f"  {day.capitalize():<10} {count}")
            lines.append("")

            overloaded = [l for l in statistics.teacher_load.values() if l.is_overloaded]
            if overloaded:
                lines.append("-" * 40)
                lines.append("OVERLOADED TEACHERS")
                lines.append("-" * 40)
                for load in overloaded:
                    lines.append(f"  - {load.name}: {load.hours:.1f}h (max {load.max_hours}h)")
                lines.append("")

        if quality.improvement_areas:
            lines.append("-" * 40)
            lines.append("AREAS FOR IMPROVEMENT")
            lines.append("-" * 40)
            for area in quality.improvement_areas:
                lines.append(f"  * {area}")
            lines.append("")

        lines.append("=" * 70)

        return "\n".join(lines)

    # -------------------------------------------------------------------------
    # Private Helper Methods
    # -------------------------------------------------------------------------

    def _teacher_loads(self, schedule, teachers) -> dict[str, TeacherLoad]:
        minutes: Counter[str] = Counter()
        sessions: Counter[str] = Counter()
        for entry in schedule:
            if entry.teacher_id:
                minutes[entry.teacher_id] += entry.duration or 0
                sessions[entry.teacher_id] += 1

        return {
            t.teacher_id: TeacherLoad(
                teacher_id=t.teacher_id,
                name=t.name,
                sessions=sessions[t.teacher_id],
                hours=round(minutes[t.teacher_id] / 60, 2),
                max_hours=t.max_hours,
            )
            for t in teachers
        }

    def _score_to_grade(self, score: float) -> str:
        """Convert numeric score to letter grade."""
        if score >= 90:
            return "A"
        elif score >= 80:
            return "B"
        elif score >= 70:
            return "C"
        elif score >= 60:
            return "D"
        else:
            return "F"

    def _identify_improvements(self, scheduling_rate, unscheduled, report, statistics) -> list[str]:
        """Identify areas that need improvement."""
        improvements = []

        if scheduling_rate < self.targets["scheduling_rate"]:
            improvements.append(
                f"Schedule all courses: {scheduling_rate:.0f}% of courses have a session "
                f"(target {self.targets['scheduling_rate']:.0f}%)"
            )

        if unscheduled:
            improvements.append(
                f"Place {len(unscheduled)} unscheduled session(s): add rooms, teachers or time slots"
            )

        if report is not None:
            if report.summary.critical:
                improvements.append(
                    f"Resolve {report.summary.critical} critical conflict(s) before publishing"
                )
            if report.summary.high:
                improvements.append(f"Review {report.summary.high} high-severity conflict(s)")

        if statistics is not None:
            util = statistics.utilization
            if util.teachers < self.targets["teacher_utilization"]:
                improvements.append(
                    f"Teacher utilization ({util.teachers:.0f}%) is below target "
                    f"({self.targets['teacher_utilization']:.0f}%)"
                )
            if util.rooms < self.targets["room_utilization"]:
                improvements.append(
                    f"Room utilization ({util.rooms:.0f}%) is below target "
                    f"({self.targets['room_utilization']:.0f}%)"
                )
            overloaded = [l.name for l in statistics.teacher_load.values() if l.is_overloaded]
            if overloaded:
                improvements.append(f"Reduce load for: {', '.join(overloaded)}")

        return improvements


def _percent(part: int, whole: int) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


# =============================================================================
# Convenience Functions
# =============================================================================

def calculate_quality(
    schedule: Sequence[ScheduleEntry],
    unscheduled: Sequence[UnscheduledSession],
    courses: Sequence[Course],
    report: Optional[ConflictReport] = None,
) -> QualityMetrics:
    """
    Calculate the quality score of a schedule.

    Args:
        schedule: Placed sessions
        unscheduled: Sessions that could not be placed
        courses: Courses that were requested
        report: Optional audit of the schedule

    Returns:
        QualityMetrics
    """
    return QualityCalculator().calculate_quality(schedule, unscheduled, courses, report)


def calculate_statistics(
    schedule: Sequence[ScheduleEntry],
    teachers: Sequence[Teacher],
    rooms: Sequence[Room],
    total_time_slots: int,
    working_days: Sequence[str] = (),
) -> Statistics:
    """
    Describe how a schedule uses the available resources.

    Args:
        schedule: Placed sessions
        teachers: All teachers
        rooms: All rooms
        total_time_slots: Size of the slot universe
        working_days: Days to list in the day distribution

    Returns:
        Statistics
    """
    return QualityCalculator().calculate_statistics(
        schedule, teachers, rooms, total_time_slots, working_days
    )
