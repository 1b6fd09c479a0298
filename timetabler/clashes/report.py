"""
Conflict types and the aggregated clash report.

The report is serialised with camelCase keys, matching the rest of the
JSON output.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Sequence

from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class ConflictType(str, Enum):
    """Category of a detected conflict."""
    TEACHER_CONFLICT = "teacher_conflict"
    ROOM_CONFLICT = "room_conflict"
    STUDENT_CONFLICT = "student_conflict"
    TIME_CONFLICT = "time_conflict"
    CAPACITY_CONFLICT = "capacity_conflict"
    RESOURCE_CONFLICT = "resource_conflict"


class Severity(str, Enum):
    """Conflict severity, ordered by ``rank``."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.CRITICAL: 4,
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
}


# =============================================================================
# Conflict
# =============================================================================

class Resolution(BaseModel):
    """Suggested ways to resolve a conflict."""
    suggestions: list[str] = Field(default_factory=list)


class Conflict(BaseModel):
    """A single detected conflict."""
    type: ConflictType
    severity: Severity
    description: str
    affected_entries: list[int] = Field(alias="affectedEntries")
    details: dict[str, Any] = Field(default_factory=dict)
    resolution: Resolution = Field(default_factory=Resolution)

    model_config = {"populate_by_name": True}


class Recommendation(BaseModel):
    """Action item derived from the conflicts present."""
    priority: Severity
    action: str
    details: str


# =============================================================================
# Report
# =============================================================================

class ConflictSummary(BaseModel):
    """Counts by severity and the share of entries involved."""
    total: int = 0
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    affected_schedules: int = Field(default=0, alias="affectedSchedules")
    total_schedules: int = Field(default=0, alias="totalSchedules")
    conflict_rate: float = Field(default=0.0, alias="conflictRate")  # Percentage

    model_config = {"populate_by_name": True}


class ConflictReport(BaseModel):
    """Aggregated result of a clash detection run."""
    timestamp: str
    summary: ConflictSummary
    by_type: dict[ConflictType, int] = Field(alias="byType")
    conflicts: list[Conflict] = Field(default_factory=list)
    recommendations: list[Recommendation] = Field(default_factory=list)
    can_proceed: bool = Field(alias="canProceed")
    requires_review: bool = Field(alias="requiresReview")

    model_config = {"populate_by_name": True}

    def conflicts_of(self, conflict_type: ConflictType) -> list[Conflict]:
        return [c for c in self.conflicts if c.type == conflict_type]

    def count_at_least(self, severity: Severity) -> int:
        """Number of conflicts at or above a severity."""
        return sum(1 for c in self.conflicts if c.severity.rank >= severity.rank)

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return self.model_dump_json(by_alias=True, indent=indent)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return self.model_dump(by_alias=True, mode="json")


# =============================================================================
# Recommendations
# =============================================================================

# (priority, action, details template) per conflict type
_TYPE_RECOMMENDATIONS = {
    ConflictType.TEACHER_CONFLICT: (
        Severity.HIGH, "Review teacher assignments and schedules", "{n} teacher conflicts detected",
    ),
    ConflictType.ROOM_CONFLICT: (
        Severity.HIGH, "Review room bookings and availability", "{n} room conflicts detected",
    ),
    ConflictType.STUDENT_CONFLICT: (
        Severity.HIGH, "Review student enrollments for overlapping classes",
        "{n} student conflicts detected",
    ),
    ConflictType.TIME_CONFLICT: (
        Severity.MEDIUM, "Review session times and durations", "{n} time issues detected",
    ),
    ConflictType.CAPACITY_CONFLICT: (
        Severity.MEDIUM, "Review room capacities and enrollment numbers",
        "{n} capacity issues detected",
    ),
    ConflictType.RESOURCE_CONFLICT: (
        Severity.MEDIUM, "Review shared equipment bookings", "{n} resource conflicts detected",
    ),
}


def generate_recommendations(conflicts: Sequence[Conflict]) -> list[Recommendation]:
    """One recommendation per conflict category present."""
    recommendations = []

    if any(c.severity == Severity.CRITICAL for c in conflicts):
        recommendations.append(Recommendation(
            priority=Severity.CRITICAL,
            action="Resolve all critical conflicts before proceeding",
            details="Critical conflicts prevent proper scheduling and must be addressed immediately",
        ))

    for conflict_type in ConflictType:
        count = sum(1 for c in conflicts if c.type == conflict_type)
        if count == 0:
            continue
        priority, action, details = _TYPE_RECOMMENDATIONS[conflict_type]
        recommendations.append(Recommendation(
            priority=priority,
            action=action,
            details=details.format(n=count),
        ))

    return recommendations


def build_report(conflicts: Sequence[Conflict], total_entries: int) -> ConflictReport:
    """
    Aggregate conflicts into a report.

    Args:
        conflicts: Conflicts in detector emission order
        total_entries: Number of entries that were audited

    Returns:
        ConflictReport with conflicts sorted by descending severity
    """
    counts = {severity: 0 for severity in Severity}
    by_type = {conflict_type: 0 for conflict_type in ConflictType}
    affected: set[int] = set()

    for conflict in conflicts:
        counts[conflict.severity] += 1
        by_type[conflict.type] += 1
        affected.update(conflict.affected_entries)

    conflict_rate = round(len(affected) / total_entries * 100, 2) if total_entries else 0.0

    summary = ConflictSummary(
        total=len(conflicts),
        critical=counts[Severity.CRITICAL],
        high=counts[Severity.HIGH],
        medium=counts[Severity.MEDIUM],
        low=counts[Severity.LOW],
        affected_schedules=len(affected),
        total_schedules=total_entries,
        conflict_rate=conflict_rate,
    )

    return ConflictReport(
        timestamp=datetime.now(timezone.utc).isoformat(),
        summary=summary,
        by_type=by_type,
        # sorted() is stable, so equal severities keep emission order
        conflicts=sorted(conflicts, key=lambda c: c.severity.rank, reverse=True),
        recommendations=generate_recommendations(conflicts),
        can_proceed=counts[Severity.CRITICAL] == 0,
        requires_review=counts[Severity.CRITICAL] > 0 or counts[Severity.HIGH] > 0,
    )
