"""Generation output: result schema, views, quality and statistics."""

from .metrics import (
    CONFLICT_PENALTY,
    DEFAULT_TARGETS,
    QualityCalculator,
    calculate_quality,
    calculate_statistics,
)
from .schema import (
    DaySchedule,
    EntitySchedule,
    GenerationMetadata,
    GenerationResult,
    QualityMetrics,
    Statistics,
    TeacherLoad,
    TimetableViews,
    Utilization,
    create_views,
    sort_entries,
)

__all__ = [
    # Schema
    "GenerationResult",
    "GenerationMetadata",
    "QualityMetrics",
    "Statistics",
    "TeacherLoad",
    "Utilization",
    "DaySchedule",
    "EntitySchedule",
    "TimetableViews",
    "create_views",
    "sort_entries",
    # Metrics
    "QualityCalculator",
    "calculate_quality",
    "calculate_statistics",
    "CONFLICT_PENALTY",
    "DEFAULT_TARGETS",
]
