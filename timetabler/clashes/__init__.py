"""Clash detection and conflict reporting."""

from .detector import ClashDetector, coerce_entries, detect_clashes
from .report import (
    Conflict,
    ConflictReport,
    ConflictSummary,
    ConflictType,
    Recommendation,
    Resolution,
    Severity,
    build_report,
    generate_recommendations,
)
from .timeutil import (
    NormalizedSlot,
    normalize_time,
    normalize_time_slot,
    parse_minutes,
    time_slots_overlap,
)

__all__ = [
    # Detector
    "ClashDetector",
    "detect_clashes",
    "coerce_entries",
    # Report
    "Conflict",
    "ConflictReport",
    "ConflictSummary",
    "ConflictType",
    "Recommendation",
    "Resolution",
    "Severity",
    "build_report",
    "generate_recommendations",
    # Time handling
    "NormalizedSlot",
    "normalize_time",
    "normalize_time_slot",
    "parse_minutes",
    "time_slots_overlap",
]
