"""Timetabler - course timetable generation and clash auditing."""

from .clashes import ClashDetector, ConflictReport, detect_clashes
from .data.models import Course, Room, ScheduleEntry, Teacher, TimetableInput
from .engine import generate_timetable
from .errors import ConfigurationError, InputValidationError, TimetablerError
from .output import GenerationResult, QualityCalculator
from .scheduling import GreedyScheduler, ConstraintScheduler, SearchBudget, get_scheduler
from .slots import TimeSlot, generate_time_slots

__version__ = "0.1.0"

__all__ = [
    # Pipeline
    "generate_timetable",
    "GenerationResult",
    # Data model
    "TimetableInput",
    "Course",
    "Teacher",
    "Room",
    "ScheduleEntry",
    "TimeSlot",
    "generate_time_slots",
    # Scheduling
    "GreedyScheduler",
    "ConstraintScheduler",
    "SearchBudget",
    "get_scheduler",
    # Auditing and metrics
    "ClashDetector",
    "ConflictReport",
    "detect_clashes",
    "QualityCalculator",
    # Errors
    "TimetablerError",
    "InputValidationError",
    "ConfigurationError",
]
