"""Input models, loading and sample data generation."""

from .loader import (
    load_schedule_entries,
    load_timetable_input,
    parse_schedule_entries,
    parse_timetable_input,
    validate_input,
)
from .generator import (
    GeneratorConfig,
    generate_sample_input,
    generate_small_institution,
    generate_medium_institution,
    generate_large_institution,
    save_generated_input,
    get_generation_stats,
)

__all__ = [
    # Loader
    "load_timetable_input",
    "parse_timetable_input",
    "validate_input",
    "load_schedule_entries",
    "parse_schedule_entries",
    # Generator
    "GeneratorConfig",
    "generate_sample_input",
    "generate_small_institution",
    "generate_medium_institution",
    "generate_large_institution",
    "save_generated_input",
    "get_generation_stats",
]
