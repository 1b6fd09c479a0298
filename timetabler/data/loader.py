"""Load and validate timetable input and schedules from JSON."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Union

from pydantic import ValidationError

from timetabler.errors import InputValidationError

from .models import ScheduleEntry, SchedulingConfig, TimetableInput


# Top-level keys that belong to the config object
CONFIG_FIELDS = list(SchedulingConfig.model_fields)

# Course keys used by institution exports
_COURSE_KEY_ALIASES = {
    "type": "session_type",
    "course_type": "session_type",
    "equipment": "required_equipment",
}


# =============================================================================
# Key Conversion
# =============================================================================

def to_snake_case(name: str) -> str:
    """Convert a camelCase key to snake_case."""
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    name = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", name)
    return name.lower()


def _convert_keys_to_snake_case(obj: Any) -> Any:
    """Recursively convert dictionary keys from camelCase to snake_case."""
    if isinstance(obj, dict):
        return {to_snake_case(k): _convert_keys_to_snake_case(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_convert_keys_to_snake_case(item) for item in obj]
    else:
        return obj


def _format_validation_error(error: ValidationError, prefix: tuple = ()) -> list[str]:
    """One 'location: message' line per pydantic error."""
    messages = []
    for err in error.errors():
        location = ".".join(str(part) for part in (*prefix, *err["loc"]))
        messages.append(f"{location}: {err['msg']}" if location else err["msg"])
    return messages


# =============================================================================
# Timetable Input
# =============================================================================

def parse_timetable_input(data: dict[str, Any]) -> TimetableInput:
    """
    Build a TimetableInput from a JSON-style dictionary.

    Keys may be camelCase. Config fields given at the top level are moved
    into the ``config`` object.

    Args:
        data: Raw input dictionary

    Returns:
        Parsed TimetableInput

    Raises:
        InputValidationError: If any field fails validation
    """
    if not isinstance(data, dict):
        raise InputValidationError(["Input must be a JSON object"])

    converted = _convert_keys_to_snake_case(data)

    config_data = dict(converted.get("config") or {})
    for field in CONFIG_FIELDS:
        if field in converted:
            config_data.setdefault(field, converted.pop(field))
    if config_data:
        converted["config"] = config_data

    courses = converted.get("courses")
    if isinstance(courses, list):
        converted["courses"] = [_apply_course_aliases(c) for c in courses]

    try:
        return TimetableInput.model_validate(converted)
    except ValidationError as e:
        raise InputValidationError(_format_validation_error(e)) from e


def _apply_course_aliases(course: Any) -> Any:
    if not isinstance(course, dict):
        return course
    course = dict(course)
    for old, new in _COURSE_KEY_ALIASES.items():
        if old in course:
            course.setdefault(new, course.pop(old))
    return course


def validate_input(data: TimetableInput) -> list[str]:
    """
    Check cross-entity consistency of a parsed input.

    Args:
        data: Parsed input

    Returns:
        List of problems; empty when the input can be scheduled
    """
    errors = []

    if not data.courses:
        errors.append("Courses list is required and must not be empty")
    if not data.teachers:
        errors.append("Teachers list is required and must not be empty")
    if not data.rooms:
        errors.append("Rooms list is required and must not be empty")

    def check_duplicates(keys: list[str], name: str) -> None:
        seen = set()
        for key in keys:
            if key in seen:
                errors.append(f"Duplicate {name}: {key}")
            seen.add(key)

    check_duplicates([c.course_code for c in data.courses], "course code")
    check_duplicates([t.teacher_id for t in data.teachers], "teacher ID")
    check_duplicates([r.key for r in data.rooms], "room")

    if not data.config.time_slots():
        errors.append(
            f"Configuration yields no time slots: {data.config.time_slot_duration} min slots "
            f"do not fit {data.config.working_hours.start}-{data.config.working_hours.end}"
        )

    return errors


def load_timetable_input(path: Union[str, Path], validate: bool = True) -> TimetableInput:
    """
    Load timetable input from a JSON file.

    Args:
        path: Path to the JSON file
        validate: Also run the consistency checks of ``validate_input``

    Returns:
        Parsed TimetableInput

    Raises:
        FileNotFoundError: If the file doesn't exist
        json.JSONDecodeError: If the file isn't valid JSON
        InputValidationError: If the data fails validation
    """
    path = Path(path)

    with open(path) as f:
        data = json.load(f)

    parsed = parse_timetable_input(data)
    if validate:
        errors = validate_input(parsed)
        if errors:
            raise InputValidationError(errors)
    return parsed


# =============================================================================
# Schedules
# =============================================================================

def parse_schedule_entries(data: Any) -> list[ScheduleEntry]:
    """
    Build schedule entries from a list, or from a generation result.

    Args:
        data: List of entry objects, or an object with a 'schedule' list

    Returns:
        Parsed entries

    Raises:
        InputValidationError: If the shape or any entry is invalid
    """
    if isinstance(data, dict) and "schedule" in data:
        data = data["schedule"]
    if not isinstance(data, list):
        raise InputValidationError(["Schedule must be a list of entries"])

    entries = []
    errors = []
    for i, item in enumerate(data):
        try:
            entries.append(ScheduleEntry.model_validate(item))
        except ValidationError as e:
            errors.extend(_format_validation_error(e, prefix=("schedule", i)))

    if errors:
        raise InputValidationError(errors)
    return entries


def load_schedule_entries(path: Union[str, Path]) -> list[ScheduleEntry]:
    """
    Load schedule entries to audit from a JSON file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        json.JSONDecodeError: If the file isn't valid JSON
        InputValidationError: If the data fails validation
    """
    with open(Path(path)) as f:
        data = json.load(f)
    return parse_schedule_entries(data)
