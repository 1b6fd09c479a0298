"""
Sample data generator for testing the timetabler.

This module generates realistic institution data (departments, courses,
teachers and rooms) with configurable size. Generation is reproducible:
every random choice goes through one ``random.Random`` seeded from the
config.

Usage:
    from timetabler.data.generator import generate_sample_input, generate_small_institution

    # Generate with custom config
    data = generate_sample_input(GeneratorConfig(num_departments=3))

    # Quick test data
    small = generate_small_institution(seed=42)
"""

from __future__ import annotations

import json
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

from .models import (
    DEFAULT_WORKING_DAYS,
    Course,
    DayAvailability,
    PreferredSlot,
    Room,
    SchedulingConfig,
    SessionType,
    Teacher,
    TeacherPreferences,
    TimetableInput,
    WorkingHours,
)


# =============================================================================
# Name Data
# =============================================================================

FIRST_NAMES = [
    "James", "Robert", "Michael", "David", "William", "Sarah", "Jessica", "Emily",
    "Elizabeth", "Laura", "Daniel", "Matthew", "Andrew", "Samuel", "Grace",
    "Hannah", "Natalie", "Victoria", "Priya", "Arjun", "Mei", "Omar", "Fatima",
    "Lucas", "Sofia", "Kenji", "Amara", "Ravi", "Elena", "Tomas",
]

LAST_NAMES = [
    "Smith", "Johnson", "Brown", "Garcia", "Miller", "Davis", "Wilson", "Anderson",
    "Taylor", "Thomas", "Moore", "Martin", "Lee", "Thompson", "White", "Harris",
    "Clark", "Lewis", "Walker", "Young", "King", "Wright", "Patel", "Nguyen",
    "Kumar", "Chen", "Okafor", "Rossi", "Novak", "Sato",
]


# =============================================================================
# Department Definitions
# =============================================================================

DEPARTMENTS = [
    {"name": "Computer Science", "code": "CS",
     "courses": ["Programming Fundamentals", "Data Structures", "Algorithms", "Databases",
                 "Operating Systems", "Computer Networks", "Machine Learning"],
     "labs": ["Programming Lab", "Networks Lab"]},
    {"name": "Mathematics", "code": "MATH",
     "courses": ["Calculus", "Linear Algebra", "Discrete Mathematics", "Probability",
                 "Statistics", "Numerical Methods"],
     "labs": []},
    {"name": "Physics", "code": "PHY",
     "courses": ["Mechanics", "Electromagnetism", "Thermodynamics", "Quantum Physics", "Optics"],
     "labs": ["Physics Lab"]},
    {"name": "Chemistry", "code": "CHEM",
     "courses": ["General Chemistry", "Organic Chemistry", "Physical Chemistry", "Biochemistry"],
     "labs": ["Chemistry Lab"]},
    {"name": "Economics", "code": "ECON",
     "courses": ["Microeconomics", "Macroeconomics", "Econometrics", "Public Finance",
                 "Development Economics"],
     "labs": []},
    {"name": "English", "code": "ENG",
     "courses": ["Academic Writing", "Literature Survey", "Linguistics", "Technical Communication"],
     "labs": []},
]

CLASSROOM_EQUIPMENT = ["projector", "whiteboard"]
LAB_EQUIPMENT = ["projector", "computers", "lab_benches"]
LAB_REQUIREMENT = ["lab_benches"]

BUILDINGS = ["Main Building", "Science Block", "North Wing"]


# =============================================================================
# Generator Configuration
# =============================================================================

@dataclass
class GeneratorConfig:
    """Configuration for data generation.

    Note: The defaults are designed to create schedulable problems.
    Key constraints for feasibility:
    - Total sessions must not exceed (time slots * rooms)
    - Lab sessions must not exceed (time slots * labs)
    - Class sizes never exceed the smallest room of the kind they need
    """
    # Entity counts
    num_departments: int = 4
    courses_per_department: int = 4
    teachers_per_department: int = 3
    num_classrooms: int = 6
    num_labs: int = 2

    # Course settings
    min_credits: int = 2
    max_credits: int = 4
    class_size_min: int = 20
    class_size_max: int = 45
    lab_courses_per_department: int = 1

    # Room settings
    classroom_capacity_min: int = 45
    classroom_capacity_max: int = 80
    lab_capacity_min: int = 30
    lab_capacity_max: int = 40

    # Teacher settings
    teacher_max_hours: int = 20
    preference_probability: float = 0.5
    unavailability_probability: float = 0.2

    # Calendar
    working_days: list[str] = field(default_factory=lambda: list(DEFAULT_WORKING_DAYS))
    day_start: str = "08:00"
    day_end: str = "18:00"
    slot_duration: int = 60
    break_duration: int = 15

    # Randomization
    seed: Optional[int] = None


# =============================================================================
# Generator Functions
# =============================================================================

def generate_sample_input(config: GeneratorConfig | None = None) -> TimetableInput:
    """
    Generate a sample timetable input.

    Args:
        config: Generator configuration (uses defaults if None)

    Returns:
        TimetableInput with generated data
    """
    if config is None:
        config = GeneratorConfig()

    rng = random.Random(config.seed)

    scheduling = SchedulingConfig(
        working_days=config.working_days,
        working_hours=WorkingHours(start=config.day_start, end=config.day_end),
        time_slot_duration=config.slot_duration,
        break_duration=config.break_duration,
    )

    departments = DEPARTMENTS[:max(1, min(config.num_departments, len(DEPARTMENTS)))]
    slot_starts = sorted({s.start_time for s in scheduling.time_slots()})

    courses = _generate_courses(config, departments, rng)
    teachers = _generate_teachers(config, departments, slot_starts, rng)
    rooms = _generate_rooms(config, rng)

    return TimetableInput(
        config=scheduling,
        courses=courses,
        teachers=teachers,
        rooms=rooms,
    )


def generate_small_institution(seed: int | None = None) -> TimetableInput:
    """
    Generate a small institution for quick testing.

    - 2 departments, 6 courses
    - 4 teachers
    - 3 classrooms, 1 lab

    Args:
        seed: Random seed for reproducibility

    Returns:
        TimetableInput with small institution data
    """
    config = GeneratorConfig(
        num_departments=2,
        courses_per_department=3,
        teachers_per_department=2,
        num_classrooms=3,
        num_labs=1,
        seed=seed,
    )
    return generate_sample_input(config)


def generate_medium_institution(seed: int | None = None) -> TimetableInput:
    """
    Generate a medium institution for standard testing.

    - 4 departments, 20 courses
    - 16 teachers
    - 10 classrooms, 3 labs

    Args:
        seed: Random seed for reproducibility

    Returns:
        TimetableInput with medium institution data
    """
    config = GeneratorConfig(
        num_departments=4,
        courses_per_department=5,
        teachers_per_department=4,
        num_classrooms=10,
        num_labs=3,
        seed=seed,
    )
    return generate_sample_input(config)


def generate_large_institution(seed: int | None = None) -> TimetableInput:
    """
    Generate a large institution for stress testing.

    - 6 departments, 42 courses
    - 36 teachers
    - 24 classrooms, 6 labs

    Args:
        seed: Random seed for reproducibility

    Returns:
        TimetableInput with large institution data
    """
    config = GeneratorConfig(
        num_departments=6,
        courses_per_department=7,
        teachers_per_department=6,
        num_classrooms=24,
        num_labs=6,
        lab_courses_per_department=2,
        seed=seed,
    )
    return generate_sample_input(config)


# =============================================================================
# Private Generator Helpers
# =============================================================================

def _generate_courses(config: GeneratorConfig, departments: list[dict], rng: random.Random) -> list[Course]:
    """Generate lecture and lab courses for each department."""
    courses = []
    lecture_size_max = min(config.class_size_max, config.classroom_capacity_min)
    lab_size_max = min(config.class_size_max, config.lab_capacity_min)

    for dept in departments:
        pool = list(dept["courses"])
        rng.shuffle(pool)
        lab_names = list(dept["labs"])[:config.lab_courses_per_department] if config.num_labs else []
        num_lectures = max(0, config.courses_per_department - len(lab_names))

        # Topics are reused with a level suffix once the pool runs out
        names = [
            pool[i % len(pool)] if i < len(pool) else f"{pool[i % len(pool)]} {i // len(pool) + 1}"
            for i in range(num_lectures)
        ]

        for i, name in enumerate(names):
            max_students = rng.randint(config.class_size_min, lecture_size_max)
            courses.append(Course(
                course_code=f"{dept['code']}{101 + i * 100 + rng.randint(0, 9)}",
                course_name=name,
                credits=rng.randint(config.min_credits, config.max_credits),
                department=dept["name"],
                max_students=max_students,
                session_type=SessionType.LECTURE,
                required_equipment=["projector"] if rng.random() < 0.3 else [],
                is_required=rng.random() < 0.6,
                enrollment=rng.randint(max_students * 2 // 3, max_students),
            ))

        for i, name in enumerate(lab_names):
            max_students = rng.randint(min(config.class_size_min, lab_size_max), lab_size_max)
            courses.append(Course(
                course_code=f"{dept['code']}{150 + i}L",
                course_name=name,
                credits=config.min_credits,
                department=dept["name"],
                max_students=max_students,
                session_type=SessionType.LAB,
                required_equipment=list(LAB_REQUIREMENT),
                enrollment=rng.randint(max_students * 2 // 3, max_students),
            ))

    return courses


def _generate_teachers(
    config: GeneratorConfig,
    departments: list[dict],
    slot_starts: list[str],
    rng: random.Random,
) -> list[Teacher]:
    """Generate teachers with specializations, preferences and days off."""
    teachers = []
    used_names = set()
    counter = 1

    for dept in departments:
        topics = dept["courses"] + dept["labs"]
        for _ in range(config.teachers_per_department):
            name = _unique_name(used_names, rng)

            preferences = TeacherPreferences()
            if rng.random() < config.preference_probability and slot_starts:
                preferences = TeacherPreferences(
                    departments=[dept["name"]],
                    time_slots=[
                        PreferredSlot(day=rng.choice(config.working_days), start_time=rng.choice(slot_starts))
                        for _ in range(rng.randint(1, 3))
                    ],
                )

            availability = {}
            # A single day off keeps every teacher schedulable
            if rng.random() < config.unavailability_probability and len(config.working_days) > 1:
                availability[rng.choice(config.working_days)] = DayAvailability(available=False)

            teachers.append(Teacher(
                teacher_id=f"T{counter:03d}",
                name=name,
                department=dept["name"],
                specialization=rng.sample(topics, k=min(2, len(topics))),
                max_hours=config.teacher_max_hours,
                preferences=preferences,
                availability=availability,
            ))
            counter += 1

    return teachers


def _unique_name(used: set[str], rng: random.Random) -> str:
    """Pick a full name not used yet; falls back to a numbered name."""
    for _ in range(50):
        name = f"Dr. {rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}"
        if name not in used:
            used.add(name)
            return name
    name = f"Dr. Staff {len(used) + 1}"
    used.add(name)
    return name


def _generate_rooms(config: GeneratorConfig, rng: random.Random) -> list[Room]:
    """Generate general classrooms followed by labs."""
    rooms = []

    for i in range(config.num_classrooms):
        building = BUILDINGS[i % 2]
        rooms.append(Room(
            room_number=f"{building[0]}{101 + i}",
            capacity=rng.randint(config.classroom_capacity_min, config.classroom_capacity_max),
            room_type="classroom",
            equipment=list(CLASSROOM_EQUIPMENT),
            building=building,
        ))

    for i in range(config.num_labs):
        rooms.append(Room(
            room_number=f"LAB{i + 1}",
            capacity=rng.randint(config.lab_capacity_min, config.lab_capacity_max),
            is_lab=True,
            room_type="lab",
            equipment=list(LAB_EQUIPMENT),
            building=BUILDINGS[2],
        ))

    return rooms


# =============================================================================
# Utility Functions
# =============================================================================

def save_generated_input(data: TimetableInput, filepath: Union[str, Path]) -> None:
    """
    Save generated input to a JSON file with camelCase keys.

    Args:
        data: Generated TimetableInput
        filepath: Path to save JSON file
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        json.dump(input_to_dict(data), f, indent=2)


def input_to_dict(data: TimetableInput) -> dict[str, Any]:
    """Convert TimetableInput to a camelCase dictionary for JSON serialization."""
    return _convert_keys_to_camel_case(data.model_dump(mode="json", exclude_none=True))


def _to_camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _convert_keys_to_camel_case(obj: Any) -> Any:
    """Recursively convert dictionary keys from snake_case to camelCase."""
    if isinstance(obj, dict):
        return {_to_camel_case(k): _convert_keys_to_camel_case(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_convert_keys_to_camel_case(item) for item in obj]
    else:
        return obj


def get_generation_stats(data: TimetableInput) -> dict[str, Any]:
    """
    Get statistics about generated input data.

    Args:
        data: Generated TimetableInput

    Returns:
        Dictionary with statistics
    """
    slots = len(data.config.time_slots())
    labs = data.get_labs()
    lab_courses = [c for c in data.courses if c.is_lab_course]

    sessions = data.total_sessions_needed
    lab_sessions = sum(c.sessions_needed for c in lab_courses)
    room_slots = slots * len(data.rooms)
    lab_slots = slots * len(labs)

    utilization = sessions / room_slots * 100 if room_slots > 0 else 0
    is_feasible = (
        sessions <= room_slots and
        (lab_sessions == 0 or lab_sessions <= lab_slots)
    )

    return {
        "departments": len({c.department for c in data.courses}),
        "courses": len(data.courses),
        "lab_courses": len(lab_courses),
        "teachers": len(data.teachers),
        "rooms": len(data.rooms),
        "labs": len(labs),
        "time_slots": slots,
        "sessions_required": sessions,
        "lab_sessions_required": lab_sessions,
        "total_room_slots": room_slots,
        "utilization_percent": round(utilization, 1),
        "is_feasible": is_feasible,
    }
