"""Tests for CLI module."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from timetabler.cli import app
from timetabler.engine import generate_timetable


runner = CliRunner()


@pytest.fixture
def minimal_input_data() -> dict:
    """Create minimal input data as a dictionary."""
    return {
        "config": {
            "workingDays": ["monday", "tuesday"],
            "workingHours": {"start": "09:00", "end": "12:00"},
            "breakDuration": 0,
        },
        "courses": [
            {"courseCode": "CS101", "courseName": "Intro", "credits": 2,
             "department": "CS", "maxStudents": 30},
        ],
        "teachers": [
            {"teacherId": "T1", "name": "Dr. Ada", "department": "CS"},
        ],
        "rooms": [
            {"roomNumber": "A101", "capacity": 40},
        ],
    }


@pytest.fixture
def input_file(minimal_input_data, tmp_path) -> Path:
    """Create a temporary input file."""
    filepath = tmp_path / "input.json"
    with open(filepath, "w") as f:
        json.dump(minimal_input_data, f)
    return filepath


@pytest.fixture
def output_file(minimal_input_data, tmp_path) -> Path:
    """Create a generation output file."""
    filepath = tmp_path / "output.json"
    filepath.write_text(generate_timetable(minimal_input_data).to_json())
    return filepath


@pytest.fixture
def clash_file(tmp_path) -> Path:
    """A schedule with a teacher double-booking."""
    filepath = tmp_path / "schedule.json"
    filepath.write_text(json.dumps([
        {"day": "monday", "startTime": "09:00", "endTime": "10:00", "teacherId": "T1",
         "courseCode": "CS101"},
        {"day": "monday", "startTime": "09:30", "endTime": "10:30", "teacherId": "T1",
         "courseCode": "CS102"},
    ]))
    return filepath


class TestCLIHelp:
    """Tests for CLI help commands."""

    def test_main_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "generate" in result.stdout
        assert "audit" in result.stdout

    @pytest.mark.parametrize("command", ["generate", "validate", "audit", "view", "metrics", "sample"])
    def test_command_help(self, command):
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0


class TestGenerateCommand:
    """Tests for generate command."""

    def test_generate_writes_output(self, input_file, tmp_path):
        output = tmp_path / "out" / "timetable.json"

        result = runner.invoke(app, ["generate", str(input_file), "-o", str(output)])

        assert result.exit_code == 0
        assert "COMPLETE" in result.stdout
        data = json.loads(output.read_text())
        assert data["success"] is True
        assert len(data["schedule"]) == 2

    def test_generate_with_constraint_solver(self, input_file):
        result = runner.invoke(app, [
            "generate", str(input_file), "--algorithm", "constraint_satisfaction", "--timeout", "10",
        ])
        assert result.exit_code == 0

    def test_generate_unavailable_algorithm(self, input_file):
        result = runner.invoke(app, ["generate", str(input_file), "--algorithm", "genetic"])
        assert result.exit_code == 1
        assert "not available" in result.stdout

    def test_generate_lists_unscheduled(self, minimal_input_data, tmp_path):
        minimal_input_data["courses"][0]["maxStudents"] = 80
        filepath = tmp_path / "input.json"
        filepath.write_text(json.dumps(minimal_input_data))

        result = runner.invoke(app, ["generate", str(filepath)])

        assert result.exit_code == 0
        assert "Unscheduled Sessions" in result.stdout

    def test_generate_nonexistent_file(self, tmp_path):
        result = runner.invoke(app, ["generate", str(tmp_path / "nonexistent.json")])
        assert result.exit_code == 1


class TestValidateCommand:
    """Tests for validate command."""

    def test_validate_valid_input(self, input_file):
        result = runner.invoke(app, ["validate", str(input_file)])
        assert result.exit_code == 0
        assert "Validation complete" in result.stdout

    def test_validate_nonexistent_file(self, tmp_path):
        result = runner.invoke(app, ["validate", str(tmp_path / "nonexistent.json")])
        assert result.exit_code == 1

    def test_validate_invalid_json(self, tmp_path):
        filepath = tmp_path / "invalid.json"
        filepath.write_text("{ invalid json }")

        result = runner.invoke(app, ["validate", str(filepath)])

        assert result.exit_code == 1

    def test_validate_schema_error(self, minimal_input_data, tmp_path):
        minimal_input_data["rooms"][0]["capacity"] = 0
        filepath = tmp_path / "input.json"
        filepath.write_text(json.dumps(minimal_input_data))

        result = runner.invoke(app, ["validate", str(filepath)])

        assert result.exit_code == 1
        assert "Schema validation failed" in result.stdout

    def test_validate_empty_collections(self, tmp_path):
        filepath = tmp_path / "input.json"
        filepath.write_text("{}")

        result = runner.invoke(app, ["validate", str(filepath)])

        assert result.exit_code == 1
        assert "Courses list is required" in result.stdout

    def test_validate_warns_about_missing_labs(self, minimal_input_data, tmp_path):
        minimal_input_data["courses"][0]["sessionType"] = "lab"
        filepath = tmp_path / "input.json"
        filepath.write_text(json.dumps(minimal_input_data))

        result = runner.invoke(app, ["validate", str(filepath)])

        assert result.exit_code == 0
        assert "Warnings found" in result.stdout

    def test_validate_verbose(self, input_file):
        result = runner.invoke(app, ["validate", str(input_file), "--verbose"])
        assert result.exit_code == 0
        assert "Detailed breakdown" in result.stdout


class TestAuditCommand:
    """Tests for audit command."""

    def test_clean_schedule(self, output_file):
        result = runner.invoke(app, ["audit", str(output_file)])
        assert result.exit_code == 0
        assert "Can proceed" in result.stdout

    def test_critical_conflict_fails(self, clash_file):
        result = runner.invoke(app, ["audit", str(clash_file)])
        assert result.exit_code == 1
        assert "Blocked by critical conflicts" in result.stdout

    def test_json_format(self, clash_file):
        result = runner.invoke(app, ["audit", str(clash_file), "--format", "json"])
        assert result.exit_code == 1
        assert '"canProceed": false' in result.stdout

    def test_against_existing(self, clash_file, tmp_path):
        new = tmp_path / "new.json"
        new.write_text(json.dumps([
            {"day": "saturday", "startTime": "09:00", "endTime": "10:00", "teacherId": "T9"},
        ]))

        result = runner.invoke(app, [
            "audit", str(new), "--existing", str(clash_file), "--allow-weekends",
        ])

        # the existing schedule still carries its own critical clash
        assert result.exit_code == 1

    def test_invalid_schedule(self, tmp_path):
        filepath = tmp_path / "bad.json"
        filepath.write_text(json.dumps([{"startTime": "09:00", "endTime": "10:00"}]))

        result = runner.invoke(app, ["audit", str(filepath)])

        assert result.exit_code == 1
        assert "Invalid schedule" in result.stdout


class TestViewCommand:
    """Tests for view command."""

    def test_view_overview(self, output_file):
        result = runner.invoke(app, ["view", str(output_file)])
        assert result.exit_code == 0
        assert "Week Grid" in result.stdout

    def test_view_teacher(self, output_file):
        result = runner.invoke(app, ["view", str(output_file), "--teacher", "T1"])
        assert result.exit_code == 0
        assert "Dr. Ada" in result.stdout

    def test_view_teacher_not_found(self, output_file):
        result = runner.invoke(app, ["view", str(output_file), "--teacher", "nonexistent"])
        assert result.exit_code == 1

    def test_view_room(self, output_file):
        result = runner.invoke(app, ["view", str(output_file), "--room", "A101"])
        assert result.exit_code == 0

    def test_view_day(self, output_file):
        result = runner.invoke(app, ["view", str(output_file), "--day", "monday"])
        assert result.exit_code == 0
        assert "CS101" in result.stdout

    def test_view_empty_day(self, output_file):
        result = runner.invoke(app, ["view", str(output_file), "--day", "friday"])
        assert result.exit_code == 0
        assert "No sessions" in result.stdout

    def test_view_invalid_day(self, output_file):
        result = runner.invoke(app, ["view", str(output_file), "--day", "notaday"])
        assert result.exit_code == 1


class TestMetricsCommand:
    """Tests for metrics command."""

    def test_metrics_table(self, output_file):
        result = runner.invoke(app, ["metrics", str(output_file)])
        assert result.exit_code == 0
        assert "Quality Score" in result.stdout

    def test_metrics_report(self, output_file):
        result = runner.invoke(app, ["metrics", str(output_file), "--format", "report"])
        assert result.exit_code == 0
        assert "TIMETABLE QUALITY REPORT" in result.stdout

    def test_metrics_json_format(self, output_file):
        result = runner.invoke(app, ["metrics", str(output_file), "--format", "json"])
        assert result.exit_code == 0
        assert '"qualityScore"' in result.stdout

    def test_metrics_nonexistent_file(self, tmp_path):
        result = runner.invoke(app, ["metrics", str(tmp_path / "nonexistent.json")])
        assert result.exit_code == 1


class TestSampleCommand:
    """Tests for sample command."""

    def test_sample_small(self, tmp_path):
        output = tmp_path / "sample.json"

        result = runner.invoke(app, ["sample", str(output), "--seed", "1"])

        assert result.exit_code == 0
        assert len(json.loads(output.read_text())["courses"]) == 6

    def test_sample_then_generate(self, tmp_path):
        sample = tmp_path / "sample.json"
        runner.invoke(app, ["sample", str(sample), "--size", "medium", "--seed", "2"])

        result = runner.invoke(app, ["generate", str(sample)])

        assert result.exit_code == 0

    def test_unknown_size(self, tmp_path):
        result = runner.invoke(app, ["sample", str(tmp_path / "x.json"), "--size", "huge"])
        assert result.exit_code == 1
