"""
Entry point for running the timetabler as a module.

Usage:
    python -m timetabler generate input.json -o output.json
    python -m timetabler validate input.json
    python -m timetabler audit schedule.json
    python -m timetabler view output.json --teacher T001
    python -m timetabler metrics output.json
"""

from timetabler.cli import main

if __name__ == "__main__":
    main()
