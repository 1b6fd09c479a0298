"""Exception types raised by the timetabler engine."""

from __future__ import annotations


class TimetablerError(Exception):
    """Base class for all timetabler errors."""
    pass


class InputValidationError(TimetablerError):
    """Raised when input entities fail validation.

    Carries every field-level message so callers can report them together.
    """

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class ConfigurationError(TimetablerError):
    """Raised for an unknown or unavailable scheduling configuration."""
    pass
