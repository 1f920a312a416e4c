"""Error tiers raised by the planning core."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence


class PlanError(RuntimeError):
    """Fatal, user-facing error that aborts the current command."""


class PeriodNumberError(PlanError):
    """Raised when an explicit period number is outside its valid range."""


class DateParseError(PlanError):
    """Raised when a user supplied date-time cannot be parsed."""

    def __init__(self, label: str, value: str) -> None:
        super().__init__(f"Invalid {label} date-time: {value}")
        self.label = label
        self.value = value


class TitleRequiredError(PlanError):
    """Raised when a todo would be created without a title."""


class TodoNotFoundError(PlanError):
    """Raised when a todo id does not exist in the addressed period."""


class PlanNotFoundError(PlanError):
    """Raised when a plan identifier has no stored document."""


class FilterError(PlanError):
    """Raised when an aggregate filter token is not recognised."""


@dataclass(frozen=True, slots=True)
class SchemaIssue:
    """Single structural violation reported by the schema validator."""

    path: str
    message: str

    def render(self) -> str:
        return f"{self.path or '/'}: {self.message}"


class PlanValidationError(PlanError):
    """Raised when a mutated plan fails schema validation before a write."""

    def __init__(self, issues: Sequence[SchemaIssue], *, context: str = "Validation failed") -> None:
        self.issues = tuple(issues)
        self.context = context
        super().__init__(f"{context}: {len(self.issues)} issue(s)")


__all__ = [
    "DateParseError",
    "FilterError",
    "PeriodNumberError",
    "PlanError",
    "PlanNotFoundError",
    "PlanValidationError",
    "SchemaIssue",
    "TitleRequiredError",
    "TodoNotFoundError",
]
