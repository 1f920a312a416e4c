"""Structural contract for persisted plan documents.

Plans are stored and mutated as plain JSON-like dictionaries. The Pydantic
models below are used only to check a document against the contract; they
never replace the dictionary that is written to disk.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StrictInt, StrictStr, ValidationError

from ..errors import SchemaIssue

QUARTER_SLOTS = 4
WEEK_SLOTS = 52
DAY_SLOTS = 365


class TodoState(str, Enum):
    """Lifecycle states for a todo."""

    TODO = "TODO"
    DONE = "DONE"


def _check_timestamp(value: str) -> str:
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as error:
        raise ValueError("must be an ISO 8601 date-time") from error
    if "T" not in value.upper() or parsed.tzinfo is None:
        raise ValueError("must be an ISO 8601 date-time with a timezone")
    return value


Timestamp = Annotated[StrictStr, AfterValidator(_check_timestamp)]


class DocumentModel(BaseModel):
    """Base model with strict field handling for stored documents."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class Todo(DocumentModel):
    """Single todo record; subtasks share the same shape."""

    id: StrictInt = Field(ge=1)
    title: StrictStr = Field(min_length=1)
    state: Literal["TODO", "DONE"]
    created_at: Timestamp = Field(alias="createdAt")
    deadline: Optional[Timestamp] = None
    scheduled: Optional[Timestamp] = None
    subtasks: Optional[List[Todo]] = None


class Period(DocumentModel):
    """A quarter, week or day slot holding an ordered todo list."""

    todos: List[Todo]


class Plan(DocumentModel):
    """Yearly root document."""

    year: StrictInt
    quarters: Annotated[List[Optional[Period]], Field(min_length=QUARTER_SLOTS, max_length=QUARTER_SLOTS)]
    weeks: Annotated[List[Optional[Period]], Field(min_length=WEEK_SLOTS, max_length=WEEK_SLOTS)]
    days: Annotated[List[Optional[Period]], Field(min_length=DAY_SLOTS, max_length=DAY_SLOTS)]


Todo.model_rebuild()


@dataclass(slots=True)
class ValidationReport:
    """Outcome of validating a plan document."""

    valid: bool
    errors: List[SchemaIssue] = field(default_factory=list)


def _issue_path(location: tuple[Any, ...]) -> str:
    return "".join(f"/{part}" for part in location)


def validate_plan(document: Any) -> ValidationReport:
    """Check ``document`` against the plan contract and collect every violation.

    Id uniqueness inside a todo list is not checked here; it is upheld by the
    id allocator.
    """
    try:
        Plan.model_validate(document)
    except ValidationError as error:
        issues = [
            SchemaIssue(path=_issue_path(tuple(detail.get("loc", ()))), message=detail.get("msg", "invalid"))
            for detail in error.errors()
        ]
        return ValidationReport(valid=False, errors=issues)
    return ValidationReport(valid=True)
