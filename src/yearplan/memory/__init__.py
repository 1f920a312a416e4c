"""Plan document models and the file-backed plan store."""

from .schema import Plan, Period, Todo, TodoState, ValidationReport, validate_plan
from .store import PlanStore

__all__ = [
    "Period",
    "Plan",
    "PlanStore",
    "Todo",
    "TodoState",
    "ValidationReport",
    "validate_plan",
]
