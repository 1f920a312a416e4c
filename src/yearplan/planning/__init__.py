"""Period, todo and aggregation logic for yearly plans."""

from .aggregate import AggregatedTodo, TodoFilter, aggregate, parse_filters
from .periods import DAY, PERIOD_KINDS, QUARTER, WEEK, EnsuredPeriod, PeriodEnsurer, PeriodKind
from .service import PlanService, TodoEdit
from .todos import next_id, normalize_todos

__all__ = [
    "AggregatedTodo",
    "DAY",
    "EnsuredPeriod",
    "PERIOD_KINDS",
    "PeriodEnsurer",
    "PeriodKind",
    "PlanService",
    "QUARTER",
    "TodoEdit",
    "TodoFilter",
    "WEEK",
    "aggregate",
    "next_id",
    "normalize_todos",
    "parse_filters",
]
