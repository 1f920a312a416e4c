"""Command-level plan operations.

Every mutating operation performs a single read-modify-write cycle: the
period is ensured in memory, the mutation is applied, and the whole plan is
normalized and validated before it is written once. A failure at any step
leaves the stored document untouched. Reading a period (list, show) ensures
it like `create` does, so a period addressed for the first time is persisted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from ..errors import PlanError, PlanNotFoundError, PlanValidationError, TitleRequiredError, TodoNotFoundError
from ..memory.schema import TodoState, validate_plan
from ..memory.store import PlanStore
from ..utils.dates import local_now, resolve_datetime, start_of_next_year, to_timestamp
from .aggregate import AggregatedTodo, TodoFilter, aggregate, parse_filters
from .periods import DAY, EnsuredPeriod, PeriodEnsurer, PeriodKind
from .todos import find_todo_index, next_id, normalize_todos

LOGGER = logging.getLogger(__name__)

LIST_FILTERS = ("todo", "done")


@dataclass(slots=True)
class TodoEdit:
    """Requested changes to a todo; ``None`` keeps the current value."""

    title: Optional[str] = None
    state: Optional[str] = None
    deadline: Optional[str] = None
    scheduled: Optional[str] = None

    def is_empty(self) -> bool:
        return not any((self.title, self.state, self.deadline, self.scheduled))


class PlanService:
    """Operations behind the ``plan`` command line."""

    def __init__(self, store: PlanStore, *, clock: Callable[[], datetime] = local_now) -> None:
        self.store = store
        self.clock = clock
        self.ensurer = PeriodEnsurer(store, clock=clock)

    def _commit(self, plan_id: str, plan: Dict[str, Any], *, context: str = "Validation failed") -> None:
        normalize_todos(plan, now=self.clock())
        report = validate_plan(plan)
        if not report.valid:
            raise PlanValidationError(report.errors, context=context)
        self.store.save(plan_id, plan)

    def create_period(self, kind: PeriodKind, number: Optional[int] = None) -> EnsuredPeriod:
        return self.ensurer.ensure(kind, number)

    def open_period(self, kind: PeriodKind, number: Optional[int] = None) -> EnsuredPeriod:
        """Ensure the period in memory only; the caller decides whether to write."""
        return self.ensurer.ensure(kind, number, persist=False)

    def _require_todo(self, period: EnsuredPeriod, todo_id: int) -> int:
        index = find_todo_index(period.todos, todo_id)
        if index == -1:
            raise TodoNotFoundError(f"Todo id {todo_id} not found in {period.label}.")
        return index

    def add_todo(
        self,
        kind: PeriodKind,
        title: Optional[str],
        *,
        number: Optional[int] = None,
        deadline: Optional[str] = None,
        scheduled: Optional[str] = None,
        default_deadline: Optional[Callable[[Optional[datetime]], str]] = None,
    ) -> Tuple[EnsuredPeriod, Dict[str, Any]]:
        """Append a new TODO to the addressed period.

        Without an explicit deadline the period kind's boundary is used
        (``default_deadline`` overrides it); ``scheduled`` defaults to the
        creation timestamp.
        """
        text = (title or "").strip()
        if not text:
            raise TitleRequiredError("Title is required.")
        now = self.clock()
        deadline_value = resolve_datetime(deadline, "deadline", now=now)
        scheduled_value = resolve_datetime(scheduled, "scheduled", now=now)

        period = self.open_period(kind, number)
        created_at = to_timestamp(now)
        boundary = default_deadline or kind.default_deadline
        todo: Dict[str, Any] = {
            "id": next_id(period.todos),
            "state": TodoState.TODO.value,
            "title": text,
            "createdAt": created_at,
            "deadline": deadline_value or boundary(now),
            "scheduled": scheduled_value or created_at,
        }
        period.todos.append(todo)
        self._commit(period.plan_id, period.plan)
        LOGGER.info("Added todo #%s to %s", todo["id"], period.label)
        return period, todo

    def add_root_todo(
        self,
        title: Optional[str],
        *,
        deadline: Optional[str] = None,
        scheduled: Optional[str] = None,
    ) -> Tuple[EnsuredPeriod, Dict[str, Any]]:
        """Add a todo to today's day, defaulting its deadline to the next year."""
        return self.add_todo(
            DAY,
            title,
            deadline=deadline,
            scheduled=scheduled,
            default_deadline=start_of_next_year,
        )

    def list_todos(
        self,
        kind: PeriodKind,
        *,
        number: Optional[int] = None,
        state: Optional[str] = None,
    ) -> Tuple[EnsuredPeriod, List[Dict[str, Any]]]:
        if state is not None and state.lower() not in LIST_FILTERS:
            raise PlanError(f"List filter must be one of: {', '.join(LIST_FILTERS)}.")
        period = self.create_period(kind, number)
        todos = [todo for todo in period.todos if isinstance(todo, dict)]
        if state is not None and state.lower() == "done":
            todos = [todo for todo in todos if todo.get("state") == TodoState.DONE.value]
        elif state is not None:
            todos = [todo for todo in todos if todo.get("state") != TodoState.DONE.value]
        return period, todos

    def get_todo(
        self, kind: PeriodKind, todo_id: int, *, number: Optional[int] = None
    ) -> Tuple[EnsuredPeriod, Dict[str, Any]]:
        period = self.create_period(kind, number)
        return period, period.todos[self._require_todo(period, todo_id)]

    def complete_todo(
        self, kind: PeriodKind, todo_id: int, *, number: Optional[int] = None
    ) -> Tuple[EnsuredPeriod, Dict[str, Any], bool]:
        """Mark a todo DONE; returns ``False`` as the last item when it already was."""
        period = self.open_period(kind, number)
        todo = period.todos[self._require_todo(period, todo_id)]
        if todo.get("state") == TodoState.DONE.value:
            return period, todo, False
        todo["state"] = TodoState.DONE.value
        self._commit(period.plan_id, period.plan, context="Validation failed after update")
        LOGGER.info("Completed todo #%s in %s", todo_id, period.label)
        return period, todo, True

    def delete_todo(
        self, kind: PeriodKind, todo_id: int, *, number: Optional[int] = None
    ) -> Tuple[EnsuredPeriod, Dict[str, Any]]:
        period = self.open_period(kind, number)
        removed = period.todos.pop(self._require_todo(period, todo_id))
        self._commit(period.plan_id, period.plan, context="Validation failed after delete")
        LOGGER.info("Deleted todo #%s from %s", todo_id, period.label)
        return period, removed

    def edit_todo(
        self,
        kind: PeriodKind,
        todo_id: int,
        changes: TodoEdit,
        *,
        number: Optional[int] = None,
    ) -> Tuple[EnsuredPeriod, Dict[str, Any]]:
        """Apply ``changes`` to a todo; blank fields keep their current value."""
        now = self.clock()
        state = (changes.state or "").strip().upper()
        if state and state not in {item.value for item in TodoState}:
            raise PlanError(f"State must be one of: {', '.join(item.value for item in TodoState)}.")
        deadline = resolve_datetime(changes.deadline, "deadline", now=now)
        scheduled = resolve_datetime(changes.scheduled, "scheduled", now=now)

        period = self.open_period(kind, number)
        todo = period.todos[self._require_todo(period, todo_id)]
        title = (changes.title or "").strip()
        if title:
            todo["title"] = title
        if state:
            todo["state"] = state
        if deadline:
            todo["deadline"] = deadline
        if scheduled:
            todo["scheduled"] = scheduled
        self._commit(period.plan_id, period.plan, context="Validation failed after edit")
        LOGGER.info("Edited todo #%s in %s", todo_id, period.label)
        return period, todo

    def aggregate_year(
        self, filters: Optional[Iterable[str]] = None
    ) -> Tuple[int, TodoFilter, Optional[List[AggregatedTodo]]]:
        """Aggregate the current year's plan; the record list is ``None`` without a plan.

        The plan is normalized in memory for display and never written.
        """
        todo_filter = parse_filters(filters)
        year = self.clock().year
        plan = self.store.load(str(year))
        if not isinstance(plan, dict):
            return year, todo_filter, None
        normalize_todos(plan, now=self.clock())
        return year, todo_filter, aggregate(plan, todo_filter)

    def read_plan(self, plan_id: str) -> Dict[str, Any]:
        plan = self.store.load(plan_id)
        if plan is None:
            raise PlanNotFoundError(f"Plan {plan_id} not found")
        return plan

    def import_plan(self, plan_id: str, document: Any) -> None:
        """Replace a stored plan with ``document`` after normalizing and validating it."""
        if not isinstance(document, dict):
            raise PlanValidationError(validate_plan(document).errors)
        self.store.ensure_ready()
        self._commit(plan_id, document)
        LOGGER.info("Imported plan %s", plan_id)

    def delete_plan(self, plan_id: str) -> None:
        if not self.store.delete(plan_id):
            raise PlanNotFoundError(f"Plan {plan_id} not found")

    def list_plans(self) -> List[str]:
        return self.store.list_ids()
