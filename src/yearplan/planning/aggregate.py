"""Cross-period aggregation of todos with composable scope and state filters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional

from ..errors import FilterError
from ..memory.schema import TodoState
from .periods import PERIOD_KINDS

LEVELS: tuple[str, ...] = tuple(kind.level for kind in PERIOD_KINDS)
STATES: tuple[str, ...] = tuple(state.value for state in TodoState)


@dataclass(frozen=True, slots=True)
class TodoFilter:
    """Filter values grouped by category; empty categories match everything."""

    levels: FrozenSet[str] = frozenset()
    states: FrozenSet[str] = frozenset()

    def matches(self, record: "AggregatedTodo") -> bool:
        if self.levels and record.level not in self.levels:
            return False
        if self.states and record.state not in self.states:
            return False
        return True

    def describe(self) -> str:
        labels = []
        if self.levels:
            labels.append("+".join(level for level in LEVELS if level in self.levels))
        if self.states:
            labels.append("+".join(state for state in STATES if state in self.states))
        return " ".join(labels)


def parse_filters(tokens: Optional[Iterable[str]]) -> TodoFilter:
    """Split raw filter tokens into scope levels and states.

    Tokens are case-insensitive. Any token that is neither a level nor a state
    raises :class:`FilterError` naming every unknown value.
    """
    levels: set[str] = set()
    states: set[str] = set()
    unknown: List[str] = []
    for token in tokens or ():
        value = str(token).strip()
        if value.lower() in LEVELS:
            levels.add(value.lower())
        elif value.upper() in STATES:
            states.add(value.upper())
        else:
            unknown.append(value)
    if unknown:
        raise FilterError(
            f"Unknown filter value(s): {', '.join(unknown)}. Allowed: {'|'.join(LEVELS)}|{'|'.join(STATES)}."
        )
    return TodoFilter(levels=frozenset(levels), states=frozenset(states))


@dataclass(slots=True)
class AggregatedTodo:
    """A top-level todo tagged with the period it came from."""

    scope: str
    level: str
    todo: Mapping[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> Any:
        return self.todo.get("id")

    @property
    def title(self) -> str:
        return str(self.todo.get("title") or "")

    @property
    def state(self) -> Any:
        return self.todo.get("state")

    @property
    def created_at(self) -> str:
        return str(self.todo.get("createdAt") or "")

    def as_dict(self) -> Dict[str, Any]:
        return {"scope": self.scope, "level": self.level, **self.todo}


def aggregate(plan: Mapping[str, Any], todo_filter: Optional[TodoFilter] = None) -> List[AggregatedTodo]:
    """Flatten quarters, weeks and days (in that order) into one sorted list.

    Null slots are skipped and subtasks are not flattened. The result is
    ordered by ``createdAt``; ties keep traversal order.
    """
    active_filter = todo_filter or TodoFilter()
    records: List[AggregatedTodo] = []
    for kind in PERIOD_KINDS:
        slots = plan.get(kind.field)
        if not isinstance(slots, list):
            continue
        for index, period in enumerate(slots):
            if not isinstance(period, Mapping):
                continue
            todos = period.get("todos")
            if not isinstance(todos, list):
                continue
            for todo in todos:
                if not isinstance(todo, Mapping):
                    continue
                record = AggregatedTodo(scope=kind.scope(index + 1), level=kind.level, todo=todo)
                if active_filter.matches(record):
                    records.append(record)
    records.sort(key=lambda record: record.created_at)
    return records
