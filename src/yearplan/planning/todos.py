"""Todo-level helpers: timestamp backfill, id allocation and lookup."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, MutableMapping, Optional

from ..utils.dates import now_timestamp

PERIOD_FIELDS: tuple[str, ...] = ("quarters", "weeks", "days")


def _touch_todos(todos: Any, stamp: str) -> None:
    if not isinstance(todos, list):
        return
    for todo in todos:
        if not isinstance(todo, MutableMapping):
            continue
        if todo.get("title") and todo.get("state") and todo.get("id") is not None and not todo.get("createdAt"):
            todo["createdAt"] = stamp
        _touch_todos(todo.get("subtasks"), stamp)


def normalize_todos(plan: Any, *, now: Optional[datetime] = None) -> None:
    """Backfill ``createdAt`` on every reachable todo and subtask, in place.

    Existing timestamps are never touched, so running this twice is a no-op.
    """
    if not isinstance(plan, Mapping):
        return
    stamp = now_timestamp(now)
    for field in PERIOD_FIELDS:
        slots = plan.get(field)
        if not isinstance(slots, list):
            continue
        for period in slots:
            if isinstance(period, Mapping):
                _touch_todos(period.get("todos"), stamp)


def next_id(todos: Optional[Iterable[Any]]) -> int:
    """Return ``1 + max(id)`` over ``todos``; entries without a numeric id count as 0."""
    highest = 0
    for todo in todos or ():
        candidate = todo.get("id") if isinstance(todo, Mapping) else None
        if isinstance(candidate, int) and not isinstance(candidate, bool) and candidate > highest:
            highest = candidate
    return highest + 1


def find_todo_index(todos: List[Dict[str, Any]], todo_id: int) -> int:
    """Return the position of ``todo_id`` in ``todos`` or ``-1``."""
    for index, todo in enumerate(todos):
        if isinstance(todo, Mapping) and todo.get("id") == todo_id:
            return index
    return -1
