from __future__ import annotations

import pytest

from yearplan.errors import (
    DateParseError,
    PlanError,
    PlanNotFoundError,
    PlanValidationError,
    TitleRequiredError,
    TodoNotFoundError,
)
from yearplan.memory.schema import validate_plan
from yearplan.planning.periods import DAY, QUARTER, WEEK, empty_plan
from yearplan.planning.service import TodoEdit


def test_add_todo_defaults_deadline_and_scheduled(service, store) -> None:
    period, todo = service.add_todo(DAY, "  Ship report ", number=10)

    assert period.label == "day 10 2026"
    assert todo["id"] == 1
    assert todo["title"] == "Ship report"
    assert todo["state"] == "TODO"
    assert todo["scheduled"] == todo["createdAt"] == "2026-04-15T09:30:00.000Z"
    assert todo["deadline"] == "2026-04-16T00:00:00.000Z"
    assert store.saves == 1
    assert store.load("2026")["days"][9]["todos"] == [todo]


def test_default_deadline_follows_period_kind(service) -> None:
    _, weekly = service.add_todo(WEEK, "Weekly", number=16)
    _, quarterly = service.add_todo(QUARTER, "Quarterly")
    _, explicit = service.add_todo(DAY, "Explicit", deadline="2026-05-01T12:00:00Z", scheduled="now")

    assert weekly["deadline"] == "2026-04-20T00:00:00.000Z"
    assert quarterly["deadline"] == "2026-07-01T00:00:00.000Z"
    assert explicit["deadline"] == "2026-05-01T12:00:00.000Z"
    assert explicit["scheduled"] == "2026-04-15T09:30:00.000Z"


def test_root_todo_lands_on_today_with_next_year_deadline(service) -> None:
    period, todo = service.add_root_todo("Root item")

    assert (period.kind, period.number) == (DAY, 105)
    assert todo["deadline"] == "2027-01-01T00:00:00.000Z"


def test_fatal_input_errors_leave_the_store_untouched(service, store) -> None:
    with pytest.raises(TitleRequiredError):
        service.add_todo(DAY, "   ", number=10)
    with pytest.raises(DateParseError):
        service.add_todo(DAY, "Dated", number=10, deadline="not-a-date")

    assert store.saves == 0
    assert store.load("2026") is None


def test_delete_only_todo_then_delete_again(service, store) -> None:
    service.add_todo(WEEK, "Only", number=5)

    period, removed = service.delete_todo(WEEK, 1, number=5)

    assert removed["title"] == "Only"
    stored = store.load("2026")
    assert stored["weeks"][4]["todos"] == []
    assert validate_plan(stored).valid
    with pytest.raises(TodoNotFoundError) as excinfo:
        service.delete_todo(WEEK, 1, number=5)
    assert "not found" in str(excinfo.value)


def test_ids_stay_unique_after_adds_and_deletes(service, store) -> None:
    for title in ("a", "b", "c"):
        service.add_todo(DAY, title, number=20)
    service.delete_todo(DAY, 3, number=20)
    service.delete_todo(DAY, 1, number=20)
    _, added = service.add_todo(DAY, "d", number=20)

    ids = [todo["id"] for todo in store.load("2026")["days"][19]["todos"]]
    assert ids == [2, 3]
    assert added["id"] == 3
    assert len(set(ids)) == len(ids)


def test_complete_is_reported_once(service, store) -> None:
    service.add_todo(QUARTER, "Finish", number=3)

    _, todo, changed = service.complete_todo(QUARTER, 1, number=3)
    saves_after_first = store.saves
    _, _, changed_again = service.complete_todo(QUARTER, 1, number=3)

    assert changed and not changed_again
    assert todo["state"] == "DONE"
    assert store.saves == saves_after_first


def test_edit_updates_selected_fields(service, store) -> None:
    _, original = service.add_todo(DAY, "Draft", number=30)

    _, edited = service.edit_todo(
        DAY,
        1,
        TodoEdit(title="Final", state="done", deadline="2026-06-01T00:00:00Z"),
        number=30,
    )

    assert edited["title"] == "Final"
    assert edited["state"] == "DONE"
    assert edited["deadline"] == "2026-06-01T00:00:00.000Z"
    assert edited["scheduled"] == original["scheduled"]
    assert edited["createdAt"] == original["createdAt"]
    with pytest.raises(PlanError):
        service.edit_todo(DAY, 1, TodoEdit(state="LATER"), number=30)
    with pytest.raises(TodoNotFoundError):
        service.edit_todo(DAY, 9, TodoEdit(title="x"), number=30)


def test_list_todos_filters_by_state(service, store) -> None:
    service.add_todo(WEEK, "open", number=2)
    service.add_todo(WEEK, "closed", number=2)
    service.complete_todo(WEEK, 2, number=2)
    saves = store.saves

    _, done = service.list_todos(WEEK, number=2, state="done")
    _, pending = service.list_todos(WEEK, number=2, state="todo")

    assert [todo["title"] for todo in done] == ["closed"]
    assert [todo["title"] for todo in pending] == ["open"]
    assert store.saves == saves
    with pytest.raises(PlanError):
        service.list_todos(WEEK, number=2, state="later")


def test_reading_a_new_period_persists_it(service, store) -> None:
    period, todos = service.list_todos(DAY, number=40)

    assert todos == [] and period.created
    assert store.saves == 1
    assert store.load("2026")["days"][39] == {"todos": []}

    service.list_todos(DAY, number=40)
    with pytest.raises(TodoNotFoundError):
        service.get_todo(WEEK, 1, number=8)
    assert store.saves == 2
    assert store.load("2026")["weeks"][7] == {"todos": []}


def test_invalid_stored_todo_blocks_the_write(service, store) -> None:
    plan = empty_plan(2026)
    plan["days"][9] = {"todos": [{"id": 1, "title": "Broken", "state": "WIP", "createdAt": "2026-01-01T00:00:00Z"}]}
    store.save("2026", plan)
    store.saves = 0

    with pytest.raises(PlanValidationError) as excinfo:
        service.add_todo(DAY, "New", number=10)

    assert [issue.path for issue in excinfo.value.issues] == ["/days/9/todos/0/state"]
    assert store.saves == 0
    assert store.load("2026") == plan


def test_aggregate_year(service) -> None:
    year, _, records = service.aggregate_year([])
    assert (year, records) == (2026, None)

    service.add_todo(QUARTER, "q", number=1)
    service.add_todo(DAY, "d", number=1)
    service.complete_todo(QUARTER, 1, number=1)

    _, todo_filter, records = service.aggregate_year(["quarterly", "DONE"])
    assert todo_filter.describe() == "quarterly DONE"
    assert [(record.scope, record.title) for record in records] == [("Q1", "q")]


def test_plan_documents_import_read_and_delete(service, store) -> None:
    document = empty_plan(2025)
    document["weeks"][0] = {"todos": [{"id": 1, "title": "Imported", "state": "TODO"}]}

    service.import_plan("2025", document)

    stored = service.read_plan("2025")
    assert stored["weeks"][0]["todos"][0]["createdAt"] == "2026-04-15T09:30:00.000Z"
    assert service.list_plans() == ["2025"]
    with pytest.raises(PlanValidationError):
        service.import_plan("2024", {"year": 2024})
    assert service.list_plans() == ["2025"]
    service.delete_plan("2025")
    with pytest.raises(PlanNotFoundError):
        service.read_plan("2025")
    with pytest.raises(PlanNotFoundError):
        service.delete_plan("2025")


def test_early_year_deadline_is_stored_in_canonical_form(service, store) -> None:
    _, todo = service.add_todo(DAY, "Ancient", number=12, deadline="0900-01-01T00:00:00Z")

    assert todo["deadline"] == "0900-01-01T00:00:00.000Z"
    assert validate_plan(store.load("2026")).valid
