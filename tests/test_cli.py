from __future__ import annotations

import json
import textwrap
from datetime import datetime
from pathlib import Path

import pytest
from typer.testing import CliRunner

from yearplan.cli import app
from yearplan.memory.store import PlanStore

YEAR = str(datetime.now().year)


@pytest.fixture()
def run(tmp_path: Path):
    runner = CliRunner()
    store_dir = tmp_path / "plans"

    def invoke(*args: str, input: str | None = None):
        return runner.invoke(app, ["--store", str(store_dir), *args], input=input, catch_exceptions=False)

    invoke.store = PlanStore(store_dir)
    return invoke


def test_period_create_is_idempotent(run) -> None:
    first = run("quarter", "create", "-n", "2")
    second = run("quarter", "-n", "2")

    assert first.exit_code == 0, first.output
    assert f"Created Q2 {YEAR} in plan {YEAR}." in first.output
    assert second.exit_code == 0, second.output
    assert "already exists" in second.output
    assert run.store.load(YEAR)["quarters"][1] == {"todos": []}


def test_add_list_show_and_complete(run) -> None:
    added = run("day", "add", "-n", "10", "--title", "Ship report")
    piped = run("day", "add", "-n", "10", input="Piped title\n")

    assert added.exit_code == 0, added.output
    assert f"Added todo #1 to day 10 {YEAR}." in added.output
    assert f"Added todo #2 to day 10 {YEAR}." in piped.output

    completed = run("day", "complete", "-n", "10", input="2\n")
    assert completed.exit_code == 0, completed.output
    assert f"Marked todo #2 as DONE in day 10 {YEAR}." in completed.output

    listing = run("day", "list", "done", "-n", "10")
    assert f"Todos in day 10 {YEAR} (DONE):" in listing.output
    assert "[2] ✔ Piped title" in listing.output
    assert "Ship report" not in listing.output

    shown = run("day", "show", "-n", "10", "--id", "1")
    assert f"Day 10 {YEAR} todo #1" in shown.output
    assert "Title: Ship report" in shown.output
    assert "Deadline: " in shown.output


def test_delete_missing_todo_fails(run) -> None:
    run("week", "add", "-n", "5", "-t", "Only")

    deleted = run("week", "delete", "-n", "5", "--id", "1")
    again = run("week", "delete", "-n", "5", "--id", "1")

    assert deleted.exit_code == 0, deleted.output
    assert run.store.load(YEAR)["weeks"][4]["todos"] == []
    assert again.exit_code == 1
    assert "not found" in again.output


def test_edit_with_flags(run) -> None:
    run("quarter", "add", "-n", "1", "-t", "Plan offsite")

    edited = run("quarter", "edit", "-n", "1", "--id", "1", "--state", "DONE", "--title", "Offsite booked")

    assert edited.exit_code == 0, edited.output
    todo = run.store.load(YEAR)["quarters"][0]["todos"][0]
    assert (todo["title"], todo["state"]) == ("Offsite booked", "DONE")


def test_fatal_inputs_exit_with_code_one(run) -> None:
    out_of_range = run("day", "-n", "400")
    bad_date = run("day", "add", "-n", "3", "-t", "Dated", "--deadline", "someday soon")
    no_title = run("week", "add", "-n", "3", input="\n")

    assert out_of_range.exit_code == 1
    assert "Day number must be between 1 and 365." in out_of_range.output
    assert bad_date.exit_code == 1
    assert "Invalid deadline date-time: someday soon" in bad_date.output
    assert no_title.exit_code == 1
    assert "Title is required." in no_title.output
    assert run.store.load(YEAR) is None


def test_root_todo_list_with_filters(run) -> None:
    assert f"No plan for {YEAR}." in run("todo", "list").output

    run("todo", "create", "-t", "Daily thing")
    run("quarter", "add", "-t", "Quarter goal")
    run("quarter", "complete", "--id", "1")

    everything = run("todo", "list")
    quarterly_done = run("todo", "list", "-f", "quarterly", "-f", "DONE")
    weekly = run("todo", "list", "-f", "weekly")
    bogus = run("todo", "list", "-f", "bogus")

    assert "Daily thing" in everything.output and "Quarter goal" in everything.output
    assert f"Todos in {YEAR} (quarterly DONE):" in quarterly_done.output
    assert ":1] ✔ Quarter goal" in quarterly_done.output
    assert "Daily thing" not in quarterly_done.output
    assert f"No weekly todos in {YEAR}." in weekly.output
    assert bogus.exit_code == 1
    assert "Unknown filter value(s): bogus" in bogus.output


def test_plan_document_commands(run, tmp_path: Path) -> None:
    document = {
        "year": 2025,
        "quarters": [None] * 4,
        "weeks": [None] * 52,
        "days": [{"todos": [{"id": 1, "title": "Imported", "state": "TODO"}]}] + [None] * 364,
    }
    source = tmp_path / "import.json"
    source.write_text(json.dumps(document), encoding="utf-8")
    invalid = tmp_path / "invalid.json"
    invalid.write_text(json.dumps({"year": "2024"}), encoding="utf-8")

    updated = run("update", "2025", str(source))
    rejected = run("update", "2024", str(invalid))
    listing = run("list")
    shown = run("read", "2025")
    deleted = run("delete", "2025")
    missing = run("read", "2025")

    assert updated.exit_code == 0, updated.output
    assert "Updated plan 2025" in updated.output
    assert rejected.exit_code == 1
    assert "/year" in rejected.output
    assert listing.output.split() == ["2025"]
    assert json.loads(shown.output)["days"][0]["todos"][0]["title"] == "Imported"
    assert deleted.exit_code == 0
    assert missing.exit_code == 1
    assert "Plan 2025 not found" in missing.output
    assert "No plans" in run("list").output


def test_config_file_sets_the_store(tmp_path: Path) -> None:
    config_path = tmp_path / "plan.yaml"
    config_path.write_text(
        textwrap.dedent(
            """
            paths:
              data: stored-plans
            logging:
              level: WARNING
            """
        ).lstrip(),
        encoding="utf-8",
    )

    result = CliRunner().invoke(app, ["--config", str(config_path), "week", "create", "-n", "7"])

    assert result.exit_code == 0, result.output
    assert (tmp_path / "stored-plans" / f"{YEAR}.json").exists()


def test_explicit_config_must_exist(tmp_path: Path) -> None:
    missing = tmp_path / "absent.yaml"

    result = CliRunner().invoke(app, ["--config", str(missing), "list"])

    assert result.exit_code == 2
    assert "Config file not found" in result.output


def test_listing_a_new_period_creates_it(run) -> None:
    result = run("day", "list", "-n", "40")

    assert result.exit_code == 0, result.output
    assert run.store.load(YEAR)["days"][39] == {"todos": []}


def test_corrupt_plan_file_exits_with_message(run) -> None:
    run.store.root.mkdir(parents=True, exist_ok=True)
    (run.store.root / f"{YEAR}.json").write_text("{oops", encoding="utf-8")

    result = run("day", "list", "-n", "3")

    assert result.exit_code == 1
    assert "not valid JSON" in result.output
