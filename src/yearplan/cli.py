"""CLI commands for keeping yearly plans of quarters, weeks and days."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import typer

from .config import DEFAULT_CONFIG_NAME, apply_store_override, load_config
from .errors import PlanError, PlanValidationError
from .memory.schema import TodoState
from .memory.store import PlanStore
from .planning.periods import PERIOD_KINDS, EnsuredPeriod, PeriodKind
from .planning.service import PlanService, TodoEdit
from .tools.prompting import read_line, read_title

APP_HELP = "Keep a yearly plan of quarters, weeks and days, each holding a todo list."
DONE_MARK = "✔"

app = typer.Typer(help=APP_HELP)
todo_app = typer.Typer(
    help="Root todo operations (create adds to today's day; list aggregates the whole year).",
    invoke_without_command=True,
)
app.add_typer(todo_app, name="todo")


@dataclass(slots=True)
class CliState:
    """Objects shared by every command of one invocation."""

    config: Dict[str, Any]
    store: PlanStore
    service: PlanService


def _configure_logging(config: Dict[str, Any], verbose: bool) -> None:
    logging_cfg = config.get("logging") or {}
    level_name = "DEBUG" if verbose else str(logging_cfg.get("level") or "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format=str(logging_cfg.get("format") or "%(levelname)s %(name)s: %(message)s"),
    )


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help=f"Path to a YAML configuration file (default: {DEFAULT_CONFIG_NAME} if present).",
    ),
    store: Optional[str] = typer.Option(
        None,
        "--store",
        "-s",
        help="Directory for storing plans (overrides paths.data).",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Load configuration and wire the plan store for the selected command."""
    config_path = Path(config or DEFAULT_CONFIG_NAME)
    config_data = apply_store_override(load_config(config_path, required=config is not None), store)
    base_dir = config_path.resolve().parent if config_path.exists() and not store else None
    _configure_logging(config_data, verbose)
    plan_store = PlanStore.from_config(config_data, base_dir=base_dir)
    ctx.obj = CliState(config=config_data, store=plan_store, service=PlanService(plan_store))


def _state(ctx: typer.Context) -> CliState:
    return ctx.find_root().obj


@contextmanager
def _command_errors() -> Iterator[None]:
    """Turn plan errors into a message on stderr and exit code 1."""
    try:
        yield
    except PlanValidationError as error:
        typer.echo(f"{error.context}:", err=True)
        for issue in error.issues:
            typer.echo(f"  - {issue.render()}", err=True)
        raise typer.Exit(code=1) from error
    except PlanError as error:
        typer.echo(str(error), err=True)
        raise typer.Exit(code=1) from error


def _capitalize(label: str) -> str:
    return label[:1].upper() + label[1:]


def _todo_line(todo: Dict[str, Any], prefix: str = "") -> str:
    mark = DONE_MARK if todo.get("state") == TodoState.DONE.value else " "
    return f"  [{prefix}{todo.get('id')}] {mark} {todo.get('title')}"


def _print_todo(period: EnsuredPeriod, todo: Dict[str, Any]) -> None:
    typer.echo(f"{_capitalize(period.label)} todo #{todo.get('id')}")
    typer.echo(f"Title: {todo.get('title')}")
    typer.echo(f"State: {todo.get('state')}")
    for label, key in (("Created", "createdAt"), ("Scheduled", "scheduled"), ("Deadline", "deadline")):
        if todo.get(key):
            typer.echo(f"{label}: {todo[key]}")
    subtasks = [subtask for subtask in todo.get("subtasks") or [] if isinstance(subtask, dict)]
    if subtasks:
        typer.echo("Subtasks:")
        for subtask in subtasks:
            typer.echo(_todo_line(subtask))


def _prompt_for_id(service: PlanService, kind: PeriodKind, number: Optional[int], verb: str) -> int:
    period, todos = service.list_todos(kind, number=number)
    if not todos:
        raise PlanError(f"No todos in {period.label}.")
    typer.echo(f"Todos in {period.label}:")
    for todo in todos:
        typer.echo(_todo_line(todo))
    answer = read_line(f"Enter id to {verb}:")
    try:
        return int(answer)
    except ValueError as error:
        raise PlanError("Invalid id.") from error


def _period_number(ctx: typer.Context, number: Optional[int]) -> Optional[int]:
    if number is not None:
        return number
    parent = ctx.parent
    if parent is not None:
        return parent.params.get("number")
    return None


def _build_period_app(kind: PeriodKind) -> typer.Typer:
    """Create the ``create/add/list/show/edit/complete/delete`` group for one period kind."""
    number_help = f"{_capitalize(kind.name)} number (1-{kind.slots}). Defaults to the current {kind.name}."
    period_app = typer.Typer(
        help=f"{_capitalize(kind.name)} operations: create, add, list, show, edit, complete and delete todos.",
        invoke_without_command=True,
    )

    def create_period(ctx: typer.Context, number: Optional[int]) -> None:
        service = _state(ctx).service
        with _command_errors():
            period = service.create_period(kind, number)
        if period.created:
            typer.echo(f"Created {period.label} in plan {period.plan_id}.")
        else:
            typer.echo(f"{_capitalize(period.label)} already exists in plan {period.plan_id}.")

    @period_app.callback()
    def period_default(
        ctx: typer.Context,
        number: Optional[int] = typer.Option(None, "--number", "-n", help=number_help),
    ) -> None:
        if ctx.invoked_subcommand is None:
            create_period(ctx, number)

    @period_app.command("create")
    def create(
        ctx: typer.Context,
        number: Optional[int] = typer.Option(None, "--number", "-n", help=number_help),
    ) -> None:
        """Create the period if it does not exist yet."""
        create_period(ctx, _period_number(ctx, number))

    @period_app.command("add")
    def add(
        ctx: typer.Context,
        number: Optional[int] = typer.Option(None, "--number", "-n", help=number_help),
        title: Optional[str] = typer.Option(
            None, "--title", "-t", help="Todo title. Read from stdin or prompted when omitted."
        ),
        deadline: Optional[str] = typer.Option(None, "--deadline", help="Deadline date-time (ISO 8601 or parseable)."),
        scheduled: Optional[str] = typer.Option(
            None, "--scheduled", help="Scheduled date-time (ISO 8601 or parseable; 'now' allowed)."
        ),
    ) -> None:
        """Add a todo to the period."""
        service = _state(ctx).service
        with _command_errors():
            period, todo = service.add_todo(
                kind,
                read_title(title),
                number=_period_number(ctx, number),
                deadline=deadline,
                scheduled=scheduled,
            )
        typer.echo(f"Added todo #{todo['id']} to {period.label}.")

    @period_app.command("list")
    def list_todos(
        ctx: typer.Context,
        state: Optional[str] = typer.Argument(None, help="Optional filter: todo or done."),
        number: Optional[int] = typer.Option(None, "--number", "-n", help=number_help),
    ) -> None:
        """List the todos of the period."""
        service = _state(ctx).service
        with _command_errors():
            period, todos = service.list_todos(kind, number=_period_number(ctx, number), state=state)
        suffix = state.upper() if state else ""
        if not period.todos:
            typer.echo(f"No todos in {period.label}.")
            return
        if not todos:
            typer.echo(f"No {suffix} todos in {period.label}.")
            return
        typer.echo(f"Todos in {period.label}{f' ({suffix})' if suffix else ''}:")
        for todo in todos:
            typer.echo(_todo_line(todo))

    @period_app.command("show")
    def show(
        ctx: typer.Context,
        todo_id: int = typer.Option(..., "--id", help="Todo id to show."),
        number: Optional[int] = typer.Option(None, "--number", "-n", help=number_help),
    ) -> None:
        """Show one todo with its subtasks."""
        service = _state(ctx).service
        with _command_errors():
            period, todo = service.get_todo(kind, todo_id, number=_period_number(ctx, number))
        _print_todo(period, todo)

    @period_app.command("edit")
    def edit(
        ctx: typer.Context,
        todo_id: int = typer.Option(..., "--id", help="Todo id to edit."),
        number: Optional[int] = typer.Option(None, "--number", "-n", help=number_help),
        title: Optional[str] = typer.Option(None, "--title", "-t", help="New title."),
        state: Optional[str] = typer.Option(None, "--state", help="New state (TODO or DONE)."),
        deadline: Optional[str] = typer.Option(None, "--deadline", help="New deadline date-time."),
        scheduled: Optional[str] = typer.Option(None, "--scheduled", help="New scheduled date-time."),
    ) -> None:
        """Edit a todo; prompts for each field when no change is given."""
        service = _state(ctx).service
        resolved_number = _period_number(ctx, number)
        changes = TodoEdit(title=title, state=state, deadline=deadline, scheduled=scheduled)
        with _command_errors():
            if changes.is_empty():
                period, todo = service.get_todo(kind, todo_id, number=resolved_number)
                _print_todo(period, todo)
                prompted_title = read_line(f"Title [{todo.get('title')}]:")
                prompted_state = read_line(f"State (TODO/DONE) [{todo.get('state')}]:").upper()
                changes = TodoEdit(
                    title=prompted_title,
                    state=prompted_state if prompted_state in {item.value for item in TodoState} else None,
                    deadline=read_line(f"Deadline ISO (blank keep) [{todo.get('deadline') or ''}]:"),
                    scheduled=read_line(f"Scheduled ISO (blank keep) [{todo.get('scheduled') or ''}]:"),
                )
            service.edit_todo(kind, todo_id, changes, number=resolved_number)
        typer.echo("Updated todo.")

    @period_app.command("complete")
    def complete(
        ctx: typer.Context,
        todo_id: Optional[int] = typer.Option(None, "--id", help="Todo id to complete. Prompted when omitted."),
        number: Optional[int] = typer.Option(None, "--number", "-n", help=number_help),
    ) -> None:
        """Mark a todo as DONE."""
        service = _state(ctx).service
        resolved_number = _period_number(ctx, number)
        with _command_errors():
            if todo_id is None:
                todo_id = _prompt_for_id(service, kind, resolved_number, "complete")
            period, todo, changed = service.complete_todo(kind, todo_id, number=resolved_number)
        if changed:
            typer.echo(f"Marked todo #{todo['id']} as DONE in {period.label}.")
        else:
            typer.echo(f"Todo #{todo['id']} already DONE.")

    @period_app.command("delete")
    def delete(
        ctx: typer.Context,
        todo_id: Optional[int] = typer.Option(None, "--id", help="Todo id to delete. Prompted when omitted."),
        number: Optional[int] = typer.Option(None, "--number", "-n", help=number_help),
    ) -> None:
        """Delete a todo from the period."""
        service = _state(ctx).service
        resolved_number = _period_number(ctx, number)
        with _command_errors():
            if todo_id is None:
                todo_id = _prompt_for_id(service, kind, resolved_number, "delete")
            period, removed = service.delete_todo(kind, todo_id, number=resolved_number)
        typer.echo(f"Deleted todo #{removed['id']} from {period.label}.")

    return period_app


for _kind in PERIOD_KINDS:
    app.add_typer(_build_period_app(_kind), name=_kind.name)


def _add_root_todo(ctx: typer.Context, title: Optional[str], deadline: Optional[str], scheduled: Optional[str]) -> None:
    service = _state(ctx).service
    with _command_errors():
        period, todo = service.add_root_todo(read_title(title), deadline=deadline, scheduled=scheduled)
    typer.echo(f"Added daily todo #{todo['id']} ({period.kind.scope(period.number)}) in {period.year}.")


@todo_app.callback()
def todo_default(ctx: typer.Context) -> None:
    if ctx.invoked_subcommand is None:
        _add_root_todo(ctx, None, None, None)


@todo_app.command("create")
def todo_create(
    ctx: typer.Context,
    title: Optional[str] = typer.Option(None, "--title", "-t", help="Todo title. Read from stdin or prompted when omitted."),
    deadline: Optional[str] = typer.Option(None, "--deadline", help="Deadline date-time. Defaults to the next year."),
    scheduled: Optional[str] = typer.Option(None, "--scheduled", help="Scheduled date-time."),
) -> None:
    """Add a todo to today's day."""
    _add_root_todo(ctx, title, deadline, scheduled)


@todo_app.command("list")
def todo_list(
    ctx: typer.Context,
    filters: List[str] = typer.Option(
        None,
        "--filter",
        "-f",
        help="Repeatable filter: quarterly|weekly|daily or TODO|DONE. Combine e.g. -f quarterly -f DONE.",
    ),
) -> None:
    """List every todo of the current year across quarters, weeks and days."""
    service = _state(ctx).service
    with _command_errors():
        year, todo_filter, records = service.aggregate_year(filters or [])
    if records is None:
        typer.echo(f"No plan for {year}.")
        return
    labels = todo_filter.describe()
    if not records:
        typer.echo(f"No {labels + ' ' if labels else ''}todos in {year}.")
        return
    typer.echo(f"Todos in {year}{f' ({labels})' if labels else ''}:")
    for record in records:
        typer.echo(_todo_line(record.as_dict(), prefix=f"{record.scope}:"))


@app.command("read")
def read_plan(
    ctx: typer.Context,
    plan_id: str = typer.Argument(..., help="Plan identifier (the year)."),
) -> None:
    """Print a stored plan as JSON."""
    with _command_errors():
        plan = _state(ctx).service.read_plan(plan_id)
    typer.echo(json.dumps(plan, indent=2, ensure_ascii=False))


@app.command("update")
def update_plan(
    ctx: typer.Context,
    plan_id: str = typer.Argument(..., help="Plan identifier (the year)."),
    file: Path = typer.Argument(..., help="Path to the JSON document to import."),
) -> None:
    """Replace a plan with a JSON document after validating it."""
    try:
        with file.open("r", encoding="utf-8") as handle:
            document = json.load(handle)
    except (OSError, json.JSONDecodeError) as error:
        typer.echo(f"Failed to read {file}: {error}", err=True)
        raise typer.Exit(code=1) from error
    with _command_errors():
        _state(ctx).service.import_plan(plan_id, document)
    typer.echo(f"Updated plan {plan_id}")


@app.command("delete")
def delete_plan(
    ctx: typer.Context,
    plan_id: str = typer.Argument(..., help="Plan identifier (the year)."),
) -> None:
    """Delete a stored plan."""
    with _command_errors():
        _state(ctx).service.delete_plan(plan_id)
    typer.echo(f"Deleted plan {plan_id}")


@app.command("list")
def list_plans(ctx: typer.Context) -> None:
    """List stored plan identifiers."""
    plan_ids = _state(ctx).service.list_plans()
    if not plan_ids:
        typer.echo("No plans")
        return
    for plan_id in plan_ids:
        typer.echo(plan_id)


if __name__ == "__main__":
    app()
