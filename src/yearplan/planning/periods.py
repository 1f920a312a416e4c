"""Period kinds and the idempotent get-or-create protocol for period slots."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, Optional

from ..errors import PeriodNumberError, PlanValidationError
from ..memory.schema import DAY_SLOTS, QUARTER_SLOTS, WEEK_SLOTS, validate_plan
from ..memory.store import PlanStore
from ..utils.dates import (
    local_now,
    start_of_next_day,
    start_of_next_quarter,
    start_of_next_week,
)
from .todos import normalize_todos

LOGGER = logging.getLogger(__name__)


def day_of_year(today: date) -> int:
    """Day of year clamped to the 365 day slots (31 December in leap years maps to 365)."""
    return min(max(today.timetuple().tm_yday, 1), DAY_SLOTS)


def week_of_year(today: date) -> int:
    return min(max((day_of_year(today) - 1) // 7 + 1, 1), WEEK_SLOTS)


def quarter_of_year(today: date) -> int:
    return (today.month - 1) // 3 + 1


@dataclass(frozen=True, slots=True)
class PeriodKind:
    """Describes one granularity of period slots inside a plan document."""

    name: str
    field: str
    slots: int
    level: str
    scope_prefix: str
    current_number: Callable[[date], int]
    default_deadline: Callable[[Optional[datetime]], str]

    def scope(self, number: int) -> str:
        return f"{self.scope_prefix}{number}"

    def describe(self, number: int, year: int) -> str:
        """Human label used in command output, e.g. ``Q2 2026`` or ``week 14 2026``."""
        if self is QUARTER:
            return f"Q{number} {year}"
        return f"{self.name} {number} {year}"

    def check_number(self, number: int) -> int:
        if isinstance(number, bool) or not isinstance(number, int) or not 1 <= number <= self.slots:
            raise PeriodNumberError(f"{self.name.capitalize()} number must be between 1 and {self.slots}.")
        return number


QUARTER = PeriodKind(
    name="quarter",
    field="quarters",
    slots=QUARTER_SLOTS,
    level="quarterly",
    scope_prefix="Q",
    current_number=quarter_of_year,
    default_deadline=start_of_next_quarter,
)
WEEK = PeriodKind(
    name="week",
    field="weeks",
    slots=WEEK_SLOTS,
    level="weekly",
    scope_prefix="W",
    current_number=week_of_year,
    default_deadline=start_of_next_week,
)
DAY = PeriodKind(
    name="day",
    field="days",
    slots=DAY_SLOTS,
    level="daily",
    scope_prefix="D",
    current_number=day_of_year,
    default_deadline=start_of_next_day,
)

PERIOD_KINDS: tuple[PeriodKind, ...] = (QUARTER, WEEK, DAY)


def empty_plan(year: int) -> Dict[str, Any]:
    """Return a plan document with every slot explicitly null."""
    plan: Dict[str, Any] = {"year": year}
    for kind in PERIOD_KINDS:
        plan[kind.field] = [None] * kind.slots
    return plan


def heal_slots(plan: Dict[str, Any]) -> None:
    """Bring every slot array to its fixed length with explicit nulls.

    Arrays that are missing or not lists are replaced wholesale; short arrays
    are padded. Existing periods are left untouched.
    """
    for kind in PERIOD_KINDS:
        slots = plan.get(kind.field)
        if not isinstance(slots, list):
            plan[kind.field] = [None] * kind.slots
            continue
        if len(slots) < kind.slots:
            slots.extend([None] * (kind.slots - len(slots)))


@dataclass(slots=True)
class EnsuredPeriod:
    """Result of ensuring a period slot."""

    plan: Dict[str, Any]
    kind: PeriodKind
    number: int
    index: int
    plan_id: str
    created: bool = False

    @property
    def year(self) -> int:
        return int(self.plan.get("year", self.plan_id))

    @property
    def period(self) -> Dict[str, Any]:
        return self.plan[self.kind.field][self.index]

    @property
    def todos(self) -> list:
        todos = self.period.get("todos")
        if not isinstance(todos, list):
            todos = self.period["todos"] = []
        return todos

    @property
    def label(self) -> str:
        return self.kind.describe(self.number, self.year)


class PeriodEnsurer:
    """Get-or-create access to period slots of the current year's plan."""

    def __init__(self, store: PlanStore, *, clock: Callable[[], datetime] = local_now) -> None:
        self.store = store
        self.clock = clock

    def resolve_number(self, kind: PeriodKind, number: Optional[int] = None) -> int:
        if number is None:
            return kind.current_number(self.clock().date())
        return kind.check_number(number)

    def load_plan(self, year: int) -> Dict[str, Any]:
        """Load the plan for ``year`` or synthesize an empty one, then heal its slots."""
        self.store.ensure_ready()
        plan = self.store.load(str(year))
        if not isinstance(plan, dict):
            plan = empty_plan(year)
        heal_slots(plan)
        return plan

    def ensure(self, kind: PeriodKind, number: Optional[int] = None, *, persist: bool = True) -> EnsuredPeriod:
        """Guarantee that the addressed period exists.

        When the slot is null it becomes ``{"todos": []}``; with ``persist`` the
        plan is then normalized, validated and saved. A slot that already holds
        a period is returned as-is and nothing is written.
        """
        resolved = self.resolve_number(kind, number)
        now = self.clock()
        year = now.year
        plan_id = str(year)
        plan = self.load_plan(year)
        index = resolved - 1
        result = EnsuredPeriod(plan=plan, kind=kind, number=resolved, index=index, plan_id=plan_id)
        if plan[kind.field][index] is not None:
            return result

        plan[kind.field][index] = {"todos": []}
        result.created = True
        if persist:
            normalize_todos(plan, now=now)
            report = validate_plan(plan)
            if not report.valid:
                raise PlanValidationError(report.errors)
            self.store.save(plan_id, plan)
            LOGGER.info("Created %s in plan %s", result.label, plan_id)
        return result
