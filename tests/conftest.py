from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from yearplan.memory.store import PlanStore  # noqa: E402
from yearplan.planning.service import PlanService  # noqa: E402

# Wednesday 15 April 2026: day 105, week 15, quarter 2.
FIXED_NOW = datetime(2026, 4, 15, 9, 30, 0, tzinfo=timezone.utc)


class CountingStore(PlanStore):
    """Plan store that records how many documents were written."""

    def __init__(self, root: Path) -> None:
        super().__init__(root)
        self.saves = 0

    def save(self, plan_id: str, plan: Mapping[str, Any]) -> None:
        self.saves += 1
        super().save(plan_id, plan)


@pytest.fixture()
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture()
def fixed_clock(now: datetime):
    return lambda: now


@pytest.fixture()
def store(tmp_path: Path) -> CountingStore:
    return CountingStore(tmp_path / "data")


@pytest.fixture()
def service(store: CountingStore, fixed_clock) -> PlanService:
    return PlanService(store, clock=fixed_clock)
