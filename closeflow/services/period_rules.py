"""
Calendar and eligibility rules for monthly close periods.

Everything here is a pure function over plain values so the rollover,
the API and the management command agree on one definition.
"""
from __future__ import annotations

import math
from datetime import date
from typing import Iterable, Optional, Sequence

from dateutil.relativedelta import relativedelta

from closeflow.models.period import Period, PeriodStatus
from closeflow.models.task import TaskFrequency, TaskStatus

DONE_STATUSES = (TaskStatus.COMPLETED, TaskStatus.SUBMITTED)

# month_id is stored as String(7)
MAX_YEAR = 9999


def validate_year(year: int) -> None:
    if not isinstance(year, int) or isinstance(year, bool) or not 1 <= year <= MAX_YEAR:
        raise ValueError(f"Year must be an integer between 1 and {MAX_YEAR}, got {year!r}")


def validate_month(month: int) -> None:
    if not isinstance(month, int) or isinstance(month, bool) or not 1 <= month <= 12:
        raise ValueError(f"Month must be an integer between 1 and 12, got {month!r}")


def make_month_id(year: int, month: int) -> str:
    """Identity key of a period within its workspace, e.g. ``2024-06``"""
    validate_year(year)
    validate_month(month)
    return f"{year}-{month:02d}"


def parse_month_id(month_id: str) -> tuple[int, int]:
    try:
        year_str, month_str = month_id.split("-")
        year, month = int(year_str), int(month_str)
    except ValueError:
        raise ValueError(f"Invalid month id {month_id!r}, expected YYYY-MM")
    validate_month(month)
    return year, month


def quarter_for_month(month: int) -> int:
    validate_month(month)
    return math.ceil(month / 3)


def should_include_template(frequency: TaskFrequency | str, month: int) -> bool:
    """Whether a template with this frequency is cloned into the given month"""
    value = frequency.value if isinstance(frequency, TaskFrequency) else frequency
    if value == TaskFrequency.MONTHLY.value:
        return True
    if value == TaskFrequency.QUARTERLY.value:
        return month % 3 == 0
    if value == TaskFrequency.ANNUALLY.value:
        return month == 12
    return False


def find_current_period(periods: Iterable[Period]) -> Optional[Period]:
    """The most recent open, non-archived period by (year, month)"""
    candidates = [
        p for p in periods
        if p.status == PeriodStatus.OPEN and not p.is_archived
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda p: (p.year, p.month))


def next_month(year: int, month: int) -> tuple[int, int]:
    validate_year(year)
    validate_month(month)
    if (year, month) == (MAX_YEAR, 12):
        raise ValueError(f"No month follows {make_month_id(year, month)}")
    following = date(year, month, 1) + relativedelta(months=1)
    return following.year, following.month


def completion_percent(statuses: Sequence[TaskStatus]) -> int:
    """Share of tasks submitted or completed, rounded to a whole percent"""
    if not statuses:
        return 0
    done = sum(1 for s in statuses if s in DONE_STATUSES)
    return round(done / len(statuses) * 100)
