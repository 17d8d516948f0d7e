from __future__ import annotations

import calendar
import math
from datetime import date, timedelta
from typing import Dict, Iterable, List, Sequence, Tuple

import pandas as pd
from dateutil.relativedelta import relativedelta

from .models import CAPACITY_PCT, DailySeries, Interval, MonthlySummary, Person

Month = Tuple[int, int]

UTILIZATION_COLUMNS = [
    "person_id",
    "person",
    "month",
    "month_label",
    "average_pct",
    "peak_pct",
    "monthly_total_pct",
    "overallocated",
]


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    if not 1 <= month <= 12:
        raise ValueError(f"month must be in 1-12, got {month}")
    days = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, days)


def month_label(year: int, month: int) -> str:
    return date(year, month, 1).strftime("%b %Y")


def month_sequence(year: int, month: int, count: int) -> List[Month]:
    if count <= 0:
        raise ValueError("month count must be positive")
    first, _ = month_bounds(year, month)
    months: List[Month] = []
    for offset in range(count):
        current = first + relativedelta(months=offset)
        months.append((current.year, current.month))
    return months


def is_active_in_month(interval: Interval, year: int, month: int) -> bool:
    first, last = month_bounds(year, month)
    return interval.overlaps(first, last)


def compute_daily_series(intervals: Iterable[Interval], year: int, month: int) -> DailySeries:
    """Sum the percentage of every interval active on each day of the month.

    Intervals are clipped to the month and both ends are inclusive. No cap is
    applied; a day can exceed 100.
    """
    first, last = month_bounds(year, month)
    slots = [0] * ((last - first).days + 1)
    for interval in intervals:
        clipped = interval.clip(first, last)
        if clipped is None:
            continue
        effective_start, effective_end = clipped
        for offset in range((effective_start - first).days, (effective_end - first).days + 1):
            slots[offset] += interval.percentage
    return DailySeries(year=year, month=month, values=tuple(slots))


def _round_half_up(value: float, digits: int = 1) -> float:
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def max_daily_allocation(series: Sequence[int]) -> int:
    return max(series, default=0)


def is_overallocated(series: Sequence[int], capacity_pct: int = CAPACITY_PCT) -> bool:
    return any(value > capacity_pct for value in series)


def overallocated_days(series: Sequence[int], capacity_pct: int = CAPACITY_PCT) -> List[int]:
    return [idx + 1 for idx, value in enumerate(series) if value > capacity_pct]


def summarize_month(series: Sequence[int], capacity_pct: int = CAPACITY_PCT) -> MonthlySummary:
    days = len(series)
    average = _round_half_up(sum(series) / days) if days else 0.0
    return MonthlySummary(
        average_percentage=average,
        peak_percentage=max_daily_allocation(series),
        is_overallocated=is_overallocated(series, capacity_pct),
    )


def monthly_total(intervals: Iterable[Interval], year: int, month: int) -> int:
    """Plain sum of percentages of every interval touching the month at all."""
    return sum(
        interval.percentage for interval in intervals if is_active_in_month(interval, year, month)
    )


def summarize_person(
    person: Person, year: int, month: int, capacity_pct: int = CAPACITY_PCT
) -> MonthlySummary:
    return summarize_month(compute_daily_series(person.assignments, year, month), capacity_pct)


def series_dates(series: DailySeries) -> List[date]:
    first, _ = month_bounds(series.year, series.month)
    return [first + timedelta(days=offset) for offset in range(len(series))]


def utilization_frame(
    people: Iterable[Person],
    months: Sequence[Month],
    capacity_pct: int = CAPACITY_PCT,
) -> pd.DataFrame:
    rows: List[Dict[str, object]] = []
    for person in people:
        for year, month in months:
            series = compute_daily_series(person.assignments, year, month)
            summary = summarize_month(series, capacity_pct)
            rows.append(
                {
                    "person_id": person.id,
                    "person": person.name,
                    "month": f"{year:04d}-{month:02d}",
                    "month_label": month_label(year, month),
                    "average_pct": summary.average_percentage,
                    "peak_pct": summary.peak_percentage,
                    "monthly_total_pct": monthly_total(person.assignments, year, month),
                    "overallocated": summary.is_overallocated,
                }
            )
    return pd.DataFrame(rows, columns=UTILIZATION_COLUMNS)
