from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterator, Optional, Tuple


CAPACITY_PCT = 100


@dataclass(frozen=True)
class Interval:
    """Normalized charge-code assignment covering the closed range [start, end]."""

    start: date
    end: date
    percentage: int
    contract: str = ""
    assignment_id: str = ""
    charge_code_id: str = ""
    name: str = ""

    def overlaps(self, first: date, last: date) -> bool:
        return not (self.end < first or self.start > last)

    def clip(self, first: date, last: date) -> Optional[Tuple[date, date]]:
        if not self.overlaps(first, last):
            return None
        return max(self.start, first), min(self.end, last)

    def is_active_on(self, day: date) -> bool:
        return self.start <= day <= self.end

    @property
    def length_days(self) -> int:
        return (self.end - self.start).days + 1


@dataclass(frozen=True)
class Person:
    id: str
    name: str
    assignments: Tuple[Interval, ...] = ()
    email: str = ""
    position: str = ""
    location: str = ""
    coverage_percentage: Optional[float] = None

    def contracts(self) -> Tuple[str, ...]:
        return tuple(sorted({item.contract for item in self.assignments if item.contract}))


@dataclass(frozen=True)
class ChargeCode:
    id: str
    name: str
    contract: str = ""
    program: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass(frozen=True)
class DailySeries:
    """Summed allocation per calendar day; slot 0 is day 1 of the month."""

    year: int
    month: int
    values: Tuple[int, ...]

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator[int]:
        return iter(self.values)

    def __getitem__(self, index: int) -> int:
        return self.values[index]

    def value_on(self, day: int) -> int:
        if day < 1 or day > len(self.values):
            raise IndexError(f"day {day} outside {self.year}-{self.month:02d}")
        return self.values[day - 1]

    @property
    def days_in_month(self) -> int:
        return len(self.values)

    @property
    def total(self) -> int:
        return sum(self.values)


@dataclass(frozen=True)
class MonthlySummary:
    average_percentage: float
    peak_percentage: int
    is_overallocated: bool

    def to_dict(self) -> Dict[str, object]:
        return {
            "average_percentage": self.average_percentage,
            "peak_percentage": self.peak_percentage,
            "is_overallocated": self.is_overallocated,
        }


@dataclass(frozen=True)
class DashboardConfig:
    api_base: Optional[str] = None
    timeout_seconds: float = 10.0
    capacity_pct: int = CAPACITY_PCT
    search_min_chars: int = 3
    logging_level: str = "INFO"
