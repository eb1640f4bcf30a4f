"""
Core data structures for schedule generation.
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterator, List, Optional, Tuple

from almlib.conventions.calendars import Calendar
from almlib.conventions.daycount import DayCounter
from almlib.conventions.types import BusinessDayAdjustment, DateGenerationRule

from .period import Period


@dataclass(frozen=True)
class SchedulePeriod:
    """Represents a single period in a payment schedule."""

    start_date: date
    end_date: date
    year_fraction: float
    is_stub: bool = False

    @property
    def accrual_days(self) -> int:
        """Number of calendar days in accrual period."""
        return (self.end_date - self.start_date).days


@dataclass(frozen=True)
class Schedule:
    """Strictly increasing sequence of adjusted dates.

    ``is_regular[i]`` describes the period ``(dates[i], dates[i + 1])``.
    """

    dates: Tuple[date, ...]
    is_regular: Tuple[bool, ...]
    tenor: Optional[Period]
    calendar: Calendar
    convention: BusinessDayAdjustment
    rule: DateGenerationRule = DateGenerationRule.FORWARD

    @property
    def start_date(self) -> date:
        return self.dates[0]

    @property
    def end_date(self) -> date:
        return self.dates[-1]

    def __len__(self) -> int:
        return len(self.dates)

    def __iter__(self) -> Iterator[date]:
        return iter(self.dates)

    def __getitem__(self, index):
        return self.dates[index]

    def number_of_periods(self) -> int:
        return len(self.dates) - 1

    def periods(self) -> Iterator[Tuple[date, date]]:
        """Iterate over ``(start, end)`` pairs of consecutive dates."""
        return zip(self.dates[:-1], self.dates[1:])

    def accrual_periods(self, day_counter: DayCounter) -> List[SchedulePeriod]:
        """Periods with year fractions measured on ``day_counter``."""
        return [
            SchedulePeriod(
                start_date=start,
                end_date=end,
                year_fraction=day_counter.year_fraction(start, end),
                is_stub=not regular,
            )
            for (start, end), regular in zip(self.periods(), self.is_regular)
        ]
