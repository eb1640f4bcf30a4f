"""
Signed time periods (``3M``, ``-2W``, ``1Y``) and date arithmetic.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Union

from dateutil.relativedelta import relativedelta

from almlib.conventions.types import Frequency, TimeUnit
from almlib.errors import InvalidValueError

_TENOR_RE = re.compile(r"^\s*([+-]?\d+)\s*([DWMY])\s*$", re.IGNORECASE)

_FREQUENCY_PERIODS = {
    Frequency.ONCE: (0, TimeUnit.YEARS),
    Frequency.ANNUAL: (1, TimeUnit.YEARS),
    Frequency.SEMIANNUAL: (6, TimeUnit.MONTHS),
    Frequency.EVERY_FOURTH_MONTH: (4, TimeUnit.MONTHS),
    Frequency.QUARTERLY: (3, TimeUnit.MONTHS),
    Frequency.BIMONTHLY: (2, TimeUnit.MONTHS),
    Frequency.MONTHLY: (1, TimeUnit.MONTHS),
    Frequency.EVERY_FOURTH_WEEK: (4, TimeUnit.WEEKS),
    Frequency.BIWEEKLY: (2, TimeUnit.WEEKS),
    Frequency.WEEKLY: (1, TimeUnit.WEEKS),
    Frequency.DAILY: (1, TimeUnit.DAYS),
}


@dataclass(frozen=True)
class Period:
    """A signed length of time in days, weeks, months or years.

    Adding a month or year period to a date clamps the day of month to the
    length of the target month (``Jan 31 + 1M == Feb 28/29``).
    """

    length: int
    unit: TimeUnit

    @classmethod
    def parse(cls, text: Union[str, "Period"]) -> "Period":
        """Parse a tenor string such as ``"3M"`` or ``"10Y"``."""
        if isinstance(text, Period):
            return text
        match = _TENOR_RE.match(str(text))
        if match is None:
            raise InvalidValueError(f"Unsupported tenor: {text!r}")
        return cls(int(match.group(1)), TimeUnit.from_str(match.group(2)))

    @classmethod
    def from_frequency(cls, frequency: Frequency) -> "Period":
        """Period between two payments of the given frequency."""
        frequency = Frequency.from_str(frequency)
        length, unit = _FREQUENCY_PERIODS[frequency]
        return cls(length, unit)

    @classmethod
    def days(cls, n: int) -> "Period":
        return cls(n, TimeUnit.DAYS)

    @classmethod
    def months(cls, n: int) -> "Period":
        return cls(n, TimeUnit.MONTHS)

    @classmethod
    def years(cls, n: int) -> "Period":
        return cls(n, TimeUnit.YEARS)

    def frequency(self) -> Frequency:
        """Frequency whose payment interval equals this period."""
        for frequency, (length, unit) in _FREQUENCY_PERIODS.items():
            if (length, unit) == (abs(self.length), self.unit):
                return frequency
        if self.unit == TimeUnit.YEARS and self.length == 0:
            return Frequency.ONCE
        raise InvalidValueError(f"Period {self} does not map to a frequency")

    def to_relativedelta(self) -> relativedelta:
        if self.unit == TimeUnit.DAYS:
            return relativedelta(days=self.length)
        if self.unit == TimeUnit.WEEKS:
            return relativedelta(weeks=self.length)
        if self.unit == TimeUnit.MONTHS:
            return relativedelta(months=self.length)
        return relativedelta(years=self.length)

    def add_to(self, dt: Union[date, datetime]) -> date:
        if isinstance(dt, datetime):
            dt = dt.date()
        return dt + self.to_relativedelta()

    def __neg__(self) -> "Period":
        return Period(-self.length, self.unit)

    def __mul__(self, factor: int) -> "Period":
        return Period(self.length * int(factor), self.unit)

    __rmul__ = __mul__

    def __radd__(self, other):
        if isinstance(other, date):
            return self.add_to(other)
        return NotImplemented

    def __rsub__(self, other):
        if isinstance(other, date):
            return (-self).add_to(other)
        return NotImplemented

    def __str__(self) -> str:
        return f"{self.length}{self.unit.value}"
