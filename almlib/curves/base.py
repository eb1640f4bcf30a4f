"""
Base yield curve class.

A curve maps a date to the discount factor from its reference date. Every
curve derives zero and forward rates from its discount factors, and can
produce shifted or time-rolled copies of itself; curves are never mutated.
"""

import math
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Mapping, Optional, Union

from almlib.conventions.daycount import ACT_365, DayCounter, get_day_counter
from almlib.errors import ArithmeticInvalidError, InvalidValueError
from almlib.rates.interestrate import InterestRate, RateDefinition

DateLike = Union[date, datetime]


def _to_date(dt: DateLike) -> date:
    return dt.date() if isinstance(dt, datetime) else dt


class YieldCurve(ABC):
    """Base implementation for yield curves."""

    def __init__(
        self,
        reference_date: DateLike,
        name: str = "",
        day_counter: Union[str, DayCounter] = ACT_365,
    ):
        """
        Initialize base curve.

        Args:
            reference_date: Curve reference/valuation date
            name: Optional curve name for identification
            day_counter: Day count used to convert dates to curve times
        """
        self.reference_date = _to_date(reference_date)
        self.name = name
        self.day_counter = get_day_counter(day_counter)

    def year_fraction(self, dt: Union[DateLike, float]) -> float:
        """Curve time of a date (floats are taken as times already)."""
        if isinstance(dt, (int, float)):
            return float(dt)
        return self.day_counter.year_fraction(self.reference_date, _to_date(dt))

    @abstractmethod
    def _discount(self, dt: date) -> float:
        """Raw discount factor at ``dt``."""

    @abstractmethod
    def advance(self, to_date: DateLike) -> "YieldCurve":
        """Curve seen from ``to_date``, preserving forward discount factors."""

    def discount_factor(self, dt: DateLike) -> float:
        """Discount factor from the reference date to ``dt``.

        Raises:
            ArithmeticInvalidError: if the curve produces a non-positive value.
        """
        df = self._discount(_to_date(dt))
        if not df > 0.0:
            raise ArithmeticInvalidError(
                f"Non-positive discount factor {df} on {self} at {dt}"
            )
        return df

    def zero_rate(
        self, dt: DateLike, rate_definition: Optional[RateDefinition] = None
    ) -> float:
        """Zero rate to ``dt``; continuously compounded on the curve basis by default."""
        dt = _to_date(dt)
        if rate_definition is None:
            t = self.year_fraction(dt)
            if t <= 0:
                return 0.0
            return -math.log(self.discount_factor(dt)) / t

        t = rate_definition.year_fraction(self.reference_date, dt)
        if t <= 0:
            return 0.0
        return InterestRate.implied_rate(
            1.0 / self.discount_factor(dt), rate_definition, t
        ).rate

    def forward_rate(
        self,
        start: DateLike,
        end: DateLike,
        rate_definition: Optional[RateDefinition] = None,
    ) -> float:
        """Forward rate between ``start`` and ``end`` (simple ACT/360 by default)."""
        start, end = _to_date(start), _to_date(end)
        if end <= start:
            raise InvalidValueError(
                f"Forward period must be positive, got {start} -> {end}"
            )
        rate_definition = rate_definition or RateDefinition()
        compound = self.discount_factor(start) / self.discount_factor(end)
        t = rate_definition.year_fraction(start, end)
        return InterestRate.implied_rate(compound, rate_definition, t).rate

    def shifted(
        self, shift: float, rate_definition: Optional[RateDefinition] = None
    ) -> "YieldCurve":
        """Curve with ``shift`` added to every zero rate."""
        from .spreaded import SpreadedCurve

        return SpreadedCurve(self, shift, rate_definition)

    def with_bucket_shifts(self, shifts: Mapping[DateLike, float]) -> "YieldCurve":
        """Curve with zero rates shifted by bucket.

        ``shifts`` maps pillar dates to shifts; the shift at any date is
        interpolated linearly between neighbouring pillars (triangular
        weights) and held flat beyond the first and last pillar.
        """
        from .spreaded import BucketSpreadedCurve

        return BucketSpreadedCurve(self, shifts)

    def __str__(self) -> str:
        return (
            f"{self.__class__.__name__}({self.name})"
            if self.name
            else self.__class__.__name__
        )
