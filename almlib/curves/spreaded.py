"""
Curves defined as a base curve plus a zero-rate spread.

Used for parallel and bucketed shocks and for Z-spread solving; the base
curve is shared, not copied.
"""
import math
from datetime import date
from typing import Mapping, Optional

import numpy as np

from almlib.errors import InvalidValueError
from almlib.rates.interestrate import InterestRate, RateDefinition

from .base import DateLike, YieldCurve, _to_date


class SpreadedCurve(YieldCurve):
    """Base curve with a constant spread on its zero rates.

    Without ``rate_definition`` the spread applies to continuously
    compounded zero rates on the base curve's time basis; otherwise to the
    zero rates quoted under ``rate_definition``.
    """

    def __init__(
        self,
        base: YieldCurve,
        spread: float,
        rate_definition: Optional[RateDefinition] = None,
        name: str = "",
    ):
        super().__init__(base.reference_date, name or base.name, base.day_counter)
        self.base = base
        self.spread = float(spread)
        self.rate_definition = rate_definition

    def _discount(self, dt: date) -> float:
        if self.rate_definition is None:
            t = self.base.year_fraction(dt)
            return self.base.discount_factor(dt) * math.exp(-self.spread * t)

        t = self.rate_definition.year_fraction(self.reference_date, dt)
        if t <= 0:
            return self.base.discount_factor(dt)
        zero = self.base.zero_rate(dt, self.rate_definition)
        rate = InterestRate(zero + self.spread, self.rate_definition)
        return rate.discount_factor_from_yf(t)

    def shifted(self, shift: float, rate_definition: Optional[RateDefinition] = None):
        if rate_definition == self.rate_definition:
            return SpreadedCurve(self.base, self.spread + shift, self.rate_definition, self.name)
        return super().shifted(shift, rate_definition)

    def advance(self, to_date: DateLike) -> "SpreadedCurve":
        return SpreadedCurve(
            self.base.advance(to_date), self.spread, self.rate_definition, self.name
        )

    def __repr__(self) -> str:
        return f"SpreadedCurve(base={self.base}, spread={self.spread})"


class BucketSpreadedCurve(YieldCurve):
    """Base curve with a date-dependent spread on its continuous zero rates.

    The spread is linear between bucket dates and flat outside them, so a
    shift on one bucket fades out at its neighbours.
    """

    def __init__(self, base: YieldCurve, shifts: Mapping[DateLike, float], name: str = ""):
        super().__init__(base.reference_date, name or base.name, base.day_counter)
        if not shifts:
            raise InvalidValueError("Bucket shifts need at least one pillar")
        self.base = base
        self.shifts = {_to_date(d): float(s) for d, s in sorted(shifts.items())}
        self._times = np.array([base.year_fraction(d) for d in self.shifts])
        self._values = np.array(list(self.shifts.values()))

    def spread_at(self, dt: DateLike) -> float:
        return float(np.interp(self.base.year_fraction(dt), self._times, self._values))

    def _discount(self, dt: date) -> float:
        t = self.base.year_fraction(dt)
        return self.base.discount_factor(dt) * math.exp(-self.spread_at(dt) * t)

    def advance(self, to_date: DateLike) -> YieldCurve:
        to_date = _to_date(to_date)
        remaining = {d: s for d, s in self.shifts.items() if d > to_date}
        base = self.base.advance(to_date)
        if not remaining:
            return SpreadedCurve(base, self._values[-1], name=self.name)
        return BucketSpreadedCurve(base, remaining, self.name)

    def __repr__(self) -> str:
        return f"BucketSpreadedCurve(base={self.base}, buckets={len(self.shifts)})"
