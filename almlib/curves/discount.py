"""
Discount curve built from pillar dates and discount factors.
"""
import logging
import math
from datetime import date, timedelta
from typing import List, Optional, Sequence, Union

from almlib.conventions.daycount import ACT_365, DayCounter
from almlib.errors import InvalidValueError
from almlib.interpolation import InterpolationMethod, create_interpolator

from .base import DateLike, YieldCurve, _to_date

logger = logging.getLogger(__name__)


class DiscountCurve(YieldCurve):
    """
    Pillar discount curve.

    The reference date is always a pillar with discount factor 1. Between
    pillars the curve interpolates with ``interpolation``; beyond the last
    pillar the last zero rate is held flat.
    """

    def __init__(
        self,
        reference_date: DateLike,
        dates: Sequence[DateLike],
        discount_factors: Sequence[float],
        interpolation: Union[InterpolationMethod, str] = InterpolationMethod.LOGLINEAR_ZERO,
        name: str = "",
        day_counter: Union[str, DayCounter] = ACT_365,
    ):
        """
        Initialize discount curve.

        Args:
            reference_date: Curve valuation date
            dates: Pillar dates (after the reference date)
            discount_factors: Discount factors at the pillar dates
            interpolation: LINEAR_DF, LOGLINEAR_ZERO or PIECEWISE_CONSTANT
            name: Curve name
            day_counter: Time basis of the pillars
        """
        super().__init__(reference_date, name, day_counter)

        if len(dates) != len(discount_factors):
            raise InvalidValueError("Pillar dates and discount factors must have same length")
        if not dates:
            raise InvalidValueError("Need at least 1 pillar point")

        for i, df in enumerate(discount_factors):
            if df <= 0:
                raise InvalidValueError(f"Discount factor at pillar {i} must be positive: {df}")

        pairs = sorted((_to_date(d), float(df)) for d, df in zip(dates, discount_factors))
        if any(d < self.reference_date for d, _ in pairs):
            raise InvalidValueError("Pillar dates must not precede the reference date")
        if pairs[0][0] != self.reference_date:
            pairs.insert(0, (self.reference_date, 1.0))

        # Discount factors should be decreasing
        for i in range(1, len(pairs)):
            increase = pairs[i][1] - pairs[i - 1][1]
            if increase > 1e-6:
                logger.warning(
                    "Discount factors increasing at pillar %s on %s (increase = %.8f)",
                    i,
                    self.name or "unnamed curve",
                    increase,
                )

        self.dates: List[date] = [d for d, _ in pairs]
        self.discount_factors: List[float] = [df for _, df in pairs]
        self.interpolation = InterpolationMethod.from_str(interpolation)
        self.pillar_times = [self.year_fraction(d) for d in self.dates]

        if self.interpolation == InterpolationMethod.LINEAR_DF:
            values = self.discount_factors
        else:
            values = self._pillar_zero_rates()
        self._interpolator = create_interpolator(self.interpolation, self.pillar_times, values)

    def _pillar_zero_rates(self) -> List[float]:
        zeros = [
            -math.log(df) / t if t > 0 else None
            for t, df in zip(self.pillar_times, self.discount_factors)
        ]
        # The reference pillar takes the first proper zero rate
        first = next((z for z in zeros if z is not None), 0.0)
        return [first if z is None else z for z in zeros]

    def _discount(self, dt: date) -> float:
        t = self.year_fraction(dt)
        if t == 0:
            return self.discount_factors[0]

        last_t = self.pillar_times[-1]
        if t > last_t and last_t > 0:
            last_zero = -math.log(self.discount_factors[-1]) / last_t
            return math.exp(-last_zero * t)

        if self.interpolation == InterpolationMethod.LINEAR_DF:
            return self._interpolator.interpolate(t)
        if self.interpolation == InterpolationMethod.LOGLINEAR_ZERO:
            return self._interpolator.interpolate_discount_factor(t)
        return math.exp(-self._interpolator.interpolate(t) * t)

    def shifted(self, shift: float, rate_definition=None):
        """Parallel shift of the continuously compounded pillar zero rates."""
        if rate_definition is not None:
            return super().shifted(shift, rate_definition)
        new_dfs = [
            df * math.exp(-shift * t) for t, df in zip(self.pillar_times, self.discount_factors)
        ]
        return DiscountCurve(
            self.reference_date,
            self.dates,
            new_dfs,
            interpolation=self.interpolation,
            name=self.name,
            day_counter=self.day_counter,
        )

    def advance(self, to_date: DateLike) -> "DiscountCurve":
        to_date = _to_date(to_date)
        if to_date == self.reference_date:
            return self
        anchor = self.discount_factor(to_date)
        later = [d for d in self.dates if d > to_date]
        if not later:
            later = [to_date + timedelta(days=365)]
        return DiscountCurve(
            to_date,
            later,
            [self.discount_factor(d) / anchor for d in later],
            interpolation=self.interpolation,
            name=self.name,
            day_counter=self.day_counter,
        )

    def __repr__(self) -> str:
        return (
            f"DiscountCurve(reference_date={self.reference_date}, "
            f"pillars={len(self.dates)}, interpolation={self.interpolation.name}, "
            f"name='{self.name}')"
        )
