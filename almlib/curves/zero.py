"""
Zero rate curve built from pillar zero rates.
"""
from datetime import date, timedelta
from typing import List, Sequence, Union

from almlib.conventions.daycount import ACT_365, DayCounter
from almlib.errors import InvalidValueError
from almlib.interpolation import InterpolationMethod, create_interpolator
from almlib.rates.interestrate import Compounding, InterestRate, RateDefinition

from .base import DateLike, YieldCurve, _to_date


class ZeroRateCurve(YieldCurve):
    """Pillar zero rates quoted under ``rate_definition``.

    Rates are interpolated linearly in curve time (or piecewise constant)
    and held flat outside the pillars.
    """

    def __init__(
        self,
        reference_date: DateLike,
        dates: Sequence[DateLike],
        zero_rates: Sequence[float],
        rate_definition: RateDefinition = RateDefinition(ACT_365, Compounding.CONTINUOUS),
        interpolation: Union[InterpolationMethod, str] = InterpolationMethod.LINEAR,
        name: str = "",
        day_counter: Union[str, DayCounter] = ACT_365,
    ):
        super().__init__(reference_date, name, day_counter)
        if len(dates) != len(zero_rates):
            raise InvalidValueError("Pillar dates and zero rates must have same length")
        if not dates:
            raise InvalidValueError("Need at least 1 pillar point")

        pairs = sorted((_to_date(d), float(r)) for d, r in zip(dates, zero_rates))
        self.dates: List[date] = [d for d, _ in pairs]
        self.zero_rates: List[float] = [r for _, r in pairs]
        self.rate_definition = rate_definition
        self.interpolation = InterpolationMethod.from_str(interpolation)
        if self.interpolation not in (
            InterpolationMethod.LINEAR,
            InterpolationMethod.PIECEWISE_CONSTANT,
        ):
            raise InvalidValueError(
                f"Zero rate curves interpolate LINEAR or PIECEWISE_CONSTANT, "
                f"got {self.interpolation.name}"
            )
        self._interpolator = create_interpolator(
            self.interpolation, [self.year_fraction(d) for d in self.dates], self.zero_rates
        )

    def rate_at(self, dt: DateLike) -> float:
        return self._interpolator.interpolate(self.year_fraction(dt))

    def _discount(self, dt: date) -> float:
        rate = InterestRate(self.rate_at(dt), self.rate_definition)
        return rate.discount_factor(self.reference_date, dt)

    def shifted(self, shift: float, rate_definition=None):
        if rate_definition is not None and rate_definition != self.rate_definition:
            return super().shifted(shift, rate_definition)
        return ZeroRateCurve(
            self.reference_date,
            self.dates,
            [r + shift for r in self.zero_rates],
            rate_definition=self.rate_definition,
            interpolation=self.interpolation,
            name=self.name,
            day_counter=self.day_counter,
        )

    def advance(self, to_date: DateLike) -> "ZeroRateCurve":
        to_date = _to_date(to_date)
        if to_date == self.reference_date:
            return self
        anchor = self.discount_factor(to_date)
        later = [d for d in self.dates if d > to_date] or [to_date + timedelta(days=365)]
        rates = []
        for d in later:
            t = self.rate_definition.year_fraction(to_date, d)
            rates.append(
                InterestRate.implied_rate(
                    anchor / self.discount_factor(d), self.rate_definition, t
                ).rate
            )
        return ZeroRateCurve(
            to_date,
            later,
            rates,
            rate_definition=self.rate_definition,
            interpolation=self.interpolation,
            name=self.name,
            day_counter=self.day_counter,
        )

    def __repr__(self) -> str:
        return (
            f"ZeroRateCurve(reference_date={self.reference_date}, "
            f"pillars={len(self.dates)}, rate_definition={self.rate_definition})"
        )
