"""
Flat forward curve: a single rate for every maturity.
"""

from datetime import date
from typing import Optional, Union

from almlib.conventions.daycount import ACT_365, DayCounter
from almlib.rates.interestrate import Compounding, InterestRate, RateDefinition

from .base import DateLike, YieldCurve, _to_date


class FlatForwardCurve(YieldCurve):
    """Discount factors from one :class:`InterestRate` over ``[reference, d]``."""

    def __init__(
        self,
        reference_date: DateLike,
        rate: Union[float, InterestRate],
        rate_definition: Optional[RateDefinition] = None,
        name: str = "",
        day_counter: Union[str, DayCounter] = ACT_365,
    ):
        super().__init__(reference_date, name, day_counter)
        if not isinstance(rate, InterestRate):
            rate_definition = rate_definition or RateDefinition(
                ACT_365, Compounding.CONTINUOUS
            )
            rate = InterestRate(float(rate), rate_definition)
        self.rate = rate

    def _discount(self, dt: date) -> float:
        return self.rate.discount_factor(self.reference_date, dt)

    def shifted(self, shift: float, rate_definition: Optional[RateDefinition] = None):
        if rate_definition is None or rate_definition == self.rate.rate_definition:
            return FlatForwardCurve(
                self.reference_date,
                self.rate.with_rate(self.rate.rate + shift),
                name=self.name,
                day_counter=self.day_counter,
            )
        return super().shifted(shift, rate_definition)

    def advance(self, to_date: DateLike) -> "FlatForwardCurve":
        return FlatForwardCurve(
            _to_date(to_date), self.rate, name=self.name, day_counter=self.day_counter
        )

    def __repr__(self) -> str:
        return f"FlatForwardCurve(reference_date={self.reference_date}, rate={self.rate})"
