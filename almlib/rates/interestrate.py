"""Interest rates with compounding and day-count semantics.

An :class:`InterestRate` turns a year fraction into a compound factor
according to its :class:`RateDefinition`:

* ``SIMPLE``: ``1 + r t``
* ``COMPOUNDED``: ``(1 + r / f) ** (f t)``
* ``CONTINUOUS``: ``exp(r t)``
* ``SIMPLE_THEN_COMPOUNDED``: simple up to one period ``1 / f``, compounded after
* ``COMPOUNDED_THEN_SIMPLE``: compounded up to one period, simple after
"""

import math
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Union

from almlib.conventions.daycount import ACT_360, DayCounter, get_day_counter
from almlib.conventions.types import Frequency, ParsableEnum
from almlib.errors import ArithmeticInvalidError, InvalidValueError

DateLike = Union[date, datetime]


class Compounding(ParsableEnum):
    """How interest is reinvested over an accrual interval."""

    SIMPLE = "SIMPLE"
    COMPOUNDED = "COMPOUNDED"
    CONTINUOUS = "CONTINUOUS"
    SIMPLE_THEN_COMPOUNDED = "SIMPLE_THEN_COMPOUNDED"
    COMPOUNDED_THEN_SIMPLE = "COMPOUNDED_THEN_SIMPLE"


@dataclass(frozen=True)
class RateDefinition:
    """Day count, compounding and frequency under which a rate is quoted."""

    day_counter: DayCounter = ACT_360
    compounding: Compounding = Compounding.SIMPLE
    frequency: Frequency = Frequency.ANNUAL

    def __post_init__(self):
        object.__setattr__(self, "day_counter", get_day_counter(self.day_counter))
        object.__setattr__(self, "compounding", Compounding.from_str(self.compounding))
        object.__setattr__(self, "frequency", Frequency.from_str(self.frequency))
        if self._needs_frequency() and self.frequency.periods_per_year() <= 0:
            raise InvalidValueError(
                f"{self.compounding.name} compounding needs a periodic frequency, "
                f"got {self.frequency.name}"
            )

    def _needs_frequency(self) -> bool:
        return self.compounding not in (Compounding.SIMPLE, Compounding.CONTINUOUS)

    def year_fraction(self, start: DateLike, end: DateLike) -> float:
        return self.day_counter.year_fraction(start, end)

    def __str__(self) -> str:
        return f"{self.day_counter.name} {self.compounding.name} {self.frequency.name}"


@dataclass(frozen=True)
class InterestRate:
    """A rate value together with its :class:`RateDefinition`."""

    rate: float
    rate_definition: RateDefinition = RateDefinition()

    @classmethod
    def from_parts(
        cls,
        rate: float,
        compounding=Compounding.SIMPLE,
        frequency=Frequency.ANNUAL,
        day_counter=ACT_360,
    ) -> "InterestRate":
        return cls(rate, RateDefinition(day_counter, compounding, frequency))

    @property
    def day_counter(self) -> DayCounter:
        return self.rate_definition.day_counter

    @property
    def compounding(self) -> Compounding:
        return self.rate_definition.compounding

    @property
    def frequency(self) -> Frequency:
        return self.rate_definition.frequency

    def compound_factor_from_yf(self, t: float) -> float:
        """Compound factor over a year fraction ``t``."""
        r = self.rate
        compounding = self.compounding
        if compounding == Compounding.SIMPLE:
            return 1.0 + r * t
        if compounding == Compounding.CONTINUOUS:
            return math.exp(r * t)

        f = float(self.frequency.periods_per_year())
        if compounding == Compounding.SIMPLE_THEN_COMPOUNDED:
            return 1.0 + r * t if t <= 1.0 / f else _compounded(r, f, t)
        if compounding == Compounding.COMPOUNDED_THEN_SIMPLE:
            return _compounded(r, f, t) if t <= 1.0 / f else 1.0 + r * t
        return _compounded(r, f, t)

    def compound_factor(self, start: DateLike, end: DateLike) -> float:
        return self.compound_factor_from_yf(self.rate_definition.year_fraction(start, end))

    def interest_factor_from_yf(self, t: float) -> float:
        """Compound factor minus one, without the cancellation of subtracting 1."""
        r = self.rate
        compounding = self.compounding
        if compounding == Compounding.SIMPLE:
            return r * t
        if compounding == Compounding.CONTINUOUS:
            return math.expm1(r * t)

        f = float(self.frequency.periods_per_year())
        if compounding == Compounding.SIMPLE_THEN_COMPOUNDED:
            return r * t if t <= 1.0 / f else _compounded_interest(r, f, t)
        if compounding == Compounding.COMPOUNDED_THEN_SIMPLE:
            return _compounded_interest(r, f, t) if t <= 1.0 / f else r * t
        return _compounded_interest(r, f, t)

    def interest_factor(self, start: DateLike, end: DateLike) -> float:
        return self.interest_factor_from_yf(self.rate_definition.year_fraction(start, end))

    def discount_factor_from_yf(self, t: float) -> float:
        compound = self.compound_factor_from_yf(t)
        if compound <= 0.0:
            raise ArithmeticInvalidError(
                f"Non-positive compound factor {compound} for rate {self.rate} over t={t}"
            )
        return 1.0 / compound

    def discount_factor(self, start: DateLike, end: DateLike) -> float:
        return self.discount_factor_from_yf(self.rate_definition.year_fraction(start, end))

    @classmethod
    def implied_rate(
        cls, compound: float, rate_definition: RateDefinition, t: float
    ) -> "InterestRate":
        """Rate under ``rate_definition`` that produces ``compound`` over ``t``.

        Raises:
            ArithmeticInvalidError: if ``compound`` is not positive, or ``t`` is
                not positive while ``compound`` differs from 1.
        """
        if compound <= 0.0:
            raise ArithmeticInvalidError(f"Compound factor must be positive, got {compound}")
        if compound == 1.0:
            return cls(0.0, rate_definition)
        if t <= 0.0:
            raise ArithmeticInvalidError(
                f"Cannot imply a rate from compound {compound} over t={t}"
            )

        compounding = rate_definition.compounding
        if compounding == Compounding.SIMPLE:
            rate = (compound - 1.0) / t
        elif compounding == Compounding.CONTINUOUS:
            rate = math.log(compound) / t
        else:
            f = float(rate_definition.frequency.periods_per_year())
            simple = (compounding == Compounding.SIMPLE_THEN_COMPOUNDED and t <= 1.0 / f) or (
                compounding == Compounding.COMPOUNDED_THEN_SIMPLE and t > 1.0 / f
            )
            if simple:
                rate = (compound - 1.0) / t
            else:
                rate = (compound ** (1.0 / (f * t)) - 1.0) * f
        return cls(rate, rate_definition)

    def equivalent_rate(
        self, rate_definition: RateDefinition, start: DateLike, end: DateLike
    ) -> "InterestRate":
        """Rate under another definition with the same discount factor on ``[start, end]``."""
        compound = self.compound_factor(start, end)
        t = rate_definition.year_fraction(start, end)
        return InterestRate.implied_rate(compound, rate_definition, t)

    def with_rate(self, rate: float) -> "InterestRate":
        return replace(self, rate=rate)

    def __str__(self) -> str:
        return f"{self.rate:.6%} {self.rate_definition}"


def _compounded(rate: float, frequency: float, t: float) -> float:
    base = 1.0 + rate / frequency
    if base <= 0.0:
        raise ArithmeticInvalidError(
            f"Rate {rate} is below -{frequency:g}; compounding is undefined"
        )
    return base ** (frequency * t)


def _compounded_interest(rate: float, frequency: float, t: float) -> float:
    ratio = rate / frequency
    if ratio <= -1.0:
        raise ArithmeticInvalidError(
            f"Rate {rate} is below -{frequency:g}; compounding is undefined"
        )
    return math.expm1(frequency * t * math.log1p(ratio))
