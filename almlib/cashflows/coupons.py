"""
Interest-bearing cashflows.
"""

from abc import abstractmethod
from dataclasses import dataclass, replace
from datetime import date
from typing import Optional, Tuple

from almlib.errors import FixingUnavailableError, InvalidValueError
from almlib.market.requests import FixingRequest, MarketRequest
from almlib.rates.interestrate import InterestRate, RateDefinition

from .cashflow import Cashflow, CashflowType


@dataclass(frozen=True, kw_only=True)
class Coupon(Cashflow):
    """Interest on ``notional`` accrued over ``[accrual_start, accrual_end]``.

    ``fixed_amount`` replaces the computed amount (explicit interest tables,
    capitalised grace periods).
    """

    notional: float
    accrual_start: date
    accrual_end: date
    fixed_amount: Optional[float] = None

    def __post_init__(self):
        if self.accrual_end <= self.accrual_start:
            raise InvalidValueError(
                f"Coupon accrual end {self.accrual_end} must be after {self.accrual_start}"
            )

    def _relevant_dates(self, start: date, end: date) -> Tuple[date, date]:
        return max(start, self.accrual_start), min(end, self.accrual_end)

    def accrues_on(self, dt: date) -> bool:
        """True if ``dt`` falls inside the accrual period (end excluded)."""
        return self.accrual_start <= dt < self.accrual_end

    @abstractmethod
    def _interest(self, start: date, end: date) -> float:
        """Interest on ``notional`` from ``start`` to ``end``."""

    def accrued_amount(self, start: date, end: date) -> float:
        """Interest accrued between ``start`` and ``end`` within the period."""
        d1, d2 = self._relevant_dates(start, end)
        if d2 <= d1:
            return 0.0
        if self.fixed_amount is not None:
            full = (self.accrual_end - self.accrual_start).days
            return self.fixed_amount * (d2 - d1).days / full
        return self._interest(d1, d2)

    @property
    def amount(self) -> float:
        if self.fixed_amount is not None:
            return self.fixed_amount
        return self._interest(self.accrual_start, self.accrual_end)


@dataclass(frozen=True, kw_only=True)
class FixedRateCoupon(Coupon):
    rate: InterestRate

    cashflow_type = CashflowType.FIXED_RATE_COUPON

    def _interest(self, start: date, end: date) -> float:
        return self.notional * self.rate.interest_factor(start, end)

    def with_rate(self, rate: InterestRate) -> "FixedRateCoupon":
        return replace(self, rate=rate)


@dataclass(frozen=True, kw_only=True)
class FloatingRateCoupon(Coupon):
    """Coupon paying an index fixing plus ``spread``.

    The fixing is observed on ``fixing_date`` for the period ending on
    ``fixing_end_date``; the amount is known once :meth:`set_fixing_rate`
    has been applied.
    """

    index_id: str
    spread: float = 0.0
    rate_definition: RateDefinition = RateDefinition()
    fixing_date: date
    fixing_end_date: Optional[date] = None
    fixing_rate: Optional[float] = None

    cashflow_type = CashflowType.FLOATING_RATE_COUPON

    @property
    def is_fixed(self) -> bool:
        return self.fixing_rate is not None

    def interest_rate(self) -> InterestRate:
        if self.fixing_rate is None:
            raise FixingUnavailableError(
                f"Coupon {self.accrual_start} -> {self.accrual_end} on {self.index_id} "
                f"has no fixing for {self.fixing_date}"
            )
        return InterestRate(self.fixing_rate + self.spread, self.rate_definition)

    def _interest(self, start: date, end: date) -> float:
        return self.notional * self.interest_rate().interest_factor(start, end)

    def set_fixing_rate(self, fixing_rate: float) -> "FloatingRateCoupon":
        return replace(self, fixing_rate=float(fixing_rate))

    def with_spread(self, spread: float) -> "FloatingRateCoupon":
        return replace(self, spread=spread)

    def fixing_request(self) -> FixingRequest:
        return FixingRequest(self.index_id, self.fixing_date, self.fixing_end_date)

    def market_request(self, base_currency: Optional[str] = None) -> MarketRequest:
        request = super().market_request(base_currency)
        if self.is_fixed:
            return request
        return request | MarketRequest(fixings=frozenset({self.fixing_request()}))
