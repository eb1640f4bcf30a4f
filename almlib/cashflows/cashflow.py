"""
Cashflow data model.

Cashflows are immutable; settling or fixing one returns a modified copy.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import date
from typing import Optional

from almlib.conventions.types import ParsableEnum, Side
from almlib.errors import InvalidValueError
from almlib.market.requests import DiscountRequest, MarketRequest


class CashflowType(ParsableEnum):
    DISBURSEMENT = "DISBURSEMENT"
    REDEMPTION = "REDEMPTION"
    FIXED_RATE_COUPON = "FIXED_RATE_COUPON"
    FLOATING_RATE_COUPON = "FLOATING_RATE_COUPON"
    SIMPLE = "SIMPLE"

    @property
    def is_principal(self) -> bool:
        return self in (CashflowType.DISBURSEMENT, CashflowType.REDEMPTION)

    @property
    def is_coupon(self) -> bool:
        return self in (CashflowType.FIXED_RATE_COUPON, CashflowType.FLOATING_RATE_COUPON)


# Order of cashflows paid on the same date
_TYPE_ORDER = {
    CashflowType.DISBURSEMENT: 0,
    CashflowType.FIXED_RATE_COUPON: 1,
    CashflowType.FLOATING_RATE_COUPON: 1,
    CashflowType.SIMPLE: 2,
    CashflowType.REDEMPTION: 3,
}


@dataclass(frozen=True, kw_only=True)
class Cashflow(ABC):
    """A dated payment in one currency."""

    payment_date: date
    currency: str
    side: Side = Side.RECEIVE
    discount_curve_id: Optional[str] = None
    settled: bool = False

    cashflow_type = CashflowType.SIMPLE

    @property
    @abstractmethod
    def amount(self) -> float:
        """Unsigned amount paid on ``payment_date``."""

    @property
    def signed_amount(self) -> float:
        return self.side.sign * self.amount

    @property
    def is_settled(self) -> bool:
        return self.settled

    def sort_key(self):
        return (self.payment_date, _TYPE_ORDER[self.cashflow_type])

    def settle(self) -> "Cashflow":
        return replace(self, settled=True)

    def market_request(self, base_currency: Optional[str] = None) -> MarketRequest:
        """Market data this cashflow needs to be discounted."""
        discounts = frozenset()
        if self.discount_curve_id is not None:
            discounts = frozenset({DiscountRequest(self.discount_curve_id, self.payment_date)})
        fx = frozenset()
        if base_currency is not None and self.currency != base_currency:
            fx = frozenset({self.currency})
        return MarketRequest(discounts=discounts, fx=fx)


@dataclass(frozen=True, kw_only=True)
class SimpleCashflow(Cashflow):
    """Known amount: disbursement, redemption or a plain payment."""

    value: float
    kind: CashflowType = CashflowType.SIMPLE

    def __post_init__(self):
        kind = CashflowType.from_str(self.kind)
        if kind.is_coupon:
            raise InvalidValueError(f"A simple cashflow cannot be a {kind.name}")
        object.__setattr__(self, "kind", kind)

    @property
    def cashflow_type(self) -> CashflowType:
        return self.kind

    @property
    def amount(self) -> float:
        return self.value
