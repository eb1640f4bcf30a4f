"""
Instrument variants.

An instrument owns an ordered tuple of cashflows plus the metadata needed to
price it. The set of variants is closed; visitors dispatch on it through
:meth:`Instrument.accept`.
"""

from dataclasses import dataclass, replace
from datetime import date
from typing import List, Optional, Tuple

import pandas as pd

from almlib.cashflows import (
    Cashflow,
    CashflowType,
    Coupon,
    FixedRateCoupon,
    FloatingRateCoupon,
)
from almlib.conventions.types import Frequency, Side
from almlib.rates.interestrate import InterestRate, RateDefinition

from .amortization import Structure


@dataclass(frozen=True, kw_only=True)
class Instrument:
    """Base class for all instruments."""

    instrument_id: str
    cashflows: Tuple[Cashflow, ...]
    side: Side
    currency: str
    notional: float
    start_date: date
    end_date: date
    structure: Structure
    payment_frequency: Frequency
    discount_curve_id: Optional[str] = None
    forecast_curve_id: Optional[str] = None

    def __post_init__(self):
        ordered = tuple(sorted(self.cashflows, key=lambda cf: cf.sort_key()))
        object.__setattr__(self, "cashflows", ordered)

    def accept(self, visitor):
        return visitor.visit(self)

    @property
    def maturity_date(self) -> date:
        return self.end_date

    def principal_cashflows(self) -> List[Cashflow]:
        return [cf for cf in self.cashflows if cf.cashflow_type.is_principal]

    def redemptions(self) -> List[Cashflow]:
        return [cf for cf in self.cashflows if cf.cashflow_type == CashflowType.REDEMPTION]

    def disbursements(self) -> List[Cashflow]:
        return [cf for cf in self.cashflows if cf.cashflow_type == CashflowType.DISBURSEMENT]

    def coupons(self) -> List[Coupon]:
        return [cf for cf in self.cashflows if isinstance(cf, Coupon)]

    def future_cashflows(self, dt: date, include_today: bool = False) -> List[Cashflow]:
        """Cashflows paid after ``dt`` (or on it, with ``include_today``)."""
        if include_today:
            return [cf for cf in self.cashflows if cf.payment_date >= dt]
        return [cf for cf in self.cashflows if cf.payment_date > dt]

    def outstanding(self, dt: date) -> float:
        """Principal outstanding at the end of ``dt``."""
        balance = 0.0
        for cf in self.principal_cashflows():
            if cf.payment_date > dt:
                continue
            if cf.cashflow_type == CashflowType.DISBURSEMENT:
                balance += cf.amount
            else:
                balance -= cf.amount
        return balance

    def with_cashflows(self, cashflows) -> "Instrument":
        return replace(self, cashflows=tuple(cashflows))

    def settle(self, dt: date) -> "Instrument":
        """Copy with the cashflows paid on ``dt`` flagged as settled."""
        if not any(cf.payment_date == dt and not cf.settled for cf in self.cashflows):
            return self
        return self.with_cashflows(
            cf.settle() if cf.payment_date == dt and not cf.settled else cf
            for cf in self.cashflows
        )

    def to_frame(self) -> pd.DataFrame:
        """Cashflow table, one row per cashflow in payment order."""
        rows = []
        for cf in self.cashflows:
            row = {
                "payment_date": cf.payment_date,
                "type": cf.cashflow_type.name,
                "side": cf.side.name,
                "currency": cf.currency,
                "accrual_start": None,
                "accrual_end": None,
                "notional": None,
                "rate": None,
                "settled": cf.settled,
            }
            if isinstance(cf, Coupon):
                row.update(
                    accrual_start=cf.accrual_start,
                    accrual_end=cf.accrual_end,
                    notional=cf.notional,
                )
                if isinstance(cf, FixedRateCoupon):
                    row["rate"] = cf.rate.rate
                elif isinstance(cf, FloatingRateCoupon) and cf.is_fixed:
                    row["rate"] = cf.fixing_rate + cf.spread
            try:
                row["amount"] = cf.amount
                row["signed_amount"] = cf.signed_amount
            except LookupError:
                # unfixed floating coupon
                row["amount"] = float("nan")
                row["signed_amount"] = float("nan")
            rows.append(row)
        return pd.DataFrame(rows)


@dataclass(frozen=True, kw_only=True)
class FixedRateInstrument(Instrument):
    rate: InterestRate

    def accept(self, visitor):
        return visitor.visit_fixed(self)

    def with_rate(self, rate) -> "FixedRateInstrument":
        """Copy paying ``rate`` on every coupon; principal flows are kept."""
        if not isinstance(rate, InterestRate):
            rate = self.rate.with_rate(float(rate))
        cashflows = [
            cf.with_rate(rate) if isinstance(cf, FixedRateCoupon) else cf
            for cf in self.cashflows
        ]
        return replace(self, rate=rate, cashflows=tuple(cashflows))


@dataclass(frozen=True, kw_only=True)
class FloatingRateInstrument(Instrument):
    index_id: str
    spread: float = 0.0
    rate_definition: RateDefinition = RateDefinition()

    def accept(self, visitor):
        return visitor.visit_floating(self)

    def with_spread(self, spread: float) -> "FloatingRateInstrument":
        cashflows = [
            cf.with_spread(spread) if isinstance(cf, FloatingRateCoupon) else cf
            for cf in self.cashflows
        ]
        return replace(self, spread=spread, cashflows=tuple(cashflows))

    def floating_coupons(self) -> List[FloatingRateCoupon]:
        return [cf for cf in self.cashflows if isinstance(cf, FloatingRateCoupon)]

    def is_fully_fixed(self) -> bool:
        return all(cf.is_fixed for cf in self.floating_coupons())


@dataclass(frozen=True, kw_only=True)
class SimpleCashflowInstrument(Instrument):
    structure: Structure = Structure.OTHER
    payment_frequency: Frequency = Frequency.ONCE

    def accept(self, visitor):
        return visitor.visit_simple(self)
