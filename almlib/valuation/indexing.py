"""Collects the market data an instrument needs before any store access."""

from datetime import date
from typing import Optional

from almlib.market.requests import MarketRequest

from .base import Visitor


class IndexingVisitor(Visitor):
    """
    Walks the cashflows once and returns the minimal :class:`MarketRequest`.

    Fixed cashflows request their discount factor only, unfixed floating
    coupons add their index fixing, and cashflows in a currency other than
    ``base_currency`` add an FX rate. With a ``reference_date`` only the
    cashflows still to be paid are considered.
    """

    def __init__(
        self,
        base_currency: Optional[str] = None,
        reference_date: Optional[date] = None,
        include_settled: bool = False,
    ):
        self.base_currency = base_currency
        self.reference_date = reference_date
        self.include_settled = include_settled

    def _is_pending(self, cashflow) -> bool:
        if self.reference_date is None:
            return True
        if cashflow.payment_date > self.reference_date:
            return True
        return self.include_settled and cashflow.payment_date == self.reference_date

    def visit(self, instrument) -> MarketRequest:
        return MarketRequest.merge(
            cf.market_request(self.base_currency)
            for cf in instrument.cashflows
            if self._is_pending(cf)
        )
