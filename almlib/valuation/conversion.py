"""Conversion of an instrument's cashflows into the store's base currency.

Conversion is a separate step applied before valuation; the NPV visitor
never converts amounts itself.
"""

from typing import Optional

from almlib.cashflows import CashflowType, FloatingRateCoupon, SimpleCashflow
from almlib.instruments import SimpleCashflowInstrument
from almlib.market.store import MarketStore

from .fixing import fixed_coupon


class CurrencyConverter:
    """
    Maps every cashflow into ``store.base_currency`` at the store's FX rates.

    The result is a :class:`SimpleCashflowInstrument` with the same id, sides
    and payment dates. Principal flows keep their kind; coupons become plain
    cashflows with their amount fixed at conversion time. Cashflows are
    discounted on ``discount_curve_id`` when given, otherwise on their own
    curve.

    Raises:
        MissingMarketDataError: if the store has no rate for a currency.
    """

    def __init__(self, discount_curve_id: Optional[str] = None):
        self.discount_curve_id = discount_curve_id

    def _convert(self, cashflow, store: MarketStore) -> SimpleCashflow:
        if isinstance(cashflow, FloatingRateCoupon):
            cashflow = fixed_coupon(cashflow, store)
        rate = store.fx_rate(cashflow.currency)
        kind = cashflow.cashflow_type if cashflow.cashflow_type.is_principal else CashflowType.SIMPLE
        return SimpleCashflow(
            payment_date=cashflow.payment_date,
            currency=store.base_currency,
            side=cashflow.side,
            discount_curve_id=self.discount_curve_id or cashflow.discount_curve_id,
            settled=cashflow.settled,
            value=cashflow.amount * rate,
            kind=kind,
        )

    def convert(self, instrument, store: MarketStore) -> SimpleCashflowInstrument:
        rate = store.fx_rate(instrument.currency)
        return SimpleCashflowInstrument(
            instrument_id=instrument.instrument_id,
            cashflows=tuple(self._convert(cf, store) for cf in instrument.cashflows),
            side=instrument.side,
            currency=store.base_currency,
            notional=instrument.notional * rate,
            start_date=instrument.start_date,
            end_date=instrument.end_date,
            structure=instrument.structure,
            payment_frequency=instrument.payment_frequency,
            discount_curve_id=self.discount_curve_id or instrument.discount_curve_id,
        )

    __call__ = convert
