"""Applies index fixings to floating rate coupons."""

from datetime import date
from typing import Optional

from almlib.cashflows import FloatingRateCoupon
from almlib.market.store import MarketStore

from .base import Visitor


def coupon_fixing(coupon: FloatingRateCoupon, data) -> float:
    """Fixing of ``coupon`` from a :class:`MarketStore` or a resolved bundle."""
    if isinstance(data, MarketStore):
        return data.fixing(coupon.index_id, coupon.fixing_date, coupon.fixing_end_date)
    return data.fixing(coupon.index_id, coupon.fixing_date)


def fixed_coupon(coupon: FloatingRateCoupon, data) -> FloatingRateCoupon:
    """``coupon`` with its fixing applied; already fixed coupons are returned as is."""
    if coupon.is_fixed:
        return coupon
    return coupon.set_fixing_rate(coupon_fixing(coupon, data))


class FixingVisitor(Visitor):
    """
    Returns a copy of the instrument with its floating coupons fixed.

    Only coupons whose fixing date is on or before ``up_to`` are fixed when
    it is given. Instruments without floating coupons come back unchanged.
    """

    def __init__(self, data, up_to: Optional[date] = None):
        self.data = data
        self.up_to = up_to

    def _is_due(self, coupon: FloatingRateCoupon) -> bool:
        return not coupon.is_fixed and (self.up_to is None or coupon.fixing_date <= self.up_to)

    def visit(self, instrument):
        return instrument

    def visit_floating(self, instrument):
        if not any(self._is_due(cf) for cf in instrument.floating_coupons()):
            return instrument
        return instrument.with_cashflows(
            fixed_coupon(cf, self.data)
            if isinstance(cf, FloatingRateCoupon) and self._is_due(cf)
            else cf
            for cf in instrument.cashflows
        )
