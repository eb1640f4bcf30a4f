"""Accrued interest at a reference date."""

from datetime import date
from typing import Optional

from almlib.cashflows import Coupon, FloatingRateCoupon
from almlib.errors import FixingUnavailableError

from .base import Visitor
from .fixing import fixed_coupon


class AccrualVisitor(Visitor):
    """
    Interest accrued from the current coupon's accrual start to ``reference_date``.

    Only coupons whose accrual period contains the reference date contribute;
    the result is signed by the coupon side. Unfixed floating coupons take
    their fixing from ``data`` (a store or a resolved bundle).
    """

    def __init__(self, reference_date: date, data=None):
        self.reference_date = reference_date
        self.data = data

    def _coupon(self, coupon: Coupon) -> Coupon:
        if isinstance(coupon, FloatingRateCoupon) and not coupon.is_fixed:
            if self.data is None:
                raise FixingUnavailableError(
                    f"Coupon on {coupon.index_id} fixing {coupon.fixing_date} "
                    f"needs market data to accrue"
                )
            return fixed_coupon(coupon, self.data)
        return coupon

    def visit(self, instrument) -> float:
        accrued = 0.0
        for cf in instrument.coupons():
            if not cf.accrues_on(self.reference_date):
                continue
            coupon = self._coupon(cf)
            accrued += coupon.side.sign * coupon.accrued_amount(
                coupon.accrual_start, self.reference_date
            )
        return accrued


def accrued_interest(instrument, reference_date: date, data: Optional[object] = None) -> float:
    return AccrualVisitor(reference_date, data)(instrument)
