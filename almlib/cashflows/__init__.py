"""Cashflows and coupons."""

from .cashflow import Cashflow, CashflowType, SimpleCashflow
from .coupons import Coupon, FixedRateCoupon, FloatingRateCoupon

__all__ = [
    "Cashflow",
    "CashflowType",
    "SimpleCashflow",
    "Coupon",
    "FixedRateCoupon",
    "FloatingRateCoupon",
]
