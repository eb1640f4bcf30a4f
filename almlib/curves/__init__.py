"""
Yield curves: discount factors, zero and forward rates, shocks and roll-forward.
"""

from .base import YieldCurve
from .discount import DiscountCurve
from .flat import FlatForwardCurve
from .spreaded import BucketSpreadedCurve, SpreadedCurve
from .zero import ZeroRateCurve

__all__ = [
    "YieldCurve",
    "DiscountCurve",
    "FlatForwardCurve",
    "ZeroRateCurve",
    "SpreadedCurve",
    "BucketSpreadedCurve",
]
