"""Interest rates, fixing histories and rate indices."""

from .interestrate import Compounding, InterestRate, RateDefinition
from .fixings import FixingHistory, FixingInterpolation
from .index import RateIndex

__all__ = [
    "Compounding",
    "InterestRate",
    "RateDefinition",
    "FixingHistory",
    "FixingInterpolation",
    "RateIndex",
]
