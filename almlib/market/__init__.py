"""Market data: the immutable store, requests and resolved bundles."""

from .requests import DiscountRequest, FixingRequest, MarketDataBundle, MarketRequest
from .store import MarketStore

__all__ = [
    "DiscountRequest",
    "FixingRequest",
    "MarketRequest",
    "MarketDataBundle",
    "MarketStore",
]
