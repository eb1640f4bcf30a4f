"""
Market data requests and the bundles that answer them.

A :class:`MarketRequest` lists exactly the discount factors, fixings and FX
rates an instrument needs; :meth:`MarketStore.resolve` turns it into a
:class:`MarketDataBundle` that pricing visitors read from.
"""

from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType
from typing import FrozenSet, Iterable, Mapping, Optional, Tuple

from almlib.errors import MissingMarketDataError


@dataclass(frozen=True, order=True)
class DiscountRequest:
    curve_id: str
    date: date


@dataclass(frozen=True, order=True)
class FixingRequest:
    index_id: str
    fixing_date: date
    end_date: Optional[date] = None


@dataclass(frozen=True)
class MarketRequest:
    """Minimal set of market data needed to price one instrument."""

    discounts: FrozenSet[DiscountRequest] = frozenset()
    fixings: FrozenSet[FixingRequest] = frozenset()
    fx: FrozenSet[str] = frozenset()

    @classmethod
    def merge(cls, requests: Iterable["MarketRequest"]) -> "MarketRequest":
        discounts, fixings, fx = set(), set(), set()
        for request in requests:
            discounts |= request.discounts
            fixings |= request.fixings
            fx |= request.fx
        return cls(frozenset(discounts), frozenset(fixings), frozenset(fx))

    def __or__(self, other: "MarketRequest") -> "MarketRequest":
        return MarketRequest.merge((self, other))

    def is_empty(self) -> bool:
        return not (self.discounts or self.fixings or self.fx)

    def curve_ids(self) -> FrozenSet[str]:
        return frozenset(r.curve_id for r in self.discounts)

    def index_ids(self) -> FrozenSet[str]:
        return frozenset(r.index_id for r in self.fixings)


def _frozen(mapping) -> Mapping:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class MarketDataBundle:
    """Resolved values for a :class:`MarketRequest`.

    Discount factors are normalised to the reference date. Looking up an
    entry that was not requested raises :class:`MissingMarketDataError`.
    """

    reference_date: date
    base_currency: str
    discount_factors: Mapping[Tuple[str, date], float] = field(default_factory=dict)
    fixings: Mapping[Tuple[str, date], float] = field(default_factory=dict)
    fx_rates: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "discount_factors", _frozen(self.discount_factors))
        object.__setattr__(self, "fixings", _frozen(self.fixings))
        object.__setattr__(self, "fx_rates", _frozen(self.fx_rates))

    def discount_factor(self, curve_id: str, dt: date) -> float:
        try:
            return self.discount_factors[(curve_id, dt)]
        except KeyError:
            raise MissingMarketDataError(
                f"Discount factor for curve {curve_id!r} on {dt} was not requested"
            ) from None

    def fixing(self, index_id: str, fixing_date: date) -> float:
        try:
            return self.fixings[(index_id, fixing_date)]
        except KeyError:
            raise MissingMarketDataError(
                f"Fixing of {index_id!r} on {fixing_date} was not requested"
            ) from None

    def fx_rate(self, currency: str) -> float:
        if currency == self.base_currency:
            return 1.0
        try:
            return self.fx_rates[currency]
        except KeyError:
            raise MissingMarketDataError(
                f"FX rate {currency}/{self.base_currency} was not requested"
            ) from None
