"""
Immutable market data store.

The store holds the curves, rate indices and FX rates seen from one
reference date. Shocks and time steps return new stores; untouched entries
are shared between the old and the new store, never copied.
"""

import logging
from datetime import date, datetime
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Union

from almlib.config import ReferenceData, default_reference_data
from almlib.curves.base import YieldCurve
from almlib.errors import ArithmeticInvalidError, InvalidValueError, MissingMarketDataError
from almlib.rates.index import RateIndex

from .requests import MarketDataBundle, MarketRequest

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]


def _to_date(dt: DateLike) -> date:
    return dt.date() if isinstance(dt, datetime) else dt


class MarketStore:
    """
    Curves, indices and FX rates as of ``reference_date``.

    FX rates are quoted as units of ``base_currency`` per unit of the keyed
    currency. An index without its own forecast curve forecasts from the
    curve registered under the same id.
    """

    def __init__(
        self,
        reference_date: DateLike,
        base_currency: Optional[str] = None,
        curves: Optional[Mapping[str, YieldCurve]] = None,
        indices: Optional[Mapping[str, RateIndex]] = None,
        fx: Optional[Mapping[str, float]] = None,
        reference_data: Optional[ReferenceData] = None,
    ):
        self._reference_date = _to_date(reference_date)
        self._reference_data = reference_data or default_reference_data()
        self._base_currency = (base_currency or self._reference_data.base_currency).upper()

        fx_rates = {}
        for currency, rate in (fx or {}).items():
            if not rate > 0:
                raise InvalidValueError(f"FX rate for {currency} must be positive, got {rate}")
            fx_rates[currency.upper()] = float(rate)

        self._curves = MappingProxyType(dict(curves or {}))
        self._indices = MappingProxyType(dict(indices or {}))
        self._fx = MappingProxyType(fx_rates)

    @property
    def reference_date(self) -> date:
        return self._reference_date

    @property
    def base_currency(self) -> str:
        return self._base_currency

    @property
    def reference_data(self) -> ReferenceData:
        return self._reference_data

    @property
    def curves(self) -> Mapping[str, YieldCurve]:
        return self._curves

    @property
    def indices(self) -> Mapping[str, RateIndex]:
        return self._indices

    @property
    def fx(self) -> Mapping[str, float]:
        return self._fx

    def _copy(self, **changes) -> "MarketStore":
        params = dict(
            reference_date=self._reference_date,
            base_currency=self._base_currency,
            curves=self._curves,
            indices=self._indices,
            fx=self._fx,
            reference_data=self._reference_data,
        )
        params.update(changes)
        return MarketStore(**params)

    def curve(self, curve_id: str) -> YieldCurve:
        try:
            return self._curves[curve_id]
        except KeyError:
            raise MissingMarketDataError(
                f"Curve {curve_id!r} not in store. Available: {sorted(self._curves)}"
            ) from None

    def index(self, index_id: str) -> RateIndex:
        """Index ``index_id``, linked to its curve when it carries none."""
        try:
            index = self._indices[index_id]
        except KeyError:
            raise MissingMarketDataError(
                f"Index {index_id!r} not in store. Available: {sorted(self._indices)}"
            ) from None
        if index.forecast_curve is None and index_id in self._curves:
            return index.with_forecast_curve(self._curves[index_id])
        return index

    def discount_factor(self, curve_id: str, dt: DateLike) -> float:
        """Discount factor to ``dt`` normalised to the store's reference date."""
        curve = self.curve(curve_id)
        df_ref = curve.discount_factor(self._reference_date)
        if not df_ref > 0.0:
            raise ArithmeticInvalidError(
                f"Curve {curve_id!r} has discount factor {df_ref} at {self._reference_date}"
            )
        return curve.discount_factor(dt) / df_ref

    def fixing(self, index_id: str, fixing_date: DateLike, end_date: Optional[DateLike] = None) -> float:
        return self.index(index_id).fixing(fixing_date, end_date)

    def fx_rate(self, currency: str) -> float:
        """Units of base currency per unit of ``currency``."""
        currency = currency.upper()
        if currency == self._base_currency:
            return 1.0
        try:
            return self._fx[currency]
        except KeyError:
            raise MissingMarketDataError(
                f"No FX rate {currency}/{self._base_currency} in store"
            ) from None

    def fx_cross(self, from_currency: str, to_currency: str) -> float:
        """Units of ``to_currency`` per unit of ``from_currency``."""
        return self.fx_rate(from_currency) / self.fx_rate(to_currency)

    def with_curve(self, curve_id: str, curve: YieldCurve) -> "MarketStore":
        curves = dict(self._curves)
        curves[curve_id] = curve
        return self._copy(curves=curves)

    def with_index(self, index: RateIndex) -> "MarketStore":
        indices = dict(self._indices)
        indices[index.index_id] = index
        return self._copy(indices=indices)

    def with_fx_rate(self, currency: str, rate: float) -> "MarketStore":
        fx = dict(self._fx)
        fx[currency.upper()] = rate
        return self._copy(fx=fx)

    def with_curve_shock(
        self, curve_id: str, shift: Union[float, Mapping[DateLike, float]]
    ) -> "MarketStore":
        """Copy with ``curve_id`` shifted in parallel or by bucket.

        ``shift`` is either a number (parallel zero-rate shift) or a mapping
        of pillar dates to shifts.
        """
        curve = self.curve(curve_id)
        if isinstance(shift, Mapping):
            shocked = curve.with_bucket_shifts(shift)
        else:
            shocked = curve.shifted(float(shift))
        logger.debug("Shocked curve %s by %s", curve_id, shift)
        return self.with_curve(curve_id, shocked)

    def with_parallel_shock(
        self, shift: float, curve_ids: Optional[Iterable[str]] = None
    ) -> "MarketStore":
        """Copy with every curve (or only ``curve_ids``) shifted by ``shift``."""
        targets = list(self._curves) if curve_ids is None else list(curve_ids)
        curves = dict(self._curves)
        for curve_id in targets:
            curves[curve_id] = self.curve(curve_id).shifted(float(shift))
        return self._copy(curves=curves)

    def with_fixing(self, index_id: str, fixing_date: DateLike, value: float) -> "MarketStore":
        if index_id not in self._indices:
            raise MissingMarketDataError(f"Index {index_id!r} not in store")
        return self.with_index(self._indices[index_id].publish(fixing_date, value))

    def advance_to_date(self, to_date: DateLike) -> "MarketStore":
        """Store seen from ``to_date``.

        Curves roll forward preserving forward discount factors, each index
        publishes its forecast fixings for the days passed, FX rates are kept.
        """
        to_date = _to_date(to_date)
        if to_date < self._reference_date:
            raise InvalidValueError(
                f"Cannot move store back from {self._reference_date} to {to_date}"
            )
        if to_date == self._reference_date:
            return self

        curves = {curve_id: curve.advance(to_date) for curve_id, curve in self._curves.items()}
        indices = {}
        for index_id, index in self._indices.items():
            linked = index.forecast_curve is None and index_id in self._curves
            advanced = self.index(index_id).advance(to_date)
            # linked indices keep following the store curve
            indices[index_id] = advanced.with_forecast_curve(None) if linked else advanced
        logger.debug("Advanced store from %s to %s", self._reference_date, to_date)
        return self._copy(reference_date=to_date, curves=curves, indices=indices)

    def resolve(self, request: MarketRequest) -> MarketDataBundle:
        """Values for every entry of ``request``.

        Raises:
            MissingMarketDataError: if a curve, index or FX rate is absent.
            FixingUnavailableError: if a requested fixing cannot be produced.
        """
        discount_factors = {
            (r.curve_id, r.date): self.discount_factor(r.curve_id, r.date)
            for r in request.discounts
        }
        fixings = {
            (r.index_id, r.fixing_date): self.fixing(r.index_id, r.fixing_date, r.end_date)
            for r in request.fixings
        }
        fx_rates = {currency: self.fx_rate(currency) for currency in request.fx}
        return MarketDataBundle(
            reference_date=self._reference_date,
            base_currency=self._base_currency,
            discount_factors=discount_factors,
            fixings=fixings,
            fx_rates=fx_rates,
        )

    def __repr__(self) -> str:
        return (
            f"MarketStore({self._reference_date}, base={self._base_currency}, "
            f"curves={sorted(self._curves)}, indices={sorted(self._indices)})"
        )
