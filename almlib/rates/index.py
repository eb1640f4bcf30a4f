"""
Floating rate indices.

A :class:`RateIndex` combines the published history of an index with an
optional forecast curve. Fixings before the curve's reference date come
from the history; later ones are forecast as forward rates.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Mapping, Optional, Union

from almlib.conventions.calendars import NULL_CALENDAR, Calendar, get_calendar
from almlib.conventions.types import BusinessDayAdjustment
from almlib.errors import FixingUnavailableError, InvalidValueError
from almlib.schedule.period import Period

from .fixings import FixingHistory
from .interestrate import RateDefinition

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]


def _to_date(dt: DateLike) -> date:
    return dt.date() if isinstance(dt, datetime) else dt


class RateIndex:
    """Named ibor or overnight style index."""

    def __init__(
        self,
        index_id: str,
        tenor: Union[Period, str] = "3M",
        rate_definition: Optional[RateDefinition] = None,
        calendar: Union[Calendar, str] = NULL_CALENDAR,
        fixings: Optional[Union[FixingHistory, Mapping[date, float]]] = None,
        forecast_curve=None,
        fixing_lag: int = 0,
        convention: BusinessDayAdjustment = BusinessDayAdjustment.MODIFIED_FOLLOWING,
    ):
        if not index_id:
            raise InvalidValueError("Rate index needs an id")
        if fixing_lag < 0:
            raise InvalidValueError(f"Fixing lag must be non-negative, got {fixing_lag}")
        self.index_id = index_id
        self.tenor = Period.parse(tenor)
        self.rate_definition = rate_definition or RateDefinition()
        self.calendar = get_calendar(calendar)
        if fixings is None or isinstance(fixings, FixingHistory):
            self.fixings = fixings if fixings is not None else FixingHistory()
        else:
            self.fixings = FixingHistory(fixings)
        self.forecast_curve = forecast_curve
        self.fixing_lag = fixing_lag
        self.convention = BusinessDayAdjustment.from_str(convention)

    @property
    def reference_date(self) -> Optional[date]:
        if self.forecast_curve is None:
            return None
        return self.forecast_curve.reference_date

    def _copy(self, **changes) -> "RateIndex":
        params = dict(
            index_id=self.index_id,
            tenor=self.tenor,
            rate_definition=self.rate_definition,
            calendar=self.calendar,
            fixings=self.fixings,
            forecast_curve=self.forecast_curve,
            fixing_lag=self.fixing_lag,
            convention=self.convention,
        )
        params.update(changes)
        return RateIndex(**params)

    def with_forecast_curve(self, curve) -> "RateIndex":
        return self._copy(forecast_curve=curve)

    def publish(self, dt: DateLike, value: float) -> "RateIndex":
        return self._copy(fixings=self.fixings.publish(dt, value))

    def fixing_date(self, accrual_start: DateLike) -> date:
        """Fixing date for a period starting on ``accrual_start``."""
        accrual_start = _to_date(accrual_start)
        if self.fixing_lag == 0:
            return accrual_start
        return self.calendar.add_business_days(accrual_start, -self.fixing_lag)

    def maturity_date(self, fixing_date: DateLike) -> date:
        """End of the deposit period the fixing on ``fixing_date`` refers to."""
        fixing_date = _to_date(fixing_date)
        end = self.calendar.advance(fixing_date, self.tenor, self.convention)
        if end <= fixing_date:
            end = fixing_date + timedelta(days=1)
        return end

    def forecast(self, fixing_date: DateLike, end_date: Optional[DateLike] = None) -> float:
        """Forward rate from the forecast curve for a fixing on ``fixing_date``."""
        if self.forecast_curve is None:
            raise FixingUnavailableError(
                f"Index {self.index_id} has no forecast curve for {fixing_date}"
            )
        fixing_date = _to_date(fixing_date)
        end = _to_date(end_date) if end_date is not None else self.maturity_date(fixing_date)
        if end <= fixing_date:
            end = self.maturity_date(fixing_date)
        return self.forecast_curve.forward_rate(fixing_date, end, self.rate_definition)

    def fixing(self, dt: DateLike, end_date: Optional[DateLike] = None) -> float:
        """Fixing for ``dt``: published, interpolated from history, or forecast.

        Raises:
            FixingUnavailableError: if ``dt`` precedes the forecast curve and no
                published fixing brackets it, or no forecast curve is linked.
        """
        dt = _to_date(dt)
        if dt in self.fixings:
            return self.fixings.fixing(dt)
        reference_date = self.reference_date
        if reference_date is not None and dt >= reference_date:
            return self.forecast(dt, end_date)
        try:
            return self.fixings.fixing(dt)
        except FixingUnavailableError as exc:
            raise FixingUnavailableError(f"Index {self.index_id}: {exc}") from exc

    def advance(self, to_date: DateLike) -> "RateIndex":
        """Index seen from ``to_date``.

        Publishes the forecast fixing of every business day from the current
        reference date up to (excluding) ``to_date`` and rolls the forecast
        curve forward.
        """
        to_date = _to_date(to_date)
        reference_date = self.reference_date
        if reference_date is None or to_date <= reference_date:
            return self

        published = {}
        day = reference_date
        while day < to_date:
            if self.calendar.is_business_day(day) and day not in self.fixings:
                published[day] = self.forecast(day)
            day += timedelta(days=1)
        if published:
            logger.debug(
                "Index %s published %d fixings up to %s", self.index_id, len(published), to_date
            )
        return self._copy(
            fixings=self.fixings.publish_many(published),
            forecast_curve=self.forecast_curve.advance(to_date),
        )

    def __repr__(self) -> str:
        return f"RateIndex({self.index_id!r}, tenor={self.tenor}, fixings={len(self.fixings)})"
