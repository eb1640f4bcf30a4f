"""
Published fixings of a rate index.

Fixings are stored in a ``pandas.Series`` indexed by date. Dates without a
publication (weekends, holidays, gaps in the source) are filled from the two
nearest published neighbours instead of failing.
"""

import logging
from datetime import date, datetime
from typing import Iterable, Mapping, Optional, Tuple, Union

import pandas as pd

from almlib.conventions.types import ParsableEnum
from almlib.errors import FixingUnavailableError, InvalidValueError

logger = logging.getLogger(__name__)


class FixingInterpolation(ParsableEnum):
    """How a missing fixing is filled from its neighbours.

    ``LINEAR`` (the default) weights the neighbours by calendar days, so a
    weekend value lies strictly between Friday's and Monday's. ``FLAT``
    repeats the previous publication.
    """

    FLAT = "FLAT"
    LINEAR = "LINEAR"


def _as_timestamp(dt: Union[date, datetime, str]) -> pd.Timestamp:
    return pd.Timestamp(dt).normalize()


class FixingHistory:
    """Immutable date -> value history of published fixings."""

    def __init__(
        self,
        fixings: Optional[Union[Mapping[date, float], pd.Series]] = None,
        interpolation: FixingInterpolation = FixingInterpolation.LINEAR,
    ):
        if fixings is None:
            series = pd.Series(dtype=float)
        elif isinstance(fixings, pd.Series):
            series = fixings.astype(float).copy()
        else:
            series = pd.Series(dict(fixings), dtype=float)

        if len(series):
            series.index = pd.DatetimeIndex([_as_timestamp(d) for d in series.index])
            if series.index.has_duplicates:
                raise InvalidValueError("Fixing history contains duplicate dates")
            if series.isna().any():
                raise InvalidValueError("Fixing history contains missing values")
        else:
            series.index = pd.DatetimeIndex([])
        self._series = series.sort_index()
        self.interpolation = FixingInterpolation.from_str(interpolation)

    @classmethod
    def from_frame(
        cls,
        frame: pd.DataFrame,
        date_column: str = "date",
        value_column: str = "value",
        interpolation: FixingInterpolation = FixingInterpolation.LINEAR,
    ) -> "FixingHistory":
        """Build from a table loaded by an external fixing provider."""
        series = pd.Series(
            frame[value_column].to_numpy(dtype=float),
            index=pd.to_datetime(frame[date_column]),
        )
        return cls(series, interpolation)

    @property
    def series(self) -> pd.Series:
        return self._series.copy()

    def __len__(self) -> int:
        return len(self._series)

    def __contains__(self, dt) -> bool:
        return _as_timestamp(dt) in self._series.index

    def last_date(self) -> Optional[date]:
        if not len(self._series):
            return None
        return self._series.index[-1].date()

    def items(self) -> Iterable[Tuple[date, float]]:
        for ts, value in self._series.items():
            yield ts.date(), float(value)

    def fixing(
        self,
        dt: Union[date, datetime],
        method: Optional[FixingInterpolation] = None,
    ) -> float:
        """Published fixing for ``dt``, interpolated when none was published.

        Raises:
            FixingUnavailableError: if ``dt`` is not published and there is no
                published fixing on both sides of it.
        """
        ts = _as_timestamp(dt)
        series = self._series
        if ts in series.index:
            return float(series.loc[ts])

        method = self.interpolation if method is None else FixingInterpolation.from_str(method)
        position = series.index.searchsorted(ts)
        if position == 0 or position == len(series):
            raise FixingUnavailableError(
                f"No fixing published for {ts.date()} and no neighbours to interpolate"
            )

        prev_ts, next_ts = series.index[position - 1], series.index[position]
        prev_value, next_value = float(series.iloc[position - 1]), float(series.iloc[position])
        if method == FixingInterpolation.FLAT:
            value = prev_value
        else:
            weight = (ts - prev_ts) / (next_ts - prev_ts)
            value = prev_value + weight * (next_value - prev_value)
        logger.debug(
            "Interpolated fixing %s for %s between %s and %s (%s)",
            value, ts.date(), prev_ts.date(), next_ts.date(), method.name,
        )
        return value

    def publish(self, dt: Union[date, datetime], value: float) -> "FixingHistory":
        """Return a new history with ``value`` published on ``dt``."""
        series = self._series.copy()
        series.loc[_as_timestamp(dt)] = float(value)
        return FixingHistory(series, self.interpolation)

    def publish_many(self, fixings: Mapping[date, float]) -> "FixingHistory":
        if not fixings:
            return self
        series = self._series.copy()
        for dt, value in fixings.items():
            series.loc[_as_timestamp(dt)] = float(value)
        return FixingHistory(series, self.interpolation)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {"date": [ts.date() for ts in self._series.index], "value": self._series.to_numpy()}
        )

    def __repr__(self) -> str:
        return f"FixingHistory(n={len(self)}, interpolation={self.interpolation.name})"
