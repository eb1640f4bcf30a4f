"""
QuantLib-backed day count convention implementations.

Each convention is a stateless strategy ``(start, end) -> year fraction``.
Instances are shared through a registry keyed by the usual market names.
"""

from datetime import date, datetime
from typing import Union

import QuantLib as ql

from almlib.errors import InvalidValueError


def to_date(dt: Union[date, datetime]) -> date:
    """Convert datetime to date if needed."""
    return dt.date() if isinstance(dt, datetime) else dt


def _to_ql_date(dt: Union[date, datetime]) -> ql.Date:
    """Convert Python date/datetime to QuantLib Date."""
    py_date = to_date(dt)
    return ql.Date(py_date.day, py_date.month, py_date.year)


class DayCounter:
    """Base class for QuantLib-backed day count conventions."""

    def __init__(self, name: str, ql_daycount: ql.DayCounter):
        self.name = name
        self._ql_daycount = ql_daycount

    def year_fraction(
        self, start: Union[date, datetime], end: Union[date, datetime]
    ) -> float:
        """Year fraction between two dates; negative when end precedes start."""
        return self._ql_daycount.yearFraction(_to_ql_date(start), _to_ql_date(end))

    def day_count(
        self, start: Union[date, datetime], end: Union[date, datetime]
    ) -> int:
        """Number of days between two dates under this convention."""
        return self._ql_daycount.dayCount(_to_ql_date(start), _to_ql_date(end))

    def __eq__(self, other) -> bool:
        return isinstance(other, DayCounter) and other.name == self.name

    def __hash__(self) -> int:
        return hash(self.name)

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class Actual360(DayCounter):
    """ACT/360. Money market and most floating legs."""

    def __init__(self):
        super().__init__("ACT/360", ql.Actual360())


class Actual365(DayCounter):
    """ACT/365 Fixed."""

    def __init__(self):
        super().__init__("ACT/365", ql.Actual365Fixed())


class Thirty360(DayCounter):
    """30/360 bond basis (US)."""

    def __init__(self):
        super().__init__("30/360", ql.Thirty360(ql.Thirty360.BondBasis))


class Thirty360European(DayCounter):
    """30E/360 (Eurobond basis)."""

    def __init__(self):
        super().__init__("30E/360", ql.Thirty360(ql.Thirty360.European))


class ActualActual(DayCounter):
    """ACT/ACT ISDA."""

    def __init__(self):
        super().__init__("ACT/ACT", ql.ActualActual(ql.ActualActual.ISDA))


class Business252(DayCounter):
    """Business days / 252 on the Brazilian calendar."""

    def __init__(self):
        super().__init__("BUS/252", ql.Business252(ql.Brazil()))


# Pre-defined day count convention instances
ACT_360 = Actual360()
ACT_365 = Actual365()
THIRTY_360 = Thirty360()
THIRTY_360E = Thirty360European()
ACT_ACT = ActualActual()
BUS_252 = Business252()

# Registry
DAY_COUNTERS = {
    "ACT/360": ACT_360,
    "ACTUAL/360": ACT_360,
    "ACTUAL360": ACT_360,
    "ACT/365": ACT_365,
    "ACT/365F": ACT_365,
    "ACTUAL/365": ACT_365,
    "ACTUAL365": ACT_365,
    "30/360": THIRTY_360,
    "30U/360": THIRTY_360,
    "THIRTY360": THIRTY_360,
    "THIRTY360US": THIRTY_360,
    "30E/360": THIRTY_360E,
    "30/360E": THIRTY_360E,
    "THIRTY360EUROPEAN": THIRTY_360E,
    "ACT/ACT": ACT_ACT,
    "ACTUAL/ACTUAL": ACT_ACT,
    "ACTUALACTUAL": ACT_ACT,
    "BUS/252": BUS_252,
    "BUSINESS252": BUS_252,
}


def get_day_counter(name: Union[str, DayCounter]) -> DayCounter:
    """Get a day count convention by name."""
    if isinstance(name, DayCounter):
        return name
    name_upper = str(name).upper().strip()
    if name_upper not in DAY_COUNTERS:
        raise InvalidValueError(
            f"Unknown day count convention: {name}. "
            f"Available: {sorted(set(DAY_COUNTERS))}"
        )
    return DAY_COUNTERS[name_upper]
