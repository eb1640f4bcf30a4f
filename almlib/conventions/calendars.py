"""
QuantLib-backed calendar implementations.

Calendars are stateless; the module-level instances are shared by every
schedule and index that needs them.
"""

from datetime import date, datetime, timedelta
from typing import Union

import QuantLib as ql

from almlib.conventions.types import BusinessDayAdjustment
from almlib.errors import InvalidValueError


def _to_ql_date(dt: Union[date, datetime]) -> ql.Date:
    """Convert Python date/datetime to QuantLib Date."""
    if isinstance(dt, datetime):
        dt = dt.date()
    return ql.Date(dt.day, dt.month, dt.year)


def _to_py_date(ql_date: ql.Date) -> date:
    """Convert QuantLib Date to Python date."""
    return date(ql_date.year(), ql_date.month(), ql_date.dayOfMonth())


class Calendar:
    """Base calendar class for QuantLib-backed business day calculations."""

    def __init__(self, name: str, ql_calendar: ql.Calendar):
        self.name = name
        self._ql_calendar = ql_calendar

    def is_business_day(self, dt: Union[date, datetime]) -> bool:
        """Check if date is a business day (not weekend or holiday)."""
        return self._ql_calendar.isBusinessDay(_to_ql_date(dt))

    def adjust(
        self,
        dt: Union[date, datetime],
        adjustment: BusinessDayAdjustment = BusinessDayAdjustment.FOLLOWING,
    ) -> date:
        """Apply a business day adjustment to a date."""
        if isinstance(dt, datetime):
            dt = dt.date()

        if adjustment == BusinessDayAdjustment.UNADJUSTED:
            return dt

        if adjustment == BusinessDayAdjustment.FOLLOWING:
            return self._roll(dt, 1)

        if adjustment == BusinessDayAdjustment.PRECEDING:
            return self._roll(dt, -1)

        if adjustment == BusinessDayAdjustment.MODIFIED_FOLLOWING:
            adjusted = self._roll(dt, 1)
            # If month changed, use preceding instead
            if adjusted.month != dt.month:
                adjusted = self._roll(dt, -1)
            return adjusted

        if adjustment == BusinessDayAdjustment.MODIFIED_PRECEDING:
            adjusted = self._roll(dt, -1)
            if adjusted.month != dt.month:
                adjusted = self._roll(dt, 1)
            return adjusted

        raise InvalidValueError(f"Unknown business day adjustment: {adjustment}")

    def _roll(self, dt: date, step: int) -> date:
        while not self.is_business_day(dt):
            dt += timedelta(days=step)
        return dt

    def advance(
        self,
        dt: Union[date, datetime],
        period,
        adjustment: BusinessDayAdjustment = BusinessDayAdjustment.FOLLOWING,
    ) -> date:
        """Add a ``Period`` to a date and adjust the result."""
        return self.adjust(period.add_to(dt), adjustment)

    def add_business_days(self, start_date: Union[date, datetime], days: int) -> date:
        """Add (or subtract, for negative ``days``) business days to a date."""
        ql_result = self._ql_calendar.advance(_to_ql_date(start_date), days, ql.Days)
        return _to_py_date(ql_result)

    def __eq__(self, other) -> bool:
        return isinstance(other, Calendar) and other.name == self.name

    def __hash__(self) -> int:
        return hash(self.name)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class NullCalendar(Calendar):
    """Every day is a business day."""

    def __init__(self):
        super().__init__("NULL", ql.NullCalendar())

    def is_business_day(self, dt: Union[date, datetime]) -> bool:
        return True


class WeekendsOnly(Calendar):
    """Simple calendar that only considers weekends as non-business days."""

    def __init__(self):
        super().__init__("WEEKENDS_ONLY", ql.WeekendsOnly())


class TargetCalendar(Calendar):
    """TARGET2 calendar for EUR settlement."""

    def __init__(self):
        super().__init__("TARGET", ql.TARGET())


class UnitedStatesCalendar(Calendar):
    """US settlement calendar."""

    def __init__(self):
        super().__init__("UNITED_STATES", ql.UnitedStates(ql.UnitedStates.Settlement))


class BrazilCalendar(Calendar):
    """Brazilian settlement calendar (also used by BUS/252)."""

    def __init__(self):
        super().__init__("BRAZIL", ql.Brazil())


class ChileCalendar(Calendar):
    """Santiago Stock Exchange calendar."""

    def __init__(self):
        super().__init__("CHILE", ql.Chile())


# Pre-defined calendar instances
NULL_CALENDAR = NullCalendar()
WEEKENDS_ONLY = WeekendsOnly()
TARGET = TargetCalendar()
UNITED_STATES = UnitedStatesCalendar()
BRAZIL = BrazilCalendar()
CHILE = ChileCalendar()

# Calendar registry
CALENDARS = {
    "NULL": NULL_CALENDAR,
    "NULLCALENDAR": NULL_CALENDAR,
    "WEEKENDS_ONLY": WEEKENDS_ONLY,
    "WEEKENDSONLY": WEEKENDS_ONLY,
    "WEEKEND": WEEKENDS_ONLY,
    "TARGET": TARGET,
    "EUR": TARGET,
    "UNITED_STATES": UNITED_STATES,
    "UNITEDSTATES": UNITED_STATES,
    "USNY": UNITED_STATES,
    "BRAZIL": BRAZIL,
    "CHILE": CHILE,
}


def get_calendar(name: Union[str, Calendar]) -> Calendar:
    """Get a calendar by name."""
    if isinstance(name, Calendar):
        return name
    key = str(name).upper().strip()
    if key not in CALENDARS:
        raise InvalidValueError(
            f"Unknown calendar: {name}. Available: {list(CALENDARS.keys())}"
        )
    return CALENDARS[key]
