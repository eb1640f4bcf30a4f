"""Market conventions: calendars, day counters and shared enums."""

from .calendars import (
    BRAZIL,
    CHILE,
    NULL_CALENDAR,
    TARGET,
    UNITED_STATES,
    WEEKENDS_ONLY,
    Calendar,
    NullCalendar,
    WeekendsOnly,
    get_calendar,
)
from .daycount import (
    ACT_360,
    ACT_365,
    ACT_ACT,
    BUS_252,
    THIRTY_360,
    THIRTY_360E,
    Actual360,
    Actual365,
    ActualActual,
    Business252,
    DayCounter,
    Thirty360,
    Thirty360European,
    get_day_counter,
)
from .types import (
    BusinessDayAdjustment,
    DateGenerationRule,
    Frequency,
    Side,
    StubType,
    TimeUnit,
)

__all__ = [
    "Calendar",
    "NullCalendar",
    "WeekendsOnly",
    "get_calendar",
    "NULL_CALENDAR",
    "WEEKENDS_ONLY",
    "TARGET",
    "UNITED_STATES",
    "BRAZIL",
    "CHILE",
    "DayCounter",
    "Actual360",
    "Actual365",
    "Thirty360",
    "Thirty360European",
    "ActualActual",
    "Business252",
    "get_day_counter",
    "ACT_360",
    "ACT_365",
    "THIRTY_360",
    "THIRTY_360E",
    "ACT_ACT",
    "BUS_252",
    "BusinessDayAdjustment",
    "DateGenerationRule",
    "Frequency",
    "Side",
    "StubType",
    "TimeUnit",
]
