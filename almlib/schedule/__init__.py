from almlib.conventions.types import (
    BusinessDayAdjustment,
    DateGenerationRule,
    Frequency,
    StubType,
    TimeUnit,
)

from .adjustments import (
    apply_end_of_month_rule,
    get_month_end,
    is_end_of_month,
)
from .core import Schedule, SchedulePeriod
from .generator import ScheduleGenerator
from .period import Period

__all__ = [
    "BusinessDayAdjustment",
    "DateGenerationRule",
    "Frequency",
    "StubType",
    "TimeUnit",
    "apply_end_of_month_rule",
    "get_month_end",
    "is_end_of_month",
    "Period",
    "Schedule",
    "SchedulePeriod",
    "ScheduleGenerator",
]
