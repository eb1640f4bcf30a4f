"""
Main schedule generation logic.
"""

import logging
from datetime import date, datetime
from typing import List, Optional, Tuple, Union

from almlib.conventions.calendars import NULL_CALENDAR, Calendar, get_calendar
from almlib.conventions.types import (
    BusinessDayAdjustment,
    DateGenerationRule,
    Frequency,
    StubType,
    TimeUnit,
)
from almlib.errors import InvalidScheduleError

from .adjustments import apply_end_of_month_rule
from .core import Schedule
from .period import Period

logger = logging.getLogger(__name__)

_FINAL_STUBS = (StubType.SHORT_FINAL, StubType.LONG_FINAL)
_INITIAL_STUBS = (StubType.SHORT_INITIAL, StubType.LONG_INITIAL)


def _to_date(value: Union[date, datetime, str]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


class ScheduleGenerator:
    """Builds a :class:`Schedule` between two dates.

    Usage::

        schedule = (
            ScheduleGenerator(date(2024, 1, 15), date(2026, 1, 15))
            .with_frequency(Frequency.QUARTERLY)
            .with_calendar(TARGET)
            .with_convention(BusinessDayAdjustment.MODIFIED_FOLLOWING)
            .build()
        )

    Dates are generated unadjusted by stepping the tenor from the start
    (``FORWARD``) or back from the end (``BACKWARD``) and adjusted at the
    end. When the last step does not land on the far bound the leftover
    period is a stub, short by default; ``with_stub`` selects a long stub or
    ``NO_STUB`` to reject misaligned dates.
    """

    def __init__(
        self, start_date: Union[date, datetime, str], end_date: Union[date, datetime, str]
    ):
        self.start_date = _to_date(start_date)
        self.end_date = _to_date(end_date)
        self.tenor: Optional[Period] = None
        self.calendar: Calendar = NULL_CALENDAR
        self.convention = BusinessDayAdjustment.UNADJUSTED
        self.termination_convention: Optional[BusinessDayAdjustment] = None
        self.rule: Optional[DateGenerationRule] = None
        self.stub: Optional[StubType] = None
        self.end_of_month = False
        self.first_date: Optional[date] = None
        self._frequency_once = False

    def with_frequency(self, frequency: Union[Frequency, str]) -> "ScheduleGenerator":
        frequency = Frequency.from_str(frequency)
        if frequency == Frequency.ONCE:
            self.tenor = None
        else:
            self.tenor = Period.from_frequency(frequency)
        self._frequency_once = frequency == Frequency.ONCE
        return self

    def with_tenor(self, tenor: Union[Period, str]) -> "ScheduleGenerator":
        self.tenor = Period.parse(tenor)
        self._frequency_once = False
        return self

    def with_calendar(self, calendar: Union[Calendar, str]) -> "ScheduleGenerator":
        self.calendar = get_calendar(calendar)
        return self

    def with_convention(
        self, convention: Union[BusinessDayAdjustment, str]
    ) -> "ScheduleGenerator":
        self.convention = BusinessDayAdjustment.from_str(convention)
        return self

    def with_termination_convention(
        self, convention: Union[BusinessDayAdjustment, str]
    ) -> "ScheduleGenerator":
        self.termination_convention = BusinessDayAdjustment.from_str(convention)
        return self

    def with_rule(self, rule: Union[DateGenerationRule, str]) -> "ScheduleGenerator":
        self.rule = DateGenerationRule.from_str(rule)
        return self

    def with_stub(self, stub: Union[StubType, str]) -> "ScheduleGenerator":
        self.stub = StubType.from_str(stub)
        return self

    def with_end_of_month(self, flag: bool = True) -> "ScheduleGenerator":
        self.end_of_month = flag
        return self

    def with_first_date(self, first_date: Union[date, datetime, str]) -> "ScheduleGenerator":
        self.first_date = _to_date(first_date)
        return self

    def _resolve_rule_and_stub(self) -> Tuple[DateGenerationRule, StubType]:
        rule = self.rule
        if rule is None:
            if self._frequency_once:
                rule = DateGenerationRule.ZERO
            elif self.stub in _INITIAL_STUBS:
                rule = DateGenerationRule.BACKWARD
            else:
                rule = DateGenerationRule.FORWARD

        if rule == DateGenerationRule.ZERO:
            return rule, StubType.NO_STUB

        if self._frequency_once:
            raise InvalidScheduleError(
                f"Frequency ONCE yields no periods under the {rule.name} rule"
            )

        stub = self.stub
        if stub is None:
            stub = (
                StubType.SHORT_FINAL
                if rule == DateGenerationRule.FORWARD
                else StubType.SHORT_INITIAL
            )
        if rule == DateGenerationRule.FORWARD and stub in _INITIAL_STUBS:
            raise InvalidScheduleError(f"Stub {stub.name} requires the BACKWARD rule")
        if rule == DateGenerationRule.BACKWARD and stub in _FINAL_STUBS:
            raise InvalidScheduleError(f"Stub {stub.name} requires the FORWARD rule")
        return rule, stub

    def _step(self, anchor: date, count: int) -> date:
        """Date ``count`` tenors away from ``anchor`` (no cumulative drift)."""
        tenor = self.tenor
        if tenor.unit in (TimeUnit.MONTHS, TimeUnit.YEARS):
            months = tenor.length * (12 if tenor.unit == TimeUnit.YEARS else 1)
            return apply_end_of_month_rule(anchor, months * count, self.end_of_month)
        return (tenor * count).add_to(anchor)

    def build(self) -> Schedule:
        start, end = self.start_date, self.end_date
        if end <= start:
            raise InvalidScheduleError(
                f"End date {end} must be after start date {start}"
            )

        rule, stub = self._resolve_rule_and_stub()

        if rule == DateGenerationRule.ZERO:
            if self.first_date is not None:
                raise InvalidScheduleError("A first date cannot be used with the ZERO rule")
            unadjusted, regular = [start, end], [True]
        else:
            if self.tenor is None or self.tenor.length <= 0:
                raise InvalidScheduleError(
                    f"Tenor {self.tenor} yields no periods between {start} and {end}"
                )
            if self.first_date is not None and not start < self.first_date < end:
                raise InvalidScheduleError(
                    f"First date {self.first_date} must lie strictly between "
                    f"{start} and {end}"
                )
            if rule == DateGenerationRule.FORWARD:
                unadjusted, regular = self._forward_dates(start, end, stub)
            else:
                unadjusted, regular = self._backward_dates(start, end, stub)

        dates, regular = self._adjust(unadjusted, regular)
        return Schedule(
            dates=tuple(dates),
            is_regular=tuple(regular),
            tenor=self.tenor if rule != DateGenerationRule.ZERO else None,
            calendar=self.calendar,
            convention=self.convention,
            rule=rule,
        )

    def _forward_dates(
        self, start: date, end: date, stub: StubType
    ) -> Tuple[List[date], List[bool]]:
        dates = [start]
        regular: List[bool] = []
        if self.first_date is not None:
            anchor, count = self.first_date, 0
        else:
            anchor, count = start, 1

        while True:
            next_date = self._step(anchor, count)
            if next_date >= end:
                break
            if count == 0:
                regular.append(self._step(next_date, -1) == start)
            else:
                regular.append(True)
            dates.append(next_date)
            count += 1

        if next_date != end:
            if stub == StubType.NO_STUB:
                raise InvalidScheduleError(
                    f"Cannot create no-stub schedule - {end} is not a whole "
                    f"number of {self.tenor} periods from {anchor}"
                )
            fixed = 2 if self.first_date is not None else 1
            if stub == StubType.LONG_FINAL and len(dates) > fixed:
                dates.pop()
                regular.pop()
        dates.append(end)
        regular.append(next_date == end)
        return dates, regular

    def _backward_dates(
        self, start: date, end: date, stub: StubType
    ) -> Tuple[List[date], List[bool]]:
        lower = self.first_date if self.first_date is not None else start
        dates = [end]
        regular: List[bool] = []
        count = 1

        while True:
            prev_date = self._step(end, -count)
            if prev_date <= lower:
                break
            dates.append(prev_date)
            regular.append(True)
            count += 1

        if prev_date != lower:
            if stub == StubType.NO_STUB:
                raise InvalidScheduleError(
                    f"Cannot create no-stub schedule - {lower} is not a whole "
                    f"number of {self.tenor} periods before {end}"
                )
            if stub == StubType.LONG_INITIAL and len(dates) > 1:
                dates.pop()
                regular.pop()
        dates.append(lower)
        regular.append(prev_date == lower)

        if self.first_date is not None:
            dates.append(start)
            regular.append(self._step(self.first_date, -1) == start)

        dates.reverse()
        regular.reverse()
        return dates, regular

    def _adjust(
        self, unadjusted: List[date], regular: List[bool]
    ) -> Tuple[List[date], List[bool]]:
        """Adjust dates and collapse those that roll onto each other."""
        termination = self.termination_convention or self.convention
        adjusted = [self.calendar.adjust(d, self.convention) for d in unadjusted[:-1]]
        adjusted.append(self.calendar.adjust(unadjusted[-1], termination))

        dates = [adjusted[0]]
        flags: List[bool] = []
        merged = False
        for i, dt in enumerate(adjusted[1:], start=1):
            if i == len(adjusted) - 1:
                while len(dates) > 1 and dt <= dates[-1]:
                    logger.debug("Dropping %s which collides with end date %s", dates[-1], dt)
                    dates.pop()
                    flags.pop()
                    merged = True
                if dt <= dates[-1]:
                    raise InvalidScheduleError(
                        f"Adjusted end date {dt} is not after adjusted start {dates[-1]}"
                    )
            elif dt <= dates[-1]:
                logger.debug("Collapsing schedule date %s onto %s", dt, dates[-1])
                merged = True
                continue
            dates.append(dt)
            flags.append(regular[i - 1] and not merged)
            merged = False
        return dates, flags
