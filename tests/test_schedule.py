from datetime import date

import pytest

from almlib.conventions import ACT_360, TARGET, WEEKENDS_ONLY, BusinessDayAdjustment, Frequency
from almlib.conventions.types import DateGenerationRule, StubType, TimeUnit
from almlib.errors import InvalidScheduleError, InvalidValueError
from almlib.schedule import Period, ScheduleGenerator, apply_end_of_month_rule


def test_period_parsing_and_arithmetic():
    assert Period.parse("3M") == Period(3, TimeUnit.MONTHS)
    assert Period.parse("-2w") == Period(-2, TimeUnit.WEEKS)
    assert str(Period.parse("10Y")) == "10Y"
    assert Period.from_frequency(Frequency.SEMIANNUAL) == Period(6, TimeUnit.MONTHS)
    assert Period.parse("3M").frequency() is Frequency.QUARTERLY
    assert date(2024, 1, 31) + Period.parse("1M") == date(2024, 2, 29)
    assert date(2024, 3, 31) - Period.parse("1M") == date(2024, 2, 29)
    assert 2 * Period.parse("6M") == Period(12, TimeUnit.MONTHS)
    with pytest.raises(InvalidValueError):
        Period.parse("three months")


def test_end_of_month_rule():
    assert apply_end_of_month_rule(date(2024, 2, 29), 1, True) == date(2024, 3, 31)
    assert apply_end_of_month_rule(date(2024, 2, 29), 1, False) == date(2024, 3, 29)
    assert apply_end_of_month_rule(date(2024, 1, 31), -2, False) == date(2023, 11, 30)


def test_regular_forward_schedule():
    schedule = (
        ScheduleGenerator(date(2024, 1, 15), date(2025, 1, 15))
        .with_frequency(Frequency.QUARTERLY)
        .build()
    )
    assert list(schedule) == [
        date(2024, 1, 15),
        date(2024, 4, 15),
        date(2024, 7, 15),
        date(2024, 10, 15),
        date(2025, 1, 15),
    ]
    assert all(schedule.is_regular)
    assert schedule.number_of_periods() == 4


def test_short_final_stub_is_kept():
    schedule = (
        ScheduleGenerator(date(2024, 1, 15), date(2024, 12, 1))
        .with_frequency(Frequency.QUARTERLY)
        .with_rule(DateGenerationRule.FORWARD)
        .build()
    )
    assert schedule.dates[-2:] == (date(2024, 10, 15), date(2024, 12, 1))
    assert schedule.is_regular[-1] is False


def test_long_final_stub_merges_last_period():
    schedule = (
        ScheduleGenerator(date(2024, 1, 15), date(2024, 12, 1))
        .with_frequency(Frequency.QUARTERLY)
        .with_stub(StubType.LONG_FINAL)
        .build()
    )
    assert list(schedule) == [
        date(2024, 1, 15),
        date(2024, 4, 15),
        date(2024, 7, 15),
        date(2024, 12, 1),
    ]


def test_backward_schedule_has_initial_stub():
    schedule = (
        ScheduleGenerator(date(2024, 2, 1), date(2025, 1, 15))
        .with_frequency(Frequency.QUARTERLY)
        .with_rule(DateGenerationRule.BACKWARD)
        .build()
    )
    assert list(schedule) == [
        date(2024, 2, 1),
        date(2024, 4, 15),
        date(2024, 7, 15),
        date(2024, 10, 15),
        date(2025, 1, 15),
    ]
    assert schedule.is_regular[0] is False
    assert all(schedule.is_regular[1:])


def test_schedule_errors():
    with pytest.raises(InvalidScheduleError):
        ScheduleGenerator(date(2024, 1, 15), date(2024, 1, 15)).with_frequency("MONTHLY").build()
    with pytest.raises(InvalidScheduleError):
        (
            ScheduleGenerator(date(2024, 1, 15), date(2024, 12, 1))
            .with_frequency(Frequency.QUARTERLY)
            .with_stub(StubType.NO_STUB)
            .build()
        )
    with pytest.raises(InvalidScheduleError):
        (
            ScheduleGenerator(date(2024, 1, 15), date(2024, 12, 1))
            .with_frequency(Frequency.QUARTERLY)
            .with_rule(DateGenerationRule.FORWARD)
            .with_stub(StubType.SHORT_INITIAL)
            .build()
        )
    with pytest.raises(InvalidScheduleError):
        (
            ScheduleGenerator(date(2024, 1, 15), date(2024, 12, 1))
            .with_frequency(Frequency.ONCE)
            .with_rule(DateGenerationRule.FORWARD)
            .build()
        )


def test_once_frequency_gives_single_period():
    schedule = ScheduleGenerator(date(2024, 1, 15), date(2024, 12, 1)).with_frequency("ONCE").build()
    assert list(schedule) == [date(2024, 1, 15), date(2024, 12, 1)]


def test_adjusted_schedule_is_increasing_and_spans_bounds():
    start, end = date(2024, 1, 13), date(2025, 1, 13)
    schedule = (
        ScheduleGenerator(start, end)
        .with_frequency(Frequency.MONTHLY)
        .with_calendar(WEEKENDS_ONLY)
        .with_convention(BusinessDayAdjustment.MODIFIED_FOLLOWING)
        .build()
    )
    dates = list(schedule)
    assert all(a < b for a, b in zip(dates, dates[1:]))
    assert dates[0] == WEEKENDS_ONLY.adjust(start, BusinessDayAdjustment.MODIFIED_FOLLOWING)
    assert dates[-1] == WEEKENDS_ONLY.adjust(end, BusinessDayAdjustment.MODIFIED_FOLLOWING)
    assert all(WEEKENDS_ONLY.is_business_day(d) for d in dates)


def test_end_of_month_schedule():
    schedule = (
        ScheduleGenerator(date(2024, 2, 29), date(2024, 6, 30))
        .with_frequency(Frequency.MONTHLY)
        .with_end_of_month()
        .build()
    )
    assert list(schedule) == [
        date(2024, 2, 29),
        date(2024, 3, 31),
        date(2024, 4, 30),
        date(2024, 5, 31),
        date(2024, 6, 30),
    ]


def test_first_date_creates_initial_stub():
    schedule = (
        ScheduleGenerator(date(2024, 1, 10), date(2024, 7, 15))
        .with_frequency(Frequency.QUARTERLY)
        .with_rule(DateGenerationRule.FORWARD)
        .with_first_date(date(2024, 1, 15))
        .build()
    )
    assert list(schedule) == [
        date(2024, 1, 10),
        date(2024, 1, 15),
        date(2024, 4, 15),
        date(2024, 7, 15),
    ]
    assert schedule.is_regular[0] is False


def test_accrual_periods():
    schedule = ScheduleGenerator(date(2024, 3, 1), date(2024, 5, 1)).with_frequency("MONTHLY").build()
    periods = schedule.accrual_periods(ACT_360)
    assert [p.accrual_days for p in periods] == [31, 30]
    assert periods[0].year_fraction == pytest.approx(31 / 360)


def test_termination_convention_applies_to_end_date_only():
    # 2024-03-31 is Easter Sunday, Easter Monday is a TARGET holiday
    generator = (
        ScheduleGenerator(date(2024, 1, 31), date(2024, 3, 31))
        .with_frequency(Frequency.MONTHLY)
        .with_calendar(TARGET)
        .with_convention(BusinessDayAdjustment.FOLLOWING)
    )
    assert generator.build().dates == (date(2024, 1, 31), date(2024, 2, 29), date(2024, 4, 2))
    unadjusted_end = generator.with_termination_convention("UNADJUSTED").build()
    assert unadjusted_end.dates == (date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31))
