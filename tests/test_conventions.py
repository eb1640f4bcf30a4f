from datetime import date

import pytest

from almlib.config import CurrencyInfo, ReferenceData, default_reference_data
from almlib.conventions import (
    ACT_360,
    ACT_365,
    NULL_CALENDAR,
    TARGET,
    THIRTY_360,
    WEEKENDS_ONLY,
    BusinessDayAdjustment,
    Frequency,
    Side,
    get_calendar,
    get_day_counter,
)
from almlib.errors import AlmError, InvalidValueError


def test_enum_parsing_is_lenient():
    assert BusinessDayAdjustment.from_str("ModifiedFollowing") is BusinessDayAdjustment.MODIFIED_FOLLOWING
    assert BusinessDayAdjustment.from_str("modified_following") is BusinessDayAdjustment.MODIFIED_FOLLOWING
    assert Frequency.from_str("Quarterly").periods_per_year() == 4
    assert Side.from_str("pay") is Side.PAY


def test_enum_parsing_failure_is_invalid_value():
    with pytest.raises(InvalidValueError):
        Frequency.from_str("fortnightly-ish")
    # also catchable as the builtin and as the package base
    with pytest.raises(ValueError):
        Side.from_str("borrow")
    with pytest.raises(AlmError):
        BusinessDayAdjustment.from_str("")


def test_side_sign_and_inverse():
    assert Side.PAY.sign == -1.0
    assert Side.RECEIVE.sign == 1.0
    assert Side.PAY.inverse() is Side.RECEIVE


def test_calendar_registry():
    assert get_calendar("TARGET") is TARGET
    assert get_calendar("weekends_only") is WEEKENDS_ONLY
    assert get_calendar(TARGET) is TARGET
    with pytest.raises(InvalidValueError):
        get_calendar("ATLANTIS")


def test_business_day_adjustments():
    saturday = date(2024, 3, 2)
    assert WEEKENDS_ONLY.adjust(saturday, BusinessDayAdjustment.FOLLOWING) == date(2024, 3, 4)
    assert WEEKENDS_ONLY.adjust(saturday, BusinessDayAdjustment.PRECEDING) == date(2024, 3, 1)
    assert WEEKENDS_ONLY.adjust(saturday, BusinessDayAdjustment.UNADJUSTED) == saturday
    # following would leave August
    month_end = date(2024, 8, 31)
    assert WEEKENDS_ONLY.adjust(month_end, BusinessDayAdjustment.MODIFIED_FOLLOWING) == date(2024, 8, 30)
    assert NULL_CALENDAR.is_business_day(saturday)


def test_target_holidays():
    assert not TARGET.is_business_day(date(2024, 12, 25))
    assert not TARGET.is_business_day(date(2024, 5, 1))
    assert TARGET.is_business_day(date(2024, 5, 2))


def test_add_business_days():
    assert WEEKENDS_ONLY.add_business_days(date(2024, 3, 1), 1) == date(2024, 3, 4)
    assert WEEKENDS_ONLY.add_business_days(date(2024, 3, 4), -1) == date(2024, 3, 1)


def test_day_counters():
    assert ACT_360.year_fraction(date(2024, 3, 1), date(2024, 5, 1)) == pytest.approx(61 / 360)
    assert ACT_365.year_fraction(date(2024, 1, 1), date(2025, 1, 1)) == pytest.approx(366 / 365)
    assert ACT_360.day_count(date(2024, 1, 31), date(2024, 3, 1)) == 30
    assert THIRTY_360.day_count(date(2024, 1, 15), date(2024, 2, 15)) == 30
    assert get_day_counter("ACT/360") is ACT_360
    with pytest.raises(InvalidValueError):
        get_day_counter("ACT/999")


def test_reference_data_defaults():
    data = ReferenceData.default()
    assert data.base_currency == "USD"
    assert data.precision("CLP") == 0
    assert data.precision("clf") == 4
    assert data.calendar("EUR") is TARGET
    assert data.round(10.005001, "USD") == pytest.approx(10.01)
    assert default_reference_data() is default_reference_data()
    with pytest.raises(InvalidValueError):
        data.currency("XXX")


def test_reference_data_from_mapping():
    data = ReferenceData.from_mapping(
        {
            "base_currency": "eur",
            "currencies": [
                {"code": "EUR", "name": "Euro", "precision": 2, "calendar": "TARGET"},
                {"code": "KRW", "precision": 0},
            ],
        }
    )
    assert data.base_currency == "EUR"
    assert data.currency("KRW") == CurrencyInfo("KRW", "KRW", 0, "WEEKENDS_ONLY")

    with pytest.raises(InvalidValueError):
        ReferenceData.from_mapping({"currencies": [{"code": "EUR"}]})
    with pytest.raises(InvalidValueError):
        ReferenceData.from_mapping({"base_currency": "USD", "currencies": []})


def test_currency_tolerance():
    assert CurrencyInfo("USD", "US Dollar", 2).tolerance == pytest.approx(0.005)
    assert CurrencyInfo("CLP", "Chilean Peso", 0).tolerance == pytest.approx(0.5)
