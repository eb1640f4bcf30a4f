import math
from datetime import date

import pandas as pd
import pytest

from almlib.conventions import ACT_360, ACT_365, THIRTY_360, Frequency
from almlib.curves import FlatForwardCurve
from almlib.errors import ArithmeticInvalidError, FixingUnavailableError, InvalidValueError
from almlib.rates import (
    Compounding,
    FixingHistory,
    FixingInterpolation,
    InterestRate,
    RateDefinition,
    RateIndex,
)


def test_compound_factors():
    t = 61 / 360
    simple = InterestRate.from_parts(0.05, Compounding.SIMPLE)
    assert simple.compound_factor_from_yf(t) == pytest.approx(1 + 0.05 * t)

    quarterly = InterestRate.from_parts(0.05, Compounding.COMPOUNDED, Frequency.QUARTERLY)
    assert quarterly.compound_factor_from_yf(2.0) == pytest.approx((1 + 0.05 / 4) ** 8)

    continuous = InterestRate.from_parts(0.05, Compounding.CONTINUOUS)
    assert continuous.compound_factor_from_yf(2.0) == pytest.approx(math.exp(0.1))


def test_interest_factor_keeps_small_rate_precision():
    monthly = InterestRate.from_parts(0.05, Compounding.COMPOUNDED, Frequency.MONTHLY)
    assert monthly.interest_factor_from_yf(1 / 12) == pytest.approx(0.05 / 12, rel=1e-14)
    assert monthly.interest_factor_from_yf(2.0) == pytest.approx(
        monthly.compound_factor_from_yf(2.0) - 1.0, rel=1e-12
    )
    tiny = InterestRate.from_parts(1e-12, Compounding.CONTINUOUS)
    assert tiny.interest_factor_from_yf(1.0) == pytest.approx(1e-12, rel=1e-12)
    with pytest.raises(ArithmeticInvalidError):
        InterestRate.from_parts(-13.0, Compounding.COMPOUNDED, Frequency.MONTHLY).interest_factor_from_yf(1.0)


def test_hybrid_compounding_switches_after_one_period():
    rate = InterestRate.from_parts(0.06, Compounding.SIMPLE_THEN_COMPOUNDED, Frequency.SEMIANNUAL)
    assert rate.compound_factor_from_yf(0.25) == pytest.approx(1 + 0.06 * 0.25)
    assert rate.compound_factor_from_yf(1.0) == pytest.approx(1.03**2)


def test_compounding_needs_periodic_frequency():
    with pytest.raises(InvalidValueError):
        RateDefinition(ACT_360, Compounding.COMPOUNDED, Frequency.ONCE)


def test_compounding_below_minus_frequency_is_invalid():
    with pytest.raises(ArithmeticInvalidError):
        InterestRate.from_parts(-1.5, Compounding.COMPOUNDED).compound_factor_from_yf(1.0)


def test_implied_rate_inverts_compound_factor():
    definition = RateDefinition(ACT_365, Compounding.COMPOUNDED, Frequency.MONTHLY)
    rate = InterestRate(0.047, definition)
    compound = rate.compound_factor_from_yf(1.7)
    assert InterestRate.implied_rate(compound, definition, 1.7).rate == pytest.approx(0.047, rel=1e-12)
    with pytest.raises(ArithmeticInvalidError):
        InterestRate.implied_rate(-0.5, definition, 1.0)


@pytest.mark.parametrize(
    "target",
    [
        RateDefinition(ACT_365, Compounding.CONTINUOUS),
        RateDefinition(THIRTY_360, Compounding.COMPOUNDED, Frequency.SEMIANNUAL),
        RateDefinition(ACT_365, Compounding.SIMPLE),
    ],
)
def test_equivalent_rate_gives_same_discount_factor(target):
    start, end = date(2024, 3, 1), date(2027, 8, 17)
    rate = InterestRate.from_parts(0.05, Compounding.SIMPLE, Frequency.ANNUAL, ACT_360)
    converted = rate.equivalent_rate(target, start, end)
    cashflow = 1_000_000.0
    assert cashflow * converted.discount_factor(start, end) == pytest.approx(
        cashflow * rate.discount_factor(start, end), rel=1e-10
    )


@pytest.fixture(scope="module")
def history():
    # Friday and Monday around a weekend
    return FixingHistory({date(2024, 3, 1): 0.050, date(2024, 3, 4): 0.053})


def test_published_fixing(history):
    assert history.fixing(date(2024, 3, 1)) == pytest.approx(0.050)
    assert date(2024, 3, 4) in history
    assert history.last_date() == date(2024, 3, 4)


def test_weekend_fixing_is_interpolated_between_neighbours(history):
    saturday = history.fixing(date(2024, 3, 2))
    assert 0.050 < saturday < 0.053
    assert saturday == pytest.approx(0.051)
    assert history.fixing(date(2024, 3, 3)) == pytest.approx(0.052)


def test_flat_fixing_interpolation_is_opt_in(history):
    assert history.fixing(date(2024, 3, 3), FixingInterpolation.FLAT) == pytest.approx(0.050)
    flat = FixingHistory(dict(history.items()), interpolation="FLAT")
    assert flat.fixing(date(2024, 3, 2)) == pytest.approx(0.050)


def test_fixing_outside_history_is_unavailable(history):
    with pytest.raises(FixingUnavailableError):
        history.fixing(date(2024, 2, 1))
    with pytest.raises(FixingUnavailableError):
        history.fixing(date(2024, 3, 10))


def test_publish_returns_new_history(history):
    updated = history.publish(date(2024, 3, 5), 0.054)
    assert len(updated) == 3
    assert len(history) == 2


def test_history_validation():
    with pytest.raises(InvalidValueError):
        FixingHistory(pd.Series([0.01, float("nan")], index=[date(2024, 1, 1), date(2024, 1, 2)]))


def test_history_from_frame():
    frame = pd.DataFrame({"date": ["2024-01-02", "2024-01-03"], "value": [0.01, 0.02]})
    history = FixingHistory.from_frame(frame)
    assert history.fixing(date(2024, 1, 3)) == pytest.approx(0.02)
    assert list(history.to_frame()["value"]) == [0.01, 0.02]


@pytest.fixture(scope="module")
def index():
    curve = FlatForwardCurve(date(2024, 3, 5), 0.04)
    return RateIndex(
        "EUR-EURIBOR-3M",
        tenor="3M",
        calendar="TARGET",
        fixings={date(2024, 3, 1): 0.039, date(2024, 3, 4): 0.040},
        forecast_curve=curve,
        fixing_lag=2,
    )


def test_index_uses_history_before_reference_and_curve_after(index):
    assert index.fixing(date(2024, 3, 1)) == pytest.approx(0.039)
    # weekend fixing from history, no error
    assert index.fixing(date(2024, 3, 2)) == pytest.approx(0.039 + 0.001 / 3)
    forecast = index.fixing(date(2024, 3, 5))
    end = index.maturity_date(date(2024, 3, 5))
    assert forecast == pytest.approx(index.forecast_curve.forward_rate(date(2024, 3, 5), end))


def test_index_fixing_date_uses_lag(index):
    # Monday minus two TARGET business days
    assert index.fixing_date(date(2024, 3, 11)) == date(2024, 3, 7)


def test_index_without_curve_cannot_forecast():
    index = RateIndex("X", fixings={date(2024, 3, 1): 0.01})
    with pytest.raises(FixingUnavailableError):
        index.fixing(date(2024, 3, 8))


def test_index_advance_publishes_forecast_fixings(index):
    advanced = index.advance(date(2024, 3, 9))
    assert advanced.reference_date == date(2024, 3, 9)
    for day in (date(2024, 3, 5), date(2024, 3, 6), date(2024, 3, 7), date(2024, 3, 8)):
        assert day in advanced.fixings
        assert advanced.fixing(day) == pytest.approx(index.fixing(day))
    assert len(index.fixings) == 2


def test_index_weekend_fixing_lies_between_neighbours():
    index = RateIndex(
        "IDX", calendar="WEEKENDS_ONLY", fixings={date(2024, 3, 1): 0.050, date(2024, 3, 4): 0.053}
    )
    assert 0.050 < index.fixing(date(2024, 3, 2)) < index.fixing(date(2024, 3, 3)) < 0.053
