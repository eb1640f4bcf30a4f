import logging
import math
from datetime import date

import pytest

from almlib.curves import (
    BucketSpreadedCurve,
    DiscountCurve,
    FlatForwardCurve,
    SpreadedCurve,
    ZeroRateCurve,
)
from almlib.errors import InvalidValueError
from almlib.interpolation import InterpolationMethod, LinearInterpolator
from almlib.rates import Compounding, RateDefinition
from almlib.conventions import ACT_365


def test_flat_curve_discount_and_zero(flat_curve, ref_date):
    d = date(2026, 3, 1)
    t = ACT_365.year_fraction(ref_date, d)
    assert flat_curve.discount_factor(ref_date) == pytest.approx(1.0)
    assert flat_curve.discount_factor(d) == pytest.approx(math.exp(-0.04 * t))
    assert flat_curve.zero_rate(d) == pytest.approx(0.04)


def test_forward_rate_matches_discount_ratio(flat_curve):
    start, end = date(2024, 6, 3), date(2024, 9, 3)
    forward = flat_curve.forward_rate(start, end)
    tau = (end - start).days / 360
    ratio = flat_curve.discount_factor(start) / flat_curve.discount_factor(end)
    assert 1 + forward * tau == pytest.approx(ratio)
    with pytest.raises(InvalidValueError):
        flat_curve.forward_rate(end, start)


def test_discount_curve_hits_pillars(pillar_curve, ref_date):
    assert pillar_curve.dates[0] == ref_date
    assert pillar_curve.discount_factor(ref_date) == pytest.approx(1.0)
    assert pillar_curve.discount_factor(date(2025, 3, 1)) == pytest.approx(0.9608)
    between = pillar_curve.discount_factor(date(2025, 9, 1))
    assert 0.9231 < between < 0.9608


@pytest.mark.parametrize(
    "method",
    [
        InterpolationMethod.LINEAR_DF,
        InterpolationMethod.LOGLINEAR_ZERO,
        InterpolationMethod.PIECEWISE_CONSTANT,
    ],
)
def test_discount_curve_interpolation_methods(ref_date, method):
    curve = DiscountCurve(
        ref_date, [date(2025, 3, 1), date(2026, 3, 1)], [0.96, 0.92], interpolation=method
    )
    assert curve.discount_factor(date(2025, 3, 1)) == pytest.approx(0.96)
    assert curve.discount_factor(date(2026, 3, 1)) == pytest.approx(0.92)
    assert 0.92 < curve.discount_factor(date(2025, 9, 1)) < 0.96


def test_discount_curve_extrapolates_flat_zero(pillar_curve):
    last = pillar_curve.dates[-1]
    far = date(2034, 3, 1)
    assert pillar_curve.zero_rate(far) == pytest.approx(pillar_curve.zero_rate(last))


def test_discount_curve_validation(ref_date):
    with pytest.raises(InvalidValueError):
        DiscountCurve(ref_date, [date(2025, 3, 1)], [0.9, 0.8])
    with pytest.raises(InvalidValueError):
        DiscountCurve(ref_date, [date(2025, 3, 1)], [-0.9])
    with pytest.raises(InvalidValueError):
        DiscountCurve(ref_date, [date(2023, 3, 1)], [1.01])


def test_increasing_discount_factors_are_logged(ref_date, caplog):
    with caplog.at_level(logging.WARNING):
        DiscountCurve(ref_date, [date(2025, 3, 1), date(2026, 3, 1)], [0.95, 0.97], name="bad")
    assert "increasing" in caplog.text


def test_zero_rate_curve(ref_date):
    curve = ZeroRateCurve(ref_date, [date(2025, 3, 1), date(2027, 3, 1)], [0.03, 0.05])
    t = ACT_365.year_fraction(ref_date, date(2025, 3, 1))
    assert curve.discount_factor(date(2025, 3, 1)) == pytest.approx(math.exp(-0.03 * t))


def test_parallel_shift(pillar_curve):
    d = date(2027, 3, 1)
    shifted = pillar_curve.shifted(0.01)
    assert shifted.zero_rate(d) == pytest.approx(pillar_curve.zero_rate(d) + 0.01)
    # original untouched
    assert pillar_curve.discount_factor(date(2025, 3, 1)) == pytest.approx(0.9608)


def test_spreaded_curve_on_quoted_zero_rates(flat_curve):
    definition = RateDefinition(ACT_365, Compounding.COMPOUNDED)
    spreaded = SpreadedCurve(flat_curve, 0.02, definition)
    d = date(2027, 3, 1)
    assert spreaded.zero_rate(d, definition) == pytest.approx(
        flat_curve.zero_rate(d, definition) + 0.02
    )


def test_bucket_shift_fades_between_pillars(pillar_curve):
    buckets = {date(2025, 3, 1): 0.0, date(2026, 3, 1): 0.01, date(2029, 3, 1): 0.0}
    curve = pillar_curve.with_bucket_shifts(buckets)
    assert isinstance(curve, BucketSpreadedCurve)
    assert curve.spread_at(date(2026, 3, 1)) == pytest.approx(0.01)
    assert curve.spread_at(date(2025, 3, 1)) == pytest.approx(0.0)
    halfway = curve.spread_at(date(2025, 9, 1))
    assert 0.0 < halfway < 0.01
    assert curve.zero_rate(date(2026, 3, 1)) == pytest.approx(
        pillar_curve.zero_rate(date(2026, 3, 1)) + 0.01
    )


def test_advance_preserves_forward_discount_factors(pillar_curve):
    to_date = date(2024, 6, 3)
    rolled = pillar_curve.advance(to_date)
    assert rolled.reference_date == to_date
    assert rolled.discount_factor(to_date) == pytest.approx(1.0)
    d = date(2026, 3, 1)
    expected = pillar_curve.discount_factor(d) / pillar_curve.discount_factor(to_date)
    assert rolled.discount_factor(d) == pytest.approx(expected)


def test_flat_curve_advance(flat_curve):
    rolled = flat_curve.advance(date(2025, 3, 1))
    assert rolled.zero_rate(date(2026, 3, 1)) == pytest.approx(0.04)


def test_linear_interpolator_extrapolates_flat():
    interp = LinearInterpolator([1.0, 2.0], [10.0, 20.0])
    assert interp(1.5) == pytest.approx(15.0)
    assert interp(0.5) == pytest.approx(10.0)
    assert interp(3.0) == pytest.approx(20.0)
