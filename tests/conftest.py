from datetime import date

import pytest

from almlib.conventions.types import Frequency, Side
from almlib.curves import DiscountCurve, FlatForwardCurve
from almlib.instruments import MakeFixedRateInstrument
from almlib.market import MarketStore
from almlib.rates import Compounding, InterestRate, RateIndex
from almlib.conventions.daycount import ACT_360


@pytest.fixture(scope="module")
def ref_date():
    # a Friday
    return date(2024, 3, 1)


@pytest.fixture(scope="module")
def flat_curve(ref_date):
    return FlatForwardCurve(ref_date, 0.04, name="USD-OIS")


@pytest.fixture(scope="module")
def pillar_curve(ref_date):
    return DiscountCurve(
        ref_date,
        [date(2024, 9, 1), date(2025, 3, 1), date(2026, 3, 1), date(2029, 3, 1)],
        [0.9802, 0.9608, 0.9231, 0.8187],
        name="USD-LIBOR",
    )


@pytest.fixture(scope="module")
def sofr(ref_date):
    return RateIndex(
        "USD-SOFR",
        tenor="3M",
        calendar="WEEKENDS_ONLY",
        fixings={date(2024, 2, 28): 0.0530, date(2024, 2, 29): 0.0532},
    )


@pytest.fixture(scope="module")
def store(ref_date, flat_curve, pillar_curve, sofr):
    return MarketStore(
        ref_date,
        "USD",
        curves={"USD-OIS": flat_curve, "USD-LIBOR": pillar_curve, "USD-SOFR": flat_curve},
        indices={"USD-SOFR": sofr},
        fx={"EUR": 1.10, "CLP": 0.00105},
    )


@pytest.fixture(scope="module")
def simple_rate():
    return InterestRate.from_parts(0.05, Compounding.SIMPLE, Frequency.ANNUAL, ACT_360)


@pytest.fixture(scope="module")
def bullet_loan(ref_date, simple_rate):
    return (
        MakeFixedRateInstrument()
        .with_id("BULLET-1")
        .with_start_date(ref_date)
        .with_tenor("2Y")
        .with_payment_frequency(Frequency.SEMIANNUAL)
        .with_rate(simple_rate)
        .with_notional(100_000)
        .with_currency("USD")
        .with_side(Side.RECEIVE)
        .with_discount_curve_id("USD-OIS")
        .bullet()
        .build()
    )
