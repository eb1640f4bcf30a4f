from datetime import date

import pytest

from almlib.cashflows import CashflowType
from almlib.conventions import Frequency, Side
from almlib.errors import InvalidValueError
from almlib.instruments import FloatingRateInstrument, MakeFixedRateInstrument, MakeFloatingRateInstrument
from almlib.simulation import (
    PositionGenerator,
    RateType,
    RolloverPolicy,
    RolloverSimulationEngine,
    RolloverStrategy,
)
from almlib.valuation import NPVVisitor, ParRateVisitor

NEXT_DAY = date(2024, 3, 2)
REPLACEMENT_ID = "OLD/2024-03-01"
# 2023-03-01 to 2024-03-01 spans 366 days
FINAL_COUPON = 100_000 * 0.05 * 366 / 360


@pytest.fixture(scope="module")
def maturing_loan(simple_rate):
    return (
        MakeFixedRateInstrument()
        .with_id("OLD")
        .with_start_date(date(2023, 3, 1))
        .with_tenor("1Y")
        .with_payment_frequency(Frequency.ANNUAL)
        .with_rate(simple_rate)
        .with_notional(100_000)
        .with_currency("USD")
        .with_side(Side.RECEIVE)
        .with_discount_curve_id("USD-OIS")
        .build()
    )


@pytest.fixture(scope="module")
def constant_strategy(simple_rate):
    return RolloverStrategy(policy=RolloverPolicy.CONSTANT_BALANCE, tenor="1Y", rate=simple_rate)


def step(store, instruments, strategies=None, **kwargs):
    engine = RolloverSimulationEngine(store, instruments, strategies, **kwargs)
    return engine, engine.advance_one_step()


def test_constant_balance_rollover(store, maturing_loan, constant_strategy, ref_date):
    engine, state = step(store, [maturing_loan], {"OLD": constant_strategy})

    assert state.reference_date == NEXT_DAY
    assert state.store.reference_date == NEXT_DAY
    assert state.step == 1
    replacement = state.instrument(REPLACEMENT_ID)
    assert replacement.notional == pytest.approx(100_000)
    assert replacement.start_date == maturing_loan.maturity_date == ref_date
    assert replacement.end_date == date(2025, 3, 1)
    assert replacement.side is Side.RECEIVE
    assert replacement.discount_curve_id == "USD-OIS"
    assert [i.instrument_id for i in state.matured] == ["OLD"]
    with pytest.raises(KeyError):
        state.instrument("OLD")
    # replacements roll over the same way
    assert engine.strategies_for(REPLACEMENT_ID) == (constant_strategy,)


def test_step_settles_todays_flows(store, maturing_loan, constant_strategy, ref_date):
    _, state = step(store, [maturing_loan], {"OLD": constant_strategy})
    settled = state.settled_on(ref_date)
    kinds = sorted((s.instrument_id, s.cashflow.cashflow_type.name) for s in settled)
    assert kinds == [
        ("OLD", "FIXED_RATE_COUPON"),
        ("OLD", "REDEMPTION"),
        (REPLACEMENT_ID, "DISBURSEMENT"),
    ]
    assert all(s.cashflow.is_settled for s in settled)
    replacement = state.instrument(REPLACEMENT_ID)
    assert not any(cf.is_settled for cf in replacement.cashflows if cf.payment_date > ref_date)
    # the redemption funds the new disbursement
    assert state.net_cashflow == pytest.approx(FINAL_COUPON)


def test_dynamic_balance(store, maturing_loan, simple_rate):
    strategy = RolloverStrategy(
        policy="DYNAMIC_BALANCE",
        rate=simple_rate,
        balance_function=lambda t, notional: 0.5 * notional,
    )
    _, state = step(store, [maturing_loan], {"OLD": strategy})
    assert state.instrument(REPLACEMENT_ID).notional == pytest.approx(50_000)
    assert state.net_cashflow == pytest.approx(FINAL_COUPON + 50_000)


def test_no_rollover(store, maturing_loan):
    _, state = step(store, [maturing_loan], {"OLD": RolloverStrategy(policy=RolloverPolicy.NONE)})
    assert state.instruments == ()
    assert state.net_cashflow == pytest.approx(FINAL_COUPON + 100_000)

    _, unlisted = step(store, [maturing_loan])
    assert unlisted.instruments == ()


def test_default_strategy_applies_to_unlisted(store, maturing_loan, constant_strategy):
    _, state = step(store, [maturing_loan], default_strategy=constant_strategy)
    assert state.instrument(REPLACEMENT_ID).notional == pytest.approx(100_000)


def test_weighted_strategies_split_the_balance(store, maturing_loan, simple_rate):
    strategies = [
        RolloverStrategy(rate=simple_rate, weight=3.0),
        RolloverStrategy(rate=simple_rate, tenor="6M", payment_frequency="SEMIANNUAL", weight=1.0),
    ]
    _, state = step(store, [maturing_loan], {"OLD": strategies})
    first = state.instrument(f"{REPLACEMENT_ID}-1")
    second = state.instrument(f"{REPLACEMENT_ID}-2")
    assert first.notional == pytest.approx(75_000)
    assert second.notional == pytest.approx(25_000)
    assert second.end_date == date(2024, 9, 1)


def test_weighted_rollover_reissues_the_exact_balance(store, simple_rate):
    odd_cents = (
        MakeFixedRateInstrument()
        .with_id("ODD")
        .with_start_date(date(2023, 3, 1))
        .with_tenor("1Y")
        .with_payment_frequency(Frequency.ANNUAL)
        .with_rate(simple_rate)
        .with_notional(100.01)
        .with_currency("USD")
        .with_side(Side.RECEIVE)
        .with_discount_curve_id("USD-OIS")
        .build()
    )
    strategies = [RolloverStrategy(rate=simple_rate), RolloverStrategy(rate=simple_rate)]
    _, state = step(store, [odd_cents], {"ODD": strategies})
    notionals = [i.notional for i in state.instruments]
    assert len(notionals) == 2
    assert sum(notionals) == pytest.approx(100.01, abs=1e-9)


def test_rollover_at_par(store, maturing_loan):
    _, state = step(store, [maturing_loan], {"OLD": RolloverStrategy(tenor="2Y")})
    replacement = state.instrument(REPLACEMENT_ID)
    assert NPVVisitor(store, include_settled=True)(replacement) == pytest.approx(0.0, abs=1e-6)
    assert replacement.rate.rate == pytest.approx(ParRateVisitor(store)(replacement), abs=1e-12)


def test_fixings_are_published_step_by_step(store, sofr, ref_date):
    note = (
        MakeFloatingRateInstrument()
        .with_id("FRN")
        .with_start_date(ref_date)
        .with_tenor("1Y")
        .with_payment_frequency(Frequency.QUARTERLY)
        .with_index(sofr)
        .with_notional(10_000)
        .with_currency("USD")
        .with_side(Side.PAY)
        .with_discount_curve_id("USD-OIS")
        .build()
    )
    _, state = step(store, [note])
    assert ref_date in state.store.indices["USD-SOFR"].fixings
    coupons = state.instrument("FRN").floating_coupons()
    assert [c.is_fixed for c in coupons] == [True, False, False, False]
    assert coupons[0].fixing_rate == pytest.approx(store.fixing("USD-SOFR", ref_date))
    # only the disbursement paid today
    assert state.net_cashflow == pytest.approx(10_000)


def test_run_processes_every_instant(store, maturing_loan, constant_strategy, ref_date):
    engine = RolloverSimulationEngine(store, [maturing_loan], {"OLD": constant_strategy})
    states = engine.run(date(2024, 3, 5))
    assert [s.step for s in states] == [1, 2, 3, 4, 5]
    assert states[-1].reference_date == date(2024, 3, 6)
    assert engine.state is states[-1]
    # nothing happens between payment dates
    assert all(s.net_cashflow == 0.0 for s in states[1:])
    with pytest.raises(InvalidValueError):
        engine.run(ref_date)


def test_engine_rejects_duplicate_ids(store, maturing_loan):
    with pytest.raises(InvalidValueError):
        RolloverSimulationEngine(store, [maturing_loan, maturing_loan])


def test_strategy_validation():
    with pytest.raises(InvalidValueError):
        RolloverStrategy(weight=0.0)
    with pytest.raises(InvalidValueError):
        RolloverStrategy(policy=RolloverPolicy.DYNAMIC_BALANCE)
    with pytest.raises(InvalidValueError):
        RolloverStrategy(rate_type=RateType.FLOATING)
    with pytest.raises(InvalidValueError):
        RolloverStrategy(structure="OTHER")
    assert RolloverStrategy(policy="NONE").balance(date(2024, 1, 1), 100.0) == 0.0


def test_generator_split():
    generator = PositionGenerator()
    assert generator.split(100.0, [1, 1, 1], "USD") == [33.33, 33.33, pytest.approx(33.34)]
    assert generator.split(1001.0, [1, 1], "CLP") == [500.0, 501.0]
    with pytest.raises(InvalidValueError):
        generator.split(100.0, [], "USD")
    assert generator.allocate([50.005, 50.005], "USD") == [50.01, pytest.approx(50.0)]


def test_generator_builds_fixed_and_floating(store, ref_date, simple_rate):
    generator = PositionGenerator(store=store)
    strategies = [
        RolloverStrategy(rate=simple_rate, structure="EQUAL_REDEMPTIONS", tenor="2Y", payment_frequency="QUARTERLY"),
        RolloverStrategy(rate_type="FLOATING", index_id="USD-SOFR", spread=0.01, tenor="1Y", payment_frequency="QUARTERLY"),
    ]
    fixed, floating = generator.generate(
        strategies, 20_000, ref_date, "USD", Side.PAY, "NEW", discount_curve_id="USD-OIS"
    )
    assert fixed.instrument_id == "NEW-1"
    assert len(fixed.redemptions()) == 8
    assert sum(cf.amount for cf in fixed.redemptions()) == pytest.approx(10_000)
    assert isinstance(floating, FloatingRateInstrument)
    assert floating.instrument_id == "NEW-2"
    assert floating.spread == 0.01
    assert floating.discount_curve_id == "USD-OIS"
    assert floating.disbursements()[0].side is Side.RECEIVE
    assert all(c.cashflow_type is CashflowType.FLOATING_RATE_COUPON for c in floating.coupons())


def test_generator_needs_store_for_par_issuance(ref_date):
    with pytest.raises(InvalidValueError):
        PositionGenerator().generate([RolloverStrategy()], 1_000, ref_date, "USD", Side.RECEIVE, "NEW")
