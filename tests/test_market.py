import math
from datetime import date

import pytest

from almlib.curves import BucketSpreadedCurve, FlatForwardCurve
from almlib.errors import InvalidValueError, MissingMarketDataError
from almlib.market import (
    DiscountRequest,
    FixingRequest,
    MarketDataBundle,
    MarketRequest,
    MarketStore,
)


def test_lookups(store, flat_curve, pillar_curve):
    assert store.curve("USD-OIS") is flat_curve
    assert store.curve("USD-LIBOR") is pillar_curve
    assert store.fx_rate("usd") == 1.0
    assert store.fx_rate("EUR") == pytest.approx(1.10)
    assert store.fx_cross("EUR", "CLP") == pytest.approx(1.10 / 0.00105)
    assert store.fx_cross("USD", "EUR") == pytest.approx(1 / 1.10)


def test_missing_entries_raise(store):
    with pytest.raises(MissingMarketDataError, match="USD-XYZ"):
        store.curve("USD-XYZ")
    with pytest.raises(MissingMarketDataError):
        store.index("EUR-ESTR")
    with pytest.raises(KeyError):
        store.fx_rate("JPY")


def test_store_validates_fx():
    with pytest.raises(InvalidValueError):
        MarketStore(date(2024, 3, 1), "USD", fx={"EUR": 0.0})


def test_store_mappings_are_read_only(store):
    with pytest.raises(TypeError):
        store.curves["NEW"] = None


def test_discount_factor_is_normalised_to_store_date():
    curve = FlatForwardCurve(date(2024, 1, 1), 0.04)
    store = MarketStore(date(2024, 3, 1), "USD", curves={"C": curve})
    assert store.discount_factor("C", date(2024, 3, 1)) == pytest.approx(1.0)
    assert store.discount_factor("C", date(2025, 3, 1)) == pytest.approx(math.exp(-0.04))


def test_index_links_to_curve_with_same_id(store, flat_curve, ref_date):
    index = store.index("USD-SOFR")
    assert index.forecast_curve is flat_curve
    # the stored index itself stays unlinked
    assert store.indices["USD-SOFR"].forecast_curve is None
    assert store.fixing("USD-SOFR", date(2024, 2, 29)) == pytest.approx(0.0532)
    end = date(2024, 6, 4)
    expected = flat_curve.forward_rate(date(2024, 3, 4), end, index.rate_definition)
    assert store.fixing("USD-SOFR", date(2024, 3, 4), end) == pytest.approx(expected)


def test_curve_shock_returns_new_store(store, flat_curve, pillar_curve):
    shocked = store.with_curve_shock("USD-OIS", 0.01)
    d = date(2027, 3, 1)
    assert shocked is not store
    assert shocked.curve("USD-OIS").zero_rate(d) == pytest.approx(flat_curve.zero_rate(d) + 0.01)
    assert store.curve("USD-OIS") is flat_curve
    # untouched entries are shared
    assert shocked.curve("USD-LIBOR") is pillar_curve
    assert shocked.indices["USD-SOFR"] is store.indices["USD-SOFR"]
    assert shocked.fx_rate("EUR") == store.fx_rate("EUR")


def test_bucket_shock(store):
    shocked = store.with_curve_shock("USD-LIBOR", {date(2025, 3, 1): 0.0, date(2026, 3, 1): 0.01})
    assert isinstance(shocked.curve("USD-LIBOR"), BucketSpreadedCurve)


def test_parallel_shock_on_selected_curves(store, flat_curve):
    shocked = store.with_parallel_shock(0.005, curve_ids=["USD-LIBOR"])
    assert shocked.curve("USD-OIS") is flat_curve
    d = date(2026, 3, 1)
    assert shocked.curve("USD-LIBOR").zero_rate(d) == pytest.approx(
        store.curve("USD-LIBOR").zero_rate(d) + 0.005
    )
    everything = store.with_parallel_shock(0.005)
    assert all(everything.curve(c) is not store.curve(c) for c in store.curves)
    with pytest.raises(MissingMarketDataError):
        store.with_parallel_shock(0.01, curve_ids=["NOPE"])


def test_with_fixing(store):
    updated = store.with_fixing("USD-SOFR", date(2024, 2, 27), 0.0528)
    assert updated.fixing("USD-SOFR", date(2024, 2, 27)) == pytest.approx(0.0528)
    assert date(2024, 2, 27) not in store.indices["USD-SOFR"].fixings
    with pytest.raises(MissingMarketDataError):
        store.with_fixing("EUR-ESTR", date(2024, 2, 27), 0.04)


def test_with_fx_rate(store):
    updated = store.with_fx_rate("eur", 1.2)
    assert updated.fx_rate("EUR") == pytest.approx(1.2)
    assert store.fx_rate("EUR") == pytest.approx(1.10)


def test_advance_to_date(store, ref_date):
    expected_friday = store.fixing("USD-SOFR", ref_date)
    advanced = store.advance_to_date(date(2024, 3, 5))
    assert advanced.reference_date == date(2024, 3, 5)
    assert advanced.curve("USD-OIS").reference_date == date(2024, 3, 5)
    fixings = advanced.indices["USD-SOFR"].fixings
    # Friday and Monday published, the weekend is not
    assert ref_date in fixings and date(2024, 3, 4) in fixings
    assert date(2024, 3, 2) not in fixings
    assert advanced.fixing("USD-SOFR", ref_date) == pytest.approx(expected_friday)
    # still linked to the store curve
    assert advanced.indices["USD-SOFR"].forecast_curve is None
    assert advanced.index("USD-SOFR").forecast_curve is advanced.curve("USD-SOFR")
    assert advanced.fx_rate("EUR") == store.fx_rate("EUR")


def test_advance_rejects_going_back(store, ref_date):
    assert store.advance_to_date(ref_date) is store
    with pytest.raises(InvalidValueError):
        store.advance_to_date(date(2024, 2, 1))


def test_resolve_returns_only_requested_data(store):
    request = MarketRequest(
        discounts=frozenset({DiscountRequest("USD-OIS", date(2025, 3, 1))}),
        fixings=frozenset({FixingRequest("USD-SOFR", date(2024, 2, 29))}),
        fx=frozenset({"EUR"}),
    )
    bundle = store.resolve(request)
    assert isinstance(bundle, MarketDataBundle)
    assert bundle.reference_date == store.reference_date
    assert bundle.discount_factor("USD-OIS", date(2025, 3, 1)) == pytest.approx(
        store.discount_factor("USD-OIS", date(2025, 3, 1))
    )
    assert bundle.fixing("USD-SOFR", date(2024, 2, 29)) == pytest.approx(0.0532)
    assert bundle.fx_rate("EUR") == pytest.approx(1.10)
    assert bundle.fx_rate("USD") == 1.0
    with pytest.raises(MissingMarketDataError):
        bundle.discount_factor("USD-OIS", date(2026, 3, 1))
    with pytest.raises(MissingMarketDataError):
        bundle.fx_rate("CLP")


def test_resolve_missing_data(store):
    with pytest.raises(MissingMarketDataError):
        store.resolve(MarketRequest(fx=frozenset({"JPY"})))


def test_request_merge():
    a = MarketRequest(discounts=frozenset({DiscountRequest("A", date(2025, 1, 1))}))
    b = MarketRequest(
        discounts=frozenset({DiscountRequest("A", date(2025, 1, 1)), DiscountRequest("B", date(2025, 1, 1))}),
        fx=frozenset({"EUR"}),
    )
    merged = a | b
    assert merged.curve_ids() == {"A", "B"}
    assert len(merged.discounts) == 2
    assert merged.fx == {"EUR"}
    assert MarketRequest().is_empty()
    assert MarketRequest.merge([]) == MarketRequest()
