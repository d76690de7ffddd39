"""
Property-based tests for competitor price history.

These tests verify change detection and recording of completed runs.
"""

from hypothesis import given, settings, strategies as st

from pricematch.models import CompetitorSlot, Direction, ListingRef, ProductRecommendation
from pricematch.recommendations import PriceHistory, compute_price_hash


REF = ListingRef("S1", "https://shop.example/p/1")

prices = st.floats(min_value=0.01, max_value=100000, allow_nan=False)
currencies = st.sampled_from(["USD", "EUR", "CZK"])


@given(price=prices, currency=currencies)
@settings(max_examples=100)
def test_unchanged_price_is_not_a_change(price, currency):
    """
    **Feature: price-match-engine, Property 17: Price change detection**

    For any recorded price, detecting the same price reports no change,
    while a different price reports (old, new).
    """
    history = PriceHistory()

    assert history.detect_price_change("P1", REF, price, currency) is None

    history.record("P1", REF, price, currency)

    assert history.detect_price_change("P1", REF, price, currency) is None
    assert history.detect_price_change("P1", REF, price + 1, currency) == (price, price + 1)
    assert history.last_price("P1", REF) == price


@given(price=prices)
@settings(max_examples=50)
def test_hash_depends_on_currency(price):
    """
    **Feature: price-match-engine, Property 18: Price hash identity**

    For any price, the hash is stable and differs between currencies.
    """
    assert compute_price_hash(price, "USD") == compute_price_hash(price, "USD")
    assert compute_price_hash(price, "USD") != compute_price_hash(price, "EUR")
    assert len(compute_price_hash(price, "USD")) == 12


def test_record_run_keeps_only_priced_slots():
    recommendation = ProductRecommendation(
        product_id="P1",
        product_name="Widget",
        product_price=10,
        recommended_price=9,
        change_percent=-10,
        direction=Direction.DOWN,
        competitor_avg=9,
        competitor_count=1,
        explanation="",
        currency="EUR",
        competitors=[
            CompetitorSlot(label="Competitor 1", new_price=9, listing_ref=REF),
            CompetitorSlot(label="Competitor 2", new_price=None, listing_ref=ListingRef(None, "u")),
            CompetitorSlot(label="Competitor 3", new_price=8),
        ],
    )
    history = PriceHistory()

    assert history.record_run([recommendation]) == 1
    assert len(history) == 1
    record = history.get("P1", REF)
    assert record.price == 9
    assert record.currency == "EUR"
    assert history.last_price("P2", REF) is None
