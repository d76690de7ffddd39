"""
Property-based tests for the review lifecycle.

These tests verify that terminal states are only left through reset, that
rejected actions leave records untouched, and that applying sends the
recommended price to the catalog.
"""

from datetime import datetime

import pytest
from hypothesis import given, settings, strategies as st

from pricematch.error_handling import InvalidTransitionError
from pricematch.lifecycle import LifecycleManager
from pricematch.models import (
    Direction,
    ListingRef,
    Match,
    MatchStatus,
    PriceUpdateRequest,
    Product,
    ProductRecommendation,
    RecommendationStatus,
)
from pricematch.repository import InMemoryCatalogRepository


def make_match(status=MatchStatus.PENDING):
    return Match(
        id="m_1",
        product_id="P1",
        listing_ref=ListingRef("S1", "c1"),
        confidence=0.6,
        status=status,
        created_at=datetime(2026, 1, 1),
    )


def make_recommendation(status=RecommendationStatus.PENDING, recommended=9.0):
    return ProductRecommendation(
        product_id="P1",
        product_name="Widget",
        product_price=10.0,
        recommended_price=recommended,
        change_percent=(recommended - 10.0) * 10,
        direction=Direction.DOWN,
        competitor_avg=recommended,
        competitor_count=1,
        explanation="",
        status=status,
    )


class FailingCatalog:
    def list_products(self):
        return []

    def update_price(self, request):
        raise ConnectionError("catalog unavailable")


match_actions = st.lists(st.sampled_from(["confirm", "reject", "reset"]), max_size=10)
recommendation_actions = st.lists(st.sampled_from(["apply", "dismiss", "reset"]), max_size=10)


@given(initial=st.sampled_from([MatchStatus.AUTO_MATCHED, MatchStatus.PENDING]), actions=match_actions)
@settings(max_examples=200)
def test_match_transitions(initial, actions):
    """
    **Feature: price-match-engine, Property 19: Match state machine**

    For any sequence of reviewer actions, an action is accepted exactly
    when the transition is legal, and every accepted action is audited.
    """
    manager = LifecycleManager()
    match = make_match(initial)
    accepted = 0

    for action in actions:
        before = match.status
        legal = before.is_terminal if action == "reset" else not before.is_terminal
        operation = manager.reset_match if action == "reset" else getattr(manager, action)
        if legal:
            operation(match)
            accepted += 1
            expected = {
                "confirm": MatchStatus.CONFIRMED,
                "reject": MatchStatus.REJECTED,
                "reset": MatchStatus.PENDING,
            }[action]
            assert match.status == expected
        else:
            with pytest.raises(InvalidTransitionError):
                operation(match)
            assert match.status == before

    assert len(manager.history("m_1")) == accepted


@given(actions=recommendation_actions)
@settings(max_examples=200)
def test_recommendation_transitions(actions):
    """
    **Feature: price-match-engine, Property 20: Recommendation state machine**

    For any sequence of reviewer actions, apply and dismiss are only
    accepted from PENDING, and every accepted apply sends exactly one price
    update.
    """
    catalog = InMemoryCatalogRepository([
        Product(id="P1", name="Widget", sku="W1", current_price=10.0)
    ])
    manager = LifecycleManager(catalog)
    recommendation = make_recommendation()
    applies = 0

    for action in actions:
        before = recommendation.status
        if action == "reset":
            legal = before.is_terminal
            operation = manager.reset_recommendation
        else:
            legal = before == RecommendationStatus.PENDING
            operation = getattr(manager, action)
        if legal:
            operation(recommendation)
            applies += action == "apply"
        else:
            with pytest.raises(InvalidTransitionError):
                operation(recommendation)
            assert recommendation.status == before

    assert len(catalog.updates) == applies


def test_dismiss_then_apply_fails():
    manager = LifecycleManager(InMemoryCatalogRepository())
    recommendation = make_recommendation()

    manager.dismiss(recommendation)
    assert recommendation.status == RecommendationStatus.DISMISSED

    with pytest.raises(InvalidTransitionError) as exc_info:
        manager.apply(recommendation)

    assert recommendation.status == RecommendationStatus.DISMISSED
    assert exc_info.value.action == "apply"
    assert exc_info.value.status == "DISMISSED"


def test_apply_updates_catalog_price():
    catalog = InMemoryCatalogRepository([
        Product(id="P1", name="Widget", sku="W1", current_price=10.0)
    ])
    manager = LifecycleManager(catalog)

    manager.apply(make_recommendation(recommended=9.49))

    assert catalog.updates == [PriceUpdateRequest(product_id="P1", new_price=9.49)]
    assert catalog.get("P1").current_price == 9.49


def test_apply_failure_leaves_recommendation_pending():
    manager = LifecycleManager(FailingCatalog())
    recommendation = make_recommendation()

    with pytest.raises(ConnectionError):
        manager.apply(recommendation)

    assert recommendation.status == RecommendationStatus.PENDING
    assert manager.audit_log == []


def test_apply_without_catalog_is_rejected():
    recommendation = make_recommendation()

    with pytest.raises(ValueError):
        LifecycleManager().apply(recommendation)

    assert recommendation.status == RecommendationStatus.PENDING


def test_reset_is_audited_with_reason():
    manager = LifecycleManager()
    match = make_match(MatchStatus.AUTO_MATCHED)

    manager.confirm(match)
    manager.reset_match(match, reason="wrong size")

    entries = manager.history("m_1")
    assert [(e.action, e.from_status, e.to_status) for e in entries] == [
        ("confirm", "AUTO_MATCHED", "CONFIRMED"),
        ("reset", "CONFIRMED", "PENDING"),
    ]
    assert entries[1].reason == "wrong size"
    assert entries[1].record_type == "match"


def test_reset_of_open_record_is_rejected():
    manager = LifecycleManager()

    with pytest.raises(InvalidTransitionError):
        manager.reset_match(make_match(MatchStatus.PENDING))
    with pytest.raises(InvalidTransitionError):
        manager.reset_recommendation(make_recommendation())
