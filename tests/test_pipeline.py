"""Tests for run orchestration across the matcher and recommendation engine."""

import asyncio

import pytest

from pricematch.config import EngineSettings
from pricematch.models import MatchStatus, Product, RawListing, RecommendationStatus
from pricematch.pipeline import PricingPipeline, TenantRun, run_tenants
from pricematch.repository import InMemoryCatalogRepository
from pricematch.schemas import MatchRecord, RecommendationRecord, RunReportRecord


@pytest.fixture
def catalog():
    return InMemoryCatalogRepository([
        Product(id="P2", name="Wireless Mouse", sku="MOU-1", current_price=25, cost=10),
        Product(id="P1", name="USB-C Cable", sku="USB-1", current_price=10, cost=4),
    ])


@pytest.fixture
def listings():
    return [
        RawListing(url="https://a.example/usb", name="usb c cable", price=9, store_id="A"),
        RawListing(url="https://b.example/usb", name="USB-C cable!", price=11.5, store_id="B"),
        RawListing(url="https://a.example/mouse", name="wireless mouse black", price=22, store_id="A"),
        RawListing(url="https://a.example/hose", name="garden hose", price=15, store_id="A"),
    ]


def test_run_matches_and_recommends(catalog, listings):
    result = PricingPipeline(catalog, EngineSettings()).run(listings, tenant_id="t1")

    statuses = {(m.product_id, str(m.listing_ref)): m.status for m in result.matches}
    assert statuses == {
        ("P1", "A:https://a.example/usb"): MatchStatus.AUTO_MATCHED,
        ("P1", "B:https://b.example/usb"): MatchStatus.AUTO_MATCHED,
        ("P2", "A:https://a.example/mouse"): MatchStatus.PENDING,
    }

    # The mouse match is pending review, so only the cable is priced
    assert [r.product_id for r in result.recommendations] == ["P1"]
    cable = result.recommendations[0]
    assert cable.competitor_count == 2
    assert cable.recommended_price == 10.25
    assert cable.status == RecommendationStatus.PENDING
    assert result.waiting_count == 1
    assert result.report.counts["listings_unmatched"] == 1


def test_second_run_shows_previous_competitor_price(catalog, listings):
    pipeline = PricingPipeline(catalog, EngineSettings())
    first = pipeline.run(listings)

    moved = [
        RawListing(url=l.url, name=l.name, price=l.price - 1, store_id=l.store_id)
        for l in listings
    ]
    second = pipeline.run(moved, existing_matches=first.matches)

    slots = second.recommendations[0].competitors
    assert [(s.old_price, s.new_price) for s in slots] == [(9, 8), (11.5, 10.5)]
    assert [m.id for m in second.matches] == [m.id for m in first.matches]


def test_confirmed_match_feeds_next_run(catalog, listings):
    pipeline = PricingPipeline(catalog, EngineSettings())
    first = pipeline.run(listings)
    mouse = next(m for m in first.matches if m.product_id == "P2")
    mouse.status = MatchStatus.CONFIRMED

    second = pipeline.run(listings, existing_matches=first.matches)

    assert [r.product_id for r in second.recommendations] == ["P1", "P2"]
    assert second.recommendations[1].recommended_price == 22


def test_to_records(catalog, listings):
    records = PricingPipeline(catalog, EngineSettings()).run(listings, tenant_id="t1").to_records()

    assert records["tenant_id"] == "t1"
    assert all(isinstance(m, MatchRecord) for m in records["matches"])
    assert records["matches"][0].store_id == "A"
    recommendation = records["recommendations"][0]
    assert isinstance(recommendation, RecommendationRecord)
    assert recommendation.competitors[1].source == "Store"
    assert recommendation.model_dump()["direction"] == "UP"
    assert isinstance(records["report"], RunReportRecord)
    assert records["waiting_count"] == 1


class BrokenCatalog:
    def list_products(self):
        raise ConnectionError("catalog offline")

    def update_price(self, request):
        raise ConnectionError("catalog offline")


def test_run_tenants_isolates_failures(catalog, listings):
    runs = {
        "good": TenantRun(catalog=catalog, listings=listings),
        "bad": TenantRun(catalog=BrokenCatalog(), listings=listings),
    }

    results = asyncio.run(run_tenants(runs, EngineSettings()))

    assert set(results) == {"good", "bad"}
    assert isinstance(results["bad"], ConnectionError)
    assert results["good"].tenant_id == "good"
    assert [r.product_id for r in results["good"].recommendations] == ["P1"]
