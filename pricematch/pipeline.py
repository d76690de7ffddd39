"""
Run orchestration for the pricing match engine.

A run takes a snapshot of one tenant's catalog, matches the scraped
listings against it and computes recommendations. Runs for different
tenants share nothing and can execute concurrently.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Union

from pricematch.config import EngineSettings, get_engine_settings
from pricematch.error_handling import RunReport
from pricematch.matching import ProductMatcher
from pricematch.models import Match, ProductRecommendation, RawListing
from pricematch.recommendations import PriceHistory, RecommendationEngine, count_waiting
from pricematch.repository import CatalogRepository
from pricematch.schemas import MatchRecord, RecommendationRecord, RunReportRecord


logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Output of one tenant run.

    Attributes:
        tenant_id: Tenant the run belonged to
        matches: All matches after the run (existing and new)
        recommendations: Recommendations sorted by product id
        report: Non-fatal issues and counters
    """
    tenant_id: str
    matches: List[Match]
    recommendations: List[ProductRecommendation]
    report: RunReport

    @property
    def waiting_count(self) -> int:
        return count_waiting(self.recommendations)

    def to_records(self) -> Dict[str, object]:
        """Serializable records for the persistence and presentation collaborators."""
        return {
            'tenant_id': self.tenant_id,
            'matches': [MatchRecord.from_match(m) for m in self.matches],
            'recommendations': [
                RecommendationRecord.from_recommendation(r) for r in self.recommendations
            ],
            'report': RunReportRecord.from_report(self.report),
            'waiting_count': self.waiting_count,
        }


@dataclass
class TenantRun:
    """Inputs for one tenant's run."""
    catalog: CatalogRepository
    listings: Sequence[RawListing]
    existing_matches: Sequence[Match] = ()
    price_history: Optional[PriceHistory] = None


class PricingPipeline:
    """Runs match and recommendation passes for a single tenant.

    Attributes:
        catalog: Catalog collaborator the snapshot is read from
        settings: Engine settings
        price_history: Competitor prices recorded by earlier runs
    """

    def __init__(
        self,
        catalog: CatalogRepository,
        settings: Optional[EngineSettings] = None,
        price_history: Optional[PriceHistory] = None
    ):
        self.catalog = catalog
        self.settings = settings or get_engine_settings()
        self.price_history = price_history if price_history is not None else PriceHistory()
        self.matcher = ProductMatcher(self.settings.matching)
        self.engine = RecommendationEngine(self.settings.pricing)

    def run(
        self,
        listings: Sequence[RawListing],
        existing_matches: Sequence[Match] = (),
        tenant_id: str = "default"
    ) -> RunResult:
        """Match listings and compute recommendations over a catalog snapshot.

        Price history is updated only after both passes complete.

        Args:
            listings: Competitor listings from the scraper
            existing_matches: Matches persisted by earlier runs
            tenant_id: Tenant identifier used in logs and the result

        Returns:
            RunResult with matches, recommendations and report
        """
        products = list(self.catalog.list_products())
        listings = list(listings)
        report = RunReport(max_samples=self.settings.report.max_samples)

        logger.info(
            f"Starting run for tenant {tenant_id}: "
            f"{len(products)} products, {len(listings)} listings"
        )

        matches = self.matcher.match(products, listings, existing_matches, report=report)
        recommendations = self.engine.compute_recommendations(
            products,
            matches,
            listings,
            price_history=self.price_history,
            report=report,
        )
        self.price_history.record_run(recommendations)

        logger.info(
            f"Finished run for tenant {tenant_id}: {len(matches)} matches, "
            f"{len(recommendations)} recommendations, {report.warning_count} warnings"
        )
        return RunResult(
            tenant_id=tenant_id,
            matches=matches,
            recommendations=recommendations,
            report=report,
        )


async def run_tenants(
    runs: Dict[str, TenantRun],
    settings: Optional[EngineSettings] = None
) -> Dict[str, Union[RunResult, Exception]]:
    """Run several tenants concurrently.

    A tenant whose run raises does not affect the others; its entry in
    the result holds the exception instead of a RunResult.

    Args:
        runs: Inputs per tenant id
        settings: Engine settings shared by all runs

    Returns:
        RunResult (or the raised exception) per tenant id
    """
    settings = settings or get_engine_settings()

    async def _run(tenant_id: str, tenant_run: TenantRun) -> RunResult:
        pipeline = PricingPipeline(tenant_run.catalog, settings, tenant_run.price_history)
        return await asyncio.to_thread(
            pipeline.run, tenant_run.listings, tenant_run.existing_matches, tenant_id
        )

    tenant_ids = list(runs)
    outcomes = await asyncio.gather(
        *(_run(tenant_id, runs[tenant_id]) for tenant_id in tenant_ids),
        return_exceptions=True
    )

    results: Dict[str, Union[RunResult, Exception]] = {}
    for tenant_id, outcome in zip(tenant_ids, outcomes):
        if isinstance(outcome, Exception):
            logger.error(f"Run for tenant {tenant_id} failed: {type(outcome).__name__}: {outcome}")
        results[tenant_id] = outcome
    return results
