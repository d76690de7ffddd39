"""
Catalog/competitor matching and price recommendation engine.

Ingests a merchant catalog from CSV, matches scraped competitor listings
to catalog products, and recommends prices under a minimum-margin policy.
"""

from pricematch.error_handling import (
    EmptyInputError,
    InvalidTransitionError,
    MissingRequiredFieldError,
    PriceMatchError,
    ProcessingWarning,
    RowParseWarning,
    RunReport,
)
from pricematch.ingestion import CatalogImporter, ColumnMapper, CsvParser
from pricematch.lifecycle import LifecycleManager
from pricematch.matching import ProductMatcher
from pricematch.models import (
    CompetitorSlot,
    Direction,
    ListingRef,
    Match,
    MatchStatus,
    PriceUpdateRequest,
    Product,
    ProductRecommendation,
    RawListing,
    RecommendationStatus,
)
from pricematch.normalization import normalize_title
from pricematch.pipeline import PricingPipeline, RunResult, TenantRun, run_tenants
from pricematch.recommendations import PriceHistory, RecommendationEngine
from pricematch.repository import CatalogRepository, InMemoryCatalogRepository

__version__ = "0.1.0"
