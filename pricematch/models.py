"""
Data models for the pricing match engine.

This module defines the core data structures used throughout the engine:
catalog products, scraped competitor listings, matches between them, and
the price recommendations derived from those matches.
"""

from dataclasses import dataclass, field, asdict, replace
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional


class MatchStatus(str, Enum):
    """Review status of a product/listing pairing."""
    AUTO_MATCHED = "AUTO_MATCHED"
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"

    @property
    def is_terminal(self) -> bool:
        return self in (MatchStatus.CONFIRMED, MatchStatus.REJECTED)


class RecommendationStatus(str, Enum):
    """Review status of a price recommendation."""
    PENDING = "PENDING"
    APPLIED = "APPLIED"
    DISMISSED = "DISMISSED"

    @property
    def is_terminal(self) -> bool:
        return self in (RecommendationStatus.APPLIED, RecommendationStatus.DISMISSED)


class Direction(str, Enum):
    """Direction of a recommended price change."""
    UP = "UP"
    DOWN = "DOWN"
    SAME = "SAME"


@dataclass
class Product:
    """Represents a catalog product.

    Attributes:
        id: Catalog identifier
        name: Display name
        sku: Merchant SKU
        current_price: Current selling price
        currency: ISO currency code of current_price and cost
        cost: Unit cost, None when the catalog does not provide it
        inventory: Units in stock (optional)
    """
    id: str
    name: str
    sku: str
    current_price: float
    currency: str = "USD"
    cost: Optional[float] = None
    inventory: Optional[int] = None

    @property
    def margin_percent(self) -> Optional[float]:
        """Margin over current price in percent, derived on every access.

        Returns:
            (current_price - cost) / current_price * 100, or None when cost
            is unknown or the price is not positive
        """
        if self.cost is None or not self.current_price or self.current_price <= 0:
            return None
        return (self.current_price - self.cost) / self.current_price * 100

    def with_price(self, new_price: float) -> 'Product':
        """Return a copy of this product carrying a new current price."""
        return replace(self, current_price=new_price)

    def to_dict(self) -> dict:
        data = asdict(self)
        data['margin_percent'] = self.margin_percent
        return data


@dataclass(frozen=True)
class ListingRef:
    """Identity of a competitor listing.

    Attributes:
        store_id: Competitor store, None for listings added by URL
        competitor_product_id: Product identifier within the store (or URL)
    """
    store_id: Optional[str]
    competitor_product_id: str

    def __str__(self) -> str:
        return f"{self.store_id or 'url'}:{self.competitor_product_id}"


@dataclass(frozen=True)
class RawListing:
    """Competitor listing as handed over by the scraper.

    Attributes:
        url: Competitor product page URL
        name: Competitor product title
        price: Scraped price, None when the page showed no price
        currency: ISO currency code of price
        raw: Opaque scraper payload, passed through untouched
        store_id: Competitor store the listing was discovered in (optional)
        competitor_product_id: Identifier within the store; the URL if omitted
        sku: Competitor SKU when the storefront exposes one (optional)
    """
    url: str
    name: Optional[str]
    price: Optional[float]
    currency: str = "USD"
    raw: Any = field(default=None, compare=False, hash=False)
    store_id: Optional[str] = None
    competitor_product_id: Optional[str] = None
    sku: Optional[str] = None

    @property
    def ref(self) -> ListingRef:
        return ListingRef(self.store_id, self.competitor_product_id or self.url)

    @property
    def source(self) -> str:
        """Slot source: Store for store-discovered listings, URL for ones added by URL."""
        return "Store" if self.store_id else "URL"


@dataclass
class Match:
    """Pairing of a catalog product with a competitor listing.

    Attributes:
        id: Deterministic match identifier
        product_id: Catalog product id
        listing_ref: Competitor listing identity
        confidence: Similarity score in [0, 1]
        status: Review status
        created_at: When the matcher created the pairing
    """
    id: str
    product_id: str
    listing_ref: ListingRef
    confidence: float
    status: MatchStatus
    created_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be in [0, 1], got {self.confidence}")


@dataclass
class CompetitorSlot:
    """One competitor price entry attached to a recommendation for display.

    Attributes:
        label: "Competitor 1", "Competitor 2", ...
        name: Competitor product title
        url: Competitor product URL
        old_price: Price recorded for this pairing by an earlier run
        new_price: Current competitor price
        change_percent: new_price relative to our current price, in percent
        source: "Store" or "URL"
        listing_ref: Identity of the listing the price came from
    """
    label: str
    name: Optional[str] = None
    url: Optional[str] = None
    old_price: Optional[float] = None
    new_price: Optional[float] = None
    change_percent: Optional[float] = None
    source: str = "Store"
    listing_ref: Optional[ListingRef] = None


@dataclass
class ProductRecommendation:
    """Price recommendation for one catalog product."""
    product_id: str
    product_name: str
    product_price: float
    recommended_price: float
    change_percent: float
    direction: Direction
    competitor_avg: float
    competitor_count: int
    explanation: str
    product_sku: Optional[str] = None
    currency: str = "USD"
    margin_floor: Optional[float] = None
    floor_applied: bool = False
    competitors: List[CompetitorSlot] = field(default_factory=list)
    status: RecommendationStatus = RecommendationStatus.PENDING


@dataclass(frozen=True)
class PriceUpdateRequest:
    """Price change sent to the catalog collaborator when a recommendation is applied."""
    product_id: str
    new_price: float


@dataclass(frozen=True)
class AuditEntry:
    """Record of a single lifecycle status change.

    Attributes:
        record_type: "match" or "recommendation"
        record_id: Match id or recommendation product id
        action: confirm, reject, apply, dismiss or reset
        from_status: Status before the action
        to_status: Status after the action
        reason: Free-text reason supplied with a reset
        at: When the change happened
    """
    record_type: str
    record_id: str
    action: str
    from_status: str
    to_status: str
    reason: Optional[str] = None
    at: datetime = field(default_factory=datetime.now)
