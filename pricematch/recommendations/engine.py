"""
Price recommendation engine.

Aggregates the competitor prices of accepted matches per product and
recommends a price: the competitor average, never below the margin floor
implied by the product's cost.
"""

import logging
import math
from collections import OrderedDict
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from pricematch.config import PricingConfig
from pricematch.error_handling import ErrorHandler, ProcessingWarning, RunReport
from pricematch.models import (
    CompetitorSlot,
    Direction,
    ListingRef,
    Match,
    MatchStatus,
    Product,
    ProductRecommendation,
    RawListing,
    RecommendationStatus,
)
from pricematch.recommendations.price_history import PriceHistory


logger = logging.getLogger(__name__)


# Explanation templates keyed by (direction, margin floor applied)
EXPLANATIONS: Dict[Tuple[Direction, bool], str] = {
    (Direction.UP, False): (
        "Competitors average is {gap:.1f}% higher across {count} {noun}; "
        "recommended price adjusted up to the competitor average."
    ),
    (Direction.DOWN, False): (
        "Competitors average is {gap:.1f}% lower across {count} {noun}; "
        "recommended price adjusted down to the competitor average."
    ),
    (Direction.SAME, False): (
        "Your price is aligned with the average of {count} {noun}."
    ),
    (Direction.UP, True): (
        "Competitors average is {gap:.1f}% {relation} across {count} {noun}; "
        "recommended price raised to the minimum margin floor."
    ),
    (Direction.DOWN, True): (
        "Competitors average is {gap:.1f}% lower across {count} {noun}; "
        "recommended price adjusted down while preserving minimum margin."
    ),
    (Direction.SAME, True): (
        "Competitors average is {gap:.1f}% {relation} across {count} {noun}; "
        "price held at the minimum margin floor."
    ),
}

WIDE_SPREAD_NOTE = " Competitor prices vary widely ({spread:.0f}% spread)."


def _ceil_cents(value: float) -> float:
    # Rounding first keeps float noise such as 7000.0000000001 from adding a cent
    return math.ceil(round(value * 100, 6)) / 100


class RecommendationEngine:
    """Computes price recommendations from matched competitor prices.

    Only AUTO_MATCHED and CONFIRMED matches contribute prices; pending
    and rejected pairings never influence pricing.

    Attributes:
        config: Pricing policy
    """

    USABLE_STATUSES = (MatchStatus.AUTO_MATCHED, MatchStatus.CONFIRMED)

    def __init__(self, config: Optional[PricingConfig] = None):
        self.config = config or PricingConfig()

    def compute_recommendations(
        self,
        products: Sequence[Product],
        matches: Iterable[Match],
        listings: Iterable[RawListing],
        price_history: Optional[PriceHistory] = None,
        report: Optional[RunReport] = None,
        sort_key: Optional[Callable[[ProductRecommendation], object]] = None
    ) -> List[ProductRecommendation]:
        """Build one recommendation per product with a usable competitor price.

        Each product is computed in isolation; a product that fails is
        left out and the failure lands in the report.

        Args:
            products: Catalog snapshot
            matches: Matches for the catalog, in creation order
            listings: Competitor listings referenced by the matches
            price_history: Prices recorded by earlier runs, for old_price
            report: Run report receiving warnings and counters
            sort_key: Output ordering (product id if omitted)

        Returns:
            Recommendations in deterministic order
        """
        report = report if report is not None else RunReport()
        handler = ErrorHandler(report)

        listings_by_ref: Dict[ListingRef, RawListing] = {}
        for listing in listings:
            listings_by_ref.setdefault(listing.ref, listing)

        matches_by_product: Dict[str, List[Match]] = OrderedDict()
        for match in matches:
            matches_by_product.setdefault(match.product_id, []).append(match)

        recommendations: List[ProductRecommendation] = []
        for product in products:
            product_matches = matches_by_product.get(product.id)
            if not product_matches:
                continue
            recommendation = handler.isolate(
                self.recommend,
                product,
                product_matches,
                listings_by_ref,
                price_history=price_history,
                report=report,
                subject=product.id,
            )
            if recommendation is not None:
                recommendations.append(recommendation)

        recommendations.sort(key=sort_key or (lambda r: r.product_id))
        report.increment('recommendations', len(recommendations))
        logger.info(
            f"Computed {len(recommendations)} recommendations for {len(products)} products"
        )
        return recommendations

    def recommend(
        self,
        product: Product,
        matches: Sequence[Match],
        listings_by_ref: Dict[ListingRef, RawListing],
        price_history: Optional[PriceHistory] = None,
        report: Optional[RunReport] = None
    ) -> Optional[ProductRecommendation]:
        """Compute the recommendation for a single product.

        Args:
            product: Catalog product
            matches: Matches of this product, in creation order
            listings_by_ref: Competitor listings by identity
            price_history: Prices recorded by earlier runs
            report: Run report receiving skipped-listing warnings

        Returns:
            ProductRecommendation, or None if no competitor price is usable

        Raises:
            ValueError: If the product's current price is not positive
        """
        usable = self.usable_listings(product, matches, listings_by_ref, report)
        if not usable:
            return None

        product_price = product.current_price
        if product_price is None or product_price <= 0:
            raise ValueError(f"product {product.id} has non-positive price {product_price}")

        prices = [listing.price for listing in usable]
        competitor_avg = sum(prices) / len(prices)
        margin_floor = self.margin_floor(product.cost)

        recommended_price = round(competitor_avg, 2)
        floor_applied = False
        if margin_floor is not None:
            floor_price = _ceil_cents(margin_floor)
            if floor_price > recommended_price:
                recommended_price = floor_price
                floor_applied = True

        change_percent = (recommended_price - product_price) / product_price * 100
        direction = self.direction_for(change_percent)

        slots = self.build_slots(product, usable, price_history)
        explanation = self.explain(
            direction=direction,
            floor_applied=floor_applied,
            product_price=product_price,
            prices=prices,
        )

        return ProductRecommendation(
            product_id=product.id,
            product_name=product.name,
            product_sku=product.sku,
            product_price=product_price,
            currency=product.currency,
            recommended_price=recommended_price,
            change_percent=change_percent,
            direction=direction,
            competitor_avg=competitor_avg,
            competitor_count=sum(1 for slot in slots if slot.new_price is not None),
            margin_floor=margin_floor,
            floor_applied=floor_applied,
            explanation=explanation,
            competitors=slots,
            status=RecommendationStatus.PENDING,
        )

    def usable_listings(
        self,
        product: Product,
        matches: Sequence[Match],
        listings_by_ref: Dict[ListingRef, RawListing],
        report: Optional[RunReport] = None
    ) -> List[RawListing]:
        """Listings whose price may influence this product's recommendation.

        A listing counts when its match is AUTO_MATCHED or CONFIRMED, it
        has a positive price, and its currency equals the product's.
        """
        usable: List[RawListing] = []
        seen = set()
        for match in matches:
            if match.status not in self.USABLE_STATUSES or match.listing_ref in seen:
                continue
            listing = listings_by_ref.get(match.listing_ref)
            if listing is None or listing.price is None or listing.price <= 0:
                continue
            if listing.currency != product.currency:
                if report is not None:
                    report.add_warning(ProcessingWarning(
                        operation='usable_listings',
                        subject=product.id,
                        message=(
                            f"listing {listing.ref} priced in {listing.currency}, "
                            f"product in {product.currency}; skipped"
                        ),
                    ))
                continue
            seen.add(match.listing_ref)
            usable.append(listing)
        return usable

    def margin_floor(self, cost: Optional[float]) -> Optional[float]:
        """Lowest price keeping min_margin_fraction of margin over cost.

        Returns:
            cost / (1 - min_margin_fraction), or None when cost is unknown
        """
        if cost is None:
            return None
        return cost / (1 - self.config.min_margin_fraction)

    def direction_for(self, change_percent: float) -> Direction:
        if abs(change_percent) < self.config.same_direction_band:
            return Direction.SAME
        return Direction.UP if change_percent > 0 else Direction.DOWN

    def build_slots(
        self,
        product: Product,
        usable: Sequence[RawListing],
        price_history: Optional[PriceHistory] = None
    ) -> List[CompetitorSlot]:
        """One display slot per usable listing, labeled in match order."""
        slots = []
        for position, listing in enumerate(usable, start=1):
            old_price = None
            if price_history is not None:
                old_price = price_history.last_price(product.id, listing.ref)
            slots.append(CompetitorSlot(
                label=f"Competitor {position}",
                name=listing.name,
                url=listing.url,
                old_price=old_price,
                new_price=listing.price,
                change_percent=round(
                    (listing.price - product.current_price) / product.current_price * 100, 2
                ),
                source=listing.source,
                listing_ref=listing.ref,
            ))
        return slots

    def explain(
        self,
        direction: Direction,
        floor_applied: bool,
        product_price: float,
        prices: Sequence[float]
    ) -> str:
        """Render the templated explanation for a recommendation."""
        count = len(prices)
        competitor_avg = sum(prices) / count
        gap = (competitor_avg - product_price) / product_price * 100
        if abs(gap) < self.config.same_direction_band:
            relation = "in line"
        else:
            relation = "higher" if gap > 0 else "lower"

        text = EXPLANATIONS[(direction, floor_applied)].format(
            gap=abs(gap),
            relation=relation,
            count=count,
            noun="competitor" if count == 1 else "competitors",
        )

        if count > 1 and competitor_avg > 0:
            spread = (max(prices) - min(prices)) / competitor_avg
            if spread > self.config.wide_spread_fraction:
                text += WIDE_SPREAD_NOTE.format(spread=spread * 100)
        return text


def count_waiting(recommendations: Iterable[ProductRecommendation], tolerance: float = 0.01) -> int:
    """Number of pending recommendations that would actually change a price."""
    return sum(
        1 for r in recommendations
        if r.status == RecommendationStatus.PENDING
        and abs(r.recommended_price - r.product_price) >= tolerance
    )
