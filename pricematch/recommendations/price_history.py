"""
Competitor price history for change detection.

Remembers the last price seen for every product/listing pairing so a
later recommendation run can show the previous price next to the current
one.
"""

import hashlib
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, Optional, Tuple

from pricematch.models import ListingRef, ProductRecommendation


logger = logging.getLogger(__name__)


def compute_price_hash(price: Optional[float], currency: str) -> str:
    """Short digest of a price and currency, used to detect changes."""
    data = f"{price or 0}|{currency}"
    return hashlib.sha1(data.encode('utf-8')).hexdigest()[:12]


@dataclass(frozen=True)
class PriceRecord:
    """Last recorded competitor price for one pairing."""
    price: float
    currency: str
    price_hash: str
    recorded_at: datetime = field(default_factory=datetime.now)


class PriceHistory:
    """In-memory store of the last competitor price per pairing.

    Keys are (product id, listing ref). A persistence collaborator may
    seed it from durable storage with record() before a run.
    """

    def __init__(self):
        self._records: Dict[Tuple[str, ListingRef], PriceRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def get(self, product_id: str, listing_ref: ListingRef) -> Optional[PriceRecord]:
        return self._records.get((product_id, listing_ref))

    def last_price(self, product_id: str, listing_ref: ListingRef) -> Optional[float]:
        """Price recorded for the pairing by an earlier run, if any."""
        record = self.get(product_id, listing_ref)
        return record.price if record else None

    def detect_price_change(
        self,
        product_id: str,
        listing_ref: ListingRef,
        price: float,
        currency: str
    ) -> Optional[Tuple[float, float]]:
        """Detect if a competitor price changed since it was last recorded.

        Args:
            product_id: Catalog product id
            listing_ref: Competitor listing identity
            price: Current competitor price
            currency: Currency of price

        Returns:
            Tuple of (old_price, new_price) if the price changed, None if
            unchanged or never recorded
        """
        record = self.get(product_id, listing_ref)
        if record is None:
            return None
        if record.price_hash == compute_price_hash(price, currency):
            return None
        return (record.price, price)

    def record(
        self,
        product_id: str,
        listing_ref: ListingRef,
        price: float,
        currency: str,
        recorded_at: Optional[datetime] = None
    ) -> None:
        self._records[(product_id, listing_ref)] = PriceRecord(
            price=price,
            currency=currency,
            price_hash=compute_price_hash(price, currency),
            recorded_at=recorded_at or datetime.now(),
        )

    def record_run(self, recommendations: Iterable[ProductRecommendation]) -> int:
        """Record every priced slot of a completed run.

        Args:
            recommendations: Recommendations produced by the run

        Returns:
            Number of pairings recorded
        """
        recorded_at = datetime.now()
        count = 0
        for recommendation in recommendations:
            for slot in recommendation.competitors:
                if slot.new_price is None or slot.listing_ref is None:
                    continue
                self.record(
                    recommendation.product_id,
                    slot.listing_ref,
                    slot.new_price,
                    recommendation.currency,
                    recorded_at=recorded_at,
                )
                count += 1
        logger.debug(f"Recorded {count} competitor prices")
        return count
