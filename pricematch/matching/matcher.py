"""
Fuzzy matching of competitor listings to catalog products.

Names on both sides are reduced to canonical form and compared; exact
canonical equality scores 1.0, anything else scores the token-set
Jaccard similarity. Each listing is paired with its best-scoring product
and the score decides whether the pairing is accepted automatically,
queued for review, or dropped.
"""

import hashlib
import logging
from dataclasses import replace
from datetime import datetime
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from pricematch.config import MatchingConfig
from pricematch.error_handling import ErrorHandler, RunReport
from pricematch.models import ListingRef, Match, MatchStatus, Product, RawListing
from pricematch.normalization import normalize_title, tokenize


logger = logging.getLogger(__name__)


def token_similarity(canonical_a: str, canonical_b: str) -> float:
    """Jaccard similarity of the token sets of two canonical strings.

    Returns:
        |intersection| / |union|, or 0.0 if both token sets are empty
    """
    tokens_a = frozenset(tokenize(canonical_a))
    tokens_b = frozenset(tokenize(canonical_b))
    return _jaccard(tokens_a, tokens_b)


def name_similarity(name_a: Optional[str], name_b: Optional[str]) -> float:
    """Similarity of two free-text names in [0, 1].

    Args:
        name_a: First name (any form, may be None)
        name_b: Second name (any form, may be None)

    Returns:
        1.0 for identical non-empty canonical forms, else token Jaccard

    Examples:
        >>> name_similarity("USB-C Cable", "usb c cable")
        1.0
    """
    canonical_a = normalize_title(name_a)
    canonical_b = normalize_title(name_b)
    if canonical_a and canonical_a == canonical_b:
        return 1.0
    return token_similarity(canonical_a, canonical_b)


def make_match_id(product_id: str, listing_ref: ListingRef) -> str:
    """Deterministic match id for a product/listing pairing."""
    digest = hashlib.sha1(f"{product_id}|{listing_ref}".encode('utf-8')).hexdigest()
    return f"m_{digest[:16]}"


def _jaccard(tokens_a: FrozenSet[str], tokens_b: FrozenSet[str]) -> float:
    union = tokens_a | tokens_b
    if not union:
        return 0.0
    return len(tokens_a & tokens_b) / len(union)


class ProductMatcher:
    """Pairs competitor listings with catalog products.

    Re-running the matcher over the same listings preserves reviewer
    decisions: CONFIRMED and REJECTED matches pass through untouched and
    open matches only have their confidence refreshed.

    Attributes:
        config: Similarity thresholds
    """

    def __init__(self, config: Optional[MatchingConfig] = None):
        """
        Initialize matcher.

        Args:
            config: Matching thresholds (defaults if omitted)
        """
        self.config = config or MatchingConfig()

    def similarity(self, product: Product, listing: RawListing) -> float:
        """Score how likely a listing is the same item as a product.

        A shared SKU (case-insensitive) lifts the name score to at least
        config.sku_match_score.

        Args:
            product: Catalog product
            listing: Competitor listing

        Returns:
            Similarity in [0, 1]
        """
        score = name_similarity(product.name, listing.name)
        if self._same_sku(product.sku, listing.sku):
            score = max(score, self.config.sku_match_score)
        return score

    def classify(self, similarity: float) -> Optional[MatchStatus]:
        """Map a similarity score to the status of a new match.

        Returns:
            AUTO_MATCHED, PENDING, or None when too weak to create a match
        """
        if similarity >= self.config.auto_match_threshold:
            return MatchStatus.AUTO_MATCHED
        if similarity >= self.config.review_threshold:
            return MatchStatus.PENDING
        return None

    def match(
        self,
        products: Sequence[Product],
        listings: Sequence[RawListing],
        existing: Iterable[Match] = (),
        report: Optional[RunReport] = None,
        now: Optional[datetime] = None
    ) -> List[Match]:
        """Match listings to products, preserving existing reviewer decisions.

        Existing matches come first in the output, in input order: terminal
        ones unchanged, open ones with refreshed confidence. New matches
        follow in listing order for listings that had no match yet.

        Args:
            products: Catalog snapshot
            listings: Scraped competitor listings
            existing: Matches persisted by earlier runs
            report: Run report receiving per-listing failures and counters
            now: Creation timestamp for new matches

        Returns:
            Complete list of matches after this pass
        """
        report = report if report is not None else RunReport()
        handler = ErrorHandler(report)
        now = now or datetime.now()

        existing = list(existing)
        products_by_id: Dict[str, Product] = {p.id: p for p in products}
        listings_by_ref: Dict[ListingRef, RawListing] = {}
        for listing in listings:
            listings_by_ref.setdefault(listing.ref, listing)

        result: List[Match] = []
        matched_refs = set()

        for current in existing:
            matched_refs.add(current.listing_ref)
            refreshed = self._refresh(current, products_by_id, listings_by_ref, handler)
            if refreshed is not current:
                report.increment('matches_rescored')
            result.append(refreshed)

        candidates = self._prepare_candidates(products)
        for listing in listings:
            if listing.ref in matched_refs:
                continue
            matched_refs.add(listing.ref)

            best = handler.isolate(
                self._best_candidate, candidates, listing, subject=str(listing.ref)
            )
            if best is None:
                continue
            product, score = best
            status = self.classify(score)
            if status is None:
                report.increment('listings_unmatched')
                continue

            result.append(Match(
                id=make_match_id(product.id, listing.ref),
                product_id=product.id,
                listing_ref=listing.ref,
                confidence=score,
                status=status,
                created_at=now,
            ))
            report.increment(f"matches_{status.value.lower()}")

        logger.info(
            f"Matched {len(listings)} listings against {len(products)} products: "
            f"{len(result) - len(existing)} new, {len(existing)} existing"
        )
        return result

    def manual_match(
        self,
        product: Product,
        listing: RawListing,
        now: Optional[datetime] = None
    ) -> Match:
        """Create a reviewer-chosen pairing, confirmed on creation.

        Args:
            product: Catalog product picked by the reviewer
            listing: Competitor listing picked by the reviewer

        Returns:
            CONFIRMED match carrying the computed similarity as confidence
        """
        match = Match(
            id=make_match_id(product.id, listing.ref),
            product_id=product.id,
            listing_ref=listing.ref,
            confidence=self.similarity(product, listing),
            status=MatchStatus.CONFIRMED,
            created_at=now or datetime.now(),
        )
        logger.info(f"Manual match {match.id}: product {product.id} <-> {listing.ref}")
        return match

    def _refresh(
        self,
        current: Match,
        products_by_id: Dict[str, Product],
        listings_by_ref: Dict[ListingRef, RawListing],
        handler: ErrorHandler
    ) -> Match:
        if current.status.is_terminal:
            return current
        product = products_by_id.get(current.product_id)
        listing = listings_by_ref.get(current.listing_ref)
        if product is None or listing is None:
            return current

        score = handler.isolate(self.similarity, product, listing, subject=str(current.listing_ref))
        if score is None or score == current.confidence:
            return current
        # Status is a reviewer concern; only the score moves
        return replace(current, confidence=score)

    def _prepare_candidates(
        self,
        products: Sequence[Product]
    ) -> List[Tuple[Product, str, FrozenSet[str]]]:
        # Ascending id order so the first best score is the lowest id
        ordered = sorted(products, key=lambda p: p.id)
        candidates = []
        for product in ordered:
            canonical = normalize_title(product.name)
            candidates.append((product, canonical, frozenset(tokenize(canonical))))
        return candidates

    def _best_candidate(
        self,
        candidates: List[Tuple[Product, str, FrozenSet[str]]],
        listing: RawListing
    ) -> Optional[Tuple[Product, float]]:
        canonical = normalize_title(listing.name)
        tokens = frozenset(tokenize(canonical))

        best: Optional[Tuple[Product, float]] = None
        for product, product_canonical, product_tokens in candidates:
            if canonical and canonical == product_canonical:
                score = 1.0
            else:
                score = _jaccard(tokens, product_tokens)
            if self._same_sku(product.sku, listing.sku):
                score = max(score, self.config.sku_match_score)
            if best is None or score > best[1]:
                best = (product, score)
        return best

    @staticmethod
    def _same_sku(sku_a: Optional[str], sku_b: Optional[str]) -> bool:
        if not sku_a or not sku_b:
            return False
        sku_a, sku_b = sku_a.strip().lower(), sku_b.strip().lower()
        return bool(sku_a) and sku_a == sku_b
