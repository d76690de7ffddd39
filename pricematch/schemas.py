"""Output records handed to persistence and presentation collaborators"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from pricematch.error_handling import RunReport
from pricematch.models import (
    Direction,
    Match,
    MatchStatus,
    ProductRecommendation,
    RecommendationStatus,
)


class CompetitorSlotRecord(BaseModel):
    """Competitor price entry of a recommendation"""
    label: str
    name: Optional[str] = None
    url: Optional[str] = None
    old_price: Optional[float] = None
    new_price: Optional[float] = None
    change_percent: Optional[float] = None
    source: str = "Store"

    class Config:
        from_attributes = True


class MatchRecord(BaseModel):
    """Stored product/listing pairing"""
    id: str
    product_id: str
    store_id: Optional[str] = None
    competitor_product_id: str
    confidence: float = Field(ge=0.0, le=1.0)
    status: MatchStatus
    created_at: datetime

    @classmethod
    def from_match(cls, match: Match) -> "MatchRecord":
        return cls(
            id=match.id,
            product_id=match.product_id,
            store_id=match.listing_ref.store_id,
            competitor_product_id=match.listing_ref.competitor_product_id,
            confidence=match.confidence,
            status=match.status,
            created_at=match.created_at,
        )


class RecommendationRecord(BaseModel):
    """Price recommendation as stored and displayed"""
    product_id: str
    product_name: str
    product_sku: Optional[str] = None
    product_price: float
    currency: str
    recommended_price: float
    change_percent: float
    direction: Direction
    competitor_avg: float
    competitor_count: int
    margin_floor: Optional[float] = None
    floor_applied: bool = False
    explanation: str
    competitors: List[CompetitorSlotRecord] = Field(default_factory=list)
    status: RecommendationStatus

    class Config:
        from_attributes = True

    @classmethod
    def from_recommendation(cls, recommendation: ProductRecommendation) -> "RecommendationRecord":
        return cls.model_validate(recommendation)


class RunReportRecord(BaseModel):
    """Counts and sample warnings of a run"""
    counts: Dict[str, int] = Field(default_factory=dict)
    samples: Dict[str, List[str]] = Field(default_factory=dict)

    @classmethod
    def from_report(cls, report: RunReport) -> "RunReportRecord":
        return cls(**report.summary())
