"""
Recommendations module.

This module turns matched competitor prices into price recommendations
and keeps the competitor price history used for change display.
"""

from .engine import EXPLANATIONS, RecommendationEngine, count_waiting
from .price_history import PriceHistory, PriceRecord, compute_price_hash

__all__ = [
    'EXPLANATIONS',
    'RecommendationEngine',
    'count_waiting',
    'PriceHistory',
    'PriceRecord',
    'compute_price_hash',
]
