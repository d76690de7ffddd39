"""
Matching module for competitor listings.

This module pairs scraped competitor listings with catalog products and
scores each pairing.
"""

from .matcher import ProductMatcher, make_match_id, name_similarity, token_similarity

__all__ = ['ProductMatcher', 'make_match_id', 'name_similarity', 'token_similarity']
