"""
Title normalization for product matching.

Canonical forms are used only for comparison, never for display.
"""

import re
import unicodedata
from typing import List, Optional


_APOSTROPHES = re.compile(r"['’]")
_NON_ALNUM = re.compile(r'[^a-z0-9\s]')
_WHITESPACE = re.compile(r'\s+')


def normalize_title(text: Optional[str]) -> str:
    """Canonicalize a free-text product name.

    Lowercases, strips diacritics, replaces punctuation with a word break
    (apostrophes are simply dropped) and collapses whitespace. Total and
    idempotent.

    Args:
        text: Product or listing name, may be None

    Returns:
        Canonical form, empty string for None or empty input

    Examples:
        >>> normalize_title("Café   Noir!!")
        'cafe noir'
    """
    if not text:
        return ""

    decomposed = unicodedata.normalize('NFD', text.lower())
    stripped = ''.join(ch for ch in decomposed if not unicodedata.combining(ch))
    # Lowercasing after decomposition catches letters whose base form is uppercase
    cleaned = _NON_ALNUM.sub(' ', _APOSTROPHES.sub('', stripped.lower()))
    return _WHITESPACE.sub(' ', cleaned).strip()


def tokenize(canonical: str) -> List[str]:
    """Split a canonical string into its space-separated tokens."""
    return [token for token in canonical.split(' ') if token]
