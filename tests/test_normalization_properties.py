"""
Property-based tests for title normalization.

These tests verify universal properties that should hold for every input
to the title normalizer.
"""

import re

from hypothesis import given, settings, strategies as st

from pricematch.normalization import normalize_title, tokenize


# Strategy for generating arbitrary titles, including absent ones
titles = st.one_of(st.none(), st.text(max_size=200))

# Strategy for generating accented product names
accented_names = st.text(
    alphabet="aáàâäeéèêëiíìîïoóòôöuúùûücçnñ AEIOU",
    min_size=1,
    max_size=50
)


@given(text=titles)
@settings(max_examples=200)
def test_normalize_is_total_and_idempotent(text):
    """
    **Feature: price-match-engine, Property 1: Normalization idempotence**

    For any string or None, normalizing twice yields the same result as
    normalizing once, and normalization never raises.
    """
    once = normalize_title(text)
    twice = normalize_title(once)

    assert isinstance(once, str)
    assert once == twice, f"normalize is not idempotent for {text!r}: {once!r} vs {twice!r}"


@given(text=titles)
@settings(max_examples=200)
def test_normalize_output_alphabet(text):
    """
    **Feature: price-match-engine, Property 2: Canonical alphabet**

    For any input, the canonical form contains only lowercase ASCII letters,
    digits and single inner spaces.
    """
    canonical = normalize_title(text)

    assert re.fullmatch(r'[a-z0-9 ]*', canonical), f"Unexpected characters in {canonical!r}"
    assert canonical == canonical.strip()
    assert "  " not in canonical


@given(name=accented_names)
@settings(max_examples=100)
def test_accents_reduce_to_base_letters(name):
    """
    **Feature: price-match-engine, Property 3: Diacritic stripping**

    For any accented name, the canonical form has no accented letters and
    keeps one base letter per input letter.
    """
    canonical = normalize_title(name)
    letters_in = sum(1 for ch in name if ch.isalpha())
    letters_out = sum(1 for ch in canonical if ch.isalpha())

    assert letters_in == letters_out
    assert all(ch in "abcdefghijklmnopqrstuvwxyz " for ch in canonical)


def test_cafe_noir_example():
    """Test the documented example."""
    assert normalize_title("Café   Noir!!") == "cafe noir"


def test_empty_inputs():
    """Test that None and empty strings normalize to an empty string."""
    assert normalize_title(None) == ""
    assert normalize_title("") == ""
    assert normalize_title("   ") == ""
    assert normalize_title("!!!") == ""


def test_punctuation_and_case():
    """Test that punctuation is dropped and case folded."""
    assert normalize_title("USB-C Cable") == "usb c cable"
    assert normalize_title("  Nike Air-Max 90 (Black) ") == "nike air max 90 black"
    assert normalize_title("Levi's 501") == "levis 501"
    assert normalize_title("Crème Brûlée\tMix\r\n500g") == "creme brulee mix 500g"


def test_tokenize_skips_empty_tokens():
    """Test that tokenization of canonical strings yields no empty tokens."""
    assert tokenize("") == []
    assert tokenize("usb c cable") == ["usb", "c", "cable"]
