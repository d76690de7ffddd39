"""
Column auto-mapping for catalog CSV uploads.

Maps arbitrary CSV headers onto the canonical catalog fields using
priority-ordered alias lists.
"""

import logging
from dataclasses import dataclass, field, fields, replace
from typing import Dict, List, Optional, Sequence

from pricematch.error_handling import MissingRequiredFieldError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColumnMapping:
    """Which CSV header feeds each catalog field (None when unmapped)."""
    name: Optional[str] = None
    sku: Optional[str] = None
    price: Optional[str] = None
    cost: Optional[str] = None
    inventory: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        """Mapped fields only."""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name)}


@dataclass(frozen=True)
class MappingValidation:
    """Outcome of checking a mapping for required fields."""
    valid: bool
    missing: List[str] = field(default_factory=list)


class ColumnMapper:
    """Maps CSV headers to catalog fields.

    Fields are processed in FIELD_ALIASES order. A header can be claimed
    by one field only and the first claim wins.
    """

    FIELD_ALIASES: Dict[str, List[str]] = {
        'name': ['name', 'product_name', 'title'],
        'sku': ['sku', 'id', 'product_id', 'code'],
        'price': ['price', 'currentprice', 'current_price', 'our_price', 'cena', 'price_with_vat'],
        'cost': ['cost', 'buy_price', 'purchase_price'],
        'inventory': ['inventory', 'stock', 'qty', 'quantity'],
    }

    REQUIRED_FIELDS = ('name', 'sku', 'price')

    def auto_map(self, headers: Sequence[str]) -> ColumnMapping:
        """Guess the source column for every catalog field.

        Pass 1 looks for exact (case-insensitive) alias matches; pass 2
        runs only for fields still unmapped and accepts an alias contained
        in a header or a header contained in an alias.

        Args:
            headers: CSV headers in file order

        Returns:
            ColumnMapping holding original-case header names

        Examples:
            >>> ColumnMapper().auto_map(["Product Name", "SKU", "Price"]).to_dict()
            {'name': 'Product Name', 'sku': 'SKU', 'price': 'Price'}
        """
        normalized = [h.strip().lower() for h in headers]
        claimed = set()
        mapping: Dict[str, str] = {}

        # Pass 1: exact alias match
        for field_name, aliases in self.FIELD_ALIASES.items():
            index = self._find_exact(normalized, aliases, claimed)
            if index is not None:
                claimed.add(index)
                mapping[field_name] = headers[index]

        # Pass 2: substring match for fields still unmapped
        for field_name, aliases in self.FIELD_ALIASES.items():
            if field_name in mapping:
                continue
            index = self._find_partial(normalized, aliases, claimed)
            if index is not None:
                claimed.add(index)
                mapping[field_name] = headers[index]

        logger.debug(f"Auto-mapped columns {list(headers)} to {mapping}")
        return ColumnMapping(**mapping)

    def merge(self, mapping: ColumnMapping, overrides: Optional[Dict[str, Optional[str]]]) -> ColumnMapping:
        """Apply manual per-field overrides on top of a mapping.

        Args:
            mapping: Auto-generated mapping
            overrides: Field name to header (None unmaps the field)

        Returns:
            New mapping with overrides applied

        Raises:
            ValueError: If an override names an unknown field
        """
        if not overrides:
            return mapping
        unknown = set(overrides) - set(self.FIELD_ALIASES)
        if unknown:
            raise ValueError(f"Unknown catalog fields in override: {sorted(unknown)}")
        return replace(mapping, **overrides)

    def validate(self, mapping: ColumnMapping) -> MappingValidation:
        """Check that name, sku and price are mapped."""
        missing = [name for name in self.REQUIRED_FIELDS if not getattr(mapping, name)]
        return MappingValidation(valid=not missing, missing=missing)

    def require_valid(self, mapping: ColumnMapping) -> ColumnMapping:
        """Return the mapping, raising MissingRequiredFieldError if incomplete."""
        validation = self.validate(mapping)
        if not validation.valid:
            raise MissingRequiredFieldError(validation.missing)
        return mapping

    def _find_exact(self, normalized: List[str], aliases: List[str], claimed: set) -> Optional[int]:
        for alias in aliases:
            for index, header in enumerate(normalized):
                if index not in claimed and header == alias:
                    return index
        return None

    def _find_partial(self, normalized: List[str], aliases: List[str], claimed: set) -> Optional[int]:
        for alias in aliases:
            for index, header in enumerate(normalized):
                if index in claimed or not header:
                    continue
                if alias in header or header in alias:
                    return index
        return None
