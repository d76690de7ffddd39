"""
Catalog import from CSV uploads.

Combines parsing, column mapping and required-field validation, then
converts each row into a Product. Mapping problems abort the import;
row problems skip the row and are collected into the run report.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from pricematch.config import EngineSettings, get_engine_settings
from pricematch.error_handling import RowParseWarning, RunReport
from pricematch.ingestion.column_mapper import ColumnMapper, ColumnMapping
from pricematch.ingestion.csv_parser import CsvParser, Row
from pricematch.models import Product


logger = logging.getLogger(__name__)


# Comma-grouped integers such as "1,234" or "1,234,567"
_THOUSANDS = re.compile(r'-?\d{1,3}(?:,\d{3})+')


@dataclass
class ImportResult:
    """Products built from a CSV upload.

    Attributes:
        products: Valid catalog products in file order
        mapping: Column mapping that was applied
        report: Skipped rows and counters for this import
    """
    products: List[Product]
    mapping: ColumnMapping
    report: RunReport = field(default_factory=RunReport)


class CatalogImporter:
    """Builds catalog products from CSV text."""

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        parser: Optional[CsvParser] = None,
        mapper: Optional[ColumnMapper] = None
    ):
        self.settings = settings or get_engine_settings()
        self.parser = parser or CsvParser()
        self.mapper = mapper or ColumnMapper()

    def import_csv(
        self,
        text: str,
        overrides: Optional[Dict[str, Optional[str]]] = None,
        currency: Optional[str] = None
    ) -> ImportResult:
        """Parse, map and convert a CSV upload.

        Args:
            text: Raw CSV text
            overrides: Manual field-to-header choices applied over auto-mapping
            currency: Currency of prices in the file (configured default if omitted)

        Returns:
            ImportResult with products, applied mapping and report

        Raises:
            EmptyInputError: If the text holds no rows at all
            MissingRequiredFieldError: If name, sku or price stay unmapped
        """
        parsed = self.parser.parse(text)
        mapping = self.mapper.merge(self.mapper.auto_map(parsed.headers), overrides)
        self.mapper.require_valid(mapping)

        report = RunReport(max_samples=self.settings.report.max_samples)
        report.extend(parsed.warnings)

        currency = currency or self.settings.importing.default_currency
        products: List[Product] = []
        seen_skus = set()

        for row in parsed.rows:
            product = self._row_to_product(row, mapping, currency, report)
            if product is None:
                continue
            if product.sku in seen_skus:
                report.add_warning(RowParseWarning(
                    line_number=row.line_number,
                    message=f"duplicate sku {product.sku!r}; row skipped",
                ))
                continue
            seen_skus.add(product.sku)
            products.append(product)

        report.increment('rows_imported', len(products))
        logger.info(
            f"Imported {len(products)} of {len(parsed.rows)} rows "
            f"({report.warning_count} warnings)"
        )
        return ImportResult(products=products, mapping=mapping, report=report)

    def _row_to_product(
        self,
        row: Row,
        mapping: ColumnMapping,
        currency: str,
        report: RunReport
    ) -> Optional[Product]:
        name = row.get_value(mapping.name)
        sku = row.get_value(mapping.sku)
        price_text = row.get_value(mapping.price)

        missing = [
            label for label, value in (('name', name), ('sku', sku), ('price', price_text))
            if value is None
        ]
        if missing:
            report.add_warning(RowParseWarning(
                line_number=row.line_number,
                message=f"missing {', '.join(missing)}; row skipped",
            ))
            return None

        price = parse_number(price_text)
        if price is None or price < 0:
            report.add_warning(RowParseWarning(
                line_number=row.line_number,
                message=f"invalid price {price_text!r}; row skipped",
                sample=price_text,
            ))
            return None

        cost = self._optional_number(row, mapping.cost, 'cost', report)
        inventory = self._optional_number(row, mapping.inventory, 'inventory', report)

        return Product(
            id=sku,
            name=name,
            sku=sku,
            current_price=price,
            currency=currency,
            cost=cost,
            inventory=int(inventory) if inventory is not None else None,
        )

    def _optional_number(
        self,
        row: Row,
        column: Optional[str],
        label: str,
        report: RunReport
    ) -> Optional[float]:
        text = row.get_value(column)
        if text is None:
            return None
        value = parse_number(text)
        if value is None:
            # Optional field: keep the row, drop the value
            report.add_warning(RowParseWarning(
                line_number=row.line_number,
                message=f"invalid {label} {text!r}; value ignored",
                sample=text,
            ))
        return value


def parse_number(text: Optional[str]) -> Optional[float]:
    """Parse a numeric cell such as "12.50", "$1,234", "$1,234.00" or "12,50".

    Args:
        text: Cell text

    Returns:
        Float value, or None if the text is not a number
    """
    if not text:
        return None

    cleaned = re.sub(r'[\s$€£¥]|Kč', '', text)
    if ',' in cleaned and '.' in cleaned:
        cleaned = cleaned.replace(',', '')
    elif _THOUSANDS.fullmatch(cleaned):
        cleaned = cleaned.replace(',', '')
    elif ',' in cleaned:
        # Decimal comma
        cleaned = cleaned.replace(',', '.')

    try:
        value = float(cleaned)
    except ValueError:
        return None
    if value != value or value in (float('inf'), float('-inf')):
        return None
    return value
