"""
Ingestion module for catalog CSV uploads.

This module parses uploaded CSV text, maps its columns to catalog fields,
and converts rows into Product records.
"""

from .catalog_importer import CatalogImporter, ImportResult, parse_number
from .column_mapper import ColumnMapper, ColumnMapping, MappingValidation
from .csv_parser import CsvParser, ParsedCsv, Row

__all__ = [
    'CatalogImporter',
    'ImportResult',
    'parse_number',
    'ColumnMapper',
    'ColumnMapping',
    'MappingValidation',
    'CsvParser',
    'ParsedCsv',
    'Row',
]
