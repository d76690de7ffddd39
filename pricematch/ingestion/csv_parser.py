"""
CSV parsing for catalog uploads.

This module turns raw comma-delimited text into a header list and a list
of row mappings. Parsing is best-effort per row: a malformed row is skipped
with a RowParseWarning and never aborts the batch.
"""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from pricematch.error_handling import EmptyInputError, RowParseWarning


logger = logging.getLogger(__name__)


_LINE_BREAK = re.compile(r'\r?\n')


class Row(Mapping):
    """A parsed CSV row keyed by header.

    Every header is present as a key; cells the row did not supply are
    empty strings. Use get_value for explicit absence handling.

    Attributes:
        line_number: 1-based physical line where the row starts
    """

    def __init__(self, values: Dict[str, str], line_number: int = 0):
        self._values = dict(values)
        self.line_number = line_number

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Row(line={self.line_number}, {self._values!r})"

    def get_value(self, column: Optional[str]) -> Optional[str]:
        """Look up a cell by column name.

        Args:
            column: Header name, or None for an unmapped field

        Returns:
            The trimmed cell text, or None if the column is unmapped,
            unknown, or the cell is empty
        """
        if column is None:
            return None
        value = self._values.get(column)
        return value if value else None


@dataclass
class ParsedCsv:
    """Result of parsing a CSV upload.

    Attributes:
        headers: Trimmed header names in file order
        rows: Parsed data rows
        warnings: Rows skipped because they could not be parsed
    """
    headers: List[str]
    rows: List[Row] = field(default_factory=list)
    warnings: List[RowParseWarning] = field(default_factory=list)


class CsvParser:
    """Parses comma-delimited text with double-quote quoting.

    Quoted fields may contain commas and line breaks, and a doubled quote
    inside a quoted field is a literal quote.
    """

    SAMPLE_LENGTH = 80

    def parse(self, text: Optional[str]) -> ParsedCsv:
        """Parse CSV text into headers and rows.

        Args:
            text: Raw CSV text

        Returns:
            ParsedCsv with headers, rows and per-row warnings

        Raises:
            EmptyInputError: If the text holds no non-blank line
        """
        lines = _LINE_BREAK.split(text or "")
        if not any(line.strip() for line in lines):
            raise EmptyInputError()

        headers: Optional[List[str]] = None
        rows: List[Row] = []
        warnings: List[RowParseWarning] = []

        index = 0
        while index < len(lines):
            if not lines[index].strip():
                index += 1
                continue

            fields, consumed = self._read_record(lines, index)
            # A multi-line record wider than the header swallowed later rows
            absorbed_rows = (
                consumed > 1 and headers is not None and len(fields or ()) > len(headers)
            )
            if fields is None or absorbed_rows:
                warning = RowParseWarning(
                    line_number=index + 1,
                    message="unbalanced quote; row skipped",
                    sample=lines[index][:self.SAMPLE_LENGTH],
                )
                warnings.append(warning)
                logger.warning(f"Skipping malformed CSV row at {warning}")
                # Resume on the next physical line
                index += 1
                continue

            if headers is None:
                headers = [h.strip() for h in fields]
            else:
                rows.append(self._build_row(headers, fields, index + 1))
            index += consumed

        if headers is None:
            raise EmptyInputError("CSV input has no parseable header row")

        logger.info(
            f"Parsed CSV with {len(headers)} columns, {len(rows)} rows, "
            f"{len(warnings)} skipped"
        )
        return ParsedCsv(headers=headers, rows=rows, warnings=warnings)

    def _read_record(
        self,
        lines: List[str],
        start: int
    ) -> Tuple[Optional[List[str]], int]:
        """Read one logical record starting at a physical line.

        Args:
            lines: All physical lines of the input
            start: Index of the first line of the record

        Returns:
            Tuple of (fields, lines consumed); fields is None when a quote
            is still open at the end of input
        """
        fields: List[str] = []
        current: List[str] = []
        in_quotes = False
        index = start
        line = lines[index]
        pos = 0

        while True:
            if pos >= len(line):
                if not in_quotes:
                    break
                # Quoted field continues on the next physical line
                index += 1
                if index >= len(lines):
                    return None, index - start
                current.append('\n')
                line = lines[index]
                pos = 0
                continue

            char = line[pos]
            if char == '"':
                if in_quotes and pos + 1 < len(line) and line[pos + 1] == '"':
                    current.append('"')
                    pos += 2
                    continue
                in_quotes = not in_quotes
            elif char == ',' and not in_quotes:
                fields.append(''.join(current))
                current = []
            else:
                current.append(char)
            pos += 1

        fields.append(''.join(current))
        return fields, index - start + 1

    def _build_row(self, headers: List[str], fields: List[str], line_number: int) -> Row:
        # Positional association: short rows pad with "", extra cells are dropped
        values = {}
        for position, header in enumerate(headers):
            values[header] = fields[position].strip() if position < len(fields) else ""
        return Row(values, line_number=line_number)
