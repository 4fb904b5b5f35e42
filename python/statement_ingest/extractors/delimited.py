"""
Delimited Row Extractor

Reads CSV-like statement exports. A recognizable first record is used as the
header; otherwise every record is read positionally using a fixed layout.
"""

import csv
import logging
from dataclasses import dataclass
from io import StringIO
from typing import Iterator

from ..exceptions import UnreadableFile
from ..normalizer import parse_date
from .base import BaseExtractor, RawRow, RowKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PositionalLayout:
    """Column indices for header-less exports."""

    date_index: int = 0
    amount_index: int = 1
    description_index: int = 4
    min_columns: int = 5

    @classmethod
    def from_dict(cls, data: dict | None) -> "PositionalLayout":
        if not data:
            return cls()
        return cls(
            date_index=int(data.get("date_index", 0)),
            amount_index=int(data.get("amount_index", 1)),
            description_index=int(data.get("description_index", 4)),
            min_columns=int(data.get("min_columns", 5)),
        )


class DelimitedExtractor(BaseExtractor):
    """Header-driven or positional extraction of delimited text."""

    STRATEGY = "delimited"

    HEADER_TOKENS = (
        "date", "description", "amount", "transaction",
        "debit", "credit", "name", "memo",
    )

    def __init__(self, layout: PositionalLayout | None = None, delimiter: str = ","):
        """Initialize the extractor.

        Args:
            layout: Column layout used when the file has no header
            delimiter: Field delimiter
        """
        self.layout = layout or PositionalLayout()
        self.delimiter = delimiter

    def is_header(self, record: list[str]) -> bool:
        """Check whether a record looks like a header row.

        A record whose first field is a date is always data.
        """
        if not record:
            return False

        if parse_date(record[0]) is not None:
            return False

        for value in record:
            value_lower = value.lower()
            if any(token in value_lower for token in self.HEADER_TOKENS):
                return True

        return False

    def extract(self, content: str) -> Iterator[RawRow]:
        """Yield raw rows in source order.

        Raises:
            UnreadableFile: If the content is not valid delimited text
        """
        content = self._preprocess_content(content)
        reader = csv.reader(StringIO(content), delimiter=self.delimiter)

        try:
            first = next(reader, None)
            if first is None:
                return

            if self.is_header(first):
                headers = [h.strip() for h in first]
                logger.debug(f"Header row detected: {headers}")
                yield from self._header_rows(headers, reader)
            else:
                logger.debug("No header row detected, reading positionally")
                yield from self._positional_rows(first, reader)
        except csv.Error as e:
            raise UnreadableFile(
                f"Malformed CSV near line {reader.line_num}: {e}",
                details=[str(e)]
            ) from e

    def _header_rows(
        self,
        headers: list[str],
        reader: Iterator[list[str]]
    ) -> Iterator[RawRow]:
        for record in reader:
            if not any(value.strip() for value in record):
                continue

            fields: dict[str | int, str] = {
                header: value for header, value in zip(headers, record)
            }
            yield RawRow(
                kind=RowKind.HEADER,
                fields=fields,
                line_number=reader.line_num,
                raw_text=self.delimiter.join(record),
            )

    def _positional_rows(
        self,
        first: list[str],
        reader: Iterator[list[str]]
    ) -> Iterator[RawRow]:
        records = [(1, first)]
        for line_number, record in self._numbered(reader, records):
            if len(record) < self.layout.min_columns:
                logger.debug(
                    f"Line {line_number}: {len(record)} columns, "
                    f"expected at least {self.layout.min_columns}"
                )
                continue

            fields: dict[str | int, str] = {
                index: value.replace('"', "").strip()
                for index, value in enumerate(record)
            }
            yield RawRow(
                kind=RowKind.POSITIONAL,
                fields=fields,
                line_number=line_number,
                raw_text=self.delimiter.join(record),
            )

    @staticmethod
    def _numbered(reader, pending: list[tuple[int, list[str]]]) -> Iterator[tuple[int, list[str]]]:
        yield from pending
        for record in reader:
            yield reader.line_num, record
