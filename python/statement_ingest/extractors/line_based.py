"""
Line-Based Row Extractor

Matches text lines extracted from page-oriented statements against ordered
"date, free text, trailing amount" patterns. Lines that match none of the
patterns (headings, totals, prose) are skipped.
"""

import logging
import re
from typing import Iterator

from .base import BaseExtractor, RawRow, RowKind

logger = logging.getLogger(__name__)

_AMOUNT = r"\$?(?P<amount>[\d,]+(?:\.\d{1,2})?)"

# First match wins
LINE_PATTERNS = (
    # MM/DD/YYYY DESCRIPTION $AMOUNT
    re.compile(r"^(?P<date>\d{1,2}/\d{1,2}/\d{4})\s+(?P<description>.+?)\s+" + _AMOUNT + r"$"),
    # MM/DD DESCRIPTION $AMOUNT
    re.compile(r"^(?P<date>\d{1,2}/\d{1,2})\s+(?P<description>.+?)\s+" + _AMOUNT + r"$"),
    # YYYY-MM-DD DESCRIPTION AMOUNT
    re.compile(r"^(?P<date>\d{4}-\d{2}-\d{2})\s+(?P<description>.+?)\s+" + _AMOUNT + r"$"),
)


class LineExtractor(BaseExtractor):
    """Regex extraction of transactions from plain text lines."""

    STRATEGY = "line"

    def __init__(self, patterns: tuple[re.Pattern, ...] = LINE_PATTERNS):
        self.patterns = patterns

    def match_line(self, line: str) -> dict[str, str] | None:
        """Match a single trimmed line.

        Args:
            line: Text line

        Returns:
            Captured date, description and amount, or None
        """
        for pattern in self.patterns:
            match = pattern.match(line)
            if match:
                return {
                    "date": match.group("date"),
                    "description": " ".join(match.group("description").split()),
                    "amount": match.group("amount"),
                }
        return None

    def extract(self, content: str) -> Iterator[RawRow]:
        content = self._preprocess_content(content)

        for line_number, line in enumerate(content.split("\n"), start=1):
            line = line.strip()
            if not line:
                continue

            captured = self.match_line(line)
            if captured is None:
                continue

            yield RawRow(
                kind=RowKind.LINE,
                fields=dict(captured),
                line_number=line_number,
                raw_text=line,
            )
