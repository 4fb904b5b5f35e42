"""
Base Row Extractor Module

Raw row record and the abstract extractor interface.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator


class RowKind(Enum):
    """How a raw row's fields are keyed."""

    HEADER = "header"  # column name -> value
    POSITIONAL = "positional"  # column index -> value
    LINE = "line"  # date/description/amount captured from a text line


@dataclass
class RawRow:
    """One record decoded from a statement file."""

    kind: RowKind
    fields: dict[str | int, str] = field(default_factory=dict)
    line_number: int = 0
    raw_text: str = ""

    def get(self, key: str | int, default: str = "") -> str:
        return self.fields.get(key, default)


class BaseExtractor(ABC):
    """Produces raw rows from decoded statement content."""

    STRATEGY: str = "unknown"

    @abstractmethod
    def extract(self, content: str) -> Iterator[RawRow]:
        """Yield raw rows in source order.

        Args:
            content: Decoded file content

        Yields:
            RawRow records
        """

    def _preprocess_content(self, content: str) -> str:
        """Remove a BOM and normalize line endings."""
        if content.startswith("\ufeff"):
            content = content[1:]

        return content.replace("\r\n", "\n").replace("\r", "\n")
