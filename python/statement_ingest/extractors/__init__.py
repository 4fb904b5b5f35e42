"""
Row extractors for delimited and line-oriented statement content.
"""

from .base import BaseExtractor, RawRow, RowKind
from .delimited import DelimitedExtractor, PositionalLayout
from .line_based import LINE_PATTERNS, LineExtractor

__all__ = [
    "BaseExtractor",
    "RawRow",
    "RowKind",
    "DelimitedExtractor",
    "PositionalLayout",
    "LineExtractor",
    "LINE_PATTERNS",
]
