"""
Statement Ingestion Module

Parses CSV and PDF card statements, categorizes the transactions with an
ordered keyword rule table, skips re-uploaded rows and stores the rest.
"""

from .builder import TransactionBuilder, extract_merchant_name
from .categorizer import CategoryRule, Classification, TransactionCategorizer, load_rules
from .database import create_db_engine, get_database_url
from .duplicate_detector import DuplicateDetector, DuplicateKey
from .exceptions import (
    IngestionError,
    UnsupportedFileType,
    UnreadableFile,
    EmptyExtraction,
    RowBuildFailure,
    PersistenceError,
)
from .extractors import DelimitedExtractor, LineExtractor, PositionalLayout, RawRow, RowKind
from .ingestion import (
    IngestionReport,
    IngestionState,
    RecategorizeResult,
    StatementIngestor,
    recategorize_transactions,
)
from .models import (
    Category,
    IngestionStatus,
    IngestionSummary,
    ParsedTransaction,
    Source,
    StoredTransaction,
)
from .normalizer import parse_amount, parse_date
from .pdf_extractor import PDFTextExtractor
from .repository import SQLRepository, TransactionRepository
from .settings import IngestionSettings, load_settings

__all__ = [
    # Normalization
    "parse_date",
    "parse_amount",
    # Extraction
    "RawRow",
    "RowKind",
    "DelimitedExtractor",
    "PositionalLayout",
    "LineExtractor",
    "PDFTextExtractor",
    # Building
    "TransactionBuilder",
    "extract_merchant_name",
    # Categorization
    "TransactionCategorizer",
    "CategoryRule",
    "Classification",
    "load_rules",
    # Duplicate Detection
    "DuplicateDetector",
    "DuplicateKey",
    # Ingestion
    "StatementIngestor",
    "IngestionReport",
    "IngestionState",
    "RecategorizeResult",
    "recategorize_transactions",
    # Models
    "ParsedTransaction",
    "StoredTransaction",
    "Category",
    "Source",
    "IngestionSummary",
    "IngestionStatus",
    # Persistence
    "TransactionRepository",
    "SQLRepository",
    "create_db_engine",
    "get_database_url",
    # Settings
    "IngestionSettings",
    "load_settings",
    # Errors
    "IngestionError",
    "UnsupportedFileType",
    "UnreadableFile",
    "EmptyExtraction",
    "RowBuildFailure",
    "PersistenceError",
]
