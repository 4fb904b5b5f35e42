"""
Statement Ingestion Module

Runs one uploaded statement through detection, extraction, categorization,
duplicate filtering and storage, and records the outcome.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from uuid import uuid4

from .builder import TransactionBuilder
from .categorizer import TransactionCategorizer
from .duplicate_detector import DuplicateDetector
from .exceptions import (
    IngestionError,
    PersistenceError,
    RowBuildFailure,
    UnreadableFile,
    UnsupportedFileType,
    EmptyExtraction,
)
from .extractors import BaseExtractor, DelimitedExtractor, LineExtractor
from .models import IngestionStatus, IngestionSummary, ParsedTransaction, StoredTransaction
from .pdf_extractor import PDF_MAGIC, PDFTextExtractor
from .repository import TransactionRepository
from .settings import IngestionSettings, load_settings

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_ID = "default_credit_card"


class IngestionState(Enum):
    """Pipeline stage of one upload."""

    RECEIVED = "received"
    DETECTING = "detecting"
    EXTRACTING = "extracting"
    STORING = "categorizing_storing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class IngestionReport:
    """Outcome of ingesting one file."""

    file_name: str
    source_id: str
    summary_id: str | None = None
    file_type: str | None = None
    state: IngestionState = IngestionState.RECEIVED
    status: IngestionStatus = IngestionStatus.PROCESSING
    total_extracted: int = 0
    processed_count: int = 0
    duplicate_count: int = 0
    failed_count: int = 0
    preview: list[ParsedTransaction] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    error: str | None = None
    details: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status is IngestionStatus.COMPLETED

    @property
    def counts(self) -> dict[str, int]:
        return {
            "total_extracted": self.total_extracted,
            "processed_count": self.processed_count,
            "duplicate_count": self.duplicate_count,
            "failed_count": self.failed_count,
        }

    def to_dict(self) -> dict:
        data = {
            "summary_id": self.summary_id,
            "file_name": self.file_name,
            "source_id": self.source_id,
            "file_type": self.file_type,
            "status": self.status.value,
            **self.counts,
            "preview": [t.to_dict() for t in self.preview],
            "warnings": self.warnings,
        }
        if self.error:
            data["error"] = self.error
            data["details"] = self.details
        return data


@dataclass
class RecategorizeResult:
    """Outcome of re-running the categorizer over stored transactions."""

    updated: int = 0
    unchanged: int = 0
    total: int = 0

    def to_dict(self) -> dict:
        return {"updated": self.updated, "unchanged": self.unchanged, "total": self.total}


class StatementIngestor:
    """Ingests uploaded CSV and PDF statements."""

    def __init__(
        self,
        repository: TransactionRepository,
        categorizer: TransactionCategorizer | None = None,
        builder: TransactionBuilder | None = None,
        duplicate_detector: DuplicateDetector | None = None,
        pdf_extractor: PDFTextExtractor | None = None,
        settings: IngestionSettings | None = None
    ):
        """Initialize the ingestor.

        Args:
            repository: Transaction storage
            categorizer: Categorizer (built from config if not provided)
            builder: Transaction builder
            duplicate_detector: Duplicate filter (backed by repository if not provided)
            pdf_extractor: PDF text extractor
            settings: Ingestion settings (loaded from config if not provided)
        """
        self.settings = settings or load_settings()
        self.repository = repository
        self.categorizer = categorizer or TransactionCategorizer.from_config(self.settings.config_dir)
        self.builder = builder or TransactionBuilder(layout=self.settings.positional_layout)
        self.duplicate_detector = duplicate_detector or DuplicateDetector(repository)
        self.pdf_extractor = pdf_extractor or PDFTextExtractor()
        self.temp_dir = Path(self.settings.upload_dir)
        self.temp_dir.mkdir(parents=True, exist_ok=True)

    def validate_file(self, file_name: str, file_size: int) -> tuple[bool, str]:
        """Check an upload against the size limit before ingesting it.

        Empty files are left to ingestion, which reports them as unreadable.

        Args:
            file_name: Original file name
            file_size: File size in bytes

        Returns:
            Tuple of (is_valid, error_message)
        """
        if file_size > self.settings.max_file_size:
            return False, f"File too large: {file_name}. Maximum size: {self.settings.max_file_size_mb}MB"

        return True, ""

    def detect_file_type(self, file_name: str, content: bytes) -> str:
        """Detect the file type from content, then extension.

        Args:
            file_name: Original file name
            content: File content (at least the first 100 bytes)

        Returns:
            'pdf' or 'csv'

        Raises:
            UnreadableFile: If the content is empty
            UnsupportedFileType: If the content is neither PDF nor delimited text
        """
        if not content:
            raise UnreadableFile(f"File is empty: {file_name}")

        if content[:len(PDF_MAGIC)] == PDF_MAGIC:
            return "pdf"

        if Path(file_name).suffix.lower() == ".csv" or b"," in content[:100]:
            return "csv"

        raise UnsupportedFileType(
            "Unsupported file type. Use CSV or PDF files.",
            details=[f"Cannot process {file_name}"]
        )

    def save_upload(self, file_name: str, content: bytes) -> Path:
        """Write uploaded bytes to the temp directory.

        Args:
            file_name: Original file name
            content: File content

        Returns:
            Path to the saved file
        """
        ext = Path(file_name).suffix.lower()
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        safe_name = f"{timestamp}_{uuid4().hex[:8]}{ext}"

        file_path = self.temp_dir / safe_name
        file_path.write_bytes(content)
        return file_path

    def ingest(
        self,
        content: bytes,
        file_name: str,
        source_id: str = DEFAULT_SOURCE_ID
    ) -> IngestionReport:
        """Ingest one uploaded statement.

        Args:
            content: File content
            file_name: Original file name
            source_id: Card/account the statement belongs to

        Returns:
            IngestionReport with counts and a preview, or the failure reason
        """
        report = IngestionReport(file_name=file_name, source_id=source_id)
        logger.info(f"Processing file: {file_name} ({len(content)} bytes, source {source_id})")

        file_path = self.save_upload(file_name, content)
        try:
            summary = IngestionSummary(
                original_name=file_name,
                source_id=source_id,
                file_size=len(content),
                stored_name=file_path.name,
            )
            report.summary_id = self.repository.insert_ingestion_summary(summary)

            try:
                self._process(report, file_path, content)
            except IngestionError as e:
                self._fail(report, e)
            except Exception as e:
                logger.exception(f"Upload processing error for {file_name}")
                self._fail(report, IngestionError(f"File processing failed: {e}"))
                raise
        finally:
            self._remove(file_path)

        return report

    def _process(self, report: IngestionReport, file_path: Path, content: bytes) -> None:
        self._enter(report, IngestionState.DETECTING)
        report.file_type = self.detect_file_type(report.file_name, content[:100])

        self._enter(report, IngestionState.EXTRACTING)
        transactions = self.extract_transactions(file_path, report.file_type, report.warnings)
        report.total_extracted = len(transactions)

        if not transactions:
            raise EmptyExtraction("No transactions found in the file", details=report.warnings)

        self._enter(report, IngestionState.STORING)
        self._store(transactions, report)

        if report.processed_count == 0 and report.duplicate_count == 0:
            raise PersistenceError("No transactions could be stored", details=report.warnings)

        report.preview = transactions[:self.settings.preview_size]
        report.status = IngestionStatus.COMPLETED
        self.repository.update_ingestion_status(
            report.summary_id,
            IngestionStatus.COMPLETED,
            file_type=report.file_type,
            **report.counts
        )
        self._enter(report, IngestionState.COMPLETED)

        logger.info(
            f"Stored {report.processed_count} transactions, "
            f"skipped {report.duplicate_count} duplicates from {report.file_name}"
        )

    def extract_transactions(
        self,
        file_path: Path,
        file_type: str,
        warnings: list[str] | None = None
    ) -> list[ParsedTransaction]:
        """Extract and build transactions from a saved file.

        Rows that cannot be built are skipped and noted in warnings.

        Args:
            file_path: Saved upload
            file_type: 'csv' or 'pdf'
            warnings: List collecting per-row warnings

        Returns:
            Built transactions in source order

        Raises:
            UnreadableFile: If the file cannot be read as the detected type
        """
        warnings = warnings if warnings is not None else []

        extractor: BaseExtractor
        if file_type == "pdf":
            text = self.pdf_extractor.extract_text(file_path)
            extractor = LineExtractor()
        else:
            text = self._read_text(file_path)
            extractor = DelimitedExtractor(layout=self.settings.positional_layout)

        transactions = []
        for row in extractor.extract(text):
            try:
                transactions.append(self.builder.build(row))
            except RowBuildFailure as e:
                logger.debug(f"Line {row.line_number}: {e.message}")
                warnings.append(f"Line {row.line_number}: {e.message}")

        logger.info(f"Parsed {len(transactions)} transactions using {extractor.STRATEGY} extraction")
        return transactions

    def _read_text(self, file_path: Path) -> str:
        try:
            return file_path.read_text(encoding="utf-8-sig")
        except UnicodeDecodeError:
            return file_path.read_text(encoding="latin-1")

    def _store(self, transactions: list[ParsedTransaction], report: IngestionReport) -> None:
        for txn in transactions:
            try:
                self.categorizer.categorize(txn)
            except Exception as e:
                logger.warning(f"Categorization failed for {txn.description!r}: {e}")
                report.warnings.append(f"Categorization failed for {txn.description}: {e}")
                continue

            try:
                if self.duplicate_detector.is_duplicate(txn, report.source_id):
                    report.duplicate_count += 1
                    continue

                self.repository.insert_transaction(
                    StoredTransaction.from_parsed(txn, report.source_id)
                )
                report.processed_count += 1
            except PersistenceError as e:
                report.failed_count += 1
                logger.warning(f"Error storing transaction {txn.description!r}: {e.message}")
                report.warnings.append(f"Error storing {txn.description}: {e.message}")

    def _fail(self, report: IngestionReport, error: IngestionError) -> None:
        report.status = IngestionStatus.FAILED
        report.error = error.message
        report.details = error.details or list(report.warnings)
        self._enter(report, IngestionState.FAILED)
        logger.warning(f"Ingestion of {report.file_name} failed: {error.message}")

        if report.summary_id is None:
            return

        try:
            self.repository.update_ingestion_status(
                report.summary_id,
                IngestionStatus.FAILED,
                error=error.message,
                file_type=report.file_type,
                **report.counts
            )
        except PersistenceError as e:
            logger.error(f"Error updating file status: {e.message}")

    def _enter(self, report: IngestionReport, state: IngestionState) -> None:
        logger.info(f"[{report.summary_id}] {report.state.value} -> {state.value}")
        report.state = state

    def _remove(self, file_path: Path) -> None:
        try:
            file_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not delete uploaded file {file_path}: {e}")

    def cleanup_temp_files(self, max_age_hours: int = 24) -> int:
        """Delete leftover uploads older than max_age_hours.

        Args:
            max_age_hours: Maximum age of files to keep

        Returns:
            Number of files deleted
        """
        deleted = 0
        now = time.time()
        max_age_seconds = max_age_hours * 3600

        for file_path in self.temp_dir.iterdir():
            if file_path.is_file():
                age = now - file_path.stat().st_mtime
                if age > max_age_seconds:
                    try:
                        file_path.unlink()
                        deleted += 1
                    except OSError as e:
                        logger.warning(f"Failed to delete {file_path}: {e}")

        return deleted


def recategorize_transactions(
    repository: TransactionRepository,
    categorizer: TransactionCategorizer,
    source_id: str | None = None
) -> RecategorizeResult:
    """Re-run the categorizer over stored transactions.

    Args:
        repository: Transaction storage
        categorizer: Categorizer with the current rule table
        source_id: Limit to one source

    Returns:
        RecategorizeResult
    """
    result = RecategorizeResult()

    for stored in repository.list_transactions(source_id):
        result.total += 1
        new_category = categorizer.classify(stored.transaction).category_id

        if new_category != stored.transaction.category_id:
            repository.update_transaction_category(stored.id, new_category)
            logger.info(
                f"Updated transaction {stored.id}: "
                f"{stored.transaction.category_id} -> {new_category}"
            )
            result.updated += 1
        else:
            result.unchanged += 1

    logger.info(f"Recategorization complete: {result.updated} updated, {result.unchanged} unchanged")
    return result
