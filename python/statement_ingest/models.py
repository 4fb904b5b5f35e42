"""
Data Model

Canonical transaction, category and upload-summary records shared by the
ingestion pipeline and the storage layer.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from uuid import uuid4


class IngestionStatus(Enum):
    """Persisted status of an uploaded file."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ParsedTransaction:
    """A transaction built from one statement row."""

    date: date
    description: str
    amount: Decimal
    merchant_name: str = ""
    original_text: str = ""
    category_id: str | None = None
    category_confidence: float | None = None

    @property
    def is_expense(self) -> bool:
        """Money out of the account."""
        return self.amount < 0

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "description": self.description,
            "amount": float(self.amount),
            "merchant_name": self.merchant_name,
            "category_id": self.category_id,
        }


@dataclass
class StoredTransaction:
    """A persisted transaction."""

    transaction: ParsedTransaction
    source_id: str
    id: str = field(default_factory=lambda: uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_parsed(cls, transaction: ParsedTransaction, source_id: str) -> "StoredTransaction":
        return cls(transaction=transaction, source_id=source_id)


@dataclass(frozen=True)
class Category:
    """Entry of the fixed category taxonomy."""

    id: str
    display_name: str
    color_token: str
    icon_token: str
    is_system: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "color_token": self.color_token,
            "icon_token": self.icon_token,
            "is_system": self.is_system,
        }


@dataclass(frozen=True)
class Source:
    """Card or account that a batch of transactions belongs to."""

    id: str
    name: str
    type: str = "credit_card"
    last_four: str | None = None
    bank_name: str | None = None


@dataclass
class IngestionSummary:
    """Record of one uploaded file and the outcome of its ingestion."""

    original_name: str
    source_id: str
    file_size: int = 0
    stored_name: str | None = None
    file_type: str | None = None
    total_extracted: int = 0
    processed_count: int = 0
    duplicate_count: int = 0
    failed_count: int = 0
    status: IngestionStatus = IngestionStatus.PROCESSING
    error_message: str | None = None
    id: str = field(default_factory=lambda: uuid4().hex)
    uploaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    processed_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "original_name": self.original_name,
            "source_id": self.source_id,
            "file_size": self.file_size,
            "file_type": self.file_type,
            "total_extracted": self.total_extracted,
            "processed_count": self.processed_count,
            "duplicate_count": self.duplicate_count,
            "failed_count": self.failed_count,
            "status": self.status.value,
            "error_message": self.error_message,
            "uploaded_at": self.uploaded_at.isoformat() if self.uploaded_at else None,
            "processed_at": self.processed_at.isoformat() if self.processed_at else None,
        }
