"""
Transaction Repository Module

Storage interface used by the ingestion pipeline, and its SQLAlchemy
implementation. Every operation is its own database transaction, so a
failing row never rolls back rows stored before it.
"""

import logging
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    func,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .exceptions import PersistenceError
from .models import (
    Category,
    IngestionStatus,
    IngestionSummary,
    ParsedTransaction,
    Source,
    StoredTransaction,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def _cents(amount: Decimal) -> Decimal:
    """Amounts are stored and compared at cent precision."""
    try:
        return Decimal(amount).quantize(CENT)
    except InvalidOperation as e:
        raise PersistenceError(f"Amount out of range: {amount}") from e


class TransactionRepository(ABC):
    """Persistence operations needed by ingestion."""

    @abstractmethod
    def find_duplicate(
        self,
        description: str,
        amount: Decimal,
        txn_date: date,
        source_id: str
    ) -> bool:
        """Check whether a transaction with the same key is already stored."""

    @abstractmethod
    def insert_transaction(self, stored: StoredTransaction) -> str:
        """Store a transaction and return its ID."""

    @abstractmethod
    def insert_ingestion_summary(self, summary: IngestionSummary) -> str:
        """Store an upload summary and return its ID."""

    @abstractmethod
    def update_ingestion_status(
        self,
        summary_id: str,
        status: IngestionStatus,
        error: str | None = None,
        file_type: str | None = None,
        **counts: int
    ) -> None:
        """Update the status and counts of an upload summary."""

    @abstractmethod
    def list_categories(self) -> list[Category]:
        """Return the category taxonomy."""

    @abstractmethod
    def seed_categories(self, categories: list[Category]) -> int:
        """Insert missing categories. Returns the number inserted."""

    @abstractmethod
    def seed_sources(self, sources: list[Source]) -> int:
        """Insert missing sources. Returns the number inserted."""

    @abstractmethod
    def list_transactions(self, source_id: str | None = None) -> list[StoredTransaction]:
        """Return stored transactions, optionally for one source."""

    @abstractmethod
    def update_transaction_category(self, transaction_id: str, category_id: str) -> None:
        """Change the category of a stored transaction."""

    @abstractmethod
    def list_ingestion_summaries(self, limit: int = 20) -> list[IngestionSummary]:
        """Return the most recent upload summaries."""


metadata = MetaData()

categories_table = Table(
    "categories",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("color", String(32), nullable=False),
    Column("icon", String(64), nullable=False),
    Column("is_system", Boolean, nullable=False, default=True),
    Column("created_at", DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)),
)

sources_table = Table(
    "sources",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("name", String(255), nullable=False, unique=True),
    Column("type", String(32), nullable=False, default="credit_card"),
    Column("last_four", String(4)),
    Column("bank_name", String(255)),
    Column("created_at", DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)),
)

transactions_table = Table(
    "transactions",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("source_id", String(64), nullable=False),
    Column("date", Date, nullable=False),
    Column("description", Text, nullable=False),
    Column("amount", Numeric(14, 2), nullable=False),
    Column("merchant_name", String(255)),
    Column("category_id", String(64), ForeignKey("categories.id")),
    Column("confidence", Float),
    Column("original_text", Text),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Index("idx_transactions_duplicate_key", "source_id", "date", "amount"),
)

uploaded_files_table = Table(
    "uploaded_files",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("original_name", String(255), nullable=False),
    Column("stored_name", String(255)),
    Column("file_size", Integer, nullable=False, default=0),
    Column("file_type", String(16)),
    Column("source_id", String(64)),
    Column("total_extracted", Integer, nullable=False, default=0),
    Column("processed_count", Integer, nullable=False, default=0),
    Column("duplicate_count", Integer, nullable=False, default=0),
    Column("failed_count", Integer, nullable=False, default=0),
    Column("status", String(16), nullable=False),
    Column("error_message", Text),
    Column("uploaded_at", DateTime(timezone=True), nullable=False),
    Column("processed_at", DateTime(timezone=True)),
)

SUMMARY_COUNT_FIELDS = ("total_extracted", "processed_count", "duplicate_count", "failed_count")


class SQLRepository(TransactionRepository):
    """TransactionRepository backed by SQLAlchemy Core."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def create_schema(self) -> None:
        """Create missing tables."""
        metadata.create_all(self.engine)

    def find_duplicate(
        self,
        description: str,
        amount: Decimal,
        txn_date: date,
        source_id: str
    ) -> bool:
        query = (
            select(func.count())
            .select_from(transactions_table)
            .where(
                transactions_table.c.source_id == source_id,
                transactions_table.c.date == txn_date,
                transactions_table.c.amount == _cents(amount),
                transactions_table.c.description == description,
            )
        )
        try:
            with self.engine.connect() as conn:
                return conn.execute(query).scalar_one() > 0
        except SQLAlchemyError as e:
            raise PersistenceError(f"Duplicate check failed: {e}") from e

    def insert_transaction(self, stored: StoredTransaction) -> str:
        txn = stored.transaction
        values = {
            "id": stored.id,
            "source_id": stored.source_id,
            "date": txn.date,
            "description": txn.description,
            "amount": _cents(txn.amount),
            "merchant_name": txn.merchant_name,
            "category_id": txn.category_id,
            "confidence": txn.category_confidence,
            "original_text": txn.original_text,
            "created_at": stored.created_at,
        }
        try:
            with self.engine.begin() as conn:
                conn.execute(insert(transactions_table).values(**values))
        except SQLAlchemyError as e:
            raise PersistenceError(f"Insert failed: {e}") from e

        return stored.id

    def insert_ingestion_summary(self, summary: IngestionSummary) -> str:
        values = {
            "id": summary.id,
            "original_name": summary.original_name,
            "stored_name": summary.stored_name,
            "file_size": summary.file_size,
            "file_type": summary.file_type,
            "source_id": summary.source_id,
            "total_extracted": summary.total_extracted,
            "processed_count": summary.processed_count,
            "duplicate_count": summary.duplicate_count,
            "failed_count": summary.failed_count,
            "status": summary.status.value,
            "error_message": summary.error_message,
            "uploaded_at": summary.uploaded_at,
            "processed_at": summary.processed_at,
        }
        try:
            with self.engine.begin() as conn:
                conn.execute(insert(uploaded_files_table).values(**values))
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to record upload: {e}") from e

        return summary.id

    def update_ingestion_status(
        self,
        summary_id: str,
        status: IngestionStatus,
        error: str | None = None,
        file_type: str | None = None,
        **counts: int
    ) -> None:
        unknown = set(counts) - set(SUMMARY_COUNT_FIELDS)
        if unknown:
            raise ValueError(f"Unknown summary fields: {sorted(unknown)}")

        values: dict = {"status": status.value, "error_message": error}
        values.update(counts)
        if file_type:
            values["file_type"] = file_type
        if status is not IngestionStatus.PROCESSING:
            values["processed_at"] = datetime.now(timezone.utc)

        try:
            with self.engine.begin() as conn:
                conn.execute(
                    update(uploaded_files_table)
                    .where(uploaded_files_table.c.id == summary_id)
                    .values(**values)
                )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to update upload status: {e}") from e

    def list_categories(self) -> list[Category]:
        query = select(categories_table).order_by(categories_table.c.name)
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(query).mappings().all()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to list categories: {e}") from e

        return [
            Category(
                id=row["id"],
                display_name=row["name"],
                color_token=row["color"],
                icon_token=row["icon"],
                is_system=bool(row["is_system"]),
            )
            for row in rows
        ]

    def seed_categories(self, categories: list[Category]) -> int:
        try:
            with self.engine.begin() as conn:
                existing = set(conn.execute(select(categories_table.c.id)).scalars())
                missing = [c for c in categories if c.id not in existing]
                for category in missing:
                    conn.execute(insert(categories_table).values(
                        id=category.id,
                        name=category.display_name,
                        color=category.color_token,
                        icon=category.icon_token,
                        is_system=category.is_system,
                    ))
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to seed categories: {e}") from e

        if missing:
            logger.info(f"Seeded {len(missing)} categories")
        return len(missing)

    def seed_sources(self, sources: list[Source]) -> int:
        try:
            with self.engine.begin() as conn:
                existing = set(conn.execute(select(sources_table.c.id)).scalars())
                missing = [s for s in sources if s.id not in existing]
                for source in missing:
                    conn.execute(insert(sources_table).values(
                        id=source.id,
                        name=source.name,
                        type=source.type,
                        last_four=source.last_four,
                        bank_name=source.bank_name,
                    ))
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to seed sources: {e}") from e

        return len(missing)

    def list_transactions(self, source_id: str | None = None) -> list[StoredTransaction]:
        query = select(transactions_table).order_by(
            transactions_table.c.date.desc(), transactions_table.c.created_at.desc()
        )
        if source_id:
            query = query.where(transactions_table.c.source_id == source_id)

        try:
            with self.engine.connect() as conn:
                rows = conn.execute(query).mappings().all()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to list transactions: {e}") from e

        return [
            StoredTransaction(
                transaction=ParsedTransaction(
                    date=row["date"],
                    description=row["description"],
                    amount=Decimal(row["amount"]),
                    merchant_name=row["merchant_name"] or "",
                    original_text=row["original_text"] or "",
                    category_id=row["category_id"],
                    category_confidence=row["confidence"],
                ),
                source_id=row["source_id"],
                id=row["id"],
                created_at=row["created_at"],
            )
            for row in rows
        ]

    def update_transaction_category(self, transaction_id: str, category_id: str) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    update(transactions_table)
                    .where(transactions_table.c.id == transaction_id)
                    .values(category_id=category_id)
                )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to update category: {e}") from e

    def list_ingestion_summaries(self, limit: int = 20) -> list[IngestionSummary]:
        query = (
            select(uploaded_files_table)
            .order_by(uploaded_files_table.c.uploaded_at.desc())
            .limit(limit)
        )
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(query).mappings().all()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to list uploads: {e}") from e

        return [
            IngestionSummary(
                id=row["id"],
                original_name=row["original_name"],
                stored_name=row["stored_name"],
                source_id=row["source_id"],
                file_size=row["file_size"],
                file_type=row["file_type"],
                total_extracted=row["total_extracted"],
                processed_count=row["processed_count"],
                duplicate_count=row["duplicate_count"],
                failed_count=row["failed_count"],
                status=IngestionStatus(row["status"]),
                error_message=row["error_message"],
                uploaded_at=row["uploaded_at"],
                processed_at=row["processed_at"],
            )
            for row in rows
        ]
