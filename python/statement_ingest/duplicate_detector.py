"""
Duplicate Transaction Detector Module

Skips transactions that are already stored for the same source. Two
transactions are duplicates when description, amount and date are equal.

Identical charges made on the same day at the same merchant cannot be told
apart from a re-upload and are skipped as well.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from .models import ParsedTransaction
from .repository import TransactionRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DuplicateKey:
    """Equality key for re-uploaded transactions."""

    description: str
    amount: Decimal
    date: date

    @classmethod
    def of(cls, transaction: ParsedTransaction) -> "DuplicateKey":
        return cls(
            description=transaction.description,
            amount=transaction.amount,
            date=transaction.date,
        )


class DuplicateDetector:
    """Checks candidate transactions against persisted ones."""

    def __init__(self, repository: TransactionRepository):
        """Initialize the detector.

        Args:
            repository: Storage holding already-ingested transactions
        """
        self.repository = repository

    def is_duplicate(self, transaction: ParsedTransaction, source_id: str) -> bool:
        """Check whether a transaction is already stored for a source.

        Args:
            transaction: Candidate transaction
            source_id: Source/account scope

        Returns:
            True if a transaction with the same key exists

        Raises:
            PersistenceError: If the lookup fails
        """
        key = DuplicateKey.of(transaction)
        found = self.repository.find_duplicate(
            key.description, key.amount, key.date, source_id
        )

        if found:
            logger.info(
                f"Skipping duplicate transaction: {key.description} - "
                f"{key.amount} on {key.date.isoformat()}"
            )
        return found
