"""
Duplicate Detector Tests

Tests for duplicate filtering against stored transactions.
"""

import sys
from datetime import date
from decimal import Decimal
from pathlib import Path
from unittest.mock import Mock

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "python"))

from statement_ingest.duplicate_detector import DuplicateDetector, DuplicateKey
from statement_ingest.models import ParsedTransaction, StoredTransaction


@pytest.fixture
def walmart() -> ParsedTransaction:
    return ParsedTransaction(
        date=date(2024, 7, 28),
        description="Walmart Supercenter",
        amount=Decimal("-89.45"),
        merchant_name="Walmart Supercenter",
        category_id="groceries",
    )


class TestDuplicateKey:
    """Tests for DuplicateKey."""

    def test_key_fields(self, walmart):
        """Test that the key is description, amount and date."""
        key = DuplicateKey.of(walmart)

        assert key == DuplicateKey("Walmart Supercenter", Decimal("-89.45"), date(2024, 7, 28))

    def test_category_not_part_of_key(self, walmart):
        """Test that categorization does not affect the key."""
        other = ParsedTransaction(
            date=walmart.date,
            description=walmart.description,
            amount=walmart.amount,
            category_id="shopping",
        )

        assert DuplicateKey.of(other) == DuplicateKey.of(walmart)


class TestDuplicateDetector:
    """Tests for DuplicateDetector."""

    def test_delegates_to_repository(self, walmart):
        """Test the repository lookup arguments."""
        repository = Mock()
        repository.find_duplicate.return_value = True

        assert DuplicateDetector(repository).is_duplicate(walmart, "default_credit_card")
        repository.find_duplicate.assert_called_once_with(
            "Walmart Supercenter", Decimal("-89.45"), date(2024, 7, 28), "default_credit_card"
        )

    def test_new_transaction(self, repository, walmart):
        """Test that nothing is a duplicate of an empty store."""
        assert not DuplicateDetector(repository).is_duplicate(walmart, "default_credit_card")

    def test_stored_transaction(self, repository, walmart):
        """Test that a stored transaction is detected."""
        repository.insert_transaction(StoredTransaction.from_parsed(walmart, "default_credit_card"))

        assert DuplicateDetector(repository).is_duplicate(walmart, "default_credit_card")

    def test_scoped_by_source(self, repository, walmart):
        """Test that the same transaction on another source is not a duplicate."""
        repository.insert_transaction(StoredTransaction.from_parsed(walmart, "default_credit_card"))

        assert not DuplicateDetector(repository).is_duplicate(walmart, "default_bank_account")

    @pytest.mark.parametrize("change", [
        {"description": "Walmart Neighborhood Market"},
        {"amount": Decimal("-89.46")},
        {"date": date(2024, 7, 29)},
    ])
    def test_any_key_difference(self, repository, walmart, change):
        """Test that a difference in any key field is not a duplicate."""
        repository.insert_transaction(StoredTransaction.from_parsed(walmart, "default_credit_card"))
        values = {
            "date": walmart.date,
            "description": walmart.description,
            "amount": walmart.amount,
            **change,
        }

        candidate = ParsedTransaction(**values)

        assert not DuplicateDetector(repository).is_duplicate(candidate, "default_credit_card")

    def test_amount_compared_at_cent_precision(self, repository, walmart):
        """Test that trailing zeros do not defeat the check."""
        repository.insert_transaction(StoredTransaction.from_parsed(walmart, "default_credit_card"))
        candidate = ParsedTransaction(
            date=walmart.date,
            description=walmart.description,
            amount=Decimal("-89.450"),
        )

        assert DuplicateDetector(repository).is_duplicate(candidate, "default_credit_card")
