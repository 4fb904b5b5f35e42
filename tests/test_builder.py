"""
Transaction Builder Tests

Tests for building ParsedTransaction records from raw rows.
"""

import json
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "python"))

from statement_ingest.builder import (
    TransactionBuilder,
    extract_merchant_name,
    lookup_field,
)
from statement_ingest.exceptions import RowBuildFailure
from statement_ingest.extractors import RawRow, RowKind


def header_row(**fields) -> RawRow:
    return RawRow(kind=RowKind.HEADER, fields=fields, line_number=2)


def line_row(text: str, date_str: str, description: str, amount: str) -> RawRow:
    return RawRow(
        kind=RowKind.LINE,
        fields={"date": date_str, "description": description, "amount": amount},
        line_number=1,
        raw_text=text,
    )


class TestLookupField:
    """Tests for lookup_field."""

    def test_priority_order(self):
        """Test that earlier candidates win."""
        row = {"Description": "Other", "Name": "Acme"}

        assert lookup_field(row, ["Name", "Description"]) == "Acme"

    def test_case_and_whitespace_insensitive(self):
        """Test header name normalization."""
        row = {" DESCRIPTION ": "  Walmart  "}

        assert lookup_field(row, ["Description"]) == "Walmart"

    def test_empty_values_skipped(self):
        """Test that blank values fall through to the next candidate."""
        row = {"Name": "  ", "Description": "Walmart"}

        assert lookup_field(row, ["Name", "Description"]) == "Walmart"

    def test_no_match(self):
        """Test that None is returned when no candidate has a value."""
        assert lookup_field({"Foo": "bar"}, ["Name"]) is None


class TestExtractMerchantName:
    """Tests for extract_merchant_name."""

    @pytest.mark.parametrize("description,expected", [
        ("Walmart Supercenter", "Walmart Supercenter"),
        ("STARBUCKS #4521 COFFEE", "STARBUCKS COFFEE"),
        ("SQ *BLUE BOTTLE COFFEE 12345678", "SQ BLUE BOTTLE"),
        ("AMAZON", "AMAZON"),
        ("", ""),
    ])
    def test_merchant_name(self, description, expected):
        """Test noise removal and truncation to three tokens."""
        assert extract_merchant_name(description) == expected


class TestHeaderRows:
    """Tests for header-driven rows."""

    @pytest.fixture
    def builder(self) -> TransactionBuilder:
        return TransactionBuilder()

    def test_amount_column(self, builder):
        """Test a signed Amount column."""
        row = header_row(Date="07/28/2024", Description="Walmart Supercenter", Amount="-89.45")

        txn = builder.build(row)

        assert txn.date == date(2024, 7, 28)
        assert txn.description == "Walmart Supercenter"
        assert txn.amount == Decimal("-89.45")
        assert txn.merchant_name == "Walmart Supercenter"
        assert txn.is_expense
        assert json.loads(txn.original_text) == row.fields

    def test_debit_column_is_negative(self, builder):
        """Test that a debit becomes money out."""
        row = header_row(**{
            "Transaction Date": "07/28/2024",
            "Description": "Walmart",
            "Debit": "25.00",
            "Credit": "",
        })

        assert builder.build(row).amount == Decimal("-25.00")

    def test_credit_column_is_positive(self, builder):
        """Test that a credit becomes money in, ignoring a zero debit."""
        row = header_row(Date="07/28/2024", Description="Refund", Debit="0.00", Credit="100.00")

        assert builder.build(row).amount == Decimal("100.00")

    def test_debit_wins_over_amount(self, builder):
        """Test that debit/credit columns take precedence over Amount."""
        row = header_row(Date="07/28/2024", Description="Walmart", Debit="10.00", Amount="999")

        assert builder.build(row).amount == Decimal("-10.00")

    def test_amount_used_when_debit_credit_empty(self, builder):
        """Test fallback to Amount when debit and credit are blank."""
        row = header_row(Date="07/28/2024", Description="Walmart", Debit="", Credit="", Amount="-5")

        assert builder.build(row).amount == Decimal("-5")

    def test_name_column_preferred(self, builder):
        """Test description candidate priority."""
        row = header_row(Date="07/28/2024", Name="Acme", Description="ACH 12345", Amount="-1")

        assert builder.build(row).description == "Acme"

    def test_unparseable_date(self, builder):
        """Test that a bad date rejects the row."""
        row = header_row(Date="not-a-date", Description="Walmart", Amount="-1")

        with pytest.raises(RowBuildFailure, match="Cannot parse date"):
            builder.build(row)

    def test_missing_description(self, builder):
        """Test that an empty description rejects the row."""
        row = header_row(Date="07/28/2024", Description="  ", Amount="-1")

        with pytest.raises(RowBuildFailure, match="Empty description"):
            builder.build(row)

    def test_unparseable_amount(self, builder):
        """Test that a non-numeric amount rejects the row."""
        row = header_row(Date="07/28/2024", Description="Walmart", Amount="abc")

        with pytest.raises(RowBuildFailure, match="amount"):
            builder.build(row)

    def test_zero_amount(self, builder):
        """Test that a zero amount rejects the row."""
        row = header_row(Date="07/28/2024", Description="Walmart", Amount="0.00")

        with pytest.raises(RowBuildFailure, match="Zero amount"):
            builder.build(row)

    def test_row_failure_is_value_error(self, builder):
        """Test that row failures can be handled as ValueError."""
        with pytest.raises(ValueError):
            builder.build(header_row(Date="", Description="x", Amount="1"))

    def test_memo_and_type_kept_in_original_text(self, builder):
        """Test that columns without a canonical field survive in the original text."""
        row = header_row(**{
            "Date": "07/28/2024 10:00 AM",
            "Description": "Walmart Supercenter",
            "Amount": "-89.45",
            "Memo": "Household supplies",
            "Type": "Sale",
        })

        txn = builder.build(row)

        assert txn.date == date(2024, 7, 28)
        original = json.loads(txn.original_text)
        assert original["Memo"] == "Household supplies"
        assert original["Type"] == "Sale"


class TestPositionalRows:
    """Tests for positional rows."""

    def test_default_layout(self):
        """Test date/amount/description at indices 0/1/4."""
        row = RawRow(
            kind=RowKind.POSITIONAL,
            fields={0: "07/28/2024", 1: "-89.45", 2: "*", 3: "", 4: "Walmart Supercenter"},
        )

        txn = TransactionBuilder().build(row)

        assert txn.date == date(2024, 7, 28)
        assert txn.amount == Decimal("-89.45")
        assert txn.description == "Walmart Supercenter"
        assert json.loads(txn.original_text) == ["07/28/2024", "-89.45", "*", "", "Walmart Supercenter"]

    def test_missing_amount(self):
        """Test that an empty amount column rejects the row."""
        row = RawRow(
            kind=RowKind.POSITIONAL,
            fields={0: "07/28/2024", 1: "", 2: "", 3: "", 4: "Walmart"},
        )

        with pytest.raises(RowBuildFailure):
            TransactionBuilder().build(row)


class TestLineRows:
    """Tests for line-based rows."""

    def test_purchase_is_negative(self):
        """Test that line amounts are treated as charges."""
        text = "07/28/2024 STARBUCKS #4521 COFFEE $5.75"
        row = line_row(text, "07/28/2024", "STARBUCKS #4521 COFFEE", "5.75")

        txn = TransactionBuilder().build(row)

        assert txn.amount == Decimal("-5.75")
        assert txn.merchant_name == "STARBUCKS COFFEE"
        assert txn.original_text == text

    def test_payment_is_positive(self):
        """Test that payment and credit lines are money in."""
        text = "07/15/2024 PAYMENT THANK YOU $500.00"
        row = line_row(text, "07/15/2024", "PAYMENT THANK YOU", "500.00")

        assert TransactionBuilder().build(row).amount == Decimal("500.00")

    def test_month_day_uses_reference_year(self):
        """Test year-less line dates."""
        row = line_row("07/28 AMAZON MKTPL 12.99", "07/28", "AMAZON MKTPL", "12.99")

        txn = TransactionBuilder(today=date(2023, 12, 1)).build(row)

        assert txn.date == date(2023, 7, 28)

