"""
Transaction Builder Module

Turns raw extracted rows into canonical ParsedTransaction records.
"""

import json
import re
from datetime import date
from decimal import Decimal
from typing import Mapping

from .exceptions import RowBuildFailure
from .extractors.base import RawRow, RowKind
from .extractors.delimited import PositionalLayout
from .models import ParsedTransaction
from .normalizer import parse_amount, parse_date

MERCHANT_MAX_TOKENS = 3

_REFERENCE_NUMBER = re.compile(r"\d{4,}")
_MERCHANT_NOISE = re.compile(r"[*#]")

# Line descriptions containing these words are money in
CREDIT_KEYWORDS = ("payment", "credit")


def lookup_field(row: Mapping, candidates: list[str] | tuple[str, ...]) -> str | None:
    """Return the first non-empty value among candidate column names.

    Column names are compared case-insensitively, ignoring surrounding
    whitespace.

    Args:
        row: Column name -> value mapping
        candidates: Column names in priority order

    Returns:
        Stripped value, or None if no candidate has a value
    """
    normalized = {
        str(key).strip().lower(): value
        for key, value in row.items()
    }

    for candidate in candidates:
        value = normalized.get(candidate.lower())
        if value is not None and str(value).strip():
            return str(value).strip()

    return None


def extract_merchant_name(description: str) -> str:
    """Derive a short merchant label from a description.

    Args:
        description: Transaction description

    Returns:
        At most the first three tokens, without reference numbers
    """
    cleaned = _MERCHANT_NOISE.sub("", description)
    cleaned = _REFERENCE_NUMBER.sub("", cleaned)
    tokens = cleaned.split()
    return " ".join(tokens[:MERCHANT_MAX_TOKENS])


class TransactionBuilder:
    """Maps raw rows to ParsedTransaction records."""

    # Header candidates, highest priority first
    DATE_FIELDS = ("Date", "Transaction Date", "Trans. Date", "Posted Date", "Posting Date")
    DESCRIPTION_FIELDS = (
        "Name", "Description", "Merchant", "Transaction Description", "Payee", "Transaction",
    )
    AMOUNT_FIELDS = ("Amount", "Transaction Amount")
    DEBIT_FIELDS = ("Debit", "Debit Amount", "Withdrawal")
    CREDIT_FIELDS = ("Credit", "Credit Amount", "Deposit")
    # Other columns, such as Memo or Type, survive only in original_text

    def __init__(self, layout: PositionalLayout | None = None, today: date | None = None):
        """Initialize the builder.

        Args:
            layout: Column layout for positional rows
            today: Reference date for year-less dates
        """
        self.layout = layout or PositionalLayout()
        self.today = today

    def build(self, row: RawRow) -> ParsedTransaction:
        """Build a transaction from a raw row.

        Args:
            row: Raw extracted row

        Returns:
            ParsedTransaction

        Raises:
            RowBuildFailure: If the row lacks a valid date, description or amount
        """
        if row.kind is RowKind.HEADER:
            date_str, description, amount = self._header_fields(row)
            original_text = json.dumps(row.fields)
        elif row.kind is RowKind.POSITIONAL:
            date_str, description, amount = self._positional_fields(row)
            original_text = json.dumps([row.fields[i] for i in sorted(row.fields)])
        else:
            date_str, description, amount = self._line_fields(row)
            original_text = row.raw_text

        txn_date = parse_date(date_str, today=self.today) if date_str else None
        if txn_date is None:
            raise RowBuildFailure(f"Cannot parse date: {date_str!r}")

        description = (description or "").strip()
        if not description:
            raise RowBuildFailure("Empty description")

        if amount is None:
            raise RowBuildFailure("Missing or unparseable amount")
        if amount == 0:
            raise RowBuildFailure("Zero amount")

        return ParsedTransaction(
            date=txn_date,
            description=description,
            amount=amount,
            merchant_name=extract_merchant_name(description),
            original_text=original_text,
        )

    def _header_fields(self, row: RawRow) -> tuple[str | None, str | None, Decimal | None]:
        date_str = lookup_field(row.fields, self.DATE_FIELDS)
        description = lookup_field(row.fields, self.DESCRIPTION_FIELDS)

        # Separate debit/credit columns win over a generic amount column.
        # A "0.00" placeholder in the unused column counts as empty.
        debit = parse_amount(lookup_field(row.fields, self.DEBIT_FIELDS))
        if debit:
            return date_str, description, -abs(debit)

        credit = parse_amount(lookup_field(row.fields, self.CREDIT_FIELDS))
        if credit:
            return date_str, description, abs(credit)

        amount = parse_amount(lookup_field(row.fields, self.AMOUNT_FIELDS))
        return date_str, description, amount

    def _positional_fields(self, row: RawRow) -> tuple[str | None, str | None, Decimal | None]:
        date_str = row.get(self.layout.date_index) or None
        description = row.get(self.layout.description_index) or None
        raw_amount = row.get(self.layout.amount_index)
        amount = parse_amount(raw_amount) if raw_amount else None
        return date_str, description, amount

    def _line_fields(self, row: RawRow) -> tuple[str | None, str | None, Decimal | None]:
        magnitude = parse_amount(row.get("amount"))
        amount = None
        if magnitude is not None:
            line_lower = row.raw_text.lower()
            if any(keyword in line_lower for keyword in CREDIT_KEYWORDS):
                amount = abs(magnitude)
            else:
                amount = -abs(magnitude)
        return row.get("date") or None, row.get("description") or None, amount

