"""
Field Normalizer

Pure parsing helpers for raw statement date and amount strings.
"""

import re
from datetime import date, datetime
from decimal import Decimal

MIN_YEAR = 1900
MAX_YEAR = 2100

# Tried in order against the digit/separator residue of the input
_SLASH_FULL = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_ISO = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_SLASH_SHORT = re.compile(r"^(\d{1,2})/(\d{1,2})$")

# Trailing time of day, e.g. "10:00 AM", "23:15:07", "T08:30:00"
_TIME_OF_DAY = re.compile(r"(?:\s+|T)\d{1,2}:\d{2}(?::\d{2})?(?:\s*[AaPp]\.?[Mm]\.?)?$")

# Fallback formats tried against the text without its time of day
FALLBACK_DATE_FORMATS = [
    "%d-%b-%Y",
    "%d %b %Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%b %d %Y",
    "%m/%d/%y",
    "%Y/%m/%d",
]

_DATE_NOISE = re.compile(r"[^\d/\-]")
_CURRENCY_NOISE = re.compile(r"[\s,$€£¥₹₱]")
_NUMBER = re.compile(r"\d*\.?\d+|\d+\.")

# Largest magnitude a Numeric(14, 2) column can hold
MAX_AMOUNT = Decimal("999999999999.99")


def _plausible(value: date | None) -> date | None:
    if value is None or not (MIN_YEAR <= value.year < MAX_YEAR):
        return None
    return value


def _make_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_date(raw: str | None, today: date | None = None) -> date | None:
    """Parse a statement date.

    Args:
        raw: Raw date text
        today: Reference date supplying the year for MM/DD values

    Returns:
        Calendar date, or None if the text is not a plausible date
    """
    if not raw or not raw.strip():
        return None

    text = _TIME_OF_DAY.sub("", raw.strip())
    cleaned = _DATE_NOISE.sub("", text)

    match = _SLASH_FULL.match(cleaned)
    if match:
        month, day, year = (int(g) for g in match.groups())
        return _plausible(_make_date(year, month, day))

    match = _ISO.match(cleaned)
    if match:
        year, month, day = (int(g) for g in match.groups())
        return _plausible(_make_date(year, month, day))

    match = _SLASH_SHORT.match(cleaned)
    if match:
        month, day = (int(g) for g in match.groups())
        year = (today or date.today()).year
        return _plausible(_make_date(year, month, day))

    for fmt in FALLBACK_DATE_FORMATS:
        try:
            return _plausible(datetime.strptime(text, fmt).date())
        except ValueError:
            continue

    return None


def parse_amount(raw: str | None) -> Decimal | None:
    """Parse a statement amount.

    Currency symbols, thousands separators and whitespace are ignored.
    Parenthesized values are negative.

    Args:
        raw: Raw amount text

    Returns:
        Signed Decimal, or None if the text is not numeric or the
        amount is too large to store
    """
    if raw is None:
        return None

    cleaned = _CURRENCY_NOISE.sub("", raw)
    if not cleaned:
        return None

    negative = False
    if cleaned.startswith("(") and cleaned.endswith(")"):
        cleaned = cleaned[1:-1]
        negative = True

    # "-$5.00" and "$-5.00" both reduce to a leading minus here
    if cleaned.startswith("-"):
        cleaned = cleaned[1:]
        negative = True
    elif cleaned.startswith("+"):
        cleaned = cleaned[1:]

    if not _NUMBER.fullmatch(cleaned):
        return None

    amount = Decimal(cleaned)
    if amount > MAX_AMOUNT:
        return None

    return -amount if negative else amount
