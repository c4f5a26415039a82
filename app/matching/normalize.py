"""
Normalization helpers shared by every matching rule.

Deposit statements arrive with vendor-specific spelling, casing and
identifier conventions. Everything is pushed through these helpers before
comparison so that "Acme Corp" and "ACME, INC." compare equal, an order id of
"n/a" counts as absent rather than as a mismatch, and dates are compared as
UTC calendar days.
"""

import re
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation

# Compared with dots removed, so "L.L.C." and "Co." match too
LEGAL_SUFFIXES = frozenset(
    ["LLC", "INC", "INCORPORATED", "CORP", "CORPORATION", "CO", "LTD"]
)

# Placeholders vendors print in identifier columns when there is no value
_EMPTY_IDENTIFIERS = ("", "null", "n/a")

_SEPARATORS = re.compile(r"[\s,]+")


def normalize_name(value: str | None) -> str:
    """Upper-case, de-punctuate and strip legal-entity suffixes from a name."""
    if not value:
        return ""

    words = []
    for token in _SEPARATORS.split(value.upper()):
        if token.replace(".", "") in LEGAL_SUFFIXES:
            continue
        words.extend(token.replace(".", " ").split())
    return " ".join(words)


def clean_identifier(value) -> str | None:
    """Trim and upper-case an identifier; None when it is blank or a placeholder."""
    if value is None:
        return None
    text = str(value).strip()
    if text.lower() in _EMPTY_IDENTIFIERS:
        return None
    return text.upper()


def to_utc_day(value) -> date | None:
    """Collapse a date, datetime or ISO string to its UTC calendar day.

    Naive datetimes are taken to be UTC already.
    """
    if value is None:
        return None

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            value = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()

    if isinstance(value, date):
        return value

    return None


def to_decimal(value) -> Decimal:
    """Coerce a stored amount to Decimal; anything unreadable counts as zero."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value if value.is_finite() else Decimal("0")
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return Decimal("0")
    return result if result.is_finite() else Decimal("0")
