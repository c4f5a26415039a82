"""
Amount proximity rule.

Compares a reported usage or commission amount against the amount a revenue
schedule expects. The measure is relative, not absolute: a $5 variance on a
$10 line is far more telling than $5 on a $10,000 line.

Scoring:
  - Either amount exactly zero: 0.0 (nothing to compare)
  - Otherwise: 1 - |a - b| / max(|a|, |b|), clamped to [0, 1]
"""

from decimal import Decimal

from app.matching.normalize import to_decimal


def amount_proximity(reported, expected) -> float:
    """Relative closeness of two amounts, in [0, 1]. Symmetric."""
    a = to_decimal(reported)
    b = to_decimal(expected)

    if a == Decimal("0") or b == Decimal("0"):
        return 0.0

    if a == b:
        return 1.0

    difference = abs(a - b)
    largest = max(abs(a), abs(b))
    proximity = float(Decimal("1") - difference / largest)
    return max(0.0, min(1.0, proximity))
