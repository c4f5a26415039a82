"""
Date proximity rule.

Compares the deposit line's payment date against the revenue schedule's
month-aligned schedule date. Commission for a month usually lands within a
few weeks of it; anything a full quarter away is not evidence at all.

Scoring:
  - Same day: 1.0
  - 1-89 days apart: linear decay, (90 - days) / 90
  - 90+ days apart, or either date missing: 0.0
"""

from app.matching.normalize import to_utc_day

# Day gap at which the score reaches zero
MAX_DAY_DIFFERENCE = 90


def day_gap(a, b) -> int | None:
    """Absolute number of UTC calendar days between two dates."""
    day_a = to_utc_day(a)
    day_b = to_utc_day(b)
    if day_a is None or day_b is None:
        return None
    return abs((day_a - day_b).days)


def date_proximity(a, b) -> float:
    """Closeness of two dates, in [0, 1]."""
    days = day_gap(a, b)
    if days is None or days >= MAX_DAY_DIFFERENCE:
        return 0.0
    ratio = (MAX_DAY_DIFFERENCE - days) / MAX_DAY_DIFFERENCE
    return max(0.0, min(1.0, ratio))
