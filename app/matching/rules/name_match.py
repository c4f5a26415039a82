"""
Name similarity rules.

Compares account, distributor and product names reported on a deposit line
against the names held on a revenue schedule. Vendor statements reorder and
abbreviate freely ("Acme Widgets Inc" vs "ACME, WIDGETS") so names are
compared as token sets after normalization rather than as strings.

Scoring:
  - Identical after normalization: 1.0
  - Otherwise: shared tokens / size of the larger token set
  - Missing name on either side: 0.0

Vendor part numbers get a character-level comparison instead: they are single
tokens where one transposed or dropped character ("SKU-1042A" vs "SKU1042A")
is a typo, not a different product.
"""

import re

from rapidfuzz import fuzz

from app.matching.normalize import clean_identifier, normalize_name

# Below this ratio, part numbers are treated as different products
MIN_PART_NUMBER_RATIO = 85.0

_NON_ALNUM = re.compile(r"[^0-9A-Z]")


def name_similarity(a: str | None, b: str | None) -> float:
    """Token-set overlap of two names, in [0, 1]. Symmetric."""
    norm_a = normalize_name(a)
    norm_b = normalize_name(b)
    if not norm_a or not norm_b:
        return 0.0
    if norm_a == norm_b:
        return 1.0

    tokens_a = set(norm_a.split())
    tokens_b = set(norm_b.split())
    if not tokens_a or not tokens_b:
        return 0.0

    shared = len(tokens_a & tokens_b)
    return shared / max(len(tokens_a), len(tokens_b))


def best_name_similarity(reported: str | None, *candidates: str | None) -> float:
    """Highest similarity of the reported name against any of the candidates."""
    return max((name_similarity(reported, candidate) for candidate in candidates), default=0.0)


def part_number_similarity(a: str | None, b: str | None) -> float:
    """Character-level similarity of two vendor part numbers, in [0, 1]."""
    clean_a = clean_identifier(a)
    clean_b = clean_identifier(b)
    if not clean_a or not clean_b:
        return 0.0

    clean_a = _NON_ALNUM.sub("", clean_a)
    clean_b = _NON_ALNUM.sub("", clean_b)
    if not clean_a or not clean_b:
        return 0.0
    if clean_a == clean_b:
        return 1.0

    ratio = fuzz.ratio(clean_a, clean_b)
    if ratio < MIN_PART_NUMBER_RATIO:
        return 0.0
    return ratio / 100.0
