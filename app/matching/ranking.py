"""
Confidence classification and FIFO ranking.

Among equally confident candidates the oldest outstanding obligation wins:
confidence descending, then schedule date ascending, then creation time
ascending, with missing dates sorting last.
"""

import enum
from dataclasses import dataclass
from datetime import date, datetime


class ConfidenceLevel(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class MatchThresholds:
    """Confidence cut-offs, all in [0, 1].

    auto_match_threshold is not used for ranking; it is published for the
    auto-apply job that consumes these results.
    """

    auto_match_threshold: float = 0.97
    suggest_threshold: float = 0.90
    medium_threshold: float = 0.75


def confidence_level(score: float, thresholds: MatchThresholds | None = None) -> ConfidenceLevel:
    thresholds = thresholds or MatchThresholds()
    if score >= thresholds.suggest_threshold:
        return ConfidenceLevel.HIGH
    if score >= thresholds.medium_threshold:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def fifo_sort_key(candidate) -> tuple:
    """Sort key for anything with match_confidence, revenue_schedule_date and created_at."""
    scheduled: date | None = candidate.revenue_schedule_date
    created: datetime | None = candidate.created_at
    return (
        -candidate.match_confidence,
        scheduled is None,
        scheduled or date.min,
        created is None,
        created or datetime.min,
    )


def rank_candidates(candidates: list, limit: int | None = None) -> list:
    """Sort the full scored set, then truncate to limit (None keeps everything)."""
    ranked = sorted(candidates, key=fifo_sort_key)
    if limit is None:
        return ranked
    return ranked[: max(limit, 0)]
