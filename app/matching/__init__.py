from app.matching.candidates import DepositLineNotFoundError, ScheduleCandidate
from app.matching.engine import (
    MatchDepositLineResult,
    MatchingConfig,
    MatchOptions,
    match_deposit_line,
)
from app.matching.ranking import ConfidenceLevel, MatchThresholds
from app.matching.rows import SuggestedMatchRow, candidates_to_suggested_rows
from app.matching.scoring import (
    CandidateSignal,
    MatchType,
    ScoredCandidate,
    ScoringStrategy,
)

__all__ = [
    "match_deposit_line",
    "candidates_to_suggested_rows",
    "MatchDepositLineResult",
    "MatchingConfig",
    "MatchOptions",
    "MatchThresholds",
    "ConfidenceLevel",
    "CandidateSignal",
    "MatchType",
    "ScoredCandidate",
    "ScoringStrategy",
    "ScheduleCandidate",
    "SuggestedMatchRow",
    "DepositLineNotFoundError",
]
