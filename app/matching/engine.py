"""
Matching engine orchestrator.

Finds and ranks the revenue schedules a single deposit line most likely
settles. The computation is read-only: it loads the line and a bounded set of
candidate schedules, scores them in memory and returns a ranked view. It never
applies a match, so concurrent calls for the same line are safe; a caller
applying a candidate must re-check eligibility at that point.

Flow:
  1. Load the deposit line (fail fast if it does not exist)
  2. Retrieve candidate schedules (narrow search, optional cross-vendor fallback)
  3. Score every candidate with the selected strategy (legacy or hierarchical)
  4. Sort by confidence with FIFO tie-break, truncate to the result limit
  5. Report the schedule already applied to the line alongside the ranking
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from app.config import Settings
from app.matching.candidates import (
    DEFAULT_SEARCH_BREADTH,
    RetrievalOptions,
    fetch_candidate_schedules,
    fetch_deposit_line,
)
from app.matching.ranking import MatchThresholds, rank_candidates
from app.matching.scoring import (
    ScoredCandidate,
    ScoringStrategy,
    build_line_profile,
    score_candidates,
)
from app.models.deposit import DepositLineItem, DepositLineMatchStatus

logger = logging.getLogger(__name__)

# Reasons included per candidate in the debug summary
DEBUG_REASON_COUNT = 3


@dataclass(frozen=True)
class MatchingConfig:
    """Process-wide matching defaults, resolved once at the edge of the app."""

    hierarchical_enabled: bool = False
    debug_enabled: bool = False
    thresholds: MatchThresholds = field(default_factory=MatchThresholds)

    @classmethod
    def from_settings(cls, settings: Settings) -> "MatchingConfig":
        return cls(
            hierarchical_enabled=settings.hierarchical_matching_enabled,
            debug_enabled=settings.matching_debug_log,
            thresholds=MatchThresholds(
                auto_match_threshold=settings.auto_match_threshold,
                suggest_threshold=settings.suggest_threshold,
                medium_threshold=settings.medium_threshold,
            ),
        )


@dataclass
class MatchOptions:
    """Per-call options. None for a toggle means "use the MatchingConfig default"."""

    result_limit: int = 5
    date_window_months: int = 1
    include_future_schedules: bool = False
    use_hierarchical_matching: bool | None = None
    variance_tolerance: float = 0.0
    allow_cross_vendor_fallback: bool = False
    debug_log: bool | None = None
    take: int | None = None

    @property
    def search_breadth(self) -> int:
        if self.take is not None:
            return self.take
        return max(self.result_limit * 3, DEFAULT_SEARCH_BREADTH)


@dataclass
class MatchDepositLineResult:
    """Ranked candidates for one deposit line. Recomputed on every call."""

    line_item: DepositLineItem
    applied_match_schedule_id: object = None
    candidates: list[ScoredCandidate] = field(default_factory=list)
    strategy: ScoringStrategy = ScoringStrategy.LEGACY


def select_strategy(options: MatchOptions, config: MatchingConfig) -> ScoringStrategy:
    enabled = options.use_hierarchical_matching
    if enabled is None:
        enabled = config.hierarchical_enabled
    return ScoringStrategy.HIERARCHICAL if enabled else ScoringStrategy.LEGACY


def applied_match_schedule_id(line_item: DepositLineItem):
    """Schedule id of the line's Applied match, regardless of how it scores now."""
    for match in line_item.matches:
        if match.status == DepositLineMatchStatus.APPLIED:
            return match.revenue_schedule_id
    return None


def match_deposit_line(
    db: Session,
    line_id,
    options: MatchOptions | None = None,
    config: MatchingConfig | None = None,
    tenant_id=None,
) -> MatchDepositLineResult:
    """
    Rank the revenue schedules a deposit line most likely settles.

    Args:
        db: SQLAlchemy session (only read from)
        line_id: Deposit line item id
        options: Per-call options; defaults apply when omitted
        config: Process-wide defaults for the strategy and debug toggles
        tenant_id: Restrict the line lookup to this tenant

    Returns:
        MatchDepositLineResult with the line, its applied schedule id and
        the ranked candidates.

    Raises:
        DepositLineNotFoundError: if the line does not exist.
    """
    options = options or MatchOptions()
    config = config or MatchingConfig()
    strategy = select_strategy(options, config)

    line_item = fetch_deposit_line(db, line_id, tenant_id=tenant_id)

    candidates = fetch_candidate_schedules(
        db,
        line_item,
        RetrievalOptions(
            date_window_months=options.date_window_months,
            include_future_schedules=options.include_future_schedules,
            allow_cross_vendor_fallback=options.allow_cross_vendor_fallback,
            take=options.search_breadth,
        ),
    )

    scored = score_candidates(
        strategy,
        build_line_profile(line_item),
        candidates,
        thresholds=config.thresholds,
        variance_tolerance=options.variance_tolerance,
    )
    ranked = rank_candidates(scored, options.result_limit)

    debug = options.debug_log if options.debug_log is not None else config.debug_enabled
    if debug:
        _log_candidate_summary(line_item, strategy, len(candidates), ranked)

    return MatchDepositLineResult(
        line_item=line_item,
        applied_match_schedule_id=applied_match_schedule_id(line_item),
        candidates=ranked,
        strategy=strategy,
    )


def _log_candidate_summary(
    line_item: DepositLineItem,
    strategy: ScoringStrategy,
    retrieved: int,
    ranked: list[ScoredCandidate],
) -> None:
    logger.info(
        "Line %s (%s): %d candidates retrieved, %d ranked",
        line_item.id,
        strategy.value,
        retrieved,
        len(ranked),
    )
    for candidate in ranked:
        logger.info(
            "  %s: confidence %.4f (%s, %s) date=%s reasons=%s",
            candidate.revenue_schedule_name,
            candidate.match_confidence,
            candidate.match_type.value,
            candidate.confidence_level.value,
            candidate.revenue_schedule_date,
            "; ".join(candidate.reasons[:DEBUG_REASON_COUNT]),
        )
