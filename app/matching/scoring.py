"""
Scoring strategies: turn a deposit line and its candidate schedules into
ScoredCandidates with an itemized signal breakdown for auditability.

Two interchangeable strategies share the same rule primitives:

  LEGACY        One flat weighted sum over nine signals (weights sum to 1.0).

  HIERARCHICAL  Pass A (exact identity): a candidate sharing a strong
                identifier (account legal name, order id, customer id or
                account id) whose amount and date fall inside the variance
                tolerance is an exact match with confidence 1.
                Pass B (fuzzy): remaining candidates without a strong id
                conflict get a weighted name/product/amount/date score; only
                scores of at least 0.5 survive. Cross-vendor fallback
                candidates are never exact and are capped at 0.6.
"""

import enum
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from app.matching.candidates import ScheduleCandidate, reference_date
from app.matching.metrics import ScheduleMetrics
from app.matching.normalize import clean_identifier, normalize_name, to_decimal
from app.matching.ranking import ConfidenceLevel, MatchThresholds, confidence_level
from app.matching.rules.amount_match import amount_proximity
from app.matching.rules.date_match import date_proximity, day_gap
from app.matching.rules.identity_match import (
    exact_id_match,
    id_conflict,
    schedule_customer_ids,
    schedule_order_ids,
)
from app.matching.rules.name_match import best_name_similarity, part_number_similarity
from app.models.deposit import DepositLineItem

LEGACY_WEIGHTS = {
    "vendor_account_exact": 0.18,
    "account_exact": 0.22,
    "customer_id_exact": 0.12,
    "order_id_exact": 0.12,
    "account_name_similarity": 0.12,
    "product_name_similarity": 0.08,
    "usage_amount_proximity": 0.08,
    "commission_amount_proximity": 0.05,
    "date_proximity": 0.03,
}

# Pass A qualification is OR-of-booleans; the weights only label the audit trail
EXACT_IDENTITY_WEIGHT = 0.25

FUZZY_WEIGHTS = {
    "account_name_similarity": 0.4,
    "product_identity_similarity": 0.3,
    "amount_proximity": 0.2,
    "date_proximity": 0.1,
}

FUZZY_MIN_CONFIDENCE = 0.5
FALLBACK_CONFIDENCE_CAP = 0.6


class MatchType(str, enum.Enum):
    EXACT = "exact"
    FUZZY = "fuzzy"
    LEGACY = "legacy"


class ScoringStrategy(str, enum.Enum):
    LEGACY = "legacy"
    HIERARCHICAL = "hierarchical"


@dataclass(frozen=True)
class CandidateSignal:
    """One weighted piece of evidence for (or against) a candidate."""

    name: str
    score: float
    weight: float
    description: str | None = None

    @property
    def contribution(self) -> float:
        return self.score * self.weight

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "score": round(self.score, 4),
            "weight": self.weight,
            "contribution": round(self.contribution, 4),
            "description": self.description,
        }


@dataclass
class ScoredCandidate:
    """A revenue schedule scored against one deposit line."""

    revenue_schedule_id: object
    revenue_schedule_name: str
    revenue_schedule_date: date | None
    created_at: datetime | None
    schedule_status: str | None
    account_name: str | None
    account_legal_name: str | None
    vendor_name: str | None
    distributor_name: str | None
    product_name_vendor: str | None
    metrics: ScheduleMetrics
    match_confidence: float
    match_type: MatchType
    confidence_level: ConfidenceLevel
    signals: list[CandidateSignal] = field(default_factory=list)
    reasons: list[str] = field(default_factory=list)
    is_fallback: bool = False

    @property
    def expected_usage_net(self) -> Decimal:
        return self.metrics.expected_usage_net

    @property
    def actual_usage_net(self) -> Decimal:
        return self.metrics.actual_usage_net

    @property
    def expected_commission_net(self) -> Decimal:
        return self.metrics.expected_commission_net

    @property
    def actual_commission_net(self) -> Decimal:
        return self.metrics.actual_commission_net

    @property
    def usage_balance(self) -> Decimal:
        return self.metrics.usage_balance

    @property
    def commission_difference(self) -> Decimal:
        return self.metrics.commission_difference


@dataclass(frozen=True)
class LineProfile:
    """A deposit line with every matching field cleaned once up front."""

    account_id: str | None
    vendor_account_id: str | None
    customer_id: str | None
    order_id: str | None
    account_name: str | None
    distributor_name: str | None
    product_name: str | None
    part_number: str | None
    usage: Decimal
    commission: Decimal
    payment_day: date


def build_line_profile(line_item: DepositLineItem) -> LineProfile:
    deposit = line_item.deposit
    vendor_account_id = line_item.vendor_account_id or (
        deposit.vendor_account_id if deposit is not None else None
    )
    account_name = line_item.account_name_raw
    if not account_name and line_item.account is not None:
        account_name = line_item.account.account_name
    product_name = line_item.product_name_raw
    if not product_name and line_item.product is not None:
        product_name = line_item.product.product_name_vendor

    return LineProfile(
        account_id=clean_identifier(line_item.account_id),
        vendor_account_id=clean_identifier(vendor_account_id),
        customer_id=clean_identifier(line_item.customer_id_vendor),
        order_id=clean_identifier(line_item.order_id_vendor),
        account_name=account_name,
        distributor_name=line_item.distributor_name_raw,
        product_name=product_name,
        part_number=line_item.part_number_raw,
        usage=to_decimal(line_item.usage),
        commission=to_decimal(line_item.commission),
        payment_day=reference_date(line_item),
    )


def score_candidates(
    strategy: ScoringStrategy,
    profile: LineProfile,
    candidates: list[ScheduleCandidate],
    thresholds: MatchThresholds | None = None,
    variance_tolerance: float = 0.0,
) -> list[ScoredCandidate]:
    """Score every candidate with the selected strategy. Order is not meaningful."""
    thresholds = thresholds or MatchThresholds()
    if strategy == ScoringStrategy.HIERARCHICAL:
        return score_hierarchical(profile, candidates, thresholds, variance_tolerance)
    return score_legacy(profile, candidates, thresholds)


# ── Legacy ──


def score_legacy(
    profile: LineProfile,
    candidates: list[ScheduleCandidate],
    thresholds: MatchThresholds,
) -> list[ScoredCandidate]:
    scored = []
    for candidate in candidates:
        signals = _legacy_signals(profile, candidate)
        confidence = _round_confidence(sum(s.contribution for s in signals))
        scored.append(
            _build_scored(
                candidate,
                signals,
                confidence,
                MatchType.LEGACY,
                confidence_level(confidence, thresholds),
            )
        )
    return scored


def _legacy_signals(profile: LineProfile, candidate: ScheduleCandidate) -> list[CandidateSignal]:
    schedule = candidate.schedule
    metrics = candidate.metrics
    weights = LEGACY_WEIGHTS

    vendor_match = (
        profile.vendor_account_id is not None
        and profile.vendor_account_id == clean_identifier(schedule.vendor_account_id)
    )
    account_match = _account_id_match(profile, candidate)
    customer_match = exact_id_match(profile.customer_id, schedule_customer_ids(schedule))
    order_match = exact_id_match(profile.order_id, schedule_order_ids(schedule))

    account_similarity = max(
        _account_name_similarity(profile, candidate),
        best_name_similarity(profile.distributor_name, *_distributor_names(candidate)),
    )
    product_similarity = best_name_similarity(profile.product_name, *_product_names(candidate))
    usage_proximity = amount_proximity(profile.usage, metrics.expected_usage_net)
    commission_proximity = amount_proximity(profile.commission, metrics.expected_commission_net)

    return [
        _boolean_signal("vendor_account_exact", vendor_match, weights, "Vendor account matches"),
        _boolean_signal("account_exact", account_match, weights, "Account matches"),
        _boolean_signal(
            "customer_id_exact", customer_match, weights, f"Customer id {profile.customer_id} matches"
        ),
        _boolean_signal(
            "order_id_exact", order_match, weights, f"Order id {profile.order_id} matches"
        ),
        CandidateSignal(
            "account_name_similarity",
            account_similarity,
            weights["account_name_similarity"],
            f"Account/distributor name {account_similarity:.0%} similar",
        ),
        CandidateSignal(
            "product_name_similarity",
            product_similarity,
            weights["product_name_similarity"],
            f"Product name {product_similarity:.0%} similar",
        ),
        CandidateSignal(
            "usage_amount_proximity",
            usage_proximity,
            weights["usage_amount_proximity"],
            _amount_description("Usage", profile.usage, metrics.expected_usage_net, usage_proximity),
        ),
        CandidateSignal(
            "commission_amount_proximity",
            commission_proximity,
            weights["commission_amount_proximity"],
            _amount_description(
                "Commission", profile.commission, metrics.expected_commission_net, commission_proximity
            ),
        ),
        _date_signal(profile, candidate, weights["date_proximity"]),
    ]


# ── Hierarchical ──


def score_hierarchical(
    profile: LineProfile,
    candidates: list[ScheduleCandidate],
    thresholds: MatchThresholds,
    variance_tolerance: float = 0.0,
) -> list[ScoredCandidate]:
    tolerance = max(0.0, min(1.0, variance_tolerance))

    exact = score_exact_pass(profile, candidates, tolerance)
    exact_ids = {scored.revenue_schedule_id for scored in exact}

    remaining = [c for c in candidates if c.schedule.id not in exact_ids]
    fuzzy = score_fuzzy_pass(profile, remaining, thresholds)
    return exact + fuzzy


def score_exact_pass(
    profile: LineProfile,
    candidates: list[ScheduleCandidate],
    variance_tolerance: float = 0.0,
) -> list[ScoredCandidate]:
    """Pass A: strong-identity candidates inside the variance tolerance."""
    floor = 1.0 - variance_tolerance
    accepted = []

    for candidate in candidates:
        if candidate.is_fallback:
            continue

        identity = _exact_identity_signals(profile, candidate)
        if not any(signal.score == 1.0 for signal in identity):
            continue

        amount = _best_amount_signal(profile, candidate, weight=0.0)
        when = _date_signal(profile, candidate, weight=0.0)
        if amount.score < floor or when.score < floor:
            continue

        accepted.append(
            _build_scored(
                candidate,
                identity + [amount, when],
                1.0,
                MatchType.EXACT,
                ConfidenceLevel.HIGH,
            )
        )
    return accepted


def score_fuzzy_pass(
    profile: LineProfile,
    candidates: list[ScheduleCandidate],
    thresholds: MatchThresholds,
) -> list[ScoredCandidate]:
    """Pass B: weighted similarity for candidates without a strong id conflict."""
    accepted = []

    for candidate in candidates:
        if find_strong_id_conflict(profile, candidate) is not None:
            continue

        weights = FUZZY_WEIGHTS
        account_similarity = _account_name_similarity(profile, candidate)
        product_similarity = max(
            best_name_similarity(profile.product_name, *_product_names(candidate)),
            part_number_similarity(profile.part_number, _part_number(candidate)),
        )
        signals = [
            CandidateSignal(
                "account_name_similarity",
                account_similarity,
                weights["account_name_similarity"],
                f"Account name {account_similarity:.0%} similar",
            ),
            CandidateSignal(
                "product_identity_similarity",
                product_similarity,
                weights["product_identity_similarity"],
                f"Product {product_similarity:.0%} similar",
            ),
            _best_amount_signal(profile, candidate, weight=weights["amount_proximity"]),
            _date_signal(profile, candidate, weights["date_proximity"]),
        ]

        confidence = _round_confidence(sum(s.contribution for s in signals))
        notes = []
        if candidate.is_fallback and confidence > FALLBACK_CONFIDENCE_CAP:
            notes.append(
                f"Cross-vendor fallback candidate: confidence capped at "
                f"{FALLBACK_CONFIDENCE_CAP:.0%} (scored {confidence:.0%})"
            )
            confidence = FALLBACK_CONFIDENCE_CAP

        if confidence < FUZZY_MIN_CONFIDENCE:
            continue

        scored = _build_scored(
            candidate,
            signals,
            confidence,
            MatchType.FUZZY,
            confidence_level(confidence, thresholds),
        )
        scored.reasons.extend(notes)
        accepted.append(scored)
    return accepted


def find_strong_id_conflict(profile: LineProfile, candidate: ScheduleCandidate) -> str | None:
    """Describe the first identifier the line and schedule disagree on, if any."""
    schedule = candidate.schedule

    if id_conflict(profile.order_id, schedule_order_ids(schedule)):
        return f"Order id {profile.order_id} does not match schedule"
    if id_conflict(profile.customer_id, schedule_customer_ids(schedule)):
        return f"Customer id {profile.customer_id} does not match schedule"

    schedule_account_id = clean_identifier(schedule.account_id)
    if (
        profile.account_id is not None
        and schedule_account_id is not None
        and profile.account_id != schedule_account_id
    ):
        return "Account does not match schedule"
    return None


def _exact_identity_signals(
    profile: LineProfile,
    candidate: ScheduleCandidate,
) -> list[CandidateSignal]:
    schedule = candidate.schedule
    account = schedule.account

    line_name = normalize_name(profile.account_name)
    legal_name = ""
    if account is not None:
        legal_name = normalize_name(account.account_legal_name or account.account_name)
    legal_name_match = bool(line_name) and line_name == legal_name

    weights = dict.fromkeys(
        ["account_legal_name_exact", "order_id_exact", "customer_id_exact", "account_id_exact"],
        EXACT_IDENTITY_WEIGHT,
    )
    return [
        _boolean_signal(
            "account_legal_name_exact", legal_name_match, weights, "Account legal name matches"
        ),
        _boolean_signal(
            "order_id_exact",
            exact_id_match(profile.order_id, schedule_order_ids(schedule)),
            weights,
            f"Order id {profile.order_id} matches",
        ),
        _boolean_signal(
            "customer_id_exact",
            exact_id_match(profile.customer_id, schedule_customer_ids(schedule)),
            weights,
            f"Customer id {profile.customer_id} matches",
        ),
        _boolean_signal(
            "account_id_exact", _account_id_match(profile, candidate), weights, "Account matches"
        ),
    ]


# ── Shared helpers ──


def _boolean_signal(name: str, matched: bool, weights: dict, description: str) -> CandidateSignal:
    if matched:
        return CandidateSignal(name, 1.0, weights[name], description)
    return CandidateSignal(name, 0.0, weights[name])


def _best_amount_signal(
    profile: LineProfile,
    candidate: ScheduleCandidate,
    weight: float,
) -> CandidateSignal:
    metrics = candidate.metrics
    usage = amount_proximity(profile.usage, metrics.expected_usage_net)
    commission = amount_proximity(profile.commission, metrics.expected_commission_net)
    if commission >= usage:
        description = _amount_description(
            "Commission", profile.commission, metrics.expected_commission_net, commission
        )
    else:
        description = _amount_description("Usage", profile.usage, metrics.expected_usage_net, usage)
    return CandidateSignal("amount_proximity", max(usage, commission), weight, description)


def _date_signal(profile: LineProfile, candidate: ScheduleCandidate, weight: float) -> CandidateSignal:
    schedule_date = candidate.schedule.schedule_date
    days = day_gap(profile.payment_day, schedule_date)
    if days is None:
        description = "No schedule date"
    elif days == 0:
        description = f"Schedule date {schedule_date} equals payment date"
    else:
        description = f"Schedule date {days} day(s) from payment date"
    return CandidateSignal(
        "date_proximity",
        date_proximity(profile.payment_day, schedule_date),
        weight,
        description,
    )


def _amount_description(label: str, reported: Decimal, expected: Decimal, proximity: float) -> str:
    if proximity == 1.0:
        return f"{label} {reported} equals expected"
    return f"{label} {reported} vs expected {expected} ({proximity:.0%} close)"


def _account_id_match(profile: LineProfile, candidate: ScheduleCandidate) -> bool:
    return profile.account_id is not None and profile.account_id == clean_identifier(
        candidate.schedule.account_id
    )


def _account_name_similarity(profile: LineProfile, candidate: ScheduleCandidate) -> float:
    account = candidate.schedule.account
    if account is None:
        return 0.0
    return best_name_similarity(profile.account_name, account.account_name, account.account_legal_name)


def _distributor_names(candidate: ScheduleCandidate) -> list[str | None]:
    schedule = candidate.schedule
    names = []
    if schedule.opportunity is not None:
        names.append(schedule.opportunity.distributor_name)
    if schedule.distributor_account is not None:
        names.append(schedule.distributor_account.account_name)
    return names


def _product_names(candidate: ScheduleCandidate) -> list[str | None]:
    product = candidate.schedule.product
    if product is None:
        return []
    return [product.product_name_vendor, product.product_name_house]


def _part_number(candidate: ScheduleCandidate) -> str | None:
    product = candidate.schedule.product
    return product.part_number_vendor if product is not None else None


def _round_confidence(raw: float) -> float:
    return round(max(0.0, min(raw, 1.0)), 4)


def _build_scored(
    candidate: ScheduleCandidate,
    signals: list[CandidateSignal],
    confidence: float,
    match_type: MatchType,
    level: ConfidenceLevel,
) -> ScoredCandidate:
    schedule = candidate.schedule
    opportunity = schedule.opportunity
    account = schedule.account

    vendor_name = schedule.vendor_account.account_name if schedule.vendor_account else None
    if vendor_name is None and opportunity is not None:
        vendor_name = opportunity.vendor_name
    distributor_names = [name for name in _distributor_names(candidate) if name]

    return ScoredCandidate(
        revenue_schedule_id=schedule.id,
        revenue_schedule_name=schedule.schedule_number or str(schedule.id),
        revenue_schedule_date=schedule.schedule_date,
        created_at=schedule.created_at,
        schedule_status=schedule.status.value if schedule.status is not None else None,
        account_name=account.account_name if account is not None else None,
        account_legal_name=account.account_legal_name if account is not None else None,
        vendor_name=vendor_name,
        distributor_name=distributor_names[0] if distributor_names else None,
        product_name_vendor=schedule.product.product_name_vendor if schedule.product else None,
        metrics=candidate.metrics,
        match_confidence=confidence,
        match_type=match_type,
        confidence_level=level,
        signals=signals,
        reasons=[s.description for s in signals if s.score > 0 and s.description],
        is_fallback=candidate.is_fallback,
    )
