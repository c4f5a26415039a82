"""Projection of scored candidates into display rows for the reconciliation view."""

import enum
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from app.matching.scoring import ScoredCandidate
from app.models.deposit import DepositLineItem


class SuggestedRowStatus(str, enum.Enum):
    SUGGESTED = "Suggested"
    RECONCILED = "Reconciled"


@dataclass
class SuggestedMatchRow:
    """One candidate schedule as the reconciliation grid shows it."""

    id: str
    line_item_id: str
    revenue_schedule_name: str
    revenue_schedule_date: date | None
    account_name: str | None
    legal_name: str | None
    vendor_name: str | None
    distributor_name: str | None
    product_name_vendor: str | None
    expected_usage_net: Decimal
    actual_usage_net: Decimal
    usage_balance: Decimal
    expected_commission_net: Decimal
    actual_commission_net: Decimal
    commission_difference: Decimal
    expected_commission_rate: float
    actual_commission_rate: float
    commission_rate_difference: float
    match_confidence: float
    match_type: str
    confidence_level: str
    status: SuggestedRowStatus
    is_fallback: bool = False
    reasons: list[str] = field(default_factory=list)
    signals: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "line_item_id": self.line_item_id,
            "revenue_schedule_name": self.revenue_schedule_name,
            "revenue_schedule_date": self.revenue_schedule_date,
            "account_name": self.account_name,
            "legal_name": self.legal_name,
            "vendor_name": self.vendor_name,
            "distributor_name": self.distributor_name,
            "product_name_vendor": self.product_name_vendor,
            "expected_usage_net": self.expected_usage_net,
            "actual_usage_net": self.actual_usage_net,
            "usage_balance": self.usage_balance,
            "expected_commission_net": self.expected_commission_net,
            "actual_commission_net": self.actual_commission_net,
            "commission_difference": self.commission_difference,
            "expected_commission_rate": self.expected_commission_rate,
            "actual_commission_rate": self.actual_commission_rate,
            "commission_rate_difference": self.commission_rate_difference,
            "match_confidence": self.match_confidence,
            "match_type": self.match_type,
            "confidence_level": self.confidence_level,
            "status": self.status.value,
            "is_fallback": self.is_fallback,
            "reasons": list(self.reasons),
            "signals": list(self.signals),
        }


def commission_rate(commission: Decimal, usage: Decimal) -> float:
    """Commission as a fraction of usage; 0 when there is no usage."""
    if usage == 0:
        return 0.0
    return round(float(commission / usage), 4)


def candidates_to_suggested_rows(
    line_item: DepositLineItem,
    candidates: list[ScoredCandidate],
    applied_schedule_id=None,
) -> list[SuggestedMatchRow]:
    """
    Map scored candidates to display rows, keeping their order.

    The row for the schedule already applied to this line is marked
    Reconciled; every other row is Suggested.
    """
    applied = str(applied_schedule_id) if applied_schedule_id is not None else None
    rows = []

    for candidate in candidates:
        schedule_id = str(candidate.revenue_schedule_id)
        expected_rate = commission_rate(candidate.expected_commission_net, candidate.expected_usage_net)
        actual_rate = commission_rate(candidate.actual_commission_net, candidate.actual_usage_net)

        rows.append(
            SuggestedMatchRow(
                id=schedule_id,
                line_item_id=str(line_item.id),
                revenue_schedule_name=candidate.revenue_schedule_name,
                revenue_schedule_date=candidate.revenue_schedule_date,
                account_name=candidate.account_name,
                legal_name=candidate.account_legal_name,
                vendor_name=candidate.vendor_name,
                distributor_name=candidate.distributor_name,
                product_name_vendor=candidate.product_name_vendor,
                expected_usage_net=candidate.expected_usage_net,
                actual_usage_net=candidate.actual_usage_net,
                usage_balance=candidate.usage_balance,
                expected_commission_net=candidate.expected_commission_net,
                actual_commission_net=candidate.actual_commission_net,
                commission_difference=candidate.commission_difference,
                expected_commission_rate=expected_rate,
                actual_commission_rate=actual_rate,
                commission_rate_difference=round(expected_rate - actual_rate, 4),
                match_confidence=candidate.match_confidence,
                match_type=candidate.match_type.value,
                confidence_level=candidate.confidence_level.value,
                status=(
                    SuggestedRowStatus.RECONCILED
                    if schedule_id == applied
                    else SuggestedRowStatus.SUGGESTED
                ),
                is_fallback=candidate.is_fallback,
                reasons=list(candidate.reasons),
                signals=[signal.to_dict() for signal in candidate.signals],
            )
        )
    return rows
