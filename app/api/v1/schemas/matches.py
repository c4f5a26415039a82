"""Pydantic schemas for reconciliation candidate endpoints."""

from datetime import date
from decimal import Decimal
from pydantic import BaseModel


class MatchSignalResponse(BaseModel):
    """One weighted piece of evidence behind a match confidence."""
    name: str
    score: float
    weight: float
    contribution: float
    description: str | None = None


class SuggestedMatchRowResponse(BaseModel):
    """One candidate revenue schedule for a deposit line."""
    id: str
    line_item_id: str
    revenue_schedule_name: str
    revenue_schedule_date: date | None = None
    account_name: str | None = None
    legal_name: str | None = None
    vendor_name: str | None = None
    distributor_name: str | None = None
    product_name_vendor: str | None = None
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
    status: str
    is_fallback: bool = False
    reasons: list[str] = []
    signals: list[MatchSignalResponse] = []


class CandidateListResponse(BaseModel):
    """Ranked candidates for a deposit line."""
    deposit_id: str
    line_item_id: str
    engine: str
    applied_match_schedule_id: str | None = None
    total: int
    data: list[SuggestedMatchRowResponse]
