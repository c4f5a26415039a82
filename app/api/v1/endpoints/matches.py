"""Reconciliation candidate endpoints: rank revenue schedules for a deposit line."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.db.session import get_db
from app.matching import (
    DepositLineNotFoundError,
    MatchingConfig,
    MatchOptions,
    candidates_to_suggested_rows,
    match_deposit_line,
)
from app.matching.rows import SuggestedRowStatus
from app.matching.settings import get_tenant_matching_preferences
from app.api.v1.schemas.matches import CandidateListResponse, SuggestedMatchRowResponse

router = APIRouter(prefix="/reconciliation", tags=["Reconciliation"])


@router.get(
    "/deposits/{deposit_id}/line-items/{line_id}/candidates",
    response_model=CandidateListResponse,
)
def list_line_candidates(
    deposit_id: uuid.UUID,
    line_id: uuid.UUID,
    tenant_id: uuid.UUID = Query(..., description="Tenant the deposit belongs to"),
    limit: int | None = Query(None, ge=1, le=50, description="Maximum candidates to return"),
    include_future_schedules: bool | None = Query(None, description="Search schedules after the payment month"),
    use_hierarchical_matching: bool | None = Query(None, description="Override the tenant engine mode"),
    variance_tolerance: float | None = Query(None, ge=0, le=1, description="Exact-pass tolerance (0-1)"),
    allow_cross_vendor_fallback: bool = Query(False, description="Broaden an empty search beyond the line's vendor"),
    min_confidence: float | None = Query(None, ge=0, le=1, description="Hide suggestions below this confidence"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Rank the revenue schedules a deposit line most likely settles.

    Query parameters override the tenant's stored preferences, which in turn
    override the environment defaults. The schedule already applied to the
    line is always returned (status Reconciled); other rows (status
    Suggested) below min_confidence are hidden.
    """
    prefs = get_tenant_matching_preferences(db, tenant_id, settings.default_variance_tolerance)
    config = MatchingConfig.from_settings(settings)

    options = MatchOptions(
        result_limit=limit or settings.default_result_limit,
        date_window_months=settings.default_date_window_months,
        include_future_schedules=(
            prefs.include_future_schedules_default
            if include_future_schedules is None
            else include_future_schedules
        ),
        use_hierarchical_matching=(
            prefs.use_hierarchical_matching(config.hierarchical_enabled)
            if use_hierarchical_matching is None
            else use_hierarchical_matching
        ),
        variance_tolerance=(
            prefs.variance_tolerance if variance_tolerance is None else variance_tolerance
        ),
        allow_cross_vendor_fallback=allow_cross_vendor_fallback,
    )

    try:
        result = match_deposit_line(db, line_id, options, config, tenant_id=tenant_id)
    except DepositLineNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    if result.line_item.deposit_id != deposit_id:
        raise HTTPException(
            status_code=404,
            detail=f"Deposit line item {line_id} not found on deposit {deposit_id}",
        )

    floor = settings.suggested_matches_min_confidence if min_confidence is None else min_confidence
    rows = [
        row
        for row in candidates_to_suggested_rows(
            result.line_item, result.candidates, result.applied_match_schedule_id
        )
        if row.status == SuggestedRowStatus.RECONCILED or row.match_confidence >= floor
    ]

    applied = result.applied_match_schedule_id
    return CandidateListResponse(
        deposit_id=str(deposit_id),
        line_item_id=str(line_id),
        engine=result.strategy.value,
        applied_match_schedule_id=str(applied) if applied is not None else None,
        total=len(rows),
        data=[SuggestedMatchRowResponse(**row.to_dict()) for row in rows],
    )
