"""
Candidate retrieval.

Loads a deposit line and the bounded universe of revenue schedules it could
settle. The search is narrow first: same tenant, a date window around the
line's payment date, matchable statuses, and the line's own distributor,
vendor and account when it names them. When that finds nothing and the caller
allows it, the search is repeated without the account/vendor/distributor
narrowing and every row is tagged as a cross-vendor fallback.

Each search is one bounded query with relations eager-loaded; scoring never
goes back to the database per candidate.
"""

import calendar
import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from app.matching.metrics import ScheduleMetrics, compute_schedule_metrics
from app.matching.normalize import to_utc_day
from app.models.deposit import DepositLineItem
from app.models.revenue_schedule import MATCHABLE_STATUSES, RevenueSchedule

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_BREADTH = 30


class DepositLineNotFoundError(LookupError):
    """Raised when the requested deposit line does not exist for the tenant."""

    def __init__(self, line_id):
        self.line_id = line_id
        super().__init__(f"Deposit line item {line_id} not found")


@dataclass(frozen=True)
class ScheduleCandidate:
    """A retrieved schedule plus call-scoped annotations.

    is_fallback marks rows found only by the broadened cross-vendor search.
    It is never persisted.
    """

    schedule: RevenueSchedule
    metrics: ScheduleMetrics
    is_fallback: bool = False


@dataclass
class RetrievalOptions:
    date_window_months: int = 1
    include_future_schedules: bool = False
    allow_cross_vendor_fallback: bool = False
    take: int = DEFAULT_SEARCH_BREADTH


def fetch_deposit_line(
    db: Session,
    line_id,
    tenant_id=None,
) -> DepositLineItem:
    """
    Load a deposit line with its deposit, snapshots and match records.

    Raises:
        DepositLineNotFoundError: unknown id, malformed id, or another tenant's line.
    """
    try:
        line_uuid = line_id if isinstance(line_id, uuid.UUID) else uuid.UUID(str(line_id))
    except ValueError:
        raise DepositLineNotFoundError(line_id) from None

    query = (
        db.query(DepositLineItem)
        .options(
            joinedload(DepositLineItem.deposit),
            joinedload(DepositLineItem.account),
            joinedload(DepositLineItem.vendor_account),
            joinedload(DepositLineItem.product),
            selectinload(DepositLineItem.matches),
        )
        .filter(DepositLineItem.id == line_uuid)
    )
    if tenant_id is not None:
        query = query.filter(DepositLineItem.tenant_id == tenant_id)

    line_item = query.first()
    if line_item is None:
        raise DepositLineNotFoundError(line_id)
    return line_item


def reference_date(line_item: DepositLineItem, today: date | None = None) -> date:
    """Payment date of the line, else of its deposit, else the deposit month, else today."""
    deposit = line_item.deposit
    for value in (
        line_item.payment_date,
        deposit.payment_date if deposit is not None else None,
        deposit.month if deposit is not None else None,
    ):
        day = to_utc_day(value)
        if day is not None:
            return day
    return today or datetime.now(timezone.utc).date()


def add_months(day: date, months: int) -> date:
    """Shift by whole months, clamping to the last day of a shorter month."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def end_of_month(day: date) -> date:
    return date(day.year, day.month, calendar.monthrange(day.year, day.month)[1])


def schedule_date_range(
    reference: date,
    date_window_months: int,
    include_future_schedules: bool,
) -> tuple[date, date]:
    """Inclusive schedule-date bounds for the candidate search."""
    start = add_months(reference, -date_window_months)
    if include_future_schedules:
        return start, end_of_month(add_months(reference, date_window_months))
    return start, end_of_month(reference)


def fetch_candidate_schedules(
    db: Session,
    line_item: DepositLineItem,
    options: RetrievalOptions | None = None,
) -> list[ScheduleCandidate]:
    """
    Retrieve the revenue schedules a deposit line could settle.

    Schedules with no outstanding commission are filtered out in the query,
    so `take` bounds eligible rows only. An empty list is a legitimate
    "no match" outcome, not an error.
    """
    options = options or RetrievalOptions()
    start, end = schedule_date_range(
        reference_date(line_item),
        options.date_window_months,
        options.include_future_schedules,
    )

    narrowing = _narrowing_filters(line_item)
    schedules = _query_schedules(db, line_item, start, end, narrowing, options.take)
    is_fallback = False

    if not schedules and narrowing and options.allow_cross_vendor_fallback:
        logger.warning(
            "No schedules for line %s within its distributor/vendor/account; "
            "falling back to cross-vendor search (%s to %s)",
            line_item.id,
            start,
            end,
        )
        schedules = _query_schedules(db, line_item, start, end, [], options.take)
        is_fallback = True

    candidates = []
    for schedule in schedules:
        metrics = compute_schedule_metrics(schedule)
        if not metrics.has_outstanding_commission:
            continue
        candidates.append(
            ScheduleCandidate(schedule=schedule, metrics=metrics, is_fallback=is_fallback)
        )

    logger.debug(
        "Line %s: %d schedules retrieved, %d with outstanding commission%s",
        line_item.id,
        len(schedules),
        len(candidates),
        " (fallback)" if is_fallback else "",
    )
    return candidates


def _narrowing_filters(line_item: DepositLineItem) -> list:
    deposit = line_item.deposit
    distributor_account_id = deposit.distributor_account_id if deposit is not None else None
    vendor_account_id = line_item.vendor_account_id or (
        deposit.vendor_account_id if deposit is not None else None
    )

    filters = []
    if distributor_account_id is not None:
        filters.append(RevenueSchedule.distributor_account_id == distributor_account_id)
    if vendor_account_id is not None:
        filters.append(RevenueSchedule.vendor_account_id == vendor_account_id)
    if line_item.account_id is not None:
        filters.append(RevenueSchedule.account_id == line_item.account_id)
    return filters


def _query_schedules(
    db: Session,
    line_item: DepositLineItem,
    start: date,
    end: date,
    narrowing: list,
    take: int,
) -> list[RevenueSchedule]:
    outstanding_commission = (
        func.coalesce(RevenueSchedule.expected_commission, 0)
        - func.coalesce(RevenueSchedule.actual_commission, 0)
        - func.coalesce(RevenueSchedule.actual_commission_adjustment, 0)
    )
    return (
        db.query(RevenueSchedule)
        .options(
            joinedload(RevenueSchedule.account),
            joinedload(RevenueSchedule.vendor_account),
            joinedload(RevenueSchedule.distributor_account),
            joinedload(RevenueSchedule.product),
            joinedload(RevenueSchedule.opportunity),
        )
        .filter(
            RevenueSchedule.tenant_id == line_item.tenant_id,
            RevenueSchedule.schedule_date >= start,
            RevenueSchedule.schedule_date <= end,
            RevenueSchedule.status.in_(MATCHABLE_STATUSES),
            outstanding_commission > 0,
            *narrowing,
        )
        .order_by(RevenueSchedule.schedule_date.asc(), RevenueSchedule.created_at.asc())
        .limit(take)
        .all()
    )
