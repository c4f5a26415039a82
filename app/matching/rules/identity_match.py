"""
Identity rules: exact identifier comparisons.

Order ids, customer ids and account ids are the strongest evidence a deposit
line can carry. All comparisons go through clean_identifier, so a blank or
"N/A" identifier is *absent* (no evidence either way) while two present but
different identifiers are a *conflict* (evidence against the match).

A revenue schedule can know an order or customer under several ids (house,
distributor and vendor variants); a reported id matches if it equals any of
them.
"""

from app.matching.normalize import clean_identifier
from app.models.revenue_schedule import RevenueSchedule


def schedule_order_ids(schedule: RevenueSchedule) -> set[str]:
    """All order ids a schedule is known by, cleaned."""
    raw = [schedule.order_id_house, schedule.distributor_order_id]
    if schedule.opportunity is not None:
        raw.append(schedule.opportunity.order_id_vendor)
    return {cleaned for cleaned in map(clean_identifier, raw) if cleaned}


def schedule_customer_ids(schedule: RevenueSchedule) -> set[str]:
    """All customer ids the schedule's opportunity carries, cleaned."""
    if schedule.opportunity is None:
        return set()
    return {
        cleaned
        for cleaned in map(clean_identifier, schedule.opportunity.customer_ids)
        if cleaned
    }


def exact_id_match(reported: str | None, known: set[str]) -> bool:
    """True when a cleaned reported id is one of the known ids."""
    return reported is not None and reported in known


def id_conflict(reported: str | None, known: set[str]) -> bool:
    """True when both sides carry ids and none of them agree."""
    return reported is not None and bool(known) and reported not in known
