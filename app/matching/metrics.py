"""
Financial metrics for a candidate revenue schedule.

Net figures apply the stored adjustments to the gross expected/actual
amounts. The outstanding commission difference decides eligibility: a
schedule with nothing left to reconcile is never offered as a candidate.

There is no expected-commission adjustment in the schema, so the expected
commission net equals the gross figure.
"""

from dataclasses import dataclass
from decimal import Decimal

from app.matching.normalize import to_decimal
from app.models.revenue_schedule import RevenueSchedule

EXPECTED_COMMISSION_ADJUSTMENT = Decimal("0")


@dataclass(frozen=True)
class ScheduleMetrics:
    """Gross, adjustment and net usage/commission figures for one schedule."""

    expected_usage: Decimal
    usage_adjustment: Decimal
    actual_usage: Decimal
    actual_usage_adjustment: Decimal
    expected_commission: Decimal
    expected_commission_adjustment: Decimal
    actual_commission: Decimal
    actual_commission_adjustment: Decimal

    @property
    def expected_usage_net(self) -> Decimal:
        return self.expected_usage + self.usage_adjustment

    @property
    def actual_usage_net(self) -> Decimal:
        return self.actual_usage + self.actual_usage_adjustment

    @property
    def expected_commission_net(self) -> Decimal:
        return self.expected_commission + self.expected_commission_adjustment

    @property
    def actual_commission_net(self) -> Decimal:
        return self.actual_commission + self.actual_commission_adjustment

    @property
    def usage_balance(self) -> Decimal:
        return self.expected_usage_net - self.actual_usage_net

    @property
    def commission_difference(self) -> Decimal:
        return self.expected_commission_net - self.actual_commission_net

    @property
    def has_outstanding_commission(self) -> bool:
        return self.commission_difference > Decimal("0")


def compute_schedule_metrics(schedule: RevenueSchedule) -> ScheduleMetrics:
    """Read a schedule's amounts, treating missing or malformed values as zero."""
    return ScheduleMetrics(
        expected_usage=to_decimal(schedule.expected_usage),
        usage_adjustment=to_decimal(schedule.usage_adjustment),
        actual_usage=to_decimal(schedule.actual_usage),
        actual_usage_adjustment=to_decimal(schedule.actual_usage_adjustment),
        expected_commission=to_decimal(schedule.expected_commission),
        expected_commission_adjustment=EXPECTED_COMMISSION_ADJUSTMENT,
        actual_commission=to_decimal(schedule.actual_commission),
        actual_commission_adjustment=to_decimal(schedule.actual_commission_adjustment),
    )
