"""Tests for metrics.py - schedule net figures and eligibility."""

from decimal import Decimal

from app.matching.metrics import compute_schedule_metrics
from app.models import RevenueSchedule


class TestScheduleMetrics:
    """Test net usage/commission figures."""

    def test_adjustments_applied(self):
        metrics = compute_schedule_metrics(
            RevenueSchedule(
                expected_usage=Decimal("100"),
                usage_adjustment=Decimal("-10"),
                actual_usage=Decimal("40"),
                actual_usage_adjustment=Decimal("5"),
                expected_commission=Decimal("12"),
                actual_commission=Decimal("4"),
                actual_commission_adjustment=Decimal("1"),
            )
        )

        assert metrics.expected_usage_net == Decimal("90")
        assert metrics.actual_usage_net == Decimal("45")
        assert metrics.usage_balance == Decimal("45")
        assert metrics.expected_commission_net == Decimal("12")
        assert metrics.actual_commission_net == Decimal("5")
        assert metrics.commission_difference == Decimal("7")
        assert metrics.has_outstanding_commission

    def test_expected_commission_adjustment_is_always_zero(self):
        metrics = compute_schedule_metrics(RevenueSchedule(expected_commission=Decimal("10")))
        assert metrics.expected_commission_adjustment == Decimal("0")
        assert metrics.expected_commission_net == Decimal("10")

    def test_missing_and_malformed_amounts_are_zero(self):
        metrics = compute_schedule_metrics(
            RevenueSchedule(expected_usage=None, expected_commission="garbage")
        )
        assert metrics.expected_usage_net == Decimal("0")
        assert metrics.commission_difference == Decimal("0")

    def test_fully_reconciled_schedule_has_nothing_outstanding(self):
        metrics = compute_schedule_metrics(
            RevenueSchedule(expected_commission=Decimal("10"), actual_commission=Decimal("10"))
        )
        assert metrics.commission_difference == Decimal("0")
        assert not metrics.has_outstanding_commission

    def test_overpaid_schedule_has_nothing_outstanding(self):
        metrics = compute_schedule_metrics(
            RevenueSchedule(
                expected_commission=Decimal("10"),
                actual_commission=Decimal("8"),
                actual_commission_adjustment=Decimal("3"),
            )
        )
        assert metrics.commission_difference == Decimal("-1")
        assert not metrics.has_outstanding_commission
