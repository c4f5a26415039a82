"""Tests for the matching engine orchestrator and row projection."""

import uuid
from datetime import date, datetime
from decimal import Decimal

import pytest

from app.config import Settings
from app.matching import (
    DepositLineNotFoundError,
    MatchingConfig,
    MatchOptions,
    MatchType,
    ScoringStrategy,
    candidates_to_suggested_rows,
    match_deposit_line,
)
from app.matching.engine import select_strategy
from app.matching.rows import SuggestedRowStatus, commission_rate
from app.models import RevenueScheduleStatus

HIERARCHICAL = MatchingConfig(hierarchical_enabled=True)


@pytest.fixture
def scenario(factory):
    """One deposit line and three open schedules of decreasing fit."""
    exact_account = factory.account("Acme", legal_name="ACME, INC.")
    near_account = factory.account("Acme Holdings")
    other_account = factory.account("Zenith")
    fiber = factory.product("Fiber 100")

    line = factory.line(
        factory.deposit(),
        payment_date=datetime(2024, 1, 1),
        account_name_raw="Acme Corp",
        product_name_raw="Fiber 100",
    )
    exact = factory.schedule(schedule_number="RS-1", account_id=exact_account.id)
    near = factory.schedule(schedule_number="RS-2", account_id=near_account.id, product_id=fiber.id)
    unrelated = factory.schedule(schedule_number="RS-3", account_id=other_account.id)
    return line, exact, near, unrelated


class TestMatchOptions:
    """Test per-call option defaults."""

    def test_search_breadth(self):
        assert MatchOptions().search_breadth == 30
        assert MatchOptions(result_limit=20).search_breadth == 60
        assert MatchOptions(take=7).search_breadth == 7

    def test_select_strategy(self):
        assert select_strategy(MatchOptions(), MatchingConfig()) == ScoringStrategy.LEGACY
        assert select_strategy(MatchOptions(), HIERARCHICAL) == ScoringStrategy.HIERARCHICAL
        assert (
            select_strategy(MatchOptions(use_hierarchical_matching=False), HIERARCHICAL)
            == ScoringStrategy.LEGACY
        )
        assert (
            select_strategy(MatchOptions(use_hierarchical_matching=True), MatchingConfig())
            == ScoringStrategy.HIERARCHICAL
        )


class TestMatchingConfig:
    """Test resolving process-wide defaults from settings."""

    def test_from_settings(self):
        settings = Settings(
            _env_file=None,
            hierarchical_matching_enabled="1",
            matching_debug_log="TRUE",
            suggest_threshold=0.85,
        )
        config = MatchingConfig.from_settings(settings)

        assert config.hierarchical_enabled is True
        assert config.debug_enabled is True
        assert config.thresholds.suggest_threshold == 0.85
        assert config.thresholds.auto_match_threshold == 0.97

    def test_defaults_are_off(self):
        config = MatchingConfig.from_settings(Settings(_env_file=None))
        assert config.hierarchical_enabled is False
        assert config.debug_enabled is False


class TestMatchDepositLine:
    """Test the end-to-end ranking for a single deposit line."""

    def test_hierarchical_ranking(self, db_session, scenario):
        line, exact, near, _ = scenario

        result = match_deposit_line(db_session, line.id, config=HIERARCHICAL)

        assert result.strategy == ScoringStrategy.HIERARCHICAL
        assert [c.revenue_schedule_id for c in result.candidates] == [exact.id, near.id]
        top, second = result.candidates
        assert top.match_type == MatchType.EXACT
        assert top.match_confidence == 1.0
        assert second.match_type == MatchType.FUZZY
        assert second.match_confidence == pytest.approx(0.8)
        assert result.line_item.id == line.id

    def test_legacy_keeps_every_candidate(self, db_session, scenario):
        line, exact, near, unrelated = scenario

        result = match_deposit_line(db_session, line.id)

        assert result.strategy == ScoringStrategy.LEGACY
        assert {c.revenue_schedule_id for c in result.candidates} == {exact.id, near.id, unrelated.id}
        assert all(c.match_type == MatchType.LEGACY for c in result.candidates)
        confidences = [c.match_confidence for c in result.candidates]
        assert confidences == sorted(confidences, reverse=True)

    def test_option_overrides_config(self, db_session, scenario):
        line = scenario[0]
        result = match_deposit_line(
            db_session, line.id, MatchOptions(use_hierarchical_matching=False), HIERARCHICAL
        )
        assert result.strategy == ScoringStrategy.LEGACY

    def test_result_limit(self, db_session, scenario):
        line = scenario[0]
        result = match_deposit_line(db_session, line.id, MatchOptions(result_limit=1))
        assert len(result.candidates) == 1

    def test_fifo_tie_break_on_creation_time(self, factory, db_session):
        line = factory.line(factory.deposit())
        newer = factory.schedule(created_at=datetime(2023, 12, 20))
        older = factory.schedule(created_at=datetime(2023, 11, 20))

        result = match_deposit_line(db_session, line.id)

        assert [c.revenue_schedule_id for c in result.candidates] == [older.id, newer.id]
        assert result.candidates[0].match_confidence == result.candidates[1].match_confidence

    def test_no_candidates_is_not_an_error(self, factory, db_session):
        line = factory.line(factory.deposit())
        factory.schedule(schedule_date=date(2022, 1, 1))

        result = match_deposit_line(db_session, line.id, config=HIERARCHICAL)

        assert result.candidates == []
        assert result.applied_match_schedule_id is None

    def test_applied_match_reported(self, factory, db_session):
        line = factory.line(factory.deposit())
        settled = factory.schedule(
            status=RevenueScheduleStatus.RECONCILED, actual_commission=Decimal("10.00")
        )
        factory.applied_match(line, settled)

        result = match_deposit_line(db_session, line.id)

        assert result.applied_match_schedule_id == settled.id
        assert settled.id not in {c.revenue_schedule_id for c in result.candidates}

    def test_unknown_line(self, db_session):
        with pytest.raises(DepositLineNotFoundError):
            match_deposit_line(db_session, uuid.uuid4())

    def test_tenant_scoped_lookup(self, factory, db_session):
        line = factory.line(factory.deposit())
        with pytest.raises(DepositLineNotFoundError):
            match_deposit_line(db_session, line.id, tenant_id=uuid.uuid4())

    def test_debug_summary_logged(self, db_session, scenario, caplog):
        line = scenario[0]

        with caplog.at_level("INFO", logger="app.matching.engine"):
            match_deposit_line(db_session, line.id, MatchOptions(debug_log=True), HIERARCHICAL)

        assert "2 ranked" in caplog.text
        assert "RS-1: confidence 1.0000 (exact, high)" in caplog.text

    def test_debug_summary_follows_config(self, db_session, scenario, caplog):
        line = scenario[0]

        with caplog.at_level("INFO", logger="app.matching.engine"):
            match_deposit_line(db_session, line.id, config=MatchingConfig(debug_enabled=True))
            logged = len(caplog.records)
            match_deposit_line(db_session, line.id, MatchOptions(debug_log=False))

        assert logged > 0
        assert len(caplog.records) == logged


class TestSuggestedRows:
    """Test projecting ranked candidates into grid rows."""

    def test_commission_rate(self):
        assert commission_rate(Decimal("10"), Decimal("100")) == 0.1
        assert commission_rate(Decimal("1"), Decimal("3")) == 0.3333
        assert commission_rate(Decimal("5"), Decimal("0")) == 0.0

    def test_rows_keep_order_and_figures(self, db_session, scenario):
        line, exact, near, _ = scenario
        result = match_deposit_line(db_session, line.id, config=HIERARCHICAL)

        rows = candidates_to_suggested_rows(result.line_item, result.candidates)

        assert [row.id for row in rows] == [str(exact.id), str(near.id)]
        first = rows[0]
        assert first.line_item_id == str(line.id)
        assert first.revenue_schedule_name == "RS-1"
        assert first.account_name == "Acme"
        assert first.legal_name == "ACME, INC."
        assert first.expected_commission_net == Decimal("10")
        assert first.expected_commission_rate == 0.1
        assert first.actual_commission_rate == 0.0
        assert first.commission_rate_difference == 0.1
        assert first.status == SuggestedRowStatus.SUGGESTED
        assert rows[1].product_name_vendor == "Fiber 100"

    def test_applied_schedule_marked_reconciled(self, factory, db_session, scenario):
        line, exact, near, _ = scenario
        factory.applied_match(line, near)

        result = match_deposit_line(db_session, line.id, config=HIERARCHICAL)
        rows = candidates_to_suggested_rows(
            result.line_item, result.candidates, result.applied_match_schedule_id
        )

        statuses = {row.id: row.status for row in rows}
        assert statuses[str(near.id)] == SuggestedRowStatus.RECONCILED
        assert statuses[str(exact.id)] == SuggestedRowStatus.SUGGESTED

    def test_to_dict(self, db_session, scenario):
        line = scenario[0]
        result = match_deposit_line(db_session, line.id, config=HIERARCHICAL)

        row = candidates_to_suggested_rows(result.line_item, result.candidates)[0].to_dict()

        assert row["status"] == "Suggested"
        assert row["match_type"] == "exact"
        assert row["confidence_level"] == "high"
        assert row["is_fallback"] is False
        assert "Account legal name matches" in row["reasons"]
        assert row["signals"][0] == {
            "name": "account_legal_name_exact",
            "score": 1.0,
            "weight": 0.25,
            "contribution": 0.25,
            "description": "Account legal name matches",
        }
