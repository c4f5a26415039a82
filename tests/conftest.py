"""
Pytest configuration and shared fixtures.
"""

import os

# Must be set before app.config is first imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("HIERARCHICAL_MATCHING_ENABLED", None)
os.environ.pop("MATCHING_DEBUG_LOG", None)

import uuid
from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.matching.candidates import ScheduleCandidate
from app.matching.metrics import compute_schedule_metrics
from app.models import (
    Account,
    Deposit,
    DepositLineItem,
    DepositLineMatch,
    DepositLineMatchStatus,
    Opportunity,
    Product,
    RevenueSchedule,
    RevenueScheduleStatus,
    SystemSetting,
)


@pytest.fixture
def db_session():
    """In-memory SQLite session with the full schema."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()
    engine.dispose()


class RecordFactory:
    """Persists read-model rows for one tenant with sensible defaults."""

    def __init__(self, session, tenant_id: uuid.UUID):
        self.session = session
        self.tenant_id = tenant_id

    def _save(self, record):
        self.session.add(record)
        self.session.commit()
        return record

    def account(self, name: str, legal_name: str | None = None) -> Account:
        return self._save(
            Account(tenant_id=self.tenant_id, account_name=name, account_legal_name=legal_name)
        )

    def product(self, vendor_name: str | None = None, part_number: str | None = None, **kwargs) -> Product:
        return self._save(
            Product(
                tenant_id=self.tenant_id,
                product_name_vendor=vendor_name,
                part_number_vendor=part_number,
                **kwargs,
            )
        )

    def opportunity(self, **kwargs) -> Opportunity:
        return self._save(Opportunity(tenant_id=self.tenant_id, **kwargs))

    def deposit(self, **kwargs) -> Deposit:
        kwargs.setdefault("deposit_name", "January statement")
        kwargs.setdefault("payment_date", datetime(2024, 1, 15))
        kwargs.setdefault("month", date(2024, 1, 1))
        return self._save(Deposit(tenant_id=self.tenant_id, **kwargs))

    def line(self, deposit: Deposit, **kwargs) -> DepositLineItem:
        kwargs.setdefault("line_number", 1)
        kwargs.setdefault("usage", Decimal("100.00"))
        kwargs.setdefault("commission", Decimal("10.00"))
        return self._save(DepositLineItem(tenant_id=self.tenant_id, deposit_id=deposit.id, **kwargs))

    def schedule(self, **kwargs) -> RevenueSchedule:
        kwargs.setdefault("schedule_date", date(2024, 1, 1))
        kwargs.setdefault("status", RevenueScheduleStatus.PROJECTED)
        kwargs.setdefault("expected_usage", Decimal("100.00"))
        kwargs.setdefault("expected_commission", Decimal("10.00"))
        kwargs.setdefault("created_at", datetime(2023, 12, 1))
        return self._save(RevenueSchedule(tenant_id=self.tenant_id, **kwargs))

    def applied_match(self, line: DepositLineItem, schedule: RevenueSchedule) -> DepositLineMatch:
        return self._save(
            DepositLineMatch(
                tenant_id=self.tenant_id,
                deposit_line_item_id=line.id,
                revenue_schedule_id=schedule.id,
                status=DepositLineMatchStatus.APPLIED,
            )
        )

    def setting(self, key: str, value) -> SystemSetting:
        return self._save(SystemSetting(tenant_id=self.tenant_id, key=key, value=value))


@pytest.fixture
def tenant_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def factory(db_session, tenant_id) -> RecordFactory:
    return RecordFactory(db_session, tenant_id)


@pytest.fixture
def make_line():
    """Build an unsaved deposit line (with deposit) for pure scoring tests."""

    def _make(**kwargs) -> DepositLineItem:
        deposit = Deposit(
            id=uuid.uuid4(),
            tenant_id=kwargs.pop("tenant_id", uuid.uuid4()),
            payment_date=kwargs.pop("deposit_payment_date", None),
            month=kwargs.pop("deposit_month", date(2024, 1, 1)),
            vendor_account_id=kwargs.pop("deposit_vendor_account_id", None),
            distributor_account_id=kwargs.pop("deposit_distributor_account_id", None),
        )
        kwargs.setdefault("payment_date", datetime(2024, 1, 1))
        kwargs.setdefault("usage", Decimal("100"))
        kwargs.setdefault("commission", Decimal("10"))
        line = DepositLineItem(id=uuid.uuid4(), tenant_id=deposit.tenant_id, **kwargs)
        line.deposit = deposit
        return line

    return _make


@pytest.fixture
def make_candidate():
    """Build an unsaved schedule wrapped as a ScheduleCandidate."""

    def _make(
        account: Account | None = None,
        product: Product | None = None,
        opportunity: Opportunity | None = None,
        is_fallback: bool = False,
        **kwargs,
    ) -> ScheduleCandidate:
        kwargs.setdefault("schedule_date", date(2024, 1, 1))
        kwargs.setdefault("status", RevenueScheduleStatus.PROJECTED)
        kwargs.setdefault("expected_usage", Decimal("100"))
        kwargs.setdefault("expected_commission", Decimal("10"))
        schedule = RevenueSchedule(id=uuid.uuid4(), **kwargs)
        schedule.account = account
        schedule.product = product
        schedule.opportunity = opportunity
        if account is not None:
            schedule.account_id = account.id
        return ScheduleCandidate(
            schedule=schedule,
            metrics=compute_schedule_metrics(schedule),
            is_fallback=is_fallback,
        )

    return _make
