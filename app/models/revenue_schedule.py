import uuid
import enum
from datetime import date, datetime
from decimal import Decimal
from sqlalchemy import String, Date, DateTime, Numeric, Enum, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.compat import UUID

from app.db.base import Base


class RevenueScheduleStatus(str, enum.Enum):
    PROJECTED = "Projected"
    INVOICED = "Invoiced"
    RECONCILED = "Reconciled"
    CANCELLED = "Cancelled"


# Only these statuses can still receive deposit money
MATCHABLE_STATUSES = (RevenueScheduleStatus.PROJECTED, RevenueScheduleStatus.INVOICED)


class RevenueSchedule(Base):
    """Expected usage/commission for one month of an opportunity product."""

    __tablename__ = "revenue_schedules"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(), primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(UUID(), nullable=False, index=True)
    schedule_number: Mapped[str] = mapped_column(String(50), nullable=True)
    schedule_date: Mapped[date] = mapped_column(Date, nullable=True, index=True)
    status: Mapped[RevenueScheduleStatus] = mapped_column(
        Enum(RevenueScheduleStatus), default=RevenueScheduleStatus.PROJECTED
    )

    # Usage
    expected_usage: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=True)
    usage_adjustment: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=True)
    actual_usage: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=True)
    actual_usage_adjustment: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=True)

    # Commission (there is no expected-commission adjustment column)
    expected_commission: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=True)
    actual_commission: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=True)
    actual_commission_adjustment: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=True)

    order_id_house: Mapped[str] = mapped_column(String(100), nullable=True)
    distributor_order_id: Mapped[str] = mapped_column(String(100), nullable=True)

    account_id: Mapped[uuid.UUID] = mapped_column(
        UUID(), ForeignKey("accounts.id"), nullable=True
    )
    vendor_account_id: Mapped[uuid.UUID] = mapped_column(
        UUID(), ForeignKey("accounts.id"), nullable=True
    )
    distributor_account_id: Mapped[uuid.UUID] = mapped_column(
        UUID(), ForeignKey("accounts.id"), nullable=True
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        UUID(), ForeignKey("products.id"), nullable=True
    )
    opportunity_id: Mapped[uuid.UUID] = mapped_column(
        UUID(), ForeignKey("opportunities.id"), nullable=True
    )

    # Metadata
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    account: Mapped["Account"] = relationship("Account", foreign_keys=[account_id])
    vendor_account: Mapped["Account"] = relationship(
        "Account", foreign_keys=[vendor_account_id]
    )
    distributor_account: Mapped["Account"] = relationship(
        "Account", foreign_keys=[distributor_account_id]
    )
    product: Mapped["Product"] = relationship("Product")
    opportunity: Mapped["Opportunity"] = relationship("Opportunity")

    def __repr__(self) -> str:
        return f"<RevenueSchedule {self.schedule_number or self.id}: {self.schedule_date}>"
