import uuid
import enum
from datetime import date, datetime
from decimal import Decimal
from sqlalchemy import String, Date, DateTime, Numeric, Enum, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.compat import UUID

from app.db.base import Base


class DepositLineMatchStatus(str, enum.Enum):
    SUGGESTED = "Suggested"
    APPLIED = "Applied"
    REJECTED = "Rejected"


class Deposit(Base):
    """Vendor/distributor payment statement header."""

    __tablename__ = "deposits"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(), primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(UUID(), nullable=False, index=True)
    deposit_name: Mapped[str] = mapped_column(String(255), nullable=True)
    payment_date: Mapped[datetime] = mapped_column(DateTime, nullable=True)
    month: Mapped[date] = mapped_column(Date, nullable=True)
    distributor_account_id: Mapped[uuid.UUID] = mapped_column(
        UUID(), ForeignKey("accounts.id"), nullable=True
    )
    vendor_account_id: Mapped[uuid.UUID] = mapped_column(
        UUID(), ForeignKey("accounts.id"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    line_items: Mapped[list["DepositLineItem"]] = relationship(
        "DepositLineItem", back_populates="deposit", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Deposit {self.id}: {self.deposit_name}>"


class DepositLineItem(Base):
    """One reported usage/commission row of a deposit, exactly as the vendor sent it."""

    __tablename__ = "deposit_line_items"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(), primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(UUID(), nullable=False, index=True)
    deposit_id: Mapped[uuid.UUID] = mapped_column(
        UUID(), ForeignKey("deposits.id"), nullable=False
    )
    line_number: Mapped[int] = mapped_column(nullable=True)
    payment_date: Mapped[datetime] = mapped_column(DateTime, nullable=True)

    # Reported amounts
    usage: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=True)
    commission: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=True)
    commission_rate: Mapped[Decimal] = mapped_column(Numeric(9, 6), nullable=True)

    # Raw identity strings, un-normalized
    account_name_raw: Mapped[str] = mapped_column(String(255), nullable=True)
    vendor_name_raw: Mapped[str] = mapped_column(String(255), nullable=True)
    distributor_name_raw: Mapped[str] = mapped_column(String(255), nullable=True)
    product_name_raw: Mapped[str] = mapped_column(String(255), nullable=True)
    part_number_raw: Mapped[str] = mapped_column(String(100), nullable=True)

    # Raw identifiers
    account_id: Mapped[uuid.UUID] = mapped_column(
        UUID(), ForeignKey("accounts.id"), nullable=True
    )
    vendor_account_id: Mapped[uuid.UUID] = mapped_column(
        UUID(), ForeignKey("accounts.id"), nullable=True
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        UUID(), ForeignKey("products.id"), nullable=True
    )
    customer_id_vendor: Mapped[str] = mapped_column(String(100), nullable=True)
    order_id_vendor: Mapped[str] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    deposit: Mapped["Deposit"] = relationship("Deposit", back_populates="line_items")
    account: Mapped["Account"] = relationship("Account", foreign_keys=[account_id])
    vendor_account: Mapped["Account"] = relationship(
        "Account", foreign_keys=[vendor_account_id]
    )
    product: Mapped["Product"] = relationship("Product")
    matches: Mapped[list["DepositLineMatch"]] = relationship(
        "DepositLineMatch", back_populates="line_item", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<DepositLineItem {self.line_number}: {self.usage} / {self.commission}>"


class DepositLineMatch(Base):
    """Link between a deposit line and the revenue schedule it settles."""

    __tablename__ = "deposit_line_matches"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(), primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(UUID(), nullable=False, index=True)
    deposit_line_item_id: Mapped[uuid.UUID] = mapped_column(
        UUID(), ForeignKey("deposit_line_items.id"), nullable=False
    )
    revenue_schedule_id: Mapped[uuid.UUID] = mapped_column(
        UUID(), ForeignKey("revenue_schedules.id"), nullable=False
    )
    status: Mapped[DepositLineMatchStatus] = mapped_column(
        Enum(DepositLineMatchStatus), default=DepositLineMatchStatus.SUGGESTED
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    line_item: Mapped["DepositLineItem"] = relationship(
        "DepositLineItem", back_populates="matches"
    )

    def __repr__(self) -> str:
        return f"<DepositLineMatch {self.deposit_line_item_id} -> {self.revenue_schedule_id} ({self.status.value})>"
