import uuid
from datetime import datetime
from sqlalchemy import String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.compat import UUID

from app.db.base import Base


class Account(Base):
    """Customer, vendor or distributor account."""

    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(), primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(UUID(), nullable=False, index=True)
    account_name: Mapped[str] = mapped_column(String(255), nullable=False)
    account_legal_name: Mapped[str] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<Account {self.id}: {self.account_name}>"


class Product(Base):
    """Catalog product sold through a vendor."""

    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(), primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(UUID(), nullable=False, index=True)
    product_name_house: Mapped[str] = mapped_column(String(255), nullable=True)
    product_name_vendor: Mapped[str] = mapped_column(String(255), nullable=True)
    part_number_vendor: Mapped[str] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<Product {self.id}: {self.product_name_vendor or self.product_name_house}>"


class Opportunity(Base):
    """Sold deal that revenue schedules are generated from.

    Carries the identifiers vendors and distributors print on their
    statements, so it is the main source of exact-id matching signals.
    """

    __tablename__ = "opportunities"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(), primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(UUID(), nullable=False, index=True)
    account_id: Mapped[uuid.UUID] = mapped_column(
        UUID(), ForeignKey("accounts.id"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=True)

    # Identifiers as assigned by each party
    customer_id_vendor: Mapped[str] = mapped_column(String(100), nullable=True)
    customer_id_distributor: Mapped[str] = mapped_column(String(100), nullable=True)
    customer_id_house: Mapped[str] = mapped_column(String(100), nullable=True)
    order_id_vendor: Mapped[str] = mapped_column(String(100), nullable=True)

    # Display names as the vendor/distributor know this deal
    distributor_name: Mapped[str] = mapped_column(String(255), nullable=True)
    vendor_name: Mapped[str] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    account: Mapped["Account"] = relationship("Account")

    @property
    def customer_ids(self) -> list[str | None]:
        return [self.customer_id_vendor, self.customer_id_distributor, self.customer_id_house]

    def __repr__(self) -> str:
        return f"<Opportunity {self.id}: {self.name}>"
