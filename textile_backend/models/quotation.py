import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from textile_backend.db.session import Base
from textile_backend.models.common import ActiveMixin, UUIDMixin, TimestampMixin, utcnow
from textile_backend.models.customer import Customer

QUOTATION_STATUSES = ("DRAFT", "SENT", "APPROVED", "REJECTED")

class Quotation(Base, UUIDMixin, TimestampMixin, ActiveMixin):
    __tablename__ = "quotations"
    code: Mapped[str] = mapped_column(String(40), unique=True, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="DRAFT")  # DRAFT|SENT|APPROVED|REJECTED
    total: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0)
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    customer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("customers.id"), nullable=False, index=True
    )

    customer: Mapped[Customer] = relationship(back_populates="quotations")
    items: Mapped[list["QuotationItem"]] = relationship(back_populates="quotation", cascade="all, delete-orphan")

class QuotationItem(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "quotation_items"
    quotation_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("quotations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    description: Mapped[str] = mapped_column(String(300), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0)

    quotation: Mapped[Quotation] = relationship(back_populates="items")
