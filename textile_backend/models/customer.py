import uuid

from sqlalchemy import ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from textile_backend.db.session import Base
from textile_backend.models.common import ActiveMixin, UUIDMixin, TimestampMixin

CUSTOMER_TYPES = ("PERSON", "COMPANY")
CONTACT_TYPES = ("MAIN", "BILLING", "SHIPPING")

class Customer(Base, UUIDMixin, TimestampMixin, ActiveMixin):
    __tablename__ = "customers"
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    document_number: Mapped[str] = mapped_column(String(40), unique=True, nullable=False)
    customer_type: Mapped[str] = mapped_column(String(20), nullable=False, default="COMPANY")  # PERSON|COMPANY
    email: Mapped[str | None] = mapped_column(String(200), nullable=True)

    contacts: Mapped[list["Contact"]] = relationship(back_populates="customer", cascade="all, delete-orphan")
    quotations: Mapped[list["Quotation"]] = relationship(back_populates="customer")

class Contact(Base, UUIDMixin, TimestampMixin, ActiveMixin):
    __tablename__ = "contacts"
    customer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str | None] = mapped_column(String(200), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    contact_type: Mapped[str] = mapped_column(String(20), nullable=False, default="MAIN")  # MAIN|BILLING|SHIPPING

    customer: Mapped[Customer] = relationship(back_populates="contacts")
