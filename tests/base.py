import os
import unittest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure settings can be initialized in test environments
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("SEED_ON_STARTUP", "false")

from textile_backend.db.session import Base
from textile_backend.models.customer import Contact, Customer
from textile_backend.models.permission import Permission
from textile_backend.models.quotation import Quotation, QuotationItem
from textile_backend.models.role import Role
from textile_backend.models.user import User

BASE_TIME = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)


class DatabaseTestCase(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        cls.SessionLocal = sessionmaker(bind=cls.engine, autocommit=False, autoflush=False)
        Base.metadata.create_all(bind=cls.engine)

    @classmethod
    def tearDownClass(cls):
        Base.metadata.drop_all(bind=cls.engine)
        cls.engine.dispose()

    def setUp(self):
        self.db = self.SessionLocal()
        for table in reversed(Base.metadata.sorted_tables):
            self.db.execute(table.delete())
        self.db.commit()

    def tearDown(self):
        self.db.close()

    def add_customer(self, name, *, document_number=None, customer_type="COMPANY", is_active=True, created_at=None, email=None):
        row = Customer(
            name=name,
            document_number=document_number or f"DOC-{name}",
            customer_type=customer_type,
            is_active=is_active,
            email=email,
            created_at=created_at or BASE_TIME,
        )
        self.db.add(row)
        self.db.commit()
        return row

    def add_contact(self, customer, name, *, contact_type="MAIN", is_active=True):
        row = Contact(customer_id=customer.id, name=name, contact_type=contact_type, is_active=is_active)
        self.db.add(row)
        self.db.commit()
        return row

    def add_quotation(self, customer, code, *, status="DRAFT", total="100.00", issued_at=None, is_active=True):
        row = Quotation(
            customer_id=customer.id,
            code=code,
            status=status,
            total=Decimal(total),
            issued_at=issued_at or BASE_TIME,
            is_active=is_active,
        )
        self.db.add(row)
        self.db.commit()
        return row

    def add_item(self, quotation, description, *, quantity=1, unit_price="10.00"):
        row = QuotationItem(
            quotation_id=quotation.id,
            description=description,
            quantity=quantity,
            unit_price=Decimal(unit_price),
        )
        self.db.add(row)
        self.db.commit()
        return row

    @staticmethod
    def day(offset: int) -> datetime:
        return BASE_TIME + timedelta(days=offset)


__all__ = [
    "BASE_TIME",
    "Contact",
    "Customer",
    "DatabaseTestCase",
    "Permission",
    "Quotation",
    "QuotationItem",
    "Role",
    "User",
]
