import os
import unittest
from uuid import uuid4

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, delete
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure settings can be initialized in test environments
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("SEED_ON_STARTUP", "false")

from textile_backend.core.security import create_access_token, hash_password
from textile_backend.db.session import Base, get_db
from textile_backend.main import app
from textile_backend.models.customer import Contact, Customer
from textile_backend.models.permission import Permission
from textile_backend.models.quotation import Quotation, QuotationItem
from textile_backend.models.role import Role, role_permissions
from textile_backend.models.user import User, user_roles
from textile_backend.services.system_init import initialize_system


class AdminApiBase(unittest.TestCase):
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
        with self.SessionLocal() as db:
            db.execute(delete(QuotationItem))
            db.execute(delete(Quotation))
            db.execute(delete(Contact))
            db.execute(delete(Customer))
            db.execute(user_roles.delete())
            db.execute(delete(User))
            db.execute(role_permissions.delete())
            db.execute(delete(Role))
            db.execute(delete(Permission))
            db.commit()
            initialize_system(db)

        def override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(app)

    def tearDown(self):
        self.client.close()
        app.dependency_overrides.clear()

    def create_user(self, *role_names: str, email: str | None = None, password: str = "S3guro!", is_active: bool = True) -> User:
        with self.SessionLocal() as db:
            roles = db.query(Role).filter(Role.name.in_(role_names)).all() if role_names else []
            user = User(
                name="Usuaria",
                email=email or f"user-{uuid4().hex[:8]}@textil.pe",
                password_hash=hash_password(password),
                is_active=is_active,
                roles=roles,
            )
            db.add(user)
            db.commit()
            db.refresh(user)
            db.expunge(user)
            return user

    @staticmethod
    def auth_headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id, user.email)}"}
