from sqlalchemy import JSON, Boolean, Column, ForeignKey, String, Table
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from textile_backend.db.session import Base
from textile_backend.models.common import ActiveMixin, UUIDMixin, TimestampMixin
from textile_backend.models.permission import Permission

role_permissions = Table(
    "role_permissions",
    Base.metadata,
    Column("role_id", UUID(as_uuid=True), ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column("permission_id", UUID(as_uuid=True), ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True),
)

class Role(Base, UUIDMixin, TimestampMixin, ActiveMixin):
    __tablename__ = "roles"
    name: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(String(300), nullable=True)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # set by admin edits
    user_modified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    seed_permissions_hash: Mapped[str | None] = mapped_column(String(32), nullable=True)
    seed_role_key: Mapped[str | None] = mapped_column(String(120), unique=True, nullable=True)
    # permission strings of the last applied seed config
    seed_permissions: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)

    permissions: Mapped[list[Permission]] = relationship(secondary=role_permissions, order_by=Permission.resource)
