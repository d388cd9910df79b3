from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from textile_backend.data.rbac_seed import ADMIN_CONFIG, PERMISSIONS_CONFIG, ROLES_CONFIG
from textile_backend.db.session import SessionLocal
from textile_backend.services.admin_seed import seed_admin
from textile_backend.services.permission_seed import seed_permissions
from textile_backend.services.role_seed import seed_roles

logger = logging.getLogger(__name__)


def initialize_system(
    db: Session,
    *,
    permissions: list[dict] = PERMISSIONS_CONFIG,
    roles: list[dict] = ROLES_CONFIG,
    admin: dict = ADMIN_CONFIG,
) -> bool:
    """Seed permissions, then roles, then the administrator. Never raises; returns False on failure."""
    logger.info("system initialization started")
    try:
        seed_permissions(db, permissions)
        seed_roles(db, roles)
        seed_admin(db, admin)
    except Exception:
        db.rollback()
        logger.exception("system initialization failed, the application keeps starting")
        return False
    logger.info("system initialization finished")
    return True


def run_initialization() -> bool:
    db = SessionLocal()
    try:
        return initialize_system(db)
    finally:
        db.close()
