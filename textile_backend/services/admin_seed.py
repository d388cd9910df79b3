from __future__ import annotations

import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from textile_backend.core.config import settings
from textile_backend.core.security import hash_password
from textile_backend.models.role import Role
from textile_backend.models.user import User

logger = logging.getLogger(__name__)

_DUPLICATE_MARKERS = ("unique", "duplicate", "ya existe", "already exists")


def normalize_email(raw: str | None) -> str:
    return str(raw or "").strip().lower()


def get_user_by_email(db: Session, email: str) -> User | None:
    normalized = normalize_email(email)
    if not normalized:
        return None
    return db.query(User).filter(func.lower(User.email) == normalized).first()


def get_active_user_by_email(db: Session, email: str) -> User | None:
    user = get_user_by_email(db, email)
    if user is None or not user.is_active:
        return None
    return user


def _is_duplicate_error(exc: Exception) -> bool:
    # only unique violations; FK or NOT NULL failures are real errors
    message = str(exc.orig if isinstance(exc, IntegrityError) else exc).lower()
    return any(marker in message for marker in _DUPLICATE_MARKERS)


def seed_admin(db: Session, admin_config: dict, *, email: str | None = None, password: str | None = None) -> User | None:
    """Make sure the administrator user exists. Returns the existing or created user, or None when not configured."""
    email = normalize_email(settings.ADMIN_EMAIL if email is None else email)
    password = str(settings.ADMIN_PASSWORD if password is None else password)
    if not email or not password:
        logger.warning("ADMIN_EMAIL/ADMIN_PASSWORD not configured, administrator seed skipped")
        return None

    existing = get_user_by_email(db, email)
    if existing is not None:
        logger.info("administrator %s already exists", email)
        return existing

    role_names = list(admin_config.get("role_names") or [])
    roles = db.query(Role).filter(Role.name.in_(role_names)).all() if role_names else []
    if roles:
        holder = db.query(User).filter(User.roles.any(Role.id.in_([role.id for role in roles]))).first()
        if holder is not None:
            logger.info("a user with roles %s already exists (%s), administrator seed skipped", role_names, holder.email)
            return holder
    elif role_names:
        logger.warning("roles %s not found, administrator is created without roles", role_names)

    user = User(
        name=str(admin_config.get("name") or "Administrador"),
        last_name=admin_config.get("last_name"),
        email=email,
        password_hash=hash_password(password),
        is_active=True,
        roles=roles,
    )
    db.add(user)
    try:
        db.commit()
    except Exception as exc:
        db.rollback()
        if _is_duplicate_error(exc):
            logger.warning("administrator %s was created concurrently: %s", email, exc)
            return get_user_by_email(db, email)
        logger.exception("failed to create administrator %s", email)
        raise
    db.refresh(user)
    logger.info("administrator %s created with roles %s", email, [role.name for role in roles])
    return user
