from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from textile_backend.models.permission import Permission
from textile_backend.services.authorization import is_valid_permission_name, permission_name

logger = logging.getLogger(__name__)


def seed_permissions(db: Session, permissions: list[dict]) -> tuple[int, int, int]:
    """Create every configured permission that does not exist yet. Returns (created, skipped, errors)."""
    created = 0
    skipped = 0
    errors = 0

    existing = {(row.resource, row.action) for row in db.query(Permission).all()}
    for item in permissions:
        resource = str(item["resource"]).strip()
        action = str(item["action"]).strip()
        if not is_valid_permission_name(permission_name(resource, action)):
            logger.error("invalid permission in seed config: %s:%s", resource, action)
            errors += 1
            continue
        if (resource, action) in existing:
            skipped += 1
            continue
        db.add(Permission(resource=resource, action=action, description=item.get("description")))
        existing.add((resource, action))
        created += 1

    try:
        db.commit()
    except IntegrityError:
        # Another instance seeded the catalog first.
        db.rollback()
        logger.warning("permission catalog was seeded concurrently, nothing created")
        return 0, skipped + created, errors

    logger.info("permissions seed done: created=%s, skipped=%s, errors=%s", created, skipped, errors)
    return created, skipped, errors
