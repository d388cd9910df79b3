from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from fastapi import HTTPException
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from textile_backend.services.predicate_sql import predicate_to_clause

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeactivationRestriction:
    relation: str
    message: str
    condition: dict[str, Any] = field(default_factory=lambda: {"is_active": True})
    is_single_relation: bool = False

    def predicate(self) -> dict[str, Any]:
        if self.is_single_relation:
            return {self.relation: self.condition}
        return {self.relation: {"some": self.condition}}


@dataclass
class DeactivationCheck:
    can_deactivate: bool
    violations: list[str] = field(default_factory=list)
    blocked_by: list[str] = field(default_factory=list)


def _exists(db: Session, model, where: dict[str, Any]) -> bool:
    stmt = select(func.count()).select_from(model).where(predicate_to_clause(model, where))
    return bool(db.scalar(stmt))


def validate_deactivation_restrictions(
    db: Session,
    model,
    entity_id: Any,
    restrictions: list[DeactivationRestriction],
    soft_delete_skipped_restrictions: Optional[list[str]] = None,
) -> DeactivationCheck:
    skipped = set(soft_delete_skipped_restrictions or [])
    effective = [item for item in restrictions if item.relation not in skipped]
    if not effective:
        return DeactivationCheck(can_deactivate=True)

    base = {"id": entity_id, "is_active": True}
    if not _exists(db, model, {**base, "OR": [item.predicate() for item in effective]}):
        return DeactivationCheck(can_deactivate=True)

    check = DeactivationCheck(can_deactivate=True)
    for restriction in effective:
        if _exists(db, model, {**base, **restriction.predicate()}):
            check.violations.append(restriction.message)
            check.blocked_by.append(restriction.relation)
    check.can_deactivate = not check.violations
    return check


def assert_can_deactivate(
    db: Session,
    model,
    entity_id: Any,
    restrictions: list[DeactivationRestriction],
    soft_delete_skipped_restrictions: Optional[list[str]] = None,
) -> None:
    check = validate_deactivation_restrictions(db, model, entity_id, restrictions, soft_delete_skipped_restrictions)
    if check.can_deactivate:
        return
    if len(check.violations) == 1:
        detail = check.violations[0]
    else:
        detail = f"No se puede desactivar: {'. '.join(check.violations)}"
    logger.warning("deactivation of %s %s blocked by %s", model.__tablename__, entity_id, check.blocked_by)
    raise HTTPException(status_code=400, detail=detail)
