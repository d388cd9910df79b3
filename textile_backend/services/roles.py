from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from textile_backend.models.permission import Permission
from textile_backend.models.role import Role
from textile_backend.schemas.admin import RoleUpdateIn
from textile_backend.services.authorization import split_permission_name


def get_role_or_404(db: Session, role_id: str) -> Role:
    try:
        role_uuid = UUID(str(role_id or "").strip())
    except ValueError:
        raise HTTPException(status_code=400, detail="Identificador de rol inválido")
    role = db.get(Role, role_uuid)
    if role is None:
        raise HTTPException(status_code=404, detail="Rol no encontrado")
    return role


def _permissions_by_name(db: Session, names: list[str]) -> list[Permission]:
    wanted: list[tuple[str, str]] = []
    for name in dict.fromkeys(names):
        try:
            wanted.append(split_permission_name(name))
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Nombre de permiso inválido: {name}")
    catalog = {(row.resource, row.action): row for row in db.query(Permission).all()}
    missing = [f"{resource}:{action}" for resource, action in wanted if (resource, action) not in catalog]
    if missing:
        raise HTTPException(status_code=400, detail=f"Permisos inexistentes: {', '.join(missing)}")
    return [catalog[key] for key in wanted]


def update_role(db: Session, role_id: str, payload: RoleUpdateIn) -> Role:
    """Apply an administrator edit and mark the role as user-modified. Seed tracking fields are left untouched."""
    role = get_role_or_404(db, role_id)
    data = payload.model_dump(exclude_unset=True)
    if "name" in data and data["name"] is not None:
        role.name = data["name"].strip()
    if "description" in data:
        role.description = data["description"]
    if "is_active" in data and data["is_active"] is not None:
        role.is_active = bool(data["is_active"])
    if "permissions" in data and data["permissions"] is not None:
        role.permissions = _permissions_by_name(db, data["permissions"])
    role.user_modified = True
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Ya existe un rol con ese nombre")
    db.refresh(role)
    return role
