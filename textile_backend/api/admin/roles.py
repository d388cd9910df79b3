from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from textile_backend.core.deps import require_permission
from textile_backend.db.session import get_db
from textile_backend.models.user import User
from textile_backend.schemas.admin import RoleOut, RoleUpdateIn
from textile_backend.services.roles import get_role_or_404, update_role

router = APIRouter()


@router.get("/{role_id}", response_model=RoleOut)
def get_role(role_id: str, db: Session = Depends(get_db), user: User = Depends(require_permission("role", "read"))):
    return get_role_or_404(db, role_id)


@router.patch("/{role_id}", response_model=RoleOut)
def patch_role(
    role_id: str,
    payload: RoleUpdateIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("role", "update")),
):
    return update_role(db, role_id, payload)
