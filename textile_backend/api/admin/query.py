from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from textile_backend.core.deps import get_current_user
from textile_backend.db.session import get_db
from textile_backend.models.user import User
from textile_backend.schemas.filters import PaginatedResponse, PaginatedSearchRequest
from textile_backend.services.authorization import user_can
from textile_backend.services.query_service import paginate_query, resolve_table

router = APIRouter()


@router.post("/{table_name}/query", response_model=PaginatedResponse)
def query_table(
    table_name: str,
    request: PaginatedSearchRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    table = resolve_table(table_name)
    if not user_can(user, table.resource, "read"):
        raise HTTPException(status_code=403, detail="Permisos insuficientes")
    return paginate_query(db, table.model, request, table.config)
