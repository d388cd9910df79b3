from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from textile_backend.core.deps import get_current_user
from textile_backend.core.security import create_access_token, verify_password
from textile_backend.db.session import get_db
from textile_backend.models.user import User
from textile_backend.schemas.admin import LoginIn, MeOut, TokenOut
from textile_backend.services.admin_seed import get_active_user_by_email
from textile_backend.services.authorization import user_permission_names

router = APIRouter()


@router.post("/login", response_model=TokenOut)
def login(payload: LoginIn, db: Session = Depends(get_db)):
    user = get_active_user_by_email(db, payload.email)
    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Credenciales inválidas")
    return TokenOut(access_token=create_access_token(user.id, user.email))


@router.get("/me", response_model=MeOut)
def me(user: User = Depends(get_current_user)):
    return MeOut(
        id=user.id,
        email=user.email,
        name=user.name,
        roles=[role.name for role in user.roles if role.is_active],
        permissions=sorted(user_permission_names(user)),
    )
