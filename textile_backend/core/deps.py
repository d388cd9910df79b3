from uuid import UUID

from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from textile_backend.core.config import settings
from textile_backend.core.security import decode_jwt
from textile_backend.db.session import get_db
from textile_backend.models.user import User
from textile_backend.services.authorization import user_can

bearer = HTTPBearer(auto_error=False)

def get_token_payload(creds: HTTPAuthorizationCredentials = Depends(bearer)) -> dict:
    if not creds:
        raise HTTPException(status_code=401, detail="Falta el token de autorización")
    try:
        return decode_jwt(creds.credentials, settings.JWT_SECRET)
    except Exception:
        raise HTTPException(status_code=401, detail="Token inválido")

def get_current_user(payload: dict = Depends(get_token_payload), db: Session = Depends(get_db)) -> User:
    try:
        user_id = UUID(str(payload.get("sub") or ""))
    except ValueError:
        raise HTTPException(status_code=401, detail="Token inválido")
    user = db.get(User, user_id)
    if user is None or not user.is_active:
        raise HTTPException(status_code=401, detail="Usuario inactivo o inexistente")
    return user

def require_permission(resource: str, action: str):
    def _inner(user: User = Depends(get_current_user)) -> User:
        if not user_can(user, resource, action):
            raise HTTPException(status_code=403, detail="Permisos insuficientes")
        return user
    return _inner
