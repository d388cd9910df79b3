from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

class LoginIn(BaseModel):
    email: str
    password: str

class TokenOut(BaseModel):
    access_token: str
    token_type: str = "Bearer"


class MeOut(BaseModel):
    id: UUID
    email: str
    name: str
    roles: List[str] = Field(default_factory=list)
    permissions: List[str] = Field(default_factory=list)


class PermissionOut(BaseModel):
    id: UUID
    resource: str
    action: str
    name: str
    description: Optional[str] = None

    model_config = {"from_attributes": True}


class RoleOut(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    is_default: bool
    is_active: bool
    user_modified: bool
    seed_role_key: Optional[str] = None
    permissions: List[PermissionOut] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class RoleUpdateIn(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = None
    is_active: Optional[bool] = None
    permissions: Optional[List[str]] = None


class DeactivationOut(BaseModel):
    id: UUID
    is_active: bool
