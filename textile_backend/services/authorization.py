from __future__ import annotations

import re
from typing import Iterable

from textile_backend.models.user import User

WILDCARD = "*"
PERMISSION_NAME_RE = re.compile(r"^[a-z0-9-]+:[a-z0-9-*]+$")


def permission_name(resource: str, action: str) -> str:
    return f"{resource}:{action}"


def is_valid_permission_name(name: str) -> bool:
    return bool(PERMISSION_NAME_RE.fullmatch(str(name or "")))


def split_permission_name(name: str) -> tuple[str, str]:
    if not is_valid_permission_name(name):
        raise ValueError(f"Nombre de permiso inválido: {name!r}")
    resource, action = name.split(":", 1)
    return resource, action


def permission_allows(granted: Iterable[str], resource: str, action: str) -> bool:
    names = set(granted)
    return bool(
        names
        & {
            permission_name(resource, action),
            permission_name(resource, WILDCARD),
            permission_name(WILDCARD, WILDCARD),
        }
    )


def user_permission_names(user: User) -> set[str]:
    if not user.is_active:
        return set()
    return {permission.name for role in user.roles if role.is_active for permission in role.permissions}


def user_can(user: User, resource: str, action: str) -> bool:
    return permission_allows(user_permission_names(user), resource, action)
