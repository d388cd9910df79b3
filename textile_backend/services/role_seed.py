"""Reconcile seed-declared roles with the persisted ones.

Each role config is matched by ``seed_role_key`` (slug of the originally
seeded name) and then by name. A hash of the declared permission strings tells
whether the config changed since the last run. On change the role only gains
permissions: the ones declared since the previous seed that it does not hold
yet. Permissions removed by a user are never restored. The reserved
"Administrador" role is the exception: its permission set is always replaced by
exactly the resolved wildcard permissions.
"""
from __future__ import annotations

import hashlib
import json
import logging
import re
import unicodedata
import uuid
from dataclasses import dataclass
from typing import Iterable

from sqlalchemy.orm import Session

from textile_backend.models.permission import Permission
from textile_backend.models.role import Role
from textile_backend.services.authorization import WILDCARD, permission_name

logger = logging.getLogger(__name__)

ADMIN_ROLE_NAME = "Administrador"
ADMIN_SEED_ROLE_KEY = "administrador"
ALL_PERMISSIONS = permission_name(WILDCARD, WILDCARD)

CREATED = "created"
UPDATED = "updated"
SKIPPED_NO_CHANGES = "skipped_no_changes"


@dataclass
class RoleSeedSummary:
    created: int = 0
    updated: int = 0
    skipped_no_changes: int = 0
    errors: int = 0

    def count(self, outcome: str) -> None:
        setattr(self, outcome, getattr(self, outcome) + 1)


def generate_seed_role_key(role_name: str) -> str:
    text = unicodedata.normalize("NFD", str(role_name).lower())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = re.sub(r"\s+", "-", text)
    return re.sub(r"[^a-z0-9-]", "", text)


def calculate_permissions_hash(permissions: Iterable[str]) -> str:
    # stored hashes depend on these exact bytes: compact separators, non-ASCII kept
    payload = json.dumps(sorted(permissions), separators=(",", ":"), ensure_ascii=False)
    return hashlib.md5(payload.encode("utf-8")).hexdigest()


def resolve_permission_ids(
    permission_names: Iterable[str],
    catalog: list[Permission],
    only_wildcards: bool = False,
) -> list[uuid.UUID]:
    by_name = {row.name: row for row in catalog}
    ids: list[uuid.UUID] = []
    for name in permission_names:
        if name == ALL_PERMISSIONS:
            ids.extend(row.id for row in catalog)
            continue
        if name.endswith(f":{WILDCARD}"):
            resource = name[: -len(WILDCARD) - 1]
            wildcard = by_name.get(name)
            if wildcard is not None:
                ids.append(wildcard.id)
            if not only_wildcards:
                ids.extend(row.id for row in catalog if row.resource == resource and row.action != WILDCARD)
            continue
        row = by_name.get(name)
        if row is None:
            logger.warning("permission %s declared in role seed does not exist", name)
            continue
        ids.append(row.id)
    return list(dict.fromkeys(ids))


def _find_role(db: Session, seed_role_key: str, name: str) -> Role | None:
    role = db.query(Role).filter(Role.seed_role_key == seed_role_key).first()
    if role is None:
        role = db.query(Role).filter(Role.name == name).first()
    return role


def _process_role_config(db: Session, config: dict, catalog: list[Permission]) -> str:
    name = str(config["name"]).strip()
    description = config.get("description")
    is_default = bool(config.get("is_default", False))
    declared = [str(item).strip() for item in config.get("permissions") or []]

    seed_role_key = generate_seed_role_key(name)
    only_wildcards = name == ADMIN_ROLE_NAME
    seed_ids = resolve_permission_ids(declared, catalog, only_wildcards=only_wildcards)
    seed_hash = calculate_permissions_hash(declared)
    by_id = {row.id: row for row in catalog}

    role = _find_role(db, seed_role_key, name)
    if role is None:
        db.add(
            Role(
                name=name,
                description=description,
                is_default=is_default,
                is_active=True,
                user_modified=False,
                seed_permissions_hash=seed_hash,
                seed_role_key=seed_role_key,
                seed_permissions=sorted(declared),
                permissions=[by_id[item] for item in seed_ids],
            )
        )
        logger.info('role "%s" created with %s permissions (seed_role_key=%s)', name, len(seed_ids), seed_role_key)
        return CREATED

    if role.seed_permissions_hash == seed_hash:
        if not role.seed_role_key:
            role.seed_role_key = seed_role_key
        if role.seed_permissions is None:
            role.seed_permissions = sorted(declared)
        return SKIPPED_NO_CHANGES

    if seed_role_key == ADMIN_SEED_ROLE_KEY:
        role.permissions = [by_id[item] for item in seed_ids]
        role.is_default = is_default
        role.seed_permissions_hash = seed_hash
        role.seed_role_key = role.seed_role_key or seed_role_key
        role.seed_permissions = sorted(declared)
        logger.info('role "%s" permissions replaced with %s wildcard permissions', role.name, len(seed_ids))
        return UPDATED

    if role.seed_permissions is None:
        candidate_ids = seed_ids
    else:
        previously_seeded = set(role.seed_permissions)
        newly_declared = [item for item in declared if item not in previously_seeded]
        candidate_ids = resolve_permission_ids(newly_declared, catalog, only_wildcards=only_wildcards)

    current_ids = {row.id for row in role.permissions}
    new_ids = [item for item in candidate_ids if item not in current_ids]

    role.seed_permissions_hash = seed_hash
    role.seed_permissions = sorted(declared)
    if not new_ids and role.is_default == is_default and role.seed_role_key == seed_role_key:
        logger.debug('role "%s" seed hash updated, no new permissions', role.name)
        return UPDATED

    role.permissions.extend(by_id[item] for item in new_ids)
    role.is_default = is_default
    role.seed_role_key = role.seed_role_key or seed_role_key
    logger.info('role "%s" updated: +%s seed permissions', role.name, len(new_ids))
    return UPDATED


def seed_roles(db: Session, roles: list[dict]) -> RoleSeedSummary:
    summary = RoleSeedSummary()
    catalog = db.query(Permission).all()

    for config in roles:
        try:
            outcome = _process_role_config(db, config, catalog)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception('failed to seed role "%s"', config.get("name"))
            summary.errors += 1
            continue
        summary.count(outcome)

    logger.info(
        "roles seed done: created=%s, updated=%s, unchanged=%s, errors=%s",
        summary.created,
        summary.updated,
        summary.skipped_no_changes,
        summary.errors,
    )
    return summary
