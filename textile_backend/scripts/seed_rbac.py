from __future__ import annotations

from textile_backend.data.rbac_seed import ADMIN_CONFIG, PERMISSIONS_CONFIG, ROLES_CONFIG
from textile_backend.db.session import SessionLocal
from textile_backend.models.permission import Permission
from textile_backend.models.role import Role
from textile_backend.services.admin_seed import seed_admin
from textile_backend.services.permission_seed import seed_permissions
from textile_backend.services.role_seed import seed_roles


def main() -> None:
    db = SessionLocal()
    try:
        created, skipped, errors = seed_permissions(db, PERMISSIONS_CONFIG)
        summary = seed_roles(db, ROLES_CONFIG)
        admin = seed_admin(db, ADMIN_CONFIG)
        total_permissions = db.query(Permission).count()
        total_roles = db.query(Role).count()
    finally:
        db.close()
    print(
        f"permissions: created={created}, skipped={skipped}, errors={errors}, total={total_permissions}; "
        f"roles: created={summary.created}, updated={summary.updated}, "
        f"unchanged={summary.skipped_no_changes}, errors={summary.errors}, total={total_roles}; "
        f"admin={'ok' if admin is not None else 'skipped'}"
    )


if __name__ == "__main__":
    main()
