from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Optional

from fastapi import HTTPException
from sqlalchemy import func, select
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Session

from textile_backend.models.customer import Contact, Customer
from textile_backend.models.permission import Permission
from textile_backend.models.quotation import Quotation, QuotationItem
from textile_backend.models.role import Role
from textile_backend.models.user import User
from textile_backend.schemas.filters import FieldProcessingConfig, PaginatedResponse, PaginatedSearchRequest
from textile_backend.services.pagination import (
    build_pagination_meta,
    build_preselected_context,
    execute_preselected_first_page,
    pagination_start,
)
from textile_backend.services.predicate_sql import order_by_clauses, predicate_to_clause
from textile_backend.services.where_clause import build_order_by, compile_where

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueryableTable:
    model: type
    resource: str
    config: FieldProcessingConfig


QUERYABLE_TABLES: dict[str, QueryableTable] = {
    "customers": QueryableTable(
        Customer,
        "customer",
        FieldProcessingConfig(
            enum_fields=["customer_type", "contact_type", "status"],
            date_fields=["created_at", "issued_at"],
            relation_cardinality={"contacts": True, "quotations": True, "items": True},
        ),
    ),
    "contacts": QueryableTable(
        Contact,
        "customer",
        FieldProcessingConfig(
            enum_fields=["contact_type", "customer_type"],
            date_fields=["created_at"],
            relation_cardinality={"customer": False},
        ),
    ),
    "quotations": QueryableTable(
        Quotation,
        "quotation",
        FieldProcessingConfig(
            enum_fields=["status", "customer_type"],
            date_fields=["issued_at", "created_at"],
            relation_cardinality={"customer": False, "items": True},
        ),
    ),
    "quotation_items": QueryableTable(
        QuotationItem,
        "quotation-item",
        FieldProcessingConfig(
            enum_fields=["status"],
            date_fields=["created_at"],
            relation_cardinality={"quotation": False},
        ),
    ),
    "roles": QueryableTable(
        Role,
        "role",
        FieldProcessingConfig(date_fields=["created_at"], relation_cardinality={"permissions": True}),
    ),
    "permissions": QueryableTable(Permission, "role", FieldProcessingConfig(date_fields=["created_at"])),
    "users": QueryableTable(
        User,
        "user",
        FieldProcessingConfig(date_fields=["created_at"], relation_cardinality={"roles": True}),
    ),
}

# Columns never returned by the generic query endpoint.
HIDDEN_FIELDS = {"password_hash"}


def resolve_table(table_name: str) -> QueryableTable:
    normalized = str(table_name or "").strip().lower().replace("-", "_")
    table = QUERYABLE_TABLES.get(normalized)
    if table is None:
        raise HTTPException(status_code=404, detail="Tabla no encontrada")
    return table


def _serialize_value(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, Decimal):
        return float(value)
    return value


def row_to_dict(row: Any) -> dict[str, Any]:
    mapper = sa_inspect(type(row))
    return {
        column.key: _serialize_value(getattr(row, column.key))
        for column in mapper.column_attrs
        if column.key not in HIDDEN_FIELDS
    }


def _identifier_ids(values: list[str]) -> list[str]:
    """Keep only ids that can match a UUID primary key; the rest can never be pinned or excluded."""
    kept = []
    for value in values:
        try:
            uuid.UUID(str(value))
        except ValueError:
            logger.debug("ignoring preselected id %r", value)
            continue
        kept.append(value)
    return kept


def _fetch(db: Session, model, where: dict[str, Any], order_by, *, offset: int = 0, limit: Optional[int] = None) -> list:
    stmt = select(model).where(predicate_to_clause(model, where)).order_by(*order_by)
    if offset:
        stmt = stmt.offset(offset)
    if limit is not None:
        stmt = stmt.limit(limit)
    return list(db.scalars(stmt).all())


def _count(db: Session, model, where: dict[str, Any]) -> int:
    stmt = select(func.count()).select_from(model).where(predicate_to_clause(model, where))
    return int(db.scalar(stmt) or 0)


def paginate_query(
    db: Session,
    model,
    request: PaginatedSearchRequest,
    config: Optional[FieldProcessingConfig] = None,
    *,
    map_item: Callable[[Any], Any] = row_to_dict,
) -> PaginatedResponse:
    where = compile_where(request.filter_options, config)
    has_created_at = "created_at" in sa_inspect(model).column_attrs
    order_by = order_by_clauses(model, build_order_by(request.sort, has_created_at, request.sort_desc_by_creation))
    preselected_ids = _identifier_ids(request.effective_preselected_ids())
    context = build_preselected_context(where, request.page, preselected_ids)

    if context.use_preselected_logic and context.is_first_page:
        position = {value: index for index, value in enumerate(context.preselected_ids)}

        def fetch_preselected(predicate: dict[str, Any]) -> list:
            rows = _fetch(db, model, predicate, order_by)
            return sorted(rows, key=lambda row: position.get(str(row.id), len(position)))

        result = execute_preselected_first_page(
            context,
            request.page_size,
            fetch_preselected=fetch_preselected,
            fetch_others=lambda predicate, limit: _fetch(db, model, predicate, order_by, limit=limit),
            count_total=lambda predicate: _count(db, model, predicate),
            map_item=map_item,
        )
        if result.data:
            return result
        logger.debug("no preselected rows matched for %s, falling back to plain pagination", model.__tablename__)

    offset = pagination_start(request.page, request.page_size)
    total = _count(db, model, context.where)
    if context.use_preselected_logic and not context.is_first_page:
        # Rows pinned on page 1 took slots there; shift the window so no other row is skipped.
        pinned = _count(db, model, {"AND": [where, {"id": {"in": context.preselected_ids}}]})
        offset = max(offset - pinned, 0)
        total += pinned
    rows = _fetch(db, model, context.where, order_by, offset=offset, limit=request.page_size)
    return PaginatedResponse(
        data=[map_item(row) for row in rows],
        meta=build_pagination_meta(total, request.page, request.page_size),
    )
