from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from textile_backend.schemas.filters import PaginatedResponse, PaginationMetadata


def pagination_start(page: int, page_size: int) -> int:
    return max(page - 1, 0) * page_size


def calc_total_pages(total: int, page_size: int) -> int:
    if page_size <= 0:
        return 0
    return math.ceil(total / page_size)


def has_next_page(page: int, total_pages: int) -> bool:
    return page < total_pages


def has_previous_page(page: int) -> bool:
    return page > 1


def build_pagination_meta(total: int, page: int, page_size: int) -> PaginationMetadata:
    total_pages = calc_total_pages(total, page_size)
    return PaginationMetadata(
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        has_next=has_next_page(page, total_pages),
        has_previous=has_previous_page(page),
    )


def empty_page(page: int, page_size: int) -> PaginatedResponse:
    return PaginatedResponse(data=[], meta=build_pagination_meta(0, page, page_size))


@dataclass
class PreselectedContext:
    where: dict[str, Any]
    preselected_ids: list[str] = field(default_factory=list)
    use_preselected_logic: bool = False
    is_first_page: bool = False


def _and_condition(where: dict[str, Any], condition: dict[str, Any]) -> dict[str, Any]:
    if not where:
        return dict(condition)
    return {"AND": [where, condition]}


def build_preselected_context(
    where: dict[str, Any],
    page: int,
    preselected_ids: Optional[list[str]] = None,
) -> PreselectedContext:
    ids = [str(item) for item in (preselected_ids or []) if str(item).strip()]
    if not ids:
        return PreselectedContext(where=where)
    if page <= 1:
        return PreselectedContext(where=where, preselected_ids=ids, use_preselected_logic=True, is_first_page=True)

    # Later pages must never repeat rows pinned on page 1.
    extended = dict(where)
    exclusion = {"notIn": ids}
    if "id" not in extended:
        extended["id"] = exclusion
    else:
        extended["AND"] = [*(extended.get("AND") or []), {"id": exclusion}]
    return PreselectedContext(where=extended, preselected_ids=ids, use_preselected_logic=True, is_first_page=False)


def execute_preselected_first_page(
    context: PreselectedContext,
    page_size: int,
    *,
    fetch_preselected: Callable[[dict[str, Any]], list],
    fetch_others: Callable[[dict[str, Any], int], list],
    count_total: Callable[[dict[str, Any]], int],
    map_item: Callable[[Any], Any] | None = None,
) -> PaginatedResponse:
    """Page 1 with pinned rows first.

    Pinned rows still have to match ``context.where``. When none of them do the
    result is empty and the caller falls back to ordinary pagination.
    """
    ids = context.preselected_ids
    preselected = fetch_preselected(_and_condition(context.where, {"id": {"in": ids}}))
    if not preselected:
        return empty_page(1, page_size)

    remaining = max(page_size - len(preselected), 0)
    others = fetch_others(_and_condition(context.where, {"id": {"notIn": ids}}), remaining) if remaining else []
    total = count_total(context.where)

    items = [*preselected, *others]
    if map_item is not None:
        items = [map_item(item) for item in items]

    meta = build_pagination_meta(total, 1, page_size)
    meta.has_previous = False
    return PaginatedResponse(data=items, meta=meta)
