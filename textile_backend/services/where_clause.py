"""Compile structured filter options into a predicate tree.

The predicate tree is a nested dict: field keys map to a scalar (equality), an
operator dict (``{"contains": ..., "mode": "insensitive"}``, ``{"gte": ...}``)
or, for relations, to a nested predicate optionally wrapped in a quantifier
(``some``/``every``/``none`` for to-many, ``is``/``isNot`` for to-one).
``AND``/``OR``/``NOT`` hold lists of sub-predicates. The tree is translated to
SQL by ``textile_backend.services.predicate_sql``.
"""
from __future__ import annotations

import json
from datetime import datetime, time
from typing import Any, Mapping, Optional

from textile_backend.schemas.filters import (
    FieldDateOptions,
    FieldNumberOptions,
    FieldProcessingConfig,
    FilterOptions,
    LogicalGroupOptions,
    SortOptions,
)

COMPARISON_OPERATORS = frozenset(
    {
        "contains",
        "mode",
        "equals",
        "not",
        "in",
        "notIn",
        "lt",
        "lte",
        "gt",
        "gte",
        "startsWith",
        "endsWith",
        "search",
    }
)
QUANTIFIERS = frozenset({"some", "every", "none", "is", "isNot"})
LOGICAL_KEYS = frozenset({"AND", "OR", "NOT"})
RESERVED_KEYS = COMPARISON_OPERATORS | QUANTIFIERS | LOGICAL_KEYS | {"has", "hasEvery", "hasSome", "isEmpty"}

DATE_RANGE_SEPARATOR = " - "
_LEAF_SCAN_DEPTH = 5
_END_OF_DAY = time(23, 59, 59, 999000)

_EMPTY_CONFIG = FieldProcessingConfig()


def _matches_field(field_path: str, names: list[str]) -> bool:
    if not field_path or not names:
        return False
    last_segment = field_path.rsplit(".", 1)[-1]
    return field_path in names or last_segment in names


def is_enum_field(field_path: str, config: Optional[FieldProcessingConfig]) -> bool:
    return _matches_field(field_path, (config or _EMPTY_CONFIG).enum_fields)


def is_date_field(field_path: str, config: Optional[FieldProcessingConfig]) -> bool:
    return _matches_field(field_path, (config or _EMPTY_CONFIG).date_fields)


def _parse_date(text: str) -> datetime | str:
    raw = str(text).strip()
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        # Left as-is; the SQL translator rejects it with a field-scoped error.
        return raw


def build_date_condition(value: str, operator: Optional[str] = "range") -> Any:
    """``"<start> - <end>"`` becomes an inclusive range ending at the last millisecond of ``end``."""
    operator = operator or "range"
    if DATE_RANGE_SEPARATOR in value:
        start_raw, end_raw = value.split(DATE_RANGE_SEPARATOR, 1)
        start = _parse_date(start_raw)
        end = _parse_date(end_raw)
        if isinstance(end, datetime):
            end = datetime.combine(end.date(), _END_OF_DAY, tzinfo=end.tzinfo)
        return {"gte": start, "lte": end}

    parsed = _parse_date(value)
    if operator in {"range", "equals"}:
        return parsed
    return {operator: parsed}


def build_field_condition(key: str, value: Any, config: Optional[FieldProcessingConfig] = None) -> Any:
    if not isinstance(value, str):
        return value
    if is_enum_field(key, config):
        return value
    if is_date_field(key, config):
        return build_date_condition(value, "range")
    return {"contains": value, "mode": "insensitive"}


def has_condition_structure(value: Any, depth: int = 0) -> bool:
    if depth > _LEAF_SCAN_DEPTH or not isinstance(value, Mapping):
        return False
    if any(key in COMPARISON_OPERATORS for key in value):
        return True
    return any(has_condition_structure(nested, depth + 1) for nested in value.values())


def _is_column_condition(fragment: Any) -> bool:
    return isinstance(fragment, Mapping) and bool(fragment) and all(key in COMPARISON_OPERATORS for key in fragment)


def _looks_plural(name: str) -> bool:
    return len(name) > 1 and name.endswith("s") and not name.endswith("ss")


def _wrap_relation(relation_name: str, fragment: Any, config: Optional[FieldProcessingConfig]) -> Any:
    if not isinstance(fragment, Mapping) or not fragment:
        return fragment
    if _is_column_condition(fragment) or any(key in QUANTIFIERS for key in fragment):
        return fragment

    cardinality = (config or _EMPTY_CONFIG).relation_cardinality
    if relation_name in cardinality:
        return {"some": dict(fragment)} if cardinality[relation_name] else fragment

    if not has_condition_structure(fragment):
        return {"some": dict(fragment)}
    if _looks_plural(relation_name):
        return {"some": dict(fragment)}
    return fragment


def build_recursive_relation_conditions(
    fields: Any,
    config: Optional[FieldProcessingConfig] = None,
    relation_name_prefix: str = "",
) -> Any:
    if isinstance(fields, str):
        return build_field_condition(relation_name_prefix, fields, config)
    if not isinstance(fields, Mapping):
        return fields

    conditions: dict[str, Any] = {}
    for name, value in fields.items():
        path = f"{relation_name_prefix}.{name}" if relation_name_prefix else name
        if name in RESERVED_KEYS:
            conditions[name] = value
        elif isinstance(value, Mapping):
            conditions[name] = build_recursive_relation_conditions(value, config, path)
        elif isinstance(value, str):
            conditions[name] = build_field_condition(path, value, config)
        else:
            conditions[name] = value

    if not relation_name_prefix:
        return conditions
    return _wrap_relation(relation_name_prefix.rsplit(".", 1)[-1], conditions, config)


def _relation_conditions(relations: Optional[list[dict[str, Any]]], config: Optional[FieldProcessingConfig]) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for relation in relations or []:
        for relation_name, relation_fields in relation.items():
            out.append({relation_name: build_recursive_relation_conditions(relation_fields, config, relation_name)})
    return out


def _descend(where: dict[str, Any], field_path: str, config: Optional[FieldProcessingConfig]) -> tuple[dict[str, Any], str]:
    """Walk a dotted path, creating relation maps, and return (container, leaf field)."""
    segments = field_path.split(".")
    container = where
    cardinality = (config or _EMPTY_CONFIG).relation_cardinality
    for relation_name in segments[:-1]:
        node = container.get(relation_name)
        if not isinstance(node, dict):
            node = {}
            container[relation_name] = node
        if cardinality.get(relation_name):
            node = node.setdefault("some", {})
        container = node
    return container, segments[-1]


def apply_field_number_condition(
    where: dict[str, Any],
    option: FieldNumberOptions,
    config: Optional[FieldProcessingConfig] = None,
) -> None:
    value = option.value
    if option.operator in {"in", "notIn"} and not isinstance(value, (list, tuple)):
        value = [value]
    container, field_name = _descend(where, option.field, config)
    container[field_name] = {option.operator: value}


def apply_field_date_condition(
    where: dict[str, Any],
    option: FieldDateOptions,
    config: Optional[FieldProcessingConfig] = None,
) -> None:
    built = build_date_condition(option.value, option.operator)
    container, field_name = _descend(where, option.field, config)
    existing = container.get(field_name)
    if isinstance(existing, dict) and isinstance(built, dict):
        existing.update(built)
    else:
        container[field_name] = built


def _search_field_conditions(search_by_field: Optional[dict[str, Any]], config: Optional[FieldProcessingConfig]) -> list[dict[str, Any]]:
    return [{key: build_field_condition(key, value, config)} for key, value in (search_by_field or {}).items()]


def _group_branches(group: LogicalGroupOptions, config: Optional[FieldProcessingConfig]) -> list[dict[str, Any]]:
    branches = _search_field_conditions(group.search_by_field, config)
    branches.extend(_relation_conditions(group.search_by_fields_relational, config))
    branches.extend({key: value} for key, value in (group.direct_fields or {}).items())
    return branches


def _fold_outer_relational(where: dict[str, Any], relational: list[dict[str, Any]], keyword: str) -> None:
    if not relational:
        return
    if len(relational) == 1:
        where.update(relational[0])
        return
    where.setdefault("AND", []).append({keyword: relational})


def _parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except (TypeError, ValueError):
        return None


def _normalize_array_values(values: list[Any]) -> list[Any]:
    looks_fragmented = len(values) > 1 and any(
        isinstance(v, str) and (v.startswith("[") or v.endswith("]")) for v in values
    )
    if looks_fragmented:
        parsed = _parse_json(",".join(str(v) for v in values))
        return parsed if isinstance(parsed, list) else list(values)

    out: list[Any] = []
    for value in values:
        if not isinstance(value, str):
            out.append(value)
            continue
        if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
            out.append(value[1:-1])
            continue
        parsed = _parse_json(value)
        if isinstance(parsed, list):
            out.extend(parsed)
        else:
            out.append(value)
    return out


def build_array_conditions(array_by_field: Optional[dict[str, Any]]) -> dict[str, Any]:
    where: dict[str, Any] = {}
    for field_name, values in (array_by_field or {}).items():
        if isinstance(values, (list, tuple)):
            where[field_name] = {"in": _normalize_array_values(list(values))}
        else:
            where[field_name] = values
    return where


def _combined_group(group: LogicalGroupOptions, config: Optional[FieldProcessingConfig]) -> dict[str, Any]:
    combined: dict[str, Any] = {}
    for key, value in (group.search_by_field or {}).items():
        combined[key] = build_field_condition(key, value, config)
    relational = _relation_conditions(group.search_by_fields_relational, config)
    if len(relational) == 1:
        combined.update(relational[0])
    elif relational:
        combined["OR"] = relational
    combined.update(group.direct_fields or {})
    return combined


def compile_where(
    filter_options: FilterOptions | Mapping[str, Any] | None,
    config: Optional[FieldProcessingConfig] = None,
) -> dict[str, Any]:
    if filter_options is None:
        return {}
    if not isinstance(filter_options, FilterOptions):
        filter_options = FilterOptions.model_validate(dict(filter_options))
    options = filter_options
    where: dict[str, Any] = {}

    for condition in _search_field_conditions(options.search_by_field, config):
        where.update(condition)

    outer_relational = _relation_conditions(options.search_by_fields_relational, config)
    # Outer relational search is applied directly only without an OR block; otherwise it is folded below.
    if outer_relational and options.OR is None:
        for condition in outer_relational:
            where.update(condition)

    numbers = ([options.field_number] if options.field_number else []) + list(options.field_numbers or [])
    for option in numbers:
        apply_field_number_condition(where, option, config)

    dates = ([options.field_date] if options.field_date else []) + list(options.field_dates or [])
    for option in dates:
        apply_field_date_condition(where, option, config)

    if options.OR is not None:
        or_branches = _group_branches(options.OR, config)
        if or_branches:
            where["OR"] = or_branches
        _fold_outer_relational(where, outer_relational, "OR")

    if options.NOT is not None:
        not_branches = _group_branches(options.NOT, config)
        if not_branches:
            where["NOT"] = not_branches

    if options.or_complex is not None:
        groups = [_combined_group(group, config) for group in options.or_complex.conditions]
        groups = [group for group in groups if group]
        if groups:
            where["OR"] = groups

    where.update(build_array_conditions(options.array_by_field))

    for key, value in options.direct_fields().items():
        where[key] = value
    return where


def build_order_by(
    sort: Optional[SortOptions] = None,
    has_created_at: bool = False,
    sort_desc_by_creation: bool = False,
) -> Optional[dict[str, str]]:
    if sort is not None and sort.field:
        return {sort.field: sort.order or "asc"}
    if has_created_at:
        return {"created_at": "desc" if sort_desc_by_creation else "asc"}
    return None


class WhereClauseBuilder:
    """Fluent counterpart of ``compile_where`` for code that assembles filters step by step."""

    def __init__(self, config: Optional[FieldProcessingConfig] = None):
        self._config = config
        self._where: dict[str, Any] = {}

    def with_search_by_field(self, search_by_field: Optional[dict[str, Any]]) -> "WhereClauseBuilder":
        for condition in _search_field_conditions(search_by_field, self._config):
            self._where.update(condition)
        return self

    def with_relations(self, relations: Optional[list[dict[str, Any]]]) -> "WhereClauseBuilder":
        for condition in _relation_conditions(relations, self._config):
            self._where.update(condition)
        return self

    def with_or(self, group: Optional[LogicalGroupOptions]) -> "WhereClauseBuilder":
        if group is not None:
            branches = _group_branches(group, self._config)
            if branches:
                self._where["OR"] = branches
        return self

    def with_not(self, group: Optional[LogicalGroupOptions]) -> "WhereClauseBuilder":
        if group is not None:
            branches = _group_branches(group, self._config)
            if branches:
                self._where["NOT"] = branches
        return self

    def with_field_numbers(self, options: Optional[list[FieldNumberOptions]]) -> "WhereClauseBuilder":
        for option in options or []:
            apply_field_number_condition(self._where, option, self._config)
        return self

    def with_field_dates(self, options: Optional[list[FieldDateOptions]]) -> "WhereClauseBuilder":
        for option in options or []:
            apply_field_date_condition(self._where, option, self._config)
        return self

    def with_array_by_field(self, array_by_field: Optional[dict[str, Any]]) -> "WhereClauseBuilder":
        self._where.update(build_array_conditions(array_by_field))
        return self

    def with_direct_fields(self, fields: Optional[dict[str, Any]]) -> "WhereClauseBuilder":
        self._where.update(fields or {})
        return self

    def build(self) -> dict[str, Any]:
        return dict(self._where)
