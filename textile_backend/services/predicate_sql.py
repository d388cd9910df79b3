from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from sqlalchemy import and_, asc, desc, false, func, not_, or_, true
from sqlalchemy import inspect as sa_inspect


class PredicateError(ValueError):
    """A predicate tree references an unknown field/operator or carries a value of the wrong type."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


def _bad_filter_value(column_key: str, kind: str) -> PredicateError:
    return PredicateError(f'Valor de filtro inválido para el campo "{column_key}" ({kind})', column_key)


def _coerce_bool_filter_value(column_key: str, value):
    if isinstance(value, bool):
        return value
    text = str(value or "").strip().lower()
    if text in {"1", "true", "yes", "y", "si", "sí"}:
        return True
    if text in {"0", "false", "no", "n"}:
        return False
    raise _bad_filter_value(column_key, "boolean")


def _coerce_number_filter_value(column_key: str, value, python_type):
    if python_type in {int, float} and isinstance(value, (int, float)) and not isinstance(value, bool):
        return python_type(value)
    if python_type is Decimal and isinstance(value, Decimal):
        return value
    text = str(value).strip()
    if not text:
        raise _bad_filter_value(column_key, "number")
    normalized = text.replace(",", ".")
    try:
        if python_type is int:
            return int(normalized)
        if python_type is float:
            return float(normalized)
        return Decimal(normalized)
    except (ValueError, TypeError, InvalidOperation):
        raise _bad_filter_value(column_key, "number")


def _coerce_date_filter_value(column_key: str, value):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value or "").strip()
    if not text:
        raise _bad_filter_value(column_key, "date")
    try:
        if "T" in text or " " in text:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        return date.fromisoformat(text)
    except ValueError:
        raise _bad_filter_value(column_key, "date")


def _coerce_datetime_filter_value(column_key: str, value):
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, datetime.min.time())
    else:
        text = str(value or "").strip()
        if not text:
            raise _bad_filter_value(column_key, "datetime")
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            raise _bad_filter_value(column_key, "datetime")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _column_python_type(column):
    try:
        return column.property.columns[0].type.python_type
    except (AttributeError, IndexError, NotImplementedError):
        return None


def _coerce_filter_value(column, value):
    if value is None:
        return None
    python_type = _column_python_type(column)
    if python_type is uuid.UUID:
        if isinstance(value, uuid.UUID):
            return value
        try:
            return uuid.UUID(str(value or "").strip())
        except ValueError:
            raise PredicateError(f'UUID inválido en el filtro del campo "{column.key}"', column.key)
    if python_type is bool:
        return _coerce_bool_filter_value(column.key, value)
    if python_type in {int, float, Decimal}:
        return _coerce_number_filter_value(column.key, value, python_type)
    if python_type is datetime:
        return _coerce_datetime_filter_value(column.key, value)
    if python_type is date:
        return _coerce_date_filter_value(column.key, value)
    return value


def _as_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _coerce_many(column, values: Any) -> list:
    return [_coerce_filter_value(column, item) for item in _as_list(values)]


def _text_clause(column, op: str, operand: Any, insensitive: bool):
    text = str(operand)
    if op == "contains":
        return column.icontains(text, autoescape=True) if insensitive else column.contains(text, autoescape=True)
    if op == "startsWith":
        return column.istartswith(text, autoescape=True) if insensitive else column.startswith(text, autoescape=True)
    if op == "endsWith":
        return column.iendswith(text, autoescape=True) if insensitive else column.endswith(text, autoescape=True)
    return column.icontains(text, autoescape=True)


def _equals_clause(column, operand: Any, insensitive: bool):
    if operand is None:
        return column.is_(None)
    if insensitive and isinstance(operand, str):
        return func.lower(column) == operand.lower()
    return column == _coerce_filter_value(column, operand)


def _operator_clause(column, ops: Mapping[str, Any]):
    insensitive = ops.get("mode") == "insensitive"
    clauses = []
    for op, operand in ops.items():
        if op == "mode":
            continue
        if op == "equals":
            clauses.append(_equals_clause(column, operand, insensitive))
        elif op == "not":
            if isinstance(operand, Mapping):
                clauses.append(not_(_operator_clause(column, {"mode": ops.get("mode"), **operand})))
            elif operand is None:
                clauses.append(column.is_not(None))
            else:
                clauses.append(not_(_equals_clause(column, operand, insensitive)))
        elif op == "in":
            clauses.append(column.in_(_coerce_many(column, operand)))
        elif op == "notIn":
            clauses.append(column.not_in(_coerce_many(column, operand)))
        elif op == "lt":
            clauses.append(column < _coerce_filter_value(column, operand))
        elif op == "lte":
            clauses.append(column <= _coerce_filter_value(column, operand))
        elif op == "gt":
            clauses.append(column > _coerce_filter_value(column, operand))
        elif op == "gte":
            clauses.append(column >= _coerce_filter_value(column, operand))
        elif op in {"contains", "startsWith", "endsWith", "search"}:
            clauses.append(_text_clause(column, op, operand, insensitive))
        else:
            raise PredicateError(f'Operador "{op}" no soportado para el campo "{column.key}"', column.key)
    return and_(true(), *clauses)


def _column_clause(column, value: Any):
    if value is None:
        return column.is_(None)
    if isinstance(value, Mapping):
        return _operator_clause(column, value)
    if isinstance(value, (list, tuple)):
        return column.in_(_coerce_many(column, value))
    return column == _coerce_filter_value(column, value)


def _related_match(attr, target, to_many: bool, where: Any):
    if not isinstance(where, Mapping):
        raise PredicateError(f'Condición inválida para la relación "{attr.key}"', attr.key)
    criterion = predicate_to_clause(target, where)
    return attr.any(criterion) if to_many else attr.has(criterion)


def _related_exists(attr, to_many: bool):
    return attr.any() if to_many else attr.has()


def _relationship_clause(model, name: str, relationship, value: Any):
    attr = getattr(model, name)
    target = relationship.mapper.class_
    to_many = bool(relationship.uselist)
    if value is None:
        return not_(_related_exists(attr, to_many))
    if not isinstance(value, Mapping):
        raise PredicateError(f'Condición inválida para la relación "{name}"', name)

    clauses = []
    bare: dict[str, Any] = {}
    for key, nested in value.items():
        if key in {"some", "is"}:
            clauses.append(not_(_related_exists(attr, to_many)) if nested is None else _related_match(attr, target, to_many, nested))
        elif key == "isNot":
            clauses.append(_related_exists(attr, to_many) if nested is None else not_(_related_match(attr, target, to_many, nested)))
        elif key == "none":
            clauses.append(not_(_related_match(attr, target, to_many, nested or {})))
        elif key == "every":
            if to_many:
                clauses.append(not_(attr.any(not_(predicate_to_clause(target, nested or {})))))
            else:
                clauses.append(_related_match(attr, target, to_many, nested or {}))
        else:
            bare[key] = nested
    if bare:
        clauses.append(_related_match(attr, target, to_many, bare))
    return and_(true(), *clauses)


def _field_clause(model, key: str, value: Any):
    mapper = sa_inspect(model)
    relationship = mapper.relationships.get(key)
    if relationship is not None:
        return _relationship_clause(model, key, relationship, value)
    if key not in mapper.column_attrs:
        raise PredicateError(f'Campo desconocido en el filtro: "{key}"', key)
    return _column_clause(getattr(model, key), value)


def predicate_to_clause(model, where: Mapping[str, Any] | None):
    """Translate a predicate tree built by ``where_clause`` into a SQLAlchemy boolean clause for ``model``."""
    if not where:
        return true()
    clauses = []
    for key, value in where.items():
        if key == "AND":
            clauses.extend(predicate_to_clause(model, item) for item in _as_list(value))
        elif key == "OR":
            branches = [predicate_to_clause(model, item) for item in _as_list(value)]
            clauses.append(or_(*branches) if branches else false())
        elif key == "NOT":
            clauses.extend(not_(predicate_to_clause(model, item)) for item in _as_list(value))
        else:
            clauses.append(_field_clause(model, key, value))
    return and_(true(), *clauses)


def order_by_clauses(model, order_by: Mapping[str, str] | None) -> list:
    out = []
    for field_name, direction in (order_by or {}).items():
        if field_name not in sa_inspect(model).column_attrs:
            raise PredicateError(f'Campo de ordenamiento desconocido: "{field_name}"', field_name)
        column = getattr(model, field_name)
        out.append(desc(column) if str(direction).lower() == "desc" else asc(column))
    return out
