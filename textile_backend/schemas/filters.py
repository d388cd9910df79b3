from __future__ import annotations

from typing import Any, Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

from textile_backend.core.config import settings

NumberOperator = Literal["equals", "in", "notIn", "lt", "lte", "gt", "gte", "not"]
DateOperator = Literal["range", "equals", "gte", "lte", "gt", "lt"]
SortOrder = Literal["asc", "desc"]

T = TypeVar("T")


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class FieldNumberOptions(_CamelModel):
    field: str
    value: Any
    operator: NumberOperator = "equals"


class FieldDateOptions(_CamelModel):
    field: str
    value: str
    operator: DateOperator = "range"


class LogicalGroupOptions(_CamelModel):
    search_by_field: Optional[dict[str, Any]] = Field(default=None, alias="searchByField")
    search_by_fields_relational: Optional[List[dict[str, Any]]] = Field(default=None, alias="searchByFieldsRelational")
    direct_fields: Optional[dict[str, Any]] = Field(default=None, alias="directFields")


class ORComplexOptions(_CamelModel):
    conditions: List[LogicalGroupOptions] = Field(default_factory=list)


class FilterOptions(_CamelModel):
    """Structured filter request. Unknown keys are kept and applied as direct AND conditions."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    search_by_field: Optional[dict[str, Any]] = Field(default=None, alias="searchByField")
    search_by_fields_relational: Optional[List[dict[str, Any]]] = Field(default=None, alias="searchByFieldsRelational")
    OR: Optional[LogicalGroupOptions] = None
    NOT: Optional[LogicalGroupOptions] = None
    or_complex: Optional[ORComplexOptions] = Field(default=None, alias="ORComplex")
    field_number: Optional[FieldNumberOptions] = Field(default=None, alias="fieldNumber")
    field_numbers: Optional[List[FieldNumberOptions]] = Field(default=None, alias="fieldNumbers")
    field_date: Optional[FieldDateOptions] = Field(default=None, alias="fieldDate")
    field_dates: Optional[List[FieldDateOptions]] = Field(default=None, alias="fieldDates")
    array_by_field: Optional[dict[str, Any]] = Field(default=None, alias="arrayByField")
    preselected_ids: Optional[List[str]] = Field(default=None, alias="preselectedIds")

    @model_validator(mode="after")
    def _or_and_or_complex_are_exclusive(self):
        if self.OR is not None and self.or_complex is not None:
            raise ValueError("OR y ORComplex no pueden usarse al mismo tiempo")
        return self

    def direct_fields(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class FieldProcessingConfig(BaseModel):
    enum_fields: List[str] = Field(default_factory=list)
    date_fields: List[str] = Field(default_factory=list)
    # relation name -> True when to-many; relations missing here fall back to shape inference
    relation_cardinality: dict[str, bool] = Field(default_factory=dict)


def combine_field_configs(*configs: Optional[FieldProcessingConfig]) -> FieldProcessingConfig:
    enum_fields: list[str] = []
    date_fields: list[str] = []
    cardinality: dict[str, bool] = {}
    for config in configs:
        if config is None:
            continue
        enum_fields.extend(name for name in config.enum_fields if name not in enum_fields)
        date_fields.extend(name for name in config.date_fields if name not in date_fields)
        cardinality.update(config.relation_cardinality)
    return FieldProcessingConfig(enum_fields=enum_fields, date_fields=date_fields, relation_cardinality=cardinality)


class SortOptions(BaseModel):
    field: str
    order: SortOrder = "asc"


class PaginationMetadata(_CamelModel):
    total: int
    page: int
    page_size: int = Field(alias="pageSize")
    total_pages: int = Field(alias="totalPages")
    has_next: bool = Field(alias="hasNext")
    has_previous: bool = Field(alias="hasPrevious")


class PaginatedResponse(_CamelModel, Generic[T]):
    data: List[T] = Field(default_factory=list)
    meta: PaginationMetadata


class PaginatedSearchRequest(_CamelModel):
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, alias="pageSize")
    filter_options: Optional[FilterOptions] = Field(default=None, alias="filterOptions")
    sort: Optional[SortOptions] = None
    sort_desc_by_creation: bool = Field(default=True, alias="sortDescByCreation")
    preselected_ids: Optional[List[str]] = Field(default=None, alias="preselectedIds")

    def effective_preselected_ids(self) -> list[str]:
        ids = list(self.preselected_ids or [])
        if self.filter_options and self.filter_options.preselected_ids:
            ids.extend(i for i in self.filter_options.preselected_ids if i not in ids)
        return ids
