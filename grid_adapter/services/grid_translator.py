from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Callable, Optional, Union

from grid_adapter.core.config import settings
from grid_adapter.schemas.grid import ColumnRequest, GridRequest
from grid_adapter.schemas.options import OrderByOption, QueryOptions, SortDirection
from grid_adapter.services.field_map import FieldMap, get_field_map

_LOG = logging.getLogger("grid_adapter.translator")

AllowedFields = Union[FieldMap, Mapping[str, str], type, None]


def parse_direction(raw: Optional[str]) -> SortDirection:
    if isinstance(raw, str) and raw.lower() == "desc":
        return SortDirection.DESC
    return SortDirection.ASC


def _has_content(value: Optional[str]) -> bool:
    return bool(value and value.strip())


def _page_size(length: int, max_take: int) -> int:
    take = length if length > 0 else 0
    if max_take > 0 and take > max_take:
        return max_take
    return take


def _search_value(request: GridRequest) -> Optional[str]:
    raw = request.search.value if request.search is not None else None
    return raw if _has_content(raw) else None


def _resolve_field(column: ColumnRequest, field_map: Optional[FieldMap]) -> Optional[str]:
    data = column.data_field
    if not _has_content(data):
        return None
    if field_map is None:
        return data
    return field_map.get(data)


def _collect_fields(
    columns: list[ColumnRequest],
    field_map: Optional[FieldMap],
    eligible: Callable[[ColumnRequest], bool],
) -> Optional[list[str]]:
    fields: list[str] = []
    for column in columns:
        if not eligible(column):
            continue
        resolved = _resolve_field(column, field_map)
        if resolved is None:
            _LOG.debug("search_field_dropped data=%r", column.data_field)
            continue
        fields.append(resolved)
    return fields or None


def _collect_order(request: GridRequest, field_map: Optional[FieldMap]) -> Optional[list[OrderByOption]]:
    columns = request.columns
    order_by: list[OrderByOption] = []
    for entry in request.order:
        if entry.column_index < 0 or entry.column_index >= len(columns):
            _LOG.debug("order_dropped column=%s columns=%s", entry.column_index, len(columns))
            continue
        column = columns[entry.column_index]
        if not column.orderable:
            continue
        resolved = _resolve_field(column, field_map)
        if resolved is None:
            _LOG.debug("order_field_dropped data=%r", column.data_field)
            continue
        order_by.append(OrderByOption(field=resolved, direction=parse_direction(entry.direction)))
    return order_by or None


def _as_field_map(allowed_fields: AllowedFields) -> Optional[FieldMap]:
    if allowed_fields is None or isinstance(allowed_fields, FieldMap):
        return allowed_fields
    if isinstance(allowed_fields, Mapping):
        return FieldMap(allowed_fields.items())
    return get_field_map(allowed_fields)


def to_query_options(
    request: GridRequest,
    allowed_fields: AllowedFields = None,
    *,
    max_take: Optional[int] = None,
) -> QueryOptions:
    """Translate a grid request into QueryOptions.

    ``allowed_fields`` restricts and renames searchable/orderable columns: pass a
    FieldMap, or a model class whose cached FieldMap should be used. Columns
    that are not eligible, blank, unknown to the map, or referenced by an
    out-of-range order index are dropped; this function never raises on
    client-controlled values.
    """
    field_map = _as_field_map(allowed_fields)
    cap = settings.max_take if max_take is None else max_take

    search = _search_value(request)
    search_fields = None
    if search is not None:
        search_fields = _collect_fields(request.columns, field_map, lambda c: c.searchable)

    return QueryOptions(
        skip=max(request.start, 0),
        take=_page_size(request.length, cap),
        search=search,
        search_fields=search_fields,
        order_by=_collect_order(request, field_map),
    )
