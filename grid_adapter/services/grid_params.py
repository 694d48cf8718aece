from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from typing import Any, Optional, Union

from grid_adapter.core.config import settings
from grid_adapter.schemas.grid import ColumnRequest, GridRequest, OrderRequest, SearchRequest

_LOG = logging.getLogger("grid_adapter.params")

_KEY_RE = re.compile(r"^(?P<root>[A-Za-z_]+)(?P<path>(?:\[[^\[\]]*\])*)$")
_SEGMENT_RE = re.compile(r"\[([^\[\]]*)\]")
_TRUE_VALUES = {"1", "true", "yes", "y", "on"}
_FALSE_VALUES = {"0", "false", "no", "n", "off"}

Params = Union[Mapping[str, Any], Iterable[tuple[str, Any]]]


def _coerce_int(value: Any, default: int = 0) -> int:
    text = str(value if value is not None else "").strip()
    if not text:
        return default
    try:
        return int(text)
    except ValueError:
        return default


def _coerce_bool(value: Any, default: bool = False) -> bool:
    text = str(value if value is not None else "").strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    return default


def _split_key(key: str) -> Optional[tuple[str, list[str]]]:
    match = _KEY_RE.match(key)
    if match is None:
        return None
    return match.group("root"), _SEGMENT_RE.findall(match.group("path"))


def _text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _index(segment: str, limit: int) -> Optional[int]:
    if not (segment.isascii() and segment.isdigit()):
        return None
    try:
        index = int(segment)
    except ValueError:
        return None
    if index >= limit:
        return None
    return index


def _iter_pairs(params: Params) -> Iterable[tuple[str, Any]]:
    if isinstance(params, Mapping):
        return params.items()
    return params


def _search_from(raw: dict[str, Any]) -> Optional[SearchRequest]:
    if not raw:
        return None
    return SearchRequest(value=_text(raw.get("value")), regex=_coerce_bool(raw.get("regex")))


def decode_grid_params(params: Params, *, max_columns: Optional[int] = None) -> GridRequest:
    """Decode DataTables bracket-notation parameters into a GridRequest.

    Accepts a mapping or an iterable of ``(key, value)`` pairs such as
    ``columns[0][data]=name`` or ``order[0][dir]=desc``. Unknown keys are
    ignored, malformed numbers and flags fall back to defaults, and column
    indices at or above ``max_columns`` are discarded. Columns keep their
    position so that ``order[i][column]`` references stay valid; missing
    positions become blank, non-searchable, non-orderable columns.
    """
    limit = settings.max_columns if max_columns is None else max(max_columns, 0)
    scalars: dict[str, Any] = {}
    search: dict[str, Any] = {}
    columns: dict[int, dict[str, Any]] = {}
    column_search: dict[int, dict[str, Any]] = {}
    orders: dict[int, dict[str, Any]] = {}
    discarded = 0

    for key, value in _iter_pairs(params):
        parsed = _split_key(str(key))
        if parsed is None:
            continue
        root, path = parsed
        if root in {"draw", "start", "length"} and not path:
            scalars[root] = value
        elif root == "search" and len(path) == 1:
            search[path[0]] = value
        elif root in {"columns", "order"} and len(path) >= 2:
            index = _index(path[0], limit)
            if index is None:
                discarded += 1
                continue
            bucket = (columns if root == "columns" else orders).setdefault(index, {})
            if root == "columns" and path[1] == "search" and len(path) == 3:
                column_search.setdefault(index, {})[path[2]] = value
            elif len(path) == 2 and path[1] != "search":
                bucket[path[1]] = value

    if discarded:
        _LOG.warning("grid_params_discarded count=%s max_columns=%s", discarded, limit)

    column_list: list[ColumnRequest] = []
    if columns:
        for position in range(max(columns) + 1):
            raw = columns.get(position, {})
            column_list.append(
                ColumnRequest(
                    data_field=_text(raw.get("data")),
                    name=_text(raw.get("name")),
                    searchable=_coerce_bool(raw.get("searchable")),
                    orderable=_coerce_bool(raw.get("orderable")),
                    search=_search_from(column_search.get(position, {})),
                )
            )

    order_list = [
        OrderRequest(
            column_index=_coerce_int(raw.get("column"), -1),
            direction=_text(raw.get("dir")),
            name=_text(raw.get("name")),
        )
        for _, raw in sorted(orders.items())
    ]

    return GridRequest(
        draw=_coerce_int(scalars.get("draw")),
        start=_coerce_int(scalars.get("start")),
        length=_coerce_int(scalars.get("length")),
        search=_search_from(search),
        columns=column_list,
        order=order_list,
    )
