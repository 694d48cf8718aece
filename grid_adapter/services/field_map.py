from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from threading import Lock
from types import MappingProxyType
from typing import Annotated, Any, ClassVar, get_args, get_origin, get_type_hints

from pydantic import BaseModel

_LOG = logging.getLogger("grid_adapter.field_map")

JSON_NAME_KEY = "json_name"
MAP_TO_KEY = "map_to"


@dataclass(frozen=True)
class MapTo:
    """Maps an externally visible field to a different internal path.

    Used as ``Annotated`` metadata::

        email: Annotated[str, MapTo("contact.email")]
    """

    path: str


class FieldMap(Mapping[str, str]):
    """Read-only external name -> internal path mapping with case-insensitive keys.

    When two pairs share an external name (ignoring case) the later pair wins.
    """

    __slots__ = ("_entries",)

    def __init__(self, pairs: Iterable[tuple[str, str]] = ()):
        entries: dict[str, tuple[str, str]] = {}
        for external, internal in pairs:
            entries[external.lower()] = (external, internal)
        self._entries = MappingProxyType(entries)

    def __getitem__(self, key: str) -> str:
        if not isinstance(key, str):
            raise KeyError(key)
        return self._entries[key.lower()][1]

    def __iter__(self) -> Iterator[str]:
        return (external for external, _ in self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"FieldMap({dict(self.items())!r})"


def _map_to_from_metadata(metadata: Iterable[Any]) -> str | None:
    path = None
    for item in metadata:
        if isinstance(item, MapTo):
            path = item.path
    return path


def _map_to_from_extra(extra: Any) -> str | None:
    if isinstance(extra, Mapping):
        value = extra.get(MAP_TO_KEY)
        if isinstance(value, str) and value:
            return value
    return None


def _annotated_metadata(hint: Any) -> tuple[Any, ...]:
    if get_origin(hint) is Annotated:
        return get_args(hint)[1:]
    return ()


def _type_hints(model_type: type) -> dict[str, Any]:
    try:
        return get_type_hints(model_type, include_extras=True)
    except (NameError, TypeError):
        # Unresolvable forward references; fall back to names without markers.
        _LOG.debug("field_map_hints_unresolved type=%s", model_type.__qualname__, exc_info=True)
        return {}


def _pydantic_pairs(model_type: type[BaseModel]) -> Iterator[tuple[str, str]]:
    for name, info in model_type.model_fields.items():
        external = info.serialization_alias or info.alias or name
        internal = (
            _map_to_from_metadata(info.metadata)
            or _map_to_from_extra(info.json_schema_extra)
            or external
        )
        yield external, internal
    for name, info in model_type.model_computed_fields.items():
        external = info.alias or name
        yield external, _map_to_from_extra(info.json_schema_extra) or external


def _dataclass_pairs(model_type: type) -> Iterator[tuple[str, str]]:
    hints = _type_hints(model_type)
    for f in dataclasses.fields(model_type):
        if f.name.startswith("_"):
            continue
        external = f.metadata.get(JSON_NAME_KEY) or f.name
        internal = (
            f.metadata.get(MAP_TO_KEY)
            or _map_to_from_metadata(_annotated_metadata(hints.get(f.name)))
            or external
        )
        yield external, internal


def _annotated_pairs(model_type: type) -> Iterator[tuple[str, str]]:
    for name, hint in _type_hints(model_type).items():
        if name.startswith("_") or get_origin(hint) is ClassVar:
            continue
        yield name, _map_to_from_metadata(_annotated_metadata(hint)) or name


def build_field_map(model_type: type) -> FieldMap:
    """Introspect ``model_type`` into a fresh FieldMap (no caching)."""
    if isinstance(model_type, type) and issubclass(model_type, BaseModel):
        pairs = _pydantic_pairs(model_type)
    elif dataclasses.is_dataclass(model_type):
        pairs = _dataclass_pairs(model_type)
    else:
        pairs = _annotated_pairs(model_type)
    return FieldMap(pairs)


_FIELD_MAPS: dict[type, FieldMap] = {}
_FIELD_MAPS_LOCK = Lock()


def get_field_map(model_type: type) -> FieldMap:
    cached = _FIELD_MAPS.get(model_type)
    if cached is not None:
        return cached
    with _FIELD_MAPS_LOCK:
        cached = _FIELD_MAPS.get(model_type)
        if cached is None:
            cached = build_field_map(model_type)
            _FIELD_MAPS[model_type] = cached
            _LOG.debug("field_map_built type=%s fields=%s", model_type.__qualname__, len(cached))
    return cached


def clear_field_map_cache() -> None:
    with _FIELD_MAPS_LOCK:
        _FIELD_MAPS.clear()
