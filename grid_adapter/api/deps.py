from typing import Optional

from fastapi import Depends, Request

from grid_adapter.schemas.grid import GridRequest
from grid_adapter.schemas.options import QueryOptions
from grid_adapter.services.field_map import get_field_map
from grid_adapter.services.grid_params import decode_grid_params
from grid_adapter.services.grid_translator import to_query_options

def grid_request_from_query(request: Request) -> GridRequest:
    return decode_grid_params(request.query_params.multi_items())

def grid_query_options(model_type: Optional[type] = None):
    """Dependency factory: GET query string -> QueryOptions restricted to ``model_type``'s fields."""
    def _inner(grid: GridRequest = Depends(grid_request_from_query)) -> QueryOptions:
        allowed = get_field_map(model_type) if model_type is not None else None
        return to_query_options(grid, allowed)
    return _inner
