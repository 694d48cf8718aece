from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, List, Optional


class SearchRequest(BaseModel):
    value: Optional[str] = None
    regex: bool = False

    @field_validator("value", mode="before")
    @classmethod
    def _scalar_to_text(cls, value: Any):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class ColumnRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    data_field: Optional[str] = Field(default=None, alias="data")
    name: Optional[str] = None
    searchable: bool = False
    orderable: bool = False
    search: Optional[SearchRequest] = None

    @field_validator("data_field", mode="before")
    @classmethod
    def _index_to_text(cls, value: Any):
        # Array-backed tables send the column position instead of a property name.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class OrderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    column_index: int = Field(default=-1, alias="column")
    direction: Optional[str] = Field(default="asc", alias="dir")
    name: Optional[str] = None


class GridRequest(BaseModel):
    """Server-side processing request as sent by a DataTables grid."""

    draw: int = 0
    start: int = 0
    length: int = 0
    search: Optional[SearchRequest] = None
    columns: List[ColumnRequest] = []
    order: List[OrderRequest] = []
