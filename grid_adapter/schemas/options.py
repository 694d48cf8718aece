from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class OrderByOption(BaseModel):
    field: str
    direction: SortDirection = SortDirection.ASC


class QueryOptions(BaseModel):
    """Backend-agnostic page/search/sort description handed to a query engine.

    ``search_fields`` and ``order_by`` are either ``None`` or non-empty, so a
    consumer can tell "no constraint" apart from "constraint on nothing".
    """

    model_config = ConfigDict(populate_by_name=True)

    skip: int = 0
    take: int = 0
    search: Optional[str] = None
    search_fields: Optional[List[str]] = Field(default=None, alias="searchFields")
    order_by: Optional[List[OrderByOption]] = Field(default=None, alias="orderBy")
