from typing import Any, List, Optional

from pydantic import BaseModel


class Table(BaseModel):
    name: str
    row_count: int = 0


class Column(BaseModel):
    name: str
    type: str
    not_null: bool = False
    default_value: Optional[str] = None
    primary_key: bool = False


class TableData(BaseModel):
    """A page of rows, or the result set of an ad-hoc query."""

    columns: List[str]
    rows: List[List[Any]]
    total: int
    page: int
    limit: int


class QueryRequest(BaseModel):
    sql: str = ""


class ModeResponse(BaseModel):
    readonly: bool


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str
