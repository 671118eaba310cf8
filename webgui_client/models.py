"""
Data model shared by the browsing client components.

These are plain value objects built from backend responses. Components
return fresh instances instead of modifying ones they were given.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

Row = List[Any]
EditDraft = Dict[str, Any]


@dataclass
class TableDescriptor:
    """A browsable table as listed by the backend."""

    name: str
    row_count: int = 0

    def __post_init__(self):
        if not self.name:
            raise ValueError("Table name cannot be empty")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TableDescriptor":
        """Create a TableDescriptor from a backend table entry."""
        return cls(name=data.get("name", ""), row_count=data.get("row_count") or 0)


@dataclass
class ColumnDescriptor:
    """Per-column metadata for the selected table."""

    name: str
    type: str = ""
    primary_key: bool = False
    not_null: bool = False
    default_value: Optional[str] = None

    def __post_init__(self):
        if not self.name:
            raise ValueError("Column name cannot be empty")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ColumnDescriptor":
        """Create a ColumnDescriptor from a backend schema entry."""
        return cls(
            name=data.get("name", ""),
            type=data.get("type") or "",
            primary_key=bool(data.get("primary_key", False)),
            not_null=bool(data.get("not_null", False)),
            default_value=data.get("default_value"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert the column descriptor to a dictionary."""
        return {
            "name": self.name,
            "type": self.type,
            "primary_key": self.primary_key,
            "not_null": self.not_null,
            "default_value": self.default_value,
        }


@dataclass
class PageWindow:
    """One bounded slice of a table's rows plus pagination metadata."""

    rows: List[Row]
    total: int
    limit: int
    page: int = 1
    columns: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.limit <= 0:
            raise ValueError("limit must be positive")
        if self.page < 1:
            raise ValueError("page is 1-based")
        if self.total < 0:
            raise ValueError("total must be non-negative")

    @property
    def last_page(self) -> int:
        """The highest page number that holds rows (1 for an empty table)."""
        return max(1, math.ceil(self.total / self.limit))

    @property
    def has_next(self) -> bool:
        return self.page * self.limit < self.total

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert the window to a dictionary."""
        return {
            "columns": list(self.columns),
            "rows": [list(row) for row in self.rows],
            "total": self.total,
            "limit": self.limit,
            "page": self.page,
        }


@dataclass
class QueryResult:
    """Result set of an ad-hoc query. Independent of any table schema."""

    columns: List[str] = field(default_factory=list)
    rows: List[Row] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.rows)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the result to a dictionary."""
        return {
            "columns": list(self.columns),
            "rows": [list(row) for row in self.rows],
            "total": self.total,
        }
