"""
Row Identity Resolver.

Rows are bare value lists aligned with the schema, so a row only gains an
identity through the ordinal of the primary-key column. The ordinal is
looked up on every call from the schema passed in, never remembered.
"""

from typing import Any, Optional, Sequence, Tuple

from .errors import IdentityError, NoPrimaryKeyError
from .models import ColumnDescriptor


def find_primary_key(columns: Sequence[ColumnDescriptor]) -> Optional[Tuple[int, ColumnDescriptor]]:
    """Returns (ordinal, column) of the first primary-key column, or None."""
    for ordinal, column in enumerate(columns):
        if column.primary_key:
            return ordinal, column
    return None


def resolve_primary_key(
    row: Sequence[Any],
    columns: Sequence[ColumnDescriptor],
    table_name: Optional[str] = None,
) -> Tuple[str, Any]:
    """
    Maps a positional row to its (primary-key column name, value).

    Args:
        row: Column values, positionally aligned with `columns`.
        columns: The CURRENT schema of the table the row came from.
        table_name: Only used to word the error.

    Raises:
        NoPrimaryKeyError: No column is marked as primary key.
        IdentityError: The row is not aligned with the schema.
    """
    found = find_primary_key(columns)
    if found is None:
        raise NoPrimaryKeyError(table_name)
    ordinal, column = found

    if len(row) != len(columns):
        raise IdentityError(
            f"Row has {len(row)} values but the schema has {len(columns)} columns; reload the table"
        )
    return column.name, row[ordinal]
