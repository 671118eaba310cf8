"""
Schema Catalog Client: fetches column metadata for a table and keeps the
last good copy per table.
"""

import logging
from typing import Dict, List, Optional

from .api_client import WebGUIClient
from .errors import ParseError
from .models import ColumnDescriptor

logger = logging.getLogger(__name__)


def parse_schema(payload) -> List[ColumnDescriptor]:
    """
    Converts a schema response into an ordered list of ColumnDescriptor.

    Raises:
        ParseError: The payload is not a list of column objects.
    """
    if not isinstance(payload, list):
        raise ParseError("Schema response is not a list of columns")
    try:
        return [ColumnDescriptor.from_dict(entry) for entry in payload]
    except (AttributeError, ValueError) as e:
        raise ParseError(f"Invalid column descriptor in schema response: {e}") from e


class SchemaCatalog:
    """
    Loads and caches column metadata.

    A successful load replaces the cached entry for that table wholesale.
    A failed load raises and leaves every cached entry as it was.
    """

    def __init__(self, api: WebGUIClient):
        self.api = api
        self._cache: Dict[str, List[ColumnDescriptor]] = {}

    async def load_schema(self, table_name: str) -> List[ColumnDescriptor]:
        """
        Fetches the schema of `table_name` from the backend.

        Returns:
            The ordered column descriptors.

        Raises:
            TransportError, BackendError, ParseError
        """
        logger.info(f"SchemaCatalog: loading schema for '{table_name}'")
        payload = await self.api.get_table_schema(table_name)
        columns = parse_schema(payload)
        self._cache[table_name] = columns
        logger.debug(f"SchemaCatalog: '{table_name}' has {len(columns)} columns")
        return list(columns)

    def cached(self, table_name: str) -> Optional[List[ColumnDescriptor]]:
        """Returns the last successfully loaded schema, or None."""
        columns = self._cache.get(table_name)
        return list(columns) if columns is not None else None

    def invalidate(self, table_name: Optional[str] = None) -> None:
        """Drops one cached schema, or all of them."""
        if table_name is None:
            self._cache.clear()
        else:
            self._cache.pop(table_name, None)
