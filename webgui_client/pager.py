"""
Paginated Row Fetcher.

Retrieves one bounded window of rows. It owns no state: callers keep the
PageWindow and decide whether to replace their current one.
"""

import logging
from typing import Any, Dict

from .api_client import WebGUIClient
from .errors import ParseError
from .models import PageWindow

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50


def parse_page(payload: Any, page: int, limit: int) -> PageWindow:
    """
    Builds a PageWindow from a data response.

    The page is the one the caller asked for; the backend may or may not
    echo it. Rows must all be as wide as the reported column list.

    Raises:
        ParseError: The payload does not have the declared structure.
    """
    if not isinstance(payload, dict):
        raise ParseError("Table data response is not an object")

    rows = payload.get("rows") or []
    columns = payload.get("columns") or []
    total = payload.get("total", 0)
    if not isinstance(rows, list) or not all(isinstance(row, list) for row in rows):
        raise ParseError("Table data rows are not a list of value lists")
    if not isinstance(columns, list):
        raise ParseError("Table data columns are not a list")
    if not isinstance(total, int) or isinstance(total, bool):
        raise ParseError("Table data total is not an integer")

    if columns:
        for index, row in enumerate(rows):
            if len(row) != len(columns):
                raise ParseError(
                    f"Row {index} has {len(row)} values but {len(columns)} columns were reported"
                )

    window_limit = payload.get("limit") or limit
    if not isinstance(window_limit, int) or window_limit <= 0:
        window_limit = limit

    try:
        return PageWindow(
            rows=rows,
            total=total,
            limit=window_limit,
            page=page,
            columns=[str(c) for c in columns],
        )
    except ValueError as e:
        raise ParseError(f"Invalid page window: {e}") from e


class RowFetcher:
    """Loads page windows for a table."""

    def __init__(self, api: WebGUIClient):
        self.api = api

    async def load_page(self, table_name: str, page: int, limit: int = DEFAULT_LIMIT) -> PageWindow:
        """
        Fetches page `page` (1-based) of `table_name`.

        Raises:
            ValueError: page or limit out of range.
            TransportError, BackendError, ParseError
        """
        if page < 1:
            raise ValueError("page is 1-based")
        if limit < 1:
            raise ValueError("limit must be positive")

        logger.info(f"RowFetcher: loading '{table_name}' page {page} (limit {limit})")
        payload = await self.api.get_table_data(table_name, page, limit)
        window = parse_page(payload, page, limit)
        logger.debug(
            f"RowFetcher: '{table_name}' page {page} has {len(window.rows)} of {window.total} rows"
        )
        return window


def next_page_number(window: PageWindow) -> int:
    """The page `next_page` should fetch, or the current page when at the end."""
    return window.page + 1 if window.has_next else window.page


def previous_page_number(window: PageWindow) -> int:
    """The page `previous_page` should fetch, or 1 when already on the first page."""
    return window.page - 1 if window.has_previous else window.page


def clamp_page(page: int, window: PageWindow) -> int:
    """Clamps a requested page to [1, last non-empty page] of `window`."""
    return max(1, min(page, window.last_page))


def summarize(window: PageWindow) -> Dict[str, Any]:
    """Describes the navigation position of a window."""
    return {
        "page": window.page,
        "last_page": window.last_page,
        "limit": window.limit,
        "total": window.total,
        "has_next": window.has_next,
        "has_previous": window.has_previous,
    }
