import logging
from typing import Any

from .api_client import WebGUIClient
from .errors import ParseError
from .models import QueryResult

logger = logging.getLogger(__name__)


def parse_query_result(payload: Any) -> QueryResult:
    """Builds a schema-less QueryResult from a query response."""
    if payload is None:
        return QueryResult()
    if not isinstance(payload, dict):
        raise ParseError("Query response is not an object")
    columns = payload.get("columns") or []
    rows = payload.get("rows") or []
    if not isinstance(columns, list) or not isinstance(rows, list):
        raise ParseError("Query response columns and rows must be lists")
    if not all(isinstance(row, list) for row in rows):
        raise ParseError("Query response rows are not value lists")
    return QueryResult(columns=[str(c) for c in columns], rows=rows)


class QueryRunner:
    """
    Sends operator-supplied query text to the backend as-is.

    Validation and safety of the text are the backend's concern.
    """

    def __init__(self, api: WebGUIClient):
        self.api = api

    async def run_query(self, text: str) -> QueryResult:
        logger.info("Running ad-hoc query")
        payload = await self.api.execute_query(text)
        result = parse_query_result(payload)
        logger.debug(f"Query returned {result.total} rows")
        return result
