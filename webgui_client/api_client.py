import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from .config import Config
from .errors import BackendError, ParseError, TransportError

GENERIC_FAILURE = "Request failed"


def _table_path(table_name: str, suffix: str = "") -> str:
    return f"/api/tables/{quote(table_name, safe='')}{suffix}"


def _format_pk_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def extract_error_message(response: httpx.Response) -> str:
    """
    Reads the backend's `{"error": ...}` body from a failed response.

    Bodies that are not JSON, not an object, or lack a usable `error` field
    degrade to a generic message that includes the status code.
    """
    fallback = f"{GENERIC_FAILURE} with status {response.status_code}"
    try:
        response_data = response.json()
    except ValueError:
        return fallback
    if isinstance(response_data, dict):
        error = response_data.get("error")
        if isinstance(error, str) and error:
            return error
        if error is not None and not isinstance(error, (dict, list)):
            return str(error)
    return fallback


class WebGUIClient:
    """
    An asynchronous HTTP client for the webgui core REST API.

    Every method returns the decoded JSON payload or raises one of
    TransportError, BackendError or ParseError. It keeps no browsing state.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initializes the asynchronous HTTP client.

        Args:
            base_url: Backend base URL. Defaults to Config.get_api_url().
            timeout: Request timeout in seconds. Defaults to the configured
                     value; None disables client-side timeouts.
            transport: Optional httpx transport (used to mount an ASGI app).
        """
        self.base_url = base_url or Config.get_api_url()
        if timeout is None:
            timeout = Config.get_http_timeout()
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        """
        Issues one request and decodes the JSON response body.

        Raises:
            TransportError: The request never produced a response.
            BackendError: The response status was not 2xx.
            ParseError: A 2xx response body was not valid JSON.
        """
        try:
            logging.debug(f"WebGUIClient: {method} {path} params={params}")
            response = await self.client.request(method, path, params=params, json=json)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            message = extract_error_message(e.response)
            logging.error(f"{method} {path} failed with status {e.response.status_code}: {message}")
            raise BackendError(message, status_code=e.response.status_code) from e
        except httpx.RequestError as e:
            logging.error(f"An error occurred while requesting {method} {path}: {e}")
            raise TransportError(f"Could not reach the backend: {e}") from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logging.error(f"{method} {path} returned a body that is not valid JSON")
            raise ParseError(f"Malformed response from {method} {path}") from e

    async def get_mode(self) -> Dict[str, Any]:
        """Fetches the backend mode (`{"readonly": bool}`)."""
        return await self._request("GET", "/api/mode")

    async def get_tables(self) -> List[Dict[str, Any]]:
        """Fetches the list of browsable tables."""
        return await self._request("GET", "/api/tables")

    async def get_table_schema(self, table_name: str) -> List[Dict[str, Any]]:
        """Fetches the column metadata of one table."""
        return await self._request("GET", _table_path(table_name, "/schema"))

    async def get_table_data(self, table_name: str, page: int, limit: int) -> Dict[str, Any]:
        """Fetches one page of rows for a table."""
        return await self._request(
            "GET",
            _table_path(table_name, "/data"),
            params={"page": page, "limit": limit},
        )

    async def insert_row(self, table_name: str, values: Dict[str, Any]) -> Any:
        """
        Inserts a row.

        Args:
            table_name: Target table.
            values: Column-name to value mapping, already filtered by the caller.
        """
        return await self._request("POST", _table_path(table_name, "/rows"), json=values)

    async def update_row(
        self, table_name: str, pk_column: str, pk_value: Any, values: Dict[str, Any]
    ) -> Any:
        """Updates the row identified by (pk_column, pk_value)."""
        return await self._request(
            "PUT",
            _table_path(table_name, "/rows"),
            params={"pk": pk_column, "pk_value": _format_pk_value(pk_value)},
            json=values,
        )

    async def delete_row(self, table_name: str, pk_column: str, pk_value: Any) -> Any:
        """Deletes the row identified by (pk_column, pk_value)."""
        return await self._request(
            "DELETE",
            _table_path(table_name, "/rows"),
            params={"pk": pk_column, "pk_value": _format_pk_value(pk_value)},
        )

    async def execute_query(self, sql: str) -> Dict[str, Any]:
        """Submits raw query text. The text is passed through untouched."""
        return await self._request("POST", "/api/query", json={"sql": sql})

    async def close(self):
        """
        Closes the HTTP client session.
        """
        await self.client.aclose()
