import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, HTTPException, Path, Query

from .config import Config
from .database import DatabaseError, ReadOnlyError, TableDatabase, TableNotFoundError
from .models import Column, MessageResponse, ModeResponse, QueryRequest, Table, TableData


def _parse_int(value: Optional[str], default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _raise_http(e: DatabaseError, default_status: int = 500):
    """Maps a database-layer failure onto an HTTPException."""
    if isinstance(e, ReadOnlyError):
        status_code = 403
    elif isinstance(e, TableNotFoundError):
        status_code = 404
    else:
        status_code = default_status
    raise HTTPException(status_code=status_code, detail=e.message) from e


def create_api_routes(database: TableDatabase) -> APIRouter:
    """
    Creates and returns the API router, wiring up the endpoints
    to the database.
    """
    router = APIRouter(prefix="/api")

    @router.get("/mode", response_model=ModeResponse)
    def get_mode() -> Dict[str, Any]:
        """Reports whether write operations are disabled."""
        return {"readonly": database.is_read_only()}

    @router.get("/tables", response_model=List[Table])
    def get_tables() -> List[Dict[str, Any]]:
        """Lists every table with its row count."""
        try:
            return database.get_tables()
        except DatabaseError as e:
            _raise_http(e)

    @router.get("/tables/{name}/schema", response_model=List[Column])
    def get_table_schema(name: str = Path(..., title="The table name")) -> List[Dict[str, Any]]:
        """Returns the column metadata of a table."""
        try:
            return database.get_table_schema(name)
        except DatabaseError as e:
            _raise_http(e)

    @router.get("/tables/{name}/data", response_model=TableData)
    def get_table_data(
        name: str = Path(..., title="The table name"),
        page: Optional[str] = Query(None),
        limit: Optional[str] = Query(None),
    ) -> Dict[str, Any]:
        """
        Returns one page of rows.

        A missing or invalid page becomes 1; a limit outside
        [1, MAX_PAGE_LIMIT] becomes the default limit.
        """
        page_number = _parse_int(page, 1)
        if page_number < 1:
            page_number = 1
        page_limit = _parse_int(limit, Config.DEFAULT_PAGE_LIMIT)
        if page_limit < 1 or page_limit > Config.MAX_PAGE_LIMIT:
            page_limit = Config.DEFAULT_PAGE_LIMIT

        try:
            return database.get_table_data(name, page_number, page_limit)
        except DatabaseError as e:
            _raise_http(e)

    @router.post("/tables/{name}/rows", status_code=201, response_model=MessageResponse)
    def insert_row(
        name: str = Path(..., title="The table name"),
        values: Dict[str, Any] = Body(...),
    ) -> Dict[str, str]:
        """Inserts one row from a column-name to value mapping."""
        try:
            database.insert_row(name, values)
        except DatabaseError as e:
            _raise_http(e)
        return {"message": "Row inserted successfully"}

    @router.put("/tables/{name}/rows", response_model=MessageResponse)
    def update_row(
        name: str = Path(..., title="The table name"),
        pk: Optional[str] = Query(None),
        pk_value: Optional[str] = Query(None),
        values: Dict[str, Any] = Body(...),
    ) -> Dict[str, str]:
        """Updates the row identified by the pk and pk_value query parameters."""
        if not pk or not pk_value:
            raise HTTPException(status_code=400, detail="Missing pk or pk_value query parameters")
        try:
            database.update_row(name, pk, pk_value, values)
        except DatabaseError as e:
            _raise_http(e)
        return {"message": "Row updated successfully"}

    @router.delete("/tables/{name}/rows", response_model=MessageResponse)
    def delete_row(
        name: str = Path(..., title="The table name"),
        pk: Optional[str] = Query(None),
        pk_value: Optional[str] = Query(None),
    ) -> Dict[str, str]:
        """Deletes the row identified by the pk and pk_value query parameters."""
        if not pk or not pk_value:
            raise HTTPException(status_code=400, detail="Missing pk or pk_value query parameters")
        try:
            database.delete_row(name, pk, pk_value)
        except DatabaseError as e:
            _raise_http(e)
        return {"message": "Row deleted successfully"}

    @router.post("/query", response_model=TableData)
    def execute_query(request: QueryRequest) -> Dict[str, Any]:
        """Runs operator-supplied SQL as-is."""
        try:
            return database.execute_query(request.sql)
        except DatabaseError as e:
            logging.info(f"Ad-hoc query failed: {e.message}")
            _raise_http(e, default_status=400)

    return router
