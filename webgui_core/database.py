"""
Generic table access for the webgui core service.

Works against any database SQLAlchemy can reflect. Nothing here knows about
specific tables: names, columns and primary keys are discovered on every
call so schema changes made through ad-hoc queries are picked up at once.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import MetaData, Table, create_engine, delete, func, insert, inspect, select, update
from sqlalchemy import table as table_clause
from sqlalchemy.engine import Engine
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError
from sqlalchemy.types import NullType

READ_ONLY_MESSAGE = "database is in read-only mode"


class DatabaseError(Exception):
    """Base class for failures reported by the database layer."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ReadOnlyError(DatabaseError):
    """A write was attempted on a database opened read-only."""

    def __init__(self):
        super().__init__(READ_ONLY_MESSAGE)


class TableNotFoundError(DatabaseError):
    """The requested table does not exist."""

    def __init__(self, table_name: str):
        super().__init__(f"no such table: {table_name}")
        self.table_name = table_name


class QueryError(DatabaseError):
    """An ad-hoc query was rejected or failed."""

    pass


def _jsonable(value: Any) -> Any:
    # Binary values are returned as text
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    return value


def _coerce_key(column, value: Any) -> Any:
    """Converts a primary-key value received as text to the column's Python type."""
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return value
    if python_type in (int, float) and isinstance(value, str):
        try:
            return python_type(value)
        except ValueError:
            return value
    return value


class TableDatabase:
    """Reflection, paging and single-row writes over one database."""

    def __init__(self, url: Optional[str] = None, readonly: bool = True, engine: Optional[Engine] = None):
        """
        Initialize the database.

        Args:
            url: SQLAlchemy database URL. Ignored when `engine` is given.
            readonly: Refuse row writes, and run ad-hoc queries without committing.
            engine: A pre-built engine (used by tests for in-memory SQLite).
        """
        if url is None and engine is None:
            raise ValueError("Either a database url or an engine is required")
        self.url = url if url is not None else str(engine.url)
        self.readonly = readonly
        self._engine = engine

    @property
    def engine(self) -> Engine:
        """Get the engine, creating it if necessary."""
        if self._engine is None:
            self._engine = self.create_engine()
        return self._engine

    def create_engine(self) -> Engine:
        connect_args = {}
        if self.url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        engine = create_engine(self.url, connect_args=connect_args)
        logging.info(f"Created database engine for {engine.url.render_as_string(hide_password=True)}")
        return engine

    def is_read_only(self) -> bool:
        return self.readonly

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()

    def _table_names(self) -> List[str]:
        names = inspect(self.engine).get_table_names()
        return sorted(name for name in names if not name.startswith("sqlite_"))

    def _reflect(self, table_name: str) -> Table:
        if table_name not in self._table_names():
            raise TableNotFoundError(table_name)
        try:
            return Table(table_name, MetaData(), autoload_with=self.engine)
        except NoSuchTableError as e:
            raise TableNotFoundError(table_name) from e

    def _type_name(self, column_type) -> str:
        if isinstance(column_type, NullType):
            return ""
        try:
            return column_type.compile(dialect=self.engine.dialect)
        except SQLAlchemyError:
            return type(column_type).__name__

    def _require_writable(self) -> None:
        if self.readonly:
            raise ReadOnlyError()

    # --- Reads ---

    def get_tables(self) -> List[Dict[str, Any]]:
        """
        Lists user tables in name order with their row counts.

        A table whose rows cannot be counted is reported with row_count 0.
        """
        try:
            names = self._table_names()
        except SQLAlchemyError as e:
            raise DatabaseError(f"failed to query tables: {e}") from e

        tables = []
        with self.engine.connect() as conn:
            for name in names:
                try:
                    row_count = conn.execute(
                        select(func.count()).select_from(table_clause(name))
                    ).scalar_one()
                except SQLAlchemyError as e:
                    logging.warning(f"Could not count rows of '{name}': {e}")
                    conn.rollback()
                    row_count = 0
                tables.append({"name": name, "row_count": row_count})
        return tables

    def get_table_schema(self, table_name: str) -> List[Dict[str, Any]]:
        """Returns column metadata for `table_name` in declaration order."""
        try:
            inspector = inspect(self.engine)
            if not inspector.has_table(table_name) or table_name.startswith("sqlite_"):
                raise TableNotFoundError(table_name)
            columns = inspector.get_columns(table_name)
            pk_columns = set(inspector.get_pk_constraint(table_name).get("constrained_columns") or [])
        except NoSuchTableError as e:
            raise TableNotFoundError(table_name) from e
        except SQLAlchemyError as e:
            raise DatabaseError(f"failed to query table schema: {e}") from e

        schema = []
        for column in columns:
            default = column.get("default")
            schema.append(
                {
                    "name": column["name"],
                    "type": self._type_name(column["type"]),
                    "not_null": not column.get("nullable", True),
                    "default_value": str(default) if default is not None else None,
                    "primary_key": column["name"] in pk_columns,
                }
            )
        return schema

    def get_table_data(self, table_name: str, page: int, limit: int) -> Dict[str, Any]:
        """
        Returns one page of rows as positional value lists.

        Values are in the same column order as get_table_schema reports.
        """
        table = self._reflect(table_name)
        offset = (page - 1) * limit
        try:
            with self.engine.connect() as conn:
                total = conn.execute(select(func.count()).select_from(table)).scalar_one()
                result = conn.execute(select(table).limit(limit).offset(offset))
                columns = list(result.keys())
                rows = [[_jsonable(value) for value in row] for row in result]
        except SQLAlchemyError as e:
            raise DatabaseError(f"failed to query table data: {e}") from e

        return {"columns": columns, "rows": rows, "total": total, "page": page, "limit": limit}

    # --- Writes ---

    def insert_row(self, table_name: str, values: Dict[str, Any]) -> None:
        self._require_writable()
        table = self._reflect(table_name)
        try:
            with self.engine.begin() as conn:
                conn.execute(insert(table).values(values))
        except SQLAlchemyError as e:
            raise DatabaseError(str(e.orig) if getattr(e, "orig", None) else str(e)) from e
        logging.info(f"Inserted row into '{table_name}'")

    def update_row(self, table_name: str, pk_column: str, pk_value: Any, values: Dict[str, Any]) -> int:
        """
        Updates the row where `pk_column` equals `pk_value`.

        Returns:
            The number of rows changed.
        """
        self._require_writable()
        if not values:
            raise DatabaseError("no values to update")
        table = self._reflect(table_name)
        if pk_column not in table.c:
            raise DatabaseError(f"no such column: {pk_column}")
        key = table.c[pk_column]
        try:
            with self.engine.begin() as conn:
                result = conn.execute(
                    update(table).where(key == _coerce_key(key, pk_value)).values(values)
                )
        except SQLAlchemyError as e:
            raise DatabaseError(str(e.orig) if getattr(e, "orig", None) else str(e)) from e
        logging.info(f"Updated {result.rowcount} row(s) in '{table_name}' where {pk_column}={pk_value!r}")
        return result.rowcount

    def delete_row(self, table_name: str, pk_column: str, pk_value: Any) -> int:
        """
        Deletes the row where `pk_column` equals `pk_value`.

        Returns:
            The number of rows removed.
        """
        self._require_writable()
        table = self._reflect(table_name)
        if pk_column not in table.c:
            raise DatabaseError(f"no such column: {pk_column}")
        key = table.c[pk_column]
        try:
            with self.engine.begin() as conn:
                result = conn.execute(delete(table).where(key == _coerce_key(key, pk_value)))
        except SQLAlchemyError as e:
            raise DatabaseError(str(e.orig) if getattr(e, "orig", None) else str(e)) from e
        logging.info(f"Deleted {result.rowcount} row(s) from '{table_name}' where {pk_column}={pk_value!r}")
        return result.rowcount

    # --- Ad-hoc queries ---

    def execute_query(self, sql: str) -> Dict[str, Any]:
        """
        Runs raw SQL exactly as given and returns any result set.

        In read-only mode the statement runs in a transaction that is never
        committed. That is only a hard guarantee for SQLite files opened with
        `mode=ro`; on backends where DDL commits implicitly (MySQL, for one)
        a read-only server cannot undo it.
        """
        sql = (sql or "").strip()
        if not sql:
            raise QueryError("query cannot be empty")

        try:
            if self.readonly:
                with self.engine.connect() as conn:
                    columns, rows = self._run(conn, sql)
                    conn.rollback()
            else:
                with self.engine.begin() as conn:
                    columns, rows = self._run(conn, sql)
        except SQLAlchemyError as e:
            raise QueryError(str(e.orig) if getattr(e, "orig", None) else str(e)) from e

        return {"columns": columns, "rows": rows, "total": len(rows), "page": 1, "limit": len(rows)}

    @staticmethod
    def _run(conn, sql: str):
        result = conn.exec_driver_sql(sql)
        if not result.returns_rows:
            return [], []
        columns = list(result.keys())
        rows = [[_jsonable(value) for value in row] for row in result]
        return columns, rows
