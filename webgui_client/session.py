"""
Session/Selection State.

BrowserSession owns every piece of mutable browsing state (selected table,
schema, current page, loaded rows, open edit flows, query result) in one
SessionState. The components it drives take values as arguments and hand
back new values; the session decides what to commit.

All public coroutines here are operation boundaries: client errors are
caught, turned into a Notification and never re-raised.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .api_client import WebGUIClient
from .config import Config
from .errors import BrowserError, IdentityError, ParseError
from .models import (
    ColumnDescriptor,
    EditDraft,
    PageWindow,
    QueryResult,
    Row,
    TableDescriptor,
)
from .mutations import Confirm, MutationCoordinator
from .pager import RowFetcher, clamp_page, next_page_number, previous_page_number
from .query_runner import QueryRunner
from .schema_catalog import SchemaCatalog

logger = logging.getLogger(__name__)


class Phase(Enum):
    """Selection state machine."""

    NO_TABLE_SELECTED = "no_table_selected"
    SCHEMA_LOADING = "schema_loading"
    DATA_LOADING = "data_loading"
    READY = "ready"


@dataclass
class Notification:
    """A user-visible message produced by a failed operation."""

    operation: str
    message: str
    level: str = "error"


@dataclass
class EditFlow:
    """An open edit: the row as it was loaded plus the draft being composed."""

    row: Row
    draft: EditDraft = field(default_factory=dict)


@dataclass
class SessionState:
    """Everything the browsing session knows. Only BrowserSession writes to it."""

    phase: Phase = Phase.NO_TABLE_SELECTED
    limit: int = 50
    tables: List[TableDescriptor] = field(default_factory=list)
    selected_table: Optional[str] = None
    schema_table: Optional[str] = None
    columns: List[ColumnDescriptor] = field(default_factory=list)
    page: int = 1
    window: Optional[PageWindow] = None
    insert_draft: Optional[EditDraft] = None
    edit: Optional[EditFlow] = None
    query_result: Optional[QueryResult] = None
    readonly: Optional[bool] = None
    notifications: List[Notification] = field(default_factory=list)

    @property
    def schema_ready(self) -> bool:
        """True when the loaded schema belongs to the selected table."""
        return self.selected_table is not None and self.schema_table == self.selected_table

    @property
    def insert_open(self) -> bool:
        return self.insert_draft is not None

    @property
    def edit_open(self) -> bool:
        return self.edit is not None


class BrowserSession:
    """
    Drives the browsing workflow: table list, table selection, paging,
    single-row writes and ad-hoc queries.
    """

    def __init__(
        self,
        api: WebGUIClient,
        limit: Optional[int] = None,
        listener: Optional[Callable[[Notification], None]] = None,
    ):
        """
        Args:
            api: Backend client shared by all components.
            limit: Rows per page for this session. Defaults to Config.get_page_limit().
            listener: Called with every Notification as it is raised.
        """
        limit = limit if limit is not None else Config.get_page_limit()
        if limit < 1:
            raise ValueError("limit must be positive")

        self.api = api
        self.listener = listener
        self.state = SessionState(limit=limit)
        self.catalog = SchemaCatalog(api)
        self.fetcher = RowFetcher(api)
        self.coordinator = MutationCoordinator(api, refresh=self._reconcile)
        self.runner = QueryRunner(api)

    # --- Notifications ---

    def _fail(self, operation: str, error: BrowserError) -> None:
        notification = Notification(operation=operation, message=error.message)
        self.state.notifications.append(notification)
        logger.warning(f"{operation} failed: {error.message}")
        if self.listener is not None:
            self.listener(notification)

    @property
    def last_notification(self) -> Optional[Notification]:
        return self.state.notifications[-1] if self.state.notifications else None

    def clear_notifications(self) -> None:
        self.state.notifications = []

    # --- Backend mode and table list ---

    async def load_mode(self) -> Optional[bool]:
        """Fetches whether the backend is read-only. Returns None on failure."""
        try:
            payload = await self.api.get_mode()
            if not isinstance(payload, dict) or "readonly" not in payload:
                raise ParseError("Mode response has no 'readonly' field")
        except BrowserError as e:
            self._fail("load mode", e)
            return None
        self.state.readonly = bool(payload["readonly"])
        return self.state.readonly

    async def load_tables(self) -> bool:
        """Replaces the table list wholesale. Keeps the old list on failure."""
        try:
            payload = await self.api.get_tables()
            if payload is None:
                payload = []
            if not isinstance(payload, list):
                raise ParseError("Table list response is not a list")
            try:
                tables = [TableDescriptor.from_dict(entry) for entry in payload]
            except (AttributeError, ValueError) as e:
                raise ParseError(f"Invalid table descriptor: {e}") from e
        except BrowserError as e:
            self._fail("load tables", e)
            return False
        self.state.tables = tables
        return True

    # --- Selection ---

    async def select_table(self, table_name: str) -> bool:
        """
        Selects a table: loads its schema, then its first page.

        Always restarts at SCHEMA_LOADING. Nothing belonging to the
        previously selected table is reused. If the schema load fails the
        data load is not issued.
        """
        state = self.state
        state.selected_table = table_name
        state.schema_table = None
        state.columns = []
        state.page = 1
        state.window = None
        state.edit = None
        state.insert_draft = None
        state.phase = Phase.SCHEMA_LOADING
        # A failed reload must not leave the previous schema usable for writes
        self.catalog.invalidate(table_name)

        try:
            columns = await self.catalog.load_schema(table_name)
        except BrowserError as e:
            self._fail("load schema", e)
            return False
        state.columns = columns
        state.schema_table = table_name
        state.phase = Phase.DATA_LOADING

        try:
            window = await self.fetcher.load_page(table_name, 1, state.limit)
        except BrowserError as e:
            self._fail("load table data", e)
            return False
        state.window = window
        state.page = window.page
        state.phase = Phase.READY
        return True

    # --- Paging ---

    async def _load_page(self, page: int, operation: str) -> bool:
        """
        Fetches `page` and commits it only once it has arrived.

        A window that comes back empty although the table has rows means the
        page ran past the end (rows were deleted); the last non-empty page is
        fetched instead.

        Rows are never loaded for a table whose schema is not loaded.
        """
        state = self.state
        table_name = state.selected_table
        if table_name is None:
            return False
        if not state.schema_ready:
            self._fail(operation, IdentityError(
                f"Schema for table '{table_name}' is not loaded; select the table again"
            ))
            return False
        try:
            window = await self.fetcher.load_page(table_name, page, state.limit)
            if not window.rows and window.total > 0 and window.page > window.last_page:
                window = await self.fetcher.load_page(table_name, window.last_page, state.limit)
        except BrowserError as e:
            self._fail(operation, e)
            return False
        state.window = window
        state.page = window.page
        state.phase = Phase.READY
        return True

    async def refresh_page(self) -> bool:
        """Reloads the current page."""
        return await self._load_page(self.state.page, "refresh page")

    async def next_page(self) -> bool:
        """Moves forward one page. A no-op (False) on the last page."""
        window = self.state.window
        if window is None or not window.has_next:
            return False
        return await self._load_page(next_page_number(window), "next page")

    async def previous_page(self) -> bool:
        """Moves back one page. A no-op (False) on the first page."""
        window = self.state.window
        if window is None or not window.has_previous:
            return False
        return await self._load_page(previous_page_number(window), "previous page")

    async def go_to_page(self, page: int) -> bool:
        """Jumps to `page`, clamped to the pages the current window knows of."""
        window = self.state.window
        if window is None:
            return False
        return await self._load_page(clamp_page(page, window), "go to page")

    # --- Identity helpers ---

    def _current_columns(self) -> List[ColumnDescriptor]:
        """
        The schema to resolve identity against.

        Raises:
            IdentityError: The schema was not (successfully) loaded for the
                           selected table, or the loaded rows no longer line
                           up with it.
        """
        state = self.state
        columns = self.catalog.cached(state.selected_table) if state.schema_ready else None
        if columns is None:
            raise IdentityError(
                f"Schema for table '{state.selected_table}' is not loaded; select the table again"
            )
        window = state.window
        if window is not None and window.columns:
            if window.columns != [column.name for column in columns]:
                raise IdentityError("Loaded rows do not match the current schema; reload the table")
        return columns

    def _row_at(self, row_index: int) -> Row:
        window = self.state.window
        if window is None:
            raise BrowserError("No rows are loaded")
        if not 0 <= row_index < len(window.rows):
            raise BrowserError(f"Row {row_index} is not on the current page")
        return list(window.rows[row_index])

    async def _reconcile(self) -> None:
        """Runs after every accepted write. Failures surface as notifications."""
        await self.refresh_page()
        await self.load_tables()

    # --- Insert ---

    def begin_insert(self) -> EditDraft:
        """Opens the insert flow with an empty draft (or returns the open one)."""
        if self.state.insert_draft is None:
            self.state.insert_draft = {}
        return self.state.insert_draft

    def cancel_insert(self) -> None:
        self.state.insert_draft = None

    async def insert_row(self, values: Optional[Dict[str, Any]] = None) -> bool:
        """
        Submits the insert draft, merged with `values`.

        On success the flow closes and the draft is discarded. On failure the
        draft is kept for another attempt.
        """
        state = self.state
        if state.selected_table is None:
            self._fail("insert row", BrowserError("No table selected"))
            return False
        draft = self.begin_insert()
        if values:
            draft.update(values)

        try:
            columns = self._current_columns()
            await self.coordinator.insert(state.selected_table, dict(draft), columns)
        except BrowserError as e:
            self._fail("insert row", e)
            return False
        state.insert_draft = None
        return True

    # --- Update ---

    def begin_edit(self, row_index: int) -> Optional[EditDraft]:
        """
        Opens the edit flow for a row of the current page and seeds the draft
        with its values keyed by column name.
        """
        try:
            row = self._row_at(row_index)
            columns = self._current_columns()
        except BrowserError as e:
            self._fail("edit row", e)
            return None
        draft = {column.name: value for column, value in zip(columns, row)}
        self.state.edit = EditFlow(row=row, draft=draft)
        return draft

    def cancel_edit(self) -> None:
        self.state.edit = None

    async def update_row(self, values: Optional[Dict[str, Any]] = None) -> bool:
        """
        Submits the open edit flow, merged with `values`.

        The primary key is resolved again from the current schema and the
        row as it was loaded. On failure the flow stays open.
        """
        state = self.state
        edit = state.edit
        if edit is None:
            self._fail("update row", BrowserError("No row is being edited"))
            return False
        if values:
            edit.draft.update(values)

        try:
            columns = self._current_columns()
            await self.coordinator.update(state.selected_table, edit.row, columns, dict(edit.draft))
        except BrowserError as e:
            self._fail("update row", e)
            return False
        state.edit = None
        return True

    # --- Delete ---

    async def delete_row(self, row_index: int, confirm: Confirm) -> bool:
        """
        Deletes a row of the current page once `confirm` agrees.

        Returns:
            True if the row was deleted. False if the confirmation was
            declined (nothing sent) or the operation failed.
        """
        state = self.state
        try:
            row = self._row_at(row_index)
            columns = self._current_columns()
            deleted = await self.coordinator.delete(state.selected_table, row, columns, confirm)
        except BrowserError as e:
            self._fail("delete row", e)
            return False
        return deleted is not None

    # --- Ad-hoc queries ---

    async def run_query(self, text: str) -> Optional[QueryResult]:
        """Runs raw query text. The previous result is kept if this fails."""
        try:
            result = await self.runner.run_query(text)
        except BrowserError as e:
            self._fail("run query", e)
            return None
        self.state.query_result = result
        return result

    async def close(self):
        await self.api.close()
