import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from fastmcp import FastMCP
from fastmcp.tools import FunctionTool

from .pager import summarize
from .preferences import ThemePreference
from .session import BrowserSession


class ToolShell:
    """
    Presentation shell: exposes the browsing session as FastMCP tools.

    Each tool is a thin wrapper that calls one session operation and
    reports the outcome. All state lives in the session.
    """

    def __init__(self, session: BrowserSession, theme: Optional[ThemePreference] = None):
        self.session = session
        self.theme = theme

    def _error(self) -> Dict[str, Any]:
        notification = self.session.last_notification
        message = notification.message if notification else "Operation failed"
        return {"status": "error", "error": message}

    def _page(self) -> Dict[str, Any]:
        state = self.session.state
        if state.window is None:
            return {"table": state.selected_table, "phase": state.phase.value, "window": None}
        return {
            "table": state.selected_table,
            "phase": state.phase.value,
            "window": state.window.to_dict(),
            "navigation": summarize(state.window),
        }

    def build_tools(self) -> Dict[str, Callable[..., Awaitable[Dict[str, Any]]]]:
        """Creates the tool functions, keyed by tool name."""
        session = self.session

        async def list_tables() -> Dict[str, Any]:
            """Lists every browsable table with its row count."""
            if not await session.load_tables():
                return self._error()
            return {
                "status": "success",
                "tables": [{"name": t.name, "row_count": t.row_count} for t in session.state.tables],
            }

        async def select_table(table_name: str) -> Dict[str, Any]:
            """Selects a table, loading its schema and then its first page of rows."""
            if not await session.select_table(table_name):
                return self._error()
            return {"status": "success", **self._page()}

        async def describe_table() -> Dict[str, Any]:
            """Returns the column metadata of the selected table."""
            state = session.state
            if not state.schema_ready:
                return {"status": "error", "error": "No table schema is loaded"}
            return {
                "status": "success",
                "table": state.selected_table,
                "columns": [column.to_dict() for column in state.columns],
            }

        async def current_page() -> Dict[str, Any]:
            """Returns the rows currently loaded for the selected table."""
            return {"status": "success", **self._page()}

        async def next_page() -> Dict[str, Any]:
            """Moves to the next page. Does nothing on the last page."""
            before = len(session.state.notifications)
            moved = await session.next_page()
            if not moved and len(session.state.notifications) > before:
                return self._error()
            return {"status": "success", "moved": moved, **self._page()}

        async def previous_page() -> Dict[str, Any]:
            """Moves to the previous page. Does nothing on the first page."""
            before = len(session.state.notifications)
            moved = await session.previous_page()
            if not moved and len(session.state.notifications) > before:
                return self._error()
            return {"status": "success", "moved": moved, **self._page()}

        async def go_to_page(page: int) -> Dict[str, Any]:
            """Jumps to a page number, clamped to the available pages."""
            if session.state.window is None:
                return {"status": "error", "error": "No table data is loaded"}
            if not await session.go_to_page(page):
                return self._error()
            return {"status": "success", **self._page()}

        async def insert_row(values: Dict[str, Any]) -> Dict[str, Any]:
            """Inserts a row. Columns left out or given as empty strings are not sent."""
            session.begin_insert()
            if not await session.insert_row(values):
                return self._error()
            return {"status": "success", **self._page()}

        async def update_row(row_index: int, values: Dict[str, Any]) -> Dict[str, Any]:
            """Updates a row of the current page (0-based index). The primary key cannot be changed."""
            if session.begin_edit(row_index) is None:
                return self._error()
            if not await session.update_row(values):
                return self._error()
            return {"status": "success", **self._page()}

        async def delete_row(row_index: int, confirm: bool = False) -> Dict[str, Any]:
            """Deletes a row of the current page (0-based index). Requires confirm=true."""
            before = len(session.state.notifications)
            deleted = await session.delete_row(row_index, lambda prompt: confirm)
            if not deleted and len(session.state.notifications) > before:
                return self._error()
            if not deleted:
                return {"status": "cancelled", "message": "Delete was not confirmed"}
            return {"status": "success", **self._page()}

        async def run_query(sql: str) -> Dict[str, Any]:
            """Runs a raw query against the database and returns its result set."""
            result = await session.run_query(sql)
            if result is None:
                return self._error()
            return {"status": "success", **result.to_dict()}

        async def get_mode() -> Dict[str, Any]:
            """Reports whether the backend database is read-only."""
            readonly = await session.load_mode()
            if readonly is None:
                return self._error()
            return {"status": "success", "readonly": readonly}

        tools = {
            "list_tables": list_tables,
            "select_table": select_table,
            "describe_table": describe_table,
            "current_page": current_page,
            "next_page": next_page,
            "previous_page": previous_page,
            "go_to_page": go_to_page,
            "insert_row": insert_row,
            "update_row": update_row,
            "delete_row": delete_row,
            "run_query": run_query,
            "get_mode": get_mode,
        }

        if self.theme is not None:
            theme = self.theme

            async def toggle_theme() -> Dict[str, Any]:
                """Switches between the light and dark theme and remembers the choice."""
                return {"status": "success", "theme": theme.toggle()}

            tools["toggle_theme"] = toggle_theme

        return tools

    def register_tools(self, server: FastMCP) -> int:
        """
        Registers every tool on the FastMCP server.

        Returns:
            The number of tools registered.
        """
        logging.info("ToolShell: Registering tools...")
        tools = self.build_tools()
        for tool_name, func in tools.items():
            server.add_tool(FunctionTool.from_function(func, name=tool_name))
            logging.info(f"  - Registered tool: '{tool_name}'")
        return len(tools)
