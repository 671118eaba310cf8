"""
Tests for BrowserSession: the selection state machine, paging and the
edit flows, against mocked routes and against the real core app.
"""

import httpx
import pytest
import respx

from webgui_client.session import BrowserSession, Phase

from tests.conftest import API_URL

USERS_SCHEMA_URL = f"{API_URL}/api/tables/users/schema"
USERS_DATA_URL = f"{API_URL}/api/tables/users/data"
USERS_ROWS_URL = f"{API_URL}/api/tables/users/rows"


def accept(prompt):
    return True


def decline(prompt):
    return False


@pytest.fixture
def mocked_session(mock_api):
    return BrowserSession(mock_api, limit=50)


@pytest.fixture
def backend_session(backend_api):
    return BrowserSession(backend_api, limit=50)


class TestSelection:

    @pytest.mark.asyncio
    async def test_initial_state(self, mocked_session):
        state = mocked_session.state
        assert state.phase == Phase.NO_TABLE_SELECTED
        assert state.selected_table is None
        assert state.window is None
        assert state.limit == 50

    @pytest.mark.asyncio
    async def test_limit_must_be_positive(self, mock_api):
        with pytest.raises(ValueError):
            BrowserSession(mock_api, limit=0)

    @respx.mock
    @pytest.mark.asyncio
    async def test_select_table_loads_schema_then_first_page(self, mocked_session, users_schema, users_page):
        # ARRANGE
        schema_route = respx.get(USERS_SCHEMA_URL).mock(return_value=httpx.Response(200, json=users_schema))
        data_route = respx.get(USERS_DATA_URL).mock(return_value=httpx.Response(200, json=users_page))

        # ACT
        selected = await mocked_session.select_table("users")

        # ASSERT
        state = mocked_session.state
        assert selected is True
        assert state.phase == Phase.READY
        assert state.selected_table == "users"
        assert [c.name for c in state.columns] == ["id", "email", "name"]
        assert state.page == 1
        assert len(state.window.rows) == 3
        assert schema_route.call_count == 1
        assert data_route.calls.last.request.url.params["page"] == "1"

    @respx.mock
    @pytest.mark.asyncio
    async def test_schema_failure_blocks_data_load(self, mocked_session):
        # ARRANGE: Only the schema route exists; a data request would fail the test
        respx.get(USERS_SCHEMA_URL).mock(
            return_value=httpx.Response(500, json={"error": "failed to query table schema"})
        )

        # ACT
        selected = await mocked_session.select_table("users")

        # ASSERT
        state = mocked_session.state
        assert selected is False
        assert state.phase == Phase.SCHEMA_LOADING
        assert state.window is None
        assert state.schema_ready is False
        assert respx.calls.call_count == 1
        assert mocked_session.last_notification.operation == "load schema"
        assert mocked_session.last_notification.message == "failed to query table schema"

    @respx.mock
    @pytest.mark.asyncio
    async def test_data_failure_stops_in_data_loading(self, mocked_session, users_schema):
        respx.get(USERS_SCHEMA_URL).mock(return_value=httpx.Response(200, json=users_schema))
        respx.get(USERS_DATA_URL).mock(side_effect=httpx.ConnectError("connection refused"))

        selected = await mocked_session.select_table("users")

        assert selected is False
        assert mocked_session.state.phase == Phase.DATA_LOADING
        assert mocked_session.state.window is None
        assert "connection refused" in mocked_session.last_notification.message

    @pytest.mark.asyncio
    async def test_selecting_another_table_resets_everything(self, backend_session):
        # ARRANGE: Page forward in one table with an edit open
        await backend_session.select_table("events")
        await backend_session.next_page()
        backend_session.begin_edit(0)
        backend_session.begin_insert()

        # ACT
        await backend_session.select_table("users")

        # ASSERT
        state = backend_session.state
        assert state.page == 1
        assert state.edit is None
        assert state.insert_draft is None
        assert [c.name for c in state.columns] == ["id", "email", "name"]

    @respx.mock
    @pytest.mark.asyncio
    async def test_listener_receives_notifications(self, mock_api):
        received = []
        session = BrowserSession(mock_api, limit=50, listener=received.append)
        respx.get(f"{API_URL}/api/tables").mock(return_value=httpx.Response(503, text="down"))

        await session.load_tables()

        assert [n.message for n in received] == ["Request failed with status 503"]


class TestTablesAndMode:

    @pytest.mark.asyncio
    async def test_load_tables(self, backend_session):
        assert await backend_session.load_tables() is True
        tables = {t.name: t.row_count for t in backend_session.state.tables}
        assert tables == {"events": 120, "logs": 1, "users": 3}

    @respx.mock
    @pytest.mark.asyncio
    async def test_failed_reload_keeps_table_list(self, mocked_session):
        respx.get(f"{API_URL}/api/tables").mock(
            side_effect=[
                httpx.Response(200, json=[{"name": "users", "row_count": 3}]),
                httpx.Response(500, json={"error": "failed to query tables"}),
            ]
        )

        await mocked_session.load_tables()
        reloaded = await mocked_session.load_tables()

        assert reloaded is False
        assert [t.name for t in mocked_session.state.tables] == ["users"]

    @pytest.mark.asyncio
    async def test_load_mode(self, backend_session):
        assert await backend_session.load_mode() is False
        assert backend_session.state.readonly is False


class TestPaging:

    @pytest.mark.asyncio
    async def test_next_and_previous_stop_at_the_ends(self, backend_session):
        # ARRANGE
        await backend_session.select_table("events")

        # ACT & ASSERT: 120 rows at 50 per page is three pages
        assert await backend_session.previous_page() is False
        assert backend_session.state.page == 1

        assert await backend_session.next_page() is True
        assert await backend_session.next_page() is True
        assert backend_session.state.page == 3
        assert len(backend_session.state.window.rows) == 20

        assert await backend_session.next_page() is False
        assert backend_session.state.page == 3
        assert backend_session.state.notifications == []

        assert await backend_session.previous_page() is True
        assert backend_session.state.page == 2
        assert backend_session.state.window.rows[0] == [51, "event-51"]

    @pytest.mark.asyncio
    async def test_go_to_page_is_clamped(self, backend_session):
        await backend_session.select_table("events")

        assert await backend_session.go_to_page(99) is True
        assert backend_session.state.page == 3

        assert await backend_session.go_to_page(-4) is True
        assert backend_session.state.page == 1

    @respx.mock
    @pytest.mark.asyncio
    async def test_failed_fetch_keeps_page_and_rows(self, mocked_session, users_schema, users_page):
        # ARRANGE: The first page loads, the second one fails
        users_page["total"] = 120
        respx.get(USERS_SCHEMA_URL).mock(return_value=httpx.Response(200, json=users_schema))
        respx.get(USERS_DATA_URL).mock(
            side_effect=[
                httpx.Response(200, json=users_page),
                httpx.Response(500, json={"error": "failed to query table data"}),
            ]
        )
        await mocked_session.select_table("users")
        before = mocked_session.state.window

        # ACT
        moved = await mocked_session.next_page()

        # ASSERT
        state = mocked_session.state
        assert moved is False
        assert state.page == 1
        assert state.window is before
        assert state.phase == Phase.READY
        assert mocked_session.last_notification.message == "failed to query table data"

    @respx.mock
    @pytest.mark.asyncio
    async def test_refresh_without_schema_loads_no_rows(self, mocked_session):
        # ARRANGE: Only the schema route exists; a data request would fail the test
        respx.get(USERS_SCHEMA_URL).mock(
            return_value=httpx.Response(500, json={"error": "failed to query table schema"})
        )
        await mocked_session.select_table("users")

        # ACT
        refreshed = await mocked_session.refresh_page()

        # ASSERT
        state = mocked_session.state
        assert refreshed is False
        assert state.phase == Phase.SCHEMA_LOADING
        assert state.window is None
        assert mocked_session.last_notification.operation == "refresh page"
        assert respx.calls.call_count == 1

    @pytest.mark.asyncio
    async def test_paging_without_selection_is_a_no_op(self, mocked_session):
        assert await mocked_session.next_page() is False
        assert await mocked_session.refresh_page() is False


class TestInsertFlow:

    @pytest.mark.asyncio
    async def test_insert_round_trip(self, backend_session):
        # ARRANGE
        await backend_session.select_table("users")
        backend_session.begin_insert()

        # ACT: The empty id is left out so the database assigns one
        inserted = await backend_session.insert_row({"id": "", "email": "dave@example.com", "name": "Dave"})

        # ASSERT
        state = backend_session.state
        assert inserted is True
        assert state.insert_open is False
        assert state.window.total == 4
        assert state.window.rows[-1] == [4, "dave@example.com", "Dave"]
        assert {t.name: t.row_count for t in state.tables}["users"] == 4

    @respx.mock
    @pytest.mark.asyncio
    async def test_failed_insert_keeps_draft(self, mocked_session, users_schema, users_page):
        # ARRANGE
        respx.get(USERS_SCHEMA_URL).mock(return_value=httpx.Response(200, json=users_schema))
        respx.get(USERS_DATA_URL).mock(return_value=httpx.Response(200, json=users_page))
        respx.post(USERS_ROWS_URL).mock(return_value=httpx.Response(400, json={"error": "duplicate key"}))
        await mocked_session.select_table("users")
        mocked_session.begin_insert()

        # ACT
        inserted = await mocked_session.insert_row({"id": 1, "email": "alice@example.com"})

        # ASSERT
        assert inserted is False
        assert mocked_session.last_notification.message == "duplicate key"
        assert mocked_session.state.insert_draft == {"id": 1, "email": "alice@example.com"}

    @pytest.mark.asyncio
    async def test_insert_without_selection(self, mocked_session):
        assert await mocked_session.insert_row({"email": "x"}) is False
        assert mocked_session.last_notification.message == "No table selected"

    @pytest.mark.asyncio
    async def test_cancel_insert(self, mocked_session):
        mocked_session.begin_insert()["email"] = "x"
        mocked_session.cancel_insert()
        assert mocked_session.state.insert_open is False


class TestEditFlow:

    @pytest.mark.asyncio
    async def test_update_round_trip(self, backend_session):
        # ARRANGE
        await backend_session.select_table("users")
        draft = backend_session.begin_edit(2)

        # ACT
        updated = await backend_session.update_row({"name": "Carol"})

        # ASSERT
        assert draft == {"id": 3, "email": "carol@example.com", "name": None}
        assert updated is True
        assert backend_session.state.edit_open is False
        assert backend_session.state.window.rows[2] == [3, "carol@example.com", "Carol"]

    @pytest.mark.asyncio
    async def test_update_without_primary_key(self, backend_session):
        await backend_session.select_table("logs")
        backend_session.begin_edit(0)

        updated = await backend_session.update_row({"level": "warn"})

        assert updated is False
        assert backend_session.last_notification.message == "No primary key found for table 'logs'"
        assert backend_session.state.edit_open is True

    @respx.mock
    @pytest.mark.asyncio
    async def test_write_refused_after_schema_reload_fails(self, mocked_session, users_schema, users_page):
        # ARRANGE: Load the table, then fail to reload its schema
        respx.get(USERS_SCHEMA_URL).mock(
            side_effect=[
                httpx.Response(200, json=users_schema),
                httpx.Response(500, json={"error": "failed to query table schema"}),
            ]
        )
        respx.get(USERS_DATA_URL).mock(return_value=httpx.Response(200, json=users_page))
        await mocked_session.select_table("users")
        await mocked_session.select_table("users")

        # ACT
        refreshed = await mocked_session.refresh_page()
        inserted = await mocked_session.insert_row({"email": "dave@example.com"})
        edited = mocked_session.begin_edit(0)
        deleted = await mocked_session.delete_row(0, accept)

        # ASSERT: Nothing was sent beyond the two schema loads and one data load
        state = mocked_session.state
        assert refreshed is False
        assert inserted is False
        assert edited is None
        assert deleted is False
        assert mocked_session.catalog.cached("users") is None
        assert state.schema_ready is False
        assert state.phase == Phase.SCHEMA_LOADING
        assert state.window is None
        assert "select the table again" in state.notifications[2].message
        assert respx.calls.call_count == 3

    @respx.mock
    @pytest.mark.asyncio
    async def test_insert_refused_when_new_table_schema_fails(self, mocked_session, users_schema, users_page):
        # ARRANGE: users loads, then selecting logs fails at the schema step
        respx.get(USERS_SCHEMA_URL).mock(return_value=httpx.Response(200, json=users_schema))
        respx.get(USERS_DATA_URL).mock(return_value=httpx.Response(200, json=users_page))
        respx.get(f"{API_URL}/api/tables/logs/schema").mock(
            return_value=httpx.Response(500, json={"error": "failed to query table schema"})
        )
        await mocked_session.select_table("users")
        await mocked_session.select_table("logs")

        # ACT
        inserted = await mocked_session.insert_row({"message": "hello"})

        # ASSERT
        assert inserted is False
        assert mocked_session.last_notification.message == (
            "Schema for table 'logs' is not loaded; select the table again"
        )
        assert mocked_session.state.insert_draft == {"message": "hello"}
        assert mocked_session.state.columns == []
        assert respx.calls.call_count == 3

    @respx.mock
    @pytest.mark.asyncio
    async def test_rows_out_of_line_with_schema_are_refused(self, mocked_session, users_schema, users_page):
        # ARRANGE: The table gained a column after its schema was loaded
        altered = dict(users_page)
        altered["columns"] = ["id", "email", "name", "age"]
        altered["rows"] = [row + [30] for row in users_page["rows"]]
        respx.get(USERS_SCHEMA_URL).mock(return_value=httpx.Response(200, json=users_schema))
        respx.get(USERS_DATA_URL).mock(
            side_effect=[httpx.Response(200, json=users_page), httpx.Response(200, json=altered)]
        )
        await mocked_session.select_table("users")
        await mocked_session.refresh_page()

        # ACT
        deleted = await mocked_session.delete_row(0, accept)

        # ASSERT
        assert deleted is False
        assert "reload the table" in mocked_session.last_notification.message
        assert respx.calls.call_count == 3

    @pytest.mark.asyncio
    async def test_begin_edit_out_of_range(self, backend_session):
        await backend_session.select_table("users")
        assert backend_session.begin_edit(10) is None
        assert backend_session.last_notification.message == "Row 10 is not on the current page"


class TestDeleteFlow:

    @pytest.mark.asyncio
    async def test_declined_delete_changes_nothing(self, backend_session):
        await backend_session.select_table("users")

        deleted = await backend_session.delete_row(0, decline)

        assert deleted is False
        assert backend_session.state.notifications == []
        assert backend_session.state.window.total == 3

    @pytest.mark.asyncio
    async def test_delete_last_row_of_last_page_moves_back(self, backend_api):
        # ARRANGE: Two rows per page, so carol sits alone on page 2
        session = BrowserSession(backend_api, limit=2)
        await session.select_table("users")
        await session.next_page()
        assert session.state.window.rows == [[3, "carol@example.com", None]]

        # ACT
        deleted = await session.delete_row(0, accept)

        # ASSERT
        assert deleted is True
        assert session.state.page == 1
        assert session.state.window.total == 2
        assert [row[0] for row in session.state.window.rows] == [1, 2]

    @pytest.mark.asyncio
    async def test_delete_without_primary_key(self, backend_session):
        await backend_session.select_table("logs")

        deleted = await backend_session.delete_row(0, accept)

        assert deleted is False
        assert backend_session.last_notification.message == "No primary key found for table 'logs'"


class TestQueries:

    @pytest.mark.asyncio
    async def test_run_query(self, backend_session):
        result = await backend_session.run_query("SELECT name FROM users WHERE id = 2")
        assert result.rows == [["Bob"]]
        assert backend_session.state.query_result is result

    @pytest.mark.asyncio
    async def test_failed_query_keeps_previous_result(self, backend_session):
        first = await backend_session.run_query("SELECT 1 AS one")

        result = await backend_session.run_query("SELEC 1")

        assert result is None
        assert backend_session.state.query_result is first
        assert "syntax error" in backend_session.last_notification.message
