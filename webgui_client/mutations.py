"""
Mutation Coordinator: insert, update and delete of single rows.

Each operation is one request. Identity is resolved before anything is
sent, payloads are filtered here, and the caller-supplied refresh hook
reconciles local state once the backend has accepted the write.
"""

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence, Tuple, Union

from .api_client import WebGUIClient
from .errors import BrowserError
from .identity import resolve_primary_key
from .models import ColumnDescriptor, EditDraft

logger = logging.getLogger(__name__)

Confirm = Callable[[str], Union[bool, Awaitable[bool]]]
RefreshHook = Callable[[], Awaitable[None]]

DELETE_PROMPT = "Are you sure you want to delete this row?"


def _is_omitted(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def build_insert_payload(
    draft: EditDraft, columns: Optional[Sequence[ColumnDescriptor]] = None
) -> Dict[str, Any]:
    """
    Filters an insert draft into the mapping sent to the backend.

    Omitted (None) and empty-string values are treated alike: the column is
    left out so the backend applies its own default. When a schema is given
    only its columns are kept, in schema order.
    """
    if columns is None:
        return {name: value for name, value in draft.items() if not _is_omitted(value)}

    payload = {}
    for column in columns:
        value = draft.get(column.name)
        if not _is_omitted(value):
            payload[column.name] = value
    return payload


def build_update_payload(
    draft: EditDraft,
    pk_column: str,
    columns: Optional[Sequence[ColumnDescriptor]] = None,
) -> Dict[str, Any]:
    """
    Builds the update mapping. The primary-key column is always removed:
    an update identifies its row by key but never changes that key.
    """
    known = {column.name for column in columns} if columns is not None else None
    return {
        name: value
        for name, value in draft.items()
        if name != pk_column and (known is None or name in known)
    }


async def _ask(confirm: Confirm, prompt: str) -> bool:
    answer = confirm(prompt)
    if inspect.isawaitable(answer):
        answer = await answer
    return bool(answer)


class MutationCoordinator:
    """Sequences single-row writes against the backend."""

    def __init__(self, api: WebGUIClient, refresh: Optional[RefreshHook] = None):
        """
        Args:
            api: Backend client.
            refresh: Awaited after every successful write to bring the
                     current page and the table list back in line.
        """
        self.api = api
        self.refresh = refresh

    async def _reconcile(self):
        if self.refresh is not None:
            await self.refresh()

    async def insert(
        self,
        table_name: str,
        draft: EditDraft,
        columns: Optional[Sequence[ColumnDescriptor]] = None,
    ) -> Dict[str, Any]:
        """
        Inserts one row built from `draft`.

        Returns:
            The payload that was sent.
        """
        payload = build_insert_payload(draft, columns)
        logger.info(f"Inserting row into '{table_name}' with columns {list(payload)}")
        await self.api.insert_row(table_name, payload)
        await self._reconcile()
        return payload

    async def update(
        self,
        table_name: str,
        row: Sequence[Any],
        columns: Sequence[ColumnDescriptor],
        draft: EditDraft,
    ) -> Tuple[str, Any]:
        """
        Updates the row that `row` identifies with the values in `draft`.

        Returns:
            The (pk column, pk value) that was targeted.

        Raises:
            NoPrimaryKeyError, IdentityError: before any request is made.
        """
        pk_column, pk_value = resolve_primary_key(row, columns, table_name)
        payload = build_update_payload(draft, pk_column, columns)
        if not payload:
            raise BrowserError("Nothing to update")

        logger.info(f"Updating '{table_name}' row {pk_column}={pk_value!r}")
        await self.api.update_row(table_name, pk_column, pk_value, payload)
        await self._reconcile()
        return pk_column, pk_value

    async def delete(
        self,
        table_name: str,
        row: Sequence[Any],
        columns: Sequence[ColumnDescriptor],
        confirm: Confirm,
    ) -> Optional[Tuple[str, Any]]:
        """
        Deletes the row that `row` identifies, after explicit confirmation.

        Returns:
            The (pk column, pk value) that was deleted, or None if the
            confirmation was declined and nothing was sent.

        Raises:
            NoPrimaryKeyError, IdentityError: before asking or sending.
        """
        pk_column, pk_value = resolve_primary_key(row, columns, table_name)

        if not await _ask(confirm, DELETE_PROMPT):
            logger.info(f"Delete of '{table_name}' row {pk_column}={pk_value!r} declined")
            return None

        logger.info(f"Deleting '{table_name}' row {pk_column}={pk_value!r}")
        await self.api.delete_row(table_name, pk_column, pk_value)
        await self._reconcile()
        return pk_column, pk_value
