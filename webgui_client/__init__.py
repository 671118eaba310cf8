"""
Generic database browsing client.

Talks to the webgui core REST API and keeps browsing state (selected
table, schema, current page, open edits) in a BrowserSession.
"""

from .api_client import WebGUIClient
from .errors import (
    BackendError,
    BrowserError,
    IdentityError,
    NoPrimaryKeyError,
    ParseError,
    TransportError,
)
from .identity import resolve_primary_key
from .models import ColumnDescriptor, PageWindow, QueryResult, TableDescriptor
from .session import BrowserSession, Notification, Phase, SessionState

__all__ = [
    "WebGUIClient",
    "BrowserError",
    "TransportError",
    "BackendError",
    "ParseError",
    "IdentityError",
    "NoPrimaryKeyError",
    "resolve_primary_key",
    "TableDescriptor",
    "ColumnDescriptor",
    "PageWindow",
    "QueryResult",
    "BrowserSession",
    "Notification",
    "Phase",
    "SessionState",
]
