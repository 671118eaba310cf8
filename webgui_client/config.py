import os
from pathlib import Path
from typing import Optional


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    return float(value)


class Config:
    """Configuration management for the browsing client."""

    # Base URL of the webgui core service
    API_URL: str = os.getenv("WEBGUI_API_URL", "http://localhost:8080")

    # Rows per page, fixed for the lifetime of a session
    PAGE_LIMIT: int = int(os.getenv("WEBGUI_PAGE_LIMIT", "50"))

    # HTTP timeout in seconds. Unset means the client imposes no timeout
    # and leaves timeout policy to the transport and the backend.
    HTTP_TIMEOUT: Optional[float] = _optional_float(os.getenv("WEBGUI_HTTP_TIMEOUT"))

    # Key-value preference store (theme)
    PREFERENCES_PATH: str = os.getenv(
        "WEBGUI_PREFERENCES_PATH",
        str(Path.home() / ".webgui" / "preferences.json"),
    )

    # Tool shell (streamable HTTP mode)
    MCP_HOST: str = os.getenv("WEBGUI_MCP_HOST", "0.0.0.0")
    MCP_PORT: int = int(os.getenv("WEBGUI_MCP_PORT", "8001"))

    @classmethod
    def get_api_url(cls) -> str:
        """Get the backend base URL."""
        return cls.API_URL

    @classmethod
    def get_page_limit(cls) -> int:
        """Get the page size, falling back to 50 for non-positive values."""
        return cls.PAGE_LIMIT if cls.PAGE_LIMIT > 0 else 50

    @classmethod
    def get_http_timeout(cls) -> Optional[float]:
        """Get the HTTP timeout in seconds, or None for no timeout."""
        return cls.HTTP_TIMEOUT

    @classmethod
    def get_preferences_path(cls) -> Path:
        """Get the location of the preference file."""
        return Path(cls.PREFERENCES_PATH).expanduser()
