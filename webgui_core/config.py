import os
from pathlib import Path
from typing import Optional, Union


class Config:
    """Configuration management for the webgui core service."""

    # A full SQLAlchemy URL; takes precedence over a database file path
    DB_URL: Optional[str] = os.getenv("WEBGUI_DB_URL")

    # HTTP server
    HOST: str = os.getenv("WEBGUI_HOST", "0.0.0.0")
    PORT: int = int(os.getenv("WEBGUI_PORT", "8080"))

    # Write operations are disabled unless explicitly enabled
    WRITABLE: bool = os.getenv("WEBGUI_WRITABLE", "false").lower() == "true"

    # Pagination bounds for the data endpoint
    DEFAULT_PAGE_LIMIT: int = 50
    MAX_PAGE_LIMIT: int = 1000

    @classmethod
    def get_database_url(cls) -> Optional[str]:
        """Get the configured database URL, if any."""
        return cls.DB_URL

    @classmethod
    def is_writable(cls) -> bool:
        return cls.WRITABLE

    @classmethod
    def get_sqlite_url(cls, path: Union[str, Path], readonly: bool) -> str:
        """
        Build the SQLite URL for a database file.

        Read-only databases are opened through SQLite's URI syntax with
        mode=ro so that ad-hoc write statements are refused by SQLite itself.
        """
        path = Path(path).resolve().as_posix()
        if readonly:
            return f"sqlite:///file:{path}?mode=ro&uri=true"
        return f"sqlite:///{path}"
