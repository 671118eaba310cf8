import argparse
import logging
import os
import sys
from contextlib import asynccontextmanager
from typing import List, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from .api import create_api_routes
from .config import Config
from .database import TableDatabase
from .logging_config import setup_logging
from .middleware import RequestLoggingMiddleware


def create_app(database: TableDatabase) -> FastAPI:
    """
    Builds the FastAPI application around an opened database.

    Every error response uses the `{"error": "..."}` body shape.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        mode = "READ-ONLY" if database.is_read_only() else "READ-WRITE"
        logging.info(f"--- webgui core starting up ({mode}) ---")
        yield
        logging.info("--- webgui core shutting down ---")
        database.dispose()

    app = FastAPI(
        title="Database Web GUI Core",
        description="Generic table browsing and row editing over an arbitrary database.",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": "Invalid JSON"})

    app.state.database = database
    app.include_router(create_api_routes(database))
    return app


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="webgui-core",
        description="Serve a database over the web GUI REST API.",
        epilog=(
            "examples:\n"
            "  webgui-core mydata.db                # Read-only mode (safe)\n"
            "  webgui-core --writable mydata.db     # Enable write operations\n"
            "  webgui-core --port 3000 mydata.db    # Custom port, read-only"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("database", nargs="?", help="Path to a SQLite database file")
    parser.add_argument("--port", type=int, default=Config.PORT, help="Port to run the server on")
    parser.add_argument("--host", default=Config.HOST, help="Interface to bind to")
    parser.add_argument(
        "--writable",
        action="store_true",
        default=Config.is_writable(),
        help="Enable write operations (default: read-only mode)",
    )
    return parser.parse_args(argv)


def build_database(args: argparse.Namespace) -> TableDatabase:
    """
    Opens the database named on the command line or by WEBGUI_DB_URL.

    Raises:
        SystemExit: No database was given, or the file does not exist.
    """
    readonly = not args.writable
    url = Config.get_database_url()
    if url:
        return TableDatabase(url=url, readonly=readonly)

    if not args.database:
        logging.error("A database file or WEBGUI_DB_URL is required")
        raise SystemExit(1)
    if not os.path.exists(args.database):
        logging.error(f"Database file does not exist: {args.database}")
        raise SystemExit(1)
    return TableDatabase(url=Config.get_sqlite_url(args.database, readonly), readonly=readonly)


def main(argv: Optional[List[str]] = None):
    setup_logging()
    args = parse_args(argv)
    database = build_database(args)
    app = create_app(database)

    logging.info(f"Database: {args.database or database.engine.url.render_as_string(hide_password=True)}")
    logging.info(f"Mode: {'READ-ONLY' if database.is_read_only() else 'READ-WRITE'}")
    logging.info(f"Open the API docs at http://localhost:{args.port}/api/docs")
    uvicorn.run(app, host=args.host, port=args.port, log_config=None)


if __name__ == "__main__":
    main(sys.argv[1:])
