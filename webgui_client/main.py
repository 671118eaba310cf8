import asyncio
import logging
import sys

from fastmcp import FastMCP

from .api_client import WebGUIClient
from .config import Config
from .logging_config import setup_logging
from .preferences import PreferenceStore, ThemePreference
from .session import BrowserSession
from .tools import ToolShell


async def main():
    """
    The main entry point for the browsing client.

    Builds a session against the configured backend, exposes it as tools and
    runs the tool server in either streamable HTTP mode or stdio mode.
    """
    stdio_mode = "--stdio" in sys.argv
    setup_logging(stdio_mode=stdio_mode)
    logging.info(f"Starting webgui client against {Config.get_api_url()}...")

    api = WebGUIClient()
    session = BrowserSession(api)
    theme = ThemePreference(PreferenceStore(Config.get_preferences_path()))
    shell = ToolShell(session, theme=theme)

    server = FastMCP("Database Web GUI")
    shell.register_tools(server)

    # Prime the session; failures are reported as notifications, not raised
    await session.load_mode()
    await session.load_tables()

    try:
        if stdio_mode:
            logging.info("Running in stdio mode.")
            await server.run_async(transport="stdio")
        else:
            host = Config.MCP_HOST
            port = Config.MCP_PORT
            logging.info(f"Running in Streamable HTTP mode on {host}:{port}")
            await server.run_async(transport="streamable-http", host=host, port=port)
    finally:
        await session.close()


def run():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logging.info("Shutting down webgui client.")


if __name__ == "__main__":
    run()
