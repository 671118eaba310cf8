import logging
import os
import sys
from pathlib import Path
from typing import Optional, Union

from pythonjsonlogger import jsonlogger

LOG_FILE_NAME = "webgui-client.log"

# httpx logs every request at INFO; the client already logs each operation
NOISY_LOGGERS = ("httpx", "httpcore")


def _log_handler(stdio_mode: bool, log_dir: Optional[Union[str, Path]]) -> logging.Handler:
    if not stdio_mode:
        return logging.StreamHandler(sys.stdout)
    # stdout carries the tool protocol in stdio mode
    directory = Path(log_dir or os.environ.get("WEBGUI_LOG_DIR", "logs"))
    directory.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(directory / LOG_FILE_NAME, mode="a", encoding="utf-8")


def setup_logging(stdio_mode: bool = False, log_dir: Optional[Union[str, Path]] = None) -> logging.Handler:
    """
    Sends the client's logs, as JSON lines, to stdout or to a file.

    Args:
        stdio_mode: Log to `<log_dir>/webgui-client.log` instead of stdout.
        log_dir: Defaults to WEBGUI_LOG_DIR, then ./logs.

    Returns:
        The handler attached to the root logger (the existing one if the
        root logger was already configured).
    """
    level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    if root.handlers:
        return root.handlers[0]

    handler = _log_handler(stdio_mode, log_dir)
    handler.setFormatter(
        jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            rename_fields={"levelname": "level", "asctime": "time"},
        )
    )
    root.addHandler(handler)
    return handler
