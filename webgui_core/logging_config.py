import logging
import os
import sys
from typing import Optional

from pythonjsonlogger import jsonlogger


def setup_logging(level_name: Optional[str] = None):
    """
    Routes the service's logs and uvicorn's through one JSON handler on stdout.

    The level comes from `level_name`, else LOG_LEVEL, else INFO.
    """
    level_name = (level_name or os.environ.get("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            rename_fields={"levelname": "level", "asctime": "time"},
        )
    )

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]

    # uvicorn installs no handlers when started with log_config=None; let its
    # loggers reach the root handler. The access log duplicates
    # RequestLoggingMiddleware.
    for name in ("uvicorn", "uvicorn.error"):
        logging.getLogger(name).handlers = []
        logging.getLogger(name).propagate = True
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(max(level, logging.WARNING))
