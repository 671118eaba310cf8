"""
Request logging for the webgui core service.
"""

import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("webgui_core.requests")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs one structured record per API call.

    The fields travel as `extra` so the JSON formatter emits them as
    separate keys. Paging parameters are included because they are the
    usual thing to look for when a page comes back wrong.
    """

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        database = getattr(request.app.state, "database", None)
        fields = {
            "method": request.method,
            "path": request.url.path,
            "query": request.url.query or None,
            "client": request.client.host if request.client else "unknown",
            "readonly": database.is_read_only() if database is not None else None,
        }

        try:
            response = await call_next(request)
        except Exception:
            fields["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
            logger.exception(f"{request.method} {request.url.path} raised", extra=fields)
            raise

        fields["status"] = response.status_code
        fields["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
        response.headers["X-Process-Time"] = f"{fields['duration_ms']}ms"

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(level, f"{request.method} {request.url.path} -> {response.status_code}", extra=fields)
        return response
