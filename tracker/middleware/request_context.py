"""Request context middleware: request IDs and per-request summary logs.

Concurrent requests interleave their log lines; the request ID ties the
lines of one request together.  It lives in a ContextVar (per asyncio
task, unlike threading.local) and a LogRecord factory stamps it onto
every LogRecord, so the "Progress recomputed ..." line from the engine
carries the same request_id as the POST /v1/events summary line.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


_base_record_factory = logging.getLogRecordFactory()


def _record_factory(*args, **kwargs) -> logging.LogRecord:
    """Stamp the current request_id on every LogRecord at creation.

    A filter on the root logger would only see records logged on the root
    logger itself; propagated records from module loggers skip it.
    """
    record = _base_record_factory(*args, **kwargs)
    record.request_id = request_id_var.get("-")
    return record


if not getattr(_base_record_factory, "_stamps_request_id", False):
    _record_factory._stamps_request_id = True  # type: ignore[attr-defined]
    logging.setLogRecordFactory(_record_factory)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assign/echo X-Request-ID, time the request, log one summary line."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        req_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request_id_var.set(req_id)

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        logger.info(
            "%s %s → %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={
                "method": request.method,
                "path": request.url.path,
                "user_id": request.headers.get("x-user-id"),
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        response.headers["X-Request-ID"] = req_id
        return response
