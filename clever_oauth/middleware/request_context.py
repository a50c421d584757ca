"""Per-request ID and timing.

A sign-in spans two browser requests (request phase, callback phase) plus
two outbound calls to Clever from inside the callback. The request ID ties
the callback's log lines together: the token exchange warning, the failure
kind, and the final status line all carry the same ``request_id``.

The ID lives in a ContextVar rather than a thread-local so concurrent async
requests on one thread keep their own value.
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


# Every LogRecord, from any logger, is stamped with the current request ID
# when it is created.
_base_record_factory = logging.getLogRecordFactory()


def _record_factory(*args, **kwargs) -> logging.LogRecord:  # type: ignore[no-untyped-def]
    record = _base_record_factory(*args, **kwargs)
    record.request_id = request_id_var.get("-")  # type: ignore[attr-defined]
    return record


if getattr(_base_record_factory, "__name__", "") != "_record_factory":
    logging.setLogRecordFactory(_record_factory)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assigns X-Request-ID (echoing the client's if sent) and logs a summary line."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        req_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request_id_var.set(req_id)

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        # Query strings are left out: the callback's carries the auth code.
        logger.info(
            "%s %s → %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        response.headers["X-Request-ID"] = req_id
        return response
