"""Request context middleware: request id, timing and request logging.

Responsibilities (all handled in one pass):
- Generate or propagate ``X-Request-ID`` header
- Measure request duration (``X-Response-Time``)
- Log every request/response as structured JSON
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from ..core.logging_config import actor_id_var, request_id_var

logger = logging.getLogger(__name__)

# Probes are logged at DEBUG so they don't drown the request log.
_QUIET_PATHS = frozenset({"/", "/health"})


def client_ip(request: Request) -> str | None:
    """Caller address, honouring the first ``X-Forwarded-For`` hop."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Single middleware handling request-id, timing and logging."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rid = request.headers.get("x-request-id") or uuid.uuid4().hex[:16]
        request_id_var.set(rid)
        actor_id_var.set("")

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        response.headers["X-Request-ID"] = rid
        response.headers["X-Response-Time"] = f"{duration_ms}ms"

        level = logging.DEBUG if request.url.path in _QUIET_PATHS else logging.INFO
        logger.log(
            level,
            "%s %s %s", request.method, request.url.path, response.status_code,
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "client": client_ip(request),
            },
        )

        return response
