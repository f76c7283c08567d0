"""Request logging middleware."""

import re
import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()

_REQUEST_ID = re.compile(r"^[0-9a-f]{32}$")

# Polled by load balancers; logged at debug only.
_QUIET_PATHS = frozenset({"/health"})


def _content_length(request: Request) -> int:
    value = request.headers.get("content-length", "")
    return int(value) if value.isdigit() else 0


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """Binds a request id into structlog's context for the whole request.

    A well-formed ``X-Request-ID`` from the caller is reused so a run can be
    traced across services; otherwise a fresh one is generated.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        incoming = request.headers.get("x-request-id", "").lower()
        request_id = incoming if _REQUEST_ID.match(incoming) else uuid.uuid4().hex
        request.state.request_id = request_id
        structlog.contextvars.bind_contextvars(request_id=request_id)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        log = logger.debug if request.url.path in _QUIET_PATHS else logger.info
        log(
            "http_request",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            upload_bytes=_content_length(request),
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )

        response.headers["X-Request-ID"] = request_id
        return response
