"""Global exception handling.

Bad uploads and bad form values are client errors (400), unknown runs and
share tokens are 404, anything else is a 500.
"""

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse

from src.domains.risk.exceptions import PreconditionError
from src.ingest.csv_reader import CSVFormatError

logger = structlog.get_logger()

# Most specific first
_CLIENT_ERRORS: tuple[tuple[type[Exception], int, str], ...] = (
    (CSVFormatError, 400, "invalid_csv"),
    (PreconditionError, 400, "invalid_input"),
    (ValueError, 400, "bad_request"),
    (LookupError, 404, "not_found"),
)


def _error_body(code: str, message: str, request_id: str) -> dict:
    return {"ok": False, "error": code, "message": message, "request_id": request_id}


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "unknown")

    for exc_type, status_code, code in _CLIENT_ERRORS:
        if isinstance(exc, exc_type):
            logger.warning(code, request_id=request_id, path=request.url.path, error=str(exc))
            return JSONResponse(status_code=status_code, content=_error_body(code, str(exc), request_id))

    logger.exception("unhandled_exception", request_id=request_id, path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=500,
        content=_error_body("internal_server_error", "An unexpected error occurred", request_id),
    )
