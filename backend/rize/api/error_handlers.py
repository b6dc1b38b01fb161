"""Error Handlers — render every failure as the same JSON error envelope.

Invariants:
    - RizeError → its own to_response() at its own http_status
    - RequestValidationError → 400 VALIDATION_ERROR with one entry per bad field
    - Anything else → 500 INTERNAL_ERROR; the exception text never reaches the client
    - 401 responses carry a WWW-Authenticate challenge

Design Decisions:
    - Log level follows ErrorSeverity, so a wrong password (warning) and a
      broken store (critical) are distinguishable in the log stream
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from rize.core.errors import ErrorSeverity, RizeError

logger = logging.getLogger(__name__)

LOG_LEVEL_FOR_SEVERITY = {
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.WARNING,
    ErrorSeverity.CRITICAL: logging.ERROR,
}


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RizeError, handle_rize_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)


async def handle_rize_error(request: Request, exc: RizeError) -> JSONResponse:
    level = LOG_LEVEL_FOR_SEVERITY.get(exc.severity, logging.ERROR)
    if exc.http_status >= 500:
        level = max(level, logging.ERROR)
    logger.log(
        level,
        f"{exc.code} on {request.method} {request.url.path}: {exc.message}",
        extra={"error_code": exc.code, "path": request.url.path},
    )
    headers = (
        {"WWW-Authenticate": "Bearer"}
        if exc.http_status == status.HTTP_401_UNAUTHORIZED else None
    )
    return JSONResponse(
        status_code=exc.http_status, content=exc.to_response(), headers=headers,
    )


async def handle_validation_error(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    details = [_field_error(e) for e in exc.errors()]
    logger.info(
        f"Rejected malformed request on {request.url.path}",
        extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Invalid request data",
                "category": "validation",
                "severity": ErrorSeverity.ERROR.value,
                "details": details,
            },
        },
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.url.path}",
        exc_info=exc,
        extra={"error_code": "INTERNAL_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "category": "internal",
                "severity": ErrorSeverity.CRITICAL.value,
            },
        },
    )


def _field_error(error: dict) -> dict:
    # Drop the "body"/"path" location prefix: clients only know field names
    loc = [str(part) for part in error.get("loc", ())]
    if loc and loc[0] in ("body", "path", "query"):
        loc = loc[1:]
    return {
        "field": ".".join(loc) or None,
        "message": error.get("msg"),
        "type": error.get("type"),
    }
