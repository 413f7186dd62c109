"""Exception handlers for the HTTP API.

Every error leaves the API with the same JSON shape, built from the error
catalog: ``error_code``, ``message``, ``user_message``, ``suggestion``,
``retry_allowed`` and the ``request_id`` assigned by the logging
middleware. Exception details never reach the response body.
"""

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from statement_converter.config import settings
from statement_converter.core.errors import ERROR_CATALOG, get_error
from statement_converter.core.exceptions import StatementProcessingError

logger = logging.getLogger(__name__)


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def error_body(request: Request, error_code: str, **overrides) -> dict:
    """Build the response body for a catalogued error code."""
    entry = get_error(error_code)
    body = {
        "error_code": error_code,
        "message": entry["message"],
        "user_message": entry["user_message"],
        "suggestion": entry["suggestion"],
        "retry_allowed": entry["retry_allowed"],
        "request_id": _request_id(request),
    }
    body.update(overrides)
    return body


async def handle_statement_processing_error(
    request: Request, exc: StatementProcessingError
) -> JSONResponse:
    """Render a StatementProcessingError through the error catalog.

    Args:
        request: The incoming request
        exc: The conversion error

    Returns:
        JSONResponse with the exception's HTTP status
    """
    log = logger.error if exc.http_status >= 500 else logger.warning
    extra = {"error_code": exc.error_code, "path": request.url.path}
    if settings.debug:
        # Details can hold statement text
        extra["details"] = exc.details
    log("Conversion failed with %s: %s", exc.error_code, exc, extra=extra)

    overrides = {}
    if exc.error_code not in ERROR_CATALOG:
        overrides["message"] = str(exc)
    return JSONResponse(
        status_code=exc.http_status,
        content=error_body(request, exc.error_code, **overrides),
    )


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report bad query parameters or headers as VAL_001 (400)."""
    problems = [
        f"{'.'.join(str(part) for part in error.get('loc', []))}: {error.get('msg', 'Invalid value')}"
        for error in exc.errors()
    ]
    logger.warning("Rejected request to %s: %s", request.url.path, "; ".join(problems))

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error_code": "VAL_001",
            "message": " | ".join(problems),
            "user_message": "Invalid request parameters",
            "suggestion": "Check the X-Bank header and the ocr, format, debug and header parameters.",
            "retry_allowed": True,
            "request_id": _request_id(request),
        },
    )


async def handle_generic_error(request: Request, exc: Exception) -> JSONResponse:
    """Turn an unexpected exception into SYS_001 without exposing it."""
    if settings.debug:
        logger.exception("Unexpected %s on %s", type(exc).__name__, request.url.path)
    else:
        logger.error("Unexpected %s on %s", type(exc).__name__, request.url.path)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "SYS_001",
            "message": "Internal server error",
            "user_message": "An unexpected error occurred",
            "suggestion": "Please try again later or contact support",
            "retry_allowed": True,
            "request_id": _request_id(request),
        },
    )
