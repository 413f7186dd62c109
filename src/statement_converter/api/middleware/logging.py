"""Request logging middleware.

Every request gets a unique ID (echoed in the ``X-Request-ID`` response
header) and a completion log line with status and duration. Account
numbers and sort codes are masked in anything logged from the request.
"""

import logging
import re
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


# Banking identifiers to mask in logs
PII_PATTERNS = [
    # Sort codes (12-34-56)
    (re.compile(r"\b\d{2}-\d{2}-\d{2}\b"), "[SORT_CODE]"),
    # UK account numbers (8 digits)
    (re.compile(r"\b\d{8}\b"), "[ACCOUNT]"),
    # IBANs
    (re.compile(r"\bGB\d{2}[A-Z]{4}\d{14}\b"), "[IBAN]"),
]


def filter_pii(text: str) -> str:
    """Replace banking identifiers in text with placeholders."""
    if not text:
        return text

    filtered = text
    for pattern, replacement in PII_PATTERNS:
        filtered = pattern.sub(replacement, filtered)

    return filtered


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log all HTTP requests."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.time()
        path = filter_pii(str(request.url.path))

        logger.info(
            "Request started",
            extra={"request_id": request_id, "method": request.method, "path": path},
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = int((time.time() - start_time) * 1000)
            logger.error(
                "Request failed",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": path,
                    "duration_ms": duration_ms,
                    "error": filter_pii(str(exc)),
                },
            )
            raise

        duration_ms = int((time.time() - start_time) * 1000)
        response.headers["X-Request-ID"] = request_id

        logger.info(
            "Request completed %s %s -> %d (%d ms)",
            request.method,
            path,
            response.status_code,
            duration_ms,
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        return response
