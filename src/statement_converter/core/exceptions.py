"""Custom exception classes for statement conversion.

This module defines a hierarchy of exceptions used throughout the
extraction and parsing pipeline. Each exception maps to a specific
error code defined in errors.py.
"""

from typing import Any


class StatementProcessingError(Exception):
    """Base exception for all statement conversion errors.

    All custom exceptions inherit from this base class and include
    an error_code that maps to the error catalog.

    Attributes:
        error_code: Code from the error catalog (e.g., "PARSE_001")
        details: Additional context about the error (for logging)
        http_status: HTTP status code to return (default: 500)
    """

    default_code = "UNKNOWN"
    default_status = 500

    def __init__(
        self,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
        http_status: int | None = None,
        message: str | None = None,
    ):
        """Initialize the exception.

        Args:
            error_code: Error code from errors.py (default: the class default)
            details: Additional error context (not shown to users)
            http_status: HTTP status code (default: the class default)
            message: Human-readable message; defaults to the error code
        """
        self.error_code = error_code or self.default_code
        self.details = details or {}
        self.http_status = http_status or self.default_status
        super().__init__(message or self.error_code)


class PDFStructureError(StatementProcessingError):
    """Raised when the PDF container cannot be opened or parsed at all.

    Maps to error code PARSE_002. Structured-library crashes are recorded
    as this error so the extraction cascade can continue.
    """

    default_code = "PARSE_002"
    default_status = 422


class UnreadableTextError(StatementProcessingError):
    """Raised when every extraction strategy failed the readability check.

    The error code distinguishes the likely cause:
    - EXTRACT_001: text exists but uses an undecodable font encoding
    - EXTRACT_002: no text layer at all (scanned/image PDF)
    """

    default_code = "EXTRACT_001"
    default_status = 422

    @property
    def likely_scanned(self) -> bool:
        return self.error_code == "EXTRACT_002"


class BankDetectionError(StatementProcessingError):
    """Raised when the bank cannot be detected from the extracted text.

    Maps to error code PARSE_001.
    """

    default_code = "PARSE_001"
    default_status = 422


class UnsupportedBankError(StatementProcessingError):
    """Raised when an explicit bank hint matches no known grammar.

    Maps to error code PARSE_006.
    """

    default_code = "PARSE_006"
    default_status = 400


class ExternalToolUnavailable(StatementProcessingError):
    """Raised when an external command-line tool is not installed.

    The extraction pipeline treats this as "strategy not applicable".
    """

    default_code = "TOOL_001"
    default_status = 503


class InvalidUploadError(StatementProcessingError):
    """Raised by the API layer for bad uploads (API_001, API_002, API_005)."""

    default_code = "API_001"
    default_status = 400
