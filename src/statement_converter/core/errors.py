"""Error codes and user-friendly messages.

This module defines the error catalog for statement conversion.
Each error has:
- error_code: Unique identifier
- message: Technical description (for logs)
- user_message: User-friendly explanation
- suggestion: Actionable guidance for the user
- retry_allowed: Whether the error is retryable
"""

# Error catalog for statement conversion
ERROR_CATALOG: dict[str, dict] = {
    "PARSE_001": {
        "code": "PARSE_001",
        "message": "Could not auto-detect bank from statement content",
        "user_message": "We couldn't tell which bank issued this statement.",
        "suggestion": "Please specify the bank explicitly (metro, hsbc or barclays).",
        "retry_allowed": True,
    },
    "PARSE_002": {
        "code": "PARSE_002",
        "message": "PDF container could not be opened or parsed",
        "user_message": "This PDF appears to be corrupted or damaged.",
        "suggestion": "Try downloading the statement again from your bank's website.",
        "retry_allowed": True,
    },
    "PARSE_006": {
        "code": "PARSE_006",
        "message": "Unsupported bank type requested",
        "user_message": "That bank isn't supported yet.",
        "suggestion": "Supported banks: metro, hsbc, barclays.",
        "retry_allowed": False,
    },
    "EXTRACT_001": {
        "code": "EXTRACT_001",
        "message": "No extraction strategy produced readable text (custom font encoding)",
        "user_message": "The text in this PDF uses a font encoding we couldn't decode.",
        "suggestion": (
            "Try OCR mode, or open the PDF in a browser, select all text, "
            "copy it and paste it into a text file."
        ),
        "retry_allowed": True,
    },
    "EXTRACT_002": {
        "code": "EXTRACT_002",
        "message": "PDF has no text layer (image-based or scanned)",
        "user_message": "This PDF looks like a scanned image with no text.",
        "suggestion": "Retry with OCR enabled, or enter the transactions manually.",
        "retry_allowed": True,
    },
    "TOOL_001": {
        "code": "TOOL_001",
        "message": "Required external tool is not installed",
        "user_message": "A required conversion tool is not available on the server.",
        "suggestion": "Install poppler-utils and tesseract-ocr, then try again.",
        "retry_allowed": False,
    },
    # API-specific errors
    "API_001": {
        "code": "API_001",
        "message": "Invalid file type uploaded",
        "user_message": "Only PDF files are supported.",
        "suggestion": "Please upload a PDF file. Most banks provide statements in PDF format.",
        "retry_allowed": False,
    },
    "API_002": {
        "code": "API_002",
        "message": "File size exceeds maximum limit",
        "user_message": "The file is too large.",
        "suggestion": "Please upload a smaller statement file.",
        "retry_allowed": False,
    },
    "API_005": {
        "code": "API_005",
        "message": "Invalid PDF magic bytes",
        "user_message": "This file appears to be corrupt or is not a valid PDF.",
        "suggestion": "Please ensure you're uploading an actual PDF file, not a renamed file.",
        "retry_allowed": False,
    },
}


def get_error(error_code: str) -> dict:
    """Look up a catalog entry, falling back to a generic one for unknown codes."""
    entry = ERROR_CATALOG.get(error_code)
    if entry is None:
        entry = {
            "code": "UNKNOWN",
            "message": f"Unknown error code: {error_code}",
            "user_message": "An unexpected error occurred.",
            "suggestion": "Please try again. Contact support if the problem persists.",
            "retry_allowed": True,
        }
    return entry


def get_user_message(error_code: str) -> str:
    return get_error(error_code)["user_message"]


def get_suggestion(error_code: str) -> str:
    """What the caller can do about the error."""
    return get_error(error_code)["suggestion"]


def is_retryable(error_code: str) -> bool:
    return get_error(error_code)["retry_allowed"]
