"""Statement conversion endpoint."""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Header, Query, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from statement_converter.api.deps import get_converter
from statement_converter.config import settings
from statement_converter.core.exceptions import InvalidUploadError
from statement_converter.services.converter import ConversionResult, StatementConverter
from statement_converter.writers.csv_writer import CSVWriter, format_amount

router = APIRouter(tags=["convert"])

# Constants
PDF_MAGIC_BYTES = b"%PDF-"


def build_response(result: ConversionResult, include_debug: bool, csv_text: str) -> dict:
    """Shape a ConversionResult into the JSON response body."""
    info = result.statement
    body = {
        "success": True,
        "bank": info.bank.value,
        "detected_bank": result.detected_bank,
        "account_info": {
            "holder": info.account_holder,
            "number": info.account_number,
            "sort_code": info.sort_code,
            "period": info.statement_period,
        },
        "opening_balance": format_amount(info.opening_balance) or None,
        "transactions": [
            txn.model_dump(mode="json", exclude={"parse_method"}) for txn in info.transactions
        ],
        "count": len(info.transactions),
        "total_debit": format_amount(info.total_debits),
        "total_credit": format_amount(info.total_credits),
        "csv": csv_text,
        "strategy": result.extraction.strategy,
        "warnings": result.warnings,
        "version": settings.version,
    }
    if include_debug:
        body["transactions"] = [txn.model_dump(mode="json") for txn in info.transactions]
        body["debug_lines"] = [line.model_dump() for line in info.debug_lines]
        body["raw_text"] = result.extraction.text
    return body


async def read_pdf_body(request: Request) -> bytes:
    """Read the raw request body with a strict size cap.

    Raises:
        InvalidUploadError: API_001 for a wrong content type, API_002 when
            the body exceeds ``max_upload_mb``, API_005 for an empty body or
            a missing PDF header
    """
    content_type = (request.headers.get("content-type") or "").split(";")[0].strip()
    if content_type.lower() != "application/pdf":
        raise InvalidUploadError(
            error_code="API_001",
            details={"content_type": content_type},
        )

    max_bytes = settings.max_upload_mb * 1024 * 1024
    buf = bytearray()
    total = 0
    async for chunk in request.stream():
        if not chunk:
            continue
        total += len(chunk)
        if total > max_bytes:
            raise InvalidUploadError(
                error_code="API_002",
                details={"max_bytes": max_bytes},
                http_status=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            )
        buf.extend(chunk)
    pdf_bytes = bytes(buf)

    if not pdf_bytes or not pdf_bytes.startswith(PDF_MAGIC_BYTES):
        raise InvalidUploadError(error_code="API_005", details={"size": len(pdf_bytes)})
    return pdf_bytes


@router.post(
    "/convert",
    summary="Convert a bank statement PDF",
    description="""
    Extract transactions from a UK bank statement.

    ## Supported Banks
    - Metro Bank
    - HSBC
    - Barclays

    ## Request
    - Body must be raw PDF bytes (`Content-Type: application/pdf`)
    - Optional `X-Bank` header skips auto-detection
    - `?ocr=true` allows OCR for scanned statements
    - `?format=csv` returns `text/csv` instead of JSON

    ## Error Codes
    - API_001: Invalid content type
    - API_002: File too large
    - API_005: Invalid PDF file
    - PARSE_001: Bank could not be detected
    - PARSE_006: Unsupported bank
    - EXTRACT_001 / EXTRACT_002: No readable text
    """,
)
async def convert_statement(
    request: Request,
    bank: Annotated[
        str | None,
        Header(alias="X-Bank", description="Bank hint: metro, hsbc or barclays."),
    ] = None,
    ocr: Annotated[bool, Query(description="Allow the OCR tier")] = False,
    format: Annotated[Literal["json", "csv"], Query()] = "json",
    debug: Annotated[bool, Query(description="Include debug lines and raw text")] = False,
    header: Annotated[bool, Query(description="Include CSV metadata and header rows")] = True,
    converter: StatementConverter = Depends(get_converter),
):
    pdf_bytes = await read_pdf_body(request)

    # Extraction and parsing are CPU bound and may shell out
    result = await run_in_threadpool(converter.convert, pdf_bytes, bank=bank, ocr=ocr)

    csv_text = CSVWriter(include_header=header).to_string(result.statement)
    if format == "csv":
        return Response(
            content=csv_text,
            media_type="text/csv",
            headers={"Content-Disposition": 'attachment; filename="statement.csv"'},
        )
    return build_response(result, debug, csv_text)
