"""OCR tier for scanned statements.

Pages are rasterised with pdf2image (poppler's ``pdftoppm``) and read by
Tesseract through pytesseract. OCR is slow and is only run when the
caller asks for it.
"""

import logging

from statement_converter.core.exceptions import (
    ExternalToolUnavailable,
    UnreadableTextError,
)
from statement_converter.extraction.external import ToolAvailability

logger = logging.getLogger(__name__)


def extract_with_ocr(
    path: str,
    *,
    tools: ToolAvailability,
    dpi: int = 300,
    language: str = "eng",
    psm: int = 4,
) -> list[str]:
    """Run OCR over every page of a PDF.

    Args:
        path: Path of the PDF on disk
        tools: Probed tool availability
        dpi: Rasterisation resolution
        language: Tesseract language code
        psm: Tesseract page segmentation mode (4 = single column of text)

    Returns:
        Non-empty page texts in page order

    Raises:
        ExternalToolUnavailable: If pdftoppm or tesseract is missing
        UnreadableTextError: If OCR produced no text at all (EXTRACT_002)
    """
    if not tools.ocr:
        missing = [name for name in ("pdftoppm", "tesseract") if not getattr(tools, name)]
        raise ExternalToolUnavailable(
            details={"tools": missing},
            message=f"OCR requires {', '.join(missing)}",
        )

    from pdf2image import convert_from_path
    from pytesseract import image_to_string

    images = convert_from_path(path, dpi=dpi)
    logger.info("Running OCR on %d page(s) at %d DPI", len(images), dpi)

    pages: list[str] = []
    for index, image in enumerate(images, start=1):
        text = image_to_string(image, lang=language, config=f"--psm {psm}")
        text = (text or "").strip()
        if text:
            pages.append(text)
        else:
            logger.debug("OCR returned no text for page %d", index)

    if not pages:
        raise UnreadableTextError(
            error_code="EXTRACT_002",
            details={"pages": len(images)},
            message="OCR produced no text",
        )
    return pages
