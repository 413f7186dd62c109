"""Structured extraction through third-party PDF libraries.

Each function returns one string per page. They raise whatever the
underlying library raises; the pipeline is responsible for turning those
crashes into structural errors and moving on to the next strategy.
"""

import io
import logging

from statement_converter.extraction.layout import rows_from_fragments
from statement_converter.schemas.extraction import TextFragment

logger = logging.getLogger(__name__)


def _open_pypdf(pdf_bytes: bytes):
    from pypdf import PdfReader

    reader = PdfReader(io.BytesIO(pdf_bytes))
    if getattr(reader, "is_encrypted", False):
        # Statements are often encrypted with an empty user password
        if not reader.decrypt(""):
            raise ValueError("PDF password required")
    return reader


def extract_rows(pdf_bytes: bytes) -> list[str]:
    """Row-based text per page using pdfplumber."""
    import pdfplumber

    pages: list[str] = []
    with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
        for page in pdf.pages:
            pages.append(page.extract_text() or "")
    return pages


def extract_coordinates(pdf_bytes: bytes, column_gap: float = 15.0) -> list[str]:
    """Rebuild rows from positioned text runs reported by pypdf."""
    reader = _open_pypdf(pdf_bytes)
    pages: list[str] = []
    for page in reader.pages:
        fragments: list[TextFragment] = []

        def visitor(text, cm, tm, font_dict, font_size):
            if not text or not text.strip():
                return
            # Text matrix translation combined with the current transform
            x = tm[4] * cm[0] + tm[5] * cm[2] + cm[4]
            y = tm[4] * cm[1] + tm[5] * cm[3] + cm[5]
            fragments.append(TextFragment(text=text, x=x, y=y))

        page.extract_text(visitor_text=visitor)
        pages.append("\n".join(rows_from_fragments(fragments, column_gap=column_gap)))
    return pages


def extract_page_text(pdf_bytes: bytes) -> list[str]:
    """Plain text per page using pypdf."""
    reader = _open_pypdf(pdf_bytes)
    return [page.extract_text() or "" for page in reader.pages]


def extract_document_text(pdf_bytes: bytes) -> list[str]:
    """Whole-document plain text from PyMuPDF as a single page."""
    import fitz

    with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
        text = "\n".join(page.get_text() for page in doc)
    return [text] if text.strip() else []
