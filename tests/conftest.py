import io
import sys
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

sys.path.append(str(Path(__file__).parents[1] / "src"))

from statement_converter.main import app


def build_pdf(pages: list[list[str]]) -> bytes:
    """Render lines of text onto PDF pages with reportlab."""
    from reportlab.lib.pagesizes import A4
    from reportlab.pdfgen import canvas

    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    for lines in pages:
        pdf.setFont("Helvetica", 10)
        y = A4[1] - 60
        for line in lines:
            pdf.drawString(40, y, line)
            y -= 14
        pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def build_raw_pdf(*streams: bytes) -> bytes:
    """Assemble a bare PDF body around uncompressed streams.

    Good enough for the raw stream walker, which does not need an xref.
    """
    parts = [b"%PDF-1.4\n"]
    for number, stream in enumerate(streams, start=1):
        parts.append(
            b"%d 0 obj\n<< /Length %d >>\nstream\n" % (number, len(stream))
            + stream
            + b"\nendstream\nendobj\n"
        )
    parts.append(b"%%EOF\n")
    return b"".join(parts)


@pytest.fixture
def make_pdf():
    return build_pdf


@pytest.fixture
def make_raw_pdf():
    return build_raw_pdf


@pytest.fixture
async def client():
    """Provide an HTTP client bound to the ASGI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
