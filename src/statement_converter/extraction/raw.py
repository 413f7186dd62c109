"""Raw-stream text extraction.

Walks every stream of a PDF document, applies the document's merged
ToUnicode CMap and decodes text-showing operators directly. This path
works on statements whose fonts defeat the structured libraries.
"""

import logging

from statement_converter.extraction.cmap import find_cmaps, merge_cmaps
from statement_converter.extraction.content_stream import (
    extract_stream_text,
    inflate,
    iter_streams,
)

logger = logging.getLogger(__name__)

# Streams shorter than this are usually form XObjects or stray labels
MIN_STREAM_TEXT = 10


def merge_page_text(texts: list[str]) -> list[str]:
    """Merge per-stream text into a single logical page.

    Only stream outputs longer than ten characters are kept. When none
    are, all non-empty outputs are merged instead.
    """
    stripped = [t.strip() for t in texts if t and t.strip()]
    substantial = [t for t in stripped if len(t) > MIN_STREAM_TEXT]
    chosen = substantial or stripped
    return ["\n".join(chosen)] if chosen else []


def extract_raw(data: bytes) -> list[str]:
    """Extract text from a PDF by decoding its content streams directly.

    Args:
        data: Complete PDF file bytes

    Returns:
        A list with a single page string, or an empty list when nothing
        could be decoded
    """
    cmaps = find_cmaps(data)
    cmap = merge_cmaps(cmaps) if cmaps else None

    texts: list[str] = []
    for stream in iter_streams(data):
        lines = extract_stream_text(inflate(stream), cmap)
        if lines:
            texts.append("\n".join(lines))

    logger.debug(
        "Raw extraction decoded %d stream(s) using %d CMap entries",
        len(texts),
        len(cmap) if cmap else 0,
    )
    return merge_page_text(texts)
