"""Low-level PDF content stream decoding.

This module walks the raw bytes of a PDF, inflates its streams and turns
text-showing operators into lines of text. It is the last in-process
fallback when the structured PDF libraries cannot read a document's
custom font encoding.
"""

import logging
import re
import zlib
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from statement_converter.extraction.cmap import CMap

logger = logging.getLogger(__name__)

WHITESPACE = b" \t\r\n\f\x00"
DELIMITERS = b"()<>[]{}/%"

# Operators that move to a new text line
LINE_OPERATORS = {"Td", "TD", "Tm", "T*"}

SIMPLE_ESCAPES = {
    ord("n"): b"\n",
    ord("r"): b"\r",
    ord("t"): b"\t",
    ord("b"): b"\b",
    ord("f"): b"\f",
    ord("("): b"(",
    ord(")"): b")",
    ord("\\"): b"\\",
}

_HEX_CLEAN = re.compile(rb"\s+")


def iter_streams(data: bytes) -> Iterator[bytes]:
    """Yield the bytes between each ``stream`` and ``endstream`` keyword."""
    pos = 0
    while True:
        idx = data.find(b"stream", pos)
        if idx < 0:
            return
        if data[max(0, idx - 3) : idx] == b"end":
            pos = idx + 6
            continue

        start = idx + 6
        if data[start : start + 2] == b"\r\n":
            start += 2
        elif data[start : start + 1] in (b"\n", b"\r"):
            start += 1

        end = data.find(b"endstream", start)
        if end < 0:
            return
        chunk = data[start:end]
        if chunk.strip():
            yield chunk
        pos = end + 9


def inflate(data: bytes) -> bytes:
    """Flate-decode a stream, returning the input unchanged on failure."""
    try:
        return zlib.decompressobj().decompress(data)
    except zlib.error:
        return data


def decode_pdf_escapes(raw: bytes) -> bytes:
    """Resolve backslash escapes inside a PDF literal string."""
    out = bytearray()
    i = 0
    n = len(raw)
    while i < n:
        ch = raw[i]
        if ch != 0x5C:
            out.append(ch)
            i += 1
            continue

        i += 1
        if i >= n:
            break
        nxt = raw[i]
        if nxt in SIMPLE_ESCAPES:
            out += SIMPLE_ESCAPES[nxt]
            i += 1
        elif 0x30 <= nxt <= 0x37:
            digits = 0
            value = 0
            while i < n and digits < 3 and 0x30 <= raw[i] <= 0x37:
                value = value * 8 + (raw[i] - 0x30)
                i += 1
                digits += 1
            out.append(value & 0xFF)
        elif nxt in (0x0A, 0x0D):
            # Line continuation
            i += 1
            if nxt == 0x0D and i < n and raw[i] == 0x0A:
                i += 1
        else:
            out.append(nxt)
            i += 1
    return bytes(out)


def _clean(text: str) -> str:
    return "".join(ch for ch in text if ch.isprintable() or ch in "\t")


def _mostly_printable(text: str) -> bool:
    if not text:
        return False
    printable = sum(1 for ch in text if ch.isprintable() or ch in "\n\r\t")
    return printable / len(text) > 0.5


def _utf16_printable(raw: bytes) -> str:
    if raw[:2] == b"\xfe\xff":
        raw = raw[2:]
    chars = []
    for i in range(0, len(raw) - 1, 2):
        ch = chr((raw[i] << 8) | raw[i + 1])
        if ch.isprintable() and not 0xD800 <= ord(ch) <= 0xDFFF:
            chars.append(ch)
    return "".join(chars)


def decode_literal_string(raw: bytes, cmap: "CMap | None" = None) -> str:
    """Decode the body of a ``( ... )`` string operand."""
    data = decode_pdf_escapes(raw)
    if cmap:
        text = cmap.decode(data)
        if _mostly_printable(text):
            return text
    if data[:2] == b"\xfe\xff":
        return _utf16_printable(data)
    return _clean(data.decode("latin-1"))


def decode_hex_string(hex_body: bytes | str, cmap: "CMap | None" = None) -> str:
    """Decode the body of a ``< ... >`` string operand."""
    if isinstance(hex_body, str):
        hex_body = hex_body.encode("latin-1")
    digits = _HEX_CLEAN.sub(b"", hex_body)
    if len(digits) % 2:
        # Odd digit count means an implied trailing zero
        digits += b"0"
    try:
        data = bytes.fromhex(digits.decode("ascii"))
    except (ValueError, UnicodeDecodeError):
        logger.debug("Skipping malformed hex string %r", hex_body[:40])
        return ""

    if cmap:
        text = cmap.decode(data)
        if text:
            return text
    if len(data) >= 2 and len(data) % 2 == 0:
        text = _utf16_printable(data)
        if text:
            return text
    return _clean(data.decode("latin-1"))


def tokenize(content: bytes) -> Iterator[tuple[str, Any]]:
    """Split content stream bytes into ``(kind, value)`` tokens.

    Kinds are ``literal``, ``hex``, ``name``, ``number``, ``op``,
    ``array_start``, ``array_end`` and ``dict``. Literal strings honour
    nested and escaped parentheses.
    """
    i = 0
    n = len(content)
    while i < n:
        ch = content[i]
        if ch in WHITESPACE:
            i += 1
        elif ch == 0x25:  # %
            while i < n and content[i] not in b"\r\n":
                i += 1
        elif ch == 0x28:  # (
            depth = 1
            j = i + 1
            while j < n and depth:
                c = content[j]
                if c == 0x5C:
                    j += 2
                    continue
                if c == 0x28:
                    depth += 1
                elif c == 0x29:
                    depth -= 1
                j += 1
            end = j - 1 if depth == 0 else n
            yield "literal", content[i + 1 : end]
            i = j
        elif ch == 0x3C:  # <
            if content[i + 1 : i + 2] == b"<":
                yield "dict", b"<<"
                i += 2
                continue
            end = content.find(b">", i + 1)
            if end < 0:
                end = n
            yield "hex", content[i + 1 : end]
            i = end + 1
        elif ch == 0x3E:  # >
            if content[i + 1 : i + 2] == b">":
                yield "dict", b">>"
                i += 2
            else:
                i += 1
        elif ch == 0x5B:
            yield "array_start", b"["
            i += 1
        elif ch == 0x5D:
            yield "array_end", b"]"
            i += 1
        elif ch in b"{}":
            i += 1
        elif ch == 0x2F:  # /
            j = i + 1
            while j < n and content[j] not in WHITESPACE and content[j] not in DELIMITERS:
                j += 1
            yield "name", content[i + 1 : j]
            i = j
        else:
            j = i
            while j < n and content[j] not in WHITESPACE and content[j] not in DELIMITERS:
                j += 1
            word = content[i:j]
            try:
                yield "number", float(word)
            except ValueError:
                yield "op", word.decode("latin-1")
            i = j


def _decode_operand(token: tuple[str, Any], cmap: "CMap | None") -> str:
    kind, value = token
    if kind == "literal":
        return decode_literal_string(value, cmap)
    if kind == "hex":
        return decode_hex_string(value, cmap)
    if kind == "array":
        return "".join(
            _decode_operand(item, cmap) for item in value if item[0] in ("literal", "hex")
        )
    return ""


def decode_text_array(body: bytes, cmap: "CMap | None" = None) -> str:
    """Decode the inside of a ``TJ`` array. Kerning numbers are ignored."""
    parts = []
    for token in tokenize(body):
        if token[0] in ("literal", "hex"):
            parts.append(_decode_operand(token, cmap))
    return "".join(parts)


def _show_text(op: str, operands: list[tuple[str, Any]], cmap: "CMap | None") -> str | None:
    if op not in ("Tj", "TJ", "'", '"'):
        return None
    for token in reversed(operands):
        if token[0] in ("literal", "hex", "array"):
            return _decode_operand(token, cmap)
    return ""


def extract_stream_text(data: bytes, cmap: "CMap | None" = None) -> list[str]:
    """Turn a decompressed content stream into lines of text.

    Text inside ``BT ... ET`` blocks is split into lines on positioning
    operators. When no block yields text, every show operator in the
    stream is joined with a space into a single line.
    """
    if b"BT" not in data and b"Tj" not in data and b"TJ" not in data:
        return []

    lines: list[str] = []
    shown: list[str] = []
    current: list[str] = []
    operands: list[tuple[str, Any]] = []
    array: list[tuple[str, Any]] | None = None
    in_block = False

    def flush() -> None:
        line = "".join(current).strip()
        if line:
            lines.append(line)
        current.clear()

    for token in tokenize(data):
        kind = token[0]
        if kind == "array_start":
            array = []
            continue
        if kind == "array_end":
            if array is not None:
                operands.append(("array", array))
            array = None
            continue
        if array is not None:
            array.append(token)
            continue
        if kind != "op":
            operands.append(token)
            continue

        op = token[1]
        if op == "BT":
            in_block = True
            current.clear()
        elif op == "ET":
            flush()
            in_block = False
        elif op in LINE_OPERATORS:
            flush()
        else:
            text = _show_text(op, operands, cmap)
            if text is not None:
                if op in ("'", '"'):
                    flush()
                shown.append(text)
                if in_block:
                    current.append(text)
        operands = []

    flush()
    if lines:
        return lines

    joined = " ".join(t.strip() for t in shown if t.strip())
    return [joined] if joined else []
