"""ToUnicode CMap parsing and decoding.

PDF fonts with custom encodings ship a ToUnicode CMap that maps the
font's glyph codes to Unicode. Statements produced by some banking
systems only render readable text when these tables are applied.
"""

import logging
import re
from collections import Counter
from collections.abc import Iterable

from statement_converter.extraction.content_stream import inflate, iter_streams

logger = logging.getLogger(__name__)

BFCHAR_BLOCK = re.compile(r"beginbfchar\s*(.*?)\s*endbfchar", re.DOTALL)
BFRANGE_BLOCK = re.compile(r"beginbfrange\s*(.*?)\s*endbfrange", re.DOTALL)
HEX_TOKEN = re.compile(r"<([0-9A-Fa-f]+)>")
# <start> <end> <dst> or <start> <end> [<dst> ...]
RANGE_ENTRY = re.compile(
    r"<([0-9A-Fa-f]+)>\s*<([0-9A-Fa-f]+)>\s*(?:<([0-9A-Fa-f]+)>|\[([^\]]*)\])"
)


class CMap:
    """Read-only code to Unicode mapping.

    Keys are upper-case hex strings of the source code (1-4 bytes),
    values are the decoded Unicode text.

    Example:
        >>> cmap = parse_cmap("beginbfchar <41> <0041> endbfchar")
        >>> cmap.decode(b"A")
        'A'
    """

    def __init__(self, mapping: dict[str, str] | None = None):
        self._map: dict[str, str] = {k.upper(): v for k, v in (mapping or {}).items()}
        self._width = self._compute_width()

    def _compute_width(self) -> int:
        if not self._map:
            return 1
        widths = Counter(max(1, len(key) // 2) for key in self._map)
        return widths.most_common(1)[0][0]

    def __len__(self) -> int:
        return len(self._map)

    def __contains__(self, code: str) -> bool:
        return code.upper() in self._map

    def __bool__(self) -> bool:
        return bool(self._map)

    def get(self, code: str, default: str | None = None) -> str | None:
        return self._map.get(code.upper(), default)

    def items(self):
        return self._map.items()

    @property
    def code_width(self) -> int:
        """Byte width of a source code, taken from the table keys."""
        return self._width

    def decode(self, raw: bytes) -> str:
        """Decode raw string bytes from a content stream.

        Unknown wide codes fall back to a single-byte lookup and resume one
        byte later. Unknown single-byte codes pass through when they are
        printable ASCII. Trailing bytes shorter than a code are dropped.
        """
        if not self._map:
            return ""

        width = self._width
        out: list[str] = []
        i = 0
        while i + width <= len(raw):
            chunk = raw[i : i + width]
            value = self._map.get(chunk.hex().upper())
            if value is not None:
                out.append(value)
                i += width
                continue

            if width > 1:
                single = self._map.get(chunk[:1].hex().upper())
                if single is not None:
                    out.append(single)
                    i += 1
                    continue
            elif 0x20 <= chunk[0] < 0x7F:
                out.append(chr(chunk[0]))
            i += width
        return "".join(out)


def hex_to_unicode(hex_str: str) -> str:
    """Interpret a destination hex string as UTF-16BE.

    Returns an empty string for invalid hex. Lone surrogates are dropped.
    """
    if len(hex_str) % 2:
        hex_str = "0" + hex_str
    try:
        data = bytes.fromhex(hex_str)
    except ValueError:
        return ""
    if not data:
        return ""
    if len(data) == 1:
        return chr(data[0])

    units = [int.from_bytes(data[i : i + 2], "big") for i in range(0, len(data) - 1, 2)]
    chars: list[str] = []
    i = 0
    while i < len(units):
        unit = units[i]
        if 0xD800 <= unit <= 0xDBFF and i + 1 < len(units) and 0xDC00 <= units[i + 1] <= 0xDFFF:
            code_point = 0x10000 + ((unit - 0xD800) << 10) + (units[i + 1] - 0xDC00)
            chars.append(chr(code_point))
            i += 2
            continue
        if not 0xD800 <= unit <= 0xDFFF:
            chars.append(chr(unit))
        i += 1
    return "".join(chars)


def _int_to_hex(value: int, width: int) -> str:
    text = format(value, "X").zfill(width)
    return text[-width:]


def _add_range(mapping: dict[str, str], entry: re.Match) -> None:
    start_hex, end_hex, dst_hex, array = entry.groups()
    start, end = int(start_hex, 16), int(end_hex, 16)
    width = len(start_hex)

    if array is not None:
        for offset, dst in enumerate(HEX_TOKEN.findall(array)):
            code = start + offset
            if code > end:
                break
            value = hex_to_unicode(dst)
            if value:
                mapping[_int_to_hex(code, width)] = value
        return

    dst = int(dst_hex, 16)
    for code in range(start, end + 1):
        value = hex_to_unicode(_int_to_hex(dst + (code - start), len(dst_hex)))
        if value:
            mapping[_int_to_hex(code, width)] = value


def parse_cmap(content: str) -> CMap:
    """Parse the bfchar and bfrange blocks of a ToUnicode CMap.

    Entries are read as a token sequence, so several may share a line.
    """
    mapping: dict[str, str] = {}

    for block in BFCHAR_BLOCK.findall(content):
        tokens = HEX_TOKEN.findall(block)
        for src, dst in zip(tokens[0::2], tokens[1::2]):
            value = hex_to_unicode(dst)
            if value:
                mapping[src.upper()] = value

    for block in BFRANGE_BLOCK.findall(content):
        for entry in RANGE_ENTRY.finditer(block):
            _add_range(mapping, entry)

    return CMap(mapping)


def find_cmaps(data: bytes) -> list[CMap]:
    """Collect every ToUnicode table embedded in a PDF document."""
    cmaps: list[CMap] = []
    for stream in iter_streams(data):
        content = inflate(stream)
        if b"beginbfchar" not in content and b"beginbfrange" not in content:
            continue
        cmap = parse_cmap(content.decode("latin-1"))
        if cmap:
            cmaps.append(cmap)
    logger.debug("Found %d ToUnicode CMap(s)", len(cmaps))
    return cmaps


def merge_cmaps(cmaps: Iterable[CMap]) -> CMap:
    """Merge tables into one; later tables win on conflicting codes."""
    merged: dict[str, str] = {}
    for cmap in cmaps:
        merged.update(cmap.items())
    return CMap(merged)
