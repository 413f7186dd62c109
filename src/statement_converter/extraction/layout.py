"""Row reconstruction from positioned text fragments."""

from collections import defaultdict

from statement_converter.schemas.extraction import TextFragment


def rows_from_fragments(fragments: list[TextFragment], column_gap: float = 15.0) -> list[str]:
    """Group fragments into visual rows.

    Fragments are grouped by rounded Y coordinate. Rows are ordered top to
    bottom (descending Y, PDF user space) and fragments left to right.
    A double space is inserted wherever the horizontal gap between two
    consecutive fragments exceeds ``column_gap``, which keeps column
    boundaries visible to the statement grammars. Glyph-level fragments
    that touch are joined without a space.

    Fragments without coordinates are emitted on their own rows after the
    positioned ones.
    """
    rows: dict[int, list[TextFragment]] = defaultdict(list)
    unplaced: list[str] = []
    for fragment in fragments:
        if not fragment.text.strip():
            continue
        if fragment.x is None or fragment.y is None:
            unplaced.append(fragment.text.strip())
            continue
        rows[round(fragment.y)].append(fragment)

    lines: list[str] = []
    for y in sorted(rows, reverse=True):
        row = sorted(rows[y], key=lambda f: f.x)
        parts: list[str] = []
        prev_end: float | None = None
        for fragment in row:
            text = fragment.text.strip()
            if prev_end is not None:
                gap = fragment.x - prev_end
                if gap > column_gap:
                    parts.append("  ")
                elif gap > 1:
                    parts.append(" ")
            parts.append(text)
            # Approximate the fragment's right edge from its character count
            prev_end = fragment.x + _estimated_width(text)
        line = "".join(parts).strip()
        if line:
            lines.append(line)

    lines.extend(unplaced)
    return lines


def _estimated_width(text: str, char_width: float = 5.0) -> float:
    return len(text) * char_width
