"""Shared parsing primitives for UK bank statements.

Date recognition, amount parsing, keyword heuristics and metadata
finders used by every bank grammar.
"""

import re
from decimal import Decimal, InvalidOperation

MONTHS = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)"

# DD/MM/YYYY or DD/MM/YY
DATE_SLASH = re.compile(r"\b(\d{1,2}/\d{1,2}/\d{2,4})\b")
# DD Mon YYYY (e.g., 15 Jan 2024)
DATE_TEXT = re.compile(rf"\b(\d{{1,2}}\s+{MONTHS}[a-z]*\s+\d{{2,4}})\b", re.IGNORECASE)
# DD-Mon-YYYY or DD-Mon-YY
DATE_DASH = re.compile(rf"\b(\d{{1,2}}-{MONTHS}[a-z]*-\d{{2,4}})\b", re.IGNORECASE)
# DD Mon without year (e.g., "4 Dec"), line-initial only
DATE_SHORT = re.compile(rf"^(\d{{1,2}}\s+{MONTHS})(?:\s|→|$)", re.IGNORECASE)

DATE_PATTERNS = [DATE_SLASH, DATE_TEXT, DATE_DASH]

# Matches numbers like 1,234.56 or 25.99
AMOUNT = re.compile(r"[\d,]+\.\d{2}")
AMOUNT_CELL = re.compile(r"^[£]?\s*([\d,]+\.\d{2})\s*$")

ACCOUNT_NUMBER = re.compile(r"\b(\d{8})\b")
SORT_CODE = re.compile(r"\b(\d{2}-\d{2}-\d{2})\b")

# Currency symbols and the byte sequences they turn into when UTF-8 text
# is decoded as Latin-1 or Windows-1252 somewhere along the way
CURRENCY_TOKENS = ["Ã‚Â£", "Â£", "â‚¬", "£", "$", "€"]

DEBIT_KEYWORDS = [
    "card payment",
    "direct debit",
    "debit",
    "payment",
    "withdrawal",
    "transfer out",
    "standing order",
    "dd ",
    "pos ",
    "atm ",
    "purchase",
    "fee",
    "charge",
]

CREDIT_KEYWORDS = [
    "direct credit",
    "credit from",
    "bgc ",
    "bacs ",
    "refund",
    "interest paid",
    "transfer from",
    "faster payment",
    "inward payment",
    "salary",
    "received",
]

SUMMARY_PHRASES = [
    "opening balance",
    "closing balance",
    "total paid in",
    "total paid out",
    "total payments",
    "total receipts",
    "statement period",
    "total money in",
    "total money out",
    "end balance",
    "balance carried forward",
    "statement number",
]

SUMMARY_LINE = re.compile(
    r"\b(?:" + "|".join(p.replace(" ", r"\s+") for p in SUMMARY_PHRASES) + r")\b",
    re.IGNORECASE,
)
# "Page 2 of 4", "Continued on next page", "(continued)"
PAGE_MARKER = re.compile(
    r"\bpage\s*\d+|^\W*continued\b|\bcontinued\s+(?:on|from|overleaf)\b",
    re.IGNORECASE,
)

OPENING_BALANCE_KEYWORDS = [
    "opening balance",
    "balance brought forward",
    "brought forward",
    "start balance",
]

_OCR_FIXES = [
    (re.compile(r"(\d);(\s*)(\d)"), r"\1.\3"),
    (re.compile(r"(\d):(\d)"), r"\1.\2"),
    (re.compile(r"(\d):\s"), r"\1 "),
    (re.compile(r"(\d):$"), r"\1"),
    (re.compile(r"\s+NA\b"), ""),
]


def _leading_match(pattern: re.Pattern, line: str) -> str:
    match = pattern.search(line)
    if match and match.start() < 3:
        return match.group(1)
    return ""


def extract_date(line: str) -> str:
    """Return the date at the start of a line, or "".

    A match may begin within the first three characters of the trimmed
    line, which tolerates a stray character left by extraction.
    """
    line = line.strip()
    for pattern in DATE_PATTERNS:
        date = _leading_match(pattern, line)
        if date:
            return date
    return ""


def starts_with_date(line: str) -> bool:
    return bool(extract_date(line))


def extract_short_date(line: str) -> str:
    match = DATE_SHORT.match(line.strip())
    return match.group(1) if match else ""


def starts_with_short_date(line: str) -> bool:
    return bool(extract_short_date(line))


def parse_amount(text: str) -> Decimal:
    """Parse a monetary string such as ``£1,234.56`` into a Decimal.

    Currency symbols, thousands separators and whitespace are stripped.
    Empty or dash-only input parses to zero. A sign that is present is
    preserved; the parser never adds one.

    Raises:
        ValueError: If the cleaned text is not a number
    """
    cleaned = text.strip()
    for token in CURRENCY_TOKENS:
        cleaned = cleaned.replace(token, "")
    cleaned = cleaned.replace(",", "").replace(" ", "").replace("\u00a0", "")

    if cleaned in ("", "-"):
        return Decimal("0")

    try:
        value = Decimal(cleaned)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount: {text!r}") from e
    if not value.is_finite():
        raise ValueError(f"Could not parse amount: {text!r}")
    return value


def find_amounts(text: str) -> list[Decimal]:
    return [parse_amount(m) for m in AMOUNT.findall(text)]


def is_amount_cell(text: str) -> bool:
    return bool(AMOUNT_CELL.match(text.strip()))


def sanitize_ocr_amounts(line: str) -> str:
    """Fix punctuation Tesseract commonly misreads inside amounts.

    ``19,720; 15`` becomes ``19,720.15``, ``1,234:56`` becomes
    ``1,234.56``, trailing colons are removed and stray ``NA`` tokens
    after amounts are dropped.
    """
    for pattern, replacement in _OCR_FIXES:
        line = pattern.sub(replacement, line)
    return line


def normalize_line(line: str) -> str:
    """Clean common extraction artifacts from a line."""
    return line.replace("\u00a0", " ").replace("\u200b", "").strip()


def strip_leading_noise(line: str) -> str:
    """Drop stray punctuation in front of a date-led line.

    Returns the line unchanged when no digit follows the noise.
    """
    i = 0
    while i < len(line) and line[i] != " " and not line[i].isdigit():
        i += 1
    if i == 0:
        return line
    rest = line[i:].strip()
    return rest if rest[:1].isdigit() else line


def _contains_any(text: str, keywords: list[str]) -> bool:
    lower = text.lower()
    return any(keyword in lower for keyword in keywords)


def contains_transaction_header(line: str) -> bool:
    """Check whether a line is the column header row of a transaction table.

    "paid" counts towards the description group because some PDFs spread
    header characters ("Pay m e nt t y pe and de t ails") while the
    "Paid out" column header stays intact. Dated lines are never headers.
    """
    if starts_with_date(line):
        return False
    lower = line.lower()
    return (
        "date" in lower
        and any(k in lower for k in ("description", "transaction", "details", "paid"))
        and any(k in lower for k in ("amount", "paid", "balance", "money"))
    )


def is_statement_summary(line: str) -> bool:
    """Check for a totals, balance or statement-details phrase."""
    return bool(SUMMARY_LINE.search(line))


def is_page_marker(line: str) -> bool:
    return bool(PAGE_MARKER.search(line))


def is_summary_line(line: str) -> bool:
    return is_statement_summary(line) or is_page_marker(line)


def is_debit_description(description: str) -> bool:
    return _contains_any(description, DEBIT_KEYWORDS)


def is_credit_description(description: str) -> bool:
    if description.strip().lower().startswith("credit "):
        return True
    return _contains_any(description, CREDIT_KEYWORDS)


def extract_opening_balance(line: str) -> Decimal | None:
    """Return the balance on an opening / brought-forward line, else None."""
    if not _contains_any(line, OPENING_BALANCE_KEYWORDS):
        return None
    amounts = AMOUNT.findall(line)
    if not amounts:
        return None
    try:
        return parse_amount(amounts[-1])
    except ValueError:
        return None


def find_account_number(text: str) -> str | None:
    match = ACCOUNT_NUMBER.search(text)
    return match.group(1) if match else None


def find_sort_code(text: str) -> str | None:
    match = SORT_CODE.search(text)
    return match.group(1) if match else None


def extract_name_near_label(text: str, labels: list[str]) -> str | None:
    """Find a name written after one of the given labels.

    The rest of the line after the label is used, minus a leading colon,
    up to the first double space.
    """
    for line in text.split("\n"):
        lower_line = line.lower()
        for label in labels:
            idx = lower_line.find(label.lower())
            if idx < 0:
                continue
            rest = line[idx + len(label) :].strip()
            if rest.startswith(":"):
                rest = rest[1:].strip()
            if rest:
                return rest.split("  ")[0].split("\t")[0].strip()
    return None


def extract_period(text: str) -> str | None:
    """Find a statement period as ``<start> to <end>``."""
    for line in text.split("\n"):
        lower = line.lower()
        if "period" not in lower and "from:" not in lower:
            continue
        for pattern in (DATE_SLASH, DATE_TEXT):
            dates = pattern.findall(line)
            if len(dates) >= 2:
                return f"{dates[0]} to {dates[1]}"
    return None
