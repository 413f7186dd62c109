"""Readability scoring for extracted statement text.

A strategy's output is only accepted when it is long enough, made mostly
of plausible characters and mentions at least one word that appears on
every bank statement.
"""

import re

READABLE_PUNCTUATION = set(".,-/:;()'\"%&@#!?+=*£$€")

STATEMENT_TERMS = [
    "bank",
    "account",
    "balance",
    "date",
    "payment",
    "statement",
    "total",
    "amount",
    "credit",
    "debit",
    "transaction",
    "sort code",
    "money",
    "paid",
    "opening",
    "closing",
    "transfer",
    "direct",
    "number",
    "page",
    "period",
]

_TERMS_PATTERN = re.compile("|".join(re.escape(t) for t in STATEMENT_TERMS), re.IGNORECASE)


def _is_readable_char(ch: str) -> bool:
    if ch.isascii() and ch.isalnum():
        return True
    return ch.isspace() or ch in READABLE_PUNCTUATION


def text_quality(pages: list[str] | str) -> float:
    """Fraction of characters that are plausible statement text (0.0-1.0)."""
    text = pages if isinstance(pages, str) else "".join(pages)
    if not text:
        return 0.0
    readable = sum(1 for ch in text if _is_readable_char(ch))
    return readable / len(text)


def total_text_length(pages: list[str]) -> int:
    return sum(len(page.strip()) for page in pages)


def contains_statement_terms(pages: list[str]) -> bool:
    return any(_TERMS_PATTERN.search(page) for page in pages)


def is_readable(
    pages: list[str] | None,
    *,
    min_chars: int = 50,
    min_quality: float = 0.6,
    require_terms: bool = True,
) -> bool:
    """Strict acceptability predicate for a strategy's output."""
    if not pages:
        return False
    if total_text_length(pages) <= min_chars:
        return False
    if text_quality(pages) <= min_quality:
        return False
    if require_terms and not contains_statement_terms(pages):
        return False
    return True
