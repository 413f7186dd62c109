"""Barclays parser refinement.

Personal statements use a conventional ``Date  Description  Money out
Money in  Balance`` table. Business statements come out of the
extractors with an arrow glyph between columns and short dates
(``4 Dec``) that apply to every following line until the next date.
"""

import re

from statement_converter.parsers.base import (
    BaseStatementParser,
    LineGrammar,
    ParseState,
    classify_by_keywords,
)
from statement_converter.parsers.utils import (
    AMOUNT,
    MONTHS,
    extract_date,
    extract_name_near_label,
    extract_short_date,
    is_amount_cell,
    is_credit_description,
    is_debit_description,
    parse_amount,
    starts_with_date,
    starts_with_short_date,
)
from statement_converter.schemas.statement import BankType, Transaction, TransactionType

ARROW = "→"

AMT = r"£?([\d,]+\.\d{2})"
SLASH_DATE = r"(\d{1,2}/\d{1,2}/\d{2,4})"
TEXT_DATE = rf"(\d{{1,2}}\s+{MONTHS}[a-z]*\s+\d{{2,4}})"
SHORT_DATE = rf"(\d{{1,2}}\s+{MONTHS}[a-z]*)"

FULL_SLASH = re.compile(rf"^{SLASH_DATE}\s+(.+?)\s+{AMT}?\s*{AMT}?\s+{AMT}\s*$")
FULL_TEXT = re.compile(rf"^{TEXT_DATE}\s+(.+?)\s+{AMT}?\s*{AMT}?\s+{AMT}\s*$", re.IGNORECASE)
COMPACT = re.compile(rf"^{SHORT_DATE}\s+(.+?)\s+{AMT}\s+{AMT}\s*$", re.IGNORECASE)
SIMPLE_SLASH = re.compile(rf"^{SLASH_DATE}\s+(.+?)\s+{AMT}\s*$")
ARROW_LINE = re.compile(ARROW)

FX_DETAIL_KEYWORDS = ["exchange rate", "non-sterling transaction fee", "final gbp amount"]

SKIP_PHRASES = [
    "at a glance",
    "your deposit is eligible",
    "compensation scheme",
    "your business current account",
    "issued on",
    "swiftbic",
    "iban gb",
    "anything wrong",
]


def _build_full(match: re.Match, state: ParseState) -> Transaction | None:
    date, description, money_out, money_in, balance = match.groups()
    txn = Transaction(date=date, description=description, balance=parse_amount(balance))
    if money_out and money_in:
        txn.amount = parse_amount(money_out)
        txn.type = TransactionType.DEBIT
    elif money_out or money_in:
        txn.amount = parse_amount(money_out or money_in)
        txn.type = classify_by_keywords(description)
    else:
        return None
    return txn


def _build_compact(match: re.Match, state: ParseState) -> Transaction:
    date, description, amount, balance = match.groups()
    return Transaction(
        date=date,
        description=description,
        amount=parse_amount(amount),
        balance=parse_amount(balance),
        type=classify_by_keywords(description),
    )


def _build_simple(match: re.Match, state: ParseState) -> Transaction:
    date, description, amount = match.groups()
    return Transaction(
        date=date,
        description=description,
        amount=parse_amount(amount),
        type=classify_by_keywords(description),
    )


def _is_amount_segment(segment: str) -> bool:
    tokens = segment.split()
    return bool(tokens) and all(is_amount_cell(token) for token in tokens)


def clean_description(text: str) -> str:
    return " ".join(text.replace(ARROW, " ").replace("£", "").split())


def _build_arrow(match: re.Match, state: ParseState) -> Transaction | None:
    """Build a transaction from an arrow-separated business statement line.

    A line is a transaction only when a segment after the first holds
    nothing but amounts.
    """
    parts = [part.strip() for part in match.string.split(ARROW)]
    if not any(_is_amount_segment(part) for part in parts[1:]):
        return None

    head = parts[0]
    date = extract_short_date(head) or extract_date(head)
    if date:
        head = head[head.index(date) + len(date) :].strip()
    else:
        date = state.current_date
    if not date:
        return None

    if not head and len(parts) > 1:
        description = AMOUNT.sub("", parts[1])
    else:
        first = AMOUNT.search(head)
        description = head[: first.start()] if first else head
    description = clean_description(description)

    amounts = [a for a in (parse_amount(m) for m in AMOUNT.findall(" ".join(parts[1:]))) if a > 0]
    if not amounts:
        return None

    txn = Transaction(date=date, description=description, amount=amounts[0])
    if len(amounts) >= 2:
        txn.balance = amounts[-1]

    if is_debit_description(description):
        txn.type = TransactionType.DEBIT
    elif is_credit_description(description):
        txn.type = TransactionType.CREDIT
    elif len(AMOUNT.findall(parts[-1])) >= 2:
        # Paid-in and balance share the last column group
        txn.type = TransactionType.CREDIT
    else:
        txn.type = TransactionType.DEBIT
    return txn


class BarclaysParser(BaseStatementParser):
    """Parser refinement for Barclays personal and business statements.

    Barclays-specific behaviors:
    - Two layouts: standard columns and arrow-separated business statements
    - Short dates are inherited by the dateless lines that follow them
    - Foreign currency detail lines extend the previous description
    """

    bank = BankType.BARCLAYS
    bank_name = "Barclays"
    holder_labels = BaseStatementParser.holder_labels + ["Miss "]
    footer_keywords = [
        "barclays bank",
        "registered in",
        "authorised by",
        "financial conduct",
        "please check",
        "if you find",
        "prudential regulation",
    ]

    def grammars(self, text: str) -> list[LineGrammar]:
        standard = [
            LineGrammar("barclays-full-slash", FULL_SLASH, _build_full),
            LineGrammar("barclays-full-text", FULL_TEXT, _build_full),
            LineGrammar("barclays-compact", COMPACT, _build_compact),
            LineGrammar("barclays-simple-slash", SIMPLE_SLASH, _build_simple),
        ]
        if ARROW in text:
            return [LineGrammar("barclays-arrow", ARROW_LINE, _build_arrow)] + standard
        return standard

    def extract_holder(self, text: str) -> str | None:
        name = extract_name_near_label(text, self.holder_labels)
        if name:
            return name

        # Business statements print the name under the account details
        lines = [line.strip() for line in text.split("\n")]
        for index, line in enumerate(lines[:-1]):
            lower = line.lower()
            if "sort code" in lower or "account number" in lower:
                candidate = clean_description(lines[index + 1])
                if candidate and not any(ch.isdigit() for ch in candidate):
                    return candidate
        return None

    def line_has_date(self, line: str) -> bool:
        return starts_with_date(line) or starts_with_short_date(line)

    def observe_line(self, line: str, state: ParseState) -> None:
        date = extract_short_date(line) or extract_date(line)
        if date:
            state.current_date = date

    def is_header(self, line: str) -> bool:
        lower = line.lower()
        if "date" in lower and any(
            k in lower for k in ("money out", "money in", "description", "details")
        ):
            return True
        return super().is_header(line)

    def is_skippable(self, line: str) -> bool:
        lower = line.lower()
        if any(phrase in lower for phrase in SKIP_PHRASES):
            return True
        return super().is_skippable(line)

    def is_fx_detail(self, line: str) -> bool:
        lower = line.lower()
        return any(keyword in lower for keyword in FX_DETAIL_KEYWORDS)

    def continuation_text(self, line: str) -> str:
        return clean_description(line.replace("\t", " "))
