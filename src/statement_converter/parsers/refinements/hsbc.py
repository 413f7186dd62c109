"""HSBC parser refinement.

HSBC statements use month-name dates (``17 Jan 24``) and only print the
balance on the last line of each day. Depending on the extractor, a row
arrives space-aligned, as tab-separated cells, split over two lines, or
as separate column blocks. Types are cross-checked against the running
balance once all pages are parsed.
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
    is_amount_cell,
    is_summary_line,
    parse_amount,
    starts_with_date,
)
from statement_converter.schemas.statement import BankType, Transaction, TransactionType

AMT = r"£?([\d,]+\.\d{2})"
TEXT_DATE = rf"(\d{{1,2}}\s+{MONTHS}[a-z]*\s+\d{{2,4}})"
DASH_DATE = rf"(\d{{1,2}}-{MONTHS}[a-z]*-\d{{2,4}})"
SLASH_DATE = r"(\d{1,2}/\d{1,2}/\d{2,4})"
ANY_DATE = rf"(?:{TEXT_DATE[1:-1]}|{DASH_DATE[1:-1]}|{SLASH_DATE[1:-1]})"

STRICT = re.compile(rf"^{TEXT_DATE}\s+(.+?)\s{{2,}}{AMT}?\s+{AMT}?\s+{AMT}\s*$", re.IGNORECASE)
FLEXIBLE = re.compile(rf"^{TEXT_DATE}\s+(.+?)\s+{AMT}?\s*{AMT}?\s*{AMT}\s*$", re.IGNORECASE)
DASH = re.compile(rf"^{DASH_DATE}\s+(.+?)\s+{AMT}?\s*{AMT}?\s*{AMT}\s*$", re.IGNORECASE)
SLASH = re.compile(rf"^{SLASH_DATE}\s+(.+?)\s+{AMT}?\s*{AMT}?\s*{AMT}\s*$")
SIMPLE = re.compile(rf"^({ANY_DATE})\s+(.+?)\s+{AMT}\s*$", re.IGNORECASE)
DATE_LINE = re.compile(rf"^({ANY_DATE})\s*(.*\d\.\d{{2}}.*)$", re.IGNORECASE)
TAB = re.compile(r"\t")

EMPTY_CELLS = ("", ".", "-", "–")


def resolve_amounts(txn: Transaction, amounts: list) -> Transaction:
    """Assign trailing amounts by count.

    1 = balance only, 2 = amount + balance, 3 = money out / money in /
    balance, more = the last two are amount + balance.
    """
    if len(amounts) == 1:
        txn.balance = amounts[0]
    elif len(amounts) == 3:
        money_out, money_in, balance = amounts
        txn.balance = balance
        if money_out > 0:
            txn.amount = money_out
            txn.type = TransactionType.DEBIT
        else:
            txn.amount = money_in
            txn.type = TransactionType.CREDIT
    else:
        txn.amount, txn.balance = amounts[-2], amounts[-1]
        txn.type = classify_by_keywords(txn.description)
    return txn


def parse_tab_cells(line: str) -> Transaction | None:
    """Build a transaction from tab-separated cells.

    The date must lead the first cell. Amount cells are collected from the
    right, skipping empty cells, until the first non-amount cell.
    """
    cells = line.split("\t")
    date = extract_date(cells[0])
    if not date:
        return None

    amounts = []
    first_amount = len(cells)
    for index in range(len(cells) - 1, 0, -1):
        cell = cells[index].strip()
        if not cell:
            continue
        if not is_amount_cell(cell):
            break
        amounts.insert(0, parse_amount(cell))
        first_amount = index
    if not amounts:
        return None

    head = cells[0][cells[0].index(date) + len(date) :].strip()
    parts = [head] + [cell.strip() for cell in cells[1:first_amount]]
    description = " ".join(part for part in parts if part not in EMPTY_CELLS)
    return resolve_amounts(Transaction(date=date, description=description), amounts)


def _build_tab(match: re.Match, state: ParseState) -> Transaction | None:
    return parse_tab_cells(match.string)


def _build_columns(match: re.Match, state: ParseState) -> Transaction | None:
    date, description, money_out, money_in, balance = match.groups()
    txn = Transaction(date=date, description=description, balance=parse_amount(balance))
    if money_out and money_in:
        txn.amount = parse_amount(money_out)
        txn.type = TransactionType.DEBIT
    elif money_out or money_in:
        txn.amount = parse_amount(money_out or money_in)
        txn.type = classify_by_keywords(description)
    else:
        # A lone amount is a payment without a printed balance
        return None
    return txn


def _build_simple(match: re.Match, state: ParseState) -> Transaction:
    date, description, amount = match.groups()
    return Transaction(
        date=date,
        description=description,
        amount=parse_amount(amount),
        type=classify_by_keywords(description),
    )


def _build_date_line(match: re.Match, state: ParseState) -> Transaction | None:
    date, rest = match.groups()
    first = AMOUNT.search(rest)
    if first is None:
        return None
    description = rest[: first.start()].replace("£", "").strip()
    amounts = [parse_amount(a) for a in AMOUNT.findall(rest[first.start() :])]
    return resolve_amounts(Transaction(date=date, description=description), amounts)


class HSBCParser(BaseStatementParser):
    """Parser refinement for HSBC current account statements.

    HSBC-specific behaviors:
    - Month-name dates, with dash and slash dates accepted as well
    - Tab-separated cells resolved right-to-left
    - A dated line without amounts may be completed by the next line
    - Types are cross-checked against balance movements after parsing
    """

    bank = BankType.HSBC
    bank_name = "HSBC"
    holder_labels = BaseStatementParser.holder_labels + ["Name"]
    infer_from_balances = True
    column_fallback = True
    summaries_before_grammars = False
    footer_keywords = [
        "hsbc uk bank plc",
        "registered in england",
        "financial conduct authority",
        "prudential regulation",
        "authorised by",
    ]

    def grammars(self, text: str) -> list[LineGrammar]:
        return [
            LineGrammar("tab-separated", TAB, _build_tab),
            LineGrammar("hsbc-strict", STRICT, _build_columns),
            LineGrammar("hsbc-flexible", FLEXIBLE, _build_columns),
            LineGrammar("hsbc-dash", DASH, _build_columns),
            LineGrammar("hsbc-slash", SLASH, _build_columns),
            LineGrammar("hsbc-simple", SIMPLE, _build_simple),
            LineGrammar("generic-date-line", DATE_LINE, _build_date_line),
        ]

    def join_with_next(self, line: str, next_line: str, state: ParseState) -> Transaction | None:
        if not next_line or starts_with_date(next_line) or is_summary_line(next_line):
            return None
        if AMOUNT.search(line):
            return None
        txn = parse_tab_cells(f"{line}\t{next_line}")
        if txn is not None:
            txn.parse_method = "tab-separated-joined"
        return txn

    def continuation_text(self, line: str) -> str:
        cells = [cell.strip() for cell in line.split("\t")]
        kept = [cell for cell in cells if cell and not is_amount_cell(cell)]
        return " ".join(kept)
