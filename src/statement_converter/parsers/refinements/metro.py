"""Metro Bank parser refinement.

Metro statements print ``Date  Description  Money out  Money in  Balance``
rows with slash dates. Some extractors return the table as separate
column blocks; those pages go through the column-layout fallback.
"""

import re

from statement_converter.parsers.base import (
    BaseStatementParser,
    LineGrammar,
    ParseState,
    classify_by_balance,
    classify_by_keywords,
)
from statement_converter.parsers.utils import MONTHS, parse_amount
from statement_converter.schemas.statement import BankType, Transaction, TransactionType

AMT = r"([\d,]+\.\d{2})"
SLASH_DATE = r"(\d{1,2}/\d{1,2}/\d{2,4})"
TEXT_DATE = rf"(\d{{1,2}}\s+{MONTHS}[a-z]*\s+\d{{2,4}})"

FULL_SLASH = re.compile(rf"^{SLASH_DATE}\s+(.+?)\s+{AMT}?\s*{AMT}?\s+{AMT}\s*$")
FULL_TEXT = re.compile(rf"^{TEXT_DATE}\s+(.+?)\s+{AMT}?\s*{AMT}?\s+{AMT}\s*$", re.IGNORECASE)
SIMPLE_SLASH = re.compile(rf"^{SLASH_DATE}\s+(.+?)\s+{AMT}\s*$")
SIMPLE_TEXT = re.compile(rf"^{TEXT_DATE}\s+(.+?)\s+{AMT}\s*$", re.IGNORECASE)


def _build_full(match: re.Match, state: ParseState) -> Transaction | None:
    date, description, money_out, money_in, balance = match.groups()
    txn = Transaction(date=date, description=description, balance=parse_amount(balance))

    if money_out and money_in:
        txn.amount = parse_amount(money_out)
        txn.type = TransactionType.DEBIT
    elif money_out:
        # One amount before the balance: the column it sat in is lost
        txn.amount = parse_amount(money_out)
        txn.type = classify_by_balance(txn.amount, txn.balance, state.last_balance, description)
    elif money_in:
        txn.amount = parse_amount(money_in)
        txn.type = TransactionType.CREDIT
    else:
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


class MetroBankParser(BaseStatementParser):
    """Parser refinement for Metro Bank current account statements.

    Metro-specific behaviors:
    - Slash dates, with month-name dates accepted as well
    - A single amount before the balance is classified by balance arithmetic
    - Column-block pages are re-associated positionally
    """

    bank = BankType.METRO
    bank_name = "Metro Bank"
    column_fallback = True
    summaries_before_grammars = False
    footer_keywords = [
        "registered in england",
        "registered in wales",
        "financial conduct authority",
        "prudential regulation",
        "metro bank plc",
        "metrobankonline",
        "please check",
        "if you find",
        "authorised by",
        "one southampton row",
    ]

    def grammars(self, text: str) -> list[LineGrammar]:
        return [
            LineGrammar("metro-full-slash", FULL_SLASH, _build_full),
            LineGrammar("metro-full-text", FULL_TEXT, _build_full),
            LineGrammar("metro-simple-slash", SIMPLE_SLASH, _build_simple),
            LineGrammar("metro-simple-text", SIMPLE_TEXT, _build_simple),
        ]
