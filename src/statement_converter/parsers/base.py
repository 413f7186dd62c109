"""Line-oriented statement parsing framework.

This module provides the BaseStatementParser class which runs the
per-page table state machine shared by every bank. Bank parsers inherit
from it and supply an ordered list of LineGrammar entries plus a few
hooks for layout quirks (footers, look-ahead joins, date inheritance).
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from statement_converter.config import get_settings
from statement_converter.parsers.utils import (
    AMOUNT,
    contains_transaction_header,
    extract_date,
    extract_name_near_label,
    extract_opening_balance,
    extract_period,
    find_account_number,
    find_sort_code,
    is_amount_cell,
    is_credit_description,
    is_debit_description,
    is_page_marker,
    is_statement_summary,
    is_summary_line,
    normalize_line,
    parse_amount,
    sanitize_ocr_amounts,
    starts_with_date,
    strip_leading_noise,
)
from statement_converter.schemas.statement import (
    BankType,
    DebugLine,
    StatementInfo,
    Transaction,
    TransactionType,
)

logger = logging.getLogger(__name__)

DEBUG_TEXT_LIMIT = 120

# Difference under which two balances are considered equal
BALANCE_TOLERANCE = Decimal("0.015")


class TableState(str, Enum):
    """Where the parser is relative to the transaction table on a page."""

    BEFORE_TABLE = "before_table"
    IN_TABLE = "in_table"


@dataclass
class ParseState:
    """Mutable state of a single parse invocation."""

    info: StatementInfo
    last_balance: Decimal | None = None
    current_date: str = ""
    page_start: int = 0

    @property
    def transactions(self) -> list[Transaction]:
        return self.info.transactions

    @property
    def page_transactions(self) -> list[Transaction]:
        return self.info.transactions[self.page_start :]

    def add(self, txn: Transaction) -> None:
        self.info.transactions.append(txn)
        if txn.balance is not None:
            self.last_balance = txn.balance


@dataclass(frozen=True)
class LineGrammar:
    """A named line pattern and the function that builds a transaction from it.

    ``build`` may return None to reject a match, in which case the next
    grammar is tried.
    """

    name: str
    pattern: re.Pattern
    build: Callable[[re.Match, ParseState], Transaction | None]

    def apply(self, line: str, state: ParseState) -> Transaction | None:
        match = self.pattern.search(line)
        if match is None:
            return None
        txn = self.build(match, state)
        if txn is not None:
            txn.parse_method = self.name
        return txn


def classify_by_keywords(description: str) -> TransactionType:
    """Guess the direction of a single ambiguous amount from its description.

    Credit keywords are checked first because "payment" is a broad debit
    keyword that also appears in "Faster Payment" and "Inward Payment".
    """
    if is_credit_description(description):
        return TransactionType.CREDIT
    if is_debit_description(description):
        return TransactionType.DEBIT
    return TransactionType.CREDIT


def classify_by_balance(
    amount: Decimal,
    balance: Decimal,
    previous: Decimal | None,
    description: str,
) -> TransactionType:
    """Decide DEBIT or CREDIT from ``previous -/+ amount == balance``.

    Falls back to keywords when there is no previous balance or neither
    equation holds.
    """
    if previous is not None:
        debit_diff = abs((previous - amount) - balance)
        credit_diff = abs((previous + amount) - balance)
        debit_ok = debit_diff < BALANCE_TOLERANCE
        credit_ok = credit_diff < BALANCE_TOLERANCE
        if debit_ok and not credit_ok:
            return TransactionType.DEBIT
        if credit_ok and not debit_ok:
            return TransactionType.CREDIT
        if debit_ok and credit_ok:
            return TransactionType.DEBIT if debit_diff <= credit_diff else TransactionType.CREDIT
    return classify_by_keywords(description)


def apply_balance_deltas(
    transactions: list[Transaction],
    opening_balance: Decimal | None = None,
    *,
    precedence: bool = True,
) -> None:
    """Cross-check transaction types against the running balance.

    Each transaction's balance is compared with the previous transaction's
    balance (the opening balance for the first one). A decrease means
    DEBIT and an increase means CREDIT. A missing amount is filled in
    with the absolute difference. When ``precedence`` is False, types
    already set from keywords are kept and only missing amounts are
    filled.
    """
    previous = opening_balance
    for txn in transactions:
        if previous is not None and txn.balance is not None:
            delta = txn.balance - previous
            if delta:
                inferred = TransactionType.DEBIT if delta < 0 else TransactionType.CREDIT
                if txn.amount == 0:
                    txn.amount = abs(delta)
                    txn.type = inferred
                elif precedence:
                    txn.type = inferred
        previous = txn.balance


def parse_column_layout(
    lines: list[str],
    state: ParseState,
    is_footer: Callable[[str], bool] = lambda line: False,
) -> list[Transaction]:
    """Re-associate a table extracted as separate column blocks.

    Some extractors emit a statement table as three blocks: the date and
    description lines, then a "Money out" block with one amount per line,
    then a "Money in / Balance" block with one or two amounts per line.
    Balance entries map one-to-one onto descriptions; a description with a
    money-in amount is a credit, otherwise it consumes the next money-out
    amount as a debit.

    Returns an empty list when the page turns out to carry inline amounts.
    """
    descriptions: list[list[str]] = []
    money_out: list[Decimal] = []
    balances: list[tuple[Decimal, Decimal | None]] = []
    section = "scan"

    for raw_line in lines:
        line = normalize_line(raw_line)
        if not line:
            continue
        lower = line.lower()

        opening = extract_opening_balance(line)
        if opening is not None:
            if state.info.opening_balance is None:
                state.info.opening_balance = opening
            state.last_balance = opening
            continue

        if "money out" in lower and "total money out" not in lower:
            section = "money_out"
            continue
        if "money in" in lower and "total money in" not in lower:
            section = "money_in_balance"
            continue
        if contains_transaction_header(line) or lower in ("date transaction", "date transaction type"):
            section = "descriptions"
            continue
        if is_summary_line(line) or is_footer(line):
            continue

        if section == "scan":
            if not starts_with_date(line):
                continue
            section = "descriptions"

        if section == "descriptions":
            match_line = strip_leading_noise(line)
            date = extract_date(match_line)
            if date:
                rest = match_line[match_line.index(date) + len(date) :].strip()
                if AMOUNT.search(rest) and re.search(r"\d\.\d{2}\s*$", rest):
                    return []
                descriptions.append([date, rest])
            elif descriptions:
                cleaned = line.lstrip("'*\"").strip()
                if cleaned:
                    descriptions[-1][1] = f"{descriptions[-1][1]} {cleaned}".strip()

        elif section == "money_out":
            try:
                amount = parse_amount(line)
            except ValueError:
                amount = None
            if amount is not None and amount > 0:
                money_out.append(amount)
            elif "money" not in lower:
                # Placeholder keeps the remaining amounts aligned
                money_out.append(Decimal("0"))

        elif section == "money_in_balance":
            amounts = [parse_amount(a) for a in AMOUNT.findall(line)]
            if len(amounts) >= 2:
                balances.append((amounts[0], amounts[-1]))
            elif len(amounts) == 1:
                balances.append((Decimal("0"), amounts[0]))
            elif "money" not in lower and "balance" not in lower:
                balances.append((Decimal("0"), None))

    transactions: list[Transaction] = []
    out_index = 0
    for index, (date, description) in enumerate(descriptions):
        txn = Transaction(date=date, description=description, parse_method="column-layout")
        if index < len(balances):
            money_in, balance = balances[index]
            txn.balance = balance
            if money_in > 0:
                txn.amount = money_in
                txn.type = TransactionType.CREDIT
            else:
                if out_index < len(money_out):
                    txn.amount = money_out[out_index]
                    out_index += 1
                txn.type = TransactionType.DEBIT
        else:
            txn.type = (
                TransactionType.CREDIT
                if is_credit_description(txn.description)
                else TransactionType.DEBIT
            )
        transactions.append(txn)
    return transactions


class BaseStatementParser:
    """Runs the per-page table state machine for one bank's layout.

    Subclasses set ``bank`` and implement ``grammars()``. The other hooks
    have defaults that suit most statements.

    Example:
        >>> parser = HSBCParser()
        >>> info = parser.parse(pages)
        >>> print(len(info.transactions), info.opening_balance)
    """

    bank: BankType
    bank_name: str = ""
    holder_labels: list[str] = ["Account holder", "Account name", "Mr ", "Mrs ", "Ms "]
    footer_keywords: list[str] = []
    infer_from_balances: bool = False
    column_fallback: bool = False
    # When False, page markers only stop lines that no grammar accepts
    summaries_before_grammars: bool = True

    def __init__(
        self,
        *,
        sanitize_ocr: bool = False,
        balance_delta_precedence: bool | None = None,
    ):
        """Initialize the parser.

        Args:
            sanitize_ocr: Repair OCR-mangled amounts before matching
            balance_delta_precedence: Let the balance cross-check override
                keyword classification (default: from settings)
        """
        self.sanitize_ocr = sanitize_ocr
        if balance_delta_precedence is None:
            balance_delta_precedence = get_settings().balance_delta_precedence
        self.balance_delta_precedence = balance_delta_precedence

    def grammars(self, text: str) -> list[LineGrammar]:
        """Return the ordered grammars for a document, most specific first."""
        raise NotImplementedError

    def parse(self, pages: list[str]) -> StatementInfo:
        """Parse extracted page texts into a StatementInfo.

        Args:
            pages: One string per page, lines separated by newlines

        Returns:
            StatementInfo with metadata, transactions and debug lines
        """
        info = StatementInfo(bank=self.bank)
        text = "\n".join(pages)
        self.extract_metadata(info, text)

        state = ParseState(info=info)
        grammars = self.grammars(text)

        for page_number, page in enumerate(pages, start=1):
            lines = page.split("\n")
            if self.sanitize_ocr:
                lines = [sanitize_ocr_amounts(line) for line in lines]

            state.page_start = len(info.transactions)
            self.parse_page(lines, grammars, state)

            if self.column_fallback and len(info.transactions) == state.page_start:
                for txn in parse_column_layout(lines, state, self.is_footer):
                    state.add(txn)
                added = len(info.transactions) - state.page_start
                if added:
                    logger.debug("Page %d parsed as column layout (%d rows)", page_number, added)

        if self.infer_from_balances:
            apply_balance_deltas(
                info.transactions,
                info.opening_balance,
                precedence=self.balance_delta_precedence,
            )

        logger.info(
            "Parsed %d transaction(s) from %d page(s) as %s",
            len(info.transactions),
            len(pages),
            self.bank.value,
        )
        return info

    def parse_page(self, lines: list[str], grammars: list[LineGrammar], state: ParseState) -> None:
        """Run the BEFORE_TABLE / IN_TABLE state machine over one page."""
        info = state.info
        table = TableState.BEFORE_TABLE
        i = 0
        while i < len(lines):
            line = normalize_line(lines[i])
            i += 1
            if not line:
                continue

            has_date = self.line_has_date(line)
            debug = DebugLine(
                line_num=i,
                text=_truncate(line),
                has_date=has_date,
                has_tab="\t" in line,
                tab_parts=len(line.split("\t")) if "\t" in line else 0,
                result="unmatched",
            )
            info.debug_lines.append(debug)
            self.observe_line(line, state)

            opening = self.opening_balance_from(line)
            if opening is not None:
                if info.opening_balance is None:
                    info.opening_balance = opening
                state.last_balance = opening
                if has_date:
                    table = TableState.IN_TABLE
                debug.result = "opening-balance"
                continue

            if not has_date and self.is_header(line):
                table = TableState.IN_TABLE
                debug.result = "header"
                continue

            if table is TableState.BEFORE_TABLE and not has_date:
                debug.result = "skipped-pre-section"
                continue
            table = TableState.IN_TABLE

            if self.is_skippable(line):
                debug.result = "skipped"
                continue

            if self.is_fx_detail(line):
                if state.page_transactions:
                    self._extend_description(state, self.continuation_text(line))
                    debug.result = "continuation"
                else:
                    debug.result = "skipped"
                continue

            match_line = strip_leading_noise(line)
            txn = self._match_grammars(match_line, grammars, state)
            if txn is not None:
                state.add(txn)
                debug.result = "parsed"
                debug.method = txn.parse_method
                continue

            if is_summary_line(line):
                debug.result = "skipped"
                continue

            if has_date and i < len(lines):
                next_line = normalize_line(lines[i])
                joined = self.join_with_next(line, next_line, state)
                if joined is not None:
                    state.add(joined)
                    debug.result = "parsed"
                    debug.method = joined.parse_method
                    debug.text = f"{debug.text} ⊕ {next_line}"
                    i += 1
                    continue

            if self.is_continuation(line, has_date) and state.page_transactions:
                self._extend_description(state, self.continuation_text(line))
                debug.result = "continuation"
                continue

            debug.result = "unmatched"

    def _match_grammars(
        self, line: str, grammars: list[LineGrammar], state: ParseState
    ) -> Transaction | None:
        for grammar in grammars:
            try:
                txn = grammar.apply(line, state)
            except ValueError as e:
                # Malformed amount inside an otherwise matching line
                logger.debug("Grammar %s rejected line: %s", grammar.name, e)
                continue
            if txn is not None:
                return txn
        return None

    def _extend_description(self, state: ParseState, text: str) -> None:
        if not text:
            return
        last = state.transactions[-1]
        last.description = f"{last.description} {text}"

    # Hooks

    def extract_metadata(self, info: StatementInfo, text: str) -> None:
        info.account_number = find_account_number(text)
        info.sort_code = find_sort_code(text)
        info.account_holder = self.extract_holder(text)
        info.statement_period = extract_period(text)

    def extract_holder(self, text: str) -> str | None:
        return extract_name_near_label(text, self.holder_labels)

    def line_has_date(self, line: str) -> bool:
        return starts_with_date(line)

    def observe_line(self, line: str, state: ParseState) -> None:
        """Called for every non-empty line before classification."""

    def opening_balance_from(self, line: str) -> Decimal | None:
        return extract_opening_balance(line)

    def is_header(self, line: str) -> bool:
        return contains_transaction_header(line)

    def is_footer(self, line: str) -> bool:
        lower = line.lower()
        return any(keyword in lower for keyword in self.footer_keywords)

    def is_skippable(self, line: str) -> bool:
        """Check whether a line is dropped before any grammar sees it."""
        if self.is_footer(line) or is_statement_summary(line):
            return True
        return self.summaries_before_grammars and is_page_marker(line)

    def is_fx_detail(self, line: str) -> bool:
        return False

    def join_with_next(self, line: str, next_line: str, state: ParseState) -> Transaction | None:
        """Retry a dated line without amounts together with the next line."""
        return None

    def is_continuation(self, line: str, has_date: bool) -> bool:
        if has_date:
            return False
        text = self.continuation_text(line)
        if not text:
            return False
        return not all(is_amount_cell(token) for token in text.split())

    def continuation_text(self, line: str) -> str:
        return line.replace("\t", " ").strip()


def _truncate(text: str) -> str:
    if len(text) > DEBUG_TEXT_LIMIT:
        return text[:DEBUG_TEXT_LIMIT] + "..."
    return text
