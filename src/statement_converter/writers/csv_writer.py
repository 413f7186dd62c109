"""CSV output for parsed statements.

The file starts with ``#`` prefixed metadata rows for the fields that
were found, followed by one row per transaction.
"""

import csv
import io
import logging
from decimal import Decimal
from pathlib import Path
from typing import TextIO

from statement_converter.schemas.statement import StatementInfo

logger = logging.getLogger(__name__)

CSV_HEADER = ["Date", "Description", "Type", "Amount", "Balance"]


def format_amount(value: Decimal | None) -> str:
    if value is None:
        return ""
    return f"{value:.2f}"


class CSVWriter:
    """Writes a StatementInfo as CSV.

    Example:
        >>> writer = CSVWriter()
        >>> writer.write_to_file("statement.csv", info)
    """

    def __init__(self, include_header: bool = True):
        """Initialize the writer.

        Args:
            include_header: Write metadata rows and the column header
        """
        self.include_header = include_header

    def metadata_rows(self, info: StatementInfo) -> list[list[str]]:
        fields = [
            ("# Bank", info.bank.value if info.bank else None),
            ("# Account Holder", info.account_holder),
            ("# Account Number", info.account_number),
            ("# Sort Code", info.sort_code),
            ("# Statement Period", info.statement_period),
            ("# Opening Balance", format_amount(info.opening_balance) or None),
        ]
        return [[label, value] for label, value in fields if value]

    def write(self, stream: TextIO, info: StatementInfo) -> int:
        """Write the statement to an open text stream.

        Returns:
            Number of transaction rows written
        """
        writer = csv.writer(stream)
        if self.include_header:
            writer.writerows(self.metadata_rows(info))
            writer.writerow(CSV_HEADER)

        for txn in info.transactions:
            writer.writerow(
                [
                    txn.date,
                    txn.description,
                    txn.type.value,
                    format_amount(txn.amount),
                    format_amount(txn.balance),
                ]
            )
        return len(info.transactions)

    def write_to_file(self, path: str | Path, info: StatementInfo) -> int:
        with open(path, "w", newline="", encoding="utf-8") as handle:
            count = self.write(handle, info)
        logger.info("Wrote %d transaction(s) to %s", count, path)
        return count

    def to_string(self, info: StatementInfo) -> str:
        buffer = io.StringIO()
        self.write(buffer, info)
        return buffer.getvalue()
