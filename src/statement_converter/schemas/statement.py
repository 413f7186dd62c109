"""Data schemas for parsed statement data.

These models are the output of the parsing engine and the input of the
CSV writer and the API layer. A StatementInfo is owned by exactly one
parse invocation and is only mutated while that parse runs.
"""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BankType(str, Enum):
    """Supported statement layouts."""

    METRO = "metro"
    HSBC = "hsbc"
    BARCLAYS = "barclays"


class TransactionType(str, Enum):
    """Direction of money movement. The sign never lives in the amount."""

    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class Transaction(BaseModel):
    """Represents a single transaction extracted from a statement.

    The date is kept in its raw textual form because every bank prints it
    differently (``15/01/2024``, ``15 Jan 24``, ``4 Dec``).
    """

    model_config = ConfigDict(validate_assignment=True)

    date: str = Field(..., description="Transaction date as printed")
    description: str = Field(default="", description="Free text, multi-line joined")
    type: TransactionType = Field(default=TransactionType.DEBIT, description="DEBIT or CREDIT")
    amount: Decimal = Field(default=Decimal("0"), description="Non-negative amount")
    balance: Decimal | None = Field(None, description="Running balance (None when not printed)")
    parse_method: str | None = Field(None, description="Grammar that matched (debug)")

    @field_validator("amount")
    @classmethod
    def amount_not_negative(cls, v: Decimal) -> Decimal:
        """Ensure the amount never carries the sign."""
        if v < 0:
            raise ValueError("Amount must be non-negative; use the transaction type for direction")
        return v

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: str) -> str:
        return v.strip()


class DebugLine(BaseModel):
    """Captures what the parser did with a single input line."""

    line_num: int
    text: str
    has_date: bool = False
    has_tab: bool = False
    tab_parts: int = 0
    result: str = Field(..., description="header, parsed, continuation, skipped, unmatched, ...")
    method: str | None = None


class StatementInfo(BaseModel):
    """Represents a complete parsed bank statement."""

    bank: BankType
    account_holder: str | None = None
    account_number: str | None = None
    sort_code: str | None = None
    statement_period: str | None = None
    opening_balance: Decimal | None = None
    transactions: list[Transaction] = Field(default_factory=list)
    debug_lines: list[DebugLine] = Field(default_factory=list)

    @property
    def total_debits(self) -> Decimal:
        return sum(
            (t.amount for t in self.transactions if t.type == TransactionType.DEBIT),
            Decimal("0"),
        )

    @property
    def total_credits(self) -> Decimal:
        return sum(
            (t.amount for t in self.transactions if t.type == TransactionType.CREDIT),
            Decimal("0"),
        )
