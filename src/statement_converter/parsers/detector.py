"""Bank detection from statement text.

This module identifies which bank issued a statement based on text
patterns found in the extracted pages.
"""

import re

from statement_converter.schemas.statement import BankType


class BankDetector:
    """Detects the issuing bank from statement text.

    The detector searches for bank-specific patterns (names, URLs) in the
    extracted text. Banks are checked in declaration order, so a Metro
    Bank statement that mentions HSBC in a payee name is still detected
    as Metro Bank.

    Supported banks:
        - metro: Metro Bank
        - hsbc: HSBC UK
        - barclays: Barclays

    Example:
        >>> detector = BankDetector()
        >>> bank = detector.detect(full_text)
        >>> if bank is None:
        ...     print("Unknown bank - pass an explicit bank hint")
    """

    # Bank detection patterns (case-insensitive)
    BANK_PATTERNS = {
        BankType.METRO: [
            r"Metro\s+Bank",
            r"metrobankonline",
        ],
        BankType.HSBC: [
            r"HSBC",
            r"hsbc\.co\.uk",
        ],
        BankType.BARCLAYS: [
            r"Barclays",
            r"barclays\.co\.uk",
        ],
    }

    def __init__(self):
        """Initialize the bank detector with compiled regex patterns."""
        self._compiled_patterns: dict[BankType, list[re.Pattern]] = {}
        for bank, patterns in self.BANK_PATTERNS.items():
            self._compiled_patterns[bank] = [
                re.compile(pattern, re.IGNORECASE) for pattern in patterns
            ]

    def detect(self, text: str) -> BankType | None:
        """Detect the bank from statement text.

        Args:
            text: Full text extracted from the PDF

        Returns:
            BankType or None if no pattern matched
        """
        if not text:
            return None

        for bank, patterns in self._compiled_patterns.items():
            if self._matches_bank(text, patterns):
                return bank

        return None

    def detect_from_pages(self, pages: list[str]) -> BankType | None:
        """Detect the bank from extracted page texts."""
        return self.detect("\n".join(pages))

    def _matches_bank(self, text: str, patterns: list[re.Pattern]) -> bool:
        return any(pattern.search(text) for pattern in patterns)

    def get_supported_banks(self) -> list[BankType]:
        return list(self._compiled_patterns.keys())

    def add_pattern(self, bank: BankType, pattern: str) -> None:
        """Add a new detection pattern for a bank.

        This allows extending detection rules at runtime.

        Args:
            bank: Bank the pattern identifies
            pattern: Regex pattern to match
        """
        if bank not in self._compiled_patterns:
            self._compiled_patterns[bank] = []

        self._compiled_patterns[bank].append(re.compile(pattern, re.IGNORECASE))
