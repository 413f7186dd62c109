"""Parser factory for routing extracted text to bank grammars.

This module orchestrates the parsing workflow:
1. Resolve an explicit bank hint, or detect the bank with BankDetector
2. Select the registered parser for that bank
3. Parse the page texts and return a StatementInfo
"""

import logging

from statement_converter.core.exceptions import BankDetectionError, UnsupportedBankError
from statement_converter.parsers.base import BaseStatementParser
from statement_converter.parsers.detector import BankDetector
from statement_converter.parsers.refinements import BarclaysParser, HSBCParser, MetroBankParser
from statement_converter.schemas.statement import BankType, StatementInfo

logger = logging.getLogger(__name__)

BANK_ALIASES = {
    "metro": BankType.METRO,
    "metrobank": BankType.METRO,
    "metro bank": BankType.METRO,
    "hsbc": BankType.HSBC,
    "barclays": BankType.BARCLAYS,
}


def resolve_bank(name: str | BankType) -> BankType:
    """Map a user-supplied bank name or alias to a BankType.

    Raises:
        UnsupportedBankError: If the name is not a known bank
    """
    if isinstance(name, BankType):
        return name
    key = " ".join(name.strip().lower().split())
    if key in BANK_ALIASES:
        return BANK_ALIASES[key]
    raise UnsupportedBankError(
        details={"bank": name},
        message=f"Unsupported bank: {name!r}",
    )


class ParserFactory:
    """Factory for parsing extracted statement text.

    Example:
        >>> factory = ParserFactory()
        >>> statement = factory.parse(pages)
        >>> print(f"Bank: {statement.bank.value}")
        >>> print(f"Transactions: {len(statement.transactions)}")
    """

    def __init__(self, detector: BankDetector | None = None):
        """Initialize the parser factory.

        Args:
            detector: Bank detector instance (default: new BankDetector)
        """
        self.detector = detector or BankDetector()

        # Registry of bank parsers
        # Format: {BankType: ParserClass}
        self._refinements: dict[BankType, type[BaseStatementParser]] = {}

    def parse(
        self,
        pages: list[str],
        bank: str | BankType | None = None,
        ocr_text: bool = False,
    ) -> StatementInfo:
        """Parse extracted page texts.

        Args:
            pages: Page texts from the extraction pipeline
            bank: Optional bank name or alias; bypasses detection when given
            ocr_text: The pages came from OCR, so amounts are sanitised first

        Returns:
            StatementInfo with the parsed transactions

        Raises:
            UnsupportedBankError: If the bank hint is unknown
            BankDetectionError: If no hint is given and detection fails
        """
        if bank:
            bank_type = resolve_bank(bank)
            logger.info("Using bank hint: %s", bank_type.value)
        else:
            bank_type = self.detector.detect_from_pages(pages)
            if bank_type is None:
                raise BankDetectionError(
                    details={"pages": len(pages)},
                    message="Could not auto-detect bank from statement; please specify the bank",
                )
            logger.info("Detected bank: %s", bank_type.value)

        parser = self.get_parser(bank_type, sanitize_ocr=ocr_text)
        logger.debug("Using parser: %s", type(parser).__name__)
        return parser.parse(pages)

    def get_parser(self, bank: str | BankType, sanitize_ocr: bool = False) -> BaseStatementParser:
        """Create a fresh parser instance for a bank.

        Raises:
            UnsupportedBankError: If no parser is registered for the bank
        """
        parser_class = self._get_parser_class(resolve_bank(bank))
        return parser_class(sanitize_ocr=sanitize_ocr)

    def register_refinement(self, bank: BankType, parser_class: type[BaseStatementParser]):
        """Register the parser class for a bank.

        Args:
            bank: Bank the parser handles
            parser_class: Parser class (must inherit from BaseStatementParser)
        """
        if not issubclass(parser_class, BaseStatementParser):
            raise ValueError(
                f"Parser class must inherit from BaseStatementParser, got {parser_class}"
            )

        self._refinements[bank] = parser_class

    def unregister_refinement(self, bank: BankType):
        self._refinements.pop(bank, None)

    def get_registered_banks(self) -> list[BankType]:
        return list(self._refinements.keys())

    def _get_parser_class(self, bank: BankType) -> type[BaseStatementParser]:
        if bank in self._refinements:
            return self._refinements[bank]
        raise UnsupportedBankError(
            details={"bank": bank.value},
            message=f"No parser registered for {bank.value}",
        )


# Singleton factory instance for global use
_factory_instance: ParserFactory | None = None


def get_parser_factory() -> ParserFactory:
    """Get or create the global ParserFactory instance.

    Returns:
        Global ParserFactory singleton
    """
    global _factory_instance
    if _factory_instance is None:
        _factory_instance = ParserFactory()
        _factory_instance.register_refinement(BankType.METRO, MetroBankParser)
        _factory_instance.register_refinement(BankType.HSBC, HSBCParser)
        _factory_instance.register_refinement(BankType.BARCLAYS, BarclaysParser)
    return _factory_instance
