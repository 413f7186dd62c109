"""Statement parsing for UK bank statements.

This module turns extracted page text into structured statement data:
- BankDetector identifies the issuing bank
- BaseStatementParser runs the per-page table state machine
- Bank refinements supply the line grammars for each layout
"""

from statement_converter.parsers.base import BaseStatementParser, LineGrammar
from statement_converter.parsers.detector import BankDetector
from statement_converter.parsers.factory import ParserFactory, get_parser_factory, resolve_bank

__all__ = [
    "BankDetector",
    "BaseStatementParser",
    "LineGrammar",
    "ParserFactory",
    "get_parser_factory",
    "resolve_bank",
]
