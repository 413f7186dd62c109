"""Bank-specific parser refinements.

Each refinement extends BaseStatementParser with the line grammars and
layout hooks of one bank's statements.
"""

from .barclays import BarclaysParser
from .hsbc import HSBCParser
from .metro import MetroBankParser

__all__ = ["MetroBankParser", "HSBCParser", "BarclaysParser"]
