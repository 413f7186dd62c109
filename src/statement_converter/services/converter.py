"""Statement conversion service.

Ties extraction and parsing together: PDF bytes in, a StatementInfo plus
the extraction metadata and any warnings out.
"""

import logging
from pathlib import Path

from pydantic import BaseModel, Field

from statement_converter.extraction.pipeline import ExtractionPipeline
from statement_converter.parsers.factory import ParserFactory, get_parser_factory
from statement_converter.schemas.extraction import ExtractionResult
from statement_converter.schemas.statement import BankType, StatementInfo

logger = logging.getLogger(__name__)


class ConversionResult(BaseModel):
    """Outcome of converting one statement."""

    statement: StatementInfo
    extraction: ExtractionResult
    warnings: list[str] = Field(default_factory=list)
    detected_bank: bool = Field(..., description="True when the bank was auto-detected")


class StatementConverter:
    """Converts statement PDFs into structured transactions.

    Example:
        >>> converter = StatementConverter()
        >>> result = converter.convert(pdf_bytes, bank="hsbc")
        >>> print(result.extraction.strategy, len(result.statement.transactions))
    """

    def __init__(
        self,
        pipeline: ExtractionPipeline | None = None,
        factory: ParserFactory | None = None,
    ):
        """Initialize the converter.

        Args:
            pipeline: Extraction pipeline (default: new ExtractionPipeline)
            factory: Parser factory (default: global factory)
        """
        self.pipeline = pipeline or ExtractionPipeline()
        self.factory = factory or get_parser_factory()

    def convert(
        self,
        pdf_bytes: bytes,
        *,
        bank: str | BankType | None = None,
        ocr: bool = False,
        ocr_only: bool = False,
        source_path: str | None = None,
    ) -> ConversionResult:
        """Extract and parse a statement.

        Args:
            pdf_bytes: PDF file content as bytes
            bank: Optional bank hint; detection runs when omitted
            ocr: Allow the OCR tier as a last resort
            ocr_only: Run OCR without trying the text strategies
            source_path: Path of the same file on disk, if available

        Returns:
            ConversionResult

        Raises:
            StatementProcessingError: Any extraction or parsing failure
        """
        extraction = self.pipeline.extract(
            pdf_bytes, source_path=source_path, ocr=ocr, ocr_only=ocr_only
        )
        statement = self.factory.parse(
            extraction.pages, bank=bank, ocr_text=extraction.strategy == "ocr"
        )

        warnings: list[str] = []
        if not extraction.accepted:
            warnings.append(
                f"Text extracted with {extraction.strategy} did not pass the readability "
                f"check (score {extraction.score:.2f}); results may be incomplete"
            )
        if not statement.transactions:
            warnings.append("No transactions found; check the bank selection or try OCR")

        for warning in warnings:
            logger.warning(warning)

        return ConversionResult(
            statement=statement,
            extraction=extraction,
            warnings=warnings,
            detected_bank=not bank,
        )

    def convert_file(self, path: str | Path, **kwargs) -> ConversionResult:
        """Convert a statement PDF read from disk."""
        path = Path(path)
        return self.convert(path.read_bytes(), source_path=str(path), **kwargs)
