"""Multi-strategy text extraction pipeline.

This module orchestrates the extraction workflow:
1. Structured libraries (pdfplumber rows, pypdf coordinates, pypdf page
   text, PyMuPDF document text)
2. Raw content-stream decoding with ToUnicode CMaps
3. The external ``pdftotext`` tool
4. OCR, only when the caller asks for it

The first strategy whose output passes the readability predicate wins.
When none does, the best-scoring output above a relaxed floor is used.
"""

import logging
import os
import tempfile
from collections.abc import Callable

from statement_converter.config import Settings, get_settings
from statement_converter.core.exceptions import (
    ExternalToolUnavailable,
    PDFStructureError,
    UnreadableTextError,
)
from statement_converter.extraction.external import (
    ToolAvailability,
    extract_with_pdftotext,
    get_tool_availability,
)
from statement_converter.extraction.ocr import extract_with_ocr
from statement_converter.extraction.raw import extract_raw
from statement_converter.extraction.readability import is_readable, text_quality
from statement_converter.extraction.structured import (
    extract_coordinates,
    extract_document_text,
    extract_page_text,
    extract_rows,
)
from statement_converter.schemas.extraction import ExtractionResult, StrategyAttempt

logger = logging.getLogger(__name__)

PDF_MAGIC_BYTES = b"%PDF"

# Header may be preceded by junk bytes in files from some banking portals
HEADER_SEARCH_WINDOW = 1024


class ExtractionContext:
    """Input of one extraction run.

    Tools that need a file on disk get a temporary copy of the bytes,
    written on first access and removed when the context closes.
    """

    def __init__(self, pdf_bytes: bytes, source_path: str | None = None):
        self.pdf_bytes = pdf_bytes
        self.source_path = source_path
        self._temp_path: str | None = None

    @property
    def path(self) -> str:
        if self.source_path:
            return self.source_path
        if self._temp_path is None:
            with tempfile.NamedTemporaryFile(
                prefix="statement-", suffix=".pdf", delete=False
            ) as handle:
                handle.write(self.pdf_bytes)
                self._temp_path = handle.name
        return self._temp_path

    def close(self) -> None:
        if self._temp_path and os.path.exists(self._temp_path):
            os.unlink(self._temp_path)
        self._temp_path = None

    def __enter__(self) -> "ExtractionContext":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


Strategy = Callable[[ExtractionContext], list[str] | None]


class ExtractionPipeline:
    """Ordered-fallback text extraction.

    Example:
        >>> pipeline = ExtractionPipeline()
        >>> result = pipeline.extract(pdf_bytes)
        >>> print(result.strategy, len(result.pages))
    """

    def __init__(
        self,
        tools: ToolAvailability | None = None,
        settings: Settings | None = None,
        strategies: list[tuple[str, Strategy]] | None = None,
    ):
        """Initialize the pipeline.

        Args:
            tools: External tool availability (default: probed once per process)
            settings: Converter settings (default: global settings)
            strategies: Override the default strategy order (mainly for tests)
        """
        self.settings = settings or get_settings()
        self.tools = tools or get_tool_availability()
        self._strategies = strategies

    def build_strategies(self, ocr: bool = False, ocr_only: bool = False) -> list[tuple[str, Strategy]]:
        """Return the ordered ``(name, strategy)`` list for one run."""
        if ocr_only:
            return [("ocr", self._ocr)]

        strategies: list[tuple[str, Strategy]] = list(self._strategies or [
            ("structured:rows", self._rows),
            ("structured:coordinates", self._coordinates),
            ("structured:page", self._page),
            ("structured:document", self._document),
            ("raw", self._raw),
            ("pdftotext", self._pdftotext),
        ])
        if ocr:
            strategies.append(("ocr", self._ocr))
        return strategies

    def extract(
        self,
        pdf_bytes: bytes,
        *,
        source_path: str | None = None,
        ocr: bool = False,
        ocr_only: bool = False,
    ) -> ExtractionResult:
        """Extract readable page text from a PDF.

        Args:
            pdf_bytes: PDF file content as bytes
            source_path: Path of the same file on disk, if the caller has one
            ocr: Append the OCR tier to the cascade
            ocr_only: Skip the cascade and run OCR directly

        Returns:
            ExtractionResult with the winning strategy's pages

        Raises:
            PDFStructureError: If the input is not a PDF or cannot be opened
            UnreadableTextError: If no strategy produced usable text
        """
        if not pdf_bytes or PDF_MAGIC_BYTES not in pdf_bytes[:HEADER_SEARCH_WINDOW]:
            raise PDFStructureError(
                details={"size": len(pdf_bytes or b"")},
                message="Input is not a PDF document",
            )

        attempts: list[StrategyAttempt] = []
        with ExtractionContext(pdf_bytes, source_path) as ctx:
            for name, strategy in self.build_strategies(ocr=ocr, ocr_only=ocr_only):
                attempt = self._run(name, strategy, ctx)
                attempts.append(attempt)
                if attempt.has_text and self._acceptable(attempt.pages):
                    logger.info(
                        "Extracted %d page(s) with %s (score %.2f)",
                        len(attempt.pages),
                        name,
                        attempt.score,
                    )
                    return ExtractionResult(
                        pages=attempt.pages, strategy=name, score=attempt.score
                    )
                logger.debug(
                    "Strategy %s rejected (score %.2f, has_text=%s)",
                    name,
                    attempt.score,
                    attempt.has_text,
                )

        return self._best_effort(attempts)

    def _acceptable(self, pages: list[str]) -> bool:
        return is_readable(
            pages,
            min_chars=self.settings.min_text_chars,
            min_quality=self.settings.min_readability,
            require_terms=self.settings.require_statement_terms,
        )

    def _run(self, name: str, strategy: Strategy, ctx: ExtractionContext) -> StrategyAttempt:
        attempt = StrategyAttempt(name=name)
        try:
            pages = strategy(ctx) or []
        except ExternalToolUnavailable as e:
            logger.info("Strategy %s not applicable: %s", name, e)
            attempt.error = e
            return attempt
        except UnreadableTextError as e:
            logger.info("Strategy %s found no text", name)
            attempt.error = e
            return attempt
        except Exception as e:
            # Third-party PDF libraries raise a wide variety of errors on bad input
            logger.warning("Strategy %s failed: %s: %s", name, type(e).__name__, e)
            attempt.error = PDFStructureError(
                details={"strategy": name, "error": str(e)},
                message=f"{name} could not read the document",
            )
            return attempt

        attempt.pages = [page.strip() for page in pages if page and page.strip()]
        attempt.score = text_quality(attempt.pages)
        return attempt

    def _best_effort(self, attempts: list[StrategyAttempt]) -> ExtractionResult:
        floor = self.settings.relaxed_readability_floor
        candidates = [a for a in attempts if a.has_text and a.score >= floor]
        if candidates:
            best = max(candidates, key=lambda a: a.score)
            logger.warning(
                "No strategy passed the readability check; using best effort from %s (score %.2f)",
                best.name,
                best.score,
            )
            return ExtractionResult(
                pages=best.pages, strategy=best.name, score=best.score, accepted=False
            )

        tried = {a.name: (type(a.error).__name__ if a.error else round(a.score, 2)) for a in attempts}
        if any(a.has_text for a in attempts):
            raise UnreadableTextError(
                error_code="EXTRACT_001",
                details={"attempts": tried},
                message=(
                    "Could not extract readable text: the PDF uses a custom font "
                    "encoding. Try OCR mode or copy and paste the text."
                ),
            )

        structured = [a for a in attempts if a.name.startswith("structured:")]
        if structured and all(isinstance(a.error, PDFStructureError) for a in structured):
            raise PDFStructureError(
                details={"attempts": tried},
                message="The PDF could not be opened by any PDF library",
            )

        raise UnreadableTextError(
            error_code="EXTRACT_002",
            details={"attempts": tried},
            message=(
                "Could not extract any text: the PDF appears to be image-based "
                "or scanned. Try OCR mode."
            ),
        )

    # Strategy adapters

    def _rows(self, ctx: ExtractionContext) -> list[str]:
        return extract_rows(ctx.pdf_bytes)

    def _coordinates(self, ctx: ExtractionContext) -> list[str]:
        return extract_coordinates(ctx.pdf_bytes, column_gap=self.settings.column_gap)

    def _page(self, ctx: ExtractionContext) -> list[str]:
        return extract_page_text(ctx.pdf_bytes)

    def _document(self, ctx: ExtractionContext) -> list[str]:
        return extract_document_text(ctx.pdf_bytes)

    def _raw(self, ctx: ExtractionContext) -> list[str]:
        return extract_raw(ctx.pdf_bytes)

    def _pdftotext(self, ctx: ExtractionContext) -> list[str]:
        if not self.tools.pdftotext:
            raise ExternalToolUnavailable(details={"tool": "pdftotext"})
        return extract_with_pdftotext(
            ctx.path,
            tools=self.tools,
            timeout=self.settings.external_tool_timeout_seconds,
        )

    def _ocr(self, ctx: ExtractionContext) -> list[str]:
        return extract_with_ocr(
            ctx.path,
            tools=self.tools,
            dpi=self.settings.ocr_dpi,
            language=self.settings.ocr_language,
            psm=self.settings.ocr_psm,
        )
