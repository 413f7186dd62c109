"""Tests for the extraction pipeline."""

import os
from unittest.mock import patch

import pytest

from statement_converter.config import Settings
from statement_converter.core.exceptions import PDFStructureError, UnreadableTextError
from statement_converter.extraction.external import ToolAvailability
from statement_converter.extraction.pipeline import ExtractionContext, ExtractionPipeline

PIPELINE = "statement_converter.extraction.pipeline"

PDF_BYTES = b"%PDF-1.4 test document"

GOOD_TEXT = (
    "HSBC Statement of account\n"
    "Date Payment type and details Paid out Paid in Balance\n"
    "17 Jan 24 CREDIT SALARY EMPLOYER LTD 2,500.00 3,689.56"
)
GARBAGE = "Ã¾Ã¿\x00\x01\x02" * 30
# Half readable: above the relaxed floor, below the strict threshold
HALF_READABLE = "balance " * 8 + "Ã" * 64


def make_pipeline(**kwargs) -> ExtractionPipeline:
    kwargs.setdefault("tools", ToolAvailability())
    kwargs.setdefault("settings", Settings())
    return ExtractionPipeline(**kwargs)


def patch_structured(rows=None, coordinates=None, page=None, document=None, raw=None):
    """Patch every in-process strategy with canned output."""
    return [
        patch(f"{PIPELINE}.extract_rows", return_value=rows or []),
        patch(f"{PIPELINE}.extract_coordinates", return_value=coordinates or []),
        patch(f"{PIPELINE}.extract_page_text", return_value=page or []),
        patch(f"{PIPELINE}.extract_document_text", return_value=document or []),
        patch(f"{PIPELINE}.extract_raw", return_value=raw or []),
    ]


class TestExtractionPipeline:
    """Test suite for ExtractionPipeline."""

    def test_rejects_non_pdf(self):
        pipeline = make_pipeline()
        with pytest.raises(PDFStructureError):
            pipeline.extract(b"hello world")

    def test_rejects_empty_input(self):
        pipeline = make_pipeline()
        with pytest.raises(PDFStructureError):
            pipeline.extract(b"")

    def test_header_after_leading_junk_accepted(self):
        pipeline = make_pipeline(strategies=[("only", lambda ctx: [GOOD_TEXT])])
        result = pipeline.extract(b"\x00\x00junk" + PDF_BYTES)
        assert result.strategy == "only"

    def test_first_acceptable_strategy_wins(self):
        calls = []

        def first(ctx):
            calls.append("first")
            return [GARBAGE]

        def second(ctx):
            calls.append("second")
            return [GOOD_TEXT]

        def third(ctx):
            calls.append("third")
            return [GOOD_TEXT]

        pipeline = make_pipeline(
            strategies=[("first", first), ("second", second), ("third", third)]
        )
        result = pipeline.extract(PDF_BYTES)

        assert result.strategy == "second"
        assert result.accepted is True
        assert result.pages == [GOOD_TEXT]
        assert calls == ["first", "second"]

    def test_external_tool_rescues_unreadable_document(self):
        """In-process strategies produce garbage but pdftotext reads the text."""
        tools = ToolAvailability(pdftotext=True)
        patches = patch_structured(
            rows=[GARBAGE], coordinates=[GARBAGE], page=[GARBAGE], document=[GARBAGE], raw=[GARBAGE]
        )
        for p in patches:
            p.start()
        try:
            with patch(f"{PIPELINE}.extract_with_pdftotext", return_value=[GOOD_TEXT]) as mock_tool:
                result = make_pipeline(tools=tools).extract(PDF_BYTES)
        finally:
            for p in patches:
                p.stop()

        assert result.strategy == "pdftotext"
        assert result.accepted is True
        assert result.pages == [GOOD_TEXT]
        mock_tool.assert_called_once()

    def test_best_effort_when_nothing_passes(self):
        pipeline = make_pipeline(
            strategies=[("junk", lambda ctx: [GARBAGE]), ("half", lambda ctx: [HALF_READABLE])]
        )
        result = pipeline.extract(PDF_BYTES)

        assert result.strategy == "half"
        assert result.accepted is False
        assert 0.3 <= result.score < 0.6

    def test_unreadable_text(self):
        pipeline = make_pipeline(strategies=[("junk", lambda ctx: [GARBAGE])])
        with pytest.raises(UnreadableTextError) as exc_info:
            pipeline.extract(PDF_BYTES)
        assert exc_info.value.error_code == "EXTRACT_001"
        assert not exc_info.value.likely_scanned

    def test_no_text_at_all_is_likely_scanned(self):
        patches = patch_structured()
        for p in patches:
            p.start()
        try:
            with pytest.raises(UnreadableTextError) as exc_info:
                make_pipeline().extract(PDF_BYTES)
        finally:
            for p in patches:
                p.stop()
        assert exc_info.value.error_code == "EXTRACT_002"
        assert exc_info.value.likely_scanned

    def test_structural_error_when_no_library_can_open_it(self):
        failure = RuntimeError("broken xref")
        with patch(f"{PIPELINE}.extract_rows", side_effect=failure), patch(
            f"{PIPELINE}.extract_coordinates", side_effect=failure
        ), patch(f"{PIPELINE}.extract_page_text", side_effect=failure), patch(
            f"{PIPELINE}.extract_document_text", side_effect=failure
        ), patch(f"{PIPELINE}.extract_raw", return_value=[]):
            with pytest.raises(PDFStructureError):
                make_pipeline().extract(PDF_BYTES)

    def test_library_crash_does_not_stop_cascade(self):
        def crash(ctx):
            raise ValueError("bad font")

        pipeline = make_pipeline(strategies=[("crash", crash), ("good", lambda ctx: [GOOD_TEXT])])
        assert pipeline.extract(PDF_BYTES).strategy == "good"

    def test_pages_are_trimmed_and_blank_pages_dropped(self):
        pipeline = make_pipeline(strategies=[("s", lambda ctx: ["  ", f"\n{GOOD_TEXT}\n", ""])])
        assert pipeline.extract(PDF_BYTES).pages == [GOOD_TEXT]

    def test_ocr_tier_runs_only_when_requested(self):
        patches = patch_structured()
        for p in patches:
            p.start()
        try:
            with patch(f"{PIPELINE}.extract_with_ocr", return_value=[GOOD_TEXT]) as mock_ocr:
                with pytest.raises(UnreadableTextError):
                    make_pipeline().extract(PDF_BYTES)
                mock_ocr.assert_not_called()

                result = make_pipeline().extract(PDF_BYTES, ocr=True)
        finally:
            for p in patches:
                p.stop()

        assert result.strategy == "ocr"
        mock_ocr.assert_called_once()


class TestBuildStrategies:
    """Test suite for strategy ordering."""

    def test_default_order(self):
        names = [name for name, _ in make_pipeline().build_strategies()]
        assert names == [
            "structured:rows",
            "structured:coordinates",
            "structured:page",
            "structured:document",
            "raw",
            "pdftotext",
        ]

    def test_ocr_appended_last(self):
        names = [name for name, _ in make_pipeline().build_strategies(ocr=True)]
        assert names[-1] == "ocr"
        assert len(names) == 7

    def test_ocr_only(self):
        names = [name for name, _ in make_pipeline().build_strategies(ocr_only=True)]
        assert names == ["ocr"]


class TestExtractionContext:
    """Test suite for ExtractionContext."""

    def test_temp_file_written_and_removed(self):
        with ExtractionContext(PDF_BYTES) as ctx:
            path = ctx.path
            with open(path, "rb") as handle:
                assert handle.read() == PDF_BYTES
            assert ctx.path == path
        assert not os.path.exists(path)

    def test_source_path_used_as_is(self):
        ctx = ExtractionContext(PDF_BYTES, source_path="/data/statement.pdf")
        assert ctx.path == "/data/statement.pdf"
        ctx.close()
