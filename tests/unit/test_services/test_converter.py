"""Tests for the statement conversion service."""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from statement_converter.core.exceptions import BankDetectionError
from statement_converter.schemas.extraction import ExtractionResult
from statement_converter.schemas.statement import (
    BankType,
    StatementInfo,
    Transaction,
    TransactionType,
)
from statement_converter.services.converter import StatementConverter


def make_converter(extraction, statement):
    pipeline = MagicMock()
    pipeline.extract.return_value = extraction
    factory = MagicMock()
    factory.parse.return_value = statement
    return StatementConverter(pipeline=pipeline, factory=factory), pipeline, factory


@pytest.fixture
def statement():
    return StatementInfo(
        bank=BankType.METRO,
        transactions=[
            Transaction(
                date="15/01/2024",
                description="TESCO",
                type=TransactionType.DEBIT,
                amount=Decimal("25.99"),
            )
        ],
    )


class TestStatementConverter:
    """Test suite for StatementConverter."""

    def test_convert_with_bank_hint(self, statement):
        extraction = ExtractionResult(pages=["page"], strategy="structured", score=0.95)
        converter, pipeline, factory = make_converter(extraction, statement)

        result = converter.convert(b"%PDF-1.4", bank="metro")

        pipeline.extract.assert_called_once_with(
            b"%PDF-1.4", source_path=None, ocr=False, ocr_only=False
        )
        factory.parse.assert_called_once_with(["page"], bank="metro", ocr_text=False)
        assert result.statement is statement
        assert result.detected_bank is False
        assert result.warnings == []

    def test_detected_bank_flag(self, statement):
        extraction = ExtractionResult(pages=["page"], strategy="structured", score=0.95)
        converter, _, _ = make_converter(extraction, statement)

        assert converter.convert(b"%PDF-1.4").detected_bank is True

    def test_ocr_text_sanitised(self, statement):
        extraction = ExtractionResult(pages=["page"], strategy="ocr", score=0.8)
        converter, pipeline, factory = make_converter(extraction, statement)

        converter.convert(b"%PDF-1.4", bank="hsbc", ocr=True)

        assert pipeline.extract.call_args.kwargs["ocr"] is True
        assert factory.parse.call_args.kwargs["ocr_text"] is True

    def test_best_effort_warning(self, statement):
        extraction = ExtractionResult(
            pages=["page"], strategy="raw", score=0.42, accepted=False
        )
        converter, _, _ = make_converter(extraction, statement)

        result = converter.convert(b"%PDF-1.4", bank="metro")

        assert len(result.warnings) == 1
        assert "readability" in result.warnings[0]
        assert "0.42" in result.warnings[0]

    def test_no_transactions_warning(self):
        extraction = ExtractionResult(pages=["page"], strategy="structured", score=0.9)
        converter, _, _ = make_converter(extraction, StatementInfo(bank=BankType.HSBC))

        result = converter.convert(b"%PDF-1.4", bank="hsbc")

        assert result.warnings == ["No transactions found; check the bank selection or try OCR"]

    def test_errors_propagate(self, statement):
        extraction = ExtractionResult(pages=["page"], strategy="structured", score=0.9)
        converter, _, factory = make_converter(extraction, statement)
        factory.parse.side_effect = BankDetectionError()

        with pytest.raises(BankDetectionError):
            converter.convert(b"%PDF-1.4")

    def test_convert_file(self, statement, tmp_path):
        path = tmp_path / "statement.pdf"
        path.write_bytes(b"%PDF-1.4 body")
        extraction = ExtractionResult(pages=["page"], strategy="structured", score=0.9)
        converter, pipeline, _ = make_converter(extraction, statement)

        converter.convert_file(path, bank="metro")

        args, kwargs = pipeline.extract.call_args
        assert args == (b"%PDF-1.4 body",)
        assert kwargs["source_path"] == str(path)

    def test_end_to_end_metro(self, make_pdf):
        pdf = make_pdf(
            [
                [
                    "Metro Bank",
                    "Account name: Jane Doe",
                    "Date Description Money out Money in Balance",
                    "15/01/2024 Card payment to TESCO STORES 25.99 1,234.56",
                    "16/01/2024 Salary ACME LTD 1,000.00 2,234.56",
                ]
            ]
        )

        result = StatementConverter().convert(pdf)

        assert result.detected_bank is True
        info = result.statement
        assert info.bank == BankType.METRO
        assert [t.amount for t in info.transactions] == [Decimal("25.99"), Decimal("1000.00")]
        assert info.total_debits == Decimal("25.99")
