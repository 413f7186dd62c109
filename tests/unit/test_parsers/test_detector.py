"""Tests for bank detector."""

from statement_converter.parsers.detector import BankDetector
from statement_converter.schemas.statement import BankType


class TestBankDetector:
    """Test suite for BankDetector."""

    def test_initialization(self):
        """Test detector initializes with compiled patterns."""
        detector = BankDetector()
        assert len(detector._compiled_patterns) == 3
        assert BankType.METRO in detector._compiled_patterns

    def test_detect_metro(self):
        detector = BankDetector()
        assert detector.detect("Metro Bank PLC\nStatement") == BankType.METRO
        assert detector.detect("Visit metrobankonline.co.uk") == BankType.METRO

    def test_detect_hsbc(self):
        detector = BankDetector()
        assert detector.detect("HSBC UK Bank plc") == BankType.HSBC
        assert detector.detect("www.hsbc.co.uk") == BankType.HSBC

    def test_detect_barclays(self):
        detector = BankDetector()
        assert detector.detect("Barclays Bank UK PLC") == BankType.BARCLAYS

    def test_detection_is_case_insensitive(self):
        assert BankDetector().detect("METRO BANK") == BankType.METRO

    def test_banks_checked_in_order(self):
        """A Metro statement mentioning another bank is still Metro."""
        text = "Metro Bank\n15/01/2024 Transfer to HSBC account 50.00 1,000.00"
        assert BankDetector().detect(text) == BankType.METRO

    def test_unknown(self):
        detector = BankDetector()
        assert detector.detect("Lloyds Bank") is None
        assert detector.detect("") is None

    def test_detect_from_pages(self):
        assert BankDetector().detect_from_pages(["page one", "Barclays"]) == BankType.BARCLAYS

    def test_get_supported_banks(self):
        assert BankDetector().get_supported_banks() == [
            BankType.METRO,
            BankType.HSBC,
            BankType.BARCLAYS,
        ]

    def test_add_pattern(self):
        detector = BankDetector()
        assert detector.detect("first direct statement") is None

        detector.add_pattern(BankType.HSBC, r"first\s+direct")

        assert detector.detect("first direct statement") == BankType.HSBC
