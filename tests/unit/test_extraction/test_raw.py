"""Tests for raw content stream extraction."""

import zlib

from statement_converter.extraction.raw import extract_raw, merge_page_text


class TestMergePageText:
    """Test suite for merge_page_text."""

    def test_short_outputs_dropped_when_long_ones_exist(self):
        assert merge_page_text(["short", "a much longer line of text"]) == [
            "a much longer line of text"
        ]

    def test_all_short_outputs_kept(self):
        assert merge_page_text(["one", " ", "two"]) == ["one\ntwo"]

    def test_nothing(self):
        assert merge_page_text([]) == []
        assert merge_page_text(["", "  "]) == []


class TestExtractRaw:
    """Test suite for extract_raw."""

    def test_decodes_with_document_cmap(self, make_raw_pdf):
        cmap = b"beginbfchar\n<01> <0048>\n<02> <0069>\nendbfchar"
        content = b"BT <0102> Tj 0 -14 Td (Opening balance 100.00) Tj ET"
        data = make_raw_pdf(cmap, content)

        assert extract_raw(data) == ["Hi\nOpening balance 100.00"]

    def test_compressed_streams(self, make_raw_pdf):
        content = zlib.compress(b"BT (Statement of account) Tj ET")
        assert extract_raw(make_raw_pdf(content)) == ["Statement of account"]

    def test_no_text(self, make_raw_pdf):
        assert extract_raw(make_raw_pdf(b"0 0 m 10 10 l S")) == []
