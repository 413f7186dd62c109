"""Tests for low-level content stream decoding."""

import zlib

from statement_converter.extraction.cmap import CMap
from statement_converter.extraction.content_stream import (
    decode_hex_string,
    decode_literal_string,
    decode_pdf_escapes,
    decode_text_array,
    extract_stream_text,
    inflate,
    iter_streams,
    tokenize,
)


class TestStreams:
    """Test suite for stream discovery and inflation."""

    def test_iter_streams(self, make_raw_pdf):
        data = make_raw_pdf(b"first", b"second")
        assert [s.strip() for s in iter_streams(data)] == [b"first", b"second"]

    def test_iter_streams_skips_crlf_after_keyword(self):
        data = b"stream\r\nabc\r\nendstream"
        assert list(iter_streams(data)) == [b"abc\r\n"]

    def test_iter_streams_ignores_empty(self):
        assert list(iter_streams(b"stream\n\nendstream")) == []

    def test_inflate(self):
        assert inflate(zlib.compress(b"hello")) == b"hello"

    def test_inflate_returns_input_on_error(self):
        assert inflate(b"not compressed") == b"not compressed"


class TestEscapes:
    """Test suite for literal string escapes."""

    def test_simple_escapes(self):
        assert decode_pdf_escapes(rb"a\(b\)c\\") == b"a(b)c\\"
        assert decode_pdf_escapes(rb"x\ny\tz") == b"x\ny\tz"

    def test_octal_escapes(self):
        assert decode_pdf_escapes(rb"\101\102") == b"AB"
        assert decode_pdf_escapes(rb"\0") == b"\x00"
        assert decode_pdf_escapes(rb"\777") == b"\xff"

    def test_line_continuation(self):
        assert decode_pdf_escapes(b"ab\\\ncd") == b"abcd"
        assert decode_pdf_escapes(b"ab\\\r\ncd") == b"abcd"

    def test_unknown_escape_keeps_character(self):
        assert decode_pdf_escapes(rb"\q") == b"q"

    def test_trailing_backslash_dropped(self):
        assert decode_pdf_escapes(b"ab\\") == b"ab"


class TestStringDecoding:
    """Test suite for literal and hex string operands."""

    def test_literal_latin1(self):
        assert decode_literal_string(b"Balance \xa3100.00") == "Balance £100.00"

    def test_literal_utf16_with_bom(self):
        assert decode_literal_string(b"\xfe\xff\x00H\x00i") == "Hi"

    def test_literal_with_cmap(self):
        cmap = CMap({"01": "H", "02": "i"})
        assert decode_literal_string(b"\x01\x02", cmap) == "Hi"

    def test_hex_odd_byte_count_is_latin1(self):
        assert decode_hex_string("48656C6C6F") == "Hello"

    def test_hex_utf16(self):
        assert decode_hex_string("00 48 00 69") == "Hi"

    def test_hex_odd_digit_count_padded(self):
        assert decode_hex_string("4") == "@"

    def test_hex_invalid(self):
        assert decode_hex_string("ZZ") == ""

    def test_hex_with_cmap(self):
        cmap = CMap({"0102": "Ok"})
        assert decode_hex_string(b"0102", cmap) == "Ok"


class TestTokenize:
    """Test suite for the content stream tokenizer."""

    def test_nested_parentheses(self):
        assert list(tokenize(b"(a(b)c) Tj")) == [("literal", b"a(b)c"), ("op", "Tj")]

    def test_escaped_parenthesis(self):
        tokens = list(tokenize(rb"(a\)b) Tj"))
        assert tokens[0] == ("literal", rb"a\)b")

    def test_kinds(self):
        tokens = list(tokenize(b"/F1 12 Tf [<00> -5] TJ << >>"))
        kinds = [kind for kind, _ in tokens]
        assert kinds == [
            "name",
            "number",
            "op",
            "array_start",
            "hex",
            "number",
            "array_end",
            "op",
            "dict",
            "dict",
        ]

    def test_comments_skipped(self):
        assert list(tokenize(b"% comment\n(x) Tj")) == [("literal", b"x"), ("op", "Tj")]

    def test_text_array(self):
        assert decode_text_array(b"(Hel) -20 (lo)") == "Hello"


class TestExtractStreamText:
    """Test suite for extract_stream_text."""

    def test_lines_split_on_positioning(self):
        content = (
            b"BT /F1 12 Tf 72 700 Td (Date Description) Tj "
            b"0 -14 Td (15/01/2024 Tesco) Tj ET"
        )
        assert extract_stream_text(content) == ["Date Description", "15/01/2024 Tesco"]

    def test_each_block_is_a_line(self):
        content = b"BT (one) Tj ET BT (two) Tj ET"
        assert extract_stream_text(content) == ["one", "two"]

    def test_tj_array(self):
        assert extract_stream_text(b"BT [(Car) 120 (d)] TJ ET") == ["Card"]

    def test_quote_operator_starts_new_line(self):
        assert extract_stream_text(b"BT (one) Tj (two) ' ET") == ["one", "two"]

    def test_global_fallback_without_blocks(self):
        assert extract_stream_text(b"(alpha) Tj (beta) Tj") == ["alpha beta"]

    def test_no_text_operators(self):
        assert extract_stream_text(b"0 0 m 10 10 l S") == []

    def test_cmap_applied_to_hex_strings(self):
        cmap = CMap({"41": "H"})
        assert extract_stream_text(b"BT <41> Tj ET", cmap) == ["H"]
