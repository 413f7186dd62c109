"""Tests for ToUnicode CMap parsing."""

import zlib

import pytest

from statement_converter.extraction.cmap import (
    CMap,
    find_cmaps,
    hex_to_unicode,
    merge_cmaps,
    parse_cmap,
)


class TestParseCMap:
    """Test suite for parse_cmap."""

    def test_bfchar_single_byte(self):
        """A bfchar entry maps one byte to one character."""
        cmap = parse_cmap("beginbfchar <41> <0041> endbfchar")
        assert cmap.decode(b"\x41") == "A"

    def test_bfchar_multiple_entries(self):
        content = """
        2 beginbfchar
        <01> <0048>
        <02> <0069>
        endbfchar
        """
        cmap = parse_cmap(content)
        assert len(cmap) == 2
        assert cmap.decode(b"\x01\x02") == "Hi"

    def test_bfrange_offset_form(self):
        """Consecutive codes map to consecutive destinations."""
        cmap = parse_cmap("beginbfrange\n<20> <22> <0041>\nendbfrange")
        assert cmap.decode(b"\x20\x21\x22") == "ABC"

    def test_bfrange_array_form_bounded_by_end(self):
        cmap = parse_cmap("beginbfrange\n<01> <02> [<0061> <0062> <0063>]\nendbfrange")
        assert cmap.get("01") == "a"
        assert cmap.get("02") == "b"
        assert "03" not in cmap

    def test_bfrange_entries_sharing_a_line(self):
        cmap = parse_cmap("beginbfrange <0001> <0002> <0041> <0003> <0004> <0061> endbfrange")
        assert cmap.decode(bytes.fromhex("0001000200030004")) == "ABab"

    def test_bfrange_mixed_forms_on_one_line(self):
        cmap = parse_cmap("beginbfrange\n<01> <02> [<0078> <0079>] <03> <03> <007A>\nendbfrange")
        assert cmap.decode(b"\x01\x02\x03") == "xyz"

    def test_two_byte_codes(self):
        content = "beginbfchar\n<0001> <0048>\n<0002> <0069>\nendbfchar"
        cmap = parse_cmap(content)
        assert cmap.code_width == 2
        assert cmap.decode(b"\x00\x01\x00\x02") == "Hi"

    def test_empty_content(self):
        cmap = parse_cmap("no tables here")
        assert not cmap
        assert cmap.decode(b"abc") == ""


class TestCMapDecode:
    """Test suite for CMap.decode edge cases."""

    def test_unknown_printable_byte_passes_through(self):
        cmap = CMap({"41": "Z"})
        assert cmap.decode(b"AB") == "ZB"

    def test_unknown_wide_code_falls_back_to_single_byte(self):
        cmap = CMap({"0041": "x", "0042": "z", "42": "y"})
        assert cmap.decode(b"\x00\x41\x42\x00") == "xy"

    def test_trailing_partial_code_dropped(self):
        cmap = CMap({"0041": "A"})
        assert cmap.decode(b"\x00\x41\x00") == "A"

    def test_keys_are_case_insensitive(self):
        cmap = CMap({"ab": "Q"})
        assert "AB" in cmap
        assert cmap.decode(b"\xab") == "Q"


class TestHexToUnicode:
    """Test suite for hex_to_unicode."""

    def test_single_byte(self):
        assert hex_to_unicode("41") == "A"

    def test_utf16(self):
        assert hex_to_unicode("00480069") == "Hi"

    def test_surrogate_pair(self):
        assert hex_to_unicode("D83DDE00") == "\U0001F600"

    def test_lone_surrogate_dropped(self):
        assert hex_to_unicode("D8000041") == "A"

    def test_odd_length_padded(self):
        assert hex_to_unicode("041") == "A"

    def test_invalid_hex(self):
        assert hex_to_unicode("ZZ") == ""


class TestFindAndMerge:
    """Test suite for find_cmaps and merge_cmaps."""

    def test_find_in_plain_and_compressed_streams(self, make_raw_pdf):
        plain = b"beginbfchar\n<01> <0041>\nendbfchar"
        compressed = zlib.compress(b"beginbfchar\n<02> <0042>\nendbfchar")
        data = make_raw_pdf(plain, b"BT (x) Tj ET", compressed)

        cmaps = find_cmaps(data)

        assert len(cmaps) == 2
        merged = merge_cmaps(cmaps)
        assert merged.decode(b"\x01\x02") == "AB"

    def test_later_table_wins(self):
        first = CMap({"41": "X"})
        second = CMap({"41": "Y"})
        assert merge_cmaps([first, second]).decode(b"A") == "Y"
        assert merge_cmaps([second, first]).decode(b"A") == "X"

    def test_merge_nothing(self):
        assert len(merge_cmaps([])) == 0


TABLES = [
    "beginbfchar <41> <0041> endbfchar",
    "2 beginbfchar\n<01> <0048>\n<02> <0069>\nendbfchar",
    "beginbfrange\n<20> <22> <0041>\nendbfrange",
    "beginbfrange\n<01> <02> [<0061> <0062> <0063>]\nendbfrange",
    "beginbfrange <0001> <0002> <0041> <0003> <0004> <0061> endbfrange",
    "beginbfchar\n<0010> <D83DDE00>\nendbfchar\nbeginbfrange\n<0020> <0022> <0030>\nendbfrange",
]


class TestTableRoundTrip:
    """Every parsed entry decodes back to its own destination text."""

    @pytest.mark.parametrize("content", TABLES)
    def test_keys_decode_to_values(self, content):
        cmap = parse_cmap(content)
        keys, values = zip(*cmap.items())

        raw = b"".join(bytes.fromhex(key) for key in keys)

        assert cmap.decode(raw) == "".join(values)
