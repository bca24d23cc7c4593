"""
Functional Tests - Test reader, writer, validation and converters working together.
"""

import json

import pytest

from nelf.document import NelfList
from nelf.reader import (
    NelfFormatError, NelfIter, NelfReader, decode, decode_tree, is_canonical,
    iter_cells, validate,
)
from nelf.writer import NelfWriter, encode_list, to_cell
from nelf import converters


# =============================================================================
# Reader
# =============================================================================

class TestNelfIter:

    def test_filler_between_cells(self):
        assert list(NelfIter(b"C|A|C")) == [b"A"]
        assert list(NelfIter(b"  |a|\n  /b\\\n")) == [b"a", b"b"]

    def test_paired_delimiters(self):
        assert list(NelfIter(b"C/A\\C")) == [b"A"]
        assert list(NelfIter(b"C\\A/C")) == [b"A"]

    def test_longer_closing_run_spills_into_next_cell(self):
        # "|A||" closes after one pipe; the second pipe dangles at the end
        it = NelfIter(b"|A||")
        assert list(it) == [b"A"]
        assert it.dangling == 3

    def test_no_delimiters(self):
        it = NelfIter(b"plain text")
        assert it.next_cell() is None
        assert it.dangling is None

    def test_next_cell_metadata(self):
        it = NelfIter(b"xx||a|b||yy\\c/")
        first = it.next_cell()
        assert first.to_bytes() == b"a|b"
        assert (first.offset, first.length, first.run, first.scheme) == (4, 3, 2, "pipe")
        assert (first.start, first.end) == (2, 9)
        second = it.next_cell()
        assert second.to_bytes() == b"c"
        assert second.scheme == "back"
        assert it.next_cell() is None

    def test_position_advances(self):
        it = NelfIter(b"|a|  |b|")
        assert it.position == 0
        next(it)
        assert it.position == 3
        next(it)
        assert it.position == 8

    def test_unclosed_cell_takes_rest(self):
        it = NelfIter(b"|a|//b\\c")
        assert next(it) == b"a"
        cell = it.next_cell()
        assert cell.to_bytes() == b"b\\c"
        assert cell.closed is False
        assert it.next_cell() is None

    def test_bytearray_source(self):
        assert list(NelfIter(bytearray(b"|x|"))) == [b"x"]

    def test_memoryview_of_other_format(self):
        import array
        buf = array.array("B", b"|x||y|")
        assert list(NelfIter(memoryview(buf))) == [b"x", b"y"]

    def test_memoryview_of_wide_items(self):
        import array
        words = array.array("H")
        words.frombytes(b"\\\\/|//")
        assert list(NelfIter(memoryview(words))) == [b"/|"]

    def test_non_contiguous_memoryview(self):
        assert list(NelfIter(memoryview(b"||aa||")[::2])) == [b"a"]

    def test_rejects_str(self):
        with pytest.raises(TypeError):
            NelfIter("|a|")


class TestStrict:

    def test_well_formed_passes(self):
        assert list(decode(b"|a|/\\", strict=True)) == [b"a", b""]

    def test_unclosed_raises(self):
        with pytest.raises(NelfFormatError, match="Unclosed cell") as exc:
            list(decode(b"|ABC", strict=True))
        assert exc.value.offset == 0

    def test_dangling_raises(self):
        with pytest.raises(NelfFormatError, match="Unterminated") as exc:
            list(decode(b"|a|abc||", strict=True))
        assert exc.value.offset == 6

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            list(decode(b"//", strict=True))

    def test_lenient_is_default(self):
        assert list(decode(b"|ABC")) == [b"ABC"]
        assert list(decode(b"abc||")) == []


class TestIterCells:

    def test_yields_cells(self):
        cells = list(iter_cells(encode_list([b"a", b"|", b""])))
        assert [c.scheme for c in cells] == ["pipe", "fwd", "fwd"]
        assert [c.to_bytes() for c in cells] == [b"a", b"|", b""]


class TestDecodeTree:

    def test_depth_zero(self):
        assert decode_tree(b"|a||b|", 0) == [b"a", b"b"]

    def test_depth_one(self):
        data = encode_list([encode_list([b"1", b"2"]), encode_list([])])
        assert decode_tree(data, 1) == [[b"1", b"2"], []]

    def test_items_are_bytes(self):
        assert all(type(item) is bytes for item in decode_tree(b"|a|", 0))

    def test_depth_limit(self):
        with pytest.raises(ValueError, match="depth"):
            decode_tree(b"", 1000)
        with pytest.raises(ValueError):
            decode_tree(b"", -1)


# =============================================================================
# Validation
# =============================================================================

class TestValidate:

    def test_canonical(self):
        report = validate(encode_list([b"a", b"|b|", b""]))
        assert report.ok
        assert report.canonical
        assert report.filler == 0
        assert len(report.cells) == 3

    def test_filler_counted(self):
        report = validate(b"C|A|C")
        assert report.ok
        assert report.filler == 2
        assert not report.canonical

    def test_dangling(self):
        report = validate(b"|a|xx///")
        assert not report.ok
        assert report.dangling == 5
        assert report.filler == 2

    def test_unclosed(self):
        report = validate(b"x/abc")
        assert not report.ok
        assert report.unclosed == 1
        assert report.filler == 1

    def test_non_minimal_run_is_not_canonical(self):
        report = validate(b"||a||")
        assert report.ok
        assert not report.canonical

    def test_empty(self):
        report = validate(b"")
        assert report.ok
        assert report.canonical
        assert report.size == 0

    def test_is_canonical(self):
        assert is_canonical(encode_list([b"x", b"/y\\"]))
        assert not is_canonical(b"\\x/")
        assert is_canonical(b"")

    def test_is_canonical_wide_memoryview(self):
        import array
        words = array.array("H")
        words.frombytes(b"\\\\/|//")
        assert is_canonical(memoryview(words))
        assert validate(memoryview(words)).canonical


# =============================================================================
# File I/O
# =============================================================================

class TestFiles:

    def test_write_read(self, tmp_path):
        lst = NelfList([b"one", b"t|w|o", b"", b"\\/"])
        path = tmp_path / "list.nelf"
        nbytes = NelfWriter.write(lst, str(path))
        assert nbytes == len(lst.to_bytes())
        assert path.read_bytes() == lst.to_bytes()
        assert NelfReader.read(path) == lst

    def test_document_write(self, tmp_path):
        path = tmp_path / "doc.nelf"
        NelfList([b"a"]).write(str(path))
        assert path.read_bytes() == b"|a|"

    def test_write_overwrites(self, tmp_path):
        path = tmp_path / "x.nelf"
        NelfList([b"old"]).write(str(path))
        NelfList([b"new"]).write(str(path))
        assert NelfReader.read(path).items == [b"new"]
        assert not list(tmp_path.glob("*.tmp"))

    def test_read_size_limit(self, tmp_path):
        path = tmp_path / "big.nelf"
        path.write_bytes(to_cell(b"x" * 100))
        with pytest.raises(ValueError, match="exceeds maximum"):
            NelfReader.read(path, max_size=10)

    def test_parse_size_limit(self):
        with pytest.raises(ValueError, match="exceeds maximum"):
            NelfReader.parse(b"|abc|", max_size=2)

    def test_parse_strict(self):
        with pytest.raises(NelfFormatError):
            NelfReader.parse(b"|abc", strict=True)

    def test_serialize_is_pure(self):
        lst = NelfList([b"a"])
        NelfWriter.serialize(lst)
        assert lst.items == [b"a"]


# =============================================================================
# Converters
# =============================================================================

class TestConverters:

    def test_json_roundtrip(self):
        lst = NelfList([b"hello", b"a|b", b""])
        text = converters.to_json(lst)
        assert json.loads(text) == ["hello", "a|b", ""]
        assert converters.from_json(text) == lst

    def test_json_unicode(self):
        lst = NelfList(["héllo 世界".encode("utf-8")])
        text = converters.to_json(lst)
        assert "世界" in text
        assert converters.from_json(text) == lst

    def test_json_non_utf8_needs_binary(self):
        lst = NelfList([b"\xff\xfe"])
        with pytest.raises(ValueError, match="binary=True"):
            converters.to_json(lst)
        text = converters.to_json(lst, binary=True)
        assert json.loads(text) == ["//4="]
        assert converters.from_json(text, binary=True) == lst

    def test_json_bad_base64(self):
        with pytest.raises(ValueError, match="Base64"):
            converters.from_json('["***"]', binary=True)

    def test_json_nested(self):
        lst = converters.from_json('["a", ["b", ["c"]], []]')
        assert lst.get(0) == b"a"
        assert lst.nested(1).get(0) == b"b"
        assert lst.nested(1).nested(1).items == [b"c"]
        assert lst.nested(2).items == []
        assert json.loads(converters.to_json(lst.nested(1), depth=0)) == ["b", "|c|"]

    def test_json_to_depth(self):
        lst = converters.from_json('[["x", "y"], ["z"]]')
        assert json.loads(converters.to_json(lst, depth=1)) == [["x", "y"], ["z"]]

    def test_tree_to_json(self):
        tree = decode_tree(b" |a| junk //b\\\\", 0)
        assert json.loads(converters.tree_to_json(tree)) == ["a", "b"]
        assert json.loads(converters.tree_to_json([[b"\x00"]], binary=True)) == [["AA=="]]

    def test_json_rejects_non_array(self):
        with pytest.raises(ValueError, match="array"):
            converters.from_json('{"a": 1}')

    def test_json_rejects_numbers(self):
        with pytest.raises(ValueError, match="int"):
            converters.from_json("[1]")

    def test_csv_roundtrip(self):
        csv_text = "name,value\nalpha,1|2\n\"with,comma\",/\\\n"
        lst = converters.from_csv(csv_text)
        assert len(lst) == 3
        assert lst.nested(1).items == [b"alpha", b"1|2"]
        assert converters.to_csv(lst) == csv_text

    def test_txt_roundtrip(self):
        lst = NelfList([b"line one", b"", b"|three|"])
        text = converters.to_txt(lst)
        assert text == "line one\n\n|three|\n"
        assert converters.from_txt(text) == lst

    def test_txt_empty(self):
        assert converters.to_txt(NelfList()) == ""
        assert converters.from_txt("") == NelfList()
        assert converters.from_txt("\n") == NelfList([b""])

    def test_txt_rejects_newlines(self):
        with pytest.raises(ValueError, match="line break"):
            converters.to_txt(NelfList([b"a\nb"]))

    def test_txt_crlf(self):
        assert converters.from_txt("a\r\nb\r\n").items == [b"a", b"b"]

    def test_dispatch(self):
        lst = NelfList([b"x"])
        for fmt in ("json", "txt"):
            assert converters.convert_from(converters.convert_to(lst, fmt), fmt) == lst

    def test_dispatch_unknown(self):
        with pytest.raises(ValueError, match="Unknown format"):
            converters.convert_to(NelfList(), "yaml")
        with pytest.raises(ValueError, match="Unknown format"):
            converters.convert_from("", "yaml")
