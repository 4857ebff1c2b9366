"""Tests for the entry line codec."""

from __future__ import annotations

import json

import pytest

from threadkeeper.codec import decode_line, encode_entry, parse_line, validate_record
from threadkeeper.errors import MalformedRecordError
from threadkeeper.models import NoteEntry, new_entry


class TestEncode:
    def test_single_line(self):
        entry = new_entry("first line\nsecond line\r\nthird")
        line = encode_entry(entry)
        assert "\n" not in line
        assert "\r" not in line

    def test_optional_fields_omitted(self):
        entry = NoteEntry(id="a", timestamp="2024-01-01T00:00:00.000Z", text="x")
        obj = json.loads(encode_entry(entry))
        assert obj == {"id": "a", "timestamp": "2024-01-01T00:00:00.000Z", "text": "x"}

    def test_non_ascii_escaped(self):
        entry = NoteEntry(id="a", timestamp="t", text="naïve — 日本語 🙂")
        line = encode_entry(entry)
        assert line.isascii()
        assert decode_line(line) == entry

    def test_lone_surrogate_encodable(self):
        entry = NoteEntry(id="a", timestamp="t", text="a\ud800b")
        line = encode_entry(entry)
        line.encode("utf-8")
        assert decode_line(line).text == "a\ud800b"


class TestRoundTrip:
    @pytest.mark.parametrize(
        "entry",
        [
            NoteEntry(id="1", timestamp="2024-05-01T10:00:00.000Z", text=""),
            NoteEntry(id="2", timestamp="t", text="  padded  \n\ttabbed", file="src/app.py"),
            NoteEntry(id="3", timestamp="t", text="tagged", kind="teach.note"),
            NoteEntry(id="4", timestamp="t", text='quote " and \\ slash', file="", kind=""),
            NoteEntry(id="5", timestamp="t", text="line\u2028separator\u0085next"),
            NoteEntry(id="6", timestamp="t", text="half \udc00 pair \ud83d"),
        ],
    )
    def test_decode_encode_identity(self, entry: NoteEntry):
        decoded = decode_line(encode_entry(entry))
        assert decoded == entry

    def test_absent_optionals_stay_absent(self):
        decoded = decode_line(encode_entry(NoteEntry(id="a", timestamp="t", text="x")))
        assert decoded.file is None
        assert decoded.kind is None

    def test_unknown_fields_preserved(self):
        line = '{"id":"a","timestamp":"t","text":"x","tags":["one"],"v":2}'
        entry = decode_line(line)
        assert entry.extra == {"tags": ["one"], "v": 2}
        assert json.loads(encode_entry(entry)) == json.loads(line)


class TestParseLine:
    def test_success_result(self):
        result = parse_line('{"id":"a","timestamp":"t","text":"x"}', 1)
        assert result.ok
        assert result.error is None
        assert result.entry.text == "x"

    def test_invalid_json(self):
        result = parse_line("{not json", 7)
        assert not result.ok
        assert result.error == "Invalid note store format at line 7."

    @pytest.mark.parametrize(
        "line",
        [
            "[]",
            '"just a string"',
            '{"timestamp":"t","text":"x"}',
            '{"id":"a","text":"x"}',
            '{"id":"a","timestamp":"t"}',
            '{"id":1,"timestamp":"t","text":"x"}',
            '{"id":"a","timestamp":"t","text":"x","file":3}',
            '{"id":"a","timestamp":"t","text":"x","kind":null}',
        ],
    )
    def test_invalid_entry(self, line: str):
        result = parse_line(line, 3)
        assert not result.ok
        assert result.error == "Invalid note entry at line 3."

    def test_decode_raises_with_line_number(self):
        with pytest.raises(MalformedRecordError) as excinfo:
            decode_line('{"id":"a"}', 12)
        assert excinfo.value.line_number == 12
        assert "line 12" in str(excinfo.value)


class TestValidateRecord:
    def test_minimal(self):
        assert validate_record({"id": "a", "timestamp": "t", "text": ""})

    def test_wrong_optional_type(self):
        assert not validate_record({"id": "a", "timestamp": "t", "text": "x", "file": ["f"]})
