"""Tests for the metadata block codec."""

from __future__ import annotations

import pytest

from gh_discussions_sync.sync.metadata import (
    decode_lines,
    decode_metadata,
    encode_metadata,
    split_metadata_block,
)


def _wrap(block: str, rest: str = "\n# Title\n\nBody\n") -> str:
    return f"---\n{block}\n---\n{rest}"


class TestEncode:
    """encode_metadata() output format."""

    def test_scalars_are_json(self) -> None:
        text = encode_metadata(
            {"id": "D_1", "number": 42, "locked": False, "answered": None}
        )
        assert text.split("\n") == [
            'id: "D_1"',
            "number: 42",
            "locked: false",
            "answered: null",
        ]

    def test_quotes_are_escaped(self) -> None:
        assert encode_metadata({"title": 'Say "hi"'}) == 'title: "Say \\"hi\\""'

    def test_non_ascii_kept_verbatim(self) -> None:
        assert encode_metadata({"title": "Café ☕"}) == 'title: "Café ☕"'

    def test_multiline_uses_block_literal(self) -> None:
        text = encode_metadata({"notes": "first\nsecond", "n": 1})
        assert text.split("\n") == ["notes: |", "  first", "  second", "n: 1"]

    def test_key_order_preserved(self) -> None:
        keys = ["b", "a", "c"]
        text = encode_metadata({k: 1 for k in keys})
        assert [line.split(":")[0] for line in text.split("\n")] == keys

    @pytest.mark.parametrize("key", ["", "a:b", "a\nb"])
    def test_invalid_key_rejected(self, key: str) -> None:
        with pytest.raises(ValueError):
            encode_metadata({key: 1})


class TestSplit:
    """split_metadata_block() delimiter handling."""

    def test_no_leading_delimiter(self) -> None:
        assert split_metadata_block("# Title\n\nBody") is None

    def test_unterminated_block(self) -> None:
        assert split_metadata_block("---\nid: 1\n# Title") is None

    def test_crlf_normalised(self) -> None:
        result = split_metadata_block("---\r\nid: 1\r\n---\r\nrest")
        assert result == (["id: 1"], "rest")

    def test_empty_block(self) -> None:
        assert split_metadata_block("---\n---\nrest") == ([], "rest")


class TestDecode:
    """decode_metadata() / decode_lines() parsing."""

    def test_round_trip_with_multiline(self) -> None:
        metadata = {
            "id": "D_kwDOAbc",
            "number": 7,
            "title": 'Quote " and colon: here',
            "notes": "line one\n  indented line\nline three",
            "locked": True,
            "lastSynced": "2024-05-01T10:00:00.000Z",
        }
        decoded = decode_metadata(_wrap(encode_metadata(metadata)))
        assert decoded == metadata
        assert list(decoded) == list(metadata)

    def test_block_literal_as_last_entry(self) -> None:
        decoded = decode_lines(["id: 1", "notes: |", "  a", "  b"])
        assert decoded == {"id": 1, "notes": "a\nb"}

    def test_block_literal_trailing_whitespace_trimmed(self) -> None:
        decoded = decode_lines(["notes: |", "  a  ", "", "next: 2"])
        assert decoded == {"notes": "a", "next": 2}

    def test_blank_line_inside_block_literal(self) -> None:
        decoded = decode_lines(["notes: |", "  a", "", "  b"])
        assert decoded["notes"] == "a\n\nb"

    def test_non_json_value_is_raw_string(self) -> None:
        assert decode_lines(["author: octocat"]) == {"author": "octocat"}

    def test_value_with_colon(self) -> None:
        decoded = decode_lines(['githubUrl: "https://github.com/o/r"'])
        assert decoded == {"githubUrl": "https://github.com/o/r"}

    def test_lines_without_separator_ignored(self) -> None:
        assert decode_lines(["garbage", "id: 1"]) == {"id": 1}

    def test_no_block_returns_none(self) -> None:
        assert decode_metadata("# Just a heading\n") is None
