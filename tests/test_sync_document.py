"""Tests for document composition, parsing, and instants."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from conftest import BASE_TIME, make_record

from gh_discussions_sync.sync.document import (
    UNTITLED,
    build_metadata,
    compose_document,
    decompose_document,
    format_instant,
    parse_instant,
    parse_plain_document,
)


class TestInstants:
    def test_format_has_millis_and_z(self) -> None:
        value = datetime(2024, 5, 1, 10, 0, 0, 123456, tzinfo=timezone.utc)
        assert format_instant(value) == "2024-05-01T10:00:00.123Z"

    def test_format_converts_to_utc(self) -> None:
        value = datetime(
            2024, 5, 1, 12, 0, tzinfo=timezone(timedelta(hours=2))
        )
        assert format_instant(value) == "2024-05-01T10:00:00.000Z"

    def test_format_naive_is_utc(self) -> None:
        assert format_instant(datetime(2024, 1, 2, 3, 4, 5)) == (
            "2024-01-02T03:04:05.000Z"
        )

    def test_parse_z_suffix(self) -> None:
        assert parse_instant("2024-05-01T10:00:00.000Z") == BASE_TIME

    def test_parse_naive_is_utc(self) -> None:
        assert parse_instant("2024-05-01T10:00:00") == BASE_TIME

    def test_parse_rejects_garbage(self) -> None:
        assert parse_instant("yesterday") is None
        assert parse_instant("") is None
        assert parse_instant(None) is None
        assert parse_instant(42) is None

    def test_format_parse_round_trip(self) -> None:
        assert parse_instant(format_instant(BASE_TIME)) == BASE_TIME


class TestBuildMetadata:
    def test_key_order(self) -> None:
        metadata = build_metadata(make_record(5), BASE_TIME)
        assert list(metadata) == [
            "id",
            "number",
            "title",
            "author",
            "created",
            "updated",
            "githubUrl",
            "category",
            "categoryId",
            "upvoteCount",
            "commentCount",
            "locked",
            "answered",
            "lastSynced",
        ]

    def test_values(self) -> None:
        record = make_record(5, answer_chosen_at=BASE_TIME, comment_count=3)
        metadata = build_metadata(record, BASE_TIME + timedelta(hours=1))
        assert metadata["id"] == "D_kw0005"
        assert metadata["author"] == "ghost"
        assert metadata["category"] == "General"
        assert metadata["categoryId"] == "DIC_general"
        assert metadata["commentCount"] == 3
        assert metadata["answered"] is True
        assert metadata["updated"] == "2024-05-01T10:00:00.000Z"
        assert metadata["lastSynced"] == "2024-05-01T11:00:00.000Z"


class TestComposeDecompose:
    def test_layout(self) -> None:
        text = compose_document("Hello", "Body", {"id": "D_1"})
        assert text == '---\nid: "D_1"\n---\n\n# Hello\n\nBody\n'

    def test_round_trip_title_with_quotes(self) -> None:
        record = make_record(3, title='He said "hello"', body="Line 1\n\nLine 2")
        metadata = build_metadata(record, BASE_TIME)
        parsed = decompose_document(
            compose_document(record.title, record.body, metadata)
        )
        assert parsed is not None
        assert parsed.title == 'He said "hello"'
        assert parsed.body == "Line 1\n\nLine 2"
        assert parsed.metadata == metadata

    def test_body_with_headings_and_delimiters(self) -> None:
        body = "## Sub\n\n---\n\n# Not the title"
        parsed = decompose_document(compose_document("T", body, {"id": "x"}))
        assert parsed is not None
        assert parsed.title == "T"
        assert parsed.body == body

    def test_missing_heading_uses_placeholder(self) -> None:
        parsed = decompose_document('---\nid: "x"\n---\n\nJust text\n')
        assert parsed is not None
        assert parsed.title == UNTITLED
        assert parsed.body == "Just text"

    def test_no_metadata_block(self) -> None:
        assert decompose_document("# Title\n\nBody\n") is None


class TestParsePlain:
    def test_heading_and_body(self) -> None:
        assert parse_plain_document("# Title\n\nBody\n") == ("Title", "Body")

    def test_crlf(self) -> None:
        assert parse_plain_document("# Title\r\n\r\nBody\r\n") == (
            "Title",
            "Body",
        )

    def test_no_heading(self) -> None:
        assert parse_plain_document("no heading here") is None
