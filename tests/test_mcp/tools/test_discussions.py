"""Tests for discussion tool handlers.

Handlers run against a real DiscussionSync backed by the in-memory
FakeDiscussionService and a DocumentStore in tmp_path.
"""

from datetime import timedelta

import mcp.types as types
import pytest
from conftest import BASE_TIME, FakeDiscussionService, make_record

from gh_discussions_sync.mcp.tools import ALL_SPECS, ToolRegistry
from gh_discussions_sync.sync.document import build_metadata, compose_document
from gh_discussions_sync.sync.engine import DiscussionSync
from gh_discussions_sync.sync.prompt import NeverProceedPrompt
from gh_discussions_sync.sync.store import DocumentStore


def _get_text(result: types.CallToolResult) -> str:
    content = result.content[0]
    assert isinstance(content, types.TextContent)
    return content.text


@pytest.fixture
def service():
    return FakeDiscussionService(
        [
            make_record(1, title="First", body="One"),
            make_record(2, title="Second", body="Two"),
            make_record(3, title="Third", body="Three"),
        ]
    )


@pytest.fixture
def store(tmp_path):
    return DocumentStore(tmp_path / "Discussions")


@pytest.fixture
def sync(service, store):
    return DiscussionSync(service, store, NeverProceedPrompt(), page_size=2)  # type: ignore[arg-type]


@pytest.fixture
def registry():
    return ToolRegistry(ALL_SPECS)


def _write_stale(store, record, title=None, body=None):
    """Write a local copy synced an hour before *record* was last updated."""
    path = store.path_for(record.number)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        compose_document(
            title or record.title,
            body if body is not None else record.body,
            build_metadata(record, record.updated_at - timedelta(hours=1)),
        ),
        encoding="utf-8",
    )
    return path


class TestReadTools:
    async def test_list(self, registry, sync):
        result = await registry.call_tool("discussion_list", {}, sync)
        assert not result.isError
        assert "3 discussion(s)" in _get_text(result)
        discussions = result.structuredContent["discussions"]
        assert [d["number"] for d in discussions] == [1, 2, 3]
        assert discussions[0]["local_path"].endswith("discussion-1.md")
        assert discussions[0]["author"] == "ghost"
        assert discussions[0]["pulled"] is False

    async def test_list_marks_pulled(self, registry, sync):
        await sync.materialize(2)
        result = await registry.call_tool("discussion_list", {}, sync)
        pulled = [d["pulled"] for d in result.structuredContent["discussions"]]
        assert pulled == [False, True, False]
        assert "#1 First" in _get_text(result)
        assert "[not pulled]" in _get_text(result).splitlines()[1]

    async def test_list_limit(self, registry, sync):
        result = await registry.call_tool("discussion_list", {"limit": 1}, sync)
        assert len(result.structuredContent["discussions"]) == 1

    async def test_list_empty(self, registry, store):
        empty = DiscussionSync(FakeDiscussionService(), store, NeverProceedPrompt())  # type: ignore[arg-type]
        result = await registry.call_tool("discussion_list", {}, empty)
        assert _get_text(result) == "No discussions found."

    async def test_categories(self, registry, sync):
        result = await registry.call_tool("discussion_categories", {}, sync)
        text = _get_text(result)
        assert "General (id: DIC_general)" in text
        names = [c["name"] for c in result.structuredContent["categories"]]
        assert names == ["General", "Ideas"]

    async def test_pull_creates_file(self, registry, sync, store):
        result = await registry.call_tool("discussion_pull", {"number": 2}, sync)
        assert not result.isError
        assert result.structuredContent["action"] == "create_local"
        assert store.path_for(2).read_text(encoding="utf-8").startswith("# Second")

    async def test_pull_conflict_keeps_local(self, registry, sync, service, store):
        path = _write_stale(store, service.records[1], body="Local edit")
        result = await registry.call_tool("discussion_pull", {"number": 1}, sync)
        assert not result.isError
        assert result.structuredContent["action"] == "keep_local"
        assert result.structuredContent["applied"] is False
        assert "Local edit" in path.read_text(encoding="utf-8")

    async def test_pull_force_overwrites(self, registry, sync, service, store):
        path = _write_stale(store, service.records[1], body="Local edit")
        result = await registry.call_tool(
            "discussion_pull", {"number": 1, "force": True}, sync
        )
        assert result.structuredContent["action"] == "update_local"
        assert "Local edit" not in path.read_text(encoding="utf-8")

    async def test_pull_missing_discussion(self, registry, sync):
        result = await registry.call_tool("discussion_pull", {"number": 99}, sync)
        assert result.isError
        assert "not found" in _get_text(result)

    async def test_pull_invalid_number(self, registry, sync):
        result = await registry.call_tool("discussion_pull", {"number": "1"}, sync)
        assert result.isError
        assert "Error (validation_error)" in _get_text(result)

    async def test_pull_all(self, registry, sync, store):
        result = await registry.call_tool("discussion_pull_all", {}, sync)
        assert not result.isError
        assert result.structuredContent["counts"]["created"] == 3
        assert store.list_numbers() == [1, 2, 3]

    async def test_pull_all_partial_failure_is_not_error(
        self, registry, sync, store
    ):
        # a directory where the file should be makes that one read fail
        store.path_for(2).mkdir(parents=True)
        result = await registry.call_tool("discussion_pull_all", {}, sync)
        counts = result.structuredContent["counts"]
        assert counts["total"] == 3
        assert counts["created"] == 2
        assert counts["errors"] == 1
        assert not result.isError

    async def test_repair(self, registry, sync, store):
        result = await registry.call_tool("discussion_repair", {"number": 3}, sync)
        assert result.structuredContent["action"] == "repair"
        assert store.path_for(3).exists()


class TestWriteTools:
    async def test_push(self, registry, sync, service, store):
        record = service.records[1]
        path = store.path_for(1)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            compose_document(
                "Renamed", "New body", build_metadata(record, BASE_TIME)
            ),
            encoding="utf-8",
        )
        result = await registry.call_tool("discussion_push", {"number": 1}, sync)
        assert not result.isError
        assert service.update_calls == [(record.id, "Renamed", "New body")]

    async def test_push_declined_is_not_error(self, registry, sync, service, store):
        _write_stale(store, service.records[1], title="Renamed")
        result = await registry.call_tool("discussion_push", {"number": 1}, sync)
        assert not result.isError
        assert result.structuredContent["action"] == "cancelled"
        assert service.update_calls == []

    async def test_push_force(self, registry, sync, service, store):
        _write_stale(store, service.records[1], title="Renamed")
        result = await registry.call_tool(
            "discussion_push", {"number": 1, "force": True}, sync
        )
        assert result.structuredContent["action"] == "push"
        assert len(service.update_calls) == 1

    async def test_comment(self, registry, sync, service, store):
        await sync.materialize(2)
        result = await registry.call_tool(
            "discussion_comment",
            {"number": 2, "body": "Thanks!", "reply_to_id": "DC_0"},
            sync,
        )
        assert not result.isError
        assert service.comment_calls == [("D_kw0002", "Thanks!", "DC_0")]

    async def test_comment_requires_body(self, registry, sync):
        result = await registry.call_tool(
            "discussion_comment", {"number": 2, "body": "  "}, sync
        )
        assert "Error (validation_error): Body cannot be empty" in _get_text(result)

    async def test_create(self, registry, sync, service, store):
        result = await registry.call_tool(
            "discussion_create",
            {"category": "Ideas", "title": "Idea", "body": "Details"},
            sync,
        )
        assert not result.isError
        assert service.create_calls == [("Ideas", "Idea", "Details")]
        assert store.path_for(4).exists()

    async def test_create_missing_title(self, registry, sync, service):
        result = await registry.call_tool(
            "discussion_create", {"category": "Ideas", "body": "x"}, sync
        )
        assert "title is required" in _get_text(result)
        assert service.create_calls == []
