"""Tests for DiscussionService mapping and repository memoization."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from gh_discussions_sync.config import Config
from gh_discussions_sync.core.client import GitHubClient
from gh_discussions_sync.sync.service import DiscussionService, resolve_category
from gh_discussions_sync.sync.models import DiscussionCategory

NODE = {
    "id": "D_kw1",
    "number": 1,
    "title": "Hello",
    "body": "World",
    "createdAt": "2024-04-30T10:00:00Z",
    "updatedAt": "2024-05-01T10:00:00Z",
    "url": "https://github.com/octo/repo/discussions/1",
    "locked": False,
    "upvoteCount": 2,
    "answerChosenAt": None,
    "author": None,
    "category": {
        "id": "DIC_1",
        "name": "General",
        "emoji": ":speech_balloon:",
        "description": "",
        "isAnswerable": False,
    },
    "comments": {"totalCount": 4},
}

REPOSITORY = {
    "id": "R_1",
    "name": "repo",
    "owner": {"login": "octo"},
    "discussionCategories": {
        "nodes": [
            {"id": "DIC_1", "name": "General", "isAnswerable": False},
            {"id": "DIC_2", "name": "Q&A", "isAnswerable": True},
        ]
    },
}


@pytest.fixture
def client(mock_config):
    client = MagicMock(spec=GitHubClient)
    client.config = mock_config
    client.get_repository.return_value = REPOSITORY
    client.get_discussion.return_value = NODE
    client.update_discussion.return_value = NODE
    client.create_discussion.return_value = NODE
    client.get_discussions.return_value = {
        "totalCount": 1,
        "pageInfo": {"hasNextPage": False, "endCursor": "abc"},
        "nodes": [NODE],
    }
    return client


class TestReads:
    async def test_get_discussion_maps_node(self, client) -> None:
        record = await DiscussionService(client).get_discussion(1)
        assert record is not None
        assert record.author.login == "ghost"
        assert record.comment_count == 4
        assert record.upvote_count == 2
        assert record.category.name == "General"
        assert record.updated_at.tzinfo is not None

    async def test_get_discussion_not_found(self, client) -> None:
        client.get_discussion.return_value = None
        assert await DiscussionService(client).get_discussion(9) is None

    async def test_get_discussions_page(self, client) -> None:
        page = await DiscussionService(client).get_discussions(10, "xyz")
        client.get_discussions.assert_called_once_with(10, "xyz")
        assert page.has_more is False
        assert page.next_cursor == "abc"
        assert page.total_count == 1
        assert [r.number for r in page.items] == [1]


class TestRepositoryMemo:
    async def test_memoized(self, client) -> None:
        service = DiscussionService(client)
        first = await service.get_repository()
        second = await service.get_repository()
        assert first is second
        assert client.get_repository.call_count == 1
        assert [c.name for c in await service.get_categories()] == ["General", "Q&A"]
        assert client.get_repository.call_count == 1

    async def test_update_settings_clears_memo(self, client) -> None:
        service = DiscussionService(client)
        await service.get_repository()
        new_config = Config(token="t2", owner="other", repository="repo2")
        service.update_settings(new_config)
        client.update_config.assert_called_once_with(new_config)
        await service.get_repository()
        assert client.get_repository.call_count == 2


class TestMutations:
    async def test_update_passes_id(self, client) -> None:
        record = await DiscussionService(client).update_discussion(
            "D_kw1", title="T", body="B"
        )
        client.update_discussion.assert_called_once_with("D_kw1", "T", "B")
        assert record.id == "D_kw1"

    async def test_create_resolves_category_by_name(self, client) -> None:
        await DiscussionService(client).create_discussion("q&a", "Title", "Body")
        client.create_discussion.assert_called_once_with(
            "R_1", "DIC_2", "Title", "Body"
        )

    async def test_create_unknown_category(self, client) -> None:
        with pytest.raises(ValueError, match="Unknown discussion category"):
            await DiscussionService(client).create_discussion("Nope", "T", "B")
        client.create_discussion.assert_not_called()

    async def test_add_comment(self, client) -> None:
        client.add_discussion_comment.return_value = {
            "id": "DC_1",
            "body": "hi",
            "url": "u",
            "createdAt": "2024-05-01T10:00:00Z",
            "author": {"login": "octocat", "avatarUrl": None},
        }
        comment = await DiscussionService(client).add_comment("D_kw1", "hi", "DC_0")
        client.add_discussion_comment.assert_called_once_with("D_kw1", "hi", "DC_0")
        assert comment.author is not None
        assert comment.author.login == "octocat"


class TestResolveCategory:
    CATEGORIES = [
        DiscussionCategory(id="DIC_1", name="General"),
        DiscussionCategory(id="DIC_2", name="Ideas"),
    ]

    def test_by_id(self) -> None:
        assert resolve_category(self.CATEGORIES, "DIC_2").name == "Ideas"

    def test_by_name_case_insensitive(self) -> None:
        assert resolve_category(self.CATEGORIES, " ideas ").id == "DIC_2"

    def test_no_match(self) -> None:
        assert resolve_category(self.CATEGORIES, "Polls") is None
