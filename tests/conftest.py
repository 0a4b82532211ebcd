"""Shared pytest fixtures for gh-discussions-sync tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import MagicMock

import pytest
from dotenv import load_dotenv

from gh_discussions_sync.config import Config
from gh_discussions_sync.core.client import GitHubAPIError
from gh_discussions_sync.sync.models import (
    CommentRecord,
    DiscussionCategory,
    DiscussionPage,
    DiscussionRecord,
    RepositoryRecord,
)

load_dotenv()

BASE_TIME = datetime(2024, 5, 1, 10, 0, 0, tzinfo=timezone.utc)


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that require the live GitHub API",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as requiring the live GitHub API"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


# ---------------------------------------------------------------------------
# Record factories
# ---------------------------------------------------------------------------

GENERAL = DiscussionCategory(id="DIC_general", name="General", emoji=":speech_balloon:")
IDEAS = DiscussionCategory(id="DIC_ideas", name="Ideas", emoji=":bulb:")


def make_record(
    number: int = 1,
    title: str | None = None,
    body: str = "Body text",
    updated_at: datetime | None = None,
    **overrides: Any,
) -> DiscussionRecord:
    """Build a ``DiscussionRecord`` with sensible defaults."""
    data: dict[str, Any] = {
        "id": f"D_kw{number:04d}",
        "number": number,
        "title": title if title is not None else f"Discussion {number}",
        "body": body,
        "category": GENERAL,
        "created_at": BASE_TIME - timedelta(days=1),
        "updated_at": updated_at or BASE_TIME,
        "url": f"https://github.com/octo/repo/discussions/{number}",
    }
    data.update(overrides)
    return DiscussionRecord(**data)


class FakeDiscussionService:
    """In-memory ``DiscussionService`` replacement.

    Records every mutation in ``update_calls`` / ``create_calls`` /
    ``comment_calls``. ``fail_numbers`` makes ``get_discussion`` raise.
    """

    def __init__(
        self,
        records: list[DiscussionRecord] | None = None,
        page_size_override: int | None = None,
    ) -> None:
        self.records: dict[int, DiscussionRecord] = {
            r.number: r for r in records or []
        }
        self.update_calls: list[tuple[str, str | None, str | None]] = []
        self.create_calls: list[tuple[str, str, str]] = []
        self.comment_calls: list[tuple[str, str, str | None]] = []
        self.fetched: list[int] = []
        self.fail_numbers: set[int] = set()
        self.update_time: datetime = BASE_TIME + timedelta(hours=5)
        self.config = MagicMock(
            owner="octo", repository="repo", discussions_folder="Discussions"
        )

    async def validate_connection(self) -> str:
        return "octocat"

    async def get_discussion(self, number: int) -> DiscussionRecord | None:
        self.fetched.append(number)
        if number in self.fail_numbers:
            raise GitHubAPIError("boom", status_code=502)
        return self.records.get(number)

    async def get_discussions(
        self, first: int, after: str | None = None
    ) -> DiscussionPage:
        ordered = list(self.records.values())
        start = int(after) if after else 0
        chunk = ordered[start : start + first]
        end = start + len(chunk)
        return DiscussionPage(
            items=chunk,
            has_more=end < len(ordered),
            next_cursor=str(end) if end < len(ordered) else None,
            total_count=len(ordered),
        )

    async def get_categories(self) -> list[DiscussionCategory]:
        return [GENERAL, IDEAS]

    async def get_repository(self) -> RepositoryRecord:
        return RepositoryRecord(
            id="R_repo", name="repo", owner_login="octo", categories=[GENERAL, IDEAS]
        )

    async def update_discussion(
        self,
        discussion_id: str,
        title: str | None = None,
        body: str | None = None,
    ) -> DiscussionRecord:
        self.update_calls.append((discussion_id, title, body))
        current = next(
            r for r in self.records.values() if r.id == discussion_id
        )
        changes: dict[str, Any] = {"updated_at": self.update_time}
        if title is not None:
            changes["title"] = title
        if body is not None:
            changes["body"] = body
        updated = current.model_copy(update=changes)
        self.records[updated.number] = updated
        return updated

    async def create_discussion(
        self, category: str, title: str, body: str
    ) -> DiscussionRecord:
        self.create_calls.append((category, title, body))
        number = max(self.records, default=0) + 1
        record = make_record(number, title=title, body=body)
        self.records[number] = record
        return record

    async def add_comment(
        self,
        discussion_id: str,
        body: str,
        reply_to_id: str | None = None,
    ) -> CommentRecord:
        self.comment_calls.append((discussion_id, body, reply_to_id))
        return CommentRecord(id="DC_1", body=body)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_config():
    """Create a Config instance for testing."""
    return Config(
        token="ghp_testtoken",
        owner="octo",
        repository="repo",
        discussions_folder="Discussions",
    )


@pytest.fixture
def mock_github_client(mock_config):
    """Create a mock GitHubClient instance for testing."""
    from gh_discussions_sync.core.client import GitHubClient

    client = MagicMock(spec=GitHubClient)
    client.config = mock_config
    return client


@pytest.fixture
def fake_service():
    return FakeDiscussionService()
