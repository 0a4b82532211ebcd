"""Async discussion service on top of the blocking GraphQL client.

``DiscussionService`` is the remote side as the sync engine sees it:
every call runs the blocking ``GitHubClient`` method in a worker thread
(bounded by the request semaphore) and maps raw GraphQL nodes to the
frozen models in ``sync.models``.

The repository node (id and categories) is fetched once and memoized
until ``update_settings()`` swaps the connection settings.
"""

from __future__ import annotations

import logging

from gh_discussions_sync.config import Config
from gh_discussions_sync.core.async_utils import run_sync_limited
from gh_discussions_sync.core.client import GitHubClient

from .models import (
    CommentRecord,
    DiscussionCategory,
    DiscussionPage,
    DiscussionRecord,
    RepositoryRecord,
)

logger = logging.getLogger(__name__)


class DiscussionService:
    """Remote discussion operations, mapped to models.

    Args:
        client: Configured ``GitHubClient``.
    """

    def __init__(self, client: GitHubClient) -> None:
        self._client = client
        self._repository: RepositoryRecord | None = None

    @property
    def config(self) -> Config:
        return self._client.config

    def update_settings(self, config: Config) -> None:
        """Use *config* from now on and forget the memoized repository."""
        self._client.update_config(config)
        self._repository = None
        logger.info(
            "Discussion service now targets %s/%s",
            config.owner,
            config.repository,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def validate_connection(self) -> str:
        """Return the login the token authenticates as."""
        return await run_sync_limited(self._client.validate_connection)

    async def get_repository(self) -> RepositoryRecord:
        if self._repository is None:
            node = await run_sync_limited(self._client.get_repository)
            self._repository = RepositoryRecord.from_graphql(node)
            logger.debug(
                "Repository %s has %d discussion categories",
                self._repository.id,
                len(self._repository.categories),
            )
        return self._repository

    async def get_categories(self) -> list[DiscussionCategory]:
        repository = await self.get_repository()
        return list(repository.categories)

    async def get_discussions(
        self, first: int, after: str | None = None
    ) -> DiscussionPage:
        """Fetch one page of the discussion listing."""
        connection = await run_sync_limited(
            self._client.get_discussions, first, after
        )
        return DiscussionPage.from_graphql(connection)

    async def get_discussion(self, number: int) -> DiscussionRecord | None:
        """Fetch discussion *number*; ``None`` if it does not exist."""
        node = await run_sync_limited(self._client.get_discussion, number)
        if node is None:
            return None
        return DiscussionRecord.from_graphql(node)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def update_discussion(
        self,
        discussion_id: str,
        title: str | None = None,
        body: str | None = None,
    ) -> DiscussionRecord:
        """Update a discussion addressed by its node id."""
        node = await run_sync_limited(
            self._client.update_discussion, discussion_id, title, body
        )
        return DiscussionRecord.from_graphql(node)

    async def create_discussion(
        self, category: str, title: str, body: str
    ) -> DiscussionRecord:
        """Create a discussion in *category* (matched by id, then name).

        Raises:
            ValueError: If no category matches.
        """
        repository = await self.get_repository()
        match = resolve_category(repository.categories, category)
        if match is None:
            names = ", ".join(c.name for c in repository.categories)
            raise ValueError(
                f"Unknown discussion category '{category}'. Available: {names}"
            )
        node = await run_sync_limited(
            self._client.create_discussion,
            repository.id,
            match.id,
            title,
            body,
        )
        return DiscussionRecord.from_graphql(node)

    async def add_comment(
        self,
        discussion_id: str,
        body: str,
        reply_to_id: str | None = None,
    ) -> CommentRecord:
        node = await run_sync_limited(
            self._client.add_discussion_comment,
            discussion_id,
            body,
            reply_to_id,
        )
        return CommentRecord.model_validate(node)


def resolve_category(
    categories: list[DiscussionCategory], wanted: str
) -> DiscussionCategory | None:
    """Find a category by exact id, else by case-insensitive name."""
    for category in categories:
        if category.id == wanted:
            return category
    lowered = wanted.strip().lower()
    for category in categories:
        if category.name.lower() == lowered:
            return category
    return None
