"""Pydantic models for the discussion sync engine.

Defines the core data contracts used across all sync modules:

- ``Author``, ``DiscussionCategory``, ``DiscussionRecord``,
  ``RepositoryRecord``, ``CommentRecord``: remote records as returned by
  the GitHub GraphQL API.
- ``DiscussionPage``: one page of a cursor-paginated listing.
- ``ParsedDocument``: title, body and metadata recovered from a local file.
- ``DecisionContext`` / ``ConflictDecision``: input and output of a
  conflict decision.
- ``SyncAction``: Enum of terminal states of a sync operation.
- ``SyncOutcome``: Outcome of one operation on one discussion.
- ``SyncReport``: Aggregate results of a bulk pull.

All models are frozen (immutable) for safety.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class SyncAction(str, Enum):
    """Terminal states of a sync operation on one discussion."""

    CREATE_LOCAL = "create_local"
    UPDATE_LOCAL = "update_local"
    KEEP_LOCAL = "keep_local"
    PUSH = "push"
    CANCELLED = "cancelled"
    REPAIR = "repair"
    CREATE_REMOTE = "create_remote"
    COMMENT = "comment"
    SKIP = "skip"


# ---------------------------------------------------------------------------
# Remote records
# ---------------------------------------------------------------------------


class Author(BaseModel):
    """Discussion or comment author."""

    login: str
    avatar_url: str | None = Field(default=None, alias="avatarUrl")

    model_config = {"frozen": True, "populate_by_name": True}


class DiscussionCategory(BaseModel):
    """A discussion category of the repository."""

    id: str
    name: str
    emoji: str | None = None
    description: str | None = None
    is_answerable: bool = Field(default=False, alias="isAnswerable")

    model_config = {"frozen": True, "populate_by_name": True}


class DiscussionRecord(BaseModel):
    """A discussion as the remote sees it.

    Attributes:
        id: Opaque GraphQL node id; the only key used for mutations.
        number: Sequential number, unique within the repository.
        title: Discussion title.
        body: Markdown body.
        author: Author display info. GitHub returns ``null`` for deleted
            accounts, which is mapped to the ``ghost`` user.
        category: Category the discussion belongs to.
        created_at: Creation instant (timezone-aware).
        updated_at: Last update instant (timezone-aware).
        upvote_count: Number of upvotes.
        comment_count: Total number of comments.
        locked: Whether the discussion is locked.
        answer_chosen_at: When an answer was marked, if ever.
        url: Canonical HTML URL.
    """

    id: str
    number: int
    title: str
    body: str = ""
    author: Author = Field(default_factory=lambda: Author(login="ghost"))
    category: DiscussionCategory
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
    upvote_count: int = Field(default=0, alias="upvoteCount")
    comment_count: int = Field(default=0, alias="commentCount")
    locked: bool = False
    answer_chosen_at: datetime | None = Field(
        default=None, alias="answerChosenAt"
    )
    url: str = ""

    model_config = {"frozen": True, "populate_by_name": True}

    @property
    def answered(self) -> bool:
        return self.answer_chosen_at is not None

    @classmethod
    def from_graphql(cls, node: dict[str, Any]) -> DiscussionRecord:
        """Build a record from a ``DiscussionFields`` GraphQL node."""
        data = dict(node)
        comments = data.pop("comments", None) or {}
        data["commentCount"] = comments.get("totalCount", 0)
        if data.get("author") is None:
            data.pop("author", None)
        return cls.model_validate(data)


class RepositoryRecord(BaseModel):
    """Repository id and its discussion categories."""

    id: str
    name: str
    owner_login: str
    categories: list[DiscussionCategory] = []

    model_config = {"frozen": True}

    @classmethod
    def from_graphql(cls, node: dict[str, Any]) -> RepositoryRecord:
        categories = (node.get("discussionCategories") or {}).get(
            "nodes"
        ) or []
        return cls(
            id=node["id"],
            name=node["name"],
            owner_login=(node.get("owner") or {}).get("login", ""),
            categories=[
                DiscussionCategory.model_validate(c) for c in categories
            ],
        )


class CommentRecord(BaseModel):
    """A comment created on a discussion."""

    id: str
    body: str
    url: str = ""
    created_at: datetime | None = Field(default=None, alias="createdAt")
    author: Author | None = None

    model_config = {"frozen": True, "populate_by_name": True}


class DiscussionPage(BaseModel):
    """One page of a cursor-paginated discussion listing.

    Attributes:
        items: Discussions on this page, in server order.
        has_more: Whether another page follows.
        next_cursor: Cursor to request the next page with.
        total_count: Total number of discussions reported by the server.
    """

    items: list[DiscussionRecord] = []
    has_more: bool = False
    next_cursor: str | None = None
    total_count: int = 0

    model_config = {"frozen": True}

    @classmethod
    def from_graphql(cls, connection: dict[str, Any]) -> DiscussionPage:
        page_info = connection.get("pageInfo") or {}
        return cls(
            items=[
                DiscussionRecord.from_graphql(n)
                for n in connection.get("nodes") or []
            ],
            has_more=bool(page_info.get("hasNextPage")),
            next_cursor=page_info.get("endCursor"),
            total_count=connection.get("totalCount", 0),
        )


# ---------------------------------------------------------------------------
# Local document
# ---------------------------------------------------------------------------


class ParsedDocument(BaseModel):
    """Title, body and metadata recovered from a persisted document."""

    title: str
    body: str
    metadata: dict[str, Any]

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Conflict decisions
# ---------------------------------------------------------------------------


class DecisionContext(BaseModel):
    """What a Decision Prompt is asked about.

    Attributes:
        subject_id: Human-facing identifier, e.g. ``"#42"``.
        local_instant: Local ``lastSynced``; ``None`` when unknown.
        remote_instant: Remote ``updatedAt``.
        rationale: Why the decision is needed.
        operation: ``"pull"`` or ``"push"``.
    """

    subject_id: str
    local_instant: datetime | None = None
    remote_instant: datetime
    rationale: str
    operation: str = "pull"

    model_config = {"frozen": True}


class ConflictDecision(BaseModel):
    """A single decision on a detected conflict. Never persisted."""

    proceed: bool
    local_instant: datetime | None = None
    remote_instant: datetime
    rationale: str | None = None

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


class SyncOutcome(BaseModel):
    """Outcome of one operation on one discussion.

    Attributes:
        number: Discussion number.
        action: Terminal state reached.
        success: ``False`` only for genuine failures. Declined conflicts
            are successful, non-applied outcomes.
        applied: Whether a local or remote write happened.
        error: Failure (or cancellation) description.
        path: Local document path, when known.
    """

    number: int
    action: SyncAction
    success: bool
    applied: bool = False
    error: str | None = None
    path: str | None = None

    model_config = {"frozen": True}


class SyncReport(BaseModel):
    """Aggregate report for a bulk pull.

    Attributes:
        outcomes: Individual outcomes, in materialization order.
        total_count: Number of discussions the listing walk returned.
        started_at: ISO 8601 timestamp when the run started.
        completed_at: ISO 8601 timestamp when the run completed.
    """

    outcomes: list[SyncOutcome] = []
    total_count: int = 0
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    @property
    def created(self) -> list[SyncOutcome]:
        """Outcomes where a local file was created."""
        return [
            o for o in self.outcomes if o.action == SyncAction.CREATE_LOCAL
        ]

    @property
    def updated(self) -> list[SyncOutcome]:
        """Outcomes where a local file was overwritten."""
        return [
            o for o in self.outcomes if o.action == SyncAction.UPDATE_LOCAL
        ]

    @property
    def kept(self) -> list[SyncOutcome]:
        """Outcomes where the local version was kept."""
        return [
            o for o in self.outcomes if o.action == SyncAction.KEEP_LOCAL
        ]

    @property
    def errors(self) -> list[SyncOutcome]:
        """Outcomes where success is False."""
        return [o for o in self.outcomes if not o.success]

    def summary(self) -> str:
        """Format a human-readable summary of the run."""
        lines = [
            "Pull report",
            f"  Created: {len(self.created)}",
            f"  Updated: {len(self.updated)}",
            f"  Kept:    {len(self.kept)}",
            f"  Errors:  {len(self.errors)}",
            f"  Total:   {len(self.outcomes)}",
        ]
        return "\n".join(lines)
