"""Discussion tool handlers for MCP server.

Read tools (never mutate GitHub; pull and repair only write local files):
discussion_list, discussion_categories, discussion_pull,
discussion_pull_all, discussion_repair.

Write tools (hidden with ``--read-only``): discussion_push,
discussion_comment, discussion_create.

Conflicts are decided by the configured policy. Pull and push accept
``force=true`` to proceed regardless.
"""

import logging

import mcp.types as types

from ...sync.document import format_instant
from ...sync.engine import DiscussionSync
from ...sync.models import SyncOutcome
from ...sync.pagination import walk_pages
from ...sync.prompt import AlwaysProceedPrompt
from ...sync.reporter import (
    format_outcome,
    format_sync_report,
    outcome_to_json,
    report_to_json,
)
from ...validators import validate_body, validate_discussion_number, validate_title
from .registry import ToolSpec

logger = logging.getLogger(__name__)

_NUMBER_SCHEMA = {
    "type": "integer",
    "description": "Discussion number (required)",
    "minimum": 1,
}

_FORCE_SCHEMA = {
    "type": "boolean",
    "description": "Proceed even if the other side changed since the last sync (default: false)",
    "default": False,
}


# ---------------------------------------------------------------------------
# Argument helpers
# ---------------------------------------------------------------------------


def _require_number(args: dict) -> int:
    number = args.get("number")
    is_valid, message = validate_discussion_number(number)
    if not is_valid:
        raise ValueError(message)
    return number  # type: ignore[return-value]


def _require_text(args: dict, key: str) -> str:
    value = args.get(key)
    if not isinstance(value, str):
        raise ValueError(f"{key} is required")
    return value


def _engine(sync: DiscussionSync, args: dict) -> DiscussionSync:
    if args.get("force"):
        return sync.with_prompt(AlwaysProceedPrompt())
    return sync


def _outcome_result(outcome: SyncOutcome) -> types.CallToolResult:
    return types.CallToolResult(
        content=[
            types.TextContent(type="text", text=format_outcome(outcome))
        ],
        structuredContent=outcome_to_json(outcome),
        isError=not outcome.success,
    )


# ---------------------------------------------------------------------------
# Read handlers
# ---------------------------------------------------------------------------


async def _handle_list(
    sync: DiscussionSync, args: dict
) -> types.CallToolResult:
    """List every discussion, most recently updated first."""
    limit = args.get("limit")
    records = await walk_pages(
        sync.service.get_discussions, sync.page_size
    )
    if isinstance(limit, int) and limit > 0:
        records = records[:limit]
    local = set(sync.store.list_numbers())

    if not records:
        text = "No discussions found."
    else:
        lines = [f"{len(records)} discussion(s):"]
        for r in records:
            marker = " [answered]" if r.answered else ""
            if r.number not in local:
                marker += " [not pulled]"
            lines.append(
                f"  #{r.number} {r.title} ({r.category.name}, "
                f"updated {format_instant(r.updated_at)}){marker}"
            )
        text = "\n".join(lines)

    structured = {
        "discussions": [
            {
                "number": r.number,
                "title": r.title,
                "category": r.category.name,
                "author": r.author.login,
                "updated": format_instant(r.updated_at),
                "comments": r.comment_count,
                "answered": r.answered,
                "url": r.url,
                "local_path": str(sync.store.path_for(r.number)),
                "pulled": r.number in local,
            }
            for r in records
        ]
    }
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        structuredContent=structured,
    )


async def _handle_categories(
    sync: DiscussionSync, args: dict
) -> types.CallToolResult:
    categories = await sync.service.get_categories()
    lines = [f"{len(categories)} categories:"]
    for c in categories:
        emoji = f"{c.emoji} " if c.emoji else ""
        lines.append(f"  {emoji}{c.name} (id: {c.id})")
    return types.CallToolResult(
        content=[types.TextContent(type="text", text="\n".join(lines))],
        structuredContent={
            "categories": [
                c.model_dump(by_alias=False) for c in categories
            ]
        },
    )


async def _handle_pull(
    sync: DiscussionSync, args: dict
) -> types.CallToolResult:
    number = _require_number(args)
    outcome = await _engine(sync, args).materialize(number)
    return _outcome_result(outcome)


async def _handle_pull_all(
    sync: DiscussionSync, args: dict
) -> types.CallToolResult:
    page_size = args.get("page_size")
    report = await _engine(sync, args).materialize_all(
        page_size if isinstance(page_size, int) else None
    )
    return types.CallToolResult(
        content=[
            types.TextContent(type="text", text=format_sync_report(report))
        ],
        structuredContent=report_to_json(report),
        isError=bool(report.errors) and not report.total_count,
    )


async def _handle_repair(
    sync: DiscussionSync, args: dict
) -> types.CallToolResult:
    number = _require_number(args)
    outcome = await sync.repair(number)
    return _outcome_result(outcome)


# ---------------------------------------------------------------------------
# Write handlers
# ---------------------------------------------------------------------------


async def _handle_push(
    sync: DiscussionSync, args: dict
) -> types.CallToolResult:
    number = _require_number(args)
    outcome = await _engine(sync, args).push(number)
    return _outcome_result(outcome)


async def _handle_comment(
    sync: DiscussionSync, args: dict
) -> types.CallToolResult:
    number = _require_number(args)
    body = _require_text(args, "body")
    is_valid, message = validate_body(body)
    if not is_valid:
        raise ValueError(message)
    outcome = await sync.comment(number, body, args.get("reply_to_id"))
    return _outcome_result(outcome)


async def _handle_create(
    sync: DiscussionSync, args: dict
) -> types.CallToolResult:
    category = _require_text(args, "category")
    title = _require_text(args, "title")
    body = _require_text(args, "body")
    for is_valid, message in (validate_title(title), validate_body(body)):
        if not is_valid:
            raise ValueError(message)
    outcome = await sync.create(category, title, body)
    return _outcome_result(outcome)


# ---------------------------------------------------------------------------
# Specs
# ---------------------------------------------------------------------------

DISCUSSION_READ_SPECS: list[ToolSpec] = [
    ToolSpec(
        tool=types.Tool(
            name="discussion_list",
            description="List repository discussions, most recently updated first, with the local file each one maps to.",
            inputSchema={
                "type": "object",
                "properties": {
                    "limit": {
                        "type": "integer",
                        "description": "Maximum discussions to return (optional, default: all)",
                        "minimum": 1,
                    },
                },
                "required": [],
            },
        ),
        read_only=True,
        handler=_handle_list,
    ),
    ToolSpec(
        tool=types.Tool(
            name="discussion_categories",
            description="List the repository's discussion categories (names and ids for discussion_create).",
            inputSchema={
                "type": "object",
                "properties": {},
                "required": [],
            },
        ),
        read_only=True,
        handler=_handle_categories,
    ),
    ToolSpec(
        tool=types.Tool(
            name="discussion_pull",
            description="Pull one discussion into its local Markdown file. If GitHub changed since the last sync the configured conflict policy decides; force=true always overwrites the local file.",
            inputSchema={
                "type": "object",
                "properties": {
                    "number": _NUMBER_SCHEMA,
                    "force": _FORCE_SCHEMA,
                },
                "required": ["number"],
            },
        ),
        read_only=True,
        handler=_handle_pull,
    ),
    ToolSpec(
        tool=types.Tool(
            name="discussion_pull_all",
            description="Pull every discussion into the local folder. A failure on one discussion does not stop the others.",
            inputSchema={
                "type": "object",
                "properties": {
                    "page_size": {
                        "type": "integer",
                        "description": "Discussions per listing page (default: configured page size)",
                        "minimum": 1,
                        "maximum": 100,
                    },
                    "force": _FORCE_SCHEMA,
                },
                "required": [],
            },
        ),
        read_only=True,
        handler=_handle_pull_all,
    ),
    ToolSpec(
        tool=types.Tool(
            name="discussion_repair",
            description="Rebuild a local file's metadata from GitHub, keeping its local title and body when they can be parsed. Creates the file if missing.",
            inputSchema={
                "type": "object",
                "properties": {"number": _NUMBER_SCHEMA},
                "required": ["number"],
            },
        ),
        read_only=True,
        handler=_handle_repair,
    ),
]

DISCUSSION_WRITE_SPECS: list[ToolSpec] = [
    ToolSpec(
        tool=types.Tool(
            name="discussion_push",
            description="Push the local title and body of a discussion to GitHub. If GitHub changed since the last sync the configured conflict policy decides; force=true always overwrites GitHub.",
            annotations=types.ToolAnnotations(
                readOnlyHint=False,
                destructiveHint=True,
                idempotentHint=True,
                openWorldHint=True,
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "number": _NUMBER_SCHEMA,
                    "force": _FORCE_SCHEMA,
                },
                "required": ["number"],
            },
        ),
        read_only=False,
        handler=_handle_push,
    ),
    ToolSpec(
        tool=types.Tool(
            name="discussion_comment",
            description="Add a comment to a discussion, or a reply to an existing comment.",
            inputSchema={
                "type": "object",
                "properties": {
                    "number": _NUMBER_SCHEMA,
                    "body": {
                        "type": "string",
                        "description": "Comment body in Markdown (required)",
                    },
                    "reply_to_id": {
                        "type": "string",
                        "description": "Node id of the comment to reply to (optional)",
                    },
                },
                "required": ["number", "body"],
            },
        ),
        read_only=False,
        handler=_handle_comment,
    ),
    ToolSpec(
        tool=types.Tool(
            name="discussion_create",
            description="Create a new discussion and write its local file.",
            inputSchema={
                "type": "object",
                "properties": {
                    "category": {
                        "type": "string",
                        "description": "Category name or id (see discussion_categories)",
                    },
                    "title": {
                        "type": "string",
                        "description": "Discussion title (required)",
                    },
                    "body": {
                        "type": "string",
                        "description": "Discussion body in Markdown (required)",
                    },
                },
                "required": ["category", "title", "body"],
            },
        ),
        read_only=False,
        handler=_handle_create,
    ),
]
