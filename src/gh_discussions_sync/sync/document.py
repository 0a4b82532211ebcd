"""Persisted document composition and parsing.

A persisted discussion looks like::

    ---
    <metadata block>
    ---

    # <title>

    <body>

``compose_document`` builds that text; ``decompose_document`` recovers
title, body and metadata from it. ``build_metadata`` derives the metadata
block from a remote record.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

from .metadata import DELIMITER, decode_lines, encode_metadata, split_metadata_block
from .models import DiscussionRecord, ParsedDocument

UNTITLED = "Untitled"

_HEADING_RE = re.compile(r"^# (.+)$")


# ---------------------------------------------------------------------------
# Instants
# ---------------------------------------------------------------------------


def format_instant(value: datetime) -> str:
    """Format *value* as UTC ISO 8601 with milliseconds and a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    millis = value.microsecond // 1000
    return value.strftime("%Y-%m-%dT%H:%M:%S") + f".{millis:03d}Z"


def parse_instant(value: Any) -> datetime | None:
    """Parse an ISO 8601 instant; naive values are taken as UTC.

    Returns ``None`` for missing or unparseable values.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------


def build_metadata(
    record: DiscussionRecord, last_synced: datetime
) -> dict[str, Any]:
    """Derive the full metadata block for *record*.

    Key order is part of the on-disk format.
    """
    return {
        "id": record.id,
        "number": record.number,
        "title": record.title,
        "author": record.author.login,
        "created": format_instant(record.created_at),
        "updated": format_instant(record.updated_at),
        "githubUrl": record.url,
        "category": record.category.name,
        "categoryId": record.category.id,
        "upvoteCount": record.upvote_count,
        "commentCount": record.comment_count,
        "locked": record.locked,
        "answered": record.answered,
        "lastSynced": format_instant(last_synced),
    }


# ---------------------------------------------------------------------------
# Compose / decompose
# ---------------------------------------------------------------------------


def compose_document(
    title: str, body: str, metadata: dict[str, Any]
) -> str:
    """Build the full persisted document text.

    The body is written verbatim, without escaping.
    """
    return (
        f"{DELIMITER}\n{encode_metadata(metadata)}\n{DELIMITER}\n"
        f"\n# {title}\n\n{body}\n"
    )


def _split_title_body(text: str) -> tuple[str | None, str]:
    """Find the first level-1 heading in *text* and the body after it.

    The body skips one blank line directly after the heading, then drops
    leading blank lines and trailing whitespace. Without a heading the
    title is ``None`` and the whole text is the body.
    """
    lines = text.split("\n")
    for idx, line in enumerate(lines):
        match = _HEADING_RE.match(line)
        if match is None:
            continue
        rest = lines[idx + 1 :]
        if rest and rest[0].strip() == "":
            rest = rest[1:]
        while rest and rest[0].strip() == "":
            rest = rest[1:]
        return match.group(1).strip(), "\n".join(rest).rstrip()
    return None, text.strip()


def decompose_document(text: str) -> ParsedDocument | None:
    """Recover title, body and metadata from a persisted document.

    Returns:
        A ``ParsedDocument``, or ``None`` when the text has no metadata
        block. A missing heading yields the ``"Untitled"`` placeholder.
    """
    split = split_metadata_block(text)
    if split is None:
        return None
    block_lines, rest = split
    title, body = _split_title_body(rest)
    return ParsedDocument(
        title=title if title else UNTITLED,
        body=body,
        metadata=decode_lines(block_lines),
    )


def parse_plain_document(text: str) -> tuple[str, str] | None:
    """Recover title and body from a file without a metadata block.

    Returns:
        ``(title, body)``, or ``None`` if there is no heading to anchor on.
    """
    title, body = _split_title_body(text.replace("\r\n", "\n"))
    if title is None:
        return None
    return title, body
