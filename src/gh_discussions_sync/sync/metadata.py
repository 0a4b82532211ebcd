"""Metadata block codec.

A persisted discussion starts with a metadata block::

    ---
    id: "D_kwDOAbc123"
    number: 42
    title: "Say \\"hello\\""
    notes: |
      first line
      second line
    lastSynced: "2024-05-01T10:00:00.000Z"
    ---

Grammar, one construct per line between two delimiter lines of exactly
``---``:

- ``key: <json scalar>`` -- strings, numbers, booleans and ``null`` are
  written as JSON so decoding is a strict inverse.
- ``key: |`` -- block literal; the value is every following line indented
  by two spaces, up to the first unindented line or the end of the block.
  Trailing whitespace of the accumulated value is trimmed.

Values that are not valid JSON (hand edits such as ``author: octocat``)
decode to the raw trimmed string.
"""

from __future__ import annotations

import json
from typing import Any

DELIMITER = "---"
BLOCK_MARKER = "|"
INDENT = "  "


def encode_metadata(metadata: dict[str, Any]) -> str:
    """Render *metadata* as the lines between the two delimiters.

    Raises:
        ValueError: If a key is empty or contains ``:`` or a line break.
        TypeError: If a value is not JSON serialisable.
    """
    lines: list[str] = []
    for key, value in metadata.items():
        if not key or ":" in key or "\n" in key:
            raise ValueError(f"Invalid metadata key: {key!r}")
        if isinstance(value, str) and "\n" in value:
            lines.append(f"{key}: {BLOCK_MARKER}")
            lines.extend(INDENT + part for part in value.split("\n"))
        else:
            lines.append(f"{key}: {json.dumps(value, ensure_ascii=False)}")
    return "\n".join(lines)


def split_metadata_block(text: str) -> tuple[list[str], str] | None:
    """Split *text* into metadata lines and the remainder.

    The text must open with a delimiter line; the block runs until the
    next delimiter line.

    Returns:
        ``(block_lines, rest)`` or ``None`` when there is no delimiter pair.
    """
    lines = text.replace("\r\n", "\n").split("\n")
    if not lines or lines[0].rstrip() != DELIMITER:
        return None
    for idx in range(1, len(lines)):
        if lines[idx].rstrip() == DELIMITER:
            return lines[1:idx], "\n".join(lines[idx + 1 :])
    return None


def _decode_scalar(raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def decode_lines(block_lines: list[str]) -> dict[str, Any]:
    """Decode the lines of a metadata block into an ordered dict."""
    metadata: dict[str, Any] = {}
    current_key: str | None = None
    pending: list[str] = []

    def _finish() -> None:
        if current_key is not None:
            metadata[current_key] = "\n".join(pending).rstrip()

    for line in block_lines:
        if current_key is not None:
            if line.startswith(INDENT):
                pending.append(line[len(INDENT) :])
                continue
            if line.strip() == "":
                # Editors often strip the indentation of blank lines
                pending.append("")
                continue
            _finish()
            current_key = None
            pending = []

        key, sep, value = line.partition(":")
        key = key.strip()
        if not sep or not key:
            continue
        value = value.strip()
        if value == BLOCK_MARKER:
            current_key = key
            pending = []
        else:
            metadata[key] = _decode_scalar(value)

    # A block literal may be the last entry
    _finish()
    return metadata


def decode_metadata(text: str) -> dict[str, Any] | None:
    """Decode the metadata block at the top of *text*.

    Returns:
        The decoded mapping, or ``None`` if *text* has no metadata block.
    """
    split = split_metadata_block(text)
    if split is None:
        return None
    block_lines, _ = split
    return decode_lines(block_lines)
