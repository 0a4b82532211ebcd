"""Timestamp-based conflict detection.

A conflict means the remote discussion moved ahead of the local copy's
last observed sync point. Equal instants are not a conflict.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from .document import parse_instant
from .models import DiscussionRecord

LAST_SYNCED_KEY = "lastSynced"


def remote_is_newer(
    last_synced: datetime | None, remote_updated: datetime
) -> bool:
    """Return ``True`` if *remote_updated* is strictly after *last_synced*.

    An unknown *last_synced* cannot prove safety and counts as newer.
    """
    if last_synced is None:
        return True
    return remote_updated > last_synced


def local_synced_at(metadata: dict[str, Any] | None) -> datetime | None:
    """Return the ``lastSynced`` instant from *metadata*, if parseable."""
    if not metadata:
        return None
    return parse_instant(metadata.get(LAST_SYNCED_KEY))


def has_conflict(
    local_metadata: dict[str, Any] | None, remote: DiscussionRecord
) -> bool:
    """Decide whether *remote* changed since the local copy last synced."""
    return remote_is_newer(local_synced_at(local_metadata), remote.updated_at)
