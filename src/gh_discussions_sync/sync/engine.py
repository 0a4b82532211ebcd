"""Sync orchestrator between GitHub Discussions and local documents.

``DiscussionSync`` ties together the service, the document store, the
conflict detector and a decision prompt. Operations:

1. ``materialize`` -- pull one discussion into its local document.
2. ``push`` -- publish local title and body edits to the remote.
3. ``repair`` -- rebuild a document's metadata from the remote.
4. ``materialize_all`` -- walk the full listing and pull everything.
5. ``create`` / ``comment`` -- publish a new discussion or a comment.

Error handling is per discussion: every operation returns a
``SyncOutcome`` and never raises, and a bulk pull keeps going after an
individual failure.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

from .conflict import (
    LAST_SYNCED_KEY,
    has_conflict,
    local_synced_at,
)
from .document import (
    build_metadata,
    compose_document,
    decompose_document,
    format_instant,
    parse_plain_document,
)
from .metadata import decode_metadata
from .models import (
    DecisionContext,
    DiscussionRecord,
    SyncAction,
    SyncOutcome,
    SyncReport,
)
from .pagination import walk_pages
from .prompt import DecisionPrompt, decide
from .service import DiscussionService
from .store import DocumentStore

logger = logging.getLogger(__name__)

PULL_RATIONALE = "remote has changed since last sync"
PUSH_RATIONALE = (
    "remote changed since your last sync, pushing will overwrite it"
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _local_parts(
    text: str | None,
) -> tuple[str | None, str | None, dict[str, Any]]:
    """Split a local file into title, body and metadata, as far as possible.

    Files without a metadata block still yield title and body when they
    have a heading. Anything unparseable yields ``(None, None, {})``.
    """
    if text is None:
        return None, None, {}
    parsed = decompose_document(text)
    if parsed is not None:
        return parsed.title, parsed.body, dict(parsed.metadata)
    plain = parse_plain_document(text)
    if plain is not None:
        return plain[0], plain[1], {}
    return None, None, {}


class DiscussionSync:
    """Orchestrate sync operations for one repository and one folder.

    Args:
        service: Remote discussion service.
        store: Local document store.
        prompt: Decision prompt consulted on conflicts.
        page_size: Default listing page size for ``materialize_all``.
        decision_timeout: Seconds to wait for a decision; ``None`` waits
            forever. An abandoned decision means "do not proceed".
    """

    def __init__(
        self,
        service: DiscussionService,
        store: DocumentStore,
        prompt: DecisionPrompt,
        page_size: int = 20,
        decision_timeout: float | None = None,
    ) -> None:
        self.service = service
        self.store = store
        self.prompt = prompt
        self.page_size = page_size
        self.decision_timeout = decision_timeout
        self._locks: dict[int, asyncio.Lock] = {}

    def with_prompt(self, prompt: DecisionPrompt) -> DiscussionSync:
        """Return a view of this orchestrator that asks *prompt* instead.

        The view shares the per-discussion locks with this instance.
        """
        view = DiscussionSync(
            self.service,
            self.store,
            prompt,
            page_size=self.page_size,
            decision_timeout=self.decision_timeout,
        )
        view._locks = self._locks
        return view

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _lock_for(self, number: int) -> asyncio.Lock:
        lock = self._locks.get(number)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[number] = lock
        return lock

    @staticmethod
    def _stamp(previous: dict[str, Any] | None) -> datetime:
        """Return a ``lastSynced`` never earlier than the one on disk."""
        now = _utc_now()
        before = local_synced_at(previous)
        if before is not None and before > now:
            return before
        return now

    def _failure(
        self,
        number: int,
        action: SyncAction,
        message: str,
    ) -> SyncOutcome:
        return SyncOutcome(
            number=number,
            action=action,
            success=False,
            error=message,
            path=str(self.store.path_for(number)),
        )

    def _done(
        self, number: int, action: SyncAction, applied: bool = True
    ) -> SyncOutcome:
        return SyncOutcome(
            number=number,
            action=action,
            success=True,
            applied=applied,
            path=str(self.store.path_for(number)),
        )

    async def _ask(
        self,
        number: int,
        local_instant: datetime | None,
        remote: DiscussionRecord,
        rationale: str,
        operation: str,
    ) -> bool:
        context = DecisionContext(
            subject_id=f"#{number}",
            local_instant=local_instant,
            remote_instant=remote.updated_at,
            rationale=rationale,
            operation=operation,
        )
        decision = await decide(self.prompt, context, self.decision_timeout)
        return decision.proceed

    async def _write_record(
        self,
        record: DiscussionRecord,
        previous: dict[str, Any] | None,
        title: str | None = None,
        body: str | None = None,
    ) -> None:
        metadata = build_metadata(record, self._stamp(previous))
        text = compose_document(
            record.title if title is None else title,
            record.body if body is None else body,
            metadata,
        )
        await self.store.write_document(record.number, text)

    # ------------------------------------------------------------------
    # Materialize
    # ------------------------------------------------------------------

    async def materialize(self, number: int) -> SyncOutcome:
        """Pull discussion *number* into its local document."""
        async with self._lock_for(number):
            try:
                record = await self.service.get_discussion(number)
                if record is None:
                    return self._failure(
                        number,
                        SyncAction.SKIP,
                        f"Discussion #{number} not found",
                    )
                return await self._materialize_record(record)
            except Exception as exc:
                logger.error("Failed to materialize #%d: %s", number, exc)
                return self._failure(number, SyncAction.SKIP, str(exc))

    async def _materialize_record(
        self, record: DiscussionRecord
    ) -> SyncOutcome:
        number = record.number
        existing = await self.store.read_document(number)

        if existing is None:
            await self._write_record(record, None)
            logger.info("Created local document for #%d", number)
            return self._done(number, SyncAction.CREATE_LOCAL)

        metadata = decode_metadata(existing)
        if has_conflict(metadata, record):
            proceed = await self._ask(
                number,
                local_synced_at(metadata),
                record,
                PULL_RATIONALE,
                "pull",
            )
            if not proceed:
                logger.info("Kept local version of #%d", number)
                return self._done(number, SyncAction.KEEP_LOCAL, applied=False)

        await self._write_record(record, metadata)
        logger.info("Updated local document for #%d", number)
        return self._done(number, SyncAction.UPDATE_LOCAL)

    async def materialize_all(self, page_size: int | None = None) -> SyncReport:
        """Walk every listing page, then materialize each discussion.

        A single failing discussion never stops the run. A failing walk
        yields a report holding one failed outcome.
        """
        started_at = _utc_now().isoformat()
        try:
            records = await walk_pages(
                self.service.get_discussions, page_size or self.page_size
            )
        except Exception as exc:
            logger.error("Failed to list discussions: %s", exc)
            return SyncReport(
                outcomes=[
                    SyncOutcome(
                        number=0,
                        action=SyncAction.SKIP,
                        success=False,
                        error=f"Failed to list discussions: {exc}",
                    )
                ],
                started_at=started_at,
                completed_at=_utc_now().isoformat(),
            )

        outcomes: list[SyncOutcome] = []
        for record in records:
            async with self._lock_for(record.number):
                try:
                    outcome = await self._materialize_record(record)
                except Exception as exc:
                    logger.error(
                        "Failed to materialize #%d: %s", record.number, exc
                    )
                    outcome = self._failure(
                        record.number, SyncAction.SKIP, str(exc)
                    )
            outcomes.append(outcome)

        return SyncReport(
            outcomes=outcomes,
            total_count=len(records),
            started_at=started_at,
            completed_at=_utc_now().isoformat(),
        )

    # ------------------------------------------------------------------
    # Push
    # ------------------------------------------------------------------

    async def push(self, number: int) -> SyncOutcome:
        """Publish the local title and body of *number* to the remote."""
        async with self._lock_for(number):
            try:
                return await self._push(number)
            except Exception as exc:
                logger.error("Failed to push #%d: %s", number, exc)
                return self._failure(number, SyncAction.PUSH, str(exc))

    async def _push(self, number: int) -> SyncOutcome:
        text = await self.store.read_document(number)
        if text is None:
            return self._failure(
                number, SyncAction.PUSH, "Discussion file not found"
            )
        parsed = decompose_document(text)
        if parsed is None:
            return self._failure(
                number, SyncAction.PUSH, "Failed to parse markdown content"
            )

        metadata = dict(parsed.metadata)
        if not metadata.get("id"):
            metadata = await self._recover_identity(number, metadata)
            if not metadata.get("id"):
                return self._failure(
                    number,
                    SyncAction.PUSH,
                    "Discussion id missing from metadata and could not be recovered",
                )

        remote = await self.service.get_discussion(number)
        if remote is None:
            return self._failure(
                number, SyncAction.PUSH, f"Discussion #{number} not found"
            )

        if has_conflict(metadata, remote):
            proceed = await self._ask(
                number, local_synced_at(metadata), remote, PUSH_RATIONALE, "push"
            )
            if not proceed:
                logger.info("Push of #%d cancelled", number)
                return SyncOutcome(
                    number=number,
                    action=SyncAction.CANCELLED,
                    success=True,
                    applied=False,
                    error="Push cancelled: remote has newer changes",
                    path=str(self.store.path_for(number)),
                )

        updated = await self.service.update_discussion(
            metadata["id"], title=parsed.title, body=parsed.body
        )

        metadata["title"] = updated.title
        metadata["updated"] = format_instant(updated.updated_at)
        metadata[LAST_SYNCED_KEY] = format_instant(self._stamp(metadata))
        await self.store.write_document(
            number, compose_document(parsed.title, parsed.body, metadata)
        )
        logger.info("Pushed #%d", number)
        return self._done(number, SyncAction.PUSH)

    async def _recover_identity(
        self,
        number: int,
        metadata: dict[str, Any],
    ) -> dict[str, Any]:
        """Fill identifying metadata from the remote; existing keys win.

        The result stays in memory. It reaches disk only with the
        write-back after a successful update.
        """
        remote = await self.service.get_discussion(number)
        if remote is None:
            return metadata
        recovered = build_metadata(remote, self._stamp(metadata))
        kept = {k: v for k, v in metadata.items() if v not in (None, "")}
        merged = {**recovered, **kept}
        merged[LAST_SYNCED_KEY] = recovered[LAST_SYNCED_KEY]
        logger.info("Recovered metadata id for #%d", number)
        return merged

    # ------------------------------------------------------------------
    # Repair
    # ------------------------------------------------------------------

    async def repair(self, number: int) -> SyncOutcome:
        """Rebuild the metadata of *number* from the remote.

        Local title and body are kept when the file can be parsed.
        """
        async with self._lock_for(number):
            try:
                remote = await self.service.get_discussion(number)
                if remote is None:
                    return self._failure(
                        number,
                        SyncAction.REPAIR,
                        f"Discussion #{number} not found",
                    )

                text = await self.store.read_document(number)
                title, body, previous = _local_parts(text)
                await self._write_record(remote, previous, title, body)
                logger.info("Repaired metadata for #%d", number)
                return self._done(number, SyncAction.REPAIR)
            except Exception as exc:
                logger.error("Failed to repair #%d: %s", number, exc)
                return self._failure(number, SyncAction.REPAIR, str(exc))

    # ------------------------------------------------------------------
    # Create / comment
    # ------------------------------------------------------------------

    async def create(
        self, category: str, title: str, body: str
    ) -> SyncOutcome:
        """Publish a new discussion and write its local document."""
        try:
            record = await self.service.create_discussion(
                category, title, body
            )
        except Exception as exc:
            logger.error("Failed to create discussion: %s", exc)
            return SyncOutcome(
                number=0,
                action=SyncAction.CREATE_REMOTE,
                success=False,
                error=str(exc),
            )

        async with self._lock_for(record.number):
            try:
                await self._write_record(record, None)
            except Exception as exc:
                logger.error(
                    "Created #%d but failed to write it locally: %s",
                    record.number,
                    exc,
                )
                return self._failure(
                    record.number, SyncAction.CREATE_REMOTE, str(exc)
                )
        logger.info("Created discussion #%d", record.number)
        return self._done(record.number, SyncAction.CREATE_REMOTE)

    async def comment(
        self, number: int, body: str, reply_to_id: str | None = None
    ) -> SyncOutcome:
        """Add a comment to *number*, addressed by its metadata id."""
        async with self._lock_for(number):
            try:
                text = await self.store.read_document(number)
                if text is None:
                    return self._failure(
                        number,
                        SyncAction.COMMENT,
                        "Discussion file not found",
                    )
                title, doc_body, metadata = _local_parts(text)
                if not metadata.get("id"):
                    remote = await self.service.get_discussion(number)
                    if remote is None:
                        return self._failure(
                            number,
                            SyncAction.COMMENT,
                            f"Discussion #{number} not found",
                        )
                    await self._write_record(remote, metadata, title, doc_body)
                    metadata = {"id": remote.id}

                await self.service.add_comment(
                    metadata["id"], body, reply_to_id
                )
                logger.info("Commented on #%d", number)
                return self._done(number, SyncAction.COMMENT)
            except Exception as exc:
                logger.error("Failed to comment on #%d: %s", number, exc)
                return self._failure(number, SyncAction.COMMENT, str(exc))
