"""Discussion sync engine.

Public API for keeping GitHub Discussions and a folder of local
Markdown documents (``discussion-{number}.md``) in step.

Architecture
------------
Every local document carries its own sync state in a metadata block at
the top of the file. The ``lastSynced`` watermark there is compared with
the remote ``updatedAt``; if the remote moved on since the last sync, a
decision prompt is asked before anything is overwritten.

Modules:

- ``engine``     -- ``DiscussionSync``: materialize, push, repair,
  materialize-all, create, comment.
- ``metadata``   -- Metadata block codec.
- ``document``   -- Compose and decompose persisted documents.
- ``conflict``   -- Timestamp conflict detection.
- ``pagination`` -- Cursor pagination walker.
- ``prompt``     -- Decision prompts and the ``create_prompt`` factory.
- ``store``      -- ``DocumentStore``: local file access.
- ``service``    -- ``DiscussionService``: async remote access.
- ``models``     -- Data contracts.
- ``reporter``   -- Human-readable and JSON formatting.

Usage example
-------------
::

    from gh_discussions_sync.core.client import GitHubClient
    from gh_discussions_sync.sync import (
        DiscussionService,
        DiscussionSync,
        DocumentStore,
        create_prompt,
        format_sync_report,
    )

    sync = DiscussionSync(
        service=DiscussionService(GitHubClient(config)),
        store=DocumentStore(config.discussions_folder),
        prompt=create_prompt("interactive"),
    )

    report = await sync.materialize_all()
    print(format_sync_report(report))

    outcome = await sync.push(42)
"""

from .engine import DiscussionSync
from .models import (
    ConflictDecision,
    DecisionContext,
    DiscussionRecord,
    SyncAction,
    SyncOutcome,
    SyncReport,
)
from .prompt import (
    AlwaysProceedPrompt,
    DecisionPrompt,
    NeverProceedPrompt,
    ScriptedPrompt,
    TerminalPrompt,
    create_prompt,
)
from .reporter import format_outcome, format_sync_report, report_to_json
from .service import DiscussionService
from .store import DocumentStore

__all__ = [
    "AlwaysProceedPrompt",
    "ConflictDecision",
    "DecisionContext",
    "DecisionPrompt",
    "DiscussionRecord",
    "DiscussionService",
    "DiscussionSync",
    "DocumentStore",
    "NeverProceedPrompt",
    "ScriptedPrompt",
    "SyncAction",
    "SyncOutcome",
    "SyncReport",
    "TerminalPrompt",
    "create_prompt",
    "format_outcome",
    "format_sync_report",
    "report_to_json",
]
