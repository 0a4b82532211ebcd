"""Decision prompts for detected conflicts.

When the remote changed since the last local sync, the engine asks a
``DecisionPrompt`` whether to proceed. Implementations:

- ``TerminalPrompt``: Asks a human on the terminal (y/N, default no).
- ``AlwaysProceedPrompt``: Always proceeds (remote wins on pull, local
  wins on push).
- ``NeverProceedPrompt``: Never proceeds (the other side is kept).
- ``ScriptedPrompt``: Replays canned answers and records what was asked.

The ``create_prompt()`` factory maps config policy strings to prompt
instances. ``decide()`` wraps a single ask with abandonment handling:
a timeout or an error counts as "do not proceed".
"""

from __future__ import annotations

import asyncio
import logging
import sys
import threading
from typing import Protocol, TextIO

from gh_discussions_sync.sync.models import ConflictDecision, DecisionContext

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class DecisionPrompt(Protocol):
    """Protocol that all decision prompts must satisfy."""

    async def ask(self, context: DecisionContext) -> bool:
        """Return ``True`` to proceed with the write, ``False`` otherwise.

        May suspend for an arbitrary time (e.g. waiting for a human).
        Exactly one answer is produced per call.
        """
        ...  # pragma: no cover


# ---------------------------------------------------------------------------
# Terminal prompt
# ---------------------------------------------------------------------------


def describe_context(context: DecisionContext) -> str:
    """Render *context* as the text shown to a human."""
    local = (
        context.local_instant.isoformat()
        if context.local_instant
        else "unknown"
    )
    lines = [
        f"Discussion {context.subject_id} has been updated on GitHub.",
        f"  Local file last synced: {local}",
        f"  GitHub last updated:    {context.remote_instant.isoformat()}",
        f"  {context.rationale}",
    ]
    return "\n".join(lines)


class TerminalPrompt:
    """Ask on the terminal. Anything but ``y``/``yes`` means no.

    Reading happens in a daemon thread so the event loop keeps running.
    An abandoned question leaves that thread blocked on stdin without
    holding up interpreter shutdown.
    """

    def __init__(
        self,
        stdin: TextIO | None = None,
        stderr: TextIO | None = None,
    ) -> None:
        self._stdin = stdin
        self._stderr = stderr

    def _read_answer(self, question: str) -> str:
        out = self._stderr or sys.stderr
        out.write(question)
        out.flush()
        return (self._stdin or sys.stdin).readline()

    async def ask(self, context: DecisionContext) -> bool:
        action = (
            "Continue push" if context.operation == "push" else "Update from GitHub"
        )
        question = f"{describe_context(context)}\n{action}? [y/N] "
        loop = asyncio.get_running_loop()
        answer: asyncio.Future[str] = loop.create_future()

        def _settle(line: str | None, error: BaseException | None) -> None:
            if answer.done():
                return
            if error is not None:
                answer.set_exception(error)
            else:
                answer.set_result(line or "")

        def _reader() -> None:
            line, error = None, None
            try:
                line = self._read_answer(question)
            except Exception as exc:
                error = exc
            try:
                loop.call_soon_threadsafe(_settle, line, error)
            except RuntimeError:
                # loop already closed; the question was abandoned
                logger.debug("Dropping late answer for %s", context.subject_id)

        threading.Thread(
            target=_reader, name="terminal-prompt", daemon=True
        ).start()
        return (await answer).strip().lower() in ("y", "yes")


# ---------------------------------------------------------------------------
# Policy prompts
# ---------------------------------------------------------------------------


class AlwaysProceedPrompt:
    """Always proceed with the write."""

    async def ask(self, context: DecisionContext) -> bool:
        logger.info(
            "Proceeding for %s (policy=always-proceed)", context.subject_id
        )
        return True


class NeverProceedPrompt:
    """Never proceed; the side that would be overwritten is kept."""

    async def ask(self, context: DecisionContext) -> bool:
        logger.info(
            "Not proceeding for %s (policy=never-proceed)",
            context.subject_id,
        )
        return False


class ScriptedPrompt:
    """Replay *answers* in order, then fall back to *default*.

    Every context asked about is appended to ``asked``.
    """

    def __init__(
        self, answers: list[bool] | None = None, default: bool = False
    ) -> None:
        self._answers = list(answers or [])
        self._default = default
        self.asked: list[DecisionContext] = []

    async def ask(self, context: DecisionContext) -> bool:
        self.asked.append(context)
        if self._answers:
            return self._answers.pop(0)
        return self._default


# ---------------------------------------------------------------------------
# Abandonment-safe ask
# ---------------------------------------------------------------------------


async def decide(
    prompt: DecisionPrompt,
    context: DecisionContext,
    timeout: float | None = None,
) -> ConflictDecision:
    """Ask *prompt* once and wrap the answer in a ``ConflictDecision``.

    If the prompt does not answer within *timeout* seconds, or fails, the
    wait is abandoned and the decision is "do not proceed".
    """
    try:
        if timeout is None:
            proceed = await prompt.ask(context)
        else:
            proceed = await asyncio.wait_for(prompt.ask(context), timeout)
    except asyncio.TimeoutError:
        logger.warning(
            "No decision for %s within %.1fs; not proceeding",
            context.subject_id,
            timeout,
        )
        proceed = False
    except Exception as exc:
        logger.error(
            "Decision prompt failed for %s: %s; not proceeding",
            context.subject_id,
            exc,
        )
        proceed = False

    return ConflictDecision(
        proceed=bool(proceed),
        local_instant=context.local_instant,
        remote_instant=context.remote_instant,
        rationale=context.rationale,
    )


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

_POLICY_MAP: dict[str, type] = {
    "interactive": TerminalPrompt,
    "always-proceed": AlwaysProceedPrompt,
    "never-proceed": NeverProceedPrompt,
}


def create_prompt(policy: str) -> DecisionPrompt:
    """Create a decision prompt for the given policy string.

    Args:
        policy: One of ``"interactive"``, ``"always-proceed"``,
            ``"never-proceed"``.

    Raises:
        ValueError: If the policy string is not recognised.
    """
    cls = _POLICY_MAP.get(policy)
    if cls is None:
        raise ValueError(
            f"Unknown conflict policy: '{policy}'. Valid policies: {sorted(_POLICY_MAP.keys())}"
        )
    return cls()  # type: ignore[return-value]
