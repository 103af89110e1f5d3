"""Inline comment suggestions for bare ``//`` lines.

State machine
-------------
  WATCHING ──(pattern match, cooldown elapsed)──► PENDING
  PENDING  ──(newer match)──────────────────────► PENDING   (timer replaced)
  PENDING  ──(debounce elapsed)─────────────────► FIRING
  FIRING   ──(suggestion inserted or rejected)──► WATCHING

Two gates keep the endpoint quiet while the user types:

- **cooldown**: events arriving less than ``cooldown_s`` after the last
  accepted fire are dropped before anything is read from the editor;
- **debounce**: only the last matching event of a burst survives; each
  match cancels the pending ``TimerHandle`` and schedules a new one.

A fire that is already talking to the endpoint is never cancelled by later
scheduling. The insertion position is captured when the event is
evaluated; before inserting, the triggering line is re-read and the
suggestion is dropped if the user changed it in the meantime.
"""

from __future__ import annotations

import asyncio
import time
from enum import Enum
from typing import Any, Callable

import structlog

from scribe.config import Messages, settings
from scribe.core.inference import InferenceClient
from scribe.core.prompt import (
    COMMENT_MARKER,
    SuggestionVerdict,
    build_comment_prompt,
    clean_suggestion,
    is_trigger_line,
    validate_suggestion,
)
from scribe.core.types import EditorCursor, EditorSurface, Notifier
from scribe.observability.metrics import get_metrics

logger = structlog.get_logger()


class TriggerState(Enum):
    WATCHING = "watching"
    PENDING = "pending"
    FIRING = "firing"


class FireResult(Enum):
    NO_CODE_ABOVE = "no_code_above"
    INVALID_CODE_ABOVE = "invalid_code_above"
    REJECTED = "rejected"
    STALE = "stale"
    INSERTED = "inserted"


class InlineSuggestionTrigger:
    """Debounced, cooldown-gated watcher over editor change events."""

    def __init__(
        self,
        editor: EditorSurface,
        client: InferenceClient,
        notifier: Notifier,
        *,
        debounce_s: float | None = None,
        cooldown_s: float | None = None,
        max_comment_chars: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._editor = editor
        self._client = client
        self._notifier = notifier
        self.debounce_s = debounce_s if debounce_s is not None else settings.debounce_s
        self.cooldown_s = cooldown_s if cooldown_s is not None else settings.cooldown_s
        self.max_comment_chars = (
            max_comment_chars if max_comment_chars is not None else settings.max_comment_chars
        )
        self._clock = clock

        self.last_fire: float = float("-inf")
        self._pending: asyncio.TimerHandle | None = None
        self._inflight: set[asyncio.Task] = set()

    @property
    def state(self) -> TriggerState:
        if self._inflight:
            return TriggerState.FIRING
        if self._pending is not None:
            return TriggerState.PENDING
        return TriggerState.WATCHING

    # ------------------------------------------------------------------
    # Event intake
    # ------------------------------------------------------------------

    def on_change(self, *_: Any) -> None:
        """Editor change listener. Arguments from the editor are ignored."""
        if self._clock() - self.last_fire < self.cooldown_s:
            get_metrics().trigger_suppressed("cooldown")
            return

        cursor = self._editor.get_cursor()
        line = self._editor.get_line_text(cursor.row)
        if not is_trigger_line(line):
            return

        self._schedule(EditorCursor(row=cursor.row, column=len(line)), line)

    def _schedule(self, cursor: EditorCursor, line: str) -> None:
        loop = asyncio.get_running_loop()
        if self._pending is not None:
            self._pending.cancel()
        self._pending = loop.call_later(self.debounce_s, self._on_debounce_elapsed, cursor, line)
        logger.debug("trigger_scheduled", row=cursor.row, debounce_s=self.debounce_s)

    def _on_debounce_elapsed(self, cursor: EditorCursor, line: str) -> None:
        # Cooldown starts here, not when the task first runs: change events
        # queued behind this callback must already see the new timestamp.
        self._pending = None
        self.last_fire = self._clock()
        get_metrics().trigger_fired()
        task = asyncio.get_running_loop().create_task(self.fire(cursor, line))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    def cancel(self) -> None:
        """Drop the pending debounce timer, if any."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    async def drain(self) -> None:
        """Wait for fires that are already running."""
        if self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    # ------------------------------------------------------------------
    # Firing
    # ------------------------------------------------------------------

    async def fire(self, cursor: EditorCursor, line: str) -> FireResult:
        """Request a comment for the line above *cursor* and insert it.

        Cooldown bookkeeping belongs to the debounce callback; calling this
        directly does not touch ``last_fire``.
        """
        metrics = get_metrics()

        target_row = cursor.row - 1
        if target_row < 0:
            self._notifier.notify(Messages.NO_CODE_ABOVE, level="warning")
            metrics.trigger_suppressed(FireResult.NO_CODE_ABOVE.value)
            return FireResult.NO_CODE_ABOVE

        target = self._editor.get_line_text(target_row).strip()
        if not target or target.startswith(COMMENT_MARKER):
            self._notifier.notify(Messages.INVALID_CODE_ABOVE, level="warning")
            metrics.trigger_suppressed(FireResult.INVALID_CODE_ABOVE.value)
            return FireResult.INVALID_CODE_ABOVE

        self._notifier.notify(Messages.GENERATING)
        logger.info("trigger_fired", row=cursor.row, target_length=len(target))
        raw = await self._client.complete(
            build_comment_prompt(target, self.max_comment_chars)
        )

        suggestion = clean_suggestion(raw)
        verdict = validate_suggestion(suggestion, self.max_comment_chars)
        metrics.suggestion(verdict.value)
        if verdict is not SuggestionVerdict.ACCEPTED:
            logger.info("suggestion_rejected", verdict=verdict.value, length=len(suggestion))
            self._notifier.notify(Messages.COMMENT_FAILED, level="error")
            return FireResult.REJECTED

        if self._editor.get_line_text(cursor.row) != line:
            logger.info("suggestion_stale", row=cursor.row)
            metrics.suggestion(FireResult.STALE.value)
            self._notifier.notify(Messages.EDITOR_CHANGED, level="warning")
            return FireResult.STALE

        self._editor.insert_text_at(cursor, f" {suggestion}")
        metrics.suggestion(FireResult.INSERTED.value)
        logger.info("suggestion_inserted", row=cursor.row, column=cursor.column)
        self._notifier.notify(Messages.COMMENT_INSERTED, level="success")
        return FireResult.INSERTED
