"""Run-button interception.

Each click moves through::

  IDLE ──(text empty)──────────► EMPTY
  IDLE ──► EXECUTING ──(ok)────► SUCCEEDED
                     ──(raises)► FAILED  (explanation requested and shown)

The host runner is opaque: it may be sync or async and may raise anything.
A failure is explained by the inference endpoint and surfaced as a toast;
it never propagates out of the click handler.
"""

from __future__ import annotations

import asyncio
import inspect
from enum import Enum

import structlog

from scribe.config import Messages
from scribe.core.inference import InferenceClient
from scribe.core.prompt import build_error_prompt
from scribe.core.types import CodeRunner, EditorSurface, Notifier, RunControl
from scribe.observability.metrics import get_metrics

logger = structlog.get_logger()


class RunOutcome(Enum):
    IDLE = "idle"
    EXECUTING = "executing"
    EMPTY = "empty"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def error_message(exc: BaseException) -> str:
    """Human-readable message of a host execution error."""
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message.strip():
        return message
    return str(exc) or exc.__class__.__name__


class RunInterceptor:
    """Owns the single click listener on the host's run control."""

    def __init__(
        self,
        editor: EditorSurface,
        runner: CodeRunner,
        client: InferenceClient,
        notifier: Notifier,
    ) -> None:
        self._editor = editor
        self._runner = runner
        self._client = client
        self._notifier = notifier
        self.state = RunOutcome.IDLE
        self._tasks: set[asyncio.Task] = set()

    def bind(self, control: RunControl) -> None:
        """Drop every listener on *control* and attach ours."""
        control.remove_all_listeners()
        control.add_listener(self._on_click)
        logger.info("run_control_bound")

    def _on_click(self) -> None:
        task = asyncio.get_running_loop().create_task(self.handle_click())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for clicks still being handled."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def handle_click(self) -> RunOutcome:
        code = self._editor.get_full_text()
        if not code.strip():
            self._notifier.notify(Messages.EMPTY_CODE, level="warning")
            return self._finish(RunOutcome.EMPTY)

        self.state = RunOutcome.EXECUTING
        logger.info("run_started", code_length=len(code))
        try:
            result = self._runner(code)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            message = error_message(e)
            logger.warning("run_failed", error=message, error_type=e.__class__.__name__)
            await self._explain(message, code)
            return self._finish(RunOutcome.FAILED)

        return self._finish(RunOutcome.SUCCEEDED)

    async def _explain(self, message: str, code: str) -> None:
        self._notifier.notify(Messages.ANALYZING)
        explanation = await self._client.complete(build_error_prompt(message, code))
        self._notifier.notify(explanation or Messages.EXPLANATION_EMPTY, level="error")

    def _finish(self, outcome: RunOutcome) -> RunOutcome:
        self.state = outcome
        get_metrics().run_finished(outcome.value)
        logger.info("run_finished", outcome=outcome.value)
        return outcome
