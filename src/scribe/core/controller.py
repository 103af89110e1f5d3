"""Controller wiring for the editor assist layer.

One ``AssistController`` per host lifetime. ``activate()`` is the only entry
point the host calls; it is safe to call repeatedly. The first successful
call binds the run control and subscribes the inline trigger to editor
changes, later calls only log. A missing editor aborts setup without
raising, so the host page keeps working without the assist layer.

Usage
-----
    controller = get_controller(HostBindings(
        editor=editor, notifier=toasts, runner=run_code, run_control=button,
    ))
    controller.activate()
    ...
    await close_controller()
"""

from __future__ import annotations

import time
from typing import Callable

import structlog

from scribe.config import Settings, settings
from scribe.core.errors import SetupError
from scribe.core.inference import InferenceClient
from scribe.core.interceptor import RunInterceptor
from scribe.core.trigger import InlineSuggestionTrigger
from scribe.core.types import CodeRunner, EditorSurface, HostBindings, Notifier, RunControl
from scribe.notify import SafeNotifier

logger = structlog.get_logger()


class AssistController:
    """Injection guard plus the components it wires together."""

    def __init__(
        self,
        editor: EditorSurface | None,
        notifier: Notifier,
        runner: CodeRunner,
        run_control: RunControl | None = None,
        client: InferenceClient | None = None,
        *,
        config: Settings = settings,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._editor = editor
        self._notifier = notifier if isinstance(notifier, SafeNotifier) else SafeNotifier(notifier)
        self._runner = runner
        self._run_control = run_control
        self._owns_client = client is None
        self._client = client or InferenceClient(
            endpoint=config.chat_endpoint,
            timeout_s=config.request_timeout_s,
        )
        self._config = config
        self._clock = clock

        self._activated = False
        self.interceptor: RunInterceptor | None = None
        self.trigger: InlineSuggestionTrigger | None = None

    @property
    def activated(self) -> bool:
        return self._activated

    @property
    def client(self) -> InferenceClient:
        return self._client

    def activate(self) -> bool:
        """Wire the controller into the host once. Returns ``True`` when active."""
        if self._activated:
            logger.info("controller_already_active")
            return True

        try:
            editor = self._require_editor()
        except SetupError as e:
            logger.error("controller_setup_failed", error=str(e))
            return False

        self.interceptor = RunInterceptor(editor, self._runner, self._client, self._notifier)
        if self._run_control is not None:
            self.interceptor.bind(self._run_control)
        else:
            logger.warning("run_control_missing")

        self.trigger = InlineSuggestionTrigger(
            editor,
            self._client,
            self._notifier,
            debounce_s=self._config.debounce_s,
            cooldown_s=self._config.cooldown_s,
            max_comment_chars=self._config.max_comment_chars,
            clock=self._clock,
        )
        editor.on_change(self.trigger.on_change)

        self._activated = True
        logger.info(
            "controller_activated",
            endpoint=self._client.endpoint,
            run_control=self._run_control is not None,
        )
        return True

    def _require_editor(self) -> EditorSurface:
        if self._editor is None:
            raise SetupError("Editor capability is not available")
        return self._editor

    async def close(self) -> None:
        """Stop timers, wait for running work and release the HTTP client."""
        if self.trigger is not None:
            self.trigger.cancel()
            await self.trigger.drain()
        if self.interceptor is not None:
            await self.interceptor.drain()
        if self._owns_client:
            await self._client.close()
        logger.info("controller_closed")


_controller: AssistController | None = None


def get_controller(host: HostBindings | None = None) -> AssistController:
    """Get or create the singleton controller for this host."""
    global _controller
    if _controller is None:
        if host is None:
            raise SetupError("Host bindings are required to create the controller")
        _controller = AssistController(
            editor=host.editor,
            notifier=host.notifier,
            runner=host.runner,
            run_control=host.run_control,
        )
    return _controller


async def close_controller() -> None:
    global _controller
    if _controller is not None:
        await _controller.close()
        _controller = None
