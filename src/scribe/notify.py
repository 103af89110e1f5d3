"""User notifications.

``SafeNotifier`` wraps whatever the host provides so that a broken toast
renderer can never take a run or a trigger down with it. ``ToastQueue`` is
a headless toast store for hosts without their own renderer: it keeps the
visible toasts, expires them after a duration, and hands each new one to an
optional ``render`` callback.
"""

from __future__ import annotations

import asyncio
import inspect
import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable

import structlog

from scribe.config import settings

if TYPE_CHECKING:  # pragma: no cover - typing only
    from scribe.core.types import Notifier

logger = structlog.get_logger()


class NotificationLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


def normalise_level(level: str | NotificationLevel) -> NotificationLevel:
    """Map *level* onto a known level, falling back to ``info``."""
    try:
        return NotificationLevel(level)
    except ValueError:
        logger.warning("unknown_notification_level", level=level)
        return NotificationLevel.INFO


def _accepts_level(notify: Callable[..., None]) -> bool:
    try:
        params = inspect.signature(notify).parameters
    except (TypeError, ValueError):
        return False
    return "level" in params or any(
        p.kind is inspect.Parameter.VAR_KEYWORD for p in params.values()
    )


class SafeNotifier:
    """Notifier adapter that validates input and never raises at runtime."""

    def __init__(self, inner: Notifier) -> None:
        self._inner = inner
        self._pass_level = _accepts_level(inner.notify)

    @property
    def inner(self) -> Notifier:
        return self._inner

    def notify(self, message: str, level: str = "info") -> None:
        if not isinstance(message, str):
            raise TypeError('Parameter "message" must be a string.')
        resolved = normalise_level(level)
        try:
            if self._pass_level:
                self._inner.notify(message, level=resolved.value)
            else:
                self._inner.notify(message)
        except Exception as e:
            logger.error("notify_failed", error=str(e), message=message[:200])


_toast_ids = itertools.count(1)


@dataclass
class Toast:
    message: str
    level: NotificationLevel
    duration_s: float
    id: int = field(default_factory=lambda: next(_toast_ids))


class ToastQueue:
    """Headless toast store.

    Args:
        duration_s: Seconds before a toast is removed; ``0`` keeps it until
            dismissed.
        allow_multiple: Keep earlier toasts visible when a new one arrives.
        render: Called with every new toast.
    """

    def __init__(
        self,
        duration_s: float | None = None,
        allow_multiple: bool = False,
        render: Callable[[Toast], None] | None = None,
    ) -> None:
        self.duration_s = duration_s if duration_s is not None else settings.toast_duration_s
        self.allow_multiple = allow_multiple
        self._render = render
        self._active: list[Toast] = []
        self._timers: dict[int, asyncio.TimerHandle] = {}
        self.history: list[Toast] = []

    @property
    def active(self) -> list[Toast]:
        return list(self._active)

    def notify(self, message: str, level: str = "info") -> None:
        toast = Toast(message=message, level=normalise_level(level), duration_s=self.duration_s)
        if not self.allow_multiple:
            for existing in list(self._active):
                self.dismiss(existing)

        self._active.append(toast)
        self.history.append(toast)
        logger.info("toast_shown", toast_id=toast.id, level=toast.level.value, message=message[:200])

        if toast.duration_s > 0:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None
            if loop is not None:
                self._timers[toast.id] = loop.call_later(toast.duration_s, self.dismiss, toast)

        if self._render is not None:
            self._render(toast)

    def dismiss(self, toast: Toast) -> None:
        """Remove *toast* if it is still visible."""
        timer = self._timers.pop(toast.id, None)
        if timer is not None:
            timer.cancel()
        if toast in self._active:
            self._active.remove(toast)
            logger.debug("toast_dismissed", toast_id=toast.id)

    def clear(self) -> None:
        for toast in list(self._active):
            self.dismiss(toast)
