"""Shared types for the scribe core module.

The host (browser bridge, desktop shell, test harness) provides the editor,
the notifier, the code runner and the run control. The core only talks to
them through these protocols.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Protocol

ChangeListener = Callable[..., None]
ClickListener = Callable[[], None]

# Executes the editor's full text in the host. May raise; may be async.
CodeRunner = Callable[[str], Any]


@dataclass(frozen=True)
class EditorCursor:
    """Zero-based editor position."""

    row: int
    column: int


class EditorSurface(Protocol):
    def get_full_text(self) -> str: ...

    def get_cursor(self) -> EditorCursor: ...

    def get_line_text(self, row: int) -> str: ...

    def insert_text_at(self, cursor: EditorCursor, text: str) -> None: ...

    def on_change(self, listener: ChangeListener) -> None: ...


class Notifier(Protocol):
    def notify(self, message: str, level: str = "info") -> None: ...


class RunControl(Protocol):
    """The host's "run code" button."""

    def remove_all_listeners(self) -> None: ...

    def add_listener(self, listener: ClickListener) -> None: ...


@dataclass
class HostBindings:
    """Capabilities handed to the controller by the host."""

    editor: EditorSurface | None
    notifier: Notifier
    runner: CodeRunner
    run_control: RunControl | None = None
