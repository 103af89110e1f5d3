"""Pytest configuration and shared fakes.

Run with:
    pytest tests/                         # Run all tests
    pytest tests/test_inline_trigger.py -v  # Run specific test file

Nothing here touches the network: the host capabilities are in-memory
fakes and HTTP goes through ``httpx.MockTransport``.
"""

from __future__ import annotations

import asyncio

import pytest

from scribe.core.types import EditorCursor
from scribe.observability.metrics import get_metrics


class FakeEditor:
    """In-memory editor with one listener list, like an Ace session."""

    def __init__(self, lines: list[str], cursor_row: int = 0) -> None:
        self.lines = list(lines)
        self.cursor = EditorCursor(row=cursor_row, column=len(self.get_line_text(cursor_row)))
        self.listeners: list = []
        self.inserts: list[tuple[EditorCursor, str]] = []

    def get_full_text(self) -> str:
        return "\n".join(self.lines)

    def get_cursor(self) -> EditorCursor:
        return self.cursor

    def get_line_text(self, row: int) -> str:
        if 0 <= row < len(self.lines):
            return self.lines[row]
        return ""

    def insert_text_at(self, cursor: EditorCursor, text: str) -> None:
        line = self.lines[cursor.row]
        self.lines[cursor.row] = line[: cursor.column] + text + line[cursor.column:]
        self.inserts.append((cursor, text))

    def on_change(self, listener) -> None:
        self.listeners.append(listener)

    # Test helpers
    def type_line(self, row: int, text: str) -> None:
        """Replace *row* with *text*, move the cursor there and emit a change."""
        while len(self.lines) <= row:
            self.lines.append("")
        self.lines[row] = text
        self.cursor = EditorCursor(row=row, column=len(text))
        self.emit()

    def emit(self) -> None:
        for listener in list(self.listeners):
            listener({"action": "insert"})


class RecordingNotifier:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []

    def notify(self, message: str, level: str = "info") -> None:
        self.calls.append((message, level))

    @property
    def messages(self) -> list[str]:
        return [message for message, _ in self.calls]


class FakeControl:
    """Run button with a listener list."""

    def __init__(self, listeners: list | None = None) -> None:
        self.listeners: list = list(listeners or [])

    def remove_all_listeners(self) -> None:
        self.listeners.clear()

    def add_listener(self, listener) -> None:
        self.listeners.append(listener)

    def click(self) -> None:
        for listener in list(self.listeners):
            listener()


class StubClient:
    """Stands in for InferenceClient; records prompts and returns a canned reply."""

    endpoint = "http://stub.invalid/chat"

    def __init__(self, reply: str = "", delay: float = 0.0) -> None:
        self.reply = reply
        self.delay = delay
        self.prompts: list[str] = []
        self.closed = False

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.reply

    async def close(self) -> None:
        self.closed = True


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _reset_metrics():
    get_metrics().reset_all()
    yield
    get_metrics().reset_all()


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def control() -> FakeControl:
    return FakeControl()
