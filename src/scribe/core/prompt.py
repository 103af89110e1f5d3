"""Prompt builders and suggestion post-processing.

Prompt wording is deliberately short: the endpoint is a small local model
and the comment has to fit on the end of a line.
"""

from __future__ import annotations

import re
from enum import Enum

from scribe.config import settings

# Trailing sentence terminators, ASCII and full-width.
_TRAILING_PUNCTUATION = re.compile(r"[.。!！?？;；…]+$")

# Replies that describe a failure rather than the code.
_FAILURE_PATTERN = re.compile(
    r"error|undefined|null|sorry|apolog|cannot|can't|unable|unavailable|fail"
    r"|错误|报错|未定义|抱歉|对不起|无法|不能|失败",
    re.IGNORECASE,
)

_TRIGGER_LINE = re.compile(r"^//\s*$")
COMMENT_MARKER = "//"


class SuggestionVerdict(Enum):
    ACCEPTED = "accepted"
    EMPTY = "empty"
    TOO_LONG = "too_long"
    FAILURE_TEXT = "failure_text"


def build_error_prompt(message: str, code: str) -> str:
    return (
        "The following JavaScript code threw an error when it was run.\n"
        f"Error: {message}\n\n"
        "Code:\n"
        f"{code}\n\n"
        "Explain briefly, in plain language, what caused the error and how to fix it."
    )


def build_comment_prompt(line: str, max_chars: int | None = None) -> str:
    limit = max_chars if max_chars is not None else settings.max_comment_chars
    return (
        "Write a very short comment describing what this line of code does.\n"
        f"Line: {line}\n"
        f"Reply with the comment text only, at most {limit} characters, "
        "no comment markers and no quotes."
    )


def is_trigger_line(line: str) -> bool:
    """A bare ``//`` comment opener, nothing else on the line."""
    return bool(_TRIGGER_LINE.match(line.strip()))


def clean_suggestion(raw: str) -> str:
    return _TRAILING_PUNCTUATION.sub("", raw.strip()).rstrip()


def validate_suggestion(text: str, max_chars: int | None = None) -> SuggestionVerdict:
    limit = max_chars if max_chars is not None else settings.max_comment_chars
    if not text:
        return SuggestionVerdict.EMPTY
    if len(text) > limit:
        return SuggestionVerdict.TOO_LONG
    if _FAILURE_PATTERN.search(text):
        return SuggestionVerdict.FAILURE_TEXT
    return SuggestionVerdict.ACCEPTED
