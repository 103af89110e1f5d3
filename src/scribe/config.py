"""Centralized configuration via Pydantic Settings.

All values loaded from environment variables prefixed with SCRIBE_.
User-facing notification texts live in ``Messages`` so they can be
reworded in one place.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SCRIBE_", env_file=".env", extra="ignore")

    # Inference endpoint (line-framed streaming chat)
    chat_endpoint: str = "http://127.0.0.1:3000/chat"
    request_timeout_s: float = 8.0
    connect_timeout_s: float = 5.0

    # ── Inline suggestion trigger ─────────────────────────────
    debounce_s: float = 0.6
    cooldown_s: float = 1.5
    max_comment_chars: int = 15

    # ── Notifications ─────────────────────────────────────────
    toast_duration_s: float = 3.0

    # Application
    log_level: str = "INFO"
    env: str = "development"


settings = Settings()  # type: ignore[call-arg]


class Messages:
    """Registry of every string shown to the user."""

    FALLBACK_TEXT = "AI service is unavailable right now. Please try again later."

    EMPTY_CODE = "There is no code to run."
    ANALYZING = "Code failed, asking the AI what went wrong..."
    EXPLANATION_EMPTY = "The AI could not explain this error."

    NO_CODE_ABOVE = "There is no code above this line to comment on."
    INVALID_CODE_ABOVE = "The line above is not valid code to comment on."
    GENERATING = "Generating comment..."
    COMMENT_INSERTED = "Comment inserted."
    COMMENT_FAILED = "Could not generate a comment."
    EDITOR_CHANGED = "The line changed while generating, comment discarded."
