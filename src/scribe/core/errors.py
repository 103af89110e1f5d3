"""Error hierarchy for the scribe controller.

None of these cross a component boundary at runtime: setup failures are
logged and reported as a ``False`` activation, inference failures are
downgraded to ``Messages.FALLBACK_TEXT`` inside the client.
"""

from __future__ import annotations


class ScribeError(Exception):
    """Root exception for all scribe domain errors."""


class SetupError(ScribeError):
    """A required host capability is missing."""


class InferenceError(ScribeError):
    """The inference endpoint failed or answered with a non-success status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
