"""scribe — AI assist layer for code editors."""

__version__ = "0.1.0"
