"""Exception hierarchy for NoteLink."""

from __future__ import annotations


class NoteLinkError(Exception):
    """Base class for all NoteLink errors."""


class ConfigError(NoteLinkError):
    """Raised when configuration is invalid, e.g. a bad boundary pattern."""


class LookupMiss(NoteLinkError):
    """No note in the vault matches a candidate's name."""


class ReadFailure(NoteLinkError):
    """A note exists but its text could not be read."""


class RetrievalFailure(NoteLinkError):
    """The retrieval backend failed or rejected a query."""


class InvalidOffsetError(NoteLinkError, ValueError):
    """An offset lies outside the text it refers to."""
