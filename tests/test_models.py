"""Tests for data models."""

from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest

from notelink.models import (
    Candidate,
    Document,
    MatchResult,
    Position,
    PositionRange,
    Suggestion,
)


class TestSuggestion:
    """Test Suggestion dataclass."""

    def test_from_candidate(self) -> None:
        """Should start out unresolved."""
        suggestion = Suggestion.from_candidate(Candidate(name="note.md", header="Intro"))

        assert suggestion.name == "note.md"
        assert suggestion.header == "Intro"
        assert suggestion.document is None
        assert suggestion.position is None
        assert suggestion.match is None
        assert suggestion.error is None
        assert not suggestion.is_resolved

    def test_is_resolved(self) -> None:
        """Needs both a document and a position."""
        start = Position(line=3, column=0, offset=10)
        suggestion = Suggestion(
            name="note.md",
            header="Intro",
            document=Document(name="note.md", path=Path("note.md")),
            position=PositionRange(start=start, end=start),
            match=MatchResult(score=0.1, highlights=((0, 2),)),
        )

        assert suggestion.is_resolved

    def test_document_without_position(self) -> None:
        """A found note without a matched section is not resolved."""
        suggestion = Suggestion(
            name="note.md",
            header="Intro",
            document=Document(name="note.md", path=Path("note.md")),
        )

        assert not suggestion.is_resolved

    def test_immutable(self) -> None:
        """Suggestions cannot be modified once built."""
        suggestion = Suggestion(name="a.md", header="h")

        with pytest.raises(dataclasses.FrozenInstanceError):
            suggestion.name = "b.md"  # type: ignore[misc]
