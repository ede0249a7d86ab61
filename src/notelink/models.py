"""Core NoteLink data models."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Tuple


@dataclass(frozen=True, slots=True)
class Document:
    """A Markdown note, identified by its file name."""

    name: str
    path: Path
    mtime: float = 0.0


@dataclass(frozen=True, slots=True)
class Section:
    """Contiguous block of a note.

    ``start`` and ``end`` are offsets into the raw note text. ``text`` is the
    concatenation of the block's lines without their newlines.
    """

    text: str
    start: int
    end: int


@dataclass(frozen=True, slots=True)
class Candidate:
    """Unresolved (note name, heading) pair returned by retrieval."""

    name: str
    header: str


@dataclass(frozen=True, slots=True)
class Position:
    line: int
    column: int
    offset: int


@dataclass(frozen=True, slots=True)
class PositionRange:
    start: Position
    end: Position


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Fuzzy match of a heading against a section.

    ``score`` is a cost in ``[0, 1]``; lower is better. ``highlights`` are
    half-open ``(start, end)`` ranges into the matched section text.
    """

    score: float
    highlights: Tuple[Tuple[int, int], ...] = ()


@dataclass(frozen=True, slots=True)
class Suggestion:
    """Display-ready candidate, fully or partially resolved."""

    name: str
    header: str
    document: Document | None = None
    position: PositionRange | None = None
    match: MatchResult | None = None
    section: Section | None = None
    error: str | None = None

    @classmethod
    def from_candidate(cls, candidate: Candidate) -> "Suggestion":
        return cls(name=candidate.name, header=candidate.header)

    @property
    def is_resolved(self) -> bool:
        return self.document is not None and self.position is not None


@dataclass(slots=True)
class SectionRecord:
    """Section of a note prepared for embedding."""

    note_path: Path
    index: int
    header: str
    body: str
