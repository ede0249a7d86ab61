"""Detecting suggestion triggers and committing a chosen suggestion."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from urllib.parse import quote

from notelink.errors import LookupMiss
from notelink.models import PositionRange, Suggestion

TRIGGER_PATTERN = re.compile(r"\{\{.*\}\}")
OPEN_WIDTH = 2
CLOSE_WIDTH = 2

# Characters encodeURI leaves untouched, besides alphanumerics.
_URI_SAFE = ";,/?:@&=+$-_.!~*'()#"


class TriggerSource(str, Enum):
    QUERY = "query"
    SELECTION = "selection"
    INLINE = "inline"


@dataclass(frozen=True, slots=True)
class TriggerSpan:
    """Columns on the current line covered by an inline ``{{...}}`` trigger."""

    start: int
    end: int
    query: str


@dataclass(frozen=True, slots=True)
class TriggerEvent:
    query: str
    source: TriggerSource = TriggerSource.QUERY
    span: TriggerSpan | None = None

    @classmethod
    def from_selection(cls, selection: str) -> "TriggerEvent":
        return cls(query=selection, source=TriggerSource.SELECTION)

    @classmethod
    def from_line(cls, line: str, cursor: int) -> "TriggerEvent | None":
        span = scan_trigger(line, cursor)
        if span is None:
            return None
        return cls(query=span.query, source=TriggerSource.INLINE, span=span)


@dataclass(frozen=True, slots=True)
class CommitAction:
    """What the editor should do once a suggestion is chosen.

    ``link`` actions replace ``span`` (or the selection when ``span`` is None)
    with ``text``; ``navigate`` actions open ``path`` at ``position``.
    """

    kind: str
    path: PurePosixPath
    text: str | None = None
    span: TriggerSpan | None = None
    position: PositionRange | None = None


def scan_trigger(line: str, cursor: int) -> TriggerSpan | None:
    """Return the trigger span under the cursor, if any.

    The cursor must sit past the opening braces; the span's end assumes the
    closing braces directly follow the cursor.
    """
    found = TRIGGER_PATTERN.search(line)
    if found is None:
        return None

    start = found.start()
    if cursor <= start + 1:
        return None

    return TriggerSpan(
        start=start,
        end=cursor + CLOSE_WIDTH,
        query=line[start + OPEN_WIDTH : cursor],
    )


def build_link(path: PurePosixPath, header: str, text: str) -> str:
    """Render a Markdown link to ``header`` inside the note at ``path``."""
    target = quote(f"{path.as_posix()}#{header}", safe=_URI_SAFE)
    return f"[{text}]({target})"


def commit_suggestion(suggestion: Suggestion, event: TriggerEvent) -> CommitAction:
    """Translate a chosen suggestion into an editor action for its trigger source."""
    if suggestion.document is None:
        raise LookupMiss(f"Suggestion {suggestion.name!r} has no note to link to")

    path = PurePosixPath(suggestion.document.path.as_posix())
    if event.source is TriggerSource.QUERY:
        return CommitAction(kind="navigate", path=path, position=suggestion.position)

    return CommitAction(
        kind="link",
        path=path,
        text=build_link(path, suggestion.header, event.query),
        span=event.span,
    )
