"""Text helpers: section splitting and offset mapping."""

from __future__ import annotations

import re
from typing import List

from notelink.errors import InvalidOffsetError
from notelink.models import Position, Section


def split_sections(text: str, boundary: re.Pattern[str]) -> List[Section]:
    """Partition note text into contiguous sections.

    A line matching ``boundary`` starts a new section, except at the very
    beginning of the text where the first line always opens one. Section text
    is the concatenation of the lines without their newlines, while ``start``
    and ``end`` are exact offsets into ``text``; the last section ends at
    ``len(text)``.
    """
    if not text:
        return []

    sections: List[Section] = []
    current = ""
    section_start = 0
    cursor = 0
    lines = text.split("\n")

    for number, line in enumerate(lines):
        if cursor != 0 and boundary.search(line):
            sections.append(Section(text=current, start=section_start, end=cursor))
            current = line
            section_start = cursor
        else:
            current += line
        cursor += len(line)
        if number < len(lines) - 1:
            cursor += 1

    sections.append(Section(text=current, start=section_start, end=cursor))
    return sections


def offset_to_position(text: str, offset: int) -> Position:
    """Map a character offset to a 1-based line. Columns are always 0."""
    if offset < 0 or offset > len(text):
        raise InvalidOffsetError(f"Offset {offset} outside text of length {len(text)}")
    return Position(line=text.count("\n", 0, offset) + 1, column=0, offset=offset)
