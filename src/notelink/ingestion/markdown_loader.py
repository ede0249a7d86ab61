"""Markdown note loading and section extraction for embedding."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Tuple

from notelink.models import SectionRecord

LOGGER = logging.getLogger(__name__)

MAX_SECTION_CHARS = 8191
EMBEDDED_LINK = re.compile(r"!\[.*?\]\(.*?\)")


def remove_links(text: str) -> str:
    """Strip embedded images and other ``![...](...)`` embeds."""
    return EMBEDDED_LINK.sub("", text)


def clean_text(text: str) -> str:
    text = remove_links(text.replace("#", ""))
    return text.strip()[:MAX_SECTION_CHARS]


def extract_index_sections(text: str, boundary: re.Pattern[str]) -> List[Tuple[str, str]]:
    """Return ``(header, body)`` pairs for each section of a note.

    The header is the cleaned line that opened the section (or the first line
    of the note); the body starts with that same line followed by every
    non-blank cleaned line of the section, joined by spaces. Sections whose
    header and body are both blank are skipped.
    """
    output: List[Tuple[str, str]] = []
    header = ""
    body = ""

    def flush() -> None:
        if header.strip() or body.strip():
            section_text, body_text = clean_text(header), clean_text(body)
            if section_text or body_text:
                output.append((section_text, body_text))

    lines = text.splitlines()
    for number, line in enumerate(lines):
        if boundary.search(line):
            flush()
            header = line
            body = line
        else:
            if not header:
                header = line
            cleaned = clean_text(line)
            if cleaned:
                body += " " + cleaned
        if number == len(lines) - 1:
            flush()

    return output


def build_section_records(path: Path, boundary: re.Pattern[str]) -> List[SectionRecord]:
    """Read a note and produce its section records."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        LOGGER.error("Failed to read note %s: %s", path, exc)
        return []

    return [
        SectionRecord(note_path=path, index=idx, header=header, body=body)
        for idx, (header, body) in enumerate(extract_index_sections(text, boundary))
    ]
