"""Tests for section splitting and offset mapping."""

from __future__ import annotations

import re

import pytest

from notelink.errors import InvalidOffsetError
from notelink.models import Position, Section
from notelink.utils.text import offset_to_position, split_sections


SCENARIO = "A\n## Intro\ntext\n## Setup\nmore"


class TestSplitSections:
    """Test split_sections function."""

    def test_empty_text(self) -> None:
        """Should return no sections for an empty note."""
        assert split_sections("", re.compile(".")) == []

    def test_heading_boundaries(self) -> None:
        """Should start a section at every heading line."""
        sections = split_sections(SCENARIO, re.compile(r"^## "))

        assert [s.text for s in sections] == ["A", "## Introtext", "## Setupmore"]
        assert sections[0] == Section(text="A", start=0, end=2)
        assert sections[1] == Section(text="## Introtext", start=2, end=16)
        assert sections[2] == Section(text="## Setupmore", start=16, end=len(SCENARIO))

    def test_sections_are_contiguous(self) -> None:
        """Each section should end where the next one starts."""
        sections = split_sections(SCENARIO, re.compile(r"^## "))

        assert sections[0].start == 0
        for previous, current in zip(sections, sections[1:]):
            assert previous.end == current.start
        assert sections[-1].end == len(SCENARIO)

    def test_every_line_boundary(self) -> None:
        """A pattern matching every line yields one section per line."""
        text = "first\nsecond\nthird"
        sections = split_sections(text, re.compile("."))

        assert [s.text for s in sections] == ["first", "second", "third"]
        assert "".join(s.text for s in sections) == text.replace("\n", "")

    def test_no_boundary_after_first_line(self) -> None:
        """A pattern matching nothing later yields a single section."""
        text = "# Title\nbody line\nanother line"
        sections = split_sections(text, re.compile(r"^#{2,} "))

        assert len(sections) == 1
        assert sections[0].start == 0
        assert sections[0].end == len(text)
        assert sections[0].text == "# Titlebody lineanother line"

    def test_first_line_matching_does_not_close_empty_section(self) -> None:
        """A boundary on the first line should not emit an empty leading section."""
        sections = split_sections("## One\nx\n## Two", re.compile(r"^## "))

        assert [s.text for s in sections] == ["## Onex", "## Two"]

    def test_trailing_section_is_flushed(self) -> None:
        """The last accumulated lines should form the final section."""
        sections = split_sections("## One\n## Two\ntail", re.compile(r"^## "))

        assert sections[-1].text == "## Twotail"

    def test_trailing_newline(self) -> None:
        """A trailing newline belongs to the last section."""
        text = "## One\nbody\n"
        sections = split_sections(text, re.compile(r"^## "))

        assert len(sections) == 1
        assert sections[0].end == len(text)


class TestOffsetToPosition:
    """Test offset_to_position function."""

    def test_start_of_text(self) -> None:
        """Offset 0 should map to line 1."""
        assert offset_to_position("anything", 0) == Position(line=1, column=0, offset=0)

    def test_third_line(self) -> None:
        """Should count newlines before the offset."""
        position = offset_to_position("a\nb\nc", 4)

        assert position.line == 3
        assert position.column == 0
        assert position.offset == 4

    def test_end_of_text(self) -> None:
        """The end offset is still a valid position."""
        assert offset_to_position("a\nb", 3).line == 2

    def test_heading_line(self) -> None:
        """Section starts should land on the heading line."""
        sections = split_sections(SCENARIO, re.compile(r"^## "))

        assert offset_to_position(SCENARIO, sections[2].start).line == 4

    @pytest.mark.parametrize("offset", [-1, 6])
    def test_out_of_range(self, offset: int) -> None:
        """Should reject offsets outside the text."""
        with pytest.raises(InvalidOffsetError):
            offset_to_position("a\nbcd", offset)
