"""Fuzzy matching of retrieved headings against note sections."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from rapidfuzz import fuzz
from rapidfuzz.distance import Indel

from notelink.models import MatchResult, Section

LOGGER = logging.getLogger(__name__)

Range = Tuple[int, int]


@dataclass(frozen=True, slots=True)
class SectionMatch:
    section: Section
    index: int
    result: MatchResult


def merge_ranges(ranges: Iterable[Range]) -> Tuple[Range, ...]:
    """Sort half-open ranges and merge the ones that overlap or touch."""
    merged: List[List[int]] = []
    for start, end in sorted(ranges):
        if merged and start <= merged[-1][1]:
            merged[-1][1] = max(merged[-1][1], end)
        else:
            merged.append([start, end])
    return tuple((start, end) for start, end in merged)


def fold_case(text: str) -> str:
    """Lowercase ``text`` without changing its length.

    Characters whose lowercase form expands (e.g. ``"İ"``) are kept as they
    are so that offsets into the folded text still index the original.
    """
    return "".join(
        lowered if len(lowered) == 1 else char
        for char, lowered in ((char, char.lower()) for char in text)
    )


class SectionMatcher:
    """Location-agnostic fuzzy matcher over section texts.

    Each section is scored by the best partial alignment of the query anywhere
    inside the section text, so an early match and a late match cost the same.
    A section shorter than the query is compared as a whole instead, so a
    fragment of the query never scores as a perfect match. Matched runs
    shorter than ``min_match_chars`` are ignored, and a section with no
    remaining run is not a match at all.
    """

    def __init__(self, *, threshold: float = 0.6, min_match_chars: int = 2) -> None:
        self.threshold = threshold
        self.min_match_chars = min_match_chars

    def score(self, section: Section, query: str) -> MatchResult | None:
        """Score a single section; ``None`` means no usable match."""
        needle = fold_case(query)
        haystack = fold_case(section.text)
        if not needle or not haystack:
            return None

        if len(haystack) < len(needle):
            # partial_ratio would search the section inside the query
            similarity = fuzz.ratio(needle, haystack)
            window_start, window_end = 0, len(haystack)
            source = needle
        else:
            alignment = fuzz.partial_ratio_alignment(needle, haystack)
            if alignment is None:
                return None
            similarity = alignment.score
            window_start, window_end = alignment.dest_start, alignment.dest_end
            source = needle[alignment.src_start : alignment.src_end]

        if similarity <= 0:
            return None

        cost = 1.0 - similarity / 100.0
        if cost > self.threshold:
            return None

        highlights = list(
            self._matched_runs(source, haystack[window_start:window_end], window_start)
        )
        if not highlights:
            return None

        return MatchResult(score=cost, highlights=merge_ranges(highlights))

    def _matched_runs(self, source: str, window: str, window_start: int) -> Iterable[Range]:
        for op in Indel.opcodes(source, window):
            if op.tag != "equal":
                continue
            if op.dest_end - op.dest_start >= self.min_match_chars:
                yield (window_start + op.dest_start, window_start + op.dest_end)

    def match(self, sections: Sequence[Section], query: str) -> SectionMatch | None:
        """Return the lowest-cost section, first one winning ties."""
        best: SectionMatch | None = None
        for index, section in enumerate(sections):
            result = self.score(section, query)
            if result is None:
                continue
            if best is None or result.score < best.result.score:
                best = SectionMatch(section=section, index=index, result=result)

        if best is None:
            LOGGER.debug("No section matched %r among %d sections", query, len(sections))
        return best
