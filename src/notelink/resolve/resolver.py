"""Turn retrieved (name, header) candidates into navigable suggestions."""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Iterable, List, Sequence

from notelink.errors import LookupMiss, ReadFailure
from notelink.models import Candidate, Document, PositionRange, Suggestion
from notelink.resolve.corpus import DocumentLookup
from notelink.resolve.matcher import SectionMatcher
from notelink.utils.text import offset_to_position, split_sections

LOGGER = logging.getLogger(__name__)


class CandidateResolver:
    """Resolves candidates against a corpus, degrading instead of failing.

    A candidate whose note cannot be found or read still produces a
    ``Suggestion``; it simply carries no position or match and has its
    ``error`` field set.
    """

    def __init__(
        self,
        corpus: DocumentLookup,
        boundary_pattern: re.Pattern[str],
        *,
        matcher: SectionMatcher | None = None,
    ) -> None:
        self.corpus = corpus
        self.boundary_pattern = boundary_pattern
        self.matcher = matcher or SectionMatcher()

    def resolve(self, candidate: Candidate) -> Suggestion:
        try:
            documents = self._list_documents()
        except ReadFailure as exc:
            LOGGER.warning("Unable to list notes: %s", exc)
            return replace(Suggestion.from_candidate(candidate), error=str(exc))
        return self._resolve_with(candidate, documents)

    def resolve_all(self, candidates: Iterable[Candidate]) -> List[Suggestion]:
        """Resolve a batch, listing the corpus once for all candidates."""
        candidates = list(candidates)
        if not candidates:
            return []
        try:
            documents = self._list_documents()
        except ReadFailure as exc:
            LOGGER.warning("Unable to list notes: %s", exc)
            return [
                replace(Suggestion.from_candidate(candidate), error=str(exc))
                for candidate in candidates
            ]
        return [self._resolve_with(candidate, documents) for candidate in candidates]

    def _list_documents(self) -> Sequence[Document]:
        try:
            return self.corpus.list_documents()
        except ReadFailure:
            raise
        except Exception as exc:
            raise ReadFailure(f"Unable to list notes: {exc}") from exc

    def _read_document(self, document: Document) -> str:
        try:
            return self.corpus.read_document(document)
        except ReadFailure:
            raise
        except Exception as exc:
            raise ReadFailure(f"Unable to read {document.path}: {exc}") from exc

    def _resolve_with(self, candidate: Candidate, documents: Sequence[Document]) -> Suggestion:
        suggestion = Suggestion.from_candidate(candidate)
        try:
            document = self._find_document(candidate.name, documents)
            suggestion = replace(suggestion, document=document)
            suggestion = self._attach_heading(suggestion, document)
        except (LookupMiss, ReadFailure) as exc:
            LOGGER.debug("Partially resolved %s#%s: %s", candidate.name, candidate.header, exc)
            suggestion = replace(suggestion, error=str(exc))
        return suggestion

    @staticmethod
    def _find_document(name: str, documents: Sequence[Document]) -> Document:
        document = next((doc for doc in documents if doc.name == name), None)
        if document is None:
            raise LookupMiss(f"No note named {name!r}")
        return document

    def _attach_heading(self, suggestion: Suggestion, document: Document) -> Suggestion:
        contents = self._read_document(document)
        sections = split_sections(contents, self.boundary_pattern)
        best = self.matcher.match(sections, suggestion.header)
        if best is None:
            return suggestion

        position = PositionRange(
            start=offset_to_position(contents, best.section.start),
            end=offset_to_position(contents, best.section.end),
        )
        return replace(suggestion, position=position, match=best.result, section=best.section)
