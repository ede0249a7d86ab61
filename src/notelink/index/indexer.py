"""Note indexing pipeline."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from notelink.embedding.encoder import EmbeddingModel
from notelink.index.storage import NoteMetadata, SQLiteSectionStore
from notelink.ingestion.markdown_loader import build_section_records
from notelink.utils.files import compute_sha256, iter_markdown_paths

LOGGER = logging.getLogger(__name__)


def find_notes(paths: Sequence[Path], *, ignored_folders: Sequence[str] = ()) -> list[Path]:
    """Find all Markdown notes under the given paths."""
    return list(iter_markdown_paths(paths, ignored_folders=ignored_folders))


@dataclass(slots=True)
class IndexStats:
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    processed_files: list[Path] = field(default_factory=list)

    def increment(self, status: str, path: Path) -> None:
        if status == "inserted":
            self.inserted += 1
        elif status == "updated":
            self.updated += 1
        elif status == "skipped":
            self.skipped += 1
        else:
            self.failed += 1
        self.processed_files.append(path)


class Indexer:
    """Embeds note sections and persists them for retrieval."""

    def __init__(
        self,
        embedder: EmbeddingModel,
        store: SQLiteSectionStore,
        *,
        boundary_pattern: re.Pattern[str],
        ignored_folders: Sequence[str] = (),
        batch_size: int = 32,
    ) -> None:
        self.embedder = embedder
        self.store = store
        self.boundary_pattern = boundary_pattern
        self.ignored_folders = tuple(ignored_folders)
        self.batch_size = batch_size

    def index(self, paths: Sequence[Path]) -> IndexStats:
        """Index all notes found under the given paths."""
        notes = find_notes(paths, ignored_folders=self.ignored_folders)
        if not notes:
            LOGGER.warning("No Markdown notes found")
            return IndexStats()

        LOGGER.info("Found %d notes", len(notes))
        stats = IndexStats()
        for path in notes:
            try:
                LOGGER.debug("Processing: %s", path)
                stats.increment(self._index_single(path), path)
            except Exception as e:
                LOGGER.error(f"Failed to process {path}: {e}")
                stats.increment("failed", path)
        return stats

    def _index_single(self, path: Path) -> str:
        records = build_section_records(path, self.boundary_pattern)
        if not records:
            LOGGER.warning("No sections extracted from %s", path)
            return "skipped"

        stat = path.stat()
        note = NoteMetadata(
            path=path,
            name=path.name,
            sha256=compute_sha256(path),
            mtime=stat.st_mtime,
            size=stat.st_size,
        )

        with self.store.transaction():
            note_id, status = self.store.init_note(note)
            if status == "skipped":
                return status

            for start in range(0, len(records), self.batch_size):
                batch = records[start : start + self.batch_size]
                embeddings = self.embedder.embed([record.body for record in batch])
                self.store.insert_sections(note_id, batch, embeddings)

        return status
