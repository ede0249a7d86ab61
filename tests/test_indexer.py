"""Tests for Indexer."""

import re
from pathlib import Path
from unittest.mock import Mock, patch

import numpy as np
import pytest

from notelink.index.indexer import Indexer, IndexStats
from notelink.index.storage import SQLiteSectionStore

HEADINGS = re.compile(r"^## ")


class TestIndexStats:
    """Test IndexStats tracking."""

    def test_init_defaults(self):
        stats = IndexStats()
        assert (stats.inserted, stats.updated, stats.skipped, stats.failed) == (0, 0, 0, 0)
        assert stats.processed_files == []

    def test_increments(self):
        """Each status feeds its own counter."""
        stats = IndexStats()

        stats.increment("inserted", Path("/tmp/a.md"))
        stats.increment("updated", Path("/tmp/b.md"))
        stats.increment("skipped", Path("/tmp/c.md"))
        stats.increment("unknown_status", Path("/tmp/d.md"))

        assert (stats.inserted, stats.updated, stats.skipped, stats.failed) == (1, 1, 1, 1)
        assert len(stats.processed_files) == 4


class TestIndexer:
    """Test Indexer note pipeline."""

    @pytest.fixture
    def embedder(self):
        embedder = Mock()
        embedder.embed.side_effect = lambda texts: np.ones((len(texts), 3), dtype="float32")
        return embedder

    @pytest.fixture
    def store(self, tmp_path):
        store = SQLiteSectionStore(tmp_path / "index.db", dimension=3)
        yield store
        store.close()

    def test_index_vault(self, embedder, store, vault):
        """Should embed every section body of every note."""
        stats = Indexer(embedder, store, boundary_pattern=HEADINGS).index([vault])

        assert stats.inserted == 2
        notes = {n["name"]: n["section_count"] for n in store.list_notes()}
        assert notes == {"setup.md": 3, "journal.md": 1}

    def test_reindex_skips_unchanged(self, embedder, store, vault):
        """A second run should skip notes whose content did not change."""
        indexer = Indexer(embedder, store, boundary_pattern=HEADINGS)
        indexer.index([vault])

        stats = indexer.index([vault])

        assert stats.skipped == 2
        assert stats.inserted == 0

    def test_batches_embeddings(self, embedder, store, tmp_path):
        """Sections are embedded in batches."""
        note = tmp_path / "long.md"
        note.write_text("\n".join(f"## H{i}\nbody {i}" for i in range(5)))

        Indexer(embedder, store, boundary_pattern=HEADINGS, batch_size=2).index([note])

        assert [len(call.args[0]) for call in embedder.embed.call_args_list] == [2, 2, 1]

    def test_ignored_folders(self, embedder, store, vault):
        """Ignored folders are not indexed."""
        stats = Indexer(
            embedder, store, boundary_pattern=HEADINGS, ignored_folders=["guides"]
        ).index([vault])

        assert stats.inserted == 1

    def test_no_notes(self, embedder, store, tmp_path):
        """An empty folder yields empty stats."""
        stats = Indexer(embedder, store, boundary_pattern=HEADINGS).index([tmp_path / "none"])

        assert stats.processed_files == []

    def test_failure_is_counted(self, embedder, store, vault):
        """A failing note does not stop the run."""
        embedder.embed.side_effect = RuntimeError("model crashed")

        stats = Indexer(embedder, store, boundary_pattern=HEADINGS).index([vault])

        assert stats.failed == 2
        assert store.list_notes() == []

    @patch("notelink.index.indexer.build_section_records", return_value=[])
    def test_empty_note_skipped(self, mock_build, embedder, store, vault):
        """Notes without sections are skipped."""
        stats = Indexer(embedder, store, boundary_pattern=HEADINGS).index([vault])

        assert stats.skipped == 2
        embedder.embed.assert_not_called()
