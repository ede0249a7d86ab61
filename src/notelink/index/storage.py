"""SQLite store for note sections and their embeddings."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Sequence

import numpy as np

from notelink.models import SectionRecord


@dataclass(slots=True)
class NoteMetadata:
    """File-level facts used to skip unchanged notes."""

    path: Path
    name: str
    sha256: str
    mtime: float
    size: int


class SQLiteSectionStore:
    """Persistence layer for notes and section embeddings."""

    def __init__(self, db_path: Path, *, dimension: int) -> None:
        self.db_path = Path(db_path)
        self.dimension = dimension
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL;")
        self._conn.execute("PRAGMA synchronous=NORMAL;")
        self._ensure_schema()

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        self._conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            yield self._conn
            self._conn.commit()
        except Exception:
            self._conn.rollback()
            raise

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS notes (
                    id INTEGER PRIMARY KEY,
                    path TEXT NOT NULL UNIQUE,
                    name TEXT NOT NULL,
                    sha256 TEXT NOT NULL,
                    mtime REAL NOT NULL,
                    size INTEGER NOT NULL,
                    indexed_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS sections (
                    id INTEGER PRIMARY KEY,
                    note_id INTEGER NOT NULL,
                    section_index INTEGER NOT NULL,
                    header TEXT NOT NULL,
                    body TEXT NOT NULL,
                    embedding BLOB NOT NULL,
                    FOREIGN KEY(note_id) REFERENCES notes(id) ON DELETE CASCADE
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_sections_note_id ON sections(note_id)"
            )

    def init_note(self, note: NoteMetadata) -> tuple[int, str]:
        """Prepare a note for (re)insertion.

        Returns:
            (note_id, status) where status is 'inserted', 'updated', or 'skipped'.
            If skipped, note_id is -1.
        """
        conn = self._conn
        existing = conn.execute(
            "SELECT id, sha256 FROM notes WHERE path = ?",
            (str(note.path),),
        ).fetchone()

        if existing and existing["sha256"] == note.sha256:
            return -1, "skipped"

        if existing:
            conn.execute("DELETE FROM sections WHERE note_id = ?", (existing["id"],))
            conn.execute("DELETE FROM notes WHERE id = ?", (existing["id"],))

        note_id = conn.execute(
            "INSERT INTO notes(path, name, sha256, mtime, size) VALUES (?, ?, ?, ?, ?)",
            (str(note.path), note.name, note.sha256, note.mtime, note.size),
        ).lastrowid
        return note_id, "updated" if existing else "inserted"

    def insert_sections(
        self,
        note_id: int,
        sections: Sequence[SectionRecord],
        embeddings: np.ndarray,
    ) -> None:
        if embeddings.shape[0] != len(sections):
            raise ValueError("Embeddings and sections length mismatch")

        for section, vector in zip(sections, embeddings):
            self._conn.execute(
                """
                INSERT INTO sections(note_id, section_index, header, body, embedding)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    note_id,
                    section.index,
                    section.header,
                    section.body,
                    sqlite3.Binary(np.asarray(vector, dtype="float32").tobytes()),
                ),
            )

    def search(self, embedding: np.ndarray, *, top_k: int = 10) -> List[dict]:
        query = np.asarray(embedding, dtype="float32")
        rows = self._conn.execute(
            """
            SELECT
                n.name AS name,
                n.path AS path,
                s.header AS header,
                s.embedding AS embedding
            FROM sections s
            JOIN notes n ON n.id = s.note_id
            ORDER BY n.path, s.section_index
            """
        ).fetchall()

        if not rows:
            return []

        embeddings = np.vstack([np.frombuffer(row["embedding"], dtype="float32") for row in rows])
        scores = embeddings @ query
        # stable sort keeps storage order among equal scores
        top_indices = np.argsort(-scores, kind="stable")[:top_k]

        return [
            {
                "name": rows[idx]["name"],
                "path": rows[idx]["path"],
                "header": rows[idx]["header"],
                "score": float(scores[idx]),
            }
            for idx in top_indices
        ]

    def list_notes(self) -> List[dict]:
        rows = self._conn.execute(
            """
            SELECT n.id, n.path, n.name, n.mtime, n.size, COUNT(s.id) AS section_count
            FROM notes n
            LEFT JOIN sections s ON s.note_id = n.id
            GROUP BY n.id
            ORDER BY n.path
            """
        ).fetchall()
        return [dict(row) for row in rows]

    def remove_missing_files(self) -> int:
        """Remove notes whose files no longer exist."""
        with self.transaction() as conn:
            rows = conn.execute("SELECT id, path FROM notes").fetchall()
            missing = [row for row in rows if not Path(row["path"]).exists()]
            for row in missing:
                conn.execute("DELETE FROM sections WHERE note_id = ?", (row["id"],))
                conn.execute("DELETE FROM notes WHERE id = ?", (row["id"],))
        return len(missing)
