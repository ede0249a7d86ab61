"""Shared fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List

import pytest

from notelink.errors import ReadFailure
from notelink.models import Document


class FakeCorpus:
    """In-memory corpus recording reads."""

    def __init__(self, notes: Dict[str, str], unreadable: tuple[str, ...] = ()) -> None:
        self.notes = notes
        self.unreadable = unreadable
        self.reads: List[str] = []
        self.list_calls = 0

    def list_documents(self) -> List[Document]:
        self.list_calls += 1
        return [Document(name=Path(path).name, path=Path(path)) for path in self.notes]

    def read_document(self, document: Document) -> str:
        self.reads.append(document.path.as_posix())
        if document.name in self.unreadable:
            raise ReadFailure(f"cannot read {document.name}")
        return self.notes[document.path.as_posix()]


@pytest.fixture
def fake_corpus() -> FakeCorpus:
    return FakeCorpus(
        {
            "guides/setup.md": "A\n## Intro\ntext\n## Setup\nmore",
            "journal.md": "# Journal\nNothing here",
        }
    )


@pytest.fixture
def vault(tmp_path: Path) -> Path:
    root = tmp_path / "vault"
    (root / "guides").mkdir(parents=True)
    (root / "guides" / "setup.md").write_text(
        "A\n## Intro\ntext\n## Setup\nmore", encoding="utf-8"
    )
    (root / "journal.md").write_text("# Journal\nNothing here", encoding="utf-8")
    return root
