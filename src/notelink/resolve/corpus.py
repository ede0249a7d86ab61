"""Document lookup over a folder of Markdown notes."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Protocol, Sequence, Tuple

from notelink.errors import ReadFailure
from notelink.models import Document
from notelink.utils.files import iter_markdown_paths

LOGGER = logging.getLogger(__name__)


class DocumentLookup(Protocol):
    """Read-only view of the notes a candidate can resolve to."""

    def list_documents(self) -> Sequence[Document]:
        ...

    def read_document(self, document: Document) -> str:
        ...


class VaultCorpus:
    """Notes stored on disk under a vault root.

    Reads are cached per file and reused until the file's mtime changes.
    """

    def __init__(self, root: Path, *, ignored_folders: Sequence[str] = ()) -> None:
        self.root = Path(root)
        self.ignored_folders = tuple(ignored_folders)
        self._cache: Dict[Path, Tuple[int, str]] = {}

    def list_documents(self) -> List[Document]:
        documents: List[Document] = []
        try:
            for path in iter_markdown_paths([self.root], ignored_folders=self.ignored_folders):
                documents.append(
                    Document(
                        name=path.name,
                        path=path.relative_to(self.root),
                        mtime=path.stat().st_mtime,
                    )
                )
        except OSError as exc:
            raise ReadFailure(f"Unable to list notes under {self.root}: {exc}") from exc
        return documents

    def read_document(self, document: Document) -> str:
        full_path = self.root / document.path
        try:
            mtime_ns = full_path.stat().st_mtime_ns
            cached = self._cache.get(full_path)
            if cached is not None and cached[0] == mtime_ns:
                return cached[1]
            text = full_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ReadFailure(f"Unable to read {document.path}: {exc}") from exc

        self._cache[full_path] = (mtime_ns, text)
        return text

    def clear_cache(self) -> None:
        self._cache.clear()
