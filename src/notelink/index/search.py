"""Local semantic retrieval over indexed note sections."""

from __future__ import annotations

import logging
from typing import List

from notelink.embedding.encoder import EmbeddingModel
from notelink.errors import RetrievalFailure
from notelink.index.storage import SQLiteSectionStore
from notelink.models import Candidate

LOGGER = logging.getLogger(__name__)

MAX_CANDIDATES = 10


class SectionRetriever:
    """Ranks indexed sections by cosine similarity to the query.

    The auth token is accepted for interface parity with remote embedding
    services and is not used locally.
    """

    def __init__(
        self,
        embedder: EmbeddingModel,
        store: SQLiteSectionStore,
        *,
        top_k: int = MAX_CANDIDATES,
    ) -> None:
        self.embedder = embedder
        self.store = store
        self.top_k = top_k

    def retrieve(self, query: str, auth_token: str = "") -> List[Candidate]:
        if not query.strip():
            return []
        try:
            embedding = self.embedder.embed_query(query)
            rows = self.store.search(embedding, top_k=self.top_k)
        except Exception as exc:
            raise RetrievalFailure(f"Retrieval failed for {query!r}: {exc}") from exc

        LOGGER.debug("Retrieved %d candidates for %r", len(rows), query)
        return [Candidate(name=row["name"], header=row["header"]) for row in rows]
