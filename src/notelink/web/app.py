"""FastAPI application exposing NoteLink suggestions over HTTP."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from notelink.config import AppConfig
from notelink.embedding.encoder import EmbeddingConfig, EmbeddingModel
from notelink.errors import ConfigError, RetrievalFailure
from notelink.index.search import SectionRetriever
from notelink.index.storage import SQLiteSectionStore
from notelink.models import Candidate, Suggestion
from notelink.resolve.corpus import VaultCorpus
from notelink.resolve.matcher import SectionMatcher
from notelink.resolve.resolver import CandidateResolver

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="NoteLink", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


class CandidatePayload(BaseModel):
    name: str
    header: str


class SuggestPayload(BaseModel):
    query: str
    vault: Path | None = None
    db: Path | None = None
    delimiter: str | None = None
    top_k: int = 10


class ResolvePayload(BaseModel):
    candidates: List[CandidatePayload]
    vault: Path | None = None
    delimiter: str | None = None


def _build_config(
    vault: Path | None = None,
    db: Path | None = None,
    delimiter: str | None = None,
) -> AppConfig:
    defaults = AppConfig()
    try:
        return AppConfig(
            vault_path=vault if vault is not None else Path.cwd(),
            db_path=db if db is not None else defaults.db_path,
            section_delimiter=delimiter if delimiter is not None else defaults.section_delimiter,
        )
    except ConfigError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _build_resolver(config: AppConfig) -> CandidateResolver:
    return CandidateResolver(
        VaultCorpus(config.vault_path, ignored_folders=config.ignored_folders),
        config.boundary_pattern,
        matcher=SectionMatcher(
            threshold=config.match_threshold, min_match_chars=config.min_match_chars
        ),
    )


def _serialize(suggestion: Suggestion) -> dict[str, Any]:
    data = asdict(suggestion)
    if suggestion.document is not None:
        data["document"]["path"] = suggestion.document.path.as_posix()
    data["resolved"] = suggestion.is_resolved
    return data


def _run_suggest(query: str, top_k: int, config: AppConfig, resolved_db: Path) -> List[Suggestion]:
    embedder = EmbeddingModel(EmbeddingConfig(model_name=config.model_name))
    store = SQLiteSectionStore(resolved_db, dimension=embedder.dimension)
    try:
        candidates = SectionRetriever(embedder, store, top_k=top_k).retrieve(
            query, config.auth_token
        )
    finally:
        store.close()
    return _build_resolver(config).resolve_all(candidates)


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


@app.post("/suggest")
async def suggest(payload: SuggestPayload) -> dict[str, List[dict[str, Any]]]:
    query = payload.query.strip()
    if not query:
        raise HTTPException(status_code=400, detail="Empty query")

    top_k = max(1, min(payload.top_k, 50))
    config = _build_config(payload.vault, payload.db, payload.delimiter)
    resolved_db = config.resolve_db_path(Path.cwd())
    if not resolved_db.exists():
        raise HTTPException(
            status_code=404,
            detail=f"Database not found at {resolved_db}. Index the vault first.",
        )

    try:
        suggestions = await asyncio.to_thread(_run_suggest, query, top_k, config, resolved_db)
    except RetrievalFailure as exc:
        LOGGER.warning("Retrieval failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return {"results": [_serialize(suggestion) for suggestion in suggestions]}


@app.post("/resolve")
async def resolve(payload: ResolvePayload) -> dict[str, List[dict[str, Any]]]:
    """Resolve already-retrieved candidates against the vault."""
    config = _build_config(payload.vault, None, payload.delimiter)
    candidates = [Candidate(name=item.name, header=item.header) for item in payload.candidates]
    suggestions = await asyncio.to_thread(_build_resolver(config).resolve_all, candidates)
    return {"results": [_serialize(suggestion) for suggestion in suggestions]}


@app.get("/notes")
async def list_notes(db: Path | None = None) -> dict[str, Any]:
    """List indexed notes."""
    config = _build_config(db=db)
    resolved_db = config.resolve_db_path(Path.cwd())
    if not resolved_db.exists():
        return {"notes": []}

    store = SQLiteSectionStore(resolved_db, dimension=0)
    try:
        notes = store.list_notes()
    finally:
        store.close()
    return {"notes": notes}
