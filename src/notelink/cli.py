"""Command line interface for NoteLink."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from notelink.config import AppConfig
from notelink.embedding.encoder import EmbeddingConfig, EmbeddingModel
from notelink.errors import ConfigError, RetrievalFailure
from notelink.index.indexer import Indexer
from notelink.index.search import SectionRetriever
from notelink.index.storage import SQLiteSectionStore
from notelink.models import Suggestion
from notelink.resolve.corpus import VaultCorpus
from notelink.resolve.matcher import SectionMatcher
from notelink.resolve.resolver import CandidateResolver
from notelink.utils.files import iter_markdown_paths
from notelink.web.app import app as web_app


console = Console()
app = typer.Typer(help="NoteLink - semantic link suggestions for Markdown notes")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _ensure_db_parent(db_path: Path) -> None:
    db_path.parent.mkdir(parents=True, exist_ok=True)


def _build_config(**kwargs) -> AppConfig:
    if kwargs.get("db_path") is None:
        kwargs["db_path"] = AppConfig().db_path
    try:
        return AppConfig(**kwargs)
    except ConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _format_lines(suggestion: Suggestion) -> str:
    if suggestion.position is None:
        return "-"
    return f"{suggestion.position.start.line}-{suggestion.position.end.line}"


@app.command()
def index(
    vault: Path = typer.Argument(..., help="Vault folder with Markdown notes.", resolve_path=True),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
    model: str = typer.Option(AppConfig().model_name, help="Sentence-transformer model name"),
    delimiter: str = typer.Option(
        AppConfig().section_delimiter, help="Regex marking the first line of a section"
    ),
    ignore: Optional[List[str]] = typer.Option(None, "--ignore", help="Folder to skip (repeatable)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Index the sections of every note in a vault."""
    _setup_logging(verbose)
    config = _build_config(
        vault_path=vault,
        db_path=db,
        model_name=model,
        section_delimiter=delimiter,
        ignored_folders=tuple(ignore or ()),
    )

    resolved_db = config.resolve_db_path(Path.cwd())
    _ensure_db_parent(resolved_db)

    note_paths = list(iter_markdown_paths([vault], ignored_folders=config.ignored_folders))
    if not note_paths:
        console.print("[yellow]No notes found.[/yellow]")
        return

    embedder = EmbeddingModel(EmbeddingConfig(model_name=config.model_name))
    store = SQLiteSectionStore(resolved_db, dimension=embedder.dimension)
    indexer = Indexer(
        embedder,
        store,
        boundary_pattern=config.boundary_pattern,
        ignored_folders=config.ignored_folders,
    )

    console.print(f"Indexing into [bold]{resolved_db}[/bold]...")
    try:
        stats = indexer.index([vault])
    finally:
        store.close()
    console.print(
        f"Inserted: {stats.inserted}, updated: {stats.updated}, "
        f"skipped: {stats.skipped}, failed: {stats.failed}"
    )


@app.command()
def suggest(
    query: str = typer.Argument(..., help="Text to find related sections for"),
    vault: Path = typer.Option(Path("."), "--vault", help="Vault folder", resolve_path=True),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
    model: str = typer.Option(AppConfig().model_name, help="Sentence-transformer model name"),
    delimiter: str = typer.Option(
        AppConfig().section_delimiter, help="Regex marking the first line of a section"
    ),
    top_k: int = typer.Option(AppConfig().top_k, help="Number of suggestions to display"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Suggest note sections related to a query."""
    _setup_logging(verbose)
    config = _build_config(
        vault_path=vault,
        db_path=db,
        model_name=model,
        section_delimiter=delimiter,
        top_k=top_k,
    )
    resolved_db = config.resolve_db_path(Path.cwd())
    if not resolved_db.exists():
        raise typer.BadParameter(f"Database not found: {resolved_db}")

    embedder = EmbeddingModel(EmbeddingConfig(model_name=config.model_name))
    store = SQLiteSectionStore(resolved_db, dimension=embedder.dimension)
    retriever = SectionRetriever(embedder, store, top_k=config.top_k)
    resolver = CandidateResolver(
        VaultCorpus(config.vault_path, ignored_folders=config.ignored_folders),
        config.boundary_pattern,
        matcher=SectionMatcher(
            threshold=config.match_threshold, min_match_chars=config.min_match_chars
        ),
    )

    try:
        candidates = retriever.retrieve(query, config.auth_token)
    except RetrievalFailure as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    finally:
        store.close()

    suggestions = resolver.resolve_all(candidates)
    if not suggestions:
        console.print("[yellow]No suggestions found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Match")
    table.add_column("Note")
    table.add_column("Header")
    table.add_column("Lines")

    for suggestion in suggestions:
        if suggestion.match is not None:
            score = f"{suggestion.match.score:.3f}"
        else:
            score = "[dim]unresolved[/dim]"
        note = str(suggestion.document.path) if suggestion.document else suggestion.name
        table.add_row(score, note, suggestion.header, _format_lines(suggestion))

    console.print(table)


@app.command()
def prune(
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Remove notes that no longer exist on disk."""
    config = _build_config(db_path=db)
    resolved_db = config.resolve_db_path(Path.cwd())

    if not resolved_db.exists():
        console.print("[yellow]Database not found, nothing to prune.[/yellow]")
        return

    store = SQLiteSectionStore(resolved_db, dimension=0)
    try:
        removed = store.remove_missing_files()
    finally:
        store.close()
    console.print(f"Removed {removed} orphaned notes.")


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
) -> None:
    """Start the HTTP API."""
    import uvicorn

    console.print(f"Starting NoteLink API on http://{host}:{port}")
    uvicorn.run(web_app, host=host, port=port, reload=False, log_level="info")
