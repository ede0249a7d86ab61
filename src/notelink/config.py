"""Application configuration defaults."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple

from notelink.embedding.encoder import DEFAULT_MODEL
from notelink.errors import ConfigError

DEFAULT_SECTION_DELIMITER = "."


def _get_default_db_path() -> Path:
    """Prefer a local data/ database when running from a checkout."""
    local_db = Path("data/notelink.db")
    if local_db.exists():
        return local_db
    return Path.home() / ".notelink" / "notelink.db"


def compile_boundary_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a section delimiter, rejecting invalid expressions up front."""
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise ConfigError(f"Invalid section delimiter regex {pattern!r}: {exc}") from exc


def parse_ignored_folders(text: str) -> Tuple[str, ...]:
    """Parse the newline-separated folder list used by the settings panel."""
    return tuple(line.strip().strip("/") for line in text.splitlines() if line.strip())


@dataclass(slots=True)
class AppConfig:
    vault_path: Path = Path(".")
    db_path: Path | None = None
    model_name: str = DEFAULT_MODEL
    section_delimiter: str = DEFAULT_SECTION_DELIMITER
    ignored_folders: Tuple[str, ...] = ()
    debounce_ms: int = 500
    top_k: int = 10
    match_threshold: float = 0.6
    min_match_chars: int = 2
    auth_token: str = ""
    boundary_pattern: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.db_path is None:
            self.db_path = _get_default_db_path()
        if self.debounce_ms < 0:
            raise ConfigError("debounce_ms must be non-negative")
        if not 0.0 <= self.match_threshold <= 1.0:
            raise ConfigError("match_threshold must be between 0 and 1")
        if self.min_match_chars < 1:
            raise ConfigError("min_match_chars must be at least 1")
        self.boundary_pattern = compile_boundary_pattern(self.section_delimiter)

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0

    def resolve_db_path(self, base_dir: Path | None = None) -> Path:
        if self.db_path is None:
            self.db_path = _get_default_db_path()
        if Path(self.db_path).is_absolute() or base_dir is None:
            return Path(self.db_path)
        return base_dir / self.db_path
