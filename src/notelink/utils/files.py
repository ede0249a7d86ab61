"""Utility helpers for working with note files."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Iterable, Iterator, Sequence

MARKDOWN_SUFFIXES = (".md", ".markdown")


def is_ignored(path: Path, root: Path, ignored_folders: Sequence[str]) -> bool:
    """Return True when ``path`` lives under one of the ignored folders of ``root``."""
    if not ignored_folders:
        return False
    try:
        relative = path.relative_to(root).as_posix()
    except ValueError:
        return False
    return any(
        relative == folder or relative.startswith(folder.rstrip("/") + "/")
        for folder in ignored_folders
    )


def iter_markdown_paths(
    inputs: Iterable[Path], *, ignored_folders: Sequence[str] = ()
) -> Iterator[Path]:
    """Yield Markdown paths from input paths, descending into directories."""
    for item in inputs:
        if item.is_dir():
            for child in sorted(item.rglob("*")):
                if (
                    child.is_file()
                    and child.suffix.lower() in MARKDOWN_SUFFIXES
                    and not is_ignored(child, item, ignored_folders)
                ):
                    yield child
        elif item.is_file() and item.suffix.lower() in MARKDOWN_SUFFIXES:
            yield item


def compute_sha256(path: Path) -> str:
    """Compute SHA256 hash for a file."""
    sha = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(1 << 20), b""):
            sha.update(chunk)
    return sha.hexdigest()
