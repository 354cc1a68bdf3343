from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from cardsmith.errors import NotFoundError

DEFAULT_EXTENSIONS = (".md", ".markdown")


def is_markdown(path: Path, extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> bool:
    return path.suffix.lower() in {ext.lower() for ext in extensions}


def discover_markdown_files(
    path: Path | str,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
) -> set[Path]:
    """Return every markdown file at or below ``path``.

    A single file is returned only if its extension is recognized; a
    directory is walked recursively. Raises NotFoundError for a missing path.
    """
    root = Path(path)
    if not root.exists():
        raise NotFoundError(f"Path does not exist: {root}")

    extensions = tuple(extensions)
    if root.is_file():
        return {root} if is_markdown(root, extensions) else set()

    return {
        p for p in root.rglob("*") if p.is_file() and is_markdown(p, extensions)
    }
