"""File discovery for the tag index: a recursive, extension-filtered tree walk."""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator
from pathlib import Path

from rich.console import Console

console = Console(stderr=True)

DEFAULT_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".cs",
        ".vb",
        ".js",
        ".ts",
        ".txt",
        ".xml",
        ".html",
        ".css",
        ".cpp",
        ".h",
        ".py",
        ".java",
    }
)

DEFAULT_SKIP_DIRS: frozenset[str] = frozenset(
    {
        ".git",
        ".hg",
        ".svn",
        ".vs",
        ".idea",
        "__pycache__",
        "node_modules",
        ".venv",
        "venv",
        ".tox",
        ".mypy_cache",
        ".pytest_cache",
        "bin",
        "obj",
    }
)


def normalize_extensions(extensions: Iterable[str]) -> frozenset[str]:
    """Lower-case extensions and make sure each has a leading dot."""
    normalized: set[str] = set()
    for ext in extensions:
        ext = ext.strip().lower()
        if not ext:
            continue
        normalized.add(ext if ext.startswith(".") else f".{ext}")
    return frozenset(normalized)


class TreeWalker:
    """Enumerates candidate files under a root directory.

    Unreadable directories are reported and skipped; the walk never aborts
    because of them. Symlinked directories are not followed.

    Usage::

        walker = TreeWalker(Path("/my/project"))
        for path in walker.iter_files():
            ...
    """

    def __init__(
        self,
        root: Path,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
        skip_dirs: Iterable[str] = DEFAULT_SKIP_DIRS,
    ) -> None:
        self._root = Path(root).resolve()
        self._extensions = normalize_extensions(extensions)
        self._skip_dirs = frozenset(skip_dirs)
        self.errors = 0

    @property
    def root(self) -> Path:
        return self._root

    def iter_files(self) -> Iterator[Path]:
        """Lazily yield every file under the root with an allowed extension."""
        self.errors = 0
        try:
            is_dir = self._root.is_dir()
        except OSError as exc:
            self._on_error(exc)
            return
        if not is_dir:
            self.errors += 1
            console.print(f"[yellow]Warning[/yellow]: Not a directory, nothing to scan: {self._root}")
            return

        for dirpath_str, dirnames, filenames in os.walk(self._root, onerror=self._on_error):
            dirnames[:] = [d for d in dirnames if d not in self._skip_dirs]
            dirpath = Path(dirpath_str)
            for fname in filenames:
                if os.path.splitext(fname)[1].lower() in self._extensions:
                    yield dirpath / fname

    def _on_error(self, exc: OSError) -> None:
        self.errors += 1
        console.print(f"[yellow]Warning[/yellow]: Skipping {exc.filename}: {exc.strerror or exc}")


def list_files(root: Path, extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> Iterator[Path]:
    """Shorthand for ``TreeWalker(root, extensions).iter_files()``."""
    return TreeWalker(root, extensions).iter_files()
