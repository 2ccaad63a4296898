"""Reference resolution: the open document first, then the project-wide tag index."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from rich.console import Console

from codelinks.config import DEFAULT_ROOT_MARKERS
from codelinks.exceptions import CodeLinksError
from codelinks.indexer.index import TagIndex
from codelinks.indexer.markers import Location, MarkerKind, find_definition, marker_at, split_lines

console = Console(stderr=True)


@dataclass(frozen=True, slots=True)
class Document:
    """A document as the editor currently holds it, unsaved edits included.

    Attributes:
        path: File path of the document.
        content: Full text of the document.
    """

    path: str
    content: str

    @classmethod
    def from_file(cls, path: Path) -> Document:
        return cls(path=str(path.resolve()), content=path.read_text(encoding="utf-8", errors="replace"))

    def lines(self) -> list[str]:
        return split_lines(self.content)


class Navigator(Protocol):
    """Host collaborator that opens a file and moves the caret to a location."""

    def open_location(self, location: Location) -> None: ...


def find_project_root(
    path: Path | str, markers: Iterable[str] = DEFAULT_ROOT_MARKERS
) -> Path | None:
    """Walk up from a document to the nearest directory holding a project marker.

    Args:
        path: A file (or directory) inside the project.
        markers: Glob patterns such as ``*.sln`` or ``.git``.

    Returns:
        The first ancestor containing a marker, else the document's own
        directory. None if the directory cannot be determined.
    """
    start = Path(path).resolve()
    if not start.is_dir():
        start = start.parent
    patterns = tuple(markers)
    for directory in (start, *start.parents):
        try:
            if any(next(directory.glob(pattern), None) is not None for pattern in patterns):
                return directory
        except OSError as exc:
            console.print(f"[yellow]Warning[/yellow]: Cannot inspect {directory}: {exc}")
    return start if start.is_dir() else None


class Resolver:
    """Resolves ``goto:#key`` references to ``tag:#key`` definitions.

    The current document is searched first so unsaved edits win over the
    on-disk index; the index is built lazily on the first project-wide miss.
    """

    def __init__(self, index: TagIndex | None = None, navigator: Navigator | None = None) -> None:
        self.index = index if index is not None else TagIndex()
        self._navigator = navigator

    async def resolve(
        self, key: str, document: Document | None, project_root: Path | None
    ) -> Location | None:
        """Find where ``key`` is defined.

        Args:
            key: Marker key, compared case-sensitively.
            document: The open document, searched before the index.
            project_root: Directory to index; None skips the index step.

        Returns:
            The definition's location, or None if it is not found anywhere.
        """
        if document is not None:
            location = find_definition(document.lines(), key, document.path)
            if location is not None:
                return location

        if project_root is None:
            return None

        try:
            await self.index.ensure_built(project_root)
        except CodeLinksError as exc:
            console.print(f"[yellow]Warning[/yellow]: Index unavailable: {exc}")
            return None
        return self.index.lookup(key)

    async def navigate(
        self, key: str, document: Document | None, project_root: Path | None
    ) -> Location | None:
        """Resolve ``key`` and hand a hit to the navigator."""
        location = await self.resolve(key, document, project_root)
        if location is None:
            console.print(f"[yellow]Not found[/yellow]: tag:#{key}")
            return None
        if self._navigator is not None:
            self._navigator.open_location(location)
        return location

    async def navigate_at(
        self,
        document: Document,
        line: int,
        column: int | None = None,
        project_root: Path | None = None,
    ) -> Location | None:
        """Follow the ``goto`` marker under the caret, if there is one.

        Args:
            document: The open document.
            line: 0-based caret line.
            column: 0-based caret column; None takes the first reference on the line.
            project_root: Defaults to :func:`find_project_root` of the document.
        """
        lines = document.lines()
        if not 0 <= line < len(lines):
            return None
        marker = marker_at(lines[line], column, line=line, file_path=document.path)
        if marker is None or marker.kind is not MarkerKind.REFERENCE:
            return None
        if project_root is None:
            project_root = find_project_root(document.path)
        return await self.navigate(marker.key, document, project_root)
