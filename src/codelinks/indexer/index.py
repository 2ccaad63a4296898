"""Concurrent, lazily built tag index mapping marker keys to definition locations."""

from __future__ import annotations

import asyncio
import enum
import os
import threading
import time
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from rich.console import Console

from codelinks.exceptions import ScanError
from codelinks.indexer.markers import Location, MarkerKind, MarkerOccurrence, scan_file
from codelinks.indexer.walker import DEFAULT_EXTENSIONS, DEFAULT_SKIP_DIRS, TreeWalker

if TYPE_CHECKING:
    from codelinks.config import CodeLinksConfig

console = Console(stderr=True)


class CancelSignal(Protocol):
    """Anything with ``is_set()``: asyncio.Event, threading.Event, ..."""

    def is_set(self) -> bool: ...


class BuildStatus(enum.Enum):
    """Outcome of :meth:`TagIndex.ensure_built`."""

    BUILT = "built"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class IndexStats:
    """Diagnostic counters for a tag index."""

    key_count: int
    location_count: int


def _default_workers() -> int:
    return (os.cpu_count() or 1) * 2


def _normalize_path(path: Path | str) -> Path:
    """Resolve the directory part of a path but keep the file name as given.

    The walker resolves its root and never follows symlinked directories, so
    this is the form every indexed file path already has, symlinked files
    included.
    """
    path = Path(path)
    return Path(os.path.realpath(path.parent)) / path.name


class TagIndex:
    """Key -> definition locations, built from a directory tree on first use.

    Each key maps to an immutable tuple of locations in scan order. Writers
    replace tuples under ``_write_lock``; readers never take a lock and
    always see either the old or the new tuple for a key.

    Usage::

        index = TagIndex()
        await index.ensure_built(Path("/my/project"))
        location = index.lookup("Start")
    """

    def __init__(
        self,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
        max_workers: int | None = None,
        skip_dirs: Iterable[str] = DEFAULT_SKIP_DIRS,
    ) -> None:
        self._extensions = frozenset(extensions)
        self._skip_dirs = frozenset(skip_dirs)
        self._max_workers = max_workers or _default_workers()
        self._entries: dict[str, tuple[Location, ...]] = {}
        self._write_lock = threading.Lock()
        self._build_lock = asyncio.Lock()
        self._built = False
        self.build_count = 0
        self.files_scanned = 0

    @classmethod
    def from_config(cls, config: CodeLinksConfig) -> TagIndex:
        return cls(
            extensions=config.extensions,
            max_workers=config.max_workers or None,
            skip_dirs=config.skip_dirs,
        )

    @property
    def built(self) -> bool:
        return self._built

    async def ensure_built(self, root: Path, cancel: CancelSignal | None = None) -> BuildStatus:
        """Build the index from ``root`` unless it is already built.

        Concurrent callers share one build: the first to take the build lock
        scans, the rest wait and then see the finished index.

        Args:
            root: Directory to walk.
            cancel: Checked before each file; once set, remaining files are
                skipped and the index stays unbuilt.

        Returns:
            BUILT, or CANCELLED if ``cancel`` fired during this build.
        """
        if self._built:
            return BuildStatus.BUILT

        async with self._build_lock:
            if self._built:
                return BuildStatus.BUILT

            console.print(f"[bold blue]Indexer[/bold blue] building tag index for {root}...")
            started = time.perf_counter()

            walker = TreeWalker(root, self._extensions, self._skip_dirs)
            files = await asyncio.to_thread(list, walker.iter_files())

            semaphore = asyncio.Semaphore(self._max_workers)
            cancelled = False

            async def _worker(path: Path) -> None:
                nonlocal cancelled
                async with semaphore:
                    if cancel is not None and cancel.is_set():
                        cancelled = True
                        return
                    await asyncio.to_thread(self._index_file, path)

            await asyncio.gather(*(_worker(path) for path in files))

            if cancelled:
                console.print(
                    f"[yellow]Indexer[/yellow] build cancelled after "
                    f"{self.files_scanned} of {len(files)} files"
                )
                return BuildStatus.CANCELLED

            self._built = True
            self.build_count += 1
            elapsed_ms = (time.perf_counter() - started) * 1000
            console.print(
                f"[green]Indexer[/green] indexed [bold]{len(self._entries)}[/bold] tags "
                f"across [bold]{len(files)}[/bold] files in {elapsed_ms:.0f}ms"
            )
            return BuildStatus.BUILT

    def lookup(self, key: str) -> Location | None:
        """Return the first-scanned definition of ``key``, or None.

        Always None while the index is unbuilt. Keys are case-sensitive.
        """
        if not self._built:
            return None
        locations = self._entries.get(key)
        return locations[0] if locations else None

    def lookup_all(self, key: str) -> tuple[Location, ...]:
        """Return every known definition of ``key`` in scan order."""
        if not self._built:
            return ()
        return self._entries.get(key, ())

    def keys(self) -> list[str]:
        return list(self._entries)

    async def update_file(self, path: Path) -> None:
        """Re-index a single file after it changed on disk.

        No-op while the index is unbuilt. Entries for ``path`` are replaced
        by the file's current definitions, or dropped if it no longer exists.
        """
        if not self._built:
            return
        await asyncio.to_thread(self._refresh_file, Path(path))

    def clear(self) -> None:
        """Empty the index and return it to the unbuilt state."""
        with self._write_lock:
            self._entries.clear()
            self._built = False
            self.files_scanned = 0
        console.print("[dim]Indexer[/dim] index cleared")

    def stats(self) -> IndexStats:
        entries = dict(self._entries)
        return IndexStats(
            key_count=len(entries),
            location_count=sum(len(locs) for locs in entries.values()),
        )

    def _index_file(self, path: Path) -> None:
        """Scan one file and merge its definitions; runs on a worker thread."""
        try:
            occurrences = scan_file(path)
        except ScanError as exc:
            console.print(f"[yellow]Warning[/yellow]: Skipping {path}: {exc}")
            return
        with self._write_lock:
            self._merge(occurrences)
            self.files_scanned += 1

    def _refresh_file(self, path: Path) -> None:
        """Replace one file's definitions; an unreadable file ends up with none."""
        normalized = _normalize_path(path)
        occurrences: list[MarkerOccurrence] = []
        try:
            if normalized.is_file():
                occurrences = scan_file(normalized)
        except (ScanError, OSError) as exc:
            console.print(f"[yellow]Warning[/yellow]: Could not rescan {path}: {exc}")

        target = str(normalized).casefold()
        with self._write_lock:
            removed = self._purge(target)
            added = self._merge(occurrences)
        console.print(
            f"[green]Indexer[/green] updated {path} "
            f"(-{removed} / +{added} definitions)"
        )

    def _merge(self, occurrences: Iterable[MarkerOccurrence]) -> int:
        """Append definitions to their keys. Caller holds ``_write_lock``."""
        added = 0
        for occ in occurrences:
            if occ.kind is not MarkerKind.DEFINITION:
                continue
            location = occ.location
            current = self._entries.get(occ.key, ())
            # Re-merging a file that was already scanned must not duplicate it.
            if location in current:
                continue
            self._entries[occ.key] = (*current, location)
            added += 1
        return added

    def _purge(self, target: str) -> int:
        """Drop every location in the file ``target``. Caller holds ``_write_lock``."""
        removed = 0
        for key, locations in list(self._entries.items()):
            kept = tuple(loc for loc in locations if loc.file_path.casefold() != target)
            if len(kept) == len(locations):
                continue
            removed += len(locations) - len(kept)
            if kept:
                self._entries[key] = kept
            else:
                del self._entries[key]
        return removed
