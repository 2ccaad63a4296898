"""Tag indexer — marker scanning, tree walking, and the concurrent tag index."""

from __future__ import annotations

from codelinks.indexer.index import BuildStatus, IndexStats, TagIndex
from codelinks.indexer.markers import (
    Location,
    MarkerKind,
    MarkerOccurrence,
    find_definition,
    marker_at,
    scan_file,
    scan_lines,
    scan_text,
    split_lines,
)
from codelinks.indexer.walker import DEFAULT_EXTENSIONS, DEFAULT_SKIP_DIRS, TreeWalker, list_files

__all__ = [
    "DEFAULT_EXTENSIONS",
    "DEFAULT_SKIP_DIRS",
    "BuildStatus",
    "IndexStats",
    "Location",
    "MarkerKind",
    "MarkerOccurrence",
    "TagIndex",
    "TreeWalker",
    "find_definition",
    "list_files",
    "marker_at",
    "scan_file",
    "scan_lines",
    "scan_text",
    "split_lines",
]
