"""CodeLinks — jump from ``goto:#key`` comments to their ``tag:#key`` definitions."""

from __future__ import annotations

__version__ = "0.1.0"

from codelinks.indexer import (  # noqa: E402
    BuildStatus,
    IndexStats,
    Location,
    MarkerKind,
    MarkerOccurrence,
    TagIndex,
    TreeWalker,
)
from codelinks.resolver import Document, Navigator, Resolver, find_project_root  # noqa: E402

__all__ = [
    "BuildStatus",
    "Document",
    "IndexStats",
    "Location",
    "MarkerKind",
    "MarkerOccurrence",
    "Navigator",
    "Resolver",
    "TagIndex",
    "TreeWalker",
    "__version__",
    "find_project_root",
]
