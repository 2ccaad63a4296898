"""Comment-marker recognition: ``tag:#key`` definitions and ``goto:#key`` references."""

from __future__ import annotations

import enum
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

from codelinks.exceptions import ScanError

# A line-comment token, optional whitespace, then the keyword and key. The
# comment token and keyword match in any case; the key keeps its case.
_MARKER_RE = re.compile(
    r"(?:(?<![A-Za-z0-9_])(?i:rem)\b|//|#|--|;|')"
    r"\s*(?P<kind>(?i:tag|goto)):#(?P<key>[A-Za-z][A-Za-z0-9_]*)"
)

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


class MarkerKind(enum.Enum):
    """The two kinds of navigation marker."""

    DEFINITION = "tag"
    REFERENCE = "goto"

    @classmethod
    def from_keyword(cls, keyword: str) -> MarkerKind:
        return cls(keyword.lower())


@dataclass(frozen=True, slots=True)
class Location:
    """Where a definition was found.

    Attributes:
        file_path: Path of the file holding the marker.
        line: 0-based line number.
        column: 0-based character offset of the ``tag`` keyword.
    """

    file_path: str
    line: int
    column: int

    def one_based(self) -> tuple[int, int]:
        """Return ``(line, column)`` in the 1-based form editors display."""
        return self.line + 1, self.column + 1

    def __str__(self) -> str:
        return f"{self.file_path}:{self.line}:{self.column}"


@dataclass(frozen=True, slots=True)
class MarkerOccurrence:
    """A single marker found while scanning content.

    Attributes:
        kind: Definition (``tag``) or reference (``goto``).
        key: Identifier after ``#``, case preserved.
        file_path: Path of the scanned file, or "" for in-memory content.
        line: 0-based line number.
        column: 0-based character offset of the keyword.
    """

    kind: MarkerKind
    key: str
    file_path: str
    line: int
    column: int

    @property
    def location(self) -> Location:
        return Location(file_path=self.file_path, line=self.line, column=self.column)


def _iter_matches(line: str) -> Iterator[re.Match[str]]:
    # Cheap pre-filter; most lines carry no marker at all.
    if ":#" not in line:
        return iter(())
    return _MARKER_RE.finditer(line)


def scan_lines(lines: Iterable[str], file_path: str = "") -> list[MarkerOccurrence]:
    """Scan content line by line and return every marker occurrence.

    Args:
        lines: The content, one entry per line (trailing newlines are fine).
        file_path: Recorded on each occurrence.

    Returns:
        Occurrences in line order, then column order within a line.
    """
    results: list[MarkerOccurrence] = []
    for line_no, line in enumerate(lines):
        for match in _iter_matches(line):
            results.append(
                MarkerOccurrence(
                    kind=MarkerKind.from_keyword(match.group("kind")),
                    key=match.group("key"),
                    file_path=file_path,
                    line=line_no,
                    column=match.start("kind"),
                )
            )
    return results


def split_lines(text: str) -> list[str]:
    """Split on ``\\r\\n``, ``\\r`` and ``\\n`` only, the way editors number lines.

    Unlike ``str.splitlines`` this keeps form feeds and Unicode separators
    inside their line.
    """
    lines = _LINE_BREAK_RE.split(text)
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def scan_text(text: str, file_path: str = "") -> list[MarkerOccurrence]:
    """Scan a whole text blob; see :func:`scan_lines`."""
    return scan_lines(split_lines(text), file_path)


def scan_file(path: Path) -> list[MarkerOccurrence]:
    """Read a file from disk and scan it.

    Undecodable bytes are replaced rather than rejected, so binary noise in
    an allowed extension never aborts a scan.

    Raises:
        ScanError: If the file cannot be read.
    """
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise ScanError(f"Cannot read {path}: {exc}", path=path) from exc
    return scan_text(text, str(path))


def find_definition(lines: Iterable[str], key: str, file_path: str = "") -> Location | None:
    """Return the first definition of ``key`` in the content, or None.

    Key comparison is case-sensitive.
    """
    for line_no, line in enumerate(lines):
        for match in _iter_matches(line):
            if match.group("key") != key:
                continue
            if MarkerKind.from_keyword(match.group("kind")) is MarkerKind.DEFINITION:
                return Location(file_path=file_path, line=line_no, column=match.start("kind"))
    return None


def marker_at(
    line_text: str,
    column: int | None = None,
    line: int = 0,
    file_path: str = "",
) -> MarkerOccurrence | None:
    """Return the marker under a caret position on a single line.

    Args:
        line_text: Text of the line the caret is on.
        column: 0-based caret column. None picks the first reference on the line.
        line: Line number recorded on the result.
        file_path: Path recorded on the result.

    Returns:
        The marker whose span (comment token through key) covers ``column``,
        or None.
    """
    for match in _iter_matches(line_text):
        kind = MarkerKind.from_keyword(match.group("kind"))
        if column is None:
            if kind is not MarkerKind.REFERENCE:
                continue
        elif not match.start() <= column < match.end():
            continue
        return MarkerOccurrence(
            kind=kind,
            key=match.group("key"),
            file_path=file_path,
            line=line,
            column=match.start("kind"),
        )
    return None
