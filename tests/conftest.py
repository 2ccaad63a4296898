"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from codelinks.indexer import Location


def write_lines(path: Path, lines: list[str]) -> Path:
    """Write ``lines`` to ``path`` (creating parents) and return the path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def same_file(location: Location | None, path: Path) -> bool:
    return location is not None and Path(location.file_path) == path.resolve()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A small project: a.cs defines Start, b.cs references it, Dup is defined twice."""
    write_lines(
        tmp_path / "a.cs",
        [
            "using System;",
            "",
            "namespace Demo",
            "{",
            "    // tag:#Dup",
            "// tag:#Start",
            "    class A { }",
            "}",
        ],
    )
    write_lines(
        tmp_path / "b.cs",
        [
            "namespace Demo",
            "{",
            "    // goto:#Start",
            "}",
        ],
    )
    write_lines(
        tmp_path / "src" / "c.cs",
        [""] * 9 + ["// tag:#Dup"],
    )
    write_lines(tmp_path / "notes.md", ["// tag:#Ignored"])
    return tmp_path
