"""Tests for reference resolution."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from codelinks.indexer import Location, TagIndex
from codelinks.resolver import Document, Resolver, find_project_root
from tests.conftest import same_file, write_lines


class RecordingNavigator:
    def __init__(self) -> None:
        self.opened: list[Location] = []

    def open_location(self, location: Location) -> None:
        self.opened.append(location)


def _document(path: Path) -> Document:
    return Document(path=str(path.resolve()), content=path.read_text(encoding="utf-8"))


class TestDocument:
    def test_lines_split_on_newlines_only(self) -> None:
        document = Document(path="doc.cs", content="a\fb\u2028c\r\n// tag:#K\n")
        assert document.lines() == ["a\fb\u2028c", "// tag:#K"]

    @pytest.mark.asyncio
    async def test_form_feed_does_not_shift_definition(self) -> None:
        document = Document(path="doc.cs", content="int a;\f\n// tag:#K\n")
        assert await Resolver().resolve("K", document, None) == Location("doc.cs", 1, 3)


class TestResolve:
    @pytest.mark.asyncio
    async def test_end_to_end_from_reference_file(self, project: Path) -> None:
        resolver = Resolver()
        location = await resolver.resolve("Start", _document(project / "b.cs"), project)

        assert same_file(location, project / "a.cs")
        assert location is not None
        assert location.line == 5
        assert location.column == 3

    @pytest.mark.asyncio
    async def test_unsaved_document_wins(self, project: Path) -> None:
        document = Document(
            path=str((project / "b.cs").resolve()),
            content="namespace Demo\n{\n    // tag:#Start\n}\n",
        )
        resolver = Resolver()

        location = await resolver.resolve("Start", document, project)

        assert location == Location(document.path, 2, 7)
        assert not resolver.index.built

    @pytest.mark.asyncio
    async def test_unsaved_document_wins_over_stale_index(self, project: Path) -> None:
        resolver = Resolver()
        await resolver.index.ensure_built(project)
        document = Document(path="scratch.cs", content="// tag:#Dup\n")

        location = await resolver.resolve("Dup", document, project)

        assert location == Location("scratch.cs", 0, 3)

    @pytest.mark.asyncio
    async def test_without_root_only_document_is_searched(self, project: Path) -> None:
        resolver = Resolver()
        assert await resolver.resolve("Start", _document(project / "b.cs"), None) is None
        assert not resolver.index.built

    @pytest.mark.asyncio
    async def test_missing_key_is_not_found(self, project: Path) -> None:
        resolver = Resolver()
        assert await resolver.resolve("Missing", _document(project / "b.cs"), project) is None
        assert resolver.index.built

    @pytest.mark.asyncio
    async def test_missing_key_with_bad_root(self, tmp_path: Path) -> None:
        resolver = Resolver()
        assert await resolver.resolve("Missing", None, tmp_path / "nowhere") is None

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    @pytest.mark.asyncio
    async def test_missing_key_with_unreadable_directory(self, project: Path) -> None:
        locked = project / "locked"
        write_lines(locked / "x.cs", ["// tag:#Secret"])
        locked.chmod(0)
        try:
            resolver = Resolver()
            assert await resolver.resolve("Missing", None, project) is None
            assert same_file(await resolver.resolve("Start", None, project), project / "a.cs")
        finally:
            locked.chmod(0o755)

    @pytest.mark.asyncio
    async def test_shared_index_is_reused(self, project: Path) -> None:
        index = TagIndex()
        resolver = Resolver(index)
        await resolver.resolve("Start", None, project)
        await resolver.resolve("Dup", None, project)
        assert index.build_count == 1


class TestNavigate:
    @pytest.mark.asyncio
    async def test_hit_is_forwarded_to_navigator(self, project: Path) -> None:
        navigator = RecordingNavigator()
        resolver = Resolver(navigator=navigator)

        location = await resolver.navigate("Start", None, project)

        assert navigator.opened == [location]

    @pytest.mark.asyncio
    async def test_miss_is_not_forwarded(self, project: Path) -> None:
        navigator = RecordingNavigator()
        resolver = Resolver(navigator=navigator)

        assert await resolver.navigate("Missing", None, project) is None
        assert navigator.opened == []

    @pytest.mark.asyncio
    async def test_navigate_at_caret(self, project: Path) -> None:
        navigator = RecordingNavigator()
        resolver = Resolver(navigator=navigator)
        document = _document(project / "b.cs")

        location = await resolver.navigate_at(document, line=2, column=10, project_root=project)

        assert same_file(location, project / "a.cs")
        assert navigator.opened == [location]

    @pytest.mark.asyncio
    async def test_navigate_at_discovers_project_root(self, project: Path) -> None:
        (project / "Demo.sln").write_text("", encoding="utf-8")
        resolver = Resolver()

        location = await resolver.navigate_at(_document(project / "b.cs"), line=2)

        assert same_file(location, project / "a.cs")

    @pytest.mark.asyncio
    async def test_navigate_at_without_marker(self, project: Path) -> None:
        navigator = RecordingNavigator()
        resolver = Resolver(navigator=navigator)
        document = _document(project / "b.cs")

        assert await resolver.navigate_at(document, line=0, project_root=project) is None
        assert await resolver.navigate_at(document, line=99, project_root=project) is None
        assert navigator.opened == []


class TestFindProjectRoot:
    def test_finds_solution_directory(self, tmp_path: Path) -> None:
        (tmp_path / "App.sln").write_text("", encoding="utf-8")
        source = write_lines(tmp_path / "src" / "App" / "main.cs", ["class X {}"])

        assert find_project_root(source) == tmp_path.resolve()

    def test_finds_git_directory(self, tmp_path: Path) -> None:
        (tmp_path / "repo" / ".git").mkdir(parents=True)
        source = write_lines(tmp_path / "repo" / "pkg" / "mod.py", ["x = 1"])

        assert find_project_root(source, markers=[".git"]) == (tmp_path / "repo").resolve()

    def test_falls_back_to_document_directory(self, tmp_path: Path) -> None:
        source = write_lines(tmp_path / "lonely" / "file.txt", ["text"])

        assert find_project_root(source, markers=["*.nothing"]) == (tmp_path / "lonely").resolve()
