"""Typer CLI entry point for CodeLinks.

Bridges the synchronous Typer world to the async index internals via asyncio.run().
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from codelinks import __version__
from codelinks.config import CodeLinksConfig, load_config
from codelinks.exceptions import CodeLinksError, ScanError
from codelinks.indexer import MarkerKind, MarkerOccurrence, TagIndex, TreeWalker, scan_file
from codelinks.resolver import Document, Resolver, find_project_root

app = typer.Typer(
    name="codelinks",
    help="CodeLinks — jump from goto:#key comments to their tag:#key definitions.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()


def _error_exit(message: str, hint: str | None = None) -> None:
    """Print a styled error and exit."""
    console.print(f"[bold red]Error:[/bold red] {message}")
    if hint:
        console.print(f"[dim]Hint: {hint}[/dim]")
    raise typer.Exit(code=1)


def _root_and_config(root: Path | None, anchor: Path | None = None) -> tuple[Path, CodeLinksConfig]:
    """Pick the project root (explicit, discovered from anchor, or cwd) and load its config."""
    if root is None and anchor is not None:
        root = find_project_root(anchor)
    project_dir = (root or Path.cwd()).resolve()
    if not project_dir.is_dir():
        _error_exit(f"Not a directory: {project_dir}")
    return project_dir, load_config(project_dir)


def _display(path: str, root: Path) -> str:
    try:
        return Path(path).relative_to(root).as_posix()
    except ValueError:
        return path


RootOption = Annotated[
    Path | None,
    typer.Option("--root", "-r", help="Project root (default: discovered, else cwd)"),
]


@app.command()
def version() -> None:
    """Show the CodeLinks version."""
    console.print(f"codelinks {__version__}")


@app.command()
def markers(
    path: Annotated[Path, typer.Argument(help="File to scan for tag:/goto: markers")],
) -> None:
    """List the markers in a single file."""
    try:
        found = scan_file(path)
    except ScanError as exc:
        _error_exit(str(exc))
        return

    if not found:
        console.print(f"[dim]No markers in {path}[/dim]")
        return

    table = Table(title=str(path), border_style="cyan", header_style="bold cyan")
    table.add_column("Kind", style="bold")
    table.add_column("Key")
    table.add_column("Line", justify="right")
    table.add_column("Column", justify="right")
    for occ in found:
        line, column = occ.location.one_based()
        style = "blue" if occ.kind is MarkerKind.DEFINITION else "green"
        table.add_row(f"[{style}]{occ.kind.value}[/{style}]", occ.key, str(line), str(column))
    console.print(table)


@app.command()
def resolve(
    key: Annotated[str, typer.Argument(help="Tag key to look up (case-sensitive)")],
    from_file: Annotated[
        Path | None,
        typer.Option("--from", "-f", help="Document to search first, as the editor would"),
    ] = None,
    root: RootOption = None,
) -> None:
    """Print where a tag is defined as path:line:column (1-based)."""
    try:
        project_dir, config = _root_and_config(root, from_file)
        document = Document.from_file(from_file) if from_file is not None else None
        resolver = Resolver(TagIndex.from_config(config))
        location = asyncio.run(resolver.resolve(key, document, project_dir))
    except OSError as exc:
        _error_exit(f"Cannot read document: {exc}")
        return
    except CodeLinksError as exc:
        _error_exit(str(exc))
        return

    if location is None:
        _error_exit(f"Tag not found: tag:#{key}")
        return
    line, column = location.one_based()
    console.print(f"{_display(location.file_path, project_dir)}:{line}:{column}", soft_wrap=True)


@app.command()
def stats(root: RootOption = None) -> None:
    """Build the tag index and show its size."""
    try:
        project_dir, config = _root_and_config(root)
        index = TagIndex.from_config(config)
        asyncio.run(index.ensure_built(project_dir))
    except CodeLinksError as exc:
        _error_exit(str(exc))
        return

    result = index.stats()
    table = Table(title="CodeLinks Index", border_style="cyan", header_style="bold cyan")
    table.add_column("Property", style="bold")
    table.add_column("Value")
    table.add_row("Root", str(project_dir))
    table.add_row("Files scanned", str(index.files_scanned))
    table.add_row("Tags", str(result.key_count))
    table.add_row("Locations", str(result.location_count))
    console.print(table)


@app.command()
def check(root: RootOption = None) -> None:
    """Report goto references with no matching tag, and tags defined twice."""
    try:
        project_dir, config = _root_and_config(root)
        index = TagIndex.from_config(config)
        asyncio.run(index.ensure_built(project_dir))
    except CodeLinksError as exc:
        _error_exit(str(exc))
        return

    dangling: dict[str, list[MarkerOccurrence]] = defaultdict(list)
    walker = TreeWalker(project_dir, config.extensions, config.skip_dirs)
    for path in walker.iter_files():
        try:
            occurrences = scan_file(path)
        except ScanError as exc:
            console.print(f"[yellow]Warning[/yellow]: {exc}")
            continue
        for occ in occurrences:
            if occ.kind is MarkerKind.REFERENCE and index.lookup(occ.key) is None:
                dangling[occ.key].append(occ)

    duplicates = {key: locs for key in index.keys() if len(locs := index.lookup_all(key)) > 1}

    for key in sorted(duplicates):
        console.print(f"[yellow]Duplicate[/yellow] tag:#{key}", soft_wrap=True)
        for loc in duplicates[key]:
            line, column = loc.one_based()
            console.print(f"  {_display(loc.file_path, project_dir)}:{line}:{column}", soft_wrap=True)

    for key in sorted(dangling):
        console.print(f"[red]Dangling[/red] goto:#{key}", soft_wrap=True)
        for occ in dangling[key]:
            line, column = occ.location.one_based()
            console.print(f"  {_display(occ.file_path, project_dir)}:{line}:{column}", soft_wrap=True)

    if dangling:
        raise typer.Exit(code=1)
    console.print("[green]All goto references resolve.[/green]")
