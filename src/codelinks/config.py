"""Configuration management for CodeLinks.

Settings are loaded from three sources in order of priority:
1. Environment variables (highest priority)
2. Project-level config: .codelinks/config.toml
3. Global config: ~/.config/codelinks/config.toml (lowest priority)
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from rich.console import Console

from codelinks.exceptions import ConfigError
from codelinks.indexer.walker import DEFAULT_EXTENSIONS, DEFAULT_SKIP_DIRS, normalize_extensions

console = Console(stderr=True)

_GLOBAL_CONFIG_DIR = Path.home() / ".config" / "codelinks"
_GLOBAL_CONFIG_PATH = _GLOBAL_CONFIG_DIR / "config.toml"

DEFAULT_ROOT_MARKERS: tuple[str, ...] = ("*.sln", "*.csproj", "*.vbproj", "pyproject.toml", ".git")


@dataclass
class CodeLinksConfig:
    """CodeLinks configuration.

    Attributes:
        project_dir: Directory the configuration was loaded for.
        extensions: File extensions scanned for markers.
        skip_dirs: Directory names never descended into.
        max_workers: Concurrent scan workers. 0 = twice the CPU count.
        root_markers: Glob patterns identifying a project root directory.
    """

    project_dir: Path = field(default_factory=Path.cwd)
    extensions: frozenset[str] = DEFAULT_EXTENSIONS
    skip_dirs: frozenset[str] = DEFAULT_SKIP_DIRS
    max_workers: int = 0
    root_markers: tuple[str, ...] = DEFAULT_ROOT_MARKERS


def load_config(project_dir: Path) -> CodeLinksConfig:
    """Load configuration from env vars, project config, and global config.

    Priority: env vars > .codelinks/config.toml > ~/.config/codelinks/config.toml

    Args:
        project_dir: Root directory of the project.

    Returns:
        A fully resolved CodeLinksConfig instance.

    Raises:
        ConfigError: If a setting has the wrong type or an invalid value.
    """
    config = CodeLinksConfig(project_dir=project_dir)

    # Layer 1: Global config (lowest priority)
    _apply_toml(config, _load_toml(_GLOBAL_CONFIG_PATH))

    # Layer 2: Project config
    _apply_toml(config, _load_toml(project_dir / ".codelinks" / "config.toml"))

    # Layer 3: Environment variables (highest priority)
    _apply_env(config)

    return config


def _load_toml(path: Path) -> dict[str, Any]:
    """Load a TOML file, returning an empty dict if missing or invalid."""
    if not path.is_file():
        return {}
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except (tomllib.TOMLDecodeError, OSError) as exc:
        console.print(f"[yellow]Warning:[/yellow] Could not parse {path}: {exc}")
        return {}


def _as_str_list(name: str, value: Any) -> list[str]:
    if isinstance(value, str):
        return [part for part in value.split(",") if part.strip()]
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return value
    raise ConfigError(f"'{name}' must be a list of strings, got {value!r}")


def _as_workers(value: Any) -> int:
    try:
        workers = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"'max_workers' must be an integer, got {value!r}") from exc
    if workers < 0:
        raise ConfigError(f"'max_workers' must be >= 0, got {workers}")
    return workers


def _apply_toml(config: CodeLinksConfig, settings: dict[str, Any]) -> None:
    """Merge TOML settings into a CodeLinksConfig."""
    if "extensions" in settings:
        config.extensions = normalize_extensions(_as_str_list("extensions", settings["extensions"]))
    if "skip_dirs" in settings:
        config.skip_dirs = frozenset(
            d.strip() for d in _as_str_list("skip_dirs", settings["skip_dirs"])
        )
    if "max_workers" in settings:
        config.max_workers = _as_workers(settings["max_workers"])
    if "root_markers" in settings:
        config.root_markers = tuple(_as_str_list("root_markers", settings["root_markers"]))


def _apply_env(config: CodeLinksConfig) -> None:
    """Override config with environment variables where set."""
    if extensions := os.environ.get("CODELINKS_EXTENSIONS"):
        config.extensions = normalize_extensions(extensions.split(","))
    if skip_dirs := os.environ.get("CODELINKS_SKIP_DIRS"):
        config.skip_dirs = frozenset(d.strip() for d in skip_dirs.split(",") if d.strip())
    if max_workers := os.environ.get("CODELINKS_MAX_WORKERS"):
        config.max_workers = _as_workers(max_workers)
