"""TOML config loading for gudscript.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_NAME = "gudscript.toml"


@dataclass
class PackageConfig:
    name: str = "untitled"
    version: str = "0.0.0"


@dataclass
class DiagnosticsConfig:
    color: bool = True


@dataclass
class SourceConfig:
    directory: str = "src"


@dataclass
class GudConfig:
    package: PackageConfig = field(default_factory=PackageConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)
    source: SourceConfig = field(default_factory=SourceConfig)


def find_config(start_path: Path | None = None) -> Path:
    """Walk up directories to find gudscript.toml. Raises FileNotFoundError."""
    path = (start_path or Path.cwd()).resolve()
    if path.is_file():
        path = path.parent
    while True:
        candidate = path / CONFIG_NAME
        if candidate.exists():
            return candidate
        parent = path.parent
        if parent == path:
            raise FileNotFoundError(f"No {CONFIG_NAME} found in any parent directory")
        path = parent


def load_config(path: Path) -> GudConfig:
    """Parse a gudscript.toml file into a GudConfig."""
    with open(path, "rb") as f:
        data = tomllib.load(f)

    config = GudConfig()

    if "package" in data:
        pkg = data["package"]
        config.package = PackageConfig(
            name=pkg.get("name", "untitled"),
            version=pkg.get("version", "0.0.0"),
        )

    if "diagnostics" in data:
        config.diagnostics = DiagnosticsConfig(
            color=bool(data["diagnostics"].get("color", True)),
        )

    if "source" in data:
        config.source = SourceConfig(
            directory=data["source"].get("directory", "src"),
        )

    return config


def source_dir(project_dir: Path, config: GudConfig) -> Path:
    """Return the configured source directory, or the project root."""
    src = project_dir / config.source.directory
    return src if src.is_dir() else project_dir
