"""TOML config loading for puffsgen.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from puffsgen.formatter import DEFAULT_COMMAND

CONFIG_NAME = "puffsgen.toml"


@dataclass
class PackageConfig:
    name: str | None = None


@dataclass
class FormatConfig:
    enabled: bool = True
    command: list[str] = field(default_factory=lambda: list(DEFAULT_COMMAND))


@dataclass
class GenConfig:
    package: PackageConfig = field(default_factory=PackageConfig)
    format: FormatConfig = field(default_factory=FormatConfig)


def find_config(start_path: Path | None = None) -> Path:
    """Walk up directories to find puffsgen.toml. Raises FileNotFoundError."""
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


def load_config(path: Path) -> GenConfig:
    """Parse a puffsgen.toml file into a GenConfig."""
    with open(path, "rb") as f:
        data = tomllib.load(f)

    config = GenConfig()

    if "package" in data:
        pkg = data["package"]
        config.package = PackageConfig(name=pkg.get("name"))

    if "format" in data:
        fmt = data["format"]
        command = fmt.get("command", DEFAULT_COMMAND)
        if isinstance(command, str):
            command = [command]
        config.format = FormatConfig(
            enabled=fmt.get("enabled", True),
            command=list(command),
        )

    return config
