"""TOML config loading for bashtyped.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from bashtyped.errors import ANSI_COLORS, LabelColors

CONFIG_NAME = "bashtyped.toml"


@dataclass
class CheckConfig:
    extensions: list[str] = field(default_factory=lambda: [".sh", ".bash"])


@dataclass
class BashtypedConfig:
    check: CheckConfig = field(default_factory=CheckConfig)
    colors: LabelColors = field(default_factory=LabelColors)


def find_config(start_path: Path | None = None) -> Path:
    """Walk up directories to find bashtyped.toml. Raises FileNotFoundError."""
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


def load_config(path: Path) -> BashtypedConfig:
    """Parse a bashtyped.toml file into a BashtypedConfig."""
    with open(path, "rb") as f:
        data = tomllib.load(f)

    config = BashtypedConfig()

    if "check" in data:
        chk = data["check"]
        config.check = CheckConfig(
            extensions=chk.get("extensions", [".sh", ".bash"]),
        )

    if "colors" in data:
        col = data["colors"]
        defaults = LabelColors()
        config.colors = LabelColors(
            declared=_color(col, "declared", defaults.declared),
            inferred=_color(col, "inferred", defaults.inferred),
            error=_color(col, "error", defaults.error),
        )

    return config


def load_nearest_config(start_path: Path | None = None) -> BashtypedConfig:
    """Load the closest bashtyped.toml, or defaults when there is none."""
    try:
        return load_config(find_config(start_path))
    except FileNotFoundError:
        return BashtypedConfig()


def _color(table: dict, key: str, default: str) -> str:
    name = table.get(key, default)
    if name not in ANSI_COLORS:
        known = ", ".join(sorted(ANSI_COLORS))
        raise ValueError(f"unknown color {name!r} for colors.{key} (expected one of {known})")
    return name
