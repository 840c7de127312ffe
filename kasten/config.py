"""Zettelkasten configuration, read from kasten.toml in the notes directory."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .alias import parse_aliases
from .errors import ConfigError
from .models import ZettelFormat

CONFIG_FILENAME = "kasten.toml"


@dataclass
class Config:
    site_title: str = "My Zettelkasten"
    author: str | None = None
    min_version: str = "0.1"
    formats: list[ZettelFormat] = field(default_factory=lambda: [ZettelFormat.MARKDOWN])
    recurse_dir: bool = False
    aliases: list[str] = field(default_factory=list)


def _expect(data: dict[str, Any], key: str, kind: type, default: Any) -> Any:
    value = data.get(key, default)
    if not isinstance(value, kind):
        raise ConfigError(f"'{key}' must be of type {kind.__name__}, got {type(value).__name__}")
    return value


def _version_string(value: Any) -> str:
    # TOML reads `min_version = 1.2` as a float
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ConfigError(f"'min_version' must be a version string, got {value!r}")
    return str(value)


def parse_config(data: dict[str, Any]) -> Config:
    """Build a Config from parsed TOML data."""
    defaults = Config()

    formats_raw = _expect(data, "formats", list, [f.value for f in defaults.formats])
    if not formats_raw:
        raise ConfigError("'formats' must list at least one format")
    formats: list[ZettelFormat] = []
    for name in formats_raw:
        fmt = ZettelFormat.parse(str(name))
        if fmt not in formats:
            formats.append(fmt)

    aliases = _expect(data, "aliases", list, [])
    if not all(isinstance(a, str) for a in aliases):
        raise ConfigError("'aliases' must be a list of \"source:target\" strings")
    parse_aliases(aliases)

    author = data.get("author")
    if author is not None and not isinstance(author, str):
        raise ConfigError("'author' must be a string")

    return Config(
        site_title=_expect(data, "site_title", str, defaults.site_title),
        author=author,
        min_version=_version_string(data.get("min_version", defaults.min_version)),
        formats=formats,
        recurse_dir=_expect(data, "recurse_dir", bool, defaults.recurse_dir),
        aliases=list(aliases),
    )


def load_config(notes_dir: Path) -> Config:
    """Load kasten.toml from the notes directory; defaults if absent."""
    path = notes_dir / CONFIG_FILENAME
    if not path.exists():
        return Config()

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid {CONFIG_FILENAME}: {e}") from e

    return parse_config(data)
