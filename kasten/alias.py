"""Alias redirects configured as "source:target" pairs."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, Mapping

from .errors import ConfigError, InvalidZettelID
from .models import Alias, ZettelError, ZettelID
from .zettelkasten.graph import ZettelGraph
from .zettelkasten.ids import RESERVED_SLUGS, parse_zettel_id

if TYPE_CHECKING:
    from .config import Config

logger = logging.getLogger(__name__)

# Aliases may point at the index page as well as at zettels
Z_INDEX_TARGET = ZettelID("z-index")


def parse_alias(entry: str) -> Alias:
    source, sep, target = entry.partition(":")
    if not sep:
        raise ConfigError(f"Invalid alias {entry!r}: expected \"source:target\"")
    try:
        alias_id = parse_zettel_id(source.strip())
    except InvalidZettelID as e:
        raise ConfigError(f"Invalid alias {entry!r}: {e}") from e
    target = target.strip()
    if alias_id.slug in RESERVED_SLUGS:
        raise ConfigError(f"Invalid alias {entry!r}: '{alias_id}' is a reserved name")
    if target == Z_INDEX_TARGET.slug:
        return Alias(alias_id, Z_INDEX_TARGET)
    try:
        return Alias(alias_id, parse_zettel_id(target))
    except InvalidZettelID as e:
        raise ConfigError(f"Invalid alias {entry!r}: {e}") from e


def parse_aliases(entries: Iterable[str]) -> list[Alias]:
    """Parse every alias entry, failing on the first malformed one."""
    return [parse_alias(entry) for entry in entries]


def filter_aliases(
    aliases: Iterable[Alias],
    graph: ZettelGraph,
    errors: Mapping[ZettelID, ZettelError] | None = None,
) -> list[Alias]:
    """Return the aliases that can be materialized.

    An alias is dropped when a real note (in the graph, or failing with an
    error) already owns its source ID, or when its target does not exist.
    """
    errors = errors or {}
    result = []
    for alias in aliases:
        label = f"{alias.alias_id}:{alias.target_id}"
        if graph.has_zettel(alias.alias_id) or alias.alias_id in errors:
            logger.warning(f"Skipping alias '{label}': a zettel with ID '{alias.alias_id}' already exists")
            continue
        if alias.target_id != Z_INDEX_TARGET and not graph.has_zettel(alias.target_id):
            logger.warning(f"Skipping alias '{label}': target zettel '{alias.target_id}' does not exist")
            continue
        result.append(alias)
    return result


def get_aliases(
    config: Config,
    graph: ZettelGraph,
    errors: Mapping[ZettelID, ZettelError] | None = None,
) -> list[Alias]:
    return filter_aliases(parse_aliases(config.aliases), graph, errors)
