"""Site generation: load the zettelkasten and emit every output route."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Sequence

from rich.console import Console
from rich.text import Text

from .. import __version__
from ..alias import Z_INDEX_TARGET, filter_aliases, parse_aliases
from ..config import Config
from ..errors import VersionMismatchError
from ..models import ZettelError, ZettelID
from ..tracking import DependencyTracker
from ..version import older_than
from ..zettelkasten.graph import ZettelGraph
from ..zettelkasten.loader import load_zettelkasten
from ..zettelkasten.query import QueryExtractor
from .cache import GraphCache
from .routes import (
    RedirectRoute,
    Route,
    RouteWriter,
    SearchRoute,
    ZettelRoute,
    ZIndexRoute,
    route_file,
)

logger = logging.getLogger(__name__)

SEARCH_SCRIPT_PATH = Path(__file__).resolve().parent.parent / "assets" / "search.js"


def search_script() -> str:
    """The client-side search script served on the search page."""
    return SEARCH_SCRIPT_PATH.read_text(encoding="utf-8")


def generate_site(
    config: Config,
    notes_dir: Path,
    writer: RouteWriter,
    *,
    tracker: DependencyTracker | None = None,
    cache: GraphCache | None = None,
    extractor: QueryExtractor | None = None,
    console: Console | None = None,
) -> tuple[ZettelGraph, dict[ZettelID, ZettelError]]:
    """Generate the zettelkasten site.

    Returns the graph and the per-zettel error map that was reported.

    Raises:
        VersionMismatchError: if the config requires a newer kasten
        ConfigError: for a malformed alias entry, before any output
    """
    if older_than(config.min_version):
        raise VersionMismatchError(config.min_version, __version__)
    aliases = parse_aliases(config.aliases)

    console = console or Console(stderr=True)

    graph, contents, errors = load_zettelkasten(
        config, notes_dir, tracker=tracker, cache=cache, extractor=extractor
    )

    # One page per zettel
    for zc in contents:
        writer.write_route(ZettelRoute(zc.zettel.id), graph, zc)

    writer.write_route(ZIndexRoute(), graph, errors)
    writer.write_route(SearchRoute(), graph, search_script())

    # Alias redirects, unless a zettel with that ID exists
    for alias in filter_aliases(aliases, graph, errors):
        target: Route = ZIndexRoute() if alias.target_id == Z_INDEX_TARGET else ZettelRoute(alias.target_id)
        writer.write_route(RedirectRoute(alias.alias_id), graph, target)

    report_errors(console, errors)
    return graph, errors


def report_errors(console: Console, errors: Mapping[ZettelID, ZettelError]) -> None:
    """Report every erroring zettel; one failing report does not stop the rest."""
    for zid in sorted(errors):
        try:
            report_error(console, ZettelRoute(zid), errors[zid].messages())
        except Exception as e:
            logger.warning(f"Failed to report errors for '{zid}': {e}")


def report_error(console: Console, route: Route, messages: Sequence[str]) -> None:
    """Print an error block for one output path."""
    console.print(Text.assemble(("E ", "bold red"), route_file(route)), soft_wrap=True)
    for message in messages:
        console.print(Text("  - " + indent_all_but_first_line(4, message)), soft_wrap=True)


def indent_all_but_first_line(n: int, text: str) -> str:
    lines = text.splitlines()
    if not lines:
        return ""
    return "\n".join([lines[0]] + [" " * n + line for line in lines[1:]])
