"""Query command - print the zettel graph as JSON."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console

from ..config import load_config
from ..errors import InvalidZettelID
from ..web.cache import default_cache, load_cached_graph
from ..zettelkasten.ids import parse_zettel_id
from ..zettelkasten.loader import load_zettelkasten_graph


def run_query(notes_dir: Path, cached: bool = False, zettel_id: str | None = None) -> int:
    """Print the whole graph, or one zettel with its links.

    Args:
        notes_dir: Path to the notes directory
        cached: Read the graph of the last build instead of rebuilding
        zettel_id: Only print this zettel

    Returns:
        Exit code (0 = success, 1 = unknown zettel)
    """
    console = Console(stderr=True)
    cache = default_cache(notes_dir)

    if cached:
        graph, errors = load_cached_graph(cache)
    else:
        graph, errors = load_zettelkasten_graph(load_config(notes_dir), notes_dir, cache=cache)

    if zettel_id is None:
        output = {
            **graph.to_dict(),
            "errors": {zid.slug: errors[zid].messages() for zid in sorted(errors)},
        }
        print(json.dumps(output, indent=2))
        return 0

    try:
        zid = parse_zettel_id(zettel_id)
    except InvalidZettelID as e:
        console.print(str(e), style="bold red", markup=False)
        return 1

    zettel = graph.get_zettel(zid)
    if zettel is None:
        console.print(f"No zettel with ID '{zid}'", style="bold red", markup=False)
        if zid in errors:
            for message in errors[zid].messages():
                console.print(f"  - {message}", markup=False)
        return 1

    output = {
        "zettel": zettel.to_dict(),
        "downlinks": [{"id": z.id.slug, "connection": c.value} for c, z in graph.downlinks(zid)],
        "backlinks": [{"id": z.id.slug, "connection": c.value} for c, z in graph.backlinks(zid)],
        "errors": errors[zid].messages() if zid in errors else [],
    }
    print(json.dumps(output, indent=2))
    return 0
