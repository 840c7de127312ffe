"""Gen command - build the zettelkasten and write each route as JSON."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from rich.console import Console

from ..config import load_config
from ..models import ZettelContent
from ..tracking import RecordingTracker
from ..web.generate import generate_site
from ..web.routes import RedirectRoute, Route, SearchRoute, ZettelRoute, ZIndexRoute, route_file
from ..zettelkasten.graph import ZettelGraph


def _links(pairs) -> list[dict[str, str]]:
    return [{"id": z.id.slug, "title": z.title, "connection": conn.value} for conn, z in pairs]


class JsonRouteWriter:
    """Writes each route's payload as a JSON document under `out_dir`.

    Rendering to HTML is left to a separate theme; this writer emits the
    data every page needs.
    """

    def __init__(self, out_dir: Path):
        self.out_dir = out_dir
        self.written: list[Path] = []

    def output_path(self, route: Route) -> Path:
        return self.out_dir / Path(route_file(route)).with_suffix(".json")

    def write_route(self, route: Route, graph: ZettelGraph, payload: Any) -> None:
        if isinstance(route, ZettelRoute):
            doc = self._zettel_doc(graph, payload)
        elif isinstance(route, ZIndexRoute):
            doc = self._z_index_doc(graph, payload)
        elif isinstance(route, SearchRoute):
            doc = {"script": payload}
        elif isinstance(route, RedirectRoute):
            doc = {"redirect": route_file(payload)}
        else:
            raise TypeError(f"Not a route: {route!r}")

        path = self.output_path(route)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(doc, indent=2, default=str), encoding="utf-8")
        self.written.append(path)

    def _zettel_doc(self, graph: ZettelGraph, zc: ZettelContent) -> dict[str, Any]:
        zid = zc.zettel.id
        return {
            "zettel": zc.zettel.to_dict(),
            "metadata": zc.content.metadata,
            "body": zc.content.body,
            "downlinks": _links(graph.downlinks(zid)),
            "backlinks": _links(graph.backlinks(zid)),
        }

    def _z_index_doc(self, graph: ZettelGraph, errors) -> dict[str, Any]:
        return {
            "zettels": [
                {"id": z.id.slug, "title": z.title, "tags": list(z.tags)}
                for z in graph.get_zettels()
                if not z.unlisted
            ],
            "top_level": [zid.slug for zid in graph.top_level()],
            "orphans": [zid.slug for zid in graph.orphans()],
            "folgezettel_cycles": [[zid.slug for zid in c] for c in graph.folgezettel_cycles()],
            "errors": {zid.slug: errors[zid].messages() for zid in sorted(errors)},
        }


def run_gen(notes_dir: Path, out_dir: Path, strict: bool = False) -> int:
    """Build the site into `out_dir`.

    Returns:
        Exit code (0 = success, 1 = zettel errors found in strict mode)
    """
    console = Console(stderr=True)
    config = load_config(notes_dir)

    console.print(f"Loading zettels from {notes_dir}...", style="dim", markup=False)
    writer = JsonRouteWriter(out_dir)
    tracker = RecordingTracker()
    graph, errors = generate_site(config, notes_dir, writer, tracker=tracker, console=console)

    console.print(
        f"Wrote {len(writer.written)} routes for {len(graph.nodes)} zettels "
        f"({len(tracker.paths)} files read) to {out_dir}",
        style="dim",
        markup=False,
    )

    if strict and errors:
        console.print(f"✗ {len(errors)} zettel(s) with errors", style="bold red")
        return 1
    return 0
