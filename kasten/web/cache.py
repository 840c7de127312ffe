"""
Graph cache: persists the last built (graph, errors) pair.

The cache lets a later process (a preview server, the `query --cached`
command) read the zettelkasten without re-parsing every note. It stores
exactly what the builder produced; nothing is filtered or reordered.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping, Protocol

from ..errors import CacheMissError
from ..models import ZettelError, ZettelID, zettel_error_from_dict
from ..zettelkasten.graph import ZettelGraph

CACHE_DIR = ".kasten"
CACHE_FILENAME = "cache.json"

CachedGraph = tuple[ZettelGraph, dict[ZettelID, ZettelError]]


class GraphCache(Protocol):
    def store(self, graph: ZettelGraph, errors: Mapping[ZettelID, ZettelError]) -> None: ...

    def retrieve(self) -> CachedGraph: ...


def serialize(graph: ZettelGraph, errors: Mapping[ZettelID, ZettelError]) -> dict[str, Any]:
    return {
        "graph": graph.to_dict(),
        "errors": {zid.slug: errors[zid].to_dict() for zid in sorted(errors)},
    }


def deserialize(data: dict[str, Any]) -> CachedGraph:
    graph = ZettelGraph.from_dict(data.get("graph", {}))
    errors = {ZettelID(k): zettel_error_from_dict(v) for k, v in data.get("errors", {}).items()}
    return graph, errors


class JsonFileCache:
    """
    Cache stored as a single JSON document.

    Writes go to a temporary file that is renamed over the old one, so a
    reader never sees a partial document. The last writer wins.
    """

    def __init__(self, path: Path):
        self.path = path

    def store(self, graph: ZettelGraph, errors: Mapping[ZettelID, ZettelError]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        serialized = json.dumps(serialize(graph, errors), indent=2, sort_keys=True)

        temp_path = self.path.with_suffix(".tmp")
        temp_path.write_text(serialized, encoding="utf-8")
        temp_path.replace(self.path)

    def retrieve(self) -> CachedGraph:
        if not self.path.exists():
            raise CacheMissError(f"No cached graph at {self.path}; run `kasten gen` first")
        return deserialize(json.loads(self.path.read_text(encoding="utf-8")))


class MemoryCache:
    """In-process cache holding the serialized form of the last build."""

    def __init__(self) -> None:
        self._data: dict[str, Any] | None = None

    def store(self, graph: ZettelGraph, errors: Mapping[ZettelID, ZettelError]) -> None:
        self._data = serialize(graph, errors)

    def retrieve(self) -> CachedGraph:
        if self._data is None:
            raise CacheMissError("No graph has been cached")
        return deserialize(self._data)


def default_cache(notes_dir: Path) -> JsonFileCache:
    return JsonFileCache(notes_dir / CACHE_DIR / CACHE_FILENAME)


def update_cache(cache: GraphCache, graph: ZettelGraph, errors: Mapping[ZettelID, ZettelError]) -> None:
    """Store a just-built graph and its errors."""
    cache.store(graph, errors)


def load_cached_graph(cache: GraphCache) -> CachedGraph:
    """Read-only entry point: the graph and errors of the last build."""
    return cache.retrieve()
