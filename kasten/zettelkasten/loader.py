"""Zettel file discovery, duplicate-ID detection and loading."""

from __future__ import annotations

import functools
import logging
from pathlib import Path
from typing import Callable, Sequence

from ..config import Config
from ..models import (
    Ambiguous,
    AmbiguousFiles,
    RawNote,
    ResolutionEntry,
    Unique,
    ZettelContent,
    ZettelError,
    ZettelFormat,
    ZettelID,
)
from ..tracking import DependencyTracker, RecordingTracker
from ..web.cache import GraphCache, default_cache, update_cache
from .build import ZettelBatch, build_zettelkasten
from .graph import ZettelGraph
from .ids import resolve_zettel_id
from .query import LinkQueryExtractor, QueryExtractor
from .reader import reader_for_format

logger = logging.getLogger(__name__)

# Per format, in configured order: relative paths in discovery order
ZettelFiles = Sequence[tuple[ZettelFormat, Sequence[str]]]

LoadResult = tuple[ZettelGraph, list[ZettelContent], dict[ZettelID, ZettelError]]


def discover_zettel_files(
    notes_dir: Path, formats: Sequence[ZettelFormat], recurse: bool = False
) -> list[tuple[ZettelFormat, list[str]]]:
    """Find note files for each format.

    Hidden files and directories are skipped. Paths are relative to
    `notes_dir`, POSIX-style, and sorted so discovery order is stable.
    """
    result = []
    prefix = "**/*" if recurse else "*"
    for fmt in formats:
        files = []
        for path in notes_dir.glob(prefix + fmt.extension):
            rel = path.relative_to(notes_dir)
            if any(part.startswith(".") for part in rel.parts):
                continue
            if not path.is_file():
                continue
            files.append(rel.as_posix())
        result.append((fmt, sorted(files)))
    return result


def read_zettel_file(notes_dir: Path, rel_path: str, tracker: DependencyTracker) -> str:
    """Track the file as a build dependency, then read it.

    Invalid UTF-8 is replaced rather than rejected. I/O errors propagate.
    """
    abs_path = notes_dir / rel_path
    tracker.need(abs_path)
    return abs_path.read_bytes().decode("utf-8", errors="replace")


def resolve_step(
    entries: dict[ZettelID, ResolutionEntry],
    item: tuple[ZettelFormat, str],
    *,
    load: Callable[[str], str],
) -> dict[ZettelID, ResolutionEntry]:
    """Fold one discovered file into the ID -> entry map.

    The first file claiming an ID is loaded. A second claimant turns the
    entry ambiguous and drops the loaded text; later claimants only add
    their path. Nothing is read for a file that is not first.
    """
    fmt, rel_path = item
    zid = resolve_zettel_id(fmt, rel_path)
    if zid is None:
        return entries

    entry = entries.get(zid)
    if entry is None:
        entries[zid] = Unique(fmt, rel_path, load(rel_path))
    elif isinstance(entry, Unique):
        logger.debug(f"Duplicate zettel ID '{zid}': {entry.path}, {rel_path}")
        entries[zid] = Ambiguous((entry.path, rel_path))
    else:
        entries[zid] = Ambiguous(entry.paths + (rel_path,))
    return entries


def resolve_zettel_files(
    files: ZettelFiles, load: Callable[[str], str]
) -> tuple[dict[ZettelID, AmbiguousFiles], dict[ZettelID, RawNote]]:
    """Resolve IDs for all files in format order, then discovery order.

    Returns:
        (ambiguity errors, uniquely claimed notes)
    """
    ordered = ((fmt, path) for fmt, paths in files for path in paths)
    entries = functools.reduce(functools.partial(resolve_step, load=load), ordered, {})

    dups = {}
    uniques = {}
    for zid, entry in entries.items():
        if isinstance(entry, Ambiguous):
            dups[zid] = AmbiguousFiles(entry.paths)
        else:
            uniques[zid] = RawNote(entry.format, entry.path, entry.text)
    return dups, uniques


def group_by_format(notes: dict[ZettelID, RawNote]) -> list[ZettelBatch]:
    """Regroup notes into one batch per format, each with its reader."""
    grouped: dict[ZettelFormat, list[tuple[ZettelID, str, str]]] = {}
    for zid in sorted(notes):
        note = notes[zid]
        grouped.setdefault(note.format, []).append((zid, note.path, note.text))
    return [((fmt, reader_for_format(fmt)), batch) for fmt, batch in grouped.items()]


def load_zettelkasten_from(
    notes_dir: Path,
    files: ZettelFiles,
    tracker: DependencyTracker | None = None,
    extractor: QueryExtractor | None = None,
) -> LoadResult:
    """Load the zettelkasten from the given list of zettel files."""
    tracker = tracker or RecordingTracker()
    extractor = extractor or LinkQueryExtractor()

    dups, uniques = resolve_zettel_files(
        files, lambda rel_path: read_zettel_file(notes_dir, rel_path, tracker)
    )
    graph, contents, graph_errors = build_zettelkasten(group_by_format(uniques), extractor)

    errors: dict[ZettelID, ZettelError] = {**dups, **graph_errors}
    logger.debug(
        f"Loaded {len(graph.nodes)} zettels, {len(dups)} ambiguous IDs, {len(graph_errors)} with errors"
    )
    return graph, contents, errors


def load_zettelkasten(
    config: Config,
    notes_dir: Path,
    *,
    tracker: DependencyTracker | None = None,
    cache: GraphCache | None = None,
    extractor: QueryExtractor | None = None,
) -> LoadResult:
    """Discover, load and build the zettelkasten, then refresh the cache."""
    files = discover_zettel_files(notes_dir, config.formats, config.recurse_dir)
    graph, contents, errors = load_zettelkasten_from(notes_dir, files, tracker, extractor)
    update_cache(cache if cache is not None else default_cache(notes_dir), graph, errors)
    return graph, contents, errors


def load_zettelkasten_graph(
    config: Config,
    notes_dir: Path,
    *,
    tracker: DependencyTracker | None = None,
    cache: GraphCache | None = None,
) -> tuple[ZettelGraph, dict[ZettelID, ZettelError]]:
    """Like `load_zettelkasten` but without the contents."""
    graph, _, errors = load_zettelkasten(config, notes_dir, tracker=tracker, cache=cache)
    return graph, errors
