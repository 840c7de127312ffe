"""Assemble the zettel graph from deduplicated note texts."""

from __future__ import annotations

import datetime
import logging
from typing import Any, Sequence

from ..errors import ZettelParseError
from ..models import (
    ParsedContent,
    ParseError,
    QueryResultErrors,
    ResolvedQuery,
    Zettel,
    ZettelContent,
    ZettelError,
    ZettelFormat,
    ZettelID,
    ZettelsQuery,
    ZettelQuery,
)
from .graph import ZettelGraph
from .query import GraphContext, QueryExtractor
from .reader import ZettelReader

logger = logging.getLogger(__name__)

# ((format, reader), [(id, relative path, text)])
ZettelBatch = tuple[tuple[ZettelFormat, ZettelReader], Sequence[tuple[ZettelID, str, str]]]

TITLE_HEADINGS = {
    ZettelFormat.MARKDOWN: "# ",
    ZettelFormat.ORG: "* ",
}


def build_zettelkasten(
    batches: Sequence[ZettelBatch],
    extractor: QueryExtractor,
) -> tuple[ZettelGraph, list[ZettelContent], dict[ZettelID, ZettelError]]:
    """Parse every batch, run queries, and build the graph.

    Returns:
        (graph, contents in ID order, errors keyed by zettel ID)
    """
    errors: dict[ZettelID, ZettelError] = {}
    parsed: dict[ZettelID, tuple[Zettel, ParsedContent]] = {}

    for (fmt, reader), notes in batches:
        for zid, path, text in notes:
            try:
                content = reader.parse(text)
            except ZettelParseError as e:
                logger.debug(f"Parse error in {path}: {e}")
                errors[zid] = ParseError(str(e))
                continue
            parsed[zid] = (make_zettel(zid, fmt, path, content), content)

    context = GraphContext({zid: zettel for zid, (zettel, _) in parsed.items()})

    contents: list[ZettelContent] = []
    connections = []
    for zid in sorted(parsed):
        zettel, content = parsed[zid]
        content, outcomes = extractor.extract(content, context)

        resolved = [o for o in outcomes if isinstance(o, ResolvedQuery)]
        failed = tuple(o for o in outcomes if not isinstance(o, ResolvedQuery))

        zettel.queries = tuple(r.query for r in resolved)
        for r in resolved:
            if isinstance(r.query, (ZettelQuery, ZettelsQuery)):
                connections.extend((zid, target, r.query.connection) for target in r.results)
        if failed:
            errors[zid] = QueryResultErrors(failed)

        contents.append(ZettelContent(zettel=zettel, content=content, queries=resolved))

    graph = ZettelGraph.from_zettels((z for z, _ in parsed.values()), connections)
    return graph, contents, errors


def make_zettel(zid: ZettelID, fmt: ZettelFormat, path: str, content: ParsedContent) -> Zettel:
    """Derive zettel metadata from parsed content."""
    meta = content.metadata

    title_in_body = False
    title = meta.get("title")
    if not isinstance(title, str) or not title.strip():
        title = _title_from_body(content.body, TITLE_HEADINGS[fmt])
        title_in_body = title is not None
    if title is None:
        title = zid.slug

    return Zettel(
        id=zid,
        format=fmt,
        path=path,
        title=title.strip(),
        title_in_body=title_in_body,
        date=_date_string(meta.get("date")),
        tags=tuple(_extract_tags(meta)),
        unlisted=bool(meta.get("unlisted", False)),
    )


def _title_from_body(body: str, heading: str) -> str | None:
    for line in body.split("\n"):
        if line.startswith(heading):
            return line[len(heading):].strip() or None
    return None


def _extract_tags(meta: dict[str, Any]) -> list[str]:
    tag_data = meta.get("tags")
    if isinstance(tag_data, list):
        return [str(tag) for tag in tag_data]
    if isinstance(tag_data, str):
        return [tag_data]
    return []


def _date_string(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    return str(value)
