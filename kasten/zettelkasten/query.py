"""Link and query extraction from zettel bodies.

Recognised forms:

    [[ID]]                        link, ordinary connection
    [[[ID]]]                      link, folgezettel connection
    [[z:zettel/ID]]               same as [[ID]]
    [[z:zettels?tag=PATTERN]]     every zettel with a matching tag
    [[z:tags?filter=PATTERN]]     tag listing (no edges)

A trailing ``&cf`` on a ``z:`` query forces an ordinary connection even in
triple brackets. ``|display`` text after a target is ignored.
"""

from __future__ import annotations

import fnmatch
import re
from typing import Iterator, Mapping, Protocol, Union
from urllib.parse import parse_qs, urlsplit

from ..errors import InvalidZettelID
from ..models import (
    BadQuery,
    Connection,
    NoSuchZettel,
    ParsedContent,
    Query,
    QueryResultError,
    ResolvedQuery,
    TagsQuery,
    Zettel,
    ZettelID,
    ZettelQuery,
    ZettelsQuery,
)
from .ids import parse_zettel_id

# Triple brackets are tried first so [[[a]]] is not read as [[a]] plus noise
LINK_PATTERN = re.compile(r"\[\[\[(?P<fz>[^\[\]\n]+)\]\]\]|\[\[(?P<cf>[^\[\]\n]+)\]\]")

CODE_BLOCK_PATTERN = re.compile(
    r"^```.*?^```[^\n]*$|^#\+BEGIN_SRC.*?^#\+END_SRC[^\n]*$",
    re.MULTILINE | re.DOTALL | re.IGNORECASE,
)

# `code` and ``code`` spans on a single line
INLINE_CODE_PATTERN = re.compile(r"(`+)[^\n]*?\1")

QueryOutcome = Union[ResolvedQuery, QueryResultError]


class GraphContext:
    """Read-only view of every parsed zettel, used to resolve queries."""

    def __init__(self, zettels: Mapping[ZettelID, Zettel]):
        self._zettels = dict(zettels)

    def __contains__(self, zid: object) -> bool:
        return zid in self._zettels

    def get(self, zid: ZettelID) -> Zettel | None:
        return self._zettels.get(zid)

    def zettels(self) -> list[Zettel]:
        return [self._zettels[zid] for zid in sorted(self._zettels)]


class QueryExtractor(Protocol):
    """Finds the queries in a zettel's content and runs them against the context."""

    def extract(
        self, content: ParsedContent, context: GraphContext
    ) -> tuple[ParsedContent, list[QueryOutcome]]: ...


def iter_link_targets(body: str) -> Iterator[tuple[str, str, Connection]]:
    """Yield (raw match, target, connection) for every link outside code blocks and spans."""
    text = INLINE_CODE_PATTERN.sub("", CODE_BLOCK_PATTERN.sub("", body))
    for match in LINK_PATTERN.finditer(text):
        if match.group("fz") is not None:
            target, connection = match.group("fz"), Connection.FOLGEZETTEL
        else:
            target, connection = match.group("cf"), Connection.CF
        target = target.split("|", 1)[0].strip()
        yield match.group(0), target, connection


def parse_query(target: str, connection: Connection) -> Query:
    """Parse a link target into a query.

    Raises:
        ValueError: for an unsupported or malformed ``z:`` URI
        InvalidZettelID: for a plain target that is not a valid ID
    """
    if not target.startswith("z:"):
        return ZettelQuery(parse_zettel_id(target), connection)

    parts = urlsplit(target)
    params = parse_qs(parts.query, keep_blank_values=True)
    if "cf" in params:
        connection = Connection.CF

    kind, _, rest = parts.path.partition("/")
    if kind == "zettel":
        if not rest:
            raise ValueError("z:zettel requires an ID, as in z:zettel/ID")
        return ZettelQuery(parse_zettel_id(rest), connection)
    if kind == "zettels":
        return ZettelsQuery(_single_param(params, "tag"), connection)
    if kind == "tags":
        return TagsQuery(_single_param(params, "filter"))
    raise ValueError(f"Unsupported query '{kind}'")


def _single_param(params: dict[str, list[str]], name: str) -> str | None:
    values = params.get(name)
    if not values:
        return None
    if len(values) > 1:
        raise ValueError(f"Parameter '{name}' given more than once")
    return values[0] or None


def tag_matches(pattern: str | None, tag: str) -> bool:
    return pattern is None or fnmatch.fnmatchcase(tag, pattern)


def run_query(raw: str, query: Query, context: GraphContext) -> QueryOutcome:
    if isinstance(query, ZettelQuery):
        if query.zid not in context:
            return NoSuchZettel(raw=raw, zid=query.zid)
        return ResolvedQuery(query, (query.zid,))
    if isinstance(query, ZettelsQuery):
        results = tuple(
            z.id
            for z in context.zettels()
            if query.tag_pattern is None or any(tag_matches(query.tag_pattern, t) for t in z.tags)
        )
        return ResolvedQuery(query, results)
    return ResolvedQuery(query)


class LinkQueryExtractor:
    """Default extractor for the bracket link syntax."""

    def extract(
        self, content: ParsedContent, context: GraphContext
    ) -> tuple[ParsedContent, list[QueryOutcome]]:
        outcomes: list[QueryOutcome] = []
        for raw, target, connection in iter_link_targets(content.body):
            try:
                query = parse_query(target, connection)
            except InvalidZettelID:
                outcomes.append(BadQuery(raw=raw, reason=f"invalid zettel ID '{target}'"))
                continue
            except ValueError as e:
                outcomes.append(BadQuery(raw=raw, reason=str(e)))
                continue
            outcomes.append(run_query(raw, query, context))
        return content, outcomes
