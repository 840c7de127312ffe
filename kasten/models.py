"""Data models for zettels, queries and per-note errors."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from .errors import ConfigError


@dataclass(frozen=True, order=True)
class ZettelID:
    """Canonical key of a zettel, derived from its file name."""

    slug: str

    def __str__(self) -> str:
        return self.slug


class ZettelFormat(str, Enum):
    """Supported note formats."""

    MARKDOWN = "markdown"
    ORG = "org"

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]

    @classmethod
    def parse(cls, name: str) -> "ZettelFormat":
        try:
            return cls(name.strip().lower())
        except ValueError:
            known = ", ".join(f.value for f in cls)
            raise ConfigError(f"Unknown zettel format '{name}' (expected one of: {known})") from None


_EXTENSIONS = {
    ZettelFormat.MARKDOWN: ".md",
    ZettelFormat.ORG: ".org",
}


class Connection(str, Enum):
    """Kind of edge between two zettels."""

    FOLGEZETTEL = "folgezettel"  # [[[id]]], a branch in the note tree
    CF = "cf"  # [[id]], an ordinary reference

    def combine(self, other: "Connection") -> "Connection":
        if Connection.FOLGEZETTEL in (self, other):
            return Connection.FOLGEZETTEL
        return Connection.CF


@dataclass(frozen=True)
class RawNote:
    """A discovered note file and its decoded text."""

    format: ZettelFormat
    path: str  # relative to the notes directory, POSIX separators
    text: str


# Resolution entries: the state of one identifier while files are folded in.


@dataclass(frozen=True)
class Unique:
    """The only file claiming an identifier so far."""

    format: ZettelFormat
    path: str
    text: str


@dataclass(frozen=True)
class Ambiguous:
    """Two or more files claim the same identifier (discovery order)."""

    paths: tuple[str, ...]


ResolutionEntry = Union[Unique, Ambiguous]


# Queries


@dataclass(frozen=True)
class ZettelQuery:
    """A link to a single zettel."""

    zid: ZettelID
    connection: Connection = Connection.CF

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "zettel", "id": self.zid.slug, "connection": self.connection.value}


@dataclass(frozen=True)
class ZettelsQuery:
    """Every zettel whose tags match a glob pattern (all zettels if no pattern)."""

    tag_pattern: str | None = None
    connection: Connection = Connection.CF

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "zettels", "tag": self.tag_pattern, "connection": self.connection.value}


@dataclass(frozen=True)
class TagsQuery:
    """A listing of tags; contributes no edges."""

    pattern: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "tags", "pattern": self.pattern}


Query = Union[ZettelQuery, ZettelsQuery, TagsQuery]


def query_from_dict(data: dict[str, Any]) -> Query:
    kind = data.get("kind")
    if kind == "zettel":
        return ZettelQuery(ZettelID(data["id"]), Connection(data["connection"]))
    if kind == "zettels":
        return ZettelsQuery(data.get("tag"), Connection(data["connection"]))
    if kind == "tags":
        return TagsQuery(data.get("pattern"))
    raise ValueError(f"Unknown query kind: {kind!r}")


@dataclass(frozen=True)
class NoSuchZettel:
    """A link query points at an identifier with no zettel."""

    raw: str
    zid: ZettelID

    def message(self) -> str:
        return f"{self.raw}: zettel {self.zid} not found"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "no-such-zettel", "raw": self.raw, "id": self.zid.slug}


@dataclass(frozen=True)
class BadQuery:
    """A query that could not be parsed."""

    raw: str
    reason: str

    def message(self) -> str:
        return f"{self.raw}: {self.reason}"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "bad-query", "raw": self.raw, "reason": self.reason}


QueryResultError = Union[NoSuchZettel, BadQuery]


def query_error_from_dict(data: dict[str, Any]) -> QueryResultError:
    if data.get("kind") == "no-such-zettel":
        return NoSuchZettel(data["raw"], ZettelID(data["id"]))
    return BadQuery(data["raw"], data["reason"])


@dataclass(frozen=True)
class ResolvedQuery:
    """A query together with the zettels it matched."""

    query: Query
    results: tuple[ZettelID, ...] = ()


# Notes


@dataclass
class ParsedContent:
    """What a reader makes of a note's text."""

    metadata: dict[str, Any]
    body: str


@dataclass
class Zettel:
    """A parsed note: the payload stored on each graph node."""

    id: ZettelID
    format: ZettelFormat
    path: str
    title: str
    title_in_body: bool = False
    date: str | None = None
    tags: tuple[str, ...] = ()
    unlisted: bool = False
    queries: tuple[Query, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id.slug,
            "format": self.format.value,
            "path": self.path,
            "title": self.title,
            "title_in_body": self.title_in_body,
            "date": self.date,
            "tags": list(self.tags),
            "unlisted": self.unlisted,
            "queries": [q.to_dict() for q in self.queries],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Zettel":
        return cls(
            id=ZettelID(data["id"]),
            format=ZettelFormat(data["format"]),
            path=data["path"],
            title=data["title"],
            title_in_body=bool(data.get("title_in_body", False)),
            date=data.get("date"),
            tags=tuple(data.get("tags", [])),
            unlisted=bool(data.get("unlisted", False)),
            queries=tuple(query_from_dict(q) for q in data.get("queries", [])),
        )


@dataclass
class ZettelContent:
    """A zettel with its parsed content, handed to the per-note route."""

    zettel: Zettel
    content: ParsedContent
    queries: list[ResolvedQuery] = field(default_factory=list)


@dataclass(frozen=True)
class Alias:
    """A redirect from an unused identifier to another output."""

    alias_id: ZettelID
    target_id: ZettelID


# Per-identifier errors. Exactly one of these per erroring identifier.


@dataclass(frozen=True)
class ParseError:
    message: str

    def messages(self) -> list[str]:
        return [self.message]

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "parse", "message": self.message}


@dataclass(frozen=True)
class QueryResultErrors:
    errors: tuple[QueryResultError, ...]

    def messages(self) -> list[str]:
        return [e.message() for e in self.errors]

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "query", "errors": [e.to_dict() for e in self.errors]}


@dataclass(frozen=True)
class AmbiguousFiles:
    paths: tuple[str, ...]

    def messages(self) -> list[str]:
        return ["Multiple zettels have the same ID: " + ", ".join(self.paths)]

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "ambiguous", "paths": list(self.paths)}


ZettelError = Union[ParseError, QueryResultErrors, AmbiguousFiles]


def zettel_error_from_dict(data: dict[str, Any]) -> ZettelError:
    kind = data.get("kind")
    if kind == "parse":
        return ParseError(data["message"])
    if kind == "query":
        return QueryResultErrors(tuple(query_error_from_dict(e) for e in data["errors"]))
    if kind == "ambiguous":
        return AmbiguousFiles(tuple(data["paths"]))
    raise ValueError(f"Unknown error kind: {kind!r}")
