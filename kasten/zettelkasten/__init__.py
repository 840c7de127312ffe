"""Zettel loading, parsing and graph construction."""

from .build import build_zettelkasten
from .graph import ZettelGraph
from .ids import parse_zettel_id, resolve_zettel_id
from .query import GraphContext, LinkQueryExtractor, QueryExtractor
from .reader import reader_for_format

__all__ = [
    "build_zettelkasten",
    "ZettelGraph",
    "parse_zettel_id",
    "resolve_zettel_id",
    "GraphContext",
    "LinkQueryExtractor",
    "QueryExtractor",
    "reader_for_format",
]
