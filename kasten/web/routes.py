"""Logical output routes emitted by the site driver."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, Union

from ..models import ZettelID
from ..zettelkasten.graph import ZettelGraph


@dataclass(frozen=True)
class ZettelRoute:
    zid: ZettelID


@dataclass(frozen=True)
class ZIndexRoute:
    pass


@dataclass(frozen=True)
class SearchRoute:
    query: str | None = None


@dataclass(frozen=True)
class RedirectRoute:
    zid: ZettelID


Route = Union[ZettelRoute, ZIndexRoute, SearchRoute, RedirectRoute]


def route_file(route: Route) -> str:
    """Output path of a route, relative to the output directory."""
    if isinstance(route, (ZettelRoute, RedirectRoute)):
        return f"{route.zid.slug}.html"
    if isinstance(route, ZIndexRoute):
        return "z-index.html"
    if isinstance(route, SearchRoute):
        return "search.html"
    raise TypeError(f"Not a route: {route!r}")


class RouteWriter(Protocol):
    """Renders and writes one output. The payload type depends on the route."""

    def write_route(self, route: Route, graph: ZettelGraph, payload: Any) -> None: ...
