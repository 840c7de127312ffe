"""Pytest configuration and fixtures."""

from pathlib import Path
from typing import Any

import pytest

from kasten.web.cache import MemoryCache
from kasten.web.routes import Route
from kasten.zettelkasten.graph import ZettelGraph


class RecordingWriter:
    """Route writer that keeps every (route, payload) pair in order."""

    def __init__(self) -> None:
        self.routes: list[tuple[Route, Any]] = []

    def write_route(self, route: Route, graph: ZettelGraph, payload: Any) -> None:
        self.routes.append((route, payload))

    def payload_for(self, route: Route) -> Any:
        for r, payload in self.routes:
            if r == route:
                return payload
        raise KeyError(route)


@pytest.fixture
def notes_dir(tmp_path: Path) -> Path:
    """Empty notes directory."""
    path = tmp_path / "notes"
    path.mkdir()
    return path


@pytest.fixture
def writer() -> RecordingWriter:
    return RecordingWriter()


@pytest.fixture
def cache() -> MemoryCache:
    return MemoryCache()
