"""Build-dependency tracking for loaded note files."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol


class DependencyTracker(Protocol):
    """Told about every file the build reads, so a caller can invalidate."""

    def need(self, path: Path) -> None: ...


class RecordingTracker:
    """Records needed files and their modification times, in request order."""

    def __init__(self) -> None:
        self._mtimes: dict[Path, float] = {}

    def need(self, path: Path) -> None:
        path = Path(path)
        self._mtimes[path] = path.stat().st_mtime

    @property
    def paths(self) -> list[Path]:
        return list(self._mtimes)

    def stale(self) -> list[Path]:
        """Files that changed or disappeared since they were needed."""
        changed = []
        for path, mtime in self._mtimes.items():
            if not path.exists() or path.stat().st_mtime != mtime:
                changed.append(path)
        return changed
