"""The set of source files observed in a real build, with scan counters."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from pathlib import Path


class BuildUsedSet:
    """Canonical path -> number of times the scanner touched it.

    Built once by the build introspector with every counter at 0. Scanning
    only ever increments counters; a counter still at 0 after a full scan
    means the build used a file the scanner never reached.
    """

    def __init__(self, paths: Iterable[Path] = ()) -> None:
        self._counts: dict[Path, int] = {Path(p): 0 for p in paths}

    def __contains__(self, path: object) -> bool:
        return path in self._counts

    def __iter__(self) -> Iterator[Path]:
        return iter(self._counts)

    def __len__(self) -> int:
        return len(self._counts)

    def __repr__(self) -> str:
        return f"BuildUsedSet({len(self._counts)} files)"

    def count(self, path: Path) -> int:
        return self._counts[path]

    def snapshot(self) -> frozenset[Path]:
        """Membership as it is right now, immune to later counter updates."""
        return frozenset(self._counts)

    def mark_scanned(self, path: Path) -> None:
        """Increment the usage counter of a path that is part of the set."""
        self._counts[path] += 1

    def not_scanned(self) -> set[Path]:
        """Paths whose counter is still 0."""
        return {path for path, count in self._counts.items() if count == 0}
