"""Owned, index-based dependency graph.

Nodes are package ids; package data stays in the PackageSet and is looked up
on demand. The graph may contain cycles (e.g. through dev-dependencies);
walkers cut them with a visited set, the storage never does.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from ..metadata.models import DepKind, PackageId


class Direction(Enum):
    """Which edges a walk follows."""

    OUTGOING = "outgoing"  # dependencies
    INCOMING = "incoming"  # dependents (inverted tree)


class ExtraDeps(Enum):
    """Which non-normal dependency kinds are included in the graph."""

    NO_MORE = "none"
    BUILD = "build"
    DEV = "dev"
    ALL = "all"

    def allows(self, kind: DepKind) -> bool:
        # Normal dependencies are always part of the graph
        if kind is DepKind.NORMAL or self is ExtraDeps.ALL:
            return True
        if self is ExtraDeps.BUILD:
            return kind is DepKind.BUILD
        if self is ExtraDeps.DEV:
            return kind is DepKind.DEV
        return False


@dataclass(frozen=True)
class Edge:
    source: int
    target: int
    kind: DepKind


@dataclass
class Graph:
    """Directed dependency graph: adjacency[i] holds indices into ``edges``."""

    nodes: list[PackageId] = field(default_factory=list)
    index: dict[PackageId, int] = field(default_factory=dict)
    edges: list[Edge] = field(default_factory=list)
    adjacency: dict[int, list[int]] = field(default_factory=dict)
    reverse: dict[int, list[int]] = field(default_factory=dict)
    _edge_set: set[Edge] = field(default_factory=set, repr=False)

    def add_node(self, package_id: PackageId) -> tuple[int, bool]:
        """Return the node index for ``package_id`` and whether it was created."""
        existing = self.index.get(package_id)
        if existing is not None:
            return existing, False
        idx = len(self.nodes)
        self.nodes.append(package_id)
        self.index[package_id] = idx
        self.adjacency[idx] = []
        self.reverse[idx] = []
        return idx, True

    def add_edge(self, source: int, target: int, kind: DepKind) -> bool:
        """Add an edge unless the same (source, target, kind) edge exists."""
        edge = Edge(source, target, kind)
        if edge in self._edge_set:
            return False
        self._edge_set.add(edge)
        self.edges.append(edge)
        edge_idx = len(self.edges) - 1
        self.adjacency[source].append(edge_idx)
        self.reverse[target].append(edge_idx)
        return True

    def __contains__(self, package_id: object) -> bool:
        return package_id in self.index

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)

    def package_ids(self) -> list[PackageId]:
        """All package ids in node-creation order."""
        return list(self.nodes)

    def neighbors(
        self, package_id: PackageId, direction: Direction = Direction.OUTGOING
    ) -> Iterator[tuple[PackageId, DepKind]]:
        """Yield (neighbor, kind) for every edge in ``direction``."""
        idx = self.index[package_id]
        if direction is Direction.OUTGOING:
            for edge_idx in self.adjacency[idx]:
                edge = self.edges[edge_idx]
                yield self.nodes[edge.target], edge.kind
        else:
            for edge_idx in self.reverse[idx]:
                edge = self.edges[edge_idx]
                yield self.nodes[edge.source], edge.kind
