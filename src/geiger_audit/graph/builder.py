"""Dependency graph construction from the resolved package graph."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Optional

from ..exceptions import GraphError, InvalidConfigError
from ..logging_config import get_logger
from ..metadata.models import DepKindInfo, PackageId, PackageSet, Resolve
from ..metadata.platform import Cfg, Platform
from .models import ExtraDeps, Graph

logger = get_logger(__name__)


def _platform_allows(
    info: DepKindInfo, target: Optional[str], cfgs: Optional[list[Cfg]]
) -> bool:
    # No target filter (all targets) or no platform constraint: always included
    if target is None or info.target is None:
        return True
    try:
        return Platform.parse(info.target).matches(target, cfgs)
    except InvalidConfigError:
        logger.warning("Unparseable platform '%s', dependency kept", info.target)
        return True


def build_graph(
    resolve: Resolve,
    packages: PackageSet,
    root: PackageId,
    target: Optional[str] = None,
    cfgs: Optional[Iterable[Cfg]] = None,
    extra_deps: ExtraDeps = ExtraDeps.NO_MORE,
) -> Graph:
    """Expand the resolved graph depth-first from ``root``.

    Uses an explicit pending stack, so arbitrarily deep graphs never hit the
    recursion limit. Each package id gets exactly one node, created the first
    time it is discovered; later discoveries only add edges. Cycles are kept.

    Args:
        resolve: Resolved dependency edges
        packages: Package arena; every id reachable from root must be in it
        root: Package the graph is rooted at
        target: Target triple used to filter platform-specific edges
            (None = keep every edge)
        cfgs: Active cfg set of ``target``
        extra_deps: Which build/dev edges to keep (normal edges always are)

    Raises:
        GraphError: A reachable package id is missing from ``packages``
    """
    cfg_list = list(cfgs) if cfgs is not None else None
    graph = Graph()
    _require(packages, root)
    graph.add_node(root)
    pending = [root]

    while pending:
        package_id = pending.pop()
        idx = graph.index[package_id]
        for dep in resolve.deps_of(package_id):
            kept = [
                info
                for info in dep.kinds
                if extra_deps.allows(info.kind) and _platform_allows(info, target, cfg_list)
            ]
            if not kept:
                continue
            _require(packages, dep.package)
            dep_idx, created = graph.add_node(dep.package)
            if created:
                pending.append(dep.package)
            for info in kept:
                graph.add_edge(idx, dep_idx, info.kind)

    logger.debug("Built graph with %d nodes and %d edges", len(graph), graph.edge_count)
    return graph


def _require(packages: PackageSet, package_id: PackageId) -> None:
    if package_id not in packages:
        raise GraphError(package_id.key, "package is not part of the resolved package set")
