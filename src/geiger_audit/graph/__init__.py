"""Dependency graph: owned, index-based, built once and read-only afterwards."""

from .builder import build_graph
from .models import Direction, Edge, ExtraDeps, Graph

__all__ = ["build_graph", "Direction", "Edge", "ExtraDeps", "Graph"]
