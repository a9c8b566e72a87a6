"""Walk the dependency graph into a flat list of printable tree lines.

The walk only decides structure (which package appears where, at which
depth, under which vines). Counters and colors are added by the formatters.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from ..config import AuditConfig
from ..graph.models import Direction, Graph
from ..metadata.models import DepKind, PackageId
from .pattern import Pattern
from .symbols import Charset, Symbols, get_tree_symbols

GROUP_HEADERS = {
    DepKind.BUILD: "[build-dependencies]",
    DepKind.DEV: "[dev-dependencies]",
}

_KIND_ORDER = (DepKind.NORMAL, DepKind.BUILD, DepKind.DEV)


class Prefix(Enum):
    NONE = "none"
    INDENT = "indent"
    DEPTH = "depth"


@dataclass(frozen=True)
class PrintConfig:
    """Rendering options, with the glyph table selected once up front."""

    all: bool = False
    direction: Direction = Direction.OUTGOING
    prefix: Prefix = Prefix.INDENT
    symbols: Symbols = get_tree_symbols(Charset.UTF8)
    pattern: Pattern = Pattern.try_build("{p}")
    compact: bool = False

    @classmethod
    def from_config(cls, config: AuditConfig) -> PrintConfig:
        return cls(
            all=config.show_all,
            direction=Direction.INCOMING if config.invert else Direction.OUTGOING,
            prefix=Prefix(config.prefix),
            symbols=get_tree_symbols(Charset(config.charset)),
            pattern=Pattern.try_build(config.format_pattern),
            compact=config.compact,
        )


@dataclass(frozen=True)
class PackageLine:
    id: PackageId
    depth: int
    tree_vines: str


@dataclass(frozen=True)
class ExtraDepsGroupLine:
    kind: DepKind
    depth: int
    tree_vines: str

    @property
    def header(self) -> str:
        return GROUP_HEADERS[self.kind]


TextTreeLine = Union[PackageLine, ExtraDepsGroupLine]


def construct_tree_vines_string(levels_continue: list[bool], print_config: PrintConfig) -> str:
    """Prefix for a package line at ``len(levels_continue)`` levels deep.

    ``levels_continue[i]`` tells whether more siblings follow at level i.
    """
    if print_config.prefix is Prefix.DEPTH:
        return f"{len(levels_continue)} "
    if print_config.prefix is Prefix.NONE or not levels_continue:
        return ""
    symbols = print_config.symbols
    *rest, last_continues = levels_continue
    vines = "".join(f"{symbols.down if c else ' '}   " for c in rest)
    corner = symbols.tee if last_continues else symbols.ell
    return f"{vines}{corner}{symbols.right}{symbols.right} "


def _group_vines(levels_continue: list[bool], symbols: Symbols) -> str:
    return "".join(f"{symbols.down if c else ' '}   " for c in levels_continue)


def walk_dependency_tree(
    root: PackageId, graph: Graph, print_config: PrintConfig
) -> list[TextTreeLine]:
    """Depth-first walk from ``root``, one line per visited package.

    Without ``all`` a package already printed is shown again as a leaf. With
    ``all`` it is expanded again, except through its own ancestors, so cycles
    terminate either way. The walk keeps its own stack, so the depth of the
    graph is not bounded by the interpreter's recursion limit.
    """
    lines: list[TextTreeLine] = []
    visited: set[PackageId] = set()
    ancestors: list[PackageId] = []
    levels_continue: list[bool] = []

    root_steps = _enter(root, graph, print_config, visited, ancestors, levels_continue, lines)
    # One iterator of remaining steps per expanded package on the current path
    stack = [root_steps] if root_steps is not None else []
    while stack:
        step = next(stack[-1], None)
        if step is None:
            stack.pop()
            ancestors.pop()
            if stack:
                levels_continue.pop()
            continue
        if isinstance(step, ExtraDepsGroupLine):
            lines.append(step)
            continue
        dep, continues = step
        levels_continue.append(continues)
        child_steps = _enter(dep, graph, print_config, visited, ancestors, levels_continue, lines)
        if child_steps is None:
            levels_continue.pop()
        else:
            stack.append(child_steps)
    return lines


_Step = Union[ExtraDepsGroupLine, tuple[PackageId, bool]]


def _enter(
    package_id: PackageId,
    graph: Graph,
    print_config: PrintConfig,
    visited: set[PackageId],
    ancestors: list[PackageId],
    levels_continue: list[bool],
    lines: list[TextTreeLine],
) -> Optional[Iterator[_Step]]:
    """Emit the line for ``package_id``; return its children's steps if it expands."""
    first_visit = package_id not in visited
    visited.add(package_id)
    expand = (print_config.all and package_id not in ancestors) or first_visit
    lines.append(
        PackageLine(
            package_id,
            len(levels_continue),
            construct_tree_vines_string(levels_continue, print_config),
        )
    )
    if not expand:
        return None

    groups: dict[DepKind, list[PackageId]] = {kind: [] for kind in _KIND_ORDER}
    for neighbor, kind in graph.neighbors(package_id, print_config.direction):
        groups[kind].append(neighbor)

    steps: list[_Step] = []
    for kind in _KIND_ORDER:
        deps = sorted(groups[kind])
        if not deps:
            continue
        if kind in GROUP_HEADERS and print_config.prefix is Prefix.INDENT:
            steps.append(
                ExtraDepsGroupLine(
                    kind,
                    len(levels_continue),
                    _group_vines(levels_continue, print_config.symbols),
                )
            )
        steps.extend((dep, position < len(deps) - 1) for position, dep in enumerate(deps))
    ancestors.append(package_id)
    return iter(steps)
