"""Tree-shaped unsafe usage table for the terminal."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.text import Text

from ..report.models import AuditResult
from ..scanning.counters import Count, CounterBlock, PackageCounters
from .base import BaseFormatter
from .tree import ExtraDepsGroupLine, PackageLine, PrintConfig, walk_dependency_tree

console = Console(highlight=False)

UNSAFE_COUNTERS_HEADER = (
    "Functions ",
    "Expressions ",
    "Impls ",
    "Traits ",
    "Methods ",
    "Dependency",
)

COMPACT_HEADER = "Compact unsafe info: (functions, expressions, impls, traits, methods)"

RADIOACTIVE = "☢"


def table_row_empty() -> str:
    """Blank space as wide as the counter columns of a table row."""
    width = sum(len(h) for h in UNSAFE_COUNTERS_HEADER[:5]) + len(UNSAFE_COUNTERS_HEADER) + 1
    return " " * width


def table_row(counters: PackageCounters) -> str:
    def cell(used: Count, not_used: Count) -> str:
        return f"{used.unsafe}/{used.unsafe + not_used.unsafe}"

    used, not_used = counters.used, counters.not_used
    return "{:<10} {:<12} {:<6} {:<7} {:<7}".format(
        cell(used.functions, not_used.functions),
        cell(used.exprs, not_used.exprs),
        cell(used.item_impls, not_used.item_impls),
        cell(used.item_traits, not_used.item_traits),
        cell(used.methods, not_used.methods),
    )


def compact_row(block: CounterBlock) -> str:
    return "({}, {}, {}, {}, {})".format(
        block.functions.unsafe,
        block.exprs.unsafe,
        block.item_impls.unsafe,
        block.item_traits.unsafe,
        block.methods.unsafe,
    )


def _relevant_block(counters: PackageCounters, raw: bool) -> CounterBlock:
    # Without build information nothing is known to be used; show everything
    if raw:
        return counters.used + counters.not_used
    return counters.used


class TableFormatter(BaseFormatter):
    """One row per tree line: counters, a ☢ marker, tree vines and the package name."""

    def render(self, result: AuditResult, print_config: PrintConfig) -> None:
        for line in self.lines(result, print_config):
            console.print(line, soft_wrap=True)

    def format(self, result: AuditResult, print_config: PrintConfig) -> str:
        return "\n".join(line.plain for line in self.lines(result, print_config))

    def lines(self, result: AuditResult, print_config: PrintConfig) -> list[Text]:
        out = [Text()]
        if print_config.compact:
            out.append(Text(COMPACT_HEADER, style="bold"))
        else:
            out.append(Text(" ".join(UNSAFE_COUNTERS_HEADER), style="bold"))
        out.append(Text())

        for tree_line in walk_dependency_tree(result.root, result.graph, print_config):
            if isinstance(tree_line, ExtraDepsGroupLine):
                padding = "" if print_config.compact else table_row_empty()
                out.append(Text(f"{padding}{tree_line.tree_vines}{tree_line.header}"))
            else:
                out.append(self._package_line(tree_line, result, print_config))

        if result.report is not None and result.report.used_but_not_scanned:
            out.append(Text())
            out.append(
                Text(
                    f"{len(result.report.used_but_not_scanned)} file(s) used by the build "
                    "were never scanned, see warnings above",
                    style="yellow",
                )
            )
        return out

    def _package_line(
        self, line: PackageLine, result: AuditResult, print_config: PrintConfig
    ) -> Text:
        name = print_config.pattern.display(result.packages.get_one(line.id))
        counters: Optional[PackageCounters] = result.counters_for(line.id)
        if counters is None:
            if print_config.compact:
                return Text(f"{line.tree_vines}{name}", style="dim")
            return Text(f"{table_row_empty()}{line.tree_vines}{name}", style="dim")

        block = _relevant_block(counters, result.raw)
        unsafe_found = block.has_unsafe()
        style = "bold red" if unsafe_found else "green"
        rad = RADIOACTIVE if unsafe_found else ""

        text = Text()
        if print_config.compact:
            text.append(line.tree_vines)
            text.append(name, style=style)
            text.append(" ")
            text.append(compact_row(block), style=style)
            text.append(f" {rad}")
        else:
            text.append(table_row(counters), style=style)
            text.append(f"  {rad:<1} {line.tree_vines}")
            text.append(name, style=style)
        return text
