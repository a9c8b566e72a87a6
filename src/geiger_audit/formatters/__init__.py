"""Output formatters for geiger-audit."""

from .base import BaseFormatter, OutputFormat
from .json_formatter import JsonFormatter
from .pattern import Pattern
from .symbols import ASCII_SYMBOLS, UTF8_SYMBOLS, Charset, Symbols, get_tree_symbols
from .table_formatter import TableFormatter
from .tree import (
    ExtraDepsGroupLine,
    PackageLine,
    Prefix,
    PrintConfig,
    construct_tree_vines_string,
    walk_dependency_tree,
)


def get_formatter(name: str) -> BaseFormatter:
    """Get a formatter instance by name.

    Args:
        name: One of "table", "json"

    Raises:
        ValueError: If name is not recognized
    """
    formatters = {
        "table": TableFormatter,
        "json": JsonFormatter,
    }
    cls = formatters.get(name)
    if cls is None:
        raise ValueError(f"Unknown formatter: {name!r}. Choose from: {', '.join(sorted(formatters))}")
    return cls()


__all__ = [
    "ASCII_SYMBOLS",
    "BaseFormatter",
    "Charset",
    "ExtraDepsGroupLine",
    "JsonFormatter",
    "OutputFormat",
    "PackageLine",
    "Pattern",
    "Prefix",
    "PrintConfig",
    "Symbols",
    "TableFormatter",
    "UTF8_SYMBOLS",
    "construct_tree_vines_string",
    "get_formatter",
    "get_tree_symbols",
    "walk_dependency_tree",
]
