"""Tree-sitter parser wrapper for Rust sources.

Usage:
    parser = RustParser()
    tree = parser.parse(code_bytes)
    if tree.root_node.has_error:
        ...
"""

from __future__ import annotations

from typing import Any, Optional

import tree_sitter
import tree_sitter_rust

_language: Optional[Any] = None


def rust_language() -> Any:
    """Return the shared tree-sitter Language for Rust, created on first use."""
    global _language
    if _language is None:
        # tree-sitter >= 0.23 grammars return a PyCapsule; wrap in Language()
        _language = tree_sitter.Language(tree_sitter_rust.language())
    return _language


class RustParser:
    """Thin wrapper around a tree-sitter Parser bound to the Rust grammar.

    Parser instances are not thread-safe; create one per thread.
    """

    def __init__(self) -> None:
        self._parser = tree_sitter.Parser(rust_language())

    def parse(self, code: bytes) -> tree_sitter.Tree:
        """Parse Rust source and return its syntax tree.

        Tree-sitter never rejects input outright; malformed regions show up as
        ERROR/MISSING nodes and ``root_node.has_error`` is set.
        """
        return self._parser.parse(code)


def first_error_position(node: tree_sitter.Node) -> Optional[tuple[int, int]]:
    """Return the 1-based (line, column) of the first ERROR or MISSING node."""
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "ERROR" or current.is_missing:
            row, col = current.start_point
            return row + 1, col + 1
        if current.has_error:
            stack.extend(reversed(current.children))
    return None
