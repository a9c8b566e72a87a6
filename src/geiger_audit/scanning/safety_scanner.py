"""Classify Rust syntax nodes as safe or unsafe and count them.

Every node of a tree-sitter-rust tree is mapped onto a small tagged union
(``NodeKind``) and handled by one dispatch function. Traversal is iterative:
each stack frame carries its own ``in_unsafe`` flag, so leaving a nested
``unsafe { }`` scope restores the enclosing state without any bookkeeping.

Test exclusion is a syntactic heuristic: a function carrying ``#[test]`` or
``#[cfg(test)]`` and a module carrying ``#[cfg(test)]`` are skipped along
with their whole subtree. ``cfg`` expressions are not evaluated, so e.g.
``#[cfg(all(test, unix))]`` is not recognised while ``#[cfg(test)]`` is.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

from tree_sitter import Node, Tree

from ..exceptions import EncodingScanError, FileReadError, SyntaxScanError
from .counters import CATEGORIES, Count, CounterBlock
from .treesitter_parser import RustParser, first_error_position


class NodeKind(Enum):
    """What a syntax node means to the unsafe counter."""

    FUNCTION = "function"  # free-standing fn (incl. nested fns)
    METHOD = "method"  # fn inside an impl block
    IMPL = "impl"
    TRAIT = "trait"
    MODULE = "module"
    UNSAFE_SCOPE = "unsafe_scope"
    EXPRESSION = "expression"
    OPAQUE = "opaque"  # never descended into (macro input, attributes)
    OTHER = "other"


# Expression node types of the tree-sitter-rust grammar. Paths and literals
# are deliberately absent: `f(x)` counts as one expression, not three.
EXPRESSION_TYPES = frozenset(
    {
        "array_expression",
        "assignment_expression",
        "async_block",
        "await_expression",
        "binary_expression",
        "block",
        "break_expression",
        "call_expression",
        "closure_expression",
        "compound_assignment_expr",
        "const_block",
        "continue_expression",
        "field_expression",
        "for_expression",
        "gen_block",
        "if_expression",
        "index_expression",
        "loop_expression",
        "macro_invocation",
        "match_expression",
        "parenthesized_expression",
        "range_expression",
        "reference_expression",
        "return_expression",
        "struct_expression",
        "try_block",
        "try_expression",
        "tuple_expression",
        "type_cast_expression",
        "unary_expression",
        "unit_expression",
        "while_expression",
        "yield_expression",
    }
)

# A block directly under one of these is a statement body, not an expression.
_BLOCK_BODY_PARENTS = frozenset(
    {
        "function_item",
        "if_expression",
        "while_expression",
        "loop_expression",
        "for_expression",
        "unsafe_block",
        "async_block",
        "gen_block",
        "try_block",
        "const_block",
    }
)

# Macro invocations directly under these are items, not expressions.
_ITEM_CONTAINERS = frozenset({"source_file", "declaration_list"})

_OPAQUE_TYPES = frozenset(
    {"token_tree", "attribute_item", "inner_attribute_item", "macro_definition"}
)

_SKIPPABLE_SIBLINGS = frozenset({"attribute_item", "line_comment", "block_comment"})


def _is_method_callee(node: Node) -> bool:
    """True for the `x.foo` of `x.foo()` or `x.foo::<T>()`; the call is the expression."""
    callee, parent = node, node.parent
    if parent is not None and parent.type == "generic_function":
        if parent.child_by_field_name("function") != callee:
            return False
        callee, parent = parent, parent.parent
    return (
        parent is not None
        and parent.type == "call_expression"
        and parent.child_by_field_name("function") == callee
    )


def classify(node: Node) -> NodeKind:
    """Map a syntax node onto the NodeKind tagged union."""
    node_type = node.type
    if node_type == "function_item":
        parent = node.parent
        if parent is not None and parent.type == "declaration_list":
            container = parent.parent
            if container is not None and container.type == "impl_item":
                return NodeKind.METHOD
            if container is not None and container.type == "trait_item":
                # Provided trait methods are not counted, only their bodies
                return NodeKind.OTHER
        return NodeKind.FUNCTION
    if node_type == "impl_item":
        return NodeKind.IMPL
    if node_type == "trait_item":
        return NodeKind.TRAIT
    if node_type == "mod_item":
        return NodeKind.MODULE
    if node_type == "unsafe_block":
        return NodeKind.UNSAFE_SCOPE
    if node_type in _OPAQUE_TYPES:
        return NodeKind.OPAQUE
    if node_type in EXPRESSION_TYPES:
        parent_type = node.parent.type if node.parent is not None else ""
        if node_type == "block" and parent_type in _BLOCK_BODY_PARENTS:
            return NodeKind.OTHER
        if node_type == "macro_invocation" and parent_type in _ITEM_CONTAINERS:
            return NodeKind.OTHER
        if node_type == "field_expression" and _is_method_callee(node):
            return NodeKind.OTHER
        return NodeKind.EXPRESSION
    return NodeKind.OTHER


def has_unsafe_qualifier(node: Node) -> bool:
    """True if an fn/impl/trait declaration carries the `unsafe` keyword."""
    for child in node.children:
        if child.type == "unsafe":
            return True
        if child.type == "function_modifiers":
            return any(c.type == "unsafe" for c in child.children)
    return False


def _outer_attributes(node: Node) -> list[Node]:
    """Return the `attribute` nodes of the #[...] items preceding ``node``."""
    attributes = []
    sibling = node.prev_sibling
    while sibling is not None and sibling.type in _SKIPPABLE_SIBLINGS:
        if sibling.type == "attribute_item":
            attributes.extend(c for c in sibling.children if c.type == "attribute")
        sibling = sibling.prev_sibling
    return attributes


def _attribute_path(attribute: Node) -> str:
    head = attribute.children[0] if attribute.children else None
    if head is None or head.type != "identifier" or head.text is None:
        return ""
    return head.text.decode("utf-8")


def _is_word_test(attribute: Node) -> bool:
    return _attribute_path(attribute) == "test" and len(attribute.children) == 1


def _is_cfg_test(attribute: Node) -> bool:
    if _attribute_path(attribute) != "cfg":
        return False
    arguments = attribute.child_by_field_name("arguments")
    if arguments is None:
        return False
    return any(c.type == "identifier" and c.text == b"test" for c in arguments.children)


def is_test_item(node: Node, kind: NodeKind) -> bool:
    """True for #[test] / #[cfg(test)] functions and #[cfg(test)] modules."""
    attributes = _outer_attributes(node)
    if kind is NodeKind.MODULE:
        return any(_is_cfg_test(a) for a in attributes)
    return any(_is_word_test(a) or _is_cfg_test(a) for a in attributes)


_DECLARATION_CATEGORY = {
    NodeKind.FUNCTION: "functions",
    NodeKind.METHOD: "methods",
    NodeKind.IMPL: "item_impls",
    NodeKind.TRAIT: "item_traits",
}


def _visit(
    node: Node,
    kind: NodeKind,
    in_unsafe: bool,
    counts: dict[str, Count],
    include_tests: bool,
) -> Optional[bool]:
    """Count one node.

    Returns the ``in_unsafe`` state for the node's children, or None if the
    subtree must not be visited.
    """
    if kind is NodeKind.OPAQUE:
        return None
    if kind in (NodeKind.FUNCTION, NodeKind.METHOD, NodeKind.MODULE):
        if not include_tests and is_test_item(node, kind):
            return None
    if kind in _DECLARATION_CATEGORY:
        category = _DECLARATION_CATEGORY[kind]
        counts[category] = counts[category].counted(has_unsafe_qualifier(node))
        return in_unsafe
    if kind is NodeKind.UNSAFE_SCOPE:
        return True
    if kind is NodeKind.EXPRESSION:
        counts["exprs"] = counts["exprs"].counted(in_unsafe)
        return in_unsafe
    return in_unsafe


def count_unsafe(tree: Tree, include_tests: bool = False) -> CounterBlock:
    """Count safe and unsafe items in a parsed Rust file."""
    counts = {category: Count() for category in CATEGORIES}
    stack: list[tuple[Node, bool]] = [(tree.root_node, False)]
    while stack:
        node, in_unsafe = stack.pop()
        child_state = _visit(node, classify(node), in_unsafe, counts, include_tests)
        if child_state is None:
            continue
        for child in reversed(node.children):
            stack.append((child, child_state))
    return CounterBlock(**counts)


def find_unsafe_in_file(
    path: Path, include_tests: bool = False, parser: Optional[RustParser] = None
) -> CounterBlock:
    """Read, parse and count one source file.

    Raises:
        FileReadError: The file cannot be read
        EncodingScanError: The file is not valid UTF-8
        SyntaxScanError: The file does not parse as Rust
    """
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise FileReadError(path, str(e))
    try:
        raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise EncodingScanError(path, str(e))

    tree = (parser or RustParser()).parse(raw)
    if tree.root_node.has_error:
        position = first_error_position(tree.root_node)
        where = f"line {position[0]}, column {position[1]}" if position else "unknown location"
        raise SyntaxScanError(path, f"syntax error at {where}")
    return count_unsafe(tree, include_tests)
