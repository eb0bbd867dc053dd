"""
JS Analyzer — tree-sitter parsing and token helpers for JavaScript sources.

Provides the structural primitives the lint rules work against:
  • Parsing and source reading (binary-file guard)
  • Node text slicing over the original UTF-8 bytes
  • Parenthesis-transparent operand access (ESTree-style)
  • Neighbouring leaf-token lookup by tree navigation (comments included)
  • 1-based line / character-column positions for reporting
"""

import os
import logging
from typing import Iterator, Optional, Tuple

import tree_sitter_javascript as tsjs
from tree_sitter import Language, Parser, Node, Tree

logger = logging.getLogger(__name__)

JS_LANGUAGE = Language(tsjs.language())
_parser = Parser(JS_LANGUAGE)

PAREN_TYPES = ("parenthesized_expression",)


def parse_source(source: bytes) -> Tree:
    """Parse raw JavaScript bytes into a tree-sitter Tree."""
    return _parser.parse(source)


def node_text(node: Node, source: bytes) -> str:
    return source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


def unwrap_parentheses(node: Optional[Node]) -> Optional[Node]:
    """Return the expression inside any number of enclosing parentheses.

    ``((a, b))`` → the ``sequence_expression`` node.  A parenthesized
    expression holds exactly one named child (comments aside).
    """
    while node is not None and node.type in PAREN_TYPES:
        inner = [c for c in node.named_children if c.type != "comment"]
        if len(inner) != 1:
            break
        node = inner[0]
    return node


def operand(node: Node, field_name: str) -> Optional[Node]:
    """Field child of ``node`` with parentheses unwrapped."""
    return unwrap_parentheses(node.child_by_field_name(field_name))


def operator_text(node: Node, source: bytes) -> str:
    op = node.child_by_field_name("operator")
    if op is None:
        return ""
    return node_text(op, source)


def outermost_parentheses(node: Node) -> Node:
    """``node`` itself, or the outermost parenthesized expression wrapping it."""
    while node.parent is not None and node.parent.type in PAREN_TYPES:
        node = node.parent
    return node


def walk_all(node: Node) -> Iterator[Node]:
    """Yield ``node`` and all its descendants in depth-first pre-order."""
    cursor = node.walk()
    visited = False
    while True:
        if not visited:
            yield cursor.node
        if not visited and cursor.goto_first_child():
            visited = False
            continue
        if cursor.goto_next_sibling():
            visited = False
            continue
        if not cursor.goto_parent():
            break
        visited = True


def _has_width(node: Node) -> bool:
    # tree-sitter MISSING insertions are zero-width
    return node.end_byte > node.start_byte


def _edge_leaf(node: Node, last: bool) -> Node:
    while node.child_count:
        children = [c for c in node.children if _has_width(c)]
        if not children:
            break
        node = children[-1] if last else children[0]
    return node


def previous_token(node: Node) -> Optional[Node]:
    """Leaf token (comments included) immediately preceding ``node``.

    Climbs from ``node`` to the nearest ancestor with an earlier sibling and
    takes that sibling's last leaf, so the cost is bounded by tree depth.
    """
    current = node
    while current is not None:
        sibling = current.prev_sibling
        while sibling is not None and not _has_width(sibling):
            sibling = sibling.prev_sibling
        if sibling is not None:
            return _edge_leaf(sibling, last=True)
        current = current.parent
    return None


def next_token(node: Node) -> Optional[Node]:
    """Leaf token (comments included) immediately following ``node``."""
    current = node
    while current is not None:
        sibling = current.next_sibling
        while sibling is not None and not _has_width(sibling):
            sibling = sibling.next_sibling
        if sibling is not None:
            return _edge_leaf(sibling, last=False)
        current = current.parent
    return None


def is_keyword_token(token: Node) -> bool:
    """Anonymous all-lowercase leaf: ``return``, ``typeof``, ``in``, ``of``, ``await``..."""
    return (
        not token.is_named
        and token.type.isalpha()
        and token.type.islower()
    )


def position(source: bytes, byte_offset: int) -> Tuple[int, int]:
    """Return (line, column), both 1-based, columns counted in characters."""
    line = source.count(b"\n", 0, byte_offset) + 1
    line_start = source.rfind(b"\n", 0, byte_offset) + 1
    column = len(source[line_start:byte_offset].decode("utf-8", errors="replace")) + 1
    return line, column


def first_error(root: Node) -> Optional[Node]:
    """First ERROR or MISSING node under ``root``, or None."""
    if not root.has_error:
        return None
    for node in walk_all(root):
        if node.type == "ERROR" or node.is_missing:
            return node
    return root


def read_source(full_path: str) -> Optional[bytes]:
    """Read a source file as bytes; None for missing or binary files."""
    if not os.path.isfile(full_path):
        logger.warning("File not found: %s", full_path)
        return None
    try:
        with open(full_path, "rb") as f:
            source = f.read()
    except OSError as e:
        logger.error("Failed to read %s: %s", full_path, e)
        return None
    if b"\x00" in source[:8192]:
        logger.warning("Skipping binary file: %s", full_path)
        return None
    return source
