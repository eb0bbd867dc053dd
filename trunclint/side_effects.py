"""
Side-effect detection for expression subtrees.

Answers "could evaluating this expression do anything besides produce a
value?"  Follows the default behaviour of eslint-utils' ``hasSideEffect``:
getters and implicit type conversions are ignored unless asked for, and
function bodies are never entered because defining a function does nothing.
"""

from typing import Iterator

from tree_sitter import Node

from .js_analyzer import node_text, operator_text

# Node types whose evaluation always has an observable effect
_EFFECT_TYPES = {
    "assignment_expression",
    "augmented_assignment_expression",
    "await_expression",
    "call_expression",         # includes tagged templates and import()
    "new_expression",
    "update_expression",
    "yield_expression",
}

# Property reads that may run a getter
_MEMBER_TYPES = {"member_expression", "subscript_expression"}

# Creating a function value runs none of its body
_FUNCTION_TYPES = {
    "arrow_function",
    "function",
    "function_expression",
    "function_declaration",
    "generator_function",
    "generator_function_declaration",
}


def _effect_nodes(node: Node, source: bytes, consider_getters: bool) -> Iterator[Node]:
    """Yield sub-expressions that carry a side effect, outermost first."""
    queue = [node]
    while queue:
        current = queue.pop(0)
        kind = current.type
        if (kind in _EFFECT_TYPES
                or (kind == "unary_expression" and operator_text(current, source) == "delete")
                or (consider_getters and kind in _MEMBER_TYPES)):
            yield current
            continue
        if kind in _FUNCTION_TYPES:
            continue
        if kind == "method_definition":
            # Only a computed key is evaluated when the class is built
            name = current.child_by_field_name("name")
            if name is not None:
                queue.append(name)
            continue
        queue.extend(current.named_children)


def has_side_effect(node: Node, source: bytes, consider_getters: bool = False) -> bool:
    """Return True if evaluating ``node`` may have an observable effect."""
    return next(_effect_nodes(node, source, consider_getters), None) is not None


def describe_side_effect(node: Node, source: bytes, consider_getters: bool = False) -> str:
    """Text of the first sub-expression responsible for a side effect, or ''."""
    found = next(_effect_nodes(node, source, consider_getters), None)
    return node_text(found, source) if found is not None else ""
