"""
prefer-math-trunc — flag bitwise truncation idioms and rewrite them to
``Math.trunc()``.

Two detections:
  • bitwise-zero:   ``x | 0``, ``x >> 0``, ``x << 0``, ``x ^ 0`` and the
                    compound-assignment forms (``x >>= 0`` ...)
  • double-not:     ``~~x`` (innermost qualifying pair only)

Fix policy:
  • ``x | 0``                    → suggestion only (common, often deliberate)
  • other bitwise-zero forms    → guaranteed fix
  • ``~~x``                      → guaranteed fix
  • assignment with a side-effecting target → reported without any fix
"""

import logging
from typing import Iterator, Optional

from tree_sitter import Node

from .edits import Edit, replace_text
from .js_analyzer import operand, operator_text
from .keyword_spacing import fix_space_around_keyword
from .rule_base import Rule, RuleContext, RuleEntry
from .rule_catalog import (
    ERROR_BITWISE, ERROR_BITWISE_NOT, SUGGESTION_BITWISE, get_rule,
)
from .side_effects import has_side_effect

logger = logging.getLogger(__name__)

# x OP 0 == Math.trunc(x) only for these operators
BITWISE_OPERATORS = frozenset({"|", ">>", "<<", "^"})


def _is_zero_literal(node: Optional[Node], ctx: RuleContext) -> bool:
    return node is not None and node.type == "number" and ctx.get_text(node) == "0"


def _is_bitwise_not(node: Optional[Node], ctx: RuleContext) -> bool:
    return (
        node is not None
        and node.type == "unary_expression"
        and operator_text(node, ctx.source) == "~"
    )


def math_trunc_call(node: Node, ctx: RuleContext) -> str:
    text = ctx.get_text(node)
    # Math.trunc(a, b) would pass two arguments
    if node.type == "sequence_expression":
        text = f"({text})"
    return f"Math.trunc({text})"


# ────────────────────────────────────────────────────────────────
#  Fix synthesis
# ────────────────────────────────────────────────────────────────

def _bitwise_zero_fix(node: Node, left: Node, right: Node,
                      ctx: RuleContext) -> Iterator[Edit]:
    fixed = math_trunc_call(left, ctx)
    if node.type == "augmented_assignment_expression":
        # target stays in place: `a >>= 0` → `a = Math.trunc(a)`
        yield replace_text(node.child_by_field_name("operator"), "=")
        yield replace_text(right, fixed)
    else:
        yield from fix_space_around_keyword(node)
        yield replace_text(node, fixed)


def _double_not_fix(node: Node, target: Node, ctx: RuleContext) -> Iterator[Edit]:
    yield replace_text(node, math_trunc_call(target, ctx))
    yield from fix_space_around_keyword(node)


# ────────────────────────────────────────────────────────────────
#  Checks
# ────────────────────────────────────────────────────────────────

def check_bitwise_zero(node: Node, ctx: RuleContext) -> None:
    """``x OP 0`` and ``x OP= 0`` for OP in the bitwise operator set."""
    is_assignment = node.type == "augmented_assignment_expression"
    operator = operator_text(node, ctx.source)
    left = operand(node, "left")
    right = operand(node, "right")

    if left is None or not _is_zero_literal(right, ctx):
        return
    if (operator[:-1] if is_assignment else operator) not in BITWISE_OPERATORS:
        return

    data = {"operator": operator, "value": ctx.get_text(right)}

    if is_assignment and has_side_effect(left, ctx.source, ctx.consider_getters):
        logger.debug("Target `%s` has side effects; reporting without fix",
                     ctx.get_text(left))
        ctx.report(node, ERROR_BITWISE, data)
        return

    ctx.report(
        node, ERROR_BITWISE, data,
        fix=_bitwise_zero_fix(node, left, right, ctx),
        suggestion_id=SUGGESTION_BITWISE if operator == "|" else None,
    )


def check_double_not(node: Node, ctx: RuleContext) -> None:
    """Innermost ``~~x``: the operand of the pair must not be a third ``~``."""
    if not _is_bitwise_not(node, ctx):
        return
    inner = operand(node, "argument")
    if not _is_bitwise_not(inner, ctx):
        return
    target = operand(inner, "argument")
    if target is None or _is_bitwise_not(target, ctx):
        return

    ctx.report(node, ERROR_BITWISE_NOT, fix=_double_not_fix(node, target, ctx))


RULE = Rule(
    meta=get_rule("prefer-math-trunc"),
    entries=(
        RuleEntry(("binary_expression", "augmented_assignment_expression"), check_bitwise_zero),
        RuleEntry(("unary_expression",), check_double_not),
    ),
)
