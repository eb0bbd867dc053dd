"""
Rule plumbing shared by the linter host and the rule modules.

A rule is metadata plus a fixed table of ``RuleEntry`` rows, each pairing
the node types it wants to see with a check function.  The linter walks the
tree once and hands every node to the checks registered for its type.
"""

from dataclasses import dataclass
from typing import Callable, Tuple

from tree_sitter import Node

from .js_analyzer import node_text
from .reporter import Reporter
from .rule_catalog import RuleMeta


@dataclass
class RuleContext:
    """Per-source view handed to every check."""
    source: bytes
    reporter: Reporter
    consider_getters: bool = False

    def get_text(self, node: Node) -> str:
        return node_text(node, self.source)

    def report(self, *args, **kwargs):
        return self.reporter.report(*args, **kwargs)


Check = Callable[[Node, RuleContext], None]


@dataclass(frozen=True)
class RuleEntry:
    node_types: Tuple[str, ...]
    check: Check


@dataclass(frozen=True)
class Rule:
    meta: RuleMeta
    entries: Tuple[RuleEntry, ...]

    @property
    def rule_id(self) -> str:
        return self.meta.rule_id
